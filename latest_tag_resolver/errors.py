"""Errors raised while resolving the latest tag of an image."""


class ResolutionError(Exception):
    """Base class for every failure surfaced by the resolver."""


class FetchError(ResolutionError):
    """A registry client failed to list tags for an image."""

    def __init__(self, image_url: str, reason):
        self.image_url = image_url
        self.reason = reason
        super().__init__(f'failed to get tags from remote registry for {image_url!r}: {reason}')


class EmptyResultError(ResolutionError):
    """The registry answered, but without a single tag."""

    def __init__(self, image_url: str):
        self.image_url = image_url
        super().__init__(f'no tags found for given image URL: {image_url!r}')


class NoMatchError(ResolutionError):
    """None of the available tags satisfies the selection options."""

    def __init__(self, options, msg='no image found with those option constraints'):
        self.options = options
        super().__init__(f'{msg}: {options!r}')


class SerializationError(ResolutionError):
    """Options could not be serialized for fingerprinting."""


__all__ = ['ResolutionError', 'FetchError', 'EmptyResultError', 'NoMatchError', 'SerializationError']
