from .errors import EmptyResultError, FetchError, NoMatchError, ResolutionError, SerializationError
from .options import ImageTag, Options, fingerprint
from .resolver import LatestTagResolver


__all__ = [
    'EmptyResultError', 'FetchError', 'ImageTag', 'LatestTagResolver', 'NoMatchError', 'Options',
    'ResolutionError', 'SerializationError', 'fingerprint',
]
