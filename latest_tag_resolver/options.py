import dataclasses
import datetime
import json
import re
import typing

from latest_tag_resolver.errors import SerializationError


EPOCH = datetime.datetime(1970, 1, 1, tzinfo=datetime.timezone.utc)

FNV32_OFFSET_BASIS = 0x811c9dc5
FNV32_PRIME = 0x01000193


@dataclasses.dataclass(frozen=True)
class ImageTag:
    """One tag of an image as reported by a registry."""

    tag: str
    sha: str = ''
    timestamp: datetime.datetime = EPOCH


@dataclasses.dataclass(frozen=True)
class Options:
    """Selection policy for picking the latest tag.

    With ``use_sha`` enabled the tag pushed most recently wins and every
    other field is ignored. Otherwise tags are compared as semantic versions,
    optionally restricted by pins on major/minor/patch and by a regex on the
    raw tag text.
    """

    use_sha: bool = False
    use_pre_release: bool = False
    pin_major: typing.Optional[int] = None
    pin_minor: typing.Optional[int] = None
    pin_patch: typing.Optional[int] = None
    regex_matcher: typing.Optional[re.Pattern] = None

    def __post_init__(self):
        if isinstance(self.regex_matcher, str):
            object.__setattr__(self, 'regex_matcher', re.compile(self.regex_matcher))

    def as_dict(self) -> dict:
        return {
            'use_sha': self.use_sha,
            'use_pre_release': self.use_pre_release,
            'pin_major': self.pin_major,
            'pin_minor': self.pin_minor,
            'pin_patch': self.pin_patch,
            'regex_matcher': self.regex_matcher.pattern if self.regex_matcher is not None else None,
            'regex_flags': self.regex_matcher.flags if self.regex_matcher is not None else None,
        }


def fnv32(data: bytes) -> int:
    """32 bit FNV-1 hash."""
    value = FNV32_OFFSET_BASIS
    for byte in data:
        value = (value * FNV32_PRIME) & 0xffffffff
        value ^= byte
    return value


def fingerprint(image_url: str, options: Options) -> str:
    """Return a hash index for the given image URL and options.

    Equal options and URL always give the same string, so callers can key
    their own caches with it. Not meant to be collision resistant.
    """
    try:
        options_json = json.dumps(options.as_dict(), sort_keys=True, separators=(',', ':'))
    except (TypeError, ValueError) as exc:
        raise SerializationError(f'failed to marshal options: {exc}') from exc

    return str(fnv32(options_json.encode() + image_url.encode()))


__all__ = ['ImageTag', 'Options', 'fingerprint']
