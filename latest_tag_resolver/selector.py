"""Pick a single latest tag out of a registry tag list."""
import logging
import re
import typing

import semver

from latest_tag_resolver.errors import NoMatchError
from latest_tag_resolver.options import ImageTag, Options


logger = logging.getLogger(__name__)
VERSION_PATTERN = re.compile(
    r'^v?([0-9]+)(?:\.([0-9]+))?(?:\.([0-9]+))?'
    r'(?:-([0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?'
    r'(?:\+([0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?$'
)


def parse_version(tag: str) -> typing.Optional[semver.Version]:
    """Parse tag text as a semantic version, or return None.

    A leading ``v`` is dropped, missing minor/patch parts count as zero and
    numbers may be zero padded, so ``v1.2.3``, ``1.2``, ``3`` and
    ``2020.01.15`` are all versions.
    """
    match = VERSION_PATTERN.match(tag)
    if match is None:
        return None
    major, minor, patch, prerelease, build = match.groups()
    return semver.Version(int(major), int(minor or 0), int(patch or 0), prerelease, build)


def latest_semver(options: Options, tags: typing.Sequence[ImageTag]) -> ImageTag:
    """Return the greatest semantic version allowed by options.

    Tags that are not versions at all ("latest", "stable") are skipped.
    """
    latest_tag = None
    latest_version = None

    for image_tag in tags:
        version = parse_version(image_tag.tag)
        if version is None:
            continue

        if options.regex_matcher is not None and not options.regex_matcher.search(image_tag.tag):
            continue

        if version.prerelease and not options.use_pre_release:
            continue

        if options.pin_major is not None and version.major != options.pin_major:
            continue
        if options.pin_minor is not None and version.minor != options.pin_minor:
            continue
        if options.pin_patch is not None and version.patch != options.pin_patch:
            continue

        if latest_version is None or version.compare(latest_version) > 0:
            latest_version = version
            latest_tag = image_tag

    if latest_tag is None:
        raise NoMatchError(options)

    logger.debug('selected %s out of %d tags', latest_tag.tag, len(tags))
    return latest_tag


def latest_sha(tags: typing.Sequence[ImageTag], options: typing.Optional[Options] = None) -> ImageTag:
    """Return the most recently pushed tag, ignoring its text."""
    latest_tag = None

    for image_tag in tags:
        if latest_tag is None or image_tag.timestamp > latest_tag.timestamp:
            latest_tag = image_tag

    if latest_tag is None:
        raise NoMatchError(options or Options(use_sha=True), msg='failed to find latest image based on SHA')

    return latest_tag


def select_latest(options: Options, tags: typing.Sequence[ImageTag]) -> ImageTag:
    if options.use_sha:
        return latest_sha(tags, options)
    return latest_semver(options, tags)


__all__ = ['parse_version', 'latest_semver', 'latest_sha', 'select_latest']
