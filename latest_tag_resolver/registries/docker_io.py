import datetime
import logging
import re
import urllib.parse

from latest_tag_resolver.errors import FetchError
from latest_tag_resolver.options import EPOCH, ImageTag
from latest_tag_resolver.registries import base

logger = logging.getLogger(__name__)
FRACTION_PATTERN = re.compile(r'\.([0-9]+)')


def parse_timestamp(value) -> datetime.datetime:
    """Parse Docker Hub ``last_updated`` ISO 8601 timestamps."""
    if not value:
        return EPOCH
    # fromisoformat only takes 3 or 6 fractional digits before Python 3.11
    value = value.replace('Z', '+00:00')
    value = FRACTION_PATTERN.sub(lambda m: '.' + m.group(1)[:6].ljust(6, '0'), value, count=1)
    timestamp = datetime.datetime.fromisoformat(value)
    if timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=datetime.timezone.utc)
    return timestamp


def tags_from_page(page: dict) -> list:
    tags = []
    for result in page['results']:
        sha = result.get('digest') or ''
        if not sha:
            for image in result.get('images') or []:
                if image.get('digest'):
                    sha = image['digest']
                    break
        tags.append(ImageTag(tag=result['name'], sha=sha, timestamp=parse_timestamp(result.get('last_updated'))))
    return tags


class DockerIOClient(base.RegistryClient):

    registry_base_uri = 'docker.io'
    api_base_uri = 'https://registry.hub.docker.com'
    page_size = 100

    def tags_uri(self, image_props: base.ImageProperties) -> str:
        query = urllib.parse.urlencode({'page_size': self.page_size})
        return f'{self.api_base_uri}/v2/repositories/{image_props.repository}/tags?{query}'

    async def list_tags(self, image_props: base.ImageProperties) -> list:
        """List image tags using Docker Hub API, following pagination."""

        tags = []
        url = self.tags_uri(image_props)
        while url:
            page = await self.get_json(image_props, url)
            try:
                tags.extend(tags_from_page(page))
            except (KeyError, TypeError, ValueError) as exc:
                raise FetchError(image_props.url, f'unknown Docker Hub response format: {exc!r}') from exc
            url = page.get('next')

        logger.debug('Docker Hub returned %d tags for %s', len(tags), image_props.repository)
        return tags
