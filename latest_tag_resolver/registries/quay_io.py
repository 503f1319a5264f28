import datetime
import email.utils
import urllib.parse

from latest_tag_resolver.errors import FetchError
from latest_tag_resolver.options import EPOCH, ImageTag
from latest_tag_resolver.registries import base
from latest_tag_resolver.registries.base import ImageProperties


def quay_repository_url(repository: str) -> str:
    return f'https://quay.io/api/v1/repository/{repository}'


def parse_timestamp(value) -> datetime.datetime:
    """Parse Quay ``last_modified`` RFC 1123 timestamps."""
    if not value:
        return EPOCH
    timestamp = email.utils.parsedate_to_datetime(value)
    if timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=datetime.timezone.utc)
    return timestamp


def tags_from_page(page: dict) -> list:
    return [
        ImageTag(
            tag=tag_metadata['name'],
            sha=tag_metadata.get('manifest_digest') or '',
            timestamp=parse_timestamp(tag_metadata.get('last_modified')),
        )
        for tag_metadata in page['tags']
    ]


class QuayIOClient(base.RegistryClient):

    registry_base_uri = 'quay.io'
    page_size = 100

    def tags_uri(self, image_props: ImageProperties, page: int) -> str:
        query = urllib.parse.urlencode({'page': page, 'limit': self.page_size, 'onlyActiveTags': 'true'})
        return f'{quay_repository_url(image_props.repository)}/tag/?{query}'

    async def list_tags(self, image_props: ImageProperties) -> list:
        """List image tags using Quay API."""

        tags = []
        page_number = 1
        while True:
            page = await self.get_json(image_props, self.tags_uri(image_props, page_number))
            try:
                tags.extend(tags_from_page(page))
            except (KeyError, TypeError, ValueError) as exc:
                raise FetchError(image_props.url, f'unknown Quay response format: {exc!r}') from exc
            if not page.get('has_additional'):
                return tags
            page_number += 1
