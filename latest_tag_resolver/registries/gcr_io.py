import datetime

from latest_tag_resolver.errors import FetchError
from latest_tag_resolver.options import EPOCH, ImageTag
from latest_tag_resolver.registries import base


def parse_timestamp(value) -> datetime.datetime:
    """Parse GCR millisecond epoch strings."""
    if not value:
        return EPOCH
    return datetime.datetime.fromtimestamp(int(value) / 1000, tz=datetime.timezone.utc)


def tags_from_manifests(manifests: dict) -> list:
    """One ImageTag per tag of every manifest. Untagged manifests keep an empty tag."""
    tags = []
    for sha, manifest in manifests.items():
        timestamp = parse_timestamp(manifest.get('timeUploadedMs'))
        for tag in manifest.get('tag') or ['']:
            tags.append(ImageTag(tag=tag, sha=sha, timestamp=timestamp))
    return tags


class GCRClient(base.RegistryClient):

    registry_base_uri = 'gcr.io'

    def is_client(self, image_url: str) -> bool:
        try:
            domain = base.parse_image_url(image_url).domain
        except ValueError:
            return False
        return domain == self.registry_base_uri or domain.endswith(f'.{self.registry_base_uri}')

    async def list_tags(self, image_props: base.ImageProperties) -> list:
        """List image tags using the registry tags/list endpoint."""

        response = await self.get_json(
            image_props,
            f'https://{image_props.domain}/v2/{image_props.repository}/tags/list',
        )
        try:
            return tags_from_manifests(response['manifest'])
        except (KeyError, TypeError, ValueError, AttributeError) as exc:
            raise FetchError(image_props.url, f'unknown GCR response format: {exc!r}') from exc
