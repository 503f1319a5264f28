import abc
import collections
import logging
import os
import typing

import aiohttp

from latest_tag_resolver.errors import FetchError
from latest_tag_resolver.options import ImageTag

logger = logging.getLogger(__name__)
ImageProperties = collections.namedtuple('ImageProperties', ['url', 'domain', 'repository'])

DOCKER_IO_ALIASES = ('docker.io', 'index.docker.io', 'registry-1.docker.io', 'registry.hub.docker.com')


def parse_image_url(image_url: str) -> ImageProperties:
    """Split an image URL into registry domain and repository path.

    Any tag or digest suffix is dropped. URLs without a registry domain
    belong to docker.io, where single name repositories live under
    ``library/``.
    """
    if not image_url:
        raise ValueError('An image URL must not be empty')

    repo = image_url.split('@', 1)[0]
    slash, colon = repo.rfind('/'), repo.rfind(':')
    if colon > slash:
        repo = repo[:colon]

    parts = repo.split('/')
    if len(parts) > 1 and ('.' in parts[0] or ':' in parts[0] or parts[0] == 'localhost'):
        domain, parts = parts[0], parts[1:]
    else:
        domain = 'docker.io'

    if domain in DOCKER_IO_ALIASES:
        domain = 'docker.io'
        if len(parts) == 1:
            # docker.io/library
            parts = ['library'] + parts

    return ImageProperties(image_url, domain=domain, repository='/'.join(parts))


class RegistryClient(abc.ABC):
    """Lists the tags of images hosted on one remote registry."""

    registry_base_uri = None

    def __init__(self, token_file=None):
        self.client = None

        if token_file and os.path.exists(token_file):
            with open(token_file, 'r') as tkn:
                self.token = tkn.read().strip()
                logger.info('Loaded token file for %s', self.registry_base_uri)
        else:
            self.token = None

    def is_client(self, image_url: str) -> bool:
        """Whether the image URL belongs to this client's registry."""
        try:
            return parse_image_url(image_url).domain == self.registry_base_uri
        except ValueError:
            return False

    @abc.abstractmethod
    async def list_tags(self, image_props: ImageProperties) -> typing.List[ImageTag]:
        """Get every tag of the repository described by image properties."""
        raise NotImplementedError()

    async def fetch_tags(self, image_url: str) -> typing.List[ImageTag]:
        image_props = parse_image_url(image_url)
        self.ensure_client()
        logger.info('Fetching tags for %s/%s', image_props.domain, image_props.repository)
        return await self.list_tags(image_props)

    def ensure_client(self):
        """Create HTTP client for interacting with Docker registry."""
        if self.client is None:
            self.client = aiohttp.ClientSession(
                headers=self.get_client_headers(),
            )

    def get_client_headers(self):
        """Retrieve headers for HTTP client authentication."""
        headers = {
            'User-Agent': 'latest-tag-resolver',
        }
        if self.token:
            headers.update({'Authorization': f'Bearer {self.token}'})
        return headers

    async def get_json(self, image_props: ImageProperties, url: str, **kwargs):
        async with self.client.get(url, **kwargs) as response:
            if response.status != 200:
                raise FetchError(image_props.url, f'unexpected status {response.status} from {url}')
            return await response.json(content_type=None)

    async def close(self):
        if self.client is not None:
            await self.client.close()
            self.client = None
