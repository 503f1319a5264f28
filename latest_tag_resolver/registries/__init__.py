import typing

from .base import ImageProperties, RegistryClient, parse_image_url
from .docker_io import DockerIOClient
from .gcr_io import GCRClient
from .quay_io import QuayIOClient


class ClientDispatcher:
    """Picks the registry client serving an image URL.

    Clients are asked in order; the first one claiming the URL wins. URLs
    nobody claims go to the default client.
    """

    def __init__(self, clients: typing.Sequence[RegistryClient], default: RegistryClient):
        self.clients = tuple(clients)
        self.default = default

    def select_client(self, image_url: str) -> RegistryClient:
        for client in self.clients:
            if client.is_client(image_url):
                return client
        # Fall back to docker if we can't determine the registry
        return self.default

    async def close(self):
        for client in {id(c): c for c in self.clients + (self.default,)}.values():
            await client.close()


def default_dispatcher(auth=None) -> ClientDispatcher:
    """Build the stock dispatcher; ``auth`` maps registry base URI to a token file."""
    auth = auth or {}
    docker = DockerIOClient(auth.get(DockerIOClient.registry_base_uri))
    return ClientDispatcher(
        [
            QuayIOClient(auth.get(QuayIOClient.registry_base_uri)),
            GCRClient(auth.get(GCRClient.registry_base_uri)),
            docker,
        ],
        default=docker,
    )


__all__ = ['ClientDispatcher', 'ImageProperties', 'RegistryClient', 'default_dispatcher', 'parse_image_url']
