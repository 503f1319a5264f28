import asyncio
import logging
import time
import typing

from latest_tag_resolver import registries
from latest_tag_resolver.cache import TagCache
from latest_tag_resolver.errors import EmptyResultError, FetchError
from latest_tag_resolver.options import ImageTag, Options
from latest_tag_resolver.selector import select_latest


logger = logging.getLogger(__name__)


class LatestTagResolver:
    """Resolves the latest tag of images, caching remote tag lists.

    One instance is meant to be shared by every concurrent resolution. Use
    it as an async context manager, or call ``close``, so that the cache
    sweep and HTTP sessions are released on teardown. The sweep starts with
    the first resolution at the latest.
    """

    def __init__(self, cache_timeout: float,
                 dispatcher: typing.Optional[registries.ClientDispatcher] = None,
                 clock: typing.Callable[[], float] = time.monotonic):
        self.dispatcher = dispatcher or registries.default_dispatcher()
        self.cache = TagCache(cache_timeout, clock=clock)

    def start(self):
        self.cache.start()

    async def close(self):
        await self.cache.close()
        await self.dispatcher.close()

    async def __aenter__(self) -> 'LatestTagResolver':
        self.start()
        return self

    async def __aexit__(self, *args):
        await self.close()

    async def resolve_latest(self, options: Options, image_url: str,
                             timeout: typing.Optional[float] = None) -> ImageTag:
        """Return the latest tag of image URL according to options."""
        tags = await self.all_tags(image_url, timeout=timeout)
        return select_latest(options, tags)

    async def all_tags(self, image_url: str, timeout: typing.Optional[float] = None) -> typing.List[ImageTag]:
        """Return every tag of image URL, from cache when fresh."""
        self.start()
        tags, found = self.cache.lookup(image_url)
        if found:
            return tags

        client = self.dispatcher.select_client(image_url)

        try:
            tags = await asyncio.wait_for(client.fetch_tags(image_url), timeout)
        except FetchError:
            logger.warning('Fetching tags for %s failed', image_url)
            raise
        except asyncio.TimeoutError as exc:
            logger.warning('Fetching tags for %s timed out after %ss', image_url, timeout)
            raise FetchError(image_url, f'timed out after {timeout}s') from exc
        except Exception as exc:
            logger.warning('Fetching tags for %s failed: %s', image_url, exc)
            raise FetchError(image_url, exc) from exc

        if not tags:
            raise EmptyResultError(image_url)

        self.cache.store(image_url, tags)
        return list(tags)


__all__ = ['LatestTagResolver']
