"""In-memory tag cache with time based expiry."""
import asyncio
import collections
import contextlib
import logging
import threading
import time
import typing

from latest_tag_resolver.options import ImageTag


logger = logging.getLogger(__name__)
CacheEntry = collections.namedtuple('CacheEntry', ['inserted_at', 'tags'])


class ReadWriteLock:
    """Many readers or a single writer."""

    def __init__(self):
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writing = False

    @contextlib.contextmanager
    def read_locked(self):
        with self._cond:
            while self._writing:
                self._cond.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if not self._readers:
                    self._cond.notify_all()

    @contextlib.contextmanager
    def write_locked(self):
        with self._cond:
            while self._writing or self._readers:
                self._cond.wait()
            self._writing = True
        try:
            yield
        finally:
            with self._cond:
                self._writing = False
                self._cond.notify_all()


class TagCache:
    """Maps image URLs to the tag list fetched for them.

    An entry is served while it is younger than ``ttl`` seconds. Once
    started, a background task sweeps stale entries every ``ttl / 2``
    seconds until the cache is closed.
    """

    def __init__(self, ttl: float, clock: typing.Callable[[], float] = time.monotonic):
        if ttl <= 0:
            raise ValueError(f'Cache timeout must be positive, got {ttl}')
        self.ttl = ttl
        self.clock = clock
        self._entries = {}
        self._lock = ReadWriteLock()
        self._sweep_task = None

    def __len__(self):
        with self._lock.read_locked():
            return len(self._entries)

    def lookup(self, image_url: str) -> typing.Tuple[typing.List[ImageTag], bool]:
        """Return a copy of the fresh tags for image URL and whether there were any."""
        with self._lock.read_locked():
            entry = self._entries.get(image_url)

        if entry is None or self.clock() - entry.inserted_at >= self.ttl:
            return [], False

        logger.debug('image tags cache hit: %r', image_url)
        return list(entry.tags), True

    def store(self, image_url: str, tags: typing.Iterable[ImageTag]):
        entry = CacheEntry(inserted_at=self.clock(), tags=tuple(tags))
        logger.debug('committing image tags: %r', image_url)
        with self._lock.write_locked():
            self._entries[image_url] = entry

    def sweep(self, now: typing.Optional[float] = None) -> int:
        """Drop every entry at least ``ttl`` old. Returns how many went."""
        if now is None:
            now = self.clock()

        with self._lock.write_locked():
            stale = [url for url, entry in self._entries.items() if now - entry.inserted_at >= self.ttl]
            for image_url in stale:
                del self._entries[image_url]

        if stale:
            logger.debug('swept %d stale image tag entries', len(stale))
        return len(stale)

    async def sweep_periodically(self):
        while True:
            await asyncio.sleep(self.ttl / 2)
            self.sweep()

    def start(self):
        """Start the background sweep on the running event loop."""
        if self._sweep_task is None:
            self._sweep_task = asyncio.create_task(self.sweep_periodically())

    async def close(self):
        """Stop the background sweep, if any."""
        task, self._sweep_task = self._sweep_task, None
        if task is not None:
            task.cancel()
            await asyncio.gather(task, return_exceptions=True)

    @property
    def sweeping(self) -> bool:
        return self._sweep_task is not None and not self._sweep_task.done()

    async def __aenter__(self) -> 'TagCache':
        self.start()
        return self

    async def __aexit__(self, *args):
        await self.close()


__all__ = ['CacheEntry', 'ReadWriteLock', 'TagCache']
