import asyncio
import concurrent.futures
import contextlib
import datetime
import io
import os
import re
import tempfile
import threading
import unittest
from unittest import mock

import aiohttp
import yaml

from latest_tag_resolver import __main__ as cli
from latest_tag_resolver import registries
from latest_tag_resolver.arguments import arg_parser
from latest_tag_resolver.cache import ReadWriteLock, TagCache
from latest_tag_resolver.errors import EmptyResultError, FetchError, NoMatchError, SerializationError
from latest_tag_resolver.options import EPOCH, ImageTag, Options, fingerprint, fnv32
from latest_tag_resolver.registries import base
from latest_tag_resolver.registries import docker_io
from latest_tag_resolver.registries.docker_io import DockerIOClient
from latest_tag_resolver.registries.gcr_io import GCRClient
from latest_tag_resolver.registries.quay_io import QuayIOClient
from latest_tag_resolver.resolver import LatestTagResolver
from latest_tag_resolver.selector import latest_semver, latest_sha, parse_version, select_latest


test_dir = os.path.join(os.path.dirname(__file__), 'test/')


def utc(*args) -> datetime.datetime:
    return datetime.datetime(*args, tzinfo=datetime.timezone.utc)


class FakeClock:

    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now


class FakeClient(base.RegistryClient):
    """Serves a fixed tag list, counting how often it was asked."""

    registry_base_uri = 'localhost:5000'

    def __init__(self, tags=(), error=None, delay=0):
        super().__init__(None)
        self.tags = list(tags)
        self.error = error
        self.delay = delay
        self.calls = 0

    def ensure_client(self):
        pass

    async def list_tags(self, image_props: base.ImageProperties) -> list:
        self.calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return list(self.tags)


class TagResolverTest(unittest.IsolatedAsyncioTestCase):

    def _testfile(self, path):
        """Return location of text fixture file."""
        return os.path.join(test_dir, path)

    def _fixture(self, path):
        """Returns dictionary data sourced from fixture YAML."""
        with open(self._testfile(path)) as fl:
            return yaml.load(fl, Loader=yaml.SafeLoader)

    def _tags(self, name, key):
        return [
            ImageTag(
                tag=str(item['tag']),
                sha=item.get('sha', ''),
                timestamp=datetime.datetime.fromisoformat(item['timestamp']) if 'timestamp' in item else EPOCH,
            )
            for item in self._fixture(f'tags/{name}.yaml')[key]
        ]

    def _resolver(self, client, cache_timeout=60, clock=None):
        resolver = LatestTagResolver(
            cache_timeout,
            dispatcher=registries.ClientDispatcher([], default=client),
            clock=clock or FakeClock(),
        )
        self.addAsyncCleanup(resolver.close)
        return resolver


class SemverSelectorTest(TagResolverTest):

    def test_parse_version(self):
        self.assertEqual('1.2.3', str(parse_version('v1.2.3')))
        self.assertEqual('1.2.0', str(parse_version('1.2')))
        self.assertEqual('3.0.0', str(parse_version('3')))
        self.assertEqual('beta', parse_version('1.3.0-beta').prerelease)
        for tag in ('latest', 'abc', '1.2.3.4', '', 'vfoo', 'V1.0.0'):
            self.assertIsNone(parse_version(tag), tag)

    def test_zero_padded_versions(self):
        self.assertEqual('2020.1.15', str(parse_version('2020.01.15')))
        self.assertEqual('1.2.3', str(parse_version('1.02.3')))
        self.assertEqual('rc.01', parse_version('1.0.0-rc.01').prerelease)

        winner = latest_semver(Options(), [ImageTag('2020.01.15'), ImageTag('1.0.0'), ImageTag('2020.01.09')])
        self.assertEqual('2020.01.15', winner.tag)
        self.assertEqual('2020.01.09', latest_semver(Options(pin_patch=9), [ImageTag('2020.01.09')]).tag)

        tags = [ImageTag('1.0.0-rc.01'), ImageTag('1.0.0-rc.2')]
        self.assertEqual('1.0.0-rc.2', latest_semver(Options(use_pre_release=True), tags).tag)

    def test_default_options_skip_pre_release_and_non_versions(self):
        winner = latest_semver(Options(), self._tags('semver', 'mixed'))
        self.assertEqual('1.3.0', winner.tag)

    def test_pre_release_allowed(self):
        winner = latest_semver(Options(use_pre_release=True), self._tags('semver', 'mixed'))
        self.assertEqual('1.3.0', winner.tag)

    def test_pre_release_only(self):
        tags = self._tags('semver', 'pre_release_only')
        self.assertEqual('2.0.0-rc.2', latest_semver(Options(use_pre_release=True), tags).tag)
        with self.assertRaises(NoMatchError):
            latest_semver(Options(), tags)

    def test_pin_major(self):
        tags = self._tags('semver', 'pins')
        self.assertEqual('1.2.9', latest_semver(Options(pin_major=1), tags).tag)
        self.assertEqual('2.0.0', latest_semver(Options(pin_major=2), tags).tag)

    def test_pin_mismatch(self):
        options = Options(pin_major=3)
        with self.assertRaises(NoMatchError) as ctx:
            latest_semver(options, self._tags('semver', 'pins'))
        self.assertIs(options, ctx.exception.options)
        self.assertIn('pin_major=3', str(ctx.exception))

    def test_pin_minor_and_patch(self):
        tags = self._tags('semver', 'pins')
        self.assertEqual('1.2.3', latest_semver(Options(pin_minor=2, pin_patch=3), tags).tag)
        with self.assertRaises(NoMatchError):
            latest_semver(Options(pin_major=2, pin_minor=2), tags)

    def test_regex_with_v_prefix(self):
        # a leading v is normalized away before parsing, so v1.0.0 is eligible
        winner = latest_semver(Options(regex_matcher='^v'), self._tags('semver', 'prefixed'))
        self.assertEqual('v1.0.0', winner.tag)

    def test_regex_matching_only_non_versions(self):
        tags = [ImageTag('vfoo'), ImageTag('1.0.0')]
        with self.assertRaises(NoMatchError):
            latest_semver(Options(regex_matcher='^v'), tags)

    def test_equal_versions_keep_first(self):
        tags = [ImageTag('1.0.0+build.1', sha='first'), ImageTag('1.0.0+build.2', sha='second')]
        self.assertEqual('first', latest_semver(Options(), tags).sha)

    def test_unsorted_duplicates(self):
        tags = [ImageTag('0.9.0'), ImageTag('1.1.0'), ImageTag('0.9.0'), ImageTag('1.0.10'), ImageTag('1.1.0')]
        self.assertIs(tags[1], latest_semver(Options(), tags))


class SHASelectorTest(TagResolverTest):

    def test_latest_timestamp_wins(self):
        winner = latest_sha(self._tags('sha', 'pushed'))
        self.assertEqual('newest-but-not-a-version', winner.tag)
        self.assertEqual('sha256:3333', winner.sha)

    def test_semver_options_ignored(self):
        options = Options(use_sha=True, pin_major=9, regex_matcher='^9')
        winner = select_latest(options, self._tags('sha', 'pushed'))
        self.assertEqual('sha256:3333', winner.sha)

    def test_equal_timestamps_keep_first(self):
        tags = [ImageTag('a', timestamp=utc(2020, 1, 1)), ImageTag('b', timestamp=utc(2020, 1, 1))]
        self.assertEqual('a', latest_sha(tags).tag)

    def test_empty(self):
        with self.assertRaises(NoMatchError):
            select_latest(Options(use_sha=True), [])


class FingerprintTest(TagResolverTest):

    image_url = 'quay.io/jetstack/cert-manager-controller'

    def test_fnv32(self):
        self.assertEqual(0x811c9dc5, fnv32(b''))
        self.assertEqual(0x050c5d7e, fnv32(b'a'))

    def test_deterministic(self):
        first = fingerprint(self.image_url, Options(pin_major=1, regex_matcher='^v'))
        second = fingerprint(self.image_url, Options(pin_major=1, regex_matcher='^v'))
        self.assertEqual(first, second)
        self.assertTrue(first.isdigit())
        self.assertEqual(fingerprint(self.image_url, Options()), fingerprint(self.image_url, Options()))

    def test_every_field_changes_fingerprint(self):
        variants = [
            Options(),
            Options(use_sha=True),
            Options(use_pre_release=True),
            Options(pin_major=1),
            Options(pin_minor=1),
            Options(pin_patch=1),
            Options(regex_matcher='^v'),
            Options(regex_matcher=re.compile('^v', re.IGNORECASE)),
        ]
        fingerprints = {fingerprint(self.image_url, options) for options in variants}
        fingerprints.add(fingerprint(self.image_url + '-other', Options()))
        self.assertEqual(len(variants) + 1, len(fingerprints))

    def test_unserializable_options(self):
        with self.assertRaises(SerializationError):
            fingerprint(self.image_url, Options(pin_major=object()))


class TagCacheTest(TagResolverTest):

    def test_lookup_and_expiry(self):
        clock = FakeClock()
        cache = TagCache(60, clock=clock)
        self.assertEqual(([], False), cache.lookup('app'))

        cache.store('app', [ImageTag('1.0.0')])
        clock.now += 59
        self.assertEqual(([ImageTag('1.0.0')], True), cache.lookup('app'))

        clock.now += 1
        self.assertEqual(([], False), cache.lookup('app'))

    def test_lookup_returns_copy(self):
        cache = TagCache(60, clock=FakeClock())
        cache.store('app', [ImageTag('1.0.0')])
        tags, _ = cache.lookup('app')
        tags.append(ImageTag('6.6.6'))
        self.assertEqual([ImageTag('1.0.0')], cache.lookup('app')[0])

    def test_sweep(self):
        clock = FakeClock()
        cache = TagCache(60, clock=clock)
        cache.store('old', [ImageTag('1.0.0')])
        clock.now += 30
        cache.store('new', [ImageTag('2.0.0')])

        clock.now += 30
        self.assertEqual(1, cache.sweep())
        self.assertEqual(1, len(cache))
        self.assertEqual(1, cache.sweep(now=clock.now + 30))
        self.assertEqual(0, len(cache))

    def test_invalid_ttl(self):
        with self.assertRaises(ValueError):
            TagCache(0)

    def test_writer_waits_for_readers(self):
        lock = ReadWriteLock()
        written = threading.Event()

        def write():
            with lock.write_locked():
                written.set()

        with lock.read_locked():
            writer = threading.Thread(target=write)
            writer.start()
            self.assertFalse(written.wait(0.1))
        writer.join(1)
        self.assertTrue(written.is_set())

    def test_readers_wait_for_writer_but_not_each_other(self):
        lock = ReadWriteLock()
        read = threading.Event()

        def reader():
            with lock.read_locked():
                read.set()

        with lock.write_locked():
            thread = threading.Thread(target=reader)
            thread.start()
            self.assertFalse(read.wait(0.1))
        thread.join(1)
        self.assertTrue(read.is_set())

        read.clear()
        with lock.read_locked():
            thread = threading.Thread(target=reader)
            thread.start()
            self.assertTrue(read.wait(1))
        thread.join(1)

    def test_concurrent_threads(self):
        cache = TagCache(60, clock=FakeClock())

        def work(i):
            image_url = f'app-{i % 10}'
            cache.store(image_url, [ImageTag(str(i))])
            tags, found = cache.lookup(image_url)
            cache.sweep()
            return found and len(tags) == 1

        with concurrent.futures.ThreadPoolExecutor(max_workers=8) as pool:
            results = list(pool.map(work, range(200)))

        self.assertTrue(all(results))
        self.assertEqual(10, len(cache))

    async def test_periodic_sweep(self):
        async with TagCache(0.05) as cache:
            self.assertTrue(cache.sweeping)
            cache.store('app', [ImageTag('1.0.0')])
            await asyncio.sleep(0.2)
            self.assertEqual(0, len(cache))
        self.assertFalse(cache.sweeping)

    async def test_close_without_start(self):
        cache = TagCache(1)
        await cache.close()
        self.assertFalse(cache.sweeping)


class LatestTagResolverTest(TagResolverTest):

    async def test_cache_hit_suppresses_fetch(self):
        client = FakeClient(self._tags('semver', 'mixed'))
        resolver = self._resolver(client)

        first = await resolver.resolve_latest(Options(), 'localhost:5000/app')
        second = await resolver.resolve_latest(Options(use_pre_release=True), 'localhost:5000/app')

        self.assertEqual('1.3.0', first.tag)
        self.assertEqual(first, second)
        self.assertEqual(1, client.calls)

    async def test_stale_entry_is_fetched_again(self):
        clock = FakeClock()
        client = FakeClient(self._tags('semver', 'mixed'))
        resolver = self._resolver(client, clock=clock)

        await resolver.resolve_latest(Options(), 'localhost:5000/app')
        clock.now += 60
        await resolver.resolve_latest(Options(), 'localhost:5000/app')
        self.assertEqual(2, client.calls)

    async def test_swept_entry_is_fetched_again(self):
        clock = FakeClock()
        client = FakeClient(self._tags('semver', 'mixed'))
        resolver = self._resolver(client, clock=clock)

        await resolver.resolve_latest(Options(), 'localhost:5000/app')
        clock.now += 60
        self.assertEqual(1, resolver.cache.sweep())
        clock.now -= 60
        self.assertFalse(resolver.cache.lookup('localhost:5000/app')[1])

        await resolver.resolve_latest(Options(), 'localhost:5000/app')
        self.assertEqual(2, client.calls)

    async def test_empty_fetch(self):
        resolver = self._resolver(FakeClient([]))
        with self.assertRaises(EmptyResultError):
            await resolver.resolve_latest(Options(), 'localhost:5000/app')
        self.assertEqual(0, len(resolver.cache))

    async def test_fetch_error_is_not_cached(self):
        client = FakeClient(error=aiohttp.ClientConnectionError('connection refused'))
        resolver = self._resolver(client)

        for _ in range(2):
            with self.assertRaises(FetchError) as ctx:
                await resolver.resolve_latest(Options(), 'localhost:5000/app')
            self.assertIsInstance(ctx.exception.__cause__, aiohttp.ClientConnectionError)
            self.assertEqual('localhost:5000/app', ctx.exception.image_url)

        self.assertEqual(2, client.calls)
        self.assertEqual(0, len(resolver.cache))

    async def test_fetch_timeout(self):
        resolver = self._resolver(FakeClient([ImageTag('1.0.0')], delay=10))
        with self.assertRaises(FetchError):
            await resolver.resolve_latest(Options(), 'localhost:5000/app', timeout=0.01)
        self.assertEqual(0, len(resolver.cache))

    async def test_cancelled_fetch(self):
        resolver = self._resolver(FakeClient([ImageTag('1.0.0')], delay=10))
        task = asyncio.ensure_future(resolver.resolve_latest(Options(), 'localhost:5000/app'))
        await asyncio.sleep(0.01)
        task.cancel()
        with self.assertRaises(asyncio.CancelledError):
            await task
        self.assertEqual(0, len(resolver.cache))

    async def test_no_match_after_fetch_keeps_cache(self):
        client = FakeClient(self._tags('semver', 'pins'))
        resolver = self._resolver(client)
        with self.assertRaises(NoMatchError):
            await resolver.resolve_latest(Options(pin_major=3), 'localhost:5000/app')
        self.assertEqual('1.2.9', (await resolver.resolve_latest(Options(pin_major=1), 'localhost:5000/app')).tag)
        self.assertEqual(1, client.calls)

    async def test_failure_does_not_affect_other_images(self):
        failing = FakeClient(error=FetchError('broken.example.com/app', 'unauthorized'))
        failing.registry_base_uri = 'broken.example.com'
        healthy = FakeClient(self._tags('semver', 'pins'))
        resolver = LatestTagResolver(60, dispatcher=registries.ClientDispatcher([failing], default=healthy))
        self.addAsyncCleanup(resolver.close)

        results = await asyncio.gather(
            resolver.resolve_latest(Options(), 'broken.example.com/app'),
            resolver.resolve_latest(Options(), 'localhost:5000/app'),
            return_exceptions=True,
        )
        self.assertIsInstance(results[0], FetchError)
        self.assertEqual('2.0.0', results[1].tag)

    async def test_concurrent_cold_fetches(self):
        client = FakeClient(self._tags('semver', 'mixed'), delay=0.01)
        resolver = self._resolver(client)
        results = await asyncio.gather(*(resolver.resolve_latest(Options(), 'localhost:5000/app') for _ in range(3)))
        self.assertEqual({'1.3.0'}, {result.tag for result in results})
        self.assertIn(client.calls, (1, 2, 3))
        self.assertEqual(1, len(resolver.cache))

    async def test_first_resolution_starts_sweep(self):
        resolver = self._resolver(FakeClient(self._tags('semver', 'mixed')))
        self.assertFalse(resolver.cache.sweeping)
        await resolver.resolve_latest(Options(), 'localhost:5000/app')
        self.assertTrue(resolver.cache.sweeping)
        await resolver.close()
        self.assertFalse(resolver.cache.sweeping)

    async def test_context_manager_runs_sweep(self):
        async with LatestTagResolver(60, dispatcher=registries.ClientDispatcher([], FakeClient())) as resolver:
            self.assertTrue(resolver.cache.sweeping)
        self.assertFalse(resolver.cache.sweeping)


class ImageURLTest(TagResolverTest):

    def test_parse_image_url(self):
        cases = {
            'nginx': ('docker.io', 'library/nginx'),
            'nginx:1.19': ('docker.io', 'library/nginx'),
            'jetstack/cert-manager:v1.0.0': ('docker.io', 'jetstack/cert-manager'),
            'index.docker.io/nginx': ('docker.io', 'library/nginx'),
            'quay.io/calico/node:v3.14.0-0.dev-55-g785f8b2': ('quay.io', 'calico/node'),
            'eu.gcr.io/project/team/app@sha256:abcd': ('eu.gcr.io', 'project/team/app'),
            'localhost:5000/app': ('localhost:5000', 'app'),
            'localhost:5000/app:1.0': ('localhost:5000', 'app'),
        }
        for url, (domain, repository) in cases.items():
            props = base.parse_image_url(url)
            self.assertEqual(url, props.url)
            self.assertEqual((domain, repository), (props.domain, props.repository), url)

    def test_empty_image_url(self):
        with self.assertRaises(ValueError):
            base.parse_image_url('')


class ClientDispatcherTest(TagResolverTest):

    def setUp(self):
        self.dispatcher = registries.default_dispatcher()

    def test_known_registries(self):
        self.assertIsInstance(self.dispatcher.select_client('quay.io/calico/node'), QuayIOClient)
        self.assertIsInstance(self.dispatcher.select_client('gcr.io/google-containers/pause'), GCRClient)
        self.assertIsInstance(self.dispatcher.select_client('eu.gcr.io/project/app'), GCRClient)
        self.assertIsInstance(self.dispatcher.select_client('nginx'), DockerIOClient)
        self.assertIsInstance(self.dispatcher.select_client('docker.io/library/nginx'), DockerIOClient)

    def test_unknown_registry_falls_back_to_default(self):
        self.assertIs(self.dispatcher.default, self.dispatcher.select_client('registry.example.com/team/app'))
        self.assertIsInstance(self.dispatcher.default, DockerIOClient)

    def test_first_claiming_client_wins(self):
        first, second, default = FakeClient(), FakeClient(), FakeClient()
        dispatcher = registries.ClientDispatcher([first, second], default=default)
        self.assertIs(first, dispatcher.select_client('localhost:5000/app'))
        self.assertIs(default, dispatcher.select_client('quay.io/app/app'))


class RegistryClientTest(TagResolverTest):

    def _client(self, cls, token_file=None):
        client = cls(token_file)
        self.addAsyncCleanup(client.close)
        return client

    def test_token_file_header(self):
        with tempfile.NamedTemporaryFile('w', suffix='.token', delete=False) as tkn:
            tkn.write('s3cr3t\n')
        self.addCleanup(os.unlink, tkn.name)

        client = QuayIOClient(tkn.name)
        self.assertEqual('s3cr3t', client.token)
        self.assertEqual('Bearer s3cr3t', client.get_client_headers()['Authorization'])
        self.assertNotIn('Authorization', QuayIOClient(None).get_client_headers())

    async def test_docker_io_pages(self):
        client = self._client(DockerIOClient)
        pages = self._fixture('registries/docker_io.yaml')['pages']
        with mock.patch.object(client, 'get_json', mock.AsyncMock(side_effect=pages)) as get_json:
            tags = await client.fetch_tags('nginx:1.19.0')

        self.assertEqual(
            [
                ImageTag('1.19.0', 'sha256:aaaa', utc(2020, 6, 15, 12, 34, 56, 123456)),
                ImageTag('latest', 'sha256:bbbb', utc(2020, 6, 16, 8)),
                ImageTag('1.18.0', '', EPOCH),
            ],
            tags,
        )
        self.assertEqual(2, get_json.await_count)
        self.assertEqual(
            'https://registry.hub.docker.com/v2/repositories/library/nginx/tags?page_size=100',
            get_json.await_args_list[0].args[1],
        )
        self.assertEqual(pages[0]['next'], get_json.await_args_list[1].args[1])

    async def test_quay_io_pages(self):
        client = self._client(QuayIOClient)
        pages = self._fixture('registries/quay_io.yaml')['pages']
        with mock.patch.object(client, 'get_json', mock.AsyncMock(side_effect=pages)) as get_json:
            tags = await client.fetch_tags('quay.io/calico/node')

        self.assertEqual(
            [
                ImageTag('v3.14.0', 'sha256:cccc', utc(2020, 6, 15, 12)),
                ImageTag('v3.13.0', 'sha256:dddd', utc(2020, 5, 1, 9, 30)),
            ],
            tags,
        )
        self.assertIn('/repository/calico/node/tag/?page=2&', get_json.await_args_list[1].args[1])

    async def test_gcr_io_manifests(self):
        client = self._client(GCRClient)
        response = self._fixture('registries/gcr_io.yaml')['response']
        with mock.patch.object(client, 'get_json', mock.AsyncMock(return_value=response)) as get_json:
            tags = await client.fetch_tags('gcr.io/google-containers/pause')

        self.assertEqual(
            ['3.1', '3.2', 'latest', ''],
            [tag.tag for tag in tags],
        )
        self.assertEqual('sha256:0000', tags[-1].sha)
        self.assertEqual(utc(2020, 2, 29, 18, 13, 20), tags[1].timestamp)
        self.assertEqual('https://gcr.io/v2/google-containers/pause/tags/list', get_json.await_args.args[1])
        self.assertEqual('sha256:0000', latest_sha(tags).sha)

    def test_docker_io_fractional_seconds(self):
        self.assertEqual(utc(2020, 6, 15, 12, 34, 56, 123450), docker_io.parse_timestamp('2020-06-15T12:34:56.12345Z'))
        self.assertEqual(utc(2020, 6, 15, 12, 34, 56, 123456), docker_io.parse_timestamp('2020-06-15T12:34:56.1234567Z'))
        self.assertEqual(utc(2020, 6, 15, 12, 34, 56, 100000), docker_io.parse_timestamp('2020-06-15T12:34:56.1Z'))
        self.assertEqual(utc(2020, 6, 15, 12, 34, 56), docker_io.parse_timestamp('2020-06-15T12:34:56Z'))

    async def test_malformed_response(self):
        client = self._client(DockerIOClient)
        with mock.patch.object(client, 'get_json', mock.AsyncMock(return_value={'detail': 'not found'})):
            with self.assertRaises(FetchError):
                await client.fetch_tags('nginx')

    async def test_resolve_through_default_dispatcher(self):
        resolver = LatestTagResolver(60)
        self.addAsyncCleanup(resolver.close)
        quay = resolver.dispatcher.select_client('quay.io/calico/node')
        pages = self._fixture('registries/quay_io.yaml')['pages']

        with mock.patch.object(quay, 'get_json', mock.AsyncMock(side_effect=pages)):
            winner = await resolver.resolve_latest(Options(pin_major=3), 'quay.io/calico/node')

        self.assertEqual('v3.14.0', winner.tag)


class CommandLineTest(TagResolverTest):

    def test_options_from_args(self):
        args = arg_parser.parse_args(['--pin-major', '1', '--match-regex', '^v', '--use-pre-release', 'nginx'])
        self.assertEqual(Options(use_pre_release=True, pin_major=1, regex_matcher='^v'), cli.options_from_args(args))

    async def test_resolve_images(self):
        dispatcher = registries.ClientDispatcher(
            [FakeClient(error=FetchError('localhost:5000/broken', 'unauthorized'))],
            default=FakeClient(self._tags('semver', 'pins')),
        )
        args = arg_parser.parse_args(['docker.io/org/app', 'localhost:5000/broken'])

        output = io.StringIO()
        with mock.patch.object(cli.registries, 'default_dispatcher', return_value=dispatcher), \
                contextlib.redirect_stdout(output):
            status = await cli.resolve_images(args)

        self.assertEqual(1, status)
        image, tag, sha, index = output.getvalue().split()
        self.assertEqual(('docker.io/org/app', '2.0.0', '-'), (image, tag, sha))
        self.assertEqual(fingerprint('docker.io/org/app', Options()), index)


if __name__ == '__main__':
    unittest.main()
