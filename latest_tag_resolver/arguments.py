import argparse
import os


DEFAULT_CACHE_TIMEOUT = float(os.environ.get('LATEST_TAG_RESOLVER_CACHE_TIMEOUT', 30 * 60))


arg_parser = argparse.ArgumentParser(prog='latest_tag_resolver',
                                     description='Resolve the latest tag of container images')
arg_parser.add_argument('image', nargs='+', help='Image URL to resolve, e.g. quay.io/org/software')

arg_parser.add_argument('--cache-timeout', help='Seconds a fetched tag list is considered fresh',
                        type=float, default=DEFAULT_CACHE_TIMEOUT)
arg_parser.add_argument('--timeout', help='Seconds to wait for a single registry fetch',
                        type=float, default=None)

arg_parser.add_argument('--use-sha', help='Pick the most recently pushed tag instead of the greatest version',
                        action='store_true')
arg_parser.add_argument('--use-pre-release', help='Allow pre-release versions', action='store_true')
arg_parser.add_argument('--pin-major', help='Only consider versions with this major', type=int)
arg_parser.add_argument('--pin-minor', help='Only consider versions with this minor', type=int)
arg_parser.add_argument('--pin-patch', help='Only consider versions with this patch', type=int)
arg_parser.add_argument('--match-regex', help='Only consider tags matching this regular expression')

arg_parser.add_argument('--docker-token-file', help='A file containing Docker Hub access token')
arg_parser.add_argument('--quay-token-file', help='A file containing Quay access token')
arg_parser.add_argument('--gcr-token-file', help='A file containing GCR access token')

arg_parser.add_argument('--log-level', help='Logging level', default='INFO',
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'])


__all__ = ['arg_parser']
