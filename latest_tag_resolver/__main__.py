import asyncio
import logging
import sys

import latest_tag_resolver.arguments
from latest_tag_resolver import registries
from latest_tag_resolver.errors import ResolutionError
from latest_tag_resolver.options import Options, fingerprint
from latest_tag_resolver.resolver import LatestTagResolver


logger = logging.getLogger('latest_tag_resolver')


def options_from_args(args) -> Options:
    return Options(
        use_sha=args.use_sha,
        use_pre_release=args.use_pre_release,
        pin_major=args.pin_major,
        pin_minor=args.pin_minor,
        pin_patch=args.pin_patch,
        regex_matcher=args.match_regex,
    )


async def resolve_images(args) -> int:
    """Resolve every image concurrently, print results and return exit status."""
    options = options_from_args(args)
    dispatcher = registries.default_dispatcher(
        {
            'docker.io': args.docker_token_file,
            'quay.io': args.quay_token_file,
            'gcr.io': args.gcr_token_file,
        }
    )

    async with LatestTagResolver(args.cache_timeout, dispatcher=dispatcher) as resolver:
        results = await asyncio.gather(
            *(resolver.resolve_latest(options, image, timeout=args.timeout) for image in args.image),
            return_exceptions=True,
        )

    status = 0
    for image, result in zip(args.image, results):
        if isinstance(result, ResolutionError):
            logger.error('Can not resolve %s: %s', image, result)
            status = 1
        elif isinstance(result, BaseException):
            raise result
        else:
            print(image, result.tag, result.sha or '-', fingerprint(image, options))
    return status


def main():
    args = latest_tag_resolver.arguments.arg_parser.parse_args()
    logging.basicConfig(level=getattr(logging, args.log_level))
    sys.exit(asyncio.run(resolve_images(args)))


if __name__ == '__main__':
    main()
