"""Command line tool for listing the container images of helm charts and releases."""

import argparse
import asyncio
import logging
import sys
import traceback

from helm_images.exceptions import HelmImagesException
from . import get, version

_LOGGER = logging.getLogger(__name__)


def _make_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Command line utility for listing the images of a helm chart or release.",
    )
    parser.add_argument(
        "--log-level", choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
    )

    subparsers = parser.add_subparsers(dest="command", help="Command", required=True)

    get.GetAction.register(subparsers)
    version.VersionAction.register(subparsers)
    return parser


def main() -> None:
    """helm-images command line tool main entry point."""
    parser = _make_parser()
    args = parser.parse_args()

    if args.log_level:
        logging.basicConfig(level=args.log_level)

    action = args.cls()
    try:
        asyncio.run(action.run(**vars(args)))
    except HelmImagesException as err:
        if args.log_level == "DEBUG":
            traceback.print_exc(file=sys.stderr)
        print("helm-images error: ", err, file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
