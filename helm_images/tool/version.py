"""helm-images version action."""

from argparse import (
    ArgumentParser,
    _SubParsersAction as SubParsersAction,
)
from importlib.metadata import version, PackageNotFoundError
import json
import platform
from typing import cast

PACKAGE_NAME = "helm-images"


def build_info() -> dict[str, str]:
    """Return the version details of the installed tool."""
    try:
        package_version = version(PACKAGE_NAME)
    except PackageNotFoundError:
        package_version = "unknown"
    return {
        "version": package_version,
        "python_version": platform.python_version(),
        "platform": platform.platform(),
    }


class VersionAction:
    """Print the installed version of helm-images."""

    @classmethod
    def register(
        cls, subparsers: SubParsersAction  # type: ignore[type-arg]
    ) -> ArgumentParser:
        """Register the subparser commands."""
        args = cast(
            ArgumentParser,
            subparsers.add_parser(
                "version",
                help="Print the version of helm-images",
                description="Print the version of the installed helm-images tool",
            ),
        )
        args.set_defaults(cls=cls)
        return args

    async def run(  # type: ignore[no-untyped-def]
        self,
        **kwargs,  # pylint: disable=unused-argument
    ) -> None:
        """Async Action implementation."""
        print(f"helm-images version: {json.dumps(build_info())}")
