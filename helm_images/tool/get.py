"""helm-images get action."""

import logging
from argparse import (
    ArgumentParser,
    BooleanOptionalAction,
    _SubParsersAction as SubParsersAction,
)
from typing import cast, Any

from helm_images import helm, image
from helm_images.exceptions import InputException

from .format import (
    Formatter,
    JsonFormatter,
    ListFormatter,
    TableFormatter,
    YamlFormatter,
)


_LOGGER = logging.getLogger(__name__)

OUTPUT_FORMATS = ["list", "table", "json", "yaml"]


def _formatter(output: str, unique: bool) -> Formatter:
    """Return the formatter for the output flag."""
    if output == "table":
        return TableFormatter(["image"] if unique else ["kind", "name", "image"])
    if output == "json":
        return JsonFormatter()
    if output == "yaml":
        return YamlFormatter()
    return ListFormatter()


def _output_content(
    output: str, unique: bool, records: list[image.ImageRecord]
) -> Any:
    """Return the content to hand to the formatter for the output flag."""
    if unique:
        images = image.unique_images(records)
        if output == "table":
            return [{"image": img} for img in images]
        return images
    if output == "list":
        return [record.image for record in records]
    return [record.to_dict() for record in records]


class GetAction:
    """Get the images of a chart or release."""

    @classmethod
    def register(
        cls, subparsers: SubParsersAction  # type: ignore[type-arg]
    ) -> ArgumentParser:
        """Register the subparser commands."""
        args = cast(
            ArgumentParser,
            subparsers.add_parser(
                "get",
                help="Fetch all images that are part of a chart or release",
                description=(
                    "Lists all images that are part of the chart or release and "
                    "match the registry filters."
                ),
            ),
        )
        args.add_argument("name", help="Release name")
        args.add_argument(
            "chart",
            nargs="?",
            help="Chart to render, not used with --from-release",
        )
        args.add_argument(
            "--from-release",
            default=False,
            action=BooleanOptionalAction,
            help="Fetch the manifest of the installed release instead of rendering a chart",
        )
        args.add_argument(
            "--revision",
            type=int,
            default=None,
            help="Revision of the release to fetch with --from-release",
        )
        args.add_argument(
            "--namespace",
            "-n",
            default=None,
            help="Namespace of the release",
        )
        args.add_argument(
            "--values",
            "-f",
            dest="values_files",
            action="append",
            default=[],
            help="Values files used to render the chart",
        )
        args.add_argument(
            "--set",
            dest="set_values",
            action="append",
            default=[],
            help="Set values on the command line, e.g. key1=val1",
        )
        args.add_argument(
            "--set-string",
            dest="set_string_values",
            action="append",
            default=[],
            help="Set string values on the command line, e.g. key1=val1",
        )
        args.add_argument(
            "--set-file",
            dest="set_file_values",
            action="append",
            default=[],
            help="Set values from files on the command line, e.g. key1=path1",
        )
        args.add_argument(
            "--version",
            dest="chart_version",
            default=None,
            help="Version of the chart to render",
        )
        args.add_argument(
            "--kube-version",
            default=None,
            help="Kubernetes version used for Capabilities.KubeVersion",
        )
        args.add_argument(
            "--api-versions",
            action="append",
            default=[],
            help="Kubernetes api versions used for Capabilities.APIVersions",
        )
        args.add_argument(
            "--skip-tests",
            default=False,
            action=BooleanOptionalAction,
            help="Skip chart tests when rendering",
        )
        args.add_argument(
            "--include-crds",
            default=False,
            action=BooleanOptionalAction,
            help="Include the chart CRDs when rendering",
        )
        args.add_argument(
            "--timeout",
            type=float,
            default=None,
            help="Seconds to wait for helm",
        )
        args.add_argument(
            "--registry",
            dest="registries",
            action="append",
            default=[],
            help="Only list images from registries containing this value",
        )
        args.add_argument(
            "--kind",
            dest="kinds",
            action="append",
            default=[],
            help="Only list images from objects of this kind",
        )
        args.add_argument(
            "--unique",
            default=False,
            action=BooleanOptionalAction,
            help="List each image only once",
        )
        args.add_argument(
            "--continue-on-error",
            default=False,
            action=BooleanOptionalAction,
            help="Skip documents of the manifest that can't be decoded",
        )
        args.add_argument(
            "--output",
            "-o",
            choices=OUTPUT_FORMATS,
            default="list",
            help="Output format of the command",
        )
        args.add_argument(
            "--output-file",
            type=str,
            default="/dev/stdout",
            help="Output file for the results of the command",
        )
        args.set_defaults(cls=cls)
        return args

    async def run(  # type: ignore[no-untyped-def]
        self,
        name: str,
        chart: str | None,
        from_release: bool,
        revision: int | None,
        namespace: str | None,
        values_files: list[str],
        set_values: list[str],
        set_string_values: list[str],
        set_file_values: list[str],
        chart_version: str | None,
        kube_version: str | None,
        api_versions: list[str],
        skip_tests: bool,
        include_crds: bool,
        timeout: float | None,
        registries: list[str],
        kinds: list[str],
        unique: bool,
        continue_on_error: bool,
        output: str,
        output_file: str,
        **kwargs,  # pylint: disable=unused-argument
    ) -> None:
        """Async Action implementation."""
        options = helm.Options(
            namespace=namespace,
            values_files=values_files,
            set_values=set_values,
            set_string_values=set_string_values,
            set_file_values=set_file_values,
            version=chart_version,
            kube_version=kube_version,
            api_versions=api_versions,
            skip_tests=skip_tests,
            skip_crds=not include_crds,
            revision=revision,
        )
        if timeout is not None:
            options.timeout = timeout

        client = helm.Helm()
        if from_release:
            if chart:
                raise InputException(
                    f"Unexpected chart '{chart}' with --from-release, specify only the release name"
                )
            content = await client.release_manifest(name, options)
        else:
            if not chart:
                raise InputException(
                    "Missing chart to render, specify a chart or use --from-release"
                )
            content = await client.template(name, chart, options)

        records = image.get_images(
            content,
            kinds=kinds,
            registries=registries,
            continue_on_error=continue_on_error,
        )
        _LOGGER.info("Found %d images", len(records))

        formatter = _formatter(output, unique)
        with open(output_file, "w") as file:
            formatter.print(_output_content(output, unique, records), file=file)
