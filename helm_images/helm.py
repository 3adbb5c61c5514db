"""Library for running helm to produce the rendered manifests of a chart.

A chart is rendered locally with `helm template`, the same way it would be
installed:
```python
from helm_images.helm import Helm, Options

helm = Helm()
content = await helm.template(
    "prometheus", "prometheus-community/prometheus", Options(namespace="monitoring")
)
```

The manifest of a release that is already installed is fetched from the
cluster with `helm get manifest`:
```python
content = await helm.release_manifest("prometheus", Options(namespace="monitoring"))
```
"""

from dataclasses import dataclass, field
import logging
import os

from . import command
from .exceptions import HelmException

__all__ = [
    "Helm",
    "Options",
]

_LOGGER = logging.getLogger(__name__)


HELM_BIN = "helm"

# Set by helm when running a plugin
HELM_BIN_ENV = "HELM_BIN"
HELM_NAMESPACE_ENV = "HELM_NAMESPACE"


@dataclass
class Options:
    """Options to use when rendering a chart or fetching a release.

    Internally, these translate into helm command line flags.
    """

    namespace: str | None = None
    """Value of the helm --namespace flag, defaults to $HELM_NAMESPACE."""

    values_files: list[str] = field(default_factory=list)
    """Values files passed with the helm --values flag."""

    set_values: list[str] = field(default_factory=list)
    """Values passed with the helm --set flag."""

    set_string_values: list[str] = field(default_factory=list)
    """Values passed with the helm --set-string flag."""

    set_file_values: list[str] = field(default_factory=list)
    """Values passed with the helm --set-file flag."""

    version: str | None = None
    """Value of the helm --version flag, the chart version to render."""

    kube_version: str | None = None
    """Value of the helm --kube-version flag."""

    api_versions: list[str] = field(default_factory=list)
    """Values of the helm --api-versions flag."""

    skip_tests: bool = False
    """Don't render chart tests in the output."""

    skip_crds: bool = True
    """Don't render the chart CRDs in the output."""

    revision: int | None = None
    """Release revision to fetch, defaults to the latest."""

    timeout: float = command.DEFAULT_TIMEOUT
    """Seconds to wait for helm to finish."""

    @property
    def namespace_args(self) -> list[str]:
        """Helm namespace CLI arguments."""
        if namespace := self.namespace or os.environ.get(HELM_NAMESPACE_ENV):
            return ["--namespace", namespace]
        return []

    @property
    def template_args(self) -> list[str]:
        """Helm template CLI arguments built from the options."""
        args = self.namespace_args
        for values_file in self.values_files:
            args.extend(["--values", values_file])
        for value in self.set_values:
            args.extend(["--set", value])
        for value in self.set_string_values:
            args.extend(["--set-string", value])
        for value in self.set_file_values:
            args.extend(["--set-file", value])
        if self.version:
            args.extend(["--version", self.version])
        if self.kube_version:
            args.extend(["--kube-version", self.kube_version])
        for api_version in self.api_versions:
            args.extend(["--api-versions", api_version])
        if self.skip_tests:
            args.append("--skip-tests")
        if not self.skip_crds:
            args.append("--include-crds")
        return args

    @property
    def manifest_args(self) -> list[str]:
        """Helm get manifest CLI arguments built from the options."""
        args = self.namespace_args
        if self.revision is not None:
            args.extend(["--revision", str(self.revision)])
        return args


class Helm:
    """Runs helm commands that produce rendered manifests."""

    def __init__(self, helm_bin: str | None = None) -> None:
        """Initialize Helm, using $HELM_BIN when no binary is given."""
        self._helm_bin = helm_bin or os.environ.get(HELM_BIN_ENV) or HELM_BIN

    async def template(
        self,
        release_name: str,
        chart: str,
        options: Options | None = None,
    ) -> str:
        """Render the chart locally as the named release and return the output."""
        if options is None:
            options = Options()
        args = [self._helm_bin, "template", release_name, chart]
        args.extend(options.template_args)
        _LOGGER.debug("Rendering chart %s as release %s", chart, release_name)
        return await command.run(
            command.Command(args, exc=HelmException, timeout=options.timeout)
        )

    async def release_manifest(
        self,
        release_name: str,
        options: Options | None = None,
    ) -> str:
        """Return the manifest of an installed release."""
        if options is None:
            options = Options()
        args = [self._helm_bin, "get", "manifest", release_name]
        args.extend(options.manifest_args)
        _LOGGER.debug("Fetching manifest of release %s", release_name)
        return await command.run(
            command.Command(args, exc=HelmException, timeout=options.timeout)
        )
