"""Library for reading the rendered manifests of a helm chart or release.

The output of `helm template` or `helm get manifest` is a single stream of yaml
documents. This library splits the stream into documents and decodes each one
into a `WorkloadObject` that exposes the pod specs of the object:

```python
from helm_images import manifest

for obj in manifest.parse_documents(content):
    for pod_spec in obj.pod_specs:
        print(obj.kind, obj.name, pod_spec.containers)
```
"""

from collections.abc import Generator
from dataclasses import dataclass, field
import io
import logging
from typing import Any

from mashumaro import DataClassDictMixin, field_options
from mashumaro.exceptions import InvalidFieldValue, MissingField
import yaml

from .exceptions import InputException, ManifestDecodeError

__all__ = [
    "split_documents",
    "parse_document",
    "parse_documents",
    "WorkloadObject",
    "PodSpec",
    "Container",
]

_LOGGER = logging.getLogger(__name__)


DOCUMENT_SEPARATOR = "---"

# Location of the pod spec for objects managed with a pod template
POD_TEMPLATE_SPEC = ("spec", "template", "spec")

# Paths within each object kind that hold a pod spec. Kinds that are not
# listed here do not run containers and have no paths.
POD_SPEC_PATHS: dict[str, tuple[tuple[str, ...], ...]] = {
    "Pod": (("spec",),),
    "Deployment": (POD_TEMPLATE_SPEC,),
    "DaemonSet": (POD_TEMPLATE_SPEC,),
    "StatefulSet": (POD_TEMPLATE_SPEC,),
    "ReplicaSet": (POD_TEMPLATE_SPEC,),
    "ReplicationController": (POD_TEMPLATE_SPEC,),
    "Job": (POD_TEMPLATE_SPEC,),
    "CronJob": (("spec", "jobTemplate") + POD_TEMPLATE_SPEC,),
}

# Keys of a pod spec that hold containers, in the order they are started
CONTAINER_KEYS = ("initContainers", "containers", "ephemeralContainers")


def _is_separator(line: str) -> bool:
    """Return True if the line is a yaml document separator.

    Separators start at the first column, so an indented `---` within a block
    scalar is never a separator. Trailing content such as `--- # comment` is
    not accepted either.
    """
    return line.rstrip() == DOCUMENT_SEPARATOR


def split_documents(content: str) -> list[str]:
    """Split a multi-document yaml stream into the individual documents.

    Each document is returned exactly as it appears in the stream, without the
    separator line. Blank documents are dropped. Lines end only at "\n", so
    other unicode line breaks within a scalar never start a separator line.
    """
    documents: list[str] = []
    buffer: list[str] = []

    def flush() -> None:
        document = "".join(buffer)
        buffer.clear()
        if document.strip():
            documents.append(document)

    for line in io.StringIO(content, newline="\n"):
        if _is_separator(line):
            flush()
            continue
        buffer.append(line)
    flush()
    return documents


@dataclass
class Container(DataClassDictMixin):
    """A container entry within a pod spec."""

    name: str | None = None
    """The name of the container."""

    image: str | None = None
    """The container image reference, not validated."""


@dataclass
class PodSpec(DataClassDictMixin):
    """The container collections of a pod spec.

    Each collection is `None` when absent from the object, which is distinct
    from a collection that is present but empty.
    """

    init_containers: list[Container] | None = field(
        metadata=field_options(alias="initContainers"), default=None
    )
    """Containers run to completion before the regular containers start."""

    containers: list[Container] | None = None
    """The regular containers of the pod."""

    ephemeral_containers: list[Container] | None = field(
        metadata=field_options(alias="ephemeralContainers"), default=None
    )
    """Containers added to a running pod, e.g. for debugging."""

    def all_containers(self) -> Generator[Container, None, None]:
        """Return init containers, containers then ephemeral containers."""
        for collection in (
            self.init_containers,
            self.containers,
            self.ephemeral_containers,
        ):
            if collection is None:
                continue
            yield from collection


def _lookup(doc: dict[str, Any], path: tuple[str, ...]) -> dict[str, Any] | None:
    """Return the mapping at the path within the document, if present."""
    value: Any = doc
    for key in path:
        if not isinstance(value, dict):
            return None
        value = value.get(key)
    if not isinstance(value, dict):
        return None
    return value


def _check_images(doc: dict[str, Any]) -> None:
    """Assert that every container image in the pod spec mapping is a string."""
    for key in CONTAINER_KEYS:
        if not isinstance(containers := doc.get(key), list):
            continue
        for container in containers:
            if not isinstance(container, dict):
                continue
            if (image := container.get("image")) is not None and not isinstance(
                image, str
            ):
                raise InputException(
                    f"Expected string for container image, got type "
                    f"{type(image).__name__}: {image}"
                )


def _optional_str(value: Any) -> str | None:
    """Return a scalar metadata value such as `name: 123` as a string."""
    if value is None:
        return None
    return str(value)


def _parse_pod_spec(doc: dict[str, Any]) -> PodSpec:
    """Parse a PodSpec from the pod spec mapping of an object."""
    _check_images(doc)
    try:
        return PodSpec.from_dict(doc)
    except (InvalidFieldValue, MissingField, AttributeError, TypeError) as err:
        raise InputException(f"Invalid pod spec: {err}") from err


@dataclass
class WorkloadObject:
    """A kubernetes object decoded down to the fields that carry images."""

    kind: str
    """The kind of the object e.g. Deployment."""

    name: str | None
    """The name of the object from its metadata."""

    namespace: str | None = None
    """The namespace of the object, if set in the rendered output."""

    pod_specs: list[PodSpec] = field(default_factory=list)
    """Pod specs found at the locations known for the kind."""

    @classmethod
    def parse_doc(cls, doc: dict[str, Any]) -> "WorkloadObject":
        """Parse a WorkloadObject from a raw kubernetes object."""
        if not isinstance(kind := doc.get("kind"), str) or not kind:
            raise InputException(f"Invalid object missing kind: {doc}")
        if not isinstance(metadata := doc.get("metadata") or {}, dict):
            raise InputException(f"Invalid object metadata: {doc}")
        pod_specs = []
        for path in POD_SPEC_PATHS.get(kind, ()):
            if (spec := _lookup(doc, path)) is not None:
                pod_specs.append(_parse_pod_spec(spec))
        return cls(
            kind=kind,
            name=_optional_str(metadata.get("name")),
            namespace=_optional_str(metadata.get("namespace")),
            pod_specs=pod_specs,
        )


def parse_document(content: str, index: int = 0) -> WorkloadObject | None:
    """Decode a single document into a WorkloadObject.

    Returns None for a document with no content, such as a template that only
    rendered a `# Source` comment.
    """
    try:
        doc = yaml.safe_load(content)
    except yaml.YAMLError as err:
        raise ManifestDecodeError(index, str(err)) from err
    if doc is None:
        return None
    if not isinstance(doc, dict):
        raise ManifestDecodeError(
            index, f"Expected a mapping, got type {type(doc).__name__}"
        )
    try:
        return WorkloadObject.parse_doc(doc)
    except InputException as err:
        raise ManifestDecodeError(index, str(err)) from err


def parse_documents(
    content: str, continue_on_error: bool = False
) -> list[WorkloadObject]:
    """Split and decode all documents of a rendered manifest, in order.

    When `continue_on_error` is set, documents that fail to decode are logged
    and skipped instead of failing the whole manifest.
    """
    documents = split_documents(content)
    _LOGGER.debug("Found %d documents in manifest", len(documents))
    objects: list[WorkloadObject] = []
    for index, document in enumerate(documents):
        try:
            obj = parse_document(document, index)
        except ManifestDecodeError as err:
            if not continue_on_error:
                raise
            _LOGGER.warning("Skipping document: %s", err)
            continue
        if obj is not None:
            objects.append(obj)
    return objects
