"""Helper functions for finding the container images in rendered manifests.

The walker only reports what exists in a single object. Filtering by kind or
registry and removing duplicates happen after the images of all objects have
been collected, so that the order of the manifest is preserved:

```python
from helm_images import image

records = image.get_images(content, registries=["quay.io"])
for img in image.unique_images(records):
    print(img)
```
"""

from collections.abc import Iterable
from dataclasses import dataclass
import logging

from mashumaro import DataClassDictMixin

from .manifest import WorkloadObject, parse_documents

__all__ = [
    "ImageRecord",
    "extract_images",
    "extract_image_records",
    "collect_images",
    "filter_registries",
    "unique_images",
    "get_images",
]

_LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class ImageRecord(DataClassDictMixin):
    """A container image along with the object that references it."""

    kind: str
    """The kind of the object using the image."""

    name: str | None
    """The name of the object using the image."""

    image: str
    """The container image reference."""


def extract_images(obj: WorkloadObject) -> list[str]:
    """Return the container images of an object in pod spec order.

    Objects without pod specs and containers without an image contribute
    nothing.
    """
    images: list[str] = []
    for pod_spec in obj.pod_specs:
        for container in pod_spec.all_containers():
            if container.image:
                images.append(container.image)
    return images


def extract_image_records(obj: WorkloadObject) -> list[ImageRecord]:
    """Return the container images of an object attributed to the object."""
    return [
        ImageRecord(kind=obj.kind, name=obj.name, image=image)
        for image in extract_images(obj)
    ]


def collect_images(
    objects: Iterable[WorkloadObject], kinds: list[str] | None = None
) -> list[ImageRecord]:
    """Return the images of all objects, in order.

    When `kinds` is set only objects of those kinds are considered.
    """
    records: list[ImageRecord] = []
    for obj in objects:
        if kinds and obj.kind not in kinds:
            continue
        records.extend(extract_image_records(obj))
    return records


def filter_registries(
    records: list[ImageRecord], registries: list[str] | None
) -> list[ImageRecord]:
    """Keep only the images that contain one of the registry strings."""
    if not registries:
        return records
    return [
        record
        for record in records
        if any(registry in record.image for registry in registries)
    ]


def unique_images(records: Iterable[ImageRecord]) -> list[str]:
    """Return the distinct images in the order they were first seen."""
    return list(dict.fromkeys(record.image for record in records))


def get_images(
    content: str,
    kinds: list[str] | None = None,
    registries: list[str] | None = None,
    continue_on_error: bool = False,
) -> list[ImageRecord]:
    """Return the images referenced by a rendered manifest."""
    objects = parse_documents(content, continue_on_error=continue_on_error)
    records = filter_registries(collect_images(objects, kinds=kinds), registries)
    _LOGGER.debug("Found %d images in %d objects", len(records), len(objects))
    return records
