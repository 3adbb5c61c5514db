"""Exceptions related to helm-images."""

__all__ = [
    "HelmImagesException",
    "InputException",
    "ManifestDecodeError",
    "CommandException",
    "HelmException",
]


class HelmImagesException(Exception):
    """Generic base exception used for this library."""


class InputException(HelmImagesException):
    """Raised when the input manifests are not formatted as expected."""


class ManifestDecodeError(InputException):
    """Raised when a single document of a rendered manifest can't be decoded."""

    def __init__(self, index: int, message: str) -> None:
        super().__init__(f"Unable to decode document {index}: {message}")
        self.index = index
        self.message = message


class CommandException(HelmImagesException):
    """Raised when there is a failure running a subcommand."""


class HelmException(CommandException):
    """Raised when there is a failure running a helm command."""
