"""Error definitions for local_imagegen.

Every error carries a stable ``code`` for programmatic handling and,
where known, the image name of the artifact being processed. Stages
re-raise errors with a phrase naming the stage so the final message
reads like a trail, e.g. ``building [app]: running build: ...``.
"""

from __future__ import annotations

from typing import TypeVar

_E = TypeVar("_E", bound="ImageGenError")

# Error code constants
CLIENT_INIT_ERROR = "client_init"
CONFIGURATION_ERROR = "configuration"
BACKEND_ERROR = "backend"
REGISTRY_ERROR = "registry"
TAGGING_ERROR = "tagging"
OUTPUT_WRITE_ERROR = "output_write"
CANCELLED_ERROR = "cancelled"


class ImageGenError(Exception):
    """Base error for build pipeline operations."""

    default_code = "imagegen_error"

    def __init__(
        self,
        message: str,
        image_name: str | None = None,
        code: str | None = None,
    ) -> None:
        super().__init__(message)
        self.image_name = image_name
        self.code = code or self.default_code

    def with_context(self: _E, phrase: str, image_name: str | None = None) -> _E:
        """Return a copy of this error prefixed with a stage phrase.

        The copy keeps the concrete error class and code so callers can
        still match on the failure kind.
        """
        return self.__class__(
            f"{phrase}: {self}",
            image_name=image_name or self.image_name,
            code=self.code,
        )


class ClientInitError(ImageGenError):
    """Raised when the backend client cannot be constructed."""

    default_code = CLIENT_INIT_ERROR


class ConfigurationError(ImageGenError):
    """Raised when an artifact or build file is invalid."""

    default_code = CONFIGURATION_ERROR


class BackendError(ImageGenError):
    """Raised when a build strategy fails to produce an image."""

    default_code = BACKEND_ERROR


class RegistryError(ImageGenError):
    """Raised when a digest lookup or push fails."""

    default_code = REGISTRY_ERROR


class TaggingError(ImageGenError):
    """Raised when tag generation or tag application fails."""

    default_code = TAGGING_ERROR


class OutputWriteError(ImageGenError):
    """Raised when writing progress to the output sink fails."""

    default_code = OUTPUT_WRITE_ERROR


class BuildCancelledError(ImageGenError):
    """Raised when a build run is cancelled or exceeds its deadline."""

    default_code = CANCELLED_ERROR


__all__ = [
    "BACKEND_ERROR",
    "CANCELLED_ERROR",
    "CLIENT_INIT_ERROR",
    "CONFIGURATION_ERROR",
    "OUTPUT_WRITE_ERROR",
    "REGISTRY_ERROR",
    "TAGGING_ERROR",
    "BackendError",
    "BuildCancelledError",
    "ClientInitError",
    "ConfigurationError",
    "ImageGenError",
    "OutputWriteError",
    "RegistryError",
    "TaggingError",
]
