"""Shared type definitions for local_imagegen.

This module contains dataclasses and enums shared across subpackages
to avoid circular imports.
"""

from dataclasses import dataclass
from enum import Enum


class ArtifactBuildState(str, Enum):
    """Lifecycle state of a single artifact within a build run."""

    PENDING = "pending"
    BUILT = "built"
    DIGESTED = "digested"
    TAGGED = "tagged"
    PUSHED = "pushed"
    SKIPPED = "skipped"
    COMPLETE = "complete"
    FAILED = "failed"


@dataclass(frozen=True)
class TagOptions:
    """Inputs handed to a tagger.

    Attributes:
        image_name: Image name from the artifact spec.
        digest: Content digest of the built image (e.g. 'sha256:...').
    """

    image_name: str
    digest: str


@dataclass(frozen=True)
class BuildResult:
    """A completed artifact build.

    Attributes:
        image_name: Image name from the artifact spec.
        tag: Final fully-qualified tag applied to the image.
    """

    image_name: str
    tag: str

    def to_dict(self) -> dict[str, str]:
        """Convert to dictionary for JSON serialization."""
        return {"image_name": self.image_name, "tag": self.tag}


__all__ = [
    "ArtifactBuildState",
    "BuildResult",
    "TagOptions",
]
