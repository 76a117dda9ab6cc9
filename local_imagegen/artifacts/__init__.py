"""Artifact specification module.

This module handles:
- Pydantic schema for artifacts and build files
- Loading build files from YAML/JSON
"""

from local_imagegen.artifacts.schema import (
    ArtifactSpec,
    BazelArtifact,
    BuildFileSchema,
    DockerArtifact,
)

__all__ = ["ArtifactSpec", "BazelArtifact", "BuildFileSchema", "DockerArtifact"]
