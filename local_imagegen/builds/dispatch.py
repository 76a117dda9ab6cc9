"""Backend dispatch.

Selects exactly one build strategy for an artifact based on its build kind.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, TextIO

from local_imagegen.artifacts.schema import BazelArtifact, DockerArtifact
from local_imagegen.builds.bazel_build import build_bazel
from local_imagegen.builds.docker_build import build_docker
from local_imagegen.errors import ConfigurationError

if TYPE_CHECKING:
    from local_imagegen.artifacts.schema import ArtifactSpec
    from local_imagegen.cancel import CancelToken
    from local_imagegen.docker.client import BackendClient


def run_build_for_artifact(
    client: BackendClient,
    out: TextIO,
    artifact: ArtifactSpec,
    token: CancelToken,
    bazel_binary: str = "bazel",
) -> str:
    """Build one artifact with its backend and return the initial tag.

    Args:
        client: Backend client.
        out: Output sink.
        artifact: Artifact to build.
        token: Cancel token.
        bazel_binary: Bazel executable for hermetic builds.

    Returns:
        The strategy's initial tag, unchanged.

    Raises:
        ConfigurationError: If the artifact declares no known build kind.
        ImageGenError: If the selected strategy fails.
    """
    match artifact.build:
        case DockerArtifact() as docker_artifact:
            return build_docker(client, out, artifact.workspace, docker_artifact, token)
        case BazelArtifact() as bazel_artifact:
            return build_bazel(
                client,
                out,
                artifact.workspace,
                bazel_artifact,
                token,
                bazel_binary=bazel_binary,
            )
        case None:
            raise ConfigurationError(
                f"undefined artifact type for [{artifact.image_name}]: "
                "no build kind declared",
                image_name=artifact.image_name,
            )
        case other:
            raise ConfigurationError(
                f"undefined artifact type for [{artifact.image_name}]: "
                f"{type(other).__name__}",
                image_name=artifact.image_name,
            )


__all__ = ["run_build_for_artifact"]
