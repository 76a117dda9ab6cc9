"""Daemon-build strategy.

Builds a Dockerfile with the Docker daemon under a random placeholder tag.
The placeholder is not content-addressed; the coordinator retags the image
by digest afterwards.
"""

from __future__ import annotations

import logging
import uuid
from typing import TYPE_CHECKING, TextIO

from local_imagegen.errors import ImageGenError

if TYPE_CHECKING:
    from local_imagegen.artifacts.schema import DockerArtifact
    from local_imagegen.cancel import CancelToken
    from local_imagegen.docker.client import BackendClient

logger = logging.getLogger(__name__)


def random_id() -> str:
    """Return a fresh collision-resistant identifier usable as an image name."""
    return uuid.uuid4().hex


def build_docker(
    client: BackendClient,
    out: TextIO,
    workspace: str,
    artifact: DockerArtifact,
    token: CancelToken,
) -> str:
    """Build a Docker artifact and return its initial tag.

    Args:
        client: Backend client.
        out: Output sink for build progress.
        workspace: Build context directory.
        artifact: Docker build payload.
        token: Cancel token.

    Returns:
        Initial tag of the form ``<random id>:latest``.

    Raises:
        ImageGenError: If the build fails.
    """
    initial_tag = random_id()
    logger.debug("Docker build placeholder tag: %s", initial_tag)

    try:
        client.build(
            workspace=workspace,
            dockerfile=artifact.dockerfile_path,
            tag=initial_tag,
            build_args=artifact.build_args,
            cache_from=artifact.cache_from,
            out=out,
            token=token,
        )
    except ImageGenError as e:
        raise e.with_context("running build") from e

    return f"{initial_tag}:latest"


__all__ = ["build_docker", "random_id"]
