"""Cluster locality policy.

A cluster is local when its nodes share the build host's image store, in
which case images never need to be pushed to a registry.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from local_imagegen.builds.models import LocalBuildConfig

logger = logging.getLogger(__name__)

DEFAULT_MINIKUBE_CONTEXT = "minikube"
DEFAULT_DOCKER_FOR_DESKTOP_CONTEXT = "docker-for-desktop"
DEFAULT_DOCKER_DESKTOP_CONTEXT = "docker-desktop"
DEFAULT_LOCAL_DEV_CONTEXT = "local-dev"

LOCAL_CONTEXTS: frozenset[str] = frozenset(
    {
        DEFAULT_MINIKUBE_CONTEXT,
        DEFAULT_DOCKER_FOR_DESKTOP_CONTEXT,
        DEFAULT_DOCKER_DESKTOP_CONTEXT,
        DEFAULT_LOCAL_DEV_CONTEXT,
    }
)


def is_local_cluster(context: str, extra_contexts: Iterable[str] = ()) -> bool:
    """Return True if the context shares the build host's image store.

    Unknown contexts are treated as remote.

    Args:
        context: Cluster context name.
        extra_contexts: Additional context names to treat as local.

    Returns:
        True for known local contexts.
    """
    return context in LOCAL_CONTEXTS or context in set(extra_contexts)


def resolve_skip_push(config: LocalBuildConfig, local_cluster: bool) -> bool:
    """Return the effective push-skip flag for a build config.

    An explicit ``skip_push`` always wins; otherwise pushing is skipped
    exactly when the cluster is local. The config is not modified.

    Args:
        config: Build config.
        local_cluster: Resolved cluster locality.

    Returns:
        Effective skip_push value.
    """
    if config.skip_push is not None:
        return config.skip_push
    logger.debug(
        "skip_push value not present, defaulting to cluster default %s "
        "(minikube=true, docker-desktop=true, other=false)",
        local_cluster,
    )
    return local_cluster


__all__ = [
    "LOCAL_CONTEXTS",
    "is_local_cluster",
    "resolve_skip_push",
]
