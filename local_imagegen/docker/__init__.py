"""Backend client module.

This module handles:
- The BackendClient protocol used by build strategies and the coordinator
- A Docker daemon implementation on top of the docker SDK
"""

from local_imagegen.docker.client import BackendClient, DockerBackendClient

__all__ = ["BackendClient", "DockerBackendClient"]
