"""Build orchestration module.

This module handles:
- Cluster locality and push policy
- Backend dispatch (Docker daemon, Bazel)
- Digest-based tagging
- The sequential build coordinator
"""

from local_imagegen.builds.models import LocalBuildConfig

__all__ = ["LocalBuildConfig"]

# Lazy imports for submodules to avoid circular imports
# Access via local_imagegen.builds.service, etc.
