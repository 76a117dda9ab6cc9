"""Local Image Generator - content-addressed container image builds.

This package drives artifact builds through a local build backend (Docker
daemon or Bazel), retags the results by content digest, and publishes them
when the target cluster does not share the build host's image store.
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
