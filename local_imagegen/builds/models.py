"""Build configuration models."""

from pydantic import BaseModel, ConfigDict, Field


class LocalBuildConfig(BaseModel):
    """Process-scoped settings for a local build run.

    Attributes:
        cluster_context: Name of the target cluster context.
        skip_push: Skip pushing built images. When None, the builder derives
            the value from cluster locality without changing this object.
    """

    model_config = ConfigDict(frozen=True)

    cluster_context: str = Field(min_length=1)
    skip_push: bool | None = Field(default=None)


__all__ = ["LocalBuildConfig"]
