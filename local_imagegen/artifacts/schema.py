"""Pydantic models for artifact and build file validation.

An artifact's build kind is a tagged union discriminated on ``kind``. In
build files the payload is written under a ``docker:`` or ``bazel:`` key,
e.g.::

    artifacts:
      - image_name: app
        docker:
          dockerfile_path: Dockerfile
      - image_name: worker
        workspace: worker
        bazel:
          build_target: //:worker.tar
"""

from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

BUILD_KIND_KEYS = ("docker", "bazel")


class DockerArtifact(BaseModel):
    """Build an image with the Docker daemon from a Dockerfile.

    Attributes:
        dockerfile_path: Dockerfile location relative to the workspace.
        build_args: Build-time variables; a None value passes the variable
            through from the daemon's environment.
        cache_from: Images used as cache sources, in order.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    kind: Literal["docker"] = "docker"
    dockerfile_path: str = Field(default="Dockerfile", min_length=1)
    build_args: dict[str, str | None] = Field(default_factory=dict)
    cache_from: list[str] = Field(default_factory=list)


class BazelArtifact(BaseModel):
    """Build an image tarball with Bazel and load it into the daemon.

    Attributes:
        build_target: Bazel target producing an image tarball (e.g. //:app.tar).
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    kind: Literal["bazel"] = "bazel"
    build_target: str = Field(min_length=1)

    @field_validator("build_target")
    @classmethod
    def validate_build_target(cls, v: str) -> str:
        """Validate the target names a tarball."""
        if not v.endswith(".tar"):
            raise ValueError(f"build_target must produce a .tar image, got '{v}'")
        return v


BuildKind = Annotated[DockerArtifact | BazelArtifact, Field(discriminator="kind")]


class ArtifactSpec(BaseModel):
    """One buildable image specification.

    Attributes:
        image_name: Name of the image to produce.
        workspace: Build context directory.
        build: Build-kind payload. None is representable so that dispatch
            can reject an artifact that declares no build kind.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    image_name: str = Field(min_length=1)
    workspace: str = Field(default=".")
    build: BuildKind | None = None

    @model_validator(mode="before")
    @classmethod
    def collect_build_kind(cls, data: Any) -> Any:
        """Fold a ``docker:``/``bazel:`` key into the ``build`` union."""
        if not isinstance(data, dict):
            return data
        present = [key for key in BUILD_KIND_KEYS if key in data]
        if not present:
            return data
        if len(present) > 1 or "build" in data:
            raise ValueError(
                f"artifact must declare exactly one build kind, got {present}"
            )
        data = dict(data)
        kind = present[0]
        payload = data.pop(kind)
        if isinstance(payload, BaseModel):
            data["build"] = payload
        elif payload is None or isinstance(payload, dict):
            data["build"] = {**(payload or {}), "kind": kind}
        else:
            raise ValueError(
                f"{kind} must be a mapping, got {type(payload).__name__}"
            )
        return data


class LocalBuildSchema(BaseModel):
    """Schema for the ``local:`` section of a build file."""

    model_config = ConfigDict(extra="forbid")

    skip_push: bool | None = Field(default=None)


class TagPolicySchema(BaseModel):
    """Schema for the ``tag_policy:`` section of a build file."""

    model_config = ConfigDict(extra="forbid")

    name: Literal["sha256", "envTemplate", "dateTime"] = "sha256"
    template: str | None = Field(default=None)


class BuildFileSchema(BaseModel):
    """Complete build file schema.

    Attributes:
        artifacts: Artifacts to build, in order.
        local: Local builder options.
        tag_policy: Optional tag policy override.
    """

    model_config = ConfigDict(extra="forbid")

    artifacts: list[ArtifactSpec] = Field(min_length=1)
    local: LocalBuildSchema = Field(default_factory=LocalBuildSchema)
    tag_policy: TagPolicySchema | None = Field(default=None)

    @model_validator(mode="after")
    def validate_build_kinds(self) -> "BuildFileSchema":
        """Every artifact in a build file must declare a build kind."""
        missing = [a.image_name for a in self.artifacts if a.build is None]
        if missing:
            raise ValueError(f"artifacts without a build kind: {missing}")
        return self


__all__ = [
    "ArtifactSpec",
    "BazelArtifact",
    "BuildFileSchema",
    "BuildKind",
    "DockerArtifact",
    "LocalBuildSchema",
    "TagPolicySchema",
]
