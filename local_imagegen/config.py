"""Configuration settings for local_imagegen.

Uses pydantic-settings for config parsing from environment variables
and defaults. Configuration precedence: CLI flags > env vars > defaults.
"""

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings.

    Settings are loaded from environment variables with the IMAGEGEN_ prefix.
    CLI flags can override these at runtime.
    """

    model_config = SettingsConfigDict(
        env_prefix="IMAGEGEN_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Cluster
    kube_context: str = Field(
        default="minikube",
        description="Name of the target cluster context",
    )
    skip_push: bool | None = Field(
        default=None,
        description="Skip pushing images (derived from cluster locality if unset)",
    )
    extra_local_contexts: list[str] = Field(
        default_factory=list,
        description="Additional context names that share the host image store",
    )

    # Backends
    docker_host: str | None = Field(
        default=None,
        description="Docker daemon URL (uses DOCKER_HOST / defaults if not set)",
    )
    docker_timeout: int = Field(
        default=120,
        ge=1,
        description="Timeout for Docker API calls",
    )
    bazel_binary: str = Field(
        default="bazel",
        description="Bazel executable used for hermetic builds",
    )

    # Tagging
    tagger: Literal["sha256", "envTemplate", "dateTime"] = Field(
        default="sha256",
        description="Tag policy used to name built images",
    )
    tag_template: str | None = Field(
        default=None,
        description="Template for the envTemplate tag policy",
    )

    # Operational
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )

    # Timeouts (in seconds)
    build_timeout: int | None = Field(
        default=None,
        ge=1,
        description="Deadline for a whole build run (no deadline if not set)",
    )


def get_settings() -> Settings:
    """Get the application settings singleton.

    Returns:
        Settings instance loaded from environment.
    """
    return Settings()


def print_settings_json(settings: Settings | None = None) -> str:
    """Render effective settings as JSON.

    Args:
        settings: Optional settings instance; uses default if not provided.

    Returns:
        JSON string of effective settings.
    """
    if settings is None:
        settings = get_settings()
    return settings.model_dump_json(indent=2)


__all__ = ["Settings", "get_settings", "print_settings_json"]
