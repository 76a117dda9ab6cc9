"""Tag policies.

A tagger turns an image name and content digest into the final,
fully-qualified image reference.
"""

from __future__ import annotations

import os
from datetime import datetime, timezone, tzinfo
from typing import Protocol

from local_imagegen.errors import ConfigurationError, TaggingError
from local_imagegen.types import TagOptions

DEFAULT_DATETIME_FORMAT = "%Y-%m-%d_%H-%M-%S.%f"


class Tagger(Protocol):
    """Computes the final image reference for a built image."""

    def generate_fully_qualified_image_name(
        self, workspace: str, opts: TagOptions
    ) -> str: ...


def split_digest(digest: str) -> tuple[str, str]:
    """Split 'algo:hex' into its parts ('' algorithm if absent)."""
    algo, sep, hex_part = digest.partition(":")
    if not sep:
        return "", digest
    return algo, hex_part


class ChecksumTagger:
    """Tags images with their content digest: ``<image>:<digest hex>``."""

    def generate_fully_qualified_image_name(
        self, workspace: str, opts: TagOptions
    ) -> str:
        _, hex_part = split_digest(opts.digest)
        if not hex_part:
            raise TaggingError(
                f"cannot tag {opts.image_name}: empty digest",
                image_name=opts.image_name,
            )
        return f"{opts.image_name}:{hex_part}"


class EnvTemplateTagger:
    """Tags images by formatting a template over the environment.

    The template uses ``str.format`` fields. Besides environment variables it
    can reference ``IMAGE_NAME``, ``DIGEST``, ``DIGEST_ALGO`` and
    ``DIGEST_HEX``, e.g. ``{IMAGE_NAME}:{USER}-{DIGEST_HEX}``.
    """

    def __init__(self, template: str) -> None:
        if not template:
            raise ConfigurationError("envTemplate tagger requires a template")
        self.template = template

    def generate_fully_qualified_image_name(
        self, workspace: str, opts: TagOptions
    ) -> str:
        algo, hex_part = split_digest(opts.digest)
        values = {
            **os.environ,
            "IMAGE_NAME": opts.image_name,
            "DIGEST": opts.digest,
            "DIGEST_ALGO": algo,
            "DIGEST_HEX": hex_part,
        }
        try:
            return self.template.format_map(values)
        except KeyError as e:
            raise TaggingError(
                f"evaluating tag template {self.template!r}: "
                f"undefined variable {e.args[0]}",
                image_name=opts.image_name,
            ) from e
        except (IndexError, ValueError) as e:
            raise TaggingError(
                f"evaluating tag template {self.template!r}: {e}",
                image_name=opts.image_name,
            ) from e


class DateTimeTagger:
    """Tags images with the current time: ``<image>:<formatted now>``."""

    def __init__(
        self,
        fmt: str = DEFAULT_DATETIME_FORMAT,
        tz: tzinfo | None = None,
    ) -> None:
        self.fmt = fmt
        self.tz = tz or timezone.utc

    def now(self) -> datetime:
        return datetime.now(self.tz)

    def generate_fully_qualified_image_name(
        self, workspace: str, opts: TagOptions
    ) -> str:
        return f"{opts.image_name}:{self.now().strftime(self.fmt)}"


def create_tagger(name: str, template: str | None = None) -> Tagger:
    """Create a tagger by policy name.

    Args:
        name: One of 'sha256', 'envTemplate', 'dateTime'.
        template: Template for the envTemplate policy.

    Returns:
        Tagger instance.

    Raises:
        ConfigurationError: If the name is unknown or a template is missing.
    """
    if name == "sha256":
        return ChecksumTagger()
    if name == "envTemplate":
        return EnvTemplateTagger(template or "")
    if name == "dateTime":
        return DateTimeTagger()
    raise ConfigurationError(f"unknown tag policy: {name}")


__all__ = [
    "ChecksumTagger",
    "DateTimeTagger",
    "EnvTemplateTagger",
    "Tagger",
    "create_tagger",
    "split_digest",
]
