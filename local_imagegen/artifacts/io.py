"""Build file loading.

This module provides helpers for reading build files (YAML or JSON) and
validating them against the artifact schema.
"""

import json
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from local_imagegen.artifacts.schema import BuildFileSchema
from local_imagegen.errors import ConfigurationError


def load_yaml(path: Path) -> dict[str, Any]:
    """Read a YAML build file into a mapping.

    An empty file reads as an empty mapping.

    Raises:
        OSError: If the file cannot be opened.
        yaml.YAMLError: If the file is not valid YAML.
        ValueError: If the top level is not a mapping.
    """
    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(
            f"build file must be a YAML mapping at the top level, got {type(data).__name__}"
        )
    return data


def load_json(path: Path) -> dict[str, Any]:
    """Read a JSON build file into a mapping.

    Raises:
        OSError: If the file cannot be opened.
        ValueError: If the file is not valid JSON or not an object.
    """
    with open(path, encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError(f"build file must be a JSON object, got {type(data).__name__}")
    return data


def _format_validation_error(e: ValidationError) -> str:
    parts = []
    for err in e.errors():
        loc = ".".join(str(p) for p in err["loc"]) or "<root>"
        parts.append(f"{loc}: {err['msg']}")
    return "; ".join(parts)


def parse_build_file_data(data: dict[str, Any]) -> BuildFileSchema:
    """Parse and validate build file data using the schema.

    Args:
        data: Dictionary containing build file data.

    Returns:
        Validated BuildFileSchema instance.

    Raises:
        ConfigurationError: If data does not match schema.
    """
    try:
        return BuildFileSchema.model_validate(data)
    except ValidationError as e:
        raise ConfigurationError(
            f"invalid build file: {_format_validation_error(e)}"
        ) from e


def load_build_file(path: Path) -> BuildFileSchema:
    """Load and validate a build file, detecting format by extension.

    ``.json`` files are read as JSON; anything else as YAML.

    Args:
        path: Path to the build file.

    Returns:
        Validated BuildFileSchema instance.

    Raises:
        ConfigurationError: If the file cannot be read or is invalid.
    """
    try:
        if path.suffix.lower() == ".json":
            data = load_json(path)
        else:
            data = load_yaml(path)
    except (OSError, ValueError, yaml.YAMLError) as e:
        raise ConfigurationError(f"reading build file {path}: {e}") from e
    return parse_build_file_data(data)


__all__ = [
    "load_build_file",
    "load_json",
    "load_yaml",
    "parse_build_file_data",
]
