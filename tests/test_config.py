"""Tests for configuration module."""

import json
import os
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from local_imagegen.config import Settings, get_settings, print_settings_json


class TestSettings:
    """Test Settings class."""

    def test_default_settings(self) -> None:
        """Settings should have sensible defaults."""
        with patch.dict(os.environ, {}, clear=True):
            settings = Settings(_env_file=None)

        assert settings.kube_context == "minikube"
        assert settings.skip_push is None
        assert settings.extra_local_contexts == []
        assert settings.docker_host is None
        assert settings.docker_timeout == 120
        assert settings.bazel_binary == "bazel"
        assert settings.tagger == "sha256"
        assert settings.tag_template is None
        assert settings.log_level == "INFO"
        assert settings.build_timeout is None

    def test_settings_from_env(self) -> None:
        """Settings should be loadable from environment variables."""
        with patch.dict(
            os.environ,
            {
                "IMAGEGEN_KUBE_CONTEXT": "gke_prod",
                "IMAGEGEN_SKIP_PUSH": "true",
                "IMAGEGEN_LOG_LEVEL": "DEBUG",
                "IMAGEGEN_BUILD_TIMEOUT": "600",
            },
        ):
            settings = Settings(_env_file=None)
            assert settings.kube_context == "gke_prod"
            assert settings.skip_push is True
            assert settings.log_level == "DEBUG"
            assert settings.build_timeout == 600

    def test_extra_local_contexts_from_env(self) -> None:
        """List settings are parsed from JSON in the environment."""
        with patch.dict(
            os.environ,
            {"IMAGEGEN_EXTRA_LOCAL_CONTEXTS": '["kind-dev", "k3d-local"]'},
        ):
            settings = Settings(_env_file=None)
            assert settings.extra_local_contexts == ["kind-dev", "k3d-local"]

    def test_settings_from_env_file(self, tmp_path) -> None:
        """Settings should be loadable from a .env file."""
        env_file = tmp_path / ".env"
        env_file.write_text("IMAGEGEN_TAGGER=dateTime\n")
        with patch.dict(os.environ, {}, clear=True):
            settings = Settings(_env_file=env_file)
        assert settings.tagger == "dateTime"

    def test_invalid_tagger_rejected(self) -> None:
        with pytest.raises(ValidationError):
            Settings(_env_file=None, tagger="gitCommit")

    def test_invalid_timeout_rejected(self) -> None:
        with pytest.raises(ValidationError):
            Settings(_env_file=None, docker_timeout=0)


class TestGetSettings:
    """Test get_settings function."""

    def test_get_settings_returns_settings(self) -> None:
        """get_settings should return a Settings instance."""
        settings = get_settings()
        assert isinstance(settings, Settings)


class TestPrintSettingsJson:
    """Test print_settings_json function."""

    def test_print_settings_json(self) -> None:
        """print_settings_json should return valid JSON."""
        settings = Settings(_env_file=None)
        json_str = print_settings_json(settings)

        parsed = json.loads(json_str)

        assert "kube_context" in parsed
        assert "tagger" in parsed
        assert "log_level" in parsed

    def test_print_settings_json_default(self) -> None:
        """print_settings_json should work without explicit settings."""
        json_str = print_settings_json()
        parsed = json.loads(json_str)
        assert "docker_timeout" in parsed
