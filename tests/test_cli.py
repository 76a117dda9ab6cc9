"""Smoke tests for the CLI.

These tests verify CLI behavior without a Docker daemon; the backend
client is replaced with an in-memory fake.
"""

import json
import os
import subprocess
import sys
from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from local_imagegen import __version__
from local_imagegen.cli import app
from local_imagegen.docker.client import DockerBackendClient
from local_imagegen.errors import ClientInitError

runner = CliRunner()


def flat(text: str) -> str:
    """Undo Rich line wrapping."""
    return " ".join(text.split())

BUILD_FILE = """\
artifacts:
  - image_name: app
    workspace: {workspace}
    docker:
      dockerfile_path: Dockerfile
      build_args:
        VERSION: "1.0"
"""


@pytest.fixture
def isolated_env(tmp_path, monkeypatch):
    """Run from an empty directory with no IMAGEGEN_ variables set."""
    monkeypatch.chdir(tmp_path)
    for key in list(os.environ):
        if key.startswith("IMAGEGEN_"):
            monkeypatch.delenv(key)
    return tmp_path


@pytest.fixture
def build_file(isolated_env):
    path = isolated_env / "build.yaml"
    path.write_text(BUILD_FILE.format(workspace=isolated_env))
    return path


@pytest.fixture
def fake_backend(fake_client):
    """Patch backend client creation to return a fake."""
    client = fake_client
    client.digests["r1:latest"] = "sha256:deadbeef"
    with (
        patch.object(DockerBackendClient, "from_settings", return_value=client),
        patch("local_imagegen.builds.docker_build.random_id", return_value="r1"),
    ):
        yield client


class TestCLIHelp:
    """Test CLI help and version commands."""

    def test_help_returns_zero(self) -> None:
        """CLI --help should return exit code 0."""
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "Local Image Generator" in result.stdout

    def test_version_flag(self) -> None:
        """CLI --version should print version and exit 0."""
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.stdout

    def test_short_version_flag(self) -> None:
        result = runner.invoke(app, ["-V"])
        assert result.exit_code == 0
        assert __version__ in result.stdout

    def test_no_args_shows_help(self) -> None:
        result = runner.invoke(app, [])
        assert "Usage:" in result.stdout

    def test_build_help(self) -> None:
        result = runner.invoke(app, ["build", "--help"])
        assert result.exit_code == 0
        assert "--skip-push" in result.stdout


class TestCLIConfig:
    """Test CLI config command."""

    def test_config_command_shows_all_settings(self, isolated_env) -> None:
        """CLI config should show all configuration sections."""
        result = runner.invoke(app, ["config"])
        assert result.exit_code == 0
        for section in ("Cluster:", "Backends:", "Tagging:", "Operational:", "Timeouts"):
            assert section in result.stdout
        assert "minikube" in result.stdout
        assert "(derived from cluster)" in result.stdout

    def test_config_reflects_env(self, isolated_env, monkeypatch) -> None:
        monkeypatch.setenv("IMAGEGEN_KUBE_CONTEXT", "gke_prod")
        result = runner.invoke(app, ["config"])
        assert result.exit_code == 0
        assert "gke_prod" in result.stdout

    def test_config_json(self, isolated_env) -> None:
        """CLI config --json should output valid JSON."""
        result = runner.invoke(app, ["config", "--json"])
        assert result.exit_code == 0
        parsed = json.loads(result.stdout)
        assert parsed["kube_context"] == "minikube"
        assert parsed["tagger"] == "sha256"


class TestCLIValidate:
    """Test CLI validate command."""

    def test_valid_file(self, build_file) -> None:
        result = runner.invoke(app, ["validate", str(build_file)])
        assert result.exit_code == 0
        assert "is valid" in flat(result.stdout)
        assert "app (docker" in result.stdout

    def test_invalid_file(self, isolated_env) -> None:
        path = isolated_env / "bad.yaml"
        path.write_text("artifacts:\n  - image_name: app\n")
        result = runner.invoke(app, ["validate", str(path)])
        assert result.exit_code == 1
        assert "without a build kind" in flat(result.stdout)

    def test_missing_file(self, isolated_env) -> None:
        result = runner.invoke(app, ["validate", str(isolated_env / "nope.yaml")])
        assert result.exit_code == 1


class TestCLIBuild:
    """Test CLI build command."""

    def test_local_build_skips_push(self, build_file, fake_backend) -> None:
        result = runner.invoke(app, ["build", str(build_file)])
        assert result.exit_code == 0, result.output
        assert "Found [minikube] context, using local docker daemon." in result.stdout
        assert "Building [app]..." in result.stdout
        assert "Successfully tagged app:deadbeef" in result.stdout
        assert "Push skipped" in result.stdout
        assert "push" not in fake_backend.ops()
        assert fake_backend.close_count == 1

    def test_remote_context_pushes(self, build_file, fake_backend) -> None:
        result = runner.invoke(app, ["build", str(build_file), "--context", "gke_prod"])
        assert result.exit_code == 0, result.output
        assert "Found [" not in result.stdout
        assert ("push", "app:deadbeef") in fake_backend.calls

    def test_skip_push_flag_overrides_remote(self, build_file, fake_backend) -> None:
        result = runner.invoke(
            app, ["build", str(build_file), "-c", "gke_prod", "--skip-push"]
        )
        assert result.exit_code == 0, result.output
        assert "push" not in fake_backend.ops()

    def test_build_file_skip_push(self, isolated_env, fake_backend) -> None:
        path = isolated_env / "build.yaml"
        path.write_text(
            BUILD_FILE.format(workspace=isolated_env) + "local:\n  skip_push: true\n"
        )
        result = runner.invoke(app, ["build", str(path), "-c", "gke_prod"])
        assert result.exit_code == 0, result.output
        assert "push" not in fake_backend.ops()

    def test_env_template_tagger(self, build_file, fake_backend) -> None:
        result = runner.invoke(
            app,
            [
                "build",
                str(build_file),
                "--tagger",
                "envTemplate",
                "--tag-template",
                "registry.local/{IMAGE_NAME}:{DIGEST_HEX}",
            ],
        )
        assert result.exit_code == 0, result.output
        assert ("tag", "r1:latest", "registry.local/app:deadbeef") in fake_backend.calls

    def test_json_output(self, build_file, fake_backend) -> None:
        result = runner.invoke(
            app, ["build", str(build_file), "--json", "--log-level", "WARNING"]
        )
        assert result.exit_code == 0, result.output
        # Older Click runners mix stderr progress into stdout.
        payload = json.loads(result.stdout[result.stdout.index("{") :])
        assert payload["builds"] == [{"image_name": "app", "tag": "app:deadbeef"}]
        assert payload["labels"]["imagegen.dev/builder"] == "local"
        assert payload["labels"]["imagegen.dev/docker-api-version"] == "1.43"
        assert payload["pushed"] is False

    def test_backend_failure_exits_one(self, build_file, fake_backend) -> None:
        from local_imagegen.errors import BackendError

        fake_backend.errors["build"] = BackendError("exit status 1")
        result = runner.invoke(app, ["build", str(build_file)])
        assert result.exit_code == 1
        assert "Build failed" in result.output
        assert "building [app]" in flat(result.output)
        assert fake_backend.close_count == 1

    def test_client_init_failure(self, build_file) -> None:
        with patch.object(
            DockerBackendClient,
            "from_settings",
            side_effect=ClientInitError("getting docker client: no daemon"),
        ):
            result = runner.invoke(app, ["build", str(build_file)])
        assert result.exit_code == 1
        assert "getting docker client" in flat(result.output)

    def test_unknown_log_level_rejected(self, build_file, fake_backend) -> None:
        result = runner.invoke(app, ["build", str(build_file), "--log-level", "foo"])
        assert result.exit_code == 2
        assert fake_backend.calls == []

    def test_log_level_case_insensitive(self, build_file, fake_backend) -> None:
        result = runner.invoke(app, ["build", str(build_file), "--log-level", "debug"])
        assert result.exit_code == 0, result.output

    def test_unknown_tagger(self, build_file, fake_backend) -> None:
        result = runner.invoke(app, ["build", str(build_file), "--tagger", "gitCommit"])
        assert result.exit_code == 1
        assert "unknown tag policy" in flat(result.output)
        assert fake_backend.calls == []


class TestModuleEntryPoint:
    """Test python -m local_imagegen entry point."""

    def test_module_version(self) -> None:
        result = subprocess.run(
            [sys.executable, "-m", "local_imagegen", "--version"],
            capture_output=True,
            text=True,
        )
        assert result.returncode == 0
        assert __version__ in result.stdout
