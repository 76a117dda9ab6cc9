"""Shared fixtures for local_imagegen tests."""

import io
from pathlib import Path

import pytest

from local_imagegen.config import Settings


class FakeBackendClient:
    """In-memory BackendClient that records every call."""

    def __init__(self) -> None:
        self.calls: list[tuple] = []
        self.digests: dict[str, str] = {}
        self.errors: dict[str, Exception] = {}
        self.version: dict[str, str] = {"ApiVersion": "1.43", "Version": "24.0.7"}
        self.close_count = 0

    def _maybe_fail(self, op: str) -> None:
        if op in self.errors:
            raise self.errors[op]

    def build(self, workspace, dockerfile, tag, build_args, cache_from, out, token):
        self.calls.append(("build", workspace, dockerfile, tag, dict(build_args), list(cache_from)))
        self._maybe_fail("build")
        out.write(f"Step 1/1 : FROM scratch ({tag})\n")

    def digest(self, tag, token):
        self.calls.append(("digest", tag))
        self._maybe_fail("digest")
        return self.digests.get(tag, "sha256:" + "ab" * 32)

    def tag(self, source, dest, token):
        self.calls.append(("tag", source, dest))
        self._maybe_fail("tag")

    def push(self, tag, out, token):
        self.calls.append(("push", tag))
        self._maybe_fail("push")

    def load(self, tar_path, out, token):
        self.calls.append(("load", Path(tar_path)))
        self._maybe_fail("load")

    def server_version(self, token):
        self.calls.append(("server_version",))
        if "server_version" in self.errors:
            raise self.errors["server_version"]
        return self.version

    def close(self):
        self.close_count += 1

    def ops(self) -> list[str]:
        return [c[0] for c in self.calls]


@pytest.fixture
def fake_client() -> FakeBackendClient:
    """Create a fake backend client."""
    return FakeBackendClient()


@pytest.fixture
def out() -> io.StringIO:
    """Create an in-memory output sink."""
    return io.StringIO()


@pytest.fixture
def settings() -> Settings:
    """Create settings isolated from the environment."""
    return Settings(_env_file=None, kube_context="gke_prod", extra_local_contexts=[])
