"""Hermetic-build strategy.

This module handles:
- Running ``bazel build`` for an image tarball target
- Streaming Bazel output to the sink while honoring cancellation
- Loading the resulting tarball into the Docker daemon

The tarball carries its own image name, derived from the target label
(rules_docker convention), which becomes the initial tag.
"""

from __future__ import annotations

import logging
import queue
import shlex
import subprocess
import threading
from pathlib import Path
from typing import IO, TYPE_CHECKING, TextIO, cast

from local_imagegen.cancel import POLL_INTERVAL
from local_imagegen.errors import BackendError, ImageGenError
from local_imagegen.output import write_output

if TYPE_CHECKING:
    from local_imagegen.artifacts.schema import BazelArtifact
    from local_imagegen.cancel import CancelToken
    from local_imagegen.docker.client import BackendClient

logger = logging.getLogger(__name__)

# Seconds to wait for Bazel to exit after SIGTERM before killing it
TERMINATE_GRACE = 10


def build_tar_path(build_target: str) -> str:
    """Map a Bazel target label to its tarball path under bazel-bin.

    ``//:app.tar`` -> ``app.tar``, ``//foo:app.tar`` -> ``foo/app.tar``.
    """
    tar_path = build_target.removeprefix("//")
    tar_path = tar_path.replace(":", "/", 1)
    return tar_path.lstrip("/")


def build_image_tag(build_target: str) -> str:
    """Map a Bazel target label to the image tag its tarball loads as.

    ``//:app.tar`` -> ``bazel:app``, ``//foo:app.tar`` -> ``bazel/foo:app``.
    """
    image_tag = build_target.removeprefix("//").removesuffix(".tar")
    if image_tag.startswith(":"):
        return f"bazel{image_tag}"
    if ":" in image_tag:
        return f"bazel/{image_tag}"
    return f"bazel:{image_tag}"


def _pump(stream: IO[str], lines: queue.Queue[str | None]) -> None:
    for line in stream:
        lines.put(line)
    lines.put(None)


def _terminate(proc: subprocess.Popen[str]) -> None:
    proc.terminate()
    try:
        proc.wait(timeout=TERMINATE_GRACE)
    except subprocess.TimeoutExpired:
        logger.warning("Bazel did not exit after SIGTERM, killing pid %d", proc.pid)
        proc.kill()
        proc.wait()


def run_bazel(
    cmd: list[str],
    workspace: str,
    out: TextIO,
    token: CancelToken,
) -> int:
    """Run a Bazel command, streaming combined output to the sink.

    The process is terminated if the token fires or the sink fails.

    Args:
        cmd: Command to execute.
        workspace: Working directory.
        out: Output sink.
        token: Cancel token.

    Returns:
        Process exit code.

    Raises:
        BackendError: If the command cannot be started.
        BuildCancelledError: If the token fires before Bazel exits.
        OutputWriteError: If writing to the sink fails.
    """
    logger.info("Executing: %s", shlex.join(cmd))
    logger.info("Working directory: %s", workspace)

    try:
        proc = subprocess.Popen(
            cmd,
            cwd=workspace,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
        )
    except OSError as e:
        raise BackendError(f"running command: {e}") from e

    lines: queue.Queue[str | None] = queue.Queue()
    stdout = cast(IO[str], proc.stdout)
    reader = threading.Thread(target=_pump, args=(stdout, lines), daemon=True)
    reader.start()

    try:
        while True:
            try:
                line = lines.get(timeout=POLL_INTERVAL)
            except queue.Empty:
                token.raise_if_cancelled()
                continue
            if line is None:
                break
            write_output(out, line)
            token.raise_if_cancelled()
        return proc.wait()
    finally:
        if proc.poll() is None:
            logger.info("Stopping bazel (pid %d)", proc.pid)
            _terminate(proc)
        reader.join(timeout=TERMINATE_GRACE)
        stdout.close()


def build_bazel(
    client: BackendClient,
    out: TextIO,
    workspace: str,
    artifact: BazelArtifact,
    token: CancelToken,
    bazel_binary: str = "bazel",
) -> str:
    """Build a Bazel artifact, load it into the daemon and return its tag.

    Args:
        client: Backend client used to load the tarball.
        out: Output sink for build progress.
        workspace: Bazel workspace directory.
        artifact: Bazel build payload.
        token: Cancel token.
        bazel_binary: Bazel executable.

    Returns:
        Image tag carried by the tarball (e.g. ``bazel:app``).

    Raises:
        ImageGenError: If the build or load fails.
    """
    exit_code = run_bazel(
        [bazel_binary, "build", artifact.build_target], workspace, out, token
    )
    if exit_code != 0:
        raise BackendError(f"running command: bazel exited with code {exit_code}")

    tar_path = Path(workspace) / "bazel-bin" / build_tar_path(artifact.build_target)
    try:
        client.load(tar_path, out, token)
    except ImageGenError as e:
        raise e.with_context("loading image into docker daemon") from e

    return build_image_tag(artifact.build_target)


__all__ = [
    "build_bazel",
    "build_image_tag",
    "build_tar_path",
    "run_bazel",
]
