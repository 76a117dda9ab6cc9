"""Docker backend client.

This module handles:
- Streaming image builds and pushes from the Docker daemon
- Resolving image digests by reference
- Tagging and loading images
- Reporting the daemon's API version

All Docker SDK and transport errors are translated into the package's error
taxonomy. Streamed calls poll the cancel token while waiting on the daemon.
"""

from __future__ import annotations

import logging
import queue
import threading
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import TYPE_CHECKING, Any, Protocol, TextIO

import docker
import requests
from docker.errors import DockerException
from docker.utils import parse_repository_tag

from local_imagegen.cancel import POLL_INTERVAL
from local_imagegen.errors import (
    BackendError,
    ClientInitError,
    ImageGenError,
    RegistryError,
    TaggingError,
)
from local_imagegen.output import write_output

if TYPE_CHECKING:
    from local_imagegen.cancel import CancelToken
    from local_imagegen.config import Settings

logger = logging.getLogger(__name__)

_TRANSPORT_ERRORS = (DockerException, requests.exceptions.RequestException)


class BackendClient(Protocol):
    """Capabilities the build pipeline needs from a build backend."""

    def build(
        self,
        workspace: str,
        dockerfile: str,
        tag: str,
        build_args: Mapping[str, str | None],
        cache_from: list[str],
        out: TextIO,
        token: CancelToken,
    ) -> None: ...

    def digest(self, tag: str, token: CancelToken) -> str: ...

    def tag(self, source: str, dest: str, token: CancelToken) -> None: ...

    def push(self, tag: str, out: TextIO, token: CancelToken) -> None: ...

    def load(self, tar_path: Path, out: TextIO, token: CancelToken) -> None: ...

    def server_version(self, token: CancelToken) -> dict[str, Any]: ...

    def close(self) -> None: ...


def _format_message(entry: Mapping[str, Any]) -> str:
    """Render one decoded daemon message as a line of text."""
    if "stream" in entry:
        return str(entry["stream"])
    status = entry.get("status")
    if not status:
        return ""
    # Skip per-layer progress bars, keep state changes
    if entry.get("progress"):
        return ""
    if entry.get("id"):
        return f"{entry['id']}: {status}\n"
    return f"{status}\n"


class _ReaderFailed:
    """Wraps an exception raised while reading a daemon stream."""

    def __init__(self, error: Exception) -> None:
        self.error = error


_END = object()


def _pump(entries: Iterable[Mapping[str, Any]], messages: queue.Queue[Any]) -> None:
    try:
        for entry in entries:
            messages.put(entry)
    except Exception as e:  # noqa: BLE001 - relayed to the consuming thread
        messages.put(_ReaderFailed(e))
    else:
        messages.put(_END)


def stream_messages(
    entries: Iterable[Mapping[str, Any]],
    out: TextIO,
    token: CancelToken,
    error_cls: type[ImageGenError],
) -> None:
    """Copy decoded daemon messages to the sink until the stream ends.

    The stream is read on a background thread so that the token is polled
    even while the daemon is silent (e.g. during a long ``RUN`` step). On
    cancellation the reader is abandoned; its connection is released when
    the client is closed.

    Args:
        entries: Decoded JSON messages from the daemon.
        out: Output sink.
        token: Cancel token, polled every POLL_INTERVAL seconds.
        error_cls: Error raised when the daemon reports a failure.

    Raises:
        ImageGenError: error_cls for daemon errors, BuildCancelledError on
            cancel, OutputWriteError on sink failures.
    """
    messages: queue.Queue[Any] = queue.Queue()
    reader = threading.Thread(target=_pump, args=(entries, messages), daemon=True)
    reader.start()

    while True:
        try:
            entry = messages.get(timeout=POLL_INTERVAL)
        except queue.Empty:
            token.raise_if_cancelled()
            continue
        if entry is _END:
            return
        if isinstance(entry, _ReaderFailed):
            raise entry.error
        token.raise_if_cancelled()
        if "error" in entry:
            detail = entry.get("errorDetail") or {}
            raise error_cls(str(detail.get("message") or entry["error"]))
        text = _format_message(entry)
        if text:
            write_output(out, text)


class DockerBackendClient:
    """BackendClient backed by the Docker daemon.

    Attributes:
        api: Low-level docker SDK client.
    """

    def __init__(self, api: docker.APIClient) -> None:
        self.api = api
        self._closed = False

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> DockerBackendClient:
        """Connect to the daemon named by settings or the environment.

        Args:
            settings: Application settings.

        Returns:
            Connected DockerBackendClient.

        Raises:
            ClientInitError: If the client cannot be constructed.
        """
        if settings is None:
            from local_imagegen.config import get_settings

            settings = get_settings()

        try:
            if settings.docker_host:
                api = docker.APIClient(
                    base_url=settings.docker_host,
                    version="auto",
                    timeout=settings.docker_timeout,
                )
            else:
                api = docker.from_env(timeout=settings.docker_timeout).api
        except _TRANSPORT_ERRORS as e:
            raise ClientInitError(f"getting docker client: {e}") from e

        logger.debug("Connected to docker daemon at %s", api.base_url)
        return cls(api)

    def build(
        self,
        workspace: str,
        dockerfile: str,
        tag: str,
        build_args: Mapping[str, str | None],
        cache_from: list[str],
        out: TextIO,
        token: CancelToken,
    ) -> None:
        """Build an image from a workspace, streaming progress to out."""
        token.raise_if_cancelled()
        logger.info("Building %s from %s (dockerfile=%s)", tag, workspace, dockerfile)
        try:
            entries = self.api.build(
                path=workspace,
                dockerfile=dockerfile,
                tag=tag,
                buildargs=dict(build_args) or None,
                cache_from=list(cache_from) or None,
                rm=True,
                decode=True,
            )
            stream_messages(entries, out, token, BackendError)
        except _TRANSPORT_ERRORS as e:
            raise BackendError(f"docker build: {e}") from e

    def digest(self, tag: str, token: CancelToken) -> str:
        """Return the image ID for a reference, or '' if no image matches."""
        token.raise_if_cancelled()
        try:
            images = self.api.images(name=tag)
        except _TRANSPORT_ERRORS as e:
            raise RegistryError(f"listing images for {tag}: {e}") from e
        for image in images:
            return str(image.get("Id", ""))
        return ""

    def tag(self, source: str, dest: str, token: CancelToken) -> None:
        """Apply dest as an additional tag of the source image."""
        token.raise_if_cancelled()
        repository, tag = parse_repository_tag(dest)
        try:
            ok = self.api.tag(source, repository, tag=tag)
        except _TRANSPORT_ERRORS as e:
            raise TaggingError(f"tagging {source} as {dest}: {e}") from e
        if not ok:
            raise TaggingError(f"tagging {source} as {dest}: daemon refused")

    def push(self, tag: str, out: TextIO, token: CancelToken) -> None:
        """Push a tag to its registry, streaming progress to out."""
        token.raise_if_cancelled()
        repository, tag_name = parse_repository_tag(tag)
        logger.info("Pushing %s", tag)
        try:
            entries = self.api.push(repository, tag=tag_name, stream=True, decode=True)
            stream_messages(entries, out, token, RegistryError)
        except _TRANSPORT_ERRORS as e:
            raise RegistryError(f"docker push: {e}") from e

    def load(self, tar_path: Path, out: TextIO, token: CancelToken) -> None:
        """Load an image tarball into the daemon."""
        token.raise_if_cancelled()
        logger.info("Loading image tarball %s", tar_path)
        try:
            with tar_path.open("rb") as image_tar:
                entries = self.api.load_image(image_tar)
                stream_messages(entries, out, token, BackendError)
        except _TRANSPORT_ERRORS as e:
            raise BackendError(f"loading image tarball: {e}") from e
        except OSError as e:
            raise BackendError(f"opening image tarball: {e}") from e

    def server_version(self, token: CancelToken) -> dict[str, Any]:
        """Return the daemon's version information."""
        token.raise_if_cancelled()
        try:
            return dict(self.api.version())
        except _TRANSPORT_ERRORS as e:
            raise BackendError(f"querying docker version: {e}") from e

    def close(self) -> None:
        """Release the daemon connection. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        try:
            self.api.close()
        except Exception as e:  # noqa: BLE001 - close must not fail the caller
            logger.warning("Error closing docker client: %s", e)


__all__ = [
    "BackendClient",
    "DockerBackendClient",
    "stream_messages",
]
