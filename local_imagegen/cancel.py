"""Cancellation token threaded through every blocking call.

A token combines a cancel flag, settable from any thread (e.g. a signal
handler), with an optional monotonic deadline. Long-running operations poll
``raise_if_cancelled()`` between chunks of work.
"""

from __future__ import annotations

import threading
import time

from local_imagegen.errors import BuildCancelledError

# Seconds between cancellation checks while a blocking call is silent
POLL_INTERVAL = 0.2


class CancelToken:
    """Cooperative cancellation signal with an optional deadline."""

    def __init__(self, timeout: float | None = None) -> None:
        self._event = threading.Event()
        self._deadline = time.monotonic() + timeout if timeout is not None else None

    def cancel(self) -> None:
        """Request cancellation."""
        self._event.set()

    @property
    def expired(self) -> bool:
        """True once the deadline has passed."""
        return self._deadline is not None and time.monotonic() >= self._deadline

    def raise_if_cancelled(self, image_name: str | None = None) -> None:
        """Raise BuildCancelledError if the token has fired.

        Raises:
            BuildCancelledError: If cancelled or past the deadline.
        """
        if self._event.is_set():
            raise BuildCancelledError("build cancelled", image_name=image_name)
        if self.expired:
            raise BuildCancelledError("build deadline exceeded", image_name=image_name)


__all__ = ["POLL_INTERVAL", "CancelToken"]
