"""Helpers for writing progress to the output sink.

The sink may be a terminal, a file, or a network-backed stream, so every
write failure is surfaced rather than ignored.
"""

from typing import TextIO

from local_imagegen.errors import OutputWriteError


def write_output(out: TextIO, text: str, phrase: str = "writing status") -> None:
    """Write text to the sink, raising OutputWriteError on failure.

    Args:
        out: Output sink.
        text: Text to write.
        phrase: Context phrase used in the error message.

    Raises:
        OutputWriteError: If the write fails.
    """
    try:
        out.write(text)
    except (OSError, ValueError) as e:
        raise OutputWriteError(f"{phrase}: {e}") from e


__all__ = ["write_output"]
