"""Allow running as ``python -m local_imagegen``."""

from local_imagegen.cli import app

app(prog_name="imagegen")
