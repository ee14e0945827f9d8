"""Allow ``python -m tutorsync``."""

from tutorsync.cli import app

app()
