"""Entry point for ``python -m copytool``."""

from copytool.cli import app

app(prog_name="copytool")
