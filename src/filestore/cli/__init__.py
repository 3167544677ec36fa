"""CLI entrypoints for the file-storage engine."""

from filestore.cli.main import app, run_cli

__all__ = ["app", "run_cli"]
