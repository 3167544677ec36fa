"""Tests for the debug utility module.

The debug utility provides a single entrypoint for low-level debug output
that can be toggled via the FILESTORE_DEBUG environment variable.
"""

import importlib
from collections.abc import Callable
from io import StringIO
from typing import Any
from unittest.mock import patch

import pytest


def _reload_debug() -> Callable[[Any], None]:
    from filestore.utils import debug as debug_module

    importlib.reload(debug_module)
    return debug_module.debug


def test_debug_import() -> None:
    """Test that debug utility can be imported."""
    from filestore.utils.debug import debug

    assert callable(debug)


def test_debug_disabled_by_default(monkeypatch: pytest.MonkeyPatch) -> None:
    """Test that debug output is disabled when FILESTORE_DEBUG is not set."""
    monkeypatch.delenv("FILESTORE_DEBUG", raising=False)
    debug = _reload_debug()

    with patch("sys.stderr", new=StringIO()) as fake_stderr:
        debug("This should not print")

    assert fake_stderr.getvalue() == ""


@pytest.mark.parametrize("value", ["1", "true", "True", "YES", "on"])
def test_debug_enabled_for_truthy_values(
    monkeypatch: pytest.MonkeyPatch, value: str
) -> None:
    """Test that debug writes a prefixed line to stderr for truthy values."""
    monkeypatch.setenv("FILESTORE_DEBUG", value)
    debug = _reload_debug()

    with patch("sys.stderr", new=StringIO()) as fake_stderr:
        debug(f"Testing {value}")

    monkeypatch.delenv("FILESTORE_DEBUG")
    _reload_debug()

    output = fake_stderr.getvalue()
    assert f"Testing {value}" in output
    assert output.startswith("[DEBUG]")


@pytest.mark.parametrize("value", ["0", "false", "no", "off", ""])
def test_debug_disabled_for_falsy_values(
    monkeypatch: pytest.MonkeyPatch, value: str
) -> None:
    """Test that debug is disabled for falsy env var values."""
    monkeypatch.setenv("FILESTORE_DEBUG", value)
    debug = _reload_debug()

    with patch("sys.stderr", new=StringIO()) as fake_stderr:
        debug("quiet")

    monkeypatch.delenv("FILESTORE_DEBUG")
    _reload_debug()

    assert fake_stderr.getvalue() == ""


def test_debug_never_writes_to_stdout(monkeypatch: pytest.MonkeyPatch) -> None:
    """Test that debug output stays off stdout so CLI output is not polluted."""
    monkeypatch.setenv("FILESTORE_DEBUG", "1")
    debug = _reload_debug()

    with (
        patch("sys.stdout", new=StringIO()) as fake_stdout,
        patch("sys.stderr", new=StringIO()),
    ):
        debug("stderr only")

    monkeypatch.delenv("FILESTORE_DEBUG")
    _reload_debug()

    assert fake_stdout.getvalue() == ""
