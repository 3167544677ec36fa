"""Tests for StoreSettings."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from filestore.core.constants import DEFAULT_MAX_FILE_SIZE
from filestore.core.settings import StoreSettings


def test_explicit_root(tmp_path: Path) -> None:
    """Test that an explicit root is used with defaults for the rest."""
    settings = StoreSettings.from_env(root=tmp_path)

    assert settings.root == tmp_path
    assert settings.max_file_size == DEFAULT_MAX_FILE_SIZE
    assert settings.durable is True


def test_root_from_environment(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Test that FILESTORE_ROOT is used when no root is given."""
    monkeypatch.setenv("FILESTORE_ROOT", str(tmp_path))

    assert StoreSettings.from_env().root == tmp_path


def test_missing_root() -> None:
    """Test that a root is required."""
    with pytest.raises(ValueError, match="FILESTORE_ROOT"):
        StoreSettings.from_env()


def test_explicit_values_override_environment(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    """Test precedence of arguments over environment variables."""
    monkeypatch.setenv("FILESTORE_ROOT", "/somewhere/else")
    monkeypatch.setenv("FILESTORE_MAX_FILE_SIZE", "100")
    monkeypatch.setenv("FILESTORE_DURABLE", "0")

    settings = StoreSettings.from_env(root=tmp_path, max_file_size=50, durable=True)

    assert settings.root == tmp_path
    assert settings.max_file_size == 50
    assert settings.durable is True


def test_size_limit_from_environment(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Test that the size limit is parsed from the environment."""
    monkeypatch.setenv("FILESTORE_MAX_FILE_SIZE", "2048")

    assert StoreSettings.from_env(root=tmp_path).max_file_size == 2048


@pytest.mark.parametrize("value", ["0", "-5", "lots"])
def test_invalid_size_limit(tmp_path: Path, monkeypatch: pytest.MonkeyPatch, value: str) -> None:
    """Test that non-positive or non-numeric limits fail validation."""
    monkeypatch.setenv("FILESTORE_MAX_FILE_SIZE", value)

    with pytest.raises(ValidationError):
        StoreSettings.from_env(root=tmp_path)


@pytest.mark.parametrize(
    ("value", "expected"),
    [("1", True), ("YES", True), (" on ", True), ("0", False), ("off", False)],
)
def test_durable_from_environment(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, value: str, expected: bool
) -> None:
    """Test parsing of the durability toggle."""
    monkeypatch.setenv("FILESTORE_DURABLE", value)

    assert StoreSettings.from_env(root=tmp_path).durable is expected


def test_home_is_expanded() -> None:
    """Test that '~' in the root is expanded."""
    settings = StoreSettings(root=Path("~/memories"))

    assert settings.root == Path.home() / "memories"


def test_settings_are_frozen(tmp_path: Path) -> None:
    """Test that settings cannot be mutated after construction."""
    settings = StoreSettings(root=tmp_path)

    with pytest.raises(ValidationError):
        settings.max_file_size = 1  # type: ignore[misc]
