"""Pytest configuration and fixtures for file-storage engine tests."""

from collections.abc import Callable
from pathlib import Path

import pytest

from filestore.core.store import FileStore


@pytest.fixture(autouse=True)
def _clean_filestore_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep FILESTORE_* variables from the developer's shell out of tests."""
    for name in ("FILESTORE_ROOT", "FILESTORE_MAX_FILE_SIZE", "FILESTORE_DURABLE"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def store_root(tmp_path: Path) -> Path:
    """Empty directory used as the storage root."""
    root = tmp_path / "root"
    root.mkdir()
    return root


@pytest.fixture
def outside(tmp_path: Path) -> Path:
    """Directory next to the root holding a file that must never be touched."""
    secret_dir = tmp_path / "outside"
    secret_dir.mkdir()
    (secret_dir / "secret.txt").write_text("top secret", encoding="utf-8")
    return secret_dir


@pytest.fixture
def store(store_root: Path) -> FileStore:
    """FileStore rooted at ``store_root``."""
    return FileStore(store_root)


@pytest.fixture
def staging_leftovers() -> Callable[[Path], list[Path]]:
    """Return a helper listing staging artifacts anywhere under a directory."""

    def _find(directory: Path) -> list[Path]:
        return [p for p in directory.rglob("*") if p.name.endswith(".fstmp")]

    return _find
