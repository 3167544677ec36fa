"""Pydantic schemas for results returned by the FileStore.

- EntryInfo: one child of a directory
- DirectoryListing: ordered listing returned by ``view`` on a directory

File results are ``filestore.fs.codec.FileContent``.
"""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

EntryKind = Literal["file", "directory", "symlink", "other"]


class EntryInfo(BaseModel):
    """Metadata for a single directory entry.

    Attributes:
        name: Entry name within its directory
        path: Path relative to the storage root (POSIX separators)
        kind: file, directory, symlink or other
        size: Size in bytes (files only)
    """

    model_config = ConfigDict(frozen=True)

    name: str
    path: str
    kind: EntryKind
    size: int | None = None


class DirectoryListing(BaseModel):
    """Listing of a directory, ordered by entry name.

    Attributes:
        path: Directory path relative to the storage root ("." for the root)
        entries: Children of the directory, sorted by name
    """

    model_config = ConfigDict(frozen=True)

    path: str
    entries: list[EntryInfo] = Field(default_factory=list)

    def names(self) -> list[str]:
        """Return entry names in listing order."""
        return [entry.name for entry in self.entries]

    def __len__(self) -> int:
        return len(self.entries)
