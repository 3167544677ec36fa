"""Sandboxed, atomic file storage for agent memory backends.

The public surface is ``FileStore`` and its six operations (view, create,
str_replace, insert, delete, rename) plus the typed errors they raise.
"""

from filestore.core.errors import (
    AlreadyExists,
    AmbiguousMatch,
    FileNotFound,
    FileStoreError,
    InvalidArgument,
    InvalidPath,
    IOFailure,
    OutOfRange,
    PathTraversal,
)
from filestore.core.schemas import DirectoryListing, EntryInfo
from filestore.core.settings import StoreSettings
from filestore.core.store import FileStore
from filestore.fs.codec import FileContent

__version__ = "0.1.0"

__all__ = [
    "AlreadyExists",
    "AmbiguousMatch",
    "DirectoryListing",
    "EntryInfo",
    "FileContent",
    "FileNotFound",
    "FileStore",
    "FileStoreError",
    "IOFailure",
    "InvalidArgument",
    "InvalidPath",
    "OutOfRange",
    "PathTraversal",
    "StoreSettings",
    "__version__",
]
