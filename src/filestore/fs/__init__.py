"""Filesystem layer: sandboxed path resolution, content codec, atomic mutation.

This package provides the building blocks the operation facade composes:
path resolution with symlink-aware sandboxing, text/binary content handling,
and stage-then-commit writes, deletes and renames.
"""

from filestore.fs.atomic import (
    atomic_delete,
    atomic_rename,
    atomic_write,
    is_staging_artifact,
)
from filestore.fs.codec import FileContent, decode_text, encode, looks_binary
from filestore.fs.paths import PathResolver

__all__ = [
    "FileContent",
    "PathResolver",
    "atomic_delete",
    "atomic_rename",
    "atomic_write",
    "decode_text",
    "encode",
    "is_staging_artifact",
    "looks_binary",
]
