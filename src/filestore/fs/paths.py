"""Path resolution and sandboxing for the storage root.

Every caller-supplied path goes through ``PathResolver.resolve`` before any
filesystem access. Resolution is two-phase: a lexical normalization of
``.``/``..`` segments, then a symlink-aware resolution of the real location.
The containment check runs after each phase, so a symlink inside the root
cannot reintroduce a traversal that lexical normalization removed.

Operations that act on an entry rather than its content (delete, rename)
use ``PathResolver.resolve_entry``, which resolves only the parent so a
symlink is handled as the link itself.
"""

import os
import re
from pathlib import Path, PurePosixPath

from filestore.core.errors import InvalidPath, PathTraversal

# Windows drive prefixes ("C:", "c:\\") count as absolute input.
_DRIVE_PREFIX = re.compile(r"^[A-Za-z]:")


def is_within(path: Path, root: Path) -> bool:
    """Return True if ``path`` is ``root`` or one of its descendants.

    Both paths must already be absolute and normalized.
    """
    return path == root or root in path.parents


def resolve_root(root: str | Path) -> Path:
    """Resolve and validate a storage root.

    Args:
        root: Directory to use as the sandbox root

    Returns:
        Absolute, symlink-resolved root path

    Raises:
        InvalidPath: If the root does not exist or is not a directory
    """
    root_path = Path(root).expanduser()
    try:
        resolved = root_path.resolve(strict=True)
    except FileNotFoundError as exc:
        raise InvalidPath(str(root), "storage root does not exist") from exc
    except OSError as exc:
        raise InvalidPath(str(root), f"storage root is not accessible: {exc}") from exc
    if not resolved.is_dir():
        raise InvalidPath(str(root), "storage root is not a directory")
    return resolved


class PathResolver:
    """Resolves caller-supplied relative paths against a fixed root.

    The resolver is pure: it reads filesystem metadata (to follow symlinks)
    but never creates, modifies or removes anything.
    """

    def __init__(self, root: str | Path) -> None:
        self.root = resolve_root(root)

    def resolve(self, raw_path: str, *, allow_root: bool = True) -> Path:
        """Resolve a relative path to an absolute location under the root.

        Args:
            raw_path: Caller-supplied path, relative to the root
            allow_root: If False, a path naming the root itself is rejected

        Returns:
            Absolute, symlink-resolved path inside the root

        Raises:
            InvalidPath: Empty, whitespace-only or NUL-containing input, or the
                root itself when ``allow_root`` is False
            PathTraversal: Absolute input, or a path whose lexical or real
                location lies outside the root
        """
        real = self._real(self.resolve_lexical(raw_path), raw_path)
        if not allow_root and real == self.root:
            raise InvalidPath(raw_path, "operation not permitted on the storage root")
        return real

    def resolve_lexical(self, raw_path: str) -> Path:
        """Validate input and normalize it against the root without touching disk.

        Raises:
            InvalidPath: Empty, whitespace-only or NUL-containing input
            PathTraversal: Absolute input or '..' escaping the root
        """
        if not isinstance(raw_path, str):
            raise InvalidPath(repr(raw_path), "path must be a string")
        if not raw_path.strip():
            raise InvalidPath(raw_path, "path is empty")
        if "\x00" in raw_path:
            raise InvalidPath(raw_path, "path contains a NUL byte")
        if raw_path.startswith(("/", "\\")) or _DRIVE_PREFIX.match(raw_path):
            raise PathTraversal(raw_path)

        # Backslashes are separators for every caller, whatever the host OS.
        relative = raw_path.replace("\\", "/")

        lexical = Path(os.path.normpath(os.path.join(self.root, relative)))
        if not is_within(lexical, self.root):
            raise PathTraversal(raw_path, str(lexical))
        return lexical

    def _real(self, lexical: Path, raw_path: str) -> Path:
        try:
            real = lexical.resolve(strict=False)
        except RuntimeError as exc:  # symlink loop on older interpreters
            raise InvalidPath(raw_path, "symlink loop") from exc
        except OSError as exc:
            raise InvalidPath(raw_path, f"cannot be resolved: {exc}") from exc
        if not is_within(real, self.root):
            raise PathTraversal(raw_path, str(real))
        return real

    def resolve_entry(self, raw_path: str) -> Path:
        """Resolve a path naming a directory entry itself, not what it points to.

        Used by operations that act on the entry (delete, rename). The parent
        directory is resolved and sandboxed like ``resolve``; the final
        component is appended as-is, so a symlink is addressed as the link.
        The root itself is never an entry.

        Returns:
            Absolute path whose parent is symlink-resolved and inside the root

        Raises:
            InvalidPath: Same input checks as ``resolve``, or the root itself
            PathTraversal: If the parent lies outside the root
        """
        lexical = self.resolve_lexical(raw_path)
        if lexical == self.root:
            raise InvalidPath(raw_path, "operation not permitted on the storage root")
        parent = self._real(lexical.parent, raw_path)
        return parent / lexical.name

    def relative(self, path: Path) -> str:
        """Render an absolute path under the root as a POSIX relative path.

        The root itself renders as ``"."``.
        """
        rel = path.relative_to(self.root)
        return str(PurePosixPath(*rel.parts)) if rel.parts else "."
