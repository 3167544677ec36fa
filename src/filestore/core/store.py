"""Operation facade: the six public operations of the file-storage engine.

``FileStore`` composes the path resolver, the content codec and the atomic
mutator. Every path argument is resolved and sandboxed first; every
content-bearing mutation (create, str_replace, insert) computes the complete
new content in memory and funnels it through ``atomic_write``.

The store holds no mutable state besides its configuration, so one
instance may be shared across threads. Two writers racing on the same path
are resolved by the filesystem: the last commit wins and the other change
is superseded. The same holds for a directory rename racing a writer that
creates the destination: only file renames refuse such a late arrival.
Callers needing stronger guarantees serialize above the store (e.g. one
lock per path).
"""

import os
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

import structlog

from filestore.core.constants import DEFAULT_MAX_FILE_SIZE
from filestore.core.errors import (
    AlreadyExists,
    AmbiguousMatch,
    FileNotFound,
    FileStoreError,
    InvalidArgument,
    IOFailure,
    OutOfRange,
)
from filestore.core.schemas import DirectoryListing, EntryInfo, EntryKind
from filestore.core.settings import StoreSettings
from filestore.fs.atomic import (
    atomic_delete,
    atomic_rename,
    atomic_write,
    ensure_parent_dir,
    is_staging_artifact,
    prune_created_dirs,
)
from filestore.fs.codec import (
    Content,
    FileContent,
    decode_text,
    detect_newline,
    encode,
    ends_with_newline,
    split_lines,
)
from filestore.fs.paths import PathResolver


def count_occurrences(text: str, needle: str) -> int:
    """Count occurrences of ``needle`` in ``text``, overlapping ones included."""
    count = 0
    index = text.find(needle)
    while index != -1:
        count += 1
        index = text.find(needle, index + 1)
    return count


class FileStore:
    """Sandboxed, atomic file storage rooted at a single directory.

    Example:
        store = FileStore("/var/lib/agent/memories")
        store.create("notes/todo.md", "- buy milk\\n")
        store.insert("notes/todo.md", 1, "- call bob")
        store.str_replace("notes/todo.md", "milk", "oat milk")
        print(store.view("notes/todo.md").text)
        store.rename("notes/todo.md", "archive/todo.md")
        store.delete("archive")
    """

    def __init__(
        self,
        root: str | Path,
        *,
        max_file_size: int = DEFAULT_MAX_FILE_SIZE,
        durable: bool = True,
        logger: Any = None,
    ) -> None:
        """Initialize a FileStore.

        Args:
            root: Existing directory to use as the sandbox root
            max_file_size: Maximum size in bytes of any file the store writes
            durable: fsync staged files and directories on every commit
            logger: Optional structlog logger instance

        Raises:
            InvalidPath: If the root does not exist or is not a directory
            InvalidArgument: If ``max_file_size`` is not positive
        """
        if max_file_size <= 0:
            raise InvalidArgument("max_file_size must be positive")
        self._resolver = PathResolver(root)
        self.root = self._resolver.root
        self.max_file_size = max_file_size
        self.durable = durable
        self._logger = (logger or structlog.get_logger()).bind(root=str(self.root))

    @classmethod
    def from_settings(cls, settings: StoreSettings, *, logger: Any = None) -> "FileStore":
        """Create a FileStore from validated settings."""
        return cls(
            settings.root,
            max_file_size=settings.max_file_size,
            durable=settings.durable,
            logger=logger,
        )

    def __repr__(self) -> str:
        return f"FileStore(root={str(self.root)!r})"

    # ── Public operations ─────────────────────────────────────

    def view(
        self, path: str, view_range: tuple[int, int] | None = None
    ) -> FileContent | DirectoryListing:
        """Return a file's content or a directory's ordered listing.

        Args:
            path: Path relative to the root ("." for the root itself)
            view_range: Optional 1-based inclusive (start, end) line span for
                text files; ``end == -1`` reads to the end of the file

        Returns:
            FileContent for files, DirectoryListing for directories

        Raises:
            FileNotFound: If the entry does not exist
            OutOfRange: If ``view_range`` falls outside the file
            InvalidArgument: If ``view_range`` is used on binary content or a
                directory
        """
        with self._logged("view", path=path) as log:
            target = self._resolver.resolve(path)
            if not target.exists():
                raise FileNotFound(path)

            if target.is_dir():
                if view_range is not None:
                    raise InvalidArgument("view_range applies to files only", path)
                listing = self._list_directory(target)
                log.info("store.view", kind="directory", entries=len(listing))
                return listing

            content = FileContent.from_bytes(
                self._resolver.relative(target), self._read_bytes(target, path)
            )
            if view_range is not None:
                content = self._slice(content, view_range, path)
            log.info("store.view", kind="file", size=content.size)
            return content

    def create(self, path: str, content: Content) -> None:
        """Create a new file with the given content.

        Missing parent directories are created, and removed again if the
        write fails. The file appears complete or not at all.

        Raises:
            AlreadyExists: If an entry already exists at ``path``
            InvalidArgument: If the content is too large, not encodable, or a
                parent component is a file
        """
        with self._logged("create", path=path) as log:
            target = self._resolver.resolve(path)
            if os.path.lexists(target):
                raise AlreadyExists(path)

            data = encode(content, path=path)
            self._check_size(len(data), path)
            created = ensure_parent_dir(target, label=path)
            try:
                atomic_write(target, data, label=path, durable=self.durable)
            except FileStoreError:
                prune_created_dirs(target, created)
                raise
            log.info("store.create", size=len(data))

    def str_replace(self, path: str, old: str, new: str) -> None:
        """Replace the single occurrence of ``old`` with ``new`` in a text file.

        Raises:
            FileNotFound: If the file does not exist
            AmbiguousMatch: If ``old`` occurs zero times or more than once
            InvalidArgument: Empty or non-string arguments, ``old == new``,
                binary file, or a result exceeding the size limit
        """
        with self._logged("str_replace", path=path) as log:
            if not isinstance(old, str) or not isinstance(new, str):
                raise InvalidArgument("old and new must be strings", path)
            if not old:
                raise InvalidArgument("Text to replace must not be empty", path)
            if old == new:
                raise InvalidArgument("old and new must be different", path)

            target = self._resolver.resolve(path)
            text = self._read_text(target, path)

            occurrences = count_occurrences(text, old)
            if occurrences != 1:
                raise AmbiguousMatch(path, occurrences)

            data = encode(text.replace(old, new, 1), path=path)
            self._check_size(len(data), path)
            atomic_write(target, data, label=path, durable=self.durable)
            log.info("store.str_replace", size=len(data))

    def insert(self, path: str, line_number: int, text: str) -> None:
        """Insert ``text`` as new line(s) after line ``line_number``.

        ``line_number`` counts the lines that precede the insertion: 0 inserts
        before the first line, the file's line count appends. The inserted
        text is terminated with the file's own newline convention; a file
        without a trailing newline keeps that property when appended to.

        Raises:
            FileNotFound: If the file does not exist
            OutOfRange: If ``line_number`` is negative or past the line count
            InvalidArgument: Non-integer line number, non-string text, binary
                file, or a result exceeding the size limit
        """
        with self._logged("insert", path=path, line_number=line_number) as log:
            if isinstance(line_number, bool) or not isinstance(line_number, int):
                raise InvalidArgument("line_number must be an integer", path)
            if not isinstance(text, str):
                raise InvalidArgument("Inserted text must be a string", path)

            target = self._resolver.resolve(path)
            current = self._read_text(target, path)
            lines = split_lines(current)
            if line_number < 0 or line_number > len(lines):
                raise OutOfRange(path, line_number, len(lines))

            newline = detect_newline(current)
            before, after = lines[:line_number], lines[line_number:]
            block = text if ends_with_newline(text) else text + newline
            if not after and before and not ends_with_newline(before[-1]):
                before[-1] += newline
                block = text

            data = encode("".join(before) + block + "".join(after), path=path)
            self._check_size(len(data), path)
            atomic_write(target, data, label=path, durable=self.durable)
            log.info("store.insert", size=len(data), line_count=len(lines))

    def delete(self, path: str) -> None:
        """Delete a file or a directory tree.

        A symlink is removed as the link; its target is left alone.

        Raises:
            FileNotFound: If the entry does not exist
            InvalidPath: If ``path`` names the root
        """
        with self._logged("delete", path=path) as log:
            target = self._resolver.resolve_entry(path)
            atomic_delete(target, label=path, durable=self.durable)
            log.info("store.delete")

    def rename(self, old_path: str, new_path: str, *, overwrite: bool = False) -> None:
        """Move an entry to a new path under the root.

        A symlink is moved as the link, not the entry it points to.

        Args:
            old_path: Existing entry
            new_path: Destination; parent directories are created
            overwrite: Replace an existing destination file instead of failing

        Raises:
            FileNotFound: If the source does not exist
            AlreadyExists: If the destination exists and ``overwrite`` is False
            PathTraversal: If either path leaves the root
            InvalidPath: If either path names the root
        """
        with self._logged("rename", path=old_path, new_path=new_path) as log:
            src = self._resolver.resolve_entry(old_path)
            dst = self._resolver.resolve_entry(new_path)
            atomic_rename(
                src,
                dst,
                overwrite=overwrite,
                src_label=old_path,
                dst_label=new_path,
                durable=self.durable,
            )
            log.info("store.rename", overwrite=overwrite)

    # ── Internals ─────────────────────────────────────────────

    @contextmanager
    def _logged(self, op: str, **fields: Any) -> Iterator[Any]:
        """Bind operation context and log typed failures before re-raising."""
        log = self._logger.bind(op=op, **fields)
        try:
            yield log
        except FileStoreError as exc:
            log.warning(f"store.{op}.failed", error=exc.code, reason=exc.message)
            raise

    def _check_size(self, size: int, path: str) -> None:
        if size > self.max_file_size:
            raise InvalidArgument(
                f"Content is {size:,} bytes; maximum file size is "
                f"{self.max_file_size:,} bytes",
                path,
            )

    def _read_bytes(self, target: Path, path: str) -> bytes:
        try:
            return target.read_bytes()
        except FileNotFoundError as exc:
            raise FileNotFound(path) from exc
        except IsADirectoryError as exc:
            raise InvalidArgument(f"'{path}' is a directory", path) from exc
        except OSError as exc:
            raise IOFailure(path, "read", exc) from exc

    def _read_text(self, target: Path, path: str) -> str:
        if not target.exists():
            raise FileNotFound(path)
        if target.is_dir():
            raise InvalidArgument(f"'{path}' is a directory", path)
        return decode_text(self._read_bytes(target, path), path=path)

    def _slice(
        self, content: FileContent, view_range: tuple[int, int], path: str
    ) -> FileContent:
        """Cut a FileContent down to a 1-based inclusive line span."""
        if content.text is None:
            raise InvalidArgument("view_range requires a text file", path)
        try:
            start, end = (int(bound) for bound in view_range)
        except (TypeError, ValueError) as exc:
            raise InvalidArgument("view_range must be a (start, end) pair", path) from exc

        lines = split_lines(content.text)
        count = len(lines)
        if start < 1 or (count and start > count):
            raise OutOfRange(path, start, count)
        if end == -1:
            end = count
        elif end < start or end > count:
            raise OutOfRange(path, end, count)

        selected = "".join(lines[start - 1 : end])
        return FileContent(
            path=content.path,
            data=selected.encode(content.encoding or "utf-8"),
            is_binary=False,
            encoding=content.encoding,
            line_range=(start, end),
        )

    def _list_directory(self, target: Path) -> DirectoryListing:
        entries: list[EntryInfo] = []
        try:
            with os.scandir(target) as scan:
                for entry in scan:
                    if is_staging_artifact(entry.name):
                        continue
                    entries.append(self._entry_info(target, entry))
        except OSError as exc:
            raise IOFailure(self._resolver.relative(target), "list", exc) from exc

        entries.sort(key=lambda info: info.name)
        return DirectoryListing(path=self._resolver.relative(target), entries=entries)

    def _entry_info(self, parent: Path, entry: os.DirEntry[str]) -> EntryInfo:
        kind: EntryKind
        size: int | None = None
        if entry.is_symlink():
            kind = "symlink"
        elif entry.is_dir(follow_symlinks=False):
            kind = "directory"
        elif entry.is_file(follow_symlinks=False):
            kind = "file"
            size = entry.stat(follow_symlinks=False).st_size
        else:
            kind = "other"
        return EntryInfo(
            name=entry.name,
            path=self._resolver.relative(parent / entry.name),
            kind=kind,
            size=size,
        )
