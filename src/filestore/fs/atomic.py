"""Atomic filesystem mutations using the stage-then-commit pattern.

Content-bearing writes are staged in a sibling temporary file, flushed,
and committed with a single ``os.replace``. Directory deletes are staged by
renaming the tree aside before removing it. Renames use one ``os.replace``
(overwrite) or a no-replace commit (``os.link`` + ``os.unlink`` for files,
``os.rename`` otherwise), and fall back to copy + commit + remove-source
across devices.

Staging artifacts live in the target's own directory, so every commit is a
same-filesystem rename. They are named ``.<name>.<random>.fstmp`` and are
never reported by directory listings (see ``is_staging_artifact``).
"""

import errno
import os
import shutil
import stat
import tempfile
import uuid
from collections.abc import Iterable
from pathlib import Path

from filestore.core.constants import STAGING_PREFIX, STAGING_SUFFIX
from filestore.core.errors import (
    AlreadyExists,
    FileNotFound,
    InvalidArgument,
    IOFailure,
)
from filestore.fs.paths import is_within
from filestore.utils.debug import debug

#: Permission bits given to newly created files.
DEFAULT_FILE_MODE = 0o644

Payload = bytes | Iterable[bytes]


def is_staging_artifact(name: str) -> bool:
    """Return True if a directory entry name is a staging artifact."""
    return name.startswith(STAGING_PREFIX) and name.endswith(STAGING_SUFFIX)


def staging_sibling(target: Path) -> Path:
    """Get a unique staging path next to ``target``.

    Args:
        target: Path the staged entry will eventually replace

    Returns:
        Non-existent path in the same directory as ``target``
    """
    unique_id = uuid.uuid4().hex[:8]
    return target.parent / f"{STAGING_PREFIX}{target.name}.{unique_id}{STAGING_SUFFIX}"


def fsync_directory(path: Path) -> None:
    """Flush directory metadata (entry creation/removal) to disk.

    No-op on platforms that cannot open directories for syncing.
    """
    if os.name != "posix":
        return
    dir_fd = os.open(str(path), os.O_RDONLY)
    try:
        os.fsync(dir_fd)
    finally:
        os.close(dir_fd)


def ensure_parent_dir(path: Path, *, label: str) -> Path | None:
    """Ensure parent directory exists for a path.

    Args:
        path: Path whose parent directory should exist
        label: Caller-facing path used in error reporting

    Returns:
        The topmost directory this call created, or None if the parent
        already existed. Pass it to ``prune_created_dirs`` to undo.

    Raises:
        InvalidArgument: If an existing parent component is not a directory
        IOFailure: If the directory cannot be created
    """
    parent = path.parent
    if parent.is_dir():
        return None

    topmost: Path | None = None
    for ancestor in (parent, *parent.parents):
        if os.path.lexists(ancestor):
            break
        topmost = ancestor

    try:
        parent.mkdir(parents=True, exist_ok=True)
    except (FileExistsError, NotADirectoryError) as exc:
        raise InvalidArgument(f"A parent of '{label}' is not a directory", label) from exc
    except OSError as exc:
        raise IOFailure(label, "mkdir", exc) from exc
    debug(f"Created parent directories up to {topmost}")
    return topmost


def prune_created_dirs(path: Path, topmost: Path | None) -> None:
    """Remove the empty parents of ``path`` up to and including ``topmost``.

    Stops at the first directory that is not empty, e.g. because another
    writer has since put something there.
    """
    if topmost is None:
        return
    current = path.parent
    while True:
        try:
            current.rmdir()
        except OSError as exc:
            debug(f"Keeping parent directory {current}: {exc}")
            return
        if current == topmost:
            return
        current = current.parent


def _discard(staging: Path) -> None:
    """Remove a staging artifact left behind by a failed step."""
    try:
        if staging.is_dir() and not staging.is_symlink():
            shutil.rmtree(staging)
        else:
            staging.unlink(missing_ok=True)
    except OSError as exc:
        debug(f"Could not remove staging artifact {staging}: {exc}")


def atomic_write(
    target: Path,
    payload: Payload,
    *,
    label: str | None = None,
    durable: bool = True,
) -> int:
    """Write ``payload`` to ``target`` so that it appears all at once.

    The payload is written to a staging file in the target's directory,
    flushed (and fsynced when ``durable``), then renamed over the target.
    On any failure the staging file is removed and the target keeps its
    previous state (absent, or its previous complete content).

    Args:
        target: Absolute destination path; its parent must exist
        payload: Complete content, or an iterable of byte chunks for
            streaming large payloads
        label: Caller-facing path used in error reporting
        durable: fsync the staging file and the directory

    Returns:
        Number of bytes written

    Raises:
        IOFailure: If staging or commit fails
    """
    label = label or str(target)

    try:
        mode = stat.S_IMODE(target.stat().st_mode)
    except FileNotFoundError:
        mode = DEFAULT_FILE_MODE
    except OSError as exc:
        raise IOFailure(label, "stage", exc) from exc

    try:
        fd, tmp_name = tempfile.mkstemp(
            prefix=f"{STAGING_PREFIX}{target.name}.",
            suffix=STAGING_SUFFIX,
            dir=str(target.parent),
        )
    except OSError as exc:
        raise IOFailure(label, "stage", exc) from exc
    staging = Path(tmp_name)

    written = 0
    try:
        try:
            with os.fdopen(fd, "wb") as handle:
                chunks = (payload,) if isinstance(payload, bytes) else payload
                for chunk in chunks:
                    handle.write(chunk)
                    written += len(chunk)
                handle.flush()
                if durable:
                    os.fsync(handle.fileno())
            os.chmod(staging, mode)
        except OSError as exc:
            raise IOFailure(label, "stage", exc) from exc
        debug(f"Staged {written} bytes for {label} at {staging.name}")

        try:
            os.replace(staging, target)
        except OSError as exc:
            raise IOFailure(label, "commit", exc) from exc
    except BaseException:
        _discard(staging)
        raise

    debug(f"Committed {staging.name} -> {target}")
    if durable:
        try:
            fsync_directory(target.parent)
        except OSError as exc:
            raise IOFailure(label, "sync", exc) from exc
    return written


def atomic_delete(target: Path, *, label: str | None = None, durable: bool = True) -> None:
    """Remove a file or a directory tree.

    A file disappears with a single unlink. A directory is first renamed to
    a staging sibling, so it vanishes from its parent in one step, and only
    then removed recursively.

    Raises:
        FileNotFound: If ``target`` does not exist
        IOFailure: If removal fails
    """
    label = label or str(target)
    if not os.path.lexists(target):
        raise FileNotFound(label)

    try:
        if target.is_dir() and not target.is_symlink():
            staging = staging_sibling(target)
            os.rename(target, staging)
            debug(f"Staged directory delete {target} -> {staging.name}")
            if durable:
                fsync_directory(target.parent)
            try:
                shutil.rmtree(staging)
            except OSError as exc:
                raise IOFailure(label, "cleanup", exc) from exc
        else:
            os.unlink(target)
            if durable:
                fsync_directory(target.parent)
    except FileNotFoundError as exc:
        raise FileNotFound(label) from exc
    except OSError as exc:
        raise IOFailure(label, "delete", exc) from exc


def _is_real_dir(path: Path) -> bool:
    return path.is_dir() and not path.is_symlink()


def _copy_file(src: Path, dst: Path, *, durable: bool) -> None:
    shutil.copy2(str(src), str(dst), follow_symlinks=False)
    if durable and not dst.is_symlink():
        with dst.open("rb") as handle:
            os.fsync(handle.fileno())


def _commit_no_replace(src: Path, dst: Path) -> None:
    """Move ``src`` to ``dst``, failing with FileExistsError if ``dst`` exists.

    Regular files go through ``os.link`` + ``os.unlink``: the link fails
    atomically when the destination appeared after the caller's check.
    Directories and symlinks use ``os.rename``, which still refuses to
    replace a non-empty directory but otherwise has the check-then-rename
    window documented on ``FileStore``.
    """
    if _is_real_dir(src) or src.is_symlink():
        os.rename(src, dst)
        return
    try:
        os.link(src, dst)
    except OSError as exc:
        # Filesystems without hard links
        if exc.errno not in (errno.EPERM, errno.EMLINK, errno.ENOTSUP, errno.EOPNOTSUPP):
            raise
        os.rename(src, dst)
        return
    try:
        os.unlink(src)
    except OSError:
        os.unlink(dst)
        raise


def _move_across_devices(
    src: Path,
    dst: Path,
    *,
    overwrite: bool,
    durable: bool,
    src_label: str,
    dst_label: str,
) -> None:
    """Copy to a staging sibling of ``dst``, commit, then remove ``src``.

    The source is only removed after the destination is committed, so a
    failure at any earlier point leaves both paths as they were.
    """
    staging = staging_sibling(dst)
    try:
        if _is_real_dir(src):
            shutil.copytree(str(src), str(staging), symlinks=True)
        else:
            _copy_file(src, staging, durable=durable)
        if overwrite:
            os.replace(staging, dst)
        else:
            _commit_no_replace(staging, dst)
    except FileExistsError as exc:
        _discard(staging)
        raise AlreadyExists(dst_label) from exc
    except OSError as exc:
        _discard(staging)
        raise IOFailure(dst_label, "copy", exc) from exc
    debug(f"Cross-device move committed: {src} -> {dst}")

    try:
        if _is_real_dir(src):
            shutil.rmtree(src)
        else:
            src.unlink()
    except OSError as exc:
        raise IOFailure(src_label, "remove-source", exc) from exc


def atomic_rename(
    src: Path,
    dst: Path,
    *,
    overwrite: bool = False,
    src_label: str | None = None,
    dst_label: str | None = None,
    durable: bool = True,
) -> None:
    """Move ``src`` to ``dst`` as a single visible step.

    Both paths name entries, not what they point to: a symlink is moved (or
    replaced) as the link itself.

    Args:
        src: Existing absolute source path
        dst: Absolute destination path
        overwrite: Replace an existing destination file
        src_label: Caller-facing source path used in error reporting
        dst_label: Caller-facing destination path used in error reporting
        durable: fsync directories (and copies, across devices)

    Raises:
        FileNotFound: If the source does not exist
        AlreadyExists: If the destination exists and ``overwrite`` is False
        InvalidArgument: Moving a directory into itself, onto itself, or
            overwriting a directory
        IOFailure: If the move fails
    """
    src_label = src_label or str(src)
    dst_label = dst_label or str(dst)

    if not os.path.lexists(src):
        raise FileNotFound(src_label)
    if src == dst:
        raise InvalidArgument("Source and destination are the same entry", dst_label)
    if _is_real_dir(src) and is_within(dst, src):
        raise InvalidArgument(
            f"Cannot move directory '{src_label}' inside itself", dst_label
        )
    if os.path.lexists(dst):
        if not overwrite:
            raise AlreadyExists(dst_label)
        if _is_real_dir(dst):
            raise InvalidArgument("Cannot overwrite a directory", dst_label)
        if _is_real_dir(src):
            raise InvalidArgument("Cannot overwrite a file with a directory", dst_label)

    created = ensure_parent_dir(dst, label=dst_label)

    try:
        try:
            if overwrite:
                os.replace(src, dst)
            else:
                _commit_no_replace(src, dst)
            debug(f"Direct rename: {src} -> {dst}")
        except FileNotFoundError as exc:
            raise FileNotFound(src_label) from exc
        except FileExistsError as exc:
            raise AlreadyExists(dst_label) from exc
        except OSError as exc:
            if exc.errno != errno.EXDEV:
                raise IOFailure(dst_label, "rename", exc) from exc
            _move_across_devices(
                src,
                dst,
                overwrite=overwrite,
                durable=durable,
                src_label=src_label,
                dst_label=dst_label,
            )
    except (FileNotFound, AlreadyExists, IOFailure):
        if not os.path.lexists(dst):
            prune_created_dirs(dst, created)
        raise

    if durable:
        try:
            fsync_directory(dst.parent)
            if src.parent != dst.parent:
                fsync_directory(src.parent)
        except OSError as exc:
            raise IOFailure(dst_label, "sync", exc) from exc
