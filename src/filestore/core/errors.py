"""Typed exceptions for the file-storage engine.

Every failure the engine can report is a subclass of ``FileStoreError`` so
callers (agent tools, the CLI) can catch the whole family at once and still
branch on the concrete type. Each exception carries the caller-supplied path
and offers ``to_dict()`` for tool/API responses.
"""

from typing import Any


class FileStoreError(Exception):
    """Base exception for all file-storage engine errors.

    Attributes:
        path: Caller-supplied path the failure relates to (may be None)
    """

    #: Stable machine-readable error code used in ``to_dict()`` payloads.
    code = "filestore_error"

    def __init__(self, message: str, path: str | None = None) -> None:
        self.path = path
        self.message = message
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for tool/API responses.

        Returns:
            Dictionary representation suitable for JSON responses
        """
        result: dict[str, Any] = {"error": self.code, "message": self.message}
        if self.path is not None:
            result["path"] = self.path
        return result

    def __repr__(self) -> str:
        return f"{type(self).__name__}(path={self.path!r}, message={self.message!r})"


class PathTraversal(FileStoreError):
    """Raised when a path resolves (lexically or via symlinks) outside the root."""

    code = "path_traversal"

    def __init__(self, path: str, resolved: str | None = None) -> None:
        self.resolved = resolved
        message = f"Path '{path}' resolves outside the storage root"
        super().__init__(message, path)


class InvalidPath(FileStoreError):
    """Raised when a path is malformed or names something it may not (the root)."""

    code = "invalid_path"

    def __init__(self, path: str | None, reason: str) -> None:
        self.reason = reason
        super().__init__(f"Invalid path {path!r}: {reason}", path)


class InvalidArgument(FileStoreError):
    """Raised for bad operation arguments: oversize or undecodable content, etc."""

    code = "invalid_argument"

    def __init__(self, reason: str, path: str | None = None) -> None:
        self.reason = reason
        super().__init__(reason, path)


class FileNotFound(FileStoreError):
    """Raised when the target entry does not exist under the root."""

    code = "file_not_found"

    def __init__(self, path: str) -> None:
        super().__init__(f"No such file or directory: {path}", path)


class AlreadyExists(FileStoreError):
    """Raised when creating or renaming onto an entry that already exists."""

    code = "already_exists"

    def __init__(self, path: str) -> None:
        super().__init__(f"Entry already exists: {path}", path)


class AmbiguousMatch(FileStoreError):
    """Raised when ``str_replace`` does not find exactly one occurrence.

    Attributes:
        occurrences: How many times the search text was found (0 or >1)
    """

    code = "ambiguous_match"

    def __init__(self, path: str, occurrences: int) -> None:
        self.occurrences = occurrences
        if occurrences == 0:
            message = f"Text to replace was not found in {path}"
        else:
            message = (
                f"Text to replace appears {occurrences} times in {path}; "
                "it must match exactly once"
            )
        super().__init__(message, path)

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        result["occurrences"] = self.occurrences
        return result

    def __repr__(self) -> str:
        return f"AmbiguousMatch(path={self.path!r}, occurrences={self.occurrences})"


class OutOfRange(FileStoreError):
    """Raised when a line number or line range falls outside the file.

    Attributes:
        line_number: Offending line number supplied by the caller
        line_count: Number of lines in the file
    """

    code = "out_of_range"

    def __init__(self, path: str, line_number: int, line_count: int) -> None:
        self.line_number = line_number
        self.line_count = line_count
        message = (
            f"Line {line_number} is out of range for {path} "
            f"(valid: 0..{line_count})"
        )
        super().__init__(message, path)

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        result["line_number"] = self.line_number
        result["line_count"] = self.line_count
        return result

    def __repr__(self) -> str:
        return (
            f"OutOfRange(path={self.path!r}, line_number={self.line_number}, "
            f"line_count={self.line_count})"
        )


class IOFailure(FileStoreError):
    """Raised when the storage medium fails (disk full, permission denied, ...).

    Attributes:
        operation: Engine step that failed (e.g. 'stage', 'commit', 'delete')
        errno: errno of the underlying OSError, if any
    """

    code = "io_failure"

    def __init__(
        self,
        path: str | None,
        operation: str,
        cause: OSError | None = None,
    ) -> None:
        self.operation = operation
        self.errno = cause.errno if cause is not None else None
        detail = cause.strerror or str(cause) if cause is not None else "unknown error"
        super().__init__(f"I/O failure during {operation} of {path}: {detail}", path)

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        result["operation"] = self.operation
        if self.errno is not None:
            result["errno"] = self.errno
        return result

    def __repr__(self) -> str:
        return (
            f"IOFailure(path={self.path!r}, operation={self.operation!r}, "
            f"errno={self.errno})"
        )
