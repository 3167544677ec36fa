"""Content codec: text vs. binary handling for stored entries.

Text is UTF-8 and is preserved exactly: no BOM stripping, no newline
translation, no Unicode normalization. Binary payloads pass through
byte-for-byte and are never transcoded.
"""

import re

from pydantic import BaseModel, ConfigDict, Field, computed_field

from filestore.core.constants import BINARY_SNIFF_BYTES, NEWLINES, TEXT_ENCODING
from filestore.core.errors import InvalidArgument

#: Logical content accepted by write operations.
Content = str | bytes | bytearray | memoryview

_LINE = re.compile(r"[^\r\n]*(?:\r\n|\n|\r)|[^\r\n]+\Z")


def encode(content: Content, *, path: str | None = None) -> bytes:
    """Encode logical content to the bytes that will be stored.

    Args:
        content: Text (encoded as strict UTF-8) or a bytes-like payload
        path: Caller path, used only for error reporting

    Returns:
        Bytes to write

    Raises:
        InvalidArgument: Unsupported type, or text that is not encodable
            (e.g. lone surrogates)
    """
    if isinstance(content, str):
        try:
            return content.encode(TEXT_ENCODING)
        except UnicodeEncodeError as exc:
            raise InvalidArgument(f"Content is not valid {TEXT_ENCODING} text: {exc}", path) from exc
    if isinstance(content, (bytes, bytearray, memoryview)):
        return bytes(content)
    raise InvalidArgument(
        f"Content must be str or bytes, not {type(content).__name__}", path
    )


def decode_text(data: bytes, *, path: str | None = None) -> str:
    """Decode stored bytes as text for operations that need text semantics.

    Raises:
        InvalidArgument: If the bytes are not valid UTF-8
    """
    try:
        return data.decode(TEXT_ENCODING)
    except UnicodeDecodeError as exc:
        raise InvalidArgument(
            "File contains binary content and cannot be edited as text", path
        ) from exc


def looks_binary(data: bytes) -> bool:
    """Guess whether a payload is binary.

    A NUL byte in the leading window, or bytes that do not decode as UTF-8,
    mark the payload as binary.
    """
    if b"\x00" in data[:BINARY_SNIFF_BYTES]:
        return True
    try:
        data.decode(TEXT_ENCODING)
    except UnicodeDecodeError:
        return True
    return False


def detect_newline(text: str) -> str:
    """Return the first line terminator used in ``text`` (default ``\\n``)."""
    for index, char in enumerate(text):
        if char == "\r":
            return "\r\n" if text[index + 1 : index + 2] == "\n" else "\r"
        if char == "\n":
            return "\n"
    return "\n"


def ends_with_newline(text: str) -> bool:
    """Return True if ``text`` ends with any recognised line terminator."""
    return text.endswith(NEWLINES)


def split_lines(text: str) -> list[str]:
    """Split text into lines, keeping each line's own terminator.

    Only ``\\r\\n``, ``\\n`` and ``\\r`` end a line; unlike ``str.splitlines``
    form feeds, ``\\x1c`` and Unicode separators stay inside their line.
    """
    return _LINE.findall(text)


class FileContent(BaseModel):
    """Content of a file returned by ``view``.

    Attributes:
        path: Path relative to the storage root
        data: Exact stored bytes
        is_binary: True if the payload is not UTF-8 text
        encoding: Text encoding, or None for binary payloads
        line_range: 1-based inclusive line span when only part of the file
            was requested, else None
    """

    model_config = ConfigDict(frozen=True)

    path: str
    data: bytes = Field(repr=False)
    is_binary: bool
    encoding: str | None = TEXT_ENCODING
    line_range: tuple[int, int] | None = None

    @computed_field  # type: ignore[prop-decorator]
    @property
    def size(self) -> int:
        """Size of the stored payload in bytes."""
        return len(self.data)

    @property
    def text(self) -> str | None:
        """Decoded text, or None for binary content."""
        if self.is_binary:
            return None
        return self.data.decode(TEXT_ENCODING)

    @classmethod
    def from_bytes(cls, path: str, data: bytes) -> "FileContent":
        """Build a FileContent, inferring text vs. binary from the payload."""
        binary = looks_binary(data)
        return cls(
            path=path,
            data=data,
            is_binary=binary,
            encoding=None if binary else TEXT_ENCODING,
        )
