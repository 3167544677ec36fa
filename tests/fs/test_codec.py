"""Tests for text/binary content handling."""

import pytest

from filestore.core.errors import InvalidArgument
from filestore.fs.codec import (
    FileContent,
    decode_text,
    detect_newline,
    encode,
    ends_with_newline,
    looks_binary,
    split_lines,
)


class TestEncode:
    """Test encoding of logical content to stored bytes."""

    def test_text_is_utf8(self) -> None:
        """Test that text is stored as UTF-8 with multi-byte sequences intact."""
        assert encode("héllo 🌍") == "héllo 🌍".encode("utf-8")

    def test_line_endings_untouched(self) -> None:
        """Test that CRLF and lone CR survive encoding unchanged."""
        assert encode("a\r\nb\rc\n") == b"a\r\nb\rc\n"

    def test_bom_preserved(self) -> None:
        """Test that a leading BOM is kept, not stripped."""
        assert encode("\ufeffdata").startswith(b"\xef\xbb\xbf")

    @pytest.mark.parametrize(
        "payload", [b"\x00\xff\x10", bytearray(b"\x00\xff"), memoryview(b"\x89PNG")]
    )
    def test_bytes_like_pass_through(self, payload: bytes) -> None:
        """Test that bytes-like payloads are stored byte-for-byte."""
        assert encode(payload) == bytes(payload)

    def test_lone_surrogate_rejected(self) -> None:
        """Test that text that cannot be encoded is an InvalidArgument."""
        with pytest.raises(InvalidArgument):
            encode("bad \ud800 surrogate", path="x.txt")

    def test_unsupported_type_rejected(self) -> None:
        """Test that non-text, non-bytes content is rejected."""
        with pytest.raises(InvalidArgument, match="int"):
            encode(42)  # type: ignore[arg-type]


class TestDecode:
    """Test decoding and binary detection."""

    def test_decode_round_trip(self) -> None:
        """Test that decode_text returns the original string exactly."""
        text = "line one\r\nzwei · 🌍\n"
        assert decode_text(text.encode("utf-8")) == text

    def test_decode_binary_rejected(self) -> None:
        """Test that undecodable bytes cannot be treated as text."""
        with pytest.raises(InvalidArgument, match="binary"):
            decode_text(b"\xff\xfe\x00garbage", path="blob.bin")

    def test_looks_binary(self) -> None:
        """Test NUL bytes and invalid UTF-8 mark a payload as binary."""
        assert looks_binary(b"abc\x00def")
        assert looks_binary(b"\xc3\x28")
        assert not looks_binary("plain ünïcode".encode("utf-8"))
        assert not looks_binary(b"")


class TestLines:
    """Test newline detection and line splitting."""

    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ("a\nb\r\n", "\n"),
            ("a\r\nb\n", "\r\n"),
            ("a\rb", "\r"),
            ("no newline", "\n"),
            ("", "\n"),
        ],
    )
    def test_detect_newline(self, text: str, expected: str) -> None:
        """Test that the first terminator found wins."""
        assert detect_newline(text) == expected

    def test_split_lines_keeps_terminators(self) -> None:
        """Test that each line keeps its own terminator."""
        assert split_lines("a\r\nb\nc\rd") == ["a\r\n", "b\n", "c\r", "d"]

    def test_split_lines_empty_and_blank(self) -> None:
        """Test empty text has no lines and blank lines are kept."""
        assert split_lines("") == []
        assert split_lines("\n\n") == ["\n", "\n"]

    def test_split_lines_ignores_other_separators(self) -> None:
        """Test that form feed and Unicode separators do not split lines."""
        assert split_lines("a\x0cb\u2028c\n") == ["a\x0cb\u2028c\n"]

    def test_ends_with_newline(self) -> None:
        """Test recognition of trailing terminators."""
        assert ends_with_newline("x\n")
        assert ends_with_newline("x\r")
        assert not ends_with_newline("x")


class TestFileContent:
    """Test the FileContent result model."""

    def test_text_content(self) -> None:
        """Test text payloads expose decoded text and size in bytes."""
        content = FileContent.from_bytes("greeting.txt", "héllo 🌍".encode("utf-8"))

        assert content.is_binary is False
        assert content.text == "héllo 🌍"
        assert content.size == len("héllo 🌍".encode("utf-8"))
        assert content.encoding == "utf-8"

    def test_binary_content(self) -> None:
        """Test binary payloads have no text and no encoding."""
        content = FileContent.from_bytes("image.png", b"\x89PNG\x00\x01")

        assert content.is_binary is True
        assert content.text is None
        assert content.encoding is None
        assert content.data == b"\x89PNG\x00\x01"

    def test_serializes_size(self) -> None:
        """Test that the computed size is part of the serialized model."""
        dumped = FileContent.from_bytes("a.txt", b"abc").model_dump(exclude={"data"})

        assert dumped["size"] == 3
        assert dumped["line_range"] is None
