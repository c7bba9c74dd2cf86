"""Tests for the raw and output buffers."""

from unittest.mock import Mock

import pytest

from streaming_unicode_reader.character.buffers import RawByteBuffer, TextOutputBuffer
from streaming_unicode_reader.character.errors import ReaderError
from streaming_unicode_reader.character.sources import BytesSource


class TestRawByteBuffer:
    """Test refilling, consuming and compacting raw bytes."""

    def test_initial_state(self):
        """Test a new buffer is empty and not at EOF."""
        raw = RawByteBuffer(8)

        assert raw.capacity == 8
        assert raw.available == 0
        assert raw.is_empty
        assert not raw.eof

    def test_invalid_capacity(self):
        """Test zero capacity is rejected."""
        with pytest.raises(ValueError, match="capacity must be > 0"):
            RawByteBuffer(0)

    def test_refill_compact_and_eof(self):
        """Test refills fill free space, compact consumed bytes and detect EOF."""
        # Arrange
        raw = RawByteBuffer(4)
        source = BytesSource(b"abcdef")

        # Act & Assert
        assert raw.refill(source, 0) == 4
        assert raw.is_full
        assert raw.refill(source, 0) == 0
        assert not raw.eof

        raw.consume(2)
        assert raw.refill(source, 2) == 2
        assert raw.pointer == 0
        assert bytes(raw.unread_bytes()) == b"cdef"

        raw.consume(4)
        assert raw.refill(source, 6) == 0
        assert raw.eof
        assert raw.refill(source, 6) == 0

    def test_unread_bytes_limit_and_read_only(self):
        """Test the unread view honours its limit and cannot be written."""
        raw = RawByteBuffer(8)
        raw.refill(BytesSource(b"xyz"), 0)

        view = raw.unread_bytes(2)

        assert bytes(view) == b"xy"
        assert view.readonly

    def test_consume_too_much(self):
        """Test consuming more than is available is rejected."""
        raw = RawByteBuffer(8)
        raw.refill(BytesSource(b"ab"), 0)

        with pytest.raises(ValueError, match="Cannot consume 3 bytes"):
            raw.consume(3)

    def test_compact_without_consumed_bytes(self):
        """Test compaction is a no-op when nothing was consumed."""
        raw = RawByteBuffer(8)

        assert raw.compact() is False

    def test_source_exception_becomes_reader_error(self):
        """Test a failing source raises ReaderError at the given offset."""
        # Arrange
        raw = RawByteBuffer(8)
        source = Mock()
        source.read_into.side_effect = OSError("connection reset")

        # Act
        with pytest.raises(ReaderError, match="input error at offset 42") as exc_info:
            raw.refill(source, 42)

        # Assert
        assert exc_info.value.offset == 42
        assert isinstance(exc_info.value.__cause__, OSError)
        assert not raw.eof

    @pytest.mark.parametrize("produced", [9, -1, None])
    def test_source_misreporting_size(self, produced):
        """Test impossible byte counts from a source are reader errors."""
        raw = RawByteBuffer(8)
        source = Mock()
        source.read_into.return_value = produced

        with pytest.raises(ReaderError, match="input error"):
            raw.refill(source, 0)

    def test_source_receives_free_tail(self):
        """Test the source is offered exactly the free space of the buffer."""
        # Arrange
        raw = RawByteBuffer(8)
        raw.refill(BytesSource(b"abc"), 0)
        sizes = []

        class Recorder:
            def read_into(self, destination):
                sizes.append(len(destination))
                return 0

        # Act
        raw.refill(Recorder(), 3)

        # Assert
        assert sizes == [5]


class TestTextOutputBuffer:
    """Test the decoded UTF-8 buffer."""

    def test_append_counts_scalars(self):
        """Test unread counts scalars, not bytes."""
        output = TextOutputBuffer(16)

        output.append("é".encode("utf-8"))
        output.append(b"a")

        assert output.unread == 2
        assert output.length == 3
        assert bytes(output.view()) == "éa".encode("utf-8")

    def test_span_and_consume(self):
        """Test span measures scalars and consume advances by them."""
        # Arrange
        output = TextOutputBuffer(16)
        for char in "a€😀":
            output.append(char.encode("utf-8"))

        # Act & Assert
        assert output.span(0) == 0
        assert output.span(2) == 4
        assert output.span(3) == 8

        output.consume(2)
        assert output.unread == 1
        assert bytes(output.view()) == "😀".encode("utf-8")

    def test_span_beyond_unread(self):
        """Test asking for more scalars than are buffered is an IndexError."""
        output = TextOutputBuffer(4)
        output.append(b"a")

        with pytest.raises(IndexError, match="only 1 are buffered"):
            output.span(2)

    def test_negative_count_leaves_state_alone(self):
        """Test negative counts are rejected before anything moves."""
        output = TextOutputBuffer(4)
        output.append(b"a")

        with pytest.raises(IndexError, match="must be >= 0"):
            output.consume(-1)

        assert output.pointer == 0
        assert output.unread == 1

    def test_append_compacts_before_growing(self):
        """Test consumed space is reclaimed before the buffer grows."""
        # Arrange
        output = TextOutputBuffer(4)
        for char in b"abcd":
            output.append(bytes((char,)))
        output.consume(3)

        # Act
        output.append(b"e")

        # Assert
        assert output.growths == 0
        assert output.pointer == 0
        assert bytes(output.view()) == b"de"

    def test_grows_when_unread_exceeds_capacity(self):
        """Test the buffer grows when unread text does not fit."""
        # Arrange
        output = TextOutputBuffer(4)
        view = None

        # Act
        for index in range(3):
            output.append("€".encode("utf-8"))
            if index == 0:
                view = output.view()

        # Assert
        assert output.growths >= 1
        assert output.capacity >= 9
        assert output.unread == 3
        assert bytes(output.view()) == "€€€".encode("utf-8")
        assert bytes(view) == "€".encode("utf-8")

    def test_scalar_width(self):
        """Test widths are read from the leading byte."""
        output = TextOutputBuffer(16)
        output.append("a€😀é".encode("utf-8"))

        assert [output.scalar_width(p) for p in (0, 1, 4, 8)] == [1, 3, 4, 2]
