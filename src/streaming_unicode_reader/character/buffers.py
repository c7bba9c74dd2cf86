"""Bounded byte buffers used by the buffer manager.

Both buffers are a ``bytearray`` with two cursors: ``pointer`` (first
unconsumed byte) and ``length`` (one past the last valid byte). Consumed bytes
in front of ``pointer`` are reclaimed by compaction, which shifts the live
region back to index 0.
"""

from typing import Optional

from .errors import ReaderError
from .sources import ByteSource


class RawByteBuffer:
    """Encoded bytes pulled from the byte source but not yet decoded."""

    def __init__(self, capacity: int) -> None:
        if capacity <= 0:
            raise ValueError("capacity must be > 0")
        self.buffer = bytearray(capacity)
        self.capacity = capacity
        self.pointer = 0
        self.length = 0
        self.eof = False

    @property
    def available(self) -> int:
        """Number of unconsumed bytes."""
        return self.length - self.pointer

    @property
    def is_empty(self) -> bool:
        return self.pointer == self.length

    @property
    def is_full(self) -> bool:
        return self.pointer == 0 and self.length == self.capacity

    def unread_bytes(self, limit: Optional[int] = None) -> memoryview:
        """Read-only view of (at most ``limit``) unconsumed bytes."""
        end = self.length if limit is None else min(self.length, self.pointer + limit)
        return memoryview(self.buffer)[self.pointer:end].toreadonly()

    def consume(self, count: int) -> None:
        if count < 0 or count > self.available:
            raise ValueError(
                f"Cannot consume {count} bytes with {self.available} available"
            )
        self.pointer += count

    def compact(self) -> bool:
        """Move unconsumed bytes to the front of the buffer.

        Returns:
            True if any space was reclaimed
        """
        if self.pointer == 0:
            return False
        remaining = self.length - self.pointer
        if remaining:
            self.buffer[0:remaining] = self.buffer[self.pointer:self.length]
        self.pointer = 0
        self.length = remaining
        return True

    def refill(self, source: ByteSource, offset: int) -> int:
        """Pull bytes from ``source`` into the free tail of the buffer.

        Does nothing when the buffer is already full or the source is exhausted.
        A read of zero bytes marks the end of the stream.

        Args:
            source: Byte source to read from
            offset: Current stream offset, reported if the source fails

        Returns:
            Number of bytes produced by the source

        Raises:
            ReaderError: If the source raises or misreports the bytes written
        """
        if self.is_full or self.eof:
            return 0

        self.compact()

        free = self.capacity - self.length
        with memoryview(self.buffer) as view:
            destination = view[self.length:self.capacity]
            try:
                produced = source.read_into(destination)
            except Exception as e:
                raise ReaderError("input error", offset) from e
            finally:
                destination.release()

        if not isinstance(produced, int) or produced < 0 or produced > free:
            raise ReaderError(
                f"input error: source reported {produced!r} bytes for {free} free",
                offset,
            )

        self.length += produced
        if not produced:
            self.eof = True
        return produced


class TextOutputBuffer:
    """Decoded text held as UTF-8, counted in scalars as well as bytes.

    ``unread`` is the number of scalars between ``pointer`` and ``length``.
    The buffer grows only when a write would not fit even after compaction,
    which happens when the caller keeps more unread scalars buffered than the
    configured capacity holds.
    """

    def __init__(self, capacity: int) -> None:
        if capacity <= 0:
            raise ValueError("capacity must be > 0")
        self.buffer = bytearray(capacity)
        self.capacity = capacity
        self.pointer = 0
        self.length = 0
        self.unread = 0
        self.growths = 0

    @property
    def free(self) -> int:
        return self.capacity - self.length

    def compact(self) -> bool:
        """Shift the unread region to offset 0.

        Returns:
            True if any space was reclaimed
        """
        if self.pointer == 0:
            return False
        remaining = self.length - self.pointer
        if remaining:
            self.buffer[0:remaining] = self.buffer[self.pointer:self.length]
        self.pointer = 0
        self.length = remaining
        return True

    def append(self, encoded: bytes) -> None:
        """Append one scalar already encoded as UTF-8."""
        size = len(encoded)
        if size > self.free:
            self.compact()
            if size > self.free:
                self._grow(self.length + size)
        self.buffer[self.length:self.length + size] = encoded
        self.length += size
        self.unread += 1

    def _grow(self, needed: int) -> None:
        # A fresh bytearray keeps views handed out earlier valid.
        capacity = max(needed, self.capacity * 2)
        grown = bytearray(capacity)
        grown[:self.length] = self.buffer[:self.length]
        self.buffer = grown
        self.capacity = capacity
        self.growths += 1

    def view(self) -> memoryview:
        """Read-only view of the unread region."""
        return memoryview(self.buffer)[self.pointer:self.length].toreadonly()

    def scalar_width(self, position: int) -> int:
        """Byte width of the UTF-8 scalar starting at ``position``."""
        octet = self.buffer[position]
        if octet < 0x80:
            return 1
        if octet < 0xE0:
            return 2
        if octet < 0xF0:
            return 3
        return 4

    def span(self, count: int) -> int:
        """Number of bytes taken by the next ``count`` unread scalars."""
        if count < 0:
            raise IndexError(f"Scalar count must be >= 0, got {count}")
        if count > self.unread:
            raise IndexError(
                f"Requested {count} scalars but only {self.unread} are buffered"
            )
        position = self.pointer
        for _ in range(count):
            position += self.scalar_width(position)
        return position - self.pointer

    def consume(self, count: int) -> None:
        """Mark the next ``count`` unread scalars as consumed."""
        self.pointer += self.span(count)
        self.unread -= count
