"""Byte sources feeding the raw buffer.

A byte source is any object with ``read_into(destination) -> int``. It writes
up to ``len(destination)`` bytes into the writable memoryview and returns how
many it wrote. Returning 0 signals the end of the stream; raising signals a
transport failure. Sources may block.

The adapters here turn common Python inputs into byte sources.
"""

import io
from pathlib import Path
from typing import (
    Any,
    BinaryIO,
    Callable,
    Iterable,
    Iterator,
    Optional,
    Protocol,
    Union,
    runtime_checkable,
)


@runtime_checkable
class ByteSource(Protocol):
    """Protocol implemented by everything the raw buffer can read from."""

    def read_into(self, destination: memoryview) -> int:
        ...


class BytesSource:
    """Serves an in-memory byte string."""

    def __init__(self, data: Union[bytes, bytearray, memoryview]) -> None:
        self._data = bytes(data)
        self._position = 0

    def read_into(self, destination: memoryview) -> int:
        chunk = self._data[self._position:self._position + len(destination)]
        size = len(chunk)
        destination[:size] = chunk
        self._position += size
        return size


class FileSource:
    """Reads from a binary file object, preferring ``readinto``.

    Args:
        fileobj: Binary file-like object
        owns: Close ``fileobj`` when the source is closed
    """

    def __init__(self, fileobj: BinaryIO, owns: bool = False) -> None:
        if isinstance(fileobj, io.TextIOBase):
            raise TypeError("FileSource requires a binary file object, got text mode")
        self._file = fileobj
        self._owns = owns
        self._readinto = getattr(fileobj, "readinto", None)

    def read_into(self, destination: memoryview) -> int:
        if self._readinto is not None:
            produced = self._readinto(destination)
            if produced is None:
                raise BlockingIOError("non-blocking file object has no data ready")
            return produced
        chunk = self._file.read(len(destination))
        if isinstance(chunk, str):
            raise TypeError("File object returned text instead of bytes")
        size = len(chunk)
        destination[:size] = chunk
        return size

    def close(self) -> None:
        if self._owns:
            self._file.close()


class IterableSource:
    """Serves bytes from an iterable of chunks, such as a generator.

    Chunks larger than the space offered are split across calls. Empty chunks
    are skipped rather than taken as end of stream.
    """

    def __init__(self, chunks: Iterable[bytes]) -> None:
        self._chunks: Iterator[bytes] = iter(chunks)
        self._pending = b""
        self._exhausted = False

    def read_into(self, destination: memoryview) -> int:
        while not self._pending and not self._exhausted:
            try:
                chunk = next(self._chunks)
            except StopIteration:
                self._exhausted = True
                break
            if not isinstance(chunk, (bytes, bytearray, memoryview)):
                raise TypeError(
                    f"Chunk iterables must yield bytes, got {type(chunk).__name__}"
                )
            self._pending = bytes(chunk)

        size = min(len(self._pending), len(destination))
        destination[:size] = self._pending[:size]
        self._pending = self._pending[size:]
        return size


class CallableSource:
    """Adapts a ``read(size) -> bytes`` function."""

    def __init__(self, read: Callable[[int], bytes]) -> None:
        self._read = read

    def read_into(self, destination: memoryview) -> int:
        chunk = self._read(len(destination))
        if chunk is None:
            return 0
        size = len(chunk)
        if size > len(destination):
            raise ValueError(
                f"read({len(destination)}) returned {size} bytes"
            )
        destination[:size] = chunk
        return size


def make_source(obj: Any) -> ByteSource:
    """Normalize supported inputs into a byte source.

    Args:
        obj: Bytes-like object, ``str`` (encoded as UTF-8), ``pathlib.Path``,
            binary file object, iterable of byte chunks, or a ``ByteSource``

    Returns:
        A byte source. Sources built from a ``Path`` own the opened file and
        must be closed with :func:`close_source`.

    Raises:
        TypeError: If ``obj`` cannot be used as a byte source
    """
    if isinstance(obj, ByteSource):
        return obj
    if isinstance(obj, (bytes, bytearray, memoryview)):
        return BytesSource(obj)
    if isinstance(obj, str):
        return BytesSource(obj.encode("utf-8"))
    if isinstance(obj, Path):
        return FileSource(obj.open("rb"), owns=True)
    if isinstance(obj, io.TextIOBase):
        raise TypeError(
            "Text-mode file objects are not supported; open the file in binary mode"
        )
    if hasattr(obj, "readinto") or hasattr(obj, "read"):
        return FileSource(obj)
    if callable(obj):
        return CallableSource(obj)
    if isinstance(obj, Iterable):
        return IterableSource(obj)
    raise TypeError(f"Unsupported input type: {type(obj).__name__}")


def close_source(source: Optional[ByteSource]) -> None:
    """Close a source if it exposes ``close``."""
    close = getattr(source, "close", None)
    if callable(close):
        close()
