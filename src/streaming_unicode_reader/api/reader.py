"""High-level reader API.

Level 1 functions for callers that do not drive the buffer manager
themselves:

* ``decode`` / ``decode_file``: whole stream to ``str``
* ``iter_text``: stream to ``str`` chunks with bounded memory
* ``inspect``: decode and summarize, reporting errors instead of raising
* ``open_reader``: configured ``BufferManager`` for incremental use
"""

import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Union

from streaming_unicode_reader.character import BufferManager, StreamDecodeError
from streaming_unicode_reader.shared import (
    DiagnosticEntry,
    ReaderConfig,
    get_logger,
)

MS_PER_SECOND = 1000
DEFAULT_BATCH = 4096


@dataclass
class DecodeSummary:
    """Outcome of decoding a whole stream with :func:`inspect`.

    Attributes:
        success: Whether the stream decoded without error
        encoding: Detected encoding name, ``"unknown"`` if detection failed
        bom_length: Number of byte-order-mark bytes skipped
        scalar_count: Scalars decoded, sentinel excluded
        bytes_consumed: Raw bytes consumed, marker included
        processing_time_ms: Wall time spent decoding
        metrics: Buffer manager counters
        error: Error report when ``success`` is false
        diagnostics: Diagnostic entries produced while decoding
    """
    success: bool
    encoding: str
    bom_length: int
    scalar_count: int
    bytes_consumed: int
    processing_time_ms: float
    metrics: Dict[str, Any] = field(default_factory=dict)
    error: Optional[Dict[str, Any]] = None
    diagnostics: List[DiagnosticEntry] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "encoding": self.encoding,
            "bom_length": self.bom_length,
            "scalar_count": self.scalar_count,
            "bytes_consumed": self.bytes_consumed,
            "processing_time_ms": round(self.processing_time_ms, 3),
            "metrics": self.metrics,
            "error": self.error,
            "diagnostics": [d.to_dict() for d in self.diagnostics],
        }


def open_reader(source: Any, config: Optional[ReaderConfig] = None) -> BufferManager:
    """Create a buffer manager over ``source``.

    Args:
        source: Bytes, ``str``, ``Path``, binary file object, iterable of
            chunks, callable ``read(size)`` or a ``ByteSource``
        config: Reader configuration

    Returns:
        BufferManager ready for ``ensure`` calls; use it as a context manager
        to release sources it opened
    """
    return BufferManager(source, config=config)


def iter_text(
    source: Any,
    batch: int = DEFAULT_BATCH,
    config: Optional[ReaderConfig] = None,
) -> Iterator[str]:
    """Yield decoded text in chunks of at least ``batch`` characters.

    The final chunk may be shorter. Errors are raised when they are reached,
    after the chunks before them have been yielded.
    """
    with open_reader(source, config) as reader:
        yield from reader.iter_chunks(batch)


def decode(source: Any, config: Optional[ReaderConfig] = None) -> str:
    """Decode a whole stream to text.

    Raises:
        DecoderError: If the stream is not valid in its detected encoding
        ReaderError: If the byte source fails

    Examples:
        >>> decode(b"\\xef\\xbb\\xbfAB")
        'AB'
        >>> decode(b"\\xff\\xfeA\\x00")
        'A'
    """
    return "".join(iter_text(source, config=config))


def decode_file(path: Union[str, Path], config: Optional[ReaderConfig] = None) -> str:
    """Decode a file to text, see :func:`decode`."""
    return decode(Path(path), config=config)


def inspect(source: Any, config: Optional[ReaderConfig] = None) -> DecodeSummary:
    """Decode ``source`` completely and summarize the result.

    Decode and reader errors are reported in the summary rather than raised.
    """
    start_time = time.perf_counter()
    config = config or ReaderConfig()
    logger = get_logger(__name__, config.correlation_id, "inspect")
    diagnostics: List[DiagnosticEntry] = []
    error: Optional[StreamDecodeError] = None
    scalar_count = 0

    with open_reader(source, config) as reader:
        try:
            for chunk in reader.iter_chunks():
                scalar_count += len(chunk)
        except StreamDecodeError as e:
            error = e
            diagnostics.append(e.to_diagnostic(config.correlation_id))

        summary = DecodeSummary(
            success=error is None,
            encoding=reader.encoding.value,
            bom_length=reader.bom_length,
            scalar_count=scalar_count,
            bytes_consumed=reader.offset,
            processing_time_ms=(time.perf_counter() - start_time) * MS_PER_SECOND,
            metrics=reader.metrics.to_dict(),
            error=error.to_dict() if error else None,
            diagnostics=diagnostics,
        )

    logger.info(
        "Inspected stream",
        extra={
            "success": summary.success,
            "encoding": summary.encoding,
            "scalar_count": summary.scalar_count,
        },
    )
    return summary


__all__ = [
    "DecodeSummary",
    "decode",
    "decode_file",
    "inspect",
    "iter_text",
    "open_reader",
]
