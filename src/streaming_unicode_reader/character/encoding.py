"""Byte-order-mark based encoding detection.

Detection runs exactly once per stream, before the first scalar is decoded.
Only three markers are recognized; without one the stream is taken to be
UTF-8 and nothing is consumed.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Callable, ClassVar, List, Tuple

from .buffers import RawByteBuffer

# Bytes needed to tell every recognized marker apart
DETECTION_WINDOW = 3

BOM_UTF8 = b"\xef\xbb\xbf"
BOM_UTF16_LE = b"\xff\xfe"
BOM_UTF16_BE = b"\xfe\xff"


class Encoding(Enum):
    """Wire encodings understood by the decoder."""

    UNKNOWN = "unknown"
    UTF8 = "utf-8"
    UTF16_LE = "utf-16-le"
    UTF16_BE = "utf-16-be"


@dataclass(frozen=True)
class DetectionResult:
    """Outcome of encoding detection.

    Attributes:
        encoding: Selected encoding (never ``UNKNOWN``)
        bom_length: Number of marker bytes consumed from the stream
    """
    encoding: Encoding
    bom_length: int

    @property
    def has_bom(self) -> bool:
        return self.bom_length > 0


class EncodingDetector:
    """Picks the stream encoding from its leading byte-order marker."""

    # Checked in order; the 2-byte UTF-16 markers win over the UTF-8 one.
    BOM_PATTERNS: ClassVar[List[Tuple[bytes, Encoding]]] = [
        (BOM_UTF16_LE, Encoding.UTF16_LE),
        (BOM_UTF16_BE, Encoding.UTF16_BE),
        (BOM_UTF8, Encoding.UTF8),
    ]

    def match(self, prefix: bytes) -> DetectionResult:
        """Select an encoding for a stream starting with ``prefix``.

        Args:
            prefix: Leading bytes of the stream (may be shorter than a marker)

        Returns:
            DetectionResult, defaulting to UTF-8 with no marker
        """
        for bom_bytes, encoding in self.BOM_PATTERNS:
            if prefix.startswith(bom_bytes):
                return DetectionResult(encoding=encoding, bom_length=len(bom_bytes))
        return DetectionResult(encoding=Encoding.UTF8, bom_length=0)

    def detect(
        self, raw: RawByteBuffer, refill: Callable[[], None]
    ) -> DetectionResult:
        """Detect the encoding of the stream held in ``raw`` and skip its marker.

        Pulls bytes through ``refill`` until the detection window is buffered or
        the source is exhausted, then advances ``raw.pointer`` past the marker.
        The caller is responsible for advancing the stream offset.

        Args:
            raw: Raw buffer positioned at the start of the stream
            refill: Callable that pulls more bytes into ``raw``

        Returns:
            DetectionResult with the encoding and consumed marker length
        """
        while not raw.eof and raw.available < DETECTION_WINDOW:
            refill()

        result = self.match(bytes(raw.unread_bytes(DETECTION_WINDOW)))
        raw.consume(result.bom_length)
        return result
