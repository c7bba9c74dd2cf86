"""Exceptions raised while reading and decoding a byte stream.

All errors are fatal for the stream that raised them. Each carries the stream
offset (raw bytes consumed before the failing position) and, where it makes
sense, the offending byte or code point.
"""

from enum import Enum
from typing import Any, Dict, Optional

from streaming_unicode_reader.shared.result import DiagnosticEntry, DiagnosticSeverity


class DecoderErrorKind(Enum):
    """Reasons a byte sequence is rejected, with their report messages."""

    INVALID_LEADING_OCTET = "invalid leading octet"
    INVALID_TRAILING_OCTET = "invalid trailing octet"
    INVALID_SEQUENCE_LENGTH = "invalid sequence length"
    INVALID_CODE_POINT = "invalid code point"
    INCOMPLETE_SEQUENCE = "incomplete sequence"
    INCOMPLETE_CHARACTER = "incomplete character"
    INCOMPLETE_SURROGATE_PAIR = "incomplete surrogate pair"
    UNEXPECTED_LOW_SURROGATE = "unexpected low surrogate"
    EXPECTED_LOW_SURROGATE = "expected low surrogate"
    DISALLOWED_CHARACTER = "disallowed control character"


class StreamDecodeError(Exception):
    """Base class for fatal stream errors."""

    kind = "StreamDecodeError"
    severity = DiagnosticSeverity.ERROR

    def __init__(self, message: str, offset: int, value: Optional[int] = None) -> None:
        super().__init__(message)
        self.message = message
        self.offset = offset
        self.value = value

    @property
    def reason(self) -> Optional[DecoderErrorKind]:
        return None

    def __str__(self) -> str:
        text = f"{self.message} at offset {self.offset}"
        if self.value is not None:
            text += f" (value 0x{self.value:02X})"
        return text

    def to_dict(self) -> Dict[str, Any]:
        """Report shape used by the CLI and ``inspect``."""
        return {
            "kind": self.kind,
            "reason": self.reason.name if self.reason else None,
            "message": self.message,
            "offset": self.offset,
            "value": self.value,
        }

    def to_diagnostic(self, correlation_id: Optional[str] = None) -> DiagnosticEntry:
        details: Dict[str, Any] = {"kind": self.kind}
        if self.value is not None:
            details["value"] = self.value
        if self.reason is not None:
            details["reason"] = self.reason.name
        return DiagnosticEntry(
            severity=self.severity,
            message=self.message,
            component="reader",
            position={"offset": self.offset},
            details=details,
            correlation_id=correlation_id,
        )


class ReaderError(StreamDecodeError):
    """The byte source reported a transport failure."""

    kind = "ReaderError"
    severity = DiagnosticSeverity.CRITICAL


class DecoderError(StreamDecodeError):
    """The byte stream is not valid text in the detected encoding."""

    kind = "DecoderError"

    def __init__(
        self, reason: DecoderErrorKind, offset: int, value: Optional[int] = None
    ) -> None:
        super().__init__(reason.value, offset, value)
        self._reason = reason

    @property
    def reason(self) -> DecoderErrorKind:
        return self._reason
