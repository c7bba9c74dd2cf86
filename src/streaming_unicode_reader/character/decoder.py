"""Scalar-at-a-time decoding of UTF-8 and UTF-16 byte streams.

Each decode step looks at the bytes between ``start`` and ``end`` and returns
one of three outcomes:

* ``Decoded(value, width)``: a scalar value and the number of bytes it used
* ``INCOMPLETE``: the bytes so far are a valid prefix but more are needed
* ``Invalid(reason, offset, value)``: the input can never become valid

Incompleteness is only reported while more input may still arrive. Once the
source is exhausted the same condition is an ``Invalid`` outcome.

UTF-8 follows RFC 3629:

    Char. number range  |        UTF-8 octet sequence
      (hexadecimal)     |              (binary)
   ---------------------+---------------------------------------------
   0000 0000-0000 007F  | 0xxxxxxx
   0000 0080-0000 07FF  | 110xxxxx 10xxxxxx
   0000 0800-0000 FFFF  | 1110xxxx 10xxxxxx 10xxxxxx
   0001 0000-0010 FFFF  | 11110xxx 10xxxxxx 10xxxxxx 10xxxxxx

UTF-16 follows RFC 2781; values above 0xFFFF use a surrogate pair
(high 0xD800-0xDBFF followed by low 0xDC00-0xDFFF).
"""

from dataclasses import dataclass
from typing import Callable, ClassVar, Dict, Optional, Union

from .encoding import Encoding
from .errors import DecoderError, DecoderErrorKind
from .policy import ContentPolicy, PrintablePolicy

# UTF-8 leading octet masks
UTF8_CONTINUATION_MASK = 0xC0
UTF8_CONTINUATION_TAG = 0x80

# Smallest value each sequence width may encode (shorter forms are overlong)
UTF8_MIN_VALUE = {1: 0x00, 2: 0x80, 3: 0x800, 4: 0x10000}

SURROGATE_RANGE_START = 0xD800
SURROGATE_RANGE_END = 0xDFFF
HIGH_SURROGATE_TAG = 0xD800
LOW_SURROGATE_TAG = 0xDC00
SURROGATE_TAG_MASK = 0xFC00
MAX_CODE_POINT = 0x10FFFF


@dataclass(frozen=True)
class Decoded:
    """A successfully decoded scalar value."""
    value: int
    width: int


@dataclass(frozen=True)
class Incomplete:
    """More bytes are needed before the next scalar can be decoded."""


@dataclass(frozen=True)
class Invalid:
    """The bytes at ``offset`` can never form a valid scalar."""
    reason: DecoderErrorKind
    offset: int
    value: Optional[int] = None

    @property
    def message(self) -> str:
        return self.reason.value

    def to_error(self) -> DecoderError:
        return DecoderError(self.reason, self.offset, self.value)


INCOMPLETE = Incomplete()

DecodeOutcome = Union[Decoded, Incomplete, Invalid]
DecodeFunction = Callable[[bytearray, int, int, bool, int], DecodeOutcome]


def _utf8_width(octet: int) -> int:
    """Sequence width announced by a leading octet, 0 if it cannot lead."""
    if octet & 0x80 == 0x00:
        return 1
    if octet & 0xE0 == 0xC0:
        return 2
    if octet & 0xF0 == 0xE0:
        return 3
    if octet & 0xF8 == 0xF0:
        return 4
    return 0


_UTF8_LEAD_MASK = {1: 0x7F, 2: 0x1F, 3: 0x0F, 4: 0x07}


def decode_utf8(
    data: bytearray, start: int, end: int, eof: bool, offset: int
) -> DecodeOutcome:
    """Decode one UTF-8 scalar from ``data[start:end]``.

    Args:
        data: Buffer holding the raw bytes
        start: Index of the first unconsumed byte
        end: Index one past the last valid byte
        eof: Whether the source is exhausted
        offset: Stream offset of ``data[start]``, used for error positions

    Returns:
        DecodeOutcome for the scalar at ``start``
    """
    octet = data[start]
    width = _utf8_width(octet)
    if not width:
        return Invalid(DecoderErrorKind.INVALID_LEADING_OCTET, offset, octet)

    if width > end - start:
        if eof:
            return Invalid(DecoderErrorKind.INCOMPLETE_SEQUENCE, offset)
        return INCOMPLETE

    value = octet & _UTF8_LEAD_MASK[width]
    for k in range(1, width):
        octet = data[start + k]
        if octet & UTF8_CONTINUATION_MASK != UTF8_CONTINUATION_TAG:
            return Invalid(DecoderErrorKind.INVALID_TRAILING_OCTET, offset + k, octet)
        value = (value << 6) + (octet & 0x3F)

    if value < UTF8_MIN_VALUE[width]:
        return Invalid(DecoderErrorKind.INVALID_SEQUENCE_LENGTH, offset)

    if SURROGATE_RANGE_START <= value <= SURROGATE_RANGE_END or value > MAX_CODE_POINT:
        return Invalid(DecoderErrorKind.INVALID_CODE_POINT, offset, value)

    return Decoded(value, width)


def _decode_utf16(
    data: bytearray,
    start: int,
    end: int,
    eof: bool,
    offset: int,
    low: int,
    high: int,
) -> DecodeOutcome:
    available = end - start
    if available < 2:
        if eof:
            return Invalid(DecoderErrorKind.INCOMPLETE_CHARACTER, offset)
        return INCOMPLETE

    value = data[start + low] + (data[start + high] << 8)

    if value & SURROGATE_TAG_MASK == LOW_SURROGATE_TAG:
        return Invalid(DecoderErrorKind.UNEXPECTED_LOW_SURROGATE, offset, value)

    if value & SURROGATE_TAG_MASK != HIGH_SURROGATE_TAG:
        return Decoded(value, 2)

    if available < 4:
        if eof:
            return Invalid(DecoderErrorKind.INCOMPLETE_SURROGATE_PAIR, offset)
        return INCOMPLETE

    value2 = data[start + low + 2] + (data[start + high + 2] << 8)
    if value2 & SURROGATE_TAG_MASK != LOW_SURROGATE_TAG:
        return Invalid(DecoderErrorKind.EXPECTED_LOW_SURROGATE, offset + 2, value2)

    return Decoded(0x10000 + ((value & 0x3FF) << 10) + (value2 & 0x3FF), 4)


def decode_utf16_le(
    data: bytearray, start: int, end: int, eof: bool, offset: int
) -> DecodeOutcome:
    """Decode one UTF-16 little-endian scalar, see :func:`decode_utf8`."""
    return _decode_utf16(data, start, end, eof, offset, low=0, high=1)


def decode_utf16_be(
    data: bytearray, start: int, end: int, eof: bool, offset: int
) -> DecodeOutcome:
    """Decode one UTF-16 big-endian scalar, see :func:`decode_utf8`."""
    return _decode_utf16(data, start, end, eof, offset, low=1, high=0)


def encode_utf8(value: int) -> bytes:
    """Encode a scalar value as UTF-8.

    No validation is done here; callers only pass values that came out of a
    decoder or the end-of-stream NUL.
    """
    if value <= 0x7F:
        return bytes((value,))
    if value <= 0x7FF:
        return bytes((0xC0 + (value >> 6), 0x80 + (value & 0x3F)))
    if value <= 0xFFFF:
        return bytes((
            0xE0 + (value >> 12),
            0x80 + ((value >> 6) & 0x3F),
            0x80 + (value & 0x3F),
        ))
    return bytes((
        0xF0 + (value >> 18),
        0x80 + ((value >> 12) & 0x3F),
        0x80 + ((value >> 6) & 0x3F),
        0x80 + (value & 0x3F),
    ))


class ScalarDecoder:
    """Decodes scalars for one encoding and applies the content policy.

    The decode function is chosen once, when the decoder is built for the
    stream's detected encoding.
    """

    DECODERS: ClassVar[Dict[Encoding, DecodeFunction]] = {
        Encoding.UTF8: decode_utf8,
        Encoding.UTF16_LE: decode_utf16_le,
        Encoding.UTF16_BE: decode_utf16_be,
    }

    def __init__(
        self, encoding: Encoding, policy: Optional[ContentPolicy] = None
    ) -> None:
        """Initialize the decoder.

        Args:
            encoding: Detected stream encoding
            policy: Admissibility check applied to every decoded scalar

        Raises:
            ValueError: If ``encoding`` has not been detected yet
        """
        if encoding not in self.DECODERS:
            raise ValueError(f"Cannot decode a stream with encoding {encoding.name}")
        self.encoding = encoding
        self.policy = policy or PrintablePolicy()
        self._decode = self.DECODERS[encoding]

    def decode(
        self, data: bytearray, start: int, end: int, eof: bool, offset: int
    ) -> DecodeOutcome:
        """Decode the scalar at ``data[start]`` and check it against the policy."""
        outcome = self._decode(data, start, end, eof, offset)
        if isinstance(outcome, Decoded) and not self.policy.is_allowed(outcome.value):
            return Invalid(DecoderErrorKind.DISALLOWED_CHARACTER, offset, outcome.value)
        return outcome
