"""Character layer: byte sources, encoding detection and incremental decoding.

This module turns a byte stream into validated UTF-8 text one refill at a
time, through the ``BufferManager`` entry point.
"""

from .buffers import RawByteBuffer, TextOutputBuffer
from .decoder import (
    INCOMPLETE,
    Decoded,
    DecodeOutcome,
    Incomplete,
    Invalid,
    ScalarDecoder,
    decode_utf8,
    decode_utf16_be,
    decode_utf16_le,
    encode_utf8,
)
from .encoding import DetectionResult, Encoding, EncodingDetector
from .errors import DecoderError, DecoderErrorKind, ReaderError, StreamDecodeError
from .manager import BufferManager
from .policy import ContentPolicy, PrintablePolicy, Xml10Policy, get_policy
from .sources import (
    ByteSource,
    BytesSource,
    CallableSource,
    FileSource,
    IterableSource,
    make_source,
)

__all__ = [
    # Buffers
    "RawByteBuffer",
    "TextOutputBuffer",
    # Decoding
    "INCOMPLETE",
    "Decoded",
    "DecodeOutcome",
    "Incomplete",
    "Invalid",
    "ScalarDecoder",
    "decode_utf8",
    "decode_utf16_be",
    "decode_utf16_le",
    "encode_utf8",
    # Encoding detection
    "DetectionResult",
    "Encoding",
    "EncodingDetector",
    # Errors
    "DecoderError",
    "DecoderErrorKind",
    "ReaderError",
    "StreamDecodeError",
    # Orchestration
    "BufferManager",
    # Content policies
    "ContentPolicy",
    "PrintablePolicy",
    "Xml10Policy",
    "get_policy",
    # Byte sources
    "ByteSource",
    "BytesSource",
    "CallableSource",
    "FileSource",
    "IterableSource",
    "make_source",
]
