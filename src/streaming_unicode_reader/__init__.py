"""Streaming Unicode Reader.

An incremental decoder that sits in front of a text parser: it detects the
encoding of a byte stream from its byte-order mark, decodes UTF-8 or UTF-16
with strict validation, and serves the result as normalized UTF-8 through a
bounded buffer, one refill at a time.

Progressive API Disclosure:
- Level 1: Simple functions - decode(), decode_file(), iter_text(), inspect()
- Level 2: Incremental reading - BufferManager.ensure() / peek() / forward()
- Level 3: Custom byte sources and content policies
"""

__version__ = "0.1.0"
__author__ = "Streaming Unicode Reader Team"

# Level 1: Simple functions
from .api import DecodeSummary, decode, decode_file, inspect, iter_text, open_reader

# Level 2 and 3: Incremental reading, sources and policies
from .character import (
    BufferManager,
    ByteSource,
    ContentPolicy,
    DecoderError,
    DecoderErrorKind,
    Encoding,
    ReaderError,
    StreamDecodeError,
)

# Configuration classes for advanced usage
from .shared.config import BufferConfig, ReaderConfig

__all__ = [
    # Version and metadata
    "__author__",
    "__version__",

    # Level 1: Simple functions
    "decode",
    "decode_file",
    "inspect",
    "iter_text",
    "open_reader",
    "DecodeSummary",

    # Level 2: Incremental reading
    "BufferManager",
    "Encoding",

    # Level 3: Extension points
    "ByteSource",
    "ContentPolicy",

    # Errors
    "StreamDecodeError",
    "DecoderError",
    "DecoderErrorKind",
    "ReaderError",

    # Configuration
    "BufferConfig",
    "ReaderConfig",
]
