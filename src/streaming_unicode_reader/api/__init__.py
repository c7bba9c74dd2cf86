"""Public API layer for the streaming reader."""

from .reader import (
    DecodeSummary,
    decode,
    decode_file,
    inspect,
    iter_text,
    open_reader,
)

__all__ = [
    "DecodeSummary",
    "decode",
    "decode_file",
    "inspect",
    "iter_text",
    "open_reader",
]
