#!/usr/bin/env python3
"""
Quick Start Guide for the Streaming Unicode Reader.

Walks through whole-stream decoding, incremental reading with the buffer
manager, and error inspection.
"""

import sys
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from streaming_unicode_reader import (
    BufferManager,
    DecoderError,
    ReaderConfig,
    decode,
    inspect,
)
from streaming_unicode_reader.character import IterableSource


def quick_start_example():
    """Decode the same text from three encodings."""

    print("🚀 QUICK START - Streaming Unicode Reader")
    print("=" * 45)

    text = "héllo wörld 😀\n"
    samples = {
        "UTF-8 (no BOM)": text.encode("utf-8"),
        "UTF-16LE": b"\xff\xfe" + text.encode("utf-16-le"),
        "UTF-16BE": b"\xfe\xff" + text.encode("utf-16-be"),
    }

    print("\n📄 Step 1: Whole-stream decoding")
    print("-" * 30)
    for label, data in samples.items():
        print(f"  {label:<15} {len(data):>3} bytes -> {decode(data)!r}")


def incremental_example():
    """Pull characters one at a time from a trickling source."""

    print("\n🔁 Step 2: Incremental reading")
    print("-" * 30)

    data = b"\xef\xbb\xbfline one\nline two\n"
    source = IterableSource(bytes((octet,)) for octet in data)
    config = ReaderConfig.low_memory()

    with BufferManager(source, config=config) as reader:
        lines = []
        current = []
        while True:
            reader.ensure(1)
            char = reader.peek()
            reader.forward()
            if char == "\x00":
                break
            if char == "\n":
                lines.append("".join(current))
                current = []
            else:
                current.append(char)

        print(f"  Encoding: {reader.encoding.value}, BOM bytes: {reader.bom_length}")
        print(f"  Lines: {lines}")
        print(f"  Refills: {reader.metrics.refills}")


def error_example():
    """Show how invalid input is reported."""

    print("\n🔍 Step 3: Errors")
    print("-" * 30)

    broken = b"valid text then \xc0\x80"
    try:
        decode(broken)
    except DecoderError as e:
        print(f"  decode() raised: {e}")

    summary = inspect(broken)
    print(f"  inspect() success={summary.success} "
          f"characters={summary.scalar_count} error={summary.error['message']}")


if __name__ == "__main__":
    quick_start_example()
    incremental_example()
    error_example()
