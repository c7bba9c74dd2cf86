"""Command-line interface module for the streaming reader.

This module provides CLI tools for decoding files to UTF-8, inspecting their
encoding and validating batches of files.
"""

from .main import main

__all__ = ["main"]
