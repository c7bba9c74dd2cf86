"""Shared utilities for the streaming reader.

This module provides configuration objects, diagnostic and metrics types, and
logging helpers used across the reader layers.
"""

from .config import (
    BufferConfig,
    ConfigError,
    ConfigValidationError,
    ReaderConfig,
)
from .logging import (
    CorrelationLogger,
    get_logger,
)
from .result import (
    DiagnosticEntry,
    DiagnosticSeverity,
    ReaderMetrics,
)

__all__ = [
    "BufferConfig",
    "ConfigError",
    "ConfigValidationError",
    "ReaderConfig",
    "CorrelationLogger",
    "get_logger",
    "DiagnosticEntry",
    "DiagnosticSeverity",
    "ReaderMetrics",
]
