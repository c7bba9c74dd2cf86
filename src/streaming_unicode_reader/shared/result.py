"""Diagnostic and metrics types shared by the reader layers."""

import time
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Dict, Optional


class DiagnosticSeverity(Enum):
    """Severity levels for diagnostic entries."""

    DEBUG = auto()
    INFO = auto()
    WARNING = auto()
    ERROR = auto()      # Stream could not be decoded
    CRITICAL = auto()   # Byte source failed


@dataclass
class DiagnosticEntry:
    """Single diagnostic entry with context information."""

    severity: DiagnosticSeverity
    message: str
    component: str
    position: Optional[Dict[str, int]] = None
    details: Optional[Dict[str, Any]] = None
    timestamp: float = field(default_factory=time.time)
    correlation_id: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate diagnostic entry."""
        if not self.message:
            raise ValueError("Diagnostic message cannot be empty")
        if not self.component:
            raise ValueError("Diagnostic component cannot be empty")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "severity": self.severity.name,
            "message": self.message,
            "component": self.component,
            "position": self.position,
            "details": self.details,
        }


@dataclass
class ReaderMetrics:
    """Counters collected by a buffer manager over the life of one stream."""

    refills: int = 0
    empty_refills: int = 0
    bytes_read: int = 0
    scalars_decoded: int = 0
    output_bytes: int = 0
    compactions: int = 0
    output_growths: int = 0
    started_at: float = field(default_factory=time.perf_counter)
    finished_at: Optional[float] = None

    @property
    def processing_time_ms(self) -> float:
        """Elapsed time from creation until the stream finished (or now)."""
        end = self.finished_at if self.finished_at is not None else time.perf_counter()
        return (end - self.started_at) * 1000.0

    @property
    def bytes_per_scalar(self) -> float:
        """Average raw bytes consumed per decoded scalar."""
        if self.scalars_decoded == 0:
            return 0.0
        return self.bytes_read / self.scalars_decoded

    @property
    def scalars_per_second(self) -> float:
        elapsed = self.processing_time_ms
        if elapsed <= 0:
            return 0.0
        return (self.scalars_decoded * 1000.0) / elapsed

    def mark_finished(self) -> None:
        if self.finished_at is None:
            self.finished_at = time.perf_counter()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "refills": self.refills,
            "empty_refills": self.empty_refills,
            "bytes_read": self.bytes_read,
            "scalars_decoded": self.scalars_decoded,
            "output_bytes": self.output_bytes,
            "compactions": self.compactions,
            "output_growths": self.output_growths,
            "processing_time_ms": round(self.processing_time_ms, 3),
        }
