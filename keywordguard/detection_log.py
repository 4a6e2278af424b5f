"""
Detection Log — Bounded Outcome Buffer

Append-only ring buffer of condensed scan/validation outcomes.
Capacity is fixed (default 100); the oldest entry is evicted first.
One log lives in each ScreeningSession, never process-wide.
"""

from __future__ import annotations

from collections import deque
from datetime import datetime, timezone
from typing import Optional

from keywordguard.config import settings
from keywordguard.results import (
    DetectionStatistics,
    LogEntry,
    PhaseStatistics,
    ScanResult,
    ValidationResult,
)

PHASE_PRE_EXTRACTION = "pre-extraction"
PHASE_POST_EXTRACTION = "post-extraction"


class DetectionLog:
    """FIFO ring buffer of LogEntry records."""

    def __init__(self, capacity: int = settings.LOG_CAPACITY):
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self.capacity = capacity
        self._entries: deque[LogEntry] = deque(maxlen=capacity)

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def entries(self) -> list[LogEntry]:
        """Oldest first."""
        return list(self._entries)

    def record(
        self,
        phase: str,
        success: bool,
        summary: Optional[dict] = None,
        errors_count: int = 0,
        warnings_count: int = 0,
    ) -> LogEntry:
        entry = LogEntry(
            phase=phase,
            timestamp=datetime.now(timezone.utc).isoformat(),
            success=success,
            summary=summary,
            errors_count=errors_count,
            warnings_count=warnings_count,
        )
        self._entries.append(entry)
        return entry

    def record_scan(self, scan: ScanResult) -> LogEntry:
        return self.record(
            PHASE_PRE_EXTRACTION,
            success=scan.success,
            summary=scan.summary.to_dict(),
        )

    def record_validation(self, validation: ValidationResult) -> LogEntry:
        return self.record(
            PHASE_POST_EXTRACTION,
            success=validation.valid,
            errors_count=len(validation.errors),
            warnings_count=len(validation.warnings),
        )

    def get_statistics(self) -> DetectionStatistics:
        """Aggregate success/failure counts, globally and per phase."""
        stats = DetectionStatistics(total_scans=len(self._entries))
        for entry in self._entries:
            phase = stats.by_phase.setdefault(entry.phase, PhaseStatistics())
            phase.total += 1
            if entry.success:
                stats.successful_scans += 1
                phase.successful += 1
            else:
                stats.failed_scans += 1
                phase.failed += 1
        return stats

    def clear(self) -> None:
        self._entries.clear()
