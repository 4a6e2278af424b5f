"""
Screening Session — Per-Job Context

Each screening job gets its own ScreeningSession holding the cached
pre-extraction scan and its own detection log. Nothing is shared between
jobs except the immutable registry, so interleaved jobs in one process
cannot reconcile against each other's scans.

Typical flow:

    session = ScreeningSession(job_id="upload-42")
    scan = session.scan(resume_text)
    prompt_text = session.enhance(resume_text, scan)
    extracted = <external generative extraction>(prompt_text)
    validation = session.validate(extracted, resume_text)

SessionStore keeps sessions addressable by job id for the HTTP layer,
bounded with LRU eviction.
"""

from __future__ import annotations

import threading
from collections import OrderedDict
from typing import Any, Optional

from keywordguard.config import settings
from keywordguard.detection_log import (
    PHASE_POST_EXTRACTION,
    PHASE_PRE_EXTRACTION,
    DetectionLog,
)
from keywordguard.enhancer import enhance_text
from keywordguard.logging import get_logger
from keywordguard.registry import KeywordRegistry, get_registry
from keywordguard.results import DetectionStatistics, ScanResult, ValidationResult
from keywordguard.scanner import KeywordScanner, fingerprint, is_scannable
from keywordguard.validator import ExtractionValidator

logger = get_logger("session")


class ScreeningSession:
    """Explicit context for one screening job."""

    def __init__(
        self,
        registry: Optional[KeywordRegistry] = None,
        job_id: Optional[str] = None,
        log_capacity: int = settings.LOG_CAPACITY,
        max_depth: int = settings.MAX_DEPTH,
    ):
        self.job_id = job_id
        self.registry = registry or get_registry()
        self.scanner = KeywordScanner(self.registry)
        self.validator = ExtractionValidator(self.scanner, max_depth=max_depth)
        self.log = DetectionLog(capacity=log_capacity)
        self.last_scan: Optional[ScanResult] = None

    def scan(self, text: Any) -> ScanResult:
        """Pre-extraction scan. Valid scans are cached and logged."""
        result = self.scanner.scan(text)
        if not is_scannable(text):
            return result

        self.last_scan = result
        self.log.record_scan(result)

        logger.info(
            "Pre-extraction scan complete",
            extra={
                "job_id": self.job_id,
                "phase": PHASE_PRE_EXTRACTION,
                "total_detected": result.summary.total_detected,
                "critical_detected": result.summary.critical_detected,
            },
        )
        return result

    def enhance(self, text: str, scan_result: Optional[ScanResult] = None) -> str:
        """Prepend preservation markers. Scans (and caches) when no result is given."""
        if scan_result is None:
            scan_result = self.scan(text)
        if not isinstance(text, str):
            return text
        return enhance_text(text, scan_result, self.registry)

    def validate(self, extracted: Any, original_text: Any = None) -> ValidationResult:
        """
        Post-extraction validation against this job's cached scan.

        The cached scan is reused unless `original_text` is a non-blank
        string with a different fingerprint; that text is then scanned
        now and cached. Blank or non-string text never discards the
        cached scan.
        """
        pre_scan = self._pre_scan_for(original_text)
        validation = self.validator.validate(extracted, original_text, pre_scan=pre_scan)
        self.log.record_validation(validation)

        logger.info(
            "Post-extraction validation complete",
            extra={
                "job_id": self.job_id,
                "phase": PHASE_POST_EXTRACTION,
                "errors_count": len(validation.errors),
                "warnings_count": len(validation.warnings),
            },
        )
        return validation

    def _pre_scan_for(self, original_text: Any) -> ScanResult:
        cached = self.last_scan
        if cached is None:
            return self.scan(original_text)
        # Only a different, non-blank document replaces the cached scan
        if (
            is_scannable(original_text)
            and original_text.strip()
            and cached.text_fingerprint != fingerprint(original_text)
        ):
            return self.scan(original_text)
        return cached

    def get_statistics(self) -> DetectionStatistics:
        return self.log.get_statistics()

    def clear(self) -> None:
        """Empty the detection log and drop the cached scan."""
        self.log.clear()
        self.last_scan = None


class SessionStore:
    """
    Job id -> ScreeningSession, LRU-bounded.

    The lock guards the dict only; each session is used by one job.
    """

    def __init__(
        self,
        max_sessions: int = settings.MAX_SESSIONS,
        registry: Optional[KeywordRegistry] = None,
    ):
        self.max_sessions = max_sessions
        self._registry = registry
        self._sessions: OrderedDict[str, ScreeningSession] = OrderedDict()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def __contains__(self, job_id: object) -> bool:
        with self._lock:
            return job_id in self._sessions

    def get(self, job_id: str) -> Optional[ScreeningSession]:
        with self._lock:
            session = self._sessions.get(job_id)
            if session is not None:
                self._sessions.move_to_end(job_id)
            return session

    def get_or_create(self, job_id: str) -> ScreeningSession:
        with self._lock:
            session = self._sessions.get(job_id)
            if session is None:
                session = ScreeningSession(registry=self._registry, job_id=job_id)
                self._sessions[job_id] = session
                while len(self._sessions) > self.max_sessions:
                    evicted, _ = self._sessions.popitem(last=False)
                    logger.info("Evicted idle screening session", extra={"job_id": evicted})
            else:
                self._sessions.move_to_end(job_id)
            return session

    def discard(self, job_id: str) -> bool:
        with self._lock:
            return self._sessions.pop(job_id, None) is not None
