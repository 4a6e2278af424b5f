"""
Detection Log Tests — Bounded Buffer and Statistics
"""

from __future__ import annotations

import pytest

from keywordguard.detection_log import (
    PHASE_POST_EXTRACTION,
    PHASE_PRE_EXTRACTION,
    DetectionLog,
)
from keywordguard.registry import DEFAULT_REGISTRY
from keywordguard.results import ValidationResult
from keywordguard.scanner import KeywordScanner


class TestDetectionLog:

    def test_default_capacity(self):
        assert DetectionLog().capacity == 100

    def test_invalid_capacity(self):
        with pytest.raises(ValueError):
            DetectionLog(capacity=0)

    def test_evicts_oldest_past_capacity(self):
        log = DetectionLog()
        for i in range(101):
            log.record(PHASE_PRE_EXTRACTION, success=(i != 0))
        assert len(log) == 100
        # The single failed entry was first in and first out
        assert all(e.success for e in log.entries)

    def test_entries_oldest_first(self):
        log = DetectionLog(capacity=3)
        for phase in ("a", "b", "c", "d"):
            log.record(phase, success=True)
        assert [e.phase for e in log.entries] == ["b", "c", "d"]

    def test_record_scan(self):
        log = DetectionLog()
        scan = KeywordScanner(DEFAULT_REGISTRY).scan("Shopify ecommerce")
        entry = log.record_scan(scan)
        assert entry.phase == PHASE_PRE_EXTRACTION
        assert entry.success is True
        assert entry.summary == {
            "total_detected": 2, "critical_detected": 1, "critical_missing": 0,
        }

    def test_record_validation(self):
        log = DetectionLog()
        validation = ValidationResult(valid=False, errors=["lost"], warnings=["a", "b"])
        entry = log.record_validation(validation)
        assert entry.phase == PHASE_POST_EXTRACTION
        assert entry.success is False
        assert entry.errors_count == 1
        assert entry.warnings_count == 2
        assert entry.to_dict()["summary"] == {}

    def test_statistics(self):
        log = DetectionLog()
        log.record(PHASE_PRE_EXTRACTION, success=True)
        log.record(PHASE_PRE_EXTRACTION, success=False)
        log.record(PHASE_POST_EXTRACTION, success=True)
        stats = log.get_statistics()
        assert stats.total_scans == 3
        assert stats.successful_scans == 2
        assert stats.failed_scans == 1
        assert stats.by_phase[PHASE_PRE_EXTRACTION].to_dict() == {
            "total": 2, "successful": 1, "failed": 1,
        }
        assert stats.by_phase[PHASE_POST_EXTRACTION].total == 1

    def test_statistics_empty(self):
        stats = DetectionLog().get_statistics()
        assert stats.to_dict() == {
            "total_scans": 0, "successful_scans": 0, "failed_scans": 0, "by_phase": {},
        }

    def test_clear(self):
        log = DetectionLog()
        log.record(PHASE_PRE_EXTRACTION, success=True)
        log.clear()
        assert len(log) == 0
        assert log.get_statistics().total_scans == 0

    def test_entries_are_copies(self):
        log = DetectionLog()
        log.record(PHASE_PRE_EXTRACTION, success=True)
        log.entries.clear()
        assert len(log) == 1
