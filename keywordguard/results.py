"""
Result Types

Plain dataclasses returned by the scanner, validator and detection log.
Each exposes to_dict() so an orchestrator can merge it into its own
response payload. This package owns no wire format beyond that.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional


# ============================================================
# SCAN
# ============================================================

@dataclass
class MatchRecord:
    """A single matched fragment."""
    kind: str   # "variation" | "pattern"
    text: str


@dataclass
class DetectionRecord:
    """Detection outcome for one keyword class in one scan."""
    keyword_id: str
    found: bool = False
    match_count: int = 0
    # First N matches only. Never used for counting or confidence.
    matches: list[MatchRecord] = field(default_factory=list)
    confidence: float = 0.0
    context_note: Optional[str] = None

    def to_dict(self) -> dict:
        result = {
            "keyword_id": self.keyword_id,
            "found": self.found,
            "match_count": self.match_count,
            "matches": [{"kind": m.kind, "text": m.text} for m in self.matches],
            "confidence": round(self.confidence, 4),
        }
        if self.context_note:
            result["context_note"] = self.context_note
        return result


@dataclass
class ScanSummary:
    total_detected: int = 0
    critical_detected: int = 0
    critical_missing: int = 0

    def to_dict(self) -> dict:
        return {
            "total_detected": self.total_detected,
            "critical_detected": self.critical_detected,
            "critical_missing": self.critical_missing,
        }


@dataclass
class ScanResult:
    """Result of scanning one text against the registry."""
    success: bool
    message: str
    timestamp: str
    detections: dict[str, DetectionRecord] = field(default_factory=dict)
    # Critical ids not found, computed BEFORE context rules ran
    missing_critical: list[str] = field(default_factory=list)
    summary: ScanSummary = field(default_factory=ScanSummary)
    registry_version: str = ""
    # SHA-256 of the scanned text; None when the input was rejected
    text_fingerprint: Optional[str] = None

    def is_found(self, keyword_id: str) -> bool:
        record = self.detections.get(keyword_id)
        return bool(record and record.found)

    @property
    def found_ids(self) -> list[str]:
        return [k for k, d in self.detections.items() if d.found]

    def to_dict(self) -> dict:
        return {
            "success": self.success,
            "message": self.message,
            "timestamp": self.timestamp,
            "detections": {k: d.to_dict() for k, d in self.detections.items()},
            "missing_critical": list(self.missing_critical),
            "summary": self.summary.to_dict(),
            "registry_version": self.registry_version,
        }


# ============================================================
# VALIDATION
# ============================================================

@dataclass
class KeywordComparison:
    found_in_original: bool
    found_in_extraction: bool

    @property
    def preserved(self) -> bool:
        return self.found_in_original == self.found_in_extraction

    def to_dict(self) -> dict:
        return {
            "found_in_original": self.found_in_original,
            "found_in_extraction": self.found_in_extraction,
            "preserved": self.preserved,
        }


@dataclass
class PlacementResult:
    """Outcome of the domain structural check for the primary topic."""
    keyword_id: str
    valid: bool = True
    in_experience: bool = False
    in_skills: bool = False
    warnings: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "keyword_id": self.keyword_id,
            "valid": self.valid,
            "in_experience": self.in_experience,
            "in_skills": self.in_skills,
            "warnings": list(self.warnings),
        }


@dataclass
class ValidationResult:
    """Result of reconciling a structured extraction against its source text."""
    valid: bool = True
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    keyword_comparison: dict[str, KeywordComparison] = field(default_factory=dict)
    placement: Optional[PlacementResult] = None
    # Critical ids present in the original but lost in extraction
    lost_critical: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "valid": self.valid,
            "errors": list(self.errors),
            "warnings": list(self.warnings),
            "keyword_comparison": {
                k: c.to_dict() for k, c in self.keyword_comparison.items()
            },
            "placement": self.placement.to_dict() if self.placement else None,
            "lost_critical": list(self.lost_critical),
        }


# ============================================================
# DETECTION LOG
# ============================================================

@dataclass(frozen=True)
class LogEntry:
    """Condensed outcome of one scan or validation."""
    phase: str          # "pre-extraction" | "post-extraction"
    timestamp: str
    success: bool
    summary: Optional[dict] = None
    errors_count: int = 0
    warnings_count: int = 0

    def to_dict(self) -> dict:
        return {
            "phase": self.phase,
            "timestamp": self.timestamp,
            "success": self.success,
            "summary": dict(self.summary) if self.summary else {},
            "errors_count": self.errors_count,
            "warnings_count": self.warnings_count,
        }


@dataclass
class PhaseStatistics:
    total: int = 0
    successful: int = 0
    failed: int = 0

    def to_dict(self) -> dict:
        return {"total": self.total, "successful": self.successful, "failed": self.failed}


@dataclass
class DetectionStatistics:
    total_scans: int = 0
    successful_scans: int = 0
    failed_scans: int = 0
    by_phase: dict[str, PhaseStatistics] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "total_scans": self.total_scans,
            "successful_scans": self.successful_scans,
            "failed_scans": self.failed_scans,
            "by_phase": {p: s.to_dict() for p, s in self.by_phase.items()},
        }
