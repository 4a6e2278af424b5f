"""
Keyword Scanner — Deterministic Detection Engine

Evaluates every registry class against normalized text and returns one
DetectionRecord per class. No I/O, no state: the scanner never caches
its own results (that is the session's job).

Confidence is logarithmic in match count so repeated mentions give
diminishing gains, then scaled by the class weight:

    confidence = min(1, ln(count + 1) / ln(10)) * weight
"""

from __future__ import annotations

import hashlib
import math
from datetime import datetime, timezone
from typing import Any, Optional

from keywordguard.config import settings
from keywordguard.context_rules import apply_context_rules
from keywordguard.logging import get_logger
from keywordguard.normalizer import normalize_text
from keywordguard.registry import KeywordClass, KeywordRegistry, get_registry
from keywordguard.results import DetectionRecord, MatchRecord, ScanResult, ScanSummary

logger = get_logger("scanner")

INVALID_INPUT_MESSAGE = "Invalid or empty text input"


def is_scannable(text: Any) -> bool:
    """Only non-empty strings are scanned."""
    return isinstance(text, str) and bool(text)


def fingerprint(text: str) -> str:
    """SHA-256 of the raw text, used to tie a cached scan to its document."""
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


def calculate_confidence(count: int, weight: float) -> float:
    """Logarithmic, weight-scaled confidence. 0 for no matches."""
    if count <= 0:
        return 0.0
    base = min(1.0, math.log(count + 1) / math.log(10))
    return max(0.0, min(1.0, base * weight))


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class KeywordScanner:
    """
    Stateless scanner bound to one registry.

    Safe to share between sessions: it holds only the immutable registry
    and the match sample limit.
    """

    def __init__(
        self,
        registry: Optional[KeywordRegistry] = None,
        match_sample_limit: int = settings.MATCH_SAMPLE_LIMIT,
    ):
        self.registry = registry or get_registry()
        self.match_sample_limit = match_sample_limit

    def scan(self, text: Any) -> ScanResult:
        """
        Scan text for every registered keyword class.

        Never raises. Non-string or empty input yields an unsuccessful
        result with an empty detection map.
        """
        if not is_scannable(text):
            return self._build_result(False, INVALID_INPUT_MESSAGE)

        normalized = normalize_text(text)
        detections: dict[str, DetectionRecord] = {}
        missing_critical: list[str] = []
        has_critical = False

        for keyword_class in self.registry:
            detection = self.detect(normalized, keyword_class)
            detections[keyword_class.id] = detection

            if keyword_class.critical:
                if detection.found:
                    has_critical = True
                else:
                    missing_critical.append(keyword_class.id)

        # missing_critical is fixed above; rules below do not revisit it
        apply_context_rules(detections, self.registry.rules)

        if has_critical:
            message = "Critical keywords detected"
        else:
            message = f"Missing critical keywords: {', '.join(missing_critical)}"

        result = self._build_result(
            success=has_critical or not missing_critical,
            message=message,
            detections=detections,
            missing_critical=missing_critical,
            text_fingerprint=fingerprint(text),
        )

        if missing_critical:
            logger.warning(
                "Critical keywords missing from scanned text",
                extra={"missing_critical": missing_critical},
            )
        return result

    def detect(self, normalized: str, keyword_class: KeywordClass) -> DetectionRecord:
        """Match one class's variations and patterns against normalized text."""
        matches: list[MatchRecord] = []
        count = 0

        for regex in keyword_class.variation_patterns:
            for m in regex.finditer(normalized):
                count += 1
                if len(matches) < self.match_sample_limit:
                    matches.append(MatchRecord(kind="variation", text=m.group(0)))

        for regex in keyword_class.patterns:
            for m in regex.finditer(normalized):
                if not m.group(0):
                    continue
                count += 1
                if len(matches) < self.match_sample_limit:
                    matches.append(MatchRecord(kind="pattern", text=m.group(0)))

        found = count > 0
        return DetectionRecord(
            keyword_id=keyword_class.id,
            found=found,
            match_count=count,
            matches=matches,
            confidence=calculate_confidence(count, keyword_class.weight) if found else 0.0,
        )

    def _build_result(
        self,
        success: bool,
        message: str,
        detections: Optional[dict[str, DetectionRecord]] = None,
        missing_critical: Optional[list[str]] = None,
        text_fingerprint: Optional[str] = None,
    ) -> ScanResult:
        """Build a standardized scan result with its summary."""
        detections = detections or {}
        missing_critical = missing_critical or []
        summary = ScanSummary(
            total_detected=sum(1 for d in detections.values() if d.found),
            critical_detected=sum(
                1 for k, d in detections.items()
                if d.found and self.registry.get(k) is not None and self.registry.get(k).critical
            ),
            critical_missing=len(missing_critical),
        )
        return ScanResult(
            success=success,
            message=message,
            timestamp=_now(),
            detections=detections,
            missing_critical=missing_critical,
            summary=summary,
            registry_version=self.registry.version,
            text_fingerprint=text_fingerprint,
        )
