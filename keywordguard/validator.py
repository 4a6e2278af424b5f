"""
Extraction Validator — Pre/Post Keyword Reconciliation

Decides whether a structured extraction can be trusted:

  1. Flatten the structured output to text and re-scan it
  2. Compare every keyword's presence in original vs. extraction
  3. A critical keyword lost in extraction invalidates the result
  4. If the primary critical topic was in the original, check that it
     landed in work experience or skills (warning only)

Loss is reported as data. The validator never raises for malformed
input so the upload pipeline can still return a partial success.
"""

from __future__ import annotations

import json
from typing import Any, Mapping, Optional

from keywordguard.config import settings
from keywordguard.logging import get_logger
from keywordguard.registry import PlacementCheck
from keywordguard.results import (
    KeywordComparison,
    PlacementResult,
    ScanResult,
    ValidationResult,
)
from keywordguard.scanner import KeywordScanner
from keywordguard.structure import flatten

logger = get_logger("validator")

EXPERIENCE_FIELD = "workExperience"
SKILLS_FIELD = "skillsAndSpecialties"
SKILL_GROUPS = ("technical", "frameworks", "tools")


class ExtractionValidator:
    """Reconciles structured extraction output against its source text."""

    def __init__(
        self,
        scanner: Optional[KeywordScanner] = None,
        max_depth: int = settings.MAX_DEPTH,
    ):
        self.scanner = scanner or KeywordScanner()
        self.max_depth = max_depth

    @property
    def registry(self):
        return self.scanner.registry

    def validate(
        self,
        extracted: Any,
        original_text: Any,
        pre_scan: Optional[ScanResult] = None,
    ) -> ValidationResult:
        """
        Validate an extraction against the original document.

        Args:
            extracted: Structured extraction output (str / list / dict, nested).
            original_text: Source document text. Scanned only when no
                pre_scan is supplied.
            pre_scan: Scan of the original text computed earlier.

        Returns:
            ValidationResult. valid=False iff a critical keyword was lost.
        """
        if pre_scan is None:
            pre_scan = self.scanner.scan(original_text)

        extraction_text = flatten(extracted, self.max_depth)
        post_scan = self.scanner.scan(extraction_text)

        validation = ValidationResult()

        for keyword_class in self.registry:
            comparison = KeywordComparison(
                found_in_original=pre_scan.is_found(keyword_class.id),
                found_in_extraction=post_scan.is_found(keyword_class.id),
            )
            validation.keyword_comparison[keyword_class.id] = comparison

            if (
                keyword_class.critical
                and comparison.found_in_original
                and not comparison.found_in_extraction
            ):
                validation.valid = False
                validation.lost_critical.append(keyword_class.id)
                validation.errors.append(
                    f"Critical keyword '{keyword_class.id}' found in original "
                    f"but missing in extraction"
                )

        placement = self.registry.placement
        if placement and pre_scan.is_found(placement.keyword_id):
            validation.placement = check_placement(extracted, placement)
            if not validation.placement.valid:
                validation.warnings.extend(validation.placement.warnings)

        if validation.lost_critical:
            logger.error(
                "Critical keywords lost in extraction",
                extra={"lost_keywords": validation.lost_critical},
            )
        if validation.warnings:
            logger.warning(
                "Extraction placement warnings",
                extra={"warnings_count": len(validation.warnings)},
            )

        return validation


# ============================================================
# DOMAIN STRUCTURAL CHECK
# ============================================================

def _serialize(entry: Any) -> str:
    """JSON-serialize one experience entry; fall back to flattened text."""
    try:
        return json.dumps(entry, ensure_ascii=False, default=str)
    except (TypeError, ValueError, RecursionError):
        # Circular or pathologically deep entries
        return flatten(entry)


def _skill_text(extracted: Mapping) -> str:
    skills = extracted.get(SKILLS_FIELD)
    if not isinstance(skills, Mapping):
        return ""
    parts: list[str] = []
    for group in SKILL_GROUPS:
        values = skills.get(group)
        if isinstance(values, str):
            parts.append(values)
        elif isinstance(values, (list, tuple)):
            parts.extend(v for v in values if isinstance(v, str))
    return " ".join(parts)


def check_placement(extracted: Any, check: PlacementCheck) -> PlacementResult:
    """
    Verify the primary critical topic landed in experience or skills.

    Searches each serialized work-experience entry and the combined
    technical/frameworks/tools skill lists for any placement term.
    Shapes that do not match the resume schema count as "absent".
    """
    result = PlacementResult(keyword_id=check.keyword_id)
    if not isinstance(extracted, Mapping):
        extracted = {}

    experience = extracted.get(EXPERIENCE_FIELD)
    if isinstance(experience, (list, tuple)):
        for entry in experience:
            entry_text = _serialize(entry).lower()
            if any(term in entry_text for term in check.terms):
                result.in_experience = True
                break

    skills_text = _skill_text(extracted).lower()
    result.in_skills = any(term in skills_text for term in check.terms)

    if not result.in_experience and not result.in_skills:
        result.valid = False
        result.warnings.append(
            f"{check.label} keyword detected in original but not properly "
            f"extracted in work experience or skills"
        )
    return result
