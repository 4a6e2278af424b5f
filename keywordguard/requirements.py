"""
Job Requirement Keywords

Builds a registry from a job's required and preferred skills so the same
scanner can gate candidates on what a specific role asks for:

  - required skills  -> critical classes (priority 1, weight 1.0)
  - preferred skills -> non-critical classes (priority 2, weight 0.5)
"""

from __future__ import annotations

from typing import Iterable, Optional

from keywordguard.registry import KeywordRegistry, build_registry
from keywordguard.results import ScanResult


def _keyword_id(skill: str) -> str:
    return skill.strip().lower()


def registry_from_requirements(
    required: Iterable[str],
    preferred: Iterable[str] = (),
    version: str = "requirements",
) -> KeywordRegistry:
    """
    Build a registry with one class per distinct skill.

    Blank entries are skipped; a skill listed as both required and
    preferred is treated as required.
    """
    keywords: list[dict] = []
    seen: set[str] = set()

    for skills, critical in ((required, True), (preferred, False)):
        for skill in skills:
            keyword_id = _keyword_id(skill)
            if not keyword_id or keyword_id in seen:
                continue
            seen.add(keyword_id)
            keywords.append({
                "id": keyword_id,
                "label": skill.strip(),
                "priority": 1 if critical else 2,
                "variations": [keyword_id],
                "weight": 1.0 if critical else 0.5,
                "critical": critical,
            })

    return build_registry({"version": version, "keywords": keywords})


def has_any_required(scan: ScanResult, required: Optional[Iterable[str]]) -> bool:
    """True when no required skills are configured, or any one was found."""
    required_ids = [_keyword_id(k) for k in (required or []) if _keyword_id(k)]
    if not required_ids:
        return True
    return any(scan.is_found(k) for k in required_ids)


def keyword_matches(scan: ScanResult, keywords: Iterable[str]) -> dict[str, dict]:
    """Detection per requested keyword, keyed by the caller's spelling."""
    matches: dict[str, dict] = {}
    for keyword in keywords:
        record = scan.detections.get(_keyword_id(keyword))
        if record is None:
            matches[keyword] = {"found": False, "confidence": 0.0}
        else:
            matches[keyword] = record.to_dict()
    return matches
