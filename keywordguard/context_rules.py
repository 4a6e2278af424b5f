"""
Context Rules — Cross-Keyword Adjustments

A short, fixed list of declarative adjustments applied once to the
scanner's detection map:

  1. Suppression: a context-dependent keyword only counts when its
     companion keyword was also found.
  2. Co-occurrence boost: a keyword's confidence is scaled up when a
     related keyword was found alongside it.

Suppressions always run before boosts. Rules are evaluated in a single
pass, never iterated to a fixed point.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Union

if TYPE_CHECKING:
    from keywordguard.results import DetectionRecord


@dataclass(frozen=True)
class SuppressionRule:
    """Force `keyword_id` to not-found when `companion_id` is absent."""
    keyword_id: str
    companion_id: str
    factor: float = 0.1
    note: str = ""

    stage = 0

    def apply(self, detections: dict[str, "DetectionRecord"]) -> None:
        record = detections.get(self.keyword_id)
        if record is None or not record.found:
            return
        companion = detections.get(self.companion_id)
        if companion is not None and companion.found:
            return
        record.found = False
        record.confidence *= self.factor
        record.context_note = self.note or (
            f"{self.keyword_id} found but no {self.companion_id} context"
        )


@dataclass(frozen=True)
class CooccurrenceBoost:
    """Scale `target_id`'s confidence when both it and `when_id` are found."""
    when_id: str
    target_id: str
    factor: float = 1.5
    cap: float = 1.0

    stage = 1

    def apply(self, detections: dict[str, "DetectionRecord"]) -> None:
        primary = detections.get(self.when_id)
        target = detections.get(self.target_id)
        if primary is None or target is None:
            return
        if primary.found and target.found:
            # A boost never lowers confidence, even with a cap below it
            boosted = min(self.cap, target.confidence * self.factor)
            target.confidence = max(target.confidence, boosted)


ContextRule = Union[SuppressionRule, CooccurrenceBoost]


def apply_context_rules(
    detections: dict[str, "DetectionRecord"],
    rules: tuple[ContextRule, ...],
) -> dict[str, "DetectionRecord"]:
    """Apply every rule once, suppressions first. Mutates and returns `detections`."""
    for rule in sorted(rules, key=lambda r: r.stage):
        rule.apply(detections)
    return detections
