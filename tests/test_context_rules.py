"""
Context Rule Tests — Suppression and Co-occurrence Boost
"""

from __future__ import annotations

import pytest

from keywordguard.context_rules import (
    CooccurrenceBoost,
    SuppressionRule,
    apply_context_rules,
)
from keywordguard.results import DetectionRecord


def _record(keyword_id, found=True, confidence=0.5):
    return DetectionRecord(
        keyword_id=keyword_id, found=found,
        match_count=1 if found else 0, confidence=confidence if found else 0.0,
    )


class TestSuppressionRule:

    def test_suppresses_without_companion(self):
        detections = {"liquid": _record("liquid", confidence=0.4), "shopify": _record("shopify", found=False)}
        SuppressionRule("liquid", "shopify", note="no context").apply(detections)
        assert detections["liquid"].found is False
        assert detections["liquid"].confidence == pytest.approx(0.04)
        assert detections["liquid"].context_note == "no context"

    def test_companion_present_leaves_record(self):
        detections = {"liquid": _record("liquid", confidence=0.4), "shopify": _record("shopify")}
        SuppressionRule("liquid", "shopify").apply(detections)
        assert detections["liquid"].found is True
        assert detections["liquid"].confidence == 0.4
        assert detections["liquid"].context_note is None

    def test_not_found_keyword_untouched(self):
        detections = {"liquid": _record("liquid", found=False), "shopify": _record("shopify", found=False)}
        SuppressionRule("liquid", "shopify").apply(detections)
        assert detections["liquid"].context_note is None

    def test_default_note(self):
        detections = {"liquid": _record("liquid")}
        SuppressionRule("liquid", "shopify").apply(detections)
        assert detections["liquid"].context_note == "liquid found but no shopify context"


class TestCooccurrenceBoost:

    def test_boosts_when_both_found(self):
        detections = {"shopify": _record("shopify"), "ecommerce": _record("ecommerce", confidence=0.2)}
        CooccurrenceBoost("shopify", "ecommerce").apply(detections)
        assert detections["ecommerce"].confidence == pytest.approx(0.3)

    def test_capped(self):
        detections = {"shopify": _record("shopify"), "ecommerce": _record("ecommerce", confidence=0.9)}
        CooccurrenceBoost("shopify", "ecommerce").apply(detections)
        assert detections["ecommerce"].confidence == 1.0

    def test_low_cap_never_lowers_confidence(self):
        detections = {"a": _record("a"), "b": _record("b", confidence=0.477)}
        CooccurrenceBoost("a", "b", factor=1.5, cap=0.2).apply(detections)
        assert detections["b"].confidence == 0.477

    def test_no_boost_without_trigger(self):
        detections = {"shopify": _record("shopify", found=False), "ecommerce": _record("ecommerce", confidence=0.2)}
        CooccurrenceBoost("shopify", "ecommerce").apply(detections)
        assert detections["ecommerce"].confidence == 0.2

    def test_missing_records_ignored(self):
        detections = {"ecommerce": _record("ecommerce", confidence=0.2)}
        CooccurrenceBoost("shopify", "ecommerce").apply(detections)
        assert detections["ecommerce"].confidence == 0.2


class TestApplyContextRules:

    def test_suppressions_run_before_boosts(self):
        # The boost's trigger is suppressed first, so no boost applies
        detections = {
            "liquid": _record("liquid", confidence=0.5),
            "ecommerce": _record("ecommerce", confidence=0.2),
        }
        rules = (
            CooccurrenceBoost("liquid", "ecommerce"),
            SuppressionRule("liquid", "shopify"),
        )
        apply_context_rules(detections, rules)
        assert detections["liquid"].found is False
        assert detections["ecommerce"].confidence == 0.2

    def test_single_pass(self):
        detections = {"shopify": _record("shopify"), "ecommerce": _record("ecommerce", confidence=0.2)}
        rules = (CooccurrenceBoost("shopify", "ecommerce"),)
        apply_context_rules(detections, rules)
        assert detections["ecommerce"].confidence == pytest.approx(0.3)

    def test_returns_same_mapping(self):
        detections = {}
        assert apply_context_rules(detections, ()) is detections
