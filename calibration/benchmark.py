"""
Benchmark Runner — Precision/Recall/F1 per Keyword

Runs the calibration corpus through the scanner and compares detections
against human labels. Produces:

  1. Per-keyword precision, recall, F1
  2. Critical-keyword recall (the number that gates releases)
  3. Specific misses and false alarms for manual review

A missed critical keyword means a candidate silently loses the term
recruiters filter on, so critical recall must stay at 100%.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from keywordguard.registry import KeywordRegistry, get_registry
from keywordguard.scanner import KeywordScanner
from calibration.corpus_parser import CalibrationSample, parse_all_corpora


@dataclass
class KeywordMetrics:
    """Precision/recall metrics for a single keyword class."""
    keyword_id: str
    critical: bool
    true_positives: int = 0   # Engine found, human labeled
    false_positives: int = 0  # Engine found, human didn't label
    false_negatives: int = 0  # Human labeled, engine missed
    true_negatives: int = 0   # Neither

    @property
    def precision(self) -> float:
        denom = self.true_positives + self.false_positives
        return self.true_positives / denom if denom > 0 else 0.0

    @property
    def recall(self) -> float:
        denom = self.true_positives + self.false_negatives
        return self.true_positives / denom if denom > 0 else 0.0

    @property
    def f1(self) -> float:
        p, r = self.precision, self.recall
        return 2 * p * r / (p + r) if (p + r) > 0 else 0.0

    @property
    def support(self) -> int:
        """Number of human-labeled positives for this keyword."""
        return self.true_positives + self.false_negatives


@dataclass
class BenchmarkResult:
    """Full benchmark output."""
    total_samples: int
    clean_samples: int
    labeled_samples: int
    registry_version: str
    keyword_metrics: dict[str, KeywordMetrics]
    overall_precision: float     # Macro-averaged over keywords with support
    overall_recall: float
    overall_f1: float
    critical_recall: float       # Micro-averaged over critical keywords
    misses: list[dict]           # Human-labeled keyword the engine missed
    false_alarms: list[dict]     # Engine found a keyword nobody labeled
    unknown_labels: list[str]    # Labels with no matching registry class


def evaluate_samples(
    samples: list[CalibrationSample],
    registry: Optional[KeywordRegistry] = None,
) -> BenchmarkResult:
    """Score already-parsed samples against a registry."""
    registry = registry or get_registry()
    scanner = KeywordScanner(registry)

    metrics = {
        c.id: KeywordMetrics(keyword_id=c.id, critical=c.critical)
        for c in registry
    }
    misses: list[dict] = []
    false_alarms: list[dict] = []
    unknown_labels: set[str] = set()

    for sample in samples:
        scan = scanner.scan(sample.text)
        sample.engine_result = {
            "found": scan.found_ids,
            "missing_critical": scan.missing_critical,
            "confidence": {
                k: round(d.confidence, 4) for k, d in scan.detections.items()
            },
        }

        labeled = set(sample.keywords)
        unknown_labels.update(labeled - set(metrics))

        for keyword_id, km in metrics.items():
            engine_has = scan.is_found(keyword_id)
            human_has = keyword_id in labeled

            if engine_has and human_has:
                km.true_positives += 1
            elif engine_has:
                km.false_positives += 1
                false_alarms.append({
                    "keyword_id": keyword_id,
                    "text": sample.text[:200],
                    "source": sample.source,
                    "notes": sample.notes,
                })
            elif human_has:
                km.false_negatives += 1
                misses.append({
                    "keyword_id": keyword_id,
                    "critical": km.critical,
                    "text": sample.text[:200],
                    "source": sample.source,
                    "notes": sample.notes,
                })
            else:
                km.true_negatives += 1

    active = [m for m in metrics.values() if m.support > 0]
    if active:
        overall_precision = sum(m.precision for m in active) / len(active)
        overall_recall = sum(m.recall for m in active) / len(active)
        overall_f1 = sum(m.f1 for m in active) / len(active)
    else:
        overall_precision = overall_recall = overall_f1 = 0.0

    critical = [m for m in metrics.values() if m.critical]
    critical_tp = sum(m.true_positives for m in critical)
    critical_support = sum(m.support for m in critical)
    # Nothing to lose means nothing was lost
    critical_recall = critical_tp / critical_support if critical_support else 1.0

    clean_count = sum(1 for s in samples if s.is_clean)

    return BenchmarkResult(
        total_samples=len(samples),
        clean_samples=clean_count,
        labeled_samples=len(samples) - clean_count,
        registry_version=registry.version,
        keyword_metrics=metrics,
        overall_precision=round(overall_precision, 4),
        overall_recall=round(overall_recall, 4),
        overall_f1=round(overall_f1, 4),
        critical_recall=round(critical_recall, 4),
        misses=misses,
        false_alarms=false_alarms,
        unknown_labels=sorted(unknown_labels),
    )


def run_benchmark(
    corpus_dir: str | Path = "calibration/corpus",
    registry: Optional[KeywordRegistry] = None,
) -> BenchmarkResult:
    """
    Run the full calibration benchmark.

    1. Parse all corpus files
    2. Scan each sample
    3. Compare detections against human labels
    4. Compute metrics
    """
    samples = parse_all_corpora(corpus_dir)
    if not samples:
        raise ValueError(f"No samples found in {corpus_dir}")
    return evaluate_samples(samples, registry)


def format_report(result: BenchmarkResult) -> str:
    """Format benchmark results as a human-readable report."""
    lines = [
        "=" * 60,
        "KEYWORDGUARD CALIBRATION REPORT",
        "=" * 60,
        "",
        f"Registry version: {result.registry_version}",
        f"Samples: {result.total_samples} "
        f"({result.clean_samples} clean, {result.labeled_samples} labeled)",
        "",
        "--- OVERALL METRICS ---",
        f"Precision: {result.overall_precision:.1%}",
        f"Recall:    {result.overall_recall:.1%}",
        f"F1 Score:  {result.overall_f1:.1%}",
        "",
        f"Critical recall: {result.critical_recall:.1%}"
        f"  {'✅ GOOD' if result.critical_recall >= 1.0 else '⚠️  CRITICAL KEYWORDS MISSED'}",
        "",
        "--- PER-KEYWORD BREAKDOWN ---",
        f"{'Keyword':<20} {'Crit':>4} {'Prec':>6} {'Recall':>6} {'F1':>6} "
        f"{'TP':>4} {'FP':>4} {'FN':>4} {'Support':>7}",
        "-" * 70,
    ]

    sorted_keywords = sorted(
        result.keyword_metrics.values(),
        key=lambda m: (not m.critical, -m.support, -m.f1),
    )
    for m in sorted_keywords:
        lines.append(
            f"{m.keyword_id:<20} {'yes' if m.critical else '':>4} "
            f"{m.precision:>5.0%} {m.recall:>6.0%} {m.f1:>5.0%} "
            f"{m.true_positives:>4} {m.false_positives:>4} "
            f"{m.false_negatives:>4} {m.support:>7}"
        )

    if result.misses:
        lines.extend(["", "--- MISSES (Engine missed a labeled keyword) ---"])
        for miss in result.misses[:10]:
            flag = " CRITICAL" if miss["critical"] else ""
            lines.append(f"  [{miss['keyword_id']}{flag}] {miss['text'][:80]}...")
            if miss.get("notes"):
                lines.append(f"    Notes: {miss['notes']}")

    if result.false_alarms:
        lines.extend(["", "--- FALSE ALARMS (Engine found an unlabeled keyword) ---"])
        for alarm in result.false_alarms[:10]:
            lines.append(f"  [{alarm['keyword_id']}] {alarm['text'][:80]}...")

    if result.unknown_labels:
        lines.extend([
            "",
            f"Unknown labels (not in registry): {', '.join(result.unknown_labels)}",
        ])

    lines.extend(["", "=" * 60])
    return "\n".join(lines)


def report_to_dict(result: BenchmarkResult) -> dict:
    """Machine-readable form of a benchmark result."""
    return {
        "registry_version": result.registry_version,
        "total_samples": result.total_samples,
        "clean_samples": result.clean_samples,
        "labeled_samples": result.labeled_samples,
        "overall": {
            "precision": result.overall_precision,
            "recall": result.overall_recall,
            "f1": result.overall_f1,
            "critical_recall": result.critical_recall,
        },
        "per_keyword": {
            kid: {
                "critical": m.critical,
                "precision": m.precision,
                "recall": m.recall,
                "f1": m.f1,
                "tp": m.true_positives,
                "fp": m.false_positives,
                "fn": m.false_negatives,
                "support": m.support,
            }
            for kid, m in result.keyword_metrics.items()
        },
        "misses": result.misses,
        "false_alarms": result.false_alarms,
        "unknown_labels": result.unknown_labels,
    }


def save_report(result: BenchmarkResult, output_dir: str | Path = "calibration/reports"):
    """Save benchmark results as both human-readable report and JSON."""
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    report_path = output_dir / "calibration_report.txt"
    report_path.write_text(format_report(result), encoding="utf-8")

    json_path = output_dir / "calibration_report.json"
    json_path.write_text(json.dumps(report_to_dict(result), indent=2), encoding="utf-8")

    return report_path, json_path
