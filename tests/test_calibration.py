"""
Tests for the calibration framework.

Tests cover:
  - Corpus parser (format parsing, edge cases)
  - Benchmark runner (metric calculation, report generation)
  - CLI exit codes
"""

import json
import textwrap
from pathlib import Path

import pytest

from calibration.corpus_parser import (
    CalibrationSample,
    parse_corpus,
    parse_all_corpora,
    _parse_block,
)
from calibration.benchmark import (
    KeywordMetrics,
    evaluate_samples,
    format_report,
    run_benchmark,
    save_report,
)
from keywordguard.registry import DEFAULT_REGISTRY, build_registry
from run_calibration import main

# Absolute path to the seed corpus (works regardless of CWD)
REPO_ROOT = Path(__file__).resolve().parent.parent
SEED_CORPUS = REPO_ROOT / "calibration" / "corpus"


def _sample(text, keywords=(), source="test", notes=""):
    return CalibrationSample(text=text, keywords=list(keywords), source=source, notes=notes)


# ============================================================
# Corpus Parser Tests
# ============================================================

class TestCorpusParser:

    def test_parse_single_sample(self, tmp_path):
        corpus = tmp_path / "test.txt"
        corpus.write_text(textwrap.dedent("""\
            ---
            keywords: Shopify, ecommerce
            source: upload 12
            notes: test note

            Shopify Plus developer building ecommerce stores.

            ---
        """))
        samples = parse_corpus(corpus)
        assert len(samples) == 1
        s = samples[0]
        assert s.keywords == ["shopify", "ecommerce"]
        assert s.source == "upload 12"
        assert s.notes == "test note"
        assert s.text == "Shopify Plus developer building ecommerce stores."
        assert s.is_clean is False

    def test_none_marks_clean(self):
        s = _parse_block("keywords: none\n\nRegistered nurse.")
        assert s.keywords == []
        assert s.is_clean is True

    def test_missing_keywords_line_is_clean(self):
        s = _parse_block("source: x\n\nPlain text.")
        assert s.is_clean is True
        assert s.notes == ""

    def test_multiline_text(self):
        s = _parse_block("keywords: shopify\n\nLine one\nLine two")
        assert s.text == "Line one\nLine two"

    def test_comments_skipped(self):
        s = _parse_block("# comment\nkeywords: shopify\n# another\n\nShopify")
        assert s.keywords == ["shopify"]
        assert s.text == "Shopify"

    def test_metadata_only_block_ignored(self):
        assert _parse_block("keywords: shopify\nsource: x") is None

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            parse_corpus(tmp_path / "nope.txt")

    def test_parse_all_corpora(self, tmp_path):
        (tmp_path / "a.txt").write_text("---\nkeywords: shopify\n\nShopify\n---\n")
        (tmp_path / "b.txt").write_text("---\nkeywords: none\n\nNurse\n---\n")
        (tmp_path / "ignored.md").write_text("---\nkeywords: shopify\n\nShopify\n---\n")
        samples = parse_all_corpora(tmp_path)
        assert len(samples) == 2

    def test_seed_corpus_parses(self):
        samples = parse_all_corpora(SEED_CORPUS)
        assert len(samples) >= 8
        assert any(s.is_clean for s in samples)
        for s in samples:
            if "shopify" in s.keywords:
                assert "shopify" in s.text.lower()


# ============================================================
# Metrics
# ============================================================

class TestKeywordMetrics:

    def test_precision_recall_f1(self):
        m = KeywordMetrics("shopify", True, true_positives=3, false_positives=1, false_negatives=1)
        assert m.precision == pytest.approx(0.75)
        assert m.recall == pytest.approx(0.75)
        assert m.f1 == pytest.approx(0.75)
        assert m.support == 4

    def test_zero_division(self):
        m = KeywordMetrics("x", False)
        assert m.precision == 0.0
        assert m.recall == 0.0
        assert m.f1 == 0.0


# ============================================================
# Benchmark Tests
# ============================================================

class TestBenchmark:

    def test_perfect_detection(self):
        samples = [
            _sample("Shopify developer", ["shopify"]),
            _sample("Registered nurse"),
        ]
        result = evaluate_samples(samples, DEFAULT_REGISTRY)
        assert result.critical_recall == 1.0
        assert result.keyword_metrics["shopify"].true_positives == 1
        assert result.keyword_metrics["shopify"].true_negatives == 1
        assert result.misses == []
        assert result.false_alarms == []
        assert result.clean_samples == 1
        assert result.labeled_samples == 1

    def test_missed_critical(self):
        samples = [_sample("Built storefront themes", ["shopify"])]
        result = evaluate_samples(samples, DEFAULT_REGISTRY)
        assert result.critical_recall == 0.0
        assert result.misses[0]["keyword_id"] == "shopify"
        assert result.misses[0]["critical"] is True

    def test_false_alarm(self):
        samples = [_sample("Five years of ecommerce")]
        result = evaluate_samples(samples, DEFAULT_REGISTRY)
        assert result.keyword_metrics["ecommerce"].false_positives == 1
        assert result.false_alarms[0]["keyword_id"] == "ecommerce"

    def test_no_critical_labels_counts_as_full_recall(self):
        result = evaluate_samples([_sample("Registered nurse")], DEFAULT_REGISTRY)
        assert result.critical_recall == 1.0

    def test_unknown_labels_reported(self):
        result = evaluate_samples([_sample("Django", ["django"])], DEFAULT_REGISTRY)
        assert result.unknown_labels == ["django"]

    def test_engine_result_recorded(self):
        sample = _sample("Shopify", ["shopify"])
        evaluate_samples([sample], DEFAULT_REGISTRY)
        assert sample.engine_result["found"] == ["shopify"]

    def test_custom_registry(self):
        registry = build_registry({"keywords": [
            {"id": "django", "variations": ["django"], "weight": 1.0, "critical": True},
        ]})
        result = evaluate_samples([_sample("Django", ["django"])], registry)
        assert list(result.keyword_metrics) == ["django"]
        assert result.critical_recall == 1.0

    def test_seed_corpus_critical_recall(self):
        result = run_benchmark(SEED_CORPUS, DEFAULT_REGISTRY)
        assert result.critical_recall == 1.0
        assert result.overall_f1 == 1.0

    def test_empty_corpus(self, tmp_path):
        with pytest.raises(ValueError, match="No samples"):
            run_benchmark(tmp_path)

    def test_format_report(self):
        result = evaluate_samples([_sample("Shopify", ["shopify"])], DEFAULT_REGISTRY)
        report = format_report(result)
        assert "KEYWORDGUARD CALIBRATION REPORT" in report
        assert "Critical recall: 100.0%" in report
        assert "shopify" in report

    def test_format_report_lists_misses(self):
        result = evaluate_samples([_sample("Themes", ["shopify"])], DEFAULT_REGISTRY)
        report = format_report(result)
        assert "MISSES" in report
        assert "[shopify CRITICAL]" in report

    def test_save_report(self, tmp_path):
        result = evaluate_samples([_sample("Shopify", ["shopify"])], DEFAULT_REGISTRY)
        report_path, json_path = save_report(result, tmp_path / "reports")
        assert report_path.exists()
        data = json.loads(json_path.read_text())
        assert data["overall"]["critical_recall"] == 1.0
        assert data["per_keyword"]["shopify"]["tp"] == 1


# ============================================================
# CLI
# ============================================================

class TestRunCalibration:

    def test_seed_corpus_passes(self, tmp_path, capsys):
        code = main(["--corpus-dir", str(SEED_CORPUS), "--output-dir", str(tmp_path)])
        assert code == 0
        assert "KEYWORDGUARD CALIBRATION REPORT" in capsys.readouterr().out

    def test_json_output(self, capsys):
        assert main(["--corpus-dir", str(SEED_CORPUS), "--json"]) == 0
        data = json.loads(capsys.readouterr().out)
        assert data["overall"]["critical_recall"] == 1.0

    def test_missed_critical_exits_2(self, tmp_path, capsys):
        corpus = tmp_path / "corpus"
        corpus.mkdir()
        (corpus / "c.txt").write_text("---\nkeywords: shopify\n\nTheme developer\n---\n")
        assert main(["--corpus-dir", str(corpus), "--json"]) == 2

    def test_missing_corpus_dir(self, tmp_path):
        assert main(["--corpus-dir", str(tmp_path / "nope")]) == 1

    def test_invalid_registry_file(self, tmp_path):
        registry = tmp_path / "registry.json"
        registry.write_text('{"keywords": []}')
        assert main(["--registry", str(registry), "--corpus-dir", str(SEED_CORPUS)]) == 1

    def test_dump_registry(self, capsys):
        assert main(["--dump-registry"]) == 0
        data = json.loads(capsys.readouterr().out)
        assert [k["id"] for k in data["keywords"]] == DEFAULT_REGISTRY.ids
