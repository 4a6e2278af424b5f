#!/usr/bin/env python3
"""
run_calibration.py — Run the keyword detection calibration.

Usage:
    python run_calibration.py                          # Full run
    python run_calibration.py --corpus-dir path/       # Custom corpus location
    python run_calibration.py --registry reg.json      # Evaluate a registry file
    python run_calibration.py --json                   # Output JSON only (for CI)
    python run_calibration.py --dump-registry          # Print built-in registry as JSON

Exits 2 when any labeled critical keyword is missed.
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent))

from keywordguard.registry import RegistryError, get_registry, load_registry, registry_to_json
from calibration.corpus_parser import parse_all_corpora
from calibration.benchmark import evaluate_samples, format_report, report_to_dict, save_report


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="KeywordGuard Calibration Runner")
    parser.add_argument(
        "--corpus-dir",
        default="calibration/corpus",
        help="Path to corpus directory (default: calibration/corpus)",
    )
    parser.add_argument(
        "--registry",
        default=None,
        help="JSON registry definition to evaluate (default: active registry)",
    )
    parser.add_argument(
        "--output-dir",
        default="calibration/reports",
        help="Directory for output reports (default: calibration/reports)",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Output JSON only (for CI/automation)",
    )
    parser.add_argument(
        "--dump-registry",
        action="store_true",
        help="Print the built-in registry definition as JSON and exit",
    )
    args = parser.parse_args(argv)

    if args.dump_registry:
        print(registry_to_json())
        return 0

    # Step 1: Registry
    try:
        registry = load_registry(args.registry) if args.registry else get_registry()
    except RegistryError as e:
        print(f"Error: {e}")
        return 1

    # Step 2: Corpus
    corpus_dir = Path(args.corpus_dir)
    if not corpus_dir.exists():
        print(f"Error: Corpus directory not found: {corpus_dir}")
        return 1

    samples = parse_all_corpora(corpus_dir)
    if not samples:
        print(f"Error: No samples found in {corpus_dir}")
        print("Add labeled samples to calibration/corpus/resume_corpus.txt")
        return 1

    # Step 3: Benchmark
    result = evaluate_samples(samples, registry)

    # Step 4: Output
    if args.json:
        print(json.dumps(report_to_dict(result), indent=2))
    else:
        print(f"Loaded {len(samples)} samples from {corpus_dir}")
        print(format_report(result))

        report_path, json_path = save_report(result, args.output_dir)
        print(f"\nReport saved to: {report_path}")
        print(f"JSON saved to:   {json_path}")

    # Step 5: Exit code for CI
    if result.critical_recall < 1.0:
        if not args.json:
            print("\n⚠️  Critical keyword recall below 100% — calibration failing")
        return 2

    return 0


if __name__ == "__main__":
    sys.exit(main())
