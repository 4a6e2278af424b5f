"""
Corpus Parser — Reads Labeled Calibration Samples

Parses the simple text format used for calibration corpus files.
Each sample is a block of resume text preceded by metadata tags,
separated by '---' delimiters.

Format:
    ---
    keywords: shopify, ecommerce
    source: Anonymized upload #1182
    notes: Theme work described only as "Liquid templates"

    The actual resume passage goes here. It can span
    multiple lines.

    ---

`keywords: none` (or no keywords line at all) marks a clean sample:
no registered keyword should be detected in it.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

CLEAN_TAG = "none"

_METADATA_LINE = re.compile(r"^(keywords|source|notes)\s*:\s*(.+)$", re.IGNORECASE)


@dataclass
class CalibrationSample:
    """A single labeled sample from the calibration corpus."""
    text: str
    keywords: list[str]           # Human-labeled keyword ids (empty when clean)
    source: str                   # Where the passage came from
    notes: str                    # Annotator notes

    # Populated after engine evaluation
    engine_result: Optional[dict] = None

    @property
    def is_clean(self) -> bool:
        return not self.keywords


def parse_corpus(filepath: str | Path) -> list[CalibrationSample]:
    """
    Parse a calibration corpus file into a list of samples.

    Args:
        filepath: Path to the corpus text file.

    Returns:
        List of CalibrationSample objects.
    """
    filepath = Path(filepath)
    if not filepath.exists():
        raise FileNotFoundError(f"Corpus file not found: {filepath}")

    content = filepath.read_text(encoding="utf-8")

    # Split on lines that are just --- (start of file, between blocks, end)
    blocks = re.split(r"(?:^|\n)\s*---\s*(?:\n|$)", content)

    samples = []
    for block in blocks:
        block = block.strip()
        if not block:
            continue

        sample = _parse_block(block)
        if sample:
            samples.append(sample)

    return samples


def _parse_block(block: str) -> Optional[CalibrationSample]:
    """Parse a single sample block."""
    metadata = {}
    text_lines = []
    in_text = False

    for line in block.split("\n"):
        stripped = line.strip()
        if stripped.startswith("#"):
            continue

        if not in_text:
            match = _METADATA_LINE.match(stripped)
            if match:
                metadata[match.group(1).lower()] = match.group(2).strip()
            elif stripped:
                # First non-metadata, non-empty line starts the text
                in_text = True
                text_lines.append(line)
        else:
            text_lines.append(line)

    text = "\n".join(text_lines).strip()
    if not text:
        return None

    raw_keywords = metadata.get("keywords", CLEAN_TAG)
    keywords = [
        k.strip().lower() for k in raw_keywords.split(",")
        if k.strip() and k.strip().lower() != CLEAN_TAG
    ]

    return CalibrationSample(
        text=text,
        keywords=keywords,
        source=metadata.get("source", "unknown"),
        notes=metadata.get("notes", ""),
    )


def parse_all_corpora(corpus_dir: str | Path) -> list[CalibrationSample]:
    """Parse all .txt corpus files in a directory."""
    corpus_dir = Path(corpus_dir)
    samples = []
    for filepath in sorted(corpus_dir.glob("*.txt")):
        samples.extend(parse_corpus(filepath))
    return samples
