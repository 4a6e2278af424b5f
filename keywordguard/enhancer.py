"""
Text Enhancer — Preservation Markers

Prepends an explicit marker for every critical keyword found in the
text, so the generative extraction step is told which terms it must
keep. The original text is never altered: output is markers + text.

Markers accumulate in reverse registry order (the last critical keyword
processed ends up first). Downstream prompts depend on the exact bytes,
so MARKER_TEMPLATE must not change.
"""

from __future__ import annotations

import diff_match_patch as dmp_module

from keywordguard.registry import KeywordRegistry
from keywordguard.results import ScanResult

MARKER_TEMPLATE = "\n[CRITICAL_KEYWORD: {keyword} - MUST BE PRESERVED IN EXTRACTION]\n"

PRESERVATION_INSTRUCTION = (
    "CRITICAL INSTRUCTION: The following keywords were detected in the resume "
    "and MUST be preserved in the extraction:\n"
    "{keyword_list}\n"
    "\n"
    "Ensure these keywords appear in the appropriate sections (work experience, "
    "skills, etc.) where they were originally found."
)

# Singleton diff engine
_dmp = dmp_module.diff_match_patch()


def marker_for(keyword_id: str) -> str:
    return MARKER_TEMPLATE.format(keyword=keyword_id.upper())


def enhance_text(text: str, scan_result: ScanResult, registry: KeywordRegistry) -> str:
    """Prepend a preservation marker for each critical keyword found."""
    enhanced = text
    for keyword_id, detection in scan_result.detections.items():
        keyword_class = registry.get(keyword_id)
        if detection.found and keyword_class is not None and keyword_class.critical:
            enhanced = marker_for(keyword_id) + enhanced
    return enhanced


def build_preservation_instruction(scan_result: ScanResult) -> str:
    """
    Instruction block for a retry prompt listing every keyword found.

    Returns an empty string when nothing was found.
    """
    found = scan_result.found_ids
    if not found:
        return ""
    keyword_list = "\n".join(f"- {k.upper()}" for k in found)
    return PRESERVATION_INSTRUCTION.format(keyword_list=keyword_list)


def compute_insert_spans(original: str, enhanced: str) -> list[dict]:
    """
    Diff original against enhanced text.

    Uses diff-match-patch. Returns spans with type (equal/delete/insert),
    text, and positions in the enhanced text.
    """
    diffs = _dmp.diff_main(original, enhanced)
    _dmp.diff_cleanupSemantic(diffs)

    spans = []
    orig_pos = 0
    enh_pos = 0

    for op, text in diffs:
        if op == 0:  # EQUAL
            spans.append({
                "type": "equal",
                "text": text,
                "start": enh_pos,
                "end": enh_pos + len(text),
            })
            orig_pos += len(text)
            enh_pos += len(text)
        elif op == -1:  # DELETE
            spans.append({
                "type": "delete",
                "text": text,
                "orig_start": orig_pos,
                "orig_end": orig_pos + len(text),
            })
            orig_pos += len(text)
        elif op == 1:  # INSERT
            spans.append({
                "type": "insert",
                "text": text,
                "start": enh_pos,
                "end": enh_pos + len(text),
            })
            enh_pos += len(text)

    return spans


def preserves_original(original: str, enhanced: str) -> bool:
    """True when the enhanced text only adds characters to the original."""
    return all(span["type"] != "delete" for span in compute_insert_spans(original, enhanced))
