"""
Guarded Extraction — Keyword-Preserving Orchestration

Wraps an external generative extraction call with the integrity engine:

  1. Scan the raw text (cached in the job's session)
  2. Enhance it with preservation markers
  3. Call the extraction provider
  4. Validate the structured output against the original
  5. If a critical keyword was lost, retry once with an explicit
     preservation instruction and re-validate
  6. Attach keyword metadata to the extracted data

The provider is a collaborator: this module never picks or tunes a model.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Optional

from keywordguard.enhancer import build_preservation_instruction
from keywordguard.logging import get_logger
from keywordguard.results import ScanResult, ValidationResult
from keywordguard.scanner import is_scannable
from keywordguard.session import ScreeningSession

logger = get_logger("extraction")

METADATA_KEY = "_keyword_metadata"


class ExtractionError(RuntimeError):
    """Raised when the extraction provider fails or returns unusable output."""


class ExtractionProvider(ABC):
    """Abstract base for generative extraction backends."""

    @abstractmethod
    async def extract(self, text: str, instruction: Optional[str] = None) -> dict:
        """Return structured resume data for `text`.

        `instruction` carries extra system guidance (e.g. keyword
        preservation) to merge into the provider's own prompt.
        """
        ...


def keyword_metadata(
    pre_scan: ScanResult,
    validation: ValidationResult,
    retry_attempted: bool = False,
) -> dict:
    """Condensed integrity report attached to extracted data."""
    metadata = {
        "pre_scan": pre_scan.summary.to_dict(),
        "post_validation": {
            k: c.to_dict() for k, c in validation.keyword_comparison.items()
        },
        "validation_passed": validation.valid,
    }
    if retry_attempted:
        metadata["retry_attempted"] = True
    return metadata


async def _call_provider(
    provider: ExtractionProvider, text: str, instruction: Optional[str] = None,
) -> dict:
    try:
        data = await provider.extract(text, instruction=instruction)
    except ExtractionError:
        raise
    except Exception as e:
        raise ExtractionError(f"Resume extraction failed: {e}") from e
    if not isinstance(data, dict):
        raise ExtractionError(
            f"Extraction provider returned {type(data).__name__}, expected a mapping"
        )
    return data


async def guarded_extraction(
    text: str,
    provider: ExtractionProvider,
    session: Optional[ScreeningSession] = None,
) -> dict:
    """
    Run one extraction with keyword integrity checks and a single retry.

    Raises:
        ExtractionError: empty input, provider failure, or non-mapping output.
    """
    if not is_scannable(text) or not text.strip():
        raise ExtractionError("No text content to extract from")

    session = session or ScreeningSession()
    pre_scan = session.scan(text)
    enhanced = session.enhance(text, pre_scan)

    data = await _call_provider(provider, enhanced)
    validation = session.validate(data, text)
    retry_attempted = False

    if not validation.valid and validation.lost_critical:
        logger.warning(
            "Retrying extraction with explicit keyword preservation",
            extra={"job_id": session.job_id, "lost_keywords": validation.lost_critical},
        )
        instruction = build_preservation_instruction(pre_scan)
        data = await _call_provider(provider, text, instruction=instruction)
        validation = session.validate(data, text)
        retry_attempted = True

        if not validation.valid:
            logger.error(
                "Retry validation still failed",
                extra={
                    "job_id": session.job_id,
                    "errors_count": len(validation.errors),
                    "retry_attempted": True,
                },
            )

    data[METADATA_KEY] = keyword_metadata(pre_scan, validation, retry_attempted)
    return data
