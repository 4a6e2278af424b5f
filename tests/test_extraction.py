"""
Guarded Extraction Tests — Scan, Enhance, Extract, Validate, Retry

No real model calls: a mock provider returns pre-configured outputs.
"""

from __future__ import annotations

import pytest

from keywordguard.enhancer import marker_for
from keywordguard.extraction import (
    METADATA_KEY,
    ExtractionError,
    ExtractionProvider,
    guarded_extraction,
    keyword_metadata,
)
from keywordguard.registry import DEFAULT_REGISTRY
from keywordguard.session import ScreeningSession

RESUME = "Senior Shopify developer at Acme"
GOOD = {"workExperience": [{"company": "Acme", "description": "Shopify themes"}]}
LOST = {"workExperience": [{"company": "Acme", "description": "Themes"}]}


# ============================================================
# MOCK PROVIDER
# ============================================================

class MockProvider(ExtractionProvider):
    """Mock provider that returns pre-configured outputs in order."""

    def __init__(self, *responses):
        self._responses = list(responses)
        self.calls = []

    async def extract(self, text, instruction=None):
        self.calls.append({"text": text, "instruction": instruction})
        response = self._responses.pop(0)
        if isinstance(response, Exception):
            raise response
        if isinstance(response, dict):
            return dict(response)
        return response


# ============================================================
# FULL FLOW
# ============================================================

class TestGuardedExtraction:

    @pytest.mark.asyncio
    async def test_preserved_on_first_attempt(self):
        provider = MockProvider(GOOD)
        data = await guarded_extraction(RESUME, provider, ScreeningSession(DEFAULT_REGISTRY))
        assert len(provider.calls) == 1
        assert provider.calls[0]["text"] == marker_for("shopify") + RESUME
        assert provider.calls[0]["instruction"] is None
        metadata = data[METADATA_KEY]
        assert metadata["validation_passed"] is True
        assert "retry_attempted" not in metadata
        assert data["workExperience"] == GOOD["workExperience"]

    @pytest.mark.asyncio
    async def test_retry_recovers_lost_keyword(self):
        provider = MockProvider(LOST, GOOD)
        data = await guarded_extraction(RESUME, provider, ScreeningSession(DEFAULT_REGISTRY))
        assert len(provider.calls) == 2
        retry = provider.calls[1]
        assert retry["text"] == RESUME
        assert "- SHOPIFY" in retry["instruction"]
        assert data[METADATA_KEY]["retry_attempted"] is True
        assert data[METADATA_KEY]["validation_passed"] is True

    @pytest.mark.asyncio
    async def test_retry_still_failing(self):
        provider = MockProvider(LOST, LOST)
        session = ScreeningSession(DEFAULT_REGISTRY)
        data = await guarded_extraction(RESUME, provider, session)
        assert data[METADATA_KEY]["validation_passed"] is False
        assert data[METADATA_KEY]["post_validation"]["shopify"]["preserved"] is False
        # one scan + two validations
        assert len(session.log) == 3
        assert session.get_statistics().failed_scans == 2

    @pytest.mark.asyncio
    async def test_single_retry_only(self):
        provider = MockProvider(LOST, LOST, GOOD)
        await guarded_extraction(RESUME, provider, ScreeningSession(DEFAULT_REGISTRY))
        assert len(provider.calls) == 2

    @pytest.mark.asyncio
    async def test_no_retry_without_critical_in_original(self):
        provider = MockProvider({})
        data = await guarded_extraction(
            "Registered nurse", provider, ScreeningSession(DEFAULT_REGISTRY),
        )
        assert len(provider.calls) == 1
        assert data[METADATA_KEY]["pre_scan"]["critical_missing"] == 1

    @pytest.mark.asyncio
    async def test_creates_session_when_omitted(self):
        data = await guarded_extraction(RESUME, MockProvider(GOOD))
        assert METADATA_KEY in data


# ============================================================
# ERRORS
# ============================================================

class TestExtractionErrors:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("text", ["", "   \n"])
    async def test_empty_text(self, text):
        provider = MockProvider(GOOD)
        with pytest.raises(ExtractionError, match="No text content"):
            await guarded_extraction(text, provider)
        assert provider.calls == []

    @pytest.mark.asyncio
    async def test_provider_failure_wrapped(self):
        provider = MockProvider(RuntimeError("quota exceeded"))
        with pytest.raises(ExtractionError, match="quota exceeded") as exc_info:
            await guarded_extraction(RESUME, provider)
        assert isinstance(exc_info.value.__cause__, RuntimeError)

    @pytest.mark.asyncio
    async def test_provider_extraction_error_passes_through(self):
        provider = MockProvider(ExtractionError("bad json"))
        with pytest.raises(ExtractionError, match="^bad json$"):
            await guarded_extraction(RESUME, provider)

    @pytest.mark.asyncio
    async def test_non_mapping_output(self):
        provider = MockProvider(["not", "a", "mapping"])
        with pytest.raises(ExtractionError, match="expected a mapping"):
            await guarded_extraction(RESUME, provider)


class TestKeywordMetadata:

    def test_shape(self):
        session = ScreeningSession(DEFAULT_REGISTRY)
        scan = session.scan(RESUME)
        validation = session.validate(GOOD)
        metadata = keyword_metadata(scan, validation)
        assert metadata["pre_scan"] == scan.summary.to_dict()
        assert set(metadata["post_validation"]) == set(DEFAULT_REGISTRY.ids)
        assert metadata["validation_passed"] is True
        assert "retry_attempted" not in metadata
