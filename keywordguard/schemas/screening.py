"""
API Schemas — Request and Response Models

Pydantic models for the KeywordGuard API.
"""

from __future__ import annotations

from typing import Any, Optional
from pydantic import BaseModel, Field


def _job_id_field():
    return Field(
        None, min_length=1, max_length=128, pattern=r"^[A-Za-z0-9._:-]+$",
        description="Screening job id. Omit to start a new job.",
    )


# ============================================================
# SCAN
# ============================================================

class ScanRequest(BaseModel):
    """POST /scan request body."""
    text: str = Field(..., min_length=1, max_length=200_000,
                      description="Raw document text (1-200,000 characters).")
    job_id: Optional[str] = _job_id_field()

    model_config = {"json_schema_extra": {"examples": [
        {"text": "Senior Shopify Plus developer, 5 years ecommerce", "job_id": "upload-42"},
    ]}}


class MatchResponse(BaseModel):
    kind: str
    text: str


class DetectionResponse(BaseModel):
    keyword_id: str
    found: bool
    match_count: int
    matches: list[MatchResponse]
    confidence: float
    context_note: Optional[str] = None


class ScanSummaryResponse(BaseModel):
    total_detected: int
    critical_detected: int
    critical_missing: int


class ScanResponse(BaseModel):
    """POST /scan response body."""
    job_id: str
    success: bool
    message: str
    timestamp: str
    detections: dict[str, DetectionResponse]
    missing_critical: list[str]
    summary: ScanSummaryResponse
    registry_version: str


# ============================================================
# ENHANCE
# ============================================================

class EnhanceRequest(BaseModel):
    """POST /enhance request body."""
    text: str = Field(..., min_length=1, max_length=200_000)
    job_id: Optional[str] = _job_id_field()


class EnhanceResponse(BaseModel):
    """POST /enhance response body."""
    job_id: str
    enhanced_text: str
    markers_added: list[str]
    original_preserved: bool
    diff_spans: list[dict]
    scan: ScanResponse


# ============================================================
# VALIDATE
# ============================================================

class ValidateRequest(BaseModel):
    """POST /validate request body."""
    extracted: Any = Field(..., description="Structured extraction output.")
    original_text: Optional[str] = Field(
        None, max_length=200_000,
        description="Source text. Optional when the job already has a scan.",
    )
    job_id: Optional[str] = _job_id_field()


class KeywordComparisonResponse(BaseModel):
    found_in_original: bool
    found_in_extraction: bool
    preserved: bool


class PlacementResponse(BaseModel):
    keyword_id: str
    valid: bool
    in_experience: bool
    in_skills: bool
    warnings: list[str]


class ValidationResponse(BaseModel):
    """POST /validate response body."""
    job_id: str
    valid: bool
    errors: list[str]
    warnings: list[str]
    keyword_comparison: dict[str, KeywordComparisonResponse]
    placement: Optional[PlacementResponse] = None
    lost_critical: list[str]


# ============================================================
# STATISTICS / REGISTRY / HEALTH
# ============================================================

class PhaseStatisticsResponse(BaseModel):
    total: int
    successful: int
    failed: int


class StatisticsResponse(BaseModel):
    job_id: str
    total_scans: int
    successful_scans: int
    failed_scans: int
    by_phase: dict[str, PhaseStatisticsResponse]
    entries: list[dict]


class RegistryResponse(BaseModel):
    registry_version: str
    total_keywords: int
    critical_keywords: list[str]
    keywords: list[dict]


class HealthResponse(BaseModel):
    status: str
    version: str
    registry_version: str
    keywords: int
    active_sessions: int
