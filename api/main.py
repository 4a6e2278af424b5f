"""
KeywordGuard API — Main Application

POST   /scan                     — Pre-extraction keyword scan
POST   /enhance                  — Prepend preservation markers
POST   /validate                 — Reconcile extraction against original
GET    /jobs/{job_id}/statistics — Detection log statistics for a job
DELETE /jobs/{job_id}            — Drop a job's cached scan and log
GET    /registry                 — Active keyword registry
GET    /health                   — Health check

Every request belongs to a screening job. Requests without a job_id
start a new one; the id is returned so later calls reuse its session.
"""

from __future__ import annotations

import time
import uuid
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.requests import Request

from keywordguard import __version__
from keywordguard.config import settings
from keywordguard.enhancer import compute_insert_spans, marker_for
from keywordguard.logging import setup_logging, get_logger
from keywordguard.registry import get_registry
from keywordguard.schemas.screening import (
    EnhanceRequest,
    EnhanceResponse,
    HealthResponse,
    RegistryResponse,
    ScanRequest,
    ScanResponse,
    StatisticsResponse,
    ValidateRequest,
    ValidationResponse,
)
from keywordguard.session import ScreeningSession, SessionStore

logger = get_logger("api")

session_store = SessionStore(max_sessions=settings.MAX_SESSIONS)


# ============================================================
# STARTUP / SHUTDOWN
# ============================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Configure logging and load the registry before serving."""
    setup_logging()
    registry = get_registry()
    logger.info("KeywordGuard API starting",
                extra={"registry_version": registry.version})
    yield
    logger.info("KeywordGuard API shutting down")


app = FastAPI(
    title="KeywordGuard API",
    description="Keyword integrity checks for generative resume extraction",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in settings.CORS_ORIGINS.split(",")],
    allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
    allow_credentials=False,
)


# ============================================================
# GLOBAL ERROR HANDLER
# ============================================================

@app.exception_handler(Exception)
async def global_error_handler(request: Request, exc: Exception):
    """Catch unhandled exceptions — return structured error, don't leak internals."""
    logger.error(
        f"Unhandled exception: {type(exc).__name__}",
        extra={"error": str(exc), "path": request.url.path, "method": request.method},
        exc_info=True,
    )
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error. The request could not be completed."},
    )


def _session_for(job_id: Optional[str]) -> tuple[str, ScreeningSession]:
    job_id = job_id or uuid.uuid4().hex
    return job_id, session_store.get_or_create(job_id)


def _existing_session(job_id: str) -> ScreeningSession:
    session = session_store.get(job_id)
    if session is None:
        raise HTTPException(404, f"Unknown job: {job_id}")
    return session


# ============================================================
# ROUTES
# ============================================================

@app.post("/scan", response_model=ScanResponse)
async def scan_text(request: ScanRequest):
    """Scan raw document text for registered keywords."""
    job_id, session = _session_for(request.job_id)
    result = session.scan(request.text)
    return {"job_id": job_id, **result.to_dict()}


@app.post("/enhance", response_model=EnhanceResponse)
async def enhance(request: EnhanceRequest):
    """Scan, then prepend preservation markers for critical keywords."""
    job_id, session = _session_for(request.job_id)
    scan = session.scan(request.text)
    enhanced = session.enhance(request.text, scan)

    spans = compute_insert_spans(request.text, enhanced)
    markers = [
        k for k in scan.found_ids
        if session.registry.get(k).critical
    ]
    return {
        "job_id": job_id,
        "enhanced_text": enhanced,
        "markers_added": [marker_for(k).strip() for k in markers],
        "original_preserved": all(s["type"] != "delete" for s in spans),
        "diff_spans": spans,
        "scan": {"job_id": job_id, **scan.to_dict()},
    }


@app.post("/validate", response_model=ValidationResponse)
async def validate(request: ValidateRequest):
    """Validate a structured extraction against the job's original text."""
    job_id, session = _session_for(request.job_id)
    original_text = request.original_text
    if original_text is not None and not original_text.strip():
        original_text = None  # blank counts as absent
    if session.last_scan is None and original_text is None:
        raise HTTPException(
            422, "original_text is required when the job has no prior scan",
        )
    validation = session.validate(request.extracted, original_text)
    return {"job_id": job_id, **validation.to_dict()}


@app.get("/jobs/{job_id}/statistics", response_model=StatisticsResponse)
async def job_statistics(job_id: str):
    """Detection log statistics and entries for one job."""
    session = _existing_session(job_id)
    stats = session.get_statistics()
    return {
        "job_id": job_id,
        **stats.to_dict(),
        "entries": [e.to_dict() for e in session.log.entries],
    }


@app.delete("/jobs/{job_id}")
async def clear_job(job_id: str):
    """Clear a job's log and cached scan, then forget the job."""
    session = _existing_session(job_id)
    session.clear()
    session_store.discard(job_id)
    return {"job_id": job_id, "cleared": True}


@app.get("/registry", response_model=RegistryResponse)
async def registry():
    """Return the active keyword registry."""
    active = get_registry()
    return {
        "registry_version": active.version,
        "total_keywords": len(active),
        "critical_keywords": active.critical_ids,
        "keywords": active.describe(),
    }


@app.get("/health", response_model=HealthResponse)
async def health():
    """Health check."""
    active = get_registry()
    return {
        "status": "operational",
        "version": __version__,
        "registry_version": active.version,
        "keywords": len(active),
        "active_sessions": len(session_store),
    }


# --- Version Headers Middleware ---
@app.middleware("http")
async def add_version_headers(request: Request, call_next):
    """Stamp API and registry versions on every response."""
    response = await call_next(request)
    response.headers["X-KeywordGuard-Version"] = __version__
    response.headers["X-Registry-Version"] = get_registry().version
    response.headers["X-Content-Type-Options"] = "nosniff"
    return response


# --- Body Size Limit Middleware ---
_MAX_BODY_BYTES = 1_048_576  # 1 MB, well above any single resume payload


def _body_too_large() -> JSONResponse:
    return JSONResponse(
        status_code=413,
        content={"detail": "Request body exceeds 1 MB. Send one document per request."},
    )


@app.middleware("http")
async def limit_request_body(request: Request, call_next):
    """413 for screening payloads over 1 MB, declared or actually sent."""
    declared = request.headers.get("content-length", "")
    if declared.isdigit() and int(declared) > _MAX_BODY_BYTES:
        return _body_too_large()

    # Chunked uploads carry no length header; measure what arrived
    if request.method == "POST" and len(await request.body()) > _MAX_BODY_BYTES:
        return _body_too_large()

    return await call_next(request)


# --- Request Logging Middleware ---
@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log every API request with method, path, status, duration."""
    path = request.url.path
    if path == "/health":
        return await call_next(request)

    start = time.time()
    response = await call_next(request)
    duration_ms = round((time.time() - start) * 1000, 1)

    logger.info(
        f"{request.method} {path} → {response.status_code} ({duration_ms}ms)",
        extra={
            "method": request.method,
            "path": path,
            "status_code": response.status_code,
            "duration_ms": duration_ms,
        },
    )
    return response
