"""
KeywordGuard — Keyword Integrity for Generative Resume Extraction

Detects business-critical terms in raw candidate text, checks they
survive structuring by a generative model, and decides whether the
extraction can be trusted.

Public API:
  - ScreeningSession:  Per-job context (cached scan + detection log)
  - KeywordScanner:    Deterministic keyword detection (zero API cost)
  - ExtractionValidator: Pre/post extraction reconciliation
  - enhance_text:      Preservation markers for critical keywords
  - guarded_extraction: Scan → enhance → extract → validate → retry
  - registry_from_requirements: Registry built from job skills

Usage:
    from keywordguard import ScreeningSession
    session = ScreeningSession(job_id="upload-42")
    scan = session.scan(resume_text)
    validation = session.validate(extracted, resume_text)
"""

__version__ = "1.0.0"

from keywordguard.registry import (
    DEFAULT_REGISTRY,
    REGISTRY_VERSION,
    KeywordClass,
    KeywordRegistry,
    RegistryError,
    build_registry,
    get_registry,
    load_registry,
)
from keywordguard.normalizer import normalize_text
from keywordguard.scanner import KeywordScanner, calculate_confidence
from keywordguard.validator import ExtractionValidator
from keywordguard.enhancer import enhance_text, build_preservation_instruction
from keywordguard.structure import flatten
from keywordguard.detection_log import DetectionLog
from keywordguard.session import ScreeningSession, SessionStore
from keywordguard.requirements import (
    registry_from_requirements,
    has_any_required,
    keyword_matches,
)
from keywordguard.extraction import (
    ExtractionError,
    ExtractionProvider,
    guarded_extraction,
)
from keywordguard.results import ScanResult, ValidationResult

__all__ = [
    "DEFAULT_REGISTRY",
    "REGISTRY_VERSION",
    "KeywordClass",
    "KeywordRegistry",
    "RegistryError",
    "build_registry",
    "get_registry",
    "load_registry",
    "normalize_text",
    "KeywordScanner",
    "calculate_confidence",
    "ExtractionValidator",
    "enhance_text",
    "build_preservation_instruction",
    "flatten",
    "DetectionLog",
    "ScreeningSession",
    "SessionStore",
    "registry_from_requirements",
    "has_any_required",
    "keyword_matches",
    "ExtractionError",
    "ExtractionProvider",
    "guarded_extraction",
    "ScanResult",
    "ValidationResult",
]
