"""
KeywordGuard Configuration

Central settings loaded from environment variables.
"""

import os
from dataclasses import dataclass
from dotenv import load_dotenv

load_dotenv()


@dataclass(frozen=True)
class Settings:
    """Immutable application settings."""

    # --- Versioning ---
    API_VERSION: str = "1"

    # --- Registry ---
    # Optional JSON registry definition. Empty = built-in registry.
    REGISTRY_PATH: str = os.getenv("KEYWORDGUARD_REGISTRY_PATH", "")

    # --- Engine limits ---
    LOG_CAPACITY: int = int(os.getenv("KEYWORDGUARD_LOG_CAPACITY", "100"))
    MAX_DEPTH: int = int(os.getenv("KEYWORDGUARD_MAX_DEPTH", "10"))
    MATCH_SAMPLE_LIMIT: int = int(
        os.getenv("KEYWORDGUARD_MATCH_SAMPLE_LIMIT", "10")
    )

    # --- Sessions (one per screening job) ---
    MAX_SESSIONS: int = int(os.getenv("KEYWORDGUARD_MAX_SESSIONS", "1000"))

    # --- Server ---
    HOST: str = os.getenv("KEYWORDGUARD_HOST", "0.0.0.0")
    PORT: int = int(os.getenv("KEYWORDGUARD_PORT", "8000"))

    # --- CORS ---
    CORS_ORIGINS: str = os.getenv("KEYWORDGUARD_CORS_ORIGINS", "*")


settings = Settings()
