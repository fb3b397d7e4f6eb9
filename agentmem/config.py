"""
Shared configuration for the agent memory engine.
"""

from __future__ import annotations

import logging
import os

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("agentmem")


def _get_bool(env_name: str, default: bool) -> bool:
    value = os.environ.get(env_name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _get_int(env_name: str, default: int) -> int:
    value = os.environ.get(env_name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _get_float(env_name: str, default: float) -> float:
    value = os.environ.get(env_name)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        return default


def _derive_effective_vector_backend(db_backend: str, vector_backend: str) -> str:
    if vector_backend not in {"pgvector", "none"}:
        return "none"
    if db_backend != "postgres":
        return "none"
    return vector_backend


# Database settings
DB_BACKEND = os.environ.get("DB_BACKEND", "postgres").strip().lower()
VECTOR_BACKEND = os.environ.get("VECTOR_BACKEND", "pgvector").strip().lower()
SQLITE_PATH = os.environ.get("SQLITE_PATH", "/data/agentmem.db")
DATABASE_URL = os.environ.get("DATABASE_URL")
VECTOR_BACKEND_EFFECTIVE = _derive_effective_vector_backend(DB_BACKEND, VECTOR_BACKEND)

# Database initialization controls
AUTO_CREATE_EXTENSIONS = _get_bool("AUTO_CREATE_EXTENSIONS", True)
AUTO_MIGRATE_ON_STARTUP = _get_bool("AUTO_MIGRATE_ON_STARTUP", True)

# Provider settings (credentials are passed per provider instance, never read here)
OPENAI_BASE_URL = os.environ.get("OPENAI_BASE_URL", "https://api.openai.com/v1").rstrip("/")
EMBEDDING_MODEL = os.environ.get("EMBEDDING_MODEL", "text-embedding-3-small")
EMBEDDING_DIM = _get_int("EMBEDDING_DIM", 1536)
MEMORY_MODEL = os.environ.get("MEMORY_MODEL", "gpt-4o-mini")
MEMORY_TEMPERATURE = _get_float("MEMORY_TEMPERATURE", 0.3)

PROVIDER_TIMEOUT_SECONDS = _get_float("PROVIDER_TIMEOUT_SECONDS", 30.0)
PROVIDER_RETRY_MAX = _get_int("PROVIDER_RETRY_MAX", 0)
PROVIDER_RETRY_BACKOFF_SECONDS = _get_float("PROVIDER_RETRY_BACKOFF_SECONDS", 0.5)
PROVIDER_RETRY_JITTER_SECONDS = _get_float("PROVIDER_RETRY_JITTER_SECONDS", 0.25)
PROVIDER_FAILURE_THRESHOLD = _get_int("PROVIDER_FAILURE_THRESHOLD", 5)
PROVIDER_COOLDOWN_SECONDS = _get_int("PROVIDER_COOLDOWN_SECONDS", 60)

# Extraction
MEMORY_EXTRACTION_MESSAGES = _get_int("MEMORY_EXTRACTION_MESSAGES", 10)
MAX_KEY_INSIGHTS_PER_UPDATE = _get_int("MAX_KEY_INSIGHTS_PER_UPDATE", 5)
MAX_MEMORY_LENGTH = _get_int("MAX_MEMORY_LENGTH", 200)
MEMORY_EXTRACTION_MAX_TOKENS = _get_int("MEMORY_EXTRACTION_MAX_TOKENS", 500)

# Retrieval
MEMORY_SIMILARITY_THRESHOLD = _get_float("MEMORY_SIMILARITY_THRESHOLD", 0.5)
MAX_SIMILAR_MEMORIES = _get_int("MAX_SIMILAR_MEMORIES", 5)

# Compaction
MEMORY_GROUPING_THRESHOLD = _get_float("MEMORY_GROUPING_THRESHOLD", 0.95)
MEMORY_SUMMARIZATION_LIMIT = _get_int("MEMORY_SUMMARIZATION_LIMIT", 100)
MEMORY_SUMMARIZATION_INTERVAL = _get_int("MEMORY_SUMMARIZATION_INTERVAL", 10)
MEMORY_SUMMARIZATION_MAX_TOKENS = _get_int("MEMORY_SUMMARIZATION_MAX_TOKENS", 200)

# Chat hooks
MEMORY_SAVE_INTERVAL = _get_int("MEMORY_SAVE_INTERVAL", 10)

# Client-facing summary
MEMORY_SUMMARY_MAX_LENGTH = _get_int("MEMORY_SUMMARY_MAX_LENGTH", 1000)
MEMORY_SUMMARY_MAX_TOKENS = _get_int("MEMORY_SUMMARY_MAX_TOKENS", 300)

# Request log
REQUEST_LOG_ENABLED = _get_bool("REQUEST_LOG_ENABLED", True)

# Request/input limits
MAX_RESULT_LIMIT = _get_int("AGENTMEM_MAX_RESULT_LIMIT", 100)
MAX_EMBEDDING_TEXT_LENGTH = _get_int("AGENTMEM_MAX_EMBEDDING_TEXT_LENGTH", 8000)


def validate_and_prepare_config() -> None:
    """Validate configuration and apply derived settings at startup."""
    global DATABASE_URL, VECTOR_BACKEND_EFFECTIVE

    errors = []
    if DB_BACKEND not in {"postgres", "sqlite"}:
        errors.append("DB_BACKEND must be 'postgres' or 'sqlite'")

    if VECTOR_BACKEND not in {"pgvector", "none"}:
        errors.append("VECTOR_BACKEND must be 'pgvector' or 'none'")

    if DB_BACKEND == "sqlite" and VECTOR_BACKEND == "pgvector":
        logger.warning("VECTOR_BACKEND=pgvector requires postgres; using in-process similarity.")

    if not DATABASE_URL:
        if DB_BACKEND == "sqlite":
            if not SQLITE_PATH:
                errors.append("SQLITE_PATH environment variable is required for sqlite")
            else:
                DATABASE_URL = f"sqlite:///{SQLITE_PATH}"
        else:
            errors.append("DATABASE_URL environment variable is required")
    else:
        is_sqlite_url = DATABASE_URL.lower().startswith("sqlite")
        if DB_BACKEND == "sqlite" and not is_sqlite_url:
            errors.append("DATABASE_URL must be a sqlite URL when DB_BACKEND=sqlite")
        if DB_BACKEND == "postgres" and is_sqlite_url:
            errors.append("DATABASE_URL must be a postgres URL when DB_BACKEND=postgres")

    if EMBEDDING_DIM <= 0:
        errors.append("EMBEDDING_DIM must be positive")
    if not 0.0 <= MEMORY_SIMILARITY_THRESHOLD <= 1.0:
        errors.append("MEMORY_SIMILARITY_THRESHOLD must be between 0.0 and 1.0")
    if not 0.0 <= MEMORY_GROUPING_THRESHOLD <= 1.0:
        errors.append("MEMORY_GROUPING_THRESHOLD must be between 0.0 and 1.0")
    if MAX_KEY_INSIGHTS_PER_UPDATE <= 0:
        errors.append("MAX_KEY_INSIGHTS_PER_UPDATE must be positive")

    VECTOR_BACKEND_EFFECTIVE = _derive_effective_vector_backend(DB_BACKEND, VECTOR_BACKEND)

    if errors:
        raise RuntimeError("Configuration invalid: " + "; ".join(errors))
