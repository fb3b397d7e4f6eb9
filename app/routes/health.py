"""
Health endpoint.
"""

from __future__ import annotations

from fastapi import APIRouter, HTTPException
from sqlalchemy import text

import agentmem.config as config
from agentmem.db import DB, _get_schema_revisions
from agentmem.services.background import pending_count
from agentmem.services.provider import provider_circuit_breakers


router = APIRouter()


def _check_db_health() -> dict:
    if DB.engine is None:
        return {"ok": False, "error": "db_not_initialized"}

    try:
        with DB.engine.connect() as conn:
            conn.execute(text("SELECT 1"))
            ext_version = None
            pgvector_installed = True
            if config.DB_BACKEND == "postgres" and config.VECTOR_BACKEND_EFFECTIVE == "pgvector":
                ext_version = conn.execute(
                    text("SELECT extversion FROM pg_extension WHERE extname = 'vector'")
                ).scalar()
                pgvector_installed = bool(ext_version)
        current_rev, head_rev = _get_schema_revisions(DB.engine)
    except Exception as exc:
        return {"ok": False, "error": str(exc)}

    schema_ok = head_rev is None or current_rev == head_rev
    return {
        "ok": schema_ok,
        "pgvector_installed": pgvector_installed,
        "pgvector_version": ext_version,
        "schema_revision": current_rev,
        "schema_expected": head_rev,
        "schema_up_to_date": schema_ok,
    }


def _check_provider_health() -> dict:
    breaker_status = provider_circuit_breakers.status()
    return {
        "status": "cooldown" if breaker_status.get("open") else "ready",
        "embedding_model": config.EMBEDDING_MODEL,
        "memory_model": config.MEMORY_MODEL,
        "circuit_breaker": breaker_status,
    }


@router.get("/health")
async def health():
    """Health check endpoint."""
    db_health = _check_db_health()
    provider_status = _check_provider_health()
    vector_required = config.DB_BACKEND == "postgres" and config.VECTOR_BACKEND_EFFECTIVE == "pgvector"
    if not db_health.get("ok") or (vector_required and not db_health.get("pgvector_installed")):
        raise HTTPException(
            status_code=503,
            detail={"database": db_health, "provider": provider_status},
        )

    return {
        "status": "healthy",
        "service": "agentmem",
        "version": "0.1.0",
        "database": db_health,
        "provider": provider_status,
        "background_tasks": pending_count(),
    }
