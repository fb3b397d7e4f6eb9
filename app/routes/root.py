"""
Root endpoint with service metadata.
"""

from __future__ import annotations

from fastapi import APIRouter

import agentmem.config as config


router = APIRouter()


@router.get("/")
async def root():
    """Root endpoint with service info."""
    return {
        "service": "agentmem",
        "version": "0.1.0",
        "description": "Long-term memory engine for conversational agents",
        "db_backend": config.DB_BACKEND,
        "vector_backend": config.VECTOR_BACKEND_EFFECTIVE,
        "embedding_model": config.EMBEDDING_MODEL,
        "memory_model": config.MEMORY_MODEL,
        "endpoints": {
            "health": "/health",
            "memories": "/api/agents/{agent_id}/memories",
        },
    }
