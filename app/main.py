"""
Standalone FastAPI app wiring for the agent memory engine.
"""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

import agentmem.config as config
from agentmem.db import DB, init_db
from agentmem.errors import ApiKeyRequiredError, MemoryNotFoundError, ValidationIssue
from agentmem.services import background
from app.middleware import configure_middleware
from app.routes.health import router as health_router
from app.routes.memories import router as memories_router
from app.routes.root import router as root_router


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize on startup, cleanup on shutdown."""
    init_db()
    try:
        yield
    finally:
        await background.drain(timeout=config.PROVIDER_TIMEOUT_SECONDS)
        if DB.engine:
            DB.engine.dispose()


app = FastAPI(title="agentmem", redirect_slashes=False, lifespan=lifespan)
configure_middleware(app)


@app.exception_handler(MemoryNotFoundError)
async def memory_not_found_handler(request: Request, exc: MemoryNotFoundError):
    return JSONResponse(status_code=404, content={"detail": str(exc), "memory_id": exc.memory_id})


@app.exception_handler(ApiKeyRequiredError)
async def api_key_required_handler(request: Request, exc: ApiKeyRequiredError):
    return JSONResponse(status_code=400, content={"detail": str(exc)})


@app.exception_handler(ValidationIssue)
async def validation_issue_handler(request: Request, exc: ValidationIssue):
    config.logger.info(
        "validation_issue",
        extra={"path": request.url.path, "field": exc.field, "error_type": exc.error_type},
    )
    return JSONResponse(
        status_code=422,
        content={"detail": str(exc), "field": exc.field, "error_type": exc.error_type},
    )


app.include_router(health_router)
app.include_router(root_router)
app.include_router(memories_router)
