"""
Dependency helpers for the standalone FastAPI app.
"""

from __future__ import annotations

from typing import Optional

from fastapi import Depends, Header, HTTPException

from agentmem.errors import ApiKeyRequiredError
from agentmem.services.provider import OpenAIProvider


async def get_owner_id(x_owner_id: Optional[str] = Header(None)) -> str:
    # Identity is authenticated upstream; this service only scopes by it.
    if not x_owner_id or not x_owner_id.strip():
        raise HTTPException(status_code=401, detail="X-Owner-Id header is required")
    return x_owner_id.strip()


async def get_provider(x_openai_key: Optional[str] = Header(None)) -> Optional[OpenAIProvider]:
    if not x_openai_key or not x_openai_key.strip():
        return None
    return OpenAIProvider(api_key=x_openai_key)


async def require_provider(
    provider: Optional[OpenAIProvider] = Depends(get_provider),
) -> OpenAIProvider:
    if provider is None:
        raise ApiKeyRequiredError()
    return provider
