"""
Agent memory endpoints.
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, Response
from pydantic import BaseModel

from agentmem.services import memory_service
from agentmem.services.memory_summary import generate_summary, schedule_summary_refresh
from agentmem.services.provider import OpenAIProvider
from app.deps import get_owner_id, get_provider, require_provider


router = APIRouter(prefix="/api/agents/{agent_id}/memories", tags=["memories"])


class MemoryUpdateRequest(BaseModel):
    key_point: str


@router.get("")
async def list_memories(
    agent_id: int,
    limit: Optional[int] = Query(None),
    owner_id: str = Depends(get_owner_id),
):
    records = await memory_service.list_memories(agent_id, owner_id, limit)
    return {
        "count": len(records),
        "memories": [record.to_dict() for record in records],
    }


@router.post("/summarize")
async def summarize(
    agent_id: int,
    owner_id: str = Depends(get_owner_id),
    provider: OpenAIProvider = Depends(require_provider),
):
    """Run compaction now, then refresh the client summary in the background."""
    stats = await memory_service.summarize_memories(agent_id, owner_id, provider)
    schedule_summary_refresh(agent_id, owner_id, provider)
    return stats


@router.post("/generate-summary")
async def regenerate_summary(
    agent_id: int,
    owner_id: str = Depends(get_owner_id),
    provider: OpenAIProvider = Depends(require_provider),
):
    summary = await generate_summary(agent_id, owner_id, provider)
    return {"agent_id": agent_id, "memory_summary": summary}


@router.get("/{memory_id}")
async def get_memory(
    agent_id: int,
    memory_id: int,
    owner_id: str = Depends(get_owner_id),
):
    record = await memory_service.get_memory(agent_id, owner_id, memory_id)
    return record.to_dict()


@router.put("/{memory_id}")
async def update_memory(
    agent_id: int,
    memory_id: int,
    body: MemoryUpdateRequest,
    owner_id: str = Depends(get_owner_id),
    provider: Optional[OpenAIProvider] = Depends(get_provider),
):
    record = await memory_service.update_memory(
        agent_id, owner_id, memory_id, body.key_point, provider
    )
    return record.to_dict()


@router.delete("/{memory_id}", status_code=204)
async def delete_memory(
    agent_id: int,
    memory_id: int,
    owner_id: str = Depends(get_owner_id),
    provider: Optional[OpenAIProvider] = Depends(get_provider),
):
    await memory_service.delete_memory(agent_id, owner_id, memory_id, provider)
    return Response(status_code=204)
