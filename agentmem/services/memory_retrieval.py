"""
Memory retrieval for prompt context.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, List, Sequence

import agentmem.config as config
from agentmem.db import run_in_session
from agentmem.services import memory_store
from agentmem.services.prompts import context_prompt

if TYPE_CHECKING:
    from agentmem.services.memory_store import MemoryRecord
    from agentmem.services.provider import MemoryProvider

logger = config.logger


def format_memory_line(record: "MemoryRecord") -> str:
    """'Jan 15, 2024 - key point'"""
    created = record.created_at
    return f"{created:%b} {created.day}, {created.year} - {record.key_point}"


async def get_memories_for_context(
    agent_id: int,
    owner_id: str,
    query_text: str,
    provider: "MemoryProvider",
) -> List[str]:
    """Date-prefixed memories most similar to ``query_text``; [] on any failure."""
    if not query_text or not query_text.strip():
        return []

    try:
        result = await provider.embed(query_text)
    except Exception as exc:
        logger.warning(f"Query embedding failed: {exc}")
        return []
    if not result.ok or not result.value:
        logger.warning(f"Query embedding unavailable ({result.error})")
        return []

    try:
        records = await run_in_session(
            memory_store.find_similar,
            result.value,
            agent_id,
            owner_id,
            config.MAX_SIMILAR_MEMORIES,
            config.MEMORY_SIMILARITY_THRESHOLD,
        )
    except Exception as exc:
        logger.warning(f"Memory search failed: {exc}")
        return []

    logger.debug(f"Found {len(records)} relevant memories for agent {agent_id}")
    return [format_memory_line(record) for record in records]


def build_context_prompt(memories: Sequence[str]) -> str:
    if not memories:
        return ""
    return context_prompt(memories)
