"""
Hooks the chat pipeline calls around each turn.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Mapping, Optional, Sequence

import agentmem.config as config
from agentmem.services import memory_service
from agentmem.services.background import spawn
from agentmem.services.memory_retrieval import build_context_prompt, get_memories_for_context
from agentmem.services.memory_summary import generate_summary, schedule_summary_refresh

if TYPE_CHECKING:
    from agentmem.services.provider import MemoryProvider

logger = config.logger


def should_save_memory(message_count: int) -> bool:
    """First message of a session, then every MEMORY_SAVE_INTERVAL messages."""
    if message_count <= 0:
        return False
    return message_count == 1 or message_count % config.MEMORY_SAVE_INTERVAL == 0


async def _compact_and_refresh(agent_id: int, owner_id: str, provider: "MemoryProvider") -> None:
    await memory_service.summarize_memories(agent_id, owner_id, provider)
    await generate_summary(agent_id, owner_id, provider)


async def save_memory_if_needed(
    agent_id: int,
    owner_id: str,
    session_id: int,
    session_name: Optional[str],
    turns: Sequence[Mapping],
    provider: "MemoryProvider",
    message_count: Optional[int] = None,
) -> int:
    """Write memories for this turn when due. Never raises; returns memories created."""
    count = len(turns) if message_count is None else message_count
    if not should_save_memory(count):
        return 0

    try:
        created = await memory_service.create_memory(
            agent_id, owner_id, session_id, session_name, turns, provider
        )
    except Exception:
        logger.exception(f"Failed to save memories for agent {agent_id}")
        return 0

    if not created:
        return 0

    try:
        compact = await memory_service.should_summarize(agent_id, owner_id)
    except Exception as exc:
        logger.warning(f"Could not read update count for agent {agent_id}: {exc}")
        compact = False

    if compact:
        spawn(
            _compact_and_refresh(agent_id, owner_id, provider),
            name=f"memory-compaction-{agent_id}",
        )
    else:
        schedule_summary_refresh(agent_id, owner_id, provider)
    return created


async def get_relevant_memories(
    agent_id: int,
    owner_id: str,
    query_text: str,
    provider: "MemoryProvider",
) -> str:
    """Context block for the system prompt, or '' when nothing relevant is stored."""
    try:
        memories = await get_memories_for_context(agent_id, owner_id, query_text, provider)
    except Exception as exc:
        logger.warning(f"Memory retrieval failed: {exc}")
        return ""
    return build_context_prompt(memories)
