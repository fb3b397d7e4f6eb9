"""
Agent memory service: writing, compaction and direct user edits.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, List, Mapping, Optional, Sequence

import agentmem.config as config
from agentmem.context import MemoryScope, SessionRef, build_memory_context
from agentmem.db import run_in_session
from agentmem.errors import MemoryNotFoundError
from agentmem.services import memory_store
from agentmem.services.memory_extraction import extract_key_insights
from agentmem.services.memory_grouping import group_similar_memories, summarize_memory_group
from agentmem.services.memory_summary import schedule_summary_refresh
from agentmem.validators import validate_limit, validate_turns

if TYPE_CHECKING:
    from agentmem.services.memory_store import MemoryRecord
    from agentmem.services.provider import MemoryProvider

logger = config.logger


# =============================================================================
# Writer
# =============================================================================


async def create_memory(
    agent_id: int,
    owner_id: str,
    session_id: int,
    session_name: Optional[str],
    turns: Sequence[Mapping],
    provider: "MemoryProvider",
) -> int:
    """
    Extract insights from ``turns`` and store one memory per insight.

    Each insight is embedded and stored independently; a failed insight is
    logged and skipped. Returns the number of memories stored.
    """
    scope = MemoryScope.from_values(agent_id, owner_id)
    validate_turns(turns)

    insights = await extract_key_insights(
        turns,
        provider,
        agent_id=scope.agent_id,
        owner_id=scope.owner_id,
    )
    if not insights:
        return 0

    context = build_memory_context(SessionRef(session_id, session_name), turns)
    created = 0
    for insight in insights:
        try:
            result = await provider.embed(insight)
            if not result.ok or not result.value:
                logger.warning(
                    f"Skipping insight, embedding unavailable ({result.error}): {insight[:50]}..."
                )
                continue
            await run_in_session(
                memory_store.insert_memory,
                scope.agent_id,
                scope.owner_id,
                insight,
                context,
                result.value,
            )
            created += 1
            logger.debug(f"Created memory: {insight[:50]}...")
        except Exception as exc:
            logger.warning(f"Failed to create memory for insight '{insight[:50]}': {exc}")

    logger.info(
        "memory_write_complete",
        extra={
            "agent_id": scope.agent_id,
            "insights": len(insights),
            "stored": created,
        },
    )
    return created


# =============================================================================
# Compaction
# =============================================================================


async def should_summarize(agent_id: int, owner_id: str) -> bool:
    update_count = await run_in_session(memory_store.get_update_count, agent_id, owner_id)
    return update_count >= config.MEMORY_SUMMARIZATION_INTERVAL


async def _compact_group(
    scope: MemoryScope,
    group: Sequence["MemoryRecord"],
    provider: "MemoryProvider",
) -> Optional[int]:
    """Replace ``group`` with one summarized memory. None when the group is skipped."""
    summary = await summarize_memory_group(group, provider)
    if not summary:
        logger.warning(f"Skipping group of {len(group)}: no summary")
        return None

    result = await provider.embed(summary)
    if not result.ok or not result.value:
        logger.warning(f"Skipping group of {len(group)}: summary embedding unavailable ({result.error})")
        return None

    await run_in_session(
        memory_store.insert_memory,
        scope.agent_id,
        scope.owner_id,
        summary,
        group[-1].context,
        result.value,
    )
    # Originals are removed only after the replacement row is committed.
    return await run_in_session(
        memory_store.delete_memories,
        scope.agent_id,
        scope.owner_id,
        [memory.id for memory in group],
    )


async def summarize_memories(
    agent_id: int,
    owner_id: str,
    provider: "MemoryProvider",
) -> dict:
    """
    Merge near-duplicate memories and reset the update counter.

    Fetches the newest MEMORY_SUMMARIZATION_LIMIT memories, groups them by
    similarity to each group's seed, and replaces every multi-member group
    with one summarized memory. Singleton groups are left as they are. With
    no memories at all nothing is touched, including the counter.
    """
    scope = MemoryScope.from_values(agent_id, owner_id)
    stats = {
        "status": "ok",
        "groups": 0,
        "merged_groups": 0,
        "created": 0,
        "deleted": 0,
        "failed": 0,
    }

    try:
        memories = await run_in_session(
            memory_store.list_memories,
            scope.agent_id,
            scope.owner_id,
            config.MEMORY_SUMMARIZATION_LIMIT,
        )
    except Exception as exc:
        logger.warning(f"Could not load memories for compaction: {exc}")
        stats["status"] = "error"
        return stats

    if not memories:
        stats["status"] = "empty"
        return stats

    groups = group_similar_memories(memories)
    stats["groups"] = len(groups)

    for group in groups:
        if len(group) <= 1:
            continue
        stats["merged_groups"] += 1
        try:
            deleted = await _compact_group(scope, group, provider)
        except Exception:
            logger.exception(f"Error compacting group of {len(group)} memories")
            stats["failed"] += 1
            continue
        if deleted is None:
            stats["failed"] += 1
            continue
        stats["created"] += 1
        stats["deleted"] += deleted

    try:
        await run_in_session(memory_store.reset_update_count, scope.agent_id, scope.owner_id)
    except Exception:
        logger.exception(f"Failed to reset update count for agent {scope.agent_id}")
        stats["status"] = "error"

    logger.info(
        "memory_compaction_complete",
        extra={"agent_id": scope.agent_id, "compaction": stats},
    )
    return stats


# =============================================================================
# Direct user edits
# =============================================================================


async def list_memories(
    agent_id: int,
    owner_id: str,
    limit: Optional[int] = None,
) -> List["MemoryRecord"]:
    scope = MemoryScope.from_values(agent_id, owner_id)
    validate_limit(limit, "limit", config.MAX_RESULT_LIMIT)
    return await run_in_session(memory_store.list_memories, scope.agent_id, scope.owner_id, limit)


async def get_memory(agent_id: int, owner_id: str, memory_id: int) -> "MemoryRecord":
    scope = MemoryScope.from_values(agent_id, owner_id)
    record = await run_in_session(memory_store.get_memory, scope.agent_id, scope.owner_id, memory_id)
    if record is None:
        raise MemoryNotFoundError(memory_id)
    return record


async def update_memory(
    agent_id: int,
    owner_id: str,
    memory_id: int,
    key_point: str,
    provider: Optional["MemoryProvider"] = None,
) -> "MemoryRecord":
    """Edit a memory's text; refreshes the client summary when a provider is given."""
    scope = MemoryScope.from_values(agent_id, owner_id)
    record = await run_in_session(
        memory_store.update_key_point,
        scope.agent_id,
        scope.owner_id,
        memory_id,
        key_point.strip() if isinstance(key_point, str) else key_point,
    )
    schedule_summary_refresh(scope.agent_id, scope.owner_id, provider)
    return record


async def delete_memory(
    agent_id: int,
    owner_id: str,
    memory_id: int,
    provider: Optional["MemoryProvider"] = None,
) -> None:
    scope = MemoryScope.from_values(agent_id, owner_id)
    await run_in_session(memory_store.delete_memory, scope.agent_id, scope.owner_id, memory_id)
    schedule_summary_refresh(scope.agent_id, scope.owner_id, provider)
