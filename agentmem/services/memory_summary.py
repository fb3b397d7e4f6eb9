"""
Client-facing memory summary stored on the agent profile.

The summary is display-only. It is regenerated in the background after any
memory mutation and must never raise into the code that scheduled it.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Optional

import agentmem.config as config
from agentmem.db import run_in_session
from agentmem.services import memory_store
from agentmem.services.background import spawn
from agentmem.services.prompts import SUMMARY_SYSTEM_PROMPT, numbered_list, summary_user_prompt
from agentmem.services.request_log import schedule_request_log

if TYPE_CHECKING:
    from agentmem.services.provider import MemoryProvider

logger = config.logger


async def generate_summary(
    agent_id: int,
    owner_id: str,
    provider: "MemoryProvider",
) -> Optional[str]:
    """Regenerate and store the agent's memory summary. Returns the stored text."""
    try:
        memories = await run_in_session(memory_store.list_memories, agent_id, owner_id)
        if not memories:
            await run_in_session(memory_store.update_agent_memory_summary, agent_id, None)
            logger.info(f"Cleared memory summary for agent {agent_id} (no memories)")
            return None

        agent = await run_in_session(memory_store.get_agent, agent_id)
        if agent is None:
            logger.warning(f"Agent {agent_id} not found; skipping memory summary")
            return None

        prompt = summary_user_prompt(
            agent.name,
            agent.gender,
            numbered_list([memory.key_point for memory in memories]),
        )
        result = await provider.complete(
            SUMMARY_SYSTEM_PROMPT,
            prompt,
            temperature=config.MEMORY_TEMPERATURE,
            max_tokens=config.MEMORY_SUMMARY_MAX_TOKENS,
        )
        if not result.ok or not result.value or not result.value.strip():
            logger.warning(f"No summary generated for agent {agent_id} ({result.error})")
            return None

        schedule_request_log(
            owner_id,
            {
                "model": provider.completion_model,
                "messages": [
                    {"role": "system", "content": SUMMARY_SYSTEM_PROMPT},
                    {"role": "user", "content": prompt},
                ],
                "temperature": config.MEMORY_TEMPERATURE,
                "max_tokens": config.MEMORY_SUMMARY_MAX_TOKENS,
            },
            result.raw,
            agent_id=agent_id,
        )

        summary = result.value.strip()[: config.MEMORY_SUMMARY_MAX_LENGTH]
        await run_in_session(memory_store.update_agent_memory_summary, agent_id, summary)
        logger.info(f"Generated memory summary for agent {agent_id} from {len(memories)} memories")
        return summary
    except Exception:
        logger.exception(f"Error generating memory summary for agent {agent_id}")
        return None


def schedule_summary_refresh(
    agent_id: int,
    owner_id: str,
    provider: Optional["MemoryProvider"],
) -> Optional[asyncio.Task]:
    if provider is None:
        return None
    return spawn(
        generate_summary(agent_id, owner_id, provider),
        name=f"memory-summary-{agent_id}",
    )
