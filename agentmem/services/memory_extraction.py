"""
Insight extraction: recent conversation turns -> short key-point strings.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, List, Mapping, Optional, Sequence

import agentmem.config as config
from agentmem.services.prompts import EXTRACTION_SYSTEM_PROMPT, extraction_user_prompt
from agentmem.services.request_log import schedule_request_log

if TYPE_CHECKING:
    from agentmem.services.provider import MemoryProvider

logger = config.logger

NUMBERED_LINE = re.compile(r"^\d+[.)]")
BULLET_PREFIX = re.compile(r"^[-•*]\s*")


def format_conversation(turns: Sequence[Mapping]) -> str:
    return "\n\n".join(f"{turn['role']}: {turn['content']}" for turn in turns)


def parse_insights(response_text: Optional[str]) -> List[str]:
    """
    Post-process a completion into insights.

    Numbered lines are dropped (not renumbered), bullet prefixes are stripped,
    over-long lines are discarded and the result is capped.
    """
    if not response_text:
        return []
    insights = []
    for line in response_text.split("\n"):
        line = line.strip()
        if not line or NUMBERED_LINE.match(line):
            continue
        line = BULLET_PREFIX.sub("", line, count=1)
        if not line or len(line) > config.MAX_MEMORY_LENGTH:
            continue
        insights.append(line)
    return insights[: config.MAX_KEY_INSIGHTS_PER_UPDATE]


async def extract_key_insights(
    turns: Sequence[Mapping],
    provider: "MemoryProvider",
    *,
    agent_id: Optional[int] = None,
    owner_id: Optional[str] = None,
) -> List[str]:
    """Never raises; any provider failure yields []."""
    if not turns:
        return []

    recent = list(turns)[-config.MEMORY_EXTRACTION_MESSAGES:]
    try:
        prompt = extraction_user_prompt(
            format_conversation(recent),
            config.MAX_KEY_INSIGHTS_PER_UPDATE,
            config.MAX_MEMORY_LENGTH,
        )
        result = await provider.complete(
            EXTRACTION_SYSTEM_PROMPT,
            prompt,
            temperature=config.MEMORY_TEMPERATURE,
            max_tokens=config.MEMORY_EXTRACTION_MAX_TOKENS,
        )
    except Exception as exc:
        logger.warning(f"Error extracting key insights: {exc}")
        return []

    if not result.ok or not result.value:
        logger.warning(f"No response from provider for memory extraction ({result.error})")
        return []

    schedule_request_log(
        owner_id,
        {
            "model": provider.completion_model,
            "messages": [
                {"role": "system", "content": EXTRACTION_SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            "temperature": config.MEMORY_TEMPERATURE,
            "max_tokens": config.MEMORY_EXTRACTION_MAX_TOKENS,
        },
        result.raw,
        agent_id=agent_id,
    )

    insights = parse_insights(result.value)
    if not insights:
        logger.warning(
            f"No insights extracted from {len(recent)} turns. "
            f"Response was: {result.value[:200]}..."
        )
    else:
        logger.info(f"Extracted {len(insights)} insights from {len(recent)} turns")
    return insights
