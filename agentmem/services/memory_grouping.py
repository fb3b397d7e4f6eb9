"""
Similarity grouping and group summarization for memory compaction.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, List, Optional, Sequence

import numpy as np

import agentmem.config as config
from agentmem.services.prompts import (
    SUMMARIZATION_SYSTEM_PROMPT,
    numbered_list,
    summarization_user_prompt,
)

if TYPE_CHECKING:
    from agentmem.services.memory_store import MemoryRecord
    from agentmem.services.provider import MemoryProvider

logger = config.logger


def cosine_similarity(vec_a: Optional[Sequence[float]], vec_b: Optional[Sequence[float]]) -> float:
    """dot(a, b) / (|a| * |b|); 0.0 for zero norms or mismatched lengths."""
    if vec_a is None or vec_b is None:
        return 0.0
    a = np.asarray(vec_a, dtype=float)
    b = np.asarray(vec_b, dtype=float)
    if a.shape != b.shape or a.size == 0:
        return 0.0
    denominator = float(np.linalg.norm(a) * np.linalg.norm(b))
    if denominator == 0.0:
        return 0.0
    return float(np.dot(a, b) / denominator)


def group_similar_memories(
    memories: Sequence["MemoryRecord"],
    threshold: Optional[float] = None,
) -> List[List["MemoryRecord"]]:
    """
    Greedy, order-preserving grouping.

    Each unprocessed memory seeds a group; later unprocessed memories join it
    when their similarity to the seed (never to other members) reaches the
    threshold. Memories without an embedding stay singletons.
    """
    if threshold is None:
        threshold = config.MEMORY_GROUPING_THRESHOLD
    logger.debug(f"Grouping {len(memories)} memories by similarity")

    groups: List[List["MemoryRecord"]] = []
    processed: set[int] = set()

    for index, seed in enumerate(memories):
        if seed.id in processed:
            continue
        group = [seed]
        processed.add(seed.id)

        if seed.embedding:
            for candidate in memories[index + 1:]:
                if candidate.id in processed or not candidate.embedding:
                    continue
                if cosine_similarity(seed.embedding, candidate.embedding) >= threshold:
                    group.append(candidate)
                    processed.add(candidate.id)

        groups.append(group)

    logger.debug(f"Grouped memories into {len(groups)} groups")
    return groups


async def summarize_memory_group(
    group: Sequence["MemoryRecord"],
    provider: "MemoryProvider",
) -> str:
    """Ask the provider for one consolidated key point; '' on any failure."""
    if not group:
        return ""
    if len(group) == 1:
        return group[0].key_point

    prompt = summarization_user_prompt(
        numbered_list([memory.key_point for memory in group]),
        config.MAX_MEMORY_LENGTH,
    )
    try:
        result = await provider.complete(
            SUMMARIZATION_SYSTEM_PROMPT,
            prompt,
            temperature=config.MEMORY_TEMPERATURE,
            max_tokens=config.MEMORY_SUMMARIZATION_MAX_TOKENS,
        )
    except Exception as exc:
        logger.warning(f"Memory group summarization failed: {exc}")
        return ""

    if not result.ok or not result.value:
        logger.warning("No response from provider for memory summarization")
        return ""

    summary = result.value.strip()[: config.MAX_MEMORY_LENGTH]
    logger.debug(f"Generated summary: {summary[:50]}...")
    return summary
