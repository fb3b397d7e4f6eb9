import asyncio
from datetime import datetime

import pytest

import agentmem.config as config
from agentmem.services.memory_grouping import (
    cosine_similarity,
    group_similar_memories,
    summarize_memory_group,
)
from agentmem.services.memory_store import MemoryRecord

from conftest import FakeProvider


def _record(memory_id, key_point, embedding):
    return MemoryRecord(
        id=memory_id,
        agent_id=1,
        owner_id="u1",
        key_point=key_point,
        context={"sessionId": memory_id},
        embedding=embedding,
        created_at=datetime(2024, 1, 15),
        updated_at=None,
        update_count=1,
    )


def test_cosine_similarity_cases():
    assert cosine_similarity([1, 0, 0], [1, 0, 0]) == pytest.approx(1.0)
    assert cosine_similarity([1, 0, 0], [0, 1, 0]) == pytest.approx(0.0)
    assert cosine_similarity([0, 0, 0], [1, 0, 0]) == 0.0
    assert cosine_similarity([1, 0], [1, 0, 0]) == 0.0
    assert cosine_similarity(None, [1, 0, 0]) == 0.0


def test_orthogonal_memories_stay_singletons():
    memories = [_record(1, "a", [1, 0, 0]), _record(2, "b", [0, 1, 0])]
    groups = group_similar_memories(memories)
    assert [[m.id for m in group] for group in groups] == [[1], [2]]


def test_near_identical_memories_merge():
    memories = [_record(1, "a", [1, 0, 0]), _record(2, "b", [0.999, 0.01, 0])]
    groups = group_similar_memories(memories)
    assert [[m.id for m in group] for group in groups] == [[1, 2]]


def test_grouping_compares_to_seed_only():
    # b is close to both a and c, but c is not close enough to the seed a.
    a = _record(1, "a", [1.0, 0.0, 0.0])
    b = _record(2, "b", [0.97, 0.243, 0.0])
    c = _record(3, "c", [0.88, 0.475, 0.0])
    assert cosine_similarity(a.embedding, b.embedding) >= 0.95
    assert cosine_similarity(b.embedding, c.embedding) >= 0.95
    assert cosine_similarity(a.embedding, c.embedding) < 0.95

    groups = group_similar_memories([a, b, c])
    assert [[m.id for m in group] for group in groups] == [[1, 2], [3]]


def test_memories_without_embedding_are_singletons():
    memories = [_record(1, "a", None), _record(2, "b", [1, 0, 0]), _record(3, "c", None)]
    groups = group_similar_memories(memories, threshold=0.0)
    assert [[m.id for m in group] for group in groups] == [[1], [2], [3]]


def test_summarize_group_edge_cases():
    provider = FakeProvider(completions=["unused"])
    assert asyncio.run(summarize_memory_group([], provider)) == ""
    single = [_record(1, "Only one", [1, 0, 0])]
    assert asyncio.run(summarize_memory_group(single, provider)) == "Only one"
    assert provider.complete_calls == []


def test_summarize_group_numbered_prompt_and_truncation():
    answer = "  " + "y" * (config.MAX_MEMORY_LENGTH + 50) + "  "
    provider = FakeProvider(completions=[answer])
    group = [_record(1, "Likes tea", [1, 0, 0]), _record(2, "Drinks tea daily", [1, 0, 0])]

    summary = asyncio.run(summarize_memory_group(group, provider))

    assert summary == "y" * config.MAX_MEMORY_LENGTH
    assert "1. Likes tea\n2. Drinks tea daily" in provider.complete_calls[0]["user"]


def test_summarize_group_failure_returns_empty():
    group = [_record(1, "a", [1, 0, 0]), _record(2, "b", [1, 0, 0])]
    assert asyncio.run(summarize_memory_group(group, FakeProvider())) == ""
    assert asyncio.run(summarize_memory_group(group, FakeProvider(completions=[ValueError("x")]))) == ""
