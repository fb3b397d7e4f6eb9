import asyncio
from datetime import datetime

from agentmem.services import memory_store
from agentmem.services.memory_retrieval import (
    build_context_prompt,
    format_memory_line,
    get_memories_for_context,
)
from agentmem.services.memory_store import MemoryRecord

from conftest import FakeProvider


def test_format_memory_line():
    record = MemoryRecord(
        id=1,
        agent_id=1,
        owner_id="owner-1",
        key_point="Test memory",
        context={},
        embedding=[1.0, 0.0, 0.0],
        created_at=datetime(2024, 1, 15, 9, 30),
        updated_at=None,
        update_count=1,
    )
    assert format_memory_line(record) == "Jan 15, 2024 - Test memory"


def test_retrieval_degrades_when_embedding_raises(server_db, agent_id):
    provider = FakeProvider(embeddings={"hiking?": RuntimeError("provider down")})
    assert asyncio.run(get_memories_for_context(agent_id, "owner-1", "hiking?", provider)) == []


def test_retrieval_degrades_when_store_fails(server_db, agent_id, monkeypatch):
    def broken_search(*args, **kwargs):
        raise RuntimeError("database went away")

    monkeypatch.setattr(memory_store, "find_similar", broken_search)
    result = asyncio.run(get_memories_for_context(agent_id, "owner-1", "hiking?", FakeProvider()))
    assert result == []


def test_retrieval_ranked_and_idempotent(db_session, agent_id):
    memory_store.insert_memory(db_session, agent_id, "owner-1", "Likes hiking", {}, [0.8, 0.6, 0.0])
    memory_store.insert_memory(db_session, agent_id, "owner-1", "Hikes every weekend", {}, [1.0, 0.0, 0.0])
    memory_store.insert_memory(db_session, agent_id, "owner-1", "Owns a cat", {}, [0.0, 0.0, 1.0])
    provider = FakeProvider(embeddings={"hiking plans": [1.0, 0.0, 0.0]})

    first = asyncio.run(get_memories_for_context(agent_id, "owner-1", "hiking plans", provider))
    second = asyncio.run(get_memories_for_context(agent_id, "owner-1", "hiking plans", provider))

    assert [line.split(" - ", 1)[1] for line in first] == ["Hikes every weekend", "Likes hiking"]
    assert first == second


def test_build_context_prompt():
    assert build_context_prompt([]) == ""
    assert build_context_prompt(["Jan 1, 2024 - a", "Jan 2, 2024 - b"]) == (
        "Relevant context from previous conversations:\n1. Jan 1, 2024 - a\n\n2. Jan 2, 2024 - b"
    )
