import asyncio

import agentmem.config as config
from agentmem.services import background, memory_store
from agentmem.services.chat_memory import (
    get_relevant_memories,
    save_memory_if_needed,
    should_save_memory,
)

from conftest import FakeProvider

TURNS = [
    {"role": "user", "content": "I love hiking"},
    {"role": "assistant", "content": "That's great!"},
]


def test_should_save_memory(monkeypatch):
    monkeypatch.setattr(config, "MEMORY_SAVE_INTERVAL", 10)
    assert should_save_memory(1) is True
    assert should_save_memory(2) is False
    assert should_save_memory(10) is True
    assert should_save_memory(20) is True
    assert should_save_memory(0) is False


def test_save_skipped_between_intervals(server_db, agent_id):
    provider = FakeProvider(completions=["User enjoys hiking"])
    created = asyncio.run(
        save_memory_if_needed(agent_id, "owner-1", 1, None, TURNS, provider)
    )
    assert created == 0
    assert provider.complete_calls == []


def test_save_triggers_compaction_in_background(db_session, agent_id, monkeypatch):
    monkeypatch.setattr(config, "MEMORY_SUMMARIZATION_INTERVAL", 2)
    memory_store.insert_memory(db_session, agent_id, "owner-1", "Enjoys hiking", {}, [1.0, 0.0, 0.0])
    provider = FakeProvider(
        completions=[
            "User enjoys hiking",
            "User loves hiking",
            "Mira is happy to share the trail.",
        ]
    )

    async def scenario():
        created = await save_memory_if_needed(
            agent_id, "owner-1", 5, "Trails", TURNS[:1], provider
        )
        await background.drain()
        return created

    assert asyncio.run(scenario()) == 1

    remaining = memory_store.list_memories(db_session, agent_id, "owner-1")
    assert [record.key_point for record in remaining] == ["User loves hiking"]
    assert memory_store.get_update_count(db_session, agent_id, "owner-1") == 0
    db_session.expire_all()
    assert memory_store.get_agent(db_session, agent_id).memory_summary == (
        "Mira is happy to share the trail."
    )


def test_get_relevant_memories(db_session, agent_id):
    memory_store.insert_memory(db_session, agent_id, "owner-1", "Enjoys hiking", {}, [1.0, 0.0, 0.0])

    block = asyncio.run(get_relevant_memories(agent_id, "owner-1", "trail?", FakeProvider()))

    assert block.startswith("Relevant context from previous conversations:\n1. ")
    assert block.endswith(" - Enjoys hiking")
    assert asyncio.run(
        get_relevant_memories(agent_id, "owner-2", "trail?", FakeProvider())
    ) == ""
