import pytest

from agentmem.errors import MemoryNotFoundError, ValidationIssue
from agentmem.models import AgentMemory
from agentmem.services import memory_store


def _insert(db, agent_id, key_point, embedding, owner_id="owner-1"):
    return memory_store.insert_memory(
        db,
        agent_id,
        owner_id,
        key_point,
        {"sessionId": 7, "sessionName": "Chat", "messageCount": 2},
        embedding,
    )


def test_insert_increments_update_count(db_session, agent_id):
    first = _insert(db_session, agent_id, "Likes tea", [1.0, 0.0, 0.0])
    second = _insert(db_session, agent_id, "Lives in Oslo", [0.0, 1.0, 0.0])

    assert first.update_count == 1
    assert second.update_count == 2
    assert memory_store.get_update_count(db_session, agent_id, "owner-1") == 2
    assert memory_store.get_update_count(db_session, agent_id, "someone-else") == 0


def test_insert_requires_embedding(db_session, agent_id):
    with pytest.raises(ValidationIssue) as excinfo:
        _insert(db_session, agent_id, "No vector", [])
    assert excinfo.value.field == "embedding"
    assert db_session.query(AgentMemory).count() == 0


def test_reset_update_count(db_session, agent_id):
    _insert(db_session, agent_id, "a", [1.0, 0.0, 0.0])
    _insert(db_session, agent_id, "b", [0.0, 1.0, 0.0])

    touched = memory_store.reset_update_count(db_session, agent_id, "owner-1")

    assert touched == 2
    assert memory_store.get_update_count(db_session, agent_id, "owner-1") == 0


def test_list_is_newest_first_and_scoped(db_session, agent_id):
    _insert(db_session, agent_id, "older", [1.0, 0.0, 0.0])
    _insert(db_session, agent_id, "newer", [0.0, 1.0, 0.0])
    _insert(db_session, agent_id, "other owner", [0.0, 1.0, 0.0], owner_id="owner-2")

    records = memory_store.list_memories(db_session, agent_id, "owner-1")
    assert [record.key_point for record in records] == ["newer", "older"]
    assert memory_store.list_memories(db_session, agent_id, "owner-1", limit=1)[0].key_point == "newer"
    assert memory_store.count_memories(db_session, agent_id, "owner-2") == 1


def test_find_similar_threshold_order_and_limit(db_session, agent_id):
    _insert(db_session, agent_id, "exact", [1.0, 0.0, 0.0])
    _insert(db_session, agent_id, "close", [0.8, 0.6, 0.0])
    _insert(db_session, agent_id, "orthogonal", [0.0, 0.0, 1.0])
    _insert(db_session, agent_id, "foreign", [1.0, 0.0, 0.0], owner_id="owner-2")

    results = memory_store.find_similar(db_session, [1.0, 0.0, 0.0], agent_id, "owner-1", 5, 0.5)
    assert [record.key_point for record in results] == ["exact", "close"]
    assert results[0].similarity == pytest.approx(1.0)
    assert results[1].similarity == pytest.approx(0.8)

    top_one = memory_store.find_similar(db_session, [1.0, 0.0, 0.0], agent_id, "owner-1", 1, 0.5)
    assert [record.key_point for record in top_one] == ["exact"]


def test_delete_memories_is_scoped(db_session, agent_id):
    mine = _insert(db_session, agent_id, "mine", [1.0, 0.0, 0.0])
    theirs = _insert(db_session, agent_id, "theirs", [1.0, 0.0, 0.0], owner_id="owner-2")

    deleted = memory_store.delete_memories(db_session, agent_id, "owner-1", [mine.id, theirs.id])

    assert deleted == 1
    assert memory_store.get_memory(db_session, agent_id, "owner-2", theirs.id) is not None
    assert memory_store.get_memory(db_session, agent_id, "owner-1", mine.id) is None
    assert memory_store.delete_memories(db_session, agent_id, "owner-1", []) == 0


def test_update_and_delete_single_memory(db_session, agent_id):
    record = _insert(db_session, agent_id, "Old text", [1.0, 0.0, 0.0])

    updated = memory_store.update_key_point(db_session, agent_id, "owner-1", record.id, "New text")
    assert updated.key_point == "New text"
    assert updated.embedding == [1.0, 0.0, 0.0]

    with pytest.raises(MemoryNotFoundError):
        memory_store.update_key_point(db_session, agent_id, "owner-2", record.id, "Hijack")

    memory_store.delete_memory(db_session, agent_id, "owner-1", record.id)
    assert memory_store.get_memory(db_session, agent_id, "owner-1", record.id) is None
    with pytest.raises(MemoryNotFoundError):
        memory_store.delete_memory(db_session, agent_id, "owner-1", record.id)


def test_update_agent_memory_summary(db_session, agent_id):
    assert memory_store.update_agent_memory_summary(db_session, agent_id, "Feels calm.") is True
    assert memory_store.get_agent(db_session, agent_id).memory_summary == "Feels calm."
    assert memory_store.update_agent_memory_summary(db_session, 9999, "x") is False
