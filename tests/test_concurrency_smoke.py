import asyncio

from agentmem.services import memory_service, memory_store

from conftest import FakeProvider

TURNS = [{"role": "user", "content": "I moved to Lisbon"}]


def test_concurrent_writes_stay_scoped(db_session, agent_id):
    async def scenario():
        return await asyncio.gather(
            *[
                memory_service.create_memory(
                    agent_id,
                    f"owner-{index}",
                    index,
                    None,
                    TURNS,
                    FakeProvider(completions=[f"Owner {index} lives in Lisbon"]),
                )
                for index in range(4)
            ]
        )

    assert asyncio.run(scenario()) == [1, 1, 1, 1]

    for index in range(4):
        records = memory_store.list_memories(db_session, agent_id, f"owner-{index}")
        assert [record.key_point for record in records] == [f"Owner {index} lives in Lisbon"]
        assert records[0].update_count == 1
