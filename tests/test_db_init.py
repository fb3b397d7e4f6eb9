import logging

from sqlalchemy import inspect

import agentmem.config as config
from agentmem.db import DB, init_db


def test_init_db_migrates_without_touching_app_logging(tmp_path, monkeypatch):
    monkeypatch.setattr(config, "DATABASE_URL", f"sqlite:///{tmp_path / 'init.sqlite'}")
    monkeypatch.setattr(config, "AUTO_MIGRATE_ON_STARTUP", True)
    saved_engine, saved_session = DB.engine, DB.SessionLocal
    root = logging.getLogger()
    saved_level = root.level
    root.setLevel(logging.INFO)
    try:
        init_db()

        assert logging.getLogger("agentmem").getEffectiveLevel() <= logging.INFO
        assert root.level == logging.INFO
        tables = set(inspect(DB.engine).get_table_names())
        assert {"agents", "agent_memories", "ai_request_logs", "alembic_version"} <= tables
    finally:
        if DB.engine is not None and DB.engine is not saved_engine:
            DB.engine.dispose()
        DB.engine, DB.SessionLocal = saved_engine, saved_session
        root.setLevel(saved_level)
