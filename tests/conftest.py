import os

os.environ.setdefault("DB_BACKEND", "sqlite")
os.environ.setdefault("VECTOR_BACKEND", "none")
os.environ.setdefault("EMBEDDING_DIM", "3")

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from agentmem.db import DB
from agentmem.models import Agent, Base
from agentmem.services.provider import ProviderErrorKind, ProviderResult


class FakeProvider:
    """In-memory provider: scripted completions, fixed embeddings per text."""

    completion_model = "gpt-4o-mini"

    def __init__(self, completions=None, embeddings=None, default_embedding=None, failing_texts=()):
        self.completions = list(completions or [])
        self.embeddings = dict(embeddings or {})
        self.default_embedding = [1.0, 0.0, 0.0] if default_embedding is None else default_embedding
        self.failing_texts = set(failing_texts)
        self.embed_calls = []
        self.complete_calls = []

    async def embed(self, text):
        self.embed_calls.append(text)
        if text in self.failing_texts:
            return ProviderResult.failure(ProviderErrorKind.transport, "scripted failure")
        value = self.embeddings.get(text, self.default_embedding)
        if isinstance(value, Exception):
            raise value
        return ProviderResult.success(list(value))

    async def complete(self, system_prompt, user_prompt, *, temperature, max_tokens):
        self.complete_calls.append(
            {
                "system": system_prompt,
                "user": user_prompt,
                "temperature": temperature,
                "max_tokens": max_tokens,
            }
        )
        if not self.completions:
            return ProviderResult.failure(ProviderErrorKind.http_error, "no scripted completion")
        item = self.completions.pop(0)
        if isinstance(item, Exception):
            raise item
        if isinstance(item, ProviderResult):
            return item
        return ProviderResult.success(item)


@pytest.fixture
def server_db(tmp_path):
    db_path = tmp_path / "agentmem.sqlite"
    engine = create_engine(
        f"sqlite:///{db_path}",
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(engine)
    SessionLocal = sessionmaker(bind=engine, expire_on_commit=False)
    previous_engine = DB.engine
    previous_session = DB.SessionLocal
    DB.engine = engine
    DB.SessionLocal = SessionLocal
    try:
        yield engine
    finally:
        DB.engine = previous_engine
        DB.SessionLocal = previous_session
        engine.dispose()


@pytest.fixture
def db_session(server_db):
    db = DB.SessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def agent_id(db_session):
    agent = Agent(name="Mira", gender="female")
    db_session.add(agent)
    db_session.commit()
    return agent.id


@pytest.fixture
def fake_provider():
    return FakeProvider()
