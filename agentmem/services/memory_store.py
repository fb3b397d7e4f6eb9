"""
Persistence for agent memories.

Every function takes a SQLAlchemy session as its first argument and filters
by the (agent_id, owner_id) pair; rows outside that scope are invisible.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from typing import List, Optional, Sequence

from sqlalchemy import func, text

import agentmem.config as config
from agentmem.errors import MemoryNotFoundError
from agentmem.models import Agent, AgentMemory
from agentmem.services.memory_grouping import cosine_similarity
from agentmem.validators import validate_embedding, validate_limit, validate_required_text

logger = config.logger


@dataclass(frozen=True)
class MemoryRecord:
    id: int
    agent_id: int
    owner_id: str
    key_point: str
    context: dict
    embedding: Optional[List[float]]
    created_at: datetime
    updated_at: Optional[datetime]
    update_count: int
    similarity: Optional[float] = None

    @classmethod
    def from_row(cls, row: AgentMemory, similarity: Optional[float] = None) -> "MemoryRecord":
        return cls(
            id=row.id,
            agent_id=row.agent_id,
            owner_id=row.owner_id,
            key_point=row.key_point,
            context=dict(row.context or {}),
            embedding=_as_vector(row.embedding),
            created_at=row.created_at,
            updated_at=row.updated_at,
            update_count=row.update_count or 0,
            similarity=similarity,
        )

    def to_dict(self) -> dict:
        result = {
            "id": self.id,
            "agent_id": self.agent_id,
            "key_point": self.key_point,
            "context": self.context,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
            "update_count": self.update_count,
        }
        if self.similarity is not None:
            result["similarity"] = self.similarity
        return result


def _vector_search_enabled() -> bool:
    return config.DB_BACKEND == "postgres" and config.VECTOR_BACKEND_EFFECTIVE == "pgvector"


def _as_vector(value) -> Optional[List[float]]:
    if value is None:
        return None
    if hasattr(value, "tolist"):
        value = value.tolist()
    return [float(item) for item in value]


def _scoped(db, agent_id: int, owner_id: str):
    return db.query(AgentMemory).filter(
        AgentMemory.agent_id == agent_id,
        AgentMemory.owner_id == owner_id,
    )


def get_update_count(db, agent_id: int, owner_id: str) -> int:
    value = (
        db.query(func.max(AgentMemory.update_count))
        .filter(AgentMemory.agent_id == agent_id, AgentMemory.owner_id == owner_id)
        .scalar()
    )
    return value or 0


def reset_update_count(db, agent_id: int, owner_id: str) -> int:
    """Zero the counter on every row in scope. Returns rows touched."""
    try:
        touched = _scoped(db, agent_id, owner_id).update(
            {AgentMemory.update_count: 0},
            synchronize_session=False,
        )
        db.commit()
    except Exception:
        db.rollback()
        raise
    return touched


def count_memories(db, agent_id: int, owner_id: str) -> int:
    return _scoped(db, agent_id, owner_id).count()


def insert_memory(
    db,
    agent_id: int,
    owner_id: str,
    key_point: str,
    context: dict,
    embedding: Sequence[float],
) -> MemoryRecord:
    """Insert one memory; its update_count is one above the scope's current max."""
    validate_required_text(key_point, "key_point", config.MAX_MEMORY_LENGTH)
    validate_embedding(embedding)
    if len(embedding) != config.EMBEDDING_DIM:
        logger.warning(
            f"Storing embedding of dimension {len(embedding)} (expected {config.EMBEDDING_DIM})"
        )

    next_count = get_update_count(db, agent_id, owner_id) + 1
    now = datetime.utcnow()
    row = AgentMemory(
        agent_id=agent_id,
        owner_id=owner_id,
        key_point=key_point,
        context=context or {},
        embedding=list(embedding),
        created_at=now,
        updated_at=now,
        update_count=next_count,
    )
    try:
        db.add(row)
        db.commit()
        db.refresh(row)
    except Exception:
        db.rollback()
        raise
    return MemoryRecord.from_row(row)


def list_memories(
    db,
    agent_id: int,
    owner_id: str,
    limit: Optional[int] = None,
) -> List[MemoryRecord]:
    """Newest first."""
    validate_limit(limit, "limit", max(config.MAX_RESULT_LIMIT, config.MEMORY_SUMMARIZATION_LIMIT))
    query = _scoped(db, agent_id, owner_id).order_by(
        AgentMemory.created_at.desc(),
        AgentMemory.id.desc(),
    )
    if limit is not None:
        query = query.limit(limit)
    return [MemoryRecord.from_row(row) for row in query.all()]


def get_memory(db, agent_id: int, owner_id: str, memory_id: int) -> Optional[MemoryRecord]:
    row = _scoped(db, agent_id, owner_id).filter(AgentMemory.id == memory_id).first()
    return MemoryRecord.from_row(row) if row else None


def find_similar(
    db,
    query_vector: Sequence[float],
    agent_id: int,
    owner_id: str,
    top_k: int,
    threshold: float,
) -> List[MemoryRecord]:
    """
    Memories in scope with cosine similarity >= threshold, most similar first.

    Uses pgvector's cosine distance operator when available; otherwise ranks
    the scope's stored embeddings in-process.
    """
    if top_k <= 0 or not query_vector:
        return []

    if _vector_search_enabled():
        stmt = text("""
            SELECT id, 1 - (embedding <=> cast(:embedding as vector)) AS similarity
            FROM agent_memories
            WHERE agent_id = :agent_id
              AND owner_id = :owner_id
              AND embedding IS NOT NULL
              AND 1 - (embedding <=> cast(:embedding as vector)) >= :threshold
            ORDER BY embedding <=> cast(:embedding as vector)
            LIMIT :limit
        """)
        rows = db.execute(
            stmt,
            {
                "embedding": str(list(query_vector)),
                "agent_id": agent_id,
                "owner_id": owner_id,
                "threshold": threshold,
                "limit": top_k,
            },
        ).fetchall()
        if not rows:
            return []
        similarity_by_id = {row.id: float(row.similarity) for row in rows}
        loaded = {
            row.id: row
            for row in db.query(AgentMemory).filter(AgentMemory.id.in_(list(similarity_by_id))).all()
        }
        return [
            MemoryRecord.from_row(loaded[memory_id], similarity=similarity)
            for memory_id, similarity in similarity_by_id.items()
            if memory_id in loaded
        ]

    candidates = (
        _scoped(db, agent_id, owner_id)
        .filter(AgentMemory.embedding.isnot(None))
        .order_by(AgentMemory.created_at.desc(), AgentMemory.id.desc())
        .all()
    )
    scored = []
    for row in candidates:
        record = MemoryRecord.from_row(row)
        similarity = cosine_similarity(query_vector, record.embedding)
        if similarity >= threshold:
            scored.append(replace(record, similarity=similarity))
    scored.sort(key=lambda record: record.similarity, reverse=True)
    return scored[:top_k]


def delete_memories(
    db,
    agent_id: int,
    owner_id: str,
    ids: Sequence[int],
) -> int:
    """Delete the given ids (scope-filtered) as one compaction step."""
    ids = [int(memory_id) for memory_id in ids]
    if not ids:
        return 0
    try:
        deleted = (
            _scoped(db, agent_id, owner_id)
            .filter(AgentMemory.id.in_(ids))
            .delete(synchronize_session=False)
        )
        db.commit()
    except Exception:
        db.rollback()
        raise
    return deleted


def delete_memory(db, agent_id: int, owner_id: str, memory_id: int) -> None:
    row = _scoped(db, agent_id, owner_id).filter(AgentMemory.id == memory_id).first()
    if row is None:
        raise MemoryNotFoundError(memory_id)
    try:
        db.delete(row)
        db.commit()
    except Exception:
        db.rollback()
        raise


def update_key_point(
    db,
    agent_id: int,
    owner_id: str,
    memory_id: int,
    key_point: str,
) -> MemoryRecord:
    """Replace a memory's text. The embedding is left as stored."""
    validate_required_text(key_point, "key_point", config.MAX_MEMORY_LENGTH)
    row = _scoped(db, agent_id, owner_id).filter(AgentMemory.id == memory_id).first()
    if row is None:
        raise MemoryNotFoundError(memory_id)
    try:
        row.key_point = key_point
        row.updated_at = datetime.utcnow()
        db.commit()
        db.refresh(row)
    except Exception:
        db.rollback()
        raise
    return MemoryRecord.from_row(row)


def get_agent(db, agent_id: int) -> Optional[Agent]:
    return db.query(Agent).filter(Agent.id == agent_id).first()


def update_agent_memory_summary(db, agent_id: int, summary: Optional[str]) -> bool:
    agent = get_agent(db, agent_id)
    if agent is None:
        logger.warning(f"Agent {agent_id} not found; memory summary not stored")
        return False
    try:
        agent.memory_summary = summary
        db.commit()
    except Exception:
        db.rollback()
        raise
    return True


__all__ = [
    "MemoryRecord",
    "count_memories",
    "delete_memories",
    "delete_memory",
    "find_similar",
    "get_agent",
    "get_memory",
    "get_update_count",
    "insert_memory",
    "list_memories",
    "reset_update_count",
    "update_agent_memory_summary",
    "update_key_point",
]
