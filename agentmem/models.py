"""
Agent memory database models
PostgreSQL + pgvector schema (SQLite + JSON embeddings for local use)
"""

from datetime import datetime
from enum import Enum as PyEnum
from sqlalchemy import (
    Column, Integer, String, Text, Float,
    DateTime, ForeignKey, Index, JSON,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import relationship, declarative_base
from pgvector.sqlalchemy import Vector as PgVector

import agentmem.config as config

DB_BACKEND = config.DB_BACKEND
VECTOR_BACKEND_EFFECTIVE = config.VECTOR_BACKEND_EFFECTIVE

if DB_BACKEND == "postgres" and VECTOR_BACKEND_EFFECTIVE == "pgvector":
    EMBEDDING_COLUMN_TYPE = PgVector(config.EMBEDDING_DIM)
else:
    EMBEDDING_COLUMN_TYPE = JSON(none_as_null=True)

JSON_TYPE = JSONB if DB_BACKEND == "postgres" else JSON

Base = declarative_base()

# =============================================================================
# Enums
# =============================================================================

class RequestLogType(str, PyEnum):
    memory = "memory"
    chat = "chat"


# =============================================================================
# Agents
# =============================================================================

class Agent(Base):
    __tablename__ = "agents"

    id = Column(Integer, primary_key=True)
    name = Column(String(100), nullable=False)
    gender = Column(String(50))
    description = Column(Text)
    memory_summary = Column(Text)  # Client display only, never fed into prompts
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow)

    memories = relationship("AgentMemory", back_populates="agent")


# =============================================================================
# Agent Memories
# =============================================================================

class AgentMemory(Base):
    __tablename__ = "agent_memories"

    id = Column(Integer, primary_key=True)
    agent_id = Column(Integer, ForeignKey("agents.id", ondelete="CASCADE"), nullable=False)
    owner_id = Column(String(255), nullable=False)
    key_point = Column(Text, nullable=False)
    context = Column(JSON_TYPE, default=dict)
    embedding = Column(EMBEDDING_COLUMN_TYPE, nullable=True)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow)

    # Per (agent, owner) counter, tracked as the max across the owner's rows
    update_count = Column(Integer, default=0, nullable=False)

    agent = relationship("Agent", back_populates="memories")

    __table_args__ = (
        Index("ix_agent_memories_agent_owner", "agent_id", "owner_id"),
        Index("ix_agent_memories_created_at", "created_at"),
    )


# =============================================================================
# AI Request Log
# =============================================================================

class AIRequestLog(Base):
    __tablename__ = "ai_request_logs"

    id = Column(Integer, primary_key=True)
    owner_id = Column(String(255))
    agent_id = Column(Integer)
    log_type = Column(String(20), nullable=False, default=RequestLogType.memory.value)
    model = Column(String(100), nullable=False)
    request = Column(JSON_TYPE, nullable=False)
    response = Column(JSON_TYPE)
    prompt_tokens = Column(Integer, default=0, nullable=False)
    completion_tokens = Column(Integer, default=0, nullable=False)
    total_tokens = Column(Integer, default=0, nullable=False)
    estimated_price = Column(Float, default=0.0, nullable=False)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)

    __table_args__ = (
        Index("ix_ai_request_logs_owner_id", "owner_id"),
        Index("ix_ai_request_logs_created_at", "created_at"),
    )

