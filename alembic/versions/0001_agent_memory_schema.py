"""Create agent memory tables.

Revision ID: 0001_agent_memory_schema
Revises:
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql
from pgvector.sqlalchemy import Vector

import agentmem.config as config


revision = "0001_agent_memory_schema"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    bind = op.get_bind()
    is_postgres = bind.dialect.name == "postgresql"
    json_type = postgresql.JSONB if is_postgres else sa.JSON
    use_vector = is_postgres and config.VECTOR_BACKEND_EFFECTIVE == "pgvector"
    embedding_type = Vector(config.EMBEDDING_DIM) if use_vector else sa.JSON

    op.create_table(
        "agents",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("gender", sa.String(length=50)),
        sa.Column("description", sa.Text()),
        sa.Column("memory_summary", sa.Text()),
        sa.Column("created_at", sa.DateTime(timezone=True)),
        sa.Column("updated_at", sa.DateTime(timezone=True)),
    )

    op.create_table(
        "agent_memories",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "agent_id",
            sa.Integer(),
            sa.ForeignKey("agents.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("owner_id", sa.String(length=255), nullable=False),
        sa.Column("key_point", sa.Text(), nullable=False),
        sa.Column("context", json_type),
        sa.Column("embedding", embedding_type, nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True)),
        sa.Column("update_count", sa.Integer(), nullable=False, server_default="0"),
    )
    op.create_index(
        "ix_agent_memories_agent_owner",
        "agent_memories",
        ["agent_id", "owner_id"],
    )
    op.create_index(
        "ix_agent_memories_created_at",
        "agent_memories",
        ["created_at"],
    )
    if use_vector:
        op.execute(
            "CREATE INDEX IF NOT EXISTS ix_agent_memories_embedding_hnsw "
            "ON agent_memories USING hnsw (embedding vector_cosine_ops)"
        )

    op.create_table(
        "ai_request_logs",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("owner_id", sa.String(length=255)),
        sa.Column("agent_id", sa.Integer()),
        sa.Column("log_type", sa.String(length=20), nullable=False, server_default="memory"),
        sa.Column("model", sa.String(length=100), nullable=False),
        sa.Column("request", json_type, nullable=False),
        sa.Column("response", json_type),
        sa.Column("prompt_tokens", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("completion_tokens", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("total_tokens", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("estimated_price", sa.Float(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index(
        "ix_ai_request_logs_owner_id",
        "ai_request_logs",
        ["owner_id"],
    )
    op.create_index(
        "ix_ai_request_logs_created_at",
        "ai_request_logs",
        ["created_at"],
    )


def downgrade() -> None:
    op.drop_index("ix_ai_request_logs_created_at", table_name="ai_request_logs")
    op.drop_index("ix_ai_request_logs_owner_id", table_name="ai_request_logs")
    op.drop_table("ai_request_logs")
    op.execute("DROP INDEX IF EXISTS ix_agent_memories_embedding_hnsw")
    op.drop_index("ix_agent_memories_created_at", table_name="agent_memories")
    op.drop_index("ix_agent_memories_agent_owner", table_name="agent_memories")
    op.drop_table("agent_memories")
    op.drop_table("agents")
