"""
Scope and provenance objects for memory services.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

from agentmem.errors import ValidationIssue


@dataclass(frozen=True)
class MemoryScope:
    """Composite key every memory query is filtered by."""

    agent_id: int
    owner_id: str

    @staticmethod
    def from_values(agent_id: int, owner_id: Optional[str]) -> "MemoryScope":
        if isinstance(agent_id, bool) or not isinstance(agent_id, int) or agent_id <= 0:
            raise ValidationIssue(
                "agent_id must be a positive integer",
                field="agent_id",
                error_type="invalid_id",
            )
        if not isinstance(owner_id, str) or not owner_id.strip():
            raise ValidationIssue(
                "owner_id is required for this operation",
                field="owner_id",
                error_type="required",
            )
        return MemoryScope(agent_id=agent_id, owner_id=owner_id)


@dataclass(frozen=True)
class SessionRef:
    session_id: int
    session_name: Optional[str] = None


def build_memory_context(session: SessionRef, turns: Sequence) -> dict:
    """Context shared by every memory written from one extraction batch."""
    return {
        "sessionId": session.session_id,
        "sessionName": session.session_name,
        "messageCount": len(turns),
    }


__all__ = [
    "MemoryScope",
    "SessionRef",
    "build_memory_context",
]
