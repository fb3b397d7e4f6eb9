"""
Shared validation helpers for memory services.
"""

from __future__ import annotations

from typing import Mapping, Optional, Sequence

from agentmem.config import MAX_EMBEDDING_TEXT_LENGTH
from agentmem.errors import ValidationIssue


def validate_required_text(value: str, field: str, max_len: int) -> None:
    if not isinstance(value, str) or not value.strip():
        raise ValidationIssue(f"{field} must be a non-empty string", field=field, error_type="required")
    if len(value) > max_len:
        raise ValidationIssue(f"{field} exceeds max length {max_len}", field=field, error_type="max_length")


def validate_limit(value: Optional[int], field: str, max_value: int) -> None:
    if value is None:
        return
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationIssue(f"{field} must be an integer", field=field, error_type="invalid_type")
    if value <= 0 or value > max_value:
        raise ValidationIssue(f"{field} must be between 1 and {max_value}", field=field, error_type="out_of_range")


def validate_embedding_text(text: str) -> None:
    validate_required_text(text, "text", MAX_EMBEDDING_TEXT_LENGTH)


def validate_embedding(embedding: Optional[Sequence[float]]) -> None:
    if embedding is None or len(embedding) == 0:
        raise ValidationIssue(
            "embedding is required for agent memory creation",
            field="embedding",
            error_type="required",
        )


def validate_turns(turns: Sequence[Mapping]) -> None:
    for index, turn in enumerate(turns):
        if not isinstance(turn, Mapping):
            raise ValidationIssue(
                f"turn {index} must be a mapping with role and content",
                field="turns",
                error_type="invalid_type",
            )
        if not isinstance(turn.get("role"), str) or not isinstance(turn.get("content"), str):
            raise ValidationIssue(
                f"turn {index} must have string role and content",
                field="turns",
                error_type="invalid_type",
            )
