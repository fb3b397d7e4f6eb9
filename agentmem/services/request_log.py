"""
Provider request/usage log with estimated pricing.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

import agentmem.config as config
from agentmem.db import run_in_session
from agentmem.models import AIRequestLog, RequestLogType
from agentmem.services.background import spawn

logger = config.logger

# USD per 1M tokens
MODEL_PRICING = {
    "gpt-4o-mini": {"input": 0.15, "output": 0.60},
    "gpt-4o": {"input": 2.50, "output": 10.00},
    "gpt-4.1-mini": {"input": 0.40, "output": 1.60},
    "gpt-4.1": {"input": 2.00, "output": 8.00},
    "text-embedding-3-small": {"input": 0.02, "output": 0.0},
    "text-embedding-3-large": {"input": 0.13, "output": 0.0},
}
DEFAULT_PRICING_MODEL = "gpt-4o-mini"


def calculate_price(model: str, prompt_tokens: int, completion_tokens: int) -> float:
    pricing = MODEL_PRICING.get(model) or MODEL_PRICING[DEFAULT_PRICING_MODEL]
    return (
        prompt_tokens * pricing["input"] / 1_000_000
        + completion_tokens * pricing["output"] / 1_000_000
    )


def _usage(response: Optional[dict]) -> tuple[int, int, int]:
    usage = (response or {}).get("usage") or {}
    prompt_tokens = int(usage.get("prompt_tokens") or 0)
    completion_tokens = int(usage.get("completion_tokens") or 0)
    total_tokens = int(usage.get("total_tokens") or prompt_tokens + completion_tokens)
    return prompt_tokens, completion_tokens, total_tokens


def log_request(
    db,
    owner_id: Optional[str],
    request: dict,
    response: Optional[dict],
    *,
    agent_id: Optional[int] = None,
    log_type: RequestLogType = RequestLogType.memory,
) -> Optional[AIRequestLog]:
    """Persist one provider exchange. Returns None when logging is disabled."""
    if not config.REQUEST_LOG_ENABLED:
        return None

    model = (response or {}).get("model") or request.get("model") or DEFAULT_PRICING_MODEL
    prompt_tokens, completion_tokens, total_tokens = _usage(response)
    entry = AIRequestLog(
        owner_id=owner_id,
        agent_id=agent_id,
        log_type=RequestLogType(log_type).value,
        model=model,
        request=request,
        response=response,
        prompt_tokens=prompt_tokens,
        completion_tokens=completion_tokens,
        total_tokens=total_tokens,
        estimated_price=calculate_price(model, prompt_tokens, completion_tokens),
        created_at=datetime.utcnow(),
    )
    try:
        db.add(entry)
        db.commit()
    except Exception:
        db.rollback()
        raise
    logger.debug(
        "request_logged",
        extra={"model": model, "total_tokens": total_tokens, "log_type": entry.log_type},
    )
    return entry


def schedule_request_log(
    owner_id: Optional[str],
    request: dict,
    response: Optional[dict],
    *,
    agent_id: Optional[int] = None,
    log_type: RequestLogType = RequestLogType.memory,
) -> None:
    """Write the log entry in the background; the caller never waits on it."""
    if not config.REQUEST_LOG_ENABLED or response is None:
        return

    spawn(
        run_in_session(
            log_request,
            owner_id,
            request,
            response,
            agent_id=agent_id,
            log_type=log_type,
        ),
        name="request-log",
    )
