import pytest

import agentmem.config as config
from agentmem.models import AIRequestLog
from agentmem.services.request_log import calculate_price, log_request


def test_calculate_price_known_and_fallback():
    assert calculate_price("gpt-4o-mini", 1_000_000, 1_000_000) == pytest.approx(0.75)
    assert calculate_price("unknown-model", 1_000_000, 0) == pytest.approx(0.15)


def test_log_request_records_usage(db_session):
    response = {
        "model": "gpt-4o",
        "usage": {"prompt_tokens": 1000, "completion_tokens": 500, "total_tokens": 1500},
    }

    entry = log_request(
        db_session,
        "owner-1",
        {"model": "gpt-4o", "messages": []},
        response,
        agent_id=3,
    )

    stored = db_session.query(AIRequestLog).one()
    assert stored.id == entry.id
    assert stored.total_tokens == 1500
    assert stored.log_type == "memory"
    assert stored.estimated_price == pytest.approx(1000 * 2.5 / 1_000_000 + 500 * 10.0 / 1_000_000)


def test_log_request_disabled(db_session, monkeypatch):
    monkeypatch.setattr(config, "REQUEST_LOG_ENABLED", False)
    assert log_request(db_session, "owner-1", {"model": "gpt-4o-mini"}, {}) is None
    assert db_session.query(AIRequestLog).count() == 0
