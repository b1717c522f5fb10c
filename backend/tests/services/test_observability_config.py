"""Observability & Configuration — JSON log shape, handler setup, settings parsing.

Tests cover:
    - JSONFormatter emits core fields plus known extras, skips unknown ones
    - setup_logging replaces its own handler on repeated calls
    - postgresql:// URLs are rewritten for asyncpg
    - create_vector_index falls back to memory without a Chroma URL
"""

import json
import logging

from finledger.config import Settings
from finledger.infrastructure.observability import JSONFormatter, setup_logging
from finledger.infrastructure.vector_index import InMemoryVectorIndex, create_vector_index


def _record(**extra):
    record = logging.LogRecord(
        "finledger.test", logging.WARNING, __file__, 1, "Step %d failed", (2,), None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_json_formatter_includes_known_extras():
    payload = json.loads(JSONFormatter().format(
        _record(conversation_id="c1", step=2, action_name="add_transaction", secret="x"),
    ))
    assert payload["level"] == "WARNING"
    assert payload["logger"] == "finledger.test"
    assert payload["message"] == "Step 2 failed"
    assert payload["conversation_id"] == "c1"
    assert payload["step"] == 2
    assert payload["action_name"] == "add_transaction"
    assert "secret" not in payload
    assert "timestamp" in payload


def test_setup_logging_replaces_own_handler():
    before = list(logging.root.handlers)
    level = logging.root.level
    try:
        setup_logging("debug", "json")
        setup_logging("warning", "text")
        ours = [h for h in logging.root.handlers if h.get_name() == "finledger"]
        assert len(ours) == 1
        assert not isinstance(ours[0].formatter, JSONFormatter)
        assert logging.root.level == logging.WARNING
    finally:
        for handler in list(logging.root.handlers):
            if handler not in before:
                logging.root.removeHandler(handler)
        logging.root.setLevel(level)


def test_postgres_url_rewritten_for_asyncpg():
    settings = Settings(database_url="postgresql://u:p@db:5432/ledger")
    assert settings.database_url == "postgresql+asyncpg://u:p@db:5432/ledger"


async def test_vector_index_defaults_to_memory():
    index = await create_vector_index(Settings(chroma_url=""))
    assert isinstance(index, InMemoryVectorIndex)
