"""Unit tests for core infrastructure components."""

import json
import logging
import pytest
from datetime import datetime
from unittest.mock import MagicMock


# Configuration

def test_load_default_config():
    """Test that the shipped settings.yaml loads and validates."""
    from spend_tracker.utils.config_loader import load_config

    config = load_config()
    assert config['matching']['match_threshold'] == 0.6
    assert config['matching']['suggestion_threshold'] == 0.3
    assert config['reporting']['on_target_band'] == 0.05


def test_config_missing_file():
    """Test ConfigurationError on a missing file."""
    from spend_tracker.utils.config_loader import load_config
    from spend_tracker.utils.errors import ConfigurationError

    with pytest.raises(ConfigurationError):
        load_config("config/does_not_exist.yaml")


def test_config_missing_keys(tmp_path):
    from spend_tracker.utils.config_loader import load_config
    from spend_tracker.utils.errors import ConfigurationError

    path = tmp_path / "settings.yaml"
    path.write_text("version: '1.0'\nmatching: {}\n")

    with pytest.raises(ConfigurationError, match="Missing required configuration keys"):
        load_config(str(path))


def test_config_invalid_yaml(tmp_path):
    from spend_tracker.utils.config_loader import load_config
    from spend_tracker.utils.errors import ConfigurationError

    path = tmp_path / "settings.yaml"
    path.write_text("version: [unclosed\n")

    with pytest.raises(ConfigurationError):
        load_config(str(path))


def test_config_threshold_validation(tmp_path):
    """Suggestion floor above the match floor is rejected."""
    from spend_tracker.utils.config_loader import load_config
    from spend_tracker.utils.errors import ConfigurationError

    path = tmp_path / "settings.yaml"
    path.write_text(
        "version: '1.0'\n"
        "matching: {match_threshold: 0.4, suggestion_threshold: 0.5}\n"
        "reporting: {}\nprovider: {}\nstorage: {}\n"
    )

    with pytest.raises(ConfigurationError):
        load_config(str(path))


def test_config_from_environment(tmp_path, monkeypatch):
    from spend_tracker.utils.config_loader import load_config

    path = tmp_path / "settings.yaml"
    path.write_text(
        "version: '1.0'\n"
        "matching: {match_threshold: 0.8}\n"
        "reporting: {}\nprovider: {}\nstorage: {}\n"
    )
    monkeypatch.setenv("SPEND_TRACKER_CONFIG", str(path))

    assert load_config()['matching']['match_threshold'] == 0.8


def test_get_section_merges_defaults():
    from spend_tracker.utils.config_loader import get_section

    matching = get_section({'matching': {'match_threshold': 0.7}}, 'matching')
    assert matching['match_threshold'] == 0.7
    assert matching['suggestion_threshold'] == 0.3

    assert get_section(None, 'sync')['max_retries'] == 3


# Logging

def test_structured_logger_emits_json(caplog):
    """Test that log lines are JSON with keyword context."""
    from spend_tracker.utils.logging import StructuredLogger

    logger = StructuredLogger("spend_tracker.tests.logging")
    logger.logger.propagate = True

    with caplog.at_level(logging.INFO, logger="spend_tracker.tests.logging"):
        logger.info("Synced transactions", count=3)

    payload = json.loads(caplog.records[-1].getMessage())
    assert payload['message'] == "Synced transactions"
    assert payload['level'] == "INFO"
    assert payload['count'] == 3


def test_get_logger_does_not_duplicate_handlers():
    from spend_tracker.utils.logging import get_logger

    first = get_logger("spend_tracker.tests.handlers")
    second = get_logger("spend_tracker.tests.handlers")
    assert first.logger is second.logger
    assert len(second.logger.handlers) == 1


# Month utilities

def test_parse_month():
    from spend_tracker.utils.periods import parse_month
    from spend_tracker.utils.errors import ValidationError

    assert str(parse_month("2025-03")) == "2025-03"
    for bad in ["2025-13", "2025-00", "2025-3", "March 2025", "", None]:
        with pytest.raises(ValidationError):
            parse_month(bad)


def test_prior_month_crosses_year():
    from spend_tracker.utils.periods import prior_month

    assert prior_month("2025-03") == "2025-02"
    assert prior_month("2025-01") == "2024-12"


def test_month_and_ytd_ranges():
    from spend_tracker.utils.periods import month_range, ytd_range

    start, end = month_range("2024-02")
    assert start == datetime(2024, 2, 1)
    assert end == datetime(2024, 2, 29, 23, 59, 59, 999999)

    ytd_start, ytd_end = ytd_range("2025-03")
    assert ytd_start == datetime(2025, 1, 1)
    assert ytd_end == datetime(2025, 3, 31, 23, 59, 59, 999999)


def test_month_helpers():
    from spend_tracker.utils.periods import month_of, month_ordinal, month_period
    from spend_tracker.utils.errors import ValidationError

    assert month_of(datetime(2025, 7, 4)) == "2025-07"
    assert month_ordinal("2025-03") == 3
    assert str(month_period(2025, 12)) == "2025-12"
    with pytest.raises(ValidationError):
        month_period(2025, 13)
    with pytest.raises(ValidationError):
        month_period("2025", 1)


# Formatting

def test_formatting_helpers():
    from spend_tracker.constants import SpendStatus
    from spend_tracker.utils.formatting import format_currency, format_percentage, status_label

    assert format_currency(1234.5) == "$1,234.50"
    assert format_currency(-1234.5) == "-$1,234.50"
    assert format_percentage(20) == "+20.0%"
    assert format_percentage(-4.5) == "-4.5%"
    assert format_percentage(0) == "0.0%"
    assert status_label(SpendStatus.OVER_BUDGET) == "Over Budget"
    assert status_label("no-spend") == "No Spend"
    assert status_label("mystery") == "Unknown"


# Storage backends

def test_memory_backend_roundtrip():
    """Documents are copied in and out."""
    from spend_tracker.db import MemoryBackend

    backend = MemoryBackend()
    doc = {'name': "GitHub", 'aliases': ["Github Inc"]}
    backend.write_batch([("vendors", "v1", doc)])
    doc['aliases'].append("mutated")

    stored = backend.get("vendors", "v1")
    assert stored == {'name': "GitHub", 'aliases': ["Github Inc"]}
    assert backend.get("vendors", "missing") is None
    assert backend.get_many("vendors", ["v1", "missing"]) == [stored, None]
    assert backend.list("vendors") == [stored]
    assert backend.list("empty") == []
    assert backend.health_check() is True


def test_redis_backend_batches_in_one_transaction():
    """All writes of a batch go through a single MULTI/EXEC pipeline."""
    from spend_tracker.db import RedisBackend

    client = MagicMock()
    pipeline = client.pipeline.return_value
    backend = RedisBackend(client, key_prefix="spend")

    backend.write_batch([
        ("transactions", "t1", {'id': "t1"}),
        ("transactions_by_external_id", "ext1", {'id': "t1"}),
    ])

    client.pipeline.assert_called_once_with(transaction=True)
    assert pipeline.hset.call_count == 2
    pipeline.hset.assert_any_call("spend:transactions", "t1", json.dumps({'id': "t1"}))
    pipeline.execute.assert_called_once()
    client.hset.assert_not_called()


def test_redis_backend_reads():
    from spend_tracker.db import RedisBackend

    client = MagicMock()
    client.hget.return_value = '{"id": "t1"}'
    client.hmget.return_value = ['{"id": "t1"}', None]
    client.hvals.return_value = ['{"id": "t1"}']
    backend = RedisBackend(client)

    assert backend.get("transactions", "t1") == {'id': "t1"}
    assert backend.get_many("transactions", ["t1", "t2"]) == [{'id': "t1"}, None]
    assert backend.list("transactions") == [{'id': "t1"}]
    client.hmget.assert_called_once_with("spend:transactions", ["t1", "t2"])


def test_redis_backend_health_check():
    import redis
    from spend_tracker.db import RedisBackend

    client = MagicMock()
    client.ping.side_effect = redis.ConnectionError("down")

    assert RedisBackend(client).health_check() is False


def test_create_backend(monkeypatch):
    from spend_tracker.db import create_backend, MemoryBackend
    from spend_tracker.utils.errors import ConfigurationError

    monkeypatch.delenv("STORAGE_BACKEND", raising=False)
    assert isinstance(create_backend(), MemoryBackend)

    monkeypatch.setenv("STORAGE_BACKEND", "sqlite")
    with pytest.raises(ConfigurationError):
        create_backend()


def test_create_backend_redis_unreachable(monkeypatch):
    import redis
    from spend_tracker.db import create_backend
    from spend_tracker.utils.errors import StorageError

    monkeypatch.setenv("STORAGE_BACKEND", "redis")
    monkeypatch.setenv("REDIS_HOST", "localhost:6390")
    failing = MagicMock()
    failing.ping.side_effect = redis.ConnectionError("refused")
    monkeypatch.setattr("spend_tracker.db.backends.redis.Redis", MagicMock(return_value=failing))

    with pytest.raises(StorageError):
        create_backend()


# Retry handler

def test_retry_handler():
    """Test retry logic with exponential backoff"""
    from spend_tracker.orchestrator.retry_handler import retry_with_exponential_backoff
    from spend_tracker.utils.errors import ProviderError

    attempts = []

    def flaky_fetch():
        attempts.append(1)
        if len(attempts) < 3:
            raise ProviderError("Test failure", status_code=503)
        return "success"

    result = retry_with_exponential_backoff(flaky_fetch, max_retries=5, base_delay=0)
    assert result == "success"
    assert len(attempts) == 3


def test_retry_handler_exhaustion():
    """Test that the last error propagates after max attempts"""
    from spend_tracker.orchestrator.retry_handler import retry_with_exponential_backoff
    from spend_tracker.utils.errors import ProviderError

    attempts = []

    def always_fail():
        attempts.append(1)
        raise ProviderError("Always fails")

    with pytest.raises(ProviderError):
        retry_with_exponential_backoff(always_fail, max_retries=3, base_delay=0)
    assert len(attempts) == 3


def test_retry_handler_does_not_retry_other_errors():
    from spend_tracker.orchestrator.retry_handler import retry_with_exponential_backoff

    attempts = []

    def broken():
        attempts.append(1)
        raise KeyError("bug")

    with pytest.raises(KeyError):
        retry_with_exponential_backoff(broken, max_retries=3, base_delay=0)
    assert len(attempts) == 1
