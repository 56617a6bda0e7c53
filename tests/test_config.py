"""
Tests for settings validation and structured logging.
"""

import json
import logging
import sys

import pytest

from medigate.api.dependencies import build_store
from medigate.config import Settings, _split_keys
from medigate.logger import JSONFormatter
from medigate.repositories import InMemoryCacheRepository, NullCacheRepository


def test_split_keys():
    assert _split_keys(" a, b ,,c ") == ("a", "b", "c")
    assert _split_keys(None) == ()


@pytest.mark.parametrize(
    "overrides",
    [
        {"cache_backend": "memcached"},
        {"cache_ttl": 0},
        {"cache_max_entries": 0},
        {"cache_sweep_interval": 0},
        {"tts_max_chars": 0},
        {"upstream_timeout": 0},
    ],
)
def test_invalid_settings_rejected(overrides):
    with pytest.raises(ValueError):
        Settings(**overrides)


def test_voices():
    settings = Settings(voice_host="h", voice_expert="e")
    assert settings.voices == {"host": "h", "expert": "e"}


def test_build_store_by_backend():
    memory = build_store("clinicaltrials", 60, backend="memory")
    assert isinstance(memory, InMemoryCacheRepository)
    assert memory.ttl == 60
    assert isinstance(build_store("speech", 60, backend="none"), NullCacheRepository)


def make_record(**extra) -> logging.LogRecord:
    record = logging.LogRecord("medigate", logging.INFO, __file__, 10, "Upstream attempt failed", None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_json_formatter_includes_extra_fields():
    line = JSONFormatter().format(make_record(target="brave-key-1", outcome="timeout"))

    payload = json.loads(line)
    assert payload["message"] == "Upstream attempt failed"
    assert payload["level"] == "INFO"
    assert payload["target"] == "brave-key-1"
    assert payload["outcome"] == "timeout"


def test_json_formatter_drops_sensitive_fields():
    line = JSONFormatter().format(make_record(api_key="secret", authorization="Bearer x"))

    payload = json.loads(line)
    assert "api_key" not in payload
    assert "authorization" not in payload


def test_json_formatter_exception():
    try:
        raise RuntimeError("boom")
    except RuntimeError:
        record = logging.LogRecord("medigate", logging.ERROR, __file__, 1, "failed", None, sys.exc_info())

    payload = json.loads(JSONFormatter().format(record))
    assert payload["exception"]["type"] == "RuntimeError"
    assert payload["exception"]["message"] == "boom"
