"""Tests for settings and logging setup."""
import json
import logging

from taskrelay.logging_config import JsonFormatter, setup_logging

from conftest import build_settings


def test_chat_webhook_falls_back_to_enrichment_url(tmp_path):
    settings = build_settings(tmp_path, N8N_CHAT_WEBHOOK_URL=None)

    assert settings.chat_webhook_url == settings.N8N_WEBHOOK_URL
    assert settings.SESSION_TTL_HOURS == 12
    assert settings.ACTIVATION_KEYWORD == "#todolist"


def test_json_formatter_renders_one_line():
    record = logging.LogRecord("taskrelay.test", logging.WARNING, __file__, 1, "sent %s", ("hi",), None)

    entry = json.loads(JsonFormatter().format(record))

    assert entry["level"] == "WARNING"
    assert entry["logger"] == "taskrelay.test"
    assert entry["message"] == "sent hi"


def test_setup_logging_replaces_own_handler():
    root = logging.getLogger()
    setup_logging("DEBUG", "json")
    setup_logging("WARNING", "text")

    ours = [h for h in root.handlers if getattr(h, "_taskrelay", False)]
    assert len(ours) == 1
    assert root.level == logging.WARNING
    assert logging.getLogger("httpx").level == logging.WARNING
