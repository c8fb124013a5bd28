"""Tests for mailsieve.config."""

from __future__ import annotations

import pytest

from mailsieve.config import MailFilterConfig


class TestMailFilterConfig:
    def test_defaults(self):
        cfg = MailFilterConfig()
        assert cfg.fallback_sender == "noreply@localhost"
        assert cfg.undisclosed_name == "Undisclosed Recipients"
        assert cfg.log_level == "INFO"
        assert cfg.log_json is True

    def test_custom_values(self):
        cfg = MailFilterConfig(fallback_sender="postmaster@corp.example", log_json=False)
        assert cfg.fallback_sender == "postmaster@corp.example"
        assert cfg.log_json is False

    def test_env_override(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("MAILSIEVE_FALLBACK_SENDER", "bounce@corp.example")
        monkeypatch.setenv("MAILSIEVE_LOG_LEVEL", "DEBUG")
        cfg = MailFilterConfig()
        assert cfg.fallback_sender == "bounce@corp.example"
        assert cfg.log_level == "DEBUG"
