"""
Tests for configuration
"""

import pytest
from convodyn import config


def test_config_summary_sections():
    """Summary exposes model, inference and context settings."""
    summary = config.get_config_summary()

    assert set(summary) == {"model", "inference", "context"}
    assert summary["inference"]["min_messages"] == config.MIN_MESSAGES_FOR_STRATEGY
    assert "crush" in summary["context"]["known"]


def test_config_exports_only_settings():
    """Module carries settings, not filesystem paths."""
    assert not hasattr(config, "PROJECT_ROOT")


def test_validate_config_requires_key(monkeypatch):
    """Missing API key is a configuration error."""
    monkeypatch.setattr(config, "LLM_API_KEY", "")

    valid, msg = config.validate_config()

    assert not valid
    assert "LLM_API_KEY" in msg


def test_validate_config_ok(monkeypatch):
    """Key plus defaults is valid."""
    monkeypatch.setattr(config, "LLM_API_KEY", "test-key")
    monkeypatch.setattr(config, "STRATEGY_TEMPERATURE", 0.3)

    valid, _ = config.validate_config()

    assert valid


def test_validate_config_rejects_bad_temperature(monkeypatch):
    """Temperature must be within [0, 1]."""
    monkeypatch.setattr(config, "LLM_API_KEY", "test-key")
    monkeypatch.setattr(config, "STRATEGY_TEMPERATURE", 1.7)

    valid, msg = config.validate_config()

    assert not valid
    assert "STRATEGY_TEMPERATURE" in msg


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
