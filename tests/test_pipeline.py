"""
Tests for the end-to-end analysis pipeline
"""

import json
import time

import pytest
from convodyn.llm_client import LLMClient
from convodyn.pipeline import run_analysis


THREAD = """Them: k
You: hey what's up
Them: nm u"""


class SlowClient:
    def complete(self, system_prompt, user_prompt, *, max_tokens, temperature):
        time.sleep(3.0)
        return "{}"


class BrokenClient:
    def complete(self, system_prompt, user_prompt, *, max_tokens, temperature):
        raise RuntimeError("model unavailable")


def test_run_analysis_result_shape():
    """Result has every section and is JSON-serialisable."""
    result = run_analysis(THREAD, context="friend", client=LLMClient(mock_mode=True))

    assert set(result) == {
        "metrics", "scores", "strategy", "strategy_source",
        "latency_ms", "directives", "constraints", "generation_prompt",
    }
    assert result["strategy_source"] == "model"
    assert result["metrics"]["total_messages"] == 3
    assert result["directives"][0]["kind"] == "strategy"
    assert result["directives"][-1]["flags"]["branch"] == "low_effort"
    json.dumps(result)


def test_run_analysis_falls_back():
    """A failing client still produces a full result."""
    result = run_analysis(THREAD, client=BrokenClient())

    assert result["strategy_source"] == "safe_default"
    assert result["strategy"]["momentum"] == "Unknown"
    assert result["constraints"]["keep_short"] is True


def test_run_analysis_draft_changes_scores():
    """A draft is factored into the scores."""
    client = LLMClient(mock_mode=True)
    base = run_analysis(THREAD, client=client)
    needy = run_analysis(THREAD, client=client, draft="you there? hello? why so quiet?")

    assert needy["scores"]["risk_score"] > base["scores"]["risk_score"]


def test_run_analysis_short_thread():
    """Short threads skip the model entirely."""
    result = run_analysis("Them: hey", client=BrokenClient())

    assert result["strategy_source"] == "safe_default"
    assert result["metrics"]["total_messages"] == 1



def test_run_analysis_short_thread_without_key(monkeypatch):
    """A short thread needs no API key."""
    monkeypatch.setattr("convodyn.config.LLM_API_KEY", "")

    result = run_analysis("Them: hey")

    assert result["strategy_source"] == "safe_default"
    assert result["strategy"]["move"]["one_liner"] == "too early to read, play it cool"


def test_run_analysis_long_thread_without_key(monkeypatch):
    """A long thread with no API key falls back instead of raising."""
    monkeypatch.setattr("convodyn.config.LLM_API_KEY", "")

    result = run_analysis(THREAD)

    assert result["strategy_source"] == "safe_default"
    assert result["scores"]["health_score"] >= 10


def test_run_analysis_timeout_bounds_wall_clock():
    """A hung model call does not hold up the result."""
    start = time.perf_counter()
    result = run_analysis(THREAD, client=SlowClient(), timeout=0.1)
    wall = time.perf_counter() - start

    assert result["strategy_source"] == "safe_default"
    assert wall < 1.5
    assert result["latency_ms"] < 1500


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
