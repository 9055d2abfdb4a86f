"""
Tests for the command line interface
"""

import json
import sys

import pytest
from convodyn import cli


@pytest.fixture
def transcript_file(tmp_path):
    path = tmp_path / "thread.txt"
    path.write_text("Them: k\nYou: hey what's up\nThem: nm u\n", encoding="utf-8")
    return path


def test_validate_command(monkeypatch, transcript_file, capsys):
    """validate exits 0 for a well-formed transcript."""
    monkeypatch.setattr(sys, "argv", ["convodyn", "validate", str(transcript_file)])

    with pytest.raises(SystemExit) as exc_info:
        cli.main()

    assert exc_info.value.code == 0
    assert "Valid: True" in capsys.readouterr().out


def test_validate_command_rejects(monkeypatch, tmp_path):
    """validate exits 1 for a file with no speaker tags."""
    path = tmp_path / "bad.txt"
    path.write_text("hello world", encoding="utf-8")
    monkeypatch.setattr(sys, "argv", ["convodyn", "validate", str(path)])

    with pytest.raises(SystemExit) as exc_info:
        cli.main()

    assert exc_info.value.code == 1


def test_analyze_mock_writes_output(monkeypatch, transcript_file, tmp_path):
    """analyze --mock writes the JSON result."""
    output = tmp_path / "result.json"
    monkeypatch.setattr(sys, "argv", [
        "convodyn", "analyze", str(transcript_file),
        "--mock", "--context", "friend", "-o", str(output),
    ])

    cli.main()

    result = json.loads(output.read_text(encoding="utf-8"))
    assert result["strategy_source"] == "model"
    assert result["scores"]["health_score"] >= 0


def test_analyze_without_key_exits(monkeypatch, transcript_file):
    """analyze without an API key (and without --mock) exits with an error."""
    monkeypatch.setattr("convodyn.config.LLM_API_KEY", "")
    monkeypatch.setattr(sys, "argv", ["convodyn", "analyze", str(transcript_file)])

    with pytest.raises(SystemExit) as exc_info:
        cli.main()

    assert exc_info.value.code == 1


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
