"""
Tests for thread metrics extraction
"""

import pytest
from convodyn.metrics import extract_metrics, messages_to_frame
from convodyn.models import Energy, ThreadMetrics
from convodyn.parser import parse_transcript


@pytest.fixture
def low_effort_thread():
    """Short, dry replies from Them with no re-initiation."""
    return "Them: k\nYou: hey what's up\nThem: nm u"


@pytest.fixture
def reinitiated_thread():
    """Them answers the latest You line, deep in the thread, with a real message."""
    return """Them: hey
You: hi there
Them: how's your week going
You: busy but good, just got back from the coast
Them: wait which beach did you go to, I have been wanting a trip"""


def test_empty_transcript_zeroed():
    """Empty input yields zeroed metrics."""
    metrics = extract_metrics("")

    assert metrics == ThreadMetrics()
    assert metrics.total_messages == 0
    assert metrics.investment_ratio == 1.0
    assert metrics.recent_energy == Energy.LOW
    assert metrics.last_speaker == "unknown"


def test_counts_and_last_speaker(low_effort_thread):
    """Test speaker counts."""
    metrics = extract_metrics(low_effort_thread)

    assert metrics.self_count == 1
    assert metrics.other_count == 2
    assert metrics.total_messages == 3
    assert metrics.last_speaker == "other"


def test_low_effort_thread(low_effort_thread):
    """Dry replies read as low energy without engagement signals."""
    metrics = extract_metrics(low_effort_thread)

    assert metrics.recent_energy == Energy.LOW
    assert metrics.last_received_length == 4
    assert metrics.recent_questions == 0
    assert metrics.re_initiated is False
    assert metrics.last_message_substantive is False


def test_reinitiation_and_substance(reinitiated_thread):
    """A substantive reply to a deep You line counts as re-initiation."""
    metrics = extract_metrics(reinitiated_thread)

    assert metrics.re_initiated is True
    assert metrics.last_message_substantive is True


def test_reply_in_opening_exchange_not_reinitiation():
    """A reply to the opening You line is not a re-initiation."""
    metrics = extract_metrics("You: hey\nThem: hey you")

    assert metrics.re_initiated is False


def test_investment_ratio():
    """Ratio of You characters to Them characters."""
    metrics = extract_metrics("You: aaaa\nThem: aa")
    assert metrics.investment_ratio == 2.0

    # Them wrote nothing: parity
    metrics = extract_metrics("You: hello\nYou: anyone?")
    assert metrics.investment_ratio == 1.0


def test_annotation_excluded_from_lengths():
    """Annotations do not count toward message length."""
    metrics = extract_metrics("You: hey\nThem: nm u (3 hours later)")

    assert metrics.last_received_length == 4
    assert metrics.avg_other_length == 4.0


def test_recent_energy_high_on_questions():
    """Two questions in the last three messages is high energy."""
    metrics = extract_metrics("You: hi\nThem: how are you?\nYou: good, you?")

    assert metrics.recent_energy == Energy.HIGH


def test_recent_questions_only_from_them():
    """Only questions Them asked count."""
    metrics = extract_metrics("You: you there?\nYou: hello?\nThem: yes what?")

    assert metrics.recent_questions == 1


def test_momentum_window_split():
    """Speaker split over the latest messages."""
    metrics = extract_metrics("Them: a\nYou: b\nYou: c\nYou: d\nThem: e")

    assert metrics.recent_self_count == 3
    assert metrics.recent_other_count == 1


def test_tone_cues_from_them():
    """Tone cues are taken from Them's recent messages only."""
    metrics = extract_metrics("You: lol 😂\nThem: heyyy haha 😂\nThem: jk")

    assert metrics.other_laughter is True
    assert metrics.other_emoji_count == 1
    assert metrics.other_stretched_words == 1
    assert metrics.other_softening_markers >= 2


def test_deterministic(reinitiated_thread):
    """Same transcript, same metrics."""
    assert extract_metrics(reinitiated_thread) == extract_metrics(reinitiated_thread)


def test_accepts_parsed_messages(low_effort_thread):
    """Parsed messages and raw text give the same metrics."""
    messages = parse_transcript(low_effort_thread)

    assert extract_metrics(messages) == extract_metrics(low_effort_thread)


def test_messages_to_frame_columns(low_effort_thread):
    """Test frame construction."""
    df = messages_to_frame(parse_transcript(low_effort_thread))

    assert list(df.columns) == ["ordinal", "speaker", "text", "char_count", "word_count", "has_question"]
    assert len(df) == 3
    assert len(messages_to_frame([])) == 0


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
