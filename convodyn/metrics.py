"""
Thread metrics extraction for convodyn
Per-speaker counts and lexical engagement signals, no model dependency
"""

import logging
from typing import List, Union
import pandas as pd

from . import config
from .models import Energy, Message, Speaker, ThreadMetrics
from .parser import parse_transcript
from .text_features import compute_text_flags, extract_tone_cues

logger = logging.getLogger(__name__)

# Window sizes (in messages)
RECENT_ENERGY_WINDOW = 3
RECENT_OTHER_LENGTH_WINDOW = 2
RECENT_QUESTION_WINDOW = 3
MOMENTUM_WINDOW = 4
TONE_WINDOW = 3

# Recent-energy buckets
HIGH_ENERGY_MIN_QUESTIONS = 2
HIGH_ENERGY_AVG_CHARS = 80
MEDIUM_ENERGY_AVG_CHARS = 30

# The Self line answered by a re-initiation must sit at this depth or later
REINITIATION_MIN_DEPTH = 2


def messages_to_frame(messages: List[Message]) -> pd.DataFrame:
    """Build one row per message with the flags the extractor needs."""
    rows = []
    for msg in messages:
        flags = compute_text_flags(msg.text)
        rows.append({
            "ordinal": msg.ordinal,
            "speaker": msg.speaker.value,
            "text": msg.text,
            "char_count": flags["msg_length"],
            "word_count": flags["word_count"],
            "has_question": flags["question_flag"],
        })
    return pd.DataFrame(
        rows,
        columns=["ordinal", "speaker", "text", "char_count", "word_count", "has_question"],
    )


def extract_metrics(transcript: Union[str, List[Message]]) -> ThreadMetrics:
    """
    Extract ThreadMetrics from a transcript.

    Pure and total: an empty or unparseable transcript yields zeroed metrics.

    Args:
        transcript: Raw "You:/Them:" text or already-parsed Messages

    Returns:
        ThreadMetrics
    """
    messages = parse_transcript(transcript) if isinstance(transcript, str) else list(transcript)
    df = messages_to_frame(messages)

    if len(df) == 0:
        logger.debug("Empty transcript, returning zeroed metrics")
        return ThreadMetrics()

    self_df = df[df["speaker"] == Speaker.SELF.value]
    other_df = df[df["speaker"] == Speaker.OTHER.value]

    last_other = other_df.iloc[-1] if len(other_df) else None
    recent = df.tail(MOMENTUM_WINDOW)

    metrics = ThreadMetrics(
        self_count=len(self_df),
        other_count=len(other_df),
        total_messages=len(df),
        investment_ratio=_investment_ratio(self_df, other_df),
        recent_energy=_recent_energy(df),
        last_speaker=df.iloc[-1]["speaker"],
        avg_self_length=_avg_length(self_df),
        avg_other_length=_avg_length(other_df),
        last_received_length=int(last_other["char_count"]) if last_other is not None else 0,
        last_message_substantive=(
            last_other is not None and int(last_other["word_count"]) >= config.SUBSTANTIVE_MIN_WORDS
        ),
        recent_other_avg_length=_avg_length(other_df.tail(RECENT_OTHER_LENGTH_WINDOW)),
        recent_questions=int(other_df.tail(RECENT_QUESTION_WINDOW)["has_question"].sum()),
        re_initiated=_re_initiated(df["speaker"].tolist()),
        recent_self_count=int((recent["speaker"] == Speaker.SELF.value).sum()),
        recent_other_count=int((recent["speaker"] == Speaker.OTHER.value).sum()),
        **_tone_cues(other_df.tail(TONE_WINDOW)),
    )

    logger.debug(
        f"Metrics: self={metrics.self_count} other={metrics.other_count} "
        f"ratio={metrics.investment_ratio} energy={metrics.recent_energy.value} "
        f"re_initiated={metrics.re_initiated}"
    )
    return metrics


def _investment_ratio(self_df: pd.DataFrame, other_df: pd.DataFrame) -> float:
    """Self character volume over Other's; parity (1.0) when Other wrote nothing."""
    other_chars = int(other_df["char_count"].sum())
    if other_chars == 0:
        return 1.0
    return round(int(self_df["char_count"].sum()) / other_chars, 3)


def _avg_length(sender_df: pd.DataFrame) -> float:
    if len(sender_df) == 0:
        return 0.0
    return round(float(sender_df["char_count"].mean()), 1)


def _recent_energy(df: pd.DataFrame) -> Energy:
    last = df.tail(RECENT_ENERGY_WINDOW)
    questions = int(last["has_question"].sum())
    avg_len = float(last["char_count"].mean())

    if questions >= HIGH_ENERGY_MIN_QUESTIONS or avg_len > HIGH_ENERGY_AVG_CHARS:
        return Energy.HIGH
    if avg_len > MEDIUM_ENERGY_AVG_CHARS:
        return Energy.MEDIUM
    return Energy.LOW


def _re_initiated(speakers: List[str]) -> bool:
    """
    Find the most recent Self -> Other adjacency, walking backward.

    Only counts when the Self line is at depth >= REINITIATION_MIN_DEPTH, so a
    reply inside the opening exchange is not a re-initiation.
    """
    for i in range(len(speakers) - 1, 0, -1):
        if speakers[i] == Speaker.OTHER.value and speakers[i - 1] == Speaker.SELF.value:
            return (i - 1) >= REINITIATION_MIN_DEPTH
    return False


def _tone_cues(other_recent: pd.DataFrame) -> dict:
    emoji_count = 0
    laughter = False
    softening = 0
    stretched = 0
    for text in other_recent["text"]:
        cues = extract_tone_cues(text)
        emoji_count += cues["emoji_count"]
        laughter = laughter or cues["laughter_flag"]
        softening += len(cues["softening_markers"])
        stretched += cues["stretched_words"]
    return {
        "other_emoji_count": emoji_count,
        "other_laughter": laughter,
        "other_softening_markers": softening,
        "other_stretched_words": stretched,
    }
