"""
Text feature extraction for convodyn
Emoji parsing, laughter and softening detection, stretched words, question flags
"""

import re
import logging
from typing import Dict, Any, List, Optional
import emoji

from . import config

logger = logging.getLogger(__name__)

# Trailing "(...)" annotation on a transcript line, e.g. "nm u (3 hours later)"
ANNOTATION_RE = re.compile(r"\s*\(([^()]*)\)\s*$")

STRETCH_RE = re.compile(r"([a-z])\1{%d,}" % (config.STRETCH_MIN_REPEAT - 1), re.IGNORECASE)


def split_annotation(text: str) -> tuple[str, Optional[str]]:
    """
    Strip a trailing parenthetical annotation.

    Returns:
        (text without annotation, annotation or None)
    """
    m = ANNOTATION_RE.search(text)
    if not m:
        return text.strip(), None
    stripped = text[:m.start()].strip()
    if not stripped:
        # A line that is only "(...)" is content, not an annotation
        return text.strip(), None
    return stripped, m.group(1).strip() or None


def extract_emojis(text: str) -> List[str]:
    """Extract all emojis from text."""
    return [char for char in text if char in emoji.EMOJI_DATA]


def detect_laughter(text: str) -> bool:
    """Detect laughter in text (emoji or text patterns)."""
    lower = text.lower()
    return any(pattern in lower for pattern in config.LAUGHTER_PATTERNS)


def detect_softening(text: str) -> List[str]:
    """Return the softening / joking markers present in text."""
    lower = f" {text.lower()} "
    found = []
    for marker in config.SOFTENING_MARKERS:
        # Word markers need boundaries ("jk" must not match inside "jkl")
        if marker.isalpha() or " " in marker:
            if re.search(rf"(?<![a-z]){re.escape(marker)}(?![a-z])", lower):
                found.append(marker)
        elif marker in lower:
            found.append(marker)
    return found


def count_stretched_words(text: str) -> int:
    """Count words with a letter repeated for emphasis ("heyyy", "nooo")."""
    return sum(1 for word in text.split() if STRETCH_RE.search(word))


def compute_text_flags(text: str) -> Dict[str, Any]:
    """
    Compute basic per-message flags.

    Returns dict with:
        - question_flag: Has question mark
        - msg_length: Character count
        - word_count: Word count
    """
    if not text:
        return {
            "question_flag": False,
            "msg_length": 0,
            "word_count": 0,
        }

    return {
        "question_flag": "?" in text,
        "msg_length": len(text),
        "word_count": len(text.split()),
    }


def extract_tone_cues(text: str) -> Dict[str, Any]:
    """
    Extract tone cues used to tell playful replies from dry ones.

    Returns:
        - emoji_count: Number of emojis
        - laughter_flag: Laughter pattern present
        - softening_markers: Softening / joking markers found
        - stretched_words: Count of stretched words
    """
    return {
        "emoji_count": len(extract_emojis(text)),
        "laughter_flag": detect_laughter(text),
        "softening_markers": detect_softening(text),
        "stretched_words": count_stretched_words(text),
    }
