"""
Transcript parser for convodyn
Turns "You: ..." / "Them: ..." lines into ordered, immutable Messages
"""

import re
import logging
from typing import List, Optional, Dict

from . import config
from .models import Message, Speaker
from .text_features import split_annotation

logger = logging.getLogger(__name__)

# Unicode quirks seen in pasted / OCR'd threads
NBSP = "\u00A0"
NNBSP = "\u202F"
ZWSP = "\u200B"
LRM = "\u200E"
RLM = "\u200F"
BOM = "\ufeff"

# "<SpeakerTag>: <text>"
LINE_RE = re.compile(r"^\s*(?P<tag>[A-Za-z]+)\s*:\s*(?P<text>.*)$")

_TAG_TO_SPEAKER: Dict[str, Speaker] = {
    **{tag: Speaker.SELF for tag in config.SELF_TAGS},
    **{tag: Speaker.OTHER for tag in config.OTHER_TAGS},
}


def _strip_weird_unicode(s: str) -> str:
    """Remove invisible chars and unify spaces."""
    if not s:
        return s
    s = s.replace(BOM, "")
    s = s.replace(LRM, "").replace(RLM, "")
    s = s.replace(ZWSP, " ")
    s = s.replace(NBSP, " ").replace(NNBSP, " ")
    s = re.sub(r"[ \t]+", " ", s)
    return s.strip()


def _speaker_for(tag: str) -> Optional[Speaker]:
    return _TAG_TO_SPEAKER.get(tag.lower())


class TranscriptParser:
    """Parse a pasted conversation thread into Messages."""

    def parse_text(self, text: str) -> List[Message]:
        """
        Parse transcript text already loaded in memory.

        Lines without a recognised speaker tag continue the previous message.
        Never raises: text with no tagged lines yields an empty list.
        """
        drafts: List[dict] = []
        current: Optional[dict] = None

        for i, raw in enumerate((text or "").splitlines(), start=1):
            line = _strip_weird_unicode(raw)
            if not line:
                continue

            m = LINE_RE.match(line)
            speaker = _speaker_for(m.group("tag")) if m else None
            if speaker is not None:
                current = {"speaker": speaker, "text": m.group("text").strip()}
                drafts.append(current)
            elif current is not None:
                # Multiline continuation
                current["text"] += "\n" + line
            else:
                logger.debug(f"Orphaned line {i}: {line[:80]}")

        messages = [self._finalize(d, ordinal) for ordinal, d in enumerate(drafts)]
        logger.debug(f"Parsed {len(messages)} messages")
        return messages

    def parse_file(self, file_path: str) -> List[Message]:
        """Parse transcript file from disk."""
        with open(file_path, "r", encoding="utf-8", errors="replace") as f:
            return self.parse_text(f.read())

    def _finalize(self, draft: dict, ordinal: int) -> Message:
        text, annotation = split_annotation(draft["text"])
        return Message(
            speaker=draft["speaker"],
            text=text,
            ordinal=ordinal,
            annotation=annotation,
        )


def parse_transcript(text: str) -> List[Message]:
    """Module-level shortcut for TranscriptParser().parse_text()."""
    return TranscriptParser().parse_text(text)


def render_transcript(messages: List[Message]) -> str:
    """Render messages back to "You:/Them:" lines, annotations included."""
    lines = []
    for msg in messages:
        tag = config.SELF_RENDER_TAG if msg.speaker == Speaker.SELF else config.OTHER_RENDER_TAG
        line = f"{tag}: {msg.text}"
        if msg.annotation:
            line += f" ({msg.annotation})"
        lines.append(line)
    return "\n".join(lines)


def validate_format(file_path: str, min_hits: int = 1) -> tuple[bool, str]:
    """
    Validate transcript format.
    Returns (is_valid, reason).
    """
    try:
        with open(file_path, "r", encoding="utf-8", errors="replace") as f:
            text = f.read()
    except OSError as e:
        return False, f"Could not read file: {e}"

    hits = len(parse_transcript(text))
    if hits >= min_hits:
        return True, f"Format appears valid ({hits} messages)"

    return False, "No lines start with a recognised speaker tag (You:/Them:)"
