"""
Strategy prompt construction for convodyn

Style of the requested output: a tactical texting coach, not a therapist.
The prompt embeds the transcript, the relationship context and the computed
metrics, and spells out the closed sets the response is validated against.
"""

import json
from typing import List, Optional, Tuple

from . import config
from .models import Message, ThreadMetrics
from .parser import render_transcript

STRATEGY_SYSTEM_PROMPT = """You are a text conversation strategist. Read the thread and return ONE JSON strategy recommendation.

OUTPUT RULES:
- Output STRICT JSON ONLY. No markdown, no commentary.
- Use exactly this shape and only these values:
{
  "momentum": "Rising" | "Flat" | "Declining" | "Stalling" | "Unknown",
  "balance": "SelfLeading" | "OtherLeading" | "Balanced" | "SelfChasing" | "Unknown",
  "energy_level": "low" | "medium" | "high",
  "sarcasm_detected": true | false,
  "is_kidding": true | false,
  "risk_flags": [short strings, at most 5, may be empty],
  "move": {
    "energy": "pull_back" | "match" | "escalate" | "clarify" | "logistics",
    "one_liner": string,
    "constraints": {
      "no_questions": true | false,
      "keep_short": true | false,
      "add_tease": true | false,
      "push_meetup": true | false
    },
    "risk": "low" | "medium" | "high"
  }
}
- "You" lines are the user (Self). "Them" lines are the other person (Other).

READING TONE (playful vs. genuinely low effort):
- Sarcasm and joking are NOT disinterest. Cues of play: laughter ("lol", "haha"), softening ("jk", "mhm", "if you say so"), exaggeration, stretched letters ("heyyy", "nooo"), emoji, teasing that follows something warm.
- Cues of genuine low investment: flat one-word replies with no tone markers, long delays noted in parentheses, replies that answer nothing and share nothing, repeated terse replies in a row.
- Set sarcasm_detected / is_kidding only when those play cues are actually present.

ENGAGEMENT SIGNALS (these override "short message = low effort"):
- If they re-initiated (messaged again after the user had the last word), that is strong interest.
- If they asked questions recently, they are engaged, even when their messages are short.
- A message of 8+ words that shares something real is an opening, not low effort.

HARD CONSTRAINTS:
- When genuine low-effort signals dominate and no engagement signal is present: set no_questions=true, keep_short=true, and never choose "escalate".
- When the user is investing far more (SelfChasing): prefer "pull_back".
- "logistics" and push_meetup=true only when both sides are clearly engaged.

ONE-LINER:
- A terse directive the user can act on, at most 12 words and 100 characters.
- Imperative voice, no emojis, no judgment, no analysis, no therapy language.
- GOOD: "keep it light, let them come to you"  BAD: "They seem to be showing declining interest in the conversation."

DECISION GUIDE:
- momentum: Rising = they engage more over time. Flat = even exchanges. Declining = shorter/slower from them. Stalling = the conversation is dying.
- balance: compare effort (length, questions, enthusiasm) across the whole thread.
- risk: low = safe move. medium = could go either way. high = bold move that might backfire."""


def describe_context(context: Optional[str]) -> str:
    """Context tag plus guidance for the tags we know about."""
    tag = (context or "").strip() or config.DEFAULT_CONTEXT
    guidance = config.CONTEXT_GUIDANCE.get(tag.lower())
    if guidance:
        return f"{tag} ({guidance})"
    return tag


def engagement_signal_lines(metrics: ThreadMetrics) -> List[str]:
    """Plain-language statements of the signals the model tends to misread."""
    lines = []
    if metrics.re_initiated:
        lines.append("- They RE-INITIATED after you had the last word: treat as active interest.")
    if metrics.recent_questions:
        lines.append(
            f"- They asked {metrics.recent_questions} question(s) in their last messages: they are engaged."
        )
    if metrics.last_message_substantive:
        lines.append("- Their last message is substantive (8+ words): engage with its content.")
    if metrics.other_laughter or metrics.other_softening_markers or metrics.other_stretched_words:
        lines.append("- Their recent messages carry playful tone markers: check for sarcasm or kidding.")
    if not lines:
        lines.append("- No explicit engagement signals detected.")
    return lines


def build_strategy_prompt(
    messages: List[Message],
    context: Optional[str],
    metrics: ThreadMetrics,
) -> Tuple[str, str]:
    """
    Build the (system, user) prompt pair for one strategy call.

    Args:
        messages: Parsed transcript
        context: Relationship context tag, passed through unchanged
        metrics: Metrics computed from the same transcript

    Returns:
        (system_prompt, user_prompt)
    """
    user_prompt = "\n".join([
        "THREAD:",
        render_transcript(messages),
        "",
        f"CONTEXT: {describe_context(context)}",
        f"METRICS: {json.dumps(metrics.model_dump(mode='json'))}",
        "ENGAGEMENT SIGNALS:",
        *engagement_signal_lines(metrics),
    ])
    return STRATEGY_SYSTEM_PROMPT, user_prompt
