"""
Constraint formatter for convodyn
Turns a validated strategy plus thread metrics into ordered directives for the reply writer
"""

import logging
from typing import Dict, List, Optional

from .models import (
    Directive,
    DirectiveKind,
    StrategyResult,
    ThreadMetrics,
)

logger = logging.getLogger(__name__)

# One fixed instruction per constraint, emitted when the constraint is set
CONSTRAINT_RULES: Dict[str, str] = {
    "no_questions": "Do not ask any questions.",
    "keep_short": "Keep every reply short: one line, a few words.",
    "add_tease": "Add a light, playful tease.",
    "push_meetup": "Steer toward making concrete plans to meet.",
}

# Energy-matching thresholds
LOW_EFFORT_MAX_CHARS = 15
SHORT_AVERAGE_MAX_CHARS = 20

ENERGY_LOW_EFFORT = (
    "Their last message was low effort. Match it: 2-4 words, no questions, "
    "still with personality."
)
ENERGY_ENGAGE = (
    "They are engaged. Respond to the specific thing they said; reference "
    "their actual words instead of a generic reaction."
)
ENERGY_BRIEF = "They usually text short. Keep replies brief to match their rhythm."

STRATEGY_HEADER = "STRATEGY COACHING (follow these recommendations):"


def _strategy_directive(strategy: StrategyResult) -> Directive:
    move = strategy.move
    text = "\n".join([
        STRATEGY_HEADER,
        f'- Coach says: "{move.one_liner}"',
        f"- Momentum: {strategy.momentum.value} | Balance: {strategy.balance.value} "
        f"| Energy: {move.energy.value} | Risk: {move.risk.value}",
    ])
    return Directive(
        kind=DirectiveKind.STRATEGY,
        text=text,
        flags={
            "one_liner": move.one_liner,
            "momentum": strategy.momentum.value,
            "balance": strategy.balance.value,
            "energy": move.energy.value,
            "risk": move.risk.value,
        },
    )


def _hint_directives(strategy: StrategyResult) -> List[Directive]:
    hints = []
    if strategy.sarcasm_detected:
        hints.append(Directive(
            kind=DirectiveKind.HINT,
            text="Sarcasm detected: mirror it playfully, do not answer it literally.",
            flags={"sarcasm_detected": True},
        ))
    if strategy.is_kidding:
        hints.append(Directive(
            kind=DirectiveKind.HINT,
            text="They are kidding: match the playful energy, do not respond seriously.",
            flags={"is_kidding": True},
        ))
    if strategy.energy_level is not None:
        hints.append(Directive(
            kind=DirectiveKind.HINT,
            text=f"Their energy level reads {strategy.energy_level.value}.",
            flags={"energy_level": strategy.energy_level.value},
        ))
    if strategy.risk_flags:
        hints.append(Directive(
            kind=DirectiveKind.HINT,
            text="Watch out for: " + "; ".join(strategy.risk_flags),
            flags={"risk_flags": list(strategy.risk_flags)},
        ))
    return hints


def _rule_directives(strategy: StrategyResult) -> List[Directive]:
    flags = constraint_flags(strategy)
    return [
        Directive(kind=DirectiveKind.RULE, text=rule, flags={name: True})
        for name, rule in CONSTRAINT_RULES.items()
        if flags[name]
    ]


def select_energy_hint(metrics: ThreadMetrics) -> Optional[Directive]:
    """
    Pick at most one energy-matching hint.

    Priority: genuine low effort, then engagement signals, then a short
    lifetime average. Engagement always wins over the generic brevity hint.
    """
    if metrics.other_count == 0:
        return None

    engaged = (
        metrics.last_message_substantive
        or metrics.re_initiated
        or metrics.recent_questions > 0
    )

    if metrics.last_received_length <= LOW_EFFORT_MAX_CHARS and not engaged:
        return Directive(kind=DirectiveKind.ENERGY, text=ENERGY_LOW_EFFORT, flags={"branch": "low_effort"})
    if engaged:
        return Directive(kind=DirectiveKind.ENERGY, text=ENERGY_ENGAGE, flags={"branch": "engage"})
    if metrics.avg_other_length < SHORT_AVERAGE_MAX_CHARS:
        return Directive(kind=DirectiveKind.ENERGY, text=ENERGY_BRIEF, flags={"branch": "brief"})
    return None


def constraint_flags(strategy: StrategyResult) -> Dict[str, bool]:
    """Structured constraint booleans for consumers that do not want text."""
    return strategy.move.constraints.model_dump()


def format_constraints(strategy: StrategyResult, metrics: ThreadMetrics) -> List[Directive]:
    """
    Build the ordered directive list.

    Order: strategy header, detection hints, constraint rules, energy hint.

    Args:
        strategy: Validated strategy (model output or SAFE_DEFAULT)
        metrics: Metrics of the same thread

    Returns:
        List of Directives, strategy first, energy hint (if any) last
    """
    directives = [_strategy_directive(strategy)]
    directives.extend(_hint_directives(strategy))
    directives.extend(_rule_directives(strategy))

    energy = select_energy_hint(metrics)
    if energy is not None:
        directives.append(energy)

    logger.debug(f"Formatted {len(directives)} directives")
    return directives


def render_directives(directives: List[Directive]) -> str:
    """Join directives as plain text for a generation prompt."""
    lines = []
    for directive in directives:
        if directive.kind == DirectiveKind.STRATEGY:
            lines.append(directive.text)
        else:
            lines.append(f"- {directive.text}")
    return "\n".join(lines)
