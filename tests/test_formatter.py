"""
Tests for the constraint formatter
"""

import pytest
from convodyn.formatter import (
    CONSTRAINT_RULES,
    ENERGY_BRIEF,
    ENERGY_ENGAGE,
    ENERGY_LOW_EFFORT,
    constraint_flags,
    format_constraints,
    render_directives,
    select_energy_hint,
)
from convodyn.metrics import extract_metrics
from convodyn.models import (
    SAFE_DEFAULT,
    Balance,
    DirectiveKind,
    Energy,
    Momentum,
    Move,
    MoveConstraints,
    MoveEnergy,
    RiskLevel,
    StrategyResult,
    ThreadMetrics,
)


@pytest.fixture
def full_strategy():
    """Strategy with every optional hint and every constraint set."""
    return StrategyResult(
        momentum=Momentum.RISING,
        balance=Balance.BALANCED,
        energy_level=Energy.HIGH,
        sarcasm_detected=True,
        is_kidding=True,
        risk_flags=["double texting"],
        move=Move(
            energy=MoveEnergy.ESCALATE,
            one_liner="lean in, suggest drinks this week",
            constraints=MoveConstraints(
                no_questions=True,
                keep_short=True,
                add_tease=True,
                push_meetup=True,
            ),
            risk=RiskLevel.MEDIUM,
        ),
    )


def test_low_effort_branch():
    """Dry short reply with no engagement: match brevity."""
    metrics = extract_metrics("Them: k\nYou: hey what's up\nThem: nm u")
    hint = select_energy_hint(metrics)

    assert hint.kind == DirectiveKind.ENERGY
    assert hint.text == ENERGY_LOW_EFFORT
    assert hint.flags["branch"] == "low_effort"


def test_engage_branch_on_reinitiation():
    """Re-initiation with a substantive message: engage with content."""
    metrics = extract_metrics("""Them: hey
You: hi there
Them: how's your week going
You: busy but good, just got back from the coast
Them: wait which beach did you go to, I have been wanting a trip""")
    hint = select_energy_hint(metrics)

    assert hint.text == ENERGY_ENGAGE
    assert hint.flags["branch"] == "engage"


def test_engagement_beats_short_length():
    """A short message with a question still reads as engaged."""
    metrics = ThreadMetrics(
        other_count=2,
        self_count=1,
        total_messages=3,
        last_received_length=6,
        avg_other_length=6.0,
        recent_questions=1,
    )

    assert select_energy_hint(metrics).flags["branch"] == "engage"


def test_brief_branch():
    """Moderate last message, short average, no engagement: keep brief."""
    metrics = ThreadMetrics(
        other_count=2,
        self_count=2,
        total_messages=4,
        last_received_length=18,
        avg_other_length=12.0,
    )

    hint = select_energy_hint(metrics)
    assert hint.text == ENERGY_BRIEF
    assert hint.flags["branch"] == "brief"


def test_no_energy_hint():
    """No Them messages, or long regular messages: no hint."""
    assert select_energy_hint(ThreadMetrics()) is None
    assert select_energy_hint(ThreadMetrics(
        other_count=2,
        total_messages=2,
        last_received_length=40,
        avg_other_length=45.0,
    )) is None


def test_directive_order(full_strategy):
    """Strategy first, then hints, then rules, energy hint last."""
    metrics = extract_metrics("Them: k\nYou: hey what's up\nThem: nm u")
    directives = format_constraints(full_strategy, metrics)
    kinds = [d.kind for d in directives]

    assert kinds[0] == DirectiveKind.STRATEGY
    assert kinds == sorted(kinds, key=[
        DirectiveKind.STRATEGY, DirectiveKind.HINT, DirectiveKind.RULE, DirectiveKind.ENERGY
    ].index)
    assert kinds.count(DirectiveKind.HINT) == 4
    assert kinds.count(DirectiveKind.RULE) == 4
    assert kinds.count(DirectiveKind.ENERGY) == 1


def test_strategy_directive_content(full_strategy):
    """Header carries the one-liner and the classifications."""
    strategy_directive = format_constraints(full_strategy, ThreadMetrics())[0]

    assert "lean in, suggest drinks this week" in strategy_directive.text
    assert "Momentum: Rising" in strategy_directive.text
    assert strategy_directive.flags["energy"] == "escalate"
    assert strategy_directive.flags["risk"] == "medium"


def test_rules_only_for_true_constraints():
    """The safe default only sets keep_short."""
    directives = format_constraints(SAFE_DEFAULT, ThreadMetrics())
    rules = [d for d in directives if d.kind == DirectiveKind.RULE]

    assert [r.text for r in rules] == [CONSTRAINT_RULES["keep_short"]]
    assert not any(d.kind == DirectiveKind.HINT for d in directives)


def test_constraint_flags():
    """Structured booleans mirror the constraints."""
    assert constraint_flags(SAFE_DEFAULT) == {
        "no_questions": False,
        "keep_short": True,
        "add_tease": False,
        "push_meetup": False,
    }


def test_render_directives(full_strategy):
    """Rendered text keeps order, header unprefixed."""
    metrics = extract_metrics("Them: k\nYou: hey what's up\nThem: nm u")
    text = render_directives(format_constraints(full_strategy, metrics))

    assert text.startswith("STRATEGY COACHING")
    assert f"- {CONSTRAINT_RULES['no_questions']}" in text
    assert text.rstrip().endswith(ENERGY_LOW_EFFORT)
    assert "Watch out for: double texting" in text


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
