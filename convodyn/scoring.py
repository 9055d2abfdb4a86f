"""
Heuristic thread scoring for convodyn

Pure functions turning ThreadMetrics into bounded health, risk, momentum,
reciprocity and wait-window signals. No I/O; identical metrics always give
identical scores.

SCORING DIMENSIONS:
1. Reciprocity (0-100): message-count parity between the two speakers
2. Momentum (theirs|yours|balanced): who drove the most recent messages
3. Health (0-100): additive adjustments around a baseline, then clamped
4. Risk (0-100): additive penalties around a baseline, then clamped
5. Wait window: lookup keyed by risk tier, then momentum

CONFIGURABLE CONSTANTS:
All thresholds and weights live below. There is exactly one set; the two
computation paths differ only in their clamp ranges.
"""

import logging
from typing import Optional, Tuple

from . import config
from .models import (
    Balance,
    PowerMomentum,
    RiskLevel,
    ThreadMetrics,
    ThreadScores,
    WaitWindow,
)

logger = logging.getLogger(__name__)

# ============================================================================
# CONFIGURABLE CONSTANTS
# ============================================================================

# Computation paths: threads below the strategy threshold use the short path
SHORT_THREAD_MAX_MESSAGES = config.MIN_MESSAGES_FOR_STRATEGY - 1
FULL_HEALTH_RANGE = (10, 100)
FULL_RISK_RANGE = (0, 100)
SHORT_HEALTH_RANGE = (24, 96)
SHORT_RISK_RANGE = (8, 95)

# Health
HEALTH_BASELINE = 70
HEALTH_RECIPROCITY_BONUS = 10
# Other's share of messages must sit in this band and Other must have replied last
HEALTH_RECIPROCITY_BAND = (0.4, 0.6)
HEALTH_MOMENTUM_THEIRS_BONUS = 8
HEALTH_MOMENTUM_BALANCED_BONUS = 6
HEALTH_CHASE_PENALTY_PER_MESSAGE = 4  # per Self message beyond Other's count
HEALTH_LAST_WORD_PENALTY = 4
HEALTH_OVERINVEST_PENALTY = 6
HEALTH_LONG_DRAFT_PENALTY = 5
HEALTH_DRAFT_EXTRA_QUESTION_PENALTY = 3  # per "?" beyond the first

# Risk
RISK_BASELINE = 28
RISK_LAST_WORD_PENALTY = 10
RISK_MOMENTUM_YOURS_PENALTY = 12
RISK_OVERINVEST_PENALTY = 10
RISK_HEAVY_OVERINVEST_PENALTY = 8  # on top of RISK_OVERINVEST_PENALTY
RISK_LOW_RECIPROCITY_PENALTY = 12
RISK_DRAFT_QUESTION_PENALTY = 6  # per "?" in the draft
RISK_LONG_DRAFT_PENALTY = 8

# Shared thresholds
OVERINVEST_RATIO = 1.5
HEAVY_OVERINVEST_RATIO = 2.5
LOW_RECIPROCITY = 35
LONG_DRAFT_CHARS = 120

# Risk tiers (single canonical band)
RISK_TIER_HIGH = 60
RISK_TIER_MEDIUM = 35

# Heuristic balance
BALANCE_CHASING_RATIO = 2.0
BALANCE_SELF_LEADING_RATIO = 1.3
BALANCE_OTHER_LEADING_RATIO = 0.75

# Wait window lookup: (risk tier, momentum is theirs) -> window
WAIT_WINDOWS = {
    (RiskLevel.HIGH, False): WaitWindow.LONGEST,
    (RiskLevel.HIGH, True): WaitWindow.LONGEST,
    (RiskLevel.MEDIUM, False): WaitWindow.LONG,
    (RiskLevel.MEDIUM, True): WaitWindow.LONG,
    (RiskLevel.LOW, False): WaitWindow.MODERATE,
    (RiskLevel.LOW, True): WaitWindow.SHORT,
}


# ============================================================================
# UTILITY FUNCTIONS
# ============================================================================

def clamp(value: float, min_val: float = 0.0, max_val: float = 100.0) -> float:
    """Clamp value to [min_val, max_val]."""
    return max(min_val, min(max_val, value))


def is_short_thread(metrics: ThreadMetrics) -> bool:
    return metrics.total_messages <= SHORT_THREAD_MAX_MESSAGES


# ============================================================================
# SCORING FUNCTIONS
# ============================================================================

def calculate_reciprocity(metrics: ThreadMetrics) -> int:
    """Message-count parity, 100 = perfectly even."""
    lo = min(metrics.other_count, metrics.self_count)
    hi = max(metrics.other_count, metrics.self_count, 1)
    return round(100 * lo / hi)


def calculate_reciprocity_bonus(metrics: ThreadMetrics) -> int:
    """
    Health bonus for an even back-and-forth.

    Applies when Other's share of messages is near half and Other answered
    last. An appended Self message always ends the bonus, so it can never
    raise health.
    """
    if metrics.total_messages == 0 or metrics.last_speaker != "other":
        return 0
    lo, hi = HEALTH_RECIPROCITY_BAND
    share = metrics.other_count / metrics.total_messages
    if lo <= share <= hi:
        return HEALTH_RECIPROCITY_BONUS
    return 0


def calculate_momentum(metrics: ThreadMetrics) -> PowerMomentum:
    """Who sent more of the most recent messages."""
    if metrics.recent_other_count > metrics.recent_self_count:
        return PowerMomentum.THEIRS
    if metrics.recent_self_count > metrics.recent_other_count:
        return PowerMomentum.YOURS
    return PowerMomentum.BALANCED


def calculate_health(
    metrics: ThreadMetrics,
    momentum: PowerMomentum,
    draft: Optional[str] = None,
) -> int:
    """
    Health score.

    Formula: baseline
        + reciprocity bonus (Other share within 40-60% and Other replied last)
        + momentum bonus (theirs > balanced > yours)
        - chase penalty * (self_count - other_count, if positive)
        - last-word penalty (Self spoke last)
        - over-investment penalty (ratio > 1.5)
        - draft penalties (long draft, stacked questions)
    clamped to the path's range.
    """
    health = HEALTH_BASELINE

    health += calculate_reciprocity_bonus(metrics)

    if momentum == PowerMomentum.THEIRS:
        health += HEALTH_MOMENTUM_THEIRS_BONUS
    elif momentum == PowerMomentum.BALANCED:
        health += HEALTH_MOMENTUM_BALANCED_BONUS

    excess = metrics.self_count - metrics.other_count
    if excess > 0:
        health -= HEALTH_CHASE_PENALTY_PER_MESSAGE * excess

    if metrics.last_speaker == "self":
        health -= HEALTH_LAST_WORD_PENALTY

    if metrics.investment_ratio > OVERINVEST_RATIO:
        health -= HEALTH_OVERINVEST_PENALTY

    if draft:
        if len(draft) > LONG_DRAFT_CHARS:
            health -= HEALTH_LONG_DRAFT_PENALTY
        extra_questions = max(0, draft.count("?") - 1)
        health -= HEALTH_DRAFT_EXTRA_QUESTION_PENALTY * extra_questions

    (lo, hi), _ = score_ranges(metrics)
    return int(clamp(health, lo, hi))


def calculate_risk(
    metrics: ThreadMetrics,
    momentum: PowerMomentum,
    reciprocity: int,
    draft: Optional[str] = None,
) -> int:
    """
    Risk score.

    Formula: baseline
        + last-word penalty (Self spoke last)
        + Self-driven momentum penalty
        + over-investment penalties (ratio > 1.5, more above 2.5)
        + low-reciprocity penalty (reciprocity < 35 while Self sent more)
        + per-question and long-draft penalties for the unsent draft
    clamped to the path's range.
    """
    risk = RISK_BASELINE

    if metrics.last_speaker == "self":
        risk += RISK_LAST_WORD_PENALTY

    if momentum == PowerMomentum.YOURS:
        risk += RISK_MOMENTUM_YOURS_PENALTY

    if metrics.investment_ratio > OVERINVEST_RATIO:
        risk += RISK_OVERINVEST_PENALTY
    if metrics.investment_ratio > HEAVY_OVERINVEST_RATIO:
        risk += RISK_HEAVY_OVERINVEST_PENALTY

    if reciprocity < LOW_RECIPROCITY and metrics.self_count > metrics.other_count:
        risk += RISK_LOW_RECIPROCITY_PENALTY

    if draft:
        risk += RISK_DRAFT_QUESTION_PENALTY * draft.count("?")
        if len(draft) > LONG_DRAFT_CHARS:
            risk += RISK_LONG_DRAFT_PENALTY

    _, (lo, hi) = score_ranges(metrics)
    return int(clamp(risk, lo, hi))


def risk_tier(risk_score: int) -> RiskLevel:
    if risk_score >= RISK_TIER_HIGH:
        return RiskLevel.HIGH
    if risk_score >= RISK_TIER_MEDIUM:
        return RiskLevel.MEDIUM
    return RiskLevel.LOW


def wait_window(tier: RiskLevel, momentum: PowerMomentum) -> WaitWindow:
    """Suggested wait before replying; never shorter for a higher tier."""
    return WAIT_WINDOWS[(tier, momentum == PowerMomentum.THEIRS)]


def classify_balance(metrics: ThreadMetrics) -> Balance:
    """Whole-thread investment asymmetry (momentum covers recency)."""
    if metrics.total_messages == 0:
        return Balance.UNKNOWN
    ratio = metrics.investment_ratio
    if metrics.self_count > metrics.other_count and ratio > BALANCE_CHASING_RATIO:
        return Balance.SELF_CHASING
    if ratio > BALANCE_SELF_LEADING_RATIO:
        return Balance.SELF_LEADING
    if ratio < BALANCE_OTHER_LEADING_RATIO:
        return Balance.OTHER_LEADING
    return Balance.BALANCED


def score_thread(metrics: ThreadMetrics, draft: Optional[str] = None) -> ThreadScores:
    """
    Score a thread.

    Args:
        metrics: Output of metrics.extract_metrics()
        draft: Optional unsent reply the user is composing

    Returns:
        ThreadScores
    """
    reciprocity = calculate_reciprocity(metrics)
    momentum = calculate_momentum(metrics)
    health = calculate_health(metrics, momentum, draft)
    risk = calculate_risk(metrics, momentum, reciprocity, draft)
    tier = risk_tier(risk)

    scores = ThreadScores(
        health_score=health,
        risk_score=risk,
        risk_tier=tier,
        momentum=momentum,
        reciprocity=reciprocity,
        wait_window=wait_window(tier, momentum),
        balance=classify_balance(metrics),
    )
    logger.debug(
        f"Scores: health={health} risk={risk} ({tier.value}) momentum={momentum.value} "
        f"reciprocity={reciprocity}"
    )
    return scores


def score_ranges(metrics: ThreadMetrics) -> Tuple[Tuple[int, int], Tuple[int, int]]:
    """Return the (health, risk) clamp ranges that apply to these metrics."""
    if is_short_thread(metrics):
        return SHORT_HEALTH_RANGE, SHORT_RISK_RANGE
    return FULL_HEALTH_RANGE, FULL_RISK_RANGE
