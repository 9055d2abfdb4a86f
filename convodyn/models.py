"""
Data model for convodyn
Request-scoped value objects shared by the extractor, scorer, strategy service and formatter
"""

from enum import Enum
from typing import Annotated, Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, StrictBool, StringConstraints

RiskFlag = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=80)]


class Speaker(str, Enum):
    SELF = "self"
    OTHER = "other"


class Energy(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Momentum(str, Enum):
    RISING = "Rising"
    FLAT = "Flat"
    DECLINING = "Declining"
    STALLING = "Stalling"
    UNKNOWN = "Unknown"


class Balance(str, Enum):
    SELF_LEADING = "SelfLeading"
    OTHER_LEADING = "OtherLeading"
    BALANCED = "Balanced"
    SELF_CHASING = "SelfChasing"
    UNKNOWN = "Unknown"


class MoveEnergy(str, Enum):
    PULL_BACK = "pull_back"
    MATCH = "match"
    ESCALATE = "escalate"
    CLARIFY = "clarify"
    LOGISTICS = "logistics"


class RiskLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class PowerMomentum(str, Enum):
    """Who is driving the recent window of the thread."""
    THEIRS = "theirs"
    YOURS = "yours"
    BALANCED = "balanced"


class WaitWindow(str, Enum):
    SHORT = "15-30min"
    MODERATE = "45-90min"
    LONG = "1-2hr"
    LONGEST = "2-4hr"


class StrategySource(str, Enum):
    MODEL = "model"
    SAFE_DEFAULT = "safe_default"


# ============================================================================
# TRANSCRIPT
# ============================================================================

class Message(BaseModel):
    """One transcript line. `text` never carries the trailing annotation."""

    model_config = ConfigDict(frozen=True)

    speaker: Speaker
    text: str
    ordinal: int = Field(ge=0)
    annotation: Optional[str] = None

    @property
    def char_count(self) -> int:
        return len(self.text)

    @property
    def word_count(self) -> int:
        return len(self.text.split())


class ThreadMetrics(BaseModel):
    """Deterministic engagement metrics derived from one transcript."""

    model_config = ConfigDict(frozen=True)

    self_count: int = 0
    other_count: int = 0
    total_messages: int = 0
    investment_ratio: float = 1.0  # >1 = Self investing more
    recent_energy: Energy = Energy.LOW
    last_speaker: str = "unknown"  # self | other | unknown
    avg_self_length: float = 0.0
    avg_other_length: float = 0.0
    last_received_length: int = 0
    last_message_substantive: bool = False
    recent_other_avg_length: float = 0.0
    recent_questions: int = 0
    re_initiated: bool = False

    # Speaker split of the most recent messages (momentum window)
    recent_self_count: int = 0
    recent_other_count: int = 0

    # Tone cues from the Other party's recent messages
    other_emoji_count: int = 0
    other_laughter: bool = False
    other_softening_markers: int = 0
    other_stretched_words: int = 0


class ThreadScores(BaseModel):
    model_config = ConfigDict(frozen=True)

    health_score: int = Field(ge=0, le=100)
    risk_score: int = Field(ge=0, le=100)
    risk_tier: RiskLevel
    momentum: PowerMomentum
    reciprocity: int = Field(ge=0, le=100)
    wait_window: WaitWindow
    balance: Balance


# ============================================================================
# STRATEGY
# ============================================================================

class MoveConstraints(BaseModel):
    model_config = ConfigDict(frozen=True)

    no_questions: StrictBool
    keep_short: StrictBool
    add_tease: StrictBool
    push_meetup: StrictBool


class Move(BaseModel):
    model_config = ConfigDict(frozen=True)

    energy: MoveEnergy
    one_liner: str = Field(min_length=1, max_length=100)
    constraints: MoveConstraints
    risk: RiskLevel


class StrategyResult(BaseModel):
    """
    Validated strategy recommendation.

    Enum fields only accept their closed sets and the one-liner is rejected
    (not truncated) past 100 characters. Keys outside the schema are dropped.
    """

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    momentum: Momentum
    balance: Balance
    energy_level: Optional[Energy] = None
    sarcasm_detected: Optional[StrictBool] = None
    is_kidding: Optional[StrictBool] = None
    risk_flags: Optional[List[RiskFlag]] = Field(default=None, max_length=5)
    move: Move


SAFE_DEFAULT = StrategyResult(
    momentum=Momentum.UNKNOWN,
    balance=Balance.UNKNOWN,
    move=Move(
        energy=MoveEnergy.MATCH,
        one_liner="too early to read, play it cool",
        constraints=MoveConstraints(
            no_questions=False,
            keep_short=True,
            add_tease=False,
            push_meetup=False,
        ),
        risk=RiskLevel.LOW,
    ),
)


class StrategyAnalysis(BaseModel):
    model_config = ConfigDict(frozen=True)

    strategy: StrategyResult
    metrics: ThreadMetrics
    latency_ms: float
    source: StrategySource


# ============================================================================
# DIRECTIVES
# ============================================================================

class DirectiveKind(str, Enum):
    STRATEGY = "strategy"
    HINT = "hint"
    RULE = "rule"
    ENERGY = "energy"


class Directive(BaseModel):
    """A single instruction for the downstream reply writer."""

    model_config = ConfigDict(frozen=True)

    kind: DirectiveKind
    text: str
    flags: Dict[str, Any] = Field(default_factory=dict)
