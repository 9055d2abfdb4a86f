"""
convodyn - Conversation Dynamics Analysis Engine

Turns a You:/Them: message thread into deterministic engagement metrics,
heuristic health/risk/momentum scores, and a validated model-backed strategy
with a guaranteed-safe fallback, formatted as directives for a reply writer.
"""

__version__ = "1.0.0"
__author__ = "convodyn Team"

from . import config
from . import parser
from . import text_features
from . import metrics
from . import scoring
from . import llm_client
from . import prompts
from . import strategy
from . import formatter
from . import pipeline

__all__ = [
    "config",
    "parser",
    "text_features",
    "metrics",
    "scoring",
    "llm_client",
    "prompts",
    "strategy",
    "formatter",
    "pipeline",
]
