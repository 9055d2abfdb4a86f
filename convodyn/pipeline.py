"""
Shared analysis pipeline for convodyn
Used by the CLI and by library callers so both produce the same result shape
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional, Union

from .formatter import constraint_flags, format_constraints, render_directives
from .metrics import extract_metrics
from .models import Message
from .parser import parse_transcript
from .scoring import score_thread
from .strategy import CompletionClient, StrategyService

logger = logging.getLogger(__name__)


async def run_analysis_async(
    transcript: Union[str, List[Message]],
    context: Optional[str] = None,
    client: Optional[CompletionClient] = None,
    draft: Optional[str] = None,
    timeout: Optional[float] = None,
) -> Dict[str, Any]:
    """
    Run the complete analysis on one thread.

    Args:
        transcript: Raw "You:/Them:" text or parsed Messages
        context: Relationship context tag
        client: Completion client (default: LLMClient configured from env, built
            only when the thread is long enough for a model call)
        draft: Optional unsent reply, factored into health/risk
        timeout: Model call timeout override in seconds

    Returns:
        Dictionary containing:
        - metrics: ThreadMetrics as a dict
        - scores: ThreadScores as a dict
        - strategy: StrategyResult as a dict
        - strategy_source: "model" | "safe_default"
        - latency_ms: Strategy inference time
        - directives: Ordered directive dicts
        - constraints: Structured constraint booleans
        - generation_prompt: Directives rendered as plain text
    """
    messages = parse_transcript(transcript) if isinstance(transcript, str) else list(transcript)
    logger.info(f"Analyzing thread with {len(messages)} messages (context={context or 'unknown'})")

    metrics = extract_metrics(messages)
    scores = score_thread(metrics, draft=draft)

    service = StrategyService(client, timeout=timeout)
    analysis = await service.analyze_async(messages, context)

    directives = format_constraints(analysis.strategy, metrics)

    logger.info(
        f"Analysis complete: health={scores.health_score} risk={scores.risk_score} "
        f"({scores.risk_tier.value}) strategy={analysis.source.value} in {analysis.latency_ms}ms"
    )

    return {
        "metrics": metrics.model_dump(mode="json"),
        "scores": scores.model_dump(mode="json"),
        "strategy": analysis.strategy.model_dump(mode="json"),
        "strategy_source": analysis.source.value,
        "latency_ms": analysis.latency_ms,
        "directives": [d.model_dump(mode="json") for d in directives],
        "constraints": constraint_flags(analysis.strategy),
        "generation_prompt": render_directives(directives),
    }


def run_analysis(
    transcript: Union[str, List[Message]],
    context: Optional[str] = None,
    client: Optional[CompletionClient] = None,
    draft: Optional[str] = None,
    timeout: Optional[float] = None,
) -> Dict[str, Any]:
    """Blocking wrapper around run_analysis_async."""
    return asyncio.run(run_analysis_async(transcript, context, client, draft, timeout))
