"""
Strategy inference service for convodyn

Decides whether a thread carries enough signal for a model-backed read, makes
at most one model call, validates the answer against the closed schema and
falls back to SAFE_DEFAULT on anything else.

States:
    Init -> SafeDefault              (fewer than MIN_MESSAGES_FOR_STRATEGY messages)
    Init -> Invoking -> Validating -> Done
    Invoking | Validating -> SafeDefault   (timeout, call error, malformed or invalid output)
"""

import asyncio
import functools
import json
import logging
import re
from concurrent.futures import ThreadPoolExecutor
from typing import Any, List, Optional, Protocol, Tuple, Union

from pydantic import ValidationError

from . import config
from .llm_client import LLMClient, LLMClientError, LLMTimeoutError
from .metrics import extract_metrics
from .models import (
    SAFE_DEFAULT,
    Message,
    StrategyAnalysis,
    StrategyResult,
    StrategySource,
    ThreadMetrics,
)
from .parser import parse_transcript
from .prompts import build_strategy_prompt
from .utils import Timer

logger = logging.getLogger(__name__)

CODE_FENCE_RE = re.compile(r"^```(?:json)?\s*(?P<body>.*?)\s*```$", re.DOTALL | re.IGNORECASE)


class StrategyValidationError(ValueError):
    """Model output was unparseable or violated the strategy schema."""


class CompletionClient(Protocol):
    def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        *,
        max_tokens: int,
        temperature: float,
    ) -> str: ...


def parse_strategy_response(raw: Any) -> StrategyResult:
    """
    Parse and validate raw model output.

    Raises:
        StrategyValidationError: Output is not a JSON object matching StrategyResult
    """
    if not isinstance(raw, str) or not raw.strip():
        raise StrategyValidationError("Empty or non-text model output")

    text = raw.strip()
    fenced = CODE_FENCE_RE.match(text)
    if fenced:
        text = fenced.group("body")

    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise StrategyValidationError(f"Malformed JSON: {e}") from e

    if not isinstance(data, dict):
        raise StrategyValidationError(f"Expected a JSON object, got {type(data).__name__}")

    try:
        return StrategyResult.model_validate(data)
    except ValidationError as e:
        raise StrategyValidationError(f"Schema violation: {e.error_count()} error(s): {e}") from e


class StrategyService:
    """
    Model-backed strategy recommendation with a guaranteed-valid result.

    The completion client is injected; anything with a matching `complete`
    method works (LLMClient, or a fake in tests). Without one, an LLMClient
    configured from env is built on the first thread long enough to need it.
    """

    def __init__(
        self,
        client: Optional[CompletionClient] = None,
        timeout: Optional[float] = None,
        min_messages: Optional[int] = None,
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
    ):
        """
        Args:
            client: Completion client (default: LLMClient from env, built lazily)
            timeout: Seconds to wait for the model call (default from config)
            min_messages: Minimum thread length for a model call (default from config)
            max_tokens: Output token budget (default from config)
            temperature: Sampling temperature (default from config)
        """
        self.client = client
        self.timeout = timeout if timeout is not None else config.STRATEGY_TIMEOUT
        self.min_messages = min_messages if min_messages is not None else config.MIN_MESSAGES_FOR_STRATEGY
        self.max_tokens = max_tokens if max_tokens is not None else config.STRATEGY_MAX_TOKENS
        self.temperature = temperature if temperature is not None else config.STRATEGY_TEMPERATURE

    async def analyze_async(
        self,
        transcript: Union[str, List[Message]],
        context: Optional[str] = None,
    ) -> StrategyAnalysis:
        """
        Analyze a thread.

        Args:
            transcript: Raw "You:/Them:" text or parsed Messages
            context: Relationship context tag (e.g. "crush", "work")

        Returns:
            StrategyAnalysis with a schema-valid strategy. Never raises for
            model or validation problems.
        """
        with Timer() as timer:
            messages = parse_transcript(transcript) if isinstance(transcript, str) else list(transcript)
            metrics = extract_metrics(messages)
            strategy, source = await self._infer(messages, context, metrics)

        return StrategyAnalysis(
            strategy=strategy,
            metrics=metrics,
            latency_ms=round(timer.elapsed_ms, 1),
            source=source,
        )

    def analyze(
        self,
        transcript: Union[str, List[Message]],
        context: Optional[str] = None,
    ) -> StrategyAnalysis:
        """Blocking wrapper around analyze_async (not for use inside a running event loop)."""
        return asyncio.run(self.analyze_async(transcript, context))

    async def _infer(
        self,
        messages: List[Message],
        context: Optional[str],
        metrics: ThreadMetrics,
    ) -> Tuple[StrategyResult, StrategySource]:
        if metrics.total_messages < self.min_messages:
            logger.info(
                f"Thread has {metrics.total_messages} messages (<{self.min_messages}), using safe default"
            )
            return SAFE_DEFAULT, StrategySource.SAFE_DEFAULT

        try:
            system_prompt, user_prompt = build_strategy_prompt(messages, context, metrics)
            client = self._resolve_client()
            raw = await self._call_with_timeout(client, system_prompt, user_prompt)
            strategy = parse_strategy_response(raw)
        except (asyncio.TimeoutError, LLMTimeoutError):
            logger.warning(f"Strategy call timed out after {self.timeout}s, using safe default")
            return SAFE_DEFAULT, StrategySource.SAFE_DEFAULT
        except LLMClientError as e:
            logger.warning(f"Strategy call failed: {e}; using safe default")
            return SAFE_DEFAULT, StrategySource.SAFE_DEFAULT
        except StrategyValidationError as e:
            logger.warning(f"Strategy output rejected: {e}; using safe default")
            return SAFE_DEFAULT, StrategySource.SAFE_DEFAULT
        except Exception as e:
            logger.warning(f"Unexpected strategy error ({type(e).__name__}): {e}; using safe default")
            return SAFE_DEFAULT, StrategySource.SAFE_DEFAULT

        logger.info(
            f"Strategy: momentum={strategy.momentum.value} balance={strategy.balance.value} "
            f"energy={strategy.move.energy.value} risk={strategy.move.risk.value}"
        )
        return strategy, StrategySource.MODEL

    def _resolve_client(self) -> CompletionClient:
        if self.client is None:
            try:
                self.client = LLMClient(timeout=self.timeout)
            except ValueError as e:
                raise LLMClientError(f"No model client available: {e}") from e
        return self.client

    async def _call_with_timeout(
        self,
        client: CompletionClient,
        system_prompt: str,
        user_prompt: str,
    ) -> str:
        """
        Run the blocking client call in its own worker thread.

        The worker is abandoned on timeout: its executor is shut down without
        waiting, so neither this coroutine nor asyncio.run() blocks on it.
        """
        loop = asyncio.get_running_loop()
        executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="convodyn-strategy")
        call = functools.partial(
            client.complete,
            system_prompt,
            user_prompt,
            max_tokens=self.max_tokens,
            temperature=self.temperature,
        )
        try:
            return await asyncio.wait_for(loop.run_in_executor(executor, call), timeout=self.timeout)
        finally:
            executor.shutdown(wait=False)
