"""
Language model client for convodyn
Single-shot calls to an OpenAI-compatible chat completions endpoint
"""

import json
import logging
from typing import Any, Dict, Optional

import requests

from . import config

logger = logging.getLogger(__name__)


class LLMClientError(Exception):
    """The model call failed (transport, HTTP status, or response shape)."""


class LLMTimeoutError(LLMClientError):
    """The model call did not complete within its timeout."""


# Canned strategy returned in mock mode (schema-valid)
MOCK_STRATEGY: Dict[str, Any] = {
    "momentum": "Flat",
    "balance": "Balanced",
    "energy_level": "medium",
    "sarcasm_detected": False,
    "is_kidding": False,
    "risk_flags": [],
    "move": {
        "energy": "match",
        "one_liner": "mirror their pace, one clean line",
        "constraints": {
            "no_questions": False,
            "keep_short": True,
            "add_tease": False,
            "push_meetup": False,
        },
        "risk": "low",
    },
}


class LLMClient:
    """
    Client for a chat completions API.

    Each `complete` call is exactly one HTTP request: failures raise, they are
    never retried here. Callers decide what a failure means.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        api_base: Optional[str] = None,
        timeout: Optional[float] = None,
        mock_mode: bool = False,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize model client.

        Args:
            api_key: API key (default from config)
            model: Model identifier (default from config)
            api_base: Base URL of the API (default from config)
            timeout: HTTP timeout in seconds (default from config)
            mock_mode: Return a canned strategy instead of calling the API
            session: Optional requests.Session to reuse connections
        """
        self.api_key = api_key or config.LLM_API_KEY
        if not self.api_key and not mock_mode:
            raise ValueError("LLM_API_KEY not set - add to .env file or pass as argument")

        self.model = model or config.STRATEGY_MODEL
        self.api_base = (api_base or config.LLM_API_BASE).rstrip("/")
        self.timeout = timeout or config.STRATEGY_TIMEOUT
        self.mock_mode = mock_mode
        self.session = session or requests.Session()

        logger.info(f"LLMClient initialized (model={self.model}, timeout={self.timeout}s, mock={mock_mode})")

    def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        *,
        max_tokens: int,
        temperature: float,
    ) -> str:
        """
        Run one chat completion and return the raw message content.

        Raises:
            LLMTimeoutError: Request timed out
            LLMClientError: Any other transport, status or shape failure
        """
        if self.mock_mode:
            return json.dumps(MOCK_STRATEGY)

        url = f"{self.api_base}/chat/completions"
        headers = {"Authorization": f"Bearer {self.api_key}"}
        payload = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            "temperature": temperature,
            "max_tokens": max_tokens,
            "response_format": {"type": "json_object"},
        }

        try:
            response = self.session.post(url, headers=headers, json=payload, timeout=self.timeout)
        except requests.Timeout as e:
            raise LLMTimeoutError(f"Timed out after {self.timeout}s") from e
        except requests.RequestException as e:
            raise LLMClientError(f"Request failed: {e}") from e

        if response.status_code == 200:
            return self._extract_content(response)

        if response.status_code == 401:
            raise LLMClientError("Unauthorized (401): check LLM_API_KEY")
        if response.status_code == 404:
            raise LLMClientError(f"Model or endpoint not found (404): {self.model}")
        if response.status_code == 429:
            raise LLMClientError("Rate limited (429)")
        if response.status_code >= 500:
            raise LLMClientError(f"Server error ({response.status_code})")

        raise LLMClientError(f"API error {response.status_code}: {response.text[:200]}")

    def _extract_content(self, response: requests.Response) -> str:
        """Pull choices[0].message.content out of a completion response."""
        try:
            body = response.json()
            content = body["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise LLMClientError(f"Unexpected response format: {e}") from e

        if not content:
            raise LLMClientError("Empty response content")
        return content
