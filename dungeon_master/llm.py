"""LLM client: HTTP connection to a chat-completion backend.

The orchestrator injects an LLM callable matching the protocol:

    async def __call__(self, *, model, system, turns, max_tokens, api_key) -> str: ...

`turns` is the replayed conversation, already collapsed to the two roles
the model understands ("user" / "assistant"), with the new user turn last.

Two implementations are provided:

    AnthropicLLM  real HTTP client for the Anthropic Messages API.
    EchoLLM       returns the last user turn unchanged. Useful for
                  smoke-testing the turn wiring without an API key.

Production code constructs an AnthropicLLM from settings and hands it to
GameMaster. Tests use StubLLM (defined in the test helpers) instead.
"""

from __future__ import annotations

import logging
from typing import Any, Literal, Protocol, TypedDict

import httpx

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.anthropic.com"
ANTHROPIC_VERSION = "2023-06-01"


class Turn(TypedDict):
    role: Literal["user", "assistant"]
    content: str


# ---------------------------------------------------------------------------
# Protocol: every LLM implementation must match this signature
# ---------------------------------------------------------------------------

class LLM(Protocol):
    async def __call__(
        self,
        *,
        model: str,
        system: str,
        turns: list[Turn],
        max_tokens: int,
        api_key: str,
    ) -> str: ...


# ---------------------------------------------------------------------------
# AnthropicLLM: connects to the real API
# ---------------------------------------------------------------------------

class AnthropicLLM:
    """Async HTTP client for the Anthropic Messages API.

      POST {api_url}/v1/messages
           {"model": ..., "max_tokens": ..., "system": ..., "messages": [...]}
      Response: {"content": [{"type": "text", "text": "..."}], ...}

    No streaming: the whole reply is awaited.

    Args:
        api_url: Base URL, e.g. "https://api.anthropic.com".
        timeout: HTTP timeout in seconds. Defaults to 60.
    """

    def __init__(self, api_url: str = DEFAULT_API_URL, timeout: float = 60.0) -> None:
        self._base_url = api_url.rstrip("/")
        self._timeout = timeout

    def _headers(self, api_key: str) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "x-api-key": api_key,
            "anthropic-version": ANTHROPIC_VERSION,
        }

    def _parse_response(self, data: Any) -> str:
        """Join the text blocks of the response body.

        Any body that is not shaped like a Messages API reply raises LLMError.
        """
        blocks = data.get("content") if isinstance(data, dict) else None
        if not isinstance(blocks, list):
            raise LLMError("Unexpected response format from Anthropic API")
        texts = []
        for block in blocks:
            if not isinstance(block, dict) or block.get("type") != "text":
                continue
            text = block.get("text")
            if not isinstance(text, str):
                raise LLMError("Unexpected text block from Anthropic API")
            texts.append(text)
        if not texts:
            raise LLMError("Anthropic API returned no text content")
        return "".join(texts)

    async def __call__(
        self,
        *,
        model: str,
        system: str,
        turns: list[Turn],
        max_tokens: int,
        api_key: str,
    ) -> str:
        url = f"{self._base_url}/v1/messages"
        body = {
            "model": model,
            "max_tokens": max_tokens,
            "system": system,
            "messages": [{"role": t["role"], "content": t["content"]} for t in turns],
        }
        logger.debug(
            "llm call model=%s turns=%d system_len=%d", model, len(turns), len(system)
        )

        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                resp = await client.post(url, json=body, headers=self._headers(api_key))
                resp.raise_for_status()
        except httpx.ConnectError as e:
            raise LLMError(f"Cannot connect to model API at {self._base_url}") from e
        except httpx.HTTPStatusError as e:
            raise LLMError(
                f"Model API returned HTTP {e.response.status_code}"
            ) from e
        except httpx.TimeoutException as e:
            raise LLMError(f"Model API timed out after {self._timeout}s") from e
        except httpx.HTTPError as e:
            raise LLMError(f"Model API request failed: {e}") from e

        try:
            data = resp.json()
        except ValueError as e:
            raise LLMError("Model API returned a non-JSON body") from e
        text = self._parse_response(data)
        logger.debug("llm response model=%s len=%d", model, len(text))
        return text


# ---------------------------------------------------------------------------
# EchoLLM: echoes the player; useful for smoke tests
# ---------------------------------------------------------------------------

class EchoLLM:
    """Returns the last user turn as-is. No network calls.

    Lets you verify that the turn wiring (prompt assembly, storage writes,
    directive handling) works end-to-end without a model. A player who types
    a directive gets it interpreted, which is handy for manual testing.
    """

    async def __call__(
        self,
        *,
        model: str,
        system: str,
        turns: list[Turn],
        max_tokens: int,
        api_key: str,
    ) -> str:
        logger.debug("EchoLLM model=%s turns=%d", model, len(turns))
        for turn in reversed(turns):
            if turn["role"] == "user":
                return turn["content"]
        return ""


# ---------------------------------------------------------------------------
# LLMError: raised by AnthropicLLM for all connection and protocol failures
# ---------------------------------------------------------------------------

class LLMError(RuntimeError):
    """Raised when the model API cannot be reached or returns an error."""
