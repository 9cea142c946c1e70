"""Language-model completion adapter."""

from typing import Protocol

import anthropic
import structlog

logger = structlog.get_logger()


class ModelUnavailable(Exception):
    """The model could not be reached or is not configured."""


class Completer(Protocol):
    async def complete(self, prompt: str, *, system: str = "") -> str: ...


class AnthropicCompleter:
    """Single-shot text completion against the Anthropic Messages API.

    Retries are disabled: one attempt per user message, the caller falls
    back to rule-based resolution on any failure.
    """

    def __init__(self, api_key: str, model: str, timeout: float = 10.0, max_tokens: int = 300):
        if not api_key:
            raise ModelUnavailable("ANTHROPIC_API_KEY is not set")
        self.model = model
        self.max_tokens = max_tokens
        self._client = anthropic.AsyncAnthropic(api_key=api_key, timeout=timeout, max_retries=0)

    async def complete(self, prompt: str, *, system: str = "") -> str:
        try:
            response = await self._client.messages.create(
                model=self.model,
                max_tokens=self.max_tokens,
                system=system,
                messages=[{"role": "user", "content": prompt}],
            )
        except anthropic.APIError as exc:
            raise ModelUnavailable(f"{type(exc).__name__}: {exc}") from exc

        logger.debug(
            "llm_completion",
            model=self.model,
            input_tokens=response.usage.input_tokens,
            output_tokens=response.usage.output_tokens,
        )
        text = ""
        for block in response.content:
            if hasattr(block, "text"):
                text += block.text
        return text

    async def close(self) -> None:
        await self._client.close()
