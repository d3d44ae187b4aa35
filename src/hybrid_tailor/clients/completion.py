"""Narrow text-completion interface the pipeline depends on."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol

from hybrid_tailor.clients.retry import with_retry
from hybrid_tailor.config import RetryConfig
from hybrid_tailor.utils.json_parser import parse_json_response

logger = logging.getLogger(__name__)


@dataclass
class LLMResponse:
    """Response from the LLM including usage metadata."""

    text: str
    input_tokens: int
    output_tokens: int
    model: str = ""

    @property
    def total_tokens(self) -> int:
        return self.input_tokens + self.output_tokens


class CompletionService(Protocol):
    """Prompt in, untrusted text out. May raise ``CompletionError``."""

    def is_configured(self) -> bool: ...

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        *,
        model: str,
        max_tokens: int,
        temperature: float,
    ) -> LLMResponse: ...


async def request_json(
    llm: CompletionService,
    system_prompt: str,
    user_prompt: str,
    *,
    model: str,
    max_tokens: int,
    temperature: float,
    time_budget_ms: int,
    retry: RetryConfig | None = None,
    label: str = "response",
) -> tuple[dict, LLMResponse]:
    """One retried completion call whose text is parsed as a JSON object.

    Parse failures are raised as ``ParseError`` and never retried.
    """
    response = await with_retry(
        lambda: llm.complete(
            system_prompt,
            user_prompt,
            model=model,
            max_tokens=max_tokens,
            temperature=temperature,
        ),
        time_budget_ms=time_budget_ms,
        config=retry,
    )
    data = parse_json_response(response.text, label)
    logger.debug("%s: parsed %d keys from %d output tokens", label, len(data), response.output_tokens)
    return data, response
