"""Claude API implementation of the completion service."""

from __future__ import annotations

import logging

import anthropic

from hybrid_tailor.clients.completion import LLMResponse
from hybrid_tailor.config import RetryConfig
from hybrid_tailor.errors import CompletionError, ErrorCode

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "claude-sonnet-4-5-20250929"


class LLMClient:
    """Async Claude API client that maps SDK failures onto pipeline error codes.

    Retrying is left to ``with_retry``; the SDK's own retries are disabled so
    the time budget is the single source of truth.
    """

    def __init__(
        self,
        api_key: str | None = None,
        timeout: float | None = None,
        retryable_status_codes: tuple[int, ...] = RetryConfig.retryable_status_codes,
    ):
        kwargs: dict = {"max_retries": 0}
        if api_key is not None:
            kwargs["api_key"] = api_key
        if timeout is not None:
            kwargs["timeout"] = timeout
        self.client = anthropic.AsyncAnthropic(**kwargs)
        self.retryable_status_codes = retryable_status_codes
        self._token_log: list[tuple[str, int, int]] = []  # (model, input_tokens, output_tokens)

    def is_configured(self) -> bool:
        """True when the client has credentials to call the API."""
        return bool(getattr(self.client, "api_key", None))

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        *,
        model: str = DEFAULT_MODEL,
        max_tokens: int = 4000,
        temperature: float = 0.3,
    ) -> LLMResponse:
        """Send one prompt and return the text response with usage."""
        logger.debug("LLM call: model=%s", model)
        kwargs: dict = {
            "model": model,
            "max_tokens": max_tokens,
            "temperature": temperature,
            "messages": [{"role": "user", "content": user_prompt}],
        }
        if system_prompt:
            kwargs["system"] = system_prompt
        try:
            message = await self.client.messages.create(**kwargs)
        except anthropic.APIError as exc:
            logger.error("LLM call failed", exc_info=True)
            raise self._translate(exc) from exc

        text = "".join(
            block.text for block in message.content if isinstance(getattr(block, "text", None), str)
        )
        if not text.strip():
            raise CompletionError("No response received from AI", ErrorCode.EMPTY_RESPONSE)

        input_tokens = message.usage.input_tokens
        output_tokens = message.usage.output_tokens
        logger.debug("LLM response: %d input, %d output tokens", input_tokens, output_tokens)
        self._token_log.append((model, input_tokens, output_tokens))
        return LLMResponse(
            text=text,
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            model=model,
        )

    def _translate(self, exc: anthropic.APIError) -> CompletionError:
        if isinstance(exc, (anthropic.AuthenticationError, anthropic.PermissionDeniedError)):
            return CompletionError(
                "Invalid API key", ErrorCode.AUTH_ERROR,
                status_code=exc.status_code, transient=False, cause=exc,
            )
        if isinstance(exc, anthropic.RateLimitError):
            return CompletionError(
                "Rate limit exceeded. Please try again.", ErrorCode.RATE_LIMIT,
                status_code=429, retry_after=_retry_after(exc), transient=True, cause=exc,
            )
        if isinstance(exc, anthropic.APIStatusError):
            return CompletionError(
                f"AI API error: {exc.message}", ErrorCode.API_ERROR,
                status_code=exc.status_code,
                retry_after=_retry_after(exc),
                transient=exc.status_code in self.retryable_status_codes,
                cause=exc,
            )
        # Connection failures and timeouts
        return CompletionError(
            f"AI API error: {exc.message}", ErrorCode.API_ERROR, transient=True, cause=exc,
        )

    def get_token_summary(self) -> dict:
        """Return accumulated token usage and reset the log."""
        summary = {
            "input": sum(t[1] for t in self._token_log),
            "output": sum(t[2] for t in self._token_log),
            "calls": list(self._token_log),
        }
        self._token_log.clear()
        return summary


def _retry_after(exc: anthropic.APIStatusError) -> float | None:
    """Seconds from a retry-after header, if the response carried one."""
    response = getattr(exc, "response", None)
    headers = getattr(response, "headers", None)
    if not headers:
        return None
    value = headers.get("retry-after")
    try:
        return float(value) if value is not None else None
    except (TypeError, ValueError):
        return None
