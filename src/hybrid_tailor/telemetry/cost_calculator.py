"""Cost calculator for Claude API usage."""

from __future__ import annotations

from collections.abc import Iterable

from hybrid_tailor.models.analysis import ModelUsage

# Pricing per 1M tokens (USD)
MODEL_PRICING: dict[str, dict[str, float]] = {
    "claude-haiku-4-5-20251001": {"input": 1.00, "output": 5.00},
    "claude-sonnet-4-5-20250929": {"input": 3.00, "output": 15.00},
}


def calculate_cost(calls: Iterable[tuple[str, int, int]]) -> float:
    """Calculate total cost for a set of API calls.

    Args:
        calls: (model_id, input_tokens, output_tokens) tuples.

    Returns:
        Total estimated cost in USD. Models without known pricing cost nothing.
    """
    total = 0.0
    for model_id, input_tokens, output_tokens in calls:
        pricing = MODEL_PRICING.get(model_id)
        if pricing is None:
            continue
        total += (input_tokens / 1_000_000) * pricing["input"]
        total += (output_tokens / 1_000_000) * pricing["output"]
    return total


def usage_cost(usage: Iterable[ModelUsage]) -> float:
    return calculate_cost((u.model, u.input_tokens, u.output_tokens) for u in usage)
