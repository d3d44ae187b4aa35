"""Shared analyzer contract and helpers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol

from hybrid_tailor.clients.completion import LLMResponse
from hybrid_tailor.models.analysis import ModelUsage
from hybrid_tailor.models.job import JobData
from hybrid_tailor.models.resume import ResumeContent


@dataclass
class AnalyzerOutput:
    """Typed analyzer result plus the tokens it cost."""

    result: Any
    usage: ModelUsage


class Analyzer(Protocol):
    name: str

    async def analyze(self, resume: ResumeContent, job: JobData) -> AnalyzerOutput: ...


def usage_from(name: str, response: LLMResponse | None = None) -> ModelUsage:
    if response is None:
        return ModelUsage(source=name)
    return ModelUsage(
        source=name,
        model=response.model,
        input_tokens=response.input_tokens,
        output_tokens=response.output_tokens,
    )


def clamp_score(value: Any, default: int = 50) -> int:
    """Coerce a model-reported score into 0..100."""
    try:
        score = int(round(float(value)))
    except (TypeError, ValueError):
        return default
    return max(0, min(100, score))


def as_list(value: Any) -> list:
    return value if isinstance(value, list) else []


def as_dicts(value: Any) -> list[dict]:
    return [item for item in as_list(value) if isinstance(item, dict)]


def as_strings(value: Any) -> list[str]:
    return [str(item) for item in as_list(value) if isinstance(item, (str, int, float)) and str(item).strip()]


JSON_ONLY = "\n\nRespond with a single JSON object only. No markdown, no commentary."
