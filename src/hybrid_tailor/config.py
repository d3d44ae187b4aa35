"""Application configuration loaded from config.yaml."""

from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from pathlib import Path

import yaml


@dataclass(frozen=True)
class LLMConfig:
    model: str = "claude-sonnet-4-5-20250929"
    analysis_model: str = "claude-haiku-4-5-20251001"
    timeout: int = 60
    analysis_max_tokens: int = 4000


@dataclass(frozen=True)
class RetryConfig:
    max_retries: int = 2
    initial_delay_ms: int = 1000
    max_delay_ms: int = 10000
    backoff_multiplier: float = 2.0
    jitter_factor: float = 0.1
    retryable_status_codes: tuple[int, ...] = (408, 409, 429, 500, 502, 503, 529)

    def __post_init__(self):
        if not 0 <= self.max_retries <= 10:
            raise ValueError(f"max_retries must be within 0..10, got {self.max_retries}")
        if self.initial_delay_ms < 0 or self.max_delay_ms < 0:
            raise ValueError("retry delays must be non-negative")
        if not 1 <= self.backoff_multiplier <= 4:
            raise ValueError(f"backoff_multiplier must be within 1..4, got {self.backoff_multiplier}")
        if not 0 <= self.jitter_factor <= 1:
            raise ValueError(f"jitter_factor must be within 0..1, got {self.jitter_factor}")


@dataclass(frozen=True)
class PipelineConfig:
    bullet_temperature: float = 0.3
    summary_temperature: float = 0.4
    why_fit_temperature: float = 0.4
    bullet_max_tokens: int = 4000
    summary_max_tokens: int = 1000
    why_fit_max_tokens: int = 1000
    bullet_time_budget_ms: int = 60000
    summary_time_budget_ms: int = 30000
    why_fit_time_budget_ms: int = 30000
    analysis_time_budget_ms: int = 90000
    pure_ai_token_estimate: int = 10000


@dataclass(frozen=True)
class AppConfig:
    llm: LLMConfig = field(default_factory=LLMConfig)
    retry: RetryConfig = field(default_factory=RetryConfig)
    pipeline: PipelineConfig = field(default_factory=PipelineConfig)


# Environment overrides for retry behaviour: env var -> (field, parser)
_RETRY_ENV: dict[str, tuple[str, type]] = {
    "AI_RETRY_MAX_ATTEMPTS": ("max_retries", int),
    "AI_RETRY_INITIAL_DELAY_MS": ("initial_delay_ms", int),
    "AI_RETRY_MAX_DELAY_MS": ("max_delay_ms", int),
    "AI_RETRY_BACKOFF_MULTIPLIER": ("backoff_multiplier", float),
    "AI_RETRY_JITTER_FACTOR": ("jitter_factor", float),
}


def apply_retry_env(retry: RetryConfig, environ: dict[str, str] | None = None) -> RetryConfig:
    """Overlay AI_RETRY_* environment variables onto a retry config."""
    env = os.environ if environ is None else environ
    overrides: dict = {}
    for var, (name, parse) in _RETRY_ENV.items():
        value = env.get(var)
        if value:
            overrides[name] = parse(value)
    codes = env.get("AI_RETRY_STATUS_CODES")
    if codes:
        overrides["retryable_status_codes"] = tuple(
            int(c) for c in codes.split(",") if c.strip()
        )
    return replace(retry, **overrides) if overrides else retry


def load_config(path: str | Path | None = None) -> AppConfig:
    """Load config from YAML file, falling back to defaults."""
    if path is None:
        # Look for config.yaml relative to the project root
        candidates = [
            Path.cwd() / "config.yaml",
            Path(__file__).resolve().parent.parent.parent / "config.yaml",
        ]
        for c in candidates:
            if c.exists():
                path = c
                break

    raw: dict = {}
    if path is not None:
        p = Path(path)
        if p.exists():
            raw = yaml.safe_load(p.read_text()) or {}

    retry_raw = dict(raw.get("retry", {}))
    if "retryable_status_codes" in retry_raw:
        retry_raw["retryable_status_codes"] = tuple(retry_raw["retryable_status_codes"])

    return AppConfig(
        llm=LLMConfig(**raw.get("llm", {})),
        retry=apply_retry_env(RetryConfig(**retry_raw)),
        pipeline=PipelineConfig(**raw.get("pipeline", {})),
    )
