"""Tests for config loading."""

import pytest

from hybrid_tailor.config import AppConfig, RetryConfig, apply_retry_env, load_config


class TestLoadConfig:
    def test_defaults(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        config = load_config(tmp_path / "missing.yaml")
        assert config.llm.model == "claude-sonnet-4-5-20250929"
        assert config.llm.analysis_model == "claude-haiku-4-5-20251001"
        assert config.retry.max_retries == 2
        assert config.pipeline.bullet_temperature == 0.3
        assert config.pipeline.summary_temperature == 0.4

    def test_from_yaml(self, tmp_path):
        yaml_content = """
llm:
  model: claude-opus-4-20250514
  timeout: 30
retry:
  max_retries: 4
  retryable_status_codes: [429, 503]
pipeline:
  bullet_time_budget_ms: 20000
"""
        config_file = tmp_path / "config.yaml"
        config_file.write_text(yaml_content)

        config = load_config(config_file)
        assert config.llm.model == "claude-opus-4-20250514"
        assert config.llm.timeout == 30
        assert config.retry.max_retries == 4
        assert config.retry.retryable_status_codes == (429, 503)
        assert config.pipeline.bullet_time_budget_ms == 20000
        # untouched sections keep their defaults
        assert config.pipeline.summary_time_budget_ms == 30000

    def test_empty_yaml(self, tmp_path):
        config_file = tmp_path / "config.yaml"
        config_file.write_text("")
        config = load_config(config_file)
        assert config == AppConfig()

    def test_env_overrides_yaml(self, tmp_path, monkeypatch):
        config_file = tmp_path / "config.yaml"
        config_file.write_text("retry:\n  max_retries: 4\n")
        monkeypatch.setenv("AI_RETRY_MAX_ATTEMPTS", "1")
        config = load_config(config_file)
        assert config.retry.max_retries == 1

    def test_frozen(self):
        config = AppConfig()
        with pytest.raises(AttributeError):
            config.llm.model = "other"  # type: ignore[misc]


class TestRetryEnv:
    def test_no_env_returns_same_config(self):
        retry = RetryConfig()
        assert apply_retry_env(retry, environ={}) is retry

    def test_all_variables(self):
        retry = apply_retry_env(RetryConfig(), environ={
            "AI_RETRY_MAX_ATTEMPTS": "5",
            "AI_RETRY_INITIAL_DELAY_MS": "200",
            "AI_RETRY_MAX_DELAY_MS": "4000",
            "AI_RETRY_BACKOFF_MULTIPLIER": "1.5",
            "AI_RETRY_JITTER_FACTOR": "0.2",
            "AI_RETRY_STATUS_CODES": "429, 503,",
        })
        assert retry.max_retries == 5
        assert retry.initial_delay_ms == 200
        assert retry.max_delay_ms == 4000
        assert retry.backoff_multiplier == 1.5
        assert retry.jitter_factor == 0.2
        assert retry.retryable_status_codes == (429, 503)

    def test_empty_value_ignored(self):
        retry = apply_retry_env(RetryConfig(), environ={"AI_RETRY_MAX_ATTEMPTS": ""})
        assert retry.max_retries == 2


class TestRetryValidation:
    @pytest.mark.parametrize("kwargs", [
        {"max_retries": -1},
        {"max_retries": 11},
        {"initial_delay_ms": -5},
        {"backoff_multiplier": 0.5},
        {"backoff_multiplier": 5},
        {"jitter_factor": 1.5},
    ])
    def test_out_of_range_rejected(self, kwargs):
        with pytest.raises(ValueError):
            RetryConfig(**kwargs)

    def test_env_values_validated(self):
        with pytest.raises(ValueError):
            apply_retry_env(RetryConfig(), environ={"AI_RETRY_MAX_ATTEMPTS": "50"})

    def test_zero_delays_allowed(self):
        retry = RetryConfig(initial_delay_ms=0, max_delay_ms=0)
        assert retry.initial_delay_ms == 0
