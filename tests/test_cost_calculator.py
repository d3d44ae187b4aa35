"""Tests for the cost calculator."""

import pytest

from hybrid_tailor.models.analysis import ModelUsage
from hybrid_tailor.telemetry.cost_calculator import MODEL_PRICING, calculate_cost, usage_cost

HAIKU = "claude-haiku-4-5-20251001"
SONNET = "claude-sonnet-4-5-20250929"


class TestCalculateCost:
    def test_empty(self):
        assert calculate_cost([]) == 0.0

    def test_haiku_per_million(self):
        cost = calculate_cost([(HAIKU, 1_000_000, 1_000_000)])
        assert cost == pytest.approx(6.00)

    def test_sonnet_per_million(self):
        cost = calculate_cost([(SONNET, 1_000_000, 1_000_000)])
        assert cost == pytest.approx(18.00)

    def test_mixed_calls_sum(self):
        cost = calculate_cost([
            (HAIKU, 2000, 1000),
            (SONNET, 3000, 500),
        ])
        expected = (2000 * 1.00 + 1000 * 5.00 + 3000 * 3.00 + 500 * 15.00) / 1_000_000
        assert cost == pytest.approx(expected)

    def test_unknown_model_costs_nothing(self):
        assert calculate_cost([("some-other-model", 1_000_000, 1_000_000)]) == 0.0

    def test_pricing_table_covers_default_models(self):
        assert HAIKU in MODEL_PRICING
        assert SONNET in MODEL_PRICING


class TestUsageCost:
    def test_sums_model_usage(self):
        usage = [
            ModelUsage(source="impact", model=HAIKU, input_tokens=1_000_000, output_tokens=0),
            ModelUsage(source="bullets", model=SONNET, input_tokens=0, output_tokens=1_000_000),
            ModelUsage(source="soft_skills"),
        ]
        assert usage_cost(usage) == pytest.approx(1.00 + 15.00)
