"""Tests for the uniqueness analyzer."""

from __future__ import annotations

import pytest

from hybrid_tailor.analyzers.uniqueness import UniquenessAnalyzer, uniqueness_score_label


@pytest.fixture
def analyzer(mock_llm_client, fast_config):
    return UniquenessAnalyzer(mock_llm_client, retry=fast_config.retry)


class TestUniquenessAnalyzer:
    async def test_parses_result(self, analyzer, scripted_llm, uniqueness_json, sample_resume, sample_job):
        scripted_llm(uniqueness=uniqueness_json)

        output = await analyzer.analyze(sample_resume, sample_job)
        result = output.result

        assert result.score == 70
        assert result.score_label == "high"
        assert [f.title for f in result.factors] == ["Robotics meets cloud", "Performance"]
        assert [f.title for f in result.rare_factors] == ["Robotics meets cloud"]
        assert result.differentiators == ["Robotics and cloud infrastructure", "Large-scale migrations"]
        assert result.suggestions == ["Summary: Lead with the robotics angle"]
        assert output.usage.source == "uniqueness"

    async def test_unknown_rarity_becomes_common(self, analyzer, scripted_llm, sample_resume, sample_job):
        scripted_llm(uniqueness={"score": 50, "factors": [
            {"type": "achievement", "title": "t", "description": "d", "rarity": "legendary"},
            {"title": "no type"},
        ]})
        result = (await analyzer.analyze(sample_resume, sample_job)).result

        assert result.factors[0].rarity == "common"
        assert result.factors[1].type == "unique_experience"
        assert result.rare_factors == []

    async def test_mixed_suggestion_shapes(self, analyzer, scripted_llm, sample_resume, sample_job):
        scripted_llm(uniqueness={"score": 50, "suggestions": [
            "Plain advice",
            {"recommendation": "No area given"},
            {"area": "Empty"},
            42,
        ]})
        result = (await analyzer.analyze(sample_resume, sample_job)).result
        assert result.suggestions == ["Plain advice", "No area given"]

    async def test_non_list_fields_tolerated(self, analyzer, scripted_llm, sample_resume, sample_job):
        scripted_llm(uniqueness={"score": "n/a", "factors": "none", "differentiators": None})
        result = (await analyzer.analyze(sample_resume, sample_job)).result

        assert result.score == 50
        assert result.factors == []
        assert result.differentiators == []


class TestUniquenessScoreLabel:
    @pytest.mark.parametrize("score,label", [
        (10, "low"), (40, "moderate"), (65, "high"), (85, "exceptional"),
    ])
    def test_bands(self, score, label):
        assert uniqueness_score_label(score) == label
