"""Tests for recruiter-readiness scoring."""

from __future__ import annotations

import pytest

from hybrid_tailor.models.analysis import (
    CompanyResearchResult,
    ContextResult,
    ImpactResult,
    KeywordCoverage,
    KeywordMatch,
    PreAnalysisResult,
    SoftSkillAssessment,
    UniquenessResult,
)
from hybrid_tailor.pipeline.scoring import (
    DIMENSION_SUGGESTIONS,
    DIMENSION_WEIGHTS,
    calculate_recruiter_readiness,
    get_readable_label,
    get_score_label,
    get_score_summary,
)


def _analysis(score: int, *, soft_skills=(), companies=(), differentiators=(), keywords=()) -> PreAnalysisResult:
    return PreAnalysisResult(
        impact=ImpactResult(score=score),
        uniqueness=UniquenessResult(score=score, differentiators=list(differentiators)),
        context=ContextResult(score=score, keyword_coverage=KeywordCoverage(keywords=list(keywords))),
        soft_skills=list(soft_skills),
        companies=list(companies),
    )


class TestWeights:
    def test_sum_to_one(self):
        assert sum(DIMENSION_WEIGHTS.values()) == pytest.approx(1.0)

    def test_impact_weighted_highest(self):
        assert max(DIMENSION_WEIGHTS, key=DIMENSION_WEIGHTS.get) == "impact"


class TestRecruiterReadiness:
    def test_sample(self, sample_pre_analysis):
        score = calculate_recruiter_readiness(sample_pre_analysis)
        dims = score.dimensions

        assert dims["impact"].raw == 55
        assert dims["uniqueness"].raw == 60  # 0.8 * 70 + 4 * 1 differentiator
        assert dims["cultural_fit"].raw == 36  # base 30 + one weak skill
        assert dims["context_translation"].raw == 70  # one of two employers known
        assert dims["customization"].raw in (67, 68)  # halfway between 67% coverage and 68
        assert score.composite == 58
        assert score.label == "getting_there"

    def test_composite_is_rounded_weighted_sum(self, sample_pre_analysis):
        score = calculate_recruiter_readiness(sample_pre_analysis)
        assert score.composite == round(sum(d.weighted for d in score.dimensions.values()))
        for name, dim in score.dimensions.items():
            assert dim.weight == DIMENSION_WEIGHTS[name]
            assert dim.weighted == pytest.approx(dim.raw * dim.weight)

    def test_suggestions_for_weakest_dimensions(self, sample_pre_analysis):
        score = calculate_recruiter_readiness(sample_pre_analysis)
        assert score.top_suggestions == [
            DIMENSION_SUGGESTIONS["cultural_fit"],
            DIMENSION_SUGGESTIONS["impact"],
            DIMENSION_SUGGESTIONS["uniqueness"],
        ]

    def test_maximum(self):
        pa = _analysis(
            100,
            soft_skills=[SoftSkillAssessment(skill=f"s{i}", strength="strong") for i in range(6)],
            companies=[CompanyResearchResult(company_name="Google", is_well_known=True)],
            differentiators=[f"d{i}" for i in range(8)],
            keywords=[KeywordMatch(keyword="Python", found=True)],
        )
        score = calculate_recruiter_readiness(pa)

        assert score.composite == 100
        assert score.label == "exceptional"
        assert all(d.raw == 100 for d in score.dimensions.values())
        assert score.top_suggestions == []

    def test_minimum_stays_in_bounds(self):
        pa = _analysis(0, keywords=[KeywordMatch(keyword="Python", found=False)])
        score = calculate_recruiter_readiness(pa)

        assert 0 <= score.composite <= 100
        assert score.label == "needs_work"
        assert score.dimensions["cultural_fit"].raw == 30
        assert score.dimensions["context_translation"].raw == 100  # no employers to explain
        assert all(0 <= d.raw <= 100 for d in score.dimensions.values())

    def test_customization_without_keywords_uses_context_score(self):
        score = calculate_recruiter_readiness(_analysis(64))
        assert score.dimensions["customization"].raw == 64

    def test_monotonic_in_impact(self, sample_pre_analysis):
        low = sample_pre_analysis.model_copy(update={"impact": ImpactResult(score=20)})
        high = sample_pre_analysis.model_copy(update={"impact": ImpactResult(score=90)})
        assert calculate_recruiter_readiness(high).composite > calculate_recruiter_readiness(low).composite


class TestLabels:
    @pytest.mark.parametrize("score,label", [
        (100, "exceptional"), (90, "exceptional"), (89, "strong"), (75, "strong"),
        (74, "good"), (60, "good"), (59, "getting_there"), (45, "getting_there"),
        (44, "needs_work"), (0, "needs_work"),
    ])
    def test_score_label(self, score, label):
        assert get_score_label(score) == label

    def test_readable_label(self):
        assert get_readable_label("getting_there") == "Getting There"
        assert get_readable_label("strong") == "Strong"

    def test_score_summary(self, sample_pre_analysis):
        summary = get_score_summary(calculate_recruiter_readiness(sample_pre_analysis))
        assert summary.startswith("Getting There (58/100).")
        assert "Strongest: Context Translation" in summary
        assert summary.endswith("focus next on Cultural Fit.")
