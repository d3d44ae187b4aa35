"""Tests for the concurrent pre-analysis phase."""

from __future__ import annotations

import asyncio

import pytest

from hybrid_tailor.analyzers.base import AnalyzerOutput, usage_from
from hybrid_tailor.errors import AnalysisError, ErrorCode, ParseError
from hybrid_tailor.models.analysis import SoftSkillAssessment
from hybrid_tailor.pipeline.pre_analysis import (
    PreAnalyzer,
    default_analyzers,
    run_pre_analysis,
    summarize_pre_analysis,
)


class FakeAnalyzer:
    def __init__(self, name, result=None, *, exc=None, delay=0.0):
        self.name = name
        self.result = result
        self.exc = exc
        self.delay = delay
        self.cancelled = False

    async def analyze(self, resume, job):
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
        except asyncio.CancelledError:
            self.cancelled = True
            raise
        if self.exc is not None:
            raise self.exc
        return AnalyzerOutput(self.result, usage_from(self.name))


@pytest.fixture
def fake_analyzers(sample_pre_analysis):
    pa = sample_pre_analysis
    return [
        FakeAnalyzer("impact", pa.impact),
        FakeAnalyzer("uniqueness", pa.uniqueness),
        FakeAnalyzer("context", pa.context),
    ]


class TestPreAnalyzer:
    async def test_default_analyzers_merge(
        self, scripted_llm, impact_json, uniqueness_json, context_json, fast_config,
        sample_resume, sample_job,
    ):
        llm = scripted_llm(impact=impact_json, uniqueness=uniqueness_json, context=context_json)
        pre = PreAnalyzer(default_analyzers(llm, fast_config))

        result = await pre.run(sample_resume, sample_job, resume_id="resume-9")

        assert result.impact.score == 55
        assert result.uniqueness.score == 70
        assert result.context.score == 68
        assert [s.skill for s in result.soft_skills] == ["leadership", "communication", "collaboration"]
        assert [c.company_name for c in result.companies] == ["Google", "Acme Robotics"]
        assert [u.source for u in result.usage] == ["impact", "uniqueness", "context", "soft_skills", "company"]
        assert result.total_tokens == 450
        assert result.resume_id == "resume-9"
        assert result.job_id == "job-1"
        assert llm.complete.await_count == 3

    async def test_analysis_model_used(
        self, scripted_llm, impact_json, uniqueness_json, context_json, fast_config,
        sample_resume, sample_job,
    ):
        llm = scripted_llm(impact=impact_json, uniqueness=uniqueness_json, context=context_json)
        await PreAnalyzer(default_analyzers(llm, fast_config)).run(sample_resume, sample_job)

        models = {c.kwargs["model"] for c in llm.complete.call_args_list}
        assert models == {fast_config.llm.analysis_model}

    async def test_optional_analyzers_default_empty(self, fake_analyzers, sample_resume, sample_job):
        result = await PreAnalyzer(fake_analyzers).run(sample_resume, sample_job)
        assert result.soft_skills == []
        assert result.companies == []

    async def test_failure_is_fatal(
        self, scripted_llm, impact_json, uniqueness_json, fast_config, sample_resume, sample_job,
    ):
        llm = scripted_llm(impact=impact_json, uniqueness=uniqueness_json, context="not json at all")

        with pytest.raises(AnalysisError) as exc_info:
            await PreAnalyzer(default_analyzers(llm, fast_config)).run(sample_resume, sample_job)

        error = exc_info.value
        assert error.analyzer == "context"
        assert error.code == ErrorCode.ANALYSIS_FAILED
        assert isinstance(error.cause, ParseError)

    async def test_first_failure_cancels_the_rest(self, fake_analyzers, sample_resume, sample_job):
        slow = FakeAnalyzer("uniqueness", delay=10)
        fake_analyzers[0] = FakeAnalyzer("impact", exc=RuntimeError("boom"))
        fake_analyzers[1] = slow

        with pytest.raises(AnalysisError) as exc_info:
            await asyncio.wait_for(PreAnalyzer(fake_analyzers).run(sample_resume, sample_job), timeout=5)

        assert exc_info.value.analyzer == "impact"
        assert "boom" in exc_info.value.message
        assert slow.cancelled

    async def test_simultaneous_failures_reported_in_configured_order(
        self, fake_analyzers, sample_resume, sample_job
    ):
        fake_analyzers[0] = FakeAnalyzer("impact", exc=RuntimeError("impact down"))
        fake_analyzers[2] = FakeAnalyzer("context", exc=RuntimeError("context down"))

        with pytest.raises(AnalysisError) as exc_info:
            await PreAnalyzer(fake_analyzers).run(sample_resume, sample_job)
        assert exc_info.value.analyzer == "impact"

    async def test_unrecognised_analyzer_ignored(self, fake_analyzers, sample_resume, sample_job):
        fake_analyzers.append(FakeAnalyzer("extra", result="whatever"))
        result = await PreAnalyzer(fake_analyzers).run(sample_resume, sample_job)
        assert [u.source for u in result.usage][-1] == "extra"

    async def test_run_pre_analysis_helper(self, fake_analyzers, sample_resume, sample_job):
        result = await run_pre_analysis(sample_resume, sample_job, fake_analyzers, "r-1")
        assert result.resume_id == "r-1"

    def test_required_analyzers_enforced(self, fake_analyzers):
        with pytest.raises(ValueError, match="context"):
            PreAnalyzer(fake_analyzers[:2])

    def test_duplicate_names_rejected(self, fake_analyzers):
        with pytest.raises(ValueError, match="duplicate"):
            PreAnalyzer([*fake_analyzers, FakeAnalyzer("impact")])


class TestSummarizePreAnalysis:
    def test_summary(self, sample_pre_analysis):
        summary = summarize_pre_analysis(sample_pre_analysis)

        assert summary.issue_scores == {
            "uniqueness": 70,
            "impact": 55,
            "context_translation": 80,  # one of two employers well known
            "cultural_fit": 10,  # one weak soft skill
            "customization": 68,
        }
        # 55*.30 + 70*.20 + 68*.25 + 10*.10 + 80*.15 = 60.5
        assert summary.overall_score in (60, 61)
        assert summary.top_strengths == ["Robotics and cloud infrastructure"]
        assert summary.top_gaps == []

    def test_neutral_defaults_without_soft_skills_or_companies(self, sample_pre_analysis):
        pa = sample_pre_analysis.model_copy(update={"soft_skills": [], "companies": []})
        scores = summarize_pre_analysis(pa).issue_scores
        assert scores["cultural_fit"] == 50
        assert scores["context_translation"] == 50

    def test_soft_skill_score_capped(self, sample_pre_analysis):
        strong = [SoftSkillAssessment(skill=f"s{i}", strength="strong") for i in range(5)]
        pa = sample_pre_analysis.model_copy(update={"soft_skills": strong})
        assert summarize_pre_analysis(pa).issue_scores["cultural_fit"] == 100
