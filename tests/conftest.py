"""Shared test fixtures."""

from __future__ import annotations

import json
from unittest.mock import AsyncMock, MagicMock

import pytest

from hybrid_tailor.analyzers import context as context_analyzer
from hybrid_tailor.analyzers import impact as impact_analyzer
from hybrid_tailor.analyzers import uniqueness as uniqueness_analyzer
from hybrid_tailor.clients.completion import LLMResponse
from hybrid_tailor.clients.llm_client import LLMClient
from hybrid_tailor.config import AppConfig, RetryConfig
from hybrid_tailor.models.analysis import (
    CompanyResearchResult,
    ContextResult,
    ExperienceAlignment,
    ImpactBullet,
    ImpactResult,
    KeywordCoverage,
    KeywordMatch,
    MatchedSkill,
    MissingRequirement,
    PreAnalysisResult,
    SoftSkillAssessment,
    UniquenessFactor,
    UniquenessResult,
)
from hybrid_tailor.models.job import JobData
from hybrid_tailor.models.resume import ResumeContent
from hybrid_tailor.pipeline import rewriter

# system prompt -> reply key used by scripted_llm
PROMPT_KEYS = {
    impact_analyzer.SYSTEM_PROMPT: "impact",
    uniqueness_analyzer.SYSTEM_PROMPT: "uniqueness",
    context_analyzer.SYSTEM_PROMPT: "context",
    rewriter.BULLET_SYSTEM_PROMPT: "bullets",
    rewriter.SUMMARY_SYSTEM_PROMPT: "summary",
    rewriter.WHY_FIT_SYSTEM_PROMPT: "why_fit",
}

FAST_RETRY = RetryConfig(initial_delay_ms=0, max_delay_ms=0)


@pytest.fixture
def fast_config() -> AppConfig:
    return AppConfig(retry=FAST_RETRY)


@pytest.fixture
def sample_resume_data() -> dict:
    return {
        "contact": {"name": "Jane Doe", "email": "jane@example.com"},
        "summary": "Backend engineer with six years of experience building APIs.",
        "experiences": [
            {
                "id": "exp-1",
                "company": "Google",
                "title": "Senior Software Engineer",
                "start_date": "2021-03",
                "bullets": [
                    {"id": "b1", "text": "Led migration of billing services to Kubernetes"},
                    {"id": "b2", "text": "Reduced API latency by 40% through caching"},
                ],
            },
            {
                "id": "exp-2",
                "company": "Acme Robotics",
                "title": "Software Engineer",
                "start_date": "2018-01",
                "end_date": "2021-02",
                "bullets": [
                    {"id": "b3", "text": "Built internal tooling for the warehouse team"},
                    {"id": "b4", "text": "Collaborated with hardware engineers on firmware updates"},
                ],
            },
        ],
        "education": [
            {"id": "edu-1", "institution": "State University", "degree": "BSc", "field": "Computer Science"},
        ],
        "skills": {
            "technical": ["Go", "Python", "Kubernetes", "PostgreSQL"],
            "soft": ["Communication", "Leadership"],
        },
    }


@pytest.fixture
def sample_resume(sample_resume_data) -> ResumeContent:
    return ResumeContent.model_validate(sample_resume_data)


@pytest.fixture
def sample_job() -> JobData:
    return JobData(
        id="job-1",
        title="Staff Backend Engineer",
        company_name="Initech",
        description="Own our payments platform. Strong leadership and communication expected.",
        requirements=["Python", "Kubernetes", "Terraform experience"],
        skills=["Python", "Kubernetes", "Terraform"],
    )


@pytest.fixture
def impact_json() -> dict:
    return {
        "score": 55,
        "summary": "Some bullets lack metrics.",
        "bullets": [
            {
                "bullet_id": "b1",
                "experience_id": "exp-1",
                "original": "Led migration of billing services to Kubernetes",
                "improved": "Led migration of 12 billing services to Kubernetes, cutting deploy time 60%",
                "metrics": ["12 services", "60% faster deploys"],
                "improvement": "major",
                "explanation": "No scale or outcome.",
            },
            {
                "bullet_id": "b2",
                "experience_id": "exp-1",
                "original": "Reduced API latency by 40% through caching",
                "improved": "Reduced API latency by 40% through caching",
                "metrics": [],
                "improvement": "none",
                "explanation": "Already quantified.",
            },
            {
                "bullet_id": "b3",
                "experience_id": "exp-2",
                "original": "Built internal tooling for the warehouse team",
                "improved": "Built internal tooling used by 80 warehouse staff daily",
                "metrics": ["80 users"],
                "improvement": "minor",
                "explanation": "Add scale.",
            },
        ],
        "metric_categories": {"percentage": 1, "scale": 1},
        "suggestions": [{"area": "Scale", "recommendation": "Mention team and user counts"}],
    }


@pytest.fixture
def uniqueness_json() -> dict:
    return {
        "score": 70,
        "summary": "Infrastructure depth plus robotics background.",
        "factors": [
            {
                "type": "skill_combination",
                "title": "Robotics meets cloud",
                "description": "Combines embedded robotics work with large-scale cloud infrastructure",
                "rarity": "rare",
                "evidence": ["firmware updates", "Kubernetes"],
            },
            {
                "type": "achievement",
                "title": "Performance",
                "description": "Cut latency substantially",
                "rarity": "uncommon",
                "evidence": ["40%"],
            },
        ],
        "differentiators": ["Robotics and cloud infrastructure", "Large-scale migrations"],
        "suggestions": [{"area": "Summary", "recommendation": "Lead with the robotics angle"}],
    }


@pytest.fixture
def context_json() -> dict:
    return {
        "score": 68,
        "summary": "Good fit with some infrastructure gaps.",
        "matched_skills": [
            {"skill": "Python", "strength": "exact"},
            {"skill": "Kubernetes", "strength": "exact"},
        ],
        "missing_requirements": [{"requirement": "Terraform", "importance": "important"}],
        "experience_alignments": [
            {"experience_id": "exp-1", "experience_title": "Senior Software Engineer",
             "relevance": "high", "explanation": "Platform migrations at scale"},
            {"experience_id": "exp-2", "experience_title": "Software Engineer",
             "relevance": "low", "explanation": "Tooling work"},
        ],
        "keywords": [
            {"keyword": "Kubernetes", "found": True, "location": "experience"},
            {"keyword": "Terraform", "found": False},
            {"keyword": "payments", "found": False},
        ],
        "fit_assessment": {"strengths": ["Kubernetes depth"], "gaps": ["No Terraform"], "overall_fit": "Good"},
        "suggestions": ["Mention infrastructure-as-code"],
    }


@pytest.fixture
def sample_pre_analysis() -> PreAnalysisResult:
    return PreAnalysisResult(
        impact=ImpactResult(
            score=55,
            total_bullets=4,
            bullets=[
                ImpactBullet(
                    bullet_id="b1", experience_id="exp-1",
                    original="Led migration of billing services to Kubernetes",
                    improved="Led migration of 12 billing services to Kubernetes",
                    metrics=["12 services"], improvement="major",
                ),
                ImpactBullet(
                    bullet_id="b2", experience_id="exp-1",
                    original="Reduced API latency by 40% through caching",
                    improvement="none",
                ),
            ],
        ),
        uniqueness=UniquenessResult(
            score=70,
            factors=[
                UniquenessFactor(
                    type="skill_combination", title="Robotics meets cloud",
                    description="Combines robotics with cloud infrastructure", rarity="rare",
                ),
            ],
            differentiators=["Robotics and cloud infrastructure"],
        ),
        context=ContextResult(
            score=68,
            matched_skills=[MatchedSkill(skill="Python"), MatchedSkill(skill="Kubernetes")],
            missing_requirements=[MissingRequirement(requirement="Terraform", importance="important")],
            experience_alignments=[
                ExperienceAlignment(experience_id="exp-1", experience_title="Senior Software Engineer",
                                    relevance="high", explanation="Platform work"),
                ExperienceAlignment(experience_id="exp-2", experience_title="Software Engineer",
                                    relevance="low", explanation="Tooling"),
            ],
            keyword_coverage=KeywordCoverage(keywords=[
                KeywordMatch(keyword="Python", found=True, location="skills"),
                KeywordMatch(keyword="Kubernetes", found=True, location="experience"),
                KeywordMatch(keyword="Terraform", found=False),
            ]),
        ),
        soft_skills=[
            SoftSkillAssessment(skill="leadership", evidence=["Led"], strength="weak", bullet_ids=["b1"]),
        ],
        companies=[
            CompanyResearchResult(company_name="Google", experience_ids=["exp-1"],
                                  is_well_known=True, size="enterprise"),
            CompanyResearchResult(company_name="Acme Robotics", experience_ids=["exp-2"],
                                  context="Acme Robotics"),
        ],
        resume_id="resume-1",
        job_id="job-1",
    )


@pytest.fixture
def mock_llm_client() -> LLMClient:
    """Create a mock LLM client."""
    client = AsyncMock(spec=LLMClient)
    client.is_configured = MagicMock(return_value=True)
    client.complete = AsyncMock(
        return_value=LLMResponse(text="{}", input_tokens=100, output_tokens=50, model="test-model")
    )
    return client


@pytest.fixture
def scripted_llm(mock_llm_client):
    """Install replies keyed by call kind (impact, uniqueness, context, bullets, summary, why_fit).

    A dict reply is sent as JSON text, a str verbatim, an exception is raised,
    and a list is consumed one item per call.
    """

    def _script(**replies):
        queues = {k: list(v) if isinstance(v, list) else None for k, v in replies.items()}

        async def _complete(system_prompt, user_prompt, **kwargs):
            key = PROMPT_KEYS.get(system_prompt)
            if key not in replies:
                raise AssertionError(f"unexpected completion call: {key or system_prompt[:40]!r}")
            reply = queues[key].pop(0) if queues[key] is not None else replies[key]
            if isinstance(reply, BaseException):
                raise reply
            text = reply if isinstance(reply, str) else json.dumps(reply)
            return LLMResponse(text=text, input_tokens=100, output_tokens=50, model=kwargs.get("model", ""))

        mock_llm_client.complete.side_effect = _complete
        return mock_llm_client

    return _script


@pytest.fixture
def calls_of(mock_llm_client):
    """Completion calls whose system prompt belongs to the given reply key."""

    def _calls(key: str) -> list:
        return [c for c in mock_llm_client.complete.call_args_list if PROMPT_KEYS.get(c.args[0]) == key]

    return _calls
