"""Pre-analysis phase - runs all analyzers concurrently and merges their results."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime

from hybrid_tailor.analyzers.base import Analyzer, AnalyzerOutput
from hybrid_tailor.analyzers.company import CompanyContextAnalyzer
from hybrid_tailor.analyzers.context import ContextAnalyzer
from hybrid_tailor.analyzers.impact import ImpactAnalyzer
from hybrid_tailor.analyzers.soft_skills import SoftSkillAnalyzer
from hybrid_tailor.analyzers.uniqueness import UniquenessAnalyzer
from hybrid_tailor.clients.completion import CompletionService
from hybrid_tailor.config import AppConfig
from hybrid_tailor.errors import AnalysisError
from hybrid_tailor.models.analysis import PreAnalysisResult
from hybrid_tailor.models.job import JobData
from hybrid_tailor.models.resume import ResumeContent

logger = logging.getLogger(__name__)

# analyzer name -> PreAnalysisResult field
RESULT_FIELDS: dict[str, str] = {
    "impact": "impact",
    "uniqueness": "uniqueness",
    "context": "context",
    "soft_skills": "soft_skills",
    "company": "companies",
}
REQUIRED_ANALYZERS = ("impact", "uniqueness", "context")


def default_analyzers(llm: CompletionService, config: AppConfig | None = None) -> list[Analyzer]:
    config = config or AppConfig()
    model_kwargs = dict(
        max_tokens=config.llm.analysis_max_tokens,
        time_budget_ms=config.pipeline.analysis_time_budget_ms,
        retry=config.retry,
    )
    return [
        ImpactAnalyzer(llm, config.llm.analysis_model, **model_kwargs),
        UniquenessAnalyzer(llm, config.llm.analysis_model, **model_kwargs),
        ContextAnalyzer(llm, config.llm.analysis_model, **model_kwargs),
        SoftSkillAnalyzer(),
        CompanyContextAnalyzer(),
    ]


class PreAnalyzer:
    """Runs independent analyzers as concurrent tasks; the first failure cancels the rest."""

    def __init__(self, analyzers: Sequence[Analyzer]):
        names = [a.name for a in analyzers]
        missing = [n for n in REQUIRED_ANALYZERS if n not in names]
        if missing:
            raise ValueError(f"pre-analysis needs analyzers for: {', '.join(missing)}")
        if len(set(names)) != len(names):
            raise ValueError(f"duplicate analyzer names: {names}")
        self.analyzers = list(analyzers)

    async def run(self, resume: ResumeContent, job: JobData, resume_id: str = "") -> PreAnalysisResult:
        start = time.monotonic()
        tasks = {
            asyncio.ensure_future(self._run_one(a, resume, job)): a.name for a in self.analyzers
        }
        try:
            done, pending = await asyncio.wait(tasks, return_when=asyncio.FIRST_EXCEPTION)
        except asyncio.CancelledError:
            for task in tasks:
                task.cancel()
            raise

        failed = [t for t in done if t.exception() is not None]
        if failed:
            for task in pending:
                task.cancel()
            if pending:
                await asyncio.gather(*pending, return_exceptions=True)
            # report in configuration order when several failed together
            first = min(failed, key=lambda t: list(tasks).index(t))
            raise first.exception()

        outputs = {tasks[t]: t.result() for t in done}
        fields: dict = {}
        for name, output in outputs.items():
            target = RESULT_FIELDS.get(name)
            if target is None:
                logger.warning("Ignoring result of unrecognised analyzer %r", name)
                continue
            fields[target] = output.result

        result = PreAnalysisResult(
            **fields,
            usage=[outputs[a.name].usage for a in self.analyzers],
            analyzed_at=datetime.now(),
            resume_id=resume_id,
            job_id=job.id,
        )
        logger.info(
            "Pre-analysis completed in %dms (%d tokens)",
            (time.monotonic() - start) * 1000, result.total_tokens,
        )
        return result

    @staticmethod
    async def _run_one(analyzer: Analyzer, resume: ResumeContent, job: JobData) -> AnalyzerOutput:
        try:
            return await analyzer.analyze(resume, job)
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            logger.error("%s analysis failed", analyzer.name, exc_info=True)
            raise AnalysisError(
                f"{analyzer.name} analysis failed: {exc}", analyzer=analyzer.name, cause=exc,
            ) from exc


async def run_pre_analysis(
    resume: ResumeContent,
    job: JobData,
    analyzers: Sequence[Analyzer],
    resume_id: str = "",
) -> PreAnalysisResult:
    return await PreAnalyzer(analyzers).run(resume, job, resume_id)


# --- Preview summary ---------------------------------------------------------

SUMMARY_WEIGHTS: dict[str, float] = {
    "impact": 0.30,
    "uniqueness": 0.20,
    "context": 0.25,
    "soft_skills": 0.10,
    "company": 0.15,
}

_SOFT_SKILL_POINTS = {"strong": 30, "moderate": 20, "weak": 10}


@dataclass(frozen=True)
class PreAnalysisSummary:
    overall_score: int
    issue_scores: dict[str, int] = field(default_factory=dict)
    top_strengths: list[str] = field(default_factory=list)
    top_gaps: list[str] = field(default_factory=list)


def summarize_pre_analysis(result: PreAnalysisResult) -> PreAnalysisSummary:
    """Condense a pre-analysis into one weighted score plus headline strengths and gaps."""
    if result.soft_skills:
        soft_score = min(100, sum(_SOFT_SKILL_POINTS[s.strength] for s in result.soft_skills))
    else:
        soft_score = 50

    if result.companies:
        known = sum(1 for c in result.companies if c.is_well_known)
        company_score = round(60 + 40 * known / len(result.companies))
    else:
        company_score = 50

    overall = round(
        result.impact.score * SUMMARY_WEIGHTS["impact"]
        + result.uniqueness.score * SUMMARY_WEIGHTS["uniqueness"]
        + result.context.score * SUMMARY_WEIGHTS["context"]
        + soft_score * SUMMARY_WEIGHTS["soft_skills"]
        + company_score * SUMMARY_WEIGHTS["company"]
    )

    strengths = result.uniqueness.differentiators[:2] + result.context.fit_assessment.strengths[:2]
    critical = [
        r.requirement for r in result.context.missing_requirements if r.importance == "critical"
    ]
    gaps = critical[:2] + result.context.fit_assessment.gaps[:2]

    return PreAnalysisSummary(
        overall_score=overall,
        issue_scores={
            "uniqueness": result.uniqueness.score,
            "impact": result.impact.score,
            "context_translation": company_score,
            "cultural_fit": soft_score,
            "customization": result.context.score,
        },
        top_strengths=strengths[:3],
        top_gaps=gaps[:3],
    )
