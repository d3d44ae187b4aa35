"""Context analyzer - how well the resume speaks to this particular job."""

from __future__ import annotations

import logging
import re

from hybrid_tailor.analyzers.base import (
    JSON_ONLY,
    AnalyzerOutput,
    as_dicts,
    as_strings,
    clamp_score,
    usage_from,
)
from hybrid_tailor.clients.completion import CompletionService, request_json
from hybrid_tailor.config import RetryConfig
from hybrid_tailor.models.analysis import (
    ContextResult,
    ExperienceAlignment,
    FitAssessment,
    KeywordCoverage,
    KeywordMatch,
    MatchedSkill,
    MissingRequirement,
)
from hybrid_tailor.models.job import JobData
from hybrid_tailor.models.resume import ResumeContent

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = """\
You are a technical recruiter comparing a resume against one job posting.

Assess:
- matched_skills: job skills the resume shows (strength exact, related or transferable)
- missing_requirements: requirements the resume does not show
  (importance critical, important or nice_to_have; use short skill names where possible)
- experience_alignments: how relevant each experience is (high, medium, low), by experience id
- keywords: the ATS keywords from the posting and whether each appears in the resume
- fit_assessment: strengths, gaps and a one-line overall fit

Score the overall job fit from 0-100.

Return JSON:
{
  "score": 0-100,
  "summary": "...",
  "matched_skills": [{"skill": "...", "strength": "exact|related|transferable"}],
  "missing_requirements": [{"requirement": "...", "importance": "critical|important|nice_to_have"}],
  "experience_alignments": [
    {"experience_id": "...", "experience_title": "...", "relevance": "high|medium|low", "explanation": "..."}
  ],
  "keywords": [{"keyword": "...", "found": true, "location": "summary|experience|skills|null"}],
  "fit_assessment": {"strengths": ["..."], "gaps": ["..."], "overall_fit": "..."},
  "suggestions": ["..."]
}""" + JSON_ONLY

_STRENGTHS = ("exact", "related", "transferable")
_IMPORTANCE = ("critical", "important", "nice_to_have")
_RELEVANCE = ("high", "medium", "low")


def keyword_pattern(keyword: str) -> re.Pattern[str]:
    """Case-insensitive, word-bounded match that tolerates symbols like ``C++`` or ``Node.js``."""
    return re.compile(rf"(?<!\w){re.escape(keyword.strip())}(?!\w)", re.IGNORECASE)


def locate_keyword(keyword: str, resume: ResumeContent) -> str | None:
    """Name of the first resume section containing ``keyword`` verbatim."""
    pattern = keyword_pattern(keyword)
    sections = {
        "summary": resume.summary,
        "experience": " ".join(
            [f"{e.title} {e.company}" for e in resume.experiences]
            + [b.text for _, b in resume.iter_bullets()]
        ),
        "skills": " ".join(resume.skills.technical + resume.skills.soft + resume.skills.certifications),
        "projects": " ".join(
            f"{p.name} {p.description} {' '.join(p.technologies)}" for p in resume.projects
        ),
    }
    for name, text in sections.items():
        if text and pattern.search(text):
            return name
    return None


class ContextAnalyzer:
    name = "context"

    def __init__(
        self,
        llm: CompletionService,
        model: str = "claude-haiku-4-5-20251001",
        *,
        max_tokens: int = 4000,
        temperature: float = 0.3,
        time_budget_ms: int = 90000,
        retry: RetryConfig | None = None,
    ):
        self.llm = llm
        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.time_budget_ms = time_budget_ms
        self.retry = retry

    async def analyze(self, resume: ResumeContent, job: JobData) -> AnalyzerOutput:
        prompt = f"""Compare this resume with the job posting.

JOB POSTING
---
{job.to_prompt_text()}
---

RESUME
---
{resume.to_prompt_text()}
---

Return your analysis as JSON."""

        data, response = await request_json(
            self.llm,
            SYSTEM_PROMPT,
            prompt,
            model=self.model,
            max_tokens=self.max_tokens,
            temperature=self.temperature,
            time_budget_ms=self.time_budget_ms,
            retry=self.retry,
            label="ContextAnalysis",
        )

        experience_ids = {e.id for e in resume.experiences}
        titles = {e.title.lower(): e.id for e in resume.experiences}
        alignments = []
        for raw in as_dicts(data.get("experience_alignments")):
            exp_id = raw.get("experience_id")
            title = str(raw.get("experience_title") or "")
            if not isinstance(exp_id, str) or exp_id not in experience_ids:
                exp_id = titles.get(title.lower())
            relevance = raw.get("relevance")
            alignments.append(ExperienceAlignment(
                experience_id=exp_id,
                experience_title=title,
                relevance=relevance if relevance in _RELEVANCE else "low",
                explanation=str(raw.get("explanation") or ""),
            ))

        fit = data.get("fit_assessment")
        fit = fit if isinstance(fit, dict) else {}

        result = ContextResult(
            score=clamp_score(data.get("score")),
            summary=str(data.get("summary") or ""),
            matched_skills=[
                MatchedSkill(
                    skill=str(raw["skill"]),
                    strength=raw.get("strength") if raw.get("strength") in _STRENGTHS else "related",
                )
                for raw in as_dicts(data.get("matched_skills"))
                if raw.get("skill")
            ],
            missing_requirements=[
                MissingRequirement(
                    requirement=str(raw["requirement"]),
                    importance=raw.get("importance") if raw.get("importance") in _IMPORTANCE else "important",
                )
                for raw in as_dicts(data.get("missing_requirements"))
                if raw.get("requirement")
            ],
            experience_alignments=alignments,
            keyword_coverage=self._coverage(data, resume, job),
            fit_assessment=FitAssessment(
                strengths=as_strings(fit.get("strengths")),
                gaps=as_strings(fit.get("gaps")),
                overall_fit=str(fit.get("overall_fit") or ""),
            ),
            suggestions=as_strings(data.get("suggestions")),
        )
        coverage = result.keyword_coverage
        logger.info(
            "Context analysis: score=%d, keywords %d/%d",
            result.score, coverage.matched, coverage.total,
        )
        return AnalyzerOutput(result, usage_from(self.name, response))

    @staticmethod
    def _coverage(data: dict, resume: ResumeContent, job: JobData) -> KeywordCoverage:
        """Declared job skills plus model-extracted keywords, checked against the resume text.

        A keyword present verbatim in the resume always counts as found.
        """
        reported: dict[str, dict] = {}
        for raw in as_dicts(data.get("keywords")):
            keyword = str(raw.get("keyword") or "").strip()
            if keyword:
                reported.setdefault(keyword.lower(), raw | {"keyword": keyword})

        candidates = [s.strip() for s in job.skills if s.strip()] + [r["keyword"] for r in reported.values()]
        matches: list[KeywordMatch] = []
        seen: set[str] = set()
        for keyword in candidates:
            key = keyword.lower()
            if key in seen:
                continue
            seen.add(key)
            raw = reported.get(key, {})
            location = locate_keyword(keyword, resume)
            if location is None and raw.get("found") is True:
                location = raw.get("location") if isinstance(raw.get("location"), str) else None
                found = True
            else:
                found = location is not None
            matches.append(KeywordMatch(keyword=keyword, found=found, location=location))
        return KeywordCoverage(keywords=matches)
