"""Impact analyzer - finds bullets that would read stronger with metrics."""

from __future__ import annotations

import logging

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
from hybrid_tailor.errors import AnalysisError, ErrorCode
from hybrid_tailor.models.analysis import (
    IMPACT_LEVELS,
    ImpactBullet,
    ImpactResult,
    ImpactSuggestion,
    MetricCategories,
)
from hybrid_tailor.models.job import JobData
from hybrid_tailor.models.resume import ResumeContent

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = """\
You are a senior resume writer who turns vague duty statements into quantified achievements.

For every bullet you receive, decide whether it already carries a concrete metric.
If it does not, propose an improved version that adds a realistic metric
(percentage, money, time, scale/volume, or rankings) inferable from the resume.
Never invent facts the resume does not support.

Improvement levels:
- none: already quantified, keep as is
- minor: small wording or metric tweak
- major: a metric and a clearer result are missing
- transformed: the bullet needs a full rewrite around its outcome

Score the resume's overall quantification from 0-100
(0-39 weak, 40-64 moderate, 65-84 strong, 85-100 exceptional).

Return JSON:
{
  "score": 0-100,
  "summary": "2-3 sentences on the overall quantification level",
  "bullets": [
    {
      "bullet_id": "id shown in brackets",
      "experience_id": "id of the experience",
      "original": "original bullet text",
      "improved": "bullet rewritten with metrics",
      "metrics": ["metric added"],
      "improvement": "none|minor|major|transformed",
      "explanation": "why"
    }
  ],
  "metric_categories": {"percentage": 0, "monetary": 0, "time": 0, "scale": 0, "other": 0},
  "suggestions": [{"area": "...", "recommendation": "..."}]
}""" + JSON_ONLY


def impact_score_label(score: int) -> str:
    if score >= 85:
        return "exceptional"
    if score >= 65:
        return "strong"
    if score >= 40:
        return "moderate"
    return "weak"


class ImpactAnalyzer:
    name = "impact"

    def __init__(
        self,
        llm: CompletionService,
        model: str = "claude-haiku-4-5-20251001",
        *,
        max_tokens: int = 4000,
        temperature: float = 0.4,
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
        """Score quantification and suggest metrics per bullet."""
        total_bullets = resume.bullet_count
        if total_bullets == 0:
            raise AnalysisError(
                "Resume must have experience bullets to analyze.",
                ErrorCode.INSUFFICIENT_CONTENT,
                analyzer=self.name,
            )

        listing = "\n".join(
            f"{i}. [{bullet.id}] ({exp.title} at {exp.company}, experience_id: {exp.id}) \"{bullet.text}\""
            for i, (exp, bullet) in enumerate(resume.iter_bullets(), start=1)
        )
        prompt = f"""Analyze and quantify the impact of each bullet in this resume:

---
{resume.to_prompt_text()}
---

Bullets to analyze:
{listing}

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
            label="ImpactAnalysis",
        )

        bullets = [self._bullet(raw, resume) for raw in as_dicts(data.get("bullets"))]
        score = clamp_score(data.get("score"))
        categories = data.get("metric_categories")
        categories = categories if isinstance(categories, dict) else {}

        result = ImpactResult(
            score=score,
            score_label=impact_score_label(score),
            summary=str(data.get("summary") or "Analysis complete."),
            total_bullets=total_bullets,
            bullets=bullets,
            metric_categories=MetricCategories(
                **{k: int(v) for k, v in categories.items()
                   if k in MetricCategories.model_fields and isinstance(v, (int, float))}
            ),
            suggestions=[
                ImpactSuggestion(
                    area=str(s.get("area") or "General"),
                    recommendation=str(s.get("recommendation") or ""),
                )
                for s in as_dicts(data.get("suggestions"))
            ],
        )
        logger.info(
            "Impact analysis: score=%d, %d/%d bullets improvable",
            result.score, result.bullets_improved, total_bullets,
        )
        return AnalyzerOutput(result, usage_from(self.name, response))

    @staticmethod
    def _bullet(raw: dict, resume: ResumeContent) -> ImpactBullet:
        """Normalise one reported bullet and resolve it to a resume bullet id."""
        original = str(raw.get("original") or "")
        experience_id = str(raw.get("experience_id") or "")
        bullet_id = raw.get("bullet_id")

        known = {b.id: exp.id for exp, b in resume.iter_bullets()}
        if isinstance(bullet_id, str) and bullet_id in known:
            experience_id = known[bullet_id]
        else:
            bullet_id = None
            for exp, bullet in resume.iter_bullets():
                if bullet.text == original and (not experience_id or exp.id == experience_id):
                    bullet_id, experience_id = bullet.id, exp.id
                    break

        improvement = raw.get("improvement")
        if improvement not in IMPACT_LEVELS:
            improvement = "none"

        return ImpactBullet(
            bullet_id=bullet_id,
            experience_id=experience_id,
            original=original,
            improved=str(raw.get("improved") or original),
            metrics=as_strings(raw.get("metrics")),
            improvement=improvement,
            explanation=str(raw.get("explanation") or ""),
        )
