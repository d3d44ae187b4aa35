"""Uniqueness analyzer - what sets this candidate apart."""

from __future__ import annotations

import logging

from hybrid_tailor.analyzers.base import (
    JSON_ONLY,
    AnalyzerOutput,
    as_dicts,
    as_list,
    as_strings,
    clamp_score,
    usage_from,
)
from hybrid_tailor.clients.completion import CompletionService, request_json
from hybrid_tailor.config import RetryConfig
from hybrid_tailor.models.analysis import UniquenessFactor, UniquenessResult
from hybrid_tailor.models.job import JobData
from hybrid_tailor.models.resume import ResumeContent

logger = logging.getLogger(__name__)

RARITIES = ("common", "uncommon", "rare", "very_rare")

SYSTEM_PROMPT = """\
You are a career strategist who identifies what makes a candidate stand out.

Look for:
1. skill_combination - skills rarely found together (e.g. data science + UX)
2. career_transition - pivots that bring an unusual perspective
3. unique_experience - contexts most candidates never work in
4. domain_expertise - deep specialisation in a niche
5. achievement - distinctive outcomes or scale
6. education - unusual academic background

Rate each factor's rarity as uncommon, rare or very_rare, quote evidence from
the resume, and rank the candidate's differentiators strongest first.
Score uniqueness from 0-100 (0-39 low, 40-64 moderate, 65-84 high, 85-100 exceptional).
Only reference content present in the resume.

Return JSON:
{
  "score": 0-100,
  "summary": "2-3 sentence value proposition",
  "factors": [
    {"type": "...", "title": "...", "description": "...", "rarity": "uncommon|rare|very_rare", "evidence": ["..."]}
  ],
  "differentiators": ["strongest first"],
  "suggestions": [{"area": "...", "recommendation": "..."}]
}""" + JSON_ONLY


def uniqueness_score_label(score: int) -> str:
    if score >= 85:
        return "exceptional"
    if score >= 65:
        return "high"
    if score >= 40:
        return "moderate"
    return "low"


class UniquenessAnalyzer:
    name = "uniqueness"

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
        prompt = f"""Analyze this resume for unique differentiators:

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
            label="UniquenessAnalysis",
        )

        factors = []
        for raw in as_dicts(data.get("factors")):
            rarity = raw.get("rarity")
            factors.append(UniquenessFactor(
                type=str(raw.get("type") or "unique_experience"),
                title=str(raw.get("title") or ""),
                description=str(raw.get("description") or ""),
                rarity=rarity if rarity in RARITIES else "common",
                evidence=as_strings(raw.get("evidence")),
            ))

        suggestions: list[str] = []
        for item in as_list(data.get("suggestions")):
            if isinstance(item, dict):
                area, rec = item.get("area"), item.get("recommendation")
                if rec:
                    suggestions.append(f"{area}: {rec}" if area else str(rec))
            elif isinstance(item, str) and item.strip():
                suggestions.append(item)

        score = clamp_score(data.get("score"))
        result = UniquenessResult(
            score=score,
            score_label=uniqueness_score_label(score),
            summary=str(data.get("summary") or ""),
            factors=factors,
            differentiators=as_strings(data.get("differentiators")),
            suggestions=suggestions,
        )
        logger.info(
            "Uniqueness analysis: score=%d, %d factors (%d rare)",
            result.score, len(factors), len(result.rare_factors),
        )
        return AnalyzerOutput(result, usage_from(self.name, response))
