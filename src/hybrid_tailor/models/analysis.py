"""Pydantic models for pre-analysis output."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import Field, computed_field

from hybrid_tailor.models.base import FrozenModel

ImpactLevel = Literal["none", "minor", "major", "transformed"]
IMPACT_LEVELS: tuple[str, ...] = ("none", "minor", "major", "transformed")

Rarity = Literal["common", "uncommon", "rare", "very_rare"]
Strength = Literal["strong", "moderate", "weak"]


# --- Impact -----------------------------------------------------------------


class ImpactBullet(FrozenModel):
    bullet_id: str | None = None
    experience_id: str
    original: str
    improved: str = ""
    metrics: list[str] = Field(default_factory=list)
    improvement: ImpactLevel = "none"
    explanation: str = ""


class MetricCategories(FrozenModel):
    percentage: int = 0
    monetary: int = 0
    time: int = 0
    scale: int = 0
    other: int = 0


class ImpactSuggestion(FrozenModel):
    area: str
    recommendation: str


class ImpactResult(FrozenModel):
    score: int = Field(ge=0, le=100)
    score_label: str = "moderate"
    summary: str = ""
    total_bullets: int = 0
    bullets: list[ImpactBullet] = Field(default_factory=list)
    metric_categories: MetricCategories = Field(default_factory=MetricCategories)
    suggestions: list[ImpactSuggestion] = Field(default_factory=list)

    @computed_field
    @property
    def bullets_improved(self) -> int:
        return sum(1 for b in self.bullets if b.improvement != "none")


# --- Uniqueness -------------------------------------------------------------


class UniquenessFactor(FrozenModel):
    type: str  # skill_combination, career_transition, achievement, domain_expertise, ...
    title: str
    description: str
    rarity: Rarity = "common"
    evidence: list[str] = Field(default_factory=list)


class UniquenessResult(FrozenModel):
    score: int = Field(ge=0, le=100)
    score_label: str = "moderate"
    summary: str = ""
    factors: list[UniquenessFactor] = Field(default_factory=list)
    differentiators: list[str] = Field(default_factory=list)  # ranked, strongest first
    suggestions: list[str] = Field(default_factory=list)

    @property
    def rare_factors(self) -> list[UniquenessFactor]:
        return [f for f in self.factors if f.rarity in ("rare", "very_rare")]


# --- Context (job fit + keyword coverage) -----------------------------------


class MatchedSkill(FrozenModel):
    skill: str
    strength: Literal["exact", "related", "transferable"] = "exact"


class MissingRequirement(FrozenModel):
    requirement: str
    importance: Literal["critical", "important", "nice_to_have"] = "important"


class ExperienceAlignment(FrozenModel):
    experience_id: str | None = None
    experience_title: str = ""
    relevance: Literal["high", "medium", "low"] = "medium"
    explanation: str = ""


class KeywordMatch(FrozenModel):
    keyword: str
    found: bool
    location: str | None = None  # where in the resume it was found


class KeywordCoverage(FrozenModel):
    keywords: list[KeywordMatch] = Field(default_factory=list)

    @computed_field
    @property
    def matched(self) -> int:
        return sum(1 for k in self.keywords if k.found)

    @computed_field
    @property
    def total(self) -> int:
        return len(self.keywords)

    @computed_field
    @property
    def percentage(self) -> int:
        return round(100 * self.matched / self.total) if self.keywords else 0

    @property
    def missing(self) -> list[str]:
        return [k.keyword for k in self.keywords if not k.found]

    @property
    def missing_count(self) -> int:
        return self.total - self.matched


class FitAssessment(FrozenModel):
    strengths: list[str] = Field(default_factory=list)
    gaps: list[str] = Field(default_factory=list)
    overall_fit: str = ""


class ContextResult(FrozenModel):
    score: int = Field(ge=0, le=100)
    summary: str = ""
    matched_skills: list[MatchedSkill] = Field(default_factory=list)
    missing_requirements: list[MissingRequirement] = Field(default_factory=list)
    experience_alignments: list[ExperienceAlignment] = Field(default_factory=list)
    keyword_coverage: KeywordCoverage = Field(default_factory=KeywordCoverage)
    fit_assessment: FitAssessment = Field(default_factory=FitAssessment)
    suggestions: list[str] = Field(default_factory=list)

    @property
    def exact_skills(self) -> list[str]:
        return [s.skill for s in self.matched_skills if s.strength == "exact"]

    @property
    def high_relevance_alignments(self) -> list[ExperienceAlignment]:
        return [a for a in self.experience_alignments if a.relevance == "high"]


# --- Deterministic analyzers ------------------------------------------------


class SoftSkillAssessment(FrozenModel):
    skill: str
    evidence: list[str] = Field(default_factory=list)
    strength: Strength = "weak"
    bullet_ids: list[str] = Field(default_factory=list)


class CompanyResearchResult(FrozenModel):
    company_name: str
    experience_ids: list[str] = Field(default_factory=list)
    is_well_known: bool = False
    size: Literal["enterprise", "unknown"] = "unknown"
    context: str = ""  # empty when no context is needed


class ModelUsage(FrozenModel):
    """Token usage reported by one analyzer."""

    source: str
    model: str = ""
    input_tokens: int = 0
    output_tokens: int = 0

    @property
    def total_tokens(self) -> int:
        return self.input_tokens + self.output_tokens


# --- Aggregate --------------------------------------------------------------


class PreAnalysisResult(FrozenModel):
    impact: ImpactResult
    uniqueness: UniquenessResult
    context: ContextResult
    soft_skills: list[SoftSkillAssessment] = Field(default_factory=list)
    companies: list[CompanyResearchResult] = Field(default_factory=list)
    usage: list[ModelUsage] = Field(default_factory=list)
    analyzed_at: datetime = Field(default_factory=datetime.now)
    resume_id: str = ""
    job_id: str | None = None

    @property
    def unknown_companies(self) -> list[CompanyResearchResult]:
        return [c for c in self.companies if not c.is_well_known]

    @property
    def total_tokens(self) -> int:
        return sum(u.total_tokens for u in self.usage)
