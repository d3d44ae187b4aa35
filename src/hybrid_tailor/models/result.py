"""Pydantic models for the tailoring result, diff and score."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import Field

from hybrid_tailor.models.analysis import PreAnalysisResult
from hybrid_tailor.models.base import FrozenModel
from hybrid_tailor.models.resume import ResumeContent

ChangeType = Literal["metrics", "keywords", "context", "soft_skills", "combined"]
ScoreLabel = Literal["exceptional", "strong", "good", "getting_there", "needs_work"]


class SummaryDiff(FrozenModel):
    before: str
    after: str


class BulletDiff(FrozenModel):
    bullet_id: str
    experience_id: str
    before: str
    after: str
    change_type: ChangeType


class TailoringChanges(FrozenModel):
    summary_modified: bool = False
    summary_diff: SummaryDiff | None = None
    experience_bullets_modified: int = 0
    bullet_diffs: list[BulletDiff] = Field(default_factory=list)
    skills_reordered: bool = False
    skills_suggested: list[str] = Field(default_factory=list)
    experiences_reordered: bool = False
    why_fit_section_added: bool = False
    why_fit_bullet_count: int = 0


class WhyFitEntry(FrozenModel):
    label: str
    text: str


class DimensionScore(FrozenModel):
    raw: int  # 0-100
    weight: float
    weighted: float
    label: ScoreLabel


class RecruiterReadinessScore(FrozenModel):
    composite: int = Field(ge=0, le=100)
    label: ScoreLabel
    dimensions: dict[str, DimensionScore]
    top_suggestions: list[str] = Field(default_factory=list)


class TokenUsage(FrozenModel):
    pre_analysis: int = 0
    rewriting: int = 0
    total: int = 0
    saved_vs_pure_ai: int = 0
    estimated_cost_usd: float = 0.0


class HybridTailorResult(FrozenModel):
    tailored_resume: ResumeContent
    pre_analysis: PreAnalysisResult
    applied_rules: list[str]
    changes: TailoringChanges
    why_fit: list[WhyFitEntry] = Field(default_factory=list)
    quality_score: RecruiterReadinessScore
    token_usage: TokenUsage
    processing_time_ms: int = 0
    phase_timings_ms: dict[str, int] = Field(default_factory=dict)
    tailored_at: datetime = Field(default_factory=datetime.now)


class EstimatedChanges(FrozenModel):
    bullets_to_improve: int = 0
    unique_differentiators: int = 0
    missing_keywords: int = 0
    soft_skills_detected: int = 0


class TailoringPreview(FrozenModel):
    """Analysis-only result: what tailoring would change, without rewriting."""

    pre_analysis: PreAnalysisResult
    quality_score: RecruiterReadinessScore
    estimated_changes: EstimatedChanges
