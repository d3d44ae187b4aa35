"""Pydantic models for rule-engine output consumed by the rewriter."""

from __future__ import annotations

from pydantic import Field

from hybrid_tailor.models.analysis import ImpactLevel
from hybrid_tailor.models.base import FrozenModel
from hybrid_tailor.models.rules import RuleEvaluationResult, StrategicTone


class BulletTransformInstruction(FrozenModel):
    bullet_id: str
    experience_id: str
    original_text: str

    add_metrics: bool = False
    suggested_metrics: list[str] = Field(default_factory=list)
    improved_version: str | None = None  # impact analyzer's suggestion, if any

    add_keywords: bool = False
    keywords_to_add: list[str] = Field(default_factory=list)

    add_context: bool = False
    context_to_add: str = ""

    add_soft_skills: bool = False
    soft_skills_to_weave: list[str] = Field(default_factory=list)

    directives: list[str] = Field(default_factory=list)
    rule_ids: list[str] = Field(default_factory=list)
    tone: StrategicTone = "measured"
    improvement_level: ImpactLevel = "none"
    rewrite_instruction: str = ""

    @property
    def flags(self) -> list[str]:
        """Names of the change categories requested for this bullet."""
        return [
            name
            for name, on in (
                ("metrics", self.add_metrics),
                ("keywords", self.add_keywords),
                ("context", self.add_context),
                ("soft_skills", self.add_soft_skills),
            )
            if on
        ]

    @property
    def needs_rewrite(self) -> bool:
        return bool(self.flags) or self.improvement_level != "none"


class SummaryTransformInstruction(FrozenModel):
    original_summary: str = ""
    target_role: str
    target_company: str
    unique_differentiators: list[str] = Field(default_factory=list)
    matched_skills: list[str] = Field(default_factory=list)
    keywords_to_surface: list[str] = Field(default_factory=list)
    directives: list[str] = Field(default_factory=list)
    rule_ids: list[str] = Field(default_factory=list)
    tone: StrategicTone = "measured"
    improvement_level: ImpactLevel = "none"
    rewrite_instruction: str = ""


class WhyFitBullet(FrozenModel):
    label: str
    text: str
    source: str = "uniqueness"  # uniqueness | experience
    rarity: str = "uncommon"


class WhyFitInstruction(FrozenModel):
    bullets: list[WhyFitBullet] = Field(default_factory=list)
    rule_ids: list[str] = Field(default_factory=list)


class TechnicalSkillsPlan(FrozenModel):
    original: list[str] = Field(default_factory=list)
    reordered: list[str] = Field(default_factory=list)
    matched_first: list[str] = Field(default_factory=list)
    to_add: list[str] = Field(default_factory=list)  # suggestions only, never inserted


class SoftSkillsPlan(FrozenModel):
    original: list[str] = Field(default_factory=list)
    reordered: list[str] = Field(default_factory=list)
    emphasized: list[str] = Field(default_factory=list)


class SkillsReorderInstruction(FrozenModel):
    technical: TechnicalSkillsPlan = Field(default_factory=TechnicalSkillsPlan)
    soft: SoftSkillsPlan = Field(default_factory=SoftSkillsPlan)
    rule_ids: list[str] = Field(default_factory=list)


class ExperienceReorderInstruction(FrozenModel):
    experience_ids: list[str] = Field(default_factory=list)
    relevance_scores: dict[str, int] = Field(default_factory=dict)
    new_order: list[str] = Field(default_factory=list)  # always the original order


class TransformationInstructions(FrozenModel):
    bullets: list[BulletTransformInstruction] = Field(default_factory=list)
    summary: SummaryTransformInstruction
    why_fit: WhyFitInstruction = Field(default_factory=WhyFitInstruction)
    skills: SkillsReorderInstruction = Field(default_factory=SkillsReorderInstruction)
    experience_order: ExperienceReorderInstruction = Field(default_factory=ExperienceReorderInstruction)
    applied_rules: list[RuleEvaluationResult] = Field(default_factory=list)
    overall_tone: StrategicTone = "measured"

    @property
    def bullets_to_rewrite(self) -> list[BulletTransformInstruction]:
        return [b for b in self.bullets if b.needs_rewrite]
