"""Pydantic models describing transformation rules."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import Field

from hybrid_tailor.models.base import FrozenModel

RecruiterIssue = Literal["uniqueness", "impact", "context_translation", "cultural_fit", "customization"]
StrategicTone = Literal["confident", "measured", "humble"]

ActionTarget = Literal["bullet", "summary", "skills", "why_fit"]
ActionType = Literal[
    "add_metrics",
    "add_keywords",
    "add_context",
    "add_soft_skills",
    "highlight_differentiators",
    "highlight_skills",
    "surface_keywords",
    "reorder_skills",
    "add_why_fit",
]


class RuleCondition(FrozenModel):
    """Condition tree evaluated against dotted paths into PreAnalysisResult.

    ``AND``/``OR``/``NOT`` combine ``conditions``; ``THRESHOLD`` compares a
    numeric field; ``MATCH`` tests equality, ``in`` or ``contains``;
    ``EXISTS`` is true for non-empty values.
    """

    type: Literal["AND", "OR", "NOT", "THRESHOLD", "MATCH", "EXISTS"]
    field: str | None = None
    operator: Literal["<", "<=", "=", ">=", ">", "in", "contains"] | None = None
    value: Any = None
    conditions: list[RuleCondition] = Field(default_factory=list)


class TransformationAction(FrozenModel):
    target: ActionTarget
    type: ActionType
    directive: str  # human-readable instruction added for every matched field
    max_items: int = 3


class TransformationRule(FrozenModel):
    id: str
    name: str
    recruiter_issue: RecruiterIssue
    priority: int  # lower runs first
    condition: RuleCondition
    actions: list[TransformationAction]
    enabled: bool = True
    strategic_tone: StrategicTone | None = None


class RuleEvaluationResult(FrozenModel):
    rule_id: str
    rule_name: str
    matched: bool
    recruiter_issue: RecruiterIssue
    matched_targets: list[str] = Field(default_factory=list)
    actions: list[TransformationAction] = Field(default_factory=list)
