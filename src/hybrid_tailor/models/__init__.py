"""Data models for the hybrid tailoring pipeline."""

from hybrid_tailor.models.analysis import (
    CompanyResearchResult,
    ContextResult,
    ImpactResult,
    ModelUsage,
    PreAnalysisResult,
    SoftSkillAssessment,
    UniquenessResult,
)
from hybrid_tailor.models.instructions import (
    BulletTransformInstruction,
    SummaryTransformInstruction,
    TransformationInstructions,
    WhyFitInstruction,
)
from hybrid_tailor.models.job import JobData
from hybrid_tailor.models.result import (
    HybridTailorResult,
    RecruiterReadinessScore,
    TailoringChanges,
    TailoringPreview,
    TokenUsage,
)
from hybrid_tailor.models.resume import Bullet, ContactInfo, Experience, ResumeContent, Skills
from hybrid_tailor.models.rules import (
    RuleCondition,
    RuleEvaluationResult,
    TransformationAction,
    TransformationRule,
)

__all__ = [
    "Bullet",
    "BulletTransformInstruction",
    "CompanyResearchResult",
    "ContactInfo",
    "ContextResult",
    "Experience",
    "HybridTailorResult",
    "ImpactResult",
    "JobData",
    "ModelUsage",
    "PreAnalysisResult",
    "RecruiterReadinessScore",
    "ResumeContent",
    "RuleCondition",
    "RuleEvaluationResult",
    "Skills",
    "SoftSkillAssessment",
    "SummaryTransformInstruction",
    "TailoringChanges",
    "TailoringPreview",
    "TokenUsage",
    "TransformationAction",
    "TransformationInstructions",
    "TransformationRule",
    "UniquenessResult",
    "WhyFitInstruction",
]
