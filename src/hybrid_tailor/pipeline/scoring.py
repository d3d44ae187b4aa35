"""Recruiter-readiness score computed from pre-analysis results (no model calls)."""

from __future__ import annotations

from hybrid_tailor.models.analysis import PreAnalysisResult
from hybrid_tailor.models.result import DimensionScore, RecruiterReadinessScore, ScoreLabel

# Fixed weights; impact carries the most.
DIMENSION_WEIGHTS: dict[str, float] = {
    "impact": 0.30,
    "customization": 0.25,
    "uniqueness": 0.20,
    "cultural_fit": 0.15,
    "context_translation": 0.10,
}

SCORE_THRESHOLDS: dict[str, tuple[int, int]] = {
    "exceptional": (90, 100),
    "strong": (75, 89),
    "good": (60, 74),
    "getting_there": (45, 59),
    "needs_work": (0, 44),
}

DIMENSION_DISPLAY_NAMES: dict[str, str] = {
    "impact": "Impact",
    "customization": "Job Customization",
    "uniqueness": "Uniqueness",
    "cultural_fit": "Cultural Fit",
    "context_translation": "Context Translation",
}

DIMENSION_SUGGESTIONS: dict[str, str] = {
    "impact": "Quantify more achievements with percentages, revenue, time saved or scale",
    "customization": "Mirror more of the job posting's keywords in your bullets and summary",
    "uniqueness": "Lead with the skill combinations and experiences that set you apart",
    "cultural_fit": "Show collaboration, leadership and communication through concrete actions",
    "context_translation": "Add a short descriptor for employers recruiters may not recognise",
}

CULTURAL_FIT_BASE = 30
_SOFT_SKILL_POINTS = {"strong": 20, "moderate": 12, "weak": 6}


def _clamp(value: float) -> int:
    return max(0, min(100, round(value)))


def get_score_label(score: float) -> ScoreLabel:
    if score >= 90:
        return "exceptional"
    if score >= 75:
        return "strong"
    if score >= 60:
        return "good"
    if score >= 45:
        return "getting_there"
    return "needs_work"


def get_readable_label(label: str) -> str:
    """``getting_there`` -> ``Getting There``."""
    return label.replace("_", " ").title()


def _raw_scores(pa: PreAnalysisResult) -> dict[str, int]:
    coverage = pa.context.keyword_coverage
    coverage_pct = coverage.percentage if coverage.total else pa.context.score

    if pa.companies:
        known = sum(1 for c in pa.companies if c.is_well_known)
        context_translation = 40 + 60 * known / len(pa.companies)
    else:
        context_translation = 100

    return {
        "impact": _clamp(pa.impact.score),
        "customization": _clamp(0.5 * coverage_pct + 0.5 * pa.context.score),
        "uniqueness": _clamp(0.8 * pa.uniqueness.score + 4 * min(len(pa.uniqueness.differentiators), 5)),
        "cultural_fit": _clamp(
            CULTURAL_FIT_BASE + sum(_SOFT_SKILL_POINTS[s.strength] for s in pa.soft_skills)
        ),
        "context_translation": _clamp(context_translation),
    }


def calculate_recruiter_readiness(pre_analysis: PreAnalysisResult) -> RecruiterReadinessScore:
    """Weighted composite of five recruiter dimensions, each bounded to 0..100."""
    dimensions: dict[str, DimensionScore] = {}
    for name, raw in _raw_scores(pre_analysis).items():
        weight = DIMENSION_WEIGHTS[name]
        dimensions[name] = DimensionScore(
            raw=raw,
            weight=weight,
            weighted=raw * weight,
            label=get_score_label(raw),
        )

    composite = _clamp(sum(d.weighted for d in dimensions.values()))

    weakest = sorted(
        (name for name, d in dimensions.items() if d.raw < 75),
        key=lambda name: (dimensions[name].raw, -DIMENSION_WEIGHTS[name]),
    )
    return RecruiterReadinessScore(
        composite=composite,
        label=get_score_label(composite),
        dimensions=dimensions,
        top_suggestions=[DIMENSION_SUGGESTIONS[name] for name in weakest[:3]],
    )


def get_score_summary(score: RecruiterReadinessScore) -> str:
    """One-line human summary of a readiness score."""
    strongest = max(score.dimensions, key=lambda name: score.dimensions[name].raw)
    weakest = min(score.dimensions, key=lambda name: score.dimensions[name].raw)
    summary = (
        f"{get_readable_label(score.label)} ({score.composite}/100). "
        f"Strongest: {DIMENSION_DISPLAY_NAMES[strongest]}"
    )
    if weakest != strongest and score.dimensions[weakest].raw < 75:
        summary += f"; focus next on {DIMENSION_DISPLAY_NAMES[weakest]}"
    return summary + "."
