"""Rule engine - turns pre-analysis results into rewrite instructions.

Everything here is synchronous and deterministic: the same resume, analysis,
job and rule set always produce the same instructions. No model calls.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any

from hybrid_tailor.models.analysis import IMPACT_LEVELS, ImpactBullet, PreAnalysisResult
from hybrid_tailor.models.instructions import (
    BulletTransformInstruction,
    ExperienceReorderInstruction,
    SkillsReorderInstruction,
    SoftSkillsPlan,
    SummaryTransformInstruction,
    TechnicalSkillsPlan,
    TransformationInstructions,
    WhyFitBullet,
    WhyFitInstruction,
)
from hybrid_tailor.models.job import JobData
from hybrid_tailor.models.resume import ResumeContent
from hybrid_tailor.models.rules import (
    RuleCondition,
    RuleEvaluationResult,
    StrategicTone,
    TransformationAction,
    TransformationRule,
)
from hybrid_tailor.pipeline.rules import DEFAULT_RULES, RuleSet

logger = logging.getLogger(__name__)

BULLET_TONE_GUIDANCE: dict[str, str] = {
    "confident": "Use strong action verbs and assertive language",
    "measured": "Balance confidence with precision",
    "humble": "Focus on learning and growth while highlighting contribution",
}

SUMMARY_TONE_GUIDANCE: dict[str, str] = {
    "confident": "Position as the ideal candidate with a proven track record",
    "measured": "Show strong fit while acknowledging growth areas",
    "humble": "Emphasize eagerness to contribute and learn",
}

WHY_FIT_LABELS: dict[str, str] = {
    "skill_combination": "Unique skill set:",
    "career_transition": "Diverse perspective:",
    "achievement": "Proven track record:",
    "domain_expertise": "Deep expertise:",
}
MAX_WHY_FIT_BULLETS = 3
MIN_WHY_FIT_BULLETS = 2

RELEVANCE_SCORES = {"high": 100, "medium": 60, "low": 30}


# --- Conditions --------------------------------------------------------------


def resolve_path(obj: Any, path: str) -> Any:
    """Follow a dotted path through models, properties and dicts; None when absent."""
    current = obj
    for part in path.split("."):
        if current is None or part.startswith("_"):
            return None
        if isinstance(current, dict):
            current = current.get(part)
        else:
            current = getattr(current, part, None)
    return current


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def evaluate_condition(condition: RuleCondition, pre_analysis: PreAnalysisResult) -> bool:
    kind = condition.type
    if kind in ("AND", "OR", "NOT"):
        children = condition.conditions
        if not children:
            return True
        if kind == "AND":
            return all(evaluate_condition(c, pre_analysis) for c in children)
        if kind == "OR":
            return any(evaluate_condition(c, pre_analysis) for c in children)
        return not evaluate_condition(children[0], pre_analysis)

    if not condition.field:
        return False
    value = resolve_path(pre_analysis, condition.field)

    if kind == "THRESHOLD":
        target = condition.value
        if not (_is_number(value) and _is_number(target)):
            return False
        op = condition.operator
        if op == "<":
            return value < target
        if op == "<=":
            return value <= target
        if op == "=":
            return value == target
        if op == ">=":
            return value >= target
        if op == ">":
            return value > target
        return False

    if kind == "MATCH":
        target = condition.value
        if target is None:
            return False
        if condition.operator == "in":
            return isinstance(target, (list, tuple)) and value in target
        if condition.operator == "contains":
            if not isinstance(target, str):
                return False
            needle = target.lower()
            if isinstance(value, str):
                return needle in value.lower()
            if isinstance(value, (list, tuple)):
                return any(needle in str(v).lower() for v in value)
            return False
        return value == target

    if kind == "EXISTS":
        if isinstance(value, (list, tuple, dict, str)):
            return len(value) > 0
        return value is not None

    return False


def evaluate_rules(rules: RuleSet, pre_analysis: PreAnalysisResult) -> list[RuleEvaluationResult]:
    """Matched rules in ascending priority; ties keep their configured order."""
    results = []
    for rule in sorted(rules, key=lambda r: r.priority):
        if not (rule.enabled and evaluate_condition(rule.condition, pre_analysis)):
            continue
        results.append(RuleEvaluationResult(
            rule_id=rule.id,
            rule_name=rule.name,
            matched=True,
            recruiter_issue=rule.recruiter_issue,
            actions=rule.actions,
        ))
    return results


def calculate_strategic_tone(pre_analysis: PreAnalysisResult) -> StrategicTone:
    score = pre_analysis.context.score
    if score >= 75:
        return "confident"
    if score >= 50:
        return "measured"
    return "humble"


# --- Instruction generation --------------------------------------------------


def _mentions(text: str, phrase: str) -> bool:
    """Whole-phrase, case-insensitive match treating spaces and hyphens alike."""
    words = [re.escape(w) for w in re.split(r"[\s_-]+", phrase.strip()) if w]
    if not words:
        return False
    return re.search(r"\b" + r"[\s-]+".join(words) + r"\b", text, re.IGNORECASE) is not None


def _add(items: list, *values) -> None:
    for value in values:
        if value not in items:
            items.append(value)


def _level_max(a: str, b: str) -> str:
    return a if IMPACT_LEVELS.index(a) >= IMPACT_LEVELS.index(b) else b


@dataclass
class _BulletDraft:
    bullet_id: str
    experience_id: str
    original_text: str
    add_metrics: bool = False
    suggested_metrics: list[str] = field(default_factory=list)
    improved_version: str | None = None
    impact_level: str = "none"
    add_keywords: bool = False
    keywords_to_add: list[str] = field(default_factory=list)
    add_context: bool = False
    context_to_add: str = ""
    add_soft_skills: bool = False
    soft_skills_to_weave: list[str] = field(default_factory=list)
    directives: list[str] = field(default_factory=list)
    rule_ids: list[str] = field(default_factory=list)

    def touch(self, rule_id: str, action: TransformationAction) -> None:
        _add(self.directives, action.directive)
        _add(self.rule_ids, rule_id)

    def build(self, tone: StrategicTone) -> BulletTransformInstruction:
        flags = sum((self.add_metrics, self.add_keywords, self.add_context, self.add_soft_skills))
        flag_level = "none" if flags == 0 else "minor" if flags == 1 else "major"
        level = _level_max(self.impact_level if self.add_metrics else "none", flag_level)

        parts = []
        if self.add_metrics and self.improved_version and level != "none":
            parts.append(f'Start with: "{self.improved_version}"')
        else:
            parts.append(f'Original: "{self.original_text}"')
        if self.add_metrics and self.suggested_metrics:
            parts.append(f"Add metrics: {', '.join(self.suggested_metrics)}")
        if self.add_keywords and self.keywords_to_add:
            parts.append(f"Naturally incorporate: {', '.join(self.keywords_to_add)}")
        if self.add_context and self.context_to_add:
            parts.append(f"Briefly describe what {self.context_to_add} does")
        if self.add_soft_skills and self.soft_skills_to_weave:
            parts.append(f"Show evidence of: {', '.join(self.soft_skills_to_weave)}")
        parts.extend(self.directives)
        parts.append(BULLET_TONE_GUIDANCE[tone])

        return BulletTransformInstruction(
            bullet_id=self.bullet_id,
            experience_id=self.experience_id,
            original_text=self.original_text,
            add_metrics=self.add_metrics,
            suggested_metrics=self.suggested_metrics,
            improved_version=self.improved_version,
            add_keywords=self.add_keywords,
            keywords_to_add=self.keywords_to_add,
            add_context=self.add_context,
            context_to_add=self.context_to_add,
            add_soft_skills=self.add_soft_skills,
            soft_skills_to_weave=self.soft_skills_to_weave,
            directives=self.directives,
            rule_ids=self.rule_ids,
            tone=tone,
            improvement_level=level,
            rewrite_instruction=". ".join(parts) if level != "none" else "",
        )


class _Builder:
    """Accumulates the effects of matched rules before freezing them into instructions."""

    def __init__(self, resume: ResumeContent, pre_analysis: PreAnalysisResult, job: JobData):
        self.resume = resume
        self.pa = pre_analysis
        self.job = job
        self.bullets = {
            b.id: _BulletDraft(b.id, exp.id, b.text) for exp, b in resume.iter_bullets()
        }
        self.targets: dict[str, list[str]] = {}

        self.summary_rules: list[str] = []
        self.summary_directives: list[str] = []
        self.summary_contributions = 0
        self.differentiators: list[str] = []
        self.matched_skills: list[str] = []
        self.keywords_to_surface: list[str] = []

        self.skills_rules: list[str] = []
        self.skills_matched: list[str] = []
        self.skills_to_add: list[str] = []
        self.soft_emphasized: list[str] = []
        self.why_fit_rules: list[str] = []
        self.why_fit: list[WhyFitBullet] = []

    # bullet scoping

    def _impact_for(self, bullet: _BulletDraft) -> ImpactBullet | None:
        for ib in self.pa.impact.bullets:
            if ib.bullet_id == bullet.bullet_id:
                return ib
        for ib in self.pa.impact.bullets:
            if ib.bullet_id is None and ib.experience_id == bullet.experience_id \
                    and ib.original == bullet.original_text:
                return ib
        return None

    def _bullets_of(self, experience_ids: list[str]) -> list[_BulletDraft]:
        wanted = set(experience_ids)
        return [b for b in self.bullets.values() if b.experience_id in wanted]

    def apply_bullet_action(self, rule_id: str, action: TransformationAction) -> list[str]:
        touched: list[_BulletDraft] = []

        if action.type == "add_metrics":
            for draft in self.bullets.values():
                ib = self._impact_for(draft)
                if ib is None or ib.improvement == "none":
                    continue
                draft.add_metrics = True
                _add(draft.suggested_metrics, *ib.metrics)
                draft.improved_version = ib.improved or None
                draft.impact_level = ib.improvement
                touched.append(draft)

        elif action.type == "add_keywords":
            keywords = self.pa.context.keyword_coverage.missing[: action.max_items]
            if keywords:
                alignments = [a for a in self.pa.context.experience_alignments if a.experience_id]
                if alignments:
                    scope = self._bullets_of(
                        [a.experience_id for a in alignments if a.relevance in ("high", "medium")]
                    )
                else:
                    scope = list(self.bullets.values())
                for draft in scope:
                    draft.add_keywords = True
                    _add(draft.keywords_to_add, *keywords)
                    touched.append(draft)

        elif action.type == "add_context":
            for company in self.pa.unknown_companies:
                for exp in self.resume.experiences:
                    if exp.id in company.experience_ids and exp.bullets:
                        draft = self.bullets[exp.bullets[0].id]
                        draft.add_context = True
                        draft.context_to_add = company.context or company.company_name
                        touched.append(draft)

        elif action.type == "add_soft_skills":
            wanted = [s for s in self.pa.soft_skills if _mentions(self.job.full_text, s.skill)]
            for skill in wanted:
                for bullet_id in skill.bullet_ids:
                    draft = self.bullets.get(bullet_id)
                    if draft is None or len(draft.soft_skills_to_weave) >= action.max_items:
                        continue
                    draft.add_soft_skills = True
                    _add(draft.soft_skills_to_weave, skill.skill)
                    touched.append(draft)

        ids: list[str] = []
        for draft in touched:
            draft.touch(rule_id, action)
            _add(ids, draft.bullet_id)
        return ids

    # summary / skills / why-fit

    def apply_summary_action(self, rule_id: str, action: TransformationAction) -> bool:
        context = self.pa.context
        if action.type == "highlight_differentiators":
            added = self.pa.uniqueness.differentiators[: action.max_items]
            _add(self.differentiators, *added)
        elif action.type == "highlight_skills":
            skills = context.exact_skills or [s.skill for s in context.matched_skills]
            added = skills[: action.max_items]
            _add(self.matched_skills, *added)
        elif action.type == "surface_keywords":
            added = context.keyword_coverage.missing[: action.max_items]
            _add(self.keywords_to_surface, *added)
        else:
            added = []
        if not added:
            return False
        self.summary_contributions += 1
        _add(self.summary_directives, action.directive)
        _add(self.summary_rules, rule_id)
        return True

    def apply_skills_action(self, rule_id: str, action: TransformationAction) -> bool:
        exact = {s.lower() for s in self.pa.context.exact_skills}
        _add(self.skills_matched, *[s for s in self.resume.skills.technical if s.lower() in exact])

        to_add = [
            r.requirement
            for r in self.pa.context.missing_requirements
            if r.importance in ("nice_to_have", "important") and len(r.requirement.split()) <= 3
        ][: action.max_items]
        _add(self.skills_to_add, *to_add)

        _add(self.soft_emphasized, *[s.skill for s in self.pa.soft_skills if s.strength == "strong"])
        _add(self.skills_rules, rule_id)
        return True

    def apply_why_fit_action(self, rule_id: str, action: TransformationAction) -> bool:
        limit = min(action.max_items, MAX_WHY_FIT_BULLETS)
        bullets = [
            WhyFitBullet(
                label=WHY_FIT_LABELS.get(factor.type, "Distinctive background:"),
                text=factor.description,
                source="uniqueness",
                rarity=factor.rarity,
            )
            for factor in self.pa.uniqueness.rare_factors[:limit]
        ]
        if len(bullets) < MIN_WHY_FIT_BULLETS:
            for alignment in self.pa.context.high_relevance_alignments[: MIN_WHY_FIT_BULLETS - len(bullets)]:
                bullets.append(WhyFitBullet(
                    label="Directly relevant:",
                    text=f"{alignment.experience_title} experience - {alignment.explanation}",
                    source="experience",
                    rarity="uncommon",
                ))
        if not bullets:
            return False
        # earlier rules' bullets stay; later ones only fill free slots
        seen = {(b.label, b.text) for b in self.why_fit}
        for bullet in bullets:
            if len(self.why_fit) >= MAX_WHY_FIT_BULLETS:
                break
            if (bullet.label, bullet.text) not in seen:
                seen.add((bullet.label, bullet.text))
                self.why_fit.append(bullet)
        _add(self.why_fit_rules, rule_id)
        return True

    # assembly

    def summary_instruction(self, tone: StrategicTone) -> SummaryTransformInstruction:
        level = "none"
        if self.summary_contributions == 1:
            level = "minor"
        elif self.summary_contributions > 1:
            level = "major"

        parts = []
        if level != "none":
            company = f" at {self.job.company_name}" if self.job.company_name else ""
            parts.append(f"Target role: {self.job.title}{company}")
            if self.differentiators:
                parts.append(f"Lead with unique value: {', '.join(self.differentiators)}")
            if self.matched_skills:
                parts.append(f"Highlight relevant skills: {', '.join(self.matched_skills)}")
            if self.keywords_to_surface:
                parts.append(f"Surface keywords: {', '.join(self.keywords_to_surface)}")
            parts.extend(self.summary_directives)
            parts.append(SUMMARY_TONE_GUIDANCE[tone])

        return SummaryTransformInstruction(
            original_summary=self.resume.summary,
            target_role=self.job.title,
            target_company=self.job.company_name or "the company",
            unique_differentiators=self.differentiators,
            matched_skills=self.matched_skills,
            keywords_to_surface=self.keywords_to_surface,
            directives=self.summary_directives,
            rule_ids=self.summary_rules,
            tone=tone,
            improvement_level=level,
            rewrite_instruction=". ".join(parts),
        )

    def skills_instruction(self) -> SkillsReorderInstruction:
        technical = list(self.resume.skills.technical)
        soft = list(self.resume.skills.soft)
        if not self.skills_rules:
            return SkillsReorderInstruction(
                technical=TechnicalSkillsPlan(original=technical, reordered=technical),
                soft=SoftSkillsPlan(original=soft, reordered=soft),
            )

        others = [s for s in technical if s not in self.skills_matched]
        soft_first = [
            s for s in soft
            if any(_mentions(s, e) or _mentions(e, s) for e in self.soft_emphasized)
        ]
        soft_rest = [s for s in soft if s not in soft_first]
        return SkillsReorderInstruction(
            technical=TechnicalSkillsPlan(
                original=technical,
                reordered=self.skills_matched + others,
                matched_first=self.skills_matched,
                to_add=self.skills_to_add,
            ),
            soft=SoftSkillsPlan(original=soft, reordered=soft_first + soft_rest, emphasized=self.soft_emphasized),
            rule_ids=self.skills_rules,
        )

    def experience_order(self) -> ExperienceReorderInstruction:
        scores: dict[str, int] = {}
        for exp in self.resume.experiences:
            alignment = next(
                (a for a in self.pa.context.experience_alignments
                 if a.experience_id == exp.id or (a.experience_id is None and a.experience_title == exp.title)),
                None,
            )
            scores[exp.id] = RELEVANCE_SCORES[alignment.relevance] if alignment else 50
        ids = [e.id for e in self.resume.experiences]
        return ExperienceReorderInstruction(experience_ids=ids, relevance_scores=scores, new_order=ids)


def generate_transformation_instructions(
    resume: ResumeContent,
    pre_analysis: PreAnalysisResult,
    job: JobData,
    rules: RuleSet = DEFAULT_RULES,
) -> TransformationInstructions:
    """Evaluate ``rules`` against the analysis and derive per-field instructions.

    Matched rules only add directives and flags. A bullet or summary no rule
    touches keeps improvement level ``none`` and is left alone downstream.
    """
    tone = calculate_strategic_tone(pre_analysis)
    matched = evaluate_rules(rules, pre_analysis)
    builder = _Builder(resume, pre_analysis, job)

    applied: list[RuleEvaluationResult] = []
    for result in matched:
        targets: list[str] = []
        for action in result.actions:
            if action.target == "bullet":
                _add(targets, *builder.apply_bullet_action(result.rule_id, action))
            elif action.target == "summary":
                if builder.apply_summary_action(result.rule_id, action):
                    _add(targets, "summary")
            elif action.target == "skills":
                if builder.apply_skills_action(result.rule_id, action):
                    _add(targets, "skills")
            elif action.target == "why_fit":
                if builder.apply_why_fit_action(result.rule_id, action):
                    _add(targets, "why_fit")
        applied.append(result.model_copy(update={"matched_targets": targets}))

    bullets = [draft.build(tone) for draft in builder.bullets.values()]
    instructions = TransformationInstructions(
        bullets=bullets,
        summary=builder.summary_instruction(tone),
        why_fit=WhyFitInstruction(bullets=builder.why_fit, rule_ids=builder.why_fit_rules),
        skills=builder.skills_instruction(),
        experience_order=builder.experience_order(),
        applied_rules=applied,
        overall_tone=tone,
    )
    logger.info(
        "Rules applied: %s; %d/%d bullets flagged, tone=%s",
        [r.rule_id for r in applied], len(instructions.bullets_to_rewrite), len(bullets), tone,
    )
    return instructions
