"""Default transformation rule set.

Rules are plain configuration values: the engine receives them as an ordered
sequence and evaluates them by ascending priority, ties in sequence order.
"""

from __future__ import annotations

from collections.abc import Sequence

from hybrid_tailor.models.rules import (
    RecruiterIssue,
    RuleCondition,
    TransformationAction,
    TransformationRule,
)

RuleSet = Sequence[TransformationRule]

DEFAULT_RULES: tuple[TransformationRule, ...] = (
    TransformationRule(
        id="impact-quantify",
        name="Quantify unmeasured achievements",
        recruiter_issue="impact",
        priority=10,
        condition=RuleCondition(type="THRESHOLD", field="impact.bullets_improved", operator=">", value=0),
        actions=[
            TransformationAction(
                target="bullet",
                type="add_metrics",
                directive="Quantify the outcome with a concrete metric",
            ),
        ],
    ),
    TransformationRule(
        id="context-missing-keywords",
        name="Work missing job keywords into relevant bullets",
        recruiter_issue="customization",
        priority=20,
        condition=RuleCondition(
            type="THRESHOLD", field="context.keyword_coverage.missing_count", operator=">", value=0,
        ),
        actions=[
            TransformationAction(
                target="bullet",
                type="add_keywords",
                directive="Use the job's own terminology where it truthfully applies",
            ),
        ],
    ),
    TransformationRule(
        id="unknown-employers",
        name="Explain lesser-known employers",
        recruiter_issue="context_translation",
        priority=30,
        condition=RuleCondition(type="EXISTS", field="unknown_companies"),
        actions=[
            TransformationAction(
                target="bullet",
                type="add_context",
                directive="Give a short descriptor of the employer's industry or scale",
            ),
        ],
    ),
    TransformationRule(
        id="cultural-fit",
        name="Surface soft skills the job asks for",
        recruiter_issue="cultural_fit",
        priority=40,
        condition=RuleCondition(type="EXISTS", field="soft_skills"),
        actions=[
            TransformationAction(
                target="bullet",
                type="add_soft_skills",
                directive="Show the soft skill through the action, not by naming it",
                max_items=2,
            ),
        ],
    ),
    TransformationRule(
        id="uniqueness-highlight",
        name="Lead the summary with differentiators",
        recruiter_issue="uniqueness",
        priority=50,
        condition=RuleCondition(type="EXISTS", field="uniqueness.differentiators"),
        actions=[
            TransformationAction(
                target="summary",
                type="highlight_differentiators",
                directive="Open with the candidate's strongest differentiator",
            ),
        ],
    ),
    TransformationRule(
        id="summary-skills-align",
        name="Align the summary with the role",
        recruiter_issue="customization",
        priority=60,
        condition=RuleCondition(
            type="OR",
            conditions=[
                RuleCondition(type="EXISTS", field="context.matched_skills"),
                RuleCondition(
                    type="THRESHOLD", field="context.keyword_coverage.missing_count", operator=">", value=0,
                ),
            ],
        ),
        actions=[
            TransformationAction(
                target="summary",
                type="highlight_skills",
                directive="Name the matched skills the role cares about most",
                max_items=5,
            ),
            TransformationAction(
                target="summary",
                type="surface_keywords",
                directive="Mirror the posting's key terms where they are accurate",
            ),
        ],
    ),
    TransformationRule(
        id="reorder-skills",
        name="Put matched skills first",
        recruiter_issue="customization",
        priority=70,
        condition=RuleCondition(type="EXISTS", field="context.matched_skills"),
        actions=[
            TransformationAction(
                target="skills",
                type="reorder_skills",
                directive="List exact-match technical skills first",
            ),
        ],
    ),
    TransformationRule(
        id="why-fit",
        name="Add a 'Why I'm the right fit' section",
        recruiter_issue="uniqueness",
        priority=80,
        condition=RuleCondition(
            type="OR",
            conditions=[
                RuleCondition(type="EXISTS", field="uniqueness.rare_factors"),
                RuleCondition(type="EXISTS", field="context.high_relevance_alignments"),
            ],
        ),
        actions=[
            TransformationAction(
                target="why_fit",
                type="add_why_fit",
                directive="Back each claim with proof from the resume",
            ),
        ],
    ),
)


def get_all_enabled_rules(rules: RuleSet = DEFAULT_RULES) -> list[TransformationRule]:
    return [r for r in rules if r.enabled]


def get_rules_by_issue(issue: RecruiterIssue, rules: RuleSet = DEFAULT_RULES) -> list[TransformationRule]:
    return [r for r in rules if r.recruiter_issue == issue]


def get_rule_stats(rules: RuleSet = DEFAULT_RULES) -> dict:
    """Counts of rules overall, enabled, and per recruiter issue."""
    by_issue: dict[str, int] = {}
    for rule in rules:
        by_issue[rule.recruiter_issue] = by_issue.get(rule.recruiter_issue, 0) + 1
    return {
        "total": len(rules),
        "enabled": sum(1 for r in rules if r.enabled),
        "by_issue": by_issue,
    }
