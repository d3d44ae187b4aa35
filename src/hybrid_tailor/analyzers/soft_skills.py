"""Soft-skill evidence extraction from bullet verbs (no model call)."""

from __future__ import annotations

import logging
import re

from hybrid_tailor.analyzers.base import AnalyzerOutput, usage_from
from hybrid_tailor.models.analysis import SoftSkillAssessment
from hybrid_tailor.models.job import JobData
from hybrid_tailor.models.resume import ResumeContent

logger = logging.getLogger(__name__)


def _words(*alternatives: str) -> re.Pattern[str]:
    return re.compile(r"\b(" + "|".join(alternatives) + r")\b", re.IGNORECASE)


SOFT_SKILL_PATTERNS: dict[str, tuple[re.Pattern[str], ...]] = {
    "leadership": (
        _words("led", "leading", "lead", "managed", "mentored", "coached", "directed", "headed", "oversaw"),
        _words("team of", "cross-functional", "coordinated", "facilitated"),
    ),
    "communication": (
        _words("presented", "communicated", "collaborated", "partnered", "liaised", "reported"),
        _words("stakeholder", "executive", "client-facing", "articulated", "conveyed"),
    ),
    "problem solving": (
        _words("solved", "resolved", "troubleshot", "debugged", "diagnosed", "identified", "analyzed"),
        _words("optimized", "improved", "enhanced", "streamlined", "automated"),
    ),
    "adaptability": (
        _words("adapted", "pivoted", "learned", "transitioned", "transformed", "migrated"),
        _words("agile", "flexible", "cross-trained", "multi-disciplinary"),
    ),
    "collaboration": (
        _words("collaborated", "partnered", "worked with", "teamed", "joined forces"),
        _words("cross-team", "interdepartmental", "cross-functional"),
    ),
    "initiative": (
        _words("initiated", "launched", "pioneered", "spearheaded", "proposed", "introduced"),
        _words("drove", "championed", "advocated", "established"),
    ),
}

_STRENGTH_ORDER = {"strong": 0, "moderate": 1, "weak": 2}


def extract_soft_skills(resume: ResumeContent) -> list[SoftSkillAssessment]:
    """Detect soft skills from bullet wording, strongest evidence first.

    Each bullet counts at most once per skill (first matching pattern wins);
    strength follows the number of distinct evidence phrases.
    """
    found: dict[str, tuple[list[str], list[str]]] = {}
    for _, bullet in resume.iter_bullets():
        for skill, patterns in SOFT_SKILL_PATTERNS.items():
            for pattern in patterns:
                match = pattern.search(bullet.text)
                if not match:
                    continue
                evidence, bullet_ids = found.setdefault(skill, ([], []))
                if match.group(0) not in evidence:
                    evidence.append(match.group(0))
                if bullet.id not in bullet_ids:
                    bullet_ids.append(bullet.id)
                break

    assessments = []
    for skill, (evidence, bullet_ids) in found.items():
        if len(evidence) >= 4:
            strength = "strong"
        elif len(evidence) >= 2:
            strength = "moderate"
        else:
            strength = "weak"
        assessments.append(
            SoftSkillAssessment(skill=skill, evidence=evidence, strength=strength, bullet_ids=bullet_ids)
        )
    # sorted() is stable, so skills of equal strength keep pattern order
    return sorted(assessments, key=lambda a: _STRENGTH_ORDER[a.strength])


class SoftSkillAnalyzer:
    name = "soft_skills"

    async def analyze(self, resume: ResumeContent, job: JobData) -> AnalyzerOutput:
        skills = extract_soft_skills(resume)
        logger.debug("Soft skills detected: %s", [(s.skill, s.strength) for s in skills])
        return AnalyzerOutput(skills, usage_from(self.name))
