"""Tests for deterministic soft-skill extraction."""

from __future__ import annotations

from hybrid_tailor.analyzers.soft_skills import SoftSkillAnalyzer, extract_soft_skills
from hybrid_tailor.models.resume import ResumeContent


def _resume(*bullets: str) -> ResumeContent:
    return ResumeContent.model_validate({
        "contact": {"name": "A"},
        "experiences": [{
            "id": "e1", "company": "X", "title": "Engineer",
            "bullets": [{"id": f"b{i}", "text": text} for i, text in enumerate(bullets, start=1)],
        }],
    })


class TestExtractSoftSkills:
    def test_sample_resume(self, sample_resume):
        skills = extract_soft_skills(sample_resume)

        assert [(s.skill, s.strength) for s in skills] == [
            ("leadership", "weak"),
            ("communication", "weak"),
            ("collaboration", "weak"),
        ]
        assert skills[0].evidence == ["Led"]
        assert skills[0].bullet_ids == ["b1"]

    def test_strength_follows_distinct_evidence(self):
        skills = extract_soft_skills(_resume(
            "Led the payments squad",
            "Mentored three junior engineers",
            "Managed vendor relationships",
            "Coached interns on code review",
            "Resolved production incidents",
            "Debugged flaky tests",
        ))
        by_name = {s.skill: s for s in skills}

        assert by_name["leadership"].strength == "strong"
        assert by_name["problem solving"].strength == "moderate"
        assert skills[0].skill == "leadership"

    def test_repeated_evidence_counts_once(self):
        skills = extract_soft_skills(_resume("Led project A", "Led project B"))

        (leadership,) = skills
        assert leadership.evidence == ["Led"]
        assert leadership.strength == "weak"
        assert leadership.bullet_ids == ["b1", "b2"]

    def test_first_matching_pattern_wins_per_bullet(self):
        (leadership,) = [
            s for s in extract_soft_skills(_resume("Led a cross-functional redesign"))
            if s.skill == "leadership"
        ]
        assert leadership.evidence == ["Led"]

    def test_multi_word_phrases(self):
        skills = extract_soft_skills(_resume("Worked with design on onboarding"))
        assert [s.skill for s in skills] == ["collaboration"]
        assert skills[0].evidence == ["Worked with"]

    def test_no_matches(self):
        assert extract_soft_skills(_resume("Wrote code")) == []


class TestSoftSkillAnalyzer:
    async def test_no_model_usage(self, sample_resume, sample_job):
        output = await SoftSkillAnalyzer().analyze(sample_resume, sample_job)

        assert len(output.result) == 3
        assert output.usage.source == "soft_skills"
        assert output.usage.total_tokens == 0
