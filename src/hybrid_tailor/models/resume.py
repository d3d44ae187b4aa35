"""Pydantic models for structured resume content."""

from __future__ import annotations

from collections.abc import Iterator

from pydantic import Field, model_validator

from hybrid_tailor.models.base import FrozenModel


class ContactInfo(FrozenModel):
    name: str
    email: str | None = None
    phone: str | None = None
    location: str | None = None
    linkedin: str | None = None
    website: str | None = None


class Bullet(FrozenModel):
    id: str
    text: str
    is_modified: bool = False


class Experience(FrozenModel):
    id: str
    company: str
    title: str
    location: str | None = None
    start_date: str | None = None
    end_date: str | None = None  # None = current
    bullets: list[Bullet] = Field(default_factory=list)


class Education(FrozenModel):
    id: str
    institution: str
    degree: str
    field: str | None = None
    graduation_date: str | None = None


class Skills(FrozenModel):
    technical: list[str] = Field(default_factory=list)
    soft: list[str] = Field(default_factory=list)
    languages: list[str] = Field(default_factory=list)
    certifications: list[str] = Field(default_factory=list)


class Project(FrozenModel):
    id: str
    name: str
    description: str = ""
    technologies: list[str] = Field(default_factory=list)


class ResumeContent(FrozenModel):
    contact: ContactInfo
    summary: str = ""
    experiences: list[Experience] = Field(default_factory=list)
    education: list[Education] = Field(default_factory=list)
    skills: Skills = Field(default_factory=Skills)
    projects: list[Project] = Field(default_factory=list)

    @model_validator(mode="after")
    def _ids_unique(self) -> ResumeContent:
        for kind, ids in (
            ("experience", [e.id for e in self.experiences]),
            ("bullet", [b.id for _, b in self.iter_bullets()]),
            ("education", [e.id for e in self.education]),
        ):
            seen: set[str] = set()
            for item_id in ids:
                if item_id in seen:
                    raise ValueError(f"duplicate {kind} id: {item_id!r}")
                seen.add(item_id)
        return self

    def iter_bullets(self) -> Iterator[tuple[Experience, Bullet]]:
        """Yield (experience, bullet) pairs in resume order."""
        for exp in self.experiences:
            for bullet in exp.bullets:
                yield exp, bullet

    @property
    def bullet_count(self) -> int:
        return sum(len(exp.bullets) for exp in self.experiences)

    def to_prompt_text(self) -> str:
        """Plain-text rendering used inside analysis prompts."""
        lines = [self.contact.name]
        if self.summary:
            lines += ["", "SUMMARY", self.summary]
        if self.experiences:
            lines += ["", "EXPERIENCE"]
            for exp in self.experiences:
                dates = " - ".join(d for d in (exp.start_date, exp.end_date or "Present") if d)
                lines.append(f"[{exp.id}] {exp.title} at {exp.company} ({dates})")
                lines.extend(f"  - [{b.id}] {b.text}" for b in exp.bullets)
        if self.education:
            lines += ["", "EDUCATION"]
            for edu in self.education:
                detail = f"{edu.degree} in {edu.field}" if edu.field else edu.degree
                lines.append(f"{detail}, {edu.institution}")
        skills = self.skills
        skill_lines = [
            f"{label}: {', '.join(values)}"
            for label, values in (
                ("Technical", skills.technical),
                ("Soft", skills.soft),
                ("Languages", skills.languages),
                ("Certifications", skills.certifications),
            )
            if values
        ]
        if skill_lines:
            lines += ["", "SKILLS", *skill_lines]
        if self.projects:
            lines += ["", "PROJECTS"]
            for project in self.projects:
                lines.append(f"{project.name}: {project.description}")
        return "\n".join(lines)
