"""Pydantic model for the target job posting."""

from __future__ import annotations

from pydantic import Field

from hybrid_tailor.models.base import FrozenModel


class JobData(FrozenModel):
    id: str | None = None
    title: str
    company_name: str = ""
    description: str = ""
    requirements: list[str] = Field(default_factory=list)
    skills: list[str] = Field(default_factory=list)

    def to_prompt_text(self) -> str:
        parts = [f"Title: {self.title}"]
        if self.company_name:
            parts.append(f"Company: {self.company_name}")
        if self.description:
            parts.append(f"\nDescription:\n{self.description}")
        if self.requirements:
            parts.append("\nRequirements:\n" + "\n".join(f"- {r}" for r in self.requirements))
        if self.skills:
            parts.append("\nSkills: " + ", ".join(self.skills))
        return "\n".join(parts)

    @property
    def full_text(self) -> str:
        """All job text, for keyword lookups."""
        return " ".join([self.title, self.description, *self.requirements, *self.skills])
