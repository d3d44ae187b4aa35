"""Guided rewriter - the only phase where the model writes resume text.

The model never decides what changes: it receives the rule engine's
instructions and rewrites exactly the fields they flag, batched into at most
three calls (bullets, summary, why-fit).
"""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass, field

from hybrid_tailor.analyzers.base import JSON_ONLY, as_dicts, usage_from
from hybrid_tailor.clients.completion import CompletionService, LLMResponse, request_json
from hybrid_tailor.config import PipelineConfig, RetryConfig
from hybrid_tailor.models.analysis import ModelUsage
from hybrid_tailor.models.instructions import (
    BulletTransformInstruction,
    SummaryTransformInstruction,
    TransformationInstructions,
    WhyFitInstruction,
)
from hybrid_tailor.models.result import BulletDiff, SummaryDiff, TailoringChanges, WhyFitEntry
from hybrid_tailor.models.resume import ResumeContent

logger = logging.getLogger(__name__)

BULLET_SYSTEM_PROMPT = """\
You are a precise resume editor. Follow instructions exactly.

Each bullet comes with its original text, specific modification instructions and a tone.

Rules:
- Preserve the core meaning of the original
- Apply only the requested modifications
- Keep each bullet to 1-2 lines
- Start with a strong action verb
- Include quantified metrics when instructed
- Do not add information the original does not imply
- Do not exaggerate

Return JSON: {"bullets": [{"id": "bullet id", "rewritten": "rewritten text"}]}""" + JSON_ONLY

SUMMARY_SYSTEM_PROMPT = """\
You are a precise resume editor. Follow instructions exactly.

Rewrite a professional summary:
- 2-4 sentences
- Lead with the candidate's unique value
- Align with the target role and company
- Match the requested tone (confident, measured or humble)
- Use only information provided in the instructions; never invent achievements or skills

Return JSON: {"summary": "rewritten summary"}""" + JSON_ONLY

WHY_FIT_SYSTEM_PROMPT = """\
You are a resume strategist polishing a "Why I'm the Right Fit" section.

Each bullet has a bold label and supporting evidence.
- Make each bullet specific and compelling, 1-2 sentences
- Lead with proof, not claims
- Confident, never arrogant; active voice
- Keep the labels

Return JSON: {"bullets": [{"label": "Label:", "text": "polished text"}]}""" + JSON_ONLY


@dataclass
class RewriteOutcome:
    tailored_resume: ResumeContent
    changes: TailoringChanges
    why_fit: list[WhyFitEntry] = field(default_factory=list)
    usage: list[ModelUsage] = field(default_factory=list)


class Rewriter:
    def __init__(
        self,
        llm: CompletionService,
        model: str = "claude-sonnet-4-5-20250929",
        *,
        config: PipelineConfig | None = None,
        retry: RetryConfig | None = None,
    ):
        self.llm = llm
        self.model = model
        self.config = config or PipelineConfig()
        self.retry = retry

    # --- bullets ---

    async def rewrite_bullets(self, instructions: list[BulletTransformInstruction]) -> dict[str, str]:
        """Rewrite all flagged bullets in one call; returns bullet id -> text for every bullet."""
        texts, _ = await self._rewrite_bullets(instructions)
        return texts

    async def _rewrite_bullets(
        self, instructions: list[BulletTransformInstruction]
    ) -> tuple[dict[str, str], LLMResponse | None]:
        texts = {i.bullet_id: i.original_text for i in instructions}
        to_rewrite = [i for i in instructions if i.needs_rewrite]
        if not to_rewrite:
            return texts, None

        payload = [
            {
                "id": i.bullet_id,
                "original": i.original_text,
                "instruction": i.rewrite_instruction,
                "tone": i.tone,
            }
            for i in to_rewrite
        ]
        prompt = (
            "Rewrite these resume bullets according to their instructions:\n\n"
            f"{json.dumps(payload, indent=2, ensure_ascii=False)}\n\n"
            "Return one entry per id."
        )
        data, response = await request_json(
            self.llm,
            BULLET_SYSTEM_PROMPT,
            prompt,
            model=self.model,
            max_tokens=self.config.bullet_max_tokens,
            temperature=self.config.bullet_temperature,
            time_budget_ms=self.config.bullet_time_budget_ms,
            retry=self.retry,
            label="BulletRewrite",
        )

        requested = {i.bullet_id for i in to_rewrite}
        for item in as_dicts(data.get("bullets")):
            bullet_id, rewritten = item.get("id"), item.get("rewritten")
            if isinstance(bullet_id, str) and bullet_id in requested \
                    and isinstance(rewritten, str) and rewritten.strip():
                texts[bullet_id] = rewritten.strip()
                requested.discard(bullet_id)
        if requested:
            logger.warning("Bullet rewrite omitted %d id(s), keeping originals: %s",
                           len(requested), sorted(requested))
        return texts, response

    # --- summary ---

    async def rewrite_summary(self, instruction: SummaryTransformInstruction) -> str:
        summary, _ = await self._rewrite_summary(instruction)
        return summary

    async def _rewrite_summary(
        self, instruction: SummaryTransformInstruction
    ) -> tuple[str, LLMResponse | None]:
        original = instruction.original_summary
        if not original and not instruction.unique_differentiators:
            return original, None
        if instruction.improvement_level == "none":
            return original, None

        lines = [
            "Rewrite this professional summary:",
            "",
            f'Original: "{original or "(No existing summary)"}"',
            "",
            f"Target role: {instruction.target_role}",
            f"Target company: {instruction.target_company}",
        ]
        if instruction.unique_differentiators:
            lines += ["", "Unique differentiators to highlight:"]
            lines += [f"- {d}" for d in instruction.unique_differentiators]
        if instruction.matched_skills:
            lines += ["", "Relevant skills:"]
            lines += [f"- {s}" for s in instruction.matched_skills]
        if instruction.keywords_to_surface:
            lines += ["", "Job keywords to mirror where accurate: " + ", ".join(instruction.keywords_to_surface)]
        lines += ["", f"Tone: {instruction.tone}", "", f"Instructions: {instruction.rewrite_instruction}"]

        data, response = await request_json(
            self.llm,
            SUMMARY_SYSTEM_PROMPT,
            "\n".join(lines),
            model=self.model,
            max_tokens=self.config.summary_max_tokens,
            temperature=self.config.summary_temperature,
            time_budget_ms=self.config.summary_time_budget_ms,
            retry=self.retry,
            label="SummaryRewrite",
        )
        summary = data.get("summary")
        if not isinstance(summary, str) or not summary.strip():
            logger.warning("Summary rewrite returned no summary, keeping original")
            return original, response
        return summary.strip(), response

    # --- why-fit ---

    async def polish_why_fit(self, instruction: WhyFitInstruction) -> list[WhyFitEntry]:
        entries, _ = await self._polish_why_fit(instruction)
        return entries

    async def _polish_why_fit(
        self, instruction: WhyFitInstruction
    ) -> tuple[list[WhyFitEntry], LLMResponse | None]:
        if not instruction.bullets:
            return [], None

        listing = "\n".join(
            f'{i}. Label: "{b.label}" | Text: "{b.text}"'
            for i, b in enumerate(instruction.bullets, start=1)
        )
        data, response = await request_json(
            self.llm,
            WHY_FIT_SYSTEM_PROMPT,
            f'Polish these "Why I\'m the Right Fit" bullets:\n\n{listing}',
            model=self.model,
            max_tokens=self.config.why_fit_max_tokens,
            temperature=self.config.why_fit_temperature,
            time_budget_ms=self.config.why_fit_time_budget_ms,
            retry=self.retry,
            label="WhyFitPolish",
        )
        polished = [
            WhyFitEntry(label=str(item["label"]), text=str(item["text"]))
            for item in as_dicts(data.get("bullets"))
            if item.get("label") and item.get("text")
        ]
        if not polished:
            logger.warning("Why-fit polish returned no bullets, keeping rule output")
            polished = [WhyFitEntry(label=b.label, text=b.text) for b in instruction.bullets]
        return polished, response

    # --- composition ---

    async def apply_transformations(
        self, resume: ResumeContent, instructions: TransformationInstructions
    ) -> RewriteOutcome:
        """Run the three rewrites concurrently and assemble the tailored resume and its diff."""
        (texts, bullet_resp), (summary, summary_resp), (why_fit, why_fit_resp) = await _gather_or_cancel(
            self._rewrite_bullets(instructions.bullets),
            self._rewrite_summary(instructions.summary),
            self._polish_why_fit(instructions.why_fit),
        )

        by_id = {i.bullet_id: i for i in instructions.bullets}
        experiences = []
        diffs: list[BulletDiff] = []
        for exp in resume.experiences:
            bullets = []
            for bullet in exp.bullets:
                new_text = texts.get(bullet.id, bullet.text)
                if new_text == bullet.text:
                    bullets.append(bullet)
                    continue
                bullets.append(bullet.model_copy(update={"text": new_text, "is_modified": True}))
                flags = by_id[bullet.id].flags if bullet.id in by_id else []
                diffs.append(BulletDiff(
                    bullet_id=bullet.id,
                    experience_id=exp.id,
                    before=bullet.text,
                    after=new_text,
                    change_type=flags[0] if len(flags) == 1 else "combined" if flags else "metrics",
                ))
            experiences.append(exp.model_copy(update={"bullets": bullets}))

        plan = instructions.skills
        skills = resume.skills.model_copy(update={
            "technical": plan.technical.reordered,
            "soft": plan.soft.reordered,
        })
        tailored = resume.model_copy(update={
            "summary": summary,
            "experiences": experiences,
            "skills": skills,
        })

        summary_modified = summary != resume.summary
        changes = TailoringChanges(
            summary_modified=summary_modified,
            summary_diff=SummaryDiff(before=resume.summary, after=summary) if summary_modified else None,
            experience_bullets_modified=len(diffs),
            bullet_diffs=diffs,
            skills_reordered=(
                plan.technical.original != plan.technical.reordered
                or plan.soft.original != plan.soft.reordered
            ),
            skills_suggested=plan.technical.to_add,
            experiences_reordered=False,
            why_fit_section_added=bool(why_fit),
            why_fit_bullet_count=len(why_fit),
        )

        usage = [
            usage_from(label, resp)
            for label, resp in (("bullets", bullet_resp), ("summary", summary_resp), ("why_fit", why_fit_resp))
            if resp is not None
        ]
        logger.info(
            "Rewriting: %d bullets changed, summary %s, %d why-fit bullets",
            len(diffs), "changed" if summary_modified else "unchanged", len(why_fit),
        )
        return RewriteOutcome(tailored, changes, why_fit, usage)


async def _gather_or_cancel(*coros):
    """Like ``asyncio.gather``, but the first failure cancels the calls still running."""
    tasks = [asyncio.ensure_future(c) for c in coros]
    try:
        await asyncio.wait(tasks, return_when=asyncio.FIRST_EXCEPTION)
    finally:
        pending = [t for t in tasks if not t.done()]
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
    for task in tasks:
        if not task.cancelled() and task.exception() is not None:
            raise task.exception()
    return [t.result() for t in tasks]
