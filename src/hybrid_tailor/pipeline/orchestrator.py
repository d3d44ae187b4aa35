"""Main pipeline orchestrator - pre-analysis, rules, rewriting, scoring."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Sequence
from enum import Enum

from hybrid_tailor.analyzers.base import Analyzer
from hybrid_tailor.clients.completion import CompletionService
from hybrid_tailor.config import AppConfig
from hybrid_tailor.errors import ErrorCode, HybridTailorError, Phase
from hybrid_tailor.models.job import JobData
from hybrid_tailor.models.result import (
    EstimatedChanges,
    HybridTailorResult,
    TailoringPreview,
    TokenUsage,
)
from hybrid_tailor.models.resume import ResumeContent
from hybrid_tailor.models.rules import TransformationRule
from hybrid_tailor.pipeline.pre_analysis import PreAnalyzer, default_analyzers
from hybrid_tailor.pipeline.rewriter import Rewriter
from hybrid_tailor.pipeline.rule_engine import generate_transformation_instructions
from hybrid_tailor.pipeline.rules import DEFAULT_RULES
from hybrid_tailor.pipeline.scoring import calculate_recruiter_readiness
from hybrid_tailor.telemetry.cost_calculator import usage_cost

logger = logging.getLogger(__name__)


class PipelineState(str, Enum):
    PRE_ANALYSIS = "pre_analysis"
    RULES = "rules"
    REWRITING = "rewriting"
    SCORING = "scoring"
    DONE = "done"
    FAILED = "failed"


PhaseCallback = Callable[[PipelineState, str], None]


class HybridTailor:
    """Orchestrates the four-phase hybrid tailoring pipeline.

    The instance holds only configuration; every ``run`` works on its own
    values, so concurrent runs never interact.
    """

    def __init__(
        self,
        llm: CompletionService,
        *,
        analyzers: Sequence[Analyzer] | None = None,
        rules: Sequence[TransformationRule] | None = None,
        config: AppConfig | None = None,
    ):
        self.llm = llm
        self.config = config or AppConfig()
        self.pre_analyzer = PreAnalyzer(
            analyzers if analyzers is not None else default_analyzers(llm, self.config)
        )
        self.rules = tuple(rules) if rules is not None else DEFAULT_RULES
        self.rewriter = Rewriter(
            llm, self.config.llm.model, config=self.config.pipeline, retry=self.config.retry,
        )

    async def run(
        self,
        resume: ResumeContent,
        job: JobData,
        resume_id: str = "",
        *,
        on_phase: PhaseCallback | None = None,
    ) -> HybridTailorResult:
        """Tailor ``resume`` to ``job``.

        Args:
            resume: Structured resume to tailor.
            job: Target job posting.
            resume_id: Caller's identifier, carried into the pre-analysis.
            on_phase: Optional callback(state, detail) for progress.

        Raises:
            HybridTailorError: tagged with the failing phase; ``root_code``
                gives the underlying cause (e.g. ``RATE_LIMIT``).
        """
        start = time.monotonic()
        timings: dict[str, int] = {}

        def _notify(state: PipelineState, detail: str = ""):
            if on_phase:
                on_phase(state, detail)

        self._preflight(resume, _notify)

        # --- Phase 1: pre-analysis ---
        _notify(PipelineState.PRE_ANALYSIS, "Analyzing resume against the job")
        phase_start = time.monotonic()
        try:
            pre_analysis = await self.pre_analyzer.run(resume, job, resume_id)
        except Exception as exc:
            raise self._fail(Phase.PRE_ANALYSIS, exc, _notify) from exc
        timings[Phase.PRE_ANALYSIS.value] = _elapsed_ms(phase_start)

        # --- Phase 2: rules ---
        _notify(PipelineState.RULES, "Evaluating transformation rules")
        phase_start = time.monotonic()
        try:
            instructions = generate_transformation_instructions(resume, pre_analysis, job, self.rules)
        except Exception as exc:
            raise self._fail(Phase.RULES, exc, _notify) from exc
        timings[Phase.RULES.value] = _elapsed_ms(phase_start)

        # --- Phase 3: rewriting ---
        _notify(
            PipelineState.REWRITING,
            f"Rewriting {len(instructions.bullets_to_rewrite)} bullet(s)",
        )
        phase_start = time.monotonic()
        try:
            outcome = await self.rewriter.apply_transformations(resume, instructions)
        except Exception as exc:
            raise self._fail(Phase.REWRITING, exc, _notify) from exc
        timings[Phase.REWRITING.value] = _elapsed_ms(phase_start)

        # --- Phase 4: scoring ---
        _notify(PipelineState.SCORING, "Scoring recruiter readiness")
        phase_start = time.monotonic()
        try:
            score = calculate_recruiter_readiness(pre_analysis)
        except Exception as exc:
            raise self._fail(Phase.SCORING, exc, _notify) from exc
        timings[Phase.SCORING.value] = _elapsed_ms(phase_start)

        pre_tokens = pre_analysis.total_tokens
        rewrite_tokens = sum(u.total_tokens for u in outcome.usage)
        total_tokens = pre_tokens + rewrite_tokens
        token_usage = TokenUsage(
            pre_analysis=pre_tokens,
            rewriting=rewrite_tokens,
            total=total_tokens,
            saved_vs_pure_ai=max(0, self.config.pipeline.pure_ai_token_estimate - total_tokens),
            estimated_cost_usd=usage_cost([*pre_analysis.usage, *outcome.usage]),
        )

        elapsed = _elapsed_ms(start)
        _notify(PipelineState.DONE, f"Done: score {score.composite}, {elapsed}ms")
        logger.info(
            "Tailoring complete in %dms: score=%d, tokens=%d, phases=%s",
            elapsed, score.composite, total_tokens, timings,
        )

        return HybridTailorResult(
            tailored_resume=outcome.tailored_resume,
            pre_analysis=pre_analysis,
            applied_rules=[r.rule_id for r in instructions.applied_rules],
            changes=outcome.changes,
            why_fit=outcome.why_fit,
            quality_score=score,
            token_usage=token_usage,
            processing_time_ms=elapsed,
            phase_timings_ms=timings,
        )

    async def analyze(
        self, resume: ResumeContent, job: JobData, resume_id: str = ""
    ) -> TailoringPreview:
        """Pre-analysis and score only; nothing is rewritten."""
        self._preflight(resume)
        try:
            pre_analysis = await self.pre_analyzer.run(resume, job, resume_id)
        except Exception as exc:
            raise self._fail(Phase.PRE_ANALYSIS, exc) from exc
        try:
            score = calculate_recruiter_readiness(pre_analysis)
        except Exception as exc:
            raise self._fail(Phase.SCORING, exc) from exc

        return TailoringPreview(
            pre_analysis=pre_analysis,
            quality_score=score,
            estimated_changes=EstimatedChanges(
                bullets_to_improve=pre_analysis.impact.bullets_improved,
                unique_differentiators=len(pre_analysis.uniqueness.differentiators),
                missing_keywords=pre_analysis.context.keyword_coverage.missing_count,
                soft_skills_detected=len(pre_analysis.soft_skills),
            ),
        )

    def _preflight(self, resume: ResumeContent, notify: PhaseCallback | None = None) -> None:
        """Checks made before any model call; failures are reported against pre-analysis."""
        if not self.llm.is_configured():
            error = HybridTailorError(
                "AI is not configured. Please set your API key.",
                ErrorCode.AI_NOT_CONFIGURED,
                Phase.PRE_ANALYSIS,
            )
        elif resume.bullet_count == 0:
            error = HybridTailorError(
                "Resume must have experience bullets to tailor.",
                ErrorCode.INSUFFICIENT_CONTENT,
                Phase.PRE_ANALYSIS,
            )
        else:
            return
        logger.error("Tailoring rejected: %s", error)
        if notify:
            notify(PipelineState.FAILED, Phase.PRE_ANALYSIS.value)
        raise error

    @staticmethod
    def _fail(
        phase: Phase, exc: Exception, notify: PhaseCallback | None = None
    ) -> HybridTailorError:
        error = HybridTailorError.for_phase(phase, exc)
        logger.error("%s (root cause %s)", error, error.root_code.value, exc_info=exc)
        if notify:
            notify(PipelineState.FAILED, phase.value)
        return error


def _elapsed_ms(start: float) -> int:
    return int((time.monotonic() - start) * 1000)
