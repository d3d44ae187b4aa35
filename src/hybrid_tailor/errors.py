"""Error taxonomy for the tailoring pipeline.

Every failure surfaced to callers carries a stable ``ErrorCode``; failures
that cross a pipeline phase boundary are additionally tagged with the
``Phase`` in which they happened.
"""

from __future__ import annotations

from enum import Enum


class ErrorCode(str, Enum):
    AI_NOT_CONFIGURED = "AI_NOT_CONFIGURED"
    INSUFFICIENT_CONTENT = "INSUFFICIENT_CONTENT"
    PARSE_ERROR = "PARSE_ERROR"
    RATE_LIMIT = "RATE_LIMIT"
    AUTH_ERROR = "AUTH_ERROR"
    API_ERROR = "API_ERROR"
    EMPTY_RESPONSE = "EMPTY_RESPONSE"
    ANALYSIS_FAILED = "ANALYSIS_FAILED"
    PRE_ANALYSIS_FAILED = "PRE_ANALYSIS_FAILED"
    RULES_FAILED = "RULES_FAILED"
    REWRITING_FAILED = "REWRITING_FAILED"
    SCORING_FAILED = "SCORING_FAILED"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"


class Phase(str, Enum):
    PRE_ANALYSIS = "pre_analysis"
    RULES = "rules"
    REWRITING = "rewriting"
    SCORING = "scoring"


PHASE_ERROR_CODES: dict[Phase, ErrorCode] = {
    Phase.PRE_ANALYSIS: ErrorCode.PRE_ANALYSIS_FAILED,
    Phase.RULES: ErrorCode.RULES_FAILED,
    Phase.REWRITING: ErrorCode.REWRITING_FAILED,
    Phase.SCORING: ErrorCode.SCORING_FAILED,
}


class TailorError(Exception):
    """Base class for all pipeline errors.

    Attributes:
        message: Human-readable description, safe to show to users.
        code: Stable error code callers can branch on.
        cause: The underlying exception, if any.
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.UNKNOWN_ERROR,
        cause: BaseException | None = None,
    ):
        self.message = message
        self.code = code
        self.cause = cause
        super().__init__(message)

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.message}"


class CompletionError(TailorError):
    """Failure reported by the text-completion service."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.API_ERROR,
        *,
        status_code: int | None = None,
        retry_after: float | None = None,
        transient: bool | None = None,
        cause: BaseException | None = None,
    ):
        super().__init__(message, code, cause)
        self.status_code = status_code
        self.retry_after = retry_after
        if transient is None:
            transient = code is ErrorCode.RATE_LIMIT
        self.transient = transient


class ParseError(TailorError):
    """Model output could not be coerced to a JSON object, even after repair."""

    EXCERPT_LENGTH = 500

    def __init__(self, message: str, *, label: str, raw: str, repaired: str,
                 cause: BaseException | None = None):
        super().__init__(message, ErrorCode.PARSE_ERROR, cause)
        self.label = label
        self.raw_excerpt = raw[: self.EXCERPT_LENGTH]
        self.repaired_excerpt = repaired[: self.EXCERPT_LENGTH]


class AnalysisError(TailorError):
    """A pre-analysis sub-module failed after its own retries."""

    def __init__(self, message: str, code: ErrorCode = ErrorCode.ANALYSIS_FAILED, *,
                 analyzer: str | None = None, cause: BaseException | None = None):
        super().__init__(message, code, cause)
        self.analyzer = analyzer


class HybridTailorError(TailorError):
    """A tailoring run failed; ``phase`` names the phase that failed."""

    def __init__(self, message: str, code: ErrorCode, phase: Phase,
                 cause: BaseException | None = None):
        super().__init__(message, code, cause)
        self.phase = phase

    @classmethod
    def for_phase(cls, phase: Phase, cause: BaseException) -> HybridTailorError:
        label = phase.value.replace("_", "-").capitalize()
        return cls(f"{label} failed", PHASE_ERROR_CODES[phase], phase, cause)

    @property
    def root_code(self) -> ErrorCode:
        """Most specific code in the cause chain (e.g. RATE_LIMIT under REWRITING_FAILED)."""
        code = self.code
        cause = self.cause
        while isinstance(cause, TailorError):
            code = cause.code
            cause = cause.cause
        return code
