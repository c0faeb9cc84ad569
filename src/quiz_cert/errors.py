"""
errors.py — Error taxonomy for scoring and certificate issuance
================================================================
Every failure the core can surface derives from QuizCertError and carries:

  kind         stable machine-readable name (used in API error bodies)
  http_status  the status a routing layer should answer with
  retryable    True when repeating the same call may succeed

Validation, not-found and precondition errors are raised before any side
effect.  Template, render and upload errors are raised before any
certificate record is written.
"""
from __future__ import annotations


class QuizCertError(Exception):
    """Base class for every error raised by quiz_cert."""
    kind:        str  = "internal"
    http_status: int  = 500
    retryable:   bool = False


# ─── Validation (user-correctable) ───────────────────────────────────────────

class ValidationError(QuizCertError):
    kind = "validation"
    http_status = 400


class MissingFields(ValidationError):
    kind = "missing_fields"


class WrongAnswerCount(ValidationError):
    kind = "wrong_answer_count"

    def __init__(self, expected: int, got: int):
        super().__init__(f"Must answer exactly {expected} questions (got {got})")
        self.expected = expected
        self.got = got


class InvalidOption(ValidationError):
    kind = "invalid_option"

    def __init__(self, question_id: str, option_id: str):
        super().__init__("Invalid option for question")
        self.question_id = question_id
        self.option_id = option_id


class InvalidEnumValue(ValidationError):
    kind = "invalid_enum_value"

    def __init__(self, field: str, value, allowed: list[str]):
        super().__init__(f"Invalid {field}. Must be one of: {', '.join(allowed)}")
        self.field = field
        self.value = value
        self.allowed = allowed


class InvalidQuestion(ValidationError):
    """Question-bank entry violates the one-correct-option rule."""
    kind = "invalid_question"


# ─── Lookup / precondition ──────────────────────────────────────────────────

class NotFoundError(QuizCertError):
    kind = "not_found"
    http_status = 404


class AttemptNotFound(NotFoundError):
    kind = "attempt_not_found"

    def __init__(self, attempt_id: str):
        super().__init__("Quiz attempt not found")
        self.attempt_id = attempt_id


class PreconditionError(QuizCertError):
    kind = "precondition_failed"
    http_status = 400


class AttemptNotPassed(PreconditionError):
    kind = "attempt_not_passed"

    def __init__(self, attempt_id: str):
        super().__init__("Certificate only available for passing scores")
        self.attempt_id = attempt_id


# ─── Template / rendering (operator-correctable) ────────────────────────────

class TemplateError(QuizCertError):
    kind = "template_error"
    http_status = 502
    retryable = True


class TemplateUnavailable(TemplateError):
    kind = "template_unavailable"


class InvalidImage(TemplateError):
    kind = "invalid_image"
    http_status = 500
    retryable = False


class RenderError(QuizCertError):
    kind = "render_error"


# ─── External storage / persistence ─────────────────────────────────────────

class UploadError(QuizCertError):
    kind = "upload_error"
    http_status = 502
    retryable = True


class StorageNotConfigured(QuizCertError):
    """Remote storage is mandatory for this deployment but not configured."""
    kind = "storage_not_configured"
    http_status = 503


class PersistenceError(QuizCertError):
    kind = "persistence_error"
    http_status = 503
    retryable = True
