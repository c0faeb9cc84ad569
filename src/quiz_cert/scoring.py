"""
scoring.py — Quiz scoring engine
================================
Turns a raw quiz submission into a scored, persisted QuizAttempt.

  Validation (each a distinct failure, checked in this order):
    • name / district / ageGroup / gender present, answers is a list   → MissingFields
    • ageGroup ∈ {18-25, 26-40, 41-50, 50+}                             → InvalidEnumValue
    • gender   ∈ {Male, Female, Other, Prefer not to say}               → InvalidEnumValue
    • exactly `question_count` answers (20)                             → WrongAnswerCount
    • every optionId exists and belongs to its questionId               → InvalidOption
      (first mismatch aborts the whole attempt; nothing is persisted)

  Scoring:
    correctness = the stored Option.is_correct flag, looked up at scoring time
    score       = number of correct answers
    percentage  = 100 × score / question_count
    passed      = percentage ≥ pass_mark_pct (50)
"""

from __future__ import annotations

import logging
from typing import Optional, Union

from pydantic import ValidationError as PydanticValidationError

from quiz_cert.database import QuizStore
from quiz_cert.errors import InvalidEnumValue, InvalidOption, MissingFields, WrongAnswerCount
from quiz_cert.models import (
    AGE_GROUPS,
    GENDERS,
    AnswerRecord,
    QuizAttempt,
    QuizSubmission,
    ScoreResult,
    SubmittedAnswer,
)

logger = logging.getLogger(__name__)

REQUIRED_QUESTION_COUNT = 20
PASS_MARK_PCT = 50.0


def parse_submission(payload: Union[dict, QuizSubmission]) -> QuizSubmission:
    """Coerce a client payload into a QuizSubmission, or raise MissingFields."""
    if isinstance(payload, QuizSubmission):
        return payload
    if not isinstance(payload, dict):
        raise MissingFields("Missing required fields")
    try:
        return QuizSubmission.model_validate(payload)
    except PydanticValidationError as exc:
        raise MissingFields("Missing required fields") from exc


class ScoringEngine:
    """
    Validates and scores quiz submissions against the question bank.

    Usage::

        engine  = ScoringEngine(store)
        attempt = engine.score_and_record_attempt(request_json)
        attempt.summary()   # {"id", "score", "percentage", "passed"}
    """

    def __init__(
        self,
        store: QuizStore,
        question_count: int = REQUIRED_QUESTION_COUNT,
        pass_mark_pct: float = PASS_MARK_PCT,
    ):
        self.store = store
        self.question_count = question_count
        self.pass_mark_pct = pass_mark_pct

    def validate_demographics(self, submission: QuizSubmission) -> None:
        if submission.age_group not in AGE_GROUPS:
            raise InvalidEnumValue("age group", submission.age_group, AGE_GROUPS)
        if submission.gender not in GENDERS:
            raise InvalidEnumValue("gender", submission.gender, GENDERS)

    def score(self, answers: list[SubmittedAnswer], required_count: Optional[int] = None) -> ScoreResult:
        """
        Score *answers* against the stored option flags.

        Raises WrongAnswerCount or InvalidOption; performs no writes.
        """
        required = required_count if required_count is not None else self.question_count
        if len(answers) != required:
            raise WrongAnswerCount(required, len(answers))

        records: list[AnswerRecord] = []
        for answer in answers:
            option = self.store.get_option(answer.option_id)
            if option is None or option.question_id != answer.question_id:
                logger.info(
                    "Rejected submission: option %s does not belong to question %s",
                    answer.option_id, answer.question_id,
                )
                raise InvalidOption(answer.question_id, answer.option_id)
            records.append(AnswerRecord(
                question_id=answer.question_id,
                option_id=answer.option_id,
                is_correct=option.is_correct,
            ))

        score = sum(1 for r in records if r.is_correct)
        percentage = 100 * score / required
        return ScoreResult(
            score=score,
            percentage=percentage,
            passed=percentage >= self.pass_mark_pct,
            answers=records,
        )

    def score_and_record_attempt(self, payload: Union[dict, QuizSubmission]) -> QuizAttempt:
        """Validate, score and atomically persist one submission."""
        submission = parse_submission(payload)
        self.validate_demographics(submission)
        result = self.score(submission.answers)
        return self.store.create_attempt(submission, result)
