"""
Data models for the quiz scoring and certificate issuance core.

Stored entities (Question, Option, QuizAttempt, Certificate) are plain
dataclasses built from database rows.  The inbound quiz submission is a
Pydantic model so the client payload shape is checked in one place.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field


# ─── Enumerations ────────────────────────────────────────────────────────────

class AgeGroup(str, Enum):
    AGE_18_25 = "18-25"
    AGE_26_40 = "26-40"
    AGE_41_50 = "41-50"
    AGE_50_UP = "50+"


class Gender(str, Enum):
    MALE              = "Male"
    FEMALE            = "Female"
    OTHER             = "Other"
    PREFER_NOT_TO_SAY = "Prefer not to say"


AGE_GROUPS = [a.value for a in AgeGroup]
GENDERS    = [g.value for g in Gender]


# ─── Question bank ───────────────────────────────────────────────────────────

@dataclass
class Option:
    id:          str
    question_id: str
    text:        str
    is_correct:  bool


@dataclass
class Question:
    id:          str
    text:        str
    explanation: Optional[str]
    is_active:   bool
    options:     list[Option] = field(default_factory=list)

    def correct_option(self) -> Optional[Option]:
        return next((o for o in self.options if o.is_correct), None)


# ─── Submission (client payload) ─────────────────────────────────────────────

class SubmittedAnswer(BaseModel):
    """One (questionId, optionId) pair as sent by the client."""
    model_config = ConfigDict(populate_by_name=True)

    question_id: str = Field(alias="questionId", min_length=1)
    option_id:   str = Field(alias="optionId", min_length=1)


class QuizSubmission(BaseModel):
    """
    A complete quiz submission.  Enumerated fields stay plain strings here;
    the scoring engine checks them so the error names the allowed values.
    """
    model_config = ConfigDict(populate_by_name=True)

    name:      str = Field(min_length=1)
    district:  str = Field(min_length=1)
    age_group: str = Field(alias="ageGroup", min_length=1)
    gender:    str = Field(min_length=1)
    answers:   list[SubmittedAnswer]


# ─── Scoring output ──────────────────────────────────────────────────────────

@dataclass
class AnswerRecord:
    """Scored result of one submitted answer."""
    question_id: str
    option_id:   str
    is_correct:  bool


@dataclass
class ScoreResult:
    score:       int
    percentage:  float
    passed:      bool
    answers:     list[AnswerRecord] = field(default_factory=list)


@dataclass
class QuizAttempt:
    id:          str
    name:        str
    district:    str
    age_group:   AgeGroup
    gender:      Gender
    score:       int
    percentage:  float
    passed:      bool
    created_at:  datetime
    answers:     list[AnswerRecord] = field(default_factory=list)

    def summary(self) -> dict:
        """The body returned to the client right after submission."""
        return {
            "id":         self.id,
            "score":      self.score,
            "percentage": self.percentage,
            "passed":     self.passed,
        }


# ─── Certificate location (tagged variant) ──────────────────────────────────

@dataclass(frozen=True)
class LocalLocation:
    path: Path

    def __str__(self) -> str:
        return str(self.path)


@dataclass(frozen=True)
class RemoteLocation:
    url: str

    def __str__(self) -> str:
        return self.url


CertificateLocation = Union[LocalLocation, RemoteLocation]


def parse_location(file_path: str) -> CertificateLocation:
    """Decode a stored file_path column into its location variant."""
    if file_path.startswith(("http://", "https://")):
        return RemoteLocation(file_path)
    return LocalLocation(Path(file_path))


@dataclass
class Certificate:
    attempt_id:  str
    location:    CertificateLocation
    created_at:  Optional[str] = None
    updated_at:  Optional[str] = None


@dataclass
class CertificateData:
    """Text overlaid on the certificate template."""
    name:        str
    score:       int
    percentage:  float
    date:        datetime

    @classmethod
    def from_attempt(cls, attempt: QuizAttempt) -> "CertificateData":
        return cls(
            name       = attempt.name,
            score      = attempt.score,
            percentage = attempt.percentage,
            date       = attempt.created_at,
        )
