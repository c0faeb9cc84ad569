"""
quiz_cert/database.py — SQLite persistence for questions, attempts, certificates
================================================================================
The store the scoring engine and issuance coordinator talk to.  A QuizStore
instance is created once per process (see service.py) and passed in, so
tests can point it at a temporary file.

Design decisions
----------------
- **Connection per call** — each public method opens, uses and closes its
  own connection, so one store is safe to share across request threads.
- **WAL journal mode** — readers are not blocked while an attempt is written.
- **Atomic attempts** — an attempt row and all of its answer rows are written
  in one transaction; a failure leaves neither behind.
- **Certificate upsert** — `certificates.attempt_id` is UNIQUE and every write
  is `INSERT … ON CONFLICT DO UPDATE`, so retries and races converge on one
  row.  The insert selects from `quiz_attempts … WHERE passed = 1`, so a
  certificate row can never exist for a failed attempt.

Schema (see init_db for the full CREATE TABLE)
----------------------------------------------
  questions       id, text, explanation, is_active, created_at
  options         id, question_id → questions, text, is_correct
  quiz_attempts   id, name, district, age_group, gender, score, percentage,
                  passed, created_at
  answers         attempt_id → quiz_attempts, question_id, option_id, is_correct
  certificates    attempt_id UNIQUE → quiz_attempts, file_path, created_at, updated_at

Public API
----------
  init_db()                               create tables if they don't exist
  add_question(text, options, …)          → Question   (seeding / tests)
  list_active_questions_with_options()    → list[Question]
  get_question(id) / get_option(id)       → Question | Option | None
  create_attempt(submission, result)      → QuizAttempt
  get_attempt(id, with_answers=False)     → QuizAttempt | None
  get_certificate(attempt_id)             → Certificate | None
  upsert_certificate(attempt_id, loc)     → Certificate
"""

from __future__ import annotations

import logging
import sqlite3
import uuid
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterator, Optional, Union

from quiz_cert.errors import AttemptNotPassed, InvalidQuestion, PersistenceError
from quiz_cert.models import (
    AgeGroup,
    AnswerRecord,
    Certificate,
    CertificateLocation,
    Gender,
    Option,
    Question,
    QuizAttempt,
    QuizSubmission,
    ScoreResult,
    parse_location,
)

logger = logging.getLogger(__name__)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class QuizStore:
    """sqlite3-backed repository for the quiz core."""

    def __init__(self, db_path: Union[str, Path]):
        self.db_path = Path(db_path)

    # ── Connection handling ──────────────────────────────────────────────────

    def _get_conn(self) -> sqlite3.Connection:
        """Return a connection with row_factory set."""
        conn = sqlite3.connect(str(self.db_path), check_same_thread=False, timeout=10)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA journal_mode=WAL")
        conn.execute("PRAGMA foreign_keys=ON")
        return conn

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        try:
            conn = self._get_conn()
        except sqlite3.Error as exc:
            raise PersistenceError(f"Database unavailable: {exc}") from exc
        try:
            yield conn
        except sqlite3.Error as exc:
            raise PersistenceError(f"Database error: {exc}") from exc
        finally:
            conn.close()

    def init_db(self) -> None:
        """Create tables if they don't exist."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        with self._connect() as conn:
            conn.executescript("""
            CREATE TABLE IF NOT EXISTS questions (
                id            TEXT PRIMARY KEY,
                text          TEXT NOT NULL,
                explanation   TEXT,
                is_active     INTEGER NOT NULL DEFAULT 1,
                created_at    TEXT NOT NULL
            );
            CREATE TABLE IF NOT EXISTS options (
                id            TEXT PRIMARY KEY,
                question_id   TEXT NOT NULL REFERENCES questions(id),
                text          TEXT NOT NULL,
                is_correct    INTEGER NOT NULL DEFAULT 0
            );
            CREATE TABLE IF NOT EXISTS quiz_attempts (
                id            TEXT PRIMARY KEY,
                name          TEXT NOT NULL,
                district      TEXT NOT NULL,
                age_group     TEXT NOT NULL,
                gender        TEXT NOT NULL,
                score         INTEGER NOT NULL,
                percentage    REAL NOT NULL,
                passed        INTEGER NOT NULL,
                created_at    TEXT NOT NULL
            );
            CREATE TABLE IF NOT EXISTS answers (
                id            INTEGER PRIMARY KEY AUTOINCREMENT,
                attempt_id    TEXT NOT NULL REFERENCES quiz_attempts(id),
                question_id   TEXT NOT NULL,
                option_id     TEXT NOT NULL,
                is_correct    INTEGER NOT NULL
            );
            CREATE TABLE IF NOT EXISTS certificates (
                id            INTEGER PRIMARY KEY AUTOINCREMENT,
                attempt_id    TEXT UNIQUE NOT NULL REFERENCES quiz_attempts(id),
                file_path     TEXT NOT NULL,
                created_at    TEXT NOT NULL,
                updated_at    TEXT NOT NULL
            );
            CREATE INDEX IF NOT EXISTS idx_options_question ON options(question_id);
            CREATE INDEX IF NOT EXISTS idx_answers_attempt  ON answers(attempt_id);
            """)
            conn.commit()

    # ── Question bank ────────────────────────────────────────────────────────

    def add_question(
        self,
        text: str,
        options: list[dict],
        explanation: Optional[str] = None,
        active: bool = True,
    ) -> Question:
        """
        Insert a question with its options.

        *options* is a list of ``{"text": str, "is_correct": bool}``; there must
        be at least two and exactly one of them correct.
        """
        if not text or len(options) < 2:
            raise InvalidQuestion("Missing required fields")
        if sum(1 for o in options if o.get("is_correct")) != 1:
            raise InvalidQuestion("Exactly one option must be marked as correct")

        question = Question(
            id          = str(uuid.uuid4()),
            text        = text,
            explanation = (explanation or "").strip() or None,
            is_active   = active,
        )
        for o in options:
            question.options.append(Option(
                id          = str(uuid.uuid4()),
                question_id = question.id,
                text        = o["text"],
                is_correct  = bool(o.get("is_correct")),
            ))

        with self._connect() as conn:
            with conn:
                conn.execute(
                    "INSERT INTO questions (id, text, explanation, is_active, created_at) "
                    "VALUES (?, ?, ?, ?, ?)",
                    (question.id, question.text, question.explanation, int(active), _now()),
                )
                conn.executemany(
                    "INSERT INTO options (id, question_id, text, is_correct) VALUES (?, ?, ?, ?)",
                    [(o.id, o.question_id, o.text, int(o.is_correct)) for o in question.options],
                )
        return question

    def list_active_questions_with_options(self) -> list[Question]:
        with self._connect() as conn:
            q_rows = conn.execute(
                "SELECT * FROM questions WHERE is_active = 1 ORDER BY created_at, id"
            ).fetchall()
            o_rows = conn.execute(
                "SELECT o.* FROM options o JOIN questions q ON q.id = o.question_id "
                "WHERE q.is_active = 1 ORDER BY o.rowid"
            ).fetchall()

        by_id = {r["id"]: _question_from_row(r) for r in q_rows}
        for r in o_rows:
            by_id[r["question_id"]].options.append(_option_from_row(r))
        return list(by_id.values())

    def get_question(self, question_id: str) -> Optional[Question]:
        with self._connect() as conn:
            row = conn.execute("SELECT * FROM questions WHERE id = ?", (question_id,)).fetchone()
            if row is None:
                return None
            o_rows = conn.execute(
                "SELECT * FROM options WHERE question_id = ? ORDER BY rowid", (question_id,)
            ).fetchall()
        question = _question_from_row(row)
        question.options = [_option_from_row(r) for r in o_rows]
        return question

    def get_option(self, option_id: str) -> Optional[Option]:
        with self._connect() as conn:
            row = conn.execute("SELECT * FROM options WHERE id = ?", (option_id,)).fetchone()
        return _option_from_row(row) if row else None

    # ── Attempts ─────────────────────────────────────────────────────────────

    def create_attempt(self, submission: QuizSubmission, result: ScoreResult) -> QuizAttempt:
        """Persist the attempt and all of its answers in one transaction."""
        attempt = QuizAttempt(
            id          = str(uuid.uuid4()),
            name        = submission.name,
            district    = submission.district,
            age_group   = AgeGroup(submission.age_group),
            gender      = Gender(submission.gender),
            score       = result.score,
            percentage  = result.percentage,
            passed      = result.passed,
            created_at  = datetime.now(timezone.utc),
            answers     = list(result.answers),
        )
        with self._connect() as conn:
            with conn:
                conn.execute(
                    """
                    INSERT INTO quiz_attempts
                        (id, name, district, age_group, gender, score, percentage, passed, created_at)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        attempt.id, attempt.name, attempt.district,
                        attempt.age_group.value, attempt.gender.value,
                        attempt.score, attempt.percentage, int(attempt.passed),
                        attempt.created_at.isoformat(),
                    ),
                )
                conn.executemany(
                    "INSERT INTO answers (attempt_id, question_id, option_id, is_correct) "
                    "VALUES (?, ?, ?, ?)",
                    [(attempt.id, a.question_id, a.option_id, int(a.is_correct))
                     for a in attempt.answers],
                )
        logger.info("Recorded attempt %s (score=%d, passed=%s)", attempt.id, attempt.score, attempt.passed)
        return attempt

    def get_attempt(self, attempt_id: str, with_answers: bool = False) -> Optional[QuizAttempt]:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM quiz_attempts WHERE id = ?", (attempt_id,)
            ).fetchone()
            if row is None:
                return None
            a_rows = []
            if with_answers:
                a_rows = conn.execute(
                    "SELECT * FROM answers WHERE attempt_id = ? ORDER BY id", (attempt_id,)
                ).fetchall()

        return QuizAttempt(
            id          = row["id"],
            name        = row["name"],
            district    = row["district"],
            age_group   = AgeGroup(row["age_group"]),
            gender      = Gender(row["gender"]),
            score       = row["score"],
            percentage  = row["percentage"],
            passed      = bool(row["passed"]),
            created_at  = datetime.fromisoformat(row["created_at"]),
            answers     = [
                AnswerRecord(r["question_id"], r["option_id"], bool(r["is_correct"]))
                for r in a_rows
            ],
        )

    # ── Certificates ─────────────────────────────────────────────────────────

    def get_certificate(self, attempt_id: str) -> Optional[Certificate]:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM certificates WHERE attempt_id = ?", (attempt_id,)
            ).fetchone()
        if row is None:
            return None
        return Certificate(
            attempt_id = row["attempt_id"],
            location   = parse_location(row["file_path"]),
            created_at = row["created_at"],
            updated_at = row["updated_at"],
        )

    def upsert_certificate(self, attempt_id: str, location: CertificateLocation) -> Certificate:
        """Create the attempt's certificate record, or point the existing one at *location*."""
        now = _now()
        with self._connect() as conn:
            with conn:
                cur = conn.execute(
                    """
                    INSERT INTO certificates (attempt_id, file_path, created_at, updated_at)
                    SELECT id, ?, ?, ? FROM quiz_attempts WHERE id = ? AND passed = 1
                    ON CONFLICT(attempt_id) DO UPDATE SET
                        file_path  = excluded.file_path,
                        updated_at = excluded.updated_at
                    """,
                    (str(location), now, now, attempt_id),
                )
                if cur.rowcount == 0:
                    raise AttemptNotPassed(attempt_id)
        return self.get_certificate(attempt_id)


# ─── Row mappers ─────────────────────────────────────────────────────────────

def _question_from_row(row: sqlite3.Row) -> Question:
    return Question(
        id          = row["id"],
        text        = row["text"],
        explanation = row["explanation"],
        is_active   = bool(row["is_active"]),
    )


def _option_from_row(row: sqlite3.Row) -> Option:
    return Option(
        id          = row["id"],
        question_id = row["question_id"],
        text        = row["text"],
        is_correct  = bool(row["is_correct"]),
    )
