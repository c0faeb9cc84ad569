"""
Tests for the SQLite store (database.py): question bank seeding, atomic
attempt creation and certificate upserts.
"""
from pathlib import Path

import pytest
from factories import make_submission, seed_questions

from quiz_cert.database import QuizStore
from quiz_cert.errors import AttemptNotPassed, InvalidQuestion, PersistenceError
from quiz_cert.models import (
    AnswerRecord,
    LocalLocation,
    QuizSubmission,
    RemoteLocation,
    ScoreResult,
)


def _submission(questions) -> QuizSubmission:
    return QuizSubmission.model_validate(make_submission(questions))


def _result(passed: bool, answers=None) -> ScoreResult:
    return ScoreResult(
        score=15 if passed else 5,
        percentage=75.0 if passed else 25.0,
        passed=passed,
        answers=answers or [AnswerRecord("q", "o", True)],
    )


# ─── Question bank ────────────────────────────────────────────────────────────

class TestAddQuestion:
    def test_round_trip(self, store):
        q = store.add_question(
            "Capital of France?",
            [{"text": "Paris", "is_correct": True}, {"text": "Rome"}],
            explanation="  Paris is the capital.  ",
        )
        stored = store.get_question(q.id)
        assert stored.text == "Capital of France?"
        assert stored.explanation == "Paris is the capital."
        assert stored.correct_option().text == "Paris"
        assert len(stored.options) == 2

    def test_blank_explanation_stored_as_none(self, store):
        q = store.add_question("Q?", [{"text": "A", "is_correct": True}, {"text": "B"}], explanation="   ")
        assert store.get_question(q.id).explanation is None

    def test_needs_two_options(self, store):
        with pytest.raises(InvalidQuestion):
            store.add_question("Q?", [{"text": "A", "is_correct": True}])

    @pytest.mark.parametrize("flags", [(False, False), (True, True)])
    def test_exactly_one_correct(self, store, flags):
        options = [{"text": "A", "is_correct": flags[0]}, {"text": "B", "is_correct": flags[1]}]
        with pytest.raises(InvalidQuestion, match="Exactly one"):
            store.add_question("Q?", options)

    def test_active_listing_excludes_inactive(self, store):
        seed_questions(store, n=3, inactive=2)
        active = store.list_active_questions_with_options()
        assert len(active) == 3
        assert all(q.is_active for q in active)
        assert all(len(q.options) == 4 for q in active)

    def test_get_option(self, store, questions):
        opt = questions[0].options[0]
        fetched = store.get_option(opt.id)
        assert fetched.question_id == questions[0].id
        assert fetched.is_correct is True

    def test_get_option_unknown(self, store):
        assert store.get_option("nope") is None


# ─── Attempts ─────────────────────────────────────────────────────────────────

class TestAttempts:
    def test_create_and_get(self, store, questions):
        attempt = store.create_attempt(_submission(questions), _result(True))
        fetched = store.get_attempt(attempt.id)
        assert fetched.name == "Test User"
        assert fetched.age_group.value == "26-40"
        assert fetched.gender.value == "Female"
        assert fetched.passed is True
        assert fetched.created_at == attempt.created_at
        assert fetched.answers == []

    def test_answers_loaded_on_request(self, store, questions):
        attempt = store.create_attempt(_submission(questions), _result(True))
        assert store.get_attempt(attempt.id, with_answers=True).answers == [AnswerRecord("q", "o", True)]

    def test_unknown_attempt(self, store):
        assert store.get_attempt("missing") is None

    def test_failed_answer_insert_leaves_no_attempt(self, store, questions):
        bad = [AnswerRecord("q1", "o1", True), AnswerRecord(None, "o2", False)]
        with pytest.raises(PersistenceError):
            store.create_attempt(_submission(questions), _result(True, answers=bad))
        conn = store._get_conn()
        try:
            assert conn.execute("SELECT COUNT(*) FROM quiz_attempts").fetchone()[0] == 0
            assert conn.execute("SELECT COUNT(*) FROM answers").fetchone()[0] == 0
        finally:
            conn.close()


# ─── Certificates ─────────────────────────────────────────────────────────────

class TestCertificates:
    def test_none_before_creation(self, store, questions):
        attempt = store.create_attempt(_submission(questions), _result(True))
        assert store.get_certificate(attempt.id) is None

    def test_upsert_inserts_local(self, store, questions, tmp_path):
        attempt = store.create_attempt(_submission(questions), _result(True))
        cert = store.upsert_certificate(attempt.id, LocalLocation(tmp_path / "a.pdf"))
        assert cert.location == LocalLocation(tmp_path / "a.pdf")

    def test_upsert_updates_in_place(self, store, questions, tmp_path):
        attempt = store.create_attempt(_submission(questions), _result(True))
        first = store.upsert_certificate(attempt.id, LocalLocation(tmp_path / "a.pdf"))
        second = store.upsert_certificate(attempt.id, RemoteLocation("https://cdn.example.com/a.pdf"))
        assert second.location == RemoteLocation("https://cdn.example.com/a.pdf")
        assert second.created_at == first.created_at
        conn = store._get_conn()
        try:
            assert conn.execute("SELECT COUNT(*) FROM certificates").fetchone()[0] == 1
        finally:
            conn.close()

    def test_remote_location_decoded(self, store, questions):
        attempt = store.create_attempt(_submission(questions), _result(True))
        store.upsert_certificate(attempt.id, RemoteLocation("https://cdn.example.com/x.pdf"))
        assert isinstance(store.get_certificate(attempt.id).location, RemoteLocation)

    def test_never_created_for_failed_attempt(self, store, questions, tmp_path):
        attempt = store.create_attempt(_submission(questions), _result(False))
        with pytest.raises(AttemptNotPassed):
            store.upsert_certificate(attempt.id, LocalLocation(tmp_path / "a.pdf"))
        assert store.get_certificate(attempt.id) is None


class TestStoreErrors:
    def test_unopenable_database(self, tmp_path):
        store = QuizStore(tmp_path)   # a directory, not a file
        with pytest.raises(PersistenceError):
            store.get_attempt("x")

    def test_missing_tables(self, tmp_path):
        store = QuizStore(tmp_path / "empty.db")
        with pytest.raises(PersistenceError):
            store.get_option("x")

    def test_persistence_error_is_retryable(self):
        assert PersistenceError.retryable is True
