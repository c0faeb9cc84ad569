"""
Quiz presentation helpers: drawing a quiz for a participant and building the
post-submission review.  Neither function exposes an option's correctness
flag before the attempt has been scored.
"""

from __future__ import annotations

import random
from typing import Optional

from quiz_cert.database import QuizStore
from quiz_cert.errors import AttemptNotFound
from quiz_cert.scoring import REQUIRED_QUESTION_COUNT


def draw_quiz(
    store: QuizStore,
    count: int = REQUIRED_QUESTION_COUNT,
    rng: Optional[random.Random] = None,
) -> list[dict]:
    """Return up to *count* random active questions with shuffled options."""
    rng = rng or random.Random()
    questions = store.list_active_questions_with_options()
    chosen = rng.sample(questions, min(count, len(questions)))

    quiz = []
    for q in chosen:
        options = list(q.options)
        rng.shuffle(options)
        quiz.append({
            "id":      q.id,
            "text":    q.text,
            "options": [{"id": o.id, "text": o.text} for o in options],
        })
    return quiz


def attempt_review(store: QuizStore, attempt_id: str) -> dict:
    """Attempt details plus, for each answer, the chosen and the correct option."""
    attempt = store.get_attempt(attempt_id, with_answers=True)
    if attempt is None:
        raise AttemptNotFound(attempt_id)

    results = []
    for answer in attempt.answers:
        question = store.get_question(answer.question_id)
        options = {o.id: o for o in question.options} if question else {}
        selected = options.get(answer.option_id)
        correct = question.correct_option() if question else None
        results.append({
            "question": {
                "id":          answer.question_id,
                "text":        question.text if question else None,
                "explanation": question.explanation if question else None,
            },
            "selectedOption": {"id": selected.id, "text": selected.text} if selected else None,
            "correctOption":  {"id": correct.id, "text": correct.text} if correct else None,
            "isCorrect":      answer.is_correct,
        })

    return {
        "id":             attempt.id,
        "name":           attempt.name,
        "district":       attempt.district,
        "ageGroup":       attempt.age_group.value,
        "gender":         attempt.gender.value,
        "score":          attempt.score,
        "percentage":     attempt.percentage,
        "passed":         attempt.passed,
        "createdAt":      attempt.created_at.isoformat(),
        "results":        results,
        "hasCertificate": store.get_certificate(attempt_id) is not None,
    }
