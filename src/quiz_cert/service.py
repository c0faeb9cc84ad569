"""
service.py — Entry points for the routing layer
===============================================
QuizCertService wires the store, scoring engine, renderer, storage mode and
issuance coordinator together.  Each collaborator is built lazily on first
use and then reused; every one of them can also be passed in, which is how
the tests substitute fakes.

  score_and_record_attempt(payload)  → {"id", "score", "percentage", "passed"}
  get_or_create_certificate(id)      → LocalLocation | RemoteLocation
  draw_quiz(count)                   → list of public questions
  attempt_review(id)                 → attempt details + per-answer feedback
  certificate_bytes(location)        → PDF bytes of a LocalLocation

error_response(exc) maps any QuizCertError to (status, JSON body).
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Optional, Union

from quiz_cert.certificate_renderer import CertificateRenderer
from quiz_cert.config import Settings, get_settings
from quiz_cert.database import QuizStore
from quiz_cert.errors import PersistenceError, QuizCertError
from quiz_cert.issuance import IssuanceCoordinator
from quiz_cert.models import CertificateLocation, LocalLocation, QuizSubmission
from quiz_cert.quiz import attempt_review, draw_quiz
from quiz_cert.scoring import ScoringEngine
from quiz_cert.storage import LocalCertificateWriter, StorageMode, storage_mode_from_settings

logger = logging.getLogger(__name__)


class QuizCertService:
    def __init__(
        self,
        settings: Optional[Settings] = None,
        *,
        store: Optional[QuizStore] = None,
        storage_mode: Optional[StorageMode] = None,
        renderer: Optional[CertificateRenderer] = None,
        storage_client: Any = None,
    ):
        self.settings = settings or get_settings()
        self._store = store
        self._storage_mode = storage_mode
        self._renderer = renderer
        self._storage_client = storage_client
        self._scoring: Optional[ScoringEngine] = None
        self._coordinator: Optional[IssuanceCoordinator] = None
        self._lock = threading.Lock()

    # ── Lazily-built collaborators ───────────────────────────────────────────

    @property
    def store(self) -> QuizStore:
        if self._store is None:
            with self._lock:
                if self._store is None:
                    store = QuizStore(self.settings.app.db_path)
                    store.init_db()
                    self._store = store
        return self._store

    @property
    def storage_mode(self) -> StorageMode:
        if self._storage_mode is None:
            self._storage_mode = storage_mode_from_settings(
                self.settings.storage, client=self._storage_client
            )
            logger.info("Certificate storage mode: %s", type(self._storage_mode).__name__)
        return self._storage_mode

    @property
    def scoring(self) -> ScoringEngine:
        if self._scoring is None:
            self._scoring = ScoringEngine(
                self.store,
                question_count=self.settings.app.question_count,
                pass_mark_pct=self.settings.app.pass_mark_pct,
            )
        return self._scoring

    @property
    def coordinator(self) -> IssuanceCoordinator:
        if self._coordinator is None:
            self._coordinator = IssuanceCoordinator(
                self.store,
                self._renderer or CertificateRenderer(self.settings.template),
                self.storage_mode,
                LocalCertificateWriter(self.settings.app.certificates_dir),
            )
        return self._coordinator

    # ── Operations ───────────────────────────────────────────────────────────

    def score_and_record_attempt(self, payload: Union[dict, QuizSubmission]) -> dict:
        return self.scoring.score_and_record_attempt(payload).summary()

    def get_or_create_certificate(self, attempt_id: str) -> CertificateLocation:
        return self.coordinator.get_or_create_certificate(attempt_id)

    def draw_quiz(self, count: Optional[int] = None) -> list[dict]:
        if count is None:
            count = self.settings.app.question_count
        return draw_quiz(self.store, count)

    def attempt_review(self, attempt_id: str) -> dict:
        return attempt_review(self.store, attempt_id)

    def certificate_bytes(self, location: LocalLocation) -> bytes:
        try:
            return location.path.read_bytes()
        except OSError as exc:
            raise PersistenceError(f"Certificate file unreadable: {exc}") from exc


# ─── Error mapping ───────────────────────────────────────────────────────────

def error_response(exc: QuizCertError) -> tuple[int, dict]:
    """(HTTP status, JSON body) for a QuizCertError."""
    return exc.http_status, {
        "error":     str(exc),
        "kind":      exc.kind,
        "retryable": exc.retryable,
    }


# ─── Process-wide instance ───────────────────────────────────────────────────

_service: Optional[QuizCertService] = None
_service_lock = threading.Lock()


def get_service() -> QuizCertService:
    """Return the process-wide service, building it on first call."""
    global _service
    if _service is None:
        with _service_lock:
            if _service is None:
                _service = QuizCertService()
    return _service
