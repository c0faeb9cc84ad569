"""
issuance.py — Idempotent certificate retrieval-or-creation
==========================================================
For one attempt id:

  attempt unknown                      → AttemptNotFound
  attempt.passed is False              → AttemptNotPassed
  certificate record → RemoteLocation  → return it, no work
  certificate record → LocalLocation
      file exists, storage disabled    → return it, no work
      file exists, storage enabled     → upload the existing file, repoint the record
      file missing                     → regenerate, update the record in place
  no certificate record                → render → store → upsert, return location

Render and store always complete before the record is written, so a failed
render or upload leaves no record behind.  Concurrent calls for the same
attempt are not serialised: both may render and store, but the object key
and the record upsert are both keyed by attempt id, so they converge on one
record pointing at a complete artifact.
"""

from __future__ import annotations

import logging

from quiz_cert.certificate_renderer import CertificateRenderer
from quiz_cert.database import QuizStore
from quiz_cert.errors import (
    AttemptNotFound,
    AttemptNotPassed,
    PersistenceError,
    StorageNotConfigured,
)
from quiz_cert.models import (
    CertificateData,
    CertificateLocation,
    LocalLocation,
    QuizAttempt,
    RemoteLocation,
)
from quiz_cert.storage import LocalCertificateWriter, StorageDisabled, StorageEnabled, StorageMode

logger = logging.getLogger(__name__)


class IssuanceCoordinator:
    """
    Usage::

        coordinator = IssuanceCoordinator(store, renderer, mode, LocalCertificateWriter(dir))
        location    = coordinator.get_or_create_certificate(attempt_id)
    """

    def __init__(
        self,
        store: QuizStore,
        renderer: CertificateRenderer,
        storage_mode: StorageMode,
        local_writer: LocalCertificateWriter,
    ):
        self.store = store
        self.renderer = renderer
        self.storage_mode = storage_mode
        self.local_writer = local_writer

    def get_or_create_certificate(self, attempt_id: str) -> CertificateLocation:
        attempt = self.store.get_attempt(attempt_id)
        if attempt is None:
            raise AttemptNotFound(attempt_id)
        if not attempt.passed:
            raise AttemptNotPassed(attempt_id)

        existing = self.store.get_certificate(attempt_id)
        if existing is not None:
            location = existing.location
            if isinstance(location, RemoteLocation):
                logger.debug("Certificate for %s already hosted at %s", attempt_id, location)
                return location
            if location.path.is_file():
                if isinstance(self.storage_mode, StorageEnabled):
                    return self._migrate_to_remote(attempt, location)
                return location
            logger.warning(
                "Certificate file %s for attempt %s is missing; regenerating",
                location.path, attempt_id,
            )

        return self._issue(attempt)

    # ── Steps ────────────────────────────────────────────────────────────────

    def _issue(self, attempt: QuizAttempt) -> CertificateLocation:
        if isinstance(self.storage_mode, StorageDisabled) and self.storage_mode.required:
            raise StorageNotConfigured("Certificate storage is not configured")

        pdf = self.renderer.render(CertificateData.from_attempt(attempt))
        location = self._store_pdf(attempt.id, pdf)
        self.store.upsert_certificate(attempt.id, location)
        logger.info("Issued certificate for attempt %s at %s", attempt.id, location)
        return location

    def _store_pdf(self, attempt_id: str, pdf: bytes) -> CertificateLocation:
        if isinstance(self.storage_mode, StorageEnabled):
            return RemoteLocation(self.storage_mode.store.upload(attempt_id, pdf))
        return self.local_writer.write(attempt_id, pdf)

    def _migrate_to_remote(self, attempt: QuizAttempt, location: LocalLocation) -> CertificateLocation:
        try:
            pdf = location.path.read_bytes()
        except FileNotFoundError:
            return self._issue(attempt)
        except OSError as exc:
            raise PersistenceError(f"Certificate file unreadable: {exc}") from exc
        remote = RemoteLocation(self.storage_mode.store.upload(attempt.id, pdf))
        self.store.upsert_certificate(attempt.id, remote)
        logger.info("Moved certificate for attempt %s from %s to %s", attempt.id, location, remote)
        return remote
