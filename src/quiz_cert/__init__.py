"""
quiz_cert — Quiz scoring and certificate issuance
==================================================
Scores quiz submissions against a stored question bank and, for passing
attempts, renders a PDF certificate onto a PNG template and hosts it at a
stable location (object storage URL or local file).

Module map
----------
  config.py                Settings loaded from .env (storage, template, app).
  errors.py                QuizCertError taxonomy with status / retryable flags.
  models.py                Enums, dataclasses, Pydantic submission model,
                           LocalLocation | RemoteLocation certificate location.
  png_header.py            Width/height from the PNG IHDR header (24 bytes).
  certificate_renderer.py  Template fetch + reportlab page composition.
  storage.py               S3-compatible upload, StorageMode, local-disk writer.
  database.py              SQLite store: questions, attempts, certificates.
  scoring.py               ScoringEngine: validate → score → persist attempt.
  quiz.py                  Quiz draw and post-submission review.
  issuance.py              IssuanceCoordinator: idempotent get-or-create.
  service.py               Facade for the routing layer + error mapping.

Flow
----
  submission → ScoringEngine → quiz_attempts/answers rows
  certificate request → IssuanceCoordinator → CertificateRenderer
  → StorageEnabled upload | local write → certificates upsert → location
"""
__version__ = "0.1.0"
