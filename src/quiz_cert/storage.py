"""
storage.py — Where certificate PDFs live
========================================
Two destinations, chosen once at startup:

  StorageEnabled(store)   S3-compatible object storage (Supabase Storage's
                          S3 endpoint, Cloudflare R2, AWS S3).  Objects are
                          keyed "{attempt_id}.pdf", so a re-upload
                          overwrites rather than duplicates.
  StorageDisabled()       Storage credentials absent.  Certificates go to the
                          local certificates directory instead, unless the
                          deployment set REQUIRE_REMOTE_STORAGE.

The boto3 client is created lazily on first upload and then reused for
the life of the process.  Tests pass a fake client into CertificateStore.
"""

from __future__ import annotations

import logging
import os
import tempfile
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional, Union

import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError

from quiz_cert.config import StorageConfig
from quiz_cert.errors import PersistenceError, UploadError
from quiz_cert.models import LocalLocation

logger = logging.getLogger(__name__)

PDF_CONTENT_TYPE = "application/pdf"


def certificate_key(attempt_id: str) -> str:
    """Deterministic object key / file name for an attempt's certificate."""
    return f"{attempt_id}.pdf"


# ─── Remote object storage ──────────────────────────────────────────────────

class CertificateStore:
    """Uploads certificate PDFs to an S3-compatible bucket."""

    def __init__(self, cfg: StorageConfig, client: Any = None):
        self.cfg = cfg
        self._client = client
        self._client_lock = threading.Lock()

    @property
    def client(self) -> Any:
        if self._client is None:
            with self._client_lock:
                if self._client is None:
                    self._client = boto3.client(
                        "s3",
                        endpoint_url=self.cfg.endpoint_url,
                        aws_access_key_id=self.cfg.access_key,
                        aws_secret_access_key=self.cfg.secret_key,
                        region_name=self.cfg.region,
                        config=BotoConfig(connect_timeout=5, read_timeout=30, retries={"max_attempts": 3}),
                    )
        return self._client

    def upload(self, attempt_id: str, pdf_bytes: bytes) -> str:
        """Upload (or overwrite) the attempt's PDF and return its public URL."""
        key = certificate_key(attempt_id)
        try:
            self.client.put_object(
                Bucket=self.cfg.bucket,
                Key=key,
                Body=pdf_bytes,
                ContentType=PDF_CONTENT_TYPE,
            )
        except (BotoCoreError, ClientError) as exc:
            logger.error("Certificate upload failed for %s: %s", attempt_id, exc)
            raise UploadError(f"Certificate upload failed: {exc}") from exc

        url = self.cfg.public_url(key)
        logger.info("Uploaded certificate %s → %s", key, url)
        return url


# ─── Storage mode ────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class StorageDisabled:
    required: bool = False   # True → issuance must fail instead of using disk


@dataclass(frozen=True)
class StorageEnabled:
    store: CertificateStore


StorageMode = Union[StorageDisabled, StorageEnabled]


def storage_mode_from_settings(cfg: StorageConfig, client: Any = None) -> StorageMode:
    """Decide the storage mode once from configuration."""
    if cfg.is_configured:
        return StorageEnabled(CertificateStore(cfg, client=client))
    if cfg.has_credentials:
        logger.warning("STORAGE_PUBLIC_BASE_URL is not set; certificate storage stays disabled")
    if cfg.require_remote:
        logger.warning("Remote certificate storage is required but not configured")
    return StorageDisabled(required=cfg.require_remote)


# ─── Local disk ──────────────────────────────────────────────────────────────

class LocalCertificateWriter:
    """Writes certificate PDFs under a single directory."""

    def __init__(self, directory: Union[str, Path]):
        self.directory = Path(directory)

    def path_for(self, attempt_id: str) -> Path:
        return (self.directory / certificate_key(attempt_id)).resolve()

    def write(self, attempt_id: str, pdf_bytes: bytes) -> LocalLocation:
        """
        Write the PDF atomically (temp file + rename) so a concurrent reader
        never sees a half-written certificate.
        """
        dest = self.path_for(attempt_id)
        tmp_name: Optional[str] = None
        try:
            dest.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=dest.parent, suffix=".pdf.tmp")
            with os.fdopen(fd, "wb") as fh:
                fh.write(pdf_bytes)
            os.replace(tmp_name, dest)
        except OSError as exc:
            if tmp_name and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise PersistenceError(f"Certificate write failed: {exc}") from exc

        logger.info("Wrote certificate %s", dest)
        return LocalLocation(dest)
