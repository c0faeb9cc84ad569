"""
config.py — Central settings for the quiz certificate service
=============================================================
All configuration is loaded from environment variables / .env file.
Copy .env.example → .env and fill in your values.

Remote certificate storage activates automatically when STORAGE_ENDPOINT_URL,
STORAGE_ACCESS_KEY, STORAGE_SECRET_KEY and STORAGE_PUBLIC_BASE_URL contain real
(non-placeholder) values.  STORAGE_PUBLIC_BASE_URL is the prefix objects are
served under, e.g. ``https://<project>.supabase.co/storage/v1/object/public/certificates``
for Supabase or a bucket custom domain for R2.  Without them certificates are
written to CERTIFICATES_DIR, unless REQUIRE_REMOTE_STORAGE is set, in which
case issuance fails instead.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

# Load .env into os.environ (no-op if already set, safe to call multiple times)
load_dotenv(override=False)

_REPO_ROOT = Path(__file__).resolve().parent.parent.parent

DEFAULT_TEMPLATE_SOURCE = "https://ik.imagekit.io/bua2b1x6j/kashful/image.png"


# ─── Helpers ────────────────────────────────────────────────────────────────

def _is_placeholder(value: str) -> bool:
    """Return True if the value looks like an unfilled template placeholder."""
    return not value or "<" in value or value.startswith("your-") or value == "PLACEHOLDER"


# ─── Object storage (S3-compatible: Supabase Storage, R2, AWS) ──────────────

@dataclass(frozen=True)
class StorageConfig:
    endpoint_url:    str
    access_key:      str
    secret_key:      str
    bucket:          str
    region:          str
    public_base_url: str   # public prefix objects are served under; includes the bucket path if needed
    require_remote:  bool

    @property
    def is_configured(self) -> bool:
        """True when endpoint, both credentials and the public base URL are real values."""
        return not any(
            _is_placeholder(v)
            for v in (self.endpoint_url, self.access_key, self.secret_key, self.public_base_url)
        )

    @property
    def has_credentials(self) -> bool:
        return not any(
            _is_placeholder(v) for v in (self.endpoint_url, self.access_key, self.secret_key)
        )

    def public_url(self, key: str) -> str:
        """Public URL of *key*: ``{public_base_url}/{key}``."""
        return f"{self.public_base_url.rstrip('/')}/{key}"


# ─── Certificate template & layout ──────────────────────────────────────────

@dataclass(frozen=True)
class TemplateConfig:
    source:          str     # http(s) URL or local path of the PNG template
    timeout_s:       float
    name_top_ratio:  float   # name y-position as a fraction of page height
    name_font_size:  float
    name_color:      str     # hex

    @property
    def is_remote(self) -> bool:
        return self.source.startswith(("http://", "https://"))


# ─── App-level settings ──────────────────────────────────────────────────────

@dataclass(frozen=True)
class AppConfig:
    db_path:          Path
    certificates_dir: Path
    question_count:   int
    pass_mark_pct:    float


# ─── Master settings object ──────────────────────────────────────────────────

@dataclass(frozen=True)
class Settings:
    storage:  StorageConfig
    template: TemplateConfig
    app:      AppConfig

    def status_summary(self) -> dict[str, str]:
        """Return a dict of service → status string for health checks."""
        def badge(ok: bool) -> str:
            return "configured" if ok else "not configured"

        return {
            "Certificate storage": badge(self.storage.is_configured),
            "Certificate template": "remote" if self.template.is_remote else "local file",
        }


def get_settings() -> Settings:
    """Load all configuration from environment variables."""
    _str   = lambda k, d="": os.getenv(k, d).strip()
    _int   = lambda k, d=0: int(os.getenv(k, str(d)) or d)
    _float = lambda k, d=0.0: float(os.getenv(k, str(d)) or d)
    _bool  = lambda k, d=False: os.getenv(k, str(d)).lower() in ("1", "true", "yes")

    return Settings(
        storage=StorageConfig(
            endpoint_url    = _str("STORAGE_ENDPOINT_URL").rstrip("/"),
            access_key      = _str("STORAGE_ACCESS_KEY"),
            secret_key      = _str("STORAGE_SECRET_KEY"),
            bucket          = _str("STORAGE_BUCKET", "certificates"),
            region          = _str("STORAGE_REGION", "auto"),
            public_base_url = _str("STORAGE_PUBLIC_BASE_URL").rstrip("/"),
            require_remote  = _bool("REQUIRE_REMOTE_STORAGE", False),
        ),
        template=TemplateConfig(
            source         = _str("CERT_TEMPLATE_SOURCE", DEFAULT_TEMPLATE_SOURCE),
            timeout_s      = _float("CERT_TEMPLATE_TIMEOUT", 10.0),
            name_top_ratio = _float("CERT_NAME_TOP_RATIO", 0.40),
            name_font_size = _float("CERT_NAME_FONT_SIZE", 32.0),
            name_color     = _str("CERT_NAME_COLOR", "#1a1a1a"),
        ),
        app=AppConfig(
            db_path          = Path(_str("QUIZ_DB_PATH", str(_REPO_ROOT / "quiz_cert_data.db"))),
            certificates_dir = Path(_str("CERTIFICATES_DIR", str(_REPO_ROOT / "certificates"))),
            question_count   = _int("QUIZ_QUESTION_COUNT", 20),
            pass_mark_pct    = _float("QUIZ_PASS_MARK_PCT", 50.0),
        ),
    )
