"""
Factory helpers for building test objects.
Imported by conftest.py fixtures AND directly by test modules.
"""
import io
import os
import struct
import sys
import threading
import zlib

# Ensure both src/ and tests/ are importable in all test files
_tests_dir = os.path.dirname(__file__)
_src_dir   = os.path.join(_tests_dir, "..", "src")
for _p in (_tests_dir, _src_dir):
    if _p not in sys.path:
        sys.path.insert(0, _p)

# Never talk to real object storage during tests
for _k in ("STORAGE_ENDPOINT_URL", "STORAGE_ACCESS_KEY", "STORAGE_SECRET_KEY",
           "STORAGE_PUBLIC_BASE_URL", "REQUIRE_REMOTE_STORAGE"):
    os.environ.pop(_k, None)

from PIL import Image

from quiz_cert.config import StorageConfig, TemplateConfig
from quiz_cert.database import QuizStore


PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"


# ─── Images ───────────────────────────────────────────────────────────────────

def make_png(width: int = 400, height: int = 300, colour: str = "white") -> bytes:
    """A real, decodable PNG."""
    buf = io.BytesIO()
    Image.new("RGB", (width, height), colour).save(buf, format="PNG")
    return buf.getvalue()


def make_png_header(width: int, height: int) -> bytes:
    """Signature + a complete IHDR chunk; no pixel data."""
    ihdr = struct.pack(">IIBBBBB", width, height, 8, 2, 0, 0, 0)
    chunk = b"IHDR" + ihdr
    return PNG_SIGNATURE + struct.pack(">I", len(ihdr)) + chunk + struct.pack(">I", zlib.crc32(chunk))


# ─── Config ───────────────────────────────────────────────────────────────────

def make_template_config(source: str, **overrides) -> TemplateConfig:
    values = dict(
        source         = source,
        timeout_s      = 5.0,
        name_top_ratio = 0.40,
        name_font_size = 32.0,
        name_color     = "#1a1a1a",
    )
    values.update(overrides)
    return TemplateConfig(**values)


def make_storage_config(configured: bool = True, require_remote: bool = False) -> StorageConfig:
    return StorageConfig(
        endpoint_url    = "https://project.storage.example.com/s3" if configured else "",
        access_key      = "test-access-key" if configured else "",
        secret_key      = "test-secret-key" if configured else "",
        bucket          = "certificates",
        region          = "auto",
        public_base_url = "https://cdn.example.com/public/certificates",
        require_remote  = require_remote,
    )


# ─── Question bank & submissions ──────────────────────────────────────────────

def make_store(tmp_path) -> QuizStore:
    store = QuizStore(tmp_path / "quiz.db")
    store.init_db()
    return store


def seed_questions(store: QuizStore, n: int = 20, inactive: int = 0) -> list:
    """Add *n* active (+ *inactive*) questions, each with 4 options, option 0 correct."""
    questions = []
    for i in range(n + inactive):
        questions.append(store.add_question(
            text=f"Question {i + 1}?",
            explanation=f"Because {i + 1}.",
            options=[
                {"text": "Right", "is_correct": True},
                {"text": "Wrong A"},
                {"text": "Wrong B"},
                {"text": "Wrong C"},
            ],
            active=i < n,
        ))
    return questions


def answers_for(questions: list, correct: int) -> list[dict]:
    """One answer per question; the first *correct* of them right."""
    answers = []
    for i, q in enumerate(questions):
        option = q.correct_option() if i < correct else next(o for o in q.options if not o.is_correct)
        answers.append({"questionId": q.id, "optionId": option.id})
    return answers


def make_submission(questions: list, correct: int = 15, **overrides) -> dict:
    payload = {
        "name":     "Test User",
        "district": "Dhaka",
        "ageGroup": "26-40",
        "gender":   "Female",
        "answers":  answers_for(questions, correct),
    }
    payload.update(overrides)
    return payload


# ─── Fakes ────────────────────────────────────────────────────────────────────

class FakeRenderer:
    """Stands in for CertificateRenderer; counts renders."""

    def __init__(self, fail_with: Exception = None):
        self.calls = 0
        self.fail_with = fail_with
        self._lock = threading.Lock()

    def render(self, data, dest=None) -> bytes:
        with self._lock:
            self.calls += 1
        if self.fail_with is not None:
            raise self.fail_with
        return b"%PDF-1.4 certificate for " + data.name.encode()


class FakeS3Client:
    """Minimal boto3 S3 client double recording put_object calls."""

    def __init__(self, fail_with: Exception = None):
        self.objects: dict[tuple[str, str], bytes] = {}
        self.put_calls = 0
        self.fail_with = fail_with
        self._lock = threading.Lock()

    def put_object(self, Bucket, Key, Body, ContentType=None):
        with self._lock:
            self.put_calls += 1
        if self.fail_with is not None:
            raise self.fail_with
        with self._lock:
            self.objects[(Bucket, Key)] = Body
        return {"ETag": '"fake"'}
