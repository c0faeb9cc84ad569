"""
Shared pytest fixtures for the quiz_cert test suite.
Every fixture uses a temporary SQLite file and local or faked storage —
no network or cloud credentials required.
Factory helpers live in tests/factories.py so they can be imported
directly by test modules as well as being used here.
"""
import sys
import os

_tests_dir = os.path.dirname(__file__)
_src_dir   = os.path.join(_tests_dir, "..", "src")
for _p in (_tests_dir, _src_dir):
    if _p not in sys.path:
        sys.path.insert(0, _p)


import pytest

from factories import make_png, make_store, make_template_config, seed_questions

from quiz_cert.certificate_renderer import CertificateRenderer
from quiz_cert.scoring import ScoringEngine
from quiz_cert.storage import LocalCertificateWriter


# ─── pytest fixtures ──────────────────────────────────────────────────────────

@pytest.fixture
def store(tmp_path):
    return make_store(tmp_path)


@pytest.fixture
def questions(store):
    return seed_questions(store, n=20)


@pytest.fixture
def engine(store):
    return ScoringEngine(store)


@pytest.fixture
def template_png():
    return make_png(400, 300)


@pytest.fixture
def template_path(tmp_path, template_png):
    path = tmp_path / "template.png"
    path.write_bytes(template_png)
    return path


@pytest.fixture
def renderer(template_path):
    return CertificateRenderer(make_template_config(str(template_path)))


@pytest.fixture
def local_writer(tmp_path):
    return LocalCertificateWriter(tmp_path / "certificates")
