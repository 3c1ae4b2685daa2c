"""
Fixtures compartidas.

Cada test usa una base SQLite en memoria propia y un traductor falso
que registra las llamadas (nunca se llama a DeepL).
"""

import os
import threading
from datetime import datetime

os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from sqlalchemy.orm import sessionmaker

from escalando_core.config import get_settings
from escalando_core.content_sync import ContentSyncEngine
from escalando_core.db import models  # noqa: F401
from escalando_core.db.database import Base, build_engine
from escalando_core.exceptions import TranslationError

get_settings.cache_clear()


class FakeTranslator:
    """Traduce a "EN:<texto>" salvo que se indique otra cosa en `mapping`."""

    def __init__(self, mapping=None):
        self.mapping = mapping or {}
        self.calls = []
        self._lock = threading.Lock()

    def translate(self, text, target_lang="EN"):
        with self._lock:
            self.calls.append(text)
        return self.mapping.get(text, f"EN:{text}")


class FailingTranslator:
    def __init__(self):
        self.calls = []

    def translate(self, text, target_lang="EN"):
        self.calls.append(text)
        raise TranslationError("DeepL API error: quota exceeded")


class FakeMailer:
    def __init__(self):
        self.sent = []

    def send(self, to, subject, html):
        self.sent.append({"to": to, "subject": subject, "html": html})


@pytest.fixture
def db_engine():
    engine = build_engine("sqlite://")
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(db_engine):
    """Sesión sobre la base en memoria; el test decide cuándo commitear."""
    factory = sessionmaker(bind=db_engine, autoflush=False, autocommit=False, expire_on_commit=False)
    db_session = factory()
    try:
        yield db_session
    finally:
        db_session.close()


@pytest.fixture
def translator():
    return FakeTranslator()


@pytest.fixture
def failing_translator():
    return FailingTranslator()


@pytest.fixture
def mailer():
    return FakeMailer()


@pytest.fixture
def sync_engine(session, translator):
    return ContentSyncEngine(session, translator, max_workers=4)


@pytest.fixture
def news_fields():
    return {
        "title_es": "Escalada en la Patagonia",
        "body_es": "Una expedición al Fitz Roy.",
        "category_es": "Expediciones",
        "tags_es": ["montaña", "río"],
        "date": datetime(2024, 5, 10, 12, 0),
        "author": "Ana",
        "location_city": "El Chaltén",
        "location_country": "Argentina",
        "cover_image_url": "https://cdn.example.org/cover.jpg",
    }


@pytest.fixture
def event_fields(news_fields):
    fields = dict(news_fields)
    fields.update({
        "title_es": "Festival de escalada",
        "phrase_es": "Subir juntos",
        "credits_es": "Fotos: Juan",
    })
    return fields
