import asyncio
import os

import pytest

os.environ.setdefault("DOCTRANSLATOR_LOG_MODE", "off")

from doctranslator.core import database as db
from doctranslator.core.schema import initialize_database
from doctranslator.exceptions import ProviderError
from doctranslator.rules.classifier import Classifier
from doctranslator.rules.detector import AutoDetector
from doctranslator.rules.store import LearningStore, RuleStore
from doctranslator.translation.cache import CachedTranslator, TranslationCache
from doctranslator.translation.document import DocumentTranslator
from doctranslator.translation.numerals import NumeralConverter
from doctranslator.translation.placeholder_safe import PlaceholderSafeTranslator

DETECTION_SETTINGS = {"min_frequency": 5, "confidence_threshold": 0.8, "max_patterns": 1000}


class FakeAdapter:
    """Provider adapter double: prefixes the language, or uses a mapping/function."""

    def __init__(self, responses=None, fail_on=(), delay=0.0):
        self.responses = responses
        self.fail_on = set(fail_on)
        self.delay = delay
        self.calls = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def translate(self, text, target_language, preserve_tokens=False, source_language=None):
        self.calls.append((text, target_language, preserve_tokens))
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            if text in self.fail_on:
                raise ProviderError("fake", "unavailable", f"cannot translate {text!r}")
            if callable(self.responses):
                return self.responses(text, target_language)
            if isinstance(self.responses, dict) and text in self.responses:
                return self.responses[text]
            return f"[{target_language}] {text}"
        finally:
            self.in_flight -= 1


def identity(text, target_language):
    return text


@pytest.fixture(autouse=True)
def temp_db(tmp_path, monkeypatch):
    db_file = tmp_path / "test.db"
    monkeypatch.setattr(db, "DB_FILE", db_file)
    initialize_database()
    return db_file


@pytest.fixture
def adapter():
    return FakeAdapter()


def build_document_translator(adapter, max_concurrency=10, detection_settings=None, numerals_enabled=True):
    learning_store = LearningStore(detection_settings or DETECTION_SETTINGS)
    classifier = Classifier(RuleStore(), learning_store, min_length=2, max_length=500)
    cached = CachedTranslator(
        PlaceholderSafeTranslator(adapter),
        TranslationCache(),
        NumeralConverter(enabled=numerals_enabled),
    )
    return DocumentTranslator(
        cached,
        classifier=classifier,
        detector=AutoDetector(learning_store),
        max_concurrency=max_concurrency,
    )


@pytest.fixture
def document_translator(adapter):
    return build_document_translator(adapter)
