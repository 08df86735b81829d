"""
Translation Cache

Permanent (text, target_language) -> translation store with read-through
translation on top. Entries are never updated or expired. Concurrent misses
for the same key may both reach the provider and both write; readers take
the newest row, so duplicates are harmless.
"""

import asyncio
import sqlite3
from typing import Optional, Tuple

from doctranslator.core import database as db
from doctranslator.exceptions import CacheError
from doctranslator.logger import get_logger

logger = get_logger(__name__)


class TranslationCache:
    """sqlite-backed translation cache."""

    async def get(self, text: str, target_language: str) -> Optional[str]:
        """
        Look up a cached translation.

        Raises:
            CacheError: If the store cannot be read.
        """
        try:
            return await asyncio.to_thread(db.get_cached_translation, text, target_language)
        except sqlite3.Error as e:
            raise CacheError(f"Translation cache read failed: {e}", details={"target_language": target_language})

    async def put(self, text: str, target_language: str, translated_text: str):
        """
        Store a translation.

        Raises:
            CacheError: If the store cannot be written.
        """
        try:
            await asyncio.to_thread(db.add_cached_translation, text, target_language, translated_text)
        except sqlite3.Error as e:
            raise CacheError(f"Translation cache write failed: {e}", details={"target_language": target_language})

    def count(self, target_language: str = None) -> int:
        try:
            return db.count_cached_translations(target_language)
        except sqlite3.Error as e:
            raise CacheError(f"Translation cache read failed: {e}")


class CachedTranslator:
    """
    Read-through translation: cache, then placeholder-safe provider call,
    then optional numeral conversion.

    The cache stores the provider's output; numeral conversion is applied to
    fresh and cached translations alike.
    """

    def __init__(self, translator, cache: Optional[TranslationCache] = None, numerals=None):
        self.translator = translator
        self.cache = cache or TranslationCache()
        self.numerals = numerals

    async def _finish(self, translated: str, target_language: str) -> str:
        if self.numerals is None:
            return translated
        return await self.numerals.convert(translated, target_language)

    async def translate(self, text: str, target_language: str, preserve_formatting: bool = False,
                        skip_cache: bool = False) -> Tuple[str, bool]:
        """
        Translate with the cache in front.

        Args:
            text: Source text
            target_language: Target language code
            preserve_formatting: Protect placeholders when calling the provider
            skip_cache: Bypass the cache read (the result is still written)

        Returns:
            Tuple of (translated_text, served_from_cache)
        """
        if not skip_cache:
            cached = await self.cache.get(text, target_language)
            if cached is not None:
                logger.debug(f"Cache hit for {target_language}: {text[:40]!r}")
                return await self._finish(cached, target_language), True

        translated = await self.translator.translate(text, target_language, preserve_formatting=preserve_formatting)
        await self.cache.put(text, target_language, translated)
        return await self._finish(translated, target_language), False
