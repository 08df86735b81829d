"""
Numeral Conversion

Rewrites ASCII digits into a target script's native numerals. Every other
character keeps its position: only 0-9 are mapped, one glyph per digit.
Conversion is best effort; any failure returns the original text.
"""

import asyncio
from typing import Dict, Optional, Tuple

from doctranslator import language_codes as lc
from doctranslator.core import database as db
from doctranslator.logger import get_logger

logger = get_logger(__name__)

NUMERAL_SCRIPTS: Dict[str, Tuple[str, str]] = {
    'hi': ('Devanagari', '०१२३४५६७८९'),
    'mr': ('Devanagari', '०१२३४५६७८९'),
    'ne': ('Devanagari', '०१२३४५६७८९'),
    'ar': ('Arabic-Indic', '٠١٢٣٤٥٦٧٨٩'),
    'ur': ('Arabic-Indic', '٠١٢٣٤٥٦٧٨٩'),
    'fa': ('Persian', '۰۱۲۳۴۵۶۷۸۹'),
    'bn': ('Bengali', '০১২৩৪৫৬৭৮৯'),
    'ta': ('Tamil', '௦௧௨௩௪௫௬௭௮௯'),
    'te': ('Telugu', '౦౧౨౩౪౫౬౭౮౯'),
    'kn': ('Kannada', '೦೧೨೩೪೫೬೭೮೯'),
    'ml': ('Malayalam', '൦൧൨൩൪൫൬൭൮൯'),
    'gu': ('Gujarati', '૦૧૨૩૪૫૬૭૮૯'),
    'pa': ('Gurmukhi', '੦੧੨੩੪੫੬੭੮੯'),
    'or': ('Odia', '୦୧୨୩୪୫୬୭୮୯'),
    'th': ('Thai', '๐๑๒๓๔๕๖๗๘๙'),
    'my': ('Myanmar', '၀၁၂၃၄၅၆၇၈၉'),
    'zh': ('Chinese', '〇一二三四五六七八九'),
}

_TRANSLATION_TABLES = {
    language: str.maketrans('0123456789', glyphs)
    for language, (_, glyphs) in NUMERAL_SCRIPTS.items()
}


def script_for(target_language: str) -> Optional[str]:
    """Name of the numeral script used for a language, or None for Latin digits."""
    script = NUMERAL_SCRIPTS.get(lc.extract_base_language(target_language))
    return script[0] if script else None


def has_numerals_to_convert(text: str, target_language: str) -> bool:
    """
    Check if text contains ASCII digits that need conversion for the language.

    Examples:
        >>> has_numerals_to_convert('Price: ¥15,000', 'hi')
        True
        >>> has_numerals_to_convert('Price: $25.99', 'es')
        False
    """
    if not isinstance(text, str) or script_for(target_language) is None:
        return False
    return any('0' <= ch <= '9' for ch in text)


def convert_digits(text: str, target_language: str) -> str:
    """Pure digit rewrite without caching."""
    table = _TRANSLATION_TABLES.get(lc.extract_base_language(target_language))
    if table is None:
        return text
    return text.translate(table)


class NumeralConverter:
    """Convert digits with an in-process cache in front of the numeral_cache table."""

    def __init__(self, persistent: bool = True, enabled: bool = True):
        self.persistent = persistent
        self.enabled = enabled
        self._cache: Dict[Tuple[str, str], str] = {}
        self.hits = 0
        self.misses = 0

    async def convert(self, text: str, target_language: str) -> str:
        """
        Convert numerals in text to the target language's script.

        Returns the original text when nothing needs converting or when
        conversion fails for any reason.
        """
        if not self.enabled or not has_numerals_to_convert(text, target_language):
            return text

        cache_key = (text, target_language)
        try:
            if cache_key in self._cache:
                self.hits += 1
                return self._cache[cache_key]

            if self.persistent:
                stored = await asyncio.to_thread(db.get_numeral_conversion, text, target_language)
                if stored is not None:
                    self.hits += 1
                    self._cache[cache_key] = stored
                    return stored

            self.misses += 1
            converted = convert_digits(text, target_language)
            if len(converted) != len(text):
                logger.warning(f"Numeral conversion changed text length for {target_language}, keeping original")
                return text

            self._cache[cache_key] = converted
            if self.persistent:
                await asyncio.to_thread(db.set_numeral_conversion, text, target_language, converted)
            return converted

        except Exception as e:
            logger.warning(f"Numeral conversion failed for {target_language}: {e}")
            return text

    def clear_cache(self, persistent: bool = False):
        """Clear the in-process cache, and the stored conversions when persistent=True."""
        self._cache.clear()
        self.hits = 0
        self.misses = 0
        if persistent:
            db.clear_numeral_cache()

    def cache_stats(self) -> Dict[str, int]:
        stats = {
            "size": len(self._cache),
            "hits": self.hits,
            "misses": self.misses,
        }
        if self.persistent:
            stats["stored"] = db.count_numeral_conversions()
        return stats
