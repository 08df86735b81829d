"""
Translation module - Core translation functionality

This module provides:
- DocumentTranslator: document tree translation workflow
- CachedTranslator / TranslationCache: read-through translation cache
- PlaceholderSafeTranslator: tokenize, translate, restore
- NumeralConverter: native numeral scripts
- Tokenizer and token validation helpers
- URL slug helpers
"""

from doctranslator.translation.stats import TranslationStats
from doctranslator.translation.tokenizer import detokenize, has_protected_constructs, tokenize
from doctranslator.translation.validator import (
    ensure_tokens_preserved,
    find_missing_tokens,
    validate_tokens_preserved,
)
from doctranslator.translation.numerals import NumeralConverter
from doctranslator.translation.placeholder_safe import PlaceholderSafeTranslator
from doctranslator.translation.cache import CachedTranslator, TranslationCache
from doctranslator.translation.slugs import assign_url, make_slug, needs_url
from doctranslator.translation.document import DocumentTranslator, TranslationResult
