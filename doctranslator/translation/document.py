"""
Document Translator Module

Translates a JSON document tree into a target language:
- Learn non-translatable keys from the document (auto-detection)
- Classify every field against the tenant's rules
- Translate translatable leaves concurrently, bounded by a semaphore
- Recurse into nested objects and lists
- Give leaf entities a url slug
- Stamp the root with _translation_meta
"""

import asyncio
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from doctranslator.config import DEFAULT_MAX_CONCURRENCY, load_config
from doctranslator.exceptions import CacheError
from doctranslator.logger import get_logger
from doctranslator.rules.classifier import Classifier, TenantContext
from doctranslator.rules.detector import AutoDetector
from doctranslator.rules.store import LearningStore
from doctranslator.translation.slugs import apply_url
from doctranslator.translation.stats import TranslationStats
from doctranslator.translation.utils import index_path, join_path

logger = get_logger(__name__)

META_KEY = '_translation_meta'


@dataclass
class TranslationResult:
    """Output of one document translation session."""
    output: Any
    stats: TranslationStats
    target_language: str
    tenant_id: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "output": self.output,
            "stats": self.stats.to_dict(),
            "target_language": self.target_language,
            "tenant_id": self.tenant_id,
        }


@dataclass
class _Session:
    target_language: str
    context: TenantContext
    semaphore: asyncio.Semaphore
    skip_cache: bool = False
    stats: TranslationStats = field(default_factory=TranslationStats)


class DocumentTranslator:
    """
    Walks a document and translates it field by field.

    Each call to translate_document runs in its own session: stats, the
    tenant context and the concurrency limit are not shared between calls.
    """

    def __init__(self, translator, classifier: Optional[Classifier] = None,
                 detector: Optional[AutoDetector] = None,
                 max_concurrency: Optional[int] = None, generate_urls: bool = True):
        """
        Initialize the document translator.

        Args:
            translator: CachedTranslator (or anything with the same translate signature)
            classifier: Field classifier, built from configuration when omitted
            detector: Auto-detector run before each session; None disables learning
            max_concurrency: Maximum in-flight field translations per session
            generate_urls: Assign url slugs to leaf entities
        """
        self.translator = translator
        self.classifier = classifier or Classifier()
        self.detector = detector
        if max_concurrency is None:
            max_concurrency = load_config().get('translation', {}).get('max_concurrency', DEFAULT_MAX_CONCURRENCY)
        self.max_concurrency = max(1, int(max_concurrency))
        self.generate_urls = generate_urls

    @classmethod
    def from_config(cls, config: Optional[Dict[str, Any]] = None, provider_override: Optional[str] = None,
                    transport=None) -> "DocumentTranslator":
        """
        Build the full translation stack from the application configuration.

        Raises:
            TranslationError: If the provider is not configured.
            ProviderError: If the provider has no usable credential.
        """
        from doctranslator.ai.service import TranslationService, validate_ai_config
        from doctranslator.translation.cache import CachedTranslator, TranslationCache
        from doctranslator.translation.numerals import NumeralConverter
        from doctranslator.translation.placeholder_safe import PlaceholderSafeTranslator

        config = config if config is not None else load_config()
        validate_ai_config(provider_override, config)
        translation_config = config.get('translation', {})
        detection_config = config.get('auto_detection', {})

        adapter = TranslationService(provider_override=provider_override, config=config, transport=transport)
        numerals = NumeralConverter(enabled=config.get('numerals', {}).get('enabled', True))
        translator = CachedTranslator(PlaceholderSafeTranslator(adapter), TranslationCache(), numerals)

        learning_store = LearningStore(detection_config)
        classifier = Classifier(
            learning_store=learning_store,
            min_length=translation_config.get('min_length'),
            max_length=translation_config.get('max_length'),
        )
        detector = AutoDetector(learning_store, enabled=detection_config.get('enabled', True))
        return cls(
            translator,
            classifier=classifier,
            detector=detector,
            max_concurrency=translation_config.get('max_concurrency', DEFAULT_MAX_CONCURRENCY),
        )

    async def _load_context(self, document: Any, tenant_id: str) -> TenantContext:
        learned = None
        if self.detector is not None and self.detector.enabled:
            state = await asyncio.to_thread(self.detector.observe, document, tenant_id)
            learned = state.learned_patterns
        return await asyncio.to_thread(self.classifier.context, tenant_id, learned)

    async def translate_document(self, document: Any, target_language: str, tenant_id: str = "default",
                                 skip_cache: bool = False) -> TranslationResult:
        """
        Translate a document tree.

        Args:
            document: JSON-like tree (dict, list or string)
            target_language: Target language code
            tenant_id: Tenant whose rules and learned patterns apply
            skip_cache: Re-translate even when a cached translation exists

        Returns:
            TranslationResult with the translated tree and session stats

        Raises:
            CacheError: If the translation cache is unavailable.
        """
        logger.info(f"Translating document to {target_language} (tenant={tenant_id})")
        context = await self._load_context(document, tenant_id)
        session = _Session(
            target_language=target_language,
            context=context,
            semaphore=asyncio.Semaphore(self.max_concurrency),
            skip_cache=skip_cache,
        )

        if isinstance(document, (dict, list)):
            output = await self._translate_node(document, "", "", session)
        else:
            output = (await self._translate_leaves([("", "", document)], session))[0]

        if isinstance(output, dict):
            output[META_KEY] = {
                "target_language": target_language,
                "translated_at": datetime.now().isoformat(),
                "tenant_id": tenant_id,
                "stats": session.stats.to_dict(),
                "verified": False,
                "auto_generated": True,
            }

        logger.info(f"Finished {target_language} (tenant={tenant_id}): {session.stats.to_dict()}")
        return TranslationResult(output, session.stats, target_language, tenant_id)

    async def translate_document_languages(self, document: Any, languages: List[str], tenant_id: str = "default",
                                           skip_cache: bool = False) -> Dict[str, TranslationResult]:
        """Translate a document into several languages, one session per language."""
        results = {}
        for language in languages:
            results[language] = await self.translate_document(document, language, tenant_id, skip_cache)
        return results

    async def _translate_node(self, node: Any, path: str, parent_key: str, session: _Session) -> Any:
        if isinstance(node, dict):
            return await self._translate_object(node, path, session)
        if isinstance(node, list):
            return await self._translate_list(node, path, parent_key, session)
        return node

    async def _translate_object(self, node: Dict[str, Any], path: str, session: _Session) -> Dict[str, Any]:
        result: Dict[str, Any] = {}

        # Leaf phase
        leaves = [
            (key, join_path(path, key), value)
            for key, value in node.items()
            if not isinstance(value, (dict, list))
        ]
        translated = await self._translate_leaves(leaves, session)
        for (key, _, _), value in zip(leaves, translated):
            result[key] = value

        # Recursion phase
        for key, value in node.items():
            if isinstance(value, (dict, list)):
                result[key] = await self._translate_child(value, join_path(path, key), key, session)

        output = {key: result[key] for key in node}
        if self.generate_urls:
            apply_url(output)
        return output

    async def _translate_list(self, items: List[Any], path: str, parent_key: str, session: _Session) -> List[Any]:
        result: List[Any] = list(items)

        leaves = [
            (i, parent_key, index_path(path, i), item)
            for i, item in enumerate(items)
            if not isinstance(item, (dict, list))
        ]
        translated = await self._translate_leaves([(key, p, v) for _, key, p, v in leaves], session)
        for (i, _, _, _), value in zip(leaves, translated):
            result[i] = value

        for i, item in enumerate(items):
            if isinstance(item, (dict, list)):
                result[i] = await self._translate_child(item, index_path(path, i), parent_key, session)
        return result

    async def _translate_child(self, value: Any, path: str, key: str, session: _Session) -> Any:
        try:
            return await self._translate_node(value, path, key, session)
        except CacheError:
            raise
        except Exception as e:
            logger.error(f"Failed to translate {path} to {session.target_language}: {e}")
            session.stats.errors += 1
            return value

    async def _translate_leaves(self, leaves, session: _Session) -> List[Any]:
        """
        Classify and translate sibling leaves concurrently.

        Args:
            leaves: (key, path, value) tuples; key is the classification key

        Returns:
            Output values in the same order
        """
        values: List[Any] = []
        pending = []
        for key, path, value in leaves:
            classification = self.classifier.classify(key, value, session.context)
            if classification.translate:
                pending.append((len(values), self._translate_leaf(value, path, classification.preserve_formatting, session)))
            else:
                session.stats.skipped += 1
            values.append(value)

        if not pending:
            return values

        outcomes = await asyncio.gather(*(coro for _, coro in pending), return_exceptions=True)
        for (position, _), outcome in zip(pending, outcomes):
            # Field failures are handled in _translate_leaf, only CacheError gets here
            if isinstance(outcome, BaseException):
                raise outcome
            values[position] = outcome
        return values

    async def _translate_leaf(self, value: str, path: str, preserve_formatting: bool, session: _Session) -> str:
        async with session.semaphore:
            try:
                translated, from_cache = await self.translator.translate(
                    value,
                    session.target_language,
                    preserve_formatting=preserve_formatting,
                    skip_cache=session.skip_cache,
                )
            except CacheError:
                raise
            except Exception as e:
                logger.error(f"Failed to translate {path or '<root>'} to {session.target_language}: {e}")
                session.stats.errors += 1
                return value

        if from_cache:
            session.stats.cached += 1
        else:
            session.stats.translated += 1
        logger.debug(f"Translated {path or '<root>'} ({'cache' if from_cache else 'provider'})")
        return translated
