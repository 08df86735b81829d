"""
Page Translation Service

Stores one row per source document with every language's translated tree,
its per-field approval status and a source_changed flag. Translated string
fields are indexed by content hash so that review decisions can propagate.
"""

import asyncio
from typing import Any, Dict, List, Optional

from doctranslator import language_codes as lc
from doctranslator.approval.propagator import index_translation
from doctranslator.config import DEFAULT_SOURCE_LANGUAGE, load_config
from doctranslator.core import database as db
from doctranslator.exceptions import NotFoundError, TranslationError
from doctranslator.logger import get_logger
from doctranslator.pages.compare import compare_sources
from doctranslator.pages.fetcher import DocumentFetcher
from doctranslator.translation.slugs import assign_url
from doctranslator.translation.utils import update_json_values

logger = get_logger(__name__)


class PageTranslationService:
    """Translate, store and edit documents."""

    def __init__(self, translator=None, fetcher: Optional[DocumentFetcher] = None,
                 source_language: Optional[str] = None):
        """
        Args:
            translator: DocumentTranslator, built from configuration on first use when omitted
            fetcher: Document source
            source_language: Language of source documents
        """
        self._translator = translator
        self.fetcher = fetcher or DocumentFetcher()
        if source_language is None:
            source_language = load_config().get('translation', {}).get('source_language', DEFAULT_SOURCE_LANGUAGE)
        self.source_language = source_language

    @property
    def translator(self):
        if self._translator is None:
            from doctranslator.translation.document import DocumentTranslator
            self._translator = DocumentTranslator.from_config()
        return self._translator

    def _get_document(self, content_id: str) -> Dict[str, Any]:
        document = db.get_document(content_id)
        if not document:
            raise NotFoundError(f"Document {content_id} not found", details={"content_id": content_id})
        return document

    def _get_translation(self, document: Dict[str, Any], language: str) -> Any:
        translation = document['translations'].get(language)
        if translation is None:
            raise NotFoundError(
                f"No {language} translation for document {document['document_id']}",
                code="language_not_found",
                details={"content_id": document['document_id'], "language": language},
            )
        return translation

    async def translate_page(self, content_id: str, model_name: str, languages: List[str],
                             tenant_id: str = "default", source_url: Optional[str] = None,
                             data: Any = None, skip_cache: bool = False, force: bool = False) -> Dict[str, Any]:
        """
        Translate a document into the requested languages and store it.

        Languages that already have a translation are left alone unless force
        is set.

        Args:
            content_id: Document identifier
            model_name: Kind of document (attraction, product, ...)
            languages: Target language codes
            tenant_id: Tenant whose rules apply
            source_url: Where to fetch the source from when data is not given
            data: Inline source document
            skip_cache: Bypass translation cache reads
            force: Re-translate languages that already exist

        Returns:
            Dict with content_id, translated languages, skipped languages and stats per language

        Raises:
            TranslationError: If neither data nor source_url is given.
            SourceUnreachableError: If the source cannot be fetched.
        """
        if data is None:
            if not source_url:
                raise TranslationError("Either data or source_url is required", code="missing_source")
            data = await self.fetcher.fetch(source_url)

        existing = await asyncio.to_thread(db.get_document, content_id)
        translations = dict(existing['translations']) if existing else {}
        approval_status = existing['field_approval_status'] if existing else {}
        source_changed = False
        if existing:
            changed_paths = compare_sources(existing['source_data'], data)
            if changed_paths:
                logger.info(f"Source of {content_id} changed at {len(changed_paths)} path(s)")
            source_changed = not force and (existing['source_changed'] or bool(changed_paths))

        # The source language is never a translation target.
        pending = [
            lang for lang in languages
            if (force or lang not in translations) and not lc.languages_match(lang, self.source_language)
        ]
        skipped = [lang for lang in languages if lang not in pending]
        stats = {}

        for language in pending:
            result = await self.translator.translate_document(data, language, tenant_id, skip_cache=skip_cache)
            translations[language] = result.output
            stats[language] = result.stats.to_dict()

        await asyncio.to_thread(
            db.save_document,
            content_id,
            model_name,
            self.source_language,
            data,
            translations,
            source_url or (existing or {}).get('source_url'),
            approval_status,
            source_changed,
        )
        for language in pending:
            await asyncio.to_thread(
                index_translation, content_id, data, translations[language], self.source_language, language
            )

        logger.info(f"Stored {content_id}: translated {pending}, skipped {skipped}")
        return {
            "content_id": content_id,
            "translated_languages": pending,
            "skipped_languages": skipped,
            "stats": stats,
            "source_changed": source_changed,
        }

    def get_translations(self, content_id: str, language: Optional[str] = None) -> Dict[str, Any]:
        """Return one language's translation, or every language when language is None."""
        document = self._get_document(content_id)
        if language:
            return {
                "content_id": content_id,
                "language": language,
                "translation": self._get_translation(document, language),
                "approval_status": document['field_approval_status'].get(language, {}),
                "source_changed": document['source_changed'],
            }
        return {
            "content_id": content_id,
            "model_name": document['model_name'],
            "source_url": document['source_url'],
            "source_language": document['source_language'],
            "languages": sorted(document['translations']),
            "translations": document['translations'],
            "source_changed": document['source_changed'],
        }

    def list_documents(self, model_name: Optional[str] = None) -> List[Dict[str, Any]]:
        """Summaries of stored documents, optionally of one model."""
        return [
            {
                "content_id": document['document_id'],
                "model_name": document['model_name'],
                "source_url": document['source_url'],
                "languages": sorted(document['translations']),
                "source_changed": document['source_changed'],
                "updated_at": document['updated_at'],
            }
            for document in db.get_all_documents(model_name)
        ]

    def delete_page(self, content_id: str):
        """Delete a document, its content index rows and its approval references."""
        if not db.delete_document(content_id):
            raise NotFoundError(f"Document {content_id} not found", details={"content_id": content_id})
        logger.info(f"Deleted document {content_id}")

    def update_translation_url(self, content_id: str, language: str, new_url: str) -> Dict[str, Any]:
        """Replace a translation's url, keeping the previous one in old_urls."""
        if not new_url:
            raise TranslationError("url must not be empty", code="invalid_url")
        document = self._get_document(content_id)
        translation = self._get_translation(document, language)
        if not isinstance(translation, dict):
            raise TranslationError(f"Translation of {content_id} is not an object", code="invalid_document")

        assign_url(translation, new_url)
        db.update_document_translations(content_id, document['translations'])
        logger.info(f"Updated url of {content_id} ({language}) to {new_url}")
        return translation

    def update_translation_fields(self, content_id: str, language: str, updates: Dict[str, Any]) -> Dict[str, Any]:
        """
        Merge reviewer edits into a translation.

        Only keys already present in the translation are overwritten.
        """
        document = self._get_document(content_id)
        translation = self._get_translation(document, language)
        if not isinstance(translation, dict) or not isinstance(updates, dict):
            raise TranslationError("Field updates require an object", code="invalid_document")

        update_json_values(translation, updates)
        db.update_document_translations(content_id, document['translations'])
        index_translation(content_id, document['source_data'], translation, document['source_language'], language)
        logger.info(f"Updated fields of {content_id} ({language})")
        return translation

    async def refresh_source(self, content_id: str) -> Dict[str, Any]:
        """
        Re-fetch a document's source and flag it when it changed.

        Returns:
            Dict with content_id, source_changed and changed_paths
        """
        document = await asyncio.to_thread(self._get_document, content_id)
        if not document['source_url']:
            raise TranslationError(f"Document {content_id} has no source_url", code="missing_source")

        data = await self.fetcher.fetch(document['source_url'])
        changed_paths = compare_sources(document['source_data'], data)
        if changed_paths:
            await asyncio.to_thread(db.update_document_source, content_id, data, True)
            logger.info(f"Source of {content_id} changed: {changed_paths[:10]}")

        return {
            "content_id": content_id,
            "source_changed": bool(changed_paths) or document['source_changed'],
            "changed_paths": changed_paths,
        }
