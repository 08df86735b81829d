"""
Pages module - translated document storage

This module provides:
- DocumentFetcher: fetch a source document over HTTP
- PageTranslationService: translate, store, edit and refresh documents
- compare_sources: changed paths between two source versions
"""

from doctranslator.pages.compare import compare_sources
from doctranslator.pages.fetcher import DocumentFetcher
from doctranslator.pages.service import PageTranslationService

__all__ = ['DocumentFetcher', 'PageTranslationService', 'compare_sources']
