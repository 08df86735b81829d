"""
AI Module

This module provides the provider adapter and related utilities.
"""

from doctranslator.ai.credentials import ConfigCredentialProvider
from doctranslator.ai.service import TranslationService, validate_ai_config

__all__ = ['ConfigCredentialProvider', 'TranslationService', 'validate_ai_config']
