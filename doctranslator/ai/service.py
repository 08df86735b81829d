"""
AI Translation Service Module

This module provides the provider adapter used by the document translator:
- TranslationService: translate(text, target_language) against one provider
- Configuration validation
- Error categorisation and retry logic

For provider-specific API implementations, see ai/providers.py
"""

import asyncio
from typing import Any, Dict, Optional, Tuple

import httpx

from doctranslator import language_codes as lc
from doctranslator.ai.credentials import ConfigCredentialProvider
from doctranslator.config import (
    BUILTIN_PROVIDERS,
    DEFAULT_SOURCE_LANGUAGE,
    DEFAULT_SYSTEM_MESSAGE,
    PROVIDER_DEFAULTS,
    get_prompt,
    load_config,
)
from doctranslator.exceptions import ProviderError, TranslationError
from doctranslator.logger import get_logger

logger = get_logger(__name__)


def validate_ai_config(provider_override: Optional[str] = None, config: Optional[Dict[str, Any]] = None) -> None:
    """
    Validate that AI provider configuration is properly set up.

    Args:
        provider_override: Optional provider to validate instead of the default.
        config: Optional configuration, loaded from the database when omitted.

    Raises:
        TranslationError: If configuration is invalid or missing, with code and details.
        ProviderError: If the provider has no usable credential.
    """
    config = config if config is not None else load_config()
    provider = provider_override or config.get('ai_provider', 'openai')

    provider_config = config.get(provider)
    if not isinstance(provider_config, dict) or not provider_config:
        raise TranslationError(
            f"AI provider '{provider}' configuration not found",
            code="ai_config_missing",
            details={"provider": provider}
        )

    if provider != 'huggingface':
        ConfigCredentialProvider(config).get_credential(provider)
        models = [m for m in provider_config.get('models', []) if m and isinstance(m, str)]
        if not models and not provider_config.get('model'):
            raise TranslationError(
                f"{provider} model not configured",
                code="ai_config_missing",
                details={"provider": provider, "missing_field": "models"}
            )
    elif not provider_config.get('api_url'):
        raise TranslationError(
            "HuggingFace API URL not configured",
            code="ai_config_missing",
            details={"provider": provider, "missing_field": "api_url"}
        )


class TranslationService:
    """Provider adapter: translate one string with one configured provider."""

    def __init__(self, provider_override: Optional[str] = None, model_override: Optional[str] = None,
                 config: Optional[Dict[str, Any]] = None, credentials=None,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self.config = config if config is not None else load_config()
        self.provider = provider_override or self.config.get('ai_provider', 'openai')
        self.model_override = model_override
        self.provider_config = self.config.get(self.provider, {}) or {}
        self.translation_config = self.config.get('translation', {})
        self.credentials = credentials or ConfigCredentialProvider(self.config)
        self.transport = transport
        self.max_retries = max(1, int(self.provider_config.get('max_retries', PROVIDER_DEFAULTS['max_retries'])))
        self.calls = 0
        self.total_prompt_tokens = 0
        self.total_completion_tokens = 0
        logger.info(f"Initialized translation service with provider: {self.provider}")

    def http_client(self, timeout: httpx.Timeout) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=timeout, transport=self.transport)

    def _get_model(self, provider_config: Dict[str, Any], default_model: str = "") -> str:
        """
        Get the model to use for translation.

        Priority:
        1. model_override (if set)
        2. First model from 'models' array
        3. 'model' field (legacy)
        4. default_model
        """
        if self.model_override:
            return self.model_override

        models = provider_config.get('models', [])
        if models and isinstance(models, list) and models[0]:
            return models[0]

        return provider_config.get('model', default_model)

    def record_token_usage(self, prompt_tokens: int, completion_tokens: int):
        self.total_prompt_tokens += prompt_tokens or 0
        self.total_completion_tokens += completion_tokens or 0

    def get_total_token_usage(self) -> Dict[str, int]:
        return {
            'prompt_tokens': self.total_prompt_tokens,
            'completion_tokens': self.total_completion_tokens,
        }

    def _get_system_message(self, preserve_tokens: bool) -> str:
        system_message = self.translation_config.get('system_message') or DEFAULT_SYSTEM_MESSAGE
        if preserve_tokens:
            system_message = f"{system_message}\n\n{get_prompt('token_preservation_instruction')['prompt']}"
        return system_message

    def _build_prompt(self, text: str, source_language: str, target_language: str) -> str:
        prompt_template = get_prompt('text_translation_prompt')['prompt']
        return prompt_template.format(
            source_language_name=lc.get_language_name(source_language) or source_language,
            source_language_code=source_language,
            target_language_name=lc.get_language_name(target_language) or target_language,
            target_language_code=target_language,
            text=text,
        )

    async def _call_provider(self, text: str, source_language: str, target_language: str,
                             preserve_tokens: bool) -> str:
        from doctranslator.ai.providers import (
            call_custom_provider_api_text,
            call_deepseek_api_text,
            call_gemini_api,
            call_huggingface_api,
            call_openai_api_text,
        )

        if self.provider == 'huggingface':
            return await call_huggingface_api(self, text, target_language)

        prompt = self._build_prompt(text, source_language, target_language)
        system_message = self._get_system_message(preserve_tokens)

        if self.provider == 'gemini':
            return await call_gemini_api(self, prompt, system_message)
        elif self.provider == 'openai':
            return await call_openai_api_text(self, prompt, system_message)
        elif self.provider == 'deepseek':
            return await call_deepseek_api_text(self, prompt, system_message)
        elif self.provider not in BUILTIN_PROVIDERS:
            return await call_custom_provider_api_text(self, prompt, system_message)
        raise TranslationError(f"Unsupported AI provider: {self.provider}")

    async def translate(self, text: str, target_language: str, preserve_tokens: bool = False,
                        source_language: Optional[str] = None) -> str:
        """
        Translate one string.

        Args:
            text: Text to translate (possibly tokenized)
            target_language: Target language code
            preserve_tokens: Instruct the provider to keep TOKEN_n markers verbatim
            source_language: Source language code, defaults to configuration

        Returns:
            Translated text

        Raises:
            ProviderError: When every attempt failed.
        """
        source_language = source_language or self.translation_config.get('source_language', DEFAULT_SOURCE_LANGUAGE)
        last_error = None

        for attempt in range(self.max_retries):
            try:
                if attempt > 0:
                    logger.info(f"Retry attempt {attempt + 1}/{self.max_retries} ({self.provider})")
                self.calls += 1
                response_text = await self._call_provider(text, source_language, target_language, preserve_tokens)
                translated = clean_response_text(response_text)
                if not translated:
                    raise ProviderError(self.provider, "unavailable", f"{self.provider} returned an empty translation")
                return translated

            except ProviderError as e:
                last_error = e
                should_retry, wait_time = self._categorize_error(e, attempt)

                if should_retry and attempt < self.max_retries - 1:
                    logger.warning(f"Attempt {attempt + 1} failed: {e}. Waiting {wait_time}s before retry...")
                    await asyncio.sleep(wait_time)
                elif not should_retry:
                    logger.error(f"Non-recoverable error: {e}")
                    break

        logger.warning(f"Translation failed after {attempt + 1} attempt(s) with {self.provider}")
        raise last_error

    def _categorize_error(self, error: ProviderError, attempt: int) -> Tuple[bool, float]:
        """
        Categorize an error and determine retry strategy.

        Returns:
            Tuple of (should_retry, wait_time_seconds)
        """
        # Rate limiting (429) - long backoff
        if error.kind == "rate_limited":
            wait_time = 30 * (2 ** attempt)  # 30s, 60s, 120s
            return True, min(wait_time, 300)  # Max 5 minutes

        # Authentication errors (401, 403) - don't retry
        if not error.retryable:
            return False, 0

        # Timeout - retry with backoff
        if error.kind == "timeout":
            return True, 5 * (2 ** attempt)  # 5s, 10s, 20s

        # Server errors and anything else - standard backoff
        return True, 2 ** attempt


def clean_response_text(text: str) -> str:
    """
    Strip wrapping whitespace, code fences and quotes from a provider reply.

    Examples:
        >>> clean_response_text('```\\nHola\\n```')
        'Hola'
        >>> clean_response_text('"Hola"')
        'Hola'
    """
    if not text:
        return ""
    cleaned = text.strip()
    if cleaned.startswith("```") and cleaned.endswith("```") and len(cleaned) >= 6:
        cleaned = cleaned[3:-3]
        first_newline = cleaned.find("\n")
        if first_newline != -1 and not cleaned[:first_newline].strip().count(" "):
            cleaned = cleaned[first_newline + 1:]
        cleaned = cleaned.strip()
    if len(cleaned) >= 2 and cleaned[0] == cleaned[-1] and cleaned[0] in ('"', "'"):
        cleaned = cleaned[1:-1].strip()
    return cleaned
