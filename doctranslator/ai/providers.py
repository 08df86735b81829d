"""
AI Provider API Implementations

This module contains the API call implementations for each provider:
- Gemini
- OpenAI
- DeepSeek
- HuggingFace (self-hosted translation endpoint)
- Custom providers (OpenAI-compatible)

Each function takes a TranslationService instance and returns the raw text
response. Failures are raised as ProviderError tagged with a kind the retry
policy understands.
"""

from typing import Any, Dict, Optional

import httpx

from doctranslator.exceptions import ProviderError
from doctranslator.logger import get_logger

logger = get_logger(__name__)


def get_httpx_timeout(timeout_config: Any) -> httpx.Timeout:
    """
    Convert timeout configuration to httpx.Timeout object.

    Args:
        timeout_config: Either a number (read timeout) or a dict with
            connect, write, read, pool keys

    Returns:
        httpx.Timeout object
    """
    if isinstance(timeout_config, dict):
        return httpx.Timeout(
            connect=timeout_config.get('connect', 10.0),
            write=timeout_config.get('write', 30.0),
            read=timeout_config.get('read', 30.0),
            pool=timeout_config.get('pool', 10.0),
        )
    timeout_value = float(timeout_config) if timeout_config else 30.0
    return httpx.Timeout(
        connect=10.0,
        write=30.0,
        read=timeout_value,
        pool=10.0,
    )


def error_kind_for_status(status_code: int) -> str:
    """
    Map an HTTP status to a ProviderError kind.

    Examples:
        >>> error_kind_for_status(429)
        'rate_limited'
        >>> error_kind_for_status(403)
        'invalid_credential'
        >>> error_kind_for_status(502)
        'unavailable'
    """
    if status_code == 429:
        return "rate_limited"
    if status_code in (401, 403):
        return "invalid_credential"
    if status_code in (408, 504):
        return "timeout"
    return "unavailable"


def handle_http_error(e: httpx.HTTPStatusError, provider: str):
    """Raise a ProviderError with details extracted from the response body."""
    status_code = e.response.status_code
    error_text = "Unknown error"

    try:
        error_json = e.response.json()
        if isinstance(error_json, dict) and "error" in error_json:
            error_detail = error_json["error"]
            if isinstance(error_detail, dict):
                error_text = error_detail.get("message", str(error_detail))
            else:
                error_text = str(error_detail)
    except ValueError:
        error_text = e.response.text[:500] or "No details"

    raise ProviderError(
        provider,
        error_kind_for_status(status_code),
        f"{provider} API error ({status_code}): {error_text}",
        status_code=status_code,
    )


async def _post_json(service, provider: str, url: str, body: Dict[str, Any],
                     headers: Optional[Dict[str, str]] = None,
                     params: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
    """POST a JSON body and return the decoded JSON response."""
    timeout = service.provider_config.get('timeout', 30)
    try:
        async with service.http_client(get_httpx_timeout(timeout)) as client:
            response = await client.post(url, json=body, headers=headers, params=params)
            response.raise_for_status()
            return response.json()
    except httpx.HTTPStatusError as e:
        logger.error(f"{provider} API HTTP error: {e.response.status_code}")
        handle_http_error(e, provider)
    except httpx.TimeoutException:
        raise ProviderError(provider, "timeout", f"{provider} API request timeout")
    except httpx.HTTPError as e:
        raise ProviderError(provider, "unavailable", f"{provider} API call failed: {e}")
    except ValueError as e:
        raise ProviderError(provider, "unavailable", f"{provider} returned invalid JSON: {e}")


def _chat_completion_content(result: Dict[str, Any], provider: str) -> str:
    choices = result.get('choices') or []
    if choices:
        content = (choices[0].get('message') or {}).get('content')
        if isinstance(content, str):
            return content
    raise ProviderError(provider, "unavailable", f"No content in {provider} response")


async def call_chat_completion_api(service, provider: str, prompt: str, system_message: str,
                                   default_model: str = "", default_url: str = "") -> str:
    """Call an OpenAI-compatible chat completions endpoint."""
    provider_config = service.provider_config
    api_key = service.credentials.get_credential(service.provider)
    model = service._get_model(provider_config, default_model)
    api_url = provider_config.get('api_url') or default_url

    if not api_url:
        raise ProviderError(provider, "unavailable", f"{provider} API URL not configured")
    if not model:
        raise ProviderError(provider, "unavailable", f"{provider} model not configured")

    headers = {
        "Authorization": f"Bearer {api_key}",
        "Content-Type": "application/json"
    }
    body = {
        "model": model,
        "messages": [
            {"role": "system", "content": system_message},
            {"role": "user", "content": prompt},
        ],
    }

    logger.debug(f"Calling {provider} API (model: {model})...")
    result = await _post_json(service, provider, api_url, body, headers=headers)

    usage = result.get('usage', {}) or {}
    service.record_token_usage(usage.get('prompt_tokens', 0), usage.get('completion_tokens', 0))

    content = _chat_completion_content(result, provider)
    logger.debug(f"Received {len(content)} chars from {provider}")
    return content


async def call_openai_api_text(service, prompt: str, system_message: str) -> str:
    return await call_chat_completion_api(
        service, "OpenAI", prompt, system_message,
        default_model='gpt-4o-mini',
        default_url='https://api.openai.com/v1/chat/completions',
    )


async def call_deepseek_api_text(service, prompt: str, system_message: str) -> str:
    return await call_chat_completion_api(
        service, "DeepSeek", prompt, system_message,
        default_model='deepseek-chat',
        default_url='https://api.deepseek.com/chat/completions',
    )


async def call_custom_provider_api_text(service, prompt: str, system_message: str) -> str:
    """Call custom provider API using OpenAI-compatible format."""
    return await call_chat_completion_api(
        service, f"Custom provider '{service.provider}'", prompt, system_message,
    )


async def call_gemini_api(service, prompt: str, system_message: str) -> str:
    """Call the Gemini generateContent API."""
    provider_config = service.provider_config
    api_key = service.credentials.get_credential('gemini')
    model = service._get_model(provider_config, 'gemini-2.5-flash')
    base_url = (provider_config.get('api_url') or
                'https://generativelanguage.googleapis.com/v1beta/models').rstrip('/')

    url = f"{base_url}/{model}:generateContent"
    body = {
        "systemInstruction": {"parts": [{"text": system_message}]},
        "contents": [{
            "parts": [{
                "text": prompt
            }]
        }],
        "generationConfig": {
            "maxOutputTokens": 8192,
        }
    }

    logger.debug(f"Calling Gemini API: {model}")
    result = await _post_json(service, "Gemini", url, body, params={"key": api_key})

    usage_metadata = result.get('usageMetadata', {}) or {}
    prompt_tokens = usage_metadata.get('promptTokenCount', 0)
    completion_tokens = usage_metadata.get('candidatesTokenCount', 0)
    # Fallback: calculate from total if candidatesTokenCount is missing
    if completion_tokens == 0 and prompt_tokens > 0:
        total_tokens = usage_metadata.get('totalTokenCount', 0)
        if total_tokens > prompt_tokens:
            completion_tokens = total_tokens - prompt_tokens
    service.record_token_usage(prompt_tokens, completion_tokens)

    candidates = result.get('candidates') or []
    if candidates:
        parts = (candidates[0].get('content') or {}).get('parts') or []
        if parts and isinstance(parts[0].get('text'), str):
            return parts[0]['text']

    raise ProviderError("Gemini", "unavailable", "Unexpected Gemini API response format")


async def call_huggingface_api(service, text: str, target_language: str) -> str:
    """
    Call a self-hosted translation model.

    The endpoint takes raw text, not a prompt:
    POST {api_url}/api/v1/translate {"text": ..., "lang": ...} -> {"translated_text": ...}
    """
    provider_config = service.provider_config
    base_url = (provider_config.get('api_url') or '').rstrip('/')
    if not base_url:
        raise ProviderError("HuggingFace", "unavailable", "HuggingFace API URL not configured")

    headers = {"Content-Type": "application/json"}
    try:
        headers["Authorization"] = f"Bearer {service.credentials.get_credential('huggingface')}"
    except ProviderError:
        # Self-hosted endpoints commonly run without authentication
        logger.debug("No HuggingFace API key configured, calling without Authorization header")

    result = await _post_json(
        service, "HuggingFace", f"{base_url}/api/v1/translate",
        {"text": text, "lang": target_language},
        headers=headers,
    )
    translated = result.get('translated_text')
    if not isinstance(translated, str):
        raise ProviderError("HuggingFace", "unavailable", "No translated_text in HuggingFace response")
    return translated
