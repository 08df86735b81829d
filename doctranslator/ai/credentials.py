"""
Provider credentials.

The provider adapter is the only consumer. Keys come from the provider's
config section; an unset key falls back to the <PROVIDER>_API_KEY
environment variable.
"""

import os
from typing import Any, Dict, Optional

from doctranslator.config import PLACEHOLDER_API_KEY, load_config
from doctranslator.exceptions import ProviderError
from doctranslator.logger import get_logger

logger = get_logger(__name__)


def credential_env_var(provider_name: str) -> str:
    """
    Examples:
        >>> credential_env_var('openai')
        'OPENAI_API_KEY'
        >>> credential_env_var('my-llm')
        'MY_LLM_API_KEY'
    """
    return f"{provider_name.upper().replace('-', '_')}_API_KEY"


class ConfigCredentialProvider:
    """Resolve API keys from configuration, then the environment."""

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        self._config = config

    def get_credential(self, provider_name: str) -> str:
        """
        Get the secret for a provider.

        Raises:
            ProviderError: kind=invalid_credential when no key is configured.
        """
        config = self._config if self._config is not None else load_config()
        provider_config = config.get(provider_name) or {}
        api_key = provider_config.get('api_key', '') if isinstance(provider_config, dict) else ''

        if api_key and api_key != PLACEHOLDER_API_KEY:
            return api_key

        env_key = os.environ.get(credential_env_var(provider_name), '')
        if env_key:
            logger.debug(f"Using {credential_env_var(provider_name)} for provider {provider_name}")
            return env_key

        raise ProviderError(
            provider_name,
            "invalid_credential",
            f"{provider_name} API key not configured",
        )
