"""
Placeholder-safe translation.

Text with protected constructs is tokenized, sent to the provider with an
instruction to keep tokens verbatim, checked, and detokenized. When the
tokenized call fails or the reply loses or mangles a token, the original
text is sent directly instead. That degraded path may corrupt format
markers but still produces a translation.
"""

from doctranslator.exceptions import ProviderError, TokenizationMismatchError
from doctranslator.logger import get_logger
from doctranslator.translation.tokenizer import detokenize, has_protected_constructs, tokenize
from doctranslator.translation.validator import ensure_tokens_preserved

logger = get_logger(__name__)


class PlaceholderSafeTranslator:
    """Wraps a provider adapter with tokenize / restore / fallback."""

    def __init__(self, adapter):
        self.adapter = adapter
        self.fallbacks = 0

    async def translate(self, text: str, target_language: str, preserve_formatting: bool = False) -> str:
        """
        Translate text, protecting placeholders when needed.

        Args:
            text: Source text
            target_language: Target language code
            preserve_formatting: Classifier asked for placeholder protection

        Returns:
            Translated text

        Raises:
            ProviderError: Only when the direct call fails too.
        """
        if not (preserve_formatting or has_protected_constructs(text)):
            return await self.adapter.translate(text, target_language)

        tokenized, token_map = tokenize(text)
        if not token_map:
            return await self.adapter.translate(text, target_language)

        try:
            translated = await self.adapter.translate(tokenized, target_language, preserve_tokens=True)
            ensure_tokens_preserved(tokenized, translated, token_map)
            return detokenize(translated, token_map)
        except TokenizationMismatchError as e:
            logger.warning(f"Tokens lost in translation to {target_language} ({e}), retrying without tokens")
        except ProviderError as e:
            logger.warning(f"Tokenized translation to {target_language} failed ({e}), retrying without tokens")

        self.fallbacks += 1
        return await self.adapter.translate(text, target_language)
