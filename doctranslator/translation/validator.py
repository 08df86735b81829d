"""
Translation Validation Module

Contains validation functions for checking provider output:
- Token preservation checks for tokenized translations
- Basic content checks (empty output)
"""

from typing import Dict, Optional, Set, Tuple

from doctranslator.exceptions import TokenizationMismatchError
from doctranslator.logger import get_logger
from doctranslator.translation.tokenizer import TOKEN_PATTERN, top_level_tokens

logger = get_logger(__name__)


def find_missing_tokens(tokenized_string: str, translated_text: str, token_map: Dict[str, str]) -> Set[str]:
    """
    Tokens sent to the provider that did not come back.

    Args:
        tokenized_string: Text that was sent to the provider
        translated_text: Text the provider returned
        token_map: Token map from tokenize()

    Returns:
        Set of missing tokens
    """
    return {
        token for token in top_level_tokens(tokenized_string, token_map)
        if token not in translated_text
    }


def find_unknown_tokens(translated_text: str, token_map: Dict[str, str]) -> Set[str]:
    """Token look-alikes in the output that were never issued (renumbered or merged tokens)."""
    return {
        match.group(0) for match in TOKEN_PATTERN.finditer(translated_text)
        if match.group(0) not in token_map
    }


def validate_tokens_preserved(
    tokenized_string: str,
    translated_text: str,
    token_map: Dict[str, str],
) -> Tuple[bool, Optional[str]]:
    """
    Check that every token survived translation unchanged.

    Returns:
        Tuple of (is_valid, error_reason)
    """
    if not translated_text or not translated_text.strip():
        return False, "empty"

    missing = find_missing_tokens(tokenized_string, translated_text, token_map)
    if missing:
        return False, f"tokens_lost:{','.join(sorted(missing))}"

    unknown = find_unknown_tokens(translated_text, token_map)
    if unknown:
        return False, f"tokens_mangled:{','.join(sorted(unknown))}"

    return True, None


def ensure_tokens_preserved(tokenized_string: str, translated_text: str, token_map: Dict[str, str]) -> None:
    """
    Raise when a tokenized translation lost or mangled tokens.

    Raises:
        TokenizationMismatchError: With the offending tokens.
    """
    is_valid, reason = validate_tokens_preserved(tokenized_string, translated_text, token_map)
    if is_valid:
        return
    logger.debug(f"Token check failed: {reason}")
    text = translated_text or ""
    offending = find_missing_tokens(tokenized_string, text, token_map) | find_unknown_tokens(text, token_map)
    raise TokenizationMismatchError(offending or {reason}, text)
