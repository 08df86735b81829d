"""
Translation Exceptions

This module contains the exception classes shared by every layer of the
document translator. Kept in one place to avoid circular imports between
the rules, ai, translation and approval packages.
"""

from typing import Optional


class TranslationError(Exception):
    """Translation error with optional code and details."""

    def __init__(self, message: str, code: str = None, details: dict = None):
        super().__init__(message)
        self.code = code
        self.details = details or {}

    def to_dict(self) -> dict:
        """Serialize the error for JSON responses."""
        payload = {"error": str(self), "code": self.code or "translation_error"}
        if self.details:
            payload["details"] = self.details
        return payload


class ClassificationConfigError(TranslationError):
    """A rule carries a pattern that does not compile."""

    def __init__(self, message: str, rule_id: Optional[str] = None, pattern: Optional[str] = None):
        super().__init__(
            message,
            code="invalid_rule",
            details={"rule_id": rule_id, "pattern": pattern},
        )
        self.rule_id = rule_id
        self.pattern = pattern


PROVIDER_ERROR_KINDS = ("timeout", "rate_limited", "invalid_credential", "unavailable")


class ProviderError(TranslationError):
    """
    A translation provider call failed.

    kind is one of: timeout, rate_limited, invalid_credential, unavailable.
    """

    def __init__(self, provider: str, kind: str, message: str, status_code: Optional[int] = None):
        if kind not in PROVIDER_ERROR_KINDS:
            kind = "unavailable"
        super().__init__(
            message,
            code=f"provider_{kind}",
            details={"provider": provider, "kind": kind, "status_code": status_code},
        )
        self.provider = provider
        self.kind = kind
        self.status_code = status_code

    @property
    def retryable(self) -> bool:
        return self.kind != "invalid_credential"


class TokenizationMismatchError(TranslationError):
    """Tokens were lost or mangled by the provider."""

    def __init__(self, missing_tokens, translated_text: str = ""):
        missing = sorted(missing_tokens)
        super().__init__(
            f"Tokens missing from translation: {', '.join(missing)}",
            code="token_mismatch",
            details={"missing_tokens": missing},
        )
        self.missing_tokens = missing
        self.translated_text = translated_text


class NotFoundError(TranslationError):
    """A document, language or field does not exist."""

    def __init__(self, message: str, code: str = "not_found", details: dict = None):
        super().__init__(message, code=code, details=details)


class SourceUnreachableError(NotFoundError):
    """The document source could not be fetched or parsed."""

    def __init__(self, message: str, url: Optional[str] = None):
        super().__init__(message, code="source_unreachable", details={"url": url})
        self.url = url


class CacheError(TranslationError):
    """The translation or numeral cache store is unavailable."""

    def __init__(self, message: str, details: dict = None):
        super().__init__(message, code="cache_unavailable", details=details)
