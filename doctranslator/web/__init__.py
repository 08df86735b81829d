"""Web application package for the document translator."""

from flask import Flask

from doctranslator.config import initialize_app


def create_app(**services) -> Flask:
    """
    Application factory for the web API.

    Keyword arguments replace the default services (pages, approvals, rules,
    learning), which is how tests plug in fake providers.
    """
    initialize_app()

    from .app import build_app  # Import here to avoid circular imports

    return build_app(**services)


__all__ = ["create_app"]
