"""Route blueprints for the web application."""

from .approvals import approvals_bp
from .rules import rules_bp
from .translation import translation_bp

__all__ = [
    "approvals_bp",
    "rules_bp",
    "translation_bp",
]
