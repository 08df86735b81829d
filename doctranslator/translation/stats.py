"""
Translation Stats Data Class

Contains the TranslationStats dataclass for per-session counters.
"""

from dataclasses import asdict, dataclass
from typing import Dict


@dataclass
class TranslationStats:
    """Counters for one document translation session."""
    translated: int = 0  # Fresh provider translations
    cached: int = 0      # Served from the translation cache
    skipped: int = 0     # Classified as not translatable
    errors: int = 0      # Failed fields, original value kept

    def to_dict(self) -> Dict[str, int]:
        return asdict(self)
