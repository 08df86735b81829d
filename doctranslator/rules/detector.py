"""
Auto-detection of non-translatable keys.

Every document is walked before translation. Keys whose name looks technical,
whatever their value, or whose string value looks technical, are counted per
tenant. A key graduates into the tenant's learned patterns once it has been
seen min_frequency times with a confidence score at or above
confidence_threshold.

Counters never decay. Learning stops adding patterns once max_patterns are
learned, and a tenant's learning is only forgotten through an explicit reset.
"""

import re
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Set, Tuple

from doctranslator.logger import get_logger

logger = get_logger(__name__)

TECHNICAL_KEY_SUBSTRINGS = ('id', 'key', 'code', 'url', 'timestamp', 'config', 'setting')
CONFIDENCE_KEYWORDS = ('id', 'key', 'code', 'url', 'timestamp', 'hash')

HEX_STRING = re.compile(r'^[a-f0-9]{8,}$', re.IGNORECASE)
LONG_NUMBER = re.compile(r'^\d{10,}$')
CONSTANT = re.compile(r'^[A-Z_]+$')
SLUG_LIKE = re.compile(r'^[a-z0-9-]+$')

BASE_CONFIDENCE = 0.5
KEYWORD_BONUS = 0.3
FREQUENCY_STEP = 0.05
MAX_FREQUENCY_BONUS = 0.2


@dataclass
class AutoDetectionState:
    """Per-tenant learning state, passed explicitly to the detector and classifier."""
    tenant_id: str
    pattern_frequency: Dict[str, int] = field(default_factory=dict)
    learned_patterns: Set[str] = field(default_factory=set)
    min_frequency: int = 5
    confidence_threshold: float = 0.8
    max_patterns: int = 1000

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tenant_id": self.tenant_id,
            "pattern_frequency": dict(self.pattern_frequency),
            "learned_patterns": sorted(self.learned_patterns),
            "min_frequency": self.min_frequency,
            "confidence_threshold": self.confidence_threshold,
            "max_patterns": self.max_patterns,
        }


def looks_technical(key: str, value: Any) -> bool:
    """
    Check if a key/value pair looks like a technical field.

    Examples:
        >>> looks_technical('order_code', 'Summer sale')
        True
        >>> looks_technical('title', 'https://example.com')
        True
        >>> looks_technical('title', 'Summer sale')
        False
        >>> looks_technical('product_id', 12345)
        True
    """
    if any(s in key.lower() for s in TECHNICAL_KEY_SUBSTRINGS):
        return True
    if not isinstance(value, str):
        return False
    if HEX_STRING.match(value) or LONG_NUMBER.match(value) or CONSTANT.match(value):
        return True
    if SLUG_LIKE.match(value) and len(value) > 10:
        return True
    if '://' in value:
        return True
    return '@' in value and '.' in value


def pattern_confidence(pattern: str, frequency: int) -> float:
    """
    Score a candidate pattern.

    Base 0.5, +0.3 when the pattern contains a technical keyword, plus up to
    0.2 from its observed frequency, capped at 1.0.
    """
    confidence = BASE_CONFIDENCE
    if any(keyword in pattern for keyword in CONFIDENCE_KEYWORDS):
        confidence += KEYWORD_BONUS
    confidence += min(frequency * FREQUENCY_STEP, MAX_FREQUENCY_BONUS)
    return min(confidence, 1.0)


def iter_fields(node: Any) -> Iterator[Tuple[str, Any]]:
    """Yield every (key, primitive value) pair in a document, depth first."""
    if isinstance(node, dict):
        for key, value in node.items():
            if isinstance(value, (dict, list)):
                yield from iter_fields(value)
            else:
                yield str(key), value
    elif isinstance(node, list):
        for item in node:
            yield from iter_fields(item)


class AutoDetector:
    """Learns non-translatable keys from observed documents."""

    def __init__(self, learning_store=None, enabled: bool = True):
        self.learning_store = learning_store
        self.enabled = enabled

    def observe_state(self, document: Any, state: AutoDetectionState) -> List[str]:
        """
        Update state in place from one document.

        Returns:
            Patterns learned during this call.
        """
        newly_learned = []
        if not self.enabled:
            return newly_learned

        for key, value in iter_fields(document):
            if not looks_technical(key, value):
                continue
            pattern = key.lower()
            frequency = state.pattern_frequency.get(pattern, 0) + 1
            state.pattern_frequency[pattern] = frequency

            if pattern in state.learned_patterns or frequency < state.min_frequency:
                continue

            confidence = pattern_confidence(pattern, frequency)
            if confidence < state.confidence_threshold:
                continue
            if len(state.learned_patterns) >= state.max_patterns:
                logger.debug(f"Learned pattern limit reached for tenant {state.tenant_id}, skipping '{pattern}'")
                continue

            state.learned_patterns.add(pattern)
            newly_learned.append(pattern)
            logger.info(
                f"Auto-detected non-translatable pattern '{pattern}' "
                f"(tenant={state.tenant_id}, frequency={frequency}, confidence={confidence:.2f})"
            )

        return newly_learned

    def observe(self, document: Any, tenant_id: str,
                state: Optional[AutoDetectionState] = None) -> AutoDetectionState:
        """
        Observe a document for a tenant and persist the updated state.

        When no state is given it is loaded from the learning store.
        """
        if state is None:
            if self.learning_store is None:
                state = AutoDetectionState(tenant_id=tenant_id)
            else:
                state = self.learning_store.get(tenant_id)

        self.observe_state(document, state)

        if self.learning_store is not None and self.enabled:
            state = self.learning_store.merge(tenant_id, state)
        return state
