"""
Translation Rule Data Classes

A TranslationRule decides, for one (key, value) pair, whether the value is
excluded from translation and whether it needs placeholder protection.
Every MatchType is evaluated through _MATCHERS; adding a member without a
matcher fails at import time.
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Pattern

from doctranslator.exceptions import ClassificationConfigError

DEFAULT_RULE_SET_VERSION = "1.0.0"


class MatchType(str, Enum):
    KEY_EXACT = "key_exact"
    KEY_PATTERN = "key_pattern"
    VALUE_PATTERN = "value_pattern"
    CONTENT_TYPE = "content_type"


class RuleAction(str, Enum):
    EXCLUDE = "exclude"
    TRANSLATE = "translate"


@dataclass
class TranslationRule:
    """One classification rule."""
    match_type: MatchType
    pattern: str
    action: RuleAction = RuleAction.EXCLUDE
    id: str = ""
    preserve_formatting: Optional[bool] = None
    # CONTENT_TYPE only: which content type enables the rule and
    # whether it matches the key name ("key") or the value ("value")
    content_type: Optional[str] = None
    target: str = "key"
    description: str = ""
    _compiled: Optional[Pattern] = field(default=None, init=False, repr=False, compare=False)

    def __post_init__(self):
        self.match_type = MatchType(self.match_type)
        self.action = RuleAction(self.action)
        if not self.id:
            self.id = f"{self.match_type.value}:{self.pattern}"

    @property
    def uses_regex(self) -> bool:
        if self.match_type == MatchType.CONTENT_TYPE:
            return self.target == "value"
        return self.match_type in (MatchType.KEY_PATTERN, MatchType.VALUE_PATTERN)

    def compile(self) -> Optional[Pattern]:
        """
        Compile the rule's regex once.

        Raises:
            ClassificationConfigError: If the pattern is not a valid regex.
        """
        if not self.uses_regex:
            return None
        if self._compiled is None:
            try:
                self._compiled = re.compile(self.pattern)
            except (re.error, TypeError) as e:
                raise ClassificationConfigError(
                    f"Invalid pattern for rule '{self.id}': {e}",
                    rule_id=self.id,
                    pattern=self.pattern,
                )
        return self._compiled

    def matches(self, key: str, value: Any) -> bool:
        return _MATCHERS[self.match_type](self, key or "", value)

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "id": self.id,
            "match_type": self.match_type.value,
            "pattern": self.pattern,
            "action": self.action.value,
            "preserve_formatting": self.preserve_formatting,
        }
        if self.match_type == MatchType.CONTENT_TYPE:
            data["content_type"] = self.content_type
            data["target"] = self.target
        if self.description:
            data["description"] = self.description
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TranslationRule":
        try:
            return cls(
                match_type=data["match_type"],
                pattern=data["pattern"],
                action=data.get("action", RuleAction.EXCLUDE.value),
                id=data.get("id", ""),
                preserve_formatting=data.get("preserve_formatting"),
                content_type=data.get("content_type"),
                target=data.get("target", "key"),
                description=data.get("description", ""),
            )
        except (KeyError, ValueError) as e:
            raise ClassificationConfigError(
                f"Malformed rule definition: {e}",
                rule_id=data.get("id") if isinstance(data, dict) else None,
                pattern=data.get("pattern") if isinstance(data, dict) else None,
            )


def _match_key_exact(rule: TranslationRule, key: str, value: Any) -> bool:
    return key.lower() == rule.pattern.lower()


def _match_key_pattern(rule: TranslationRule, key: str, value: Any) -> bool:
    return rule.compile().search(key) is not None


def _match_value_pattern(rule: TranslationRule, key: str, value: Any) -> bool:
    if not isinstance(value, str):
        return False
    return rule.compile().search(value) is not None


def _match_content_type(rule: TranslationRule, key: str, value: Any) -> bool:
    if rule.target == "value":
        return _match_value_pattern(rule, key, value)
    return _match_key_exact(rule, key, value)


_MATCHERS: Dict[MatchType, Callable[[TranslationRule, str, Any], bool]] = {
    MatchType.KEY_EXACT: _match_key_exact,
    MatchType.KEY_PATTERN: _match_key_pattern,
    MatchType.VALUE_PATTERN: _match_value_pattern,
    MatchType.CONTENT_TYPE: _match_content_type,
}

_unhandled = set(MatchType) - set(_MATCHERS)
if _unhandled:
    raise RuntimeError(f"No matcher for match types: {sorted(m.value for m in _unhandled)}")


@dataclass
class RuleSet:
    """A tenant's ordered rules plus the content types it enables."""
    tenant_id: str
    rules: List[TranslationRule] = field(default_factory=list)
    content_types: List[str] = field(default_factory=list)
    version: str = DEFAULT_RULE_SET_VERSION

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tenant_id": self.tenant_id,
            "version": self.version,
            "content_types": list(self.content_types),
            "rules": [r.to_dict() for r in self.rules],
        }


def bump_patch_version(version: str) -> str:
    """
    Increment the patch component of a dotted version.

    Examples:
        >>> bump_patch_version('1.0.0')
        '1.0.1'
        >>> bump_patch_version('garbage')
        '1.0.1'
    """
    parts = (version or "").split(".")
    if len(parts) != 3 or not all(p.isdigit() for p in parts):
        parts = DEFAULT_RULE_SET_VERSION.split(".")
    major, minor, patch = (int(p) for p in parts)
    return f"{major}.{minor}.{patch + 1}"
