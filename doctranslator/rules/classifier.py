"""
Content Classifier

Decides, per (key, value, tenant), whether a value is translated and whether
it additionally needs placeholder protection.

Order of evaluation, first match wins:
0. Non-strings, blank strings and strings outside the length bounds are kept.
1. Exact key rules (case-insensitive).
2. Key pattern rules.
3. Value pattern rules.
4. Content type rules, for content types the tenant enables.
5. Patterns the tenant has learned through auto-detection.
6. Otherwise the value is translated.

Within each step tenant rules come before global rules. An exclude rule keeps
the value; a translate rule allows it immediately.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Set, Union

from doctranslator.config import DEFAULT_MAX_LENGTH, DEFAULT_MIN_LENGTH, load_config
from doctranslator.exceptions import ClassificationConfigError
from doctranslator.logger import get_logger
from doctranslator.rules.models import MatchType, RuleAction, TranslationRule
from doctranslator.rules.store import LearningStore, RuleStore

logger = get_logger(__name__)

DEFAULT_PRESERVE_FORMATTING = False

PHASES = (
    MatchType.KEY_EXACT,
    MatchType.KEY_PATTERN,
    MatchType.VALUE_PATTERN,
    MatchType.CONTENT_TYPE,
)


@dataclass
class TenantContext:
    """Everything classification needs for one tenant, loaded once per session."""
    tenant_id: str
    rules: List[TranslationRule] = field(default_factory=list)
    content_types: Set[str] = field(default_factory=set)
    learned_patterns: Set[str] = field(default_factory=set)
    diagnostics: List[Dict[str, Any]] = field(default_factory=list)

    def applicable_rules(self) -> List[TranslationRule]:
        """Rules in evaluation order, content type rules filtered to enabled types."""
        return [
            rule for rule in self.rules
            if rule.match_type != MatchType.CONTENT_TYPE or rule.content_type in self.content_types
        ]


@dataclass
class Classification:
    translate: bool
    preserve_formatting: bool = DEFAULT_PRESERVE_FORMATTING
    reason: str = "default"


class Classifier:
    """Rule-based translation classifier."""

    def __init__(self, rule_store: Optional[RuleStore] = None,
                 learning_store: Optional[LearningStore] = None,
                 min_length: Optional[int] = None, max_length: Optional[int] = None):
        self.rule_store = rule_store or RuleStore()
        self.learning_store = learning_store or LearningStore()
        if min_length is None or max_length is None:
            translation_config = load_config().get('translation', {})
            if min_length is None:
                min_length = translation_config.get('min_length', DEFAULT_MIN_LENGTH)
            if max_length is None:
                max_length = translation_config.get('max_length', DEFAULT_MAX_LENGTH)
        self.min_length = min_length
        self.max_length = max_length

    def context(self, tenant_id: str, learned_patterns: Optional[Set[str]] = None) -> TenantContext:
        """Load a tenant's rules and learned patterns into a TenantContext."""
        loaded = self.rule_store.load(tenant_id)
        if learned_patterns is None:
            learned_patterns = self.learning_store.get(tenant_id).learned_patterns
        return TenantContext(
            tenant_id=tenant_id,
            rules=loaded.rule_set.rules + self.rule_store.global_rules(),
            content_types=set(loaded.rule_set.content_types),
            learned_patterns=set(learned_patterns),
            diagnostics=loaded.diagnostics,
        )

    def _resolve(self, tenant: Union[str, TenantContext]) -> TenantContext:
        if isinstance(tenant, TenantContext):
            return tenant
        return self.context(tenant)

    def _within_bounds(self, value: Any) -> bool:
        if not isinstance(value, str) or not value.strip():
            return False
        return self.min_length <= len(value) <= self.max_length

    @staticmethod
    def _matches(rule: TranslationRule, key: str, value: Any, context: TenantContext) -> bool:
        try:
            return rule.matches(key, value)
        except ClassificationConfigError as e:
            # Rules are compiled on load, so this only happens for hand-built contexts
            logger.warning(f"Skipping rule {rule.id} for tenant {context.tenant_id}: {e}")
            context.diagnostics.append({"rule_id": rule.id, "pattern": rule.pattern, "error": str(e)})
            return False

    def classify(self, key: str, value: Any, tenant: Union[str, TenantContext]) -> Classification:
        """Run both decisions in a single pass over the rules."""
        context = self._resolve(tenant)
        key = key or ""
        rules = context.applicable_rules()

        preserve = DEFAULT_PRESERVE_FORMATTING
        for rule in rules:
            if self._matches(rule, key, value, context):
                if isinstance(rule.preserve_formatting, bool):
                    preserve = rule.preserve_formatting
                break

        if not self._within_bounds(value):
            return Classification(False, preserve, "bounds")

        for phase in PHASES:
            for rule in rules:
                if rule.match_type != phase:
                    continue
                if self._matches(rule, key, value, context):
                    logger.debug(f"Rule {rule.id} matched key '{key}' ({rule.action.value})")
                    return Classification(rule.action == RuleAction.TRANSLATE, preserve, rule.id)

        if key.lower() in context.learned_patterns:
            return Classification(False, preserve, "learned")

        return Classification(True, preserve)

    def should_translate(self, key: str, value: Any, tenant: Union[str, TenantContext]) -> bool:
        return self.classify(key, value, tenant).translate

    def should_preserve_formatting(self, key: str, value: Any, tenant: Union[str, TenantContext]) -> bool:
        """
        Return the preserve_formatting flag of the first rule matching key/value.

        Evaluated independently of the translate decision. Falls back to
        False when no rule matches or the matching rule has no flag.
        """
        return self.classify(key, value, tenant).preserve_formatting
