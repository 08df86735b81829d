"""
Rule and learning storage.

RuleStore keeps per-tenant RuleSets in the rule_sets table. Rules with a
pattern that does not compile are skipped on load and reported as
diagnostics; adding such a rule raises ClassificationConfigError.

LearningStore keeps AutoDetectionState in the auto_detection_state table
behind a get/merge/save interface.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple

from doctranslator.config import load_config
from doctranslator.core import database as db
from doctranslator.exceptions import ClassificationConfigError
from doctranslator.logger import get_logger
from doctranslator.rules.defaults import GLOBAL_TENANT, default_rule_set
from doctranslator.rules.detector import AutoDetectionState
from doctranslator.rules.models import (
    DEFAULT_RULE_SET_VERSION,
    RuleSet,
    TranslationRule,
    bump_patch_version,
)

logger = get_logger(__name__)


@dataclass
class RuleLoadResult:
    rule_set: RuleSet
    diagnostics: List[Dict[str, Any]] = field(default_factory=list)


def compile_rules(definitions: Iterable[Any], strict: bool = False) -> Tuple[List[TranslationRule], List[Dict[str, Any]]]:
    """
    Turn rule definitions (dicts or TranslationRule) into compiled rules.

    Args:
        definitions: Rule dicts or TranslationRule instances
        strict: Raise on the first invalid rule instead of skipping it

    Returns:
        Tuple of (valid rules, diagnostics for skipped rules)

    Raises:
        ClassificationConfigError: In strict mode, for the first invalid rule.
    """
    rules = []
    diagnostics = []
    for definition in definitions:
        try:
            rule = definition if isinstance(definition, TranslationRule) else TranslationRule.from_dict(definition)
            rule.compile()
        except ClassificationConfigError as e:
            if strict:
                raise
            logger.warning(f"Skipping invalid rule: {e}")
            diagnostics.append({"rule_id": e.rule_id, "pattern": e.pattern, "error": str(e)})
            continue
        rules.append(rule)
    return rules, diagnostics


class RuleStore:
    """sqlite-backed tenant rule sets."""

    def __init__(self):
        self._global_rules = None

    def global_rules(self) -> List[TranslationRule]:
        if self._global_rules is None:
            self._global_rules, _ = compile_rules(default_rule_set().rules)
        return self._global_rules

    def load(self, tenant_id: str) -> RuleLoadResult:
        """Load a tenant's rule set; a tenant without stored rules gets an empty set."""
        stored = db.get_rule_set(tenant_id)
        if not stored:
            return RuleLoadResult(RuleSet(tenant_id=tenant_id))

        rules, diagnostics = compile_rules(stored.get('rules', []))
        if diagnostics:
            logger.warning(f"Rule set for tenant {tenant_id} has {len(diagnostics)} invalid rule(s)")
        rule_set = RuleSet(
            tenant_id=tenant_id,
            rules=rules,
            content_types=list(stored.get('content_types', [])),
            version=stored.get('version') or DEFAULT_RULE_SET_VERSION,
        )
        return RuleLoadResult(rule_set, diagnostics)

    def effective_rules(self, tenant_id: str) -> List[TranslationRule]:
        """Tenant rules first, then global defaults."""
        if tenant_id == GLOBAL_TENANT:
            return list(self.global_rules())
        return self.load(tenant_id).rule_set.rules + self.global_rules()

    def tenant_ids(self) -> List[str]:
        return db.get_all_tenant_ids()

    def save(self, rule_set: RuleSet) -> RuleSet:
        """Persist a rule set, bumping the patch version when one already exists."""
        stored = db.get_rule_set(rule_set.tenant_id)
        if stored:
            rule_set.version = bump_patch_version(stored.get('version') or rule_set.version)
        db.save_rule_set(
            rule_set.tenant_id,
            rule_set.version,
            [r.to_dict() for r in rule_set.rules],
            rule_set.content_types,
        )
        logger.info(f"Saved rule set for tenant {rule_set.tenant_id} (version {rule_set.version})")
        return rule_set

    def add_rule(self, tenant_id: str, rule: Any) -> RuleSet:
        """
        Append a rule to a tenant's rule set.

        Raises:
            ClassificationConfigError: If the rule's pattern is invalid.
        """
        (new_rule,), _ = compile_rules([rule], strict=True)
        rule_set = self.load(tenant_id).rule_set
        rule_set.rules = [r for r in rule_set.rules if r.id != new_rule.id] + [new_rule]
        logger.info(f"Adding rule {new_rule.id} for tenant {tenant_id}")
        return self.save(rule_set)

    def replace_rules(self, tenant_id: str, definitions: Iterable[Any]) -> RuleSet:
        rules, _ = compile_rules(definitions, strict=True)
        rule_set = self.load(tenant_id).rule_set
        rule_set.rules = rules
        return self.save(rule_set)

    def set_content_types(self, tenant_id: str, content_types: Iterable[str]) -> RuleSet:
        rule_set = self.load(tenant_id).rule_set
        rule_set.content_types = sorted(set(content_types))
        return self.save(rule_set)


class LearningStore:
    """sqlite-backed auto-detection state."""

    def __init__(self, settings: Optional[Dict[str, Any]] = None):
        self._settings = settings

    def _thresholds(self) -> Dict[str, Any]:
        settings = self._settings
        if settings is None:
            settings = load_config().get('auto_detection', {})
        return {
            "min_frequency": int(settings.get('min_frequency', 5)),
            "confidence_threshold": float(settings.get('confidence_threshold', 0.8)),
            "max_patterns": int(settings.get('max_patterns', 1000)),
        }

    def get(self, tenant_id: str) -> AutoDetectionState:
        stored = db.get_detection_state(tenant_id) or {}
        return AutoDetectionState(
            tenant_id=tenant_id,
            pattern_frequency=dict(stored.get('pattern_frequency', {})),
            learned_patterns=set(stored.get('learned_patterns', [])),
            **self._thresholds(),
        )

    def save(self, tenant_id: str, state: AutoDetectionState):
        db.save_detection_state(tenant_id, state.pattern_frequency, sorted(state.learned_patterns))

    def merge(self, tenant_id: str, state: AutoDetectionState) -> AutoDetectionState:
        """
        Combine state with what is stored and persist the result.

        Counts take the larger value and learned patterns are unioned, so a
        state loaded earlier never lowers a counter another session raised.
        The union keeps stored patterns first and stops at max_patterns.
        """
        stored = self.get(tenant_id)
        merged_frequency = dict(stored.pattern_frequency)
        for pattern, count in state.pattern_frequency.items():
            merged_frequency[pattern] = max(count, merged_frequency.get(pattern, 0))

        learned = set(stored.learned_patterns)
        for pattern in sorted(state.learned_patterns - learned):
            if len(learned) >= state.max_patterns:
                logger.debug(f"Learned pattern limit reached for tenant {tenant_id}, dropping '{pattern}'")
                continue
            learned.add(pattern)

        merged = AutoDetectionState(
            tenant_id=tenant_id,
            pattern_frequency=merged_frequency,
            learned_patterns=learned,
            min_frequency=state.min_frequency,
            confidence_threshold=state.confidence_threshold,
            max_patterns=state.max_patterns,
        )
        self.save(tenant_id, merged)
        return merged

    def reset(self, tenant_id: str):
        """Forget everything learned for a tenant."""
        db.delete_detection_state(tenant_id)
        logger.info(f"Auto-detection state reset for tenant {tenant_id}")

    def analytics(self, tenant_id: str, rule_store: Optional[RuleStore] = None) -> Dict[str, Any]:
        state = self.get(tenant_id)
        result = {
            "tenant_id": tenant_id,
            "pattern_frequency": state.pattern_frequency,
            "learned_patterns": sorted(state.learned_patterns),
        }
        if rule_store is not None:
            loaded = rule_store.load(tenant_id)
            result["configured_rules"] = len(loaded.rule_set.rules)
            result["rule_set_version"] = loaded.rule_set.version
            result["diagnostics"] = loaded.diagnostics
        return result
