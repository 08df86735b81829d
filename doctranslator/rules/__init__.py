"""
Rules module - content classification

This module provides:
- TranslationRule / RuleSet: rule model with one matcher per MatchType
- Classifier: should_translate / should_preserve_formatting per tenant
- AutoDetector: learns non-translatable keys from observed documents
- RuleStore / LearningStore: sqlite persistence for rules and learning state
"""

from doctranslator.rules.models import MatchType, RuleAction, RuleSet, TranslationRule
from doctranslator.rules.detector import AutoDetectionState, AutoDetector
from doctranslator.rules.store import LearningStore, RuleStore, compile_rules
from doctranslator.rules.classifier import Classification, Classifier, TenantContext
