"""Service objects shared by the route blueprints."""

from dataclasses import dataclass
from typing import Optional

from flask import current_app

from doctranslator.approval.propagator import ApprovalPropagator
from doctranslator.pages.service import PageTranslationService
from doctranslator.rules.store import LearningStore, RuleStore

EXTENSION_KEY = "doctranslator"


@dataclass
class Services:
    pages: PageTranslationService
    approvals: ApprovalPropagator
    rules: RuleStore
    learning: LearningStore


def build_services(pages: Optional[PageTranslationService] = None,
                   approvals: Optional[ApprovalPropagator] = None,
                   rules: Optional[RuleStore] = None,
                   learning: Optional[LearningStore] = None) -> Services:
    return Services(
        pages=pages or PageTranslationService(),
        approvals=approvals or ApprovalPropagator(),
        rules=rules or RuleStore(),
        learning=learning or LearningStore(),
    )


def get_services() -> Services:
    return current_app.extensions[EXTENSION_KEY]
