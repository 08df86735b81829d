"""
Approval module - review decisions shared across documents

This module provides:
- ApprovalPropagator: record a review and stamp it on every document carrying the same content
- content_hash / index_translation: content identity and indexing helpers
"""

from doctranslator.approval.propagator import (
    APPROVAL_STATUSES,
    ApprovalPropagator,
    content_hash,
    index_translation,
)

__all__ = ['APPROVAL_STATUSES', 'ApprovalPropagator', 'content_hash', 'index_translation']
