"""Rule management API routes."""

from __future__ import annotations

from typing import Any, Dict

from flask import Blueprint, jsonify, request

from doctranslator.logger import get_logger

from ..services import get_services

rules_bp = Blueprint("rules", __name__)
logger = get_logger(__name__)


@rules_bp.get("")
def list_tenants():
    return jsonify({"tenants": get_services().rules.tenant_ids()})


@rules_bp.get("/<tenant_id>")
def get_rules(tenant_id: str):
    """Return a tenant's rule set and any rules skipped while loading it."""
    services = get_services()
    loaded = services.rules.load(tenant_id)
    return jsonify({
        "rule_set": loaded.rule_set.to_dict(),
        "diagnostics": loaded.diagnostics,
        "global_rule_count": len(services.rules.global_rules()),
        "effective_rule_count": len(services.rules.effective_rules(tenant_id)),
    })


@rules_bp.post("/<tenant_id>")
def update_rules(tenant_id: str):
    """
    Change a tenant's rules.

    The body carries one of: rule (append), rules (replace) or content_types.
    """
    data: Dict[str, Any] = request.get_json(silent=True) or {}
    store = get_services().rules

    if isinstance(data.get("rule"), dict):
        rule_set = store.add_rule(tenant_id, data["rule"])
    elif isinstance(data.get("rules"), list):
        rule_set = store.replace_rules(tenant_id, data["rules"])
    elif isinstance(data.get("content_types"), list):
        rule_set = store.set_content_types(tenant_id, data["content_types"])
    else:
        return jsonify({"error": "Expected rule, rules or content_types", "code": "invalid_request"}), 400

    return jsonify({"rule_set": rule_set.to_dict()})


@rules_bp.get("/<tenant_id>/analytics")
def rule_analytics(tenant_id: str):
    services = get_services()
    return jsonify(services.learning.analytics(tenant_id, services.rules))


@rules_bp.post("/<tenant_id>/learning/reset")
def reset_learning(tenant_id: str):
    get_services().learning.reset(tenant_id)
    return jsonify({"tenant_id": tenant_id, "reset": True})
