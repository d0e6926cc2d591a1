"""DLP rules tool."""

from collections.abc import Awaitable, Callable
from time import perf_counter
from typing import Any

from cep_mcp.data import admin_client
from cep_mcp.utils.errors import create_api_error
from cep_mcp.utils.provenance import build_error_response, build_meta


def _rule_summary(policy: dict[str, Any]) -> dict[str, Any]:
    setting = policy.get("setting") or {}
    value = setting.get("value") or {}
    return {
        "name": policy.get("name"),
        "displayName": value.get("displayName"),
        "description": value.get("description"),
        "type": setting.get("type"),
        "orgUnit": (policy.get("policyQuery") or {}).get("orgUnit"),
        "triggers": value.get("triggers") or [],
        "action": value.get("action"),
    }


async def dlp_rules(
    list_rules: Callable[[], Awaitable[list[dict[str, Any]]]] | None = None,
) -> dict[str, Any]:
    """
    List Chrome DLP rules configured for the customer.

    Returns:
        Dict with rules, or an error
    """
    start = perf_counter()
    list_rules = list_rules or admin_client.list_dlp_rules

    try:
        policies = await list_rules()
    except Exception as e:
        return build_error_response("list_dlp_rules", create_api_error(e, "dlp-rules"))

    rules = [_rule_summary(policy) for policy in policies]
    return {
        "rules": rules,
        "meta": build_meta(
            "list_dlp_rules",
            duration_ms=(perf_counter() - start) * 1000,
            rule_count=len(rules),
        ),
    }
