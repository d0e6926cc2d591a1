"""Connector configuration tool."""

from collections.abc import Awaitable, Callable
from time import perf_counter
from typing import Any

from cep_mcp.data import admin_client
from cep_mcp.utils.errors import create_api_error
from cep_mcp.utils.provenance import build_error_response, build_meta


async def connector_configuration(
    resolve_policies: Callable[[], Awaitable[list[dict[str, Any]]]] | None = None,
) -> dict[str, Any]:
    """
    Resolve connector-related Chrome policies for the root org unit.

    Returns:
        Dict with resolved policies and the schemas queried, or an error
    """
    start = perf_counter()
    resolve_policies = resolve_policies or admin_client.resolve_connector_policies

    try:
        policies = await resolve_policies()
    except Exception as e:
        return build_error_response("get_connector_configuration", create_api_error(e, "connector-config"))

    return {
        "policySchemas": list(admin_client.CONNECTOR_POLICY_SCHEMAS),
        "policies": policies,
        "meta": build_meta(
            "get_connector_configuration",
            duration_ms=(perf_counter() - start) * 1000,
            policy_count=len(policies),
        ),
    }
