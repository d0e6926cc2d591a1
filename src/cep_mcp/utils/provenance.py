"""Response metadata and error response utilities."""

from typing import Any

from cep_mcp import SCHEMA_VERSION, SERVER_VERSION
from cep_mcp.utils.errors import ApiError


def build_meta(tool: str, duration_ms: float | None = None, **kwargs: Any) -> dict[str, Any]:
    """
    Build standard metadata block for responses.

    Args:
        tool: Name of the tool producing this response
        duration_ms: Execution time in milliseconds (optional)
        **kwargs: Additional metadata fields

    Returns:
        Metadata dict with version info
    """
    meta: dict[str, Any] = {
        "server_version": SERVER_VERSION,
        "schema_version": SCHEMA_VERSION,
        "tool": tool,
    }
    if duration_ms is not None:
        meta["duration_ms"] = round(duration_ms, 1)
    meta.update(kwargs)
    return meta


def build_error_response(tool: str, error: ApiError) -> dict[str, Any]:
    """
    Build standardized error response for a tool.

    Args:
        tool: Name of the tool that failed
        error: Standardized API error

    Returns:
        Error response dict
    """
    return {
        **error.to_dict(),
        "meta": build_meta(tool),
    }
