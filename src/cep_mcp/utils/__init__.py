"""Utility modules."""

from cep_mcp.utils.errors import ApiError, create_api_error
from cep_mcp.utils.provenance import build_error_response, build_meta
from cep_mcp.utils.sanitize import redact_contact_details, sanitize_text
from cep_mcp.utils.validators import WindowParams, clamp_sample_size

__all__ = [
    "ApiError",
    "create_api_error",
    "build_error_response",
    "build_meta",
    "sanitize_text",
    "redact_contact_details",
    "WindowParams",
    "clamp_sample_size",
]
