"""Error taxonomy and standardized API error values."""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Any

from googleapiclient.errors import HttpError
from requests.exceptions import HTTPError

SESSION_EXPIRED_SUGGESTION = "Your session has expired. Please sign in again to continue."


@dataclass(frozen=True)
class ApiContext:
    """Display name and default remediation hint for one API source."""

    name: str
    default_suggestion: str


# Read-only registry: source key -> messaging defaults
API_CONTEXTS: MappingProxyType[str, ApiContext] = MappingProxyType(
    {
        "chrome-events": ApiContext(
            name="Chrome Events",
            default_suggestion=(
                "Ensure the 'Admin SDK' API is enabled in GCP and the user has 'Reports' privileges."
            ),
        ),
        "dlp-rules": ApiContext(
            name="DLP Rules",
            default_suggestion="Check 'Cloud Identity API' enablement and DLP Read permissions.",
        ),
        "connector-config": ApiContext(
            name="Connector Config",
            default_suggestion="Check Chrome Policy API permissions and policy schema access.",
        ),
        "knowledge": ApiContext(
            name="Knowledge Search",
            default_suggestion="Check the Upstash Vector REST URL and token.",
        ),
    }
)


@dataclass(frozen=True)
class ApiError:
    """Standardized error value for a failed source call."""

    error: str
    suggestion: str
    requires_reauth: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": self.error,
            "suggestion": self.suggestion,
            "requiresReauth": self.requires_reauth,
        }


class AdminApiError(Exception):
    """Raised by the client layer when an upstream API call fails."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class SourceUnavailableError(AdminApiError):
    """Raised when a collaborator is not configured or not reachable."""

    pass


class PageFetchError(AdminApiError):
    """Raised when a single paginated event request fails."""

    pass


class GenerationFailure(Exception):
    """Raised when the narrative backend fails or returns a malformed value."""

    pass


def _status_code(error: Exception) -> int | None:
    if isinstance(error, AdminApiError):
        return error.status_code
    if isinstance(error, HttpError):
        return error.resp.status
    if isinstance(error, HTTPError) and error.response is not None:
        return error.response.status_code
    return None


def create_api_error(error: Exception, context_key: str) -> ApiError:
    """
    Convert an exception into an ApiError value for the given source.

    401/403 responses get the session-expired suggestion; everything else
    gets the source's default suggestion.

    Args:
        error: The exception raised by the source
        context_key: Key into API_CONTEXTS (e.g., "chrome-events")

    Returns:
        ApiError value
    """
    context = API_CONTEXTS[context_key]
    requires_reauth = _status_code(error) in (401, 403)
    message = str(error) or type(error).__name__

    return ApiError(
        error=message,
        suggestion=SESSION_EXPIRED_SUGGESTION if requires_reauth else context.default_suggestion,
        requires_reauth=requires_reauth,
    )
