"""Async Google Admin API client with bounded concurrency and retry logic."""

import asyncio
import logging
import os
import random
import threading
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import datetime
from functools import lru_cache
from typing import Any, TypeVar

import google.auth
import pytz
from google.auth.credentials import Credentials
from google.auth.exceptions import DefaultCredentialsError, TransportError
from google.oauth2 import service_account
from google.oauth2.credentials import Credentials as OAuthCredentials
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError
from requests.exceptions import ConnectionError as RequestsConnectionError
from requests.exceptions import HTTPError, Timeout

from cep_mcp.fleet.types import EventPage, EventPageRequest
from cep_mcp.utils.errors import AdminApiError, PageFetchError, SourceUnavailableError

logger = logging.getLogger(__name__)

SCOPES: tuple[str, ...] = (
    "https://www.googleapis.com/auth/admin.reports.audit.readonly",
    "https://www.googleapis.com/auth/cloud-identity.policies.readonly",
    "https://www.googleapis.com/auth/chrome.management.policy.readonly",
)

# Policy schemas relevant to Chrome connector configuration
CONNECTOR_POLICY_SCHEMAS: tuple[str, ...] = (
    "chrome.users.SafeBrowsingProtectionLevel",
    "chrome.users.SafeBrowsingExtendedReporting",
    "chrome.users.SafeBrowsingAllowlistDomain",
    "chrome.users.SafeBrowsingForTrustedSourcesEnabled",
    "chrome.users.SafeBrowsingDeepScanningEnabled",
    "chrome.users.CloudReporting",
    "chrome.users.CloudProfileReportingEnabled",
    "chrome.users.CloudReportingUploadFrequencyV2",
    "chrome.users.MetricsReportingEnabled",
    "chrome.users.DataLeakPreventionReportingEnabled",
)

# Bounded concurrency for Admin API calls
_max_workers = int(os.environ.get("ADMIN_MAX_WORKERS", "8"))
_executor = ThreadPoolExecutor(max_workers=_max_workers)
_fetch_semaphore = asyncio.Semaphore(_max_workers)

# Retry configuration
_max_retries = int(os.environ.get("ADMIN_MAX_RETRIES", "2"))
_base_delay = float(os.environ.get("ADMIN_BASE_DELAY", "0.5"))  # seconds
_max_delay = float(os.environ.get("ADMIN_MAX_DELAY", "10.0"))  # seconds

# Cap on list pagination for rules/policies
_MAX_LIST_PAGES = 20

# Discovery services are built per worker thread; httplib2 connections are not thread-safe
_thread_local = threading.local()

# Shutdown coordination
shutdown_event = asyncio.Event()

T = TypeVar("T")


class ServerShuttingDownError(Exception):
    """Raised when server is shutting down."""

    pass


@dataclass(frozen=True)
class AdminCredentials:
    """Google credentials and customer used for every Admin API call."""

    credentials: Credentials
    customer_id: str = "my_customer"

    @classmethod
    def from_env(cls) -> "AdminCredentials":
        """
        Load credentials from the environment.

        Order: GOOGLE_ACCESS_TOKEN (static bearer token), then a service
        account key in GOOGLE_APPLICATION_CREDENTIALS (delegated to
        GOOGLE_ADMIN_SUBJECT when set), then Application Default Credentials.

        Raises:
            SourceUnavailableError: If no credentials can be found
        """
        customer_id = os.environ.get("GOOGLE_CUSTOMER_ID", "my_customer").strip() or "my_customer"

        token = os.environ.get("GOOGLE_ACCESS_TOKEN", "").strip()
        if token:
            return cls(credentials=OAuthCredentials(token=token), customer_id=customer_id)

        key_file = os.environ.get("GOOGLE_APPLICATION_CREDENTIALS", "").strip()
        if key_file:
            try:
                creds = service_account.Credentials.from_service_account_file(
                    key_file, scopes=list(SCOPES)
                )
            except (OSError, ValueError) as e:
                raise SourceUnavailableError(f"Could not load service account key: {e}") from e
            subject = os.environ.get("GOOGLE_ADMIN_SUBJECT", "").strip()
            if subject:
                creds = creds.with_subject(subject)
            return cls(credentials=creds, customer_id=customer_id)

        try:
            creds, _ = google.auth.default(scopes=list(SCOPES))
        except DefaultCredentialsError as e:
            raise SourceUnavailableError(
                "Google credentials are not configured. Set GOOGLE_ACCESS_TOKEN or "
                "GOOGLE_APPLICATION_CREDENTIALS."
            ) from e
        return cls(credentials=creds, customer_id=customer_id)


@lru_cache(maxsize=1)
def default_credentials() -> AdminCredentials:
    """Environment credentials, loaded once per process."""
    return AdminCredentials.from_env()


def _service(name: str, version: str, credentials: AdminCredentials) -> Any:
    """Return a discovery client for this worker thread, building it on first use."""
    services = getattr(_thread_local, "services", None)
    if services is None:
        services = _thread_local.services = {}

    key = (name, version, id(credentials.credentials))
    service = services.get(key)
    if service is None:
        service = build(name, version, credentials=credentials.credentials, cache_discovery=False)
        services[key] = service
    return service


def _is_retryable_error(error: Exception) -> bool:
    """Transient failures: rate limits, server errors, connection problems."""
    if isinstance(error, HttpError):
        status_code = error.resp.status
    elif isinstance(error, HTTPError) and error.response is not None:
        status_code = error.response.status_code
    else:
        return isinstance(
            error, (TransportError, RequestsConnectionError, Timeout, ConnectionError, TimeoutError)
        )
    return status_code == 429 or 500 <= status_code < 600


def _calculate_backoff(attempt: int) -> float:
    """Calculate delay with exponential backoff and jitter."""
    delay = _base_delay * (2**attempt)
    # Jitter (+/-25%)
    jitter = delay * 0.25 * (2 * random.random() - 1)
    return min(delay + jitter, _max_delay)


def _error_message(error: HttpError) -> str:
    """Prefer the API's own error message over the generic HTTP reason."""
    reason = getattr(error, "reason", None)
    if reason:
        return str(reason)
    return str(error)


def _as_admin_error(error: Exception, error_cls: type[AdminApiError]) -> AdminApiError:
    if isinstance(error, AdminApiError):
        return error
    if isinstance(error, HttpError):
        return error_cls(_error_message(error), status_code=error.resp.status)
    if isinstance(error, HTTPError) and error.response is not None:
        return error_cls(str(error), status_code=error.response.status_code)
    return error_cls(str(error) or type(error).__name__)


async def _retry_with_backoff(
    operation_name: str,
    sync_func: Callable[[], T],
    max_retries: int = _max_retries,
    error_cls: type[AdminApiError] = AdminApiError,
) -> T:
    """
    Execute a synchronous API call in the executor with retry logic.

    Args:
        operation_name: Name for logging (e.g., "chrome_events_page")
        sync_func: Synchronous function to execute
        max_retries: Maximum number of retry attempts
        error_cls: AdminApiError subclass raised on final failure

    Returns:
        Result of sync_func

    Raises:
        AdminApiError (or error_cls): If the call fails permanently
        ServerShuttingDownError: If server is shutting down
    """
    for attempt in range(max_retries + 1):
        if shutdown_event.is_set():
            raise ServerShuttingDownError("Server is shutting down")

        try:
            loop = asyncio.get_running_loop()
            return await loop.run_in_executor(_executor, sync_func)
        except Exception as e:
            if not _is_retryable_error(e) or attempt >= max_retries:
                if attempt > 0:
                    logger.warning(f"{operation_name}: Failed after {attempt + 1} attempts: {e}")
                raise _as_admin_error(e, error_cls) from e

            delay = _calculate_backoff(attempt)
            logger.info(
                f"{operation_name}: Attempt {attempt + 1} failed ({e}). "
                f"Retrying in {delay:.1f}s..."
            )
            await asyncio.sleep(delay)

    # Unreachable: the loop either returns or raises
    raise error_cls(f"{operation_name}: Failed after {max_retries + 1} attempts")


def _rfc3339(value: datetime) -> str:
    if value.tzinfo is None:
        value = pytz.UTC.localize(value)
    return value.astimezone(pytz.UTC).isoformat().replace("+00:00", "Z")


async def fetch_events_page(
    request: EventPageRequest,
    credentials: AdminCredentials | None = None,
) -> EventPage:
    """
    Fetch one page of Chrome audit events from the Admin SDK Reports API.

    Args:
        request: Time bounds, page size and page token
        credentials: Admin credentials (default: from environment)

    Returns:
        EventPage with items and next page token

    Raises:
        SourceUnavailableError: If no credentials are configured
        PageFetchError: If the request fails
    """
    creds = credentials or default_credentials()
    params: dict[str, Any] = {
        "userKey": "all",
        "applicationName": "chrome",
        "maxResults": request.page_size,
        "startTime": _rfc3339(request.start_time),
        "endTime": _rfc3339(request.end_time),
    }
    if creds.customer_id != "my_customer":
        params["customerId"] = creds.customer_id
    if request.page_token:
        params["pageToken"] = request.page_token

    def _fetch() -> dict[str, Any]:
        service = _service("admin", "reports_v1", creds)
        return service.activities().list(**params).execute()

    async with _fetch_semaphore:
        data = await _retry_with_backoff("chrome_events_page", _fetch, error_cls=PageFetchError)

    items = data.get("items") or []
    logger.debug(f"chrome_events_page: {len(items)} items, next={bool(data.get('nextPageToken'))}")
    return EventPage(items=items, next_page_token=data.get("nextPageToken") or None)


async def _paginate(
    operation_name: str,
    fetch_page: Callable[[str | None], dict[str, Any]],
    items_key: str,
) -> list[dict[str, Any]]:
    """Collect `items_key` across pages of a list-style method."""
    collected: list[dict[str, Any]] = []
    page_token: str | None = None

    for _ in range(_MAX_LIST_PAGES):
        token = page_token
        async with _fetch_semaphore:
            data = await _retry_with_backoff(operation_name, lambda: fetch_page(token))
        collected.extend(data.get(items_key) or [])
        page_token = data.get("nextPageToken") or None
        if page_token is None:
            break
    else:
        logger.warning(f"{operation_name}: stopped after {_MAX_LIST_PAGES} pages")

    return collected


async def list_dlp_rules(credentials: AdminCredentials | None = None) -> list[dict[str, Any]]:
    """
    List Chrome DLP rules from the Cloud Identity policies API.

    Raises:
        SourceUnavailableError: If no credentials are configured
        AdminApiError: If the request fails
    """
    creds = credentials or default_credentials()
    policy_filter = (
        f'customer == "customers/{creds.customer_id}" AND setting.type.matches("rule.dlp.*")'
    )

    def _fetch(page_token: str | None) -> dict[str, Any]:
        service = _service("cloudidentity", "v1", creds)
        return service.policies().list(
            filter=policy_filter, pageSize=100, pageToken=page_token
        ).execute()

    return await _paginate("dlp_rules", _fetch, "policies")


async def resolve_connector_policies(
    credentials: AdminCredentials | None = None,
    org_unit_id: str | None = None,
) -> list[dict[str, Any]]:
    """
    Resolve connector-related Chrome policies for the root org unit.

    Args:
        credentials: Admin credentials (default: from environment)
        org_unit_id: Target org unit id (default: GOOGLE_ROOT_ORG_UNIT_ID)

    Raises:
        SourceUnavailableError: If no credentials or no target org unit is configured
        AdminApiError: If the request fails
    """
    target = (org_unit_id or os.environ.get("GOOGLE_ROOT_ORG_UNIT_ID", "")).strip()
    if not target:
        raise SourceUnavailableError(
            "Could not determine policy target (root org unit). Set GOOGLE_ROOT_ORG_UNIT_ID."
        )
    target = target.removeprefix("id:").removeprefix("orgunits/")
    creds = credentials or default_credentials()

    def _fetch(page_token: str | None) -> dict[str, Any]:
        body: dict[str, Any] = {
            "policySchemaFilter": ",".join(CONNECTOR_POLICY_SCHEMAS),
            "policyTargetKey": {"targetResource": f"orgunits/{target}"},
        }
        if page_token:
            body["pageToken"] = page_token
        service = _service("chromepolicy", "v1", creds)
        return service.customers().policies().resolve(
            customer=f"customers/{creds.customer_id}", body=body
        ).execute()

    return await _paginate("connector_policies", _fetch, "resolvedPolicies")


async def shutdown_executor() -> None:
    """Cleanup on server shutdown."""
    shutdown_event.set()
    _executor.shutdown(wait=False, cancel_futures=True)
