"""Chrome audit events tool."""

from datetime import datetime, timedelta
from time import perf_counter
from typing import Any

import pytz

from cep_mcp.data.admin_client import fetch_events_page
from cep_mcp.fleet.types import EventPageFetcher, EventPageRequest
from cep_mcp.utils.errors import create_api_error
from cep_mcp.utils.provenance import build_error_response, build_meta
from cep_mcp.utils.validators import MAX_PAGE_SIZE

DEFAULT_LOOKBACK = timedelta(days=1)


def _parse_time(value: str | None) -> datetime | None:
    """Parse an RFC 3339 timestamp; naive values are taken as UTC."""
    if not value:
        return None
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = pytz.UTC.localize(parsed)
    return parsed


async def chrome_events(
    max_results: int = 50,
    start_time: str | None = None,
    end_time: str | None = None,
    page_token: str | None = None,
    fetch_page: EventPageFetcher = fetch_events_page,
) -> dict[str, Any]:
    """
    Get one page of Chrome audit events.

    Args:
        max_results: Events per page (1-1000)
        start_time: RFC 3339 start (default: 24 hours before end_time)
        end_time: RFC 3339 end (default: now)
        page_token: Continuation token from a previous call
        fetch_page: Event page fetcher

    Returns:
        Dict with events and nextPageToken, or an error
    """
    start = perf_counter()

    try:
        end = _parse_time(end_time) or datetime.now(pytz.UTC)
        begin = _parse_time(start_time) or end - DEFAULT_LOOKBACK
    except ValueError as e:
        return {
            "error": f"Invalid time bound: {e}",
            "suggestion": "Use RFC 3339 timestamps such as 2024-05-01T00:00:00Z.",
            "requiresReauth": False,
        }

    if begin >= end:
        return {
            "error": "start_time must be before end_time",
            "suggestion": "Swap or widen the time bounds.",
            "requiresReauth": False,
        }

    request = EventPageRequest(
        start_time=begin,
        end_time=end,
        page_size=max(1, min(int(max_results), MAX_PAGE_SIZE)),
        page_token=page_token or None,
    )

    try:
        page = await fetch_page(request)
    except Exception as e:
        return build_error_response("get_chrome_events", create_api_error(e, "chrome-events"))

    return {
        "events": list(page.items),
        "nextPageToken": page.next_page_token,
        "meta": build_meta(
            "get_chrome_events",
            duration_ms=(perf_counter() - start) * 1000,
            start_time=begin.isoformat(),
            end_time=end.isoformat(),
            event_count=len(page.items),
        ),
    }
