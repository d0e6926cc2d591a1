"""Windowed Chrome event retrieval: day buckets, pagination, aggregation."""

import asyncio
import logging
from datetime import datetime, timedelta

import pytz

from cep_mcp.fleet.types import (
    DayBucket,
    DayFetchResult,
    EventPageFetcher,
    EventPageRequest,
    EventRecord,
    WindowSummary,
)
from cep_mcp.utils.errors import create_api_error
from cep_mcp.utils.validators import WindowParams

logger = logging.getLogger(__name__)

DAY = timedelta(days=1)


def build_day_buckets(window_end: datetime, window_days: int) -> list[DayBucket]:
    """
    Split the window ending at `window_end` into contiguous 24-hour buckets.

    Buckets are built walking backward from the end, then returned
    ascending by day_start.
    """
    buckets = []
    for index in range(window_days):
        day_end = window_end - index * DAY
        buckets.append(DayBucket(day_start=day_end - DAY, day_end=day_end))
    return sorted(buckets, key=lambda b: b.day_start)


async def fetch_day_events(
    fetch_page: EventPageFetcher,
    bucket: DayBucket,
    page_size: int,
    max_pages: int,
) -> DayFetchResult:
    """
    Paginate one day bucket sequentially.

    Stops when the source returns no next-page token or when `max_pages`
    pages have been read. A failing page voids the whole bucket: items
    already collected for it are dropped and an error result is returned.

    Args:
        fetch_page: Async page fetcher; raises on failure
        bucket: Day bucket bounding the requests
        page_size: Items per page
        max_pages: Page budget for this bucket

    Returns:
        DayFetchResult with events or error
    """
    page_token: str | None = None
    events: list[EventRecord] = []

    for page in range(max_pages):
        request = EventPageRequest(
            start_time=bucket.day_start,
            end_time=bucket.day_end,
            page_size=page_size,
            page_token=page_token,
        )
        try:
            result = await fetch_page(request)
        except Exception as e:
            logger.warning(
                f"Event page {page + 1} failed for bucket {bucket.day_start.isoformat()}: {e}"
            )
            return DayFetchResult.failed(create_api_error(e, "chrome-events"))

        events.extend(result.items)
        page_token = result.next_page_token or None
        logger.debug(
            f"Bucket {bucket.day_start.date()}: page {page + 1} -> {len(result.items)} events"
        )
        if page_token is None:
            break

    # A remaining token means the page budget ran out before the day did
    return DayFetchResult(
        events=events,
        day_count=len(events),
        day_sampled=page_token is not None,
    )


def aggregate_day_results(
    day_results: list[DayFetchResult],
    sample_size: int,
    window_start: datetime,
    window_end: datetime,
) -> WindowSummary:
    """
    Combine per-bucket results into one window summary.

    Fail-fast: the first bucket carrying an error (in bucket order) turns
    the whole window into an error, discarding buckets that succeeded.
    totalCount counts every retrieved event; only the visible sample is
    truncated to `sample_size`.
    """
    total_count = 0
    sampled = False
    all_events: list[EventRecord] = []

    for result in day_results:
        if result.error is not None:
            logger.warning(f"Event window voided by bucket failure: {result.error.error}")
            return WindowSummary(
                window_start=window_start,
                window_end=window_end,
                total_count=0,
                sampled=False,
                error=result.error,
            )

        total_count += result.day_count
        sampled = sampled or result.day_sampled
        all_events.extend(result.events)

    return WindowSummary(
        window_start=window_start,
        window_end=window_end,
        events=all_events[:sample_size],
        total_count=total_count,
        sampled=sampled,
    )


async def events_window_summary(
    fetch_page: EventPageFetcher,
    params: WindowParams,
    window_end: datetime | None = None,
) -> WindowSummary:
    """
    Fetch a summary of Chrome events over the last `params.window_days` days.

    Day buckets are fetched concurrently; pages within a bucket are
    sequential.

    Args:
        fetch_page: Async page fetcher for the event source
        params: Window parameters
        window_end: End of the window (default: now, UTC)

    Returns:
        WindowSummary (error-valued if any bucket failed)
    """
    if window_end is None:
        window_end = datetime.now(pytz.UTC)
    window_start = window_end - params.window_days * DAY
    buckets = build_day_buckets(window_end, params.window_days)

    day_results = await asyncio.gather(
        *[
            fetch_day_events(fetch_page, bucket, params.page_size, params.max_pages)
            for bucket in buckets
        ]
    )

    summary = aggregate_day_results(
        list(day_results), params.sample_size, window_start, window_end
    )
    logger.info(
        f"Event window {params.window_days}d: total={summary.total_count} "
        f"sampled={summary.sampled} failed={summary.error is not None}"
    )
    return summary
