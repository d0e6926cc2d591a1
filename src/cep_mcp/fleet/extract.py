"""Deterministic fleet signal extraction from raw source results."""

import math
from collections.abc import Mapping
from typing import Any

from cep_mcp.fleet.types import EventRecord, FleetFacts, SourceResult, WindowSummary

BLOCKED_RESULTS = frozenset({"BLOCKED", "DENIED", "QUARANTINED"})
ERROR_PATTERNS = (
    "FAILURE",
    "ERROR",
    "BREACH",
    "MALWARE",
    "BLOCKED",
    "DENIED",
    "VIOLATION",
)

SECONDS_PER_DAY = 86_400


def _primary_detail(event: EventRecord) -> Mapping[str, Any] | None:
    """First entry of the event's nested detail list, if any."""
    details = event.get("events")
    if not isinstance(details, list) or not details:
        return None
    primary = details[0]
    return primary if isinstance(primary, Mapping) else None


def _event_result(primary: Mapping[str, Any] | None) -> str | None:
    """Value of the EVENT_RESULT parameter, or None."""
    if primary is None:
        return None
    for param in primary.get("parameters") or []:
        if isinstance(param, Mapping) and param.get("name") == "EVENT_RESULT":
            value = param.get("value")
            return value if isinstance(value, str) else None
    return None


def is_blocked_event(event: EventRecord) -> bool:
    result = _event_result(_primary_detail(event))
    return result is not None and result.upper() in BLOCKED_RESULTS


def is_error_event(event: EventRecord) -> bool:
    primary = _primary_detail(event)
    event_type = primary.get("type") if primary is not None else None
    if not isinstance(event_type, str):
        return False
    upper_type = event_type.upper()
    return any(pattern in upper_type for pattern in ERROR_PATTERNS)


def _latest_event_at(events: list[EventRecord]) -> str | None:
    # First event in sample order, not a chronological max. The Reports API
    # returns newest-first within a bucket, but buckets are concatenated
    # oldest day first, so this is the newest event of the oldest non-empty day.
    if not events:
        return None
    event_id = events[0].get("id")
    if isinstance(event_id, Mapping):
        time = event_id.get("time")
        return time if isinstance(time, str) else None
    return None


def window_label(summary: WindowSummary) -> str:
    """Human-readable window length, e.g. '7 days'."""
    seconds = (summary.window_end - summary.window_start).total_seconds()
    # Half-up rounding
    days = max(1, math.floor(seconds / SECONDS_PER_DAY + 0.5))
    return f"{days} day{'' if days == 1 else 's'}"


def _collect_errors(
    summary: WindowSummary,
    rules: SourceResult,
    policies: SourceResult,
) -> tuple[str, ...]:
    errors: list[str] = []
    if summary.error is not None and summary.error.error:
        errors.append(f"Chrome events: {summary.error.error}")
    if rules.error is not None and rules.error.error:
        errors.append(f"DLP rules: {rules.error.error}")
    if policies.error is not None and policies.error.error:
        errors.append(f"Connector policies: {policies.error.error}")
    return tuple(errors)


def extract_fleet_facts(
    summary: WindowSummary,
    rules: SourceResult,
    policies: SourceResult,
) -> FleetFacts:
    """
    Extract deterministic fleet signals from the three source results.

    Pure: identical inputs always give identical facts. Failed sources
    count as zero and are reported in `errors` (events, rules, policies).

    Args:
        summary: Windowed event summary
        rules: DLP rule list result
        policies: Connector policy result

    Returns:
        FleetFacts
    """
    events = [e for e in summary.events if isinstance(e, Mapping)]

    return FleetFacts(
        event_count=summary.total_count,
        blocked_event_count=sum(1 for e in events if is_blocked_event(e)),
        error_event_count=sum(1 for e in events if is_error_event(e)),
        dlp_rule_count=len(rules.items) if rules.error is None else 0,
        connector_policy_count=len(policies.items) if policies.error is None else 0,
        latest_event_at=_latest_event_at(events),
        event_window_label=window_label(summary),
        event_sampled=summary.sampled,
        event_sample_count=len(events),
        errors=_collect_errors(summary, rules, policies),
    )
