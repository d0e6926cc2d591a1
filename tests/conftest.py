"""Pytest configuration and fixtures."""

from collections.abc import Callable
from datetime import datetime
from typing import Any

import pytest
import pytz

from cep_mcp.fleet.types import EventPage, EventPageRequest, FleetFacts

WINDOW_END = datetime(2024, 5, 8, 12, 0, tzinfo=pytz.UTC)


def make_event(
    event_type: str = "BROWSER_EXTENSION_INSTALL",
    result: str | None = None,
    time: str = "2024-05-07T10:00:00Z",
) -> dict[str, Any]:
    """Admin SDK Reports activity record with one nested event."""
    parameters = [{"name": "EVENT_RESULT", "value": result}] if result is not None else []
    return {
        "id": {"time": time, "applicationName": "chrome"},
        "events": [{"type": event_type, "name": event_type, "parameters": parameters}],
    }


class FakeEventSource:
    """
    Event page fetcher keyed by bucket start.

    `pages` maps a day_start to the sequence of pages (or exceptions) served
    for that bucket, in order. Buckets without an entry return an empty page.
    """

    def __init__(self, pages: dict[datetime, list[EventPage | Exception]] | None = None):
        self.pages = pages or {}
        self.requests: list[EventPageRequest] = []

    async def __call__(self, request: EventPageRequest) -> EventPage:
        self.requests.append(request)
        served = sum(1 for r in self.requests if r.start_time == request.start_time) - 1
        queue = self.pages.get(request.start_time, [])
        if served >= len(queue):
            return EventPage(items=[])
        page = queue[served]
        if isinstance(page, Exception):
            raise page
        return page


class FakeNarrativeBackend:
    """Narrative backend returning a fixed value or raising."""

    def __init__(self, value: Any = None, error: Exception | None = None):
        self.value = value
        self.error = error
        self.calls: list[tuple[str, str, dict[str, Any]]] = []

    async def generate(self, system: str, prompt: str, schema: dict[str, Any]) -> Any:
        self.calls.append((system, prompt, schema))
        if self.error is not None:
            raise self.error
        return self.value


@pytest.fixture
def window_end() -> datetime:
    """Fixed end of the aggregation window."""
    return WINDOW_END


@pytest.fixture
def make_facts() -> Callable[..., FleetFacts]:
    """Factory for FleetFacts with healthy defaults."""

    def _make(**overrides: Any) -> FleetFacts:
        values: dict[str, Any] = {
            "event_count": 12,
            "blocked_event_count": 0,
            "error_event_count": 0,
            "dlp_rule_count": 3,
            "connector_policy_count": 2,
            "latest_event_at": "2024-05-07T10:00:00Z",
            "event_window_label": "7 days",
            "event_sampled": False,
            "event_sample_count": 12,
        }
        values.update(overrides)
        return FleetFacts(**values)

    return _make


@pytest.fixture
def generated_overview() -> dict[str, Any]:
    """A schema-valid generated overview in wire shape."""
    return {
        "headline": "Welcome back, your fleet looks steady this week.",
        "summary": "DLP rules are in place and connectors are reporting.",
        "postureCards": [
            {
                "label": "DLP Coverage",
                "value": "3 rules",
                "note": "Protecting sensitive data",
                "source": "Cloud Identity",
                "action": "List data protection rules",
                "status": "info",
                "priority": 2,
            },
            {
                "label": "Browser Activity",
                "value": "12 events in 7 days",
                "note": "Normal volume",
                "source": "Admin SDK Reports",
                "action": "Show recent security events",
                "status": "critical",
                "priority": 3,
            },
            {
                "label": "Connector Health",
                "value": "2 policies",
                "note": "Connectors active",
                "source": "Chrome Policy",
                "action": "Review connector configuration",
                "status": "warning",
                "priority": 4,
            },
            {
                "label": "Browser Versions",
                "value": "Up to date",
                "note": "No stale clients",
                "source": "Admin SDK Reports",
                "action": "Show browser versions",
                "status": "info",
                "priority": 6,
            },
        ],
        "suggestions": [
            {
                "text": "Tighten DLP rule coverage",
                "action": "Review DLP rules",
                "priority": 1,
                "category": "optimization",
            },
            {
                "text": "Schedule a quarterly audit",
                "action": "Plan an audit",
                "priority": 3,
                "category": "security",
            },
            {
                "text": "Rename browser groups",
                "action": "Organize org units",
                "priority": 5,
                "category": "optimization",
            },
        ],
        "sources": ["Admin SDK Reports", "Cloud Identity", "Chrome Policy"],
    }


@pytest.fixture
def event() -> Callable[..., dict[str, Any]]:
    """Factory for Reports activity records."""
    return make_event


@pytest.fixture
def event_source() -> type[FakeEventSource]:
    """Fake event page fetcher class."""
    return FakeEventSource


@pytest.fixture
def narrative_backend() -> type[FakeNarrativeBackend]:
    """Fake narrative backend class."""
    return FakeNarrativeBackend
