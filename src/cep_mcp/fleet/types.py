"""Value types for the fleet overview pipeline."""

from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from cep_mcp.utils.errors import ApiError

EventRecord = Mapping[str, Any]


@dataclass(frozen=True)
class DayBucket:
    """A fixed 24-hour slice of the aggregation window."""

    day_start: datetime
    day_end: datetime


@dataclass(frozen=True)
class EventPageRequest:
    """One day-bounded page request against the event source."""

    start_time: datetime
    end_time: datetime
    page_size: int
    page_token: str | None = None


@dataclass(frozen=True)
class EventPage:
    """One page returned by the event source."""

    items: list[EventRecord]
    next_page_token: str | None = None


# Raises on failure; see fetch_day_events
EventPageFetcher = Callable[[EventPageRequest], Awaitable[EventPage]]


@dataclass(frozen=True)
class DayFetchResult:
    """Outcome of paginating one day bucket: success or error, never both."""

    events: list[EventRecord] = field(default_factory=list)
    day_count: int = 0
    day_sampled: bool = False
    error: ApiError | None = None

    @classmethod
    def failed(cls, error: ApiError) -> "DayFetchResult":
        return cls(error=error)


@dataclass(frozen=True)
class WindowSummary:
    """Windowed event summary; `error` set means the whole window failed."""

    window_start: datetime
    window_end: datetime
    events: list[EventRecord] = field(default_factory=list)
    total_count: int = 0
    sampled: bool = False
    error: ApiError | None = None

    def events_payload(self) -> dict[str, Any]:
        """Event result in wire shape: {events, nextPageToken} or the error."""
        if self.error is not None:
            return self.error.to_dict()
        return {"events": list(self.events), "nextPageToken": None}

    def window_payload(self) -> dict[str, Any]:
        return {
            "totalCount": self.total_count,
            "sampled": self.sampled,
            "windowStart": self.window_start.isoformat(),
            "windowEnd": self.window_end.isoformat(),
        }


@dataclass(frozen=True)
class SourceResult:
    """Result of a list-style source (DLP rules, connector policies)."""

    items: list[Any] = field(default_factory=list)
    error: ApiError | None = None

    @classmethod
    def failed(cls, error: ApiError) -> "SourceResult":
        return cls(error=error)

    def to_dict(self, key: str) -> dict[str, Any]:
        if self.error is not None:
            return self.error.to_dict()
        return {key: list(self.items)}


@dataclass(frozen=True)
class FleetFacts:
    """Deterministic fleet signals extracted from the three sources."""

    event_count: int
    blocked_event_count: int
    error_event_count: int
    dlp_rule_count: int
    connector_policy_count: int
    latest_event_at: str | None
    event_window_label: str
    event_sampled: bool
    event_sample_count: int
    errors: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "eventCount": self.event_count,
            "blockedEventCount": self.blocked_event_count,
            "errorEventCount": self.error_event_count,
            "dlpRuleCount": self.dlp_rule_count,
            "connectorPolicyCount": self.connector_policy_count,
            "latestEventAt": self.latest_event_at,
            "eventWindowLabel": self.event_window_label,
            "eventSampled": self.event_sampled,
            "eventSampleCount": self.event_sample_count,
            "errors": list(self.errors),
        }


CardStatus = Literal["healthy", "warning", "critical", "info"]
SuggestionCategory = Literal["security", "compliance", "monitoring", "optimization"]


class _WireModel(BaseModel):
    """Base for camelCase wire models. Frozen: updates go through model_copy."""

    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="ignore")


class PostureCard(_WireModel):
    label: str
    value: str
    note: str
    source: str
    action: str
    last_updated: str | None = Field(default=None, alias="lastUpdated")
    status: CardStatus | None = Field(default=None, description="Visual status indicator for the card")
    progress: float | None = Field(
        default=None, ge=0, le=100, description="Progress percentage (0-100) if applicable"
    )
    priority: int | None = Field(
        default=None, ge=1, le=10, description="Priority for sorting (1=highest, 10=lowest)"
    )


class Suggestion(_WireModel):
    text: str = Field(description="The suggestion text")
    action: str = Field(description="The command to execute when clicked")
    priority: int = Field(ge=1, le=10, description="Priority for sorting (1=highest)")
    category: SuggestionCategory = Field(description="Category of the suggestion")


class Overview(_WireModel):
    headline: str
    summary: str
    posture_cards: list[PostureCard] = Field(alias="postureCards", min_length=3, max_length=5)
    suggestions: list[Suggestion] = Field(min_length=1, max_length=4)
    sources: list[str]

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class GeneratedOverview(Overview):
    """Shape the narrative backend must emit; stricter on suggestion count."""

    suggestions: list[Suggestion] = Field(min_length=2, max_length=4)
