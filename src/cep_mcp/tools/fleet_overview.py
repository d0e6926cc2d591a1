"""Fleet overview aggregator tool."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import datetime
from time import perf_counter
from typing import Any

import pytz

from cep_mcp.data import admin_client
from cep_mcp.data.knowledge import (
    KnowledgeSearch,
    fetch_knowledge_context,
    knowledge_search_configured,
    upstash_search,
)
from cep_mcp.fleet.extract import extract_fleet_facts
from cep_mcp.fleet.fallback import build_fallback_overview
from cep_mcp.fleet.narrative import (
    NarrativeBackend,
    default_narrative_backend,
    summarize_fleet_overview,
)
from cep_mcp.fleet.types import EventPageFetcher, SourceResult, WindowSummary
from cep_mcp.fleet.window import DAY, events_window_summary
from cep_mcp.utils.errors import create_api_error
from cep_mcp.utils.provenance import build_meta
from cep_mcp.utils.validators import WindowParams, clamp_sample_size

logger = logging.getLogger(__name__)

ListSource = Callable[[], Awaitable[list[Any]]]


@dataclass(frozen=True)
class FleetSources:
    """External collaborators the overview is computed from."""

    fetch_events_page: EventPageFetcher
    list_dlp_rules: ListSource
    resolve_connector_policies: ListSource
    narrative: NarrativeBackend
    knowledge_search: KnowledgeSearch | None = None


def default_sources() -> FleetSources:
    """Sources backed by the Google Admin APIs, OpenAI and Upstash Vector."""
    return FleetSources(
        fetch_events_page=admin_client.fetch_events_page,
        list_dlp_rules=admin_client.list_dlp_rules,
        resolve_connector_policies=admin_client.resolve_connector_policies,
        narrative=default_narrative_backend(),
        knowledge_search=upstash_search if knowledge_search_configured() else None,
    )


def _as_window(
    result: WindowSummary | Exception, params: WindowParams, window_end: datetime
) -> WindowSummary:
    if isinstance(result, WindowSummary):
        return result
    return WindowSummary(
        window_start=window_end - params.window_days * DAY,
        window_end=window_end,
        error=create_api_error(result, "chrome-events"),
    )


def _as_source(result: list[Any] | Exception, context_key: str) -> SourceResult:
    if isinstance(result, Exception):
        return SourceResult.failed(create_api_error(result, context_key))
    return SourceResult(items=list(result))


async def fleet_overview(
    max_events: int | None = None,
    knowledge_query: str = "",
    sources: FleetSources | None = None,
    params: WindowParams | None = None,
    window_end: datetime | None = None,
) -> dict[str, Any]:
    """
    Build the fleet posture overview from Chrome events, DLP rules and connector policies.

    The three sources are fetched concurrently and fail independently: a
    failing source becomes an error value and the others still count. The
    narrative backend is tried once; if it fails or returns something
    off-schema, the deterministic fallback overview is returned instead.

    Args:
        max_events: Size of the visible event sample (default: FLEET_SAMPLE_SIZE)
        knowledge_query: Optional query for docs and policy context
        sources: External collaborators (default: from environment)
        params: Window parameters (default: from environment)
        window_end: End of the event window (default: now, UTC)

    Returns:
        Overview dict (headline, summary, postureCards, suggestions, sources) with meta
    """
    start_time = perf_counter()
    sources = sources or default_sources()
    base = params or WindowParams()
    params = WindowParams(
        window_days=base.window_days,
        page_size=base.page_size,
        max_pages=base.max_pages,
        sample_size=clamp_sample_size(max_events, base.sample_size),
    )
    if window_end is None:
        window_end = datetime.now(pytz.UTC)

    source_specs = [
        ("chrome_events", events_window_summary(sources.fetch_events_page, params, window_end)),
        ("dlp_rules", sources.list_dlp_rules()),
        ("connector_policies", sources.resolve_connector_policies()),
    ]

    async def run_with_timing(name: str, coro: Any) -> tuple[str, Any | Exception, float]:
        source_start = perf_counter()
        try:
            result = await coro
            return (name, result, (perf_counter() - source_start) * 1000)
        except Exception as e:
            logger.warning(f"fleet_overview: {name} failed: {type(e).__name__}: {e}")
            return (name, e, (perf_counter() - source_start) * 1000)

    results = await asyncio.gather(*[run_with_timing(name, coro) for name, coro in source_specs])

    source_timings = {name: round(duration_ms, 1) for name, _, duration_ms in results}
    outcomes = {name: result for name, result, _ in results}

    summary = _as_window(outcomes["chrome_events"], params, window_end)
    rules = _as_source(outcomes["dlp_rules"], "dlp-rules")
    policies = _as_source(outcomes["connector_policies"], "connector-config")

    facts = extract_fleet_facts(summary, rules, policies)
    context = {
        "eventsResult": summary.events_payload(),
        "eventsWindow": summary.window_payload(),
        "dlpResult": rules.to_dict("rules"),
        "connectorResult": policies.to_dict("policies"),
    }
    knowledge = await fetch_knowledge_context(knowledge_query, sources.knowledge_search)

    outcome = await summarize_fleet_overview(facts, context, knowledge.to_dict(), sources.narrative)
    if outcome.ok:
        overview = outcome.overview
        narrative_source = "generated"
    else:
        logger.info(f"fleet_overview: using fallback ({outcome.failure})")
        overview = build_fallback_overview(facts, as_of=window_end)
        narrative_source = "fallback"

    return {
        **overview.to_dict(),
        "meta": build_meta(
            "get_fleet_overview",
            duration_ms=(perf_counter() - start_time) * 1000,
            narrative_source=narrative_source,
            narrative_failure=outcome.failure,
            source_timings=source_timings,
            knowledge_errors={ns: error.to_dict() for ns, error in knowledge.errors.items()},
            facts=facts.to_dict(),
        ),
    }
