"""Fleet overview pipeline: window, facts, narrative, styles, fallback."""

from cep_mcp.fleet.extract import extract_fleet_facts
from cep_mcp.fleet.fallback import build_fallback_overview
from cep_mcp.fleet.narrative import (
    NarrativeBackend,
    NarrativeOutcome,
    OpenAINarrativeBackend,
    summarize_fleet_overview,
)
from cep_mcp.fleet.styles import enforce_card_styles
from cep_mcp.fleet.types import FleetFacts, Overview, PostureCard, Suggestion, WindowSummary
from cep_mcp.fleet.window import events_window_summary

__all__ = [
    "extract_fleet_facts",
    "build_fallback_overview",
    "NarrativeBackend",
    "NarrativeOutcome",
    "OpenAINarrativeBackend",
    "summarize_fleet_overview",
    "enforce_card_styles",
    "FleetFacts",
    "Overview",
    "PostureCard",
    "Suggestion",
    "WindowSummary",
    "events_window_summary",
]
