"""Fact-only overview used when narrative generation is unavailable."""

from datetime import datetime

import pytz

from cep_mcp.fleet.styles import enforce_card_styles
from cep_mcp.fleet.types import FleetFacts, Overview, PostureCard, Suggestion

FALLBACK_SOURCES = ("Admin SDK Reports", "Cloud Identity", "Chrome Policy")
FALLBACK_SUMMARY = (
    "Here's a quick check-in based on your fleet data. "
    "I can help you address the items below."
)


def _headline(has_dlp_rules: bool, has_connectors: bool) -> str:
    missing = [
        item
        for item, present in (("DLP rules", has_dlp_rules), ("connector policies", has_connectors))
        if not present
    ]
    if not missing:
        return "Welcome back, here's a quick fleet check-in."
    if len(missing) == 2:
        return "Welcome back, a couple security gaps are worth tightening up."
    return f"Welcome back, {missing[0]} still need attention."


def _suggestions(has_dlp_rules: bool, has_connectors: bool, has_events: bool) -> list[Suggestion]:
    suggestions: list[Suggestion] = []

    if not has_dlp_rules:
        suggestions.append(
            Suggestion(
                text="Create a DLP rule",
                action="Create a DLP rule to audit all traffic",
                priority=1,
                category="security",
            )
        )
    if not has_connectors:
        suggestions.append(
            Suggestion(
                text="Configure connectors",
                action="Help me configure connector policies",
                priority=2,
                category="security",
            )
        )
    if not has_events:
        suggestions.append(
            Suggestion(
                text="Enable event reporting",
                action="Enable Chrome event reporting for my fleet",
                priority=3,
                category="monitoring",
            )
        )

    if not suggestions:
        suggestions.append(
            Suggestion(
                text="Review security posture",
                action="Analyze my fleet security posture",
                priority=5,
                category="optimization",
            )
        )

    return suggestions


def _dlp_card(facts: FleetFacts, has_dlp_rules: bool, as_of: str) -> PostureCard:
    return PostureCard(
        label="Data Protection Rules",
        value=f"{facts.dlp_rule_count} rules" if has_dlp_rules else "Not configured",
        note="Protecting sensitive data" if has_dlp_rules else "No rules to detect sensitive data",
        source="Cloud Identity",
        action="List data protection rules",
        last_updated=as_of,
        priority=3 if has_dlp_rules else 1,
    )


def _events_card(facts: FleetFacts, has_events: bool, as_of: str) -> PostureCard:
    if facts.event_sampled:
        count_label = f"{facts.event_count}+ events (sampled)"
    else:
        count_label = f"{facts.event_count} events"
    blocked = f" ({facts.blocked_event_count} blocked)" if facts.blocked_event_count > 0 else ""

    return PostureCard(
        label="Security Events",
        value=f"{count_label} in {facts.event_window_label}{blocked}" if has_events else "No events",
        note=(
            f"Recent activity across the last {facts.event_window_label}"
            if has_events
            else "Event reporting may be disabled"
        ),
        source="Admin SDK Reports",
        action="Show recent security events",
        last_updated=facts.latest_event_at or as_of,
        priority=4 if has_events else 2,
    )


def _connector_card(facts: FleetFacts, has_connectors: bool, as_of: str) -> PostureCard:
    return PostureCard(
        label="Connector Policies",
        value=f"{facts.connector_policy_count} policies" if has_connectors else "Not configured",
        note="Data connectors active" if has_connectors else "No connector policies configured",
        source="Chrome Policy",
        action="Review connector configuration",
        last_updated=as_of,
        priority=5 if has_connectors else 3,
    )


def build_fallback_overview(facts: FleetFacts, as_of: datetime | None = None) -> Overview:
    """
    Build an overview directly from facts.

    Produces three cards (data protection, events, connectors) and one to
    four priority-ordered suggestions. Statuses and categories go through
    the same resolvers as generated overviews, so both paths classify the
    same facts identically.

    Args:
        facts: Extracted fleet facts
        as_of: Timestamp for card lastUpdated fields (default: now, UTC)

    Returns:
        Overview
    """
    has_dlp_rules = facts.dlp_rule_count > 0
    has_connectors = facts.connector_policy_count > 0
    has_events = facts.event_count > 0
    stamp = (as_of or datetime.now(pytz.UTC)).isoformat()

    overview = Overview(
        headline=_headline(has_dlp_rules, has_connectors),
        summary=FALLBACK_SUMMARY,
        posture_cards=[
            _dlp_card(facts, has_dlp_rules, stamp),
            _events_card(facts, has_events, stamp),
            _connector_card(facts, has_connectors, stamp),
        ],
        suggestions=_suggestions(has_dlp_rules, has_connectors, has_events),
        sources=list(FALLBACK_SOURCES),
    )
    return enforce_card_styles(overview, facts)
