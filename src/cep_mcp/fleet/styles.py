"""Deterministic card status and suggestion category enforcement."""

from cep_mcp.fleet.types import CardStatus, FleetFacts, Overview, SuggestionCategory

DLP_CARD_KEYWORDS = ("dlp", "data protection", "data loss")
EVENT_CARD_KEYWORDS = ("event", "monitoring", "activity")
CONNECTOR_CARD_KEYWORDS = ("connector",)

SECURITY_SUGGESTION_KEYWORDS = ("dlp", "data protection", "connector", "block", "encrypt")
MONITORING_SUGGESTION_KEYWORDS = ("event", "reporting", "monitor", "visibility")
COMPLIANCE_SUGGESTION_KEYWORDS = ("audit", "compliance")


def _matches(text: str, keywords: tuple[str, ...]) -> bool:
    lower = text.lower()
    return any(keyword in lower for keyword in keywords)


def resolve_card_status(label: str, facts: FleetFacts) -> CardStatus | None:
    """
    Status for a card label that names a known category, else None.

    Keyword matching lets label variations ("DLP Coverage",
    "Data Protection Rules") resolve to the same status.
    """
    if _matches(label, DLP_CARD_KEYWORDS):
        return "healthy" if facts.dlp_rule_count > 0 else "critical"

    if _matches(label, EVENT_CARD_KEYWORDS):
        if facts.event_count == 0:
            return "warning"
        return "warning" if facts.blocked_event_count > 0 else "healthy"

    if _matches(label, CONNECTOR_CARD_KEYWORDS):
        return "healthy" if facts.connector_policy_count > 0 else "critical"

    return None


def resolve_suggestion_category(text: str) -> SuggestionCategory | None:
    """Category for suggestion text that names a known category, else None."""
    if _matches(text, SECURITY_SUGGESTION_KEYWORDS):
        return "security"
    if _matches(text, MONITORING_SUGGESTION_KEYWORDS):
        return "monitoring"
    if _matches(text, COMPLIANCE_SUGGESTION_KEYWORDS):
        return "compliance"
    return None


def enforce_card_styles(overview: Overview, facts: FleetFacts) -> Overview:
    """
    Override card statuses and suggestion categories with fact-derived values.

    Only cards and suggestions whose label/text matches a known category are
    touched; everything else keeps what the generator assigned. Returns a
    new Overview; the input is not modified.

    Args:
        overview: Generated (or fallback) overview
        facts: Facts the overview was built from

    Returns:
        Overview with deterministic classification
    """
    cards = []
    for card in overview.posture_cards:
        status = resolve_card_status(card.label, facts)
        cards.append(card.model_copy(update={"status": status}) if status else card)

    suggestions = []
    for suggestion in overview.suggestions:
        category = resolve_suggestion_category(suggestion.text)
        suggestions.append(
            suggestion.model_copy(update={"category": category}) if category else suggestion
        )

    return overview.model_copy(update={"posture_cards": cards, "suggestions": suggestions})
