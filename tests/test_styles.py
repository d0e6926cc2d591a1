"""Tests for deterministic card styles."""

import pytest

from cep_mcp.fleet.styles import enforce_card_styles, resolve_card_status, resolve_suggestion_category
from cep_mcp.fleet.types import Overview


class TestResolveCardStatus:
    """Tests for resolve_card_status."""

    @pytest.mark.parametrize("label", ["DLP Coverage", "Data Protection Rules", "Data loss prevention"])
    def test_dlp_labels(self, make_facts, label) -> None:
        """Test DLP-like labels follow the rule count."""
        assert resolve_card_status(label, make_facts(dlp_rule_count=2)) == "healthy"
        assert resolve_card_status(label, make_facts(dlp_rule_count=0)) == "critical"

    def test_events_healthy(self, make_facts) -> None:
        """Test events with nothing blocked are healthy."""
        assert resolve_card_status("Security Events", make_facts()) == "healthy"

    def test_events_blocked_is_warning(self, make_facts) -> None:
        """Test blocked events turn the card to warning."""
        assert resolve_card_status("Security Events", make_facts(blocked_event_count=1)) == "warning"

    def test_no_events_is_warning(self, make_facts) -> None:
        """Test an empty window is a warning."""
        assert resolve_card_status("Browser Activity", make_facts(event_count=0)) == "warning"

    def test_connector_labels(self, make_facts) -> None:
        """Test connector labels follow the policy count."""
        assert resolve_card_status("Connector Policies", make_facts()) == "healthy"
        assert resolve_card_status("Connector Policies", make_facts(connector_policy_count=0)) == "critical"

    def test_dlp_checked_before_events(self, make_facts) -> None:
        """Test a label naming both DLP and events resolves as DLP."""
        facts = make_facts(dlp_rule_count=0, blocked_event_count=0)
        assert resolve_card_status("DLP Events", facts) == "critical"

    def test_unknown_label(self, make_facts) -> None:
        """Test unrelated labels are left alone."""
        assert resolve_card_status("Browser Versions", make_facts()) is None


class TestResolveSuggestionCategory:
    """Tests for resolve_suggestion_category."""

    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ("Create a DLP rule", "security"),
            ("Configure connectors", "security"),
            ("Block risky uploads", "security"),
            ("Enable event reporting", "monitoring"),
            ("Improve visibility", "monitoring"),
            ("Run a compliance audit", "compliance"),
            ("Audit connector access", "security"),
        ],
    )
    def test_keywords(self, text, expected) -> None:
        """Test keyword precedence: security, monitoring, compliance."""
        assert resolve_suggestion_category(text) == expected

    def test_unknown_text(self) -> None:
        """Test text without keywords has no category."""
        assert resolve_suggestion_category("Review security posture") is None


class TestEnforceCardStyles:
    """Tests for enforce_card_styles."""

    def test_overrides_known_and_keeps_unknown(self, make_facts, generated_overview) -> None:
        """Test matching cards and suggestions are overridden, others kept."""
        overview = Overview.model_validate(generated_overview)
        styled = enforce_card_styles(overview, make_facts(blocked_event_count=2))

        statuses = {card.label: card.status for card in styled.posture_cards}
        assert statuses == {
            "DLP Coverage": "healthy",
            "Browser Activity": "warning",
            "Connector Health": "healthy",
            "Browser Versions": "info",
        }
        categories = [s.category for s in styled.suggestions]
        assert categories == ["security", "compliance", "optimization"]

    def test_input_not_modified(self, make_facts, generated_overview) -> None:
        """Test the input overview is left unchanged."""
        overview = Overview.model_validate(generated_overview)
        before = overview.to_dict()

        enforce_card_styles(overview, make_facts(dlp_rule_count=0))

        assert overview.to_dict() == before

    def test_other_fields_untouched(self, make_facts, generated_overview) -> None:
        """Test text, priorities and sources pass through."""
        overview = Overview.model_validate(generated_overview)
        styled = enforce_card_styles(overview, make_facts())

        assert styled.headline == overview.headline
        assert [c.priority for c in styled.posture_cards] == [2, 3, 4, 6]
        assert styled.sources == overview.sources
