"""Tests for fleet fact extraction."""

from datetime import timedelta

import pytest

from cep_mcp.fleet.extract import extract_fleet_facts, is_blocked_event, is_error_event, window_label
from cep_mcp.fleet.types import SourceResult, WindowSummary
from cep_mcp.utils.errors import ApiError


def _summary(window_end, events=(), total=None, days=7, error=None, sampled=False) -> WindowSummary:
    return WindowSummary(
        window_start=window_end - timedelta(days=days),
        window_end=window_end,
        events=list(events),
        total_count=len(events) if total is None else total,
        sampled=sampled,
        error=error,
    )


class TestEventClassification:
    """Tests for blocked and error event predicates."""

    @pytest.mark.parametrize("result", ["BLOCKED", "denied", "Quarantined"])
    def test_blocked_results(self, event, result) -> None:
        """Test blocked results match case-insensitively."""
        assert is_blocked_event(event(result=result)) is True

    def test_allowed_result_not_blocked(self, event) -> None:
        """Test other results are not blocked."""
        assert is_blocked_event(event(result="ALLOWED")) is False

    def test_missing_result_not_blocked(self, event) -> None:
        """Test events without EVENT_RESULT are not blocked."""
        assert is_blocked_event(event()) is False

    @pytest.mark.parametrize(
        "event_type",
        ["LOGIN_FAILURE", "dlpViolation", "MALWARE_TRANSFER", "PASSWORD_BREACH", "contentTransferError"],
    )
    def test_error_types(self, event, event_type) -> None:
        """Test error patterns match anywhere in the type, case-insensitively."""
        assert is_error_event(event(event_type=event_type)) is True

    def test_benign_type_not_error(self, event) -> None:
        """Test ordinary event types are not errors."""
        assert is_error_event(event(event_type="BROWSER_EXTENSION_INSTALL")) is False

    def test_malformed_events(self) -> None:
        """Test events without nested details are neither blocked nor errors."""
        for record in ({}, {"events": []}, {"events": "nope"}, {"events": [{"type": 7}]}):
            assert is_blocked_event(record) is False
            assert is_error_event(record) is False


class TestWindowLabel:
    """Tests for window_label."""

    def test_plural(self, window_end) -> None:
        """Test multi-day windows are pluralized."""
        assert window_label(_summary(window_end, days=7)) == "7 days"

    def test_singular(self, window_end) -> None:
        """Test one-day windows are singular."""
        assert window_label(_summary(window_end, days=1)) == "1 day"

    def test_half_day_rounds_up(self, window_end) -> None:
        """Test a 2.5-day window rounds half up to 3 days."""
        summary = WindowSummary(window_start=window_end - timedelta(hours=60), window_end=window_end)
        assert window_label(summary) == "3 days"

    def test_short_window_is_at_least_one_day(self, window_end) -> None:
        """Test windows shorter than a day still read as 1 day."""
        summary = WindowSummary(window_start=window_end - timedelta(hours=2), window_end=window_end)
        assert window_label(summary) == "1 day"


class TestExtractFleetFacts:
    """Tests for extract_fleet_facts."""

    def test_blocked_dlp_violation(self, window_end, event) -> None:
        """Test a blocked DLP violation counts as both blocked and error."""
        events = [event(event_type="DLP_VIOLATION", result="BLOCKED"), event(), event()]
        facts = extract_fleet_facts(
            _summary(window_end, events, total=40),
            SourceResult(items=[{"name": "r1"}]),
            SourceResult(items=[{"p": 1}, {"p": 2}]),
        )

        assert facts.blocked_event_count == 1
        assert facts.error_event_count == 1
        assert facts.event_window_label == "7 days"
        assert facts.event_count == 40
        assert facts.event_sample_count == 3
        assert facts.dlp_rule_count == 1
        assert facts.connector_policy_count == 2
        assert facts.errors == ()

    def test_all_sources_fail(self, window_end) -> None:
        """Test each failed source is reported in events, rules, policies order."""
        facts = extract_fleet_facts(
            _summary(window_end, error=ApiError(error="reports down", suggestion="s")),
            SourceResult.failed(ApiError(error="identity down", suggestion="s")),
            SourceResult.failed(ApiError(error="policy down", suggestion="s")),
        )

        assert facts.errors == (
            "Chrome events: reports down",
            "DLP rules: identity down",
            "Connector policies: policy down",
        )
        assert facts.event_count == 0
        assert facts.dlp_rule_count == 0
        assert facts.connector_policy_count == 0
        assert facts.latest_event_at is None

    def test_latest_event_is_first_in_sample(self, window_end, event) -> None:
        """Test latest_event_at comes from the first sampled event."""
        events = [event(time="2024-05-02T09:00:00Z"), event(time="2024-05-07T23:00:00Z")]
        facts = extract_fleet_facts(_summary(window_end, events), SourceResult(), SourceResult())

        assert facts.latest_event_at == "2024-05-02T09:00:00Z"

    def test_sampled_flag_carried(self, window_end, event) -> None:
        """Test the window sampled flag is reported."""
        facts = extract_fleet_facts(
            _summary(window_end, [event()], total=5000, sampled=True), SourceResult(), SourceResult()
        )
        assert facts.event_sampled is True

    def test_deterministic(self, window_end, event) -> None:
        """Test identical inputs give identical facts."""
        summary = _summary(window_end, [event(result="DENIED")])
        rules = SourceResult(items=[{}])
        policies = SourceResult.failed(ApiError(error="x", suggestion="y"))

        assert extract_fleet_facts(summary, rules, policies) == extract_fleet_facts(summary, rules, policies)

    def test_to_dict_is_camel_case(self, window_end) -> None:
        """Test facts serialize with camelCase keys."""
        data = extract_fleet_facts(_summary(window_end), SourceResult(), SourceResult()).to_dict()
        assert data["eventWindowLabel"] == "7 days"
        assert data["errors"] == []
        assert "dlpRuleCount" in data
