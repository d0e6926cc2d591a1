"""Tests for overview wire models."""

import pytest
from pydantic import ValidationError

from cep_mcp.fleet.types import GeneratedOverview, Overview, PostureCard, Suggestion


def _card(**overrides) -> dict:
    card = {
        "label": "Security Events",
        "value": "12 events",
        "note": "Normal volume",
        "source": "Admin SDK Reports",
        "action": "Show recent security events",
    }
    card.update(overrides)
    return card


class TestPostureCard:
    """Tests for PostureCard."""

    def test_alias_and_field_name(self) -> None:
        """Test lastUpdated is accepted by alias and by field name."""
        by_alias = PostureCard.model_validate(_card(lastUpdated="2024-05-08T00:00:00Z"))
        by_name = PostureCard.model_validate(_card(last_updated="2024-05-08T00:00:00Z"))
        assert by_alias == by_name

    @pytest.mark.parametrize("field,value", [("progress", 101), ("priority", 0), ("status", "ok")])
    def test_bounds(self, field, value) -> None:
        """Test out-of-range optional fields are rejected."""
        with pytest.raises(ValidationError):
            PostureCard.model_validate(_card(**{field: value}))

    def test_frozen(self) -> None:
        """Test cards are immutable."""
        card = PostureCard.model_validate(_card())
        with pytest.raises(ValidationError):
            card.status = "healthy"


class TestSuggestion:
    """Tests for Suggestion."""

    def test_unknown_category(self) -> None:
        """Test categories are limited to the four known values."""
        with pytest.raises(ValidationError):
            Suggestion(text="Do it", action="Do it", priority=1, category="urgent")


class TestOverview:
    """Tests for Overview and GeneratedOverview."""

    def test_card_count_bounds(self, generated_overview) -> None:
        """Test overviews need 3-5 cards."""
        generated_overview["postureCards"] = generated_overview["postureCards"][:2]
        with pytest.raises(ValidationError):
            Overview.model_validate(generated_overview)

    def test_generated_needs_two_suggestions(self, generated_overview) -> None:
        """Test generated overviews need at least two suggestions while Overview allows one."""
        generated_overview["suggestions"] = generated_overview["suggestions"][:1]

        assert len(Overview.model_validate(generated_overview).suggestions) == 1
        with pytest.raises(ValidationError):
            GeneratedOverview.model_validate(generated_overview)

    def test_to_dict_uses_aliases(self, generated_overview) -> None:
        """Test serialization uses camelCase and omits unset fields."""
        data = Overview.model_validate(generated_overview).to_dict()

        assert "postureCards" in data
        assert "lastUpdated" not in data["postureCards"][0]
        assert "progress" not in data["postureCards"][0]

    def test_extra_fields_ignored(self, generated_overview) -> None:
        """Test unexpected keys from the generator are dropped."""
        generated_overview["confidence"] = 0.9
        assert "confidence" not in Overview.model_validate(generated_overview).to_dict()

    def test_schema_uses_aliases(self) -> None:
        """Test the JSON schema given to the generator is camelCase."""
        schema = GeneratedOverview.model_json_schema(by_alias=True)
        assert {"headline", "summary", "postureCards", "suggestions", "sources"} <= set(schema["properties"])
        assert schema["properties"]["suggestions"]["minItems"] == 2
