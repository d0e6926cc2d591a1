"""AI narrative generation for the fleet overview."""

import json
import logging
import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Protocol

from openai import AsyncOpenAI
from pydantic import ValidationError

from cep_mcp.fleet.styles import enforce_card_styles
from cep_mcp.fleet.types import FleetFacts, GeneratedOverview, Overview, PostureCard, Suggestion
from cep_mcp.prompts.templates import FLEET_OVERVIEW_SYSTEM_PROMPT, build_fleet_overview_prompt
from cep_mcp.utils.errors import GenerationFailure, SourceUnavailableError
from cep_mcp.utils.sanitize import redact_contact_details, sanitize_text

logger = logging.getLogger(__name__)

_model = os.environ.get("FLEET_OVERVIEW_MODEL", "gpt-4o-mini")


class NarrativeBackend(Protocol):
    """Generative text capability constrained to a JSON schema."""

    async def generate(self, system: str, prompt: str, schema: dict[str, Any]) -> Any: ...


@dataclass(frozen=True)
class NarrativeOutcome:
    """Generated overview, or the reason there is none."""

    overview: Overview | None = None
    failure: str | None = None

    @property
    def ok(self) -> bool:
        return self.overview is not None

    @classmethod
    def absent(cls, reason: str) -> "NarrativeOutcome":
        return cls(failure=reason)


class OpenAINarrativeBackend:
    """NarrativeBackend over OpenAI chat completions with a JSON-schema response format."""

    def __init__(
        self,
        client: AsyncOpenAI | Any | None = None,
        model: str | None = None,
    ) -> None:
        self.model = model or _model
        self.client = client if client is not None else self._create_client_optional()

    @staticmethod
    def _create_client_optional() -> AsyncOpenAI | None:
        api_key = os.environ.get("OPENAI_API_KEY", "")
        if not api_key.strip():
            return None
        base_url = os.environ.get("OPENAI_BASE_URL", "").strip()
        # No client-side retries; the caller falls back instead
        if base_url:
            return AsyncOpenAI(api_key=api_key, base_url=base_url, max_retries=0)
        return AsyncOpenAI(api_key=api_key, max_retries=0)

    async def generate(self, system: str, prompt: str, schema: dict[str, Any]) -> Any:
        if self.client is None:
            raise SourceUnavailableError("OPENAI_API_KEY is not configured")

        response = await self.client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": system},
                {"role": "user", "content": prompt},
            ],
            response_format={
                "type": "json_schema",
                "json_schema": {"name": "fleet_overview", "schema": schema},
            },
        )
        content = response.choices[0].message.content
        if not content:
            raise GenerationFailure("Empty completion")
        try:
            return json.loads(content)
        except json.JSONDecodeError as e:
            raise GenerationFailure(f"Completion is not valid JSON: {e}") from e


@lru_cache(maxsize=1)
def default_narrative_backend() -> OpenAINarrativeBackend:
    """Process-wide OpenAI backend; its HTTP client is shared across overviews."""
    return OpenAINarrativeBackend()


def _clean(text: str, max_length: int = 200) -> str:
    return sanitize_text(redact_contact_details(text), max_length=max_length) or ""


def _sanitize_card(card: PostureCard) -> PostureCard:
    return card.model_copy(
        update={
            "label": _clean(card.label),
            "value": _clean(card.value),
            "note": _clean(card.note, 500),
            "source": _clean(card.source),
            "action": _clean(card.action),
        }
    )


def _sanitize_suggestion(suggestion: Suggestion) -> Suggestion:
    return suggestion.model_copy(
        update={
            "text": _clean(suggestion.text, 500),
            "action": _clean(suggestion.action),
        }
    )


def _sanitize(overview: Overview) -> Overview:
    """Clean every displayed string: control characters, URLs, emails and domains."""
    return overview.model_copy(
        update={
            "headline": _clean(overview.headline),
            "summary": _clean(overview.summary, 1000),
            "posture_cards": [_sanitize_card(card) for card in overview.posture_cards],
            "suggestions": [_sanitize_suggestion(s) for s in overview.suggestions],
            "sources": [_clean(source) for source in overview.sources],
        }
    )


async def summarize_fleet_overview(
    facts: FleetFacts,
    context: dict[str, Any],
    knowledge: dict[str, Any],
    backend: NarrativeBackend,
) -> NarrativeOutcome:
    """
    Generate a narrative overview and enforce deterministic styles on it.

    Never raises and never retries: a backend error or a value that does
    not match the output schema yields an absent outcome, and the caller
    decides what to do instead.

    Args:
        facts: Extracted fleet facts
        context: Raw per-source payloads
        knowledge: Serialized knowledge context
        backend: Generative backend

    Returns:
        NarrativeOutcome with overview or failure reason
    """
    prompt = build_fleet_overview_prompt(facts.to_dict(), context, knowledge)
    schema = GeneratedOverview.model_json_schema(by_alias=True)

    try:
        raw = await backend.generate(FLEET_OVERVIEW_SYSTEM_PROMPT, prompt, schema)
    except Exception as e:
        logger.warning(f"Fleet overview generation failed: {type(e).__name__}: {e}")
        return NarrativeOutcome.absent(f"backend_error: {e}")

    try:
        generated = GeneratedOverview.model_validate(raw)
    except ValidationError as e:
        logger.warning(f"Fleet overview output rejected: {e.error_count()} schema errors")
        return NarrativeOutcome.absent("schema_mismatch")

    return NarrativeOutcome(overview=enforce_card_styles(_sanitize(generated), facts))
