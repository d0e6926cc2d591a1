"""Optional vector-search knowledge context for the fleet overview."""

import asyncio
import logging
import os
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

import requests

from cep_mcp.data.admin_client import _fetch_semaphore, _retry_with_backoff
from cep_mcp.utils.errors import ApiError, create_api_error

logger = logging.getLogger(__name__)

DOCS_NAMESPACE = "docs"
POLICY_NAMESPACE = "policies"
DEFAULT_TOP_K = 3


@dataclass(frozen=True)
class SearchHit:
    id: str | int
    score: float
    content: str | None = None
    metadata: dict[str, Any] | None = None


@dataclass(frozen=True)
class SearchResult:
    namespace: str
    hits: list[SearchHit] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "namespace": self.namespace,
            "hits": [
                {
                    "id": hit.id,
                    "score": hit.score,
                    **({"content": hit.content} if hit.content is not None else {}),
                    **({"metadata": hit.metadata} if hit.metadata else {}),
                }
                for hit in self.hits
            ],
        }


@dataclass(frozen=True)
class KnowledgeContext:
    """Docs and policy hits related to a knowledge query; either may be absent."""

    docs: SearchResult | None = None
    policies: SearchResult | None = None
    # namespace -> failure, for namespaces whose search raised
    errors: dict[str, ApiError] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "docs": self.docs.to_dict() if self.docs else None,
            "policies": self.policies.to_dict() if self.policies else None,
        }


# (query, namespace, top_k) -> SearchResult
KnowledgeSearch = Callable[[str, str, int], Awaitable[SearchResult]]


async def upstash_search(query: str, namespace: str, top_k: int = DEFAULT_TOP_K) -> SearchResult:
    """
    Query an Upstash Vector index namespace with raw text.

    Raises:
        AdminApiError: If the request fails
    """
    base_url = os.environ.get("UPSTASH_VECTOR_REST_URL", "").rstrip("/")
    token = os.environ.get("UPSTASH_VECTOR_REST_TOKEN", "")
    body = {"data": query, "topK": top_k, "includeMetadata": True, "includeData": True}

    def _fetch() -> dict[str, Any]:
        response = requests.post(
            f"{base_url}/query-data/{namespace}",
            headers={"Authorization": f"Bearer {token}"},
            json=body,
            timeout=15,
        )
        response.raise_for_status()
        return response.json()

    async with _fetch_semaphore:
        data = await _retry_with_backoff(f"knowledge_search({namespace})", _fetch)

    hits = [
        SearchHit(
            id=hit.get("id", ""),
            score=float(hit.get("score", 0.0)),
            content=hit.get("data"),
            metadata=hit.get("metadata"),
        )
        for hit in data.get("result") or []
    ]
    return SearchResult(namespace=namespace, hits=hits)


def knowledge_search_configured() -> bool:
    return bool(
        os.environ.get("UPSTASH_VECTOR_REST_URL", "").strip()
        and os.environ.get("UPSTASH_VECTOR_REST_TOKEN", "").strip()
    )


async def fetch_knowledge_context(
    query: str,
    search: KnowledgeSearch | None,
    top_k: int = DEFAULT_TOP_K,
) -> KnowledgeContext:
    """
    Search docs and policies for a query, concurrently.

    Knowledge is optional context: an empty query, a missing backend, or a
    failing namespace leaves that part of the context as None and records
    an ApiError for it under `errors`.
    """
    if not query.strip() or search is None:
        return KnowledgeContext()

    docs, policies = await asyncio.gather(
        search(query, DOCS_NAMESPACE, top_k),
        search(query, POLICY_NAMESPACE, top_k),
        return_exceptions=True,
    )

    errors: dict[str, ApiError] = {}
    for namespace, result in ((DOCS_NAMESPACE, docs), (POLICY_NAMESPACE, policies)):
        if isinstance(result, Exception):
            logger.warning(f"Knowledge search ({namespace}) failed: {result}")
            errors[namespace] = create_api_error(result, "knowledge")

    return KnowledgeContext(
        docs=docs if isinstance(docs, SearchResult) else None,
        policies=policies if isinstance(policies, SearchResult) else None,
        errors=errors,
    )
