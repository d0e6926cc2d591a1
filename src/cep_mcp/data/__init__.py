"""Data layer for Google Admin APIs and knowledge search."""

from cep_mcp.data.admin_client import (
    CONNECTOR_POLICY_SCHEMAS,
    AdminCredentials,
    ServerShuttingDownError,
    fetch_events_page,
    list_dlp_rules,
    resolve_connector_policies,
    shutdown_executor,
)
from cep_mcp.data.knowledge import (
    KnowledgeContext,
    SearchHit,
    SearchResult,
    fetch_knowledge_context,
    knowledge_search_configured,
    upstash_search,
)

__all__ = [
    # Admin APIs
    "CONNECTOR_POLICY_SCHEMAS",
    "AdminCredentials",
    "ServerShuttingDownError",
    "fetch_events_page",
    "list_dlp_rules",
    "resolve_connector_policies",
    "shutdown_executor",
    # Knowledge
    "KnowledgeContext",
    "SearchHit",
    "SearchResult",
    "fetch_knowledge_context",
    "knowledge_search_configured",
    "upstash_search",
]
