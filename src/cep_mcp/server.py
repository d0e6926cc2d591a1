"""Chrome Fleet Overview MCP Server using FastMCP."""

import asyncio
import json
import logging
import os

from fastmcp import FastMCP

from cep_mcp import SCHEMA_VERSION, SERVER_VERSION
from cep_mcp.data import shutdown_executor
from cep_mcp.prompts.templates import get_prompt
from cep_mcp.tools import (
    chrome_events,
    connector_configuration,
    dlp_rules,
    fleet_overview,
)

# Configure logging
log_level = os.environ.get("LOG_LEVEL", "INFO").upper()
logging.basicConfig(level=getattr(logging, log_level, logging.INFO))
logger = logging.getLogger(__name__)

# Create FastMCP server instance
mcp = FastMCP(
    name="chrome-fleet",
)


# ============================================================================
# TOOLS
# ============================================================================


@mcp.tool
async def get_fleet_overview(max_events: int = 50, knowledge_query: str = "") -> str:
    """
    Summarize Chrome fleet security posture over the configured window (default 7 days).

    Combines Chrome audit events, DLP rules and connector policies into a
    headline, a short summary, 3-5 posture cards and 1-4 suggested actions.

    Args:
        max_events: Number of events kept as the visible sample (default: 50)
        knowledge_query: Optional topic to pull related docs and policies for

    Returns:
        JSON with headline, summary, postureCards, suggestions, sources and meta
    """
    result = await fleet_overview(max_events=max_events, knowledge_query=knowledge_query)
    return json.dumps(result, indent=2, default=str)


@mcp.tool
async def get_chrome_events(
    max_results: int = 50,
    start_time: str | None = None,
    end_time: str | None = None,
    page_token: str | None = None,
) -> str:
    """
    Get one page of Chrome audit events from the Admin SDK Reports API.

    Args:
        max_results: Events per page (1-1000, default: 50)
        start_time: RFC 3339 start (default: 24 hours ago)
        end_time: RFC 3339 end (default: now)
        page_token: Token from a previous response's nextPageToken

    Returns:
        JSON with events and nextPageToken
    """
    result = await chrome_events(
        max_results=max_results,
        start_time=start_time,
        end_time=end_time,
        page_token=page_token,
    )
    return json.dumps(result, indent=2, default=str)


@mcp.tool
async def list_dlp_rules() -> str:
    """
    List Chrome data loss prevention rules.

    Returns:
        JSON with rules (name, displayName, triggers, action, orgUnit)
    """
    result = await dlp_rules()
    return json.dumps(result, indent=2, default=str)


@mcp.tool
async def get_connector_configuration() -> str:
    """
    Resolve connector-related Chrome policies (Safe Browsing, reporting) for the root org unit.

    Returns:
        JSON with policySchemas and resolved policies
    """
    result = await connector_configuration()
    return json.dumps(result, indent=2, default=str)


# ============================================================================
# PROMPTS
# ============================================================================


@mcp.prompt
def fleet_checkin(focus: str = "") -> str:
    """Quick Chrome fleet security check-in with rendering instructions."""
    result = get_prompt("fleet_checkin", {"focus": focus})
    if result:
        return result["messages"][0]["content"]
    return "Give me a check-in on my Chrome fleet using get_fleet_overview."


# ============================================================================
# ENTRY POINT
# ============================================================================


def main() -> None:
    """Run the MCP server."""
    logger.info(f"Starting Chrome Fleet MCP Server v{SERVER_VERSION} (schema v{SCHEMA_VERSION})")
    try:
        mcp.run()
    finally:
        asyncio.run(shutdown_executor())


if __name__ == "__main__":
    main()
