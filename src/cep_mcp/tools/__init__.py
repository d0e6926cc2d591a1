"""Chrome fleet tools."""

from cep_mcp.tools.chrome_events import chrome_events
from cep_mcp.tools.connector_config import connector_configuration
from cep_mcp.tools.dlp_rules import dlp_rules
from cep_mcp.tools.fleet_overview import FleetSources, default_sources, fleet_overview

__all__ = [
    "FleetSources",
    "chrome_events",
    "connector_configuration",
    "default_sources",
    "dlp_rules",
    "fleet_overview",
]
