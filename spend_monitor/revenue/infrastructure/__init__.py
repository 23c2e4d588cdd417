"""
Revenue Infrastructure Layer
============================

Concrete revenue sources:
- TableauClient: primary source (REST API, CSV view exports)
- BillingAgentClient: fallback source (A2A JSON-RPC)
"""

from spend_monitor.revenue.infrastructure.external import (
    TableauClient,
    BillingAgentClient,
    extract_agent_text,
)

__all__ = [
    "TableauClient",
    "BillingAgentClient",
    "extract_agent_text",
]
