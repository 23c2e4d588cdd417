"""
Revenue Application Layer
=========================

Contains:
- Services: RevenueResolver, DriverExtractor
- Source interfaces: IPrimaryRevenueSource, IFallbackRevenueSource
- PrimarySession: run-scoped primary authentication

This layer depends on the domain layer and source interfaces,
but not on concrete infrastructure implementations.
"""

from spend_monitor.revenue.application.services import (
    SessionState,
    PrimarySession,
    IPrimaryRevenueSource,
    IFallbackRevenueSource,
    open_primary_session,
    RevenueResolver,
    DriverExtractor,
)

__all__ = [
    "SessionState",
    "PrimarySession",
    "IPrimaryRevenueSource",
    "IFallbackRevenueSource",
    "open_primary_session",
    "RevenueResolver",
    "DriverExtractor",
]
