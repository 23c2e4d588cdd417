"""
Watch List Application Layer
============================

Contains:
- Services: WatchListAggregator
- Provider interfaces: IEscalationProvider, ITicketProvider
"""

from spend_monitor.watchlist.application.services import (
    IEscalationProvider,
    ITicketProvider,
    WatchListAggregator,
)

__all__ = [
    "IEscalationProvider",
    "ITicketProvider",
    "WatchListAggregator",
]
