"""
Watch List Domain Layer
=======================

Contains:
- Entities: EscalationRecord, TicketRecord, WatchEntry

This layer has no dependencies on infrastructure - pure Python business logic.
"""

from spend_monitor.watchlist.domain.entities import (
    EscalationRecord,
    TicketRecord,
    WatchEntry,
)

__all__ = [
    "EscalationRecord",
    "TicketRecord",
    "WatchEntry",
]
