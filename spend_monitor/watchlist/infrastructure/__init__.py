"""
Watch List Infrastructure Layer
===============================

File-backed tracker repositories.
"""

from spend_monitor.watchlist.infrastructure.repositories import (
    JSONEscalationRepository,
    JSONTicketRepository,
    parse_tracker_date,
)

__all__ = [
    "JSONEscalationRepository",
    "JSONTicketRepository",
    "parse_tracker_date",
]
