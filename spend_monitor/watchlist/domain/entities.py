"""
Watch List Domain Entities
==========================

Read-only tracker records and the watch entries derived from them.
"""

from dataclasses import dataclass
from datetime import date

from spend_monitor.config import WatchReason, CLOSED_TICKET_STATUSES


@dataclass(frozen=True)
class EscalationRecord:
    """One escalation logged against a customer."""
    customer: str
    date: date
    summary: str


@dataclass(frozen=True)
class TicketRecord:
    """
    Engineering desk ticket raised for a customer.

    Business-day age is approximated as ``calendar_days * 5 / 7``, floored,
    which ignores holidays and the weekday the ticket was opened on.
    """
    ticket_id: str
    customer: str
    created_date: date
    status: str

    @property
    def is_open(self) -> bool:
        """Anything not resolved or closed still counts as open."""
        return self.status.strip().lower() not in CLOSED_TICKET_STATUSES

    def calendar_age_days(self, today: date) -> int:
        return max(0, (today - self.created_date).days)

    def business_age_days(self, today: date) -> int:
        return self.calendar_age_days(today) * 5 // 7


@dataclass(frozen=True)
class WatchEntry:
    """A reason to look at a customer; a customer may have several."""
    customer_name: str
    reason: WatchReason
    detail: str
