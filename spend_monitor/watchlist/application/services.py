"""
Watch List Application Services
===============================

Merges three independent signals into one watch list:
- escalation volume over the trailing week
- open tickets that have gone stale
- customers whose revenue pace dropped past the watch threshold

Signals are not deduplicated against each other.
"""

from abc import ABC, abstractmethod
from collections import OrderedDict
from datetime import date, timedelta
from decimal import Decimal
from typing import Dict, Iterable, List, Union

from spend_monitor.config import (
    WatchReason, ESCALATION_WINDOW_DAYS, MAX_ESCALATION_EXAMPLES
)
from spend_monitor.revenue.domain import PaceCalculator, PaceReport
from spend_monitor.watchlist.domain import EscalationRecord, TicketRecord, WatchEntry


# ========== Provider Interfaces (Dependency Inversion) ==========

class IEscalationProvider(ABC):
    """Interface for escalation tracker access."""

    @abstractmethod
    def load(self) -> List[EscalationRecord]:
        """Return every escalation record the tracker holds."""


class ITicketProvider(ABC):
    """Interface for ticket tracker access."""

    @abstractmethod
    def load(self) -> List[TicketRecord]:
        """Return every ticket record the tracker holds."""


# ========== Application Services ==========

class WatchListAggregator:
    """
    Builds the watch list for one run.

    Stateless apart from its thresholds; ``aggregate`` can be called with
    any ``today`` for reproducible results.
    """

    def __init__(
        self,
        escalation_threshold: int = 3,
        stale_business_days: int = 5,
        watch_drop_pct: Union[Decimal, int, float] = -25,
        window_days: int = ESCALATION_WINDOW_DAYS,
    ):
        self.escalation_threshold = escalation_threshold
        self.stale_business_days = stale_business_days
        self.watch_drop_pct = Decimal(str(watch_drop_pct))
        self.window_days = window_days

    def escalation_entries(
        self,
        escalations: Iterable[EscalationRecord],
        today: date
    ) -> List[WatchEntry]:
        """One entry per customer with enough escalations in the window."""
        since = today - timedelta(days=self.window_days)
        by_customer: Dict[str, List[EscalationRecord]] = OrderedDict()
        for record in escalations:
            if record.date >= since:
                by_customer.setdefault(record.customer, []).append(record)

        entries = []
        for customer in sorted(by_customer):
            records = by_customer[customer]
            if len(records) < self.escalation_threshold:
                continue
            examples = ", ".join(r.summary for r in records[:MAX_ESCALATION_EXAMPLES])
            entries.append(WatchEntry(
                customer_name=customer,
                reason=WatchReason.ESCALATIONS,
                detail=f"{len(records)} escalations this week ({examples})",
            ))
        return entries

    def stale_ticket_entries(
        self,
        tickets: Iterable[TicketRecord],
        today: date
    ) -> List[WatchEntry]:
        """One entry per open ticket at or past the stale age."""
        entries = []
        for ticket in tickets:
            if not ticket.is_open:
                continue
            age = ticket.business_age_days(today)
            if age >= self.stale_business_days:
                entries.append(WatchEntry(
                    customer_name=ticket.customer,
                    reason=WatchReason.STALE_TICKET,
                    detail=f"{ticket.ticket_id} stale ({age} business days)",
                ))
        return entries

    def steep_drop_entries(self, pace_reports: Iterable[PaceReport]) -> List[WatchEntry]:
        """One entry per customer whose pace fell past the watch threshold."""
        return [
            WatchEntry(
                customer_name=report.customer.display_name,
                reason=WatchReason.STEEP_DROP,
                detail=f"{report.display_pct}% MoM drop — needs attention",
            )
            for report in pace_reports
            if PaceCalculator.is_steep_drop(report.change_pct, self.watch_drop_pct)
        ]

    def aggregate(
        self,
        escalations: Iterable[EscalationRecord],
        tickets: Iterable[TicketRecord],
        pace_reports: Iterable[PaceReport],
        today: date
    ) -> List[WatchEntry]:
        """
        Merge all watch signals.

        Returns:
            Steep drops first, then escalations, then stale tickets.
        """
        return [
            *self.steep_drop_entries(pace_reports),
            *self.escalation_entries(escalations, today),
            *self.stale_ticket_entries(tickets, today),
        ]
