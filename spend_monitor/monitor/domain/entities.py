"""
Monitor Domain Entities
=======================
"""

from dataclasses import dataclass, field
from datetime import date
from typing import List

from spend_monitor.revenue.domain import CustomerRef, DriverLine, PaceReport, YearMonth
from spend_monitor.watchlist.domain import WatchEntry


@dataclass
class Report:
    """
    Everything one run found, ready for formatting.

    ``pace_reports`` keeps customer-list order; drivers and watch entries
    carry no ordering guarantee. Built fresh each run.
    """
    report_date: date
    pace_reports: List[PaceReport] = field(default_factory=list)
    drivers: List[DriverLine] = field(default_factory=list)
    watch_entries: List[WatchEntry] = field(default_factory=list)
    dry_run: bool = False

    @property
    def current_month(self) -> YearMonth:
        return YearMonth.from_date(self.report_date)

    @property
    def prior_month(self) -> YearMonth:
        return self.current_month.previous()

    @property
    def unresolved_customers(self) -> List[CustomerRef]:
        """Customers with at least one month no source could resolve."""
        return [r.customer for r in self.pace_reports if not r.is_fully_resolved]
