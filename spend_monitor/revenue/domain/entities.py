"""
Revenue Domain Entities
=======================

Pure Python domain objects for revenue pace monitoring.

Everything here is rebuilt each run and never persisted.
"""

import calendar
from dataclasses import dataclass
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional, Tuple

from spend_monitor.config import (
    Classification, RevenueSource, DriverDirection
)


@dataclass(frozen=True)
class CustomerRef:
    """
    A monitored customer.

    ``internal_name`` is the identity, ``external_query_key`` is the value
    used to filter primary-source views and ``display_name`` is what the
    report shows.
    """
    internal_name: str
    external_query_key: str
    display_name: str

    def matches(self, name: str) -> bool:
        """True when ``name`` is this customer's internal or display name."""
        return name in (self.internal_name, self.display_name)


@dataclass(frozen=True, order=True)
class YearMonth:
    """Calendar month value object."""
    year: int
    month: int

    def __post_init__(self):
        if not 1 <= self.month <= 12:
            raise ValueError(f"month must be 1-12, got {self.month}")

    @classmethod
    def from_date(cls, day: date) -> "YearMonth":
        return cls(day.year, day.month)

    def previous(self) -> "YearMonth":
        if self.month == 1:
            return YearMonth(self.year - 1, 12)
        return YearMonth(self.year, self.month - 1)

    @property
    def days_in_month(self) -> int:
        return calendar.monthrange(self.year, self.month)[1]

    @property
    def label(self) -> str:
        """ISO-style label, e.g. ``2026-10``."""
        return f"{self.year:04d}-{self.month:02d}"

    @property
    def short_name(self) -> str:
        """Abbreviated month name, e.g. ``Oct``."""
        return calendar.month_abbr[self.month]

    @property
    def labels(self) -> Tuple[str, ...]:
        """
        Spellings a tabular source may use for this month, lowercase.

        Used to pick a row by month label instead of by position.
        """
        return (
            self.label,
            f"{self.label}-01",
            f"{self.month}/{self.year}",
            f"{self.month:02d}/{self.year}",
            f"{calendar.month_abbr[self.month]} {self.year}".lower(),
            f"{calendar.month_name[self.month]} {self.year}".lower(),
        )

    def __str__(self) -> str:
        return self.label


@dataclass(frozen=True)
class RevenueQuery:
    """One customer-month lookup."""
    customer: CustomerRef
    month: YearMonth


@dataclass(frozen=True)
class RevenueResult:
    """
    Resolved revenue for one customer-month.

    ``resolved=False`` means neither source produced a number; the amount
    is then 0 but the caller can tell it apart from genuine zero revenue.
    """
    amount: Decimal
    source: RevenueSource
    resolved: bool

    @classmethod
    def unresolved(cls) -> "RevenueResult":
        return cls(Decimal("0"), RevenueSource.FALLBACK, False)


def round_pct(value: Decimal) -> int:
    """Round a percentage half-up (away from zero) to a whole percent."""
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


@dataclass(frozen=True)
class PaceReport:
    """Month-to-date pace of one customer against its prorated prior month."""
    customer: CustomerRef
    current_amount: Decimal
    prior_amount: Decimal
    prorated_baseline: Decimal
    change_pct: Decimal
    classification: Classification
    sub_label: str
    current_resolved: bool = True
    prior_resolved: bool = True

    @property
    def display_pct(self) -> int:
        """Change rounded half-up to a whole percent."""
        return round_pct(self.change_pct)

    @property
    def is_fully_resolved(self) -> bool:
        return self.current_resolved and self.prior_resolved


@dataclass(frozen=True)
class ServiceDelta:
    """One service row of a breakdown reduced to its month-over-month delta."""
    service: str
    delta: Decimal
    current_amount: Optional[Decimal] = None


@dataclass(frozen=True)
class DriverLine:
    """Short explanation of what moved a big mover."""
    customer: CustomerRef
    description: str
    direction: DriverDirection
    service: Optional[str] = None
