"""
Revenue Domain Layer
====================

Domain layer for revenue pace monitoring.

Contains:
- Entities: CustomerRef, YearMonth, RevenueResult, PaceReport, DriverLine
- Value Objects & Services: PaceCalculator (stateless pace math)
- Parsing: typed numeric extraction from tables and free text

This layer has no dependencies on infrastructure - pure Python business logic.
"""

from spend_monitor.revenue.domain.entities import (
    CustomerRef,
    YearMonth,
    RevenueQuery,
    RevenueResult,
    PaceReport,
    ServiceDelta,
    DriverLine,
)
from spend_monitor.revenue.domain.value_objects import PaceCalculator
from spend_monitor.revenue.domain.parsing import (
    ParsedAmount,
    parse_amount,
    extract_currency_amount,
    select_month_amount,
    parse_service_breakdown,
    select_top_driver,
)

__all__ = [
    # Entities
    "CustomerRef",
    "YearMonth",
    "RevenueQuery",
    "RevenueResult",
    "PaceReport",
    "ServiceDelta",
    "DriverLine",
    # Value Objects & Services
    "PaceCalculator",
    # Parsing
    "ParsedAmount",
    "parse_amount",
    "extract_currency_amount",
    "select_month_amount",
    "parse_service_breakdown",
    "select_top_driver",
]
