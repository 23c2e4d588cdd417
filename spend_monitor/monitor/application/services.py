"""
Monitor Application Services
============================

Orchestrates one monitor run:
1. Authenticate against the primary source once
2. Resolve current and prior revenue for each customer, in order
3. Classify pace and explain big movers
4. Build the watch list
5. Hand the Report to formatting and delivery

Following SOLID principles:
- Single Responsibility: the pipeline only sequences; resolving,
  classifying and aggregating live in their own contexts
- Dependency Inversion: sources, trackers and notifiers are interfaces
"""

import uuid
from abc import ABC, abstractmethod
from datetime import date
from decimal import Decimal
from typing import Dict, Iterable, List, Optional

from spend_monitor.config import Classification, PaceLabel
from spend_monitor.monitor.domain import MonitorConfig, Report
from spend_monitor.revenue.application import (
    IPrimaryRevenueSource,
    IFallbackRevenueSource,
    PrimarySession,
    RevenueResolver,
    DriverExtractor,
    open_primary_session,
)
from spend_monitor.revenue.domain import (
    CustomerRef,
    PaceCalculator,
    PaceReport,
    RevenueQuery,
    YearMonth,
)
from spend_monitor.shared.infrastructure.logging import (
    get_context_logger,
    get_logger,
    log_latency,
)
from spend_monitor.watchlist.application import (
    IEscalationProvider,
    ITicketProvider,
    WatchListAggregator,
)

logger = get_logger(__name__)

# Two monthly lookups through both sources plus one breakdown.
MAX_REQUESTS_PER_CUSTOMER = 5


class INotifier(ABC):
    """Interface for chat delivery sinks."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Short sink name for logs."""

    @abstractmethod
    async def send(self, text: str) -> bool:
        """Deliver the report. Returns False on failure, never raises."""


async def deliver(text: str, notifiers: Iterable[INotifier]) -> Dict[str, bool]:
    """
    Send the report to every notifier.

    A failing sink does not stop the others.

    Returns:
        Mapping of notifier name to delivery outcome
    """
    outcomes: Dict[str, bool] = {}
    for notifier in notifiers:
        outcomes[notifier.name] = await notifier.send(text)
    failed = [name for name, ok in outcomes.items() if not ok]
    if failed:
        logger.warning("Report not delivered to every channel", extra={"failed": failed})
    return outcomes


class SpendMonitorPipeline:
    """
    Runs the monitor for one day.

    Customers are processed one at a time; the primary session is the
    only state shared between them and is read-only once opened.
    """

    def __init__(
        self,
        config: MonitorConfig,
        primary: Optional[IPrimaryRevenueSource],
        fallback: Optional[IFallbackRevenueSource],
        escalations: IEscalationProvider,
        tickets: ITicketProvider,
        request_budget_seconds: Optional[float] = None,
    ):
        self._config = config
        self._primary = primary
        self._fallback = fallback
        self._escalations = escalations
        self._tickets = tickets
        self._request_budget_seconds = request_budget_seconds
        thresholds = config.thresholds
        self._aggregator = WatchListAggregator(
            escalation_threshold=thresholds.escalation_count,
            stale_business_days=thresholds.stale_ticket_business_days,
            watch_drop_pct=thresholds.watch_drop_pct,
        )

    def select_customers(self, customer_filter: Optional[str] = None) -> List[CustomerRef]:
        """All configured customers, or those matching ``customer_filter``."""
        customers = self._config.customer_refs()
        if not customer_filter:
            return customers
        selected = [c for c in customers if c.matches(customer_filter)]
        if not selected:
            logger.warning("No configured customer matches filter", extra={"customer": customer_filter})
        return selected

    def worst_case_seconds(self, customer_count: int) -> Optional[float]:
        """Upper bound on run time when every request exhausts its retries."""
        if self._request_budget_seconds is None:
            return None
        requests = 1 + customer_count * MAX_REQUESTS_PER_CUSTOMER
        return requests * self._request_budget_seconds

    async def run(
        self,
        today: date,
        customer_filter: Optional[str] = None,
        dry_run: bool = False,
    ) -> Report:
        """
        Produce the report for ``today``.

        Args:
            today: Report date; its day of month is the days elapsed
            customer_filter: Restrict the run to one customer
            dry_run: Skip every source query

        Returns:
            Report with one PaceReport per selected customer
        """
        run_logger = get_context_logger(__name__, uuid.uuid4().hex[:12])
        customers = self.select_customers(customer_filter)
        current_month = YearMonth.from_date(today)
        prior_month = current_month.previous()

        run_logger.info(
            "Spend monitor run starting",
            extra={
                "report_date": today.isoformat(),
                "day_of_month": today.day,
                "prior_month": prior_month.label,
                "days_in_prior_month": prior_month.days_in_month,
                "customers": len(customers),
                "dry_run": dry_run,
                "worst_case_seconds": self.worst_case_seconds(len(customers)),
            },
        )

        with log_latency(run_logger, "monitor_run", customers=len(customers)):
            if dry_run:
                pace_reports = [self._dry_run_report(c) for c in customers]
                drivers = []
            else:
                pace_reports, drivers = await self._collect(
                    customers, today, current_month, prior_month, run_logger
                )

            watch_entries = self._aggregator.aggregate(
                self._escalations.load(),
                self._tickets.load(),
                pace_reports,
                today,
            )

        report = Report(
            report_date=today,
            pace_reports=pace_reports,
            drivers=drivers,
            watch_entries=watch_entries,
            dry_run=dry_run,
        )
        if report.unresolved_customers:
            run_logger.warning(
                "Some customers have unresolved revenue",
                extra={"customers": [c.internal_name for c in report.unresolved_customers]},
            )
        return report

    async def _collect(self, customers, today, current_month, prior_month, run_logger):
        session: PrimarySession = await open_primary_session(self._primary)
        resolver = RevenueResolver(self._primary, self._fallback, session)
        extractor = DriverExtractor(self._primary, session)
        thresholds = self._config.thresholds

        pace_reports: List[PaceReport] = []
        drivers = []
        for customer in customers:
            run_logger.info("Processing customer", extra={"customer": customer.internal_name})
            queries = (RevenueQuery(customer, current_month), RevenueQuery(customer, prior_month))
            current, prior = [await resolver.resolve(q.customer, q.month) for q in queries]

            pace = PaceCalculator.classify(
                customer,
                current.amount,
                prior.amount,
                today.day,
                prior_month.days_in_month,
                thresholds.growth_pct,
                thresholds.decline_pct,
                current_resolved=current.resolved,
                prior_resolved=prior.resolved,
            )
            pace_reports.append(pace)
            run_logger.info(
                "Customer classified",
                extra={
                    "customer": customer.internal_name,
                    "current": str(pace.current_amount),
                    "prior": str(pace.prior_amount),
                    "change_pct": str(pace.change_pct),
                    "classification": pace.classification.value,
                    "current_source": current.source.value,
                    "prior_source": prior.source.value,
                },
            )

            driver = await extractor.explain(customer, current_month, pace.change_pct)
            if driver is not None:
                drivers.append(driver)

        return pace_reports, drivers

    @staticmethod
    def _dry_run_report(customer: CustomerRef) -> PaceReport:
        zero = Decimal("0")
        return PaceReport(
            customer=customer,
            current_amount=zero,
            prior_amount=zero,
            prorated_baseline=zero,
            change_pct=zero,
            classification=Classification.NORMAL,
            sub_label=PaceLabel.DRY_RUN,
        )
