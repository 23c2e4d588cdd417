"""
Revenue Application Services
============================

Application services resolve revenue figures and explain big movers.

Following SOLID principles:
- Single Responsibility: resolving and explaining are separate services
- Dependency Inversion: both depend on source interfaces, not on
  Tableau or the billing agent directly
"""

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from spend_monitor.config import RevenueSource, DriverDirection
from spend_monitor.core import AuthenticationException
from spend_monitor.revenue.domain import (
    CustomerRef, YearMonth, RevenueResult, DriverLine, PaceCalculator,
    select_month_amount, extract_currency_amount,
    parse_service_breakdown, select_top_driver,
)
from spend_monitor.shared.formatting import format_signed_dollars
from spend_monitor.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)


# ========== Run-scoped primary session ==========

class SessionState(str):
    """Primary source session states."""
    AUTHENTICATED = "authenticated"
    FAILED = "failed"
    UNAVAILABLE = "unavailable"


@dataclass(frozen=True)
class PrimarySession:
    """
    Primary-source authentication for one run.

    Created once by the orchestrator and passed by reference to every
    component that queries the primary source. Frozen, so it stays
    read-only after sign-in.
    """
    state: str
    token: Optional[str] = None
    site_id: Optional[str] = None

    @classmethod
    def authenticated(cls, token: str, site_id: Optional[str]) -> "PrimarySession":
        return cls(SessionState.AUTHENTICATED, token, site_id)

    @classmethod
    def failed(cls) -> "PrimarySession":
        return cls(SessionState.FAILED)

    @classmethod
    def unavailable(cls) -> "PrimarySession":
        return cls(SessionState.UNAVAILABLE)

    @property
    def is_available(self) -> bool:
        return self.state == SessionState.AUTHENTICATED and bool(self.token)


# ========== Source Interfaces (Dependency Inversion) ==========

class IPrimaryRevenueSource(ABC):
    """Interface for the tabular primary revenue source."""

    @property
    @abstractmethod
    def has_credentials(self) -> bool:
        """True when a credential is configured at all."""

    @property
    @abstractmethod
    def supports_service_breakdown(self) -> bool:
        """True when a service-breakdown view is configured."""

    @abstractmethod
    async def authenticate(self) -> PrimarySession:
        """Sign in once. Raises AuthenticationException on failure."""

    @abstractmethod
    async def fetch_monthly_revenue(
        self,
        session: PrimarySession,
        customer: CustomerRef
    ) -> Optional[str]:
        """Monthly revenue table (CSV) for the customer, or None."""

    @abstractmethod
    async def fetch_service_breakdown(
        self,
        session: PrimarySession,
        customer: CustomerRef
    ) -> Optional[str]:
        """Service-level breakdown table (CSV) for the customer, or None."""


class IFallbackRevenueSource(ABC):
    """Interface for the natural-language fallback source."""

    @abstractmethod
    async def ask(self, question: str, message_id: str) -> Optional[str]:
        """Send a question and return the free-text answer, or None."""


async def open_primary_session(primary: Optional[IPrimaryRevenueSource]) -> PrimarySession:
    """
    Authenticate against the primary source once for the whole run.

    Never raises: a missing credential or a rejected sign-in degrades the
    run to fallback-only, and that is logged exactly here, once.
    """
    if primary is None or not primary.has_credentials:
        logger.warning("Primary source credential not set, using fallback only")
        return PrimarySession.unavailable()

    try:
        session = await primary.authenticate()
    except AuthenticationException as e:
        logger.warning(
            "Primary source authentication failed, using fallback only",
            extra={"error": e.message},
        )
        return PrimarySession.failed()

    logger.info("Primary source authenticated")
    return session


# ========== Application Services ==========

class RevenueResolver:
    """
    Resolves one customer's revenue for one month.

    Tries the primary source when the run's session is usable, then the
    fallback source, and reports an unresolved zero when neither yields a
    number.
    """

    def __init__(
        self,
        primary: Optional[IPrimaryRevenueSource],
        fallback: Optional[IFallbackRevenueSource],
        session: PrimarySession
    ):
        self._primary = primary
        self._fallback = fallback
        self._session = session

    @property
    def session(self) -> PrimarySession:
        return self._session

    async def resolve(self, customer: CustomerRef, month: YearMonth) -> RevenueResult:
        """
        Resolve revenue for ``customer`` in ``month``.

        Returns:
            RevenueResult tagged with the source that produced the figure
        """
        if self._primary is not None and self._session.is_available:
            table = await self._primary.fetch_monthly_revenue(self._session, customer)
            if table:
                parsed = select_month_amount(table, month)
                if parsed.ok:
                    return RevenueResult(
                        self._non_negative(parsed.value, customer, month),
                        RevenueSource.PRIMARY,
                        True,
                    )
                logger.info(
                    "Primary source had no figure, trying fallback",
                    extra={"customer": customer.internal_name, "month": month.label, "reason": parsed.reason},
                )

        if self._fallback is not None:
            question = f"What is the total revenue for {customer.internal_name} for month {month.label}?"
            message_id = f"spend-{int(time.time())}-{customer.internal_name}-{month.label}"
            answer = await self._fallback.ask(question, message_id)
            parsed = extract_currency_amount(answer or "")
            if parsed.ok:
                return RevenueResult(
                    self._non_negative(parsed.value, customer, month),
                    RevenueSource.FALLBACK,
                    True,
                )
            logger.info(
                "Fallback source had no figure",
                extra={"customer": customer.internal_name, "month": month.label, "reason": parsed.reason},
            )

        logger.warning(
            "Revenue unresolved",
            extra={"customer": customer.internal_name, "month": month.label},
        )
        return RevenueResult.unresolved()

    @staticmethod
    def _non_negative(value: Decimal, customer: CustomerRef, month: YearMonth) -> Decimal:
        if value < 0:
            logger.warning(
                "Negative revenue clamped to zero",
                extra={"customer": customer.internal_name, "month": month.label, "value": str(value)},
            )
            return Decimal("0")
        return value


class DriverExtractor:
    """
    Explains a big mover by its most significant service.

    Only the primary source carries service breakdowns; without it there
    is no driver line. The chosen service is the one with the largest
    absolute month-over-month delta.
    """

    def __init__(
        self,
        primary: Optional[IPrimaryRevenueSource],
        session: PrimarySession
    ):
        self._primary = primary
        self._session = session

    async def explain(
        self,
        customer: CustomerRef,
        month: YearMonth,
        change_pct: Decimal
    ) -> Optional[DriverLine]:
        """Return a DriverLine for a big mover, or None."""
        if not PaceCalculator.is_big_mover(change_pct):
            return None
        if (
            self._primary is None
            or not self._session.is_available
            or not self._primary.supports_service_breakdown
        ):
            return None

        table = await self._primary.fetch_service_breakdown(self._session, customer)
        if not table:
            return None

        top = select_top_driver(parse_service_breakdown(table, month, month.previous()))
        if top is None:
            logger.info(
                "Service breakdown had no usable rows",
                extra={"customer": customer.internal_name},
            )
            return None

        direction = DriverDirection.HIGH_GROWTH if change_pct > 0 else DriverDirection.WATCH
        return DriverLine(
            customer=customer,
            description=f"{top.service} {format_signed_dollars(top.delta)} MoM",
            direction=direction,
            service=top.service,
        )
