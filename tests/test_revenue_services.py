"""Test revenue resolution, session handling and driver extraction."""
from decimal import Decimal
from unittest.mock import AsyncMock

from spend_monitor.config import DriverDirection, RevenueSource
from spend_monitor.revenue.application import (
    DriverExtractor,
    IFallbackRevenueSource,
    PrimarySession,
    RevenueResolver,
    SessionState,
    open_primary_session,
)
from spend_monitor.revenue.domain import YearMonth

from conftest import FakePrimarySource

OCT = YearMonth(2026, 10)
MONTHLY = "Month,Revenue\n2026-09,100000\n2026-10,80000\n"
BREAKDOWN = "Service,2026-09,2026-10\nVoice API,50000,90000\nMessaging,80000,25000\n"


def _fallback(answer):
    fallback = AsyncMock(spec=IFallbackRevenueSource)
    fallback.ask.return_value = answer
    return fallback


# ===================================================================
# open_primary_session
# ===================================================================


class TestOpenPrimarySession:
    async def test_no_primary(self):
        session = await open_primary_session(None)
        assert session.state == SessionState.UNAVAILABLE
        assert not session.is_available

    async def test_missing_credentials_skips_sign_in(self):
        primary = FakePrimarySource(credentials=False)
        session = await open_primary_session(primary)
        assert session.state == SessionState.UNAVAILABLE
        assert primary.auth_calls == 0

    async def test_rejected_sign_in_degrades(self):
        primary = FakePrimarySource(fail_auth=True)
        session = await open_primary_session(primary)
        assert session.state == SessionState.FAILED
        assert not session.is_available

    async def test_successful_sign_in(self):
        session = await open_primary_session(FakePrimarySource())
        assert session.is_available
        assert session.token == "token-1"


# ===================================================================
# RevenueResolver
# ===================================================================


class TestRevenueResolver:
    async def test_primary_month_row(self, customer):
        primary = FakePrimarySource(monthly={"Acme Corp": MONTHLY})
        resolver = RevenueResolver(primary, _fallback(None), PrimarySession.authenticated("t", "s"))

        current = await resolver.resolve(customer, OCT)
        prior = await resolver.resolve(customer, OCT.previous())

        assert current.amount == Decimal("80000")
        assert prior.amount == Decimal("100000")
        assert current.source == RevenueSource.PRIMARY
        assert current.resolved

    async def test_failed_session_never_queries_primary(self, customer):
        primary = FakePrimarySource(monthly={"Acme Corp": MONTHLY})
        fallback = _fallback("Total revenue was $12,345.67")
        resolver = RevenueResolver(primary, fallback, PrimarySession.failed())

        result = await resolver.resolve(customer, OCT)

        assert primary.monthly_calls == []
        assert result.source == RevenueSource.FALLBACK
        assert result.amount == Decimal("12345.67")

    async def test_fallback_when_primary_lacks_month(self, customer):
        primary = FakePrimarySource(monthly={"Acme Corp": "Month,Revenue\n2026-08,1\n"})
        fallback = _fallback("$500")
        resolver = RevenueResolver(primary, fallback, PrimarySession.authenticated("t", "s"))

        result = await resolver.resolve(customer, OCT)

        assert primary.monthly_calls == ["Acme Corp"]
        assert result.source == RevenueSource.FALLBACK
        assert result.amount == Decimal("500")

    async def test_fallback_question(self, customer):
        fallback = _fallback("$1")
        resolver = RevenueResolver(None, fallback, PrimarySession.unavailable())

        await resolver.resolve(customer, OCT)

        question, message_id = fallback.ask.await_args.args
        assert question == "What is the total revenue for acme for month 2026-10?"
        assert message_id.startswith("spend-")
        assert message_id.endswith("-acme-2026-10")

    async def test_unresolved_when_both_fail(self, customer):
        resolver = RevenueResolver(
            FakePrimarySource(), _fallback("no idea"), PrimarySession.authenticated("t", "s")
        )

        result = await resolver.resolve(customer, OCT)

        assert result.amount == 0
        assert not result.resolved

    async def test_no_sources_at_all(self, customer):
        resolver = RevenueResolver(None, None, PrimarySession.unavailable())
        result = await resolver.resolve(customer, OCT)
        assert not result.resolved

    async def test_negative_revenue_clamped(self, customer):
        resolver = RevenueResolver(None, _fallback("net -$500"), PrimarySession.unavailable())
        result = await resolver.resolve(customer, OCT)
        assert result.amount == 0
        assert result.resolved


# ===================================================================
# DriverExtractor
# ===================================================================


class TestDriverExtractor:
    async def test_small_mover_has_no_driver(self, customer):
        primary = FakePrimarySource(breakdowns={"Acme Corp": BREAKDOWN})
        extractor = DriverExtractor(primary, PrimarySession.authenticated("t", "s"))

        assert await extractor.explain(customer, OCT, Decimal("20")) is None
        assert primary.breakdown_calls == []

    async def test_decliner_driver_is_largest_absolute_delta(self, customer):
        primary = FakePrimarySource(breakdowns={"Acme Corp": BREAKDOWN})
        extractor = DriverExtractor(primary, PrimarySession.authenticated("t", "s"))

        line = await extractor.explain(customer, OCT, Decimal("-60"))

        assert line.service == "Messaging"
        assert line.description == "Messaging -$55K MoM"
        assert line.direction == DriverDirection.WATCH

    async def test_grower_goes_to_high_growth(self, customer):
        breakdown = "Service,2026-09,2026-10\nVoice API,50000,90000\n"
        primary = FakePrimarySource(breakdowns={"Acme Corp": breakdown})
        extractor = DriverExtractor(primary, PrimarySession.authenticated("t", "s"))

        line = await extractor.explain(customer, OCT, Decimal("80"))

        assert line.description == "Voice API +$40K MoM"
        assert line.direction == DriverDirection.HIGH_GROWTH

    async def test_no_driver_without_session(self, customer):
        primary = FakePrimarySource(breakdowns={"Acme Corp": BREAKDOWN})
        extractor = DriverExtractor(primary, PrimarySession.failed())

        assert await extractor.explain(customer, OCT, Decimal("90")) is None
        assert primary.breakdown_calls == []

    async def test_no_driver_without_breakdown_view(self, customer):
        extractor = DriverExtractor(FakePrimarySource(), PrimarySession.authenticated("t", "s"))
        assert await extractor.explain(customer, OCT, Decimal("90")) is None
