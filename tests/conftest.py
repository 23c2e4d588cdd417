"""Shared fixtures for the spend monitor tests."""
import copy
from typing import Dict, List, Optional

import httpx
import pytest

from spend_monitor.monitor.domain import MonitorConfig
from spend_monitor.revenue.application import (
    IPrimaryRevenueSource,
    PrimarySession,
)
from spend_monitor.revenue.domain import CustomerRef
from spend_monitor.core import AuthenticationException
from spend_monitor.shared.infrastructure.http import RetryingHttpClient


CONFIG_DATA = {
    "customers": [
        {"name": "acme", "tableau_url_name": "Acme Corp", "display_name": "Acme"},
        {"name": "globex", "tableau_url_name": "Globex Corporation", "display_name": "Globex"},
    ],
    "tableau": {
        "server": "tableau.example.com",
        "site": "finance",
        "pat_name": "spend-monitor",
        "views": {
            "monthly_revenue": "view-monthly",
            "service_breakdown": "view-services",
        },
    },
    "slack": {"dm_channel": "D0123"},
    "telegram": {"chat_id": "-100123"},
    "thresholds": {
        "growth_pct": 15,
        "decline_pct": -10,
        "watch_drop_pct": -25,
        "escalation_count": 3,
        "stale_ticket_business_days": 5,
    },
}


class FakePrimarySource(IPrimaryRevenueSource):
    """In-memory primary source keyed by the customer's query key."""

    def __init__(
        self,
        monthly: Optional[Dict[str, str]] = None,
        breakdowns: Optional[Dict[str, str]] = None,
        fail_auth: bool = False,
        credentials: bool = True,
    ):
        self.monthly = monthly or {}
        self.breakdowns = breakdowns
        self.fail_auth = fail_auth
        self.credentials = credentials
        self.auth_calls = 0
        self.monthly_calls: List[str] = []
        self.breakdown_calls: List[str] = []

    @property
    def has_credentials(self) -> bool:
        return self.credentials

    @property
    def supports_service_breakdown(self) -> bool:
        return self.breakdowns is not None

    async def authenticate(self) -> PrimarySession:
        self.auth_calls += 1
        if self.fail_auth:
            raise AuthenticationException("Tableau", "sign-in failed")
        return PrimarySession.authenticated("token-1", "site-1")

    async def fetch_monthly_revenue(self, session, customer):
        self.monthly_calls.append(customer.external_query_key)
        return self.monthly.get(customer.external_query_key)

    async def fetch_service_breakdown(self, session, customer):
        self.breakdown_calls.append(customer.external_query_key)
        return (self.breakdowns or {}).get(customer.external_query_key)


@pytest.fixture
def customer():
    return CustomerRef(internal_name="acme", external_query_key="Acme Corp", display_name="Acme")


@pytest.fixture
def config_data():
    return copy.deepcopy(CONFIG_DATA)


@pytest.fixture
def monitor_config(config_data):
    return MonitorConfig(**config_data)


@pytest.fixture
def sleeps():
    """Backoff delays requested by clients built with ``make_http``."""
    return []


@pytest.fixture
async def make_http(sleeps):
    """Factory for RetryingHttpClient over an httpx.MockTransport handler."""
    clients = []

    async def fake_sleep(delay):
        sleeps.append(delay)

    def factory(handler, **kwargs):
        client = RetryingHttpClient(
            transport=httpx.MockTransport(handler),
            sleep=fake_sleep,
            **kwargs,
        )
        clients.append(client)
        return client

    yield factory

    for client in clients:
        await client.close()
