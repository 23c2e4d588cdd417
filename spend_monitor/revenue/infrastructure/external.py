"""
Revenue External Service Integrations
=====================================

Adapters for the two revenue sources:
- Tableau REST API (primary): PAT sign-in, then CSV view exports
- Billing agent over A2A JSON-RPC (fallback): natural-language questions

Both go through RetryingHttpClient and never raise for upstream failures
except AuthenticationException from sign-in.
"""

from typing import Any, Optional
from urllib.parse import quote

from spend_monitor.core import AuthenticationException
from spend_monitor.revenue.application import (
    IPrimaryRevenueSource, IFallbackRevenueSource, PrimarySession
)
from spend_monitor.revenue.domain import CustomerRef
from spend_monitor.shared.infrastructure.http import HttpRequest, RetryingHttpClient
from spend_monitor.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)


class TableauClient(IPrimaryRevenueSource):
    """
    Tableau REST API client.

    Signs in with a personal access token and exports view data as CSV,
    filtered to one account with a ``vf_<field>`` view filter.
    """

    def __init__(
        self,
        http: RetryingHttpClient,
        server: str,
        pat_name: str,
        pat_secret: Optional[str],
        monthly_revenue_view: str,
        service_breakdown_view: Optional[str] = None,
        site: str = "",
        api_version: str = "3.24",
        filter_field: str = "Account Name",
    ):
        self._http = http
        self._server = server.rstrip("/")
        self._pat_name = pat_name
        self._pat_secret = pat_secret
        self._monthly_view = monthly_revenue_view
        self._breakdown_view = service_breakdown_view or None
        self._site = site
        self._api_version = api_version
        self._filter_field = filter_field

    @property
    def base_url(self) -> str:
        server = self._server
        if not server.startswith(("http://", "https://")):
            server = f"https://{server}"
        return f"{server}/api/{self._api_version}"

    @property
    def has_credentials(self) -> bool:
        return bool(self._pat_secret and self._pat_name)

    @property
    def supports_service_breakdown(self) -> bool:
        return self._breakdown_view is not None

    async def authenticate(self) -> PrimarySession:
        """
        Sign in with the personal access token.

        Raises:
            AuthenticationException: sign-in failed or returned no token
        """
        if not self.has_credentials:
            raise AuthenticationException("Tableau", "personal access token not configured")

        payload = {
            "credentials": {
                "personalAccessTokenName": self._pat_name,
                "personalAccessTokenSecret": self._pat_secret,
                "site": {"contentUrl": self._site},
            }
        }
        result = await self._http.execute(HttpRequest(
            "POST",
            f"{self.base_url}/auth/signin",
            headers={"Content-Type": "application/json", "Accept": "application/json"},
            json=payload,
            label="tableau.signin",
        ))

        if not result.success:
            raise AuthenticationException(
                "Tableau",
                "sign-in failed",
                {"status_code": result.status_code, "attempts": result.attempts},
            )

        credentials = (result.json() or {}).get("credentials") or {}
        token = credentials.get("token")
        site_id = (credentials.get("site") or {}).get("id")
        if not token:
            raise AuthenticationException("Tableau", "sign-in returned no token")

        return PrimarySession.authenticated(token, site_id)

    async def _view_data(
        self,
        session: PrimarySession,
        view_id: str,
        customer: CustomerRef
    ) -> Optional[str]:
        if not session.is_available:
            return None

        result = await self._http.execute(HttpRequest(
            "GET",
            f"{self.base_url}/sites/{quote(session.site_id or '', safe='')}/views/{quote(view_id, safe='')}/data",
            headers={"X-Tableau-Auth": session.token},
            params={f"vf_{self._filter_field}": customer.external_query_key},
            label=f"tableau.view.{view_id}",
        ))
        if not result.success or not result.body.strip():
            logger.info(
                "Tableau view returned no data",
                extra={"view": view_id, "customer": customer.internal_name, "status_code": result.status_code},
            )
            return None
        return result.body

    async def fetch_monthly_revenue(
        self,
        session: PrimarySession,
        customer: CustomerRef
    ) -> Optional[str]:
        return await self._view_data(session, self._monthly_view, customer)

    async def fetch_service_breakdown(
        self,
        session: PrimarySession,
        customer: CustomerRef
    ) -> Optional[str]:
        if self._breakdown_view is None:
            return None
        return await self._view_data(session, self._breakdown_view, customer)


def extract_agent_text(response: Any) -> Optional[str]:
    """
    Pull the answer text out of an A2A ``message/send`` response.

    Agents answer either with an artifact, a message, or bare parts.
    """
    if not isinstance(response, dict):
        return None
    result = response.get("result")
    if not isinstance(result, dict):
        return None

    artifacts = result.get("artifacts") or []
    first_artifact = artifacts[0] if isinstance(artifacts, list) and artifacts and isinstance(artifacts[0], dict) else {}
    candidates = (
        first_artifact.get("parts"),
        result["message"].get("parts") if isinstance(result.get("message"), dict) else None,
        result.get("parts"),
    )
    for parts in candidates:
        if parts and isinstance(parts, list) and isinstance(parts[0], dict):
            text = parts[0].get("text")
            if text:
                return text
    return None


class BillingAgentClient(IFallbackRevenueSource):
    """
    Billing agent reached over A2A JSON-RPC 2.0.

    Sends one natural-language question per call and returns the
    agent's free-text answer.
    """

    def __init__(self, http: RetryingHttpClient, billing_url: str):
        self._http = http
        self._billing_url = billing_url

    def _build_payload(self, question: str, message_id: str) -> dict:
        return {
            "jsonrpc": "2.0",
            "id": message_id,
            "method": "message/send",
            "params": {
                "message": {
                    "messageId": message_id,
                    "role": "user",
                    "parts": [{"kind": "text", "text": question}],
                }
            },
        }

    async def ask(self, question: str, message_id: str) -> Optional[str]:
        result = await self._http.execute(HttpRequest(
            "POST",
            self._billing_url,
            headers={"Content-Type": "application/json"},
            json=self._build_payload(question, message_id),
            label="a2a.billing",
        ))
        if not result.success:
            return None

        text = extract_agent_text(result.json())
        if text is None:
            logger.info("Billing agent answer had no text part", extra={"message_id": message_id})
        return text
