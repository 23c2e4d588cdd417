"""
HTTP Retry Client
=================

Single place where the monitor touches the network.

Every upstream call (Tableau, the billing agent, Slack, Telegram) goes
through ``RetryingHttpClient.execute`` which:
- enforces a connect timeout and a total-request timeout independently
- retries transport failures, 408, 429 and 5xx with exponential backoff
- returns other non-2xx responses immediately, untouched
- never raises for upstream failures; callers inspect ``HttpResult.success``
"""

import asyncio
import json
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, Optional

import httpx

from spend_monitor.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)

RETRYABLE_STATUS_CODES = frozenset({408, 429})


def is_retryable_status(status_code: int) -> bool:
    """True for statuses worth another attempt (timeouts, throttling, server errors)."""
    return status_code in RETRYABLE_STATUS_CODES or 500 <= status_code <= 599


@dataclass
class HttpRequest:
    """Outbound request description."""
    method: str
    url: str
    headers: Dict[str, str] = field(default_factory=dict)
    params: Optional[Dict[str, str]] = None
    json: Optional[Any] = None
    label: str = ""

    @property
    def log_name(self) -> str:
        """Name used in logs; set ``label`` when the URL carries a secret."""
        return self.label or self.url


@dataclass
class HttpResult:
    """Outcome of a request after retries."""
    body: str
    success: bool
    status_code: Optional[int] = None
    attempts: int = 0

    def json(self) -> Optional[Any]:
        """Decoded JSON body, or None when the body is empty or not JSON."""
        if not self.body:
            return None
        try:
            return json.loads(self.body)
        except ValueError:
            return None


class RetryingHttpClient:
    """
    httpx client with bounded retry and exponential backoff.

    Attempt 1 fires immediately. After a retryable failure the client
    waits ``initial_backoff`` seconds, then doubles the wait before each
    further attempt (2, 4, ... with the defaults).
    """

    def __init__(
        self,
        connect_timeout: float = 10.0,
        max_time: float = 30.0,
        max_attempts: int = 3,
        initial_backoff: float = 2.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.connect_timeout = connect_timeout
        self.max_time = max_time
        self.max_attempts = max_attempts
        self.initial_backoff = initial_backoff
        self._transport = transport
        self._sleep = sleep
        self._http_client: Optional[httpx.AsyncClient] = None

    @classmethod
    def from_settings(cls, settings, **kwargs) -> "RetryingHttpClient":
        """Build a client from the application Settings."""
        return cls(
            connect_timeout=settings.http_connect_timeout,
            max_time=settings.http_max_time,
            max_attempts=settings.http_max_attempts,
            initial_backoff=settings.http_initial_backoff,
            **kwargs,
        )

    def worst_case_seconds(self) -> float:
        """Longest one request can take: every attempt times out plus all backoff waits."""
        backoff = sum(self.initial_backoff * 2 ** i for i in range(self.max_attempts - 1))
        return self.max_attempts * self.max_time + backoff

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.max_time, connect=self.connect_timeout),
                transport=self._transport,
            )
        return self._http_client

    async def execute(self, request: HttpRequest) -> HttpResult:
        """
        Send a request, retrying transient failures.

        Returns:
            HttpResult with the last body seen and ``success`` set only
            for a 2xx response.
        """
        delay = self.initial_backoff
        body = ""
        status_code: Optional[int] = None

        for attempt in range(1, self.max_attempts + 1):
            try:
                client = await self._get_client()
                response = await asyncio.wait_for(
                    client.request(
                        request.method,
                        request.url,
                        headers=request.headers,
                        params=request.params,
                        json=request.json,
                    ),
                    timeout=self.max_time,
                )
                body = response.text
                status_code = response.status_code

                if response.is_success:
                    return HttpResult(body, True, status_code, attempt)

                if not is_retryable_status(status_code):
                    logger.warning(
                        "Request rejected, not retrying",
                        extra={"url": request.log_name, "status_code": status_code},
                    )
                    return HttpResult(body, False, status_code, attempt)

                reason = f"HTTP {status_code}"

            except (httpx.RequestError, asyncio.TimeoutError) as e:
                body = ""
                status_code = None
                reason = type(e).__name__

            if attempt < self.max_attempts:
                logger.warning(
                    f"Retry {attempt}/{self.max_attempts} after {delay}s ({reason})",
                    extra={"url": request.log_name, "attempt": attempt},
                )
                await self._sleep(delay)
                delay *= 2

        logger.error(
            "Request failed after retries",
            extra={"url": request.log_name, "attempts": self.max_attempts, "status_code": status_code},
        )
        return HttpResult(body, False, status_code, self.max_attempts)

    async def close(self) -> None:
        """Close HTTP client."""
        if self._http_client:
            await self._http_client.aclose()
            self._http_client = None
