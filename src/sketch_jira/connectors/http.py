"""
HTTP Connector - pooled httpx client for one JIRA instance.

Features:
- Circuit breaker protection
- Connection pooling via httpx
- Configurable timeouts
- Authentication support
- JIRA status codes mapped onto the plugin error taxonomy
"""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Any

import httpx
import structlog

from ..config import PluginConfig
from ..errors import AuthError, NetworkError, NotFound, ServerError
from .circuit import CircuitBreaker

logger = structlog.get_logger(__name__)


@dataclass
class ConnectorConfig:
    """Configuration for a JIRA HTTP connector."""

    base_url: str
    name: str = "jira"
    timeout: float = 30.0
    pool_size: int = 10

    # Circuit breaker settings
    failure_threshold: int = 5
    reset_timeout: float = 30.0

    auth: httpx.Auth | None = None
    headers: dict[str, str] = field(default_factory=dict)

    # Injected transport (tests use httpx.MockTransport)
    transport: httpx.AsyncBaseTransport | None = None

    @classmethod
    def from_plugin_config(cls, config: PluginConfig, **overrides: Any) -> "ConnectorConfig":
        """Build connector settings from SKETCH_JIRA_* configuration.

        Basic auth when a user is configured, bearer token otherwise.
        """
        auth = None
        headers = {"Accept": "application/json"}
        if config.jira_user:
            auth = httpx.BasicAuth(config.jira_user, config.jira_token)
        elif config.jira_token:
            headers["Authorization"] = f"Bearer {config.jira_token}"

        values: dict[str, Any] = {
            "base_url": config.jira_url.rstrip("/"),
            "timeout": config.timeout,
            "pool_size": config.pool_size,
            "failure_threshold": config.circuit_failure_threshold,
            "reset_timeout": config.circuit_reset_timeout,
            "auth": auth,
            "headers": headers,
        }
        values.update(overrides)
        return cls(**values)


def _error_details(response: httpx.Response) -> tuple[str, list[str]]:
    """Pull JIRA's errorMessages/errors out of an error response."""
    try:
        body = response.json()
    except ValueError:
        return f"HTTP {response.status_code}", []
    if not isinstance(body, dict):
        return f"HTTP {response.status_code}", []
    messages = list(body.get("errorMessages") or [])
    messages.extend(f"{k}: {v}" for k, v in (body.get("errors") or {}).items())
    summary = "; ".join(messages) if messages else f"HTTP {response.status_code}"
    return summary, messages


class HTTPConnector:
    """HTTP connector with circuit breaker protection.

    Example:
        connector = HTTPConnector(ConnectorConfig(
            base_url="https://company.atlassian.net",
            auth=httpx.BasicAuth(user, token),
        ))
        await connector.connect()

        response = await connector.get("/rest/api/2/issue/PROJ-123")
    """

    def __init__(self, config: ConnectorConfig):
        self.config = config
        self._client: httpx.AsyncClient | None = None
        self._circuit = CircuitBreaker(
            name=config.name,
            failure_threshold=config.failure_threshold,
            reset_timeout=config.reset_timeout,
        )
        self._lock = asyncio.Lock()

    @property
    def name(self) -> str:
        return self.config.name

    @property
    def base_url(self) -> str:
        return self.config.base_url

    @property
    def circuit_state(self) -> str:
        return self._circuit.state.value

    @property
    def connected(self) -> bool:
        return self._client is not None

    async def connect(self) -> None:
        """Initialize HTTP client."""
        async with self._lock:
            if self._client:
                await self._client.aclose()

            self._client = httpx.AsyncClient(
                base_url=self.config.base_url,
                timeout=httpx.Timeout(self.config.timeout),
                limits=httpx.Limits(
                    max_connections=self.config.pool_size,
                    max_keepalive_connections=self.config.pool_size,
                    keepalive_expiry=30.0,
                ),
                auth=self.config.auth,
                headers=self.config.headers,
                follow_redirects=True,
                transport=self.config.transport,
            )

    async def disconnect(self) -> None:
        """Close HTTP client."""
        async with self._lock:
            if self._client:
                await self._client.aclose()
                self._client = None

    def _require_client(self) -> httpx.AsyncClient:
        if self._client is None:
            raise NetworkError(f"{self.name} not connected")
        return self._client

    def _check(self, response: httpx.Response) -> httpx.Response:
        """Record the outcome and raise for error statuses."""
        status = response.status_code
        if status >= 500:
            self._circuit.record_failure()
            message, errors = _error_details(response)
            raise ServerError(f"Server error: {message}", status=status, errors=errors)

        self._circuit.record_success()
        if status < 400:
            return response

        message, errors = _error_details(response)
        if status in (401, 403):
            raise AuthError(message, status=status)
        if status == 404:
            raise NotFound(message, status=status)
        raise ServerError(message, status=status, errors=errors)

    def _transport_failure(self, e: httpx.TransportError) -> NetworkError:
        self._circuit.record_failure()
        kind = "Timeout" if isinstance(e, httpx.TimeoutException) else "Connection error"
        logger.warning("jira_transport_error", connector=self.name, error=str(e))
        return NetworkError(f"{kind}: {e}")

    async def request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        """Make HTTP request with circuit breaker protection."""
        self._circuit.guard()
        client = self._require_client()
        try:
            response = await client.request(method, path, **kwargs)
        except httpx.TransportError as e:
            raise self._transport_failure(e) from e
        return self._check(response)

    @asynccontextmanager
    async def stream(self, method: str, path: str, **kwargs: Any) -> AsyncIterator[httpx.Response]:
        """Streaming request; the body is read by the caller."""
        self._circuit.guard()
        client = self._require_client()
        try:
            async with client.stream(method, path, **kwargs) as response:
                if response.is_error:
                    await response.aread()
                self._check(response)
                yield response
        except httpx.TransportError as e:
            raise self._transport_failure(e) from e

    async def get(self, path: str, **kwargs: Any) -> httpx.Response:
        return await self.request("GET", path, **kwargs)

    async def post(self, path: str, **kwargs: Any) -> httpx.Response:
        return await self.request("POST", path, **kwargs)

    async def put(self, path: str, **kwargs: Any) -> httpx.Response:
        return await self.request("PUT", path, **kwargs)

    async def delete(self, path: str, **kwargs: Any) -> httpx.Response:
        return await self.request("DELETE", path, **kwargs)

    def status(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "base_url": self.config.base_url,
            "connected": self.connected,
            "circuit_state": self.circuit_state,
            "failure_count": self._circuit.failure_count,
        }
