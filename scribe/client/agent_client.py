"""HTTP client for the local Scribe agent."""

from typing import Optional

import httpx
import structlog

logger = structlog.get_logger(__name__)


class AgentClientError(Exception):
    """Base exception for agent client errors."""
    pass


class AgentUnavailableError(AgentClientError):
    """The agent is not running or not reachable."""
    pass


class AgentRequestError(AgentClientError):
    """The agent answered with an error status."""

    def __init__(self, status_code: int, message: str):
        super().__init__(message)
        self.status_code = status_code
        self.message = message


class AgentClient:
    """
    Async client for the agent's start/stop/status API.

    Example:
        async with AgentClient("http://localhost:4317") as agent:
            await agent.health()
            started = await agent.start(url="https://example.com", test_name="Login")
            stopped = await agent.stop(started["sessionId"])
    """

    def __init__(
        self,
        base_url: str = "http://localhost:4317",
        timeout_seconds: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @classmethod
    def from_settings(cls, settings) -> "AgentClient":
        return cls(settings.agent_url, settings.agent_timeout_seconds)

    async def __aenter__(self) -> "AgentClient":
        await self._ensure_client()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def _ensure_client(self) -> None:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                headers={"Content-Type": "application/json"},
                timeout=httpx.Timeout(self.timeout_seconds),
                transport=self._transport,
            )

    async def close(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    async def _request(self, method: str, path: str, data: dict | None = None) -> dict:
        """
        Send a request to the agent.

        Raises:
            AgentUnavailableError: On connection failures and timeouts
            AgentRequestError: On 4xx/5xx responses
        """
        await self._ensure_client()

        try:
            if method.upper() == "GET":
                response = await self._client.get(path)
            else:
                response = await self._client.post(path, json=data or {})
        except httpx.TransportError as e:
            logger.warning("Scribe agent unreachable", path=path, error=str(e))
            raise AgentUnavailableError(
                f"Scribe agent not running at {self.base_url}. Please start the local agent first."
            ) from e

        if response.is_error:
            message = _error_message(response)
            logger.warning(
                "Scribe agent request failed",
                path=path,
                status_code=response.status_code,
                error=message,
            )
            raise AgentRequestError(response.status_code, message)

        return response.json()

    async def health(self) -> dict:
        """Check the agent is up. Any failure means unavailable."""
        try:
            return await self._request("GET", "/health")
        except AgentRequestError as e:
            raise AgentUnavailableError(
                f"Scribe agent at {self.base_url} is unhealthy: {e.message}"
            ) from e

    async def start(
        self,
        url: str | None,
        test_name: str,
        browser: str = "chromium",
        target: str = "typescript",
        session_id: str | None = None,
    ) -> dict:
        payload = {
            "url": url,
            "browser": browser,
            "target": target,
            "testName": test_name,
        }
        if session_id:
            payload["sessionId"] = session_id
        return await self._request("POST", "/start", payload)

    async def stop(self, session_id: str | None = None) -> dict:
        payload = {"sessionId": session_id} if session_id else {}
        return await self._request("POST", "/stop", payload)

    async def status(self) -> dict:
        return await self._request("GET", "/status")

    async def get_code(self, session_id: str | None = None) -> dict:
        path = f"/get-code/{session_id}" if session_id else "/get-code"
        return await self._request("GET", path)


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"
    if isinstance(body, dict):
        return str(body.get("error") or body.get("detail") or f"HTTP {response.status_code}")
    return str(body)
