"""
Shared async REST client for the Atlassian services (Jira, Bamboo).

Transport errors and error statuses are translated into UpstreamFailure so
workflow code never has to know about httpx.
"""

from typing import Any, Dict, Optional

import httpx

from ..config import ServiceCredentials
from .errors import UpstreamFailure, UpstreamTimeout
from .logger import get_logger


class AtlassianRestClient:
    """Base class holding a lazily created httpx.AsyncClient with basic auth."""

    service_name = "atlassian"

    def __init__(
        self,
        credentials: ServiceCredentials,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Args:
            credentials: base URL, basic auth and timeout for the service
            transport: optional httpx transport (tests use httpx.MockTransport)
        """
        self.credentials = credentials
        self.base_url = credentials.root_url
        self.logger = get_logger(type(self).__name__)
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def headers(self) -> Dict[str, str]:
        return {"Accept": "application/json"}

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                headers=self.headers,
                auth=(self.credentials.username, self.credentials.password.get_secret_value()),
                timeout=self.credentials.timeout_seconds,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close the client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        client = await self._get_client()
        method = method.upper()
        try:
            response = await client.request(method, path, **kwargs)
        except httpx.TimeoutException as e:
            raise UpstreamTimeout(
                f"{self.service_name} {method} {path} timed out after {self.credentials.timeout_seconds}s"
            ) from e
        except httpx.HTTPError as e:
            raise UpstreamFailure(f"{self.service_name} {method} {path} request failed: {e}") from e

        if response.status_code >= 400:
            raise UpstreamFailure(
                f"{self.service_name} {method} {path} failed with status {response.status_code}: "
                f"{response.text[:200]}",
                status_code=response.status_code,
            )
        return response

    async def _request_json(self, method: str, path: str, **kwargs: Any) -> Any:
        """Send a request and decode the JSON body; empty bodies decode to {}."""
        response = await self._request(method, path, **kwargs)
        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as e:
            raise UpstreamFailure(
                f"{self.service_name} {method} {path} returned a non-JSON body: {response.text[:200]}",
                status_code=response.status_code,
            ) from e
