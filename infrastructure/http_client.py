"""Shared async HTTP client with configurable timeout."""

from typing import Any, Optional

import httpx

from errors import BackendUnavailableError
from shared.logging import get_logger

log = get_logger(__name__)


class HttpClient:
    """Thin async wrapper around httpx.AsyncClient with a configurable timeout.

    One instance per external service keeps timeouts independently
    configurable. ``base_url`` and ``service`` are used by post_json(), which
    backs the internal backend APIs (customs) where any transport failure
    must surface as BackendUnavailableError.
    """

    def __init__(
        self,
        timeout: float = 5.0,
        base_url: str = "",
        service: str = "http",
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.service = service
        self._client = httpx.AsyncClient(
            timeout=timeout, base_url=base_url, transport=transport
        )

    async def post(self, url: str, **kwargs: Any) -> httpx.Response:
        return await self._client.post(url, **kwargs)

    async def get(self, url: str, **kwargs: Any) -> httpx.Response:
        return await self._client.get(url, **kwargs)

    async def post_json(self, path: str, payload: dict[str, Any]) -> Any:
        """POST *payload* and return the decoded JSON body.

        Timeouts, connection errors, non-2xx statuses and undecodable bodies
        all raise BackendUnavailableError so callers fail closed.
        """
        try:
            response = await self._client.post(path, json=payload)
        except httpx.TimeoutException as e:
            log.error("backend_timeout", service=self.service, path=path)
            raise BackendUnavailableError(self.service, "Request timed out") from e
        except httpx.HTTPError as e:
            log.error(
                "backend_request_failed",
                service=self.service,
                path=path,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise BackendUnavailableError(self.service) from e

        if not response.is_success:
            log.error(
                "backend_error_status",
                service=self.service,
                path=path,
                status_code=response.status_code,
                response_text=response.text[:200],
            )
            raise BackendUnavailableError(self.service)

        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as e:
            raise BackendUnavailableError(self.service, "Invalid response body") from e

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "HttpClient":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.aclose()
