"""HTTP dispatch of prepared requests to the target."""

import asyncio

import httpx

from core.exceptions import UpstreamError, UpstreamTimeout
from core.request_types import PreparedRequest

DEFAULT_TIMEOUT = 120.0


class UpstreamClient:
    """Issue exactly one outbound call per prepared request."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        timeout: float = DEFAULT_TIMEOUT,
        follow_redirects: bool = True,
    ) -> None:
        self._client = client
        self._timeout = timeout
        self._follow_redirects = follow_redirects

    @property
    def timeout(self) -> float:
        return self._timeout

    async def dispatch(self, prepared: PreparedRequest) -> httpx.Response:
        """Send the request and read the full response body.

        Raises:
            UpstreamTimeout: No complete response within the timeout.
            UpstreamError: DNS, connection or TLS failure.
        """
        try:
            # Bounds the whole exchange, not each connect/read phase
            async with asyncio.timeout(self._timeout):
                return await self._client.request(
                    prepared.method,
                    prepared.target_url,
                    headers=prepared.headers,
                    content=prepared.body,
                    timeout=self._timeout,
                    follow_redirects=self._follow_redirects,
                )
        except (TimeoutError, httpx.TimeoutException) as e:
            raise UpstreamTimeout(self._timeout, cause=e) from e
        except httpx.RequestError as e:
            raise UpstreamError(f"Upstream connection error: {e!r}", cause=e) from e
