"""Async gateway to the MET Norway Locationforecast API.

MetForecastGateway performs exactly one HTTP call per operation and
translates the upstream's answer into a Forecast, an "unchanged"
signal (None) or an exception. It holds no cache; see
MetForecastClient for the caching layer.

Status mapping:
    - 200: body parsed into a Forecast
    - 203: product deprecated or in beta; logged, then parsed like 200
    - 304: unchanged since ``If-Modified-Since``; returned as None
    - 429: UpstreamThrottledError
    - anything else: UpstreamStatusError
    - transport failures and timeouts: UpstreamConnectionError
    - empty or unusable body: UpstreamPayloadError

Example:
    Conditional re-fetch::

        async with MetForecastGateway(user_agent="myapp/1.0 ops@example.com") as gateway:
            forecast = await gateway.fetch(coordinates)
            refreshed = await gateway.revalidate(coordinates, forecast.last_modified)
            if refreshed is None:
                print("unchanged upstream")
"""

import logging
from typing import Any, Optional

import httpx
from pydantic import ValidationError

from .exceptions import (
    UpstreamConnectionError,
    UpstreamPayloadError,
    UpstreamStatusError,
    UpstreamThrottledError,
)
from .models import Coordinates, Forecast
from .types import COMPACT_FORECAST_PATH, DEFAULT_BASE_HOST, DEFAULT_TIMEOUT_SECONDS

logger = logging.getLogger(__name__)


class MetForecastGateway:
    """Async HTTP gateway for Locationforecast compact forecasts.

    Args:
        user_agent: Identifying User-Agent sent with every request.
            MET Norway rejects anonymous clients, so this is required.
        base_host: Host serving the API. Defaults to "api.met.no".
        timeout: HTTP request timeout in seconds. Defaults to 5.0.

    Example:
        >>> gateway = MetForecastGateway(user_agent="myapp/1.0 ops@example.com")
        >>> try:
        ...     forecast = await gateway.fetch(Coordinates(latitude=59.91, longitude=10.75))
        ... finally:
        ...     await gateway.close()
    """

    def __init__(
        self,
        *,
        user_agent: str,
        base_host: str = DEFAULT_BASE_HOST,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        if not user_agent:
            raise ValueError("user_agent must identify the application to MET Norway")
        self._user_agent = user_agent
        self._base_host = base_host
        self._timeout = timeout
        self._client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self) -> "MetForecastGateway":
        await self._ensure_client()
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    @property
    def url(self) -> str:
        """Full URL of the compact forecast endpoint."""
        return f"https://{self._base_host}{COMPACT_FORECAST_PATH}"

    async def _ensure_client(self) -> httpx.AsyncClient:
        """Lazily create the underlying httpx.AsyncClient."""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout)
        return self._client

    async def close(self) -> None:
        """Close the HTTP client. Safe to call multiple times."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def fetch(self, coordinates: Coordinates) -> Forecast:
        """Fetch the current forecast for a location unconditionally.

        Args:
            coordinates: Normalized location.

        Returns:
            The parsed forecast.

        Raises:
            UpstreamConnectionError: If the request fails in transport.
            UpstreamThrottledError: If the upstream answers 429.
            UpstreamStatusError: If the upstream answers any other
                unexpected status.
            UpstreamPayloadError: If the body is missing or malformed.
        """
        forecast = await self._request(coordinates, None)
        if forecast is None:
            # 304 without If-Modified-Since carries nothing to cache
            raise UpstreamStatusError(304)
        return forecast

    async def revalidate(
        self, coordinates: Coordinates, last_modified: Optional[str]
    ) -> Optional[Forecast]:
        """Re-fetch a forecast only if it changed upstream.

        Sends ``If-Modified-Since`` with the token from the previous
        response. Without a token this is a plain fetch.

        Args:
            coordinates: Normalized location.
            last_modified: ``Last-Modified`` value of the cached forecast.

        Returns:
            The new forecast, or None if the upstream reports 304 Not
            Modified.

        Raises:
            UpstreamConnectionError: If the request fails in transport.
            UpstreamThrottledError: If the upstream answers 429.
            UpstreamStatusError: If the upstream answers any other
                unexpected status.
            UpstreamPayloadError: If the body is missing or malformed.
        """
        if not last_modified:
            return await self.fetch(coordinates)
        return await self._request(coordinates, last_modified)

    async def _request(
        self, coordinates: Coordinates, if_modified_since: Optional[str]
    ) -> Optional[Forecast]:
        client = await self._ensure_client()

        params = {"lat": coordinates.latitude, "lon": coordinates.longitude}
        headers = {"User-Agent": self._user_agent}
        if if_modified_since:
            headers["If-Modified-Since"] = if_modified_since

        try:
            response = await client.get(self.url, params=params, headers=headers)
        except httpx.RequestError as e:
            raise UpstreamConnectionError(f"Request error: {e}") from e

        status = response.status_code
        if status == 304:
            logger.info(f"304 received for {coordinates}, re-using previous forecast")
            return None
        if status == 429:
            logger.error(
                "Upstream is throttling requests. Consider reducing the request "
                "rate or increasing the cache lifetime."
            )
            raise UpstreamThrottledError(f"Throttled by {self._base_host}")
        if status == 203:
            logger.warning(
                "Forecast product is deprecated or in beta. "
                "Consult the api.met.no documentation."
            )
        elif status != 200:
            logger.warning(f"Unexpected response code {status} for {coordinates}")
            raise UpstreamStatusError(status)

        return self._parse(response)

    def _parse(self, response: httpx.Response) -> Forecast:
        """Parse a successful response into a Forecast.

        Raises:
            UpstreamPayloadError: If the body is empty, not JSON, or
                lacks the required fields.
        """
        if not response.content:
            raise UpstreamPayloadError("Empty response body")

        try:
            payload = response.json()
        except ValueError as e:
            raise UpstreamPayloadError(f"Response body is not JSON: {e}") from e

        try:
            return Forecast.from_payload(
                payload,
                last_modified=response.headers.get("Last-Modified"),
                expires=response.headers.get("Expires"),
            )
        except ValidationError as e:
            logger.error(f"Expected fields missing from forecast response: {e}")
            raise UpstreamPayloadError(f"Invalid forecast payload: {e}") from e
