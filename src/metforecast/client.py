"""Caching async client for MET Norway point forecasts.

This module provides MetForecastClient, which serves Locationforecast
data through an in-memory cache keyed by rounded coordinates and keeps
serving cached data while the upstream is throttling or unreachable.

Lookup algorithm:
    1. Fresh cache hit: returned without any upstream call.
    2. Stale cache hit: revalidated with ``If-Modified-Since``.
       A 304 keeps the cached forecast as is (its age is not reset),
       a new payload replaces it, and any failure serves the stale
       forecast instead.
    3. Cache miss: fetched unconditionally and cached on success.
       On failure there is nothing to serve and None is returned.

Upstream errors never escape get_forecast(); None is the only failure
signal. Concurrent lookups for the same location that need the
upstream share a single request.

Example:
    Fetch a forecast::

        import asyncio
        from metforecast import Coordinates, MetForecastClient

        async def main():
            async with MetForecastClient(user_agent="myapp/1.0 ops@example.com") as client:
                forecast = await client.get_forecast(
                    Coordinates(latitude=59.911, longitude=10.750)
                )
                if forecast is None:
                    print("No forecast available")
                    return
                for sample in forecast.samples[:5]:
                    print(f"{sample.time}: {sample.air_temperature}°C")

        asyncio.run(main())
"""

import asyncio
import logging
from typing import Any, Optional

from .cache import ForecastCache
from .exceptions import MetForecastError
from .gateway import MetForecastGateway
from .models import Coordinates, Forecast
from .types import (
    DEFAULT_BASE_HOST,
    DEFAULT_CACHE_TTL_MINUTES,
    DEFAULT_MAX_CACHE_SIZE,
    DEFAULT_TIMEOUT_SECONDS,
)

logger = logging.getLogger(__name__)


class MetForecastClient:
    """Async client serving MET Norway forecasts through a cache.

    Args:
        user_agent: Identifying User-Agent for the upstream. Required
            unless a ready-made gateway is passed.
        base_host: Host serving the API. Defaults to "api.met.no".
        max_cache_size: Maximum number of cached locations. Defaults
            to 1000.
        cache_ttl_minutes: Absolute lifetime of a cache entry in
            minutes. Defaults to 120.
        timeout: HTTP request timeout in seconds. Defaults to 5.0.
        gateway: Gateway to use instead of building one from the
            arguments above.

    Attributes:
        _gateway: Upstream gateway performing the HTTP calls.
        _cache: In-memory forecast cache.
        _inflight: Pending upstream calls keyed by coordinates.

    Example:
        Using as async context manager (recommended)::

            async with MetForecastClient(user_agent="myapp/1.0") as client:
                forecast = await client.get_forecast(coordinates)

        Manual resource management::

            client = MetForecastClient(user_agent="myapp/1.0")
            try:
                forecast = await client.get_forecast(coordinates)
            finally:
                await client.close()
    """

    def __init__(
        self,
        *,
        user_agent: Optional[str] = None,
        base_host: str = DEFAULT_BASE_HOST,
        max_cache_size: int = DEFAULT_MAX_CACHE_SIZE,
        cache_ttl_minutes: float = DEFAULT_CACHE_TTL_MINUTES,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        gateway: Optional[MetForecastGateway] = None,
    ) -> None:
        if gateway is None:
            gateway = MetForecastGateway(
                user_agent=user_agent, base_host=base_host, timeout=timeout
            )
        self._gateway = gateway
        self._cache = ForecastCache(max_cache_size, cache_ttl_minutes)
        self._inflight: dict[Coordinates, asyncio.Future] = {}

    async def __aenter__(self) -> "MetForecastClient":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the underlying HTTP client. Safe to call multiple times."""
        await self._gateway.close()

    @property
    def cache_size(self) -> int:
        """Number of locations currently cached."""
        return len(self._cache)

    def clear_cache(self) -> None:
        """Drop every cached forecast. The next lookups hit the upstream."""
        self._cache.clear()

    async def get_forecast(self, coordinates: Coordinates) -> Optional[Forecast]:
        """Get the forecast for a location.

        Serves a fresh cached forecast directly, revalidates a stale
        one, and fetches on a miss. See the module docstring for the
        full algorithm.

        Args:
            coordinates: Location to look up. Already rounded, so any
                point within the same 0.01° cell shares the entry.

        Returns:
            The best available forecast, or None if the upstream could
            not deliver one and nothing was cached.

        Example:
            >>> forecast = await client.get_forecast(
            ...     Coordinates(latitude=59.911, longitude=10.750)
            ... )
            >>> forecast is None or forecast.updated_at is not None
            True
        """
        try:
            cached = self._cache.get(coordinates)
            if cached is not None and self._cache.is_fresh(cached):
                logger.debug(f"Using cached forecast for {coordinates}")
                return cached
            return await self._single_flight(coordinates)
        except Exception:
            logger.exception(
                f"Failed to retrieve forecast for {coordinates}. Returning possible cached value"
            )
            return self._cache.get(coordinates)

    async def _single_flight(self, coordinates: Coordinates) -> Optional[Forecast]:
        """Run _load() once per key, sharing the result with concurrent callers."""
        pending = self._inflight.get(coordinates)
        if pending is not None:
            logger.debug(f"Joining in-flight request for {coordinates}")
            try:
                return await asyncio.shield(pending)
            except asyncio.CancelledError:
                if not pending.cancelled():
                    raise
                return self._cache.get(coordinates)

        future = asyncio.get_running_loop().create_future()
        self._inflight[coordinates] = future
        try:
            forecast = await self._load(coordinates)
            future.set_result(forecast)
            return forecast
        finally:
            del self._inflight[coordinates]
            if not future.done():
                future.cancel()

    async def _load(self, coordinates: Coordinates) -> Optional[Forecast]:
        """Fetch or revalidate the forecast for a key and update the cache.

        Upstream failures are absorbed here: a miss yields None and a
        stale entry is served as is.
        """
        try:
            cached = self._cache.get(coordinates)

            if cached is None:
                logger.debug(f"Fetching forecast for {coordinates}")
                try:
                    forecast = await self._gateway.fetch(coordinates)
                except MetForecastError as e:
                    logger.warning(f"Failed to fetch forecast for {coordinates}: {e}")
                    return None
                self._cache.set(coordinates, forecast)
                return forecast

            logger.info(f"Forecast for {coordinates} has expired. Revalidating")
            try:
                refreshed = await self._gateway.revalidate(
                    coordinates, cached.last_modified
                )
            except MetForecastError as e:
                logger.warning(
                    f"Revalidation failed for {coordinates}, serving stale forecast: {e}"
                )
                return cached

            if refreshed is None:
                return cached

            self._cache.set(coordinates, refreshed)
            return refreshed
        except Exception:
            logger.exception(
                f"Unexpected error loading forecast for {coordinates}. Returning possible cached value"
            )
            return self._cache.get(coordinates)
