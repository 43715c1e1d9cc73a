"""In-memory forecast cache for the MET Norway client.

ForecastCache stores at most one Forecast per normalized Coordinates
key in a bounded ``cachetools.TTLCache``:

- Capacity bound: beyond ``max_size`` entries the least recently used
  entry is evicted.
- Absolute TTL: an entry is dropped ``ttl_minutes`` after it was
  written, whether or not it was ever revalidated.
- Freshness: independent of storage, ``is_fresh()`` decides whether a
  cached forecast can be served without asking the upstream.

Freshness policy:
    A forecast is fresh if its ``Expires`` header lies in the future.
    Without a usable ``Expires`` header it is fresh while it is younger
    than FRESHNESS_WINDOW_HOURS, measured from the upstream's own
    ``updated_at``. A valid future ``Expires`` always wins, even for a
    forecast older than the window.

Example:
    Cache entries are managed automatically by MetForecastClient::

        async with MetForecastClient(user_agent="myapp/1.0") as client:
            # First call: fetches and caches
            first = await client.get_forecast(coordinates)

            # Second call: served from cache while fresh
            second = await client.get_forecast(coordinates)
"""

import logging
import time
from datetime import datetime, timedelta
from datetime import timezone as dt_timezone
from typing import Callable, Optional

from cachetools import TTLCache

from .models import Coordinates, Forecast
from .types import (
    DEFAULT_CACHE_TTL_MINUTES,
    DEFAULT_MAX_CACHE_SIZE,
    FRESHNESS_WINDOW_HOURS,
)

logger = logging.getLogger(__name__)


class ForecastCache:
    """Bounded in-memory cache of forecasts keyed by coordinates.

    The cache is not thread-safe; it is meant to be used from the
    event loop that runs MetForecastClient.

    Args:
        max_size: Maximum number of entries. Defaults to 1000.
        ttl_minutes: Absolute entry lifetime in minutes, counted from
            the write. Defaults to 120.
        timer: Monotonic clock used for the absolute TTL. Defaults to
            ``time.monotonic``.

    Example:
        >>> cache = ForecastCache(max_size=100, ttl_minutes=60)
        >>> cache.set(coordinates, forecast)
        >>> cached = cache.get(coordinates)
        >>> if cached is not None and cache.is_fresh(cached):
        ...     print("serving from cache")
    """

    def __init__(
        self,
        max_size: int = DEFAULT_MAX_CACHE_SIZE,
        ttl_minutes: float = DEFAULT_CACHE_TTL_MINUTES,
        timer: Callable[[], float] = time.monotonic,
    ) -> None:
        self._store: TTLCache = TTLCache(
            maxsize=max_size, ttl=ttl_minutes * 60, timer=timer
        )
        self._freshness_window = timedelta(hours=FRESHNESS_WINDOW_HOURS)

    def get(self, coordinates: Coordinates) -> Optional[Forecast]:
        """Get the cached forecast for a key.

        Marks the entry as recently used. Never triggers a fetch.

        Args:
            coordinates: Normalized cache key.

        Returns:
            The cached forecast, or None if absent or past its TTL.
        """
        return self._store.get(coordinates)

    def set(self, coordinates: Coordinates, forecast: Forecast) -> None:
        """Store a forecast, replacing any previous entry for the key.

        Writing restarts the entry's absolute TTL.

        Args:
            coordinates: Normalized cache key.
            forecast: Forecast to cache.
        """
        self._store[coordinates] = forecast
        logger.debug(f"Cached forecast for {coordinates} ({len(forecast.samples)} samples)")

    def is_fresh(self, forecast: Forecast, now: Optional[datetime] = None) -> bool:
        """Check whether a forecast can be served without revalidation.

        Args:
            forecast: Cached forecast to evaluate.
            now: Reference instant. Defaults to the current UTC time.

        Returns:
            True if the forecast's ``Expires`` lies in the future, or if
            it has no usable ``Expires`` and is younger than the
            freshness window. False otherwise.

        Example:
            >>> cache.is_fresh(forecast)  # Expires in one hour
            True
            >>> cache.is_fresh(old_forecast)  # Expired, updated 3h ago
            False
        """
        if now is None:
            now = datetime.now(tz=dt_timezone.utc)

        expires_at = forecast.expires_at
        if expires_at is not None:
            return now < expires_at

        return (now - forecast.updated_at) < self._freshness_window

    def clear(self) -> None:
        """Remove all cached forecasts."""
        self._store.clear()

    def __contains__(self, coordinates: object) -> bool:
        return coordinates in self._store

    def __len__(self) -> int:
        self._store.expire()
        return len(self._store)
