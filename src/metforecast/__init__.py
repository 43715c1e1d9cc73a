"""Caching async client for MET Norway point forecasts.

This package fronts the MET Norway Locationforecast 2.0 API with an
in-memory cache keyed by rounded coordinates. Cached forecasts are
revalidated with conditional requests once stale, and served stale
when the upstream is throttling or unreachable.

Key features:
    - Nearby coordinates (same 0.01° cell) share one cache entry
    - Freshness from the upstream's Expires header, falling back to a
      2-hour age limit on the forecast's own update time
    - Conditional re-fetch with If-Modified-Since
    - Stale-on-failure: upstream errors never reach the caller
    - Bounded LRU cache with an absolute entry lifetime
    - Concurrent lookups for one location share a single request
    - Optional DataFrame conversion via metforecast.dataframe module

Example:
    Fetch a forecast::

        import asyncio
        from metforecast import Coordinates, MetForecastClient

        async def main():
            async with MetForecastClient(user_agent="myapp/1.0 ops@example.com") as client:
                forecast = await client.get_forecast(
                    Coordinates(latitude=59.911, longitude=10.750)
                )
                if forecast is not None:
                    for sample in forecast.samples[:5]:
                        print(f"{sample.time}: {sample.air_temperature}°C")

        asyncio.run(main())

    Query a time window::

        from metforecast.query import get_extended_forecast

        result = await get_extended_forecast(client, 59.911, 10.750, start, end)
        print(result.status, len(result.samples))

See Also:
    - Locationforecast docs: https://api.met.no/weatherapi/locationforecast/2.0/documentation
    - Terms of service: https://api.met.no/doc/TermsOfService
"""

from .cache import ForecastCache
from .client import MetForecastClient
from .exceptions import (
    MetForecastError,
    MetForecastValidationError,
    UpstreamConnectionError,
    UpstreamPayloadError,
    UpstreamStatusError,
    UpstreamThrottledError,
)
from .gateway import MetForecastGateway
from .models import (
    Coordinates,
    Forecast,
    ForecastQueryResult,
    WeatherSample,
)
from .query import get_current_forecast, get_extended_forecast
from .types import (
    DEFAULT_BASE_HOST,
    DEFAULT_CACHE_TTL_MINUTES,
    DEFAULT_MAX_CACHE_SIZE,
    DEFAULT_TIMEOUT_SECONDS,
    FRESHNESS_WINDOW_HOURS,
    MAX_QUERY_DAYS_AHEAD,
    QueryStatus,
)

__all__ = [
    "MetForecastClient",
    "MetForecastGateway",
    "ForecastCache",
    "Coordinates",
    "Forecast",
    "WeatherSample",
    "ForecastQueryResult",
    "QueryStatus",
    "get_current_forecast",
    "get_extended_forecast",
    "MetForecastError",
    "MetForecastValidationError",
    "UpstreamConnectionError",
    "UpstreamPayloadError",
    "UpstreamStatusError",
    "UpstreamThrottledError",
    "DEFAULT_BASE_HOST",
    "DEFAULT_CACHE_TTL_MINUTES",
    "DEFAULT_MAX_CACHE_SIZE",
    "DEFAULT_TIMEOUT_SECONDS",
    "FRESHNESS_WINDOW_HOURS",
    "MAX_QUERY_DAYS_AHEAD",
]
