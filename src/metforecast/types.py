"""Types and constants for the MET Norway forecast client.

This module defines enumerations and configuration constants used
throughout the metforecast package.

Example:
    Overriding the defaults::

        from metforecast import MetForecastClient

        async with MetForecastClient(
            user_agent="myapp/1.0 ops@example.com",
            max_cache_size=200,
            cache_ttl_minutes=60,
        ) as client:
            ...
"""

from enum import Enum


class QueryStatus(str, Enum):
    """Classification of a forecast query outcome.

    Attributes:
        OK: A forecast was obtained and at least one sample matched.
        NO_CONTENT: A forecast was obtained but no sample matched the
            requested window.
        NOT_FOUND: No forecast could be fetched and none was cached.

    Example:
        >>> from metforecast.types import QueryStatus
        >>> QueryStatus.NO_CONTENT.value
        'no_content'
    """

    OK = "ok"
    NO_CONTENT = "no_content"
    NOT_FOUND = "not_found"


DEFAULT_BASE_HOST = "api.met.no"
"""str: Host serving the Locationforecast API."""

COMPACT_FORECAST_PATH = "/weatherapi/locationforecast/2.0/compact"
"""str: Path of the compact Locationforecast product.

The compact product carries instant wind speed and air temperature
for every timeseries entry.
"""

DEFAULT_TIMEOUT_SECONDS = 5.0
"""float: Default HTTP timeout for upstream calls in seconds."""

DEFAULT_MAX_CACHE_SIZE = 1000
"""int: Default maximum number of cached coordinate entries.

The least recently used entry is evicted once the limit is reached.
"""

DEFAULT_CACHE_TTL_MINUTES = 120
"""int: Default absolute time-to-live of a cache entry in minutes.

Counted from the moment the entry was written. An entry that is only
ever confirmed as unchanged by the upstream is still dropped once this
elapses.
"""

FRESHNESS_WINDOW_HOURS = 2
"""int: Maximum forecast age in hours when no valid Expires is known.

Age is measured from the upstream's own ``updated_at`` timestamp.
"""

MAX_QUERY_DAYS_AHEAD = 7
"""int: How many days ahead a query start time may lie.

MET Norway's forecasts do not reach much further than this, so
queries starting later are rejected as invalid.
"""
