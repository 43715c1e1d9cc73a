"""Forecast queries on top of MetForecastClient.

These functions are the boundary between raw request parameters and
the cached client: they validate input, look the location up, filter
the forecast samples and classify the outcome.

Outcomes:
    - QueryStatus.OK (200): at least one sample matched
    - QueryStatus.NO_CONTENT (204): a forecast exists but no sample
      matched the request
    - QueryStatus.NOT_FOUND (404): no forecast could be obtained

Example:
    Forecast for an event::

        from datetime import datetime, timedelta, timezone
        from metforecast import MetForecastClient, QueryStatus
        from metforecast.query import get_extended_forecast

        start = datetime.now(tz=timezone.utc) + timedelta(hours=2)
        async with MetForecastClient(user_agent="myapp/1.0") as client:
            result = await get_extended_forecast(
                client, 59.911, 10.750, start, start + timedelta(hours=3)
            )
            if result.status is QueryStatus.OK:
                for sample in result.samples:
                    print(sample.time, sample.wind_speed, sample.air_temperature)
"""

import logging
from datetime import datetime, timedelta
from datetime import timezone as dt_timezone
from typing import Iterable, Optional

from .client import MetForecastClient
from .exceptions import MetForecastValidationError
from .models import Coordinates, ForecastQueryResult, WeatherSample, as_utc
from .types import MAX_QUERY_DAYS_AHEAD, QueryStatus

logger = logging.getLogger(__name__)


def _validate_coordinates(latitude: float, longitude: float) -> None:
    """Validate geographic coordinates.

    Raises:
        MetForecastValidationError: If latitude not in [-90, 90] or
            longitude not in [-180, 180].
    """
    if not -90.0 <= latitude <= 90.0:
        raise MetForecastValidationError(
            f"Latitude must be in range [-90.0, 90.0], got {latitude}"
        )
    if not -180.0 <= longitude <= 180.0:
        raise MetForecastValidationError(
            f"Longitude must be in range [-180.0, 180.0], got {longitude}"
        )


def _validate_window(start: datetime, end: datetime, now: datetime) -> None:
    """Validate the requested time window.

    The start date (in UTC) must lie between today and
    MAX_QUERY_DAYS_AHEAD days from today, both inclusive.

    Raises:
        MetForecastValidationError: If end is before start or the start
            date is outside the supported range.

    Example:
        >>> now = datetime(2024, 10, 15, 12, tzinfo=dt_timezone.utc)
        >>> _validate_window(now, now + timedelta(hours=3), now)  # Valid
        >>> _validate_window(now + timedelta(days=8), now + timedelta(days=9), now)
        Traceback (most recent call last):
        MetForecastValidationError: Request is not within the next 7 days
    """
    if end < start:
        raise MetForecastValidationError(
            f"end ({end.isoformat()}) must be >= start ({start.isoformat()})"
        )
    today = now.astimezone(dt_timezone.utc).date()
    start_date = start.astimezone(dt_timezone.utc).date()
    if not today <= start_date <= today + timedelta(days=MAX_QUERY_DAYS_AHEAD):
        raise MetForecastValidationError(
            f"Request is not within the next {MAX_QUERY_DAYS_AHEAD} days"
        )


def nearest_future_sample(
    samples: Iterable[WeatherSample], now: datetime
) -> Optional[WeatherSample]:
    """Return the earliest sample strictly after ``now``, if any."""
    upcoming = [sample for sample in samples if sample.time > now]
    if not upcoming:
        return None
    return min(upcoming, key=lambda sample: sample.time - now)


def samples_between(
    samples: Iterable[WeatherSample], start: datetime, end: datetime
) -> tuple[WeatherSample, ...]:
    """Return the samples with ``start <= time <= end``, in order."""
    return tuple(sample for sample in samples if start <= sample.time <= end)


def _not_found(latitude: float, longitude: float) -> ForecastQueryResult:
    logger.warning(
        f"Unable to retrieve a forecast from the upstream for lat/lon {latitude}/{longitude}"
    )
    return ForecastQueryResult(
        status=QueryStatus.NOT_FOUND,
        message="No forecast found for given lat/lon values",
        code=404,
    )


def _classify(
    samples: tuple[WeatherSample, ...],
    latitude: float,
    longitude: float,
    start: datetime,
    end: datetime,
) -> ForecastQueryResult:
    if not samples:
        logger.warning(
            f"No forecast samples for lat/lon {latitude}/{longitude} "
            f"between {start.isoformat()} and {end.isoformat()}"
        )
        return ForecastQueryResult(
            status=QueryStatus.NO_CONTENT,
            message="No forecast samples matched the request",
            code=204,
        )
    return ForecastQueryResult(
        status=QueryStatus.OK, samples=samples, message="OK", code=200
    )


async def get_current_forecast(
    client: MetForecastClient,
    latitude: float,
    longitude: float,
    start: datetime,
    end: datetime,
    *,
    now: Optional[datetime] = None,
) -> ForecastQueryResult:
    """Get the single forecast sample closest to the current time.

    The request window is validated but only the nearest sample after
    ``now`` is returned, regardless of where the window lies.

    Args:
        client: Caching client to look the location up with.
        latitude: Latitude in decimal degrees (-90 to 90).
        longitude: Longitude in decimal degrees (-180 to 180).
        start: Start of the requested window. Naive values are UTC.
        end: End of the requested window. Naive values are UTC.
        now: Reference instant. Defaults to the current UTC time.

    Returns:
        ForecastQueryResult holding at most one sample.

    Raises:
        MetForecastValidationError: If coordinates or window are invalid.
    """
    now = as_utc(now or datetime.now(tz=dt_timezone.utc))
    start, end = as_utc(start), as_utc(end)
    _validate_coordinates(latitude, longitude)
    _validate_window(start, end, now)

    forecast = await client.get_forecast(
        Coordinates(latitude=latitude, longitude=longitude)
    )
    if forecast is None:
        return _not_found(latitude, longitude)

    nearest = nearest_future_sample(forecast.samples, now)
    samples = (nearest,) if nearest is not None else ()
    return _classify(samples, latitude, longitude, start, end)


async def get_extended_forecast(
    client: MetForecastClient,
    latitude: float,
    longitude: float,
    start: datetime,
    end: datetime,
    *,
    now: Optional[datetime] = None,
) -> ForecastQueryResult:
    """Get every forecast sample within a time window.

    Args:
        client: Caching client to look the location up with.
        latitude: Latitude in decimal degrees (-90 to 90).
        longitude: Longitude in decimal degrees (-180 to 180).
        start: Start of the window, inclusive. Naive values are UTC.
        end: End of the window, inclusive. Naive values are UTC.
        now: Reference instant. Defaults to the current UTC time.

    Returns:
        ForecastQueryResult with the samples inside the window.

    Raises:
        MetForecastValidationError: If coordinates or window are invalid.

    Example:
        >>> result = await get_extended_forecast(client, 59.91, 10.75, start, end)
        >>> result.code
        200
    """
    now = as_utc(now or datetime.now(tz=dt_timezone.utc))
    start, end = as_utc(start), as_utc(end)
    _validate_coordinates(latitude, longitude)
    _validate_window(start, end, now)

    forecast = await client.get_forecast(
        Coordinates(latitude=latitude, longitude=longitude)
    )
    if forecast is None:
        return _not_found(latitude, longitude)

    return _classify(
        samples_between(forecast.samples, start, end), latitude, longitude, start, end
    )
