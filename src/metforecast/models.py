"""Pydantic models for the MET Norway forecast client.

Key model groups:
    1. **Cache key**: Coordinates, rounded to two decimals so that
       nearby requests share a cache entry
    2. **Domain values**: WeatherSample and Forecast, frozen so a cached
       forecast can never be mutated in place
    3. **Upstream payload**: the subset of the Locationforecast GeoJSON
       document that is parsed into a Forecast
    4. **Query results**: ForecastQueryResult returned by metforecast.query

Example:
    Parsing an upstream document::

        forecast = Forecast.from_payload(
            response.json(),
            last_modified=response.headers.get("Last-Modified"),
            expires=response.headers.get("Expires"),
        )
        for sample in forecast.samples:
            print(f"{sample.time}: {sample.air_temperature}°C")
"""

import logging
import math
from datetime import datetime
from datetime import timezone as dt_timezone
from decimal import ROUND_FLOOR, Decimal, InvalidOperation
from email.utils import parsedate_to_datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, field_validator

from .types import QueryStatus

logger = logging.getLogger(__name__)

_TWO_PLACES = Decimal("0.01")
_HALF_STEP = Decimal("0.005")


def _round_two_decimals(value: float) -> float:
    """Round a coordinate to two decimal places, halves rounding up.

    Halves go towards positive infinity for negative values too, so
    -33.865 becomes -33.86. Rounding works on the shortest decimal
    representation of the float, so values like 59.915 round up even
    though their binary value sits slightly below the half.

    Example:
        >>> _round_two_decimals(59.915)
        59.92
        >>> _round_two_decimals(-33.865)
        -33.86
        >>> _round_two_decimals(10.7510283)
        10.75
    """
    if not math.isfinite(value):
        return value
    try:
        rounded = (Decimal(repr(value)) + _HALF_STEP).quantize(
            _TWO_PLACES, rounding=ROUND_FLOOR
        )
    except InvalidOperation:
        return value
    # -0.0 and 0.0 must share a key
    return float(rounded) + 0.0


def as_utc(value: datetime) -> datetime:
    """Return ``value`` in UTC. Naive datetimes are taken to be UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=dt_timezone.utc)
    return value.astimezone(dt_timezone.utc)


def parse_http_date(value: Optional[str]) -> Optional[datetime]:
    """Parse an RFC 1123 HTTP date header into an aware datetime.

    Args:
        value: Raw header value, e.g. "Tue, 15 Oct 2024 10:30:00 GMT".

    Returns:
        The parsed instant in UTC, or None if the value is missing or
        cannot be parsed.

    Example:
        >>> parse_http_date("Tue, 15 Oct 2024 10:30:00 GMT")
        datetime.datetime(2024, 10, 15, 10, 30, tzinfo=datetime.timezone.utc)
        >>> parse_http_date("soon") is None
        True
    """
    if not value:
        return None
    try:
        parsed = parsedate_to_datetime(value)
    except (TypeError, ValueError, IndexError):
        logger.debug(f"Invalid HTTP date header: {value!r}")
        return None
    return as_utc(parsed)


class Coordinates(BaseModel):
    """Geographic position used as the forecast cache key.

    Both values are rounded to two decimal places on construction
    (roughly 1 km), so requests for nearby points collapse onto the
    same key. Equality and hashing use the rounded values. Range
    validation is left to the caller.

    Attributes:
        latitude: Rounded latitude in decimal degrees.
        longitude: Rounded longitude in decimal degrees.

    Example:
        >>> a = Coordinates(latitude=59.911, longitude=10.750)
        >>> b = Coordinates(latitude=59.9112376, longitude=10.7510283)
        >>> a == b, hash(a) == hash(b)
        (True, True)
    """

    model_config = ConfigDict(frozen=True)

    latitude: float
    longitude: float

    @field_validator("latitude", "longitude")
    @classmethod
    def _round(cls, value: float) -> float:
        return _round_two_decimals(value)

    def __str__(self) -> str:
        return f"({self.latitude}, {self.longitude})"


class WeatherSample(BaseModel):
    """A single forecast point.

    Attributes:
        time: Instant the values apply to (UTC).
        wind_speed: Wind speed at 10m in m/s, if reported.
        air_temperature: Air temperature at 2m in °C, if reported.
    """

    model_config = ConfigDict(frozen=True)

    time: datetime
    wind_speed: Optional[float] = None
    air_temperature: Optional[float] = None

    @field_validator("time")
    @classmethod
    def _utc(cls, value: datetime) -> datetime:
        return as_utc(value)


class Forecast(BaseModel):
    """A point forecast as returned by the upstream and held in the cache.

    Attributes:
        updated_at: When the upstream last updated this forecast, taken
            from the payload's ``properties.meta.updated_at``.
        last_modified: Raw ``Last-Modified`` header, echoed back as
            ``If-Modified-Since`` when revalidating.
        expires: Raw ``Expires`` header.
        samples: Forecast points, ascending by time with unique
            timestamps.

    Example:
        >>> forecast.expires_at
        datetime.datetime(2024, 10, 15, 11, 0, tzinfo=datetime.timezone.utc)
        >>> [s.air_temperature for s in forecast.samples][:3]
        [7.1, 6.8, 6.5]
    """

    model_config = ConfigDict(frozen=True)

    updated_at: datetime
    last_modified: Optional[str] = None
    expires: Optional[str] = None
    samples: tuple[WeatherSample, ...] = ()

    @field_validator("updated_at")
    @classmethod
    def _utc(cls, value: datetime) -> datetime:
        return as_utc(value)

    @field_validator("samples")
    @classmethod
    def _ordered_unique(
        cls, value: tuple[WeatherSample, ...]
    ) -> tuple[WeatherSample, ...]:
        seen: set[datetime] = set()
        ordered = []
        for sample in sorted(value, key=lambda s: s.time):
            if sample.time in seen:
                continue
            seen.add(sample.time)
            ordered.append(sample)
        return tuple(ordered)

    @property
    def expires_at(self) -> Optional[datetime]:
        """The ``Expires`` header as a UTC datetime, or None if unusable."""
        return parse_http_date(self.expires)

    @classmethod
    def from_payload(
        cls,
        payload: Any,
        *,
        last_modified: Optional[str] = None,
        expires: Optional[str] = None,
    ) -> "Forecast":
        """Build a Forecast from a Locationforecast JSON document.

        Args:
            payload: Decoded JSON body of a Locationforecast response.
            last_modified: ``Last-Modified`` response header, if any.
            expires: ``Expires`` response header, if any.

        Returns:
            The parsed forecast.

        Raises:
            pydantic.ValidationError: If the document lacks the update
                timestamp or the timeseries.
        """
        document = MetForecastPayload.model_validate(payload)
        if expires and parse_http_date(expires) is None:
            logger.warning(
                f"Invalid Expires header received: {expires!r}. "
                f"Freshness falls back to the forecast age"
            )
        samples = tuple(
            WeatherSample(
                time=entry.time,
                wind_speed=entry.data.instant.details.wind_speed,
                air_temperature=entry.data.instant.details.air_temperature,
            )
            for entry in document.properties.timeseries
        )
        return cls(
            updated_at=document.properties.meta.updated_at,
            last_modified=last_modified,
            expires=expires,
            samples=samples,
        )


class MetInstantDetails(BaseModel):
    """Instant values of a timeseries entry. Other variables are ignored."""

    wind_speed: Optional[float] = None
    air_temperature: Optional[float] = None


class MetInstant(BaseModel):
    details: MetInstantDetails = MetInstantDetails()


class MetTimeseriesData(BaseModel):
    instant: MetInstant = MetInstant()


class MetTimeseriesEntry(BaseModel):
    time: datetime
    data: MetTimeseriesData = MetTimeseriesData()


class MetMeta(BaseModel):
    updated_at: datetime


class MetProperties(BaseModel):
    meta: MetMeta
    timeseries: list[MetTimeseriesEntry]


class MetForecastPayload(BaseModel):
    """The parts of a Locationforecast GeoJSON Feature that are used.

    Unknown fields (geometry, units, next_1_hours, ...) are ignored.
    """

    properties: MetProperties


class ForecastQueryResult(BaseModel):
    """Outcome of a forecast query.

    Attributes:
        status: Classification of the outcome.
        samples: Matching forecast points; empty unless status is OK.
        message: Human-readable summary.
        code: HTTP-style status code (200, 204 or 404).

    Example:
        >>> result = await get_extended_forecast(client, 59.91, 10.75, start, end)
        >>> if result.status is QueryStatus.OK:
        ...     for sample in result.samples:
        ...         print(sample.time, sample.wind_speed)
    """

    model_config = ConfigDict(frozen=True)

    status: QueryStatus
    samples: tuple[WeatherSample, ...] = ()
    message: str
    code: int
