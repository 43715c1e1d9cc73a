"""Basic usage examples for the metforecast client."""

import asyncio
import logging
from datetime import datetime, timedelta, timezone

from metforecast import Coordinates, MetForecastClient, QueryStatus
from metforecast.query import get_current_forecast, get_extended_forecast

USER_AGENT = "metforecast-example/0.1 ops@example.com"


async def forecast_example(client: MetForecastClient) -> None:
    """Look a location up twice; the second call is served from cache."""
    oslo = Coordinates(latitude=59.911, longitude=10.750)
    forecast = await client.get_forecast(oslo)

    print("=== Forecast ===")
    if forecast is None:
        print("No forecast available")
        return
    print(f"Location: {oslo}")
    print(f"Updated at: {forecast.updated_at}")
    print(f"Expires: {forecast.expires_at}")
    print(f"Samples: {len(forecast.samples)}")
    print()

    for sample in forecast.samples[:5]:
        print(f"  {sample.time}: {sample.air_temperature}°C, wind {sample.wind_speed} m/s")
    print()

    nearby = Coordinates(latitude=59.9112, longitude=10.7510)
    again = await client.get_forecast(nearby)
    print(f"Nearby point served from cache: {again is forecast}")
    print(f"Cached locations: {client.cache_size}")
    print()


async def current_example(client: MetForecastClient) -> None:
    """Get the sample closest to now."""
    now = datetime.now(tz=timezone.utc)
    result = await get_current_forecast(client, 60.39, 5.32, now, now + timedelta(hours=1))

    print("=== Current Forecast (Bergen) ===")
    print(f"Status: {result.status.value} ({result.code})")
    if result.status is QueryStatus.OK:
        sample = result.samples[0]
        print(f"  {sample.time}: {sample.air_temperature}°C, wind {sample.wind_speed} m/s")
    print()


async def extended_example(client: MetForecastClient) -> None:
    """Get every sample for an event tomorrow afternoon."""
    tomorrow = datetime.now(tz=timezone.utc).date() + timedelta(days=1)
    start = datetime(tomorrow.year, tomorrow.month, tomorrow.day, 12, tzinfo=timezone.utc)
    end = start + timedelta(hours=6)
    result = await get_extended_forecast(client, 69.65, 18.96, start, end)

    print("=== Extended Forecast (Tromsø) ===")
    print(f"Status: {result.status.value} ({result.code})")
    for sample in result.samples:
        print(f"  {sample.time}: {sample.air_temperature}°C, wind {sample.wind_speed} m/s")
    print()


async def main() -> None:
    """Run all examples."""
    logging.basicConfig(level=logging.INFO)
    async with MetForecastClient(user_agent=USER_AGENT) as client:
        await forecast_example(client)
        await current_example(client)
        await extended_example(client)


if __name__ == "__main__":
    asyncio.run(main())
