"""DataFrame conversion utilities for metforecast forecasts.

Requirements:
    pandas >= 2.0 must be installed. Install with:
        pip install pandas
    Or install metforecast with pandas extra:
        pip install metforecast[pandas]

Functions:
    to_dataframe: Convert a Forecast or a sample sequence to a DataFrame

Example:
    Basic usage::

        from metforecast import Coordinates, MetForecastClient
        from metforecast.dataframe import to_dataframe

        async with MetForecastClient(user_agent="myapp/1.0") as client:
            forecast = await client.get_forecast(
                Coordinates(latitude=59.91, longitude=10.75)
            )
            df = to_dataframe(forecast)
            print(df.head())
"""

from typing import Iterable, Union

from .models import Forecast, WeatherSample

COLUMNS = ["time", "wind_speed", "air_temperature"]


def _check_pandas() -> None:
    """Check if pandas is installed and raise informative error if not."""
    try:
        import pandas  # noqa: F401
    except ImportError as e:
        raise ImportError(
            "pandas is required for DataFrame conversion. "
            "Install it with: pip install pandas"
        ) from e


def to_dataframe(
    data: Union[Forecast, Iterable[WeatherSample]],
) -> "pd.DataFrame":
    """Convert forecast samples to a pandas DataFrame.

    Args:
        data: A Forecast, or any iterable of WeatherSample such as
            ``ForecastQueryResult.samples``.

    Returns:
        pandas DataFrame with one row per sample and the columns
        ``time`` (timezone-aware UTC datetime64), ``wind_speed`` and
        ``air_temperature``. Missing values become NaN.

    Raises:
        ImportError: If pandas is not installed.

    Example:
        >>> df = to_dataframe(forecast)
        >>> df.columns.tolist()
        ['time', 'wind_speed', 'air_temperature']
    """
    _check_pandas()
    import pandas as pd

    samples = data.samples if isinstance(data, Forecast) else tuple(data)
    rows = [sample.model_dump() for sample in samples]
    df = pd.DataFrame(rows, columns=COLUMNS)
    df["time"] = pd.to_datetime(df["time"], utc=True)
    df["wind_speed"] = df["wind_speed"].astype("float64")
    df["air_temperature"] = df["air_temperature"].astype("float64")
    return df


__all__ = ["to_dataframe"]
