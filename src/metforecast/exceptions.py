"""Exceptions for the MET Norway forecast client.

All exceptions inherit from MetForecastError for easy catching. The
upstream errors are raised by MetForecastGateway and absorbed by
MetForecastClient.get_forecast(), which falls back to cached data
instead. Only MetForecastValidationError reaches callers of the query
functions.

Example:
    Calling the gateway directly::

        from metforecast import MetForecastError, MetForecastGateway

        gateway = MetForecastGateway(user_agent="myapp/1.0 ops@example.com")
        try:
            forecast = await gateway.fetch(coordinates)
        except MetForecastError as e:
            print(f"Forecast unavailable: {e}")
"""


class MetForecastError(Exception):
    """Base exception for all metforecast errors."""

    pass


class UpstreamConnectionError(MetForecastError):
    """Exception raised when the upstream API cannot be reached.

    This covers DNS failures, refused connections, timeouts and other
    transport-level problems. Wraps the underlying httpx exception.
    """

    pass


class UpstreamThrottledError(MetForecastError):
    """Exception raised when the upstream answers 429 Too Many Requests.

    MET Norway throttles clients that poll too often. Serving cached
    data for longer is the remedy.
    """

    pass


class UpstreamStatusError(MetForecastError):
    """Exception raised for an unexpected upstream status code.

    Args:
        status_code: The HTTP status code received.

    Attributes:
        status_code: The HTTP status code received.

    Example:
        >>> raise UpstreamStatusError(400)
        UpstreamStatusError: Unexpected response code: 400
    """

    def __init__(self, status_code: int) -> None:
        self.status_code = status_code
        super().__init__(f"Unexpected response code: {status_code}")


class UpstreamPayloadError(MetForecastError):
    """Exception raised when a response body cannot be used.

    Raised for an empty body, a body that is not JSON, or JSON that
    lacks ``properties.meta.updated_at`` or ``properties.timeseries``.
    """

    pass


class MetForecastValidationError(MetForecastError):
    """Exception raised when query input validation fails.

    This occurs for coordinates out of range, an end time before the
    start time, or a start date outside the supported forecast window.
    """

    pass
