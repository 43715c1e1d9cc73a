import pytest
from datetime import datetime, timezone
from unittest.mock import AsyncMock, patch

import httpx

from metforecast import (
    Coordinates,
    MetForecastGateway,
    UpstreamConnectionError,
    UpstreamPayloadError,
    UpstreamStatusError,
    UpstreamThrottledError,
)

OSLO = Coordinates(latitude=59.911, longitude=10.750)
LAST_MODIFIED = "Tue, 15 Oct 2024 10:12:34 GMT"
EXPIRES = "Tue, 15 Oct 2024 10:45:00 GMT"


def _gateway() -> MetForecastGateway:
    return MetForecastGateway(user_agent="metforecast-tests/1.0 test@example.com")


def _mock_http(response=None, side_effect=None) -> AsyncMock:
    mock_http_client = AsyncMock()
    mock_http_client.get = AsyncMock(return_value=response, side_effect=side_effect)
    return mock_http_client


def _ok_response(payload, status_code=200) -> httpx.Response:
    return httpx.Response(
        status_code,
        json=payload,
        headers={"Last-Modified": LAST_MODIFIED, "Expires": EXPIRES},
    )


class TestGatewaySetup:
    def test_user_agent_required(self):
        with pytest.raises(ValueError):
            MetForecastGateway(user_agent="")

    def test_url(self):
        gateway = MetForecastGateway(user_agent="ua", base_host="example.test")
        assert gateway.url == "https://example.test/weatherapi/locationforecast/2.0/compact"

    @pytest.mark.asyncio
    async def test_context_manager(self):
        async with _gateway() as gateway:
            assert gateway._client is not None
        assert gateway._client is None

    @pytest.mark.asyncio
    async def test_close_idempotent(self):
        gateway = _gateway()
        await gateway.close()
        await gateway.close()


class TestFetch:
    @pytest.mark.asyncio
    async def test_fetch_success(self, met_payload):
        gateway = _gateway()
        mock_http_client = _mock_http(_ok_response(met_payload))

        with patch.object(gateway, "_ensure_client", return_value=mock_http_client):
            forecast = await gateway.fetch(OSLO)

        assert forecast.updated_at == datetime(2024, 10, 15, 10, 12, 34, tzinfo=timezone.utc)
        assert forecast.last_modified == LAST_MODIFIED
        assert forecast.expires == EXPIRES
        assert len(forecast.samples) == 3

    @pytest.mark.asyncio
    async def test_fetch_sends_rounded_coordinates_and_user_agent(self, met_payload):
        gateway = _gateway()
        mock_http_client = _mock_http(_ok_response(met_payload))

        with patch.object(gateway, "_ensure_client", return_value=mock_http_client):
            await gateway.fetch(Coordinates(latitude=59.9112376, longitude=10.7510283))

        call = mock_http_client.get.call_args
        assert call.args[0] == "https://api.met.no/weatherapi/locationforecast/2.0/compact"
        assert call.kwargs["params"] == {"lat": 59.91, "lon": 10.75}
        assert call.kwargs["headers"]["User-Agent"] == "metforecast-tests/1.0 test@example.com"
        assert "If-Modified-Since" not in call.kwargs["headers"]

    @pytest.mark.asyncio
    async def test_fetch_deprecated_product_still_parsed(self, met_payload):
        gateway = _gateway()
        mock_http_client = _mock_http(_ok_response(met_payload, status_code=203))

        with patch.object(gateway, "_ensure_client", return_value=mock_http_client):
            forecast = await gateway.fetch(OSLO)

        assert len(forecast.samples) == 3

    @pytest.mark.asyncio
    async def test_fetch_throttled(self):
        gateway = _gateway()
        mock_http_client = _mock_http(httpx.Response(429))

        with patch.object(gateway, "_ensure_client", return_value=mock_http_client):
            with pytest.raises(UpstreamThrottledError):
                await gateway.fetch(OSLO)

    @pytest.mark.asyncio
    async def test_fetch_bad_request(self):
        gateway = _gateway()
        mock_http_client = _mock_http(
            httpx.Response(400, text="Mandatory parameter 'lon' missing")
        )

        with patch.object(gateway, "_ensure_client", return_value=mock_http_client):
            with pytest.raises(UpstreamStatusError) as exc_info:
                await gateway.fetch(OSLO)

        assert exc_info.value.status_code == 400

    @pytest.mark.asyncio
    async def test_fetch_not_modified_without_token(self):
        gateway = _gateway()
        mock_http_client = _mock_http(httpx.Response(304))

        with patch.object(gateway, "_ensure_client", return_value=mock_http_client):
            with pytest.raises(UpstreamStatusError) as exc_info:
                await gateway.fetch(OSLO)

        assert exc_info.value.status_code == 304

    @pytest.mark.asyncio
    async def test_fetch_connection_error(self):
        gateway = _gateway()
        mock_http_client = _mock_http(side_effect=httpx.ConnectError("connection refused"))

        with patch.object(gateway, "_ensure_client", return_value=mock_http_client):
            with pytest.raises(UpstreamConnectionError) as exc_info:
                await gateway.fetch(OSLO)

        assert isinstance(exc_info.value.__cause__, httpx.ConnectError)

    @pytest.mark.asyncio
    async def test_fetch_timeout(self):
        gateway = _gateway()
        mock_http_client = _mock_http(side_effect=httpx.ReadTimeout("timed out"))

        with patch.object(gateway, "_ensure_client", return_value=mock_http_client):
            with pytest.raises(UpstreamConnectionError):
                await gateway.fetch(OSLO)

    @pytest.mark.asyncio
    async def test_fetch_empty_body(self):
        gateway = _gateway()
        mock_http_client = _mock_http(httpx.Response(200, content=b""))

        with patch.object(gateway, "_ensure_client", return_value=mock_http_client):
            with pytest.raises(UpstreamPayloadError):
                await gateway.fetch(OSLO)

    @pytest.mark.asyncio
    async def test_fetch_non_json_body(self):
        gateway = _gateway()
        mock_http_client = _mock_http(httpx.Response(200, text="<html>oops</html>"))

        with patch.object(gateway, "_ensure_client", return_value=mock_http_client):
            with pytest.raises(UpstreamPayloadError):
                await gateway.fetch(OSLO)

    @pytest.mark.asyncio
    async def test_fetch_missing_fields(self):
        gateway = _gateway()
        mock_http_client = _mock_http(
            httpx.Response(200, json={"type": "Feature", "properties": {}})
        )

        with patch.object(gateway, "_ensure_client", return_value=mock_http_client):
            with pytest.raises(UpstreamPayloadError):
                await gateway.fetch(OSLO)


class TestRevalidate:
    @pytest.mark.asyncio
    async def test_revalidate_not_modified(self):
        gateway = _gateway()
        mock_http_client = _mock_http(httpx.Response(304))

        with patch.object(gateway, "_ensure_client", return_value=mock_http_client):
            result = await gateway.revalidate(OSLO, LAST_MODIFIED)

        assert result is None
        headers = mock_http_client.get.call_args.kwargs["headers"]
        assert headers["If-Modified-Since"] == LAST_MODIFIED

    @pytest.mark.asyncio
    async def test_revalidate_updated(self, met_payload):
        gateway = _gateway()
        mock_http_client = _mock_http(_ok_response(met_payload))

        with patch.object(gateway, "_ensure_client", return_value=mock_http_client):
            result = await gateway.revalidate(OSLO, LAST_MODIFIED)

        assert result is not None
        assert len(result.samples) == 3

    @pytest.mark.asyncio
    async def test_revalidate_without_token_fetches(self, met_payload):
        gateway = _gateway()
        mock_http_client = _mock_http(_ok_response(met_payload))

        with patch.object(gateway, "_ensure_client", return_value=mock_http_client):
            result = await gateway.revalidate(OSLO, None)

        assert result is not None
        headers = mock_http_client.get.call_args.kwargs["headers"]
        assert "If-Modified-Since" not in headers

    @pytest.mark.asyncio
    async def test_revalidate_throttled(self):
        gateway = _gateway()
        mock_http_client = _mock_http(httpx.Response(429))

        with patch.object(gateway, "_ensure_client", return_value=mock_http_client):
            with pytest.raises(UpstreamThrottledError):
                await gateway.revalidate(OSLO, LAST_MODIFIED)
