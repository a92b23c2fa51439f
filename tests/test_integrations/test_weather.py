"""
Tests for the OpenWeatherMap integration.

Tests API client, parser and error handling with mocked responses.
"""

import httpx
import pytest
import respx

from siteinspect.core.errors import ConfigurationError, UpstreamError
from siteinspect.integrations.weather import (
    WeatherClient,
    WeatherClientConfig,
    WeatherResponseParser,
)

BASE_URL = "https://weather.test/data/2.5"

MOCK_WEATHER_RESPONSE = {
    "coord": {"lon": -74.0, "lat": 40.7},
    "weather": [{"id": 800, "main": "Clear"}],
    "main": {"temp": 21.456, "feels_like": 21.0, "humidity": 40},
    "name": "New York",
}


@pytest.fixture
def config() -> WeatherClientConfig:
    return WeatherClientConfig(base_url=BASE_URL, api_key="test-key", timeout=2.0)


class TestWeatherResponseParser:
    """Tests for WeatherResponseParser."""

    @pytest.mark.parametrize(
        "temp, expected",
        [(21.456, "21.5"), (-3.04, "-3.0"), (0, "0.0"), (35, "35.0")],
    )
    def test_parse_temperature(self, temp: float, expected: str) -> None:
        parser = WeatherResponseParser()
        assert parser.parse_temperature({"main": {"temp": temp}}) == expected

    @pytest.mark.parametrize(
        "body",
        [{}, {"main": {}}, {"main": {"temp": "warm"}}, {"main": {"temp": True}}, {"main": None}, []],
    )
    def test_missing_temperature(self, body) -> None:
        with pytest.raises(UpstreamError) as exc_info:
            WeatherResponseParser().parse_temperature(body)
        assert exc_info.value.details["service_name"] == "openweathermap"


@pytest.mark.asyncio
class TestWeatherClient:
    """Tests for WeatherClient."""

    @respx.mock
    async def test_current_temperature(self, config: WeatherClientConfig) -> None:
        route = respx.get(f"{BASE_URL}/weather").mock(
            return_value=httpx.Response(200, json=MOCK_WEATHER_RESPONSE)
        )

        async with WeatherClient(config) as client:
            temperature = await client.current_temperature(latitude=40.7, longitude=-74.0)

        assert temperature == "21.5"
        assert route.called
        params = route.calls.last.request.url.params
        assert params["lat"] == "40.7"
        assert params["lon"] == "-74.0"
        assert params["units"] == "metric"
        assert params["appid"] == "test-key"

    @respx.mock
    async def test_http_error_status(self, config: WeatherClientConfig) -> None:
        route = respx.get(f"{BASE_URL}/weather").mock(
            return_value=httpx.Response(401, json={"cod": 401, "message": "Invalid API key"})
        )

        async with WeatherClient(config) as client:
            with pytest.raises(UpstreamError) as exc_info:
                await client.current_temperature(1.0, 2.0)

        assert exc_info.value.status_code == 502
        assert exc_info.value.details["status_code"] == 401
        # Single attempt, no retry
        assert route.call_count == 1

    @respx.mock
    async def test_network_error(self, config: WeatherClientConfig) -> None:
        route = respx.get(f"{BASE_URL}/weather").mock(
            side_effect=httpx.ConnectError("Connection refused")
        )

        async with WeatherClient(config) as client:
            with pytest.raises(UpstreamError) as exc_info:
                await client.current_temperature(1.0, 2.0)

        assert exc_info.value.details["error_type"] == "ConnectError"
        assert route.call_count == 1

    @respx.mock
    async def test_timeout(self, config: WeatherClientConfig) -> None:
        respx.get(f"{BASE_URL}/weather").mock(side_effect=httpx.ReadTimeout("slow"))

        async with WeatherClient(config) as client:
            with pytest.raises(UpstreamError):
                await client.current_temperature(1.0, 2.0)

    @respx.mock
    async def test_invalid_json(self, config: WeatherClientConfig) -> None:
        respx.get(f"{BASE_URL}/weather").mock(
            return_value=httpx.Response(200, content=b"<html>oops</html>")
        )

        async with WeatherClient(config) as client:
            with pytest.raises(UpstreamError):
                await client.current_temperature(1.0, 2.0)

    @respx.mock
    async def test_missing_temperature_in_body(self, config: WeatherClientConfig) -> None:
        respx.get(f"{BASE_URL}/weather").mock(
            return_value=httpx.Response(200, json={"cod": 200, "main": {}})
        )

        async with WeatherClient(config) as client:
            with pytest.raises(UpstreamError):
                await client.current_temperature(1.0, 2.0)

    async def test_missing_api_key(self) -> None:
        config = WeatherClientConfig(base_url=BASE_URL, api_key=None)

        async with WeatherClient(config) as client:
            with pytest.raises(ConfigurationError) as exc_info:
                await client.current_temperature(1.0, 2.0)

        assert exc_info.value.details["config_key"] == "SITEINSPECT_WEATHER_API_KEY"

    @respx.mock
    async def test_api_key_not_logged(self, config: WeatherClientConfig, caplog) -> None:
        respx.get(f"{BASE_URL}/weather").mock(
            return_value=httpx.Response(200, json=MOCK_WEATHER_RESPONSE)
        )

        with caplog.at_level("DEBUG", logger="siteinspect.integrations.weather.client"):
            async with WeatherClient(config) as client:
                await client.current_temperature(1.0, 2.0)

        assert "test-key" not in caplog.text


def test_config_from_settings(monkeypatch: pytest.MonkeyPatch) -> None:
    from siteinspect.core.config import settings

    monkeypatch.setattr(settings, "weather_api_key", "from-settings")
    monkeypatch.setattr(settings, "weather_timeout", 3.0)

    config = WeatherClientConfig.from_settings()

    assert config.api_key == "from-settings"
    assert config.timeout == 3.0
    assert config.units == "metric"
