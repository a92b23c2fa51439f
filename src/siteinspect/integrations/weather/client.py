"""
OpenWeatherMap current-weather API client.

One lookup per call with no retries. Network failures, error statuses and
malformed bodies all surface as UpstreamError.
"""

import logging
from typing import Any, Dict, Optional

import httpx
from pydantic import BaseModel, Field

from siteinspect.core.config import settings
from siteinspect.core.errors import ConfigurationError, UpstreamError
from siteinspect.utils.logging import redact_sensitive

from .parser import WeatherResponseParser

logger = logging.getLogger(__name__)


class WeatherClientConfig(BaseModel):
    """Configuration for the weather API client."""

    base_url: str = Field(
        default="https://api.openweathermap.org/data/2.5",
        description="Base URL for the OpenWeatherMap API",
    )
    api_key: Optional[str] = Field(None, description="OpenWeatherMap API key (appid)")
    timeout: float = Field(default=10.0, description="Request timeout in seconds", ge=1.0, le=60.0)
    units: str = Field(default="metric", description="Unit system for temperatures")

    @classmethod
    def from_settings(cls) -> "WeatherClientConfig":
        return cls(
            base_url=settings.weather_base_url,
            api_key=settings.weather_api_key,
            timeout=settings.weather_timeout,
        )


class WeatherClient:
    """
    Client for the OpenWeatherMap current-weather endpoint.

    Example:
        >>> async with WeatherClient() as weather:  # doctest: +SKIP
        ...     await weather.current_temperature(latitude=40.7, longitude=-74.0)
        '18.3'
    """

    def __init__(self, config: Optional[WeatherClientConfig] = None) -> None:
        self.config = config or WeatherClientConfig.from_settings()
        self.client = httpx.AsyncClient(
            timeout=httpx.Timeout(self.config.timeout),
            follow_redirects=True,
        )
        self.parser = WeatherResponseParser()

        logger.info(
            f"Weather client initialized with base URL: {self.config.base_url}, "
            f"timeout: {self.config.timeout}s"
        )

    async def __aenter__(self) -> "WeatherClient":
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Async context manager exit."""
        await self.close()

    async def close(self) -> None:
        """Close the HTTP client."""
        await self.client.aclose()

    async def _make_request(self, endpoint: str, params: Dict[str, Any]) -> Dict[str, Any]:
        """
        Make a single GET request.

        Raises:
            UpstreamError: On transport failure, non-2xx status or non-JSON body
        """
        url = f"{self.config.base_url}/{endpoint}"

        try:
            logger.debug(f"Making request to {url} with params: {redact_sensitive(params)}")
            response = await self.client.get(url, params=params)
            response.raise_for_status()
            return response.json()

        except httpx.HTTPStatusError as e:
            logger.warning(f"Weather request failed with status {e.response.status_code}")
            raise UpstreamError(
                f"Weather service returned {e.response.status_code}",
                service_name=self.parser.service_name,
                details={"status_code": e.response.status_code},
            ) from e
        except httpx.HTTPError as e:
            logger.warning(f"Weather request failed: {type(e).__name__}")
            raise UpstreamError(
                "Weather service is unreachable",
                service_name=self.parser.service_name,
                details={"error_type": type(e).__name__},
            ) from e
        except ValueError as e:
            logger.warning("Weather response was not valid JSON")
            raise UpstreamError(
                "Weather service returned an invalid response",
                service_name=self.parser.service_name,
            ) from e

    async def current_temperature(self, latitude: float, longitude: float) -> str:
        """
        Fetch the current temperature at a location.

        Args:
            latitude: Latitude (WGS84)
            longitude: Longitude (WGS84)

        Returns:
            Temperature in degrees Celsius with one decimal, e.g. ``"21.4"``

        Raises:
            ConfigurationError: If no API key is configured
            UpstreamError: If the lookup fails for any reason
        """
        if not self.config.api_key:
            raise ConfigurationError(
                "Weather API key is not configured",
                config_key="SITEINSPECT_WEATHER_API_KEY",
            )

        params = {
            "lat": latitude,
            "lon": longitude,
            "units": self.config.units,
            "appid": self.config.api_key,
        }
        data = await self._make_request("weather", params)
        temperature = self.parser.parse_temperature(data)

        logger.info(f"Current temperature at ({latitude}, {longitude}): {temperature}°C")
        return temperature
