"""
OpenWeatherMap response parser.
"""

import logging
from typing import Any, Dict

from siteinspect.core.errors import UpstreamError

logger = logging.getLogger(__name__)


class WeatherResponseParser:
    """Parser for OpenWeatherMap ``/weather`` responses."""

    service_name = "openweathermap"

    def parse_temperature(self, data: Dict[str, Any]) -> str:
        """
        Extract the current temperature from a response body.

        Args:
            data: Decoded JSON body, expected to contain ``main.temp``

        Returns:
            Temperature in degrees Celsius rounded to one decimal, as text

        Raises:
            UpstreamError: If the body has no numeric ``main.temp``
        """
        main = data.get("main") if isinstance(data, dict) else None
        temp = main.get("temp") if isinstance(main, dict) else None

        # bool is an int subclass but never a valid reading
        if isinstance(temp, bool) or not isinstance(temp, (int, float)):
            logger.error(f"Weather response missing main.temp: {str(data)[:200]}")
            raise UpstreamError(
                "Weather response did not include a temperature",
                service_name=self.service_name,
                details={"field": "main.temp"},
            )

        return f"{temp:.1f}"
