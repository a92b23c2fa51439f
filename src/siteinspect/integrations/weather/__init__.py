"""
OpenWeatherMap current-weather integration.

Used by the environmental report form to pre-fill the temperature from the
inspector's coordinates.
"""

from .client import WeatherClient, WeatherClientConfig
from .parser import WeatherResponseParser

__all__ = ["WeatherClient", "WeatherClientConfig", "WeatherResponseParser"]
