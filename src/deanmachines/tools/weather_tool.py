"""
Current weather through the open-meteo geocoding and forecast APIs.

The temperature scale comes from the runtime context (``temperature-scale``,
or ``temperature-unit`` as set by the weather agent). Open-meteo reports
Celsius, Fahrenheit is converted locally.
"""

import asyncio
import typing as t

import httpx
from loguru import logger
from pydantic import BaseModel, ConfigDict, Field

from deanmachines.runtime_context import ContextModel, get_runtime_context, parse_context
from deanmachines.settings import get_settings
from deanmachines.tools.http import http_get
from deanmachines.tools_core.base_tool import BaseTool, ToolExecutionError

CURRENT_FIELDS = (
    "temperature_2m,apparent_temperature,relative_humidity_2m,"
    "wind_speed_10m,wind_gusts_10m,weather_code"
)

WEATHER_CONDITIONS: dict[int, str] = {
    0: "Clear sky",
    1: "Mainly clear",
    2: "Partly cloudy",
    3: "Overcast",
    45: "Foggy",
    48: "Depositing rime fog",
    51: "Light drizzle",
    53: "Moderate drizzle",
    55: "Dense drizzle",
    56: "Light freezing drizzle",
    57: "Dense freezing drizzle",
    61: "Slight rain",
    63: "Moderate rain",
    65: "Heavy rain",
    66: "Light freezing rain",
    67: "Heavy freezing rain",
    71: "Slight snow fall",
    73: "Moderate snow fall",
    75: "Heavy snow fall",
    77: "Snow grains",
    80: "Slight rain showers",
    81: "Moderate rain showers",
    82: "Violent rain showers",
    85: "Slight snow showers",
    86: "Heavy snow showers",
    95: "Thunderstorm",
    96: "Thunderstorm with slight hail",
    99: "Thunderstorm with heavy hail",
}


class WeatherAPIError(ToolExecutionError):
    """Raised when open-meteo fails."""


class LocationNotFoundError(WeatherAPIError):
    """Raised when geocoding returns no match."""


def get_weather_condition(code: int) -> str:
    return WEATHER_CONDITIONS.get(code, "Unknown")


def celsius_to_fahrenheit(value: float) -> float:
    return value * 9 / 5 + 32


class WeatherContext(ContextModel):
    temperature_scale: t.Literal["celsius", "fahrenheit"] | None = Field(
        default=None, alias="temperature-scale"
    )
    temperature_unit: t.Literal["celsius", "fahrenheit"] = Field(
        default="celsius", alias="temperature-unit"
    )
    default_location: str | None = Field(default=None, alias="default-location")
    user_id: str | None = Field(default=None, alias="user-id")
    session_id: str | None = Field(default=None, alias="session-id")
    debug: bool = False

    @property
    def scale(self) -> str:
        return self.temperature_scale or self.temperature_unit


class WeatherInput(BaseModel):
    model_config = ConfigDict(extra="forbid")

    location: str = Field(default="", description="City name or coordinates")


class WeatherOutput(BaseModel):
    temperature: float
    feels_like: float
    humidity: float
    wind_speed: float
    wind_gust: float
    conditions: str
    location: str
    temperature_scale: str
    user_id: str | None = None
    session_id: str | None = None


class WeatherTool(BaseTool[WeatherInput, WeatherOutput]):
    _name = "get-weather"
    description = "Get current weather for a location with temperature scale preference"
    _input = WeatherInput
    _output = WeatherOutput

    def __init__(self, http_client: httpx.AsyncClient | None = None) -> None:
        settings = get_settings()
        self.geocoding_url = settings.geocoding_api_url
        self.forecast_url = settings.forecast_api_url
        self.http_client = http_client

    async def _get_json(self, url: str, params: dict[str, t.Any]) -> dict[str, t.Any]:
        try:
            response = await http_get(url, params=params, client=self.http_client)
            response.raise_for_status()
            return response.json()
        except (httpx.HTTPError, ValueError) as e:
            raise WeatherAPIError(f"Weather API request failed: {e}") from e

    async def geocode(self, location: str) -> tuple[float, float, str]:
        data = await self._get_json(self.geocoding_url, {"name": location, "count": 1})
        results = data.get("results") or []
        if not results:
            raise LocationNotFoundError(f"Location '{location}' not found")
        match = results[0]
        return match["latitude"], match["longitude"], match["name"]

    async def fetch_current(self, latitude: float, longitude: float) -> dict[str, t.Any]:
        data = await self._get_json(
            self.forecast_url,
            {"latitude": latitude, "longitude": longitude, "current": CURRENT_FIELDS},
        )
        return data["current"]

    def invoke(self, input: WeatherInput) -> WeatherOutput:
        return asyncio.run(self.ainvoke(input))

    async def ainvoke(self, input: WeatherInput) -> WeatherOutput:
        ctx = parse_context(WeatherContext, get_runtime_context())
        location = input.location.strip() or ctx.default_location
        if not location:
            raise LocationNotFoundError("No location given and no default-location set")
        if ctx.debug:
            logger.debug(
                "Weather request | location={} | scale={} | user={}",
                location,
                ctx.scale,
                ctx.user_id,
            )

        latitude, longitude, name = await self.geocode(location)
        current = await self.fetch_current(latitude, longitude)

        temperature = current["temperature_2m"]
        feels_like = current["apparent_temperature"]
        if ctx.scale == "fahrenheit":
            temperature = celsius_to_fahrenheit(temperature)
            feels_like = celsius_to_fahrenheit(feels_like)

        return WeatherOutput(
            temperature=temperature,
            feels_like=feels_like,
            humidity=current["relative_humidity_2m"],
            wind_speed=current["wind_speed_10m"],
            wind_gust=current["wind_gusts_10m"],
            conditions=get_weather_condition(current["weather_code"]),
            location=name,
            temperature_scale=ctx.scale,
            user_id=ctx.user_id,
            session_id=ctx.session_id,
        )

    example_inputs = (WeatherInput(location="Berlin"),)
