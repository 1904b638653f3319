from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any

import numpy as np
import openmeteo_requests
import requests
import requests_cache
from retry_requests import retry

from weathercard.settings import Settings, get_settings

logger = logging.getLogger(__name__)

CURRENT_VARIABLES = [
    "temperature_2m",
    "relative_humidity_2m",
    "weather_code",
    "wind_speed_10m",
]


class WeatherServiceError(RuntimeError):
    """Raised when weather data cannot be fetched or parsed."""

    def __init__(self, message: str = "", body: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.body = body


class WeatherService:
    """Look up current weather for a city name via Open-Meteo."""

    def __init__(self, cache_dir: Path | None = None, settings: Settings | None = None) -> None:
        self._settings = settings or get_settings()
        cache_root = cache_dir or self._settings.data_dir / "cache"
        cache_root.mkdir(parents=True, exist_ok=True)
        cache_session = requests_cache.CachedSession(
            cache_root / "openmeteo",
            expire_after=self._settings.cache_expire_seconds,
        )
        self._session = retry(
            cache_session,
            retries=self._settings.retries,
            backoff_factor=self._settings.backoff_factor,
        )
        self._client = openmeteo_requests.Client(session=self._session)

    async def alookup(self, city: str) -> dict[str, Any]:
        return await asyncio.to_thread(self.lookup, city)

    def lookup(self, city: str) -> dict[str, Any]:
        if not city or not city.strip():
            raise WeatherServiceError("City is empty")

        place = self._geocode(city.strip())
        params = {
            "latitude": place["latitude"],
            "longitude": place["longitude"],
            "current": CURRENT_VARIABLES,
            "timezone": "auto",
        }
        try:
            responses = self._client.weather_api(self._settings.forecast_url, params=params)
        except Exception as exc:
            raise WeatherServiceError(str(exc)) from exc
        if not responses:
            raise WeatherServiceError("Forecast response is empty")
        response = responses[0]

        tz_name = response.Timezone()
        if isinstance(tz_name, bytes):
            tz_name = tz_name.decode()

        current = response.Current()
        temperature = _optional_float(current.Variables(0).Value())
        humidity = _optional_float(current.Variables(1).Value())
        code = _optional_float(current.Variables(2).Value())
        wind = _optional_float(current.Variables(3).Value())

        conditions: list[dict[str, Any]] = []
        if code is not None:
            conditions.append(
                {"id": int(code), "description": _WEATHER_CODE_LABELS.get(int(code), "Unknown")}
            )

        return {
            "name": place["name"],
            "country": place.get("country"),
            "coord": {"lat": place["latitude"], "lon": place["longitude"]},
            "timezone": str(tz_name) if tz_name else None,
            "weather": conditions,
            "main": {"temp": temperature, "humidity": humidity},
            "wind": {"speed": wind},
        }

    def _geocode(self, city: str) -> dict[str, Any]:
        params = {
            "name": city,
            "count": 1,
            "language": self._settings.language,
            "format": "json",
        }
        try:
            response = self._session.get(self._settings.geocoding_url, params=params, timeout=10)
            response.raise_for_status()
            data = response.json()
        except requests.RequestException as exc:
            raise WeatherServiceError(str(exc)) from exc
        except ValueError as exc:
            raise WeatherServiceError("Geocoding response is not valid JSON") from exc

        results = data.get("results") if isinstance(data, dict) else None
        if not results:
            logger.info("Geocoding found no match for %r", city)
            raise WeatherServiceError(
                f"No matching city for {city!r}", body={"message": "city not found"}
            )

        best = results[0]
        latitude = best.get("latitude")
        longitude = best.get("longitude")
        if latitude is None or longitude is None:
            raise WeatherServiceError("City coordinates are missing")

        return {
            "name": str(best.get("name") or city).strip(),
            "country": best.get("country"),
            "latitude": float(latitude),
            "longitude": float(longitude),
        }


def format_weather(payload: dict[str, Any], description: str) -> str:
    name = payload.get("name") or "Unknown"
    country = payload.get("country")
    place = f"{name}, {country}" if country else name
    main = payload.get("main") or {}
    wind = payload.get("wind") or {}
    return (
        f"{place}: {description} | "
        f"{_format_optional(main.get('temp'), 'C')} | "
        f"Humidity {_format_optional(main.get('humidity'), '%')} | "
        f"Wind {_format_optional(wind.get('speed'), ' km/h')}"
    )


def _optional_float(value: Any) -> float | None:
    if value is None or np.isnan(value):
        return None
    return float(value)


def _format_optional(value: Any, unit: str) -> str:
    return "--" if value is None else f"{value:.0f}{unit}"


_WEATHER_CODE_LABELS = {
    0: "Clear sky",
    1: "Mainly clear",
    2: "Partly cloudy",
    3: "Overcast",
    45: "Fog",
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
