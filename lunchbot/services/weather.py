"""
Weather lookup via Open-Meteo (free, no API key).
Flags days that are too cold or snowy to walk out for lunch.
"""
import logging
from dataclasses import dataclass
from typing import Optional

import requests

from lunchbot.models import WeatherContext

logger = logging.getLogger(__name__)

OPEN_METEO_URL = "https://api.open-meteo.com/v1/forecast"

# WMO codes: 71-77 snow, 85-86 snow showers
SNOW_CODES = {71, 73, 75, 77, 85, 86}

WEATHER_DESCRIPTIONS = {
    0: "맑음",
    1: "대체로 맑음",
    2: "부분적으로 흐림",
    3: "흐림",
    45: "안개",
    48: "안개 (서리)",
    51: "가벼운 이슬비",
    53: "이슬비",
    55: "강한 이슬비",
    56: "얼어붙는 이슬비 (약함)",
    57: "얼어붙는 이슬비 (강함)",
    61: "가벼운 비",
    63: "비",
    65: "강한 비",
    66: "얼어붙는 비 (약함)",
    67: "얼어붙는 비 (강함)",
    71: "가벼운 눈",
    73: "눈",
    75: "강한 눈",
    77: "싸락눈",
    80: "가벼운 소나기",
    81: "소나기",
    82: "강한 소나기",
    85: "가벼운 눈소나기",
    86: "강한 눈소나기",
    95: "뇌우",
    96: "뇌우 (우박 약함)",
    99: "뇌우 (우박 강함)",
}


class WeatherUnavailable(Exception):
    """The weather API could not be reached or returned garbage."""


@dataclass(frozen=True)
class CurrentWeather:
    temperature: float
    weather_code: int
    description: str

    @property
    def is_snowing(self) -> bool:
        return self.weather_code in SNOW_CODES


def describe_weather_code(code: int) -> str:
    return WEATHER_DESCRIPTIONS.get(code, f"알 수 없음 (코드: {code})")


def indoor_context(weather: CurrentWeather, cold_threshold: float = -5) -> WeatherContext:
    """Decide whether the weather calls for an indoor-only menu."""
    reason: Optional[str] = None
    if weather.temperature <= cold_threshold:
        reason = f"🥶 현재 기온이 {weather.temperature}°C로 매우 춥습니다!"
    elif weather.is_snowing:
        reason = f"❄️ 현재 눈이 오고 있습니다! ({weather.description})"

    return WeatherContext(
        reason=reason,
        temperature=weather.temperature,
        description=weather.description,
        indoor_only=reason is not None,
    )


class OpenMeteoWeatherSource:
    """Current conditions for a fixed location."""

    def __init__(
        self,
        latitude: float = 37.5665,
        longitude: float = 126.9780,
        timezone: str = "Asia/Seoul",
        cold_threshold: float = -5,
        session: Optional[requests.Session] = None,
        timeout: float = 10,
    ):
        self.latitude = latitude
        self.longitude = longitude
        self.timezone = timezone
        self.cold_threshold = cold_threshold
        self.session = session or requests.Session()
        self.timeout = timeout

    def get_current_weather(self) -> CurrentWeather:
        try:
            response = self.session.get(
                OPEN_METEO_URL,
                params={
                    "latitude": self.latitude,
                    "longitude": self.longitude,
                    "current": "temperature_2m,weather_code",
                    "timezone": self.timezone,
                },
                timeout=self.timeout,
            )
            response.raise_for_status()
            current = response.json()["current"]
            temperature = float(current["temperature_2m"])
            code = int(current["weather_code"])
        except (requests.RequestException, KeyError, TypeError, ValueError) as e:
            raise WeatherUnavailable(f"Weather lookup failed: {e}") from e

        weather = CurrentWeather(
            temperature=temperature,
            weather_code=code,
            description=describe_weather_code(code),
        )
        logger.info(f"Current weather: {temperature}°C, {weather.description} (code {code})")
        return weather

    def check_indoor_weather(self) -> WeatherContext:
        context = indoor_context(self.get_current_weather(), self.cold_threshold)
        if context.indoor_only:
            logger.info(f"Indoor menu recommended: {context.reason}")
        return context
