"""
Daily Record Model

One record per calendar date holding that day's alternate-menu selection.
Serialized as a JSON object keyed by the ISO date string.
"""

from dataclasses import dataclass, asdict, replace
from datetime import date
from enum import Enum
from typing import Any, Dict, Optional


class SelectionState(str, Enum):
    EMPTY = "EMPTY"
    PREVIEWED = "PREVIEWED"
    CONFIRMED = "CONFIRMED"


@dataclass(frozen=True)
class WeatherContext:
    """Why a menu was restricted by the weather. Informational only."""

    reason: Optional[str]
    temperature: Optional[float]
    description: Optional[str]
    indoor_only: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "WeatherContext":
        return cls(
            reason=data.get("reason"),
            temperature=data.get("temperature"),
            description=data.get("description"),
            indoor_only=data.get("indoor_only") is True,
        )


@dataclass(frozen=True)
class MenuChoice:
    """What a menu supplier hands back."""

    menu: str
    weather_context: Optional[WeatherContext] = None


RECORD_FIELDS = (
    "selected_menu",
    "weather_context",
    "confirmed",
    "first_actor_id",
    "first_actor_timestamp",
)


@dataclass
class DailyRecord:
    date: str
    selected_menu: Optional[str] = None
    weather_context: Optional[WeatherContext] = None
    confirmed: bool = False
    first_actor_id: Optional[str] = None
    first_actor_timestamp: Optional[str] = None

    def __post_init__(self):
        # Keys must be canonical YYYY-MM-DD so string comparison orders them
        if date.fromisoformat(self.date).isoformat() != self.date:
            raise ValueError(f"Date key {self.date!r} is not YYYY-MM-DD")
        if self.confirmed and not self.selected_menu:
            raise ValueError(f"Record {self.date} is confirmed without a menu")

    @property
    def state(self) -> SelectionState:
        if not self.selected_menu:
            return SelectionState.EMPTY
        if self.confirmed:
            return SelectionState.CONFIRMED
        return SelectionState.PREVIEWED

    def copy(self) -> "DailyRecord":
        return replace(self)

    def to_dict(self) -> Dict[str, Any]:
        """Body of the record as stored in the state file (the date is the key)."""
        return {
            "selected_menu": self.selected_menu,
            "weather_context": self.weather_context.to_dict() if self.weather_context else None,
            "confirmed": self.confirmed,
            "first_actor_id": self.first_actor_id,
            "first_actor_timestamp": self.first_actor_timestamp,
        }

    @classmethod
    def from_dict(cls, date_key: str, data: Dict[str, Any]) -> "DailyRecord":
        if not isinstance(data, dict):
            raise ValueError(f"Record body for {date_key} is not an object")
        weather = data.get("weather_context")
        if weather is not None and not isinstance(weather, dict):
            raise ValueError(f"Weather context for {date_key} is not an object")
        return cls(
            date=date_key,
            selected_menu=data.get("selected_menu"),
            weather_context=WeatherContext.from_dict(weather) if weather else None,
            confirmed=data.get("confirmed") is True,
            first_actor_id=data.get("first_actor_id"),
            first_actor_timestamp=data.get("first_actor_timestamp"),
        )

    def __repr__(self):
        return f"<DailyRecord {self.date} {self.state.value} {self.selected_menu!r}>"
