from lunchbot.models.daily_record import (
    DailyRecord,
    MenuChoice,
    SelectionState,
    WeatherContext,
)

__all__ = [
    "DailyRecord",
    "MenuChoice",
    "SelectionState",
    "WeatherContext",
]
