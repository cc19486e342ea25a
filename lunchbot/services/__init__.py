from lunchbot.services.state_store import DailyStateStore
from lunchbot.services.menu_selection import (
    MenuSelectionService,
    SelectionOutcome,
)
from lunchbot.services.menu_supplier import (
    RandomMenuSupplier,
    WeatherAwareMenuSupplier,
    build_menu_supplier,
)
from lunchbot.services.weather import OpenMeteoWeatherSource, WeatherUnavailable

__all__ = [
    'DailyStateStore',
    'MenuSelectionService',
    'SelectionOutcome',
    'RandomMenuSupplier',
    'WeatherAwareMenuSupplier',
    'build_menu_supplier',
    'OpenMeteoWeatherSource',
    'WeatherUnavailable',
]
