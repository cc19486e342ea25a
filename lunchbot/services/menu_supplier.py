"""
Menu suppliers injected into the selection service.

- RandomMenuSupplier: uniform pick from the configured list, minus today's exclusions
- WeatherAwareMenuSupplier: restricts to indoor menus when the weather is bad
"""
import logging
import random
from datetime import date
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from lunchbot.config import local_today
from lunchbot.exceptions import SupplierFailure
from lunchbot.models import MenuChoice
from lunchbot.services.weather import WeatherUnavailable

logger = logging.getLogger(__name__)


class RandomMenuSupplier:
    def __init__(
        self,
        menus: Sequence[str],
        indoor_menus: Optional[Sequence[str]] = None,
        exclusions: Optional[Dict[int, Tuple[str, ...]]] = None,
        today: Callable[[], date] = date.today,
        rng: Optional[random.Random] = None,
    ):
        self.menus = list(menus)
        self.indoor_menus = list(indoor_menus) if indoor_menus else list(menus)
        self.exclusions = exclusions or {}
        self._today = today
        self._rng = rng or random.Random()

    def candidates(self, indoor_only: bool = False) -> List[str]:
        """Menus eligible today, in configured order."""
        pool = self.indoor_menus if indoor_only else self.menus
        excluded = set(self.exclusions.get(self._today().weekday(), ()))
        return [menu for menu in pool if menu not in excluded]

    def choose(self, indoor_only: bool = False) -> str:
        candidates = self.candidates(indoor_only)
        if not candidates:
            kind = "indoor" if indoor_only else "any"
            raise SupplierFailure(f"No {kind} menu left after today's exclusions")
        return self._rng.choice(candidates)

    def __call__(self) -> MenuChoice:
        return MenuChoice(menu=self.choose())


class WeatherAwareMenuSupplier:
    """Consults the weather source once per call.

    When the weather API is down the pick falls back to the full list.
    """

    def __init__(self, menu_supplier: RandomMenuSupplier, weather_source):
        self.menu_supplier = menu_supplier
        self.weather_source = weather_source

    def __call__(self) -> MenuChoice:
        try:
            context = self.weather_source.check_indoor_weather()
        except WeatherUnavailable as e:
            logger.warning(f"Weather unavailable, choosing from all menus: {e}")
            return MenuChoice(menu=self.menu_supplier.choose())

        if context.indoor_only:
            return MenuChoice(
                menu=self.menu_supplier.choose(indoor_only=True),
                weather_context=context,
            )
        return MenuChoice(menu=self.menu_supplier.choose())


def build_menu_supplier(settings, weather_source=None):
    """Menu supplier for the running bot, weather-aware when enabled."""
    supplier = RandomMenuSupplier(
        menus=settings.alternative_menus,
        indoor_menus=settings.indoor_menus,
        exclusions=settings.menu_exclusions,
        today=lambda: local_today(settings),
    )
    if settings.weather_enabled and weather_source is not None:
        return WeatherAwareMenuSupplier(supplier, weather_source)
    return supplier
