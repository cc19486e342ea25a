from datetime import date

import pytest

from lunchbot.services.menu_selection import MenuSelectionService
from lunchbot.services.state_store import DailyStateStore

TODAY = date(2025, 6, 12)


class CountingSupplier:
    """Returns the given menus in order and counts calls."""

    def __init__(self, *menus):
        self.menus = list(menus)
        self.calls = 0

    def __call__(self):
        menu = self.menus[min(self.calls, len(self.menus) - 1)]
        self.calls += 1
        return menu


class FakeResponder:
    def __init__(self):
        self.sent = []

    def respond(self, response_url, message):
        self.sent.append((response_url, message))


@pytest.fixture
def state_file(tmp_path):
    return str(tmp_path / "data" / "usage.json")


@pytest.fixture
def store(state_file):
    s = DailyStateStore(state_file, today=lambda: TODAY)
    s.load()
    return s


@pytest.fixture
def selection(store):
    return MenuSelectionService(store, clock=lambda: "2025-06-12T03:00:00+00:00")
