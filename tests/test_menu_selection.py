"""
Unit tests for the menu selection state machine.

Rules:
1. preview is idempotent and calls the supplier at most once per day
2. only one confirmation per day; preview/instant after it fail
3. cancel keeps the menu, reset_admin deletes the record
4. reroll retries while the supplier repeats the previous menu
"""

import threading
from datetime import date

import pytest

from lunchbot.exceptions import (
    AlreadyConfirmed,
    NoPreview,
    PersistenceFailure,
    SupplierFailure,
)
from lunchbot.models import MenuChoice, SelectionState, WeatherContext
from lunchbot.services.menu_selection import MenuSelectionService
from lunchbot.services.state_store import DailyStateStore
from tests.conftest import CountingSupplier


class TestPreview:
    def test_first_preview_calls_supplier(self, selection):
        supplier = CountingSupplier("Bibimbap")
        outcome = selection.preview("2025-06-10", supplier)

        assert outcome.menu == "Bibimbap"
        assert outcome.created is True
        assert outcome.persisted is True
        assert supplier.calls == 1
        assert selection.get_state("2025-06-10") == SelectionState.PREVIEWED

    def test_second_preview_returns_same_menu(self, selection):
        supplier = CountingSupplier("Bibimbap", "Ramen")
        first = selection.preview("2025-06-10", supplier)
        second = selection.preview("2025-06-10", supplier)

        assert first.menu == second.menu == "Bibimbap"
        assert second.changed is False
        assert supplier.calls == 1

    def test_preview_after_confirm_fails(self, selection):
        selection.preview("2025-06-10", lambda: "Bibimbap")
        selection.confirm("2025-06-10", actor_id="U1")

        with pytest.raises(AlreadyConfirmed) as exc_info:
            selection.preview("2025-06-10", lambda: "Ramen")
        assert exc_info.value.record.selected_menu == "Bibimbap"

    def test_preview_keeps_weather_context(self, selection):
        weather = WeatherContext(reason="cold", temperature=-8.0, description="맑음", indoor_only=True)
        outcome = selection.preview("2025-06-10", lambda: MenuChoice("라멘", weather))
        assert outcome.record.weather_context == weather

    def test_supplier_error_is_wrapped(self, selection):
        def broken():
            raise RuntimeError("boom")

        with pytest.raises(SupplierFailure) as exc_info:
            selection.preview("2025-06-10", broken)
        assert isinstance(exc_info.value.__cause__, RuntimeError)
        assert selection.get_record("2025-06-10") is None

    def test_empty_supplier_result_fails(self, selection):
        with pytest.raises(SupplierFailure):
            selection.preview("2025-06-10", lambda: "")


class TestConfirm:
    def test_scenario_preview_confirm_preview(self, selection):
        """preview Bibimbap -> confirm -> preview Ramen fails."""
        assert selection.preview("2025-06-10", lambda: "Bibimbap").menu == "Bibimbap"
        assert selection.get_state("2025-06-10") == SelectionState.PREVIEWED

        outcome = selection.confirm("2025-06-10", actor_id="U1")
        assert outcome.menu == "Bibimbap"
        assert selection.get_state("2025-06-10") == SelectionState.CONFIRMED

        with pytest.raises(AlreadyConfirmed):
            selection.preview("2025-06-10", lambda: "Ramen")

    def test_confirm_records_actor(self, selection):
        selection.preview("2025-06-10", lambda: "Bibimbap")
        record = selection.confirm("2025-06-10", actor_id="U1").record

        assert record.first_actor_id == "U1"
        assert record.first_actor_timestamp == "2025-06-12T03:00:00+00:00"

    def test_confirm_without_preview_fails(self, selection):
        with pytest.raises(NoPreview):
            selection.confirm("2025-06-10", actor_id="U1")

    def test_confirm_is_idempotent(self, selection):
        selection.preview("2025-06-10", lambda: "Bibimbap")
        selection.confirm("2025-06-10", actor_id="U1")
        again = selection.confirm("2025-06-10", actor_id="U2")

        assert again.menu == "Bibimbap"
        assert again.changed is False
        # first confirmer stays on record
        assert again.record.first_actor_id == "U1"


class TestCancel:
    def test_cancel_keeps_menu(self, selection):
        supplier = CountingSupplier("Bibimbap", "Ramen")
        selection.preview("2025-06-10", supplier)
        selection.confirm("2025-06-10", actor_id="U1")

        existed, outcome = selection.cancel("2025-06-10")
        assert existed is True
        assert outcome.record.confirmed is False
        assert outcome.record.first_actor_id is None
        assert outcome.record.first_actor_timestamp is None

        again = selection.preview("2025-06-10", supplier)
        assert again.menu == "Bibimbap"
        assert supplier.calls == 1

    def test_cancel_lets_another_user_confirm(self, selection):
        selection.preview("2025-06-10", lambda: "Bibimbap")
        selection.confirm("2025-06-10", actor_id="U1")
        selection.cancel("2025-06-10")

        outcome = selection.confirm("2025-06-10", actor_id="U2")
        assert outcome.changed is True
        assert outcome.record.first_actor_id == "U2"

    def test_cancel_without_record(self, selection):
        existed, outcome = selection.cancel("2025-06-10")
        assert existed is False
        assert outcome.record is None


class TestInstantSelect:
    def test_instant_confirms_directly(self, selection):
        outcome = selection.instant_select_and_confirm("2025-06-11", lambda: "Kimchi Stew", actor_id="U1")

        assert outcome.menu == "Kimchi Stew"
        assert outcome.record.confirmed is True
        assert selection.get_state("2025-06-11") == SelectionState.CONFIRMED

    def test_instant_uses_existing_preview(self, selection):
        selection.preview("2025-06-11", lambda: "Bibimbap")
        supplier = CountingSupplier("Ramen")
        outcome = selection.instant_select_and_confirm("2025-06-11", supplier, actor_id="U1")

        assert outcome.menu == "Bibimbap"
        assert supplier.calls == 0

    def test_instant_after_confirm_fails(self, selection):
        selection.instant_select_and_confirm("2025-06-11", lambda: "Kimchi Stew")
        with pytest.raises(AlreadyConfirmed):
            selection.instant_select_and_confirm("2025-06-11", lambda: "Ramen")


class TestReroll:
    def test_reroll_skips_repeat(self, selection):
        selection.preview("2025-06-12", lambda: "A")
        supplier = CountingSupplier("A", "A", "B")

        outcome = selection.reroll("2025-06-12", supplier, actor_id="U2", max_attempts=5)

        assert outcome.menu == "B"
        assert supplier.calls == 3
        assert selection.get_state("2025-06-12") == SelectionState.CONFIRMED
        assert outcome.record.first_actor_id == "U2"

    def test_reroll_gives_up_after_max_attempts(self, selection):
        selection.preview("2025-06-12", lambda: "A")
        supplier = CountingSupplier("A")

        outcome = selection.reroll("2025-06-12", supplier, max_attempts=5)

        assert outcome.menu == "A"
        assert supplier.calls == 5
        assert outcome.record.confirmed is True

    def test_reroll_replaces_confirmed_menu(self, selection):
        selection.instant_select_and_confirm("2025-06-12", lambda: "A", actor_id="U1")
        outcome = selection.reroll("2025-06-12", lambda: "C", actor_id="U3")

        assert outcome.menu == "C"
        assert outcome.record.first_actor_id == "U3"

    def test_reroll_clears_stale_weather(self, selection):
        weather = WeatherContext(reason="snow", temperature=0.0, description="눈", indoor_only=True)
        selection.preview("2025-06-12", lambda: MenuChoice("라멘", weather))
        outcome = selection.reroll("2025-06-12", lambda: "피자")
        assert outcome.record.weather_context is None

    def test_reroll_without_record(self, selection):
        outcome = selection.reroll("2025-06-12", lambda: "A")
        assert outcome.created is True
        assert outcome.record.confirmed is True

    def test_invalid_max_attempts(self, selection):
        with pytest.raises(ValueError):
            selection.reroll("2025-06-12", lambda: "A", max_attempts=0)


class TestResetAdmin:
    def test_reset_deletes_record(self, selection):
        supplier = CountingSupplier("Bibimbap", "Ramen")
        selection.preview("2025-06-10", supplier)
        selection.confirm("2025-06-10", actor_id="U1")

        existed, _ = selection.reset_admin("2025-06-10")
        assert existed is True
        assert selection.get_state("2025-06-10") == SelectionState.EMPTY

        assert selection.preview("2025-06-10", supplier).menu == "Ramen"
        assert supplier.calls == 2

    def test_reset_without_record(self, selection):
        existed, _ = selection.reset_admin("2025-06-10")
        assert existed is False


class TestPersistence:
    def test_state_survives_restart(self, selection, state_file):
        selection.preview("2025-06-12", lambda: "Bibimbap")
        selection.confirm("2025-06-12", actor_id="U1")

        reloaded = DailyStateStore(state_file, today=lambda: date(2025, 6, 12))
        reloaded.load()
        assert reloaded.get("2025-06-12").confirmed is True

    def test_save_failure_keeps_decision(self, store):
        def failing_save():
            raise PersistenceFailure("disk full")

        store.save = failing_save
        selection = MenuSelectionService(store)

        selection.preview("2025-06-12", lambda: "Bibimbap")
        outcome = selection.confirm("2025-06-12", actor_id="U1")

        assert outcome.persisted is False
        assert selection.get_state("2025-06-12") == SelectionState.CONFIRMED


class TestConcurrency:
    def test_only_one_confirmation_wins(self, selection):
        """Many users pressing 'instant' at once: exactly one succeeds."""
        barrier = threading.Barrier(8)
        results = []
        lock = threading.Lock()

        def press(user_id):
            barrier.wait()
            try:
                outcome = selection.instant_select_and_confirm(
                    "2025-06-12", lambda: f"menu-{user_id}", actor_id=user_id
                )
                with lock:
                    results.append(("ok", outcome.record.first_actor_id))
            except AlreadyConfirmed:
                with lock:
                    results.append(("refused", user_id))

        threads = [threading.Thread(target=press, args=(f"U{i}",)) for i in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        winners = [r for r in results if r[0] == "ok"]
        assert len(winners) == 1
        assert selection.get_record("2025-06-12").first_actor_id == winners[0][1]

    def test_concurrent_previews_call_supplier_once(self, selection):
        supplier = CountingSupplier("A", "B", "C")
        barrier = threading.Barrier(5)
        menus = []

        def view():
            barrier.wait()
            menus.append(selection.preview("2025-06-12", supplier).menu)

        threads = [threading.Thread(target=view) for _ in range(5)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert supplier.calls == 1
        assert set(menus) == {"A"}
