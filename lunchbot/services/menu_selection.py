"""
Menu Selection Service

Per-date state machine for the alternate lunch menu:

- EMPTY => PREVIEWED via preview
- PREVIEWED => CONFIRMED via confirm
- any state => CONFIRMED via instant select (not from CONFIRMED) or reroll
- CONFIRMED => PREVIEWED via cancel
- Only one confirmation per day; preview/instant on a confirmed day fail
- Preview is idempotent: every viewer sees the same candidate
- cancel keeps the menu, reset_admin deletes the record

Each read-decide-write-persist sequence for a date runs under that date's lock,
so "first confirmation wins" holds with the web thread pool and scheduler
threads running side by side.
"""

import logging
import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Dict, Optional, Tuple, Union

from lunchbot.exceptions import (
    AlreadyConfirmed,
    NoPreview,
    PersistenceFailure,
    SupplierFailure,
)
from lunchbot.models import DailyRecord, MenuChoice, SelectionState
from lunchbot.services.state_store import DailyStateStore

logger = logging.getLogger(__name__)

MenuSupplier = Callable[[], Union[str, MenuChoice]]

DEFAULT_REROLL_ATTEMPTS = 5


@dataclass(frozen=True)
class SelectionOutcome:
    """Result of a successful operation.

    persisted is False when the decision could not be written to disk; it still
    stands for the lifetime of the process.
    """

    record: Optional[DailyRecord]
    persisted: bool = True
    created: bool = False
    changed: bool = True

    @property
    def menu(self) -> Optional[str]:
        return self.record.selected_menu if self.record else None


def _utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


class MenuSelectionService:
    """One-confirmed-menu-per-day policy on top of a DailyStateStore."""

    def __init__(self, store: DailyStateStore, clock: Callable[[], str] = _utc_timestamp):
        self.store = store
        self._clock = clock
        self._locks: Dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def _lock_for(self, date_key: str) -> threading.Lock:
        with self._locks_guard:
            lock = self._locks.get(date_key)
            if lock is None:
                lock = self._locks[date_key] = threading.Lock()
            return lock

    def _persist(self, operation: str, date_key: str) -> bool:
        try:
            self.store.save()
            return True
        except PersistenceFailure as e:
            logger.warning(f"{operation} for {date_key} kept in memory only: {e}")
            return False

    @staticmethod
    def _call_supplier(menu_supplier: MenuSupplier) -> MenuChoice:
        try:
            result = menu_supplier()
        except SupplierFailure:
            raise
        except Exception as e:
            raise SupplierFailure(f"Menu supplier failed: {e}") from e

        if isinstance(result, str):
            result = MenuChoice(menu=result)
        if not isinstance(result, MenuChoice) or not result.menu:
            raise SupplierFailure(f"Menu supplier returned no menu: {result!r}")
        return result

    def get_record(self, date_key: str) -> Optional[DailyRecord]:
        return self.store.get(date_key)

    def get_state(self, date_key: str) -> SelectionState:
        record = self.store.get(date_key)
        return record.state if record else SelectionState.EMPTY

    def preview(self, date_key: str, menu_supplier: MenuSupplier) -> SelectionOutcome:
        """
        Return the day's candidate menu, generating it on first request.

        Raises:
            AlreadyConfirmed: the day is locked in
            SupplierFailure: the supplier raised or returned nothing
        """
        with self._lock_for(date_key):
            record = self.store.get(date_key)
            if record and record.confirmed:
                raise AlreadyConfirmed(record)
            if record and record.selected_menu:
                return SelectionOutcome(record=record, changed=False)

            choice = self._call_supplier(menu_supplier)
            record = self.store.upsert(
                date_key,
                selected_menu=choice.menu,
                weather_context=choice.weather_context,
                confirmed=False,
            )
            logger.info(f"Previewed menu for {date_key}: {choice.menu}")
            persisted = self._persist("preview", date_key)
            return SelectionOutcome(record=record, persisted=persisted, created=True)

    def confirm(self, date_key: str, actor_id: Optional[str] = None) -> SelectionOutcome:
        """
        Lock in the previewed menu. Confirming a confirmed day is a no-op.

        Raises:
            NoPreview: nothing has been previewed for the date
        """
        with self._lock_for(date_key):
            record = self.store.get(date_key)
            if not record or not record.selected_menu:
                raise NoPreview(date_key)
            if record.confirmed:
                return SelectionOutcome(record=record, changed=False)

            record = self.store.upsert(
                date_key,
                confirmed=True,
                first_actor_id=actor_id,
                first_actor_timestamp=self._clock(),
            )
            logger.info(f"Menu for {date_key} confirmed by {actor_id}: {record.selected_menu}")
            persisted = self._persist("confirm", date_key)
            return SelectionOutcome(record=record, persisted=persisted)

    def cancel(self, date_key: str) -> Tuple[bool, SelectionOutcome]:
        """
        Give back the day's confirmation while keeping the candidate menu.

        Returns:
            (whether a record existed, outcome)
        """
        with self._lock_for(date_key):
            record = self.store.get(date_key)
            if record is None:
                return False, SelectionOutcome(record=None)

            record = self.store.upsert(
                date_key,
                confirmed=False,
                first_actor_id=None,
                first_actor_timestamp=None,
            )
            logger.info(f"Cleared confirmation for {date_key}, menu kept: {record.selected_menu}")
            persisted = self._persist("cancel", date_key)
            return True, SelectionOutcome(record=record, persisted=persisted)

    def instant_select_and_confirm(
        self,
        date_key: str,
        menu_supplier: MenuSupplier,
        actor_id: Optional[str] = None,
    ) -> SelectionOutcome:
        """Preview and confirm in one step. Same once-per-day gate as confirm."""
        with self._lock_for(date_key):
            record = self.store.get(date_key)
            if record and record.confirmed:
                raise AlreadyConfirmed(record)

            created = False
            if record and record.selected_menu:
                patch = {}
            else:
                choice = self._call_supplier(menu_supplier)
                patch = {
                    "selected_menu": choice.menu,
                    "weather_context": choice.weather_context,
                }
                created = True

            record = self.store.upsert(
                date_key,
                confirmed=True,
                first_actor_id=actor_id,
                first_actor_timestamp=self._clock(),
                **patch,
            )
            logger.info(f"Menu for {date_key} instantly selected by {actor_id}: {record.selected_menu}")
            persisted = self._persist("instant select", date_key)
            return SelectionOutcome(record=record, persisted=persisted, created=created)

    def reroll(
        self,
        date_key: str,
        menu_supplier: MenuSupplier,
        actor_id: Optional[str] = None,
        max_attempts: int = DEFAULT_REROLL_ATTEMPTS,
    ) -> SelectionOutcome:
        """
        Replace the day's menu with a fresh one and confirm it.

        The supplier is called up to max_attempts times while it keeps returning
        the previous menu; after that the repeat is accepted.
        """
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")

        with self._lock_for(date_key):
            record = self.store.get(date_key)
            previous = record.selected_menu if record else None

            choice = self._call_supplier(menu_supplier)
            attempts = 1
            while choice.menu == previous and attempts < max_attempts:
                choice = self._call_supplier(menu_supplier)
                attempts += 1

            if choice.menu == previous:
                logger.info(f"Reroll for {date_key} kept {previous} after {attempts} attempts")

            record = self.store.upsert(
                date_key,
                selected_menu=choice.menu,
                weather_context=choice.weather_context,
                confirmed=True,
                first_actor_id=actor_id,
                first_actor_timestamp=self._clock(),
            )
            logger.info(f"Menu for {date_key} rerolled by {actor_id}: {previous} -> {choice.menu}")
            persisted = self._persist("reroll", date_key)
            return SelectionOutcome(record=record, persisted=persisted, created=previous is None)

    def reset_admin(self, date_key: str) -> Tuple[bool, SelectionOutcome]:
        """Delete the day's record outright. Authorization is the caller's concern."""
        with self._lock_for(date_key):
            existed = self.store.delete(date_key)
            if not existed:
                return False, SelectionOutcome(record=None)

            logger.info(f"Deleted daily record for {date_key}")
            persisted = self._persist("reset", date_key)
            return True, SelectionOutcome(record=None, persisted=persisted)
