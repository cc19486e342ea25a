"""
Daily State Store

Durable date -> DailyRecord mapping backed by a human-readable JSON file.

Rules:
- Missing or corrupt file => start empty, never fatal
- Records more than RETENTION_DAYS before the load date are pruned on load
- save() rewrites the whole file atomically (temp file + os.replace)
"""

import json
import logging
import os
import tempfile
import threading
from datetime import date, timedelta
from typing import Callable, Dict, List, Optional

from lunchbot.exceptions import PersistenceFailure
from lunchbot.models import DailyRecord
from lunchbot.models.daily_record import RECORD_FIELDS

logger = logging.getLogger(__name__)

RETENTION_DAYS = 7


class DailyStateStore:
    """In-memory record set mirrored to a JSON file."""

    def __init__(self, file_path: str, today: Optional[Callable[[], date]] = None):
        self.file_path = file_path
        self._today = today or date.today
        self._records: Dict[str, DailyRecord] = {}
        self._lock = threading.Lock()

    def load(self) -> int:
        """
        Read persisted records into memory, then run the retention sweep.

        Returns:
            Number of records held after pruning
        """
        records: Dict[str, DailyRecord] = {}

        if not os.path.exists(self.file_path):
            logger.info(f"No existing state file at {self.file_path}, starting fresh")
        else:
            try:
                with open(self.file_path, "r", encoding="utf-8") as f:
                    raw = json.load(f)
                if not isinstance(raw, dict):
                    raise ValueError("state file root is not an object")
            except (OSError, ValueError) as e:
                logger.error(f"Could not read state file {self.file_path}, starting empty: {e}")
                raw = {}

            for date_key, body in raw.items():
                try:
                    records[date_key] = DailyRecord.from_dict(date_key, body)
                except (TypeError, ValueError) as e:
                    logger.warning(f"Skipping invalid record {date_key!r}: {e}")

            logger.info(f"Loaded {len(records)} daily records from {self.file_path}")

        with self._lock:
            self._records = records

        if self.prune(self._today()):
            try:
                self.save()
            except PersistenceFailure as e:
                logger.warning(f"Could not persist pruned state: {e}")

        return len(self._records)

    def save(self) -> None:
        """Persist the full record set. Raises PersistenceFailure on I/O errors."""
        with self._lock:
            payload = {
                key: self._records[key].to_dict() for key in sorted(self._records)
            }
            directory = os.path.dirname(os.path.abspath(self.file_path))
            tmp_path = None
            try:
                os.makedirs(directory, exist_ok=True)
                fd, tmp_path = tempfile.mkstemp(
                    prefix=".state-", suffix=".json", dir=directory
                )
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(payload, f, ensure_ascii=False, indent=2)
                    f.flush()
                    os.fsync(f.fileno())
                os.replace(tmp_path, self.file_path)
                tmp_path = None
            except OSError as e:
                raise PersistenceFailure(
                    f"Failed to save state to {self.file_path}: {e}"
                ) from e
            finally:
                if tmp_path and os.path.exists(tmp_path):
                    os.remove(tmp_path)

        logger.debug(f"Saved {len(payload)} daily records to {self.file_path}")

    def prune(self, reference_date: date) -> int:
        """
        Remove records dated more than RETENTION_DAYS before reference_date.

        Args:
            reference_date: Usually today in the app timezone

        Returns:
            Number of records removed
        """
        cutoff = (reference_date - timedelta(days=RETENTION_DAYS)).isoformat()
        with self._lock:
            stale = [key for key in self._records if key < cutoff]
            for key in stale:
                del self._records[key]

        if stale:
            logger.info(f"Pruned {len(stale)} daily records older than {cutoff}")
        return len(stale)

    def get(self, date_key: str) -> Optional[DailyRecord]:
        with self._lock:
            record = self._records.get(date_key)
            return record.copy() if record else None

    def upsert(self, date_key: str, **patch) -> DailyRecord:
        """Merge patch into the record for date_key, creating it with defaults if needed."""
        unknown = set(patch) - set(RECORD_FIELDS)
        if unknown:
            raise ValueError(f"Unknown record fields: {', '.join(sorted(unknown))}")

        with self._lock:
            current = self._records.get(date_key)
            values = current.to_dict() if current else {}
            if current:
                values["weather_context"] = current.weather_context
            values.update(patch)
            record = DailyRecord(date=date_key, **values)
            self._records[date_key] = record
            return record.copy()

    def delete(self, date_key: str) -> bool:
        with self._lock:
            return self._records.pop(date_key, None) is not None

    def all_records(self) -> List[DailyRecord]:
        with self._lock:
            return [self._records[key].copy() for key in sorted(self._records)]

    def __len__(self):
        with self._lock:
            return len(self._records)
