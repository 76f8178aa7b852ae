"""Rolling sleep history store.

A local JSON file holding one SleepRecord per date, sorted ascending by date
and capped at the most recent HISTORY_DAYS entries. The file is read and
rewritten around every change with no locking: two concurrent invocations
can lose an update (last writer wins).
"""

from collections.abc import Sequence
from pathlib import Path

import structlog
from pydantic import TypeAdapter, ValidationError

from whoop_cli.models.sleep_history import SleepRecord

logger = structlog.get_logger()

HISTORY_DAYS = 14  # Two weeks of history

_records_adapter = TypeAdapter(list[SleepRecord])


class SleepHistoryStore:
    """File-backed store of recent sleep records."""

    def __init__(self, path: Path, max_records: int = HISTORY_DAYS) -> None:
        """Initialize history store.

        Args:
            path: JSON file backing the store
            max_records: How many records survive a save
        """
        self.path = Path(path)
        self.max_records = max_records
        self.logger = logger.bind(service="history", path=str(self.path))

    def load(self) -> list[SleepRecord]:
        """Load history from disk.

        Missing, unreadable or corrupt files yield an empty history so wake
        detection falls back to its cold-start defaults.
        """
        if not self.path.exists():
            return []

        try:
            return _records_adapter.validate_json(self.path.read_bytes())
        except (OSError, ValidationError) as e:
            self.logger.warning("Sleep history unreadable, starting fresh", error=str(e))
            return []

    def save(self, records: Sequence[SleepRecord]) -> None:
        """Persist records, keeping only the last max_records elements."""
        trimmed = list(records)[-self.max_records :]
        if len(trimmed) < len(records):
            self.logger.debug("Trimmed sleep history", dropped=len(records) - len(trimmed))

        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_bytes(_records_adapter.dump_json(trimmed, by_alias=True, indent=2))

    def upsert(self, record: SleepRecord) -> None:
        """Insert or replace the record for record.date, then re-sort and save."""
        history = self.load()

        for i, existing in enumerate(history):
            if existing.date == record.date:
                history[i] = record
                break
        else:
            history.append(record)

        # String order is date order for YYYY-MM-DD
        history.sort(key=lambda r: r.date)
        self.save(history)

        self.logger.debug("Sleep record upserted", date=record.date, records=len(history))
