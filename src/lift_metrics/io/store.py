"""
Storage for workout logs, personal records and progress entries.

The engine talks to storage only through the Store protocol.  Two
implementations are provided:

- InMemoryStore: dict-backed, used by tests and embedding applications.
- JsonStore: the same semantics persisted to a data directory
  (workouts.jsonl, progress.jsonl, records.json).

replace_record() is a compare-and-swap: it only succeeds when the live
record for the key is still the one the caller read.  JsonStore runs every
write under an exclusive lock on the data directory and compares against
what is on disk, so several processes can share one directory.
"""

import contextlib
import fcntl
import json
import os
import threading
from datetime import date, datetime
from pathlib import Path
from typing import Protocol

from ..core.errors import ConflictError, ValidationError
from ..core.models import PersonalRecord, ProgressEntry, WorkoutLog
from ..core.reports import window_bounds
from .serializers import (
    dict_to_personal_record,
    dict_to_progress_entry,
    dict_to_workout_log,
    personal_record_to_dict,
    progress_entry_to_dict,
    to_json_line,
    workout_log_to_dict,
)

RecordKey = tuple[str, str, str]

_RECORD_SORT_KEYS = {
    "value": lambda r: r.value,
    "date_achieved": lambda r: r.date_achieved,
    "improvement": lambda r: r.improvement,
}


class Store(Protocol):
    """Storage collaborator used by the engine."""

    def get_best_record(
        self, user_id: str, exercise_id: str, record_type: str
    ) -> PersonalRecord | None: ...

    def replace_record(
        self, old: PersonalRecord | None, new: PersonalRecord
    ) -> PersonalRecord: ...

    def list_records(
        self,
        *,
        user_id: str | None = None,
        exercise_id: str | None = None,
        record_type: str | None = None,
        since: datetime | None = None,
        sort: str = "-date_achieved",
        limit: int | None = None,
    ) -> list[PersonalRecord]: ...

    def list_workout_logs(
        self,
        *,
        user_id: str | None = None,
        start: date | None = None,
        end: date | None = None,
        exercise_id: str | None = None,
    ) -> list[WorkoutLog]: ...

    def list_progress_entries(
        self,
        *,
        user_id: str | None = None,
        start: date | None = None,
        end: date | None = None,
        before: date | None = None,
    ) -> list[ProgressEntry]: ...

    def save_workout_log(self, log: WorkoutLog) -> None: ...

    def save_progress_entry(self, entry: ProgressEntry) -> None: ...


def sort_records(records: list[PersonalRecord], sort: str) -> list[PersonalRecord]:
    """
    Sort records by "field" or "-field" (descending).

    Args:
        records: Records to sort
        sort: One of value, date_achieved, improvement, optionally prefixed by "-"

    Raises:
        ValidationError: If the sort field is unknown
    """
    descending = sort.startswith("-")
    field_name = sort.lstrip("-")
    key = _RECORD_SORT_KEYS.get(field_name)
    if key is None:
        raise ValidationError(
            f"Invalid sort: {sort!r}. Must be one of {sorted(_RECORD_SORT_KEYS)}"
        )
    return sorted(records, key=key, reverse=descending)


class InMemoryStore:
    """
    Dict-backed Store.

    One live PersonalRecord per (user, exercise, record type) key; a lock
    makes replace_record() an atomic compare-and-swap.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._records: dict[RecordKey, PersonalRecord] = {}
        self._logs: dict[str, WorkoutLog] = {}
        self._entries: dict[str, ProgressEntry] = {}

    # -- personal records ---------------------------------------------------

    def get_best_record(
        self, user_id: str, exercise_id: str, record_type: str
    ) -> PersonalRecord | None:
        """Return the live record for the key, or None."""
        with self._lock:
            return self._records.get((user_id, exercise_id, record_type))

    def replace_record(self, old: PersonalRecord | None, new: PersonalRecord) -> PersonalRecord:
        """
        Replace the live record for new.key, expecting it to still be *old*.

        Args:
            old: The record the caller read (None if it saw no record)
            new: The record to install

        Returns:
            The installed record

        Raises:
            ConflictError: If another writer changed the key since *old* was read
        """
        with self._lock:
            current = self._records.get(new.key)
            current_id = current.record_id if current is not None else None
            expected_id = old.record_id if old is not None else None
            if current_id != expected_id:
                raise ConflictError(
                    f"Record for {new.key} changed concurrently "
                    f"(expected {expected_id}, found {current_id})",
                    key=new.key,
                )
            self._records[new.key] = new
            self._after_record_write()
            return new

    def list_records(
        self,
        *,
        user_id: str | None = None,
        exercise_id: str | None = None,
        record_type: str | None = None,
        since: datetime | None = None,
        sort: str = "-date_achieved",
        limit: int | None = None,
    ) -> list[PersonalRecord]:
        """Return live records matching every given filter."""
        with self._lock:
            records = list(self._records.values())
        records = [
            r
            for r in records
            if (user_id is None or r.user_id == user_id)
            and (exercise_id is None or r.exercise_id == exercise_id)
            and (record_type is None or r.record_type == record_type)
            and (since is None or r.date_achieved >= since)
        ]
        records = sort_records(records, sort)
        return records[:limit] if limit is not None else records

    # -- workout logs -------------------------------------------------------

    def save_workout_log(self, log: WorkoutLog) -> None:
        """Insert or replace a workout log by log_id."""
        with self._lock:
            self._logs[log.log_id] = log
            self._after_log_write()

    def list_workout_logs(
        self,
        *,
        user_id: str | None = None,
        start: date | None = None,
        end: date | None = None,
        exercise_id: str | None = None,
    ) -> list[WorkoutLog]:
        """Return logs in [start, end] (inclusive), oldest first."""
        lo, hi = window_bounds(start, end)
        with self._lock:
            logs = list(self._logs.values())
        logs = [
            log
            for log in logs
            if (user_id is None or log.user_id == user_id)
            and (lo is None or log.completed_at >= lo)
            and (hi is None or log.completed_at <= hi)
            and (exercise_id is None or any(e.exercise_id == exercise_id for e in log.exercises))
        ]
        return sorted(logs, key=lambda log: log.completed_at)

    # -- progress entries ---------------------------------------------------

    def save_progress_entry(self, entry: ProgressEntry) -> None:
        """Insert or replace a progress entry by entry_id."""
        with self._lock:
            self._entries[entry.entry_id] = entry
            self._after_entry_write()

    def list_progress_entries(
        self,
        *,
        user_id: str | None = None,
        start: date | None = None,
        end: date | None = None,
        before: date | None = None,
    ) -> list[ProgressEntry]:
        """Return entries in [start, end] and strictly before *before*, oldest first."""
        with self._lock:
            entries = list(self._entries.values())
        entries = [
            e
            for e in entries
            if (user_id is None or e.user_id == user_id)
            and (start is None or e.date >= start)
            and (end is None or e.date <= end)
            and (before is None or e.date < before)
        ]
        return sorted(entries, key=lambda e: e.date)

    # -- persistence hooks (no-ops in memory) -------------------------------

    def _after_record_write(self) -> None:
        pass

    def _after_log_write(self) -> None:
        pass

    def _after_entry_write(self) -> None:
        pass


class JsonStore(InMemoryStore):
    """
    Store persisted to a data directory.

    Files:
    - workouts.jsonl: one workout log per line, sorted by completion time
    - progress.jsonl: one progress entry per line, sorted by date
    - records.json:   list of live personal records

    The whole directory is loaded on construction.  Each write takes an
    exclusive flock on .lock, reloads the files, applies the change against
    that fresh state and rewrites the affected file.
    """

    def __init__(self, data_dir: str | Path):
        """
        Initialize the store.

        Args:
            data_dir: Directory holding the data files
        """
        super().__init__()
        self.data_dir = Path(data_dir)
        self.workouts_path = self.data_dir / "workouts.jsonl"
        self.progress_path = self.data_dir / "progress.jsonl"
        self.records_path = self.data_dir / "records.json"
        self.lock_path = self.data_dir / ".lock"
        self._load()

    def exists(self) -> bool:
        """Check if the data directory has been initialized."""
        return self.workouts_path.exists()

    def init(self) -> None:
        """
        Create the data directory and empty data files if they don't exist.
        """
        self.data_dir.mkdir(parents=True, exist_ok=True)
        for path in (self.workouts_path, self.progress_path):
            if not path.exists():
                path.touch()
        if not self.records_path.exists():
            self.records_path.write_text("[]")

    @contextlib.contextmanager
    def _file_lock(self):
        self.data_dir.mkdir(parents=True, exist_ok=True)
        with open(self.lock_path, "w") as f:
            fcntl.flock(f, fcntl.LOCK_EX)
            try:
                yield
            finally:
                fcntl.flock(f, fcntl.LOCK_UN)

    def _reload(self) -> None:
        self._records.clear()
        self._logs.clear()
        self._entries.clear()
        self._load()

    def replace_record(self, old: PersonalRecord | None, new: PersonalRecord) -> PersonalRecord:
        """
        Compare-and-swap against the records on disk.

        Raises:
            ConflictError: If any writer, in this process or another, changed
                the key since *old* was read
        """
        with self._lock, self._file_lock():
            self._reload()
            return super().replace_record(old, new)

    def save_workout_log(self, log: WorkoutLog) -> None:
        with self._lock, self._file_lock():
            self._reload()
            super().save_workout_log(log)

    def save_progress_entry(self, entry: ProgressEntry) -> None:
        with self._lock, self._file_lock():
            self._reload()
            super().save_progress_entry(entry)

    def _load(self) -> None:
        for log in self._read_jsonl(self.workouts_path, dict_to_workout_log):
            self._logs[log.log_id] = log
        for entry in self._read_jsonl(self.progress_path, dict_to_progress_entry):
            self._entries[entry.entry_id] = entry
        if self.records_path.exists():
            try:
                with open(self.records_path, "r") as f:
                    raw = json.load(f)
                for data in raw:
                    record = dict_to_personal_record(data)
                    self._records[record.key] = record
            except (json.JSONDecodeError, KeyError, TypeError) as e:
                raise ValidationError(f"Error parsing {self.records_path}: {e}") from e

    @staticmethod
    def _read_jsonl(path: Path, parse):
        if not path.exists():
            return []
        items = []
        with open(path, "r") as f:
            for line_num, line in enumerate(f, 1):
                line = line.strip()
                if not line:
                    continue
                try:
                    items.append(parse(json.loads(line)))
                except (json.JSONDecodeError, KeyError, TypeError, ValidationError) as e:
                    raise ValidationError(f"Error parsing line {line_num} in {path}: {e}") from e
        return items

    def _write_atomic(self, path: Path, content: str) -> None:
        self.data_dir.mkdir(parents=True, exist_ok=True)
        tmp = path.with_suffix(path.suffix + ".tmp")
        with open(tmp, "w") as f:
            f.write(content)
        os.replace(tmp, path)

    def _after_record_write(self) -> None:
        records = sorted(self._records.values(), key=lambda r: (r.user_id, r.exercise_id, r.record_type))
        self._write_atomic(
            self.records_path,
            json.dumps([personal_record_to_dict(r) for r in records], indent=2),
        )

    def _after_log_write(self) -> None:
        logs = sorted(self._logs.values(), key=lambda log: log.completed_at)
        self._write_atomic(
            self.workouts_path,
            "".join(to_json_line(workout_log_to_dict(log)) + "\n" for log in logs),
        )

    def _after_entry_write(self) -> None:
        entries = sorted(self._entries.values(), key=lambda e: e.date)
        self._write_atomic(
            self.progress_path,
            "".join(to_json_line(progress_entry_to_dict(e)) + "\n" for e in entries),
        )


def get_default_data_dir() -> Path:
    """
    Get the default data directory.

    Returns:
        ~/.lift-metrics
    """
    return Path.home() / ".lift-metrics"
