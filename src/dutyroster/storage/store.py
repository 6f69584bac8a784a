"""Persistence for the roster, generated schedules and workload counters.

Workload counters are versioned: writers must pass the version they read,
and a write against a newer version is refused with ConcurrentUpdateError
so that two generation runs never silently overwrite each other's counts.
"""

import json
import logging
import os
import tempfile
import threading
import time
from abc import ABC, abstractmethod
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator, Optional, Union

from dutyroster.domain.models import Member, Schedule, WorkloadSnapshot

logger = logging.getLogger(__name__)


class ConcurrentUpdateError(RuntimeError):
    """Raised when the stored counters changed since they were read."""

    def __init__(self, expected_version: int, actual_version: int):
        super().__init__(
            f"Workload counters were updated concurrently "
            f"(expected version {expected_version}, found {actual_version})"
        )
        self.expected_version = expected_version
        self.actual_version = actual_version


class CounterStore(ABC):
    """Abstract store for workload counter snapshots."""

    @abstractmethod
    def read(self) -> WorkloadSnapshot:
        """Return the latest snapshot (version 0 and no counts if empty)."""
        pass

    @abstractmethod
    def write(self, counts: dict[str, int], expected_version: int) -> WorkloadSnapshot:
        """Store new counts if the stored version is still expected_version.

        Returns:
            The stored snapshot, with version expected_version + 1.

        Raises:
            ConcurrentUpdateError: If another write happened in between.
        """
        pass


class InMemoryCounterStore(CounterStore):
    """Counter store kept in memory, for tests and one-off runs."""

    def __init__(self, counts: Optional[dict[str, int]] = None):
        self._lock = threading.Lock()
        self._snapshot = WorkloadSnapshot(counts=dict(counts or {}), version=0)

    def read(self) -> WorkloadSnapshot:
        with self._lock:
            return WorkloadSnapshot(dict(self._snapshot.counts), self._snapshot.version)

    def write(self, counts: dict[str, int], expected_version: int) -> WorkloadSnapshot:
        with self._lock:
            if self._snapshot.version != expected_version:
                raise ConcurrentUpdateError(expected_version, self._snapshot.version)
            self._snapshot = WorkloadSnapshot(dict(counts), expected_version + 1)
            return WorkloadSnapshot(dict(counts), self._snapshot.version)


class JsonFileStore(CounterStore):
    """Stores every document as a JSON file in one directory.

    Files:
        members.json: List of members.
        schedules.json: List of saved schedules.
        counters.json: Versioned workload counters.

    Writes go to a temporary file first and are moved into place, so a
    crash never leaves a half-written document behind. Read-modify-write
    operations hold a lock file in the directory, which serializes them
    across store instances and processes.

    Example:
        >>> store = JsonFileStore("data")
        >>> store.save_members(members)
        >>> snapshot = store.read()
    """

    MEMBERS_FILE = "members.json"
    SCHEDULES_FILE = "schedules.json"
    COUNTERS_FILE = "counters.json"
    LOCK_FILE = ".dutyroster.lock"

    def __init__(self, directory: Union[str, Path], lock_timeout_seconds: float = 10.0):
        self.directory = Path(directory)
        self.lock_timeout_seconds = lock_timeout_seconds
        self._lock = threading.Lock()

    # Members

    def load_members(self) -> list[Member]:
        return [Member.from_dict(d) for d in self._read(self.MEMBERS_FILE, [])]

    def save_members(self, members: list[Member]) -> None:
        """Replace the whole roster."""
        self._write(self.MEMBERS_FILE, [m.to_dict() for m in members])

    # Schedules

    def list_schedules(self) -> list[Schedule]:
        """All saved schedules, newest first."""
        schedules = [Schedule.from_dict(d) for d in self._read(self.SCHEDULES_FILE, [])]
        return sorted(schedules, key=lambda s: s.created_at, reverse=True)

    def load_schedule(self, schedule_id: str) -> Schedule:
        """Load one schedule.

        Raises:
            KeyError: If no schedule has this ID.
        """
        for schedule in self.list_schedules():
            if schedule.id == schedule_id:
                return schedule
        raise KeyError(schedule_id)

    def save_schedule(self, schedule: Schedule) -> None:
        with self._locked():
            documents = [
                d for d in self._read(self.SCHEDULES_FILE, []) if d["id"] != schedule.id
            ]
            documents.append(schedule.to_dict())
            self._write(self.SCHEDULES_FILE, documents)

    def delete_schedule(self, schedule_id: str) -> None:
        with self._locked():
            documents = self._read(self.SCHEDULES_FILE, [])
            self._write(
                self.SCHEDULES_FILE, [d for d in documents if d["id"] != schedule_id]
            )

    # Workload counters

    def read(self) -> WorkloadSnapshot:
        return WorkloadSnapshot.from_dict(self._read(self.COUNTERS_FILE, {}))

    def write(self, counts: dict[str, int], expected_version: int) -> WorkloadSnapshot:
        with self._locked():
            current = self.read()
            if current.version != expected_version:
                raise ConcurrentUpdateError(expected_version, current.version)
            snapshot = WorkloadSnapshot(dict(counts), expected_version + 1)
            self._write(self.COUNTERS_FILE, snapshot.to_dict())
            logger.debug("Stored workload counters version %d", snapshot.version)
            return snapshot

    # Files

    @contextmanager
    def _locked(self) -> Iterator[None]:
        """Hold the directory lock file for the duration of the block.

        Raises:
            TimeoutError: If the lock is still held by someone else after
                lock_timeout_seconds. A lock file left by a crashed process
                must be removed by hand.
        """
        self.directory.mkdir(parents=True, exist_ok=True)
        path = self.directory / self.LOCK_FILE
        deadline = time.monotonic() + self.lock_timeout_seconds

        with self._lock:
            while True:
                try:
                    fd = os.open(path, os.O_CREAT | os.O_EXCL | os.O_WRONLY)
                    break
                except FileExistsError:
                    if time.monotonic() >= deadline:
                        raise TimeoutError(f"Could not acquire {path}")
                    time.sleep(0.05)
            os.close(fd)
            try:
                yield
            finally:
                os.unlink(path)

    def _read(self, filename: str, default: Any) -> Any:
        path = self.directory / filename
        if not path.exists():
            return default
        with path.open(encoding="utf-8") as f:
            return json.load(f)

    def _write(self, filename: str, data: Any) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=self.directory, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, ensure_ascii=False, indent=2)
            os.replace(tmp_path, self.directory / filename)
        except BaseException:
            os.unlink(tmp_path)
            raise
