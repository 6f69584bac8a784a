"""Persistence for roster, schedules and workload counters."""

from dutyroster.storage.store import (
    ConcurrentUpdateError,
    CounterStore,
    InMemoryCounterStore,
    JsonFileStore,
)

__all__ = [
    "ConcurrentUpdateError",
    "CounterStore",
    "InMemoryCounterStore",
    "JsonFileStore",
]
