"""Scheduling engine for generating cleaning rosters."""

from dutyroster.scheduling.assignment_engine import (
    AssignmentEngine,
    EngineResult,
    Pair,
    WeekState,
    collect_pairs,
)
from dutyroster.scheduling.feasibility import FeasibilityResult, WeekFeasibilityChecker
from dutyroster.scheduling.scheduler import ScheduleGenerator

__all__ = [
    # Core
    "ScheduleGenerator",
    "AssignmentEngine",
    "EngineResult",
    "Pair",
    "WeekState",
    "collect_pairs",
    # Audit
    "FeasibilityResult",
    "WeekFeasibilityChecker",
]
