"""Main scheduler interface.

This module provides the high-level ScheduleGenerator that runs one
generation request end to end: roster validation, week calendar, the
assignment engine, and the read-modify-write of the workload counters.
"""

import logging
import uuid
from typing import Optional

from dutyroster.domain.catalog import DEFAULT_SLOTS
from dutyroster.domain.models import Schedule, ScheduleRequest
from dutyroster.domain.policies import EligibilityPolicy
from dutyroster.domain.week_calendar import format_schedule_title, week_dates
from dutyroster.scheduling.assignment_engine import AssignmentEngine, EngineResult
from dutyroster.storage.store import ConcurrentUpdateError, CounterStore
from dutyroster.validation.validator import RosterValidator

logger = logging.getLogger(__name__)


class ScheduleGenerator:
    """High-level generator for multi-week cleaning schedules.

    The counter snapshot is read once, the engine runs on it, and the new
    counts are written back with the version that was read. If another run
    wrote the counters in between, ConcurrentUpdateError is raised and
    nothing is stored, so the caller can simply retry.

    Example:
        >>> generator = ScheduleGenerator(InMemoryCounterStore())
        >>> request = ScheduleRequest(
        ...     members=members,
        ...     start_month=1, start_year=2026,
        ...     end_month=3, end_year=2026,
        ... )
        >>> schedule = generator.generate(request)
    """

    def __init__(
        self,
        counter_store: CounterStore,
        eligibility_policy: Optional[EligibilityPolicy] = None,
    ):
        """Initialize the generator.

        Args:
            counter_store: Where workload counters are read and written.
            eligibility_policy: Policy shared by validation and the engine.
        """
        self.counter_store = counter_store
        self.eligibility_policy = eligibility_policy

    def generate(self, request: ScheduleRequest) -> Schedule:
        """Generate a schedule and persist the updated counters.

        Raises:
            RosterError: If the roster is structurally invalid.
            ConcurrentUpdateError: If the counters changed during the run.
            ValueError: If the month or weekday arguments are out of range.
        """
        schedule, _ = self.generate_with_stats(request)
        return schedule

    def generate_with_stats(self, request: ScheduleRequest) -> tuple[Schedule, dict]:
        """Generate a schedule and return statistics.

        Returns:
            Tuple of (schedule, stats_dict).
        """
        slots = request.slots or DEFAULT_SLOTS
        RosterValidator(slots, self.eligibility_policy).ensure_valid(request.members)

        dates = week_dates(
            request.start_month,
            request.start_year,
            request.end_month,
            request.end_year,
            request.weekday,
        )
        snapshot = self.counter_store.read()

        engine = AssignmentEngine(slots, self.eligibility_policy)
        result = engine.generate(request.members, dates, snapshot.counts)

        # Inactive members keep their history.
        counts = dict(snapshot.counts)
        counts.update(result.counts)

        if request.dry_run:
            logger.info("Dry run: workload counters left at version %d", snapshot.version)
        else:
            try:
                stored = self.counter_store.write(counts, snapshot.version)
            except ConcurrentUpdateError:
                logger.warning("Workload counters changed during generation; nothing saved")
                raise
            logger.info("Workload counters saved as version %d", stored.version)

        schedule = Schedule(
            id=uuid.uuid4().hex,
            title=format_schedule_title(
                request.start_month,
                request.start_year,
                request.end_month,
                request.end_year,
            ),
            weeks=tuple(result.weeks),
        )

        return schedule, self._compute_stats(request, result, snapshot.counts, len(slots))

    def _compute_stats(
        self,
        request: ScheduleRequest,
        result: EngineResult,
        initial_counts: dict[str, int],
        slots_per_week: int,
    ) -> dict:
        """Summarize a run for display."""
        total_slots = len(result.weeks) * slots_per_week
        assignments = {
            member_id: count - initial_counts.get(member_id, 0)
            for member_id, count in result.counts.items()
        }
        values = list(result.counts.values())

        return {
            "total_weeks": len(result.weeks),
            "total_slots": total_slots,
            "filled_slots": total_slots - len(result.unfilled),
            "unfilled_slots": len(result.unfilled),
            "unsatisfied_pairs": len(result.unsatisfied_pairs),
            "swaps": result.swaps,
            "active_members": len(request.active_members),
            "assignments_this_run": assignments,
            "min_count": min(values) if values else 0,
            "max_count": max(values) if values else 0,
            "counts": dict(result.counts),
        }
