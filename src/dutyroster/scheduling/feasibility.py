"""OR-Tools CP-SAT audit of a single week.

The assignment engine is greedy and may leave a slot unfilled or a pair
split when a better assignment exists. The WeekFeasibilityChecker solves
the week exactly so such cases can be told apart from weeks that are
genuinely infeasible. It only reports; it never changes engine output.
"""

from dataclasses import dataclass
from typing import Optional, Sequence

from ortools.sat.python import cp_model

from dutyroster.domain.catalog import DEFAULT_SLOTS
from dutyroster.domain.models import Member, Slot
from dutyroster.domain.policies import DefaultEligibilityPolicy, EligibilityPolicy
from dutyroster.scheduling.assignment_engine import collect_pairs


@dataclass
class FeasibilityResult:
    """Result of auditing one week.

    Attributes:
        status: Solver status (OPTIMAL, FEASIBLE, INFEASIBLE, ...).
        max_filled: Largest number of slots that can be filled with every
            pair scheduled together or not at all.
        total_slots: Number of slots in the catalog.
        assignment: One optimal slot-key to member-ID mapping.
    """

    status: str
    max_filled: int
    total_slots: int
    assignment: dict[str, str]

    @property
    def all_slots_fillable(self) -> bool:
        return self.max_filled == self.total_slots


class WeekFeasibilityChecker:
    """Finds the best pairing-respecting assignment for one week.

    Example:
        >>> checker = WeekFeasibilityChecker()
        >>> checker.check(members).all_slots_fillable
        True
    """

    def __init__(
        self,
        eligibility_policy: Optional[EligibilityPolicy] = None,
        time_limit_seconds: float = 5.0,
    ):
        self.eligibility_policy = eligibility_policy or DefaultEligibilityPolicy()
        self.time_limit_seconds = time_limit_seconds

    def check(
        self,
        members: Sequence[Member],
        slots: Optional[Sequence[Slot]] = None,
    ) -> FeasibilityResult:
        """Solve one week with every active member available.

        Args:
            members: Roster; inactive members are ignored.
            slots: Slot catalog (default: DEFAULT_SLOTS).
        """
        slots = tuple(slots) if slots else DEFAULT_SLOTS
        active = [m for m in members if m.active]
        model = cp_model.CpModel()

        # x[(member_id, slot_key)] = 1 if the member takes the slot
        x: dict[tuple[str, str], cp_model.IntVar] = {}
        for member in active:
            for slot in slots:
                if self.eligibility_policy.can_fill(member, slot):
                    x[(member.id, slot.key)] = model.NewBoolVar(f"x_{member.id}_{slot.key}")

        for slot in slots:
            model.AddAtMostOne([v for (_, key), v in x.items() if key == slot.key])

        taken: dict[str, list[cp_model.IntVar]] = {m.id: [] for m in active}
        for (member_id, _), var in x.items():
            taken[member_id].append(var)
        for member_vars in taken.values():
            model.AddAtMostOne(member_vars)

        for pair in collect_pairs(active):
            first, second = taken[pair.first.id], taken[pair.second.id]
            if first or second:
                model.Add(sum(first) == sum(second))

        if x:
            model.Maximize(sum(x.values()))

        solver = cp_model.CpSolver()
        solver.parameters.max_time_in_seconds = self.time_limit_seconds
        status = solver.Solve(model)

        status_map = {
            cp_model.OPTIMAL: "OPTIMAL",
            cp_model.FEASIBLE: "FEASIBLE",
            cp_model.INFEASIBLE: "INFEASIBLE",
            cp_model.MODEL_INVALID: "MODEL_INVALID",
            cp_model.UNKNOWN: "UNKNOWN",
        }
        status_name = status_map.get(status, "UNKNOWN")

        assignment = {}
        if status in (cp_model.OPTIMAL, cp_model.FEASIBLE):
            for (member_id, key), var in x.items():
                if solver.Value(var):
                    assignment[key] = member_id

        return FeasibilityResult(
            status=status_name,
            max_filled=len(assignment),
            total_slots=len(slots),
            assignment=assignment,
        )
