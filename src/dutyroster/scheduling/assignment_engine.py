"""Greedy, fairness-aware assignment of members to weekly duty slots.

This module provides the AssignmentEngine, which fills every slot of every
week in a date range with:
- Scarcity ordering (slots with the fewest eligible members go first)
- Least-loaded selection driven by running workload counters
- Pairing priority and a corrective swap pass for paired members

The engine is deterministic: ties are always broken by roster order. It
never raises for infeasible weeks; slots nobody can fill are recorded as
UNFILLED and unsatisfied pairings are reported in the result.
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Iterable, Optional, Sequence

from dutyroster.domain.catalog import DEFAULT_SLOTS
from dutyroster.domain.models import UNFILLED, Member, Slot, WeekAssignment
from dutyroster.domain.policies import DefaultEligibilityPolicy, EligibilityPolicy
from dutyroster.domain.week_calendar import format_date_label

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Pair:
    """Two active members that must work the same weeks."""

    first: Member
    second: Member

    @property
    def ids(self) -> tuple[str, str]:
        return (self.first.id, self.second.id)


def collect_pairs(active: list[Member]) -> list[Pair]:
    """Find the pairs among active members, without duplicates.

    Only mutual references count; a reference to an inactive, unknown or
    non-reciprocating member is ignored.
    """
    by_id = {m.id: m for m in active}
    seen: set[str] = set()
    pairs = []

    for member in active:
        if not member.paired_with or member.id in seen:
            continue
        partner = by_id.get(member.paired_with)
        if partner is None or partner.id == member.id:
            continue
        if partner.paired_with != member.id or partner.id in seen:
            continue
        seen.update((member.id, partner.id))
        pairs.append(Pair(member, partner))

    return pairs


@dataclass
class WeekState:
    """Tracks who holds which slot while a single week is being filled.

    Attributes:
        holders: Dict mapping slot keys to the ID of the member holding it.
        assigned: IDs of members holding a slot this week.
    """

    holders: dict[str, str] = field(default_factory=dict)
    assigned: set[str] = field(default_factory=set)

    def is_assigned(self, member_id: str) -> bool:
        return member_id in self.assigned

    def assign(self, slot_key: str, member_id: str) -> None:
        self.holders[slot_key] = member_id
        self.assigned.add(member_id)

    def release(self, slot_key: str) -> str:
        """Free a slot and return the ID of the member who held it."""
        member_id = self.holders.pop(slot_key)
        self.assigned.discard(member_id)
        return member_id


@dataclass
class EngineResult:
    """Output of an engine run.

    Attributes:
        weeks: Week assignments in chronological order.
        counts: Updated workload counters, keyed by active member ID.
        unfilled: (date label, slot key) for every slot left UNFILLED.
        unsatisfied_pairs: (date label, member ID, member ID) for every week
            in which only one member of a pair got a slot.
        swaps: Number of reconciliation swaps performed.
    """

    weeks: list[WeekAssignment] = field(default_factory=list)
    counts: dict[str, int] = field(default_factory=dict)
    unfilled: list[tuple[str, str]] = field(default_factory=list)
    unsatisfied_pairs: list[tuple[str, str, str]] = field(default_factory=list)
    swaps: int = 0


class AssignmentEngine:
    """Fills the slot catalog week by week.

    For each week, slots are processed from the most to the least
    constrained. Each slot goes to the eligible, not yet assigned member
    with the lowest workload counter. Once every slot is processed, a
    reconciliation pass tries to bring in the missing half of any pair by
    bumping an unpaired member from a slot the partner can fill.

    Example:
        >>> engine = AssignmentEngine()
        >>> result = engine.generate(members, week_dates(1, 2026, 3, 2026), counts)
        >>> result.weeks[0].slots["front_mop"]
        'Alice'
    """

    def __init__(
        self,
        slots: Optional[Sequence[Slot]] = None,
        eligibility_policy: Optional[EligibilityPolicy] = None,
    ):
        """Initialize the engine.

        Args:
            slots: Slot catalog to fill each week (default: DEFAULT_SLOTS).
            eligibility_policy: Policy deciding who may fill which slot.
        """
        self.slots = tuple(slots) if slots else DEFAULT_SLOTS
        self.eligibility_policy = eligibility_policy or DefaultEligibilityPolicy()

    def generate(
        self,
        members: Iterable[Member],
        dates: Iterable[date],
        initial_counts: Optional[dict[str, int]] = None,
    ) -> EngineResult:
        """Assign members to every slot of every week.

        Args:
            members: Roster in display order; inactive members are ignored.
            dates: One date per week, chronological.
            initial_counts: Historical workload counters; missing entries
                default to 0. Not modified.

        Returns:
            EngineResult with the weeks and the updated counters.
        """
        initial_counts = initial_counts or {}
        active = [m for m in members if m.active]
        counts = {m.id: initial_counts.get(m.id, 0) for m in active}

        pairs = collect_pairs(active)
        partners: dict[str, str] = {}
        for pair in pairs:
            partners[pair.first.id] = pair.second.id
            partners[pair.second.id] = pair.first.id

        slot_order = self.order_slots(active)
        logger.debug("Slot order: %s", [s.key for s in slot_order])

        result = EngineResult(counts=counts)
        for week_date in dates:
            week = self._fill_week(week_date, active, pairs, partners, slot_order, result)
            result.weeks.append(week)

        logger.info(
            "Assigned %d weeks for %d active members (%d unfilled slots, "
            "%d unsatisfied pairings, %d swaps)",
            len(result.weeks),
            len(active),
            len(result.unfilled),
            len(result.unsatisfied_pairs),
            result.swaps,
        )
        return result

    def order_slots(self, active: list[Member]) -> list[Slot]:
        """Sort slots by ascending number of eligible members.

        The sort is stable, so ties keep catalog order.
        """
        return sorted(
            self.slots,
            key=lambda slot: len(self.eligibility_policy.eligible_members(slot, active)),
        )

    def _fill_week(
        self,
        week_date: date,
        active: list[Member],
        pairs: list[Pair],
        partners: dict[str, str],
        slot_order: list[Slot],
        result: EngineResult,
    ) -> WeekAssignment:
        """Fill every slot for one week and reconcile pairs."""
        label = format_date_label(week_date)
        counts = result.counts
        state = WeekState()

        for slot in slot_order:
            candidates = [
                m for m in active
                if not state.is_assigned(m.id)
                and self.eligibility_policy.can_fill(m, slot)
            ]
            candidates = self._narrow_to_partner(candidates, pairs, state)
            chosen = self._pick_candidate(candidates, counts, partners, state)

            if chosen is None:
                logger.debug("%s: no candidate for %s", label, slot.key)
                continue

            state.assign(slot.key, chosen.id)
            counts[chosen.id] += 1
            logger.debug(
                "%s: %s -> %s (count %d)", label, slot.key, chosen.name, counts[chosen.id]
            )

        self._reconcile_pairs(label, pairs, partners, state, result)

        names = {m.id: m.name for m in active}
        slots = {}
        for slot in self.slots:
            holder = state.holders.get(slot.key)
            if holder is None:
                slots[slot.key] = UNFILLED
                result.unfilled.append((label, slot.key))
            else:
                slots[slot.key] = names[holder]

        return WeekAssignment(date_label=label, slots=slots, week_date=week_date)

    def _narrow_to_partner(
        self,
        candidates: list[Member],
        pairs: list[Pair],
        state: WeekState,
    ) -> list[Member]:
        """Restrict candidates to the partner of an already assigned member.

        The first pair (in pair order) with exactly one member assigned and
        the other among the candidates wins.
        """
        candidate_ids = {c.id for c in candidates}
        for pair in pairs:
            for present, missing in ((pair.first, pair.second), (pair.second, pair.first)):
                if (
                    state.is_assigned(present.id)
                    and not state.is_assigned(missing.id)
                    and missing.id in candidate_ids
                ):
                    return [missing]
        return candidates

    def _pick_candidate(
        self,
        candidates: list[Member],
        counts: dict[str, int],
        partners: dict[str, str],
        state: WeekState,
    ) -> Optional[Member]:
        """Choose the least-loaded candidate.

        Among those tied on the lowest counter, a member whose partner is
        still unassigned goes first; otherwise roster order decides.
        """
        if not candidates:
            return None

        min_count = min(counts[c.id] for c in candidates)
        pool = [c for c in candidates if counts[c.id] == min_count]

        for candidate in pool:
            partner_id = partners.get(candidate.id)
            if (
                partner_id is not None
                and not state.is_assigned(partner_id)
                and not state.is_assigned(candidate.id)
            ):
                return candidate

        return pool[0]

    def _reconcile_pairs(
        self,
        label: str,
        pairs: list[Pair],
        partners: dict[str, str],
        state: WeekState,
        result: EngineResult,
    ) -> None:
        """Swap the missing half of a pair into a slot held by an unpaired member.

        Slots are scanned in catalog order and only the first usable one is
        taken. Pairs that cannot be fixed are recorded as unsatisfied.
        """
        counts = result.counts

        for pair in pairs:
            first_in = state.is_assigned(pair.first.id)
            if first_in == state.is_assigned(pair.second.id):
                continue

            missing = pair.second if first_in else pair.first
            swapped = False

            for slot in self.slots:
                holder_id = state.holders.get(slot.key)
                if holder_id is None or holder_id in partners:
                    continue
                if not self.eligibility_policy.can_fill(missing, slot):
                    continue

                state.release(slot.key)
                counts[holder_id] -= 1
                state.assign(slot.key, missing.id)
                counts[missing.id] += 1
                result.swaps += 1
                swapped = True
                logger.debug(
                    "%s: %s replaces %s on %s to join their partner",
                    label, missing.name, holder_id, slot.key,
                )
                break

            if not swapped:
                logger.debug("%s: pairing %s/%s left unsatisfied", label, *pair.ids)
                result.unsatisfied_pairs.append((label, pair.first.id, pair.second.id))
