"""Policy definitions for slot eligibility.

Eligibility rules are kept separate from the assignment engine so they can
be tested on their own and swapped without touching the engine.
"""

from abc import ABC, abstractmethod
from typing import Iterable

from dutyroster.domain.models import Member, Slot


class EligibilityPolicy(ABC):
    """Abstract base class for deciding who may fill a slot."""

    @abstractmethod
    def can_fill(self, member: Member, slot: Slot) -> bool:
        """Check if a member may be assigned to a slot (hard constraints only)."""
        pass

    def eligible_slots(self, member: Member, slots: Iterable[Slot]) -> list[Slot]:
        """Slots the member may fill, in catalog order."""
        return [slot for slot in slots if self.can_fill(member, slot)]

    def eligible_members(self, slot: Slot, members: Iterable[Member]) -> list[Member]:
        """Members who may fill the slot, in roster order."""
        return [member for member in members if self.can_fill(member, slot)]


class DefaultEligibilityPolicy(EligibilityPolicy):
    """Standard eligibility rules.

    - Role restrictions, when present, list the only roles allowed.
    - Floor restrictions, when present, list the only floors a member may
      sweep. An empty set means any floor.
    - Duties spanning every floor are off limits to anyone with a role
      restriction, whatever roles the restriction lists.
    """

    def can_fill(self, member: Member, slot: Slot) -> bool:
        if member.has_reduced_mobility and slot.role not in member.role_restrictions:
            return False

        if slot.floor is not None:
            if member.floor_restrictions and slot.floor not in member.floor_restrictions:
                return False
        elif member.has_reduced_mobility:
            return False

        return True


class HomeFloorEligibilityPolicy(DefaultEligibilityPolicy):
    """Members only sweep the floors they are listed on.

    Unlike the default policy, a member with no floor listed sweeps no
    floor at all and can only take duties spanning every floor.
    """

    def can_fill(self, member: Member, slot: Slot) -> bool:
        if slot.floor is not None and slot.floor not in member.floor_restrictions:
            return False
        return super().can_fill(member, slot)
