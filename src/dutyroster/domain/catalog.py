"""Slot catalog: the duties filled every week."""

from typing import Iterable, Optional

from dutyroster.domain.models import Floor, Role, Slot

_FLOOR_KEYS = {
    Floor.BASEMENT: "basement",
    Floor.GROUND: "ground",
    Floor.FIRST: "first",
}

_ROLE_KEYS = {
    Role.SWEEP: "sweep",
    Role.FRONT_MOP: "front_mop",
    Role.BACK_MOP: "back_mop",
}

DEFAULT_SLOTS: tuple[Slot, ...] = (
    Slot("sweep_basement", Role.SWEEP, Floor.BASEMENT),
    Slot("sweep_ground", Role.SWEEP, Floor.GROUND),
    Slot("sweep_first", Role.SWEEP, Floor.FIRST),
    Slot("front_mop", Role.FRONT_MOP),
    Slot("back_mop", Role.BACK_MOP),
)


def slot_key(role: Role, floor: Optional[Floor] = None) -> str:
    """Build the conventional key for a (role, floor) pair."""
    if floor is None:
        return _ROLE_KEYS[role]
    return f"{_ROLE_KEYS[role]}_{_FLOOR_KEYS[floor]}"


def build_catalog(entries: Iterable[tuple[Role, Optional[Floor]]]) -> tuple[Slot, ...]:
    """Build a slot catalog from (role, floor-or-None) tuples.

    Repeated entries get a numeric suffix so keys stay unique.

    Raises:
        ValueError: If no entries are given.
    """
    slots = []
    seen: dict[str, int] = {}
    for role, floor in entries:
        key = slot_key(role, floor)
        seen[key] = seen.get(key, 0) + 1
        if seen[key] > 1:
            key = f"{key}_{seen[key]}"
        slots.append(Slot(key, role, floor))
    if not slots:
        raise ValueError("A slot catalog needs at least one slot")
    return tuple(slots)


def floors_in(slots: Iterable[Slot]) -> list[Floor]:
    """Floors that have at least one floor-bound slot, in catalog order."""
    floors = []
    for slot in slots:
        if slot.floor is not None and slot.floor not in floors:
            floors.append(slot.floor)
    return floors
