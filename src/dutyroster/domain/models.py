"""Domain models for the duty roster.

This module contains the core data structures used throughout the system:
roster members, duty slots, week assignments, generated schedules and
workload counter snapshots.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from enum import Enum
from typing import Optional

# Value recorded for a slot that no eligible member could fill.
UNFILLED = "—"


class Floor(Enum):
    """Floors of the building that have their own sweeping duty."""

    BASEMENT = "sous-sol"
    GROUND = "rez-de-chaussee"
    FIRST = "1er-etage"


class Role(Enum):
    """Kinds of cleaning duty."""

    SWEEP = "balayeuse"  # Bound to one floor
    FRONT_MOP = "vadrouille-avant"  # All floors, front stairs
    BACK_MOP = "vadrouille-arriere"  # All floors, back stairs


FLOOR_LABELS = {
    Floor.BASEMENT: "Sous-sol",
    Floor.GROUND: "Rez-de-chaussée & vitres de l'entrée",
    Floor.FIRST: "1er étage",
}

FLOOR_SHORT_LABELS = {
    Floor.BASEMENT: "Sous-sol",
    Floor.GROUND: "Rez-de-chaussée",
    Floor.FIRST: "1er étage",
}

ROLE_LABELS = {
    Role.SWEEP: "Balayeuse",
    Role.FRONT_MOP: "Vadrouille avant",
    Role.BACK_MOP: "Vadrouille arrière",
}


@dataclass(frozen=True)
class Slot:
    """One duty to fill each week.

    Attributes:
        key: Stable identifier used as the key in week assignments.
        role: The kind of duty.
        floor: Floor the duty is bound to, or None for duties spanning
            every floor (the mops).
    """

    key: str
    role: Role
    floor: Optional[Floor] = None

    @property
    def spans_all_floors(self) -> bool:
        return self.floor is None

    @property
    def task_label(self) -> str:
        """Human-readable task name, e.g. "Balayeuse - Sous-sol"."""
        if self.floor is None:
            return f"{ROLE_LABELS[self.role]} (tous les étages)"
        return f"{ROLE_LABELS[self.role]} - {FLOOR_SHORT_LABELS[self.floor]}"

    def __repr__(self) -> str:
        floor = self.floor.value if self.floor else "*"
        return f"Slot({self.key}: {self.role.value}@{floor})"


@dataclass
class Member:
    """A person on the cleaning roster.

    Attributes:
        id: Unique identifier for the member.
        name: Display name; this is the value written into week assignments.
        email: Address used for schedule and reminder emails.
        floor_restrictions: If non-empty, floors the member may sweep.
        role_restrictions: If non-empty, the only roles the member may do.
            Members with role restrictions have reduced mobility and never
            get duties spanning all floors.
        paired_with: ID of the member that must work the same weeks.
        active: Inactive members are never scheduled.
    """

    id: str
    name: str
    email: Optional[str] = None
    floor_restrictions: set[Floor] = field(default_factory=set)
    role_restrictions: set[Role] = field(default_factory=set)
    paired_with: Optional[str] = None
    active: bool = True

    @property
    def has_reduced_mobility(self) -> bool:
        return bool(self.role_restrictions)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "floorRestrictions": sorted(f.value for f in self.floor_restrictions),
            "roleRestrictions": sorted(r.value for r in self.role_restrictions),
            "pairedWith": self.paired_with,
            "active": self.active,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Member":
        return cls(
            id=data["id"],
            name=data["name"],
            email=data.get("email") or None,
            floor_restrictions={Floor(v) for v in data.get("floorRestrictions", [])},
            role_restrictions={Role(v) for v in data.get("roleRestrictions", [])},
            paired_with=data.get("pairedWith"),
            active=data.get("active", True),
        )


@dataclass
class WeekAssignment:
    """Resolved slot-to-member mapping for one week.

    Attributes:
        date_label: Localized "<day> <month>" label, e.g. "7 février".
        slots: Dict mapping slot keys to a member name or UNFILLED.
        week_date: Concrete date of the week, when known.
    """

    date_label: str
    slots: dict[str, str] = field(default_factory=dict)
    week_date: Optional[date] = None

    def get(self, slot_key: str) -> str:
        return self.slots.get(slot_key, UNFILLED)

    def is_filled(self, slot_key: str) -> bool:
        return self.get(slot_key) != UNFILLED

    def assigned_names(self) -> list[str]:
        """Names of everyone with a slot this week, in slot order."""
        return [name for name in self.slots.values() if name != UNFILLED]

    def slots_for(self, member_name: str) -> list[str]:
        """Keys of the slots held by a member this week."""
        return [key for key, name in self.slots.items() if name == member_name]

    def to_dict(self) -> dict:
        return {
            "date": self.date_label,
            "weekDate": self.week_date.isoformat() if self.week_date else None,
            "slots": dict(self.slots),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "WeekAssignment":
        week_date = data.get("weekDate")
        return cls(
            date_label=data["date"],
            slots=dict(data.get("slots", {})),
            week_date=date.fromisoformat(week_date) if week_date else None,
        )


@dataclass
class ScheduleRequest:
    """Request parameters for generating a schedule.

    Attributes:
        members: Full roster; inactive members are filtered out.
        start_month: First month of the range (1-12).
        start_year: Year of the first month.
        end_month: Last month of the range (1-12), inclusive.
        end_year: Year of the last month.
        weekday: Duty day, as returned by date.weekday() (default Saturday).
        slots: Slot catalog to fill; None means the default catalog.
        dry_run: If True, the updated workload counters are not persisted.
    """

    members: list[Member]
    start_month: int
    start_year: int
    end_month: int
    end_year: int
    weekday: int = 5
    slots: Optional[tuple[Slot, ...]] = None
    dry_run: bool = False

    @property
    def active_members(self) -> list[Member]:
        return [m for m in self.members if m.active]


@dataclass(frozen=True)
class Schedule:
    """A generated schedule; replaced as a whole, never edited in place.

    Attributes:
        id: Unique identifier.
        title: Label such as "Janvier - Mars 2026".
        weeks: Week assignments in chronological order.
        created_at: UTC timestamp of generation.
    """

    id: str
    title: str
    weeks: tuple[WeekAssignment, ...]
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def num_weeks(self) -> int:
        return len(self.weeks)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "weeks": [w.to_dict() for w in self.weeks],
            "createdAt": self.created_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Schedule":
        return cls(
            id=data["id"],
            title=data["title"],
            weeks=tuple(WeekAssignment.from_dict(w) for w in data.get("weeks", [])),
            created_at=datetime.fromisoformat(data["createdAt"]),
        )


@dataclass(frozen=True)
class WorkloadSnapshot:
    """Versioned per-member count of slots assigned across all runs.

    Attributes:
        counts: Dict mapping member IDs to assignment counts.
        version: Incremented on every successful write.
    """

    counts: dict[str, int] = field(default_factory=dict)
    version: int = 0

    def get(self, member_id: str) -> int:
        return self.counts.get(member_id, 0)

    def to_dict(self) -> dict:
        return {"version": self.version, "counts": dict(self.counts)}

    @classmethod
    def from_dict(cls, data: dict) -> "WorkloadSnapshot":
        return cls(
            counts={k: int(v) for k, v in data.get("counts", {}).items()},
            version=int(data.get("version", 0)),
        )
