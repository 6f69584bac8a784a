"""Validation of rosters and generated schedules.

Roster validation runs before generation and rejects structural problems
the engine cannot work around (broken pairings, duplicate names). Schedule
validation checks a generated or hand-edited schedule against the roster;
infeasibility (unfilled slots, unsatisfied pairings) is reported as
warnings because the engine is allowed to leave it for a human to fix.
"""

from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Optional, Sequence

from dutyroster.domain.catalog import DEFAULT_SLOTS
from dutyroster.domain.models import UNFILLED, Member, Schedule, Slot
from dutyroster.domain.policies import DefaultEligibilityPolicy, EligibilityPolicy

if TYPE_CHECKING:
    from dutyroster.scheduling.feasibility import WeekFeasibilityChecker


class ValidationErrorType(Enum):
    """Types of validation errors."""

    DUPLICATE_MEMBER_ID = "duplicate_member_id"
    DUPLICATE_MEMBER_NAME = "duplicate_member_name"
    SELF_PAIRING = "self_pairing"
    UNKNOWN_PARTNER = "unknown_partner"
    ASYMMETRIC_PAIRING = "asymmetric_pairing"
    MISSING_SLOT = "missing_slot"
    UNKNOWN_SLOT = "unknown_slot"
    UNKNOWN_MEMBER = "unknown_member"
    DOUBLE_BOOKED = "double_booked"
    NOT_ELIGIBLE = "not_eligible"


@dataclass
class ValidationError:
    """A single validation error."""

    error_type: ValidationErrorType
    message: str
    member_id: Optional[str] = None
    date_label: Optional[str] = None
    details: dict = field(default_factory=dict)

    def __str__(self) -> str:
        parts = [f"[{self.error_type.value}]"]
        if self.date_label:
            parts.append(f"{self.date_label}:")
        if self.member_id:
            parts.append(f"Member {self.member_id}:")
        parts.append(self.message)
        return " ".join(parts)


@dataclass
class ValidationResult:
    """Result of a validation run."""

    is_valid: bool
    errors: list[ValidationError] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def add_error(self, error: ValidationError) -> None:
        """Add an error and mark as invalid."""
        self.errors.append(error)
        self.is_valid = False

    def add_warning(self, warning: str) -> None:
        """Add a warning (doesn't affect validity)."""
        self.warnings.append(warning)


class RosterError(ValueError):
    """Raised when a roster is structurally invalid."""

    def __init__(self, result: ValidationResult):
        summary = "; ".join(str(e) for e in result.errors[:3])
        if len(result.errors) > 3:
            summary += f" (+{len(result.errors) - 3} more)"
        super().__init__(f"Invalid roster: {summary}")
        self.result = result


class RosterValidator:
    """Checks a roster before it is handed to the assignment engine.

    Example:
        >>> validator = RosterValidator()
        >>> result = validator.validate(members)
        >>> for error in result.errors:
        ...     print(error)
    """

    def __init__(
        self,
        slots: Optional[Sequence[Slot]] = None,
        eligibility_policy: Optional[EligibilityPolicy] = None,
    ):
        self.slots = tuple(slots) if slots else DEFAULT_SLOTS
        self.eligibility_policy = eligibility_policy or DefaultEligibilityPolicy()

    def validate(self, members: Sequence[Member]) -> ValidationResult:
        result = ValidationResult(is_valid=True)
        by_id = {m.id: m for m in members}

        for member_id, count in Counter(m.id for m in members).items():
            if count > 1:
                result.add_error(
                    ValidationError(
                        error_type=ValidationErrorType.DUPLICATE_MEMBER_ID,
                        message=f"ID used by {count} members",
                        member_id=member_id,
                    )
                )

        for name, count in Counter(m.name for m in members).items():
            if count > 1:
                result.add_error(
                    ValidationError(
                        error_type=ValidationErrorType.DUPLICATE_MEMBER_NAME,
                        message=f"Name {name!r} used by {count} members",
                    )
                )

        for member in members:
            self._validate_pairing(member, by_id, result)

            if member.active and not self.eligibility_policy.eligible_slots(member, self.slots):
                result.add_warning(f"{member.name} is not eligible for any slot")

        return result

    def ensure_valid(self, members: Sequence[Member]) -> ValidationResult:
        """Validate and raise RosterError if the roster has errors."""
        result = self.validate(members)
        if not result.is_valid:
            raise RosterError(result)
        return result

    def _validate_pairing(
        self,
        member: Member,
        by_id: dict[str, Member],
        result: ValidationResult,
    ) -> None:
        if not member.paired_with:
            return

        if member.paired_with == member.id:
            result.add_error(
                ValidationError(
                    error_type=ValidationErrorType.SELF_PAIRING,
                    message="Member is paired with themself",
                    member_id=member.id,
                )
            )
            return

        partner = by_id.get(member.paired_with)
        if partner is None:
            result.add_error(
                ValidationError(
                    error_type=ValidationErrorType.UNKNOWN_PARTNER,
                    message=f"Paired with unknown member {member.paired_with}",
                    member_id=member.id,
                )
            )
            return

        if partner.paired_with != member.id:
            result.add_error(
                ValidationError(
                    error_type=ValidationErrorType.ASYMMETRIC_PAIRING,
                    message=f"Paired with {partner.name}, who is not paired back",
                    member_id=member.id,
                )
            )
            return

        if member.active and not partner.active:
            result.add_warning(
                f"{member.name} is paired with inactive member {partner.name}; "
                "the pairing is ignored"
            )


class ScheduleValidator:
    """Validates a schedule against the roster and the slot catalog.

    Example:
        >>> validator = ScheduleValidator()
        >>> result = validator.validate(schedule, members)
        >>> result.is_valid
        True
    """

    def __init__(self, eligibility_policy: Optional[EligibilityPolicy] = None):
        self.eligibility_policy = eligibility_policy or DefaultEligibilityPolicy()

    def validate(
        self,
        schedule: Schedule,
        members: Sequence[Member],
        slots: Optional[Sequence[Slot]] = None,
        feasibility_checker: Optional["WeekFeasibilityChecker"] = None,
    ) -> ValidationResult:
        """Validate every week of a schedule.

        Args:
            schedule: The schedule to validate.
            members: The roster the schedule was generated from.
            slots: Slot catalog (default: DEFAULT_SLOTS).
            feasibility_checker: If given, weeks with unfilled slots are
                compared against the best pairing-respecting assignment.

        Returns:
            ValidationResult with is_valid flag, errors and warnings.
        """
        slots = tuple(slots) if slots else DEFAULT_SLOTS
        result = ValidationResult(is_valid=True)
        active = [m for m in members if m.active]
        by_name = {m.name: m for m in active}
        by_id = {m.id: m for m in active}
        catalog_keys = {s.key for s in slots}

        for week in schedule.weeks:
            label = week.date_label

            for slot in slots:
                if slot.key not in week.slots:
                    result.add_error(
                        ValidationError(
                            error_type=ValidationErrorType.MISSING_SLOT,
                            message=f"No value for slot {slot.key}",
                            date_label=label,
                        )
                    )
            for key in week.slots:
                if key not in catalog_keys:
                    result.add_error(
                        ValidationError(
                            error_type=ValidationErrorType.UNKNOWN_SLOT,
                            message=f"Unknown slot {key}",
                            date_label=label,
                        )
                    )

            for name, count in Counter(week.assigned_names()).items():
                if count > 1:
                    member = by_name.get(name)
                    result.add_error(
                        ValidationError(
                            error_type=ValidationErrorType.DOUBLE_BOOKED,
                            message=f"{name} holds {count} slots",
                            member_id=member.id if member else None,
                            date_label=label,
                        )
                    )

            for slot in slots:
                name = week.get(slot.key)
                if name == UNFILLED:
                    result.add_warning(f"{label}: {slot.task_label} is unfilled")
                    continue
                member = by_name.get(name)
                if member is None:
                    result.add_error(
                        ValidationError(
                            error_type=ValidationErrorType.UNKNOWN_MEMBER,
                            message=f"{name!r} is not an active member",
                            date_label=label,
                        )
                    )
                elif not self.eligibility_policy.can_fill(member, slot):
                    result.add_error(
                        ValidationError(
                            error_type=ValidationErrorType.NOT_ELIGIBLE,
                            message=f"{name} cannot do {slot.task_label}",
                            member_id=member.id,
                            date_label=label,
                        )
                    )

            assigned = set(week.assigned_names())
            for member in active:
                partner = by_id.get(member.paired_with) if member.paired_with else None
                if partner is None or partner.paired_with != member.id:
                    continue
                if member.name in assigned and partner.name not in assigned:
                    result.add_warning(
                        f"{label}: {member.name} is scheduled without {partner.name}"
                    )

            if feasibility_checker is not None:
                filled = len([s for s in slots if week.is_filled(s.key)])
                if filled < len(slots):
                    feasibility = feasibility_checker.check(active, slots)
                    if feasibility.max_filled > filled:
                        result.add_warning(
                            f"{label}: {filled} of {len(slots)} slots filled, "
                            f"but {feasibility.max_filled} could be"
                        )

        return result
