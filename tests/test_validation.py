"""Tests for roster and schedule validation."""

from datetime import date

import pytest

from dutyroster.domain.catalog import DEFAULT_SLOTS
from dutyroster.domain.models import UNFILLED, Floor, Member, Role, Schedule, WeekAssignment
from dutyroster.validation.validator import (
    RosterError,
    RosterValidator,
    ScheduleValidator,
    ValidationErrorType,
)


def make_week(label: str = "3 janvier", **slots) -> WeekAssignment:
    values = {s.key: UNFILLED for s in DEFAULT_SLOTS}
    values.update(slots)
    return WeekAssignment(date_label=label, slots=values, week_date=date(2026, 1, 3))


def make_schedule(*weeks: WeekAssignment) -> Schedule:
    return Schedule(id="s1", title="Janvier - Janvier 2026", weeks=tuple(weeks))


@pytest.fixture
def members():
    return [
        Member(id="M1", name="Alice"),
        Member(id="M2", name="Bob"),
        Member(id="M3", name="Cathy", floor_restrictions={Floor.BASEMENT}),
        Member(id="M4", name="Dan", role_restrictions={Role.SWEEP}),
        Member(id="M5", name="Eve"),
    ]


@pytest.fixture
def full_week():
    return make_week(
        sweep_basement="Cathy",
        sweep_ground="Dan",
        sweep_first="Alice",
        front_mop="Bob",
        back_mop="Eve",
    )


class TestRosterValidator:
    """Tests for RosterValidator."""

    @pytest.fixture
    def validator(self):
        return RosterValidator()

    def test_valid_roster(self, validator, members):
        result = validator.validate(members)
        assert result.is_valid
        assert result.errors == []
        assert result.warnings == []

    def test_duplicate_id(self, validator, members):
        members.append(Member(id="M1", name="Other"))
        result = validator.validate(members)
        assert not result.is_valid
        assert result.errors[0].error_type == ValidationErrorType.DUPLICATE_MEMBER_ID

    def test_duplicate_name(self, validator, members):
        members.append(Member(id="M9", name="Alice"))
        result = validator.validate(members)
        assert [e.error_type for e in result.errors] == [ValidationErrorType.DUPLICATE_MEMBER_NAME]

    def test_self_pairing(self, validator, members):
        members[0].paired_with = "M1"
        result = validator.validate(members)
        assert result.errors[0].error_type == ValidationErrorType.SELF_PAIRING
        assert result.errors[0].member_id == "M1"

    def test_unknown_partner(self, validator, members):
        members[0].paired_with = "M42"
        result = validator.validate(members)
        assert result.errors[0].error_type == ValidationErrorType.UNKNOWN_PARTNER

    def test_asymmetric_pairing(self, validator, members):
        members[0].paired_with = "M2"
        result = validator.validate(members)
        assert result.errors[0].error_type == ValidationErrorType.ASYMMETRIC_PAIRING

    def test_mutual_pairing_is_valid(self, validator, members):
        members[0].paired_with = "M2"
        members[1].paired_with = "M1"
        assert validator.validate(members).is_valid

    def test_pairing_with_inactive_member_warns(self, validator, members):
        members[0].paired_with = "M2"
        members[1].paired_with = "M1"
        members[1].active = False
        result = validator.validate(members)
        assert result.is_valid
        assert result.warnings == ["Alice is paired with inactive member Bob; the pairing is ignored"]

    def test_member_without_eligible_slot_warns(self, validator, members):
        members.append(Member(id="M6", name="Stuck", role_restrictions={Role.FRONT_MOP}))
        result = validator.validate(members)
        assert result.is_valid
        assert result.warnings == ["Stuck is not eligible for any slot"]

    def test_ensure_valid_raises(self, validator, members):
        members[0].paired_with = "M1"
        with pytest.raises(RosterError, match="self_pairing"):
            validator.ensure_valid(members)

    def test_roster_error_is_value_error(self, validator, members):
        members[0].paired_with = "M1"
        with pytest.raises(ValueError):
            validator.ensure_valid(members)


class TestScheduleValidator:
    """Tests for ScheduleValidator."""

    @pytest.fixture
    def validator(self):
        return ScheduleValidator()

    def test_valid_schedule(self, validator, members, full_week):
        result = validator.validate(make_schedule(full_week), members)
        assert result.is_valid
        assert result.warnings == []

    def test_unfilled_slot_is_warning(self, validator, members, full_week):
        full_week.slots["back_mop"] = UNFILLED
        result = validator.validate(make_schedule(full_week), members)
        assert result.is_valid
        assert result.warnings == ["3 janvier: Vadrouille arrière (tous les étages) is unfilled"]

    def test_double_booking(self, validator, members, full_week):
        full_week.slots["back_mop"] = "Bob"
        result = validator.validate(make_schedule(full_week), members)
        assert not result.is_valid
        assert result.errors[0].error_type == ValidationErrorType.DOUBLE_BOOKED
        assert result.errors[0].member_id == "M2"

    def test_ineligible_assignment(self, validator, members, full_week):
        """Dan only sweeps and cannot take a mop."""
        full_week.slots["sweep_ground"] = "Bob"
        full_week.slots["front_mop"] = "Dan"
        result = validator.validate(make_schedule(full_week), members)
        assert [e.error_type for e in result.errors] == [ValidationErrorType.NOT_ELIGIBLE]

    def test_unknown_member(self, validator, members, full_week):
        full_week.slots["sweep_first"] = "Zoe"
        result = validator.validate(make_schedule(full_week), members)
        assert result.errors[0].error_type == ValidationErrorType.UNKNOWN_MEMBER

    def test_inactive_member_is_unknown(self, validator, members, full_week):
        members[0].active = False
        result = validator.validate(make_schedule(full_week), members)
        assert result.errors[0].error_type == ValidationErrorType.UNKNOWN_MEMBER

    def test_missing_and_unknown_slots(self, validator, members, full_week):
        del full_week.slots["sweep_first"]
        full_week.slots["windows"] = "Alice"
        result = validator.validate(make_schedule(full_week), members)
        types = {e.error_type for e in result.errors}
        assert ValidationErrorType.MISSING_SLOT in types
        assert ValidationErrorType.UNKNOWN_SLOT in types

    def test_split_pair_is_warning(self, validator, members, full_week):
        members.append(Member(id="M6", name="Fay", paired_with="M1"))
        members[0].paired_with = "M6"
        result = validator.validate(make_schedule(full_week), members)
        assert result.is_valid
        assert result.warnings == ["3 janvier: Alice is scheduled without Fay"]

    def test_error_str_includes_context(self, validator, members, full_week):
        full_week.slots["back_mop"] = "Bob"
        error = validator.validate(make_schedule(full_week), members).errors[0]
        assert str(error) == "[double_booked] 3 janvier: Member M2: Bob holds 2 slots"
