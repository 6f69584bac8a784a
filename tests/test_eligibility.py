"""Tests for slot eligibility rules and the slot catalog."""

import pytest

from dutyroster.domain.catalog import DEFAULT_SLOTS, build_catalog, floors_in, slot_key
from dutyroster.domain.models import Floor, Member, Role, Slot
from dutyroster.domain.policies import DefaultEligibilityPolicy, HomeFloorEligibilityPolicy

SWEEP_BASEMENT = Slot("sweep_basement", Role.SWEEP, Floor.BASEMENT)
SWEEP_GROUND = Slot("sweep_ground", Role.SWEEP, Floor.GROUND)
FRONT_MOP = Slot("front_mop", Role.FRONT_MOP)
BACK_MOP = Slot("back_mop", Role.BACK_MOP)


class TestDefaultEligibility:
    """Tests for DefaultEligibilityPolicy."""

    @pytest.fixture
    def policy(self):
        return DefaultEligibilityPolicy()

    def test_unrestricted_member_can_fill_everything(self, policy):
        """A member with no restrictions is eligible for every slot."""
        member = Member(id="M1", name="Alice")
        assert policy.eligible_slots(member, DEFAULT_SLOTS) == list(DEFAULT_SLOTS)

    def test_floor_restriction_limits_sweeping(self, policy):
        """Floor restrictions list the only floors the member may sweep."""
        member = Member(id="M1", name="Alice", floor_restrictions={Floor.BASEMENT})
        assert policy.can_fill(member, SWEEP_BASEMENT) is True
        assert policy.can_fill(member, SWEEP_GROUND) is False

    def test_floor_restriction_does_not_block_mops(self, policy):
        """Mops span every floor and ignore floor restrictions."""
        member = Member(id="M1", name="Alice", floor_restrictions={Floor.BASEMENT})
        assert policy.can_fill(member, FRONT_MOP) is True
        assert policy.can_fill(member, BACK_MOP) is True

    def test_role_restriction_limits_roles(self, policy):
        member = Member(id="M1", name="Alice", role_restrictions={Role.SWEEP})
        assert policy.can_fill(member, SWEEP_BASEMENT) is True
        assert policy.can_fill(member, SWEEP_GROUND) is True
        assert policy.can_fill(member, FRONT_MOP) is False

    def test_reduced_mobility_never_gets_mops(self, policy):
        """A role restriction bars all-floor duties even if it lists the mop role."""
        member = Member(id="M1", name="Alice", role_restrictions={Role.FRONT_MOP})
        assert member.has_reduced_mobility is True
        assert policy.can_fill(member, FRONT_MOP) is False
        assert policy.can_fill(member, SWEEP_BASEMENT) is False

    def test_both_restrictions_combine(self, policy):
        member = Member(
            id="M1",
            name="Alice",
            floor_restrictions={Floor.GROUND},
            role_restrictions={Role.SWEEP},
        )
        assert policy.eligible_slots(member, DEFAULT_SLOTS) == [DEFAULT_SLOTS[1]]

    def test_eligible_members_keeps_roster_order(self, policy):
        members = [
            Member(id="M1", name="Alice", floor_restrictions={Floor.FIRST}),
            Member(id="M2", name="Bob"),
            Member(id="M3", name="Cathy", floor_restrictions={Floor.BASEMENT}),
        ]
        eligible = policy.eligible_members(SWEEP_BASEMENT, members)
        assert [m.id for m in eligible] == ["M2", "M3"]


class TestHomeFloorEligibility:
    """Tests for HomeFloorEligibilityPolicy."""

    @pytest.fixture
    def policy(self):
        return HomeFloorEligibilityPolicy()

    def test_member_without_floor_sweeps_nothing(self, policy):
        """With no floor listed, only all-floor duties remain."""
        member = Member(id="M1", name="Alice")
        assert policy.can_fill(member, SWEEP_BASEMENT) is False
        assert policy.can_fill(member, FRONT_MOP) is True

    def test_member_sweeps_home_floor(self, policy):
        member = Member(id="M1", name="Alice", floor_restrictions={Floor.BASEMENT})
        assert policy.can_fill(member, SWEEP_BASEMENT) is True
        assert policy.can_fill(member, SWEEP_GROUND) is False

    def test_role_rules_still_apply(self, policy):
        member = Member(
            id="M1",
            name="Alice",
            floor_restrictions={Floor.BASEMENT},
            role_restrictions={Role.SWEEP},
        )
        assert policy.can_fill(member, SWEEP_BASEMENT) is True
        assert policy.can_fill(member, BACK_MOP) is False


class TestSlotCatalog:
    """Tests for the slot catalog helpers."""

    def test_default_catalog_has_five_slots(self):
        assert [s.key for s in DEFAULT_SLOTS] == [
            "sweep_basement",
            "sweep_ground",
            "sweep_first",
            "front_mop",
            "back_mop",
        ]

    def test_mops_span_all_floors(self):
        assert [s.spans_all_floors for s in DEFAULT_SLOTS] == [False, False, False, True, True]

    def test_task_labels(self):
        assert DEFAULT_SLOTS[0].task_label == "Balayeuse - Sous-sol"
        assert DEFAULT_SLOTS[3].task_label == "Vadrouille avant (tous les étages)"

    def test_slot_key(self):
        assert slot_key(Role.SWEEP, Floor.GROUND) == "sweep_ground"
        assert slot_key(Role.BACK_MOP) == "back_mop"

    def test_build_catalog_suffixes_duplicates(self):
        slots = build_catalog([
            (Role.SWEEP, Floor.BASEMENT),
            (Role.SWEEP, Floor.BASEMENT),
            (Role.FRONT_MOP, None),
        ])
        assert [s.key for s in slots] == ["sweep_basement", "sweep_basement_2", "front_mop"]

    def test_build_catalog_requires_entries(self):
        with pytest.raises(ValueError):
            build_catalog([])

    def test_floors_in_catalog_order(self):
        assert floors_in(DEFAULT_SLOTS) == [Floor.BASEMENT, Floor.GROUND, Floor.FIRST]
        assert floors_in([FRONT_MOP]) == []


class TestMemberSerialization:
    """Tests for Member.to_dict / from_dict."""

    def test_restrictions_survive_serialization(self):
        member = Member(
            id="M1",
            name="Louise",
            email="louise@example.com",
            floor_restrictions={Floor.BASEMENT},
            role_restrictions={Role.SWEEP},
            paired_with="M2",
        )
        data = member.to_dict()
        assert data["floorRestrictions"] == ["sous-sol"]
        assert data["roleRestrictions"] == ["balayeuse"]
        assert data["pairedWith"] == "M2"
        assert Member.from_dict(data) == member

    def test_from_dict_defaults(self):
        member = Member.from_dict({"id": "M1", "name": "Alice", "email": ""})
        assert member.email is None
        assert member.active is True
        assert member.floor_restrictions == set()
