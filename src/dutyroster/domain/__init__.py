"""Domain models and business rules for the duty roster."""

from dutyroster.domain.week_calendar import (
    MONTH_NAMES_FR,
    format_date_label,
    format_schedule_title,
    parse_date_label,
    week_dates,
)
from dutyroster.domain.catalog import DEFAULT_SLOTS, build_catalog, floors_in, slot_key
from dutyroster.domain.models import (
    FLOOR_LABELS,
    ROLE_LABELS,
    UNFILLED,
    Floor,
    Member,
    Role,
    Schedule,
    ScheduleRequest,
    Slot,
    WeekAssignment,
    WorkloadSnapshot,
)
from dutyroster.domain.policies import (
    DefaultEligibilityPolicy,
    EligibilityPolicy,
    HomeFloorEligibilityPolicy,
)

__all__ = [
    # Models
    "Floor",
    "Member",
    "Role",
    "Schedule",
    "ScheduleRequest",
    "Slot",
    "WeekAssignment",
    "WorkloadSnapshot",
    "FLOOR_LABELS",
    "ROLE_LABELS",
    "UNFILLED",
    # Catalog
    "DEFAULT_SLOTS",
    "build_catalog",
    "floors_in",
    "slot_key",
    # Calendar
    "MONTH_NAMES_FR",
    "format_date_label",
    "format_schedule_title",
    "parse_date_label",
    "week_dates",
    # Policies
    "DefaultEligibilityPolicy",
    "EligibilityPolicy",
    "HomeFloorEligibilityPolicy",
]
