"""iCalendar (.ics) generation for a member's cleaning tasks.

Each task becomes one all-day event. Weeks that carry a concrete date use
it directly; older schedules that only have a "<day> <month>" label are
resolved against the year given by the caller, and tasks whose label
cannot be parsed are left out.
"""

import uuid
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from typing import Iterable, Optional, Sequence

from dutyroster.domain.catalog import DEFAULT_SLOTS
from dutyroster.domain.models import UNFILLED, Slot, WeekAssignment
from dutyroster.domain.week_calendar import parse_date_label

ORGANIZATION = "Coop au pied de la montagne"


@dataclass(frozen=True)
class CalendarTask:
    """One task for one member.

    Attributes:
        date_label: Week label as shown on the schedule.
        task: Task name, e.g. "Balayeuse - Sous-sol".
        year: Year used to resolve the label when task_date is unknown.
        task_date: Concrete date of the task, when known.
    """

    date_label: str
    task: str
    year: int
    task_date: Optional[date] = None

    def resolve_date(self) -> Optional[date]:
        if self.task_date is not None:
            return self.task_date
        return parse_date_label(self.date_label, self.year)


def member_tasks(
    member_name: str,
    weeks: Iterable[WeekAssignment],
    year: Optional[int] = None,
    slots: Optional[Sequence[Slot]] = None,
) -> list[CalendarTask]:
    """Collect every slot held by a member, in week then catalog order.

    Args:
        member_name: Name as written in the week assignments.
        weeks: Week assignments to scan.
        year: Year for weeks without a concrete date (default: this year).
        slots: Slot catalog (default: DEFAULT_SLOTS).
    """
    slots = tuple(slots) if slots else DEFAULT_SLOTS
    if year is None:
        year = date.today().year

    if member_name == UNFILLED:
        return []

    tasks = []
    for week in weeks:
        for slot in slots:
            if week.get(slot.key) == member_name:
                tasks.append(
                    CalendarTask(
                        date_label=week.date_label,
                        task=slot.task_label,
                        year=year,
                        task_date=week.week_date,
                    )
                )
    return tasks


def escape_text(text: str) -> str:
    """Escape a value for an iCalendar TEXT property."""
    return (
        text.replace("\\", "\\\\")
        .replace(";", "\\;")
        .replace(",", "\\,")
        .replace("\n", "\\n")
    )


def fold_line(line: str, limit: int = 75) -> str:
    """Fold a content line so no physical line exceeds limit octets.

    Continuation lines start with a single space. Multi-byte characters
    are never split.
    """
    if len(line.encode("utf-8")) <= limit:
        return line

    parts = []
    current = ""
    size = 0
    width_limit = limit
    for char in line:
        width = len(char.encode("utf-8"))
        if size + width > width_limit:
            parts.append(current)
            current, size = "", 0
            width_limit = limit - 1
        current += char
        size += width
    parts.append(current)
    return "\r\n ".join(parts)


def _format_ics_date(d: date) -> str:
    return d.strftime("%Y%m%d")


def generate_ics(
    member_name: str,
    tasks: Iterable[CalendarTask],
    organization: str = ORGANIZATION,
) -> str:
    """Build a VCALENDAR document with one all-day event per task.

    Returns:
        The calendar as text with CRLF line endings, long lines folded.
    """
    stamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%SZ")

    lines = [
        "BEGIN:VCALENDAR",
        "VERSION:2.0",
        f"PRODID:-//{organization}//Schedule Generator//FR",
        "CALSCALE:GREGORIAN",
        "METHOD:PUBLISH",
        f"X-WR-CALNAME:{escape_text(f'Horaire de ménage - {member_name}')}",
    ]

    for task in tasks:
        task_date = task.resolve_date()
        if task_date is None:
            continue
        lines.extend([
            "BEGIN:VEVENT",
            f"UID:{uuid.uuid4()}@dutyroster",
            f"DTSTAMP:{stamp}",
            f"DTSTART;VALUE=DATE:{_format_ics_date(task_date)}",
            f"DTEND;VALUE=DATE:{_format_ics_date(task_date + timedelta(days=1))}",
            f"SUMMARY:{escape_text(f'Ménage: {task.task}')}",
            "DESCRIPTION:"
            + escape_text(f"Tâche de ménage pour {member_name} - {organization}"),
            f"LOCATION:{escape_text(organization)}",
            "STATUS:CONFIRMED",
            "END:VEVENT",
        ])

    lines.append("END:VCALENDAR")
    return "\r\n".join(fold_line(line) for line in lines) + "\r\n"


def ics_filename(member_name: str) -> str:
    """Attachment file name, e.g. "horaire-menage-jean-tremblay.ics"."""
    return f"horaire-menage-{'-'.join(member_name.lower().split())}.ics"
