"""Command-line interface for the duty roster tool."""

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

from dutyroster.domain.catalog import DEFAULT_SLOTS
from dutyroster.domain.models import Floor, Member, Role, Schedule, ScheduleRequest
from dutyroster.output.email_dispatcher import EmailConfig, EmailDispatcher
from dutyroster.output.ics_generator import generate_ics, ics_filename, member_tasks
from dutyroster.output.pdf_generator import PDFGenerator
from dutyroster.scheduling.feasibility import WeekFeasibilityChecker
from dutyroster.scheduling.scheduler import ScheduleGenerator
from dutyroster.storage.store import ConcurrentUpdateError, InMemoryCounterStore, JsonFileStore
from dutyroster.validation.validator import RosterValidator, ScheduleValidator


def create_default_members() -> list[Member]:
    """Create the building's standard roster.

    Everyone sweeps their own floor; one member has reduced mobility and
    one couple is paired.
    """
    roster = [
        # Sous-sol
        ("Isabelle", Floor.BASEMENT), ("Nathalie", Floor.BASEMENT),
        ("Marie M.", Floor.BASEMENT), ("Richard C.", Floor.BASEMENT),
        ("Marie-Josée H.", Floor.BASEMENT), ("Alexis", Floor.BASEMENT),
        ("Louise", Floor.BASEMENT), ("Jade", Floor.BASEMENT),
        # Rez-de-chaussée
        ("Sarah", Floor.GROUND), ("Vivianne", Floor.GROUND),
        ("Ismael", Floor.GROUND), ("Daniel P.", Floor.GROUND),
        ("Alain", Floor.GROUND), ("Marie-Eve", Floor.GROUND),
        ("Parker", Floor.GROUND),
        # 1er étage
        ("Octavio", Floor.FIRST), ("Fabio", Floor.FIRST),
        ("Johanne", Floor.FIRST), ("Ève", Floor.FIRST),
        ("Richard F.", Floor.FIRST), ("Mireille", Floor.FIRST),
        ("Cathy", Floor.FIRST), ("Filipe", Floor.FIRST),
        ("Anderson", Floor.FIRST), ("Daniel R.", Floor.FIRST),
    ]

    members = [
        Member(id=f"M{i + 1:03d}", name=name, floor_restrictions={floor})
        for i, (name, floor) in enumerate(roster)
    ]
    by_name = {m.name: m for m in members}

    by_name["Louise"].paired_with = by_name["Richard C."].id
    by_name["Richard C."].paired_with = by_name["Louise"].id
    by_name["Vivianne"].role_restrictions = {Role.SWEEP}

    return members


def parse_month(value: str) -> tuple[int, int]:
    """Parse "YYYY-MM" into (month, year)."""
    try:
        year_str, month_str = value.split("-")
        year, month = int(year_str), int(month_str)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Expected YYYY-MM, got {value!r}")
    if not 1 <= month <= 12:
        raise argparse.ArgumentTypeError(f"Month out of range in {value!r}")
    return month, year


def print_schedule(schedule: Schedule) -> None:
    """Print a schedule as a text table."""
    print(f"\n{'=' * 60}")
    print(f"{schedule.title}  ({schedule.id})")
    print(f"{'=' * 60}")
    for week in schedule.weeks:
        print(f"\n  {week.date_label}")
        for slot in DEFAULT_SLOTS:
            print(f"    {slot.task_label:<38} {week.get(slot.key)}")


def print_validation(result, label: str) -> None:
    if result.is_valid:
        print(f"\n{label}: PASSED")
    else:
        print(f"\n{label}: FAILED ({len(result.errors)} errors)")
        for error in result.errors[:5]:
            print(f"    - {error}")
        if len(result.errors) > 5:
            print(f"    ... and {len(result.errors) - 5} more errors")

    if result.warnings:
        print(f"\nWarnings ({len(result.warnings)}):")
        for warning in result.warnings[:5]:
            print(f"    - {warning}")
        if len(result.warnings) > 5:
            print(f"    ... and {len(result.warnings) - 5} more warnings")


def print_stats(stats: dict, members: list[Member]) -> None:
    names = {m.id: m.name for m in members}
    print(f"  Weeks: {stats['total_weeks']}")
    print(f"  Slots filled: {stats['filled_slots']}/{stats['total_slots']}")
    print(f"  Unsatisfied pairings: {stats['unsatisfied_pairs']}")
    print(f"  Reconciliation swaps: {stats['swaps']}")
    print(f"  Workload range: {stats['min_count']} - {stats['max_count']}")

    busiest = sorted(stats["assignments_this_run"].items(), key=lambda kv: -kv[1])[:5]
    if busiest:
        print("\nMost assigned this run:")
        for member_id, count in busiest:
            print(f"  {names.get(member_id, member_id)}: {count}")


def run_init(data_dir: str, force: bool = False) -> int:
    store = JsonFileStore(data_dir)
    if store.load_members() and not force:
        print(f"A roster already exists in {data_dir}; use --force to replace it.")
        return 1
    members = create_default_members()
    store.save_members(members)
    print(f"Saved {len(members)} members to {data_dir}")
    return 0


def run_validate_roster(data_dir: str) -> int:
    members = JsonFileStore(data_dir).load_members()
    result = RosterValidator().validate(members)
    print(f"Roster: {len(members)} members ({sum(m.active for m in members)} active)")
    print_validation(result, "Roster validation")
    return 0 if result.is_valid else 1


def run_generate(
    data_dir: str,
    start: tuple[int, int],
    end: tuple[int, int],
    weekday: int = 5,
    pdf_path: Optional[str] = None,
    dry_run: bool = False,
) -> int:
    store = JsonFileStore(data_dir)
    members = store.load_members()
    if not members:
        print(f"No roster in {data_dir}; run 'init' first.")
        return 1

    request = ScheduleRequest(
        members=members,
        start_month=start[0],
        start_year=start[1],
        end_month=end[0],
        end_year=end[1],
        weekday=weekday,
        dry_run=dry_run,
    )

    try:
        schedule, stats = ScheduleGenerator(store).generate_with_stats(request)
    except ValueError as exc:
        print(f"Error: {exc}")
        return 1
    except ConcurrentUpdateError as exc:
        print(f"Error: {exc}. Nothing was saved; try again.")
        return 1
    except TimeoutError as exc:
        print(f"Error: {exc}. Another run may be in progress.")
        return 1

    if not dry_run:
        store.save_schedule(schedule)

    print_schedule(schedule)
    print()
    print_stats(stats, members)

    result = ScheduleValidator().validate(schedule, members)
    print_validation(result, "Validation")

    if pdf_path:
        PDFGenerator().generate(schedule, pdf_path)
        print(f"\nPDF created: {pdf_path}")
    return 0


def _find_schedule(store: JsonFileStore, schedule_id: Optional[str]) -> Optional[Schedule]:
    if schedule_id:
        try:
            return store.load_schedule(schedule_id)
        except KeyError:
            print(f"No schedule with ID {schedule_id}")
            return None
    schedules = store.list_schedules()
    if not schedules:
        print("No saved schedules.")
        return None
    return schedules[0]


def run_list(data_dir: str) -> int:
    schedules = JsonFileStore(data_dir).list_schedules()
    if not schedules:
        print("No saved schedules.")
    for schedule in schedules:
        print(
            f"{schedule.id}  {schedule.created_at:%Y-%m-%d %H:%M}  "
            f"{schedule.title} ({schedule.num_weeks} weeks)"
        )
    return 0


def run_show(data_dir: str, schedule_id: Optional[str], audit: bool = False) -> int:
    store = JsonFileStore(data_dir)
    schedule = _find_schedule(store, schedule_id)
    if schedule is None:
        return 1
    print_schedule(schedule)
    checker = WeekFeasibilityChecker() if audit else None
    result = ScheduleValidator().validate(
        schedule, store.load_members(), feasibility_checker=checker
    )
    print_validation(result, "Validation")
    return 0


def run_ics(
    data_dir: str,
    schedule_id: Optional[str],
    member_name: str,
    year: Optional[int] = None,
    output: Optional[str] = None,
) -> int:
    schedule = _find_schedule(JsonFileStore(data_dir), schedule_id)
    if schedule is None:
        return 1
    tasks = member_tasks(member_name, schedule.weeks, year)
    if not tasks:
        print(f"{member_name} has no tasks in {schedule.title}")
        return 1

    output_path = Path(output or ics_filename(member_name))
    output_path.write_text(generate_ics(member_name, tasks), encoding="utf-8")
    print(f"Wrote {len(tasks)} tasks to {output_path}")
    return 0


def run_send(
    data_dir: str,
    schedule_id: Optional[str],
    test_mode: bool = False,
    message: str = "",
) -> int:
    store = JsonFileStore(data_dir)
    schedule = _find_schedule(store, schedule_id)
    if schedule is None:
        return 1

    try:
        config = EmailConfig.from_env(test_mode=test_mode)
    except ValueError as exc:
        print(f"Error: {exc}")
        return 1
    report = EmailDispatcher(config).send_schedule(
        schedule, [m for m in store.load_members() if m.active], message
    )

    mode = " (test mode)" if test_mode else ""
    print(f"Sent {report.sent}, failed {report.failed}{mode}")
    for result in report.results:
        if not result.success:
            print(f"    - {result.member_name}: {result.error}")
    return 0 if report.failed == 0 else 1


def run_demo(
    start: tuple[int, int],
    end: tuple[int, int],
    output_path: Optional[str] = None,
) -> int:
    """Generate a schedule for the standard roster without touching disk."""
    members = create_default_members()
    print(f"Generating demo schedule for {len(members)} members...")

    request = ScheduleRequest(
        members=members,
        start_month=start[0],
        start_year=start[1],
        end_month=end[0],
        end_year=end[1],
    )
    schedule, stats = ScheduleGenerator(InMemoryCounterStore()).generate_with_stats(request)

    print_schedule(schedule)
    print()
    print_stats(stats, members)
    print_validation(ScheduleValidator().validate(schedule, members), "Validation")

    if output_path:
        print(f"\nGenerating PDF: {output_path}")
        PDFGenerator().generate(schedule, output_path)
        print("  PDF created successfully!")
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point for CLI."""
    parser = argparse.ArgumentParser(
        description="Duty Roster - Household cleaning schedule tool",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s demo --start 2026-01 --end 2026-03        Demo with the standard roster
  %(prog)s init --data-dir data                      Seed the standard roster
  %(prog)s generate --data-dir data --start 2026-01 --end 2026-03 --pdf out.pdf
  %(prog)s show --data-dir data --audit              Show latest schedule with audit
  %(prog)s ics --data-dir data --member "Louise"     Calendar file for one member
  %(prog)s send --data-dir data --test-mode          Email everyone (test address)
        """,
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    def add_data_dir(p):
        p.add_argument(
            "--data-dir", "-D",
            type=str,
            default="data",
            help="Directory holding the roster, schedules and counters (default: data)",
        )

    init_parser = subparsers.add_parser("init", help="Seed the standard roster")
    add_data_dir(init_parser)
    init_parser.add_argument("--force", action="store_true", help="Replace an existing roster")

    validate_parser = subparsers.add_parser("validate-roster", help="Check the roster")
    add_data_dir(validate_parser)

    generate_parser = subparsers.add_parser("generate", help="Generate and save a schedule")
    add_data_dir(generate_parser)
    generate_parser.add_argument("--start", type=parse_month, required=True, help="First month, YYYY-MM")
    generate_parser.add_argument("--end", type=parse_month, required=True, help="Last month, YYYY-MM")
    generate_parser.add_argument(
        "--weekday", "-w",
        type=int,
        default=5,
        choices=range(7),
        help="Duty day, Monday=0 ... Sunday=6 (default: 5, Saturday)",
    )
    generate_parser.add_argument("--pdf", type=str, help="Also write a PDF to this path")
    generate_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Do not save the schedule or the workload counters",
    )

    list_parser = subparsers.add_parser("list", help="List saved schedules")
    add_data_dir(list_parser)

    show_parser = subparsers.add_parser("show", help="Print a saved schedule")
    add_data_dir(show_parser)
    show_parser.add_argument("--schedule", "-s", type=str, help="Schedule ID (default: latest)")
    show_parser.add_argument(
        "--audit",
        action="store_true",
        help="Compare unfilled weeks against the CP-SAT optimum",
    )

    ics_parser = subparsers.add_parser("ics", help="Write a member's calendar file")
    add_data_dir(ics_parser)
    ics_parser.add_argument("--schedule", "-s", type=str, help="Schedule ID (default: latest)")
    ics_parser.add_argument("--member", "-m", type=str, required=True, help="Member name")
    ics_parser.add_argument(
        "--year", "-y",
        type=int,
        help="Year for weeks saved without a date (default: current year)",
    )
    ics_parser.add_argument("--output", "-o", type=str, help="Output .ics path")

    send_parser = subparsers.add_parser("send", help="Email every member their tasks")
    add_data_dir(send_parser)
    send_parser.add_argument("--schedule", "-s", type=str, help="Schedule ID (default: latest)")
    send_parser.add_argument(
        "--test-mode", "-t",
        action="store_true",
        help="Send every message to the test address",
    )
    send_parser.add_argument("--message", type=str, default="", help="Text added to each email")

    demo_parser = subparsers.add_parser("demo", help="Run a demo with the standard roster")
    demo_parser.add_argument("--start", type=parse_month, default=(1, 2026), help="First month, YYYY-MM")
    demo_parser.add_argument("--end", type=parse_month, default=(3, 2026), help="Last month, YYYY-MM")
    demo_parser.add_argument("--output", "-o", type=str, help="Output PDF file path")

    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    if args.command == "init":
        return run_init(args.data_dir, args.force)
    elif args.command == "validate-roster":
        return run_validate_roster(args.data_dir)
    elif args.command == "generate":
        return run_generate(
            args.data_dir, args.start, args.end, args.weekday, args.pdf, args.dry_run
        )
    elif args.command == "list":
        return run_list(args.data_dir)
    elif args.command == "show":
        return run_show(args.data_dir, args.schedule, args.audit)
    elif args.command == "ics":
        return run_ics(args.data_dir, args.schedule, args.member, args.year, args.output)
    elif args.command == "send":
        return run_send(args.data_dir, args.schedule, args.test_mode, args.message)
    elif args.command == "demo":
        return run_demo(args.start, args.end, args.output)
    else:
        parser.print_help()
        return 1


if __name__ == "__main__":
    sys.exit(main())
