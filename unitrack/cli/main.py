"""
UniTrack CLI

Command-line interface for the UniTrack attendance planner.
"""

import logging
import math
from datetime import date

import click
from rich.console import Console
from rich.table import Table
from rich.panel import Panel

from ..core.config import (
    load_config, save_config, CONFIG_FILE, MIN_THRESHOLD, MAX_THRESHOLD,
)
from ..core.calculator import AttendanceCalculator, Status, Verdict
from ..core.models import TIMETABLE_DAYS
from ..core.planner import calculate_vacation_impact, find_best_windows, get_vacation_days
from ..core.storage import (
    import_subjects, load_attendance, load_timetable, save_timetable, load_holidays, parse_date,
)

console = Console()

DAY_NAMES = ['Mon', 'Tue', 'Wed', 'Thu', 'Fri', 'Sat']
STATUS_COLORS = {
    Status.SAFE: 'green',
    Status.CRITICAL: 'yellow',
    Status.LOW: 'red',
    Status.NO_DATA: 'dim',
}
VERDICT_LABELS = {
    Verdict.SKIP: '[green]Can skip[/green]',
    Verdict.RISKY: '[yellow]Risky[/yellow]',
    Verdict.ATTEND: '[red]Must attend[/red]',
    Verdict.NO_DATA: '[dim]No data[/dim]',
}


def _fail(message: str):
    console.print(f"[red]{message}[/red]")
    raise SystemExit(1)


def _load_attendance():
    try:
        return load_attendance()
    except ValueError as e:
        _fail(f"Error reading attendance: {e}")


def _load_timetable():
    try:
        timetable = load_timetable()
    except ValueError as e:
        _fail(f"Error reading timetable: {e}")
    if not timetable:
        console.print("[yellow]No timetable set. Use 'unitrack timetable set' first.[/yellow]")
    return timetable


def _parse_date_arg(value):
    try:
        return parse_date(value)
    except ValueError as e:
        raise click.BadParameter(str(e))


def _parse_sizes(value):
    try:
        sizes = [int(v) for v in value.split(',') if v.strip()]
    except ValueError:
        raise click.BadParameter("Window sizes must be comma-separated integers")
    if not sizes or any(s < 1 for s in sizes):
        raise click.BadParameter("Window sizes must be positive")
    return sizes


def _count(value):
    return "∞" if value is None or value == math.inf else str(value)


@click.group()
@click.version_option(version="1.1.0", prog_name="UniTrack")
@click.option('--verbose', '-v', is_flag=True, help='Enable debug logging')
def cli(verbose):
    """
    UniTrack - Attendance Planner

    Track your attendance and plan breaks without dropping below threshold.

    Quick start:
      unitrack status     # View attendance status
      unitrack today      # What can you skip today?
      unitrack plan       # Impact of a break
      unitrack suggest    # Best upcoming breaks
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


@cli.command()
@click.option('--filter', 'status_filter', default='all',
              type=click.Choice(['all'] + list(Status.ALL)), help='Only show subjects with this status')
def status(status_filter):
    """Display attendance status."""
    config = load_config()
    data = _load_attendance()

    subjects = data['subjects']
    if not subjects:
        console.print("[yellow]No attendance data found.[/yellow]")
        return

    calc = AttendanceCalculator(config.thresholds)
    analysis = calc.analyze_all(subjects)

    # Display header
    if config.student_name:
        console.print(Panel(
            f"[bold]{config.institution.name}[/bold]\n"
            f"{config.student_name} ({config.roll_number})",
            border_style="blue"
        ))

    # Summary
    summary = analysis['summary']
    console.print(f"\n[bold]Overall: {summary['overall_percentage']}%[/bold] "
                  f"({summary['overall_present']}/{summary['overall_total']} classes)")

    overall_color = STATUS_COLORS[summary['overall_status']]
    console.print(f"Status: [{overall_color}]{summary['overall_status'].upper()}[/]")

    console.print(f"\n  [green]SAFE: {summary['safe_count']}[/green]  "
                  f"[yellow]CRITICAL: {summary['critical_count']}[/yellow]  "
                  f"[red]LOW: {summary['low_count']}[/red]  "
                  f"[dim]NO DATA: {summary['no_data_count']}[/dim]")

    projection = summary['projection']
    console.print(f"  Tomorrow: attend all → {projection['afterAttendAll']}%, "
                  f"skip all → {projection['afterSkipAll']}%")

    # Subject table
    table = Table(title="\nSubject-wise Attendance", show_header=True)
    table.add_column("Code", style="cyan")
    table.add_column("Subject")
    table.add_column("Attended", justify="right")
    table.add_column("%", justify="right")
    table.add_column("Status")
    table.add_column("Next class", justify="right")
    table.add_column("Action")

    for subj in calc.filter_by_status(analysis, status_filter):
        status_style = STATUS_COLORS.get(subj['status'], 'white')

        if subj['status'] == Status.NO_DATA:
            action = "[dim]-[/dim]"
        elif subj['status'] == Status.LOW:
            action = f"[red]Need {_count(subj['classes_needed'])}[/red]"
        elif subj['classes_can_miss'] != 0:
            action = f"[green]Can miss {_count(subj['classes_can_miss'])}[/green]"
        else:
            action = "[yellow]Attend all[/yellow]"

        threshold = f" ({subj['threshold']:g}%)" if subj['has_custom_threshold'] else ""
        name = subj['subject'][:30] + "..." if len(subj['subject']) > 30 else subj['subject']

        table.add_row(
            subj['subject_code'],
            name + threshold,
            f"{subj['attended']}/{subj['total']}",
            f"{subj['percentage']}%",
            f"[{status_style}]{subj['status'].upper()}[/]",
            f"{subj['attend_next']}% / {subj['skip_next']}%",
            action
        )

    console.print(table)

    # Last updated
    if data['timestamp']:
        console.print(f"\n[dim]Last updated: {data['timestamp']}[/dim]")


@cli.command()
@click.option('--date', 'on_date', default=None, help='Date to check (YYYY-MM-DD, default today)')
def today(on_date):
    """Show which of a day's classes can be skipped."""
    config = load_config()
    day = _parse_date_arg(on_date) if on_date else date.today()
    subjects = _load_attendance()['subjects']
    timetable = _load_timetable()

    calc = AttendanceCalculator(config.thresholds)
    verdicts = calc.day_verdicts(timetable, subjects, day)

    if not verdicts:
        console.print(f"[dim]No classes on {day.strftime('%A, %d %b')}.[/dim]")
        return

    skippable = sum(1 for v in verdicts if v['verdict'] == Verdict.SKIP)
    table = Table(title=f"{day.strftime('%A, %d %b')}: {skippable} skippable", show_header=True)
    table.add_column("Code", style="cyan")
    table.add_column("Subject")
    table.add_column("%", justify="right")
    table.add_column("Verdict")

    for v in verdicts:
        pct = f"{round(v['percentage'])}%" if v['total'] > 0 else "-"
        table.add_row(v['code'], v['name'], pct, VERDICT_LABELS[v['verdict']])

    console.print(table)


@cli.command()
def week():
    """Show the week at a glance."""
    config = load_config()
    subjects = _load_attendance()['subjects']
    timetable = _load_timetable()

    calc = AttendanceCalculator(config.thresholds)
    overview = calc.week_overview(timetable, subjects)

    table = Table(title="Week at a Glance", show_header=True)
    table.add_column("Day", style="bold")
    table.add_column("Classes")

    for day in TIMETABLE_DAYS:
        codes = timetable.get(day, [])
        if not codes:
            table.add_row(DAY_NAMES[day], "[dim]no classes[/dim]")
            continue
        cells = []
        for code, slot_status in zip(codes, overview[day]):
            color = STATUS_COLORS.get(slot_status, 'dim')
            cells.append(f"[{color}]{code}[/]")
        table.add_row(DAY_NAMES[day], " ".join(cells))

    console.print(table)


@cli.command()
@click.argument('start')
@click.argument('end')
@click.option('--holiday', '-h', 'holidays', multiple=True, help='Date with no classes (YYYY-MM-DD)')
def plan(start, end, holidays):
    """Show the impact of missing every class from START to END."""
    config = load_config()
    start_date = _parse_date_arg(start)
    end_date = _parse_date_arg(end)
    if end_date < start_date:
        raise click.BadParameter("END must not be before START")
    try:
        holiday_set = load_holidays(holidays)
    except ValueError as e:
        raise click.BadParameter(str(e))

    subjects = _load_attendance()['subjects']
    timetable = _load_timetable()

    days = get_vacation_days(start_date, end_date, holiday_set)
    result = calculate_vacation_impact(
        days, timetable, subjects, config.thresholds.default, config.thresholds.custom
    )

    console.print(Panel(
        f"[bold]{start_date:%d %b} → {end_date:%d %b}[/bold]\n"
        f"{result.total_days} days, {result.active_days} with classes, "
        f"{result.total_classes} classes missed",
        border_style="blue"
    ))

    if not result.impacts:
        console.print("[green]No tracked classes in this range.[/green]")
        return

    if result.at_risk_count:
        console.print(f"[red]{result.at_risk_count} subject(s) would drop below threshold[/red]")

    table = Table(show_header=True)
    table.add_column("Code", style="cyan")
    table.add_column("Missed", justify="right")
    table.add_column("Now", justify="right")
    table.add_column("After", justify="right")
    table.add_column("Can miss", justify="right")

    for impact in result.impacts:
        if impact.is_no_data:
            table.add_row(impact.code, str(impact.class_count), "-", "-", "[dim]no data[/dim]")
            continue
        color = 'red' if impact.breaches_threshold else 'green'
        table.add_row(
            impact.code,
            str(impact.class_count),
            f"{impact.current_pct:.1f}%",
            f"[{color}]{impact.projected_pct:.1f}%[/]",
            f"{_count(impact.current_bunkable)} → {_count(impact.projected_bunkable)}",
        )

    console.print(table)


@cli.command()
@click.option('--weeks', default=None, type=click.IntRange(min=1), help='Weeks ahead to scan')
@click.option('--sizes', default=None, help='Comma-separated window lengths in days')
@click.option('--from', 'from_date', default=None, help='Plan from this date (YYYY-MM-DD, default today)')
def suggest(weeks, sizes, from_date):
    """Suggest the least damaging upcoming breaks."""
    config = load_config()
    planner = config.planner
    window_sizes = _parse_sizes(sizes) if sizes else planner.window_sizes
    weeks_ahead = weeks or planner.weeks_ahead
    reference = _parse_date_arg(from_date) if from_date else None

    subjects = _load_attendance()['subjects']
    timetable = _load_timetable()

    with console.status("[bold green]Scanning upcoming weeks..."):
        windows = find_best_windows(
            timetable, subjects, config.thresholds.default, config.thresholds.custom,
            window_sizes=window_sizes, weeks_ahead=weeks_ahead,
            today=reference, limit=planner.suggestions,
        )

    if not windows:
        console.print("[yellow]No window fits in the scan horizon.[/yellow]")
        return

    table = Table(title="Best Breaks", show_header=True)
    table.add_column("#", justify="right")
    table.add_column("From")
    table.add_column("To")
    table.add_column("Days", justify="right")
    table.add_column("Classes missed", justify="right")
    table.add_column("At risk", justify="right")

    for rank, window in enumerate(windows, 1):
        risk = f"[red]{window.at_risk_count}[/red]" if window.at_risk_count else "[green]0[/green]"
        table.add_row(
            str(rank),
            window.start_date.isoformat(),
            window.end_date.isoformat(),
            str(window.duration),
            str(window.total_classes),
            risk,
        )

    console.print(table)


@cli.group()
def timetable():
    """Manage the weekly timetable."""


@timetable.command('show')
def timetable_show():
    """Show the weekly timetable."""
    tt = _load_timetable()
    for day in TIMETABLE_DAYS:
        codes = tt.get(day, [])
        console.print(f"[bold]{DAY_NAMES[day]}:[/bold] {', '.join(codes) if codes else '[dim]-[/dim]'}")


@timetable.command('set')
@click.argument('day', type=click.Choice(DAY_NAMES, case_sensitive=False))
@click.argument('codes', nargs=-1)
def timetable_set(day, codes):
    """Set the classes for DAY (no CODES clears the day)."""
    try:
        tt = load_timetable()
    except ValueError as e:
        _fail(f"Error reading timetable: {e}")

    index = [d.lower() for d in DAY_NAMES].index(day.lower())
    if codes:
        tt[index] = list(codes)
    else:
        tt.pop(index, None)

    path = save_timetable(tt)
    console.print(f"[green]{DAY_NAMES[index]}: {len(codes)} class(es) saved to {path}[/green]")


@cli.group()
def threshold():
    """Manage attendance thresholds."""


@threshold.command('set')
@click.argument('value', type=click.IntRange(MIN_THRESHOLD, MAX_THRESHOLD))
@click.option('--subject', default=None, help='Subject code (or name) to override')
def threshold_set(value, subject):
    """Set the global threshold, or an override for one subject."""
    config = load_config()
    if subject:
        config.thresholds.custom[subject] = float(value)
        console.print(f"[green]{subject}: threshold set to {value}%[/green]")
    else:
        config.thresholds.default = float(value)
        console.print(f"[green]Default threshold set to {value}%[/green]")
    save_config(config)


@threshold.command('reset')
@click.argument('subject')
def threshold_reset(subject):
    """Remove the override for SUBJECT."""
    config = load_config()
    if config.thresholds.custom.pop(subject, None) is None:
        console.print(f"[yellow]{subject} has no custom threshold.[/yellow]")
        return
    save_config(config)
    console.print(f"[green]{subject} now uses the default threshold.[/green]")


@cli.command('import')
@click.argument('file', type=click.Path(exists=True, dir_okay=False))
def import_attendance(file):
    """Replace cached attendance with a JSON export from the backend."""
    try:
        subjects = import_subjects(file)
    except ValueError as e:
        _fail(f"Could not import {file}: {e}")

    console.print(f"[green]Imported {len(subjects)} subjects.[/green]")


@cli.command()
@click.option('--port', default=5000, help='Port to run server on')
@click.option('--host', default='127.0.0.1', help='Host to bind to')
def serve(port, host):
    """Start web API server."""
    config = load_config()

    console.print(Panel(
        f"[bold blue]UniTrack Web API[/bold blue]\n\n"
        f"Starting server at http://{host}:{port}",
        border_style="blue"
    ))

    from ..web.server import create_app
    app = create_app(config)
    app.run(host=host, port=port)


@cli.command()
def config():
    """Show current configuration."""
    cfg = load_config()

    console.print(Panel(
        f"[bold]UniTrack Configuration[/bold]\n"
        f"Config file: {CONFIG_FILE}",
        border_style="blue"
    ))

    console.print(f"\n[bold]Institution:[/bold] {cfg.institution.name}")
    console.print(f"[bold]Default Threshold:[/bold] {cfg.thresholds.default}%")
    console.print(f"[bold]Safe Buffer:[/bold] {cfg.thresholds.safe_buffer}%")

    if cfg.thresholds.custom:
        console.print(f"[bold]Custom Thresholds:[/bold]")
        for key, value in cfg.thresholds.custom.items():
            console.print(f"  {key}: {value}%")

    console.print(f"[bold]Planner:[/bold] windows {cfg.planner.window_sizes}, "
                  f"{cfg.planner.weeks_ahead} weeks ahead")

    if cfg.student_name:
        console.print(f"\n[bold]Student:[/bold] {cfg.student_name} ({cfg.roll_number})")


if __name__ == '__main__':
    cli()
