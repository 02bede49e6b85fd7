"""
Vacation Planner Module

Measures how missing a range of days affects each subject and searches
the coming weeks for the least damaging breaks.
"""

import logging
from collections import Counter
from datetime import date, timedelta
from typing import Iterable, List, Mapping, Optional, Sequence, Union

from .calculator import build_subject_map, classes_to_bunk, effective_threshold
from .models import Subject, SubjectImpact, Timetable, VacationDay, VacationImpact, VacationWindow

logger = logging.getLogger(__name__)

Subjects = Union[Iterable[Subject], Mapping[str, Subject]]

DEFAULT_WINDOW_SIZES = (3, 5, 7)
DEFAULT_WEEKS_AHEAD = 3
DEFAULT_SUGGESTIONS = 3

# Margin (points above threshold) below which a subject counts as fragile
FRAGILE_MARGIN = 5


def _holiday_strings(holidays) -> set:
    return {h.isoformat() if isinstance(h, date) else str(h) for h in (holidays or ())}


def get_vacation_days(start_date: date, end_date: date, holidays=None) -> List[VacationDay]:
    """
    List every calendar day from start_date to end_date, inclusive.

    Args:
        start_date: First day of the range
        end_date: Last day of the range
        holidays: YYYY-MM-DD strings (or dates) on which no classes run

    Returns:
        One VacationDay per date; empty if end_date is before start_date
    """
    holiday_set = _holiday_strings(holidays)
    days = []
    current = start_date
    while current <= end_date:
        date_str = current.isoformat()
        day_of_week = current.isoweekday() % 7
        days.append(VacationDay(
            date=current,
            date_str=date_str,
            day_of_week=day_of_week,
            timetable_day_index=-1 if day_of_week == 0 else day_of_week - 1,
            is_sunday=day_of_week == 0,
            is_holiday=date_str in holiday_set,
        ))
        current += timedelta(days=1)
    return days


def calculate_vacation_impact(days: Sequence[VacationDay], timetable: Timetable, subjects: Subjects,
                              global_threshold: float,
                              overrides: Optional[Mapping[str, float]] = None) -> VacationImpact:
    """
    Work out what missing every class in `days` does to each subject.

    Sundays and holidays carry no classes. Timetable codes that match no
    subject are ignored. Impacts come back with threshold breaches first
    and the largest drops next, subjects without data last.
    """
    subject_map = build_subject_map(subjects)
    missed = Counter()
    total_classes = 0
    active_days = 0

    for day in days:
        if day.is_sunday or day.is_holiday:
            continue
        codes = timetable.get(day.timetable_day_index) or []
        if not codes:
            continue
        active_days += 1
        total_classes += len(codes)
        missed.update(codes)

    impacts = []
    for code, count in missed.items():
        subject = subject_map.get(code)
        if subject is None:
            continue

        if subject.total == 0:
            impacts.append(SubjectImpact(
                code=code,
                name=subject.name,
                class_count=count,
                current_pct=0.0,
                projected_pct=0.0,
                drop=0.0,
                current_bunkable=0,
                projected_bunkable=0,
                breaches_threshold=False,
                is_no_data=True,
            ))
            continue

        threshold = effective_threshold(subject, global_threshold, overrides)
        current_pct = subject.attended / subject.total * 100
        projected_pct = subject.attended / (subject.total + count) * 100
        impacts.append(SubjectImpact(
            code=code,
            name=subject.name,
            class_count=count,
            current_pct=current_pct,
            projected_pct=projected_pct,
            drop=current_pct - projected_pct,
            current_bunkable=classes_to_bunk(subject.attended, subject.total, threshold),
            projected_bunkable=classes_to_bunk(subject.attended, subject.total + count, threshold),
            breaches_threshold=projected_pct < threshold,
            is_no_data=False,
        ))

    impacts.sort(key=lambda i: (i.is_no_data, not i.breaches_threshold, -i.drop))

    return VacationImpact(
        impacts=impacts,
        total_classes=total_classes,
        active_days=active_days,
        total_days=len(days),
    )


def score_impacts(impacts: Iterable[SubjectImpact], subjects: Subjects, global_threshold: float,
                  overrides: Optional[Mapping[str, float]] = None) -> float:
    """
    Weighted penalty of a set of impacts; lower is better.

    Each drop is weighted 3 for subjects already below threshold, 2 for
    those within FRAGILE_MARGIN of it, 1 otherwise, and scaled by the
    number of classes missed.
    """
    subject_map = build_subject_map(subjects)
    penalty = 0.0
    for impact in impacts:
        if impact.is_no_data:
            continue
        threshold = effective_threshold(subject_map.get(impact.code, impact.code), global_threshold, overrides)
        margin = impact.current_pct - threshold
        if margin < 0:
            weight = 3
        elif margin < FRAGILE_MARGIN:
            weight = 2
        else:
            weight = 1
        penalty += impact.drop * weight * impact.class_count
    return penalty


def find_best_windows(timetable: Timetable, subjects: Subjects, global_threshold: float,
                      overrides: Optional[Mapping[str, float]] = None,
                      window_sizes: Sequence[int] = DEFAULT_WINDOW_SIZES,
                      weeks_ahead: int = DEFAULT_WEEKS_AHEAD,
                      today: date = None,
                      limit: int = DEFAULT_SUGGESTIONS) -> List[VacationWindow]:
    """
    Find the least damaging breaks over the coming weeks.

    Every window of each size starting from tomorrow and ending no later
    than today + weeks_ahead weeks is scored; the best non-overlapping
    ones are returned. Manual holidays are not taken into account.

    Args:
        timetable: Weekly timetable
        subjects: Subjects (list or key -> Subject mapping)
        global_threshold: Default minimum percentage
        overrides: Subject key -> threshold
        window_sizes: Window lengths in days
        weeks_ahead: Scan horizon in weeks
        today: Reference date (defaults to date.today())
        limit: Maximum number of windows returned

    Returns:
        Up to `limit` windows ordered by penalty; empty if none fit
    """
    today = today or date.today()
    subject_map = build_subject_map(subjects)
    scan_end = today + timedelta(days=weeks_ahead * 7)

    candidates = []
    for size in window_sizes:
        if size < 1:
            continue
        start = today + timedelta(days=1)
        while True:
            end = start + timedelta(days=size - 1)
            if end > scan_end:
                break

            days = get_vacation_days(start, end)
            result = calculate_vacation_impact(days, timetable, subject_map, global_threshold, overrides)
            candidates.append(VacationWindow(
                start_date=start,
                end_date=end,
                duration=size,
                total_classes=result.total_classes,
                at_risk_count=result.at_risk_count,
                penalty=score_impacts(result.impacts, subject_map, global_threshold, overrides),
            ))
            start += timedelta(days=1)

    logger.debug("Scored %d candidate windows up to %s", len(candidates), scan_end)

    candidates.sort(key=lambda w: w.penalty)

    selected = []
    for candidate in candidates:
        if len(selected) >= limit:
            break
        if not any(candidate.overlaps(s) for s in selected):
            selected.append(candidate)

    return selected
