"""
Projection Module

"What if" percentages for the next class, the next day, or any number
of future classes attended or skipped.
"""

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable

from .models import Subject


def round_half_up(value: float, digits: int = 0):
    """Round half away from zero (Python's round() rounds half to even)."""
    quantum = Decimal(1).scaleb(-digits)
    rounded = Decimal(repr(value)).quantize(quantum, rounding=ROUND_HALF_UP)
    return float(rounded) if digits else int(rounded)


@dataclass
class NextClassProjection:
    """Percentage after attending or skipping the next class."""
    attend_next: float
    skip_next: float

    def to_dict(self) -> dict:
        return {'attendNext': self.attend_next, 'skipNext': self.skip_next}


@dataclass
class DayProjection:
    """Overall percentage after attending or skipping one class of every active subject."""
    after_attend_all: int
    after_skip_all: int

    def to_dict(self) -> dict:
        return {'afterAttendAll': self.after_attend_all, 'afterSkipAll': self.after_skip_all}


def project_percentage(attended: int, total: int, attend: int = 0, skip: int = 0) -> float:
    """
    Percentage after `attend` more attended and `skip` more missed classes.

    Returns 0 when no classes would have been held.
    """
    new_total = total + attend + skip
    if new_total <= 0:
        return 0.0
    return (attended + attend) / new_total * 100


def next_class_projection(attended: int, total: int) -> NextClassProjection:
    """
    Project the next single class.

    With no classes held yet attending gives 100% and skipping gives 0%.
    """
    if total <= 0:
        return NextClassProjection(attend_next=100.0, skip_next=0.0)

    return NextClassProjection(
        attend_next=round_half_up(project_percentage(attended, total, attend=1), 1),
        skip_next=round_half_up(project_percentage(attended, total, skip=1), 1),
    )


def next_day_projection(subjects: Iterable[Subject]) -> DayProjection:
    """
    Project the overall percentage assuming one class per active subject.

    Subjects with no classes held are left out of the aggregate.
    """
    active = [s for s in subjects if s.total > 0]
    n = len(active)
    total_attended = sum(s.attended for s in active)
    total_classes = sum(s.total for s in active)

    denominator = total_classes + n
    if denominator == 0:
        return DayProjection(after_attend_all=0, after_skip_all=0)

    return DayProjection(
        after_attend_all=round_half_up((total_attended + n) / denominator * 100),
        after_skip_all=round_half_up(total_attended / denominator * 100),
    )
