"""
Data models for the attendance planner.

Subjects and timetables come from outside (backend fetch, user setup);
the remaining records are computed per request and never stored.
"""

from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List

# Weekday index -> ordered subject keys (0=Mon .. 5=Sat, Sunday has no slot)
Timetable = Dict[int, List[str]]

TIMETABLE_DAYS = range(6)


def finite_or_none(value):
    """None for the math.inf sentinel, so counts stay JSON friendly."""
    return None if value == float("inf") else value


@dataclass(frozen=True)
class Subject:
    """Attendance snapshot for one subject."""
    name: str
    code: str = ""
    attended: int = 0
    total: int = 0
    percentage: float = 0.0

    @property
    def key(self) -> str:
        """Identity used by timetables and threshold overrides."""
        return self.code or self.name

    @classmethod
    def from_dict(cls, data: dict) -> 'Subject':
        """Build from the backend's JSON subject record."""
        attended = int(data.get('attended', 0))
        total = int(data.get('total', 0))
        percentage = data.get('percentage')
        if percentage is None:
            percentage = (attended / total * 100) if total > 0 else 0.0

        return cls(
            name=data.get('name', ''),
            code=data.get('code') or '',
            attended=attended,
            total=total,
            percentage=float(percentage),
        )

    def to_dict(self) -> dict:
        return {
            'name': self.name,
            'code': self.code,
            'attended': self.attended,
            'total': self.total,
            'percentage': self.percentage,
        }


def parse_timetable(data: dict) -> Timetable:
    """
    Convert a JSON timetable ({"0": [...], ..., "5": [...]}) to int keys.

    Raises:
        ValueError: for a non-integer or out-of-range day key, or a
            day value that is not a list of strings
    """
    timetable: Timetable = {}
    for raw_key, codes in (data or {}).items():
        try:
            day = int(raw_key)
        except (TypeError, ValueError):
            raise ValueError(f"Invalid timetable day: {raw_key!r}")
        if day not in TIMETABLE_DAYS:
            raise ValueError(f"Timetable day out of range (0-5): {day}")
        if not isinstance(codes, list) or not all(isinstance(c, str) for c in codes):
            raise ValueError(f"Timetable day {day} must be a list of subject codes")
        timetable[day] = list(codes)
    return timetable


def dump_timetable(timetable: Timetable) -> dict:
    """Convert a timetable to its JSON form with string keys."""
    return {str(day): list(codes) for day, codes in sorted(timetable.items()) if codes}


@dataclass(frozen=True)
class VacationDay:
    """One calendar day inside a requested range."""
    date: date
    date_str: str  # YYYY-MM-DD
    day_of_week: int  # 0=Sun .. 6=Sat
    timetable_day_index: int  # 0=Mon .. 5=Sat, -1 for Sunday
    is_sunday: bool
    is_holiday: bool

    def to_dict(self) -> dict:
        return {
            'date': self.date_str,
            'dayOfWeek': self.day_of_week,
            'timetableDayIndex': self.timetable_day_index,
            'isSunday': self.is_sunday,
            'isHoliday': self.is_holiday,
        }


@dataclass
class SubjectImpact:
    """Effect of missing a range of classes on one subject."""
    code: str
    name: str
    class_count: int
    current_pct: float
    projected_pct: float
    drop: float
    current_bunkable: float
    projected_bunkable: float
    breaches_threshold: bool
    is_no_data: bool

    def to_dict(self) -> dict:
        return {
            'code': self.code,
            'name': self.name,
            'classCount': self.class_count,
            'currentPct': round(self.current_pct, 2),
            'projectedPct': round(self.projected_pct, 2),
            'drop': round(self.drop, 2),
            'currentBunkable': finite_or_none(self.current_bunkable),
            'projectedBunkable': finite_or_none(self.projected_bunkable),
            'breachesThreshold': self.breaches_threshold,
            'isNoData': self.is_no_data,
        }


@dataclass
class VacationImpact:
    """Aggregated impact of a date range."""
    impacts: List[SubjectImpact] = field(default_factory=list)
    total_classes: int = 0
    active_days: int = 0  # Days with classes (excl. Sundays and holidays)
    total_days: int = 0

    @property
    def at_risk_count(self) -> int:
        return sum(1 for i in self.impacts if i.breaches_threshold and not i.is_no_data)

    def to_dict(self) -> dict:
        return {
            'impacts': [i.to_dict() for i in self.impacts],
            'totalClasses': self.total_classes,
            'activeDays': self.active_days,
            'totalDays': self.total_days,
            'atRiskCount': self.at_risk_count,
        }


@dataclass
class VacationWindow:
    """A candidate contiguous break, ranked by penalty (lower is better)."""
    start_date: date
    end_date: date
    duration: int
    total_classes: int
    at_risk_count: int
    penalty: float

    def overlaps(self, other: 'VacationWindow') -> bool:
        return self.start_date <= other.end_date and self.end_date >= other.start_date

    def to_dict(self) -> dict:
        return {
            'startDate': self.start_date.isoformat(),
            'endDate': self.end_date.isoformat(),
            'duration': self.duration,
            'totalClasses': self.total_classes,
            'atRiskCount': self.at_risk_count,
            'penalty': round(self.penalty, 2),
        }
