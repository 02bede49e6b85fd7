"""
Attendance Calculator Module

Calculates attendance status, classes needed, and classes that can be missed.
"""

import math
from datetime import date
from typing import Dict, Iterable, List, Mapping, Optional, Union
from dataclasses import dataclass

from .config import Thresholds
from .models import Subject, Timetable, TIMETABLE_DAYS, finite_or_none
from .projection import next_class_projection, next_day_projection, round_half_up

# Points above the threshold needed for "safe"
SAFE_BUFFER = 5

Count = Union[int, float]  # float only for the math.inf sentinel


class Status:
    """Attendance status constants."""
    SAFE = "safe"          # Comfortably above threshold
    CRITICAL = "critical"  # At or just above threshold
    LOW = "low"            # Below threshold
    NO_DATA = "no_data"    # No classes held yet

    ALL = (SAFE, CRITICAL, LOW, NO_DATA)


class Verdict:
    """Per-class recommendation constants."""
    SKIP = "skip"
    RISKY = "risky"
    ATTEND = "attend"
    NO_DATA = "no_data"


def subject_key(subject: Union[Subject, str]) -> str:
    """Key used for timetables and overrides: code if set, else name."""
    if isinstance(subject, str):
        return subject
    return subject.code or subject.name


def effective_threshold(subject: Union[Subject, str], global_threshold: float,
                        overrides: Optional[Mapping[str, float]] = None) -> float:
    """Per-subject override if present, else the global threshold."""
    if overrides:
        return overrides.get(subject_key(subject), global_threshold)
    return global_threshold


def build_subject_map(subjects: Union[Iterable[Subject], Mapping[str, Subject]]) -> Dict[str, Subject]:
    """Index subjects by key. Mappings are passed through unchanged."""
    if isinstance(subjects, Mapping):
        return dict(subjects)
    return {s.key: s for s in subjects}


def calculate_status(percentage: float, threshold: float, total: Optional[int] = None,
                     buffer: float = SAFE_BUFFER) -> str:
    """
    Determine attendance status.

    Args:
        percentage: Current attendance percentage (0-100)
        threshold: Minimum required percentage (0-100)
        total: Classes held so far; 0 means no data, None skips the check
        buffer: Points above threshold required for SAFE

    Returns:
        One of the Status constants
    """
    if total == 0:
        return Status.NO_DATA

    if percentage >= threshold + buffer:
        return Status.SAFE
    elif percentage >= threshold:
        return Status.CRITICAL
    else:
        return Status.LOW


def classes_to_bunk(attended: int, total: int, threshold: float) -> Count:
    """
    Calculate classes that can be missed while staying at threshold.

    Formula: k = floor(attended × 100 / threshold - total), at least 0

    Returns:
        Number of classes that can be missed, or math.inf for a
        threshold of 0 or less
    """
    if threshold <= 0:
        return math.inf

    return max(0, math.floor(attended * 100 / threshold - total))


def classes_to_attend(attended: int, total: int, threshold: float) -> Count:
    """
    Calculate consecutive classes needed to reach threshold.

    Formula: k = ceil((total × threshold - attended × 100) / (100 - threshold))

    Returns:
        Number of classes (0 if already at threshold), or math.inf when
        the threshold is 100% or more
    """
    if threshold >= 100:
        return math.inf

    needed = math.ceil((total * threshold - attended * 100) / (100 - threshold))
    return max(0, needed)


def get_verdict(subject: Subject, threshold: float, buffer: float = SAFE_BUFFER) -> str:
    """Recommendation for a single scheduled class of this subject."""
    status = calculate_status(subject.percentage, threshold, subject.total, buffer)

    if status == Status.NO_DATA:
        return Verdict.NO_DATA

    if status == Status.SAFE and classes_to_bunk(subject.attended, subject.total, threshold) > 0:
        return Verdict.SKIP

    if status == Status.LOW:
        return Verdict.ATTEND

    return Verdict.RISKY


@dataclass
class SubjectAnalysis:
    """Analysis result for a single subject."""
    subject: str
    subject_code: str
    key: str
    attended: int
    total: int
    percentage: float
    status: str
    verdict: str
    threshold: float
    has_custom_threshold: bool
    classes_needed: Count
    classes_can_miss: Count
    attend_next: float
    skip_next: float
    message: str

    def to_dict(self) -> dict:
        """Convert to dictionary (infinite counts become None)."""
        return {
            'subject': self.subject,
            'subject_code': self.subject_code,
            'key': self.key,
            'attended': self.attended,
            'total': self.total,
            'percentage': self.percentage,
            'status': self.status,
            'verdict': self.verdict,
            'threshold': self.threshold,
            'has_custom_threshold': self.has_custom_threshold,
            'classes_needed': finite_or_none(self.classes_needed),
            'classes_can_miss': finite_or_none(self.classes_can_miss),
            'attend_next': self.attend_next,
            'skip_next': self.skip_next,
            'message': self.message,
        }


def _plural(n: Count) -> str:
    return "class" if n == 1 else "classes"


class AttendanceCalculator:
    """
    Calculator for attendance analysis.

    Usage:
        calc = AttendanceCalculator(config.thresholds)
        analysis = calc.analyze_all(subjects)
    """

    def __init__(self, thresholds: Thresholds = None):
        """Initialize calculator with thresholds."""
        self.thresholds = thresholds or Thresholds()

    def get_threshold(self, subject: Union[Subject, str]) -> float:
        """Get threshold for a subject."""
        return self.thresholds.get_threshold(subject_key(subject))

    def calculate_status(self, percentage: float, threshold: float, total: Optional[int] = None) -> str:
        return calculate_status(percentage, threshold, total, self.thresholds.safe_buffer)

    def status_message(self, subject: Subject, status: str, threshold: float) -> str:
        """Human readable advice for a subject's status."""
        if status == Status.NO_DATA:
            return "No classes conducted yet"
        if status == Status.SAFE:
            can_bunk = classes_to_bunk(subject.attended, subject.total, threshold)
            if can_bunk == math.inf:
                return "No minimum to keep, every class can be skipped"
            return f"You can skip {can_bunk} more {_plural(can_bunk)}"
        if status == Status.CRITICAL:
            return "At threshold, don't miss any classes"

        needed = classes_to_attend(subject.attended, subject.total, threshold)
        if needed == math.inf:
            return f"{threshold:g}% is out of reach"
        return f"Attend {needed} more {_plural(needed)} to reach {threshold:g}%"

    def analyze_subject(self, subject: Subject) -> SubjectAnalysis:
        """
        Analyze a single subject.

        Args:
            subject: Subject attendance snapshot

        Returns:
            SubjectAnalysis object
        """
        threshold = self.get_threshold(subject)
        status = self.calculate_status(subject.percentage, threshold, subject.total)
        projection = next_class_projection(subject.attended, subject.total)

        return SubjectAnalysis(
            subject=subject.name,
            subject_code=subject.code,
            key=subject.key,
            attended=subject.attended,
            total=subject.total,
            percentage=round(subject.percentage, 2),
            status=status,
            verdict=get_verdict(subject, threshold, self.thresholds.safe_buffer),
            threshold=threshold,
            has_custom_threshold=self.thresholds.has_override(subject.key),
            classes_needed=classes_to_attend(subject.attended, subject.total, threshold),
            classes_can_miss=classes_to_bunk(subject.attended, subject.total, threshold),
            attend_next=projection.attend_next,
            skip_next=projection.skip_next,
            message=self.status_message(subject, status, threshold),
        )

    def analyze_all(self, subjects: List[Subject]) -> Dict:
        """
        Analyze all subjects and provide summary.

        Subjects without any classes are listed but left out of the
        overall figures.

        Args:
            subjects: List of subject attendance snapshots

        Returns:
            Dictionary with analysis results and summary
        """
        analyzed = []
        counts = {status: 0 for status in Status.ALL}
        total_bunkable = 0
        total_needed = 0
        total_present = 0
        total_conducted = 0

        for subject in subjects:
            analysis = self.analyze_subject(subject)
            analyzed.append(analysis)
            counts[analysis.status] += 1

            if analysis.status == Status.NO_DATA:
                continue

            total_present += analysis.attended
            total_conducted += analysis.total
            total_bunkable += analysis.classes_can_miss
            total_needed += analysis.classes_needed

        # Overall stats
        overall_percentage = (
            round_half_up(total_present / total_conducted * 100) if total_conducted > 0 else 0
        )
        overall_status = self.calculate_status(overall_percentage, self.thresholds.default, total_conducted)

        return {
            'subjects': [a.to_dict() for a in analyzed],
            'summary': {
                'total_subjects': len(analyzed),
                'safe_count': counts[Status.SAFE],
                'critical_count': counts[Status.CRITICAL],
                'low_count': counts[Status.LOW],
                'no_data_count': counts[Status.NO_DATA],
                'overall_present': total_present,
                'overall_total': total_conducted,
                'overall_percentage': overall_percentage,
                'overall_status': overall_status,
                'total_bunkable': finite_or_none(total_bunkable),
                'total_needed': finite_or_none(total_needed),
                'projection': next_day_projection(subjects).to_dict(),
            }
        }

    def get_priority_subjects(self, analysis: Dict, top_n: int = 5) -> List[Dict]:
        """
        Get subjects needing most attention.

        Args:
            analysis: Result from analyze_all()
            top_n: Number of subjects to return

        Returns:
            List of priority subjects (lowest attendance first)
        """
        subjects = analysis.get('subjects', [])

        # Sort by status (LOW first) then by percentage
        status_priority = {Status.LOW: 0, Status.CRITICAL: 1, Status.SAFE: 2, Status.NO_DATA: 3}

        sorted_subjects = sorted(
            subjects,
            key=lambda x: (status_priority.get(x['status'], 3), x['percentage'])
        )

        return sorted_subjects[:top_n]

    @staticmethod
    def filter_by_status(analysis: Dict, status: str = "all") -> List[Dict]:
        """Subjects from analyze_all() with the given status ("all" keeps everything)."""
        subjects = analysis.get('subjects', [])
        if status == "all":
            return list(subjects)
        return [s for s in subjects if s['status'] == status]

    def day_verdicts(self, timetable: Timetable, subjects, on_date: date = None) -> List[Dict]:
        """
        Verdict for every class scheduled on a date (today by default).

        Codes that match no subject are skipped; Sunday has no classes.
        """
        on_date = on_date or date.today()
        if on_date.weekday() not in TIMETABLE_DAYS:
            return []

        subject_map = build_subject_map(subjects)
        verdicts = []
        for code in timetable.get(on_date.weekday(), []):
            subject = subject_map.get(code)
            if subject is None:
                continue
            threshold = self.get_threshold(subject)
            verdicts.append({
                'code': code,
                'name': subject.name,
                'percentage': subject.percentage,
                'total': subject.total,
                'threshold': threshold,
                'verdict': get_verdict(subject, threshold, self.thresholds.safe_buffer),
            })
        return verdicts

    def week_overview(self, timetable: Timetable, subjects) -> Dict[int, List[Optional[str]]]:
        """Status of each scheduled slot, Monday (0) to Saturday (5); None for unknown codes."""
        subject_map = build_subject_map(subjects)
        overview = {}
        for day in TIMETABLE_DAYS:
            statuses = []
            for code in timetable.get(day, []):
                subject = subject_map.get(code)
                if subject is None:
                    statuses.append(None)
                    continue
                statuses.append(self.calculate_status(
                    subject.percentage, self.get_threshold(subject), subject.total
                ))
            overview[day] = statuses
        return overview
