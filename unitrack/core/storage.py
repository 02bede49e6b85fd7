"""
Local storage for fetched attendance, the timetable and holidays.

Files live in the UniTrack data directory; the planner itself never reads
or writes them.
"""

import json
import logging
from datetime import date, datetime
from pathlib import Path
from typing import Iterable, List, Set

from .config import get_data_path
from .models import Subject, Timetable, dump_timetable, parse_timetable

logger = logging.getLogger(__name__)

ATTENDANCE_FILE = 'attendance.json'
TIMETABLE_FILE = 'timetable.json'


def _read_json(path: Path):
    try:
        with open(path) as f:
            return json.load(f)
    except json.JSONDecodeError as e:
        raise ValueError(f"{path.name} is not valid JSON: {e}")


def load_attendance(path: Path = None) -> dict:
    """
    Load cached attendance data.

    Returns:
        {'subjects': [Subject, ...], 'timestamp': str or None}
    """
    path = path or get_data_path(ATTENDANCE_FILE)
    if not path.exists():
        return {'subjects': [], 'timestamp': None}

    data = _read_json(path)
    if not isinstance(data, dict):
        raise ValueError(f"{path.name} must contain a 'subjects' list")
    subjects = parse_subjects(data.get('subjects', []))
    return {'subjects': subjects, 'timestamp': data.get('timestamp')}


def parse_subjects(data) -> List[Subject]:
    """
    Build subjects from backend JSON.

    Accepts either a bare list of subject objects or the
    {'subjects': [...]} envelope the attendance backend returns.
    """
    if isinstance(data, dict):
        data = data.get('subjects')
    if not isinstance(data, list):
        raise ValueError("Expected a 'subjects' list")

    try:
        return [Subject.from_dict(s) for s in data]
    except (TypeError, ValueError, AttributeError, KeyError) as e:
        raise ValueError(f"Malformed subject: {e}")


def import_subjects(path: Path) -> List[Subject]:
    """Replace the cached attendance with the subjects in a backend export."""
    subjects = parse_subjects(_read_json(Path(path)))
    save_subjects(subjects)
    return subjects


def load_subjects(path: Path = None) -> List[Subject]:
    return load_attendance(path)['subjects']


def save_subjects(subjects: Iterable[Subject], path: Path = None) -> Path:
    """Save subjects with the current timestamp."""
    path = path or get_data_path(ATTENDANCE_FILE)
    subjects = list(subjects)
    with open(path, 'w') as f:
        json.dump({
            'subjects': [s.to_dict() for s in subjects],
            'timestamp': datetime.now().isoformat(),
        }, f, indent=2)
    logger.info("Saved %d subjects to %s", len(subjects), path)
    return path


def load_timetable(path: Path = None) -> Timetable:
    """Load the weekly timetable; empty if none has been set up."""
    path = path or get_data_path(TIMETABLE_FILE)
    if not path.exists():
        return {}

    data = _read_json(path)
    if not isinstance(data, dict):
        raise ValueError(f"{path.name} must be a JSON object")
    return parse_timetable(data)


def save_timetable(timetable: Timetable, path: Path = None) -> Path:
    path = path or get_data_path(TIMETABLE_FILE)
    with open(path, 'w') as f:
        json.dump(dump_timetable(timetable), f, indent=2)
    logger.info("Saved timetable to %s", path)
    return path


def parse_date(value: str) -> date:
    """Parse a YYYY-MM-DD string."""
    try:
        return datetime.strptime(value, '%Y-%m-%d').date()
    except (TypeError, ValueError):
        raise ValueError(f"Invalid date (expected YYYY-MM-DD): {value!r}")


def load_holidays(values: Iterable[str]) -> Set[str]:
    """Normalise caller-supplied holiday dates to a set of YYYY-MM-DD strings."""
    return {parse_date(v).isoformat() for v in values or ()}
