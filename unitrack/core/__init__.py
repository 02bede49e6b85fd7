"""Core modules for UniTrack."""

from .config import Config, load_config, save_config
from .models import Subject, VacationWindow
from .calculator import AttendanceCalculator, Status, Verdict
from .planner import calculate_vacation_impact, find_best_windows, get_vacation_days

__all__ = [
    "Config",
    "load_config",
    "save_config",
    "Subject",
    "VacationWindow",
    "AttendanceCalculator",
    "Status",
    "Verdict",
    "calculate_vacation_impact",
    "find_best_windows",
    "get_vacation_days",
]
