"""
Configuration management for UniTrack.

Handles loading, saving, and validating configuration from YAML files.
"""

import os
import logging
import yaml
from pathlib import Path
from dataclasses import dataclass, field, asdict
from typing import Dict, List

logger = logging.getLogger(__name__)


# Default config directory
CONFIG_DIR = Path(os.getenv("UNITRACK_HOME", str(Path.home() / ".unitrack")))
CONFIG_FILE = CONFIG_DIR / "config.yaml"
DATA_DIR = CONFIG_DIR / "data"

# Bounds offered when editing thresholds by hand
MIN_THRESHOLD = 50
MAX_THRESHOLD = 95


@dataclass
class Thresholds:
    """Attendance threshold configuration."""
    default: float = 75.0  # Global minimum attendance percentage
    safe_buffer: float = 5.0  # Points above threshold for "safe" status
    custom: Dict[str, float] = field(default_factory=dict)  # Subject key -> override

    def get_threshold(self, subject_key: str) -> float:
        """Get threshold for a subject key, falling back to the default."""
        return self.custom.get(subject_key, self.default)

    def has_override(self, subject_key: str) -> bool:
        return subject_key in self.custom


@dataclass
class PlannerSettings:
    """Vacation planner search settings."""
    window_sizes: List[int] = field(default_factory=lambda: [3, 5, 7])
    weeks_ahead: int = 3
    suggestions: int = 3  # Max windows returned


@dataclass
class Institution:
    """Institution details."""
    name: str = "My Institution"
    short_name: str = ""
    color: str = "#3B82F6"  # Blue


@dataclass
class Config:
    """Main configuration class."""
    institution: Institution = field(default_factory=Institution)
    thresholds: Thresholds = field(default_factory=Thresholds)
    planner: PlannerSettings = field(default_factory=PlannerSettings)

    # User info
    student_name: str = ""
    roll_number: str = ""

    def to_dict(self) -> dict:
        """Convert config to dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> 'Config':
        """Create config from dictionary."""
        config = cls()

        if 'institution' in data:
            config.institution = Institution(**data['institution'])

        if 'thresholds' in data:
            thresholds = dict(data['thresholds'] or {})
            custom = thresholds.get('custom') or {}
            if not isinstance(custom, dict):
                raise TypeError("thresholds.custom must be a mapping")
            thresholds['custom'] = dict(custom)
            config.thresholds = Thresholds(**thresholds)

        if 'planner' in data:
            config.planner = PlannerSettings(**data['planner'])

        # Simple fields
        for field_name in ['student_name', 'roll_number']:
            if field_name in data:
                setattr(config, field_name, data[field_name])

        return config


def ensure_config_dir():
    """Ensure configuration directory exists."""
    CONFIG_DIR.mkdir(parents=True, exist_ok=True)
    DATA_DIR.mkdir(parents=True, exist_ok=True)


def load_config(config_path: Path = None) -> Config:
    """
    Load configuration from YAML file.

    Args:
        config_path: Path to config file (uses default if None)

    Returns:
        Config object, or defaults if the file is missing or unreadable
    """
    if config_path is None:
        config_path = CONFIG_FILE
        ensure_config_dir()

    if not config_path.exists():
        return Config()

    try:
        with open(config_path, 'r') as f:
            data = yaml.safe_load(f) or {}
        return Config.from_dict(data)
    except (OSError, yaml.YAMLError, TypeError) as e:
        logger.warning("Error loading config from %s: %s", config_path, e)
        return Config()


def save_config(config: Config, config_path: Path = None):
    """
    Save configuration to YAML file.

    Args:
        config: Config object to save
        config_path: Path to save to (uses default if None)
    """
    if config_path is None:
        config_path = CONFIG_FILE
        ensure_config_dir()
    else:
        config_path.parent.mkdir(parents=True, exist_ok=True)

    with open(config_path, 'w') as f:
        yaml.dump(config.to_dict(), f, default_flow_style=False, sort_keys=False)
    logger.debug("Saved config to %s", config_path)


def get_data_path(filename: str) -> Path:
    """Get path to a data file."""
    ensure_config_dir()
    return DATA_DIR / filename
