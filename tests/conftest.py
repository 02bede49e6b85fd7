import json
from datetime import date

import pytest

from unitrack.core import config as config_module
from unitrack.core.models import Subject


@pytest.fixture(autouse=True)
def unitrack_home(tmp_path, monkeypatch):
    """Point every config and data path at a temporary directory."""
    monkeypatch.setattr(config_module, "CONFIG_DIR", tmp_path)
    monkeypatch.setattr(config_module, "CONFIG_FILE", tmp_path / "config.yaml")
    monkeypatch.setattr(config_module, "DATA_DIR", tmp_path / "data")
    return tmp_path


@pytest.fixture
def subjects():
    return [
        Subject(name="Data Structures", code="CS101", attended=20, total=25, percentage=80.0),
        Subject(name="Operating Systems", code="CS102", attended=18, total=25, percentage=72.0),
        Subject(name="Networks", code="CS103", attended=38, total=40, percentage=95.0),
        Subject(name="Seminar", code="", attended=0, total=0, percentage=0.0),
    ]


@pytest.fixture
def timetable():
    return {
        0: ["CS101", "CS102"],
        1: ["CS103"],
        2: ["CS101", "CS103", "Seminar"],
        3: ["CS102"],
        4: ["CS101", "CS102", "CS103"],
        5: [],
    }


@pytest.fixture
def monday():
    return date(2026, 10, 19)


@pytest.fixture
def write_data(unitrack_home):
    """Write attendance and timetable files into the data directory."""
    def _write(subjects=None, timetable=None):
        data_dir = unitrack_home / "data"
        data_dir.mkdir(parents=True, exist_ok=True)
        if subjects is not None:
            (data_dir / "attendance.json").write_text(json.dumps({
                "subjects": [s.to_dict() for s in subjects],
                "timestamp": "2026-10-16T09:00:00",
            }))
        if timetable is not None:
            (data_dir / "timetable.json").write_text(json.dumps(
                {str(k): v for k, v in timetable.items()}
            ))
        return data_dir
    return _write
