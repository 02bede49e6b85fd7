import math
from datetime import date

import pytest

from unitrack.core.calculator import (
    AttendanceCalculator,
    Status,
    Verdict,
    calculate_status,
    classes_to_attend,
    classes_to_bunk,
    effective_threshold,
    get_verdict,
    subject_key,
)
from unitrack.core.config import Thresholds
from unitrack.core.models import Subject


@pytest.mark.parametrize("percentage,threshold", [(0, 75), (100, 75), (50, 0)])
def test_status_is_no_data_without_classes(percentage, threshold):
    assert calculate_status(percentage, threshold, total=0) == Status.NO_DATA


@pytest.mark.parametrize("percentage,expected", [
    (80, Status.SAFE),
    (95, Status.SAFE),
    (79.9, Status.CRITICAL),
    (75, Status.CRITICAL),
    (74.99, Status.LOW),
    (0, Status.LOW),
])
def test_status_bands_around_threshold(percentage, expected):
    assert calculate_status(percentage, 75, total=25) == expected


def test_status_without_total_skips_no_data_check():
    assert calculate_status(0, 75) == Status.LOW


def test_classes_to_bunk_example():
    # 20/25 = 80% at 75%: floor(2000/75 - 25) = floor(1.67)
    assert classes_to_bunk(20, 25, 75) == 1


def test_classes_to_bunk_clamps_to_zero_below_threshold():
    assert classes_to_bunk(18, 25, 75) == 0


def test_classes_to_bunk_zero_threshold_is_unbounded():
    assert classes_to_bunk(5, 10, 0) == math.inf


def test_classes_to_bunk_keeps_threshold_after_missing():
    for attended in range(0, 41):
        for total in range(attended, 41):
            for threshold in (50, 60, 65, 75, 80, 85, 95):
                k = classes_to_bunk(attended, total, threshold)
                assert k >= 0
                if k > 0:
                    assert attended * 100 >= threshold * (total + k)


def test_classes_to_attend_example():
    # 18/25 = 72% at 75%: ceil((1875 - 1800) / 25)
    assert classes_to_attend(18, 25, 75) == 3


def test_classes_to_attend_is_minimal():
    for attended in range(0, 31):
        for total in range(attended, 31):
            for threshold in (50, 65, 75, 80, 95):
                k = classes_to_attend(attended, total, threshold)
                assert (attended + k) * 100 >= threshold * (total + k)
                if k > 0:
                    assert (attended + k - 1) * 100 < threshold * (total + k - 1)


@pytest.mark.parametrize("attended,total", [(0, 1), (9, 10), (99, 100), (0, 0)])
def test_classes_to_attend_unreachable_at_full_threshold(attended, total):
    assert classes_to_attend(attended, total, 100) == math.inf


def test_classes_to_attend_finite_below_full_threshold():
    assert classes_to_attend(9, 10, 99) != math.inf


def test_subject_key_falls_back_to_name():
    assert subject_key(Subject(name="Seminar")) == "Seminar"
    assert subject_key(Subject(name="Networks", code="CS103")) == "CS103"
    assert subject_key("CS103") == "CS103"


def test_effective_threshold_prefers_override():
    subject = Subject(name="Networks", code="CS103")
    assert effective_threshold(subject, 75, {"CS103": 85}) == 85
    assert effective_threshold(subject, 75, {"CS101": 85}) == 75
    assert effective_threshold(subject, 75, None) == 75


def test_effective_threshold_uses_name_when_code_empty():
    assert effective_threshold(Subject(name="Seminar"), 75, {"Seminar": 60}) == 60


def test_verdicts(subjects):
    cs101, cs102, cs103, seminar = subjects
    assert get_verdict(cs101, 75) == Verdict.SKIP
    assert get_verdict(cs102, 75) == Verdict.ATTEND
    assert get_verdict(cs103, 75) == Verdict.SKIP
    assert get_verdict(seminar, 75) == Verdict.NO_DATA


def test_verdict_risky_when_critical():
    subject = Subject(name="Maths", code="MA101", attended=19, total=25, percentage=76.0)
    assert get_verdict(subject, 75) == Verdict.RISKY


def test_verdict_risky_when_safe_without_headroom():
    # 80% is safe at 75%, but floor(400/75 - 5) leaves nothing to miss
    subject = Subject(name="Lab", code="LB1", attended=4, total=5, percentage=80.0)
    assert calculate_status(80.0, 75, 5) == Status.SAFE
    assert get_verdict(subject, 75) == Verdict.RISKY


class TestAttendanceCalculator:

    def test_analyze_subject(self, subjects):
        calc = AttendanceCalculator(Thresholds(default=75))
        analysis = calc.analyze_subject(subjects[0])

        assert analysis.status == Status.SAFE
        assert analysis.verdict == Verdict.SKIP
        assert analysis.classes_can_miss == 1
        assert analysis.classes_needed == 0
        assert analysis.attend_next == 80.8
        assert analysis.skip_next == 76.9
        assert analysis.message == "You can skip 1 more class"
        assert not analysis.has_custom_threshold

    def test_analyze_subject_low_message(self, subjects):
        calc = AttendanceCalculator()
        analysis = calc.analyze_subject(subjects[1])

        assert analysis.status == Status.LOW
        assert analysis.message == "Attend 3 more classes to reach 75%"

    def test_analyze_subject_with_override(self, subjects):
        calc = AttendanceCalculator(Thresholds(default=75, custom={"CS101": 85}))
        analysis = calc.analyze_subject(subjects[0])

        assert analysis.threshold == 85
        assert analysis.has_custom_threshold
        assert analysis.status == Status.LOW
        assert analysis.verdict == Verdict.ATTEND

    def test_unreachable_threshold_serialises_as_none(self):
        calc = AttendanceCalculator(Thresholds(default=75, custom={"X1": 100}))
        analysis = calc.analyze_subject(Subject(name="X", code="X1", attended=9, total=10, percentage=90.0))

        assert analysis.classes_needed == math.inf
        assert analysis.to_dict()["classes_needed"] is None
        assert analysis.message == "100% is out of reach"

    def test_zero_threshold_message_has_no_count(self, subjects):
        calc = AttendanceCalculator(Thresholds(default=75, custom={"CS101": 0}))
        analysis = calc.analyze_subject(subjects[0])

        assert analysis.status == Status.SAFE
        assert analysis.classes_can_miss == math.inf
        assert "inf" not in analysis.message
        assert analysis.message == "No minimum to keep, every class can be skipped"

    def test_get_threshold_uses_config_lookup(self, subjects):
        thresholds = Thresholds(default=75, custom={"Seminar": 60})
        calc = AttendanceCalculator(thresholds)

        assert calc.get_threshold(subjects[3]) == thresholds.get_threshold("Seminar") == 60
        assert calc.get_threshold("CS101") == 75

    def test_analyze_all_summary(self, subjects):
        calc = AttendanceCalculator()
        summary = calc.analyze_all(subjects)["summary"]

        assert summary["total_subjects"] == 4
        assert summary["safe_count"] == 2
        assert summary["critical_count"] == 0
        assert summary["low_count"] == 1
        assert summary["no_data_count"] == 1
        assert summary["overall_present"] == 76
        assert summary["overall_total"] == 90
        assert summary["overall_percentage"] == 84
        assert summary["overall_status"] == Status.SAFE
        assert summary["total_bunkable"] == 11
        assert summary["total_needed"] == 3
        assert summary["projection"] == {"afterAttendAll": 85, "afterSkipAll": 82}

    def test_analyze_all_without_classes(self):
        summary = AttendanceCalculator().analyze_all([Subject(name="Seminar")])["summary"]

        assert summary["overall_percentage"] == 0
        assert summary["overall_status"] == Status.NO_DATA
        assert summary["projection"] == {"afterAttendAll": 0, "afterSkipAll": 0}

    def test_priority_subjects(self, subjects):
        calc = AttendanceCalculator()
        priority = calc.get_priority_subjects(calc.analyze_all(subjects))

        assert [p["key"] for p in priority] == ["CS102", "CS101", "CS103", "Seminar"]

    def test_filter_by_status(self, subjects):
        calc = AttendanceCalculator()
        analysis = calc.analyze_all(subjects)

        assert [s["key"] for s in calc.filter_by_status(analysis, Status.SAFE)] == ["CS101", "CS103"]
        assert len(calc.filter_by_status(analysis, "all")) == 4

    def test_day_verdicts(self, subjects, timetable, monday):
        calc = AttendanceCalculator()
        verdicts = calc.day_verdicts(timetable, subjects, monday)

        assert [(v["code"], v["verdict"]) for v in verdicts] == [
            ("CS101", Verdict.SKIP),
            ("CS102", Verdict.ATTEND),
        ]

    def test_day_verdicts_skip_unknown_codes_and_sunday(self, subjects, monday):
        calc = AttendanceCalculator()
        timetable = {0: ["XX999", "CS103"], 6: ["CS101"]}

        assert [v["code"] for v in calc.day_verdicts(timetable, subjects, monday)] == ["CS103"]
        assert calc.day_verdicts(timetable, subjects, date(2026, 10, 18)) == []

    def test_week_overview(self, subjects, timetable):
        overview = AttendanceCalculator().week_overview({**timetable, 3: ["CS102", "XX999"]}, subjects)

        assert overview[0] == [Status.SAFE, Status.LOW]
        assert overview[2] == [Status.SAFE, Status.SAFE, Status.NO_DATA]
        assert overview[3] == [Status.LOW, None]
        assert overview[5] == []
        assert sorted(overview) == [0, 1, 2, 3, 4, 5]
