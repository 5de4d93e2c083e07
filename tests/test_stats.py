from datetime import timedelta

import pytest

from app.models.attendance import AttendanceRecord, AttendanceStatus
from app.services import stats
from app.services.students import soft_delete_student


def _records(statuses, today):
    return [
        AttendanceRecord(student_id="s1", date=today - timedelta(days=i), status=AttendanceStatus(st))
        for i, st in enumerate(statuses)
    ]


async def test_longest_absence_run_is_worst_stretch_not_current_streak(db, today):
    records = _records(["absent", "absent", "present", "absent", "absent", "absent"], today)
    assert stats.longest_absence_run(records) == 3


def test_longest_absence_run_empty():
    assert stats.longest_absence_run([]) == 0


@pytest.mark.parametrize(
    "consecutive, rate, total, expected",
    [
        (3, 10.0, 10, True),
        (3, 0.0, 3, True),
        (2, 25.0, 5, True),
        (2, 25.0, 4, False),
        (2, 20.0, 10, False),
        (0, 0.0, 0, False),
    ],
)
def test_needs_attention(consecutive, rate, total, expected):
    assert stats.needs_attention(consecutive, rate, total) is expected


def test_attendance_rate_falls_back_to_full_without_data():
    assert stats.attendance_rate(0, 4, 0) == 100.0
    assert stats.attendance_rate(3, 2, 2) == 75.0


def test_trend_window_is_thirty_days_inclusive(today):
    start, end = stats.trend_window(today)
    assert end == today
    assert (end - start).days == 29


async def test_evaluate_trend_flags_consecutive_absences_with_low_rate(make_student, today):
    s = await make_student(first_name="Ana", last_name="Lee")
    # 3 absences in 15 records is exactly 20%, which alone would not flag.
    records = _records(["present"] * 6 + ["absent"] * 3 + ["present"] * 6, today)
    trend = stats.evaluate_trend(s, records, today)
    assert trend.student_name == "Ana Lee"
    assert trend.total == 15
    assert trend.absence_rate == pytest.approx(20.0)
    assert trend.consecutive_absences == 3
    assert trend.needs_attention is True


async def test_evaluate_trend_without_records(make_student, today):
    s = await make_student()
    trend = stats.evaluate_trend(s, [], today)
    assert trend.absence_rate == 0
    assert trend.consecutive_absences == 0
    assert trend.needs_attention is False


async def test_attendance_summary_counts_only_active_students(make_student, add_records, today):
    a = await make_student()
    b = await make_student()
    c = await make_student()
    gone = await make_student()
    await add_records(a, ["present"])
    await add_records(b, ["late"])
    await add_records(gone, ["absent"])
    await soft_delete_student(gone)

    summary = await stats.get_attendance_summary(today)
    assert summary.present == 1
    assert summary.late == 1
    assert summary.absent == 0
    assert summary.excused == 0
    # c has no record today and sits in no bucket, but still counts as a student.
    assert summary.total == 3
    assert c.is_active


async def test_class_summaries(make_student, add_records, today):
    a1 = await make_student(class_name="10A")
    a2 = await make_student(class_name="10A")
    b1 = await make_student(class_name="10B")
    binned = await make_student(class_name="10C")
    await soft_delete_student(binned)

    await add_records(a1, ["present", "absent"])  # today, yesterday
    await add_records(a2, ["late", "present"])
    await add_records(b1, ["absent"])

    summaries = await stats.get_class_summaries(today)
    by_name = {s.class_name: s for s in summaries}
    assert list(by_name) == ["10A", "10B"]

    assert by_name["10A"].total_students == 2
    assert by_name["10A"].present_count == 2
    # 3 present-or-late over 2 students x 2 distinct dates
    assert by_name["10A"].attendance_rate == pytest.approx(75.0)
    assert by_name["10A"].total_records == 4

    assert by_name["10B"].present_count == 0
    assert by_name["10B"].attendance_rate == pytest.approx(0.0)


async def test_class_summary_is_optimistic_before_any_attendance(make_student, today):
    await make_student(class_name="9A")
    summaries = await stats.get_class_summaries(today)
    assert summaries[0].attendance_rate == 100.0


async def test_trends_use_window_and_sort_by_absence_rate(make_student, add_records, today):
    steady = await make_student(first_name="Steady")
    shaky = await make_student(first_name="Shaky")
    await add_records(steady, ["present"] * 5)
    await add_records(shaky, ["absent", "absent", "present", "absent", "absent", "absent"])
    # Outside the 30-day window: must not count.
    await add_records(steady, ["absent"], end=today - timedelta(days=30))

    trends = await stats.get_attendance_trends(today)
    assert [t.student_id for t in trends] == [str(shaky.id), str(steady.id)]
    assert trends[0].consecutive_absences == 3
    assert trends[0].needs_attention is True
    assert trends[1].total == 5
    assert trends[1].absence_rate == 0
    assert trends[1].needs_attention is False

    flagged = await stats.get_students_needing_attention(today)
    assert [t.student_id for t in flagged] == [str(shaky.id)]


async def test_trends_skip_binned_students(make_student, add_records, today):
    s = await make_student()
    await add_records(s, ["absent"] * 4)
    await soft_delete_student(s)
    assert await stats.get_attendance_trends(today) == []


async def test_dashboard_stats(make_student, add_records, today):
    a = await make_student()
    b = await make_student()
    await add_records(a, ["present", "absent", "present"])
    await add_records(b, ["late", "absent"])

    result = await stats.get_dashboard_stats(today)
    assert result.total_students == 2
    assert result.present_today == 2
    assert result.total_absences == 2
    assert result.total_presences == 2
