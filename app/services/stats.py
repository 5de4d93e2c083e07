"""Attendance aggregates: daily summary, per-class rates, 30-day trends and dashboard totals.

The pure helpers work on already-loaded students and records; the async
functions load active students and their records from the store first.
Nothing in here sends notifications: trend results only report which
students need attention.
"""
from __future__ import annotations

from collections import Counter
from datetime import date, timedelta
from typing import Iterable, Optional

from pydantic import BaseModel

from app.config import settings
from app.models.attendance import AttendanceRecord, AttendanceStatus
from app.models.student import Student
from app.services import attendance as attendance_service
from app.services.students import list_active_students

PRESENT_LIKE = (AttendanceStatus.PRESENT, AttendanceStatus.LATE)

CONSECUTIVE_ABSENCE_THRESHOLD = 3
ABSENCE_RATE_THRESHOLD = 20.0
MIN_RECORDS_FOR_RATE = 5


class AttendanceSummary(BaseModel):
    date: date
    present: int = 0
    absent: int = 0
    late: int = 0
    excused: int = 0
    total: int = 0


class StudentTrend(AttendanceSummary):
    student_id: str
    student_name: str
    absence_rate: float = 0.0
    consecutive_absences: int = 0
    needs_attention: bool = False


class ClassSummary(BaseModel):
    class_name: str
    total_students: int
    present_count: int
    attendance_rate: float
    total_records: int = 0


class DashboardStats(BaseModel):
    date: date
    total_students: int
    present_today: int
    total_absences: int
    total_presences: int


def count_statuses(records: Iterable[AttendanceRecord]) -> Counter:
    return Counter(r.status for r in records)


def summarize_day(d: date, records: Iterable[AttendanceRecord], total_students: int) -> AttendanceSummary:
    counts = count_statuses(records)
    return AttendanceSummary(
        date=d,
        present=counts[AttendanceStatus.PRESENT],
        absent=counts[AttendanceStatus.ABSENT],
        late=counts[AttendanceStatus.LATE],
        excused=counts[AttendanceStatus.EXCUSED],
        total=total_students,
    )


def attendance_rate(present_or_late: int, group_size: int, distinct_dates: int) -> float:
    """Percentage of expected student-days attended; 100 before any attendance exists."""
    possible = group_size * distinct_dates
    if possible <= 0:
        return 100.0
    return present_or_late / possible * 100


def build_class_summaries(
    students: list[Student],
    records: list[AttendanceRecord],
    distinct_dates: int,
    today: date,
) -> list[ClassSummary]:
    groups: dict[str, list[str]] = {}
    for s in students:
        groups.setdefault(s.class_name, []).append(str(s.id))

    summaries = []
    for class_name in sorted(groups):
        ids = set(groups[class_name])
        class_records = [r for r in records if r.student_id in ids]
        attended = [r for r in class_records if r.status in PRESENT_LIKE]
        summaries.append(
            ClassSummary(
                class_name=class_name,
                total_students=len(ids),
                present_count=sum(1 for r in attended if r.date == today),
                attendance_rate=attendance_rate(len(attended), len(ids), distinct_dates),
                total_records=len(class_records),
            )
        )
    return summaries


def longest_absence_run(records: list[AttendanceRecord]) -> int:
    """Longest unbroken run of absences anywhere in ``records``.

    Records are expected most-recent-first. This is the worst stretch in the
    window, not the streak that is still running today.
    """
    longest = current = 0
    for r in records:
        if r.status == AttendanceStatus.ABSENT:
            current += 1
            longest = max(longest, current)
        else:
            current = 0
    return longest


def needs_attention(consecutive_absences: int, absence_rate: float, total_records: int) -> bool:
    if consecutive_absences >= CONSECUTIVE_ABSENCE_THRESHOLD:
        return True
    return absence_rate > ABSENCE_RATE_THRESHOLD and total_records >= MIN_RECORDS_FOR_RATE


def evaluate_trend(student: Student, records: list[AttendanceRecord], today: date) -> StudentTrend:
    """Trend for one student over records already limited to the window."""
    ordered = sorted(records, key=lambda r: r.date, reverse=True)
    counts = count_statuses(ordered)
    total = len(ordered)
    absent = counts[AttendanceStatus.ABSENT]
    rate = absent / total * 100 if total else 0.0
    run = longest_absence_run(ordered)
    return StudentTrend(
        date=today,
        student_id=str(student.id),
        student_name=student.full_name,
        present=counts[AttendanceStatus.PRESENT],
        absent=absent,
        late=counts[AttendanceStatus.LATE],
        excused=counts[AttendanceStatus.EXCUSED],
        total=total,
        absence_rate=rate,
        consecutive_absences=run,
        needs_attention=needs_attention(run, rate, total),
    )


def trend_window(today: date, days: Optional[int] = None) -> tuple[date, date]:
    """Calendar window of ``days`` days ending on ``today`` inclusive."""
    days = days or settings.trend_window_days
    return today - timedelta(days=days - 1), today


async def get_attendance_summary(d: date) -> AttendanceSummary:
    students = await list_active_students()
    ids = [str(s.id) for s in students]
    records = await attendance_service.get_attendance_for_date(d, ids)
    return summarize_day(d, records, len(students))


async def get_class_summaries(today: Optional[date] = None) -> list[ClassSummary]:
    today = today or date.today()
    students = await list_active_students()
    if not students:
        return []
    records = await attendance_service.get_attendance_for_students(str(s.id) for s in students)
    dates = await attendance_service.distinct_attendance_dates()
    return build_class_summaries(students, records, len(dates), today)


async def get_attendance_trends(today: Optional[date] = None) -> list[StudentTrend]:
    """30-day trend for every active student, highest absence rate first."""
    today = today or date.today()
    students = await list_active_students()
    if not students:
        return []
    start, end = trend_window(today)
    records = await attendance_service.get_attendance_between(start, end, (str(s.id) for s in students))
    by_student: dict[str, list[AttendanceRecord]] = {}
    for r in records:
        by_student.setdefault(r.student_id, []).append(r)
    trends = [evaluate_trend(s, by_student.get(str(s.id), []), today) for s in students]
    return sorted(trends, key=lambda t: t.absence_rate, reverse=True)


async def get_students_needing_attention(today: Optional[date] = None) -> list[StudentTrend]:
    return [t for t in await get_attendance_trends(today) if t.needs_attention]


async def get_dashboard_stats(today: Optional[date] = None) -> DashboardStats:
    today = today or date.today()
    students = await list_active_students()
    records = await attendance_service.get_attendance_for_students(str(s.id) for s in students)
    counts = count_statuses(records)
    return DashboardStats(
        date=today,
        total_students=len(students),
        present_today=sum(1 for r in records if r.date == today and r.status in PRESENT_LIKE),
        total_absences=counts[AttendanceStatus.ABSENT],
        total_presences=counts[AttendanceStatus.PRESENT],
    )
