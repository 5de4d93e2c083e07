"""Attendance persistence: one record per student per day."""
from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Iterable, Optional

from pymongo.errors import DuplicateKeyError

from app.models.attendance import AttendanceRecord, AttendanceStatus

logger = logging.getLogger(__name__)


async def record_attendance(
    student_id: str,
    d: date,
    status: AttendanceStatus,
    notes: Optional[str] = None,
    marked_by: Optional[str] = None,
) -> AttendanceRecord:
    """Insert or update the (student_id, date) record."""
    record = await AttendanceRecord.find_one({"student_id": student_id, "date": d})
    if not record:
        record = AttendanceRecord(
            student_id=student_id,
            date=d,
            status=status,
            notes=notes,
            marked_by=marked_by,
        )
        try:
            await record.insert()
            return record
        except DuplicateKeyError:
            # Another writer inserted the same day first; update theirs.
            record = await AttendanceRecord.find_one({"student_id": student_id, "date": d})
            if not record:
                raise

    record.status = status
    record.notes = notes
    record.marked_by = marked_by
    record.marked_at = datetime.utcnow()
    await record.save()
    return record


async def get_attendance_for_date(d: date, student_ids: Iterable[str] | None = None) -> list[AttendanceRecord]:
    query: dict = {"date": d}
    if student_ids is not None:
        query["student_id"] = {"$in": list(student_ids)}
    return await AttendanceRecord.find(query).to_list()


async def get_student_attendance(student_id: str) -> list[AttendanceRecord]:
    return await AttendanceRecord.find({"student_id": student_id}).sort("-date").to_list()


async def get_attendance_between(start: date, end: date, student_ids: Iterable[str]) -> list[AttendanceRecord]:
    """Records in [start, end] for the given students, most recent first."""
    return (
        await AttendanceRecord.find(
            {
                "student_id": {"$in": list(student_ids)},
                "date": {"$gte": start, "$lte": end},
            }
        )
        .sort("-date")
        .to_list()
    )


async def get_attendance_for_students(student_ids: Iterable[str]) -> list[AttendanceRecord]:
    return await AttendanceRecord.find({"student_id": {"$in": list(student_ids)}}).to_list()


async def distinct_attendance_dates() -> list[date]:
    """Every calendar day that has at least one record, across the whole store."""
    values = await AttendanceRecord.distinct("date")
    return sorted({v.date() if isinstance(v, datetime) else v for v in values})
