from datetime import date, datetime
from enum import Enum
from typing import Optional

import pymongo
from beanie import Document, Indexed
from pydantic import BaseModel, Field
from pymongo import IndexModel


class AttendanceStatus(str, Enum):
    PRESENT = "present"
    ABSENT = "absent"
    LATE = "late"
    EXCUSED = "excused"


class AttendanceRecord(Document):
    """One student's attendance on one calendar day."""
    student_id: Indexed(str)
    date: Indexed(date)
    status: AttendanceStatus
    notes: Optional[str] = None
    marked_at: datetime = Field(default_factory=datetime.utcnow)
    marked_by: Optional[str] = None  # user_id

    class Settings:
        name = "attendance_records"
        use_state_management = True
        indexes = [
            IndexModel(
                [("student_id", pymongo.ASCENDING), ("date", pymongo.ASCENDING)],
                name="uq_student_date",
                unique=True,
            ),
        ]


class AttendanceMark(BaseModel):
    student_id: str
    date: date
    status: AttendanceStatus
    notes: Optional[str] = None


class AttendanceEntry(BaseModel):
    student_id: str
    status: AttendanceStatus
    notes: Optional[str] = None


class AttendanceBulkMark(BaseModel):
    date: date
    attendance: list[AttendanceEntry]


def serialize_record(r: AttendanceRecord) -> dict:
    return {
        "id": str(r.id),
        "student_id": r.student_id,
        "date": r.date.isoformat(),
        "status": r.status.value,
        "notes": r.notes,
    }
