"""Student roster persistence: create, soft delete, restore, hard delete and retention sweep."""
from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Iterable

from beanie import PydanticObjectId

from app.config import settings
from app.models.attendance import AttendanceRecord
from app.models.student import Student, StudentCreate, StudentUpdate

logger = logging.getLogger(__name__)

ACTIVE = {"deleted_at": None}


def safe_object_id(value: str | None) -> PydanticObjectId | None:
    if not value:
        return None
    try:
        return PydanticObjectId(value)
    except Exception:
        return None


async def list_active_students(q: str | None = None) -> list[Student]:
    query: dict = dict(ACTIVE)
    if q and q.strip():
        search = q.strip()
        query["$or"] = [
            {"first_name": {"$regex": search, "$options": "i"}},
            {"last_name": {"$regex": search, "$options": "i"}},
            {"student_id": {"$regex": search, "$options": "i"}},
            {"class_name": {"$regex": search, "$options": "i"}},
        ]
    return await Student.find(query).sort("last_name").to_list()


async def list_deleted_students() -> list[Student]:
    return await Student.find({"deleted_at": {"$ne": None}}).sort("-deleted_at").to_list()


async def get_student(student_id: str, *, include_deleted: bool = False) -> Student | None:
    oid = safe_object_id(student_id)
    if not oid:
        return None
    s = await Student.get(oid)
    if s and not include_deleted and not s.is_active:
        return None
    return s


async def get_active_students_by_ids(student_ids: Iterable[str]) -> list[Student]:
    oids = [oid for oid in (safe_object_id(s) for s in student_ids) if oid]
    if not oids:
        return []
    return await Student.find({"_id": {"$in": oids}, **ACTIVE}).to_list()


async def create_student(data: StudentCreate) -> Student:
    s = Student(**data.model_dump())
    await s.insert()
    return s


async def add_students(rows: list[StudentCreate]) -> list[Student]:
    """Insert imported rows; each gets a freshly generated id."""
    students = []
    for row in rows:
        s = Student(**row.model_dump())
        await s.insert()
        students.append(s)
    return students


async def update_student(s: Student, data: StudentUpdate) -> Student:
    for key, value in data.model_dump(exclude_unset=True).items():
        setattr(s, key, value)
    s.updated_at = datetime.utcnow()
    await s.save()
    return s


async def soft_delete_student(s: Student) -> Student:
    """Move a student to the recycle bin."""
    s.deleted_at = datetime.utcnow()
    s.updated_at = s.deleted_at
    await s.save()
    return s


async def restore_student(s: Student) -> Student:
    s.deleted_at = None
    s.updated_at = datetime.utcnow()
    await s.save()
    return s


async def hard_delete_student(s: Student) -> None:
    """Remove the student and its attendance.

    Attendance goes first, then the student row. The two deletes are not
    atomic: a failure in between leaves the student without attendance.
    """
    sid = str(s.id)
    await AttendanceRecord.find(AttendanceRecord.student_id == sid).delete()
    await s.delete()
    logger.info(f"Permanently deleted student {sid} and its attendance records")


async def clear_students() -> None:
    """Delete every attendance record, then every student."""
    await AttendanceRecord.delete_all()
    await Student.delete_all()
    logger.info("Cleared all students and attendance records")


async def cleanup_deleted_students(days: int | None = None, *, now: datetime | None = None) -> int:
    """Hard-delete students that have been in the recycle bin longer than ``days``."""
    if days is None:
        days = settings.retention_days
    cutoff = (now or datetime.utcnow()) - timedelta(days=days)
    expired = await Student.find({"deleted_at": {"$ne": None, "$lt": cutoff}}).to_list()
    for s in expired:
        await hard_delete_student(s)
    logger.info(f"Retention sweep removed {len(expired)} students deleted before {cutoff.isoformat()}")
    return len(expired)


async def run_daily_cleanup(days: int | None = None) -> dict:
    """Entry point for a scheduled job; never raises."""
    try:
        deleted = await cleanup_deleted_students(days)
        return {"success": True, "message": "Cleanup completed successfully", "deleted": deleted}
    except Exception as e:
        logger.error(f"Daily cleanup failed: {e}")
        return {"success": False, "message": "Cleanup failed", "error": str(e), "deleted": 0}
