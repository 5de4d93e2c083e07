"""Recycle bin: soft-deleted students awaiting restore or permanent deletion."""
from fastapi import APIRouter, HTTPException, Query

from app.api.deps import AdminOnly, StaffUser
from app.config import settings
from app.models.student import serialize_student
from app.services import students as student_service

router = APIRouter()


async def _get_deleted(student_id: str):
    s = await student_service.get_student(student_id, include_deleted=True)
    if not s or s.is_active:
        raise HTTPException(status_code=404, detail="Student not found in recycle bin")
    return s


@router.get("/")
async def list_deleted(user: StaffUser):
    students = await student_service.list_deleted_students()
    return [serialize_student(s) for s in students]


@router.post("/{student_id}/restore")
async def restore_student(student_id: str, user: StaffUser):
    s = await _get_deleted(student_id)
    s = await student_service.restore_student(s)
    return serialize_student(s)


@router.delete("/{student_id}", status_code=204)
async def delete_permanently(student_id: str, admin: AdminOnly):
    s = await _get_deleted(student_id)
    await student_service.hard_delete_student(s)


@router.post("/cleanup")
async def run_cleanup(
    admin: AdminOnly,
    days: int = Query(settings.retention_days, ge=0, description="Delete students binned longer than this"),
):
    """Retention sweep, normally run on a schedule."""
    return await student_service.run_daily_cleanup(days)
