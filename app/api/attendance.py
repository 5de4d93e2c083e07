from fastapi import APIRouter, HTTPException

from app.api.deps import StaffUser, parse_date
from app.models.attendance import AttendanceBulkMark, AttendanceMark, serialize_record
from app.services import attendance as attendance_service
from app.services import students as student_service

router = APIRouter()


@router.post("/mark")
async def mark_attendance(data: AttendanceMark, user: StaffUser):
    """Record one student's status for a day, replacing any earlier mark."""
    s = await student_service.get_student(data.student_id)
    if not s:
        raise HTTPException(status_code=404, detail="Student not found")
    record = await attendance_service.record_attendance(
        str(s.id), data.date, data.status, data.notes, marked_by=str(user.id)
    )
    return serialize_record(record)


@router.post("/mark-bulk")
async def mark_attendance_bulk(data: AttendanceBulkMark, user: StaffUser):
    """Mark attendance for several students on one date. Unknown or binned students are skipped."""
    students = await student_service.get_active_students_by_ids(a.student_id for a in data.attendance)
    active_ids = {str(s.id) for s in students}
    saved = []
    skipped = []
    for entry in data.attendance:
        if entry.student_id not in active_ids:
            skipped.append(entry.student_id)
            continue
        record = await attendance_service.record_attendance(
            entry.student_id, data.date, entry.status, entry.notes, marked_by=str(user.id)
        )
        saved.append(serialize_record(record))
    return {
        "status": "success",
        "message": f"Attendance marked for {len(saved)} students",
        "records": saved,
        "skipped": skipped,
    }


@router.get("/date/{date_str}")
async def get_attendance_for_date(date_str: str, user: StaffUser):
    d = parse_date(date_str)
    students = await student_service.list_active_students()
    records = await attendance_service.get_attendance_for_date(d, [str(s.id) for s in students])
    return [serialize_record(r) for r in records]


@router.get("/student/{student_id}")
async def get_student_attendance(student_id: str, user: StaffUser):
    s = await student_service.get_student(student_id, include_deleted=True)
    if not s:
        raise HTTPException(status_code=404, detail="Student not found")
    records = await attendance_service.get_student_attendance(str(s.id))
    return [serialize_record(r) for r in records]
