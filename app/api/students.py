"""Student roster CRUD and CSV import."""
from fastapi import APIRouter, File, HTTPException, Query, UploadFile
from fastapi.responses import PlainTextResponse

from app.api.deps import AdminOnly, StaffUser
from app.models.student import StudentCreate, StudentUpdate, serialize_student
from app.services import students as student_service
from app.services.csv_import import get_csv_template, import_students_csv

router = APIRouter()


@router.get("/")
async def list_students(
    user: StaffUser,
    q: str | None = Query(None, description="Search by name, student number or class"),
):
    students = await student_service.list_active_students(q)
    return [serialize_student(s) for s in students]


@router.post("/", status_code=201)
async def create_student(data: StudentCreate, user: StaffUser):
    s = await student_service.create_student(data)
    return serialize_student(s)


@router.delete("/", status_code=204)
async def clear_students(admin: AdminOnly):
    """Remove every student and every attendance record."""
    await student_service.clear_students()


@router.get("/import/template", response_class=PlainTextResponse)
async def download_template(user: StaffUser):
    return PlainTextResponse(
        get_csv_template(),
        media_type="text/csv",
        headers={"Content-Disposition": "attachment; filename=students_template.csv"},
    )


@router.post("/import")
async def import_students(user: StaffUser, file: UploadFile = File(...)):
    raw = await file.read()
    try:
        content = raw.decode("utf-8-sig")
    except UnicodeDecodeError:
        raise HTTPException(status_code=400, detail="CSV file must be UTF-8 encoded")
    result, students = await import_students_csv(content)
    if not result.success:
        raise HTTPException(status_code=400, detail=result.model_dump(exclude={"data"}))
    return {
        "success": True,
        "message": result.message,
        "imported": len(students),
        "errors": result.errors,
        "data": [serialize_student(s) for s in students],
    }


@router.get("/{student_id}")
async def get_student(student_id: str, user: StaffUser):
    s = await student_service.get_student(student_id)
    if not s:
        raise HTTPException(status_code=404, detail="Student not found")
    return serialize_student(s)


@router.patch("/{student_id}")
async def update_student(student_id: str, data: StudentUpdate, user: StaffUser):
    s = await student_service.get_student(student_id)
    if not s:
        raise HTTPException(status_code=404, detail="Student not found")
    s = await student_service.update_student(s, data)
    return serialize_student(s)


@router.delete("/{student_id}", status_code=204)
async def delete_student(student_id: str, user: StaffUser):
    """Soft delete: the student moves to the recycle bin."""
    s = await student_service.get_student(student_id)
    if not s:
        raise HTTPException(status_code=404, detail="Student not found")
    await student_service.soft_delete_student(s)
