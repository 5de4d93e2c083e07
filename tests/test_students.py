from datetime import datetime, timedelta

import pytest
from pydantic import ValidationError

from app.models.attendance import AttendanceRecord, AttendanceStatus
from app.models.student import Student, StudentCreate, StudentUpdate
from app.services import attendance as attendance_service
from app.services import students as student_service


async def test_upsert_keeps_one_record_per_student_and_day(make_student, today):
    s = await make_student()
    sid = str(s.id)
    first = await attendance_service.record_attendance(sid, today, AttendanceStatus.ABSENT)
    second = await attendance_service.record_attendance(sid, today, AttendanceStatus.LATE, notes="bus")

    stored = await AttendanceRecord.find({"student_id": sid}).to_list()
    assert len(stored) == 1
    assert stored[0].status == AttendanceStatus.LATE
    assert stored[0].notes == "bus"
    assert first.id == second.id


async def test_soft_deleted_students_leave_active_roster(make_student):
    keep = await make_student(last_name="Keep")
    gone = await make_student(last_name="Gone")
    await student_service.soft_delete_student(gone)

    active = await student_service.list_active_students()
    assert [s.id for s in active] == [keep.id]
    assert await student_service.get_student(str(gone.id)) is None

    binned = await student_service.list_deleted_students()
    assert [s.id for s in binned] == [gone.id]
    assert binned[0].deleted_at is not None


async def test_restore_brings_student_back(make_student):
    s = await make_student()
    await student_service.soft_delete_student(s)
    await student_service.restore_student(s)
    fetched = await student_service.get_student(str(s.id))
    assert fetched is not None
    assert fetched.deleted_at is None


async def test_soft_deleted_student_history_stays_joinable(make_student, add_records):
    s = await make_student()
    await add_records(s, ["absent", "present"])
    await student_service.soft_delete_student(s)
    records = await attendance_service.get_student_attendance(str(s.id))
    assert len(records) == 2


async def test_hard_delete_cascades_attendance(make_student, add_records):
    s = await make_student()
    other = await make_student()
    await add_records(s, ["absent", "present", "late"])
    await add_records(other, ["present"])

    await student_service.hard_delete_student(s)

    assert await Student.get(s.id) is None
    assert await attendance_service.get_student_attendance(str(s.id)) == []
    assert len(await attendance_service.get_student_attendance(str(other.id))) == 1


async def test_retention_sweep_only_removes_expired(make_student, add_records):
    now = datetime(2026, 3, 20, 12, 0)
    old = await make_student()
    recent = await make_student()
    active = await make_student()
    await add_records(old, ["absent"])
    old.deleted_at = now - timedelta(days=31)
    await old.save()
    recent.deleted_at = now - timedelta(days=5)
    await recent.save()

    removed = await student_service.cleanup_deleted_students(30, now=now)

    assert removed == 1
    assert await Student.get(old.id) is None
    assert await Student.get(recent.id) is not None
    assert await Student.get(active.id) is not None
    assert await AttendanceRecord.find({"student_id": str(old.id)}).count() == 0


async def test_run_daily_cleanup_reports_outcome(make_student):
    s = await make_student()
    s.deleted_at = datetime.utcnow() - timedelta(days=40)
    await s.save()
    result = await student_service.run_daily_cleanup()
    assert result == {"success": True, "message": "Cleanup completed successfully", "deleted": 1}


async def test_clear_students_removes_everything(make_student, add_records):
    s = await make_student()
    await add_records(s, ["present"])
    await student_service.clear_students()
    assert await Student.count() == 0
    assert await AttendanceRecord.count() == 0


async def test_create_update_and_search(db):
    s = await student_service.create_student(
        StudentCreate(student_id="555", first_name="Maya", last_name="Ramdin", class_name="11B", grade_level=11)
    )
    await student_service.update_student(s, StudentUpdate(contact_phone="5234 1234"))

    found = await student_service.list_active_students("ramd")
    assert [x.id for x in found] == [s.id]
    assert found[0].contact_phone == "5234 1234"
    assert await student_service.list_active_students("nobody") == []


async def test_lookup_by_ids_ignores_bad_and_binned_ids(make_student):
    a = await make_student()
    b = await make_student()
    await student_service.soft_delete_student(b)
    found = await student_service.get_active_students_by_ids([str(a.id), str(b.id), "not-an-id"])
    assert [s.id for s in found] == [a.id]


async def test_update_rejects_null_for_roster_fields(make_student):
    s = await make_student(class_name="10A")
    with pytest.raises(ValidationError):
        StudentUpdate(class_name=None)
    with pytest.raises(ValidationError):
        StudentUpdate.model_validate({"first_name": "Ana", "grade_level": None})

    # optional contact fields can still be cleared
    await student_service.update_student(s, StudentUpdate(email=None, contact_phone=None))
    stored = await student_service.get_student(str(s.id))
    assert stored.class_name == "10A"
    assert stored.email is None
