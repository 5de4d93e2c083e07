"""Guardian notifications: single, bulk and needs-attention sends, plus the audit log."""
from typing import Optional

from fastapi import APIRouter, HTTPException

from app.api.deps import StaffUser
from app.models.notification import (
    BulkNotificationRequest,
    BulkNotificationResult,
    NotificationChannel,
    NotificationLog,
    NotificationRequest,
    NotificationResult,
)
from app.services import notifications as notification_service
from app.services import students as student_service

router = APIRouter()


@router.post("/send", response_model=NotificationResult)
async def send_notification(data: NotificationRequest, user: StaffUser):
    s = await student_service.get_student(data.student_id)
    if not s:
        raise HTTPException(status_code=404, detail="Student not found")
    return await notification_service.notify_student(s, data.date, data.notification_type, data.message)


@router.post("/send-bulk", response_model=BulkNotificationResult)
async def send_bulk_notifications(data: BulkNotificationRequest, user: StaffUser):
    if not data.student_ids:
        raise HTTPException(status_code=400, detail="No student IDs provided")
    return await notification_service.notify_by_ids(
        data.student_ids, data.date, data.notification_type, data.message
    )


@router.post("/needs-attention", response_model=BulkNotificationResult)
async def notify_needs_attention(user: StaffUser, notification_type: Optional[NotificationChannel] = None):
    """Notify guardians of every student flagged by the 30-day trend."""
    return await notification_service.notify_students_needing_attention(notification_type=notification_type)


@router.get("/log/{student_id}")
async def notification_log(student_id: str, user: StaffUser):
    entries = await NotificationLog.find(NotificationLog.student_id == student_id).sort("-notification_date").to_list()
    return [
        {
            "id": str(e.id),
            "student_id": e.student_id,
            "notification_type": e.notification_type,
            "notification_date": e.notification_date.isoformat(),
            "message": e.message,
            "success": e.success,
        }
        for e in entries
    ]
