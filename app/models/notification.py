"""Notification audit trail and dispatch request/response schemas."""
from datetime import date, datetime
from enum import Enum
from typing import Optional

from beanie import Document, Indexed
from pydantic import BaseModel, Field


class NotificationChannel(str, Enum):
    SMS = "sms"
    WHATSAPP = "whatsapp"
    EMAIL = "email"


class NotificationLog(Document):
    """Write-only record of every delivery attempt."""
    student_id: Indexed(str)
    notification_type: NotificationChannel  # channel actually used
    notification_date: datetime = Field(default_factory=datetime.utcnow)
    message: str
    success: bool

    class Settings:
        name = "attendance_notifications"


class NotificationRequest(BaseModel):
    student_id: str
    date: date
    notification_type: Optional[NotificationChannel] = None
    message: Optional[str] = None


class BulkNotificationRequest(BaseModel):
    student_ids: list[str]
    date: date
    notification_type: Optional[NotificationChannel] = None
    message: Optional[str] = None


class NotificationResult(BaseModel):
    student_id: str
    success: bool
    message: str
    channel: Optional[NotificationChannel] = None
    student_name: Optional[str] = None
    contact: Optional[str] = None
    reason: Optional[str] = None
    no_contact: bool = False


class BulkNotificationResult(BaseModel):
    success: bool
    message: str
    succeeded: int = 0
    failed: int = 0
    no_contact: int = 0
    details: list[NotificationResult] = Field(default_factory=list)
