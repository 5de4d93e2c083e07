"""Beanie document models and Pydantic schemas."""
from app.models.user import User, UserRole, UserCreate
from app.models.student import Student, StudentCreate, StudentUpdate, ImportResult
from app.models.attendance import AttendanceRecord, AttendanceStatus, AttendanceMark, AttendanceBulkMark
from app.models.notification import (
    NotificationLog,
    NotificationChannel,
    NotificationRequest,
    BulkNotificationRequest,
    NotificationResult,
    BulkNotificationResult,
)

DOCUMENT_MODELS = [
    User,
    Student,
    AttendanceRecord,
    NotificationLog,
]

__all__ = [
    "DOCUMENT_MODELS",
    "User",
    "UserRole",
    "UserCreate",
    "Student",
    "StudentCreate",
    "StudentUpdate",
    "ImportResult",
    "AttendanceRecord",
    "AttendanceStatus",
    "AttendanceMark",
    "AttendanceBulkMark",
    "NotificationLog",
    "NotificationChannel",
    "NotificationRequest",
    "BulkNotificationRequest",
    "NotificationResult",
    "BulkNotificationResult",
]
