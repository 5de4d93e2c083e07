"""Absence notifications: channel selection, fallback, batching and the audit log.

Channel policy: a phone channel (sms / whatsapp) is tried first when asked
for and the student has a phone; email is the only fallback. Asking for
email never falls back to a phone channel. Without any usable contact the
dispatch fails straight away without calling a provider or writing a log row.
"""
from __future__ import annotations

import asyncio
import logging
from datetime import date
from typing import Optional

from app.config import settings
from app.models.notification import (
    BulkNotificationResult,
    NotificationChannel,
    NotificationLog,
    NotificationResult,
)
from app.models.student import Student
from app.services.messaging import MessagingClient, get_messaging_client, normalize_phone
from app.services.stats import CONSECUTIVE_ABSENCE_THRESHOLD, StudentTrend, get_students_needing_attention
from app.services.students import get_active_students_by_ids

logger = logging.getLogger(__name__)

NO_CONTACT_REASON = "Student has no contact information for notifications"
NOT_FOUND_REASON = "Student not found"

PHONE_CHANNELS = (NotificationChannel.SMS, NotificationChannel.WHATSAPP)

_CHANNEL_LABELS = {
    NotificationChannel.SMS: "SMS",
    NotificationChannel.WHATSAPP: "WhatsApp",
    NotificationChannel.EMAIL: "Email",
}


def default_message(student: Student, d: date) -> str:
    return (
        "This is an automated notification from the school attendance system. "
        f"{student.full_name} was marked absent on {d.isoformat()}. "
        "Please contact the school for more information."
    )


def email_subject(student: Student) -> str:
    subject = f"Attendance Notification for {student.full_name}"
    if settings.school_name:
        subject = f"{subject} - {settings.school_name}"
    return subject


def attention_message(trend: StudentTrend) -> str:
    if trend.consecutive_absences >= CONSECUTIVE_ABSENCE_THRESHOLD:
        return (
            "This is an important notification from the school attendance system. "
            f"{trend.student_name} has been absent for {trend.consecutive_absences} consecutive days. "
            "Please contact the school immediately."
        )
    return (
        "This is a notification from the school attendance system. "
        f"{trend.student_name} has missed {trend.absence_rate:.1f}% of classes "
        f"in the last {settings.trend_window_days} days."
    )


def plan_channels(
    student: Student, preference: Optional[NotificationChannel] = None
) -> list[tuple[NotificationChannel, str]]:
    """Ordered (channel, address) attempts for a student; empty when nothing is reachable."""
    preferred = NotificationChannel(preference or student.notification_preference or NotificationChannel.SMS)
    attempts = []
    if preferred in PHONE_CHANNELS:
        phone = normalize_phone(student.contact_phone)
        if phone:
            attempts.append((preferred, phone))
    email = (student.email or "").strip()
    if email:
        attempts.append((NotificationChannel.EMAIL, email))
    return attempts


async def log_notification(student_id: str, channel: NotificationChannel, message: str, success: bool) -> None:
    """Best-effort audit row; failures are logged and dropped."""
    try:
        await NotificationLog(
            student_id=student_id,
            notification_type=channel,
            message=message,
            success=success,
        ).insert()
    except Exception as e:
        logger.warning(f"Could not log notification for student {student_id}: {e}")


async def _send(client: MessagingClient, channel: NotificationChannel, to: str, student: Student, text: str) -> dict:
    if channel == NotificationChannel.SMS:
        return await client.send_sms(to, text)
    if channel == NotificationChannel.WHATSAPP:
        return await client.send_whatsapp(to, text)
    return await client.send_email(to, email_subject(student), text)


async def notify_student(
    student: Student,
    d: date,
    notification_type: Optional[NotificationChannel] = None,
    message: Optional[str] = None,
    client: Optional[MessagingClient] = None,
) -> NotificationResult:
    """Deliver one notification, falling back to email when the phone channel fails."""
    student_id = str(student.id)
    text = message or default_message(student, d)
    attempts = plan_channels(student, notification_type)
    if not attempts:
        logger.info(f"Student {student_id} has no contact information")
        return NotificationResult(
            student_id=student_id,
            student_name=student.full_name,
            success=False,
            message=NO_CONTACT_REASON,
            reason=NO_CONTACT_REASON,
            no_contact=True,
        )

    client = client or get_messaging_client()
    errors = []
    for channel, to in attempts:
        label = _CHANNEL_LABELS[channel]
        try:
            await _send(client, channel, to, student, text)
        except Exception as e:
            logger.warning(f"{label} notification to {to} for student {student_id} failed: {e}")
            errors.append(f"{label}: {e}")
            continue
        await log_notification(student_id, channel, text, True)
        return NotificationResult(
            student_id=student_id,
            student_name=student.full_name,
            success=True,
            channel=channel,
            contact=to,
            message=f"{label} notification sent successfully to {to}",
        )

    channel, to = attempts[-1]
    await log_notification(student_id, channel, text, False)
    reason = "; ".join(errors)
    return NotificationResult(
        student_id=student_id,
        student_name=student.full_name,
        success=False,
        channel=channel,
        contact=to,
        message=f"Failed to send {_CHANNEL_LABELS[channel]} notification",
        reason=reason,
    )


async def notify_students(
    students: list[Student],
    d: date,
    notification_type: Optional[NotificationChannel] = None,
    message: Optional[str] = None,
    *,
    messages: Optional[dict[str, str]] = None,
    missing_ids: Optional[list[str]] = None,
    client: Optional[MessagingClient] = None,
    batch_size: Optional[int] = None,
) -> BulkNotificationResult:
    """Notify each student independently, a fixed-size group at a time.

    ``messages`` maps student id to a per-student text and wins over ``message``.
    """
    batch_size = max(1, batch_size or settings.notification_batch_size)
    messages = messages or {}
    result = BulkNotificationResult(success=False, message="")

    for student_id in missing_ids or []:
        result.failed += 1
        result.details.append(
            NotificationResult(student_id=student_id, success=False, message=NOT_FOUND_REASON, reason=NOT_FOUND_REASON)
        )

    for i in range(0, len(students), batch_size):
        batch = students[i:i + batch_size]
        outcomes = await asyncio.gather(
            *[
                notify_student(s, d, notification_type, messages.get(str(s.id), message), client)
                for s in batch
            ],
            return_exceptions=True,
        )
        for s, outcome in zip(batch, outcomes):
            if isinstance(outcome, Exception):
                logger.error(f"Notification for student {s.id} raised: {outcome}")
                outcome = NotificationResult(
                    student_id=str(s.id),
                    student_name=s.full_name,
                    success=False,
                    message="Notification failed",
                    reason=str(outcome),
                )
            if outcome.success:
                result.succeeded += 1
            elif outcome.no_contact:
                result.no_contact += 1
            else:
                result.failed += 1
            result.details.append(outcome)

    processed = result.succeeded + result.failed + result.no_contact
    result.success = result.succeeded > 0
    result.message = (
        f"Processed {processed} notifications: {result.succeeded} sent successfully, "
        f"{result.failed} failed, {result.no_contact} had no contact information."
    )
    logger.info(result.message)
    return result


async def notify_by_ids(
    student_ids: list[str],
    d: date,
    notification_type: Optional[NotificationChannel] = None,
    message: Optional[str] = None,
    client: Optional[MessagingClient] = None,
) -> BulkNotificationResult:
    requested = list(dict.fromkeys(student_ids))
    students = await get_active_students_by_ids(requested)
    found = {str(s.id) for s in students}
    logger.info(f"Found {len(students)} students of {len(requested)} requested")
    missing = [sid for sid in requested if sid not in found]
    return await notify_students(students, d, notification_type, message, missing_ids=missing, client=client)


async def notify_students_needing_attention(
    today: Optional[date] = None,
    notification_type: Optional[NotificationChannel] = None,
    client: Optional[MessagingClient] = None,
) -> BulkNotificationResult:
    """Evaluate 30-day trends, then notify guardians of every flagged student."""
    today = today or date.today()
    flagged = await get_students_needing_attention(today)
    if not flagged:
        return BulkNotificationResult(success=False, message="No students need attention")
    students = await get_active_students_by_ids([t.student_id for t in flagged])
    messages = {t.student_id: attention_message(t) for t in flagged}
    return await notify_students(students, today, notification_type, messages=messages, client=client)
