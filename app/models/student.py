"""Student roster: identity, class assignment, guardian contact, soft delete."""
from datetime import datetime
from typing import ClassVar, Literal, Optional

from beanie import Document, Indexed
from pydantic import BaseModel, Field, model_validator
from pydantic_core import PydanticCustomError

NotificationPreference = Literal["sms", "whatsapp", "email"]


class Student(Document):
    """Student document. ``deleted_at`` set means the student sits in the recycle bin."""

    student_id: Indexed(str)  # school-issued number, e.g. 10001
    first_name: str
    last_name: str
    class_name: Indexed(str)  # section label, e.g. 10A
    grade_level: int

    email: Optional[str] = None
    contact_phone: Optional[str] = None
    notification_preference: Optional[NotificationPreference] = None

    deleted_at: Optional[datetime] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    class Settings:
        name = "students"
        use_state_management = True

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    @property
    def is_active(self) -> bool:
        return self.deleted_at is None


class StudentCreate(BaseModel):
    student_id: str
    first_name: str
    last_name: str
    class_name: str
    grade_level: int
    email: Optional[str] = None
    contact_phone: Optional[str] = None
    notification_preference: Optional[NotificationPreference] = None


class StudentUpdate(BaseModel):
    """All fields optional for PATCH. Roster fields may be omitted but not nulled."""

    REQUIRED_FIELDS: ClassVar[tuple[str, ...]] = ("student_id", "first_name", "last_name", "class_name", "grade_level")

    student_id: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    class_name: Optional[str] = None
    grade_level: Optional[int] = None
    email: Optional[str] = None
    contact_phone: Optional[str] = None
    notification_preference: Optional[NotificationPreference] = None

    @model_validator(mode="after")
    def _required_fields_not_null(self):
        nulled = [f for f in self.REQUIRED_FIELDS if f in self.model_fields_set and getattr(self, f) is None]
        if nulled:
            raise PydanticCustomError(
                "null_field", "Fields cannot be null: {fields}", {"fields": ", ".join(nulled)}
            )
        return self


class ImportResult(BaseModel):
    success: bool
    message: str
    data: list[StudentCreate] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)


def serialize_student(s: Student) -> dict:
    return {
        "id": str(s.id),
        "student_id": s.student_id,
        "first_name": s.first_name,
        "last_name": s.last_name,
        "class": s.class_name,
        "grade_level": s.grade_level,
        "email": s.email,
        "contact_phone": s.contact_phone,
        "notification_preference": s.notification_preference,
        "deleted_at": s.deleted_at.isoformat() if s.deleted_at else None,
    }
