"""Staff accounts: admins and teachers."""
from datetime import datetime
from enum import Enum
from typing import Optional

from beanie import Document, Indexed
from pydantic import BaseModel, EmailStr, Field


class UserRole(str, Enum):
    ADMIN = "admin"
    TEACHER = "teacher"


class User(Document):
    """Staff user who marks attendance and manages the roster."""

    email: Indexed(EmailStr, unique=True)
    hashed_password: str
    role: UserRole
    full_name: str
    phone: Optional[str] = None
    is_active: bool = True
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    class Settings:
        name = "users"
        use_state_management = True


class UserCreate(BaseModel):
    email: EmailStr
    password: str
    role: UserRole = UserRole.TEACHER
    full_name: str
    phone: Optional[str] = None

