"""Seed default admin user if not present."""
from app.api.deps import get_password_hash
from app.config import settings
from app.models.user import User, UserRole


async def seed_admin():
    existing = await User.find_one(User.email == settings.admin_email)
    if existing:
        return
    await User(
        email=settings.admin_email,
        hashed_password=get_password_hash(settings.admin_password),
        role=UserRole.ADMIN,
        full_name=settings.admin_full_name,
    ).insert()
