from fastapi import APIRouter, HTTPException

from app.api.deps import AdminOnly, get_password_hash
from app.models.user import User, UserCreate

router = APIRouter()


@router.get("/")
async def list_users(admin: AdminOnly):
    users = await User.find_all().to_list()
    return [{"id": str(u.id), "email": u.email, "role": u.role, "full_name": u.full_name, "is_active": u.is_active} for u in users]


@router.post("/", status_code=201)
async def create_user(data: UserCreate, admin: AdminOnly):
    existing = await User.find_one(User.email == data.email)
    if existing:
        raise HTTPException(status_code=400, detail="Email already registered")
    u = User(
        email=data.email,
        hashed_password=get_password_hash(data.password),
        role=data.role,
        full_name=data.full_name,
        phone=data.phone,
    )
    await u.insert()
    return {"id": str(u.id), "email": u.email, "role": u.role}
