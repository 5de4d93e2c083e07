"""School attendance service - FastAPI entrypoint."""
import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pymongo.errors import PyMongoError, ServerSelectionTimeoutError

from app.config import settings
from app.db import db_shutdown, db_startup
from app.seed import seed_admin
from app.api import auth, users, students, recycle_bin, attendance, dashboard, notifications
from app.api.deps import require_module_permission

logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    try:
        await db_startup()
        await seed_admin()
    except ServerSelectionTimeoutError as e:
        logger.error(
            "MongoDB is not running. Start it with: docker compose up -d (from project root)"
        )
        raise RuntimeError(
            "MongoDB connection failed. Start MongoDB (e.g. docker compose up -d)."
        ) from e
    yield
    await db_shutdown()


app = FastAPI(
    title=settings.app_name,
    description="Daily student attendance, class dashboards, roster import and guardian notifications",
    version="0.1.0",
    lifespan=lifespan,
)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"detail": errors},
    )


@app.exception_handler(PyMongoError)
async def database_exception_handler(request: Request, exc: PyMongoError):
    logger.error(f"Database error on {request.method} {request.url.path}: {exc}")
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"detail": "Database unavailable"},
    )


app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in settings.cors_origins.split(",") if o.strip()],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# API routes
app.include_router(auth.router, prefix="/api/auth", tags=["Auth"])
app.include_router(users.router, prefix="/api/users", tags=["Users"], dependencies=[Depends(require_module_permission("users"))])
app.include_router(students.router, prefix="/api/students", tags=["Students"], dependencies=[Depends(require_module_permission("students"))])
app.include_router(recycle_bin.router, prefix="/api/recycle-bin", tags=["Recycle Bin"], dependencies=[Depends(require_module_permission("recycle_bin"))])
app.include_router(attendance.router, prefix="/api/attendance", tags=["Attendance"], dependencies=[Depends(require_module_permission("attendance"))])
app.include_router(dashboard.router, prefix="/api/dashboard", tags=["Dashboard"], dependencies=[Depends(require_module_permission("dashboard"))])
app.include_router(notifications.router, prefix="/api/notifications", tags=["Notifications"], dependencies=[Depends(require_module_permission("notifications"))])


@app.get("/health")
def health():
    return {"status": "ok", "app": settings.app_name}
