from typing import Optional

from fastapi import APIRouter, Query

from app.api.deps import StaffUser, parse_date
from app.services import stats

router = APIRouter()


@router.get("/summary", response_model=stats.AttendanceSummary)
async def attendance_summary(user: StaffUser, date: Optional[str] = Query(None, description="YYYY-MM-DD, defaults to today")):
    """Status counts for one day across active students."""
    return await stats.get_attendance_summary(parse_date(date))


@router.get("/classes", response_model=list[stats.ClassSummary])
async def class_summaries(user: StaffUser):
    return await stats.get_class_summaries()


@router.get("/trends", response_model=list[stats.StudentTrend])
async def attendance_trends(user: StaffUser, needs_attention: bool = False):
    """30-day trend per student; ``needs_attention=true`` keeps only flagged students."""
    if needs_attention:
        return await stats.get_students_needing_attention()
    return await stats.get_attendance_trends()


@router.get("/stats", response_model=stats.DashboardStats)
async def dashboard_stats(user: StaffUser):
    return await stats.get_dashboard_stats()
