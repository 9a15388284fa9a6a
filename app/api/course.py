# app/api/course.py
"""
Course timetable and AI summary endpoints.

GET /courses/{course_id}/ai-summary only reads the cache; generation
happens in the startup sweep or through the admin POST.
"""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import List

from app.ai.summary_generator import get_summary_generator
from app.crud.schedule import COURSE
from app.database import SessionLocal, get_db
from app.models.user import User
from app.schemas.schedule import (
    CourseBrief,
    CourseScheduleCreate,
    CourseScheduleResponse,
)
from app.schemas.summary import AIStatusResponse, CourseSummaryResponse, SweepReportResponse
from app.services import schedule_service, summary_service
from app.services.summary_sweep import run_summary_sweep
from app.utils.security import get_current_user, require_admin

router = APIRouter(prefix="/courses", tags=["Courses"])


def get_generator():
    return get_summary_generator()


def get_session_factory():
    return SessionLocal


# ======================
# AI SUMMARY
# ======================
@router.get("/ai-status", response_model=AIStatusResponse)
def get_ai_status(generator=Depends(get_generator)):
    available = summary_service.is_ai_service_available(generator)
    return {"available": available, "message": "AI服务正常" if available else "AI服务未配置"}


@router.post("/ai-summary/sweep", response_model=SweepReportResponse)
def sweep_summaries(
    admin: User = Depends(require_admin),
    generator=Depends(get_generator),
    session_factory=Depends(get_session_factory),
):
    """Run the stale-summary sweep now (admin)."""
    return run_summary_sweep(session_factory, generator=generator).as_dict()


@router.get("/{course_id}/ai-summary", response_model=CourseSummaryResponse, response_model_exclude_none=True)
def get_course_summary(
    course_id: int,
    generator=Depends(get_generator),
    db: Session = Depends(get_db)
):
    return summary_service.get_summary_status(db, course_id, generator=generator)


@router.post("/{course_id}/ai-summary", response_model=CourseSummaryResponse, response_model_exclude_none=True)
def regenerate_course_summary(
    course_id: int,
    admin: User = Depends(require_admin),
    generator=Depends(get_generator),
    db: Session = Depends(get_db)
):
    """Force a new summary for a course (admin)."""
    summary = summary_service.regenerate(db, course_id, generator=generator)
    return {"available": True, "review_count": summary.review_count, "summary": summary}


# ======================
# COURSE SCHEDULES
# ======================
@router.get("/by-schedule", response_model=List[CourseBrief])
def find_courses_by_schedule(
    day_of_week: int = Query(...),
    time_period: int = Query(...),
    db: Session = Depends(get_db)
):
    return schedule_service.find_courses_by_slot(db, day_of_week, time_period)


@router.get("/without-conflict", response_model=List[CourseBrief])
def find_courses_without_conflict(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return schedule_service.find_courses_without_conflict(db, current_user.id)


@router.get("/{course_id}/schedules", response_model=List[CourseScheduleResponse])
def get_course_schedules(course_id: int, db: Session = Depends(get_db)):
    return schedule_service.list_schedules(db, COURSE, course_id)


@router.post("/{course_id}/schedules", response_model=CourseScheduleResponse, status_code=status.HTTP_201_CREATED)
def add_course_schedule(
    course_id: int,
    payload: CourseScheduleCreate,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    return schedule_service.add_schedule(
        db, COURSE, course_id, payload.day_of_week, payload.time_period, payload.location
    )


@router.put("/{course_id}/schedules", response_model=List[CourseScheduleResponse])
def replace_course_schedules(
    course_id: int,
    payload: List[CourseScheduleCreate],
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    return schedule_service.replace_course_schedules(db, course_id, [item.model_dump() for item in payload])


@router.put("/schedules/{schedule_id}", response_model=CourseScheduleResponse)
def update_course_schedule(
    schedule_id: int,
    payload: CourseScheduleCreate,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    return schedule_service.update_schedule(
        db, COURSE, schedule_id, payload.day_of_week, payload.time_period, payload.location
    )


@router.delete("/schedules/{schedule_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_course_schedule(
    schedule_id: int,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    schedule_service.delete_schedule(db, COURSE, schedule_id)
