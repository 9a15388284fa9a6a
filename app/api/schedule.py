# app/api/schedule.py
"""
Personal timetable endpoints (/user-schedules).

Every route acts on the current user's own timetable; admins can read
anyone's through /user-schedules/user/{user_id}.
"""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import List

from app.crud.schedule import USER
from app.database import get_db
from app.errors import PermissionDeniedError
from app.models.user import User
from app.schemas.schedule import (
    ConflictCheckResponse,
    ConflictListResponse,
    ConflictQuery,
    DayOfWeekInfo,
    TimePeriodInfo,
    UserScheduleCreate,
    UserScheduleResponse,
)
from app.services import schedule_service
from app.utils.security import get_current_user, require_admin

router = APIRouter(prefix="/user-schedules", tags=["User Schedules"])


def _require_own_schedule(db: Session, schedule_id: int, current_user: User) -> None:
    row = schedule_service.get_schedule(db, USER, schedule_id)
    if row.user_id != current_user.id and not current_user.is_admin:
        raise PermissionDeniedError("您无权修改此课程安排")


# ======================
# REFERENCE DATA
# ======================
@router.get("/time-periods", response_model=List[TimePeriodInfo])
def get_time_periods():
    return schedule_service.list_time_periods()


@router.get("/days-of-week", response_model=List[DayOfWeekInfo])
def get_days_of_week():
    return schedule_service.list_days_of_week()


# ======================
# CONFLICT CHECKS
# ======================
@router.get("/check-conflict", response_model=ConflictCheckResponse)
def check_conflict(
    day_of_week: int = Query(...),
    time_period: int = Query(...),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return {
        "day_of_week": day_of_week,
        "time_period": time_period,
        "has_conflict": schedule_service.has_conflict(db, USER, current_user.id, day_of_week, time_period),
    }


@router.post("/conflicts", response_model=ConflictListResponse)
def find_conflicts(
    query: ConflictQuery,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    slots = [(slot.day_of_week, slot.time_period) for slot in query.slots]
    conflicts = schedule_service.find_conflicts(db, USER, current_user.id, slots)
    return {"conflicts": [{"day_of_week": day, "time_period": period} for day, period in conflicts]}


# ======================
# CRUD
# ======================
@router.get("", response_model=List[UserScheduleResponse])
def get_my_schedules(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return schedule_service.list_schedules(db, USER, current_user.id)


@router.get("/user/{user_id}", response_model=List[UserScheduleResponse])
def get_user_schedules(
    user_id: int,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    return schedule_service.list_schedules(db, USER, user_id)


@router.post("", response_model=UserScheduleResponse, status_code=status.HTTP_201_CREATED)
def add_schedule(
    payload: UserScheduleCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return schedule_service.add_schedule(
        db, USER, current_user.id, payload.day_of_week, payload.time_period, payload.course_name
    )


@router.post("/batch", response_model=List[UserScheduleResponse], status_code=status.HTTP_201_CREATED)
def batch_add_schedules(
    payload: List[UserScheduleCreate],
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return schedule_service.batch_add_user_schedules(
        db, current_user.id, [item.model_dump() for item in payload]
    )


@router.put("/{schedule_id}", response_model=UserScheduleResponse)
def update_schedule(
    schedule_id: int,
    payload: UserScheduleCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    _require_own_schedule(db, schedule_id, current_user)
    return schedule_service.update_schedule(
        db, USER, schedule_id, payload.day_of_week, payload.time_period, payload.course_name
    )


@router.delete("/clear")
def clear_schedules(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    deleted = schedule_service.clear_schedules(db, USER, current_user.id)
    return {"deleted": deleted}


@router.delete("/{schedule_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_schedule(
    schedule_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    _require_own_schedule(db, schedule_id, current_user)
    schedule_service.delete_schedule(db, USER, schedule_id)
