# app/services/schedule_service.py
"""
Weekly timetable service: slot conflict checks for course and user schedules.

The week is a 7 x 4 grid (day_of_week 1-7, time_period 1-4). A slot may
hold at most one row per owner; the unique constraint on
(owner, day_of_week, time_period) is the final authority, and an
IntegrityError from it is reported as the same conflict as the pre-check.
"""

import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.crud import course as course_crud
from app.crud import schedule as schedule_crud
from app.crud import user as user_crud
from app.crud.schedule import COURSE, USER
from app.errors import NotFoundError, ScheduleConflictError, ValidationError
from app.models.course import Course
from app.models.schedule import DAYS_OF_WEEK, TIME_PERIODS

logger = logging.getLogger(__name__)

Slot = Tuple[int, int]


# ======================
# VALIDATION
# ======================

def validate_slot(day_of_week: Any, time_period: Any) -> None:
    if not isinstance(day_of_week, int) or day_of_week not in DAYS_OF_WEEK:
        raise ValidationError(f"无效的星期值: {day_of_week}，有效值为1-7(周一至周日)")
    if not isinstance(time_period, int) or time_period not in TIME_PERIODS:
        raise ValidationError(f"无效的时间段值: {time_period}，有效值为1-4")


def _require_owner(db: Session, owner_kind: str, owner_id: int) -> None:
    if owner_kind == COURSE:
        if course_crud.get_course(db, owner_id) is None:
            raise NotFoundError(f"课程不存在，ID: {owner_id}")
    elif owner_kind == USER:
        if user_crud.get_user(db, owner_id) is None:
            raise NotFoundError(f"用户不存在，ID: {owner_id}")
    else:
        raise ValueError(f"Unknown schedule owner kind: {owner_kind}")


def get_schedule(db: Session, owner_kind: str, schedule_id: int):
    row = schedule_crud.get_schedule(db, owner_kind, schedule_id)
    if row is None:
        raise NotFoundError(f"课程安排不存在，ID: {schedule_id}")
    return row


# ======================
# CONFLICT CHECKS
# ======================

def has_conflict(db: Session, owner_kind: str, owner_id: int, day_of_week: int, time_period: int) -> bool:
    """True iff the owner already has a row in exactly this slot."""
    validate_slot(day_of_week, time_period)
    return schedule_crud.slot_exists(db, owner_kind, owner_id, day_of_week, time_period)


def find_conflicts(db: Session, owner_kind: str, owner_id: int, slots: Sequence[Slot]) -> List[Slot]:
    """
    Return the candidate slots that collide with the owner's persisted rows.

    Each candidate is checked on its own against stored state; two equal
    candidates in the same batch are not reported against each other.
    """
    for day_of_week, time_period in slots:
        validate_slot(day_of_week, time_period)

    occupied = schedule_crud.occupied_slots(db, owner_kind, owner_id)
    return [(day, period) for day, period in slots if (day, period) in occupied]


# ======================
# MUTATIONS
# ======================

def add_schedule(
    db: Session,
    owner_kind: str,
    owner_id: int,
    day_of_week: int,
    time_period: int,
    label: Optional[str] = None,
):
    validate_slot(day_of_week, time_period)
    _require_owner(db, owner_kind, owner_id)

    if schedule_crud.slot_exists(db, owner_kind, owner_id, day_of_week, time_period):
        raise ScheduleConflictError()

    try:
        row = schedule_crud.create_schedule(db, owner_kind, owner_id, day_of_week, time_period, label)
        db.commit()
    except IntegrityError:
        db.rollback()
        logger.info(
            "Schedule slot race lost (%s=%s, day=%s, period=%s)",
            owner_kind, owner_id, day_of_week, time_period,
        )
        raise ScheduleConflictError()

    db.refresh(row)
    return row


def update_schedule(
    db: Session,
    owner_kind: str,
    schedule_id: int,
    day_of_week: int,
    time_period: int,
    label: Optional[str] = None,
):
    validate_slot(day_of_week, time_period)
    row = get_schedule(db, owner_kind, schedule_id)

    moved = (row.day_of_week, row.time_period) != (day_of_week, time_period)
    if moved and schedule_crud.slot_exists(db, owner_kind, row.owner_id, day_of_week, time_period):
        raise ScheduleConflictError()

    try:
        schedule_crud.update_schedule(db, owner_kind, row, day_of_week, time_period, label)
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ScheduleConflictError()

    db.refresh(row)
    return row


def delete_schedule(db: Session, owner_kind: str, schedule_id: int) -> None:
    row = get_schedule(db, owner_kind, schedule_id)
    schedule_crud.delete_schedule(db, row)
    db.commit()


def clear_schedules(db: Session, owner_kind: str, owner_id: int) -> int:
    deleted = schedule_crud.delete_owner_schedules(db, owner_kind, owner_id)
    db.commit()
    return deleted


def list_schedules(db: Session, owner_kind: str, owner_id: int):
    return schedule_crud.list_schedules(db, owner_kind, owner_id)


def batch_add_user_schedules(db: Session, user_id: int, items: Sequence[Dict[str, Any]]):
    """
    Add every item whose slot is still free; occupied slots are skipped.

    Items are dicts with day_of_week, time_period and optional course_name.
    Returns the rows actually inserted.
    """
    for item in items:
        validate_slot(item.get("day_of_week"), item.get("time_period"))
    _require_owner(db, USER, user_id)

    added = []
    try:
        for item in items:
            day_of_week, time_period = item["day_of_week"], item["time_period"]
            if schedule_crud.slot_exists(db, USER, user_id, day_of_week, time_period):
                continue
            added.append(
                schedule_crud.create_schedule(
                    db, USER, user_id, day_of_week, time_period, item.get("course_name")
                )
            )
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ScheduleConflictError()

    for row in added:
        db.refresh(row)
    return added


def replace_course_schedules(db: Session, course_id: int, items: Sequence[Dict[str, Any]]):
    """Swap a course's whole timetable for the given items in one transaction."""
    for item in items:
        validate_slot(item.get("day_of_week"), item.get("time_period"))
    _require_owner(db, COURSE, course_id)

    try:
        schedule_crud.delete_owner_schedules(db, COURSE, course_id)
        rows = [
            schedule_crud.create_schedule(
                db, COURSE, course_id, item["day_of_week"], item["time_period"], item.get("location")
            )
            for item in items
        ]
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ScheduleConflictError("课程时间安排中存在重复的时间段")

    for row in rows:
        db.refresh(row)
    return rows


# ======================
# COURSE DISCOVERY
# ======================

def find_courses_by_slot(db: Session, day_of_week: int, time_period: int) -> List[Course]:
    validate_slot(day_of_week, time_period)
    return [row.course for row in schedule_crud.find_course_schedules_by_slot(db, day_of_week, time_period)]


def find_courses_without_conflict(db: Session, user_id: int) -> List[Course]:
    """Courses none of whose scheduled slots overlap the user's timetable."""
    occupied = schedule_crud.occupied_slots(db, USER, user_id)
    courses = course_crud.list_courses(db)
    slots_by_course = schedule_crud.course_slots(db, [course.id for course in courses])

    return [
        course
        for course in courses
        if not any(slot in occupied for slot in slots_by_course[course.id])
    ]


# ======================
# REFERENCE TABLES
# ======================

def list_time_periods() -> List[Dict[str, Any]]:
    return [
        {
            "value": value,
            "start_time": start,
            "end_time": end,
            "time_range": f"{start}-{end}",
            "description": description,
        }
        for value, (start, end, description) in sorted(TIME_PERIODS.items())
    ]


def list_days_of_week() -> List[Dict[str, Any]]:
    return [{"value": value, "name": name} for value, name in sorted(DAYS_OF_WEEK.items())]
