# app/crud/schedule.py
"""
Schedule rows for both owner kinds.

Course and user timetables share one shape (owner, day_of_week,
time_period, label); OWNER_KINDS maps an owner kind to its model, owner
column and label column.
"""

from typing import Iterable, List, Optional, Union

from sqlalchemy.orm import Session

from app.models.schedule import CourseSchedule, UserSchedule

COURSE = "course"
USER = "user"

OWNER_KINDS = {
    COURSE: (CourseSchedule, "course_id", "location"),
    USER: (UserSchedule, "user_id", "course_name"),
}

ScheduleRow = Union[CourseSchedule, UserSchedule]


def _resolve(owner_kind: str):
    try:
        return OWNER_KINDS[owner_kind]
    except KeyError:
        raise ValueError(f"Unknown schedule owner kind: {owner_kind}")


def slot_exists(db: Session, owner_kind: str, owner_id: int, day_of_week: int, time_period: int) -> bool:
    model, owner_column, _ = _resolve(owner_kind)
    return db.query(model.id).filter(
        getattr(model, owner_column) == owner_id,
        model.day_of_week == day_of_week,
        model.time_period == time_period,
    ).first() is not None


def get_schedule(db: Session, owner_kind: str, schedule_id: int) -> Optional[ScheduleRow]:
    model, _, _ = _resolve(owner_kind)
    return db.query(model).filter(model.id == schedule_id).first()


def list_schedules(db: Session, owner_kind: str, owner_id: int) -> List[ScheduleRow]:
    model, owner_column, _ = _resolve(owner_kind)
    return (
        db.query(model)
        .filter(getattr(model, owner_column) == owner_id)
        .order_by(model.day_of_week.asc(), model.time_period.asc())
        .all()
    )


def create_schedule(
    db: Session,
    owner_kind: str,
    owner_id: int,
    day_of_week: int,
    time_period: int,
    label: Optional[str] = None,
) -> ScheduleRow:
    """Insert a schedule row. Raises IntegrityError if the slot is taken."""
    model, owner_column, label_column = _resolve(owner_kind)
    row = model(
        **{
            owner_column: owner_id,
            "day_of_week": day_of_week,
            "time_period": time_period,
            label_column: label,
        }
    )
    db.add(row)
    db.flush()
    return row


def update_schedule(
    db: Session,
    owner_kind: str,
    row: ScheduleRow,
    day_of_week: int,
    time_period: int,
    label: Optional[str] = None,
) -> ScheduleRow:
    _, _, label_column = _resolve(owner_kind)
    row.day_of_week = day_of_week
    row.time_period = time_period
    setattr(row, label_column, label)
    db.flush()
    return row


def delete_schedule(db: Session, row: ScheduleRow) -> None:
    db.delete(row)
    db.flush()


def delete_owner_schedules(db: Session, owner_kind: str, owner_id: int) -> int:
    model, owner_column, _ = _resolve(owner_kind)
    deleted = db.query(model).filter(
        getattr(model, owner_column) == owner_id
    ).delete(synchronize_session=False)
    return int(deleted)


def find_course_schedules_by_slot(db: Session, day_of_week: int, time_period: int) -> List[CourseSchedule]:
    return (
        db.query(CourseSchedule)
        .filter(
            CourseSchedule.day_of_week == day_of_week,
            CourseSchedule.time_period == time_period,
        )
        .order_by(CourseSchedule.course_id.asc())
        .all()
    )


def occupied_slots(db: Session, owner_kind: str, owner_id: int) -> set:
    return {(row.day_of_week, row.time_period) for row in list_schedules(db, owner_kind, owner_id)}


def course_slots(db: Session, course_ids: Iterable[int]) -> dict:
    """Map course_id -> list of (day, period) for the given courses."""
    slots = {course_id: [] for course_id in course_ids}
    if not slots:
        return slots
    rows = db.query(CourseSchedule).filter(CourseSchedule.course_id.in_(list(slots))).all()
    for row in rows:
        slots[row.course_id].append((row.day_of_week, row.time_period))
    return slots
