"""
Timetable conflict checks for user and course schedules
"""

from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import IntegrityError

from app.crud import schedule as schedule_crud
from app.crud.schedule import COURSE, USER
from app.errors import NotFoundError, ScheduleConflictError, ValidationError
from app.services import schedule_service
from conftest import create_course, create_user


# ======================
# SLOT VALIDATION
# ======================

@pytest.mark.parametrize("day, period", [(0, 1), (8, 1), (1, 0), (1, 5), ("1", 1)])
def test_out_of_range_slot_rejected_before_store_access(day, period):
    db = MagicMock()

    with pytest.raises(ValidationError):
        schedule_service.has_conflict(db, USER, 1, day, period)

    db.query.assert_not_called()


@pytest.mark.parametrize("day, period", [(8, 1), (0, 2), (3, 5)])
def test_add_schedule_rejects_bad_slot_before_store_access(day, period):
    db = MagicMock()

    with pytest.raises(ValidationError):
        schedule_service.add_schedule(db, USER, 1, day, period, "线性代数")
    with pytest.raises(ValidationError):
        schedule_service.add_schedule(db, COURSE, 1, day, period, "A101")

    db.query.assert_not_called()
    db.add.assert_not_called()
    db.commit.assert_not_called()


@pytest.mark.parametrize("day, period", [(8, 1), (2, 0)])
def test_update_schedule_rejects_bad_slot_before_store_access(day, period):
    db = MagicMock()

    with pytest.raises(ValidationError):
        schedule_service.update_schedule(db, USER, 1, day, period)

    db.query.assert_not_called()
    db.commit.assert_not_called()


def test_find_conflicts_validates_every_slot_first():
    db = MagicMock()

    with pytest.raises(ValidationError):
        schedule_service.find_conflicts(db, USER, 1, [(1, 1), (8, 1)])

    db.query.assert_not_called()


# ======================
# SINGLE SLOT
# ======================

def test_empty_timetable_has_no_conflict(db_session):
    user = create_user(db_session, "alice")
    assert schedule_service.has_conflict(db_session, USER, user.id, 3, 2) is False


def test_added_slot_conflicts_only_with_itself(db_session):
    user = create_user(db_session, "alice")
    row = schedule_service.add_schedule(db_session, USER, user.id, 3, 2, "线性代数")

    assert row.id is not None
    assert row.course_name == "线性代数"
    assert schedule_service.has_conflict(db_session, USER, user.id, 3, 2) is True
    assert schedule_service.has_conflict(db_session, USER, user.id, 3, 3) is False
    assert schedule_service.has_conflict(db_session, USER, user.id, 4, 2) is False


def test_slots_are_scoped_per_owner(db_session):
    alice = create_user(db_session, "alice")
    bob = create_user(db_session, "bob")
    schedule_service.add_schedule(db_session, USER, alice.id, 1, 1)

    assert schedule_service.has_conflict(db_session, USER, bob.id, 1, 1) is False
    schedule_service.add_schedule(db_session, USER, bob.id, 1, 1)


def test_adding_occupied_slot_raises_conflict(db_session):
    user = create_user(db_session, "alice")
    schedule_service.add_schedule(db_session, USER, user.id, 5, 4)

    with pytest.raises(ScheduleConflictError) as exc_info:
        schedule_service.add_schedule(db_session, USER, user.id, 5, 4)

    assert exc_info.value.status_code == 409
    assert len(schedule_service.list_schedules(db_session, USER, user.id)) == 1


def test_add_for_unknown_owner_is_not_found(db_session):
    with pytest.raises(NotFoundError):
        schedule_service.add_schedule(db_session, COURSE, 999, 1, 1)


def test_lost_insert_race_reports_conflict(db_session, monkeypatch):
    """The pre-check passes but the unique constraint rejects the row"""
    user = create_user(db_session, "alice")
    schedule_service.add_schedule(db_session, USER, user.id, 2, 2)

    monkeypatch.setattr(schedule_crud, "slot_exists", lambda *args, **kwargs: False)

    with pytest.raises(ScheduleConflictError):
        schedule_service.add_schedule(db_session, USER, user.id, 2, 2)

    assert len(schedule_service.list_schedules(db_session, USER, user.id)) == 1


def test_unique_constraint_is_the_final_authority(db_session):
    user = create_user(db_session, "alice")
    schedule_crud.create_schedule(db_session, USER, user.id, 6, 1, None)
    db_session.commit()

    with pytest.raises(IntegrityError):
        schedule_crud.create_schedule(db_session, USER, user.id, 6, 1, None)
    db_session.rollback()


# ======================
# MULTI SLOT
# ======================

def test_find_conflicts_returns_only_colliding_slots(db_session):
    user = create_user(db_session, "alice")
    schedule_service.add_schedule(db_session, USER, user.id, 1, 1)
    schedule_service.add_schedule(db_session, USER, user.id, 2, 3)

    conflicts = schedule_service.find_conflicts(db_session, USER, user.id, [(1, 1), (1, 2), (2, 3)])
    assert conflicts == [(1, 1), (2, 3)]


def test_find_conflicts_does_not_compare_candidates_with_each_other(db_session):
    user = create_user(db_session, "alice")
    assert schedule_service.find_conflicts(db_session, USER, user.id, [(4, 4), (4, 4)]) == []


def test_batch_add_skips_occupied_slots(db_session):
    user = create_user(db_session, "alice")
    schedule_service.add_schedule(db_session, USER, user.id, 1, 1, "已有")

    added = schedule_service.batch_add_user_schedules(
        db_session,
        user.id,
        [
            {"day_of_week": 1, "time_period": 1, "course_name": "重复"},
            {"day_of_week": 1, "time_period": 2, "course_name": "新课"},
        ],
    )

    assert [(row.day_of_week, row.time_period) for row in added] == [(1, 2)]
    rows = schedule_service.list_schedules(db_session, USER, user.id)
    assert [(row.day_of_week, row.time_period, row.course_name) for row in rows] == [
        (1, 1, "已有"),
        (1, 2, "新课"),
    ]


def test_batch_add_with_invalid_item_writes_nothing(db_session):
    user = create_user(db_session, "alice")

    with pytest.raises(ValidationError):
        schedule_service.batch_add_user_schedules(
            db_session,
            user.id,
            [{"day_of_week": 1, "time_period": 1}, {"day_of_week": 9, "time_period": 1}],
        )

    assert schedule_service.list_schedules(db_session, USER, user.id) == []


# ======================
# UPDATE / DELETE
# ======================

def test_update_to_occupied_slot_conflicts(db_session):
    user = create_user(db_session, "alice")
    schedule_service.add_schedule(db_session, USER, user.id, 1, 1)
    second = schedule_service.add_schedule(db_session, USER, user.id, 1, 2)

    with pytest.raises(ScheduleConflictError):
        schedule_service.update_schedule(db_session, USER, second.id, 1, 1)


def test_update_in_place_keeps_slot(db_session):
    user = create_user(db_session, "alice")
    row = schedule_service.add_schedule(db_session, USER, user.id, 1, 1, "旧名")

    updated = schedule_service.update_schedule(db_session, USER, row.id, 1, 1, "新名")
    assert updated.course_name == "新名"


def test_delete_frees_slot(db_session):
    user = create_user(db_session, "alice")
    row = schedule_service.add_schedule(db_session, USER, user.id, 7, 4)

    schedule_service.delete_schedule(db_session, USER, row.id)
    assert schedule_service.has_conflict(db_session, USER, user.id, 7, 4) is False

    with pytest.raises(NotFoundError):
        schedule_service.delete_schedule(db_session, USER, row.id)


def test_clear_schedules_returns_deleted_count(db_session):
    user = create_user(db_session, "alice")
    schedule_service.add_schedule(db_session, USER, user.id, 1, 1)
    schedule_service.add_schedule(db_session, USER, user.id, 2, 1)

    assert schedule_service.clear_schedules(db_session, USER, user.id) == 2
    assert schedule_service.list_schedules(db_session, USER, user.id) == []


# ======================
# COURSE TIMETABLES
# ======================

def test_replace_course_schedules_swaps_whole_timetable(db_session):
    course = create_course(db_session)
    schedule_service.add_schedule(db_session, COURSE, course.id, 1, 1, "A101")

    rows = schedule_service.replace_course_schedules(
        db_session,
        course.id,
        [{"day_of_week": 3, "time_period": 2, "location": "B202"}],
    )

    assert [(row.day_of_week, row.time_period, row.location) for row in rows] == [(3, 2, "B202")]
    assert schedule_service.has_conflict(db_session, COURSE, course.id, 1, 1) is False


def test_replace_course_schedules_with_duplicate_slots_keeps_old_timetable(db_session):
    course = create_course(db_session)
    schedule_service.add_schedule(db_session, COURSE, course.id, 1, 1, "A101")

    with pytest.raises(ScheduleConflictError):
        schedule_service.replace_course_schedules(
            db_session,
            course.id,
            [{"day_of_week": 2, "time_period": 2}, {"day_of_week": 2, "time_period": 2}],
        )

    rows = schedule_service.list_schedules(db_session, COURSE, course.id)
    assert [(row.day_of_week, row.time_period) for row in rows] == [(1, 1)]


def test_courses_without_conflict_excludes_overlapping_courses(db_session):
    user = create_user(db_session, "alice")
    overlapping = create_course(db_session, "MA101", "高等数学")
    free = create_course(db_session, "PH101", "大学物理")
    unscheduled = create_course(db_session, "EN101", "大学英语")

    schedule_service.add_schedule(db_session, COURSE, overlapping.id, 1, 1)
    schedule_service.add_schedule(db_session, COURSE, free.id, 2, 2)
    schedule_service.add_schedule(db_session, USER, user.id, 1, 1)

    courses = schedule_service.find_courses_without_conflict(db_session, user.id)
    assert [course.code for course in courses] == [free.code, unscheduled.code]


def test_find_courses_by_slot(db_session):
    course = create_course(db_session)
    schedule_service.add_schedule(db_session, COURSE, course.id, 5, 3)

    assert [c.id for c in schedule_service.find_courses_by_slot(db_session, 5, 3)] == [course.id]
    assert schedule_service.find_courses_by_slot(db_session, 5, 4) == []


def test_reference_tables():
    periods = schedule_service.list_time_periods()
    days = schedule_service.list_days_of_week()

    assert [p["value"] for p in periods] == [1, 2, 3, 4]
    assert periods[0]["time_range"] == "09:00-11:50"
    assert [d["value"] for d in days] == list(range(1, 8))
    assert days[0]["name"] == "周一"
