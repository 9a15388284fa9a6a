"""
API workflow through the FastAPI app with an in-memory database.

Covers:
1) Register/login a student
2) Submit a review, duplicate is rejected with 409
3) Vote, switch, cancel
4) Personal timetable with conflict detection
5) Course AI summary read and admin regeneration
"""

import pytest
from fastapi.testclient import TestClient

from app.api import course as course_api
from app.database import get_db
from app.main import app
from app.utils.security import create_access_token
from conftest import FakeGenerator, add_reviews, create_course, create_user


@pytest.fixture
def generator():
    return FakeGenerator()


@pytest.fixture
def client(session_factory, generator):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[course_api.get_generator] = lambda: generator
    app.dependency_overrides[course_api.get_session_factory] = lambda: session_factory
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


def auth_headers(username: str) -> dict:
    return {"Authorization": f"Bearer {create_access_token({'sub': username})}"}


# ======================
# AUTH
# ======================

def test_register_and_login(client):
    res = client.post("/auth/register", json={"username": "newbie", "email": "newbie@test.edu", "password": "secret123"})
    assert res.status_code == 201

    res = client.post("/auth/register", json={"username": "newbie", "email": "other@test.edu", "password": "secret123"})
    assert res.status_code == 400

    res = client.post("/auth/login", json={"username": "newbie", "password": "secret123"})
    assert res.status_code == 200
    assert res.json()["role"] == "student"

    res = client.post("/auth/login", json={"username": "newbie", "password": "wrong"})
    assert res.status_code == 401


def test_requests_without_token_are_rejected(client):
    assert client.get("/user-schedules").status_code == 401


def test_health(client):
    assert client.get("/health").json()["status"] == "healthy"


# ======================
# REVIEWS AND VOTES
# ======================

def test_review_and_vote_workflow(client, db):
    create_user(db, "student")
    create_user(db, "voter")
    course = create_course(db)

    res = client.post(
        "/reviews/",
        json={"course_id": course.id, "rating": 5, "content": "很好的课"},
        headers=auth_headers("student"),
    )
    assert res.status_code == 201
    review = res.json()
    assert review["status"] == "APPROVED"
    assert review["pinned"] is False

    res = client.post(
        "/reviews/",
        json={"course_id": course.id, "rating": 1, "content": "再评一次"},
        headers=auth_headers("student"),
    )
    assert res.status_code == 409
    assert res.json()["code"] == "DUPLICATE_REVIEW"

    res = client.get(f"/reviews/check/{course.id}", headers=auth_headers("student"))
    assert res.json()["has_reviewed"] is True

    res = client.post(f"/reviews/{review['id']}/vote", json={"vote_type": "LIKE"}, headers=auth_headers("voter"))
    assert res.status_code == 200
    assert res.json()["like_count"] == 1

    res = client.post(f"/reviews/{review['id']}/vote", json={"vote_type": "DISLIKE"}, headers=auth_headers("voter"))
    assert res.json()["like_count"] == 0
    assert res.json()["dislike_count"] == 1

    res = client.delete(f"/reviews/{review['id']}/vote", headers=auth_headers("voter"))
    assert res.json()["dislike_count"] == 0
    assert res.json()["user_vote"] is None


def test_admin_may_post_several_reviews(client, db):
    create_user(db, "admin", role="admin")
    course = create_course(db)

    for content in ("示例一", "示例二"):
        res = client.post(
            "/reviews/",
            json={"course_id": course.id, "rating": 4, "content": content},
            headers=auth_headers("admin"),
        )
        assert res.status_code == 201
        assert res.json()["admin_review"] is True

    assert len(client.get(f"/reviews/course/{course.id}").json()) == 2


def test_other_students_cannot_edit_a_review(client, db):
    create_user(db, "owner")
    create_user(db, "intruder")
    course = create_course(db)
    review = client.post(
        "/reviews/",
        json={"course_id": course.id, "rating": 4, "content": "原文"},
        headers=auth_headers("owner"),
    ).json()

    res = client.put(
        f"/reviews/{review['id']}",
        json={"rating": 1, "content": "篡改"},
        headers=auth_headers("intruder"),
    )
    assert res.status_code == 403

    res = client.patch(f"/reviews/{review['id']}/pin", headers=auth_headers("owner"))
    assert res.status_code == 403


# ======================
# SCHEDULES
# ======================

def test_user_schedule_conflicts(client, db):
    create_user(db, "student")
    headers = auth_headers("student")

    res = client.post("/user-schedules", json={"day_of_week": 2, "time_period": 3, "course_name": "概率论"}, headers=headers)
    assert res.status_code == 201

    res = client.post("/user-schedules", json={"day_of_week": 2, "time_period": 3}, headers=headers)
    assert res.status_code == 409
    assert res.json()["code"] == "SCHEDULE_CONFLICT"

    res = client.get("/user-schedules/check-conflict", params={"day_of_week": 2, "time_period": 3}, headers=headers)
    assert res.json()["has_conflict"] is True

    res = client.get("/user-schedules/check-conflict", params={"day_of_week": 8, "time_period": 3}, headers=headers)
    assert res.status_code == 400
    assert res.json()["code"] == "VALIDATION_ERROR"

    res = client.post(
        "/user-schedules/batch",
        json=[{"day_of_week": 2, "time_period": 3}, {"day_of_week": 4, "time_period": 1}],
        headers=headers,
    )
    assert res.status_code == 201
    assert [(row["day_of_week"], row["time_period"]) for row in res.json()] == [(4, 1)]

    assert len(client.get("/user-schedules", headers=headers).json()) == 2
    assert client.delete("/user-schedules/clear", headers=headers).json() == {"deleted": 2}


def test_course_schedule_admin_only(client, db):
    create_user(db, "student")
    create_user(db, "admin", role="admin")
    course = create_course(db)

    payload = {"day_of_week": 1, "time_period": 1, "location": "A101"}
    assert client.post(f"/courses/{course.id}/schedules", json=payload, headers=auth_headers("student")).status_code == 403
    assert client.post(f"/courses/{course.id}/schedules", json=payload, headers=auth_headers("admin")).status_code == 201

    res = client.get("/courses/by-schedule", params={"day_of_week": 1, "time_period": 1})
    assert [c["code"] for c in res.json()] == [course.code]


# ======================
# AI SUMMARY
# ======================

def test_ai_summary_read_and_regenerate(client, db, generator):
    create_user(db, "student")
    create_user(db, "admin", role="admin")
    course = create_course(db)
    add_reviews(db, course, 12)

    res = client.get(f"/courses/{course.id}/ai-summary")
    assert res.status_code == 200
    assert res.json()["available"] is False
    assert generator.calls == []

    assert client.post(f"/courses/{course.id}/ai-summary", headers=auth_headers("student")).status_code == 403

    res = client.post(f"/courses/{course.id}/ai-summary", headers=auth_headers("admin"))
    assert res.status_code == 200
    assert res.json()["summary"]["review_count"] == 12

    res = client.get(f"/courses/{course.id}/ai-summary")
    assert res.json()["available"] is True
    assert len(generator.calls) == 1


def test_ai_summary_unavailable(client, db, generator):
    create_user(db, "admin", role="admin")
    course = create_course(db)
    add_reviews(db, course, 12)
    generator.available = False

    assert client.get("/courses/ai-status").json()["available"] is False
    res = client.post(f"/courses/{course.id}/ai-summary", headers=auth_headers("admin"))
    assert res.status_code == 503
    assert res.json()["code"] == "SERVICE_UNAVAILABLE"


def test_admin_sweep_endpoint(client, db):
    create_user(db, "admin", role="admin")
    course = create_course(db)
    add_reviews(db, course, 10)

    res = client.post("/courses/ai-summary/sweep", headers=auth_headers("admin"))
    assert res.status_code == 200
    assert res.json() == {"total": 1, "generated": 1, "skipped": 0, "failed": 0}
