"""
Like/dislike ledger on reviews
"""

import pytest

from app.crud import vote as vote_crud
from app.errors import NotFoundError, ValidationError
from app.models.review import ReviewVote, VoteType
from app.services import review_service, vote_service
from conftest import create_course, create_user


@pytest.fixture
def review(db_session):
    author = create_user(db_session, "author")
    course = create_course(db_session)
    return review_service.create_review(db_session, author.id, course.id, 4, "讲得很清楚")


def _vote_rows(db, review_id):
    return db.query(ReviewVote).filter(ReviewVote.review_id == review_id).all()


def test_first_vote_is_counted(db_session, review):
    voter = create_user(db_session, "voter")

    result = vote_service.vote(db_session, review.id, voter.id, "LIKE")

    assert result == {"review_id": review.id, "like_count": 1, "dislike_count": 0, "user_vote": "LIKE"}


def test_switching_vote_moves_the_count(db_session, review):
    voter = create_user(db_session, "voter")
    vote_service.vote(db_session, review.id, voter.id, VoteType.LIKE)

    result = vote_service.vote(db_session, review.id, voter.id, VoteType.DISLIKE)

    assert result["like_count"] == 0
    assert result["dislike_count"] == 1
    assert result["user_vote"] == "DISLIKE"
    assert len(_vote_rows(db_session, review.id)) == 1


def test_repeating_same_vote_changes_nothing(db_session, review):
    voter = create_user(db_session, "voter")
    first = vote_service.vote(db_session, review.id, voter.id, "like")
    second = vote_service.vote(db_session, review.id, voter.id, "like")

    assert first == second
    assert second["like_count"] == 1
    assert len(_vote_rows(db_session, review.id)) == 1


def test_counts_are_per_user(db_session, review):
    alice = create_user(db_session, "alice")
    bob = create_user(db_session, "bob")
    carol = create_user(db_session, "carol")

    vote_service.vote(db_session, review.id, alice.id, "LIKE")
    vote_service.vote(db_session, review.id, bob.id, "LIKE")
    result = vote_service.vote(db_session, review.id, carol.id, "DISLIKE")

    assert result["like_count"] == 2
    assert result["dislike_count"] == 1
    assert vote_service.get_vote_aggregate(db_session, review.id)["user_vote"] is None


def test_cancel_vote_removes_row(db_session, review):
    voter = create_user(db_session, "voter")
    vote_service.vote(db_session, review.id, voter.id, "DISLIKE")

    result = vote_service.cancel_vote(db_session, review.id, voter.id)

    assert result == {"review_id": review.id, "like_count": 0, "dislike_count": 0, "user_vote": None}
    # cancelling again is harmless
    assert vote_service.cancel_vote(db_session, review.id, voter.id)["like_count"] == 0


def test_invalid_vote_type_rejected(db_session, review):
    voter = create_user(db_session, "voter")
    with pytest.raises(ValidationError):
        vote_service.vote(db_session, review.id, voter.id, "LOVE")


def test_vote_on_missing_review_is_not_found(db_session):
    voter = create_user(db_session, "voter")
    with pytest.raises(NotFoundError):
        vote_service.vote(db_session, 404, voter.id, "LIKE")
    with pytest.raises(NotFoundError):
        vote_service.cancel_vote(db_session, 404, voter.id)


def test_concurrent_first_vote_becomes_update(db_session, review, monkeypatch):
    """A racing insert hits the unique constraint and is turned into a switch"""
    voter = create_user(db_session, "voter")
    vote_crud.create_vote(db_session, review.id, voter.id, VoteType.LIKE)
    db_session.commit()

    real_get_vote = vote_crud.get_vote
    calls = {"count": 0}

    def stale_get_vote(db, review_id, user_id):
        # First lookup misses, as if the other request had not committed yet
        calls["count"] += 1
        if calls["count"] == 1:
            return None
        return real_get_vote(db, review_id, user_id)

    monkeypatch.setattr(vote_crud, "get_vote", stale_get_vote)
    result = vote_service.vote(db_session, review.id, voter.id, "DISLIKE")

    assert result["like_count"] == 0
    assert result["dislike_count"] == 1
    assert len(_vote_rows(db_session, review.id)) == 1


def test_serialized_review_carries_live_counts(db_session, review):
    voter = create_user(db_session, "voter")
    vote_service.vote(db_session, review.id, voter.id, "LIKE")

    data = review_service.serialize_review(db_session, review, voter.id)

    assert data["like_count"] == 1
    assert data["dislike_count"] == 0
    assert data["user_vote"] == "LIKE"
