# app/services/vote_service.py
"""
Like/dislike votes on reviews.

At most one vote row exists per (review, user); the unique constraint on
review_votes enforces it. Counts are never stored on the review, they are
computed from the vote rows on every read.
"""

import logging
from typing import Any, Dict, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.crud import review as review_crud
from app.crud import user as user_crud
from app.crud import vote as vote_crud
from app.errors import NotFoundError, ValidationError
from app.models.review import VoteType

logger = logging.getLogger(__name__)


def parse_vote_type(raw: Any) -> VoteType:
    if isinstance(raw, VoteType):
        return raw
    try:
        return VoteType(str(raw).strip().upper())
    except ValueError:
        raise ValidationError(f"无效的投票类型: {raw}")


def get_user_vote(db: Session, review_id: int, user_id: Optional[int]) -> Optional[str]:
    """The user's current vote on a review ("LIKE"/"DISLIKE"), or None."""
    if user_id is None:
        return None
    vote = vote_crud.get_vote(db, review_id, user_id)
    return VoteType(vote.vote_type).value if vote is not None else None


def get_vote_aggregate(db: Session, review_id: int, user_id: Optional[int] = None) -> Dict[str, Any]:
    counts = vote_crud.count_votes_by_type(db, review_id)
    return {
        "review_id": review_id,
        "like_count": counts[VoteType.LIKE],
        "dislike_count": counts[VoteType.DISLIKE],
        "user_vote": get_user_vote(db, review_id, user_id),
    }


def _apply_existing(vote, vote_type: VoteType) -> bool:
    """Switch an existing vote to vote_type. Returns True if it changed."""
    if VoteType(vote.vote_type) == vote_type:
        return False
    vote.vote_type = vote_type
    return True


def vote(db: Session, review_id: int, user_id: int, vote_type: Any) -> Dict[str, Any]:
    """
    Record a user's vote on a review.

    - no prior vote: insert one
    - prior vote of the other type: switch it in place
    - prior vote of the same type: nothing changes

    Returns:
        The review's live aggregate {review_id, like_count, dislike_count, user_vote}

    Raises:
        NotFoundError: If the review or user does not exist
        ValidationError: If vote_type is not LIKE or DISLIKE
    """
    vote_type = parse_vote_type(vote_type)

    if review_crud.get_review_by_id(db, review_id) is None:
        raise NotFoundError(f"评论不存在，ID: {review_id}")
    if user_crud.get_user(db, user_id) is None:
        raise NotFoundError(f"用户不存在，ID: {user_id}")

    existing = vote_crud.get_vote(db, review_id, user_id)
    if existing is not None:
        if _apply_existing(existing, vote_type):
            db.commit()
        return get_vote_aggregate(db, review_id, user_id)

    try:
        vote_crud.create_vote(db, review_id, user_id, vote_type)
        db.commit()
    except IntegrityError:
        # A concurrent request inserted this user's vote first.
        db.rollback()
        logger.info("Vote insert race on review_id=%s user_id=%s; updating instead", review_id, user_id)
        existing = vote_crud.get_vote(db, review_id, user_id)
        if existing is None:
            raise
        if _apply_existing(existing, vote_type):
            db.commit()

    return get_vote_aggregate(db, review_id, user_id)


def cancel_vote(db: Session, review_id: int, user_id: int) -> Dict[str, Any]:
    """Remove the user's vote if there is one; absent votes are not an error."""
    if review_crud.get_review_by_id(db, review_id) is None:
        raise NotFoundError(f"评论不存在，ID: {review_id}")

    vote_crud.delete_vote(db, review_id, user_id)
    db.commit()
    return get_vote_aggregate(db, review_id, user_id)
