# app/crud/vote.py
"""
Review vote rows keyed by (review_id, user_id).
"""

from typing import Dict, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.models.review import ReviewVote, VoteType


def get_vote(db: Session, review_id: int, user_id: int) -> Optional[ReviewVote]:
    return db.query(ReviewVote).filter(
        ReviewVote.review_id == review_id,
        ReviewVote.user_id == user_id,
    ).first()


def create_vote(db: Session, review_id: int, user_id: int, vote_type: VoteType) -> ReviewVote:
    """Insert a vote row. Raises IntegrityError if the user already voted."""
    vote = ReviewVote(review_id=review_id, user_id=user_id, vote_type=vote_type)
    db.add(vote)
    db.flush()
    return vote


def delete_vote(db: Session, review_id: int, user_id: int) -> int:
    deleted = db.query(ReviewVote).filter(
        ReviewVote.review_id == review_id,
        ReviewVote.user_id == user_id,
    ).delete(synchronize_session=False)
    return int(deleted)


def count_votes_by_type(db: Session, review_id: int) -> Dict[VoteType, int]:
    """Live like/dislike counts for a review, one GROUP BY query."""
    counts = {VoteType.LIKE: 0, VoteType.DISLIKE: 0}
    rows = (
        db.query(ReviewVote.vote_type, func.count(ReviewVote.id))
        .filter(ReviewVote.review_id == review_id)
        .group_by(ReviewVote.vote_type)
        .all()
    )
    for vote_type, count in rows:
        counts[VoteType(vote_type)] = int(count)
    return counts
