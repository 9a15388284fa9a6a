# app/models/review.py
from sqlalchemy import (
    Column, Integer, Text, Boolean, ForeignKey, TIMESTAMP, Enum, func,
    CheckConstraint, Index, UniqueConstraint, text,
)
from sqlalchemy.orm import relationship
from app.database import Base
import enum


class ReviewStatus(str, enum.Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class VoteType(str, enum.Enum):
    LIKE = "LIKE"
    DISLIKE = "DISLIKE"


class Review(Base):
    __tablename__ = "reviews"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    course_id = Column(Integer, ForeignKey("courses.id", ondelete="CASCADE"), nullable=False)
    content = Column(Text, nullable=False)
    rating = Column(Integer, nullable=False)
    anonymous = Column(Boolean, default=False, nullable=False)
    pinned = Column(Boolean, default=False, nullable=False)
    status = Column(Enum(ReviewStatus), default=ReviewStatus.APPROVED, nullable=False)
    # Set for reviews written under the admin exemption; those rows sit
    # outside the one-review-per-(user, course) index.
    admin_authored = Column(Boolean, default=False, nullable=False)
    created_at = Column(TIMESTAMP, server_default=func.now())
    updated_at = Column(TIMESTAMP, onupdate=func.now())

    # Constraints
    __table_args__ = (
        CheckConstraint('rating >= 1 AND rating <= 5', name='check_rating_range'),
        Index(
            "uq_reviews_user_course",
            "user_id",
            "course_id",
            unique=True,
            sqlite_where=text("admin_authored = 0"),
            postgresql_where=text("admin_authored IS FALSE"),
        ),
    )

    # Relationships
    user = relationship("User", back_populates="reviews")
    course = relationship("Course", back_populates="reviews")
    votes = relationship("ReviewVote", back_populates="review", cascade="all, delete-orphan")


class ReviewVote(Base):
    __tablename__ = "review_votes"

    id = Column(Integer, primary_key=True, index=True)
    review_id = Column(Integer, ForeignKey("reviews.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    vote_type = Column(Enum(VoteType), nullable=False)
    created_at = Column(TIMESTAMP, server_default=func.now())

    __table_args__ = (
        UniqueConstraint("review_id", "user_id", name="uq_review_votes_review_user"),
    )

    review = relationship("Review", back_populates="votes")
    user = relationship("User", back_populates="votes")
