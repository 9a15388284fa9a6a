# app/schemas/review.py
"""
Review & Vote Pydantic Schemas
Request/response models with validation
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Dict, List, Optional
from datetime import datetime

from app.models.review import ReviewStatus, VoteType


# ======================
# REVIEW SCHEMAS
# ======================

class ReviewBase(BaseModel):
    """Base review schema"""
    rating: int = Field(..., ge=1, le=5, description="Rating from 1 to 5 stars")
    content: str = Field(..., max_length=2000, description="Review text")
    anonymous: bool = Field(False, description="Hide the author name")

    @field_validator('content')
    @classmethod
    def validate_content(cls, v):
        """Validate content is not just whitespace"""
        if v.strip() == "":
            raise ValueError("Content cannot be empty or just whitespace")
        return v.strip()


class ReviewCreate(ReviewBase):
    """Schema for creating a review"""
    course_id: int = Field(..., description="Course identifier")


class ReviewUpdate(ReviewBase):
    """Schema for editing a review; pinned is honoured for admins only"""
    pinned: Optional[bool] = None


class ReviewResponse(BaseModel):
    """Review as displayed, with live vote counts"""
    id: int
    content: str
    rating: int
    anonymous: bool
    pinned: bool
    status: ReviewStatus
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    user_id: int
    username: Optional[str] = None
    admin_review: bool = False
    course_id: int
    course_name: Optional[str] = None
    course_code: Optional[str] = None
    like_count: int = 0
    dislike_count: int = 0
    user_vote: Optional[VoteType] = None

    model_config = ConfigDict(from_attributes=True)


class ReviewCheckResponse(BaseModel):
    """Whether the current user already reviewed a course"""
    course_id: int
    has_reviewed: bool
    review: Optional[ReviewResponse] = None


class ReviewStatusUpdate(BaseModel):
    status: ReviewStatus


class ReviewBatchDelete(BaseModel):
    review_ids: List[int] = Field(..., min_length=1)


class CourseRatingResponse(BaseModel):
    """Course rating summary response"""
    course_id: int
    average_rating: float = Field(..., description="Average rating (0-5), one decimal")
    total_reviews: int
    rating_distribution: Dict[int, int] = Field(..., description="Count of each rating (1-5)")


# ======================
# VOTE SCHEMAS
# ======================

class VoteRequest(BaseModel):
    vote_type: str = Field(..., description="LIKE or DISLIKE")


class VoteAggregateResponse(BaseModel):
    review_id: int
    like_count: int
    dislike_count: int
    user_vote: Optional[VoteType] = None
