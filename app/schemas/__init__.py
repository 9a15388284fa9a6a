# app/schemas/__init__.py

# Auth schemas
from .auth import Token, LoginRequest, RegisterRequest

# Review schemas
from .review import (
    ReviewCreate,
    ReviewUpdate,
    ReviewResponse,
    VoteRequest,
    VoteAggregateResponse,
)

# Schedule schemas
from .schedule import (
    UserScheduleCreate,
    UserScheduleResponse,
    CourseScheduleCreate,
    CourseScheduleResponse,
)

# AI summary schemas
from .summary import CourseSummary, CourseSummaryResponse

__all__ = [
    "Token",
    "LoginRequest",
    "RegisterRequest",
    "ReviewCreate",
    "ReviewUpdate",
    "ReviewResponse",
    "VoteRequest",
    "VoteAggregateResponse",
    "UserScheduleCreate",
    "UserScheduleResponse",
    "CourseScheduleCreate",
    "CourseScheduleResponse",
    "CourseSummary",
    "CourseSummaryResponse",
]
