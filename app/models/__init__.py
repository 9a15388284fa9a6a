# app/models/__init__.py
# Import models in dependency order
from .user import User, Role
from .course import Faculty, Teacher, Course, CourseType
from .review import Review, ReviewVote, ReviewStatus, VoteType
from .schedule import CourseSchedule, UserSchedule

__all__ = [
    "User",
    "Role",
    "Faculty",
    "Teacher",
    "Course",
    "CourseType",
    "Review",
    "ReviewVote",
    "ReviewStatus",
    "VoteType",
    "CourseSchedule",
    "UserSchedule",
]
