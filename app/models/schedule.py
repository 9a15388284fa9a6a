# app/models/schedule.py
from sqlalchemy import Column, Integer, String, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from app.database import Base

# time_period -> (start, end, label)
TIME_PERIODS = {
    1: ("09:00", "11:50", "上午"),
    2: ("12:30", "15:20", "下午早"),
    3: ("15:30", "18:20", "下午晚"),
    4: ("19:00", "21:50", "晚上"),
}

DAYS_OF_WEEK = {
    1: "周一",
    2: "周二",
    3: "周三",
    4: "周四",
    5: "周五",
    6: "周六",
    7: "周日",
}


class CourseSchedule(Base):
    __tablename__ = "course_schedules"

    id = Column(Integer, primary_key=True, index=True)
    course_id = Column(Integer, ForeignKey("courses.id", ondelete="CASCADE"), nullable=False)
    day_of_week = Column(Integer, nullable=False)
    time_period = Column(Integer, nullable=False)
    location = Column(String(100))

    __table_args__ = (
        UniqueConstraint("course_id", "day_of_week", "time_period", name="uq_course_schedule_slot"),
    )

    course = relationship("Course", back_populates="schedules")

    @property
    def owner_id(self) -> int:
        return self.course_id

    @property
    def label(self):
        return self.location


class UserSchedule(Base):
    __tablename__ = "user_schedules"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    day_of_week = Column(Integer, nullable=False)
    time_period = Column(Integer, nullable=False)
    course_name = Column(String(200))

    __table_args__ = (
        UniqueConstraint("user_id", "day_of_week", "time_period", name="uq_user_schedule_slot"),
    )

    user = relationship("User", back_populates="schedules")

    @property
    def owner_id(self) -> int:
        return self.user_id

    @property
    def label(self):
        return self.course_name
