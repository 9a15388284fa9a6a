# app/models/course.py
from sqlalchemy import Column, Integer, String, Text, Float, ForeignKey, TIMESTAMP, Enum
from sqlalchemy.orm import relationship
from app.database import Base
import enum


class CourseType(str, enum.Enum):
    COMPULSORY = "COMPULSORY"
    ELECTIVE = "ELECTIVE"


class Faculty(Base):
    __tablename__ = "faculties"

    id = Column(Integer, primary_key=True, index=True)
    code = Column(String(20), unique=True, nullable=False)
    name = Column(String(100), nullable=False)

    courses = relationship("Course", back_populates="faculty")
    teachers = relationship("Teacher", back_populates="faculty")


class Teacher(Base):
    __tablename__ = "teachers"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    title = Column(String(50))
    faculty_id = Column(Integer, ForeignKey("faculties.id", ondelete="SET NULL"))

    faculty = relationship("Faculty", back_populates="teachers")
    courses = relationship("Course", back_populates="teacher")


class Course(Base):
    __tablename__ = "courses"

    id = Column(Integer, primary_key=True, index=True)
    code = Column(String(20), unique=True, index=True, nullable=False)
    name = Column(String(200), nullable=False)
    credits = Column(Float, default=3.0, nullable=False)
    type = Column(Enum(CourseType), default=CourseType.COMPULSORY, nullable=False)
    description = Column(String(1000))
    assessment_criteria = Column(String(2000))
    faculty_id = Column(Integer, ForeignKey("faculties.id"), nullable=False)
    teacher_id = Column(Integer, ForeignKey("teachers.id", ondelete="SET NULL"), nullable=True)

    # Cached AI summary; written only by the summary service
    ai_summary = Column(Text)
    ai_summary_updated_at = Column(TIMESTAMP)
    ai_summary_review_count = Column(Integer)  # approved reviews at generation time

    faculty = relationship("Faculty", back_populates="courses")
    teacher = relationship("Teacher", back_populates="courses")
    reviews = relationship("Review", back_populates="course", cascade="all, delete-orphan")
    schedules = relationship("CourseSchedule", back_populates="course", cascade="all, delete-orphan")
