from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional


# ======================
# SCHEDULE REQUEST MODELS
# ======================

class UserScheduleCreate(BaseModel):
    day_of_week: int = Field(..., description="1=Monday ... 7=Sunday")
    time_period: int = Field(..., description="1-4, see /user-schedules/time-periods")
    course_name: Optional[str] = Field(None, max_length=200)


class CourseScheduleCreate(BaseModel):
    day_of_week: int
    time_period: int
    location: Optional[str] = Field(None, max_length=100)


class SlotQuery(BaseModel):
    day_of_week: int
    time_period: int


class ConflictQuery(BaseModel):
    slots: List[SlotQuery]


# ======================
# SCHEDULE RESPONSE MODELS
# ======================

class UserScheduleResponse(BaseModel):
    id: int
    user_id: int
    day_of_week: int
    time_period: int
    course_name: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class CourseScheduleResponse(BaseModel):
    id: int
    course_id: int
    day_of_week: int
    time_period: int
    location: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class ConflictCheckResponse(BaseModel):
    day_of_week: int
    time_period: int
    has_conflict: bool


class ConflictListResponse(BaseModel):
    conflicts: List[SlotQuery]


class TimePeriodInfo(BaseModel):
    value: int
    start_time: str
    end_time: str
    time_range: str
    description: str


class DayOfWeekInfo(BaseModel):
    value: int
    name: str


class CourseBrief(BaseModel):
    id: int
    code: str
    name: str
    credits: float

    model_config = ConfigDict(from_attributes=True)
