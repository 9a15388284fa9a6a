from pydantic import BaseModel, Field
from typing import List, Optional


class CourseSummary(BaseModel):
    """Structured AI summary of a course's reviews"""
    overall: str = ""
    difficulty: str = ""
    teaching: str = ""
    pros: List[str] = Field(default_factory=list)
    cons: List[str] = Field(default_factory=list)
    suggestion: str = ""


class CourseSummaryView(CourseSummary):
    """Cached summary as shown to readers"""
    updated_at: Optional[str] = None
    review_count: Optional[int] = None


class CourseSummaryResponse(BaseModel):
    available: bool
    review_count: int
    summary: Optional[CourseSummaryView] = None
    message: Optional[str] = None


class AIStatusResponse(BaseModel):
    available: bool
    message: str


class SweepReportResponse(BaseModel):
    total: int
    generated: int
    skipped: int
    failed: int
