# app/services/summary_service.py
"""
AI course summary cache.

A course's summary is regenerated only when it has enough approved reviews
and enough new ones since the last generation. Reads only ever return what
is cached; they never call the generator.

The three cached fields (ai_summary, ai_summary_updated_at,
ai_summary_review_count) are written together in a single commit after the
generator returns, so a failed call leaves the previous summary in place.
"""

import json
import logging
import random
import threading
from dataclasses import dataclass
from datetime import datetime, UTC
from typing import Any, Callable, Dict, Optional

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.orm import Session

from app.ai.summary_generator import get_summary_generator
from app.config import settings
from app.crud import course as course_crud
from app.errors import NotFoundError, ServiceUnavailableError, ValidationError
from app.models.course import Course
from app.schemas.summary import CourseSummary, CourseSummaryView

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


@dataclass(frozen=True)
class SummaryPolicyConfig:
    min_review_count: int = 10
    review_change_threshold: int = 10
    sweep_delay_seconds: float = 1.0
    max_prompt_reviews: int = 50

    @classmethod
    def from_settings(cls) -> "SummaryPolicyConfig":
        return cls(
            min_review_count=settings.AI_SUMMARY_MIN_REVIEWS,
            review_change_threshold=settings.AI_SUMMARY_CHANGE_THRESHOLD,
            sweep_delay_seconds=settings.AI_SUMMARY_SWEEP_DELAY_SECONDS,
            max_prompt_reviews=settings.AI_SUMMARY_MAX_PROMPT_REVIEWS,
        )


def utc_now() -> datetime:
    return datetime.now(UTC)


# Serializes regeneration of one course within this process.
_course_locks: Dict[int, threading.Lock] = {}
_course_locks_guard = threading.Lock()


def _course_lock(course_id: int) -> threading.Lock:
    with _course_locks_guard:
        return _course_locks.setdefault(course_id, threading.Lock())


# ======================
# POLICY
# ======================

def should_regenerate(course: Course, current_review_count: int, config: SummaryPolicyConfig) -> bool:
    """
    Decide whether a course's cached summary is stale.

    - fewer than min_review_count approved reviews: never
    - no cached summary yet: yes
    - cached summary without a recorded baseline count: yes
    - otherwise only when more than review_change_threshold reviews were
      added since the summary was generated
    """
    if current_review_count < config.min_review_count:
        return False

    if not course.ai_summary:
        return True

    baseline = course.ai_summary_review_count
    if baseline is None:
        return True

    return current_review_count - baseline > config.review_change_threshold


def is_ai_service_available(generator=None) -> bool:
    generator = generator or get_summary_generator()
    return generator.is_available()


def _require_course(db: Session, course_id: int) -> Course:
    course = course_crud.get_course(db, course_id)
    if course is None:
        raise NotFoundError(f"课程不存在，ID: {course_id}")
    return course


def get_review_count(db: Session, course_id: int) -> int:
    _require_course(db, course_id)
    return course_crud.count_approved_reviews(db, course_id)


# ======================
# GENERATION
# ======================

def _to_view(course: Course, summary: CourseSummary) -> CourseSummaryView:
    return CourseSummaryView(
        **summary.model_dump(),
        updated_at=course.ai_summary_updated_at.isoformat() if course.ai_summary_updated_at else None,
        review_count=course.ai_summary_review_count,
    )


def regenerate(
    db: Session,
    course_id: int,
    *,
    generator=None,
    config: Optional[SummaryPolicyConfig] = None,
    clock: Clock = utc_now,
    only_if_stale: bool = False,
) -> Optional[CourseSummaryView]:
    """
    Generate and store a fresh summary for a course.

    The stored baseline (ai_summary_review_count) never decreases: after
    reviews are deleted it keeps the larger earlier count.

    With only_if_stale, staleness is re-checked under the course lock and
    None is returned without calling the generator when another caller
    already refreshed the summary.

    Raises:
        ServiceUnavailableError: If the generator is not configured
        NotFoundError: If the course does not exist
        ValidationError: If the course has too few approved reviews
        UpstreamError: If the generator call fails; the cached summary is kept
    """
    generator = generator or get_summary_generator()
    config = config or SummaryPolicyConfig.from_settings()

    if not generator.is_available():
        raise ServiceUnavailableError()

    with _course_lock(course_id):
        course = _require_course(db, course_id)
        db.refresh(course)
        reviews = course_crud.list_approved_reviews(db, course_id)
        review_count = len(reviews)

        if review_count == 0:
            raise ValidationError("该课程暂无评价，无法生成总结")
        if review_count < config.min_review_count:
            raise ValidationError(f"评价数量不足{config.min_review_count}条，无法生成AI总结")

        if only_if_stale and not should_regenerate(course, review_count, config):
            logger.info("AI summary for course %s already fresh; skipping", course.code)
            return None

        prompt_reviews = reviews
        if review_count > config.max_prompt_reviews:
            prompt_reviews = random.sample(reviews, config.max_prompt_reviews)

        summary = generator.generate(course, prompt_reviews, review_count)

        try:
            course.ai_summary = summary.model_dump_json()
            course.ai_summary_updated_at = clock()
            course.ai_summary_review_count = max(course.ai_summary_review_count or 0, review_count)
            db.commit()
        except Exception:
            db.rollback()
            raise
        db.refresh(course)

    logger.info("AI summary stored for course %s (%s approved reviews)", course.code, review_count)
    return _to_view(course, summary)


# ======================
# READS
# ======================

def get_cached_summary(
    db: Session,
    course_id: int,
    config: Optional[SummaryPolicyConfig] = None,
) -> Optional[CourseSummaryView]:
    """
    Return the stored summary, or None when the course is below the review
    minimum, has no summary yet, or the stored text cannot be parsed.
    """
    config = config or SummaryPolicyConfig.from_settings()
    course = _require_course(db, course_id)

    if course_crud.count_approved_reviews(db, course_id) < config.min_review_count:
        return None
    if not course.ai_summary:
        return None

    try:
        summary = CourseSummary.model_validate(json.loads(course.ai_summary))
    except (ValueError, PydanticValidationError) as exc:
        logger.warning("Cached AI summary for course %s is unreadable: %s", course.code, exc)
        return None

    return _to_view(course, summary)


def get_summary_status(
    db: Session,
    course_id: int,
    *,
    generator=None,
    config: Optional[SummaryPolicyConfig] = None,
) -> Dict[str, Any]:
    """Body of the read endpoint: {available, review_count, summary?, message?}."""
    config = config or SummaryPolicyConfig.from_settings()
    review_count = get_review_count(db, course_id)

    if review_count < config.min_review_count:
        return {
            "available": False,
            "review_count": review_count,
            "message": f"评价不足{config.min_review_count}条，暂无AI总结",
        }

    summary = get_cached_summary(db, course_id, config)
    if summary is not None:
        return {"available": True, "review_count": review_count, "summary": summary}

    if is_ai_service_available(generator):
        message = "AI总结正在生成中，请稍后刷新页面"
    else:
        message = "AI服务未配置，暂无法生成总结"
    return {"available": False, "review_count": review_count, "message": message}
