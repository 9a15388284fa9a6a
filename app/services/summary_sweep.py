# app/services/summary_sweep.py
"""
Process-start sweep over all courses that refreshes stale AI summaries.

Generator calls are spaced by a fixed delay to stay under upstream rate
limits. A failure on one course is logged and counted; the sweep carries
on with the next course.
"""

import logging
import time
from dataclasses import dataclass, asdict
from typing import Callable, Optional

from sqlalchemy.orm import Session

from app.ai.summary_generator import get_summary_generator
from app.crud import course as course_crud
from app.services import summary_service
from app.services.summary_service import SummaryPolicyConfig

logger = logging.getLogger(__name__)


@dataclass
class SweepReport:
    total: int = 0
    generated: int = 0
    skipped: int = 0
    failed: int = 0

    def as_dict(self) -> dict:
        return asdict(self)


def run_summary_sweep(
    session_factory: Callable[[], Session],
    *,
    generator=None,
    config: Optional[SummaryPolicyConfig] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> SweepReport:
    """
    Check every course and regenerate the summaries that are stale.

    Args:
        session_factory: Returns a new database session; one is opened per course
        generator: Summary generator (defaults to the configured one)
        config: Thresholds and pacing delay
        sleep: Pacing function, replaceable in tests

    Returns:
        SweepReport with total/generated/skipped/failed counts
    """
    generator = generator or get_summary_generator()
    config = config or SummaryPolicyConfig.from_settings()
    report = SweepReport()

    logger.info("AI summary sweep started")
    if not generator.is_available():
        logger.warning("AI service not configured or disabled; skipping AI summary sweep")
        return report

    db = session_factory()
    try:
        course_ids = course_crud.list_course_ids(db)
    finally:
        db.close()

    report.total = len(course_ids)
    called_generator = False

    for course_id in course_ids:
        db = session_factory()
        try:
            course = course_crud.get_course(db, course_id)
            if course is None:
                report.skipped += 1
                continue

            current_count = course_crud.count_approved_reviews(db, course_id)
            if not summary_service.should_regenerate(course, current_count, config):
                report.skipped += 1
                continue

            if called_generator and config.sweep_delay_seconds > 0:
                sleep(config.sweep_delay_seconds)
            called_generator = True

            logger.info(
                "Generating AI summary for course %s (%s), approved reviews: %s",
                course.name, course.code, current_count,
            )
            summary = summary_service.regenerate(
                db, course_id, generator=generator, config=config, only_if_stale=True
            )
            if summary is None:
                report.skipped += 1
            else:
                report.generated += 1
        except Exception as exc:
            db.rollback()
            report.failed += 1
            logger.error("AI summary generation failed for course_id=%s: %s", course_id, exc)
        finally:
            db.close()

    logger.info(
        "AI summary sweep finished: total=%s generated=%s skipped=%s failed=%s",
        report.total, report.generated, report.skipped, report.failed,
    )
    return report


def run_startup_sweep() -> SweepReport:
    from app.database import SessionLocal

    return run_summary_sweep(SessionLocal)
