"""
Centralized error types and their HTTP rendering.

Services raise these; routers let them propagate and the handler registered
in app.main turns them into a uniform JSON body:

{
    "success": false,
    "error": "ConflictError",
    "code": "DUPLICATE_REVIEW",
    "message": "您已经对这门课程发表过评价"
}
"""

import logging
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class ErrorCode:
    """Machine-readable error codes"""

    NOT_FOUND = "NOT_FOUND"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    CONFLICT = "CONFLICT"
    DUPLICATE_REVIEW = "DUPLICATE_REVIEW"
    SCHEDULE_CONFLICT = "SCHEDULE_CONFLICT"
    FORBIDDEN = "FORBIDDEN"
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"
    AI_SERVICE_ERROR = "AI_SERVICE_ERROR"


class CourseEvalError(Exception):
    status_code = status.HTTP_400_BAD_REQUEST
    code = ErrorCode.VALIDATION_ERROR

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code


class NotFoundError(CourseEvalError):
    status_code = status.HTTP_404_NOT_FOUND
    code = ErrorCode.NOT_FOUND


class ValidationError(CourseEvalError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = ErrorCode.VALIDATION_ERROR


class ConflictError(CourseEvalError):
    status_code = status.HTTP_409_CONFLICT
    code = ErrorCode.CONFLICT


class DuplicateReviewError(ConflictError):
    code = ErrorCode.DUPLICATE_REVIEW

    def __init__(self, message: str = "您已经对这门课程发表过评价"):
        super().__init__(message)


class ScheduleConflictError(ConflictError):
    code = ErrorCode.SCHEDULE_CONFLICT

    def __init__(self, message: str = "该时间段已有课程安排"):
        super().__init__(message)


class PermissionDeniedError(CourseEvalError):
    status_code = status.HTTP_403_FORBIDDEN
    code = ErrorCode.FORBIDDEN


class ServiceUnavailableError(CourseEvalError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    code = ErrorCode.SERVICE_UNAVAILABLE

    def __init__(self, message: str = "AI服务未配置或未启用"):
        super().__init__(message)


class UpstreamError(CourseEvalError):
    """The external AI call failed. Callers may retry later."""

    status_code = status.HTTP_502_BAD_GATEWAY
    code = ErrorCode.AI_SERVICE_ERROR

    def __init__(self, message: str = "AI服务暂时不可用，请稍后再试"):
        super().__init__(message)


async def course_eval_error_handler(request: Request, exc: CourseEvalError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.warning("%s on %s %s: %s", type(exc).__name__, request.method, request.url.path, exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "success": False,
            "error": type(exc).__name__,
            "code": exc.code,
            "message": exc.message,
        },
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(CourseEvalError, course_eval_error_handler)
