"""
Central API router and exception handlers for the SkillGauge platform.

This module provides:
- A central router that includes every domain router
- Exception handlers that render all failures as ``{"message": <key>}``
"""

from typing import Any, Dict, List

from fastapi import APIRouter, FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from skillgauge.assessments.controllers import router as assessments_router
from skillgauge.common.error_handling import InternalError, SkillGaugeError, log_error
from skillgauge.common.logger import app_logger
from skillgauge.domain.identity.controllers import admin_router as users_router
from skillgauge.domain.identity.controllers import auth_router
from skillgauge.domain.questions.controllers import router as questions_router
from skillgauge.domain.settings.controllers import router as settings_router
from skillgauge.domain.workers.controllers import router as workers_router

logger = app_logger.getChild("api")

# Create main API router
main_router = APIRouter()

main_router.include_router(auth_router)
main_router.include_router(users_router)
main_router.include_router(questions_router)
main_router.include_router(settings_router)
main_router.include_router(workers_router)
main_router.include_router(assessments_router)

HTTP_ERROR_KEYS = {
    status.HTTP_400_BAD_REQUEST: "invalid_input",
    status.HTTP_401_UNAUTHORIZED: "unauthenticated",
    status.HTTP_403_FORBIDDEN: "forbidden",
    status.HTTP_404_NOT_FOUND: "not_found",
    status.HTTP_405_METHOD_NOT_ALLOWED: "method_not_allowed",
    status.HTTP_409_CONFLICT: "conflict",
}


@main_router.get("/health", tags=["Health"])
def health_check() -> Dict[str, str]:
    return {"status": "ok"}


def _validation_errors(exc: RequestValidationError) -> List[Dict[str, Any]]:
    return [
        {
            "location": [str(part) for part in error.get("loc", [])],
            "message": error.get("msg", "Unknown validation error"),
            "type": error.get("type", "")
        }
        for error in exc.errors()
    ]


async def skillgauge_exception_handler(request: Request, exc: SkillGaugeError) -> JSONResponse:
    log_error(exc, context={"path": request.url.path, "method": request.method})
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """
    Handle request body and parameter validation errors.

    Returns:
        A 400 response keyed ``invalid_input`` with the offending fields
    """
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"message": "invalid_input", "errors": _validation_errors(exc)}
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    key = HTTP_ERROR_KEYS.get(exc.status_code, "internal_error" if exc.status_code >= 500 else "invalid_input")
    return JSONResponse(status_code=exc.status_code, content={"message": key}, headers=getattr(exc, "headers", None))


async def internal_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Handle storage failures and anything unexpected.

    The response never carries the exception text.
    """
    error = InternalError(message="An unexpected error occurred", cause=exc)
    log_error(error, context={"path": request.url.path, "method": request.method})
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=error.to_dict())


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(SkillGaugeError, skillgauge_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(SQLAlchemyError, internal_exception_handler)
    app.add_exception_handler(Exception, internal_exception_handler)
