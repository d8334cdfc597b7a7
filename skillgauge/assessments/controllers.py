"""
Assessment Controllers

This module provides the API endpoints for submitting assessments and
reading attempts:
- POST /assessments: score and record a submission
- GET /assessments/questions: the current paper
- GET /assessments/{id}: one attempt with its answers
- DELETE /assessments/{id}: remove an attempt (admin)
- GET /users/{id}/assessments: a user's attempts
"""

from typing import Any, Dict, List

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from skillgauge.assessments.services import AssessmentService
from skillgauge.common.auth.dependencies import get_auth_context
from skillgauge.common.auth.user import AuthContext
from skillgauge.common.db.session import get_session
from skillgauge.common.logger import app_logger

# Set up module logger
logger = app_logger.getChild("assessments.controllers")

# Create router
router = APIRouter(tags=["Assessments"])


class AnswerPayload(BaseModel):
    question_id: str = Field(..., description="Question being answered")
    option_id: str = Field(..., description="Chosen option")


class SubmitAssessmentRequest(BaseModel):
    user_id: str = Field(..., description="User the attempt belongs to")
    answers: List[AnswerPayload] = Field(..., description="Answers in submission order")


def get_assessment_service(session: Session = Depends(get_session)) -> AssessmentService:
    return AssessmentService(session)


@router.post("/assessments", status_code=status.HTTP_201_CREATED)
def submit_assessment(
    payload: SubmitAssessmentRequest,
    caller: AuthContext = Depends(get_auth_context),
    service: AssessmentService = Depends(get_assessment_service)
) -> Dict[str, Any]:
    """
    Score a submission and record it.

    Returns:
        ``{assessment, summary}``
    """
    return service.submit_assessment(
        caller,
        payload.user_id,
        [answer.model_dump() for answer in payload.answers]
    )


@router.get("/assessments/questions")
def get_current_paper(
    caller: AuthContext = Depends(get_auth_context),
    service: AssessmentService = Depends(get_assessment_service)
) -> Dict[str, Any]:
    """The questions of the next attempt, without the correct answers."""
    return service.current_paper()


@router.get("/assessments/{attempt_id}")
def get_attempt(
    attempt_id: str,
    caller: AuthContext = Depends(get_auth_context),
    service: AssessmentService = Depends(get_assessment_service)
) -> Dict[str, Any]:
    return service.get_attempt(caller, attempt_id)


@router.delete("/assessments/{attempt_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_attempt(
    attempt_id: str,
    caller: AuthContext = Depends(get_auth_context),
    service: AssessmentService = Depends(get_assessment_service)
) -> Response:
    service.delete_attempt(caller, attempt_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/users/{user_id}/assessments")
def list_user_attempts(
    user_id: str,
    caller: AuthContext = Depends(get_auth_context),
    service: AssessmentService = Depends(get_assessment_service)
) -> List[Dict[str, Any]]:
    """Attempts of a user, most recently finished first."""
    return service.list_attempts_for_user(caller, user_id)
