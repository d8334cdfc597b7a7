"""
Question Bank Controllers

Admin endpoints for managing the question bank under ``/admin/questions``.
"""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query, Response, status
from pydantic import AliasChoices, BaseModel, Field
from sqlalchemy.orm import Session

from skillgauge.common.auth.dependencies import require_roles
from skillgauge.common.auth.user import AuthContext, Role
from skillgauge.common.db.session import get_session
from skillgauge.domain.questions.repository import QuestionRepository

router = APIRouter(prefix="/admin/questions", tags=["Question Bank"])

require_admin = require_roles(Role.ADMIN)


class OptionPayload(BaseModel):
    text: Optional[str] = Field(None, description="Option text")
    is_correct: bool = Field(
        False,
        validation_alias=AliasChoices("is_correct", "isCorrect"),
        description="Whether this option is a correct answer"
    )


class QuestionPayload(BaseModel):
    text: Optional[str] = Field(None, description="Question text")
    category: Optional[str] = Field(None, description="Category used for filtering")
    difficulty: Optional[str] = None
    version: Optional[str] = None
    active: Optional[bool] = Field(None, description="Whether the question can appear in a paper")
    options: Optional[List[OptionPayload]] = Field(None, description="Full list of options")


def get_question_repository(session: Session = Depends(get_session)) -> QuestionRepository:
    return QuestionRepository(session)


def _payload_dict(payload: QuestionPayload) -> Dict[str, Any]:
    data = payload.model_dump(exclude_unset=True)
    if data.get("active") is None:
        data.pop("active", None)
    return data


@router.get("")
def list_questions(
    category: Optional[str] = Query(None),
    active: Optional[bool] = Query(None),
    search: Optional[str] = Query(None),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    caller: AuthContext = Depends(require_admin),
    repository: QuestionRepository = Depends(get_question_repository)
) -> Dict[str, Any]:
    page = repository.list(category=category, active=active, search=search, limit=limit, offset=offset)
    page["items"] = [question.to_dict() for question in page["items"]]
    return page


@router.get("/{question_id}")
def get_question(
    question_id: str,
    caller: AuthContext = Depends(require_admin),
    repository: QuestionRepository = Depends(get_question_repository)
) -> Dict[str, Any]:
    return repository.get(question_id).to_dict()


@router.post("", status_code=status.HTTP_201_CREATED)
def create_question(
    payload: QuestionPayload,
    caller: AuthContext = Depends(require_admin),
    repository: QuestionRepository = Depends(get_question_repository)
) -> Dict[str, Any]:
    return repository.create(_payload_dict(payload)).to_dict()


@router.put("/{question_id}")
def update_question(
    question_id: str,
    payload: QuestionPayload,
    caller: AuthContext = Depends(require_admin),
    repository: QuestionRepository = Depends(get_question_repository)
) -> Dict[str, Any]:
    return repository.update(question_id, _payload_dict(payload)).to_dict()


@router.delete("/{question_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_question(
    question_id: str,
    caller: AuthContext = Depends(require_admin),
    repository: QuestionRepository = Depends(get_question_repository)
) -> Response:
    repository.delete(question_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
