"""
Assessment Settings Controllers

Admin endpoints for reading and replacing the assessment settings under
``/admin/assessments/settings``.
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from skillgauge.common.auth.dependencies import require_roles
from skillgauge.common.auth.user import AuthContext, Role
from skillgauge.common.db.session import get_session
from skillgauge.domain.settings.repository import SettingsRepository

router = APIRouter(prefix="/admin/assessments/settings", tags=["Assessment Settings"])


class SettingsPayload(BaseModel):
    questionCount: Optional[Any] = Field(None, description="Questions per attempt, at least 1")
    startAt: Optional[Any] = Field(None, description="ISO-8601 start of the submission window")
    endAt: Optional[Any] = Field(None, description="ISO-8601 end of the submission window")
    frequencyMonths: Optional[Any] = Field(None, description="Months between attempts")


def get_settings_repository(session: Session = Depends(get_session)) -> SettingsRepository:
    return SettingsRepository(session)


@router.get("")
def get_settings(
    caller: AuthContext = Depends(require_roles(Role.ADMIN)),
    repository: SettingsRepository = Depends(get_settings_repository)
) -> Dict[str, Any]:
    return repository.get().to_dict()


@router.put("")
def update_settings(
    payload: SettingsPayload,
    caller: AuthContext = Depends(require_roles(Role.ADMIN)),
    repository: SettingsRepository = Depends(get_settings_repository)
) -> Dict[str, Any]:
    return repository.update(payload.model_dump(exclude_none=True)).to_dict()
