"""
Worker Controllers

Admin endpoints for registering and maintaining worker profiles under
``/admin/workers``.
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query, Request, Response, status
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from skillgauge.common.auth.dependencies import require_roles
from skillgauge.common.auth.user import AuthContext, Role
from skillgauge.common.db.session import get_session
from skillgauge.common.logger import app_logger
from skillgauge.domain.workers.repository import WorkerProfileRepository

logger = app_logger.getChild("workers.controllers")

router = APIRouter(prefix="/admin/workers", tags=["Workers"])

require_admin = require_roles(Role.ADMIN)


class WorkerProfilePayload(BaseModel):
    """Worker profile document; sections beyond the named ones are kept as sent."""
    model_config = ConfigDict(extra="allow")

    personal: Dict[str, Any] = Field(default_factory=dict)
    identity: Dict[str, Any] = Field(default_factory=dict)
    address: Dict[str, Any] = Field(default_factory=dict)
    employment: Dict[str, Any] = Field(default_factory=dict)
    credentials: Optional[Dict[str, Any]] = Field(None, description="Login email and password")


def get_worker_repository(
    request: Request,
    session: Session = Depends(get_session)
) -> WorkerProfileRepository:
    """
    Build a repository around the column set held in application state,
    discovering it on first use.
    """
    columns = getattr(request.app.state, "worker_columns", None)
    repository = WorkerProfileRepository(session, columns)
    if columns is None:
        request.app.state.worker_columns = repository.columns
    return repository


def _split(payload: WorkerProfilePayload):
    profile = payload.model_dump()
    credentials = profile.pop("credentials", None) or {}
    return profile, credentials


@router.get("")
def list_workers(
    search: Optional[str] = Query(None),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    caller: AuthContext = Depends(require_admin),
    repository: WorkerProfileRepository = Depends(get_worker_repository)
) -> Dict[str, Any]:
    return repository.list(search=search, limit=limit, offset=offset)


@router.get("/{worker_id}")
def get_worker(
    worker_id: str,
    caller: AuthContext = Depends(require_admin),
    repository: WorkerProfileRepository = Depends(get_worker_repository)
) -> Dict[str, Any]:
    return repository.require(worker_id)


@router.post("", status_code=status.HTTP_201_CREATED)
def register_worker(
    payload: WorkerProfilePayload,
    caller: AuthContext = Depends(require_admin),
    repository: WorkerProfileRepository = Depends(get_worker_repository)
) -> Dict[str, Any]:
    profile, credentials = _split(payload)
    return repository.register(profile, credentials)


@router.put("/{worker_id}")
def update_worker(
    worker_id: str,
    payload: WorkerProfilePayload,
    caller: AuthContext = Depends(require_admin),
    repository: WorkerProfileRepository = Depends(get_worker_repository)
) -> Dict[str, Any]:
    profile, credentials = _split(payload)
    return repository.update(worker_id, profile, credentials)


@router.delete("/{worker_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_worker(
    worker_id: str,
    caller: AuthContext = Depends(require_admin),
    repository: WorkerProfileRepository = Depends(get_worker_repository)
) -> Response:
    repository.delete(worker_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/schema/reinitialize")
def reinitialize_schema(
    request: Request,
    caller: AuthContext = Depends(require_admin),
    repository: WorkerProfileRepository = Depends(get_worker_repository)
) -> Dict[str, Any]:
    """Rediscover the worker table columns after a migration."""
    columns = repository.reinitialize()
    request.app.state.worker_columns = columns
    logger.info("Worker schema reinitialized by %s", caller.user_id)
    return {
        "version": columns.schema.version,
        "optional_columns": sorted(columns.worker_optional),
        "overlay_available": columns.overlay_available,
    }
