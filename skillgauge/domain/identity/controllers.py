"""
Identity Controllers

This module provides the endpoints for:
- Self sign-up and phone/password login
- Admin account listing, creation, update, lookup and deletion
- Admin role grant and revoke
"""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query, Response, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from skillgauge.common.auth.dependencies import require_roles
from skillgauge.common.auth.jwt import create_access_token
from skillgauge.common.auth.user import AuthContext, Role
from skillgauge.common.db.session import get_session
from skillgauge.domain.identity.repository import IdentityRepository

auth_router = APIRouter(prefix="/auth", tags=["Authentication"])
admin_router = APIRouter(prefix="/admin/users", tags=["Users"])

require_admin = require_roles(Role.ADMIN)


class SignupRequest(BaseModel):
    full_name: Optional[str] = Field(None, description="Display name")
    phone: Optional[str] = Field(None, description="Phone number, local or international")
    email: Optional[str] = Field(None, description="Optional email")
    password: Optional[str] = Field(None, description="At least 8 characters")


class LoginRequest(BaseModel):
    phone: Optional[str] = None
    password: Optional[str] = None


class RoleRequest(BaseModel):
    role: str = Field(..., description="worker, foreman or project_manager")


class CreateUserRequest(SignupRequest):
    status: Optional[str] = Field(None, description="active, inactive or suspended")
    roles: Optional[List[str]] = Field(None, description="Roles to hold; worker when omitted")


class UpdateUserRequest(CreateUserRequest):
    full_name: Optional[str] = None
    roles: Optional[List[str]] = Field(None, description="Replaces every role the account holds")


def get_identity_repository(session: Session = Depends(get_session)) -> IdentityRepository:
    return IdentityRepository(session)


@auth_router.post("/signup", status_code=status.HTTP_201_CREATED)
def signup(
    payload: SignupRequest,
    repository: IdentityRepository = Depends(get_identity_repository)
) -> Dict[str, Any]:
    user = repository.signup(payload.model_dump())
    return {**user.to_dict(), "role": Role.WORKER.value}


@auth_router.post("/login")
def login(
    payload: LoginRequest,
    repository: IdentityRepository = Depends(get_identity_repository)
) -> Dict[str, Any]:
    """Exchange a phone and password for a bearer token."""
    user = repository.authenticate(payload.phone, payload.password)
    roles = repository.get_roles(user.id)
    token = create_access_token(user.id, roles)
    return {"token": token, "user": user.to_dict()}


@admin_router.get("")
def list_users(
    search: Optional[str] = Query(None, max_length=120),
    status_filter: Optional[str] = Query(None, alias="status"),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    caller: AuthContext = Depends(require_admin),
    repository: IdentityRepository = Depends(get_identity_repository)
) -> Dict[str, Any]:
    return repository.list(search=search, status=status_filter, limit=limit, offset=offset)


@admin_router.post("", status_code=status.HTTP_201_CREATED)
def create_user(
    payload: CreateUserRequest,
    caller: AuthContext = Depends(require_admin),
    repository: IdentityRepository = Depends(get_identity_repository)
) -> Dict[str, Any]:
    return repository.create(payload.model_dump()).to_dict()


@admin_router.get("/{user_id}")
def get_user(
    user_id: str,
    caller: AuthContext = Depends(require_admin),
    repository: IdentityRepository = Depends(get_identity_repository)
) -> Dict[str, Any]:
    return repository.get(user_id).to_dict()


@admin_router.put("/{user_id}")
def update_user(
    user_id: str,
    payload: UpdateUserRequest,
    caller: AuthContext = Depends(require_admin),
    repository: IdentityRepository = Depends(get_identity_repository)
) -> Dict[str, Any]:
    """Update the fields sent; an empty email clears it."""
    return repository.update(user_id, payload.model_dump(exclude_unset=True)).to_dict()


@admin_router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_user(
    user_id: str,
    caller: AuthContext = Depends(require_admin),
    repository: IdentityRepository = Depends(get_identity_repository)
) -> Response:
    repository.delete(user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@admin_router.post("/{user_id}/roles/grant")
def grant_role(
    user_id: str,
    payload: RoleRequest,
    caller: AuthContext = Depends(require_admin),
    repository: IdentityRepository = Depends(get_identity_repository)
) -> Dict[str, Any]:
    roles = repository.grant_role(user_id, payload.role)
    return {"ok": True, "roles": sorted(role.value for role in roles)}


@admin_router.post("/{user_id}/roles/revoke")
def revoke_role(
    user_id: str,
    payload: RoleRequest,
    caller: AuthContext = Depends(require_admin),
    repository: IdentityRepository = Depends(get_identity_repository)
) -> Dict[str, Any]:
    roles = repository.revoke_role(user_id, payload.role)
    return {"ok": True, "roles": sorted(role.value for role in roles)}
