"""
Identity & Role Store

This module persists user accounts and their role memberships. Phone is the
canonical login identifier and is stored in E.164 form.
"""

from typing import Any, Dict, FrozenSet, Iterable, Optional, Union

from sqlalchemy import delete, func, select

from skillgauge.common.auth.password import hash_password, verify_password
from skillgauge.common.auth.exceptions import InvalidCredentialsError
from skillgauge.common.auth.user import Role as RoleName, UserStatus, parse_roles
from skillgauge.common.db.repository import BaseRepository
from skillgauge.common.db.session import atomic
from skillgauge.common.error_handling import ConflictError, ValidationError
from skillgauge.common.logger import app_logger
from skillgauge.common.utils import utcnow
from skillgauge.common.validation import (
    normalize_phone_th,
    require_text,
    validate_email,
    validate_login_phone,
    validate_password,
)
from skillgauge.database.models import Role, User, UserRoleLink, Worker, WorkerProfileOverlay

logger = app_logger.getChild("identity.repository")

# Roles an administrator may grant or revoke through the API
GRANTABLE_ROLES: FrozenSet[RoleName] = frozenset({
    RoleName.WORKER, RoleName.FOREMAN, RoleName.PROJECT_MANAGER
})


class IdentityRepository(BaseRepository[User]):
    """Repository for user accounts and role memberships."""

    model = User
    entity_type = "User"

    def get(self, user_id: str) -> User:
        return self.require(user_id)

    def find_by_phone(self, phone: str) -> Optional[User]:
        """Look up an account by the phone as typed or in its normalized form."""
        candidates = {phone, normalize_phone_th(phone)}
        return self.session.scalars(
            select(User).where(User.phone.in_([c for c in candidates if c])).limit(1)
        ).first()

    def find_by_email(self, email: str) -> Optional[User]:
        return self.session.scalars(
            select(User).where(func.lower(User.email) == email.lower()).limit(1)
        ).first()

    def get_roles(self, user_id: str) -> FrozenSet[RoleName]:
        names = self.session.scalars(
            select(Role.name).join(UserRoleLink, UserRoleLink.role_id == Role.id)
            .where(UserRoleLink.user_id == user_id)
        )
        return frozenset(RoleName(name) for name in names)

    def attach_roles(self, user_id: str, roles: Iterable[Union[RoleName, str]]) -> None:
        """
        Add role memberships inside the caller's transaction.

        Memberships the user already holds are skipped.
        """
        wanted = {RoleName(role).value for role in roles}
        held = {role.value for role in self.get_roles(user_id)}
        missing = wanted - held
        if not missing:
            return
        role_rows = self.session.scalars(select(Role).where(Role.name.in_(sorted(missing)))).all()
        if len(role_rows) != len(missing):
            raise ValidationError(key="unknown_role", message="Role catalogue is not seeded")
        self.session.add_all([UserRoleLink(user_id=user_id, role_id=row.id) for row in role_rows])
        self.session.flush()

    def signup(self, data: Dict[str, Any]) -> User:
        """
        Create a self-registered account holding the worker role.

        Args:
            data: ``full_name``, ``phone``, ``password`` and optional ``email``

        Raises:
            ValidationError: For an invalid field
            ConflictError: ``duplicate_phone`` or ``duplicate_email``
        """
        full_name = require_text(data.get("full_name"), "missing_full_name")
        phone = normalize_phone_th(validate_login_phone(data.get("phone")))
        email = validate_email(data.get("email"))
        password = validate_password(data.get("password"))

        self.ensure_unique(phone=phone, email=email)

        password_hash, salt = hash_password(password)
        user = User(
            full_name=full_name,
            phone=phone,
            email=email,
            password_hash=password_hash,
            password_salt=salt,
            status=UserStatus.ACTIVE.value,
        )
        with atomic(self.session):
            self.session.add(user)
            self.session.flush()
            self.attach_roles(user.id, [RoleName.WORKER])

        self.session.expire(user)
        logger.info("Registered account %s", user.id)
        return user

    def ensure_unique(
        self,
        phone: Optional[str] = None,
        email: Optional[str] = None,
        exclude_user_id: Optional[str] = None
    ) -> None:
        """
        Raises:
            ConflictError: ``duplicate_phone`` or ``duplicate_email`` when another
                account already uses the value
        """
        if phone:
            owner = self.find_by_phone(phone)
            if owner is not None and owner.id != exclude_user_id:
                raise ConflictError(key="duplicate_phone")
        if email:
            owner = self.find_by_email(email)
            if owner is not None and owner.id != exclude_user_id:
                raise ConflictError(key="duplicate_email")

    def authenticate(self, phone: Any, password: Any) -> User:
        """
        Check a phone/password pair and record the login.

        Raises:
            InvalidCredentialsError: If no active account matches
        """
        if not isinstance(password, str) or not password:
            raise ValidationError(key="missing_password")
        user = self.find_by_phone(validate_login_phone(phone))

        if user is None or not verify_password(password, user.password_hash, user.password_salt):
            logger.info("Rejected login for %s", phone)
            raise InvalidCredentialsError()
        if user.status != UserStatus.ACTIVE.value:
            logger.info("Rejected login for inactive account %s", user.id)
            raise InvalidCredentialsError("Account is not active")

        with atomic(self.session):
            user.last_login = utcnow()
        return user

    def grant_role(self, user_id: str, role: Union[RoleName, str]) -> FrozenSet[RoleName]:
        """Grant a role; granting a held role is a no-op."""
        role = self._grantable(role)
        self.get(user_id)
        with atomic(self.session):
            self.attach_roles(user_id, [role])
        logger.info("Granted role %s to %s", role.value, user_id)
        return self.get_roles(user_id)

    def revoke_role(self, user_id: str, role: Union[RoleName, str]) -> FrozenSet[RoleName]:
        """Revoke a role; revoking a role that is not held is a no-op."""
        role = self._grantable(role)
        self.get(user_id)
        role_id = select(Role.id).where(Role.name == role.value).scalar_subquery()
        with atomic(self.session):
            self.session.execute(
                delete(UserRoleLink).where(
                    UserRoleLink.user_id == user_id, UserRoleLink.role_id == role_id
                )
            )
        self.session.expire_all()
        logger.info("Revoked role %s from %s", role.value, user_id)
        return self.get_roles(user_id)

    def list(
        self,
        search: Optional[str] = None,
        status: Optional[str] = None,
        limit: int = 50,
        offset: int = 0
    ) -> Dict[str, Any]:
        """List accounts, newest first, matching name, phone or email."""
        if not 1 <= limit <= 200 or offset < 0:
            raise ValidationError(key="invalid_pagination")
        conditions = []
        if search:
            conditions.append(
                User.full_name.contains(search, autoescape=True)
                | User.phone.contains(search, autoescape=True)
                | User.email.contains(search, autoescape=True)
            )
        if status:
            conditions.append(User.status == status)

        total = self.session.scalar(select(func.count()).select_from(User).where(*conditions))
        users = self.session.scalars(
            select(User).where(*conditions)
            .order_by(User.created_at.desc()).limit(limit).offset(offset)
        ).all()
        return {
            "total": total,
            "limit": limit,
            "offset": offset,
            "items": [user.to_dict() for user in users],
        }

    def create(self, data: Dict[str, Any]) -> User:
        """
        Create an account on behalf of an administrator.

        Args:
            data: ``full_name``, ``phone``, ``password``, optional ``email``,
                ``status`` (default active) and ``roles`` (default worker)

        Raises:
            ValidationError: For an invalid field or ``unknown_role``
            ConflictError: ``duplicate_phone`` or ``duplicate_email``
        """
        full_name = require_text(data.get("full_name"), "missing_full_name")
        phone = normalize_phone_th(validate_login_phone(data.get("phone")))
        email = validate_email(data.get("email"))
        password = validate_password(data.get("password"))
        status = _parse_status(data.get("status") or UserStatus.ACTIVE.value)
        roles = _parse_roles(data.get("roles")) or frozenset({RoleName.WORKER})

        self.ensure_unique(phone=phone, email=email)

        password_hash, salt = hash_password(password)
        user = User(
            full_name=full_name,
            phone=phone,
            email=email,
            password_hash=password_hash,
            password_salt=salt,
            status=status,
        )
        with atomic(self.session):
            self.session.add(user)
            self.session.flush()
            self.attach_roles(user.id, roles)

        self.session.expire(user)
        logger.info("Created account %s with roles %s", user.id, sorted(r.value for r in roles))
        return user

    def update(self, user_id: str, data: Dict[str, Any]) -> User:
        """
        Update the fields present in ``data``.

        A ``password`` is re-hashed, an empty ``email`` clears it and a
        ``roles`` list replaces every membership the account holds.

        Raises:
            NotFoundError: If the account doesn't exist
            ValidationError: For an invalid field, ``unknown_role`` or ``no_fields``
            ConflictError: ``duplicate_phone`` or ``duplicate_email``
        """
        if not data:
            raise ValidationError(key="no_fields")
        user = self.get(user_id)

        changes: Dict[str, Any] = {}
        if data.get("full_name") is not None:
            changes["full_name"] = require_text(data["full_name"], "missing_full_name")
        if data.get("phone") is not None:
            changes["phone"] = normalize_phone_th(validate_login_phone(data["phone"]))
        if "email" in data:
            changes["email"] = validate_email(data["email"])
        if data.get("status") is not None:
            changes["status"] = _parse_status(data["status"])
        if data.get("password") is not None:
            changes["password_hash"], changes["password_salt"] = hash_password(
                validate_password(data["password"])
            )
        roles = _parse_roles(data["roles"]) if data.get("roles") is not None else None

        self.ensure_unique(
            phone=changes.get("phone"), email=changes.get("email"), exclude_user_id=user_id
        )

        with atomic(self.session):
            for name, value in changes.items():
                setattr(user, name, value)
            self.session.flush()
            if roles is not None:
                self.session.execute(delete(UserRoleLink).where(UserRoleLink.user_id == user_id))
                self.attach_roles(user_id, roles)

        self.session.expire(user)
        logger.info("Updated account %s", user_id)
        return user

    def delete(self, user_id: str) -> None:
        """
        Delete an account with its role memberships, worker rows and overlays.

        Raises:
            NotFoundError: If the account doesn't exist
        """
        user = self.get(user_id)
        worker_ids = select(Worker.id).where(Worker.user_id == user_id)
        with atomic(self.session):
            self.session.execute(
                delete(WorkerProfileOverlay).where(WorkerProfileOverlay.worker_id.in_(worker_ids))
            )
            self.session.execute(delete(Worker).where(Worker.user_id == user_id))
            self.session.delete(user)
        logger.info("Deleted account %s", user_id)

    @staticmethod
    def _grantable(role: Union[RoleName, str]) -> RoleName:
        try:
            parsed = RoleName(role)
        except ValueError:
            raise ValidationError(key="unknown_role")
        if parsed not in GRANTABLE_ROLES:
            raise ValidationError(key="unknown_role")
        return parsed


def _parse_roles(values: Any) -> FrozenSet[RoleName]:
    if values is None:
        return frozenset()
    if isinstance(values, str) or not isinstance(values, (list, tuple, set, frozenset)):
        raise ValidationError(key="unknown_role")
    try:
        return parse_roles(values)
    except ValueError:
        raise ValidationError(key="unknown_role")


def _parse_status(value: Any) -> str:
    try:
        return UserStatus(value).value
    except ValueError:
        raise ValidationError(key="invalid_status")
