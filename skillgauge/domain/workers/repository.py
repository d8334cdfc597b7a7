"""
Worker Profile Store

This module stores worker profiles across the relational ``workers`` table,
the worker's login account and a JSON overlay document. Writes only ever
touch columns listed in the schema descriptor that the live database has;
everything else survives in the overlay.
"""

import json
import uuid
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

from sqlalchemy import delete, func, insert, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from skillgauge.common.auth.password import hash_password
from skillgauge.common.auth.user import Role, UserStatus
from skillgauge.common.db.session import atomic
from skillgauge.common.error_handling import ConflictError, NotFoundError, ValidationError
from skillgauge.common.logger import app_logger
from skillgauge.common.utils import get_nested_value, serialize_datetime, utcnow
from skillgauge.common.validation import (
    validate_email,
    validate_local_phone,
    validate_national_id,
    validate_password,
)
from skillgauge.database.models import WorkerProfileOverlay
from skillgauge.domain.identity.repository import IdentityRepository
from skillgauge.domain.workers.profile import (
    full_name_of,
    merge_profile,
    relational_paths,
    strip_secrets,
    values_for_columns,
)
from skillgauge.domain.workers.schema import (
    DEFAULT_WORKER_SCHEMA,
    WorkerColumnSet,
    WorkerSchema,
    discover_worker_columns,
)

logger = app_logger.getChild("workers.repository")


@dataclass(frozen=True)
class WorkerFields:
    """Validated identity fields of a worker profile."""
    full_name: str
    phone: str
    national_id: str
    email: Optional[str]
    password: Optional[str]


class WorkerProfileRepository:
    """
    Repository for worker profiles.

    Attributes:
        session: Session used for every query
        schema: Descriptor the column set is discovered against
    """

    entity_type = "Worker"

    def __init__(
        self,
        session: Session,
        columns: Optional[WorkerColumnSet] = None,
        schema: WorkerSchema = DEFAULT_WORKER_SCHEMA
    ):
        self.session = session
        self.schema = columns.schema if columns is not None else schema
        self._columns = columns

    @property
    def columns(self) -> WorkerColumnSet:
        """The discovered column set; discovered on first use when not supplied."""
        if self._columns is None:
            self._columns = discover_worker_columns(self.session.connection(), self.schema)
        return self._columns

    def reinitialize(self) -> WorkerColumnSet:
        """
        Create the overlay table if it is missing and rediscover the columns.

        Failing to create the overlay table is logged; the store then runs
        relational-only.
        """
        try:
            with atomic(self.session):
                WorkerProfileOverlay.__table__.create(bind=self.session.connection(), checkfirst=True)
        except SQLAlchemyError as e:
            logger.warning("Could not create overlay table %s: %s", self.schema.overlay_table, e)

        self._columns = discover_worker_columns(self.session.connection(), self.schema)
        self.session.commit()
        return self._columns

    # Table projections limited to usable columns

    def _worker_table(self):
        return self.columns.projection(self.schema.worker_table, self.columns.worker_columns)

    def _account_table(self):
        return self.columns.projection(self.schema.account_table, self.columns.account_columns)

    # Overlay

    def load_overlay(self, worker_id: str) -> Dict[str, Any]:
        """Parse the whole overlay document; an unreadable overlay reads as empty."""
        if not self.columns.overlay_available:
            return {}
        try:
            with self.session.begin_nested():
                raw = self.session.scalar(
                    select(WorkerProfileOverlay.profile)
                    .where(WorkerProfileOverlay.worker_id == worker_id)
                )
        except SQLAlchemyError as e:
            logger.warning("Could not read overlay for worker %s: %s", worker_id, e)
            return {}

        if raw is None:
            return {}
        if isinstance(raw, str):
            try:
                raw = json.loads(raw)
            except ValueError:
                logger.warning("Discarding malformed overlay for worker %s", worker_id)
                return {}
        return raw if isinstance(raw, dict) else {}

    def save_overlay(self, worker_id: str, profile: Mapping[str, Any]) -> bool:
        """
        Upsert the overlay document inside a savepoint.

        A failure rolls back only the savepoint and is logged; the caller's
        transaction continues.

        Returns:
            True if the overlay was written
        """
        if not self.columns.overlay_available:
            logger.warning("Overlay table unavailable; worker %s stored relational-only", worker_id)
            return False

        document = strip_secrets(profile)
        try:
            with self.session.begin_nested():
                overlay = self.session.get(WorkerProfileOverlay, worker_id)
                if overlay is None:
                    self.session.add(WorkerProfileOverlay(
                        worker_id=worker_id, profile=document, updated_at=utcnow()
                    ))
                else:
                    overlay.profile = document
                    overlay.updated_at = utcnow()
        except SQLAlchemyError as e:
            logger.warning("Could not save overlay for worker %s: %s", worker_id, e)
            return False
        return True

    # Reads

    def _worker_row(self, worker_id: str) -> Optional[Dict[str, Any]]:
        workers = self._worker_table()
        row = self.session.execute(
            select(workers).where(workers.c.id == worker_id)
        ).mappings().first()
        return dict(row) if row is not None else None

    def _account_row(self, user_id: Optional[str]) -> Dict[str, Any]:
        if not user_id:
            return {}
        accounts = self._account_table()
        row = self.session.execute(
            select(accounts).where(accounts.c.id == user_id)
        ).mappings().first()
        return dict(row) if row is not None else {}

    def get(self, worker_id: str) -> Optional[Dict[str, Any]]:
        """
        Fetch a worker with its merged profile.

        Returns:
            ``{id, user_id, status, created_at, updated_at, profile}``, or None
            when the worker row does not exist
        """
        row = self._worker_row(worker_id)
        if row is None:
            return None

        relational = relational_paths(self._account_row(row.get("user_id")), self.columns.account_paths())
        relational.update(relational_paths(row, self.columns.worker_paths()))
        profile = merge_profile(relational, self.load_overlay(worker_id))

        return {
            "id": row["id"],
            "user_id": row.get("user_id"),
            "status": row.get("status"),
            "created_at": serialize_datetime(row.get("created_at")),
            "updated_at": serialize_datetime(row.get("updated_at")),
            "profile": profile,
        }

    def require(self, worker_id: str) -> Dict[str, Any]:
        worker = self.get(worker_id)
        if worker is None:
            raise NotFoundError(self.entity_type, worker_id)
        return worker

    def list(self, search: Optional[str] = None, limit: int = 50, offset: int = 0) -> Dict[str, Any]:
        """List workers by name, with the core columns only."""
        if not 1 <= limit <= 200 or offset < 0:
            raise ValidationError(key="invalid_pagination")
        workers = self._worker_table()
        conditions = []
        if search:
            conditions.append(
                func.lower(workers.c.full_name).contains(search.lower(), autoescape=True)
                | workers.c.national_id.contains(search, autoescape=True)
            )
        total = self.session.scalar(select(func.count()).select_from(workers).where(*conditions))
        rows = self.session.execute(
            select(
                workers.c.id, workers.c.full_name, workers.c.phone,
                workers.c.national_id, workers.c.status
            )
            .where(*conditions)
            .order_by(workers.c.full_name.asc(), workers.c.id.asc())
            .limit(limit)
            .offset(offset)
        ).mappings().all()
        return {"total": total, "limit": limit, "offset": offset, "items": [dict(r) for r in rows]}

    # Writes

    def validate(
        self,
        profile: Mapping[str, Any],
        credentials: Optional[Mapping[str, Any]],
        require_password: bool,
        worker_id: Optional[str] = None,
        user_id: Optional[str] = None
    ) -> WorkerFields:
        """
        Validate a profile and check its unique values against other workers.

        Raises:
            ValidationError: For a malformed field
            ConflictError: ``duplicate_national_id``, ``duplicate_email`` or
                ``duplicate_phone``
        """
        credentials = credentials or {}
        national_id = validate_national_id(get_nested_value(dict(profile), "identity.nationalId"))
        phone = validate_local_phone(get_nested_value(dict(profile), "personal.phone"))
        email = validate_email(
            credentials.get("email") or get_nested_value(dict(profile), "personal.email")
        )
        full_name = full_name_of(profile)
        if not full_name:
            raise ValidationError(key="missing_full_name")

        password = credentials.get("password")
        if require_password or password:
            password = validate_password(password)
        else:
            password = None

        workers = self._worker_table()
        owner = self.session.scalar(
            select(workers.c.id).where(workers.c.national_id == national_id).limit(1)
        )
        if owner is not None and owner != worker_id:
            raise ConflictError(key="duplicate_national_id")
        identities = IdentityRepository(self.session)
        if "email" in self.columns.account_columns:
            identities.ensure_unique(email=email, exclude_user_id=user_id)
        identities.ensure_unique(phone=phone, exclude_user_id=user_id)

        return WorkerFields(full_name, phone, national_id, email, password)

    def _worker_values(self, fields: WorkerFields, profile: Mapping[str, Any]) -> Dict[str, Any]:
        optional_paths = {c: self.schema.worker_paths[c] for c in self.columns.worker_optional}
        values = values_for_columns(profile, optional_paths)
        status = get_nested_value(dict(profile), "employment.workerStatus")
        values.update({
            "full_name": fields.full_name,
            "phone": fields.phone,
            "national_id": fields.national_id,
            "status": status if isinstance(status, str) and status.strip() else "active",
            "updated_at": utcnow(),
        })
        if "email" in values:
            values["email"] = fields.email
        return values

    def register(self, profile: Mapping[str, Any], credentials: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
        """
        Register a worker: login account, worker row and overlay in one transaction.

        Returns:
            The stored worker as returned by ``get``
        """
        fields = self.validate(profile, credentials, require_password=True)
        password_hash, salt = hash_password(fields.password)
        now = utcnow()
        user_id = str(uuid.uuid4())
        worker_id = str(uuid.uuid4())

        account_values = self.columns.filter_account({
            "id": user_id,
            "full_name": fields.full_name,
            "phone": fields.phone,
            "email": fields.email,
            "password_hash": password_hash,
            "password_salt": salt,
            "status": UserStatus.ACTIVE.value,
            "created_at": now,
            "updated_at": now,
        })
        worker_values = self._worker_values(fields, profile)
        worker_values.update({"id": worker_id, "user_id": user_id, "created_at": now})

        with atomic(self.session):
            self.session.execute(insert(self._account_table()).values(**account_values))
            IdentityRepository(self.session).attach_roles(user_id, [Role.WORKER])
            self.session.execute(
                insert(self._worker_table()).values(**self.columns.filter_worker(worker_values))
            )
            self.save_overlay(worker_id, profile)

        logger.info("Registered worker %s (account %s)", worker_id, user_id)
        return self.require(worker_id)

    def update(
        self,
        worker_id: str,
        profile: Mapping[str, Any],
        credentials: Optional[Mapping[str, Any]] = None
    ) -> Dict[str, Any]:
        """
        Replace a worker's profile; a supplied password is re-hashed.

        Raises:
            NotFoundError: If the worker doesn't exist
        """
        row = self._worker_row(worker_id)
        if row is None:
            raise NotFoundError(self.entity_type, worker_id)
        user_id = row.get("user_id")

        fields = self.validate(
            profile, credentials, require_password=False, worker_id=worker_id, user_id=user_id
        )
        workers = self._worker_table()
        accounts = self._account_table()

        with atomic(self.session):
            self.session.execute(
                update(workers).where(workers.c.id == worker_id)
                .values(**self.columns.filter_worker(self._worker_values(fields, profile)))
            )
            if user_id:
                account_values = {
                    "full_name": fields.full_name,
                    "phone": fields.phone,
                    "updated_at": utcnow(),
                }
                if fields.email:
                    account_values["email"] = fields.email
                if fields.password:
                    password_hash, salt = hash_password(fields.password)
                    account_values.update({"password_hash": password_hash, "password_salt": salt})
                self.session.execute(
                    update(accounts).where(accounts.c.id == user_id)
                    .values(**self.columns.filter_account(account_values))
                )
            self.save_overlay(worker_id, profile)

        logger.info("Updated worker %s", worker_id)
        return self.require(worker_id)

    def delete(self, worker_id: str) -> None:
        """
        Delete a worker with its overlay, login account and role memberships.

        Raises:
            NotFoundError: If the worker doesn't exist
        """
        row = self._worker_row(worker_id)
        if row is None:
            raise NotFoundError(self.entity_type, worker_id)

        workers = self._worker_table()
        accounts = self._account_table()
        with atomic(self.session):
            if self.columns.overlay_available:
                self.session.execute(
                    delete(WorkerProfileOverlay).where(WorkerProfileOverlay.worker_id == worker_id)
                )
            self.session.execute(delete(workers).where(workers.c.id == worker_id))
            if row.get("user_id"):
                self.session.execute(delete(accounts).where(accounts.c.id == row["user_id"]))

        self.session.expire_all()
        logger.info("Deleted worker %s", worker_id)

