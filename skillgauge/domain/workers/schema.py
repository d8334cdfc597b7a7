"""
Worker Schema Descriptor

The ``workers`` table gains columns over time. Instead of writing whatever
columns happen to exist, the store works from an explicit descriptor that
lists every column it knows about and the profile path each optional column
holds. ``discover_worker_columns`` intersects the descriptor with the live
schema; the result is an immutable ``WorkerColumnSet`` handed to the
repository and replaced only by an explicit re-initialization.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, FrozenSet, Mapping, Tuple

from sqlalchemy import DateTime, column, inspect, table
from sqlalchemy.sql.expression import TableClause
from sqlalchemy.types import TypeEngine

from skillgauge.common.error_handling import InternalError
from skillgauge.common.logger import app_logger

logger = app_logger.getChild("workers.schema")


@dataclass(frozen=True)
class WorkerSchema:
    """
    Versioned description of the tables behind a worker profile.

    Attributes:
        version: Descriptor version, bumped whenever a column is added
        worker_table: Relational worker table
        account_table: Table holding the worker's login account
        overlay_table: Table holding the JSON overlay document
        worker_required: Columns the worker table must have
        worker_paths: Profile path of each worker column (required or optional)
        account_required: Columns the account table must have
        account_paths: Profile path of each optional account column
        column_types: SQL type of columns whose values need conversion on read
    """
    version: int
    worker_table: str
    account_table: str
    overlay_table: str
    worker_required: Tuple[str, ...]
    worker_paths: Mapping[str, str]
    account_required: Tuple[str, ...]
    account_paths: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
    account_optional: Tuple[str, ...] = ()
    column_types: Mapping[str, TypeEngine] = field(default_factory=lambda: MappingProxyType({}))

    @property
    def worker_optional(self) -> Tuple[str, ...]:
        return tuple(c for c in self.worker_paths if c not in self.worker_required)


DEFAULT_WORKER_SCHEMA = WorkerSchema(
    version=2,
    worker_table="workers",
    account_table="users",
    overlay_table="worker_profile_overlays",
    worker_required=(
        "id", "user_id", "full_name", "phone", "national_id", "status", "created_at", "updated_at",
    ),
    worker_paths=MappingProxyType({
        "full_name": "personal.fullName",
        "phone": "personal.phone",
        "national_id": "identity.nationalId",
        "status": "employment.workerStatus",
        # Optional columns, added by revision 002
        "first_name_th": "personal.firstNameTh",
        "last_name_th": "personal.lastNameTh",
        "birth_date": "personal.birthDate",
        "gender": "personal.gender",
        "email": "personal.email",
        "address_on_id": "address.addressOnId",
        "current_address": "address.currentAddress",
        "position": "employment.position",
        "contract_type": "employment.contractType",
        "start_date": "employment.startDate",
    }),
    account_required=("id", "full_name", "phone", "password_hash", "password_salt"),
    account_optional=("email", "status", "created_at", "updated_at"),
    account_paths=MappingProxyType({"email": "credentials.email"}),
    column_types=MappingProxyType({
        "created_at": DateTime(),
        "updated_at": DateTime(),
        "last_login": DateTime(),
    }),
)


@dataclass(frozen=True)
class WorkerColumnSet:
    """
    Columns of the descriptor that the live database actually has.

    Attributes:
        schema: Descriptor the set was discovered against
        worker_columns: Usable columns of the worker table
        account_columns: Usable columns of the account table
        overlay_available: Whether the overlay table exists
    """
    schema: WorkerSchema
    worker_columns: FrozenSet[str]
    account_columns: FrozenSet[str]
    overlay_available: bool

    @property
    def worker_optional(self) -> FrozenSet[str]:
        return frozenset(c for c in self.schema.worker_optional if c in self.worker_columns)

    def worker_paths(self) -> Dict[str, str]:
        """Profile path of every usable worker column that carries profile data."""
        return {
            column: path for column, path in self.schema.worker_paths.items()
            if column in self.worker_columns
        }

    def account_paths(self) -> Dict[str, str]:
        return {
            column: path for column, path in self.schema.account_paths.items()
            if column in self.account_columns
        }

    def projection(self, table_name: str, columns: FrozenSet[str]) -> TableClause:
        """Lightweight table construct over ``columns`` with their declared types."""
        return table(table_name, *[
            column(name, self.schema.column_types.get(name)) for name in sorted(columns)
        ])

    def filter_worker(self, values: Mapping[str, Any]) -> Dict[str, Any]:
        """Drop values for columns the worker table does not have."""
        return {k: v for k, v in values.items() if k in self.worker_columns}

    def filter_account(self, values: Mapping[str, Any]) -> Dict[str, Any]:
        """Drop values for columns the account table does not have."""
        return {k: v for k, v in values.items() if k in self.account_columns}


def _live_columns(inspector, table: str) -> FrozenSet[str]:
    if not inspector.has_table(table):
        return frozenset()
    return frozenset(column["name"] for column in inspector.get_columns(table))


def discover_worker_columns(bind, schema: WorkerSchema = DEFAULT_WORKER_SCHEMA) -> WorkerColumnSet:
    """
    Intersect the descriptor with the live schema.

    Args:
        bind: Engine or connection to inspect
        schema: Descriptor to discover against

    Returns:
        The usable column set

    Raises:
        InternalError: If a required column is missing from either table
    """
    inspector = inspect(bind)
    worker_live = _live_columns(inspector, schema.worker_table)
    account_live = _live_columns(inspector, schema.account_table)

    missing = [c for c in schema.worker_required if c not in worker_live]
    missing += [f"{schema.account_table}.{c}" for c in schema.account_required if c not in account_live]
    if missing:
        logger.error("Worker schema v%d is missing required columns: %s", schema.version, missing)
        raise InternalError(message=f"Missing required columns: {', '.join(missing)}")

    known_worker = set(schema.worker_required) | set(schema.worker_paths)
    known_account = set(schema.account_required) | set(schema.account_optional)
    columns = WorkerColumnSet(
        schema=schema,
        worker_columns=frozenset(c for c in known_worker if c in worker_live),
        account_columns=frozenset(c for c in known_account if c in account_live),
        overlay_available=inspector.has_table(schema.overlay_table),
    )
    logger.info(
        "Discovered worker schema v%d: optional columns [%s], overlay %s",
        schema.version,
        ", ".join(sorted(columns.worker_optional)),
        "available" if columns.overlay_available else "unavailable"
    )
    return columns
