"""
Worker Profile Store

Worker profiles stored across the relational ``workers`` table and a JSON
overlay, written through an explicit schema descriptor.
"""

from skillgauge.domain.workers.schema import (
    WorkerSchema,
    WorkerColumnSet,
    DEFAULT_WORKER_SCHEMA,
    discover_worker_columns
)
from skillgauge.domain.workers.profile import merge_profile
from skillgauge.domain.workers.repository import WorkerProfileRepository

__all__ = [
    'WorkerSchema',
    'WorkerColumnSet',
    'DEFAULT_WORKER_SCHEMA',
    'discover_worker_columns',
    'merge_profile',
    'WorkerProfileRepository',
]
