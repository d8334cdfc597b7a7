"""
Repository Base Module

This module provides the base repository class shared by the stores. A
repository wraps one SQLAlchemy session for the duration of a request.
"""

import logging
from typing import Any, Generic, Optional, Type, TypeVar

from sqlalchemy.orm import Session

from skillgauge.common.error_handling import NotFoundError

# Set up logging
logger = logging.getLogger(__name__)

# Type variable for entity objects
T = TypeVar('T')


class BaseRepository(Generic[T]):
    """
    Base repository for ORM entity types.

    Attributes:
        session: Session used for every query of this repository
        model: ORM class managed by the repository
        entity_type: Human-readable entity name used in errors and logs
    """

    model: Type[T]
    entity_type: str = "Entity"

    def __init__(self, session: Session):
        self.session = session

    def find(self, entity_id: Any) -> Optional[T]:
        """Get an entity by primary key, or None if it doesn't exist."""
        if entity_id is None:
            return None
        return self.session.get(self.model, entity_id)

    def require(self, entity_id: Any) -> T:
        """
        Get an entity by primary key.

        Raises:
            NotFoundError: If the entity doesn't exist
        """
        entity = self.find(entity_id)
        if entity is None:
            raise NotFoundError(self.entity_type, entity_id)
        return entity
