# backend/spacebook/repositories/resource_repository.py
"""
Resource Repository.

Read-only access to the space directory: the booking core resolves a
resource's rate and branch, locks its row while claiming an interval, and
searches active resources by location and capacity.
"""

import logging
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Query, Session, joinedload

from ..core.exceptions import RepositoryException
from ..models.resource import Branch, Resource
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class ResourceRepository(BaseRepository[Resource]):
    def __init__(self, db: Session):
        super().__init__(db, Resource)

    def _apply_eager_loading(self, query: Query) -> Query:
        return query.options(joinedload(Resource.branch))

    def get_for_update(self, resource_id: str) -> Optional[Resource]:
        """
        Load a resource and, on PostgreSQL, hold a row lock until commit.

        Concurrent writers for the same resource queue on this lock; SQLite
        has no row locks, so the plain row is returned.
        """
        try:
            query = self.db.query(Resource).filter(Resource.id == resource_id)
            if self.dialect_name == "postgresql":
                query = query.with_for_update()
            return query.first()
        except SQLAlchemyError as e:
            self.logger.error(f"Error locking resource {resource_id}: {str(e)}")
            raise RepositoryException(f"Failed to lock resource: {str(e)}") from e

    def search_active(
        self,
        city: Optional[str] = None,
        state: Optional[str] = None,
        min_capacity: Optional[int] = None,
    ) -> List[Resource]:
        """
        Active resources matching the location/capacity filters, by name ascending.

        Branches are loaded alongside so callers can read city/state without
        extra queries.
        """
        try:
            query = (
                self.db.query(Resource)
                .join(Branch, Resource.branch_id == Branch.id)
                .options(joinedload(Resource.branch))
                .filter(Resource.active.is_(True))
            )
            if city:
                query = query.filter(Branch.city == city)
            if state:
                query = query.filter(Branch.state == state)
            if min_capacity is not None:
                query = query.filter(Resource.capacity >= min_capacity)
            return query.order_by(Resource.name.asc(), Resource.id.asc()).all()
        except SQLAlchemyError as e:
            self.logger.error(f"Error searching resources: {str(e)}")
            raise RepositoryException(f"Failed to search resources: {str(e)}") from e
