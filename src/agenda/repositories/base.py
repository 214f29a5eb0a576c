"""
Record store shared by every table.

BaseRepository covers lookups by integer id, equality listings and writes.
Domain repositories add their own date-range and series queries on top.

Writes come in two flavours:
- ``add`` flushes only, so a UnitOfWork can read, decide and insert in one
  transaction before committing
- ``create`` / ``save`` / ``delete`` commit on their own, for plain CRUD
"""

from typing import Generic, TypeVar, Type, List, Optional, Dict, Any
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError

from agenda.models.base import Base
from agenda.core.exceptions import NotFoundException, DatabaseException


ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """
    Id-keyed access to one mapped table.

    Subclasses bind the model:

        class UserRepository(BaseRepository[User]):
            def __init__(self, db: Session):
                super().__init__(User, db)

    Any SQLAlchemyError is re-raised as DatabaseException after the session
    is rolled back.
    """

    def __init__(self, model: Type[ModelType], db: Session):
        self.model = model
        self.db = db

    @property
    def _name(self) -> str:
        return self.model.__name__

    def get(self, id: int) -> Optional[ModelType]:
        try:
            return self.db.get(self.model, id)
        except SQLAlchemyError as e:
            raise DatabaseException(f"Failed to load {self._name} {id}") from e

    def get_or_fail(self, id: int) -> ModelType:
        """
        Load a record or raise.

        Raises:
            NotFoundException: If no row has this id
        """
        obj = self.get(id)
        if obj is None:
            raise NotFoundException(self._name, id)
        return obj

    def list_where(
        self,
        limit: Optional[int] = None,
        offset: int = 0,
        **equals: Any
    ) -> List[ModelType]:
        """
        Rows whose columns equal the given keyword values, ordered by id.

        Args:
            limit: Maximum number of rows (None for all)
            offset: Rows to skip
            **equals: column=value pairs; unknown columns are ignored

        Returns:
            Matching rows
        """
        try:
            query = self.db.query(self.model)
            for column, value in equals.items():
                if hasattr(self.model, column):
                    query = query.filter(getattr(self.model, column) == value)
            query = query.order_by(self.model.id).offset(offset)
            if limit is not None:
                query = query.limit(limit)
            return query.all()
        except SQLAlchemyError as e:
            raise DatabaseException(f"Failed to list {self._name}") from e

    def add(self, obj: ModelType) -> ModelType:
        """
        Stage a new row and flush it so its id is assigned.

        The transaction stays open; the caller commits.
        """
        try:
            self.db.add(obj)
            self.db.flush()
            return obj
        except SQLAlchemyError as e:
            self.db.rollback()
            raise DatabaseException(f"Failed to add {self._name}") from e

    def create(self, obj: ModelType) -> ModelType:
        """Insert a row, commit and return it refreshed."""
        try:
            self.db.add(obj)
            self.db.commit()
            self.db.refresh(obj)
            return obj
        except SQLAlchemyError as e:
            self.db.rollback()
            raise DatabaseException(f"Failed to create {self._name}") from e

    def save(self, obj: ModelType) -> ModelType:
        """Commit pending attribute changes of a loaded row."""
        try:
            self.db.commit()
            self.db.refresh(obj)
            return obj
        except SQLAlchemyError as e:
            self.db.rollback()
            raise DatabaseException(f"Failed to update {self._name} {obj.id}") from e

    def update_by_id(self, id: int, data: Dict[str, Any]) -> ModelType:
        """
        Set the given attributes on a row and commit.

        Raises:
            NotFoundException: If no row has this id
        """
        obj = self.get_or_fail(id)
        for key, value in data.items():
            if hasattr(obj, key):
                setattr(obj, key, value)
        return self.save(obj)

    def delete(self, obj: ModelType) -> None:
        try:
            self.db.delete(obj)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise DatabaseException(f"Failed to delete {self._name}") from e

    def delete_by_id(self, id: int) -> bool:
        """Delete a row; False when it does not exist."""
        obj = self.get(id)
        if obj is None:
            return False
        self.delete(obj)
        return True
