"""
User Repository

Data access layer for user records.
"""

from typing import Optional
from sqlalchemy.orm import Session

from agenda.models.user import User
from agenda.repositories.base import BaseRepository
from agenda.core.exceptions import DuplicateException


class UserRepository(BaseRepository[User]):
    """Repository for user records."""

    def __init__(self, db: Session):
        super().__init__(User, db)

    def get_by_email(self, email: str) -> Optional[User]:
        return self.db.query(User).filter(User.email == email).first()

    def create_user(self, user_data: dict) -> User:
        if self.get_by_email(user_data.get("email")):
            raise DuplicateException("User", "email", user_data.get("email"))
        return self.create(User(**user_data))
