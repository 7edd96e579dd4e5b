"""
User store backed by DBStorage.

Soft-deleted rows are filtered out, so callers see "deleted" and
"never existed" the same way: None.
"""
from __future__ import annotations

from typing import List, Optional, Tuple

from models.user import User


class UserStore:
    def __init__(self, storage):
        self.storage = storage

    def _active_rows(self):
        session = self.storage.get_session()
        return session.query(User).filter(User.deleted_at.is_(None))

    def get_by_email(self, email: str) -> Optional[User]:
        return self._active_rows().filter(User.email == email).first()

    def get_by_id(self, user_id: str) -> Optional[User]:
        return self._active_rows().filter(User.id == user_id).first()

    def create(self, user: User) -> User:
        """Insert and commit; IntegrityError propagates on a duplicate email."""
        self.storage.new(user)
        self.storage.save()
        return user

    def update(self, user: User) -> User:
        self.storage.new(user)
        self.storage.save()
        return user

    def delete(self, user: User) -> None:
        """Hard delete; refresh tokens go with it (ON DELETE CASCADE)."""
        session = self.storage.get_session()
        session.delete(user)
        self.storage.save()

    def list(self, page: int, page_size: int) -> Tuple[List[User], int]:
        """One page of users, oldest first, plus the total count."""
        query = self._active_rows()
        total = query.count()
        rows = (
            query.order_by(User.created_at.asc(), User.id.asc())
            .offset((page - 1) * page_size)
            .limit(page_size)
            .all()
        )
        return rows, total
