"""
Refresh-token store backed by DBStorage.

delete_by_value() is a single conditional DELETE and reports the number of
rows it removed. Rotation is gated on that count, so two requests racing on
the same token cannot both see 1.
"""
from __future__ import annotations

from typing import Optional

from models.refresh_token import RefreshToken


class RefreshTokenStore:
    def __init__(self, storage):
        self.storage = storage

    def save(self, token: RefreshToken) -> RefreshToken:
        self.storage.new(token)
        self.storage.save()
        return token

    def find_by_value(self, value: str) -> Optional[RefreshToken]:
        """Return the row for value, expired or not; the caller checks expiry."""
        session = self.storage.get_session()
        return session.query(RefreshToken).filter(RefreshToken.token == value).first()

    def delete_by_value(self, value: str) -> int:
        session = self.storage.get_session()
        rows = (
            session.query(RefreshToken)
            .filter(RefreshToken.token == value)
            .delete(synchronize_session=False)
        )
        self.storage.save()
        return rows

    def delete_all_for_user(self, user_id: str) -> int:
        session = self.storage.get_session()
        rows = (
            session.query(RefreshToken)
            .filter(RefreshToken.user_id == user_id)
            .delete(synchronize_session=False)
        )
        self.storage.save()
        return rows

