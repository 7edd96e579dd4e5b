"""
RefreshToken model: server-side record of every outstanding refresh token.
Fields:
- token (unique opaque value handed to the client)
- user_id (String(36)) - FK to users.id
- expires_at
- created_at, updated_at

A row is deleted when the token is consumed, found expired, or the owner
logs out; there is no "revoked" flag.
"""
from sqlalchemy import Column, String, DateTime, ForeignKey
from sqlalchemy.orm import relationship

from models.base_model import BaseModel, Base


class RefreshToken(BaseModel, Base):
    __tablename__ = "refresh_tokens"

    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    token = Column(String(255), nullable=False, unique=True, index=True)
    expires_at = Column(DateTime, nullable=False)

    user = relationship("User", back_populates="refresh_tokens")

    def is_expired(self, now) -> bool:
        return now > self.expires_at

    def __repr__(self):
        return f"<RefreshToken id={self.id} user_id={self.user_id}>"
