#!/usr/bin/env python3
"""
Shared SQLAlchemy base and mixins for the auth scaffold.

- UUID primary key (String(36)) with defaults
- created_at / updated_at timestamps
- to_dict() that formats timestamps, removes SA internals and secrets
- SoftDeleteMixin adding a deleted_at marker

Notes:
- Persistence goes through DBStorage / the store classes; models never
  reach for a global session.
- Timestamps written by the application are naive UTC (see utils.clock).
"""

from __future__ import annotations

from datetime import datetime
import uuid

from sqlalchemy import Column, String, DateTime
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func

TIME_FMT = "%Y-%m-%dT%H:%M:%S.%f"

# Never rendered by to_dict()
SECRET_FIELDS = ("password", "password_hash", "verify_email_code")

Base = declarative_base()


def _uuid_str() -> str:
    """Return a canonical UUIDv4 string (36 chars, with hyphens)."""
    return str(uuid.uuid4())


class BaseModel:
    """
    Base mixin for all persistent models: id, created_at, updated_at.
    """

    id = Column(String(36), primary_key=True, default=_uuid_str, nullable=False)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now(), nullable=False)

    def __init__(self, *args, **kwargs):
        """
        Allow attribute initialization via kwargs without requiring a session.
        created_at/updated_at are left to the DB unless passed explicitly.
        """
        for key, value in kwargs.items():
            if key != "__class__":
                setattr(self, key, value)
        if getattr(self, "id", None) is None:
            self.id = _uuid_str()

    def __str__(self) -> str:
        return f"[{self.__class__.__name__}] ({self.id})"

    def to_dict(self) -> dict:
        """
        Return a dictionary of column values suitable for logs and debugging:
        - datetimes formatted with TIME_FMT
        - SQLAlchemy internal state and secret fields removed
        """
        d = {k: v for k, v in self.__dict__.items() if k != "_sa_instance_state"}
        for key, value in list(d.items()):
            if isinstance(value, datetime):
                d[key] = value.strftime(TIME_FMT)
        for key in SECRET_FIELDS:
            d.pop(key, None)
        d["__class__"] = self.__class__.__name__
        return d


class SoftDeleteMixin:
    """
    Adds a deleted_at timestamp. Rows with deleted_at set are treated as
    absent by the stores.
    IMPORTANT: Place this mixin BEFORE BaseModel in the class base list.
    """

    deleted_at = Column(DateTime, nullable=True)
