"""
User administration: create accounts directly and page through them.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any, Dict, List

from sqlalchemy.exc import IntegrityError

from models.user import User, UserStatus
from services.errors import EmailAlreadyExists
from utils.security import hash_password

logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 100


@dataclass(frozen=True)
class UserPage:
    items: List[User]
    total_count: int
    page: int
    page_size: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total_count / self.page_size)


class UserService:
    def __init__(self, users):
        self.users = users

    def create_user(self, profile: Dict[str, Any]) -> User:
        """
        Create an ACTIVE account. Unlike registration no tokens are issued
        and no verification mail is sent.
        """
        email = profile["email"]
        if self.users.get_by_email(email) is not None:
            logger.info("Create user with existing email: %s", email)
            raise EmailAlreadyExists()

        user = User(
            email=email,
            password_hash=hash_password(profile["password"]),
            first_name=profile.get("first_name"),
            last_name=profile.get("last_name"),
            phone_number=profile.get("phone_number"),
            status=UserStatus.ACTIVE,
            email_verified=False,
        )
        try:
            self.users.create(user)
        except IntegrityError:
            logger.info("Create user conflict on insert: %s", email)
            raise EmailAlreadyExists()

        logger.info("User created: user_id=%s", user.id)
        return user

    def list_users(self, page: int = 1, page_size: int = 10) -> UserPage:
        page = max(page, 1)
        page_size = max(1, min(page_size, MAX_PAGE_SIZE))
        rows, total = self.users.list(page, page_size)
        return UserPage(items=rows, total_count=total, page=page, page_size=page_size)
