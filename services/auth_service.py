"""
Authentication and session lifecycle.

AuthService covers:
- login: credential check + token issue
- register: create an ACTIVE user, issue tokens, enqueue the verification mail job
- refresh_token: single-use rotation of opaque refresh tokens
- logout: drop every refresh token the user holds
- send_verify_email_code / verify_email

Collaborators are passed in (stores, mailer, task queue, clock); the service
keeps no mutable state of its own, so one instance serves every thread.
"""
from __future__ import annotations

import hmac
import secrets
import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Callable, Dict

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from models.refresh_token import RefreshToken
from models.user import User, UserStatus
from services.errors import (
    EmailAlreadyExists,
    InvalidCredentials,
    InvalidRefreshToken,
    InvalidVerifyCode,
    UserNotActive,
    UserNotFound,
)
from services.mailer import EMAIL_VERIFICATION_SUBJECT, EMAIL_VERIFICATION_TEMPLATE
from services.tasks import SEND_VERIFY_EMAIL_JOB, TaskEnqueueError
from utils.clock import utcnow
from utils.security import (
    create_access_token,
    generate_refresh_token,
    generate_verify_code,
    hash_password,
    verify_password,
)

logger = logging.getLogger(__name__)

TOKEN_TYPE = "Bearer"

# Checked against when the email is unknown so both login failures cost one argon2 verify
_DUMMY_PASSWORD_HASH = hash_password(secrets.token_urlsafe(16))


@dataclass(frozen=True)
class AuthSettings:
    jwt_secret: str
    jwt_algorithm: str = "HS256"
    jwt_issuer: str | None = None
    access_token_expires: timedelta = timedelta(minutes=15)
    refresh_token_expires: timedelta = timedelta(days=7)
    verify_code_length: int = 6
    last_login_update_required: bool = True

    def __post_init__(self):
        if self.verify_code_length < 1:
            raise ValueError("verify_code_length must be at least 1")

    @classmethod
    def from_config(cls, config) -> "AuthSettings":
        return cls(
            jwt_secret=config["JWT_SECRET"],
            jwt_algorithm=config.get("JWT_ALGORITHM", "HS256"),
            jwt_issuer=config.get("JWT_ISSUER"),
            access_token_expires=config["ACCESS_TOKEN_EXPIRES"],
            refresh_token_expires=config["REFRESH_TOKEN_EXPIRES"],
            verify_code_length=config.get("VERIFY_EMAIL_CODE_LENGTH", 6),
            last_login_update_required=config.get("LAST_LOGIN_UPDATE_REQUIRED", True),
        )


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str
    expires_in: int
    token_type: str = TOKEN_TYPE


class AuthService:
    def __init__(
        self,
        users,
        tokens,
        mailer,
        tasks,
        settings: AuthSettings,
        clock: Callable = utcnow,
    ):
        self.users = users
        self.tokens = tokens
        self.mailer = mailer
        self.tasks = tasks
        self.settings = settings
        self.clock = clock

    # -- credential verifier -------------------------------------------------

    def login(self, email: str, password: str) -> TokenPair:
        user = self.users.get_by_email(email)
        if user is None:
            verify_password(password, _DUMMY_PASSWORD_HASH)
            logger.info("Login attempt with non-existent email: %s", email)
            raise InvalidCredentials()

        if not user.is_active:
            logger.info("Login attempt with inactive account: user_id=%s status=%s", user.id, user.status)
            raise UserNotActive()

        if not verify_password(password, user.password_hash):
            logger.info("Failed password verification: user_id=%s", user.id)
            raise InvalidCredentials()

        user.last_login_at = self.clock()
        try:
            self.users.update(user)
        except SQLAlchemyError:
            if self.settings.last_login_update_required:
                logger.exception("Failed to update last login time: user_id=%s", user.id)
                raise
            logger.warning("Failed to update last login time, continuing: user_id=%s", user.id, exc_info=True)

        tokens = self.issue_tokens(user)
        logger.info("User logged in: user_id=%s", user.id)
        return tokens

    # -- token issuer --------------------------------------------------------

    def issue_tokens(self, user: User) -> TokenPair:
        """
        Mint an access token and persist a fresh refresh token.
        Nothing is returned unless the refresh token row is committed.
        """
        now = self.clock()
        access_expires_at = now + self.settings.access_token_expires
        try:
            access_token = create_access_token(
                user,
                secret=self.settings.jwt_secret,
                algorithm=self.settings.jwt_algorithm,
                issued_at=now,
                expires_at=access_expires_at,
                issuer=self.settings.jwt_issuer,
            )
        except Exception:
            logger.exception("Failed to sign access token: user_id=%s", user.id)
            raise

        refresh_value = generate_refresh_token()
        try:
            self.tokens.save(
                RefreshToken(
                    user_id=user.id,
                    token=refresh_value,
                    expires_at=now + self.settings.refresh_token_expires,
                )
            )
        except SQLAlchemyError:
            logger.exception("Failed to save refresh token: user_id=%s", user.id)
            raise

        return TokenPair(
            access_token=access_token,
            refresh_token=refresh_value,
            expires_in=int(self.settings.access_token_expires.total_seconds()),
        )

    # -- registration --------------------------------------------------------

    def register(self, profile: Dict[str, Any]) -> TokenPair:
        email = profile["email"]
        if self.users.get_by_email(email) is not None:
            logger.info("Registration with existing email: %s", email)
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
            # lost a race with a concurrent registration for the same email
            logger.info("Registration conflict on insert: %s", email)
            raise EmailAlreadyExists()

        try:
            tokens = self.issue_tokens(user)
        except Exception:
            # a user without tokens would block every retry with EmailAlreadyExists
            self._discard_user(user)
            raise

        try:
            self.tasks.enqueue(SEND_VERIFY_EMAIL_JOB, user.id, description=f"send_verify_email_code:{user.id}")
        except TaskEnqueueError:
            logger.warning("Verification email not queued: user_id=%s", user.id)

        logger.info("User registered: user_id=%s", user.id)
        return tokens

    def _discard_user(self, user: User) -> None:
        try:
            self.users.delete(user)
        except SQLAlchemyError:
            logger.exception("Failed to remove user after token issue failure: user_id=%s", user.id)
        else:
            logger.warning("Registration rolled back, tokens could not be issued: user_id=%s", user.id)

    # -- email verification --------------------------------------------------

    def send_verify_email_code(self, user_id: str) -> None:
        """
        Store a new code on the user (replacing any earlier one) and mail it.
        A delivery failure propagates but the stored code stays valid.
        """
        user = self.users.get_by_id(user_id)
        if user is None:
            logger.warning("Verify code requested for missing user: user_id=%s", user_id)
            raise UserNotFound()

        code = generate_verify_code(self.settings.verify_code_length)
        user.verify_email_code = code
        self.users.update(user)

        self.mailer.send_templated(
            user.email,
            EMAIL_VERIFICATION_SUBJECT,
            EMAIL_VERIFICATION_TEMPLATE,
            {"name": user.full_name, "code": code},
        )
        logger.info("Verification code sent: user_id=%s", user.id)

    def verify_email(self, user_id: str, code: str) -> None:
        user = self.users.get_by_id(user_id)
        if user is None:
            logger.warning("Verify email for missing user: user_id=%s", user_id)
            raise UserNotFound()

        if user.email_verified:
            logger.info("Email already verified: user_id=%s", user_id)
            return

        stored = user.verify_email_code
        if not stored or not code or not hmac.compare_digest(stored.encode(), code.encode()):
            logger.info("Invalid verification code: user_id=%s", user_id)
            raise InvalidVerifyCode()

        user.email_verified = True
        user.verify_email_code = None
        self.users.update(user)
        logger.info("User email verified: user_id=%s", user_id)

    # -- token rotator -------------------------------------------------------

    def refresh_token(self, value: str) -> TokenPair:
        """
        ISSUED -> CONSUMED | EXPIRED | NOT_FOUND. The presented token is
        deleted before anything else happens and only the caller whose
        delete removed the row may mint a new pair.
        """
        saved = self.tokens.find_by_value(value)
        if saved is None:
            logger.warning("Refresh token not found")
            raise InvalidRefreshToken()

        if saved.is_expired(self.clock()):
            logger.warning("Expired refresh token used: user_id=%s expires_at=%s", saved.user_id, saved.expires_at)
            try:
                self.tokens.delete_by_value(value)
            except SQLAlchemyError:
                logger.exception("Failed to delete expired refresh token: user_id=%s", saved.user_id)
            raise InvalidRefreshToken()

        user_id = saved.user_id
        if self.tokens.delete_by_value(value) != 1:
            logger.warning("Refresh token already consumed: user_id=%s", user_id)
            raise InvalidRefreshToken()

        user = self.users.get_by_id(user_id)
        if user is None:
            logger.warning("Refresh token used for non-existent user: user_id=%s", user_id)
            raise InvalidRefreshToken()
        if not user.is_active:
            logger.warning("Refresh token used for inactive user: user_id=%s", user_id)
            raise UserNotActive()

        tokens = self.issue_tokens(user)
        logger.info("Token refreshed: user_id=%s", user_id)
        return tokens

    # -- session revoker -----------------------------------------------------

    def logout(self, user_id: str) -> None:
        try:
            removed = self.tokens.delete_all_for_user(user_id)
        except SQLAlchemyError:
            logger.exception("Failed to delete refresh tokens: user_id=%s", user_id)
            raise
        logger.info("User logged out: user_id=%s tokens_removed=%d", user_id, removed)
