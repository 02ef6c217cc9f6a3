"""Credential store and account operations: register, login, refresh, profile."""

import logging

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from bookstore.core.exceptions import (
    AuthenticationRequiredError,
    ConflictError,
    InvalidInputError,
    NotFoundError,
)
from bookstore.core.security import hash_password, verify_password
from bookstore.core.tokens import InvalidTokenError, TokenCodec, TokenKind
from bookstore.models.user import Role, User
from bookstore.schemas.auth import (
    AuthResponse,
    RegisterRequest,
    UpdateUserRequest,
    UserResponse,
)

logger = logging.getLogger(__name__)

USERNAME_TAKEN_MESSAGE = "Username is already in use."
EMAIL_TAKEN_MESSAGE = "Email is already in use."


class UserService:
    """User lookups and account workflows over one database session."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def get_by_id(self, user_id: int) -> User | None:
        return self.db.get(User, user_id)

    def get_by_username(self, username: str) -> User | None:
        return self.db.scalar(select(User).where(User.username == username))

    def require(self, user_id: int) -> User:
        user = self.get_by_id(user_id)
        if user is None:
            raise NotFoundError("User not found.")
        return user

    def username_exists(self, username: str) -> bool:
        return self.db.scalar(select(User.id).where(User.username == username)) is not None

    def email_exists(self, email: str) -> bool:
        return (
            self.db.scalar(select(User.id).where(func.lower(User.email) == email.lower()))
            is not None
        )

    def is_live(self, user_id: int) -> bool:
        """True when the user exists and is active."""
        user = self.get_by_id(user_id)
        return user is not None and bool(user.is_active)

    def register(self, body: RegisterRequest) -> User:
        if self.username_exists(body.username):
            raise ConflictError(USERNAME_TAKEN_MESSAGE)
        if self.email_exists(body.email):
            raise ConflictError(EMAIL_TAKEN_MESSAGE)

        user = User(
            username=body.username,
            email=body.email,
            password_hash=hash_password(body.password),
            role=Role.USER.value,
            is_active=True,
        )
        self.db.add(user)
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            logger.warning("Registration lost a uniqueness race for %s: %s", body.username, e)
            raise ConflictError("Username or email is already in use.") from e
        self.db.refresh(user)
        logger.info("Registered user id=%s username=%s", user.id, user.username)
        return user

    def authenticate(self, username: str, password: str) -> User:
        user = self.get_by_username(username.strip())
        if user is None:
            logger.warning("Login failed: unknown username=%s", username)
            raise AuthenticationRequiredError("User not found.")
        if not verify_password(password, user.password_hash):
            logger.warning("Login failed: wrong password for username=%s", username)
            raise AuthenticationRequiredError("Password does not match.")
        return user

    def issue_tokens(self, user: User, codec: TokenCodec) -> AuthResponse:
        return AuthResponse(
            access_token=codec.issue_access_token(user),
            refresh_token=codec.issue_refresh_token(user),
            expires_in=int(codec.access_validity.total_seconds()),
            user=UserResponse.model_validate(user),
        )

    def login(self, username: str, password: str, codec: TokenCodec) -> AuthResponse:
        user = self.authenticate(username, password)
        logger.info("User logged in: id=%s", user.id)
        return self.issue_tokens(user, codec)

    def refresh(self, refresh_token: str | None, codec: TokenCodec) -> AuthResponse:
        """Exchange a REFRESH token for a new token pair."""
        if refresh_token is None or not refresh_token.strip():
            raise InvalidInputError("Refresh token is required.")
        try:
            claims = codec.verify(refresh_token.strip(), expected_kind=TokenKind.REFRESH)
        except InvalidTokenError as e:
            logger.warning("Refresh rejected: %s", e.message)
            raise AuthenticationRequiredError(e.message) from e
        user = self.get_by_id(claims.subject)
        if user is None or not user.is_active:
            raise AuthenticationRequiredError("User not found.")
        return self.issue_tokens(user, codec)

    def check_username_available(self, username: str | None) -> bool:
        if username is None or not username.strip():
            raise InvalidInputError("Please enter a username.")
        return not self.username_exists(username.strip())

    def check_email_available(self, email: str | None) -> bool:
        if email is None or not email.strip():
            raise InvalidInputError("Please enter an email.")
        email = email.strip()
        if "@" not in email or "." not in email:
            raise InvalidInputError("Invalid email format.")
        return not self.email_exists(email)

    def update_profile(self, user_id: int, body: UpdateUserRequest) -> User:
        user = self.require(user_id)
        if body.email is not None and body.email != user.email.lower():
            if self.email_exists(body.email):
                raise ConflictError(EMAIL_TAKEN_MESSAGE)
            user.email = body.email
        if body.password is not None:
            user.password_hash = hash_password(body.password)
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise ConflictError(EMAIL_TAKEN_MESSAGE) from e
        self.db.refresh(user)
        logger.info("Updated profile for user id=%s", user.id)
        return user
