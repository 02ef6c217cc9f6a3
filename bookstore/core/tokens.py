"""Signed, expiring access/refresh tokens (JWT, HMAC) carrying identity and role claims."""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from enum import Enum
from functools import lru_cache
from typing import Any, Protocol

import jwt

from bookstore.core.config import settings

logger = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "

_REQUIRED_CLAIMS = ("sub", "username", "role", "type", "iat", "exp")


class TokenKind(str, Enum):
    ACCESS = "ACCESS"
    REFRESH = "REFRESH"


class InvalidTokenError(Exception):
    """Token failed signature, structure, algorithm or claim checks."""

    def __init__(self, message: str = "Invalid token") -> None:
        self.message = message
        super().__init__(message)


class ExpiredTokenError(InvalidTokenError):
    def __init__(self, message: str = "Token has expired") -> None:
        super().__init__(message)


class TokenKindMismatchError(InvalidTokenError):
    def __init__(self, expected: TokenKind, actual: TokenKind) -> None:
        self.expected = expected
        self.actual = actual
        super().__init__(f"{expected.value.capitalize()} token required")


class TokenSubject(Protocol):
    """Anything with the identity fields a token is issued for (ORM user, CurrentUser)."""

    id: int
    username: str
    role: Any


@dataclass(frozen=True)
class TokenClaims:
    subject: int
    username: str
    role: str
    kind: TokenKind
    issued_at: datetime
    expires_at: datetime


def _utc_now() -> datetime:
    return datetime.now(UTC)


def _role_value(role: Any) -> str:
    return role.value if isinstance(role, Enum) else str(role)


class TokenCodec:
    """
    Issues and verifies HMAC-signed tokens.

    Stateless: validity is decided by signature and expiry at verification time.
    The clock is injectable so expiry can be tested deterministically.
    """

    def __init__(
        self,
        secret: str,
        algorithm: str = "HS256",
        access_validity: timedelta = timedelta(seconds=3600),
        refresh_validity: timedelta = timedelta(seconds=604800),
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._secret = secret
        self._algorithm = algorithm
        self._validity = {
            TokenKind.ACCESS: access_validity,
            TokenKind.REFRESH: refresh_validity,
        }
        self._clock = clock

    @property
    def access_validity(self) -> timedelta:
        return self._validity[TokenKind.ACCESS]

    def issue_access_token(self, identity: TokenSubject) -> str:
        return self._issue(identity, TokenKind.ACCESS)

    def issue_refresh_token(self, identity: TokenSubject) -> str:
        return self._issue(identity, TokenKind.REFRESH)

    def _issue(self, identity: TokenSubject, kind: TokenKind) -> str:
        now = self._clock()
        payload: dict[str, Any] = {
            "sub": str(identity.id),
            "username": identity.username,
            "role": _role_value(identity.role),
            "type": kind.value,
            "iat": now,
            "exp": now + self._validity[kind],
        }
        return jwt.encode(payload, self._secret, algorithm=self._algorithm)

    def _decode(self, token: str) -> dict[str, Any]:
        # Expiry is checked against the injected clock in verify(), not PyJWT's wall clock.
        return jwt.decode(
            token,
            self._secret,
            algorithms=[self._algorithm],
            options={
                "require": list(_REQUIRED_CLAIMS),
                "verify_exp": False,
                "verify_iat": False,
            },
        )

    def verify(self, token: str, expected_kind: TokenKind | None = None) -> TokenClaims:
        """
        Verify signature, structure and expiry; return the parsed claims.

        Raises ExpiredTokenError when exp is in the past, TokenKindMismatchError when
        expected_kind is given and differs, and InvalidTokenError for anything else.
        """
        if not token or not token.strip():
            raise InvalidTokenError("Token is empty")
        try:
            payload = self._decode(token)
        except jwt.PyJWTError as e:
            logger.debug("Token rejected by decoder: %s", e)
            raise InvalidTokenError() from e

        try:
            subject = int(payload["sub"])
            kind = TokenKind(payload["type"])
            issued_at = datetime.fromtimestamp(int(payload["iat"]), tz=UTC)
            expires_at = datetime.fromtimestamp(int(payload["exp"]), tz=UTC)
        except (TypeError, ValueError) as e:
            raise InvalidTokenError("Invalid token payload") from e
        username = payload["username"]
        role = payload["role"]
        if not isinstance(username, str) or not isinstance(role, str):
            raise InvalidTokenError("Invalid token payload")

        if expires_at < self._clock():
            raise ExpiredTokenError()
        if expected_kind is not None and kind != expected_kind:
            raise TokenKindMismatchError(expected_kind, kind)

        return TokenClaims(
            subject=subject,
            username=username,
            role=role,
            kind=kind,
            issued_at=issued_at,
            expires_at=expires_at,
        )

    def extract_claim(self, token: str, name: str) -> Any | None:
        """Best-effort claim read for diagnostics. Never use alone for authorization."""
        try:
            return self._decode(token).get(name)
        except Exception as e:
            logger.debug("Could not extract claim %r: %s", name, e)
            return None

    @staticmethod
    def resolve_bearer(header: str | None) -> str | None:
        """Return the token from an 'Authorization: Bearer <token>' value, or None."""
        if header is None or not header.startswith(BEARER_PREFIX):
            return None
        token = header[len(BEARER_PREFIX):].strip()
        return token or None


@lru_cache
def get_token_codec() -> TokenCodec:
    """Process-wide codec built once from settings; read-only after startup."""
    codec = TokenCodec(
        secret=settings.JWT_SECRET.get_secret_value(),
        algorithm=settings.JWT_ALGORITHM,
        access_validity=timedelta(seconds=settings.ACCESS_TOKEN_VALIDITY_SECONDS),
        refresh_validity=timedelta(seconds=settings.REFRESH_TOKEN_VALIDITY_SECONDS),
    )
    logger.info(
        "Token codec initialised: access validity=%ss, refresh validity=%ss",
        settings.ACCESS_TOKEN_VALIDITY_SECONDS,
        settings.REFRESH_TOKEN_VALIDITY_SECONDS,
    )
    return codec
