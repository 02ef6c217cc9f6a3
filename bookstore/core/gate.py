"""
Request gate: authenticate -> check_role -> check_liveness, evaluated per request.

Each stage returns Continue(identity) or Reject(status_code, message); the chain stops
at the first Reject. Which stages apply is decided by the (method, path) policy.
"""

import logging
import re
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from bookstore.core.config import settings
from bookstore.core.database import get_db
from bookstore.core.exceptions import AuthenticationRequiredError, ForbiddenError
from bookstore.core.tokens import InvalidTokenError, TokenCodec, TokenKind, get_token_codec
from bookstore.models.user import Role
from bookstore.schemas.auth import CurrentUser
from bookstore.services.users import UserService

logger = logging.getLogger(__name__)

AUTHENTICATION_REQUIRED_MESSAGE = "Authentication required."
ADMIN_REQUIRED_MESSAGE = "Admin privileges required."
INACTIVE_ACCOUNT_MESSAGE = "Account is not active."


class AccessLevel(str, Enum):
    PUBLIC = "PUBLIC"
    AUTHENTICATED = "AUTHENTICATED"
    ADMIN = "ADMIN"


@dataclass(frozen=True)
class GateRequest:
    method: str
    path: str
    authorization: str | None = None


@dataclass(frozen=True)
class Continue:
    identity: CurrentUser | None = None


@dataclass(frozen=True)
class Reject:
    status_code: int
    message: str


GateResult = Continue | Reject


# (method, path pattern relative to the API prefix); "*" matches any method.
_PUBLIC_API_RULES = (
    ("POST", r"/auth/(register|login|refresh|check-username|check-email)"),
    ("GET", r"/books"),
    ("GET", r"/books/\d+"),
    ("GET", r"/books/(search|filter|bestsellers|latest)"),
    ("GET", r"/books/category/\d+"),
    ("GET", r"/categories(/.*)?"),
)
_PUBLIC_ROOT_RULES = (
    ("GET", r"/"),
    ("*", r"/health"),
    ("*", r"/docs(/.*)?"),
    ("*", r"/redoc"),
    ("*", r"/openapi\.json"),
)
_ADMIN_API_RULES = (
    ("POST", r"/books"),
    ("PUT", r"/books/\d+"),
    ("DELETE", r"/books/\d+"),
    ("PUT", r"/books/\d+/stock"),
    ("POST", r"/books/\d+/stock/(increase|decrease)"),
    ("POST", r"/categories"),
    ("PUT", r"/categories/\d+"),
    ("DELETE", r"/categories/\d+"),
)


class GatePolicy:
    """Maps (method, path) to the access level the gate enforces. Read-only after construction."""

    def __init__(self, api_prefix: str = "/api") -> None:
        prefix = re.escape(api_prefix.rstrip("/"))
        self._public = self._compile(_PUBLIC_API_RULES, prefix) + self._compile(
            _PUBLIC_ROOT_RULES, ""
        )
        self._admin = self._compile(_ADMIN_API_RULES, prefix)

    @staticmethod
    def _compile(rules, prefix: str) -> tuple[tuple[str, re.Pattern[str]], ...]:
        return tuple((method, re.compile(f"^{prefix}{pattern}$")) for method, pattern in rules)

    @staticmethod
    def _matches(rules, method: str, path: str) -> bool:
        return any(
            (rule_method == "*" or rule_method == method) and pattern.match(path)
            for rule_method, pattern in rules
        )

    def access_level(self, method: str, path: str) -> AccessLevel:
        method = method.upper()
        path = path.rstrip("/") or "/"
        if method == "OPTIONS" or self._matches(self._public, method, path):
            return AccessLevel.PUBLIC
        if self._matches(self._admin, method, path):
            return AccessLevel.ADMIN
        return AccessLevel.AUTHENTICATED


def authenticate(request: GateRequest, codec: TokenCodec) -> GateResult:
    """Require a valid ACCESS token and turn its claims into an identity."""
    token = TokenCodec.resolve_bearer(request.authorization)
    if token is None:
        return Reject(401, AUTHENTICATION_REQUIRED_MESSAGE)
    try:
        claims = codec.verify(token, expected_kind=TokenKind.ACCESS)
    except InvalidTokenError as e:
        return Reject(401, e.message)
    return Continue(CurrentUser(id=claims.subject, username=claims.username, role=claims.role))


def check_role(identity: CurrentUser, level: AccessLevel) -> GateResult:
    if level == AccessLevel.ADMIN and identity.role != Role.ADMIN.value:
        return Reject(403, ADMIN_REQUIRED_MESSAGE)
    return Continue(identity)


def check_liveness(identity: CurrentUser, is_live: Callable[[int], bool]) -> GateResult:
    """The token's subject must still exist and be active."""
    if not is_live(identity.id):
        return Reject(403, INACTIVE_ACCOUNT_MESSAGE)
    return Continue(identity)


def run_gate(
    request: GateRequest,
    policy: GatePolicy,
    codec: TokenCodec,
    is_live: Callable[[int], bool],
) -> GateResult:
    """Evaluate the stage chain for one request."""
    level = policy.access_level(request.method, request.path)
    if level == AccessLevel.PUBLIC:
        return Continue(None)

    result = authenticate(request, codec)
    if isinstance(result, Reject):
        return result
    identity = result.identity

    stages: tuple[Callable[[CurrentUser], GateResult], ...] = (
        lambda ident: check_role(ident, level),
        lambda ident: check_liveness(ident, is_live),
    )
    for stage in stages:
        result = stage(identity)
        if isinstance(result, Reject):
            return result
    return Continue(identity)


@lru_cache
def get_gate_policy() -> GatePolicy:
    return GatePolicy(settings.API_PREFIX)


def enforce_gate(request: Request, db: Annotated[Session, Depends(get_db)]) -> None:
    """
    Application-wide dependency: run the gate and attach the identity to request.state.

    Rejections are raised as AuthenticationRequiredError (401) or ForbiddenError (403)
    and rendered by the application's exception handlers.
    """
    gate_request = GateRequest(
        method=request.method,
        path=request.url.path,
        authorization=request.headers.get("Authorization"),
    )
    users = UserService(db)
    result = run_gate(gate_request, get_gate_policy(), get_token_codec(), users.is_live)
    if isinstance(result, Reject):
        logger.warning(
            "Gate rejected %s %s: status=%s message=%s",
            gate_request.method,
            gate_request.path,
            result.status_code,
            result.message,
        )
        if result.status_code == 401:
            raise AuthenticationRequiredError(result.message)
        raise ForbiddenError(result.message)
    request.state.identity = result.identity


def get_current_user(request: Request) -> CurrentUser:
    """Dependency: the identity the gate attached. Raises 401 on routes the gate left public."""
    identity = getattr(request.state, "identity", None)
    if identity is None:
        raise AuthenticationRequiredError(AUTHENTICATION_REQUIRED_MESSAGE)
    return identity
