"""Registration, login, token refresh and account-availability endpoints."""

import logging

from fastapi import APIRouter, status

from bookstore.api.deps import Codec, Identity, Users
from bookstore.schemas.auth import (
    AuthResponse,
    CheckEmailRequest,
    CheckUsernameRequest,
    LoginRequest,
    RefreshRequest,
    RegisterRequest,
    UserResponse,
)
from bookstore.schemas.common import ApiResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/register",
    response_model=ApiResponse[UserResponse],
    status_code=status.HTTP_201_CREATED,
)
def register(body: RegisterRequest, users: Users) -> ApiResponse[UserResponse]:
    """Create a USER account. Duplicate username or email returns 409."""
    user = users.register(body)
    return ApiResponse.ok(UserResponse.model_validate(user), "Registration completed.")


@router.post("/login", response_model=ApiResponse[AuthResponse])
def login(body: LoginRequest, users: Users, codec: Codec) -> ApiResponse[AuthResponse]:
    """
    Authenticate with username and password; returns an access/refresh token pair.
    Send the access token as: Authorization: Bearer <accessToken>
    """
    return ApiResponse.ok(users.login(body.username, body.password, codec), "Login successful.")


@router.post("/refresh", response_model=ApiResponse[AuthResponse])
def refresh(body: RefreshRequest, users: Users, codec: Codec) -> ApiResponse[AuthResponse]:
    """Exchange a refresh token for a new token pair. Access tokens are refused."""
    return ApiResponse.ok(users.refresh(body.refresh_token, codec), "Token reissued.")


@router.post("/logout", response_model=ApiResponse[None])
def logout(current_user: Identity) -> ApiResponse[None]:
    # Tokens are stateless; nothing is revoked server-side.
    logger.info("Logout requested: user_id=%s", current_user.id)
    return ApiResponse.ok(message="Logged out.")


@router.post("/check-username", response_model=ApiResponse[bool])
def check_username(body: CheckUsernameRequest, users: Users) -> ApiResponse[bool]:
    available = users.check_username_available(body.username)
    message = "Username is available." if available else "Username is already in use."
    return ApiResponse.ok(available, message)


@router.post("/check-email", response_model=ApiResponse[bool])
def check_email(body: CheckEmailRequest, users: Users) -> ApiResponse[bool]:
    available = users.check_email_available(body.email)
    message = "Email is available." if available else "Email is already in use."
    return ApiResponse.ok(available, message)


@router.get("/me", response_model=ApiResponse[UserResponse])
def me(current_user: Identity, users: Users) -> ApiResponse[UserResponse]:
    user = users.require(current_user.id)
    return ApiResponse.ok(UserResponse.model_validate(user))
