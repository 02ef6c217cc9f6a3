"""Self-service profile endpoints for the authenticated user."""

from fastapi import APIRouter

from bookstore.api.deps import Identity, Users
from bookstore.schemas.auth import UpdateUserRequest, UserResponse
from bookstore.schemas.common import ApiResponse

router = APIRouter()


@router.get("/profile", response_model=ApiResponse[UserResponse])
def get_profile(current_user: Identity, users: Users) -> ApiResponse[UserResponse]:
    return ApiResponse.ok(UserResponse.model_validate(users.require(current_user.id)))


@router.put("/profile", response_model=ApiResponse[UserResponse])
def update_profile(
    body: UpdateUserRequest, current_user: Identity, users: Users
) -> ApiResponse[UserResponse]:
    """Change email and/or password. A taken email returns 409."""
    user = users.update_profile(current_user.id, body)
    return ApiResponse.ok(UserResponse.model_validate(user), "Profile updated.")
