"""Pydantic request/response schemas."""

from bookstore.schemas.auth import (
    AuthResponse,
    CurrentUser,
    LoginRequest,
    RegisterRequest,
    UpdateUserRequest,
    UserResponse,
)
from bookstore.schemas.book import BookListItem, BookRequest, BookResponse
from bookstore.schemas.category import CategoryRequest, CategoryResponse
from bookstore.schemas.common import ApiResponse, PageResponse
from bookstore.schemas.health import HealthResponse

__all__ = [
    "ApiResponse",
    "AuthResponse",
    "BookListItem",
    "BookRequest",
    "BookResponse",
    "CategoryRequest",
    "CategoryResponse",
    "CurrentUser",
    "HealthResponse",
    "LoginRequest",
    "PageResponse",
    "RegisterRequest",
    "UpdateUserRequest",
    "UserResponse",
]
