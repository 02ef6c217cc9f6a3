"""Response envelope and page wrapper shared by every endpoint."""

from datetime import UTC, datetime
from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

T = TypeVar("T")

DEFAULT_SUCCESS_MESSAGE = "Request processed successfully."


class CamelModel(BaseModel):
    """Base for wire schemas: camelCase JSON keys, snake_case accepted on input."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class ApiResponse(CamelModel, Generic[T]):
    """Uniform envelope: {success, message, data, timestamp}."""

    success: bool = Field(..., description="Whether the request succeeded")
    message: str = Field(..., description="Human-readable outcome")
    data: T | None = Field(default=None, description="Payload, or field errors on validation failure")
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @classmethod
    def ok(cls, data: T | None = None, message: str = DEFAULT_SUCCESS_MESSAGE) -> "ApiResponse[T]":
        return cls(success=True, message=message, data=data)

    @classmethod
    def error(cls, message: str, data: T | None = None) -> "ApiResponse[T]":
        return cls(success=False, message=message, data=data)


class PageResponse(CamelModel, Generic[T]):
    """One page of results plus the counts a client needs to paginate."""

    content: list[T]
    page_number: int
    page_size: int
    total_elements: int
    total_pages: int
    is_first: bool
    is_last: bool
    is_empty: bool
