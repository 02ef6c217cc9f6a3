"""Request/response schemas for book categories."""

from datetime import datetime

from pydantic import Field, field_validator

from bookstore.schemas.common import CamelModel

CATEGORY_NAME_MIN_LEN = 2
CATEGORY_NAME_MAX_LEN = 50
CATEGORY_DESCRIPTION_MAX_LEN = 200


class CategoryRequest(CamelModel):
    name: str = Field(..., min_length=CATEGORY_NAME_MIN_LEN, max_length=CATEGORY_NAME_MAX_LEN)
    description: str | None = Field(default=None, max_length=CATEGORY_DESCRIPTION_MAX_LEN)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        v = v.strip()
        if len(v) < CATEGORY_NAME_MIN_LEN:
            raise ValueError(
                f"Category name must be {CATEGORY_NAME_MIN_LEN}-{CATEGORY_NAME_MAX_LEN} characters."
            )
        return v

    @field_validator("description")
    @classmethod
    def strip_description(cls, v: str | None) -> str | None:
        if v is None or not v.strip():
            return None
        return v.strip()


class CategoryResponse(CamelModel):
    id: int
    name: str
    description: str | None = None
    book_count: int = 0
    created_at: datetime | None = None
