"""Request/response schemas for catalog books."""

from datetime import date, datetime
from decimal import Decimal

from pydantic import Field, field_validator

from bookstore.schemas.common import CamelModel


class BookRequest(CamelModel):
    """
    Book fields for create and update.

    All fields are optional at the schema level; required-ness and ranges are checked
    by the book validator so every failing field is reported together.
    """

    title: str | None = None
    author: str | None = None
    isbn: str | None = None
    description: str | None = None
    price: Decimal | None = None
    stock: int | None = None
    publication_date: date | None = None
    publisher: str | None = None
    page_count: int | None = None
    image_url: str | None = None
    category_id: int | None = None


def _price_as_float(value):
    return float(value) if isinstance(value, Decimal) else value


class CategorySummary(CamelModel):
    id: int
    name: str


class BookResponse(CamelModel):
    """Full book detail."""

    id: int
    title: str
    author: str
    isbn: str | None = None
    description: str | None = None
    price: float
    stock: int
    publication_date: date | None = None
    publisher: str | None = None
    page_count: int | None = None
    image_url: str | None = None
    category: CategorySummary | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @field_validator("price", mode="before")
    @classmethod
    def price_as_float(cls, v):
        return _price_as_float(v)


class BookListItem(CamelModel):
    """Compact book entry for listings."""

    id: int
    title: str
    author: str
    price: float
    stock: int
    image_url: str | None = None
    category_name: str | None = Field(default=None)
    created_at: datetime | None = None

    @field_validator("price", mode="before")
    @classmethod
    def price_as_float(cls, v):
        return _price_as_float(v)

    @classmethod
    def from_book(cls, book) -> "BookListItem":
        return cls(
            id=book.id,
            title=book.title,
            author=book.author,
            price=book.price,
            stock=book.stock,
            image_url=book.image_url,
            category_name=book.category.name if book.category is not None else None,
            created_at=book.created_at,
        )
