"""Field-level validation for book create/update requests."""

import re
from datetime import date
from decimal import Decimal

from bookstore.core.exceptions import InvalidInputError
from bookstore.schemas.book import BookRequest
from bookstore.services.filtering import Err, Ok, Result

TITLE_MAX_LEN = 200
AUTHOR_MAX_LEN = 100
PUBLISHER_MAX_LEN = 100
DESCRIPTION_MAX_LEN = 2000
IMAGE_URL_MAX_LEN = 500

MIN_PRICE = Decimal("0")
MAX_PRICE = Decimal("1000000")
MIN_STOCK = 0
MAX_STOCK = 100000
MAX_STOCK_CHANGE = 10000
MIN_PAGE_COUNT = 1
MAX_PAGE_COUNT = 50000
MIN_PUBLICATION_DATE = date(1000, 1, 1)

INVALID_BOOK_MESSAGE = "Invalid book data."

# Columns an update can change but never clear.
_NOT_CLEARABLE = frozenset({"title", "author", "price", "stock", "category_id"})

_ISBN_SEPARATORS = re.compile(r"[\s-]")
_ISBN_DIGITS = re.compile(r"^(\d{10}|\d{13})$")


def normalize_isbn(isbn: str | None) -> str | None:
    """Strip spaces and hyphens; blank becomes None."""
    if isbn is None:
        return None
    cleaned = _ISBN_SEPARATORS.sub("", isbn)
    return cleaned or None


def isbn13_checksum_ok(digits: str) -> bool:
    total = sum(int(d) * (1 if i % 2 == 0 else 3) for i, d in enumerate(digits[:12]))
    return (10 - total % 10) % 10 == int(digits[12])


def check_isbn(isbn: str | None) -> Result:
    cleaned = normalize_isbn(isbn)
    if cleaned is None:
        return Ok(None)
    if not _ISBN_DIGITS.match(cleaned):
        return Err("isbn", "ISBN must be 10 or 13 digits.")
    if len(cleaned) == 13 and not isbn13_checksum_ok(cleaned):
        return Err("isbn", "Invalid ISBN-13 checksum.")
    return Ok(cleaned)


def _check_text(
    field: str, label: str, value: str | None, max_len: int, required: bool
) -> Result:
    if value is None:
        return Err(field, f"{label} is required.") if required else Ok(None)
    value = value.strip()
    if not value:
        return Err(field, f"{label} cannot be blank.")
    if len(value) > max_len:
        return Err(field, f"{label} must be at most {max_len} characters.")
    return Ok(value)


def _check_optional_text(field: str, label: str, value: str | None, max_len: int) -> Result:
    if value is None or not value.strip():
        return Ok(None)
    value = value.strip()
    if len(value) > max_len:
        return Err(field, f"{label} must be at most {max_len} characters.")
    return Ok(value)


def _check_range(field: str, label: str, value, low, high) -> Result:
    if value is None:
        return Ok(None)
    if value < low or value > high:
        return Err(field, f"{label} must be between {low} and {high}.")
    return Ok(value)


def check_publication_date(value: date | None, today: date | None = None) -> Result:
    if value is None:
        return Ok(None)
    today = today or date.today()
    if value > today:
        return Err("publicationDate", "Publication date cannot be in the future.")
    if value < MIN_PUBLICATION_DATE:
        return Err("publicationDate", "Publication date is too far in the past.")
    return Ok(value)


def check_stock_quantity(quantity: int) -> None:
    """Absolute stock level for set-stock."""
    if quantity < MIN_STOCK or quantity > MAX_STOCK:
        raise InvalidInputError(
            f"Stock must be between {MIN_STOCK} and {MAX_STOCK}.",
            field_errors={"quantity": f"Stock must be between {MIN_STOCK} and {MAX_STOCK}."},
        )


def check_stock_change(quantity: int, operation: str) -> None:
    """Per-call quantity for increase/decrease."""
    if quantity < 1 or quantity > MAX_STOCK_CHANGE:
        message = f"Stock {operation} quantity must be between 1 and {MAX_STOCK_CHANGE}."
        raise InvalidInputError(message, field_errors={"quantity": message})


def validate_book_request(
    body: BookRequest, creating: bool, today: date | None = None
) -> dict[str, object]:
    """
    Validate every field of a book request and return the cleaned values that were
    provided (trimmed text, normalized ISBN).

    On create, title, author and categoryId are required; on update every field is
    optional and omitted fields are left out of the result. All failures are raised
    together as one InvalidInputError with a field -> message map.
    """
    checks: dict[str, Result] = {
        "title": _check_text("title", "Title", body.title, TITLE_MAX_LEN, creating),
        "author": _check_text("author", "Author", body.author, AUTHOR_MAX_LEN, creating),
        "isbn": check_isbn(body.isbn),
        "description": _check_optional_text(
            "description", "Description", body.description, DESCRIPTION_MAX_LEN
        ),
        "price": _check_range("price", "Price", body.price, MIN_PRICE, MAX_PRICE),
        "stock": _check_range("stock", "Stock", body.stock, MIN_STOCK, MAX_STOCK),
        "publication_date": check_publication_date(body.publication_date, today),
        "publisher": _check_optional_text(
            "publisher", "Publisher", body.publisher, PUBLISHER_MAX_LEN
        ),
        "page_count": _check_range(
            "pageCount", "Page count", body.page_count, MIN_PAGE_COUNT, MAX_PAGE_COUNT
        ),
        "image_url": _check_optional_text(
            "imageUrl", "Image URL", body.image_url, IMAGE_URL_MAX_LEN
        ),
    }
    if creating and body.category_id is None:
        checks["category_id"] = Err("categoryId", "Category is required.")
    elif body.category_id is not None and body.category_id <= 0:
        checks["category_id"] = Err("categoryId", "Invalid category id.")
    else:
        checks["category_id"] = Ok(body.category_id)

    errors = {r.field: r.message for r in checks.values() if isinstance(r, Err)}
    if errors:
        raise InvalidInputError.from_field_errors(errors, INVALID_BOOK_MESSAGE)

    provided = body.model_fields_set
    return {
        name: result.value
        for name, result in checks.items()
        if result.value is not None or (name in provided and name not in _NOT_CLEARABLE)
    }
