"""
Book query/filter engine.

Turns raw client criteria into a validated FilterSpec (normalize -> validate ranges ->
resolve sort field -> compose predicate), runs it against a BookCatalogStore and wraps
the result in a page envelope. All validation failures are collected into one
field -> message map and raised before the store is touched.
"""

import logging
import math
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from types import MappingProxyType
from typing import Generic, TypeVar

from bookstore.core.exceptions import InvalidInputError
from bookstore.models import Book
from bookstore.services.catalog_store import (
    BookCatalogStore,
    BookPredicate,
    PageWindow,
    SortDirection,
    SortField,
    SortOrder,
)

logger = logging.getLogger(__name__)

V = TypeVar("V")
R = TypeVar("R")

DEFAULT_PAGE = 0
DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100
MAX_FILTER_PRICE = Decimal("10000000")
KEYWORD_MAX_LEN = 100
TOP_BOOKS_LIMIT = 10

DEFAULT_SORT_FIELD = SortField.CREATED_AT
DEFAULT_SORT_DIRECTION = SortDirection.DESC

INVALID_FILTER_MESSAGE = "Invalid filter criteria."
EMPTY_KEYWORD_MESSAGE = "Please enter a search keyword."

# Accepted client spellings for each sortable field, matched case-insensitively.
DEFAULT_SORT_ALIASES: tuple[tuple[str, SortField], ...] = (
    ("title", SortField.TITLE),
    ("제목", SortField.TITLE),
    ("author", SortField.AUTHOR),
    ("저자", SortField.AUTHOR),
    ("price", SortField.PRICE),
    ("가격", SortField.PRICE),
    ("stock", SortField.STOCK),
    ("재고", SortField.STOCK),
    ("createdat", SortField.CREATED_AT),
    ("created_at", SortField.CREATED_AT),
    ("등록일", SortField.CREATED_AT),
    ("publicationdate", SortField.PUBLICATION_DATE),
    ("publication_date", SortField.PUBLICATION_DATE),
    ("출판일", SortField.PUBLICATION_DATE),
    ("pagecount", SortField.PAGE_COUNT),
    ("page_count", SortField.PAGE_COUNT),
    ("페이지수", SortField.PAGE_COUNT),
)


def build_sort_field_table(
    aliases: Iterable[tuple[str, SortField]] = DEFAULT_SORT_ALIASES,
) -> Mapping[str, SortField]:
    """Build the read-only synonym -> SortField lookup. Called once at application start."""
    return MappingProxyType({alias.strip().lower(): field for alias, field in aliases})


@dataclass(frozen=True)
class Ok(Generic[V]):
    value: V


@dataclass(frozen=True)
class Err:
    field: str
    message: str


Result = Ok | Err


@dataclass(frozen=True)
class RawBookFilter:
    """Filter criteria as received from the client; prices are unparsed text."""

    title: str | None = None
    author: str | None = None
    category_id: int | None = None
    min_price: str | None = None
    max_price: str | None = None
    in_stock_only: bool | None = None
    sort_by: str | None = None
    sort_direction: str | None = None


@dataclass(frozen=True)
class FilterSpec:
    predicate: BookPredicate
    sort: SortOrder
    window: PageWindow


@dataclass(frozen=True)
class Page(Generic[V]):
    """One page of results with the derived pagination flags."""

    content: list[V]
    page_number: int
    page_size: int
    total_elements: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total_elements / self.page_size) if self.page_size else 0

    @property
    def is_first(self) -> bool:
        return self.page_number == 0

    @property
    def is_last(self) -> bool:
        return self.page_number >= self.total_pages - 1

    @property
    def is_empty(self) -> bool:
        return not self.content

    def map(self, fn: Callable[[V], R]) -> "Page[R]":
        return Page(
            content=[fn(item) for item in self.content],
            page_number=self.page_number,
            page_size=self.page_size,
            total_elements=self.total_elements,
        )

    def envelope(self) -> dict:
        return {
            "content": self.content,
            "page_number": self.page_number,
            "page_size": self.page_size,
            "total_elements": self.total_elements,
            "total_pages": self.total_pages,
            "is_first": self.is_first,
            "is_last": self.is_last,
            "is_empty": self.is_empty,
        }


def normalize_text(value: str | None) -> str | None:
    """Trim; blank becomes absent."""
    if value is None:
        return None
    value = value.strip()
    return value or None


def parse_price(field: str, raw: str | None) -> Result:
    text = normalize_text(raw)
    if text is None:
        return Ok(None)
    try:
        price = Decimal(text)
    except InvalidOperation:
        return Err(field, "Invalid price format.")
    if not price.is_finite():
        return Err(field, "Invalid price format.")
    if price < 0:
        return Err(field, "Price must be 0 or greater.")
    if price > MAX_FILTER_PRICE:
        return Err(field, f"Price must not exceed {MAX_FILTER_PRICE}.")
    return Ok(price)


def check_price_range(min_price: Decimal | None, max_price: Decimal | None) -> Result:
    if min_price is not None and max_price is not None and min_price > max_price:
        return Err("minPrice", "Minimum price cannot be greater than maximum price.")
    return Ok(None)


def check_category_id(category_id: int | None) -> Result:
    if category_id is not None and category_id <= 0:
        return Err("categoryId", "Category id must be a positive number.")
    return Ok(category_id)


def check_window(page: int, size: int) -> Result:
    if page < 0:
        return Err("page", "Page number must be 0 or greater.")
    if size < 1 or size > MAX_PAGE_SIZE:
        return Err("size", f"Page size must be between 1 and {MAX_PAGE_SIZE}.")
    return Ok(PageWindow(number=page, size=size))


def resolve_sort_direction(raw: str | None) -> SortDirection:
    """'asc' (any case, trimmed) sorts ascending; anything else, including absent, descending."""
    if raw is not None and raw.strip().lower() == SortDirection.ASC.value:
        return SortDirection.ASC
    return DEFAULT_SORT_DIRECTION


def resolve_sort_field(raw: str | None, table: Mapping[str, SortField]) -> Result:
    text = normalize_text(raw)
    if text is None:
        return Ok(DEFAULT_SORT_FIELD)
    field = table.get(text.lower())
    if field is None:
        return Err("sortBy", f"Unsupported sort field: {text}")
    return Ok(field)


def _collect(results: Iterable[Result]) -> dict[str, str]:
    errors: dict[str, str] = {}
    for result in results:
        if isinstance(result, Err) and result.field not in errors:
            errors[result.field] = result.message
    return errors


class BookQueryEngine:
    """
    Normalizes, validates and executes catalog queries.

    Holds no mutable state; the store is per-request and the sort table is shared
    read-only across requests.
    """

    def __init__(self, store: BookCatalogStore, sort_fields: Mapping[str, SortField]) -> None:
        self.store = store
        self.sort_fields = sort_fields

    def _sort_and_window(
        self, sort_by: str | None, sort_direction: str | None, page: int, size: int
    ) -> tuple[Result, Result]:
        return resolve_sort_field(sort_by, self.sort_fields), check_window(page, size)

    @staticmethod
    def _raise_if_invalid(results: Iterable[Result]) -> None:
        errors = _collect(results)
        if errors:
            logger.warning("Rejected catalog query: %s", errors)
            raise InvalidInputError.from_field_errors(errors, INVALID_FILTER_MESSAGE)

    def build_filter_spec(self, raw: RawBookFilter, page: int, size: int) -> FilterSpec:
        """Pure: validate raw criteria and compose the spec. Raises InvalidInputError."""
        min_price = parse_price("minPrice", raw.min_price)
        max_price = parse_price("maxPrice", raw.max_price)
        category = check_category_id(raw.category_id)
        sort_field, window = self._sort_and_window(raw.sort_by, raw.sort_direction, page, size)
        results: list[Result] = [min_price, max_price, category, sort_field, window]
        if isinstance(min_price, Ok) and isinstance(max_price, Ok):
            results.append(check_price_range(min_price.value, max_price.value))
        self._raise_if_invalid(results)

        predicate = BookPredicate(
            title_contains=normalize_text(raw.title),
            author_contains=normalize_text(raw.author),
            category_id=category.value,
            min_price=min_price.value,
            max_price=max_price.value,
            in_stock_only=bool(raw.in_stock_only),
        )
        sort = SortOrder(sort_field.value, resolve_sort_direction(raw.sort_direction))
        return FilterSpec(predicate=predicate, sort=sort, window=window.value)

    def execute(self, spec: FilterSpec) -> Page[Book]:
        books, total = self.store.find_page(spec.predicate, spec.sort, spec.window)
        return Page(
            content=books,
            page_number=spec.window.number,
            page_size=spec.window.size,
            total_elements=total,
        )

    def filter_books(
        self, raw: RawBookFilter, page: int = DEFAULT_PAGE, size: int = DEFAULT_PAGE_SIZE
    ) -> Page[Book]:
        return self.execute(self.build_filter_spec(raw, page, size))

    def search(
        self,
        keyword: str | None,
        page: int = DEFAULT_PAGE,
        size: int = DEFAULT_PAGE_SIZE,
        sort_by: str | None = None,
        sort_direction: str | None = None,
    ) -> Page[Book]:
        """Books whose title or author contains the keyword (case-insensitive)."""
        text = normalize_text(keyword)
        if text is None:
            keyword_result: Result = Err("keyword", EMPTY_KEYWORD_MESSAGE)
        elif len(text) > KEYWORD_MAX_LEN:
            keyword_result = Err(
                "keyword", f"Search keyword must be at most {KEYWORD_MAX_LEN} characters."
            )
        else:
            keyword_result = Ok(text)
        sort_field, window = self._sort_and_window(sort_by, sort_direction, page, size)
        self._raise_if_invalid([keyword_result, sort_field, window])

        spec = FilterSpec(
            predicate=BookPredicate(keyword=keyword_result.value),
            sort=SortOrder(sort_field.value, resolve_sort_direction(sort_direction)),
            window=window.value,
        )
        return self.execute(spec)

    def list_books(
        self,
        page: int = DEFAULT_PAGE,
        size: int = DEFAULT_PAGE_SIZE,
        sort_by: str | None = None,
        sort_direction: str | None = None,
    ) -> Page[Book]:
        return self.filter_books(
            RawBookFilter(sort_by=sort_by, sort_direction=sort_direction), page, size
        )

    def books_in_category(
        self,
        category_id: int,
        page: int = DEFAULT_PAGE,
        size: int = DEFAULT_PAGE_SIZE,
        sort_by: str | None = None,
        sort_direction: str | None = None,
    ) -> Page[Book]:
        return self.filter_books(
            RawBookFilter(category_id=category_id, sort_by=sort_by, sort_direction=sort_direction),
            page,
            size,
        )

    def top_books(self, sort_field: SortField, limit: int = TOP_BOOKS_LIMIT) -> list[Book]:
        """First `limit` books by sort_field descending (bestsellers: stock, latest: createdAt)."""
        return self.store.find_top(SortOrder(sort_field, SortDirection.DESC), limit)

    def bestsellers(self) -> list[Book]:
        return self.top_books(SortField.STOCK)

    def latest(self) -> list[Book]:
        return self.top_books(SortField.CREATED_AT)
