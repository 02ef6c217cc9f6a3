"""Book Catalog Store: predicate-based paged queries over books (SQLAlchemy)."""

import logging
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Protocol

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from bookstore.core.exceptions import StoreError
from bookstore.models import Book

logger = logging.getLogger(__name__)


class SortField(str, Enum):
    """Canonical sortable book fields."""

    TITLE = "title"
    AUTHOR = "author"
    PRICE = "price"
    STOCK = "stock"
    CREATED_AT = "createdAt"
    PUBLICATION_DATE = "publicationDate"
    PAGE_COUNT = "pageCount"


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"


@dataclass(frozen=True)
class SortOrder:
    field: SortField
    direction: SortDirection


@dataclass(frozen=True)
class PageWindow:
    number: int
    size: int

    @property
    def offset(self) -> int:
        return self.number * self.size


@dataclass(frozen=True)
class BookPredicate:
    """
    AND-combination of book criteria. None fields impose no constraint.

    keyword matches title OR author; title_contains/author_contains match their own
    field only. Text matches are case-insensitive substrings.
    """

    title_contains: str | None = None
    author_contains: str | None = None
    keyword: str | None = None
    category_id: int | None = None
    min_price: Decimal | None = None
    max_price: Decimal | None = None
    in_stock_only: bool = False


class BookCatalogStore(Protocol):
    def find_page(
        self, predicate: BookPredicate, sort: SortOrder, window: PageWindow
    ) -> tuple[list[Book], int]:
        """Return (books on the requested page, total matching count)."""
        ...

    def find_top(self, sort: SortOrder, limit: int) -> list[Book]:
        ...

    def count(self, predicate: BookPredicate) -> int:
        ...


_SORT_COLUMNS = {
    SortField.TITLE: Book.title,
    SortField.AUTHOR: Book.author,
    SortField.PRICE: Book.price,
    SortField.STOCK: Book.stock,
    SortField.CREATED_AT: Book.created_at,
    SortField.PUBLICATION_DATE: Book.publication_date,
    SortField.PAGE_COUNT: Book.page_count,
}


def _contains(column, value: str):
    return func.lower(column).contains(value.lower(), autoescape=True)


def predicate_clauses(predicate: BookPredicate) -> list:
    """Translate a BookPredicate into SQLAlchemy WHERE clauses."""
    clauses = []
    if predicate.title_contains is not None:
        clauses.append(_contains(Book.title, predicate.title_contains))
    if predicate.author_contains is not None:
        clauses.append(_contains(Book.author, predicate.author_contains))
    if predicate.keyword is not None:
        clauses.append(
            _contains(Book.title, predicate.keyword) | _contains(Book.author, predicate.keyword)
        )
    if predicate.category_id is not None:
        clauses.append(Book.category_id == predicate.category_id)
    if predicate.min_price is not None:
        clauses.append(Book.price >= predicate.min_price)
    if predicate.max_price is not None:
        clauses.append(Book.price <= predicate.max_price)
    if predicate.in_stock_only:
        clauses.append(Book.stock > 0)
    return clauses


def _order_by(sort: SortOrder) -> list:
    column = _SORT_COLUMNS[sort.field]
    # id as tie-breaker keeps page boundaries stable for equal sort keys.
    if sort.direction == SortDirection.ASC:
        return [column.asc(), Book.id.asc()]
    return [column.desc(), Book.id.desc()]


class SqlBookCatalogStore:
    """BookCatalogStore backed by a SQLAlchemy session."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def find_page(
        self, predicate: BookPredicate, sort: SortOrder, window: PageWindow
    ) -> tuple[list[Book], int]:
        clauses = predicate_clauses(predicate)
        try:
            total = self.session.scalar(
                select(func.count()).select_from(Book).where(*clauses)
            )
            books = list(
                self.session.scalars(
                    select(Book)
                    .where(*clauses)
                    .order_by(*_order_by(sort))
                    .offset(window.offset)
                    .limit(window.size)
                )
            )
        except SQLAlchemyError as e:
            logger.error("Catalog page query failed: %s", e)
            raise StoreError("Failed to query the book catalog.") from e
        return books, int(total or 0)

    def find_top(self, sort: SortOrder, limit: int) -> list[Book]:
        try:
            return list(
                self.session.scalars(select(Book).order_by(*_order_by(sort)).limit(limit))
            )
        except SQLAlchemyError as e:
            logger.error("Catalog top-N query failed: %s", e)
            raise StoreError("Failed to query the book catalog.") from e

    def count(self, predicate: BookPredicate) -> int:
        try:
            total = self.session.scalar(
                select(func.count()).select_from(Book).where(*predicate_clauses(predicate))
            )
        except SQLAlchemyError as e:
            logger.error("Catalog count query failed: %s", e)
            raise StoreError("Failed to query the book catalog.") from e
        return int(total or 0)
