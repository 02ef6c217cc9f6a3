"""Book CRUD and stock operations."""

import logging

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from bookstore.core.exceptions import (
    ConflictError,
    InsufficientStockError,
    InvalidInputError,
    NotFoundError,
)
from bookstore.models import Book
from bookstore.schemas.book import BookRequest
from bookstore.services.book_validation import (
    MAX_STOCK,
    check_stock_change,
    check_stock_quantity,
    validate_book_request,
)
from bookstore.services.categories import CategoryService

logger = logging.getLogger(__name__)

DUPLICATE_TITLE_AUTHOR_MESSAGE = "A book with the same title and author already exists."


class BookService:
    """Single-book operations; listings go through BookQueryEngine."""

    def __init__(self, db: Session) -> None:
        self.db = db
        self.categories = CategoryService(db)

    def get(self, book_id: int) -> Book:
        book = self.db.get(Book, book_id)
        if book is None:
            raise NotFoundError(f"Book not found: {book_id}")
        return book

    def _isbn_taken(self, isbn: str, exclude_id: int | None = None) -> bool:
        stmt = select(Book.id).where(Book.isbn == isbn)
        if exclude_id is not None:
            stmt = stmt.where(Book.id != exclude_id)
        return self.db.scalar(stmt) is not None

    def _title_author_taken(self, title: str, author: str, exclude_id: int | None = None) -> bool:
        stmt = select(Book.id).where(
            func.lower(Book.title) == title.lower(),
            func.lower(Book.author) == author.lower(),
        )
        if exclude_id is not None:
            stmt = stmt.where(Book.id != exclude_id)
        return self.db.scalar(stmt) is not None

    def _check_duplicates(self, values: dict, title: str, author: str, exclude_id=None) -> None:
        isbn = values.get("isbn")
        if isbn is not None and self._isbn_taken(isbn, exclude_id):
            raise ConflictError(f"ISBN is already registered: {isbn}")
        if self._title_author_taken(title, author, exclude_id):
            raise ConflictError(DUPLICATE_TITLE_AUTHOR_MESSAGE)

    def _commit(self) -> None:
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            logger.warning("Book write hit a unique constraint: %s", e)
            raise ConflictError("Book conflicts with an existing record.") from e

    def create(self, body: BookRequest) -> Book:
        values = validate_book_request(body, creating=True)
        self.categories.require(values["category_id"])
        self._check_duplicates(values, values["title"], values["author"])

        book = Book(**values)
        self.db.add(book)
        self._commit()
        self.db.refresh(book)
        logger.info("Created book id=%s title=%s", book.id, book.title)
        return book

    def update(self, book_id: int, body: BookRequest) -> Book:
        book = self.get(book_id)
        values = validate_book_request(body, creating=False)
        if values.get("category_id") is not None:
            self.categories.require(values["category_id"])
        title = values.get("title", book.title)
        author = values.get("author", book.author)
        self._check_duplicates(values, title, author, exclude_id=book_id)

        for name, value in values.items():
            setattr(book, name, value)
        self._commit()
        self.db.refresh(book)
        logger.info("Updated book id=%s fields=%s", book.id, sorted(values))
        return book

    def delete(self, book_id: int) -> None:
        book = self.get(book_id)
        self.db.delete(book)
        self.db.commit()
        logger.info("Deleted book id=%s", book_id)

    def set_stock(self, book_id: int, quantity: int) -> Book:
        check_stock_quantity(quantity)
        book = self.get(book_id)
        old_stock = book.stock
        book.stock = quantity
        self.db.commit()
        self.db.refresh(book)
        logger.info("Stock set for book id=%s: %s -> %s", book_id, old_stock, quantity)
        return book

    def increase_stock(self, book_id: int, quantity: int) -> Book:
        check_stock_change(quantity, "increase")
        book = self.get(book_id)
        new_stock = book.stock + quantity
        if new_stock > MAX_STOCK:
            raise InvalidInputError(f"Stock cannot exceed {MAX_STOCK}.")
        book.stock = new_stock
        self.db.commit()
        self.db.refresh(book)
        logger.info("Stock increased for book id=%s by %s to %s", book_id, quantity, new_stock)
        return book

    def decrease_stock(self, book_id: int, quantity: int) -> Book:
        check_stock_change(quantity, "decrease")
        book = self.get(book_id)
        if book.stock < quantity:
            logger.warning(
                "Insufficient stock for book id=%s: have %s, requested %s",
                book_id,
                book.stock,
                quantity,
            )
            raise InsufficientStockError(book.stock, quantity)
        book.stock -= quantity
        self.db.commit()
        self.db.refresh(book)
        logger.info("Stock decreased for book id=%s by %s to %s", book_id, quantity, book.stock)
        return book
