"""Category CRUD, with book counts computed through the catalog store."""

import logging

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from bookstore.core.exceptions import ConflictError, NotFoundError
from bookstore.models import Book, Category
from bookstore.schemas.category import CategoryRequest, CategoryResponse
from bookstore.services.catalog_store import BookPredicate, SqlBookCatalogStore

logger = logging.getLogger(__name__)


class CategoryService:
    def __init__(self, db: Session) -> None:
        self.db = db
        self.store = SqlBookCatalogStore(db)

    def require(self, category_id: int) -> Category:
        category = self.db.get(Category, category_id)
        if category is None:
            raise NotFoundError(f"Category not found: {category_id}")
        return category

    def _name_taken(self, name: str, exclude_id: int | None = None) -> bool:
        stmt = select(Category.id).where(func.lower(Category.name) == name.lower())
        if exclude_id is not None:
            stmt = stmt.where(Category.id != exclude_id)
        return self.db.scalar(stmt) is not None

    def book_count(self, category_id: int) -> int:
        return self.store.count(BookPredicate(category_id=category_id))

    def to_response(self, category: Category) -> CategoryResponse:
        return CategoryResponse(
            id=category.id,
            name=category.name,
            description=category.description,
            book_count=self.book_count(category.id),
            created_at=category.created_at,
        )

    def list_all(self) -> list[CategoryResponse]:
        categories = self.db.scalars(select(Category).order_by(Category.name))
        return [self.to_response(c) for c in categories]

    def get(self, category_id: int) -> CategoryResponse:
        return self.to_response(self.require(category_id))

    def search(self, name: str | None) -> list[CategoryResponse]:
        """Categories whose name contains `name` (case-insensitive); blank lists all."""
        if name is None or not name.strip():
            return self.list_all()
        stmt = (
            select(Category)
            .where(func.lower(Category.name).contains(name.strip().lower(), autoescape=True))
            .order_by(Category.name)
        )
        return [self.to_response(c) for c in self.db.scalars(stmt)]

    def list_with_books(self) -> list[CategoryResponse]:
        stmt = (
            select(Category)
            .where(select(Book.id).where(Book.category_id == Category.id).exists())
            .order_by(Category.name)
        )
        return [self.to_response(c) for c in self.db.scalars(stmt)]

    def _commit(self, name: str) -> None:
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise ConflictError(f"Category already exists: {name}") from e

    def create(self, body: CategoryRequest) -> CategoryResponse:
        if self._name_taken(body.name):
            raise ConflictError(f"Category already exists: {body.name}")
        category = Category(name=body.name, description=body.description)
        self.db.add(category)
        self._commit(body.name)
        self.db.refresh(category)
        logger.info("Created category id=%s name=%s", category.id, category.name)
        return self.to_response(category)

    def update(self, category_id: int, body: CategoryRequest) -> CategoryResponse:
        category = self.require(category_id)
        if self._name_taken(body.name, exclude_id=category_id):
            raise ConflictError(f"Category already exists: {body.name}")
        category.name = body.name
        category.description = body.description
        self._commit(body.name)
        self.db.refresh(category)
        logger.info("Updated category id=%s", category.id)
        return self.to_response(category)

    def delete(self, category_id: int) -> None:
        category = self.require(category_id)
        count = self.book_count(category_id)
        if count > 0:
            logger.warning(
                "Refused to delete category id=%s with %s book(s)", category_id, count
            )
            raise ConflictError(
                f"Cannot delete a category that still has books ({count})."
            )
        self.db.delete(category)
        self.db.commit()
        logger.info("Deleted category id=%s", category_id)
