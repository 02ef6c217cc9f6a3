"""SQLAlchemy ORM models."""

from bookstore.models.base import Base
from bookstore.models.book import Book
from bookstore.models.category import Category
from bookstore.models.user import Role, User

__all__ = ["Base", "Book", "Category", "Role", "User"]
