"""Shared FastAPI dependencies for the route modules."""

from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from bookstore.core.database import get_db
from bookstore.core.gate import get_current_user
from bookstore.core.tokens import TokenCodec, get_token_codec
from bookstore.schemas.auth import CurrentUser
from bookstore.services.books import BookService
from bookstore.services.catalog_store import SqlBookCatalogStore
from bookstore.services.categories import CategoryService
from bookstore.services.filtering import BookQueryEngine
from bookstore.services.users import UserService

DbSession = Annotated[Session, Depends(get_db)]
Identity = Annotated[CurrentUser, Depends(get_current_user)]
Codec = Annotated[TokenCodec, Depends(get_token_codec)]


def get_query_engine(request: Request, db: DbSession) -> BookQueryEngine:
    """Engine over a per-request store, sharing the app-wide read-only sort table."""
    return BookQueryEngine(SqlBookCatalogStore(db), request.app.state.sort_fields)


def get_user_service(db: DbSession) -> UserService:
    return UserService(db)


def get_book_service(db: DbSession) -> BookService:
    return BookService(db)


def get_category_service(db: DbSession) -> CategoryService:
    return CategoryService(db)


QueryEngine = Annotated[BookQueryEngine, Depends(get_query_engine)]
Users = Annotated[UserService, Depends(get_user_service)]
Books = Annotated[BookService, Depends(get_book_service)]
Categories = Annotated[CategoryService, Depends(get_category_service)]
