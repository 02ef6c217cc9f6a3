"""API routes."""

from fastapi import APIRouter

from bookstore.api.routes import auth, books, categories, health, users

router = APIRouter()
router.include_router(auth.router, prefix="/auth", tags=["auth"])
router.include_router(books.router, prefix="/books", tags=["books"])
router.include_router(categories.router, prefix="/categories", tags=["categories"])
router.include_router(users.router, prefix="/users", tags=["users"])

health_router = health.router
