"""Category endpoints."""

from fastapi import APIRouter, status

from bookstore.api.deps import Categories
from bookstore.schemas.category import CategoryRequest, CategoryResponse
from bookstore.schemas.common import ApiResponse

router = APIRouter()


@router.get("", response_model=ApiResponse[list[CategoryResponse]])
def list_categories(categories: Categories) -> ApiResponse[list[CategoryResponse]]:
    return ApiResponse.ok(categories.list_all())


@router.get("/search", response_model=ApiResponse[list[CategoryResponse]])
def search_categories(
    categories: Categories, name: str | None = None
) -> ApiResponse[list[CategoryResponse]]:
    return ApiResponse.ok(categories.search(name))


@router.get("/with-books", response_model=ApiResponse[list[CategoryResponse]])
def categories_with_books(categories: Categories) -> ApiResponse[list[CategoryResponse]]:
    return ApiResponse.ok(categories.list_with_books())


@router.get("/{category_id}", response_model=ApiResponse[CategoryResponse])
def get_category(category_id: int, categories: Categories) -> ApiResponse[CategoryResponse]:
    return ApiResponse.ok(categories.get(category_id))


@router.post(
    "",
    response_model=ApiResponse[CategoryResponse],
    status_code=status.HTTP_201_CREATED,
)
def create_category(body: CategoryRequest, categories: Categories) -> ApiResponse[CategoryResponse]:
    return ApiResponse.ok(categories.create(body), "Category created.")


@router.put("/{category_id}", response_model=ApiResponse[CategoryResponse])
def update_category(
    category_id: int, body: CategoryRequest, categories: Categories
) -> ApiResponse[CategoryResponse]:
    return ApiResponse.ok(categories.update(category_id, body), "Category updated.")


@router.delete("/{category_id}", response_model=ApiResponse[None])
def delete_category(category_id: int, categories: Categories) -> ApiResponse[None]:
    """Refused with 409 while any book still references the category."""
    categories.delete(category_id)
    return ApiResponse.ok(message="Category deleted.")
