"""Book catalog endpoints: listing, search, filtering, CRUD and stock."""

from typing import Annotated

from fastapi import APIRouter, Query, status

from bookstore.api.deps import Books, QueryEngine
from bookstore.schemas.book import BookListItem, BookRequest, BookResponse
from bookstore.schemas.common import ApiResponse, PageResponse
from bookstore.services.filtering import DEFAULT_PAGE, DEFAULT_PAGE_SIZE, Page, RawBookFilter

router = APIRouter()

PageNumber = Annotated[int, Query(description="Zero-based page number")]
PageSize = Annotated[int, Query(description="Page size (1-100)")]
SortBy = Annotated[str | None, Query(alias="sortBy")]
SortDirection = Annotated[str | None, Query(alias="sortDirection")]


def _page_response(page: Page) -> PageResponse[BookListItem]:
    return PageResponse[BookListItem](**page.map(BookListItem.from_book).envelope())


@router.get("", response_model=ApiResponse[PageResponse[BookListItem]])
def list_books(
    engine: QueryEngine,
    page: PageNumber = DEFAULT_PAGE,
    size: PageSize = DEFAULT_PAGE_SIZE,
    sort_by: SortBy = None,
    sort_direction: SortDirection = None,
) -> ApiResponse[PageResponse[BookListItem]]:
    result = engine.list_books(page, size, sort_by, sort_direction)
    return ApiResponse.ok(_page_response(result))


@router.get("/search", response_model=ApiResponse[PageResponse[BookListItem]])
def search_books(
    engine: QueryEngine,
    keyword: str | None = None,
    page: PageNumber = DEFAULT_PAGE,
    size: PageSize = DEFAULT_PAGE_SIZE,
    sort_by: SortBy = None,
    sort_direction: SortDirection = None,
) -> ApiResponse[PageResponse[BookListItem]]:
    """Books whose title or author contains the keyword."""
    result = engine.search(keyword, page, size, sort_by, sort_direction)
    message = "Search results found." if result.total_elements else "No search results."
    return ApiResponse.ok(_page_response(result), message)


@router.get("/filter", response_model=ApiResponse[PageResponse[BookListItem]])
def filter_books(
    engine: QueryEngine,
    title: str | None = None,
    author: str | None = None,
    category_id: Annotated[int | None, Query(alias="categoryId")] = None,
    min_price: Annotated[str | None, Query(alias="minPrice")] = None,
    max_price: Annotated[str | None, Query(alias="maxPrice")] = None,
    in_stock_only: Annotated[bool | None, Query(alias="inStockOnly")] = None,
    sort_by: SortBy = None,
    sort_direction: SortDirection = None,
    page: PageNumber = DEFAULT_PAGE,
    size: PageSize = DEFAULT_PAGE_SIZE,
) -> ApiResponse[PageResponse[BookListItem]]:
    """
    Combined filter: title/author substrings, category, price range, in-stock only.
    Invalid criteria are reported together as a 400 with a field -> message map.
    """
    raw = RawBookFilter(
        title=title,
        author=author,
        category_id=category_id,
        min_price=min_price,
        max_price=max_price,
        in_stock_only=in_stock_only,
        sort_by=sort_by,
        sort_direction=sort_direction,
    )
    result = engine.filter_books(raw, page, size)
    if result.total_elements:
        message = f"Found {result.total_elements} book(s)."
    else:
        message = "No books match the given criteria."
    return ApiResponse.ok(_page_response(result), message)


@router.get("/category/{category_id}", response_model=ApiResponse[PageResponse[BookListItem]])
def books_in_category(
    category_id: int,
    engine: QueryEngine,
    page: PageNumber = DEFAULT_PAGE,
    size: PageSize = DEFAULT_PAGE_SIZE,
    sort_by: SortBy = None,
    sort_direction: SortDirection = None,
) -> ApiResponse[PageResponse[BookListItem]]:
    result = engine.books_in_category(category_id, page, size, sort_by, sort_direction)
    return ApiResponse.ok(_page_response(result))


@router.get("/bestsellers", response_model=ApiResponse[list[BookListItem]])
def bestsellers(engine: QueryEngine) -> ApiResponse[list[BookListItem]]:
    """Top 10 books by stock."""
    return ApiResponse.ok([BookListItem.from_book(b) for b in engine.bestsellers()])


@router.get("/latest", response_model=ApiResponse[list[BookListItem]])
def latest(engine: QueryEngine) -> ApiResponse[list[BookListItem]]:
    """10 most recently added books."""
    return ApiResponse.ok([BookListItem.from_book(b) for b in engine.latest()])


@router.get("/{book_id}", response_model=ApiResponse[BookResponse])
def get_book(book_id: int, books: Books) -> ApiResponse[BookResponse]:
    return ApiResponse.ok(BookResponse.model_validate(books.get(book_id)))


@router.post(
    "",
    response_model=ApiResponse[BookResponse],
    status_code=status.HTTP_201_CREATED,
)
def create_book(body: BookRequest, books: Books) -> ApiResponse[BookResponse]:
    """Create a book (ADMIN)."""
    book = books.create(body)
    return ApiResponse.ok(BookResponse.model_validate(book), "Book created.")


@router.put("/{book_id}", response_model=ApiResponse[BookResponse])
def update_book(book_id: int, body: BookRequest, books: Books) -> ApiResponse[BookResponse]:
    """Partial update (ADMIN); omitted fields keep their values."""
    book = books.update(book_id, body)
    return ApiResponse.ok(BookResponse.model_validate(book), "Book updated.")


@router.delete("/{book_id}", response_model=ApiResponse[None])
def delete_book(book_id: int, books: Books) -> ApiResponse[None]:
    books.delete(book_id)
    return ApiResponse.ok(message="Book deleted.")


@router.put("/{book_id}/stock", response_model=ApiResponse[BookResponse])
def set_stock(book_id: int, quantity: int, books: Books) -> ApiResponse[BookResponse]:
    book = books.set_stock(book_id, quantity)
    return ApiResponse.ok(BookResponse.model_validate(book), "Stock updated.")


@router.post("/{book_id}/stock/increase", response_model=ApiResponse[BookResponse])
def increase_stock(book_id: int, quantity: int, books: Books) -> ApiResponse[BookResponse]:
    book = books.increase_stock(book_id, quantity)
    return ApiResponse.ok(BookResponse.model_validate(book), "Stock increased.")


@router.post("/{book_id}/stock/decrease", response_model=ApiResponse[BookResponse])
def decrease_stock(book_id: int, quantity: int, books: Books) -> ApiResponse[BookResponse]:
    book = books.decrease_stock(book_id, quantity)
    return ApiResponse.ok(BookResponse.model_validate(book), "Stock decreased.")
