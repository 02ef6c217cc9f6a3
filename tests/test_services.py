"""Integration tests for the catalog store and book/category/user services on in-memory SQLite."""

import io
import unittest
from contextlib import redirect_stderr, redirect_stdout
from datetime import UTC, datetime, timedelta
from decimal import Decimal
from unittest.mock import MagicMock, patch

from sqlalchemy import create_engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from bookstore.core.exceptions import (
    AuthenticationRequiredError,
    ConflictError,
    InsufficientStockError,
    InvalidInputError,
    NotFoundError,
    StoreError,
)
from bookstore.core.tokens import TokenCodec
from bookstore.models import Base, Book, Category
from bookstore.schemas.auth import RegisterRequest, UpdateUserRequest
from bookstore.schemas.book import BookRequest
from bookstore.schemas.category import CategoryRequest
from bookstore.scripts import create_user
from bookstore.services.books import BookService
from bookstore.services.catalog_store import (
    BookPredicate,
    PageWindow,
    SortDirection,
    SortField,
    SortOrder,
    SqlBookCatalogStore,
)
from bookstore.services.categories import CategoryService
from bookstore.services.users import UserService

SECRET = "services-test-secret-key-with-32-plus-characters"


class _DbTestCase(unittest.TestCase):
    """Fresh in-memory database per test."""

    def setUp(self) -> None:
        self.engine = create_engine(
            "sqlite://",
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
        Base.metadata.create_all(self.engine)
        self.db = sessionmaker(bind=self.engine, autoflush=False)()

    def tearDown(self) -> None:
        self.db.close()
        Base.metadata.drop_all(self.engine)
        self.engine.dispose()

    def _category(self, name: str = "Programming") -> Category:
        category = Category(name=name)
        self.db.add(category)
        self.db.commit()
        return category

    def _book(self, title: str, author: str, price: str, stock: int, category=None, **kw) -> Book:
        book = Book(
            title=title,
            author=author,
            price=Decimal(price),
            stock=stock,
            category_id=category.id if category else None,
            **kw,
        )
        self.db.add(book)
        self.db.commit()
        return book


class TestCatalogStore(_DbTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.programming = self._category("Programming")
        self.fiction = self._category("Fiction")
        base = datetime(2026, 1, 1, tzinfo=UTC)
        self._book("Python Crash Course", "Eric Matthes", "30000", 5, self.programming,
                   created_at=base)
        self._book("Fluent Python", "Luciano Ramalho", "45000", 0, self.programming,
                   created_at=base + timedelta(days=1))
        self._book("The Hobbit", "J.R.R. Tolkien", "12000", 12, self.fiction,
                   created_at=base + timedelta(days=2))
        self._book("Python_Tricks 100%", "Dan Bader", "20000", 3, self.programming,
                   created_at=base + timedelta(days=3))
        self.store = SqlBookCatalogStore(self.db)
        self.by_price = SortOrder(SortField.PRICE, SortDirection.ASC)

    def _titles(self, predicate: BookPredicate, sort=None, window=PageWindow(0, 10)):
        books, total = self.store.find_page(predicate, sort or self.by_price, window)
        return [b.title for b in books], total

    def test_title_contains_is_case_insensitive(self) -> None:
        titles, total = self._titles(BookPredicate(title_contains="PYTHON"))
        self.assertEqual(total, 3)
        self.assertEqual(titles, ["Python_Tricks 100%", "Python Crash Course", "Fluent Python"])

    def test_keyword_matches_author_too(self) -> None:
        titles, _ = self._titles(BookPredicate(keyword="tolkien"))
        self.assertEqual(titles, ["The Hobbit"])

    def test_like_wildcards_are_literal(self) -> None:
        titles, _ = self._titles(BookPredicate(title_contains="100%"))
        self.assertEqual(titles, ["Python_Tricks 100%"])
        titles, _ = self._titles(BookPredicate(title_contains="n_t"))
        self.assertEqual(titles, ["Python_Tricks 100%"])

    def test_price_range_and_stock(self) -> None:
        titles, _ = self._titles(
            BookPredicate(min_price=Decimal("15000"), max_price=Decimal("45000"), in_stock_only=True)
        )
        self.assertEqual(titles, ["Python_Tricks 100%", "Python Crash Course"])

    def test_category(self) -> None:
        _, total = self._titles(BookPredicate(category_id=self.fiction.id))
        self.assertEqual(total, 1)

    def test_paging_and_total(self) -> None:
        titles, total = self._titles(BookPredicate(), window=PageWindow(1, 3))
        self.assertEqual(total, 4)
        self.assertEqual(titles, ["Fluent Python"])

    def test_default_sort_newest_first(self) -> None:
        sort = SortOrder(SortField.CREATED_AT, SortDirection.DESC)
        titles, _ = self._titles(BookPredicate(), sort=sort)
        self.assertEqual(titles[0], "Python_Tricks 100%")

    def test_find_top_by_stock(self) -> None:
        top = self.store.find_top(SortOrder(SortField.STOCK, SortDirection.DESC), 2)
        self.assertEqual([b.title for b in top], ["The Hobbit", "Python Crash Course"])

    def test_count(self) -> None:
        self.assertEqual(self.store.count(BookPredicate(category_id=self.programming.id)), 3)

    def test_database_failure_becomes_store_error(self) -> None:
        session = MagicMock()
        session.scalar.side_effect = OperationalError("SELECT", {}, Exception("down"))
        with self.assertRaises(StoreError) as ctx:
            SqlBookCatalogStore(session).find_page(BookPredicate(), self.by_price, PageWindow(0, 10))
        self.assertEqual(ctx.exception.status_code, 500)


class TestBookService(_DbTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.category = self._category()
        self.books = BookService(self.db)

    def _create(self, **overrides) -> Book:
        fields = {
            "title": "Clean Code",
            "author": "Robert Martin",
            "price": Decimal("33000"),
            "stock": 10,
            "isbn": "978-0-306-40615-7",
            "category_id": self.category.id,
        }
        fields.update(overrides)
        return self.books.create(BookRequest(**fields))

    def test_create_normalizes_isbn(self) -> None:
        book = self._create()
        self.assertEqual(book.isbn, "9780306406157")
        self.assertEqual(book.category.name, "Programming")

    def test_missing_category(self) -> None:
        with self.assertRaises(NotFoundError):
            self._create(category_id=999)

    def test_duplicate_isbn(self) -> None:
        self._create()
        with self.assertRaises(ConflictError):
            self._create(title="Other", author="Someone", isbn="9780306406157")

    def test_duplicate_title_author_case_insensitive(self) -> None:
        self._create()
        with self.assertRaises(ConflictError):
            self._create(title="CLEAN CODE", author="robert martin", isbn=None)

    def test_partial_update(self) -> None:
        book = self._create()
        updated = self.books.update(book.id, BookRequest(price=Decimal("29000")))
        self.assertEqual(updated.price, Decimal("29000"))
        self.assertEqual(updated.title, "Clean Code")
        self.assertEqual(updated.stock, 10)

    def test_update_to_existing_isbn(self) -> None:
        self._create()
        other = self._create(title="Refactoring", author="Martin Fowler", isbn="0306406152")
        with self.assertRaises(ConflictError):
            self.books.update(other.id, BookRequest(isbn="9780306406157"))

    def test_update_keeps_own_isbn(self) -> None:
        book = self._create()
        updated = self.books.update(book.id, BookRequest(isbn="9780306406157", stock=3))
        self.assertEqual(updated.stock, 3)

    def test_delete(self) -> None:
        book = self._create()
        self.books.delete(book.id)
        with self.assertRaises(NotFoundError):
            self.books.get(book.id)

    def test_stock_operations(self) -> None:
        book = self._create(stock=10)
        self.assertEqual(self.books.increase_stock(book.id, 5).stock, 15)
        self.assertEqual(self.books.decrease_stock(book.id, 15).stock, 0)
        self.assertEqual(self.books.set_stock(book.id, 100000).stock, 100000)
        with self.assertRaises(InvalidInputError):
            self.books.increase_stock(book.id, 1)

    def test_decrease_below_zero(self) -> None:
        book = self._create(stock=2)
        with self.assertRaises(InsufficientStockError) as ctx:
            self.books.decrease_stock(book.id, 3)
        self.assertEqual(ctx.exception.status_code, 400)
        self.assertEqual(ctx.exception.current_stock, 2)
        self.assertEqual(self.books.get(book.id).stock, 2)


class TestCategoryService(_DbTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.categories = CategoryService(self.db)

    def test_create_and_count(self) -> None:
        created = self.categories.create(CategoryRequest(name="Science", description="Physics"))
        self._book("Cosmos", "Carl Sagan", "18000", 4, self.db.get(Category, created.id))
        self.assertEqual(self.categories.get(created.id).book_count, 1)

    def test_duplicate_name(self) -> None:
        self.categories.create(CategoryRequest(name="Science"))
        with self.assertRaises(ConflictError):
            self.categories.create(CategoryRequest(name="science"))

    def test_delete_with_books_refused(self) -> None:
        category = self._category("History")
        self._book("SPQR", "Mary Beard", "25000", 1, category)
        with self.assertRaises(ConflictError):
            self.categories.delete(category.id)

    def test_delete_empty(self) -> None:
        category = self._category("Poetry")
        self.categories.delete(category.id)
        with self.assertRaises(NotFoundError):
            self.categories.get(category.id)

    def test_search_and_with_books(self) -> None:
        science = self._category("Science")
        self._category("Social Science")
        self._category("Art")
        self._book("Cosmos", "Carl Sagan", "18000", 4, science)
        self.assertEqual(
            [c.name for c in self.categories.search("SCIENCE")], ["Science", "Social Science"]
        )
        self.assertEqual([c.name for c in self.categories.list_with_books()], ["Science"])


class TestUserService(_DbTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.users = UserService(self.db)
        self.codec = TokenCodec(secret=SECRET)
        self.alice = self.users.register(
            RegisterRequest(username="alice", email="A@X.com", password="secret1")
        )

    def test_register_defaults(self) -> None:
        self.assertEqual(self.alice.role, "USER")
        self.assertTrue(self.alice.is_active)
        self.assertEqual(self.alice.email, "a@x.com")
        self.assertNotEqual(self.alice.password_hash, "secret1")

    def test_duplicates(self) -> None:
        with self.assertRaises(ConflictError):
            self.users.register(RegisterRequest(username="alice", email="b@x.com", password="secret1"))
        with self.assertRaises(ConflictError):
            self.users.register(RegisterRequest(username="bob", email="a@x.com", password="secret1"))

    def test_login_messages(self) -> None:
        with self.assertRaises(AuthenticationRequiredError) as ctx:
            self.users.login("nobody", "secret1", self.codec)
        self.assertEqual(ctx.exception.message, "User not found.")
        with self.assertRaises(AuthenticationRequiredError) as ctx:
            self.users.login("alice", "wrong-pw", self.codec)
        self.assertEqual(ctx.exception.message, "Password does not match.")

    def test_login_and_refresh(self) -> None:
        auth = self.users.login("alice", "secret1", self.codec)
        self.assertEqual(auth.expires_in, 3600)
        refreshed = self.users.refresh(auth.refresh_token, self.codec)
        self.assertEqual(refreshed.user.username, "alice")
        with self.assertRaises(AuthenticationRequiredError):
            self.users.refresh(auth.access_token, self.codec)
        with self.assertRaises(InvalidInputError):
            self.users.refresh("  ", self.codec)

    def test_availability(self) -> None:
        self.assertFalse(self.users.check_username_available("alice"))
        self.assertTrue(self.users.check_username_available("bob"))
        self.assertFalse(self.users.check_email_available("a@x.com"))
        with self.assertRaises(InvalidInputError):
            self.users.check_email_available("not-an-email")
        with self.assertRaises(InvalidInputError):
            self.users.check_username_available(" ")

    def test_liveness(self) -> None:
        self.assertTrue(self.users.is_live(self.alice.id))
        self.assertFalse(self.users.is_live(9999))
        self.alice.is_active = False
        self.db.commit()
        self.assertFalse(self.users.is_live(self.alice.id))

    def test_update_profile(self) -> None:
        self.users.register(RegisterRequest(username="bob", email="b@x.com", password="secret1"))
        with self.assertRaises(ConflictError):
            self.users.update_profile(self.alice.id, UpdateUserRequest(email="b@x.com"))
        self.users.update_profile(self.alice.id, UpdateUserRequest(password="newpass1"))
        self.assertEqual(self.users.login("alice", "newpass1", self.codec).user.id, self.alice.id)


class TestCreateUserScript(_DbTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.Session = sessionmaker(bind=self.engine, autoflush=False)

    def _run(self, *argv: str) -> int:
        with patch("bookstore.scripts.create_user.SessionLocal", self.Session):
            with redirect_stdout(io.StringIO()), redirect_stderr(io.StringIO()):
                return create_user.main(list(argv))

    def test_creates_admin(self) -> None:
        self.assertEqual(self._run("root", "root@x.com", "rootpass", "admin"), 0)
        with self.Session() as db:
            user = UserService(db).get_by_username("root")
            self.assertEqual(user.role, "ADMIN")

    def test_rejects_duplicate_and_invalid_input(self) -> None:
        self.assertEqual(self._run("root", "root@x.com", "rootpass"), 0)
        self.assertEqual(self._run("root", "other@x.com", "rootpass"), 1)
        self.assertEqual(self._run("x", "bad", "1"), 1)


if __name__ == "__main__":
    unittest.main()
