"""Unit tests for bookstore.services.filtering: normalization, validation, sort resolution, paging."""

import unittest
from decimal import Decimal
from types import MappingProxyType
from unittest.mock import MagicMock

from bookstore.core.exceptions import InvalidInputError
from bookstore.services.catalog_store import (
    BookPredicate,
    PageWindow,
    SortDirection,
    SortField,
    SortOrder,
)
from bookstore.services.filtering import (
    EMPTY_KEYWORD_MESSAGE,
    BookQueryEngine,
    Page,
    RawBookFilter,
    build_sort_field_table,
)


def _engine(books=None, total: int = 0) -> tuple[BookQueryEngine, MagicMock]:
    store = MagicMock()
    store.find_page.return_value = (list(books or []), total)
    store.find_top.return_value = list(books or [])
    return BookQueryEngine(store, build_sort_field_table()), store


class TestSortFieldTable(unittest.TestCase):
    def test_table_is_read_only(self) -> None:
        table = build_sort_field_table()
        self.assertIsInstance(table, MappingProxyType)
        with self.assertRaises(TypeError):
            table["rating"] = SortField.PRICE  # type: ignore[index]

    def test_synonyms_resolve_to_canonical_fields(self) -> None:
        engine, _ = _engine()
        cases = {
            "title": SortField.TITLE,
            "제목": SortField.TITLE,
            "  Author ": SortField.AUTHOR,
            "가격": SortField.PRICE,
            "재고": SortField.STOCK,
            "createdAt": SortField.CREATED_AT,
            "created_at": SortField.CREATED_AT,
            "등록일": SortField.CREATED_AT,
            "PUBLICATIONDATE": SortField.PUBLICATION_DATE,
            "출판일": SortField.PUBLICATION_DATE,
            "page_count": SortField.PAGE_COUNT,
            "페이지수": SortField.PAGE_COUNT,
        }
        for raw, expected in cases.items():
            with self.subTest(raw=raw):
                spec = engine.build_filter_spec(RawBookFilter(sort_by=raw), 0, 10)
                self.assertEqual(spec.sort.field, expected)


class TestBuildFilterSpec(unittest.TestCase):
    def test_defaults(self) -> None:
        engine, _ = _engine()
        spec = engine.build_filter_spec(RawBookFilter(), 0, 10)
        self.assertEqual(spec.predicate, BookPredicate())
        self.assertEqual(spec.sort, SortOrder(SortField.CREATED_AT, SortDirection.DESC))
        self.assertEqual(spec.window, PageWindow(0, 10))

    def test_blank_text_criteria_are_absent(self) -> None:
        engine, _ = _engine()
        spec = engine.build_filter_spec(
            RawBookFilter(title="   ", author="", min_price=" ", sort_by=" "), 0, 10
        )
        self.assertIsNone(spec.predicate.title_contains)
        self.assertIsNone(spec.predicate.author_contains)
        self.assertIsNone(spec.predicate.min_price)
        self.assertEqual(spec.sort.field, SortField.CREATED_AT)

    def test_criteria_are_trimmed_and_parsed(self) -> None:
        engine, _ = _engine()
        spec = engine.build_filter_spec(
            RawBookFilter(
                title="  Python ",
                author=" Kim",
                category_id=3,
                min_price="10000",
                max_price=" 25000.50 ",
                in_stock_only=True,
                sort_by="price",
                sort_direction=" ASC ",
            ),
            2,
            20,
        )
        self.assertEqual(
            spec.predicate,
            BookPredicate(
                title_contains="Python",
                author_contains="Kim",
                category_id=3,
                min_price=Decimal("10000"),
                max_price=Decimal("25000.50"),
                in_stock_only=True,
            ),
        )
        self.assertEqual(spec.sort, SortOrder(SortField.PRICE, SortDirection.ASC))
        self.assertEqual(spec.window.offset, 40)

    def test_unknown_direction_falls_back_to_desc(self) -> None:
        engine, _ = _engine()
        for raw in (None, "", "descending", "up"):
            with self.subTest(raw=raw):
                spec = engine.build_filter_spec(RawBookFilter(sort_direction=raw), 0, 10)
                self.assertEqual(spec.sort.direction, SortDirection.DESC)

    def test_equal_min_and_max_price_allowed(self) -> None:
        engine, _ = _engine()
        spec = engine.build_filter_spec(RawBookFilter(min_price="50", max_price="50"), 0, 10)
        self.assertEqual(spec.predicate.min_price, spec.predicate.max_price)


class TestValidationErrors(unittest.TestCase):
    def _errors(self, raw: RawBookFilter, page: int = 0, size: int = 10) -> InvalidInputError:
        engine, store = _engine()
        with self.assertRaises(InvalidInputError) as ctx:
            engine.filter_books(raw, page, size)
        store.find_page.assert_not_called()
        return ctx.exception

    def test_min_greater_than_max(self) -> None:
        err = self._errors(RawBookFilter(min_price="100", max_price="50"))
        self.assertEqual(err.status_code, 400)
        self.assertIn("minPrice", err.field_errors)
        self.assertEqual(err.message, err.field_errors["minPrice"])

    def test_negative_price(self) -> None:
        err = self._errors(RawBookFilter(max_price="-1"))
        self.assertIn("maxPrice", err.field_errors)

    def test_unparseable_price(self) -> None:
        for raw in ("abc", "12,000", "NaN", "Infinity"):
            with self.subTest(raw=raw):
                err = self._errors(RawBookFilter(min_price=raw))
                self.assertEqual(err.field_errors, {"minPrice": "Invalid price format."})

    def test_max_price_ceiling(self) -> None:
        self._errors(RawBookFilter(max_price="10000000.01"))

    def test_unknown_sort_field(self) -> None:
        err = self._errors(RawBookFilter(sort_by="rating"))
        self.assertIn("sortBy", err.field_errors)

    def test_page_bounds(self) -> None:
        self.assertIn("page", self._errors(RawBookFilter(), page=-1).field_errors)
        self.assertIn("size", self._errors(RawBookFilter(), size=0).field_errors)
        self.assertIn("size", self._errors(RawBookFilter(), size=101).field_errors)

    def test_non_positive_category(self) -> None:
        self.assertIn("categoryId", self._errors(RawBookFilter(category_id=0)).field_errors)

    def test_all_failures_reported_together(self) -> None:
        err = self._errors(
            RawBookFilter(min_price="x", max_price="-5", sort_by="rating"), page=-1
        )
        self.assertEqual(set(err.field_errors), {"minPrice", "maxPrice", "sortBy", "page"})


class TestSearch(unittest.TestCase):
    def test_blank_keyword_rejected_without_query(self) -> None:
        for keyword in (None, "", "   "):
            with self.subTest(keyword=keyword):
                engine, store = _engine()
                with self.assertRaises(InvalidInputError) as ctx:
                    engine.search(keyword)
                self.assertEqual(ctx.exception.message, EMPTY_KEYWORD_MESSAGE)
                store.find_page.assert_not_called()

    def test_keyword_too_long(self) -> None:
        engine, store = _engine()
        with self.assertRaises(InvalidInputError):
            engine.search("x" * 101)
        store.find_page.assert_not_called()

    def test_keyword_matches_title_or_author(self) -> None:
        engine, store = _engine()
        engine.search("  tolkien ", 1, 5, sort_by="title", sort_direction="asc")
        predicate, sort, window = store.find_page.call_args.args
        self.assertEqual(predicate, BookPredicate(keyword="tolkien"))
        self.assertEqual(sort, SortOrder(SortField.TITLE, SortDirection.ASC))
        self.assertEqual(window, PageWindow(1, 5))


class TestOtherEntryPoints(unittest.TestCase):
    def test_list_books_uses_empty_predicate(self) -> None:
        engine, store = _engine()
        engine.list_books()
        self.assertEqual(store.find_page.call_args.args[0], BookPredicate())

    def test_books_in_category(self) -> None:
        engine, store = _engine()
        engine.books_in_category(4)
        self.assertEqual(store.find_page.call_args.args[0], BookPredicate(category_id=4))

    def test_bestsellers_and_latest(self) -> None:
        engine, store = _engine()
        engine.bestsellers()
        store.find_top.assert_called_with(SortOrder(SortField.STOCK, SortDirection.DESC), 10)
        engine.latest()
        store.find_top.assert_called_with(
            SortOrder(SortField.CREATED_AT, SortDirection.DESC), 10
        )


class TestPageEnvelope(unittest.TestCase):
    def test_counts_and_flags(self) -> None:
        engine, _ = _engine(books=["b1", "b2", "b3"], total=23)
        page = engine.filter_books(RawBookFilter(), 1, 10)
        self.assertEqual(page.total_pages, 3)
        self.assertFalse(page.is_first)
        self.assertFalse(page.is_last)
        self.assertFalse(page.is_empty)

    def test_last_page(self) -> None:
        page = Page(content=["x"], page_number=2, page_size=10, total_elements=23)
        self.assertTrue(page.is_last)

    def test_empty_result(self) -> None:
        page = Page(content=[], page_number=0, page_size=10, total_elements=0)
        self.assertEqual(page.total_pages, 0)
        self.assertTrue(page.is_first)
        self.assertTrue(page.is_last)
        self.assertTrue(page.is_empty)

    def test_page_past_the_end_is_empty_and_last(self) -> None:
        page = Page(content=[], page_number=9, page_size=10, total_elements=15)
        self.assertTrue(page.is_last)
        self.assertTrue(page.is_empty)

    def test_map_keeps_counts(self) -> None:
        page = Page(content=[1, 2], page_number=0, page_size=2, total_elements=5)
        envelope = page.map(str).envelope()
        self.assertEqual(envelope["content"], ["1", "2"])
        self.assertEqual(envelope["total_pages"], 3)
        self.assertTrue(envelope["is_first"])


if __name__ == "__main__":
    unittest.main()
