from decimal import Decimal
from unittest.mock import MagicMock

import pytest

from library_catalog.book import Author, Reader
from library_catalog.database import BookStore
from library_catalog.library import (
    BookAlreadyLentError,
    BookNotFoundError,
    BookNotLentError,
    InvalidSortCriterionError,
    Library,
    SortCriterion,
)


@pytest.fixture
def mock_store():
    store = MagicMock(spec=BookStore)
    store.load.return_value = []
    store.save.return_value = True
    store.path = "memory.json"
    return store


def test_starts_empty(lib):
    assert lib.list_books() == []
    assert lib.get_statistics()["total_books"] == 0


def test_add_then_find(lib, author):
    book = lib.add_book("Dom Casmurro", author, 256, 1899, Decimal("29.90"))
    assert book is not None

    found = lib.find_book(book.id)
    assert found is book
    assert found.title == "Dom Casmurro"
    assert found.author == author
    assert found.pages == 256
    assert found.year == 1899
    assert found.price == Decimal("29.90")
    assert found.borrower is None


def test_add_duplicate_title_and_author(lib, author):
    assert lib.add_book("Dom Casmurro", author, 256, 1899, 10) is not None
    assert lib.add_book("Dom Casmurro", author, 999, 2020, 99) is None
    assert len(lib.list_books()) == 1


def test_duplicate_rejection_does_not_save(mock_store, author):
    lib = Library(store=mock_store)
    lib.add_book("Dom Casmurro", author, 256, 1899, 10)
    mock_store.save.reset_mock()

    assert lib.add_book("Dom Casmurro", author, 256, 1899, 10) is None
    mock_store.save.assert_not_called()


def test_same_title_other_author_is_allowed(lib, author):
    lib.add_book("Poemas", author, 100, 1900, 10)
    assert lib.add_book("Poemas", Author("Fernando Pessoa", "Portuguesa"), 100, 1900, 10) is not None
    assert len(lib.list_books()) == 2


def test_find_with_empty_or_unknown_id(lib, author):
    lib.add_book("Dom Casmurro", author, 256, 1899, 10)
    assert lib.find_book("") is None
    assert lib.find_book(None) is None
    assert lib.find_book("nonexistent") is None
    assert lib.index_of("") is None
    assert lib.index_of("nonexistent") is None


def test_index_of(lib, author):
    first = lib.add_book("A", author, 1, 2000, 1)
    second = lib.add_book("B", author, 1, 2000, 1)
    assert lib.index_of(first.id) == 0
    assert lib.index_of(second.id) == 1


def test_remove(lib, author):
    keep1 = lib.add_book("A", author, 1, 2000, 1)
    gone = lib.add_book("B", author, 1, 2000, 1)
    keep2 = lib.add_book("C", author, 1, 2000, 1)

    assert lib.remove_book("unknown") is False
    assert len(lib.list_books()) == 3

    assert lib.remove_book(gone.id) is True
    assert lib.list_books() == [keep1, keep2]
    assert lib.find_book(gone.id) is None
    assert lib.remove_book(gone.id) is False


def test_remove_unknown_does_not_save(mock_store):
    lib = Library(store=mock_store)
    assert lib.remove_book("unknown") is False
    mock_store.save.assert_not_called()


def test_edit_overwrites_all_fields(lib, author, reader):
    book = lib.add_book("Old Title", author, 100, 1900, 10)
    new_author = Author("Fernando Pessoa", "Portuguesa")

    assert lib.edit_book(book.id, "New Title", new_author, 200, 1934, "15.50", reader) is True
    edited = lib.find_book(book.id)
    assert edited.id == book.id
    assert edited.title == "New Title"
    assert edited.author == new_author
    assert (edited.pages, edited.year, edited.price) == (200, 1934, Decimal("15.50"))
    assert edited.borrower == reader


def test_edit_not_found(mock_store, author):
    lib = Library(store=mock_store)
    assert lib.edit_book("nonexistent", "T", author, 1, 2000, 1) is False
    mock_store.save.assert_not_called()


def test_edit_with_bad_value_leaves_book_untouched(mock_store, author, reader):
    lib = Library(store=mock_store)
    book = lib.add_book("Old Title", author, 100, 1900, 10)
    mock_store.save.reset_mock()

    with pytest.raises(ValueError):
        lib.edit_book(book.id, "New Title", Author("Fernando Pessoa", "Portuguesa"), "abc", 1934, 1, reader)
    with pytest.raises(ValueError):
        lib.edit_book(book.id, "New Title", author, 200, 1934, "-5", reader)

    assert (book.title, book.author, book.pages, book.year) == ("Old Title", author, 100, 1900)
    assert book.price == Decimal("10")
    assert book.borrower is None
    mock_store.save.assert_not_called()


def test_edit_persists(lib, store, author):
    book = lib.add_book("Old Title", author, 100, 1900, 10)
    lib.edit_book(book.id, "New Title", author, 100, 1900, 10)

    lib2 = Library(store=store)
    assert lib2.find_book(book.id).title == "New Title"


def test_loan_through_edit(lib, author, reader):
    book = lib.add_book("Dom Casmurro", author, 256, 1899, 10)
    lib.edit_book(book.id, book.title, book.author, book.pages, book.year, book.price, reader)
    assert lib.books_borrowed_by(reader) == [book]

    lib.edit_book(book.id, book.title, book.author, book.pages, book.year, book.price, None)
    assert lib.books_borrowed_by(reader) == []
    assert book.is_available


def test_books_by_author(lib, author):
    other = Author("Clarice Lispector", "Brasileira")
    b1 = lib.add_book("Dom Casmurro", author, 1, 1899, 1)
    lib.add_book("A Hora da Estrela", other, 1, 1977, 1)
    b3 = lib.add_book("Quincas Borba", author, 1, 1891, 1)

    assert lib.books_by_author(author) == [b1, b3]
    # Same name, different author record
    assert lib.books_by_author(Author(author.name, author.nationality)) == []


def test_books_borrowed_by_uses_reader_id(lib, author, reader):
    book = lib.add_book("Dom Casmurro", author, 1, 1899, 1)
    lib.lend_book(book.id, reader)

    same_reader = Reader("Renamed", "0", "x@y.z", id=reader.id)
    assert lib.books_borrowed_by(same_reader) == [book]
    assert lib.books_borrowed_by(Reader("Ana Silva", "(11) 98765-4321", "ana@email.com")) == []


def test_find_by_title(lib, author):
    book = lib.add_book("Dom Casmurro", author, 1, 1899, 1)
    assert lib.find_by_title("dom casmurro") is book
    assert lib.find_by_title("DOM CASMURRO") is book
    assert lib.find_by_title("Dom") is None
    assert lib.find_by_title("") is None
    assert lib.find_by_title("   ") is None
    assert lib.find_by_title(None) is None


def test_sort_by_title(lib, author):
    for title in ["Zorro", "apple", "Mango"]:
        lib.add_book(title, author, 1, 2000, 1)

    result = lib.sort_books(SortCriterion.TITLE)
    assert [b.title for b in result] == ["apple", "Mango", "Zorro"]
    assert [b.title for b in lib.list_books()] == ["apple", "Mango", "Zorro"]


def test_sort_by_author_is_stable(lib):
    bob = Author("bob", "X")
    alice = Author("Alice", "X")
    alice_lower = Author("alice", "Y")
    b1 = lib.add_book("One", bob, 1, 2000, 1)
    b2 = lib.add_book("Two", alice, 1, 2000, 1)
    b3 = lib.add_book("Three", alice_lower, 1, 2000, 1)
    b4 = lib.add_book("Four", alice, 1, 2000, 1)

    assert lib.sort_books(SortCriterion.AUTHOR) == [b2, b3, b4, b1]


def test_sort_accepts_plain_strings(lib, author):
    lib.add_book("b", author, 1, 2000, 1)
    lib.add_book("A", author, 1, 2000, 1)
    assert [b.title for b in lib.sort_books("title")] == ["A", "b"]


def test_sort_order_is_persisted(lib, store, author):
    for title in ["Zorro", "apple", "Mango"]:
        lib.add_book(title, author, 1, 2000, 1)
    lib.sort_books(SortCriterion.TITLE)

    assert [b.title for b in Library(store=store).list_books()] == ["apple", "Mango", "Zorro"]


@pytest.mark.parametrize("criterion", ["bogus", "", None, 3])
def test_sort_rejects_unknown_criterion(mock_store, criterion):
    lib = Library(store=mock_store)
    with pytest.raises(InvalidSortCriterionError):
        lib.sort_books(criterion)
    mock_store.save.assert_not_called()


def test_invalid_criterion_is_value_error(lib):
    with pytest.raises(ValueError, match="Unsupported sort criterion"):
        lib.sort_books("year")


def test_every_mutation_saves(mock_store, author, reader):
    lib = Library(store=mock_store)
    book = lib.add_book("A", author, 1, 2000, 1)
    lib.edit_book(book.id, "B", author, 1, 2000, 1)
    lib.sort_books(SortCriterion.AUTHOR)
    lib.lend_book(book.id, reader)
    lib.return_book(book.id)
    lib.remove_book(book.id)
    assert mock_store.save.call_count == 6


def test_failed_save_keeps_memory_state(mock_store, author):
    mock_store.save.return_value = False
    lib = Library(store=mock_store)

    book = lib.add_book("A", author, 1, 2000, 1)
    assert book is not None
    assert lib.last_save_ok is False
    assert lib.find_book(book.id) is book

    mock_store.save.return_value = True
    lib.remove_book(book.id)
    assert lib.last_save_ok is True


def test_persistence_across_instances(lib, store, author, reader):
    book = lib.add_book("Dom Casmurro", author, 256, 1899, "29.90")
    lib.lend_book(book.id, reader)

    lib2 = Library(store=store)
    reloaded = lib2.find_book(book.id)
    assert reloaded.title == "Dom Casmurro"
    assert reloaded.price == Decimal("29.90")
    assert reloaded.borrower == reader
    assert lib2.books_borrowed_by(reader) == [reloaded]
    assert lib2.books_by_author(author) == [reloaded]


def test_lend_and_return(lib, author, reader):
    book = lib.add_book("Dom Casmurro", author, 1, 1899, 1)

    assert lib.lend_book(book.id, reader) is book
    assert book.borrower == reader
    with pytest.raises(BookAlreadyLentError):
        lib.lend_book(book.id, Reader("Bruno Costa", "1", "b@c.d"))

    assert lib.return_book(book.id) == reader
    assert book.borrower is None
    with pytest.raises(BookNotLentError):
        lib.return_book(book.id)


def test_lend_and_return_unknown_book(lib, reader):
    with pytest.raises(BookNotFoundError):
        lib.lend_book("nonexistent", reader)
    with pytest.raises(LookupError):
        lib.return_book("nonexistent")


def test_find_author_by_name(lib, author):
    lib.add_book("Dom Casmurro", author, 1, 1899, 1)
    assert lib.find_author_by_name("machado de assis") is author
    assert lib.find_author_by_name("Unknown") is None
    assert lib.find_author_by_name("  ") is None


def test_known_readers_are_unique(lib, author, reader):
    b1 = lib.add_book("A", author, 1, 2000, 1)
    b2 = lib.add_book("B", author, 1, 2000, 1)
    lib.add_book("C", author, 1, 2000, 1)
    lib.lend_book(b1.id, reader)
    lib.lend_book(b2.id, reader)
    assert lib.known_readers() == [reader]


def test_statistics(lib, author, reader):
    other = Author("Clarice Lispector", "Brasileira")
    book = lib.add_book("A", author, 1, 2000, 1)
    lib.add_book("B", author, 1, 2000, 1)
    lib.add_book("C", other, 1, 2000, 1)
    lib.lend_book(book.id, reader)

    assert lib.get_statistics() == {
        "total_books": 3,
        "unique_authors": 2,
        "borrowed_books": 1,
        "available_books": 2,
    }
