import logging
from decimal import Decimal
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Union

from .book import Author, Book, Reader, name_key, to_price
from .database import BookStore

logger = logging.getLogger(__name__)


class SortCriterion(str, Enum):
    TITLE = "title"
    AUTHOR = "author"


_SORT_KEYS: Dict[SortCriterion, Callable[[Book], Any]] = {
    SortCriterion.TITLE: lambda book: book.title.lower(),
    SortCriterion.AUTHOR: lambda book: name_key(book.author),
}


class InvalidSortCriterionError(ValueError):
    pass


class BookNotFoundError(LookupError):
    pass


class BookAlreadyLentError(ValueError):
    pass


class BookNotLentError(ValueError):
    pass


class Library:
    """Manages the collection of books and mirrors it to a BookStore."""

    def __init__(self, store: Optional[BookStore] = None) -> None:
        self.store = store if store is not None else BookStore()
        self.books: List[Book] = self.store.load()
        self.last_save_ok = True
        logger.info("Catalog loaded with %d books from %s", len(self.books), self.store.path)

    # ------------------------- Core operations ------------------------- #
    def add_book(self, title: str, author: Author, pages: int, year: int,
                 price: Union[Decimal, int, float, str]) -> Optional[Book]:
        """Create and add a book. Returns None if title and author are already cataloged."""
        candidate = Book(title=title, author=author, pages=pages, year=year, price=price)
        if any(book.same_entry(candidate) for book in self.books):
            logger.info("Rejected duplicate book %r by %s", title, author.name)
            return None

        self.books.append(candidate)
        self._persist()
        return candidate

    def find_book(self, book_id: Optional[str]) -> Optional[Book]:
        index = self.index_of(book_id)
        return self.books[index] if index is not None else None

    def index_of(self, book_id: Optional[str]) -> Optional[int]:
        if not book_id:
            return None
        for i, book in enumerate(self.books):
            if book.id == book_id:
                return i
        return None

    def remove_book(self, book_id: str) -> bool:
        index = self.index_of(book_id)
        if index is None:
            return False
        removed = self.books.pop(index)
        logger.info("Removed book %s (%r)", removed.id, removed.title)
        self._persist()
        return True

    def edit_book(self, book_id: str, title: str, author: Author, pages: int, year: int,
                  price: Union[Decimal, int, float, str],
                  borrower: Optional[Reader] = None) -> bool:
        """Overwrite every mutable field of a book. ``borrower=None`` marks it available."""
        book = self.find_book(book_id)
        if book is None:
            return False

        # Convert everything first so a bad value leaves the book untouched
        new_pages = int(pages)
        new_year = int(year)
        new_price = to_price(price)
        book.title = title
        book.author = author
        book.pages = new_pages
        book.year = new_year
        book.price = new_price
        book.borrower = borrower
        self._persist()
        return True

    def list_books(self) -> List[Book]:
        return list(self.books)

    # ------------------------- Queries ------------------------- #
    def books_by_author(self, author: Author) -> List[Book]:
        return [book for book in self.books if book.author == author]

    def books_borrowed_by(self, reader: Reader) -> List[Book]:
        return [book for book in self.books
                if book.borrower is not None and book.borrower == reader]

    def find_by_title(self, title: Optional[str]) -> Optional[Book]:
        if title is None or not title.strip():
            return None
        wanted = title.lower()
        for book in self.books:
            if book.title.lower() == wanted:
                return book
        return None

    def find_author_by_name(self, name: Optional[str]) -> Optional[Author]:
        if name is None or not name.strip():
            return None
        wanted = name.strip().lower()
        for book in self.books:
            if book.author.name.lower() == wanted:
                return book.author
        return None

    def known_readers(self) -> List[Reader]:
        """Readers currently holding a book, unique by id, in catalog order."""
        readers: List[Reader] = []
        for book in self.books:
            if book.borrower is not None and book.borrower not in readers:
                readers.append(book.borrower)
        return readers

    def get_statistics(self) -> Dict[str, Any]:
        borrowed = sum(1 for book in self.books if not book.is_available)
        return {
            "total_books": len(self.books),
            "unique_authors": len({book.author.id for book in self.books}),
            "borrowed_books": borrowed,
            "available_books": len(self.books) - borrowed,
        }

    # ------------------------- Ordering ------------------------- #
    def sort_books(self, criterion: Union[SortCriterion, str]) -> List[Book]:
        """Reorder the catalog in place and persist the new order."""
        try:
            key = _SORT_KEYS[SortCriterion(criterion)]
        except (ValueError, KeyError, TypeError) as e:
            raise InvalidSortCriterionError(f"Unsupported sort criterion: {criterion!r}") from e

        self.books.sort(key=key)
        self._persist()
        return list(self.books)

    # ------------------------- Loans ------------------------- #
    def lend_book(self, book_id: str, reader: Reader) -> Book:
        book = self.find_book(book_id)
        if book is None:
            raise BookNotFoundError(f"Book with ID {book_id} not found.")
        if book.borrower is not None:
            raise BookAlreadyLentError(f"Book is already lent to {book.borrower.name}.")

        self.edit_book(book.id, book.title, book.author, book.pages, book.year, book.price, reader)
        return book

    def return_book(self, book_id: str) -> Reader:
        book = self.find_book(book_id)
        if book is None:
            raise BookNotFoundError(f"Book with ID {book_id} not found.")
        if book.borrower is None:
            raise BookNotLentError("Book is already available.")

        reader = book.borrower
        self.edit_book(book.id, book.title, book.author, book.pages, book.year, book.price, None)
        return reader

    # ------------------------- Persistence ------------------------- #
    def _persist(self) -> bool:
        self.last_save_ok = self.store.save(self.books)
        if not self.last_save_ok:
            logger.warning("Catalog change kept in memory but not saved to %s", self.store.path)
        return self.last_save_ok
