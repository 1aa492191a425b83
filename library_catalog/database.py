import json
import logging
import os
import stat
import tempfile
from typing import Iterable, List

from .book import Book

logger = logging.getLogger(__name__)

DEFAULT_DATA_FILE = "library_books.json"


class BookStore:
    """Mirrors the whole book collection to a single JSON file.

    Authors and borrowers are embedded in every book, so two books by the same
    author come back as two Author objects that compare equal by id.
    """

    def __init__(self, path: str = DEFAULT_DATA_FILE) -> None:
        self._path = os.fspath(path)

    @property
    def path(self) -> str:
        return self._path

    def save(self, books: Iterable[Book]) -> bool:
        """Overwrite the data file with ``books``. Returns False on failure."""
        directory = os.path.dirname(os.path.abspath(self._path))
        tmp_path = None
        try:
            payload = [book.to_dict() for book in books]
            os.makedirs(directory, exist_ok=True)
            # Write next to the target so os.replace stays on one filesystem
            fd, tmp_path = tempfile.mkstemp(prefix=".library_", suffix=".tmp", dir=directory)
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(payload, f, indent=2, ensure_ascii=False)
                f.flush()
                os.fsync(f.fileno())
            os.chmod(tmp_path, self._file_mode())
            os.replace(tmp_path, self._path)
            tmp_path = None
            logger.debug("Saved %d books to %s", len(payload), self._path)
            return True
        except (OSError, TypeError, ValueError) as e:
            logger.error("Could not save books to %s: %s", self._path, e)
            return False
        finally:
            if tmp_path and os.path.exists(tmp_path):
                try:
                    os.remove(tmp_path)
                except OSError as e:
                    logger.warning("Could not remove temporary file %s: %s", tmp_path, e)

    def _file_mode(self) -> int:
        """Mode for the data file: keep the current one, else the umask default."""
        try:
            return stat.S_IMODE(os.stat(self._path).st_mode)
        except FileNotFoundError:
            umask = os.umask(0)
            os.umask(umask)
            return 0o666 & ~umask

    def load(self) -> List[Book]:
        """Read the data file back. Missing, empty or unreadable data yields []."""
        if not os.path.exists(self._path) or os.path.getsize(self._path) == 0:
            logger.debug("No saved books at %s", self._path)
            return []

        try:
            with open(self._path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            logger.error("Error reading %s: %s", self._path, e)
            return []

        if not isinstance(data, list):
            logger.error("%s does not contain a list of books (found %s)", self._path, type(data).__name__)
            return []

        try:
            books = [Book.from_dict(item) for item in data]
        except (KeyError, TypeError, ValueError) as e:
            logger.error("Invalid book record in %s: %r", self._path, e)
            return []

        logger.debug("Loaded %d books from %s", len(books), self._path)
        return books
