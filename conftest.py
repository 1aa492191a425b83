import pytest

from library_catalog.book import Author, Reader
from library_catalog.database import BookStore
from library_catalog.library import Library
from library_catalog.utils.ui_helpers import OUTPUT_MODE_ENV


@pytest.fixture
def data_file(tmp_path, request):
    # Unique catalog file for every test
    return str(tmp_path / f"test_{request.node.name}.json")


@pytest.fixture
def store(data_file):
    return BookStore(data_file)


@pytest.fixture
def lib(store):
    return Library(store=store)


@pytest.fixture
def author():
    return Author("Machado de Assis", "Brasileira")


@pytest.fixture
def reader():
    return Reader("Ana Silva", "(11) 98765-4321", "ana@email.com")


@pytest.fixture(autouse=True)
def plain_output(monkeypatch):
    monkeypatch.delenv(OUTPUT_MODE_ENV, raising=False)
