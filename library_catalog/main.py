import logging
import uuid
from typing import List, Optional

import typer
from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.prompt import Confirm, Prompt
from rich.table import Table

from .book import Author, Reader
from .config import settings
from .database import BookStore
from .library import (
    BookAlreadyLentError,
    BookNotFoundError,
    BookNotLentError,
    InvalidSortCriterionError,
    Library,
    SortCriterion,
)
from .utils.ui_helpers import print_book_detail, print_list_result, print_stats_result, set_output_mode
from .utils.validators import NumberValidator, TextValidator

logger = logging.getLogger(__name__)

console = Console()

# Readers available at the desk on every start
DEFAULT_READERS = [
    ("Ana Silva", "(11) 98765-4321", "ana@email.com"),
    ("Bruno Costa", "(21) 91234-5678", "bruno@email.com"),
    ("Carlos Rocha", "(31) 99999-0000", "carlos@email.com"),
]


def default_readers() -> List[Reader]:
    # Ids derive from the e-mail so loans stay attached to the same reader across runs
    return [
        Reader(name, phone, email, id=str(uuid.uuid5(uuid.NAMESPACE_URL, f"mailto:{email}")))
        for name, phone, email in DEFAULT_READERS
    ]


def known_readers(lib: Library) -> List[Reader]:
    readers = default_readers()
    for reader in lib.known_readers():
        if reader not in readers:
            readers.append(reader)
    return readers


def configure_logging() -> None:
    level = logging.DEBUG if settings.debug else getattr(logging, settings.log_level, logging.WARNING)
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


def _pick_reader(lib: Library, number: int) -> Optional[Reader]:
    readers = known_readers(lib)
    if 1 <= number <= len(readers):
        return readers[number - 1]
    return None


def _author_for(lib: Library, name: str, nationality: str) -> Author:
    """Reuse a cataloged author with the same name so duplicate titles are caught."""
    return lib.find_author_by_name(name) or Author(name, nationality)


def _warn_if_unsaved(lib: Library) -> None:
    if not lib.last_save_ok:
        print(f"Warning: changes could not be saved to {lib.store.path}.")


# --- Typer CLI Application ---
app = typer.Typer(help="Library catalog CLI")


@app.callback()
def _global_options(
    ctx: typer.Context,
    output: Optional[str] = typer.Option(
        None,
        "--output",
        "-o",
        help="Output format: plain | json | rich (default: plain)",
    ),
    data_file: Optional[str] = typer.Option(
        None,
        "--data-file",
        "-d",
        help="Catalog file (default: LIBRARY_DATA_FILE or library_books.json)",
    ),
):
    """Global options for the CLI (output mode, catalog file)."""
    if output:
        set_output_mode(output)
    configure_logging()
    path = data_file or settings.data_file
    logger.debug("Using catalog file %s", path)
    ctx.obj = Library(BookStore(path))


@app.command("list")
def cli_list(
    ctx: typer.Context,
    sort: Optional[str] = typer.Option(None, "--sort", "-s", help="Sort and save order: title | author"),
    author: Optional[str] = typer.Option(None, "--author", "-a", help="Only books by this author (exact name)"),
):
    """List the books in the catalog."""
    lib: Library = ctx.obj
    if author:
        found = lib.find_author_by_name(author)
        if found is None:
            print(f"Author {author} not found in the collection.")
            return
        print_list_result(lib.books_by_author(found), title=f"Books by {found.name}")
        return

    if sort:
        try:
            books = lib.sort_books(sort.lower())
        except InvalidSortCriterionError as e:
            print(f"Error: {e}")
            raise typer.Exit(code=1)
        _warn_if_unsaved(lib)
    else:
        books = lib.list_books()
    print_list_result(books)


@app.command("add")
def cli_add(
    ctx: typer.Context,
    title: str,
    author: str,
    nationality: str,
    pages: str,
    year: str,
    price: str,
):
    """Add a book to the catalog."""
    lib: Library = ctx.obj
    try:
        title = TextValidator.require_text(title, "Title")
        author = TextValidator.require_text(author, "Author name")
        page_count = NumberValidator.parse_int(pages, minimum=1)
        pub_year = NumberValidator.parse_int(year)
        book_price = NumberValidator.parse_price(price)
    except ValueError as e:
        print(f"Error: {e}")
        raise typer.Exit(code=1)

    book = lib.add_book(title, _author_for(lib, author, nationality), page_count, pub_year, book_price)
    if book is None:
        print("Error: Book already exists in the collection (check title and author).")
        raise typer.Exit(code=1)
    print(f"Successfully added: {book.title} by {book.author.name}")
    print(f"ID: {book.id}")
    _warn_if_unsaved(lib)


@app.command("remove")
def cli_remove(ctx: typer.Context, book_id: str):
    """Remove a book by ID."""
    lib: Library = ctx.obj
    if lib.remove_book(book_id):
        print(f"Book with ID {book_id} has been removed.")
        _warn_if_unsaved(lib)
    else:
        print(f"Book with ID {book_id} not found.")


@app.command("find")
def cli_find(
    ctx: typer.Context,
    book_id: Optional[str] = typer.Option(None, "--id", help="Unique book ID"),
    title: Optional[str] = typer.Option(None, "--title", "-t", help="Exact title (case-insensitive)"),
):
    """Find a book by ID or by exact title."""
    lib: Library = ctx.obj
    if book_id:
        book = lib.find_book(book_id)
    elif title:
        book = lib.find_by_title(title)
    else:
        print("Provide --id or --title.")
        raise typer.Exit(code=1)

    if book is None:
        print("Book not found.")
        return
    print("Book Found")
    print_book_detail(book, settings.currency_symbol)


@app.command("lend")
def cli_lend(ctx: typer.Context, book_id: str, reader_number: int):
    """Lend a book to a reader (see `readers` for numbers)."""
    lib: Library = ctx.obj
    reader = _pick_reader(lib, reader_number)
    if reader is None:
        print("Invalid reader selection.")
        raise typer.Exit(code=1)
    try:
        book = lib.lend_book(book_id, reader)
    except BookNotFoundError:
        print(f"Book with ID {book_id} not found.")
        raise typer.Exit(code=1)
    except BookAlreadyLentError as e:
        print(f"Error: {e}")
        raise typer.Exit(code=1)
    print(f"Book '{book.title}' lent to {reader.name}.")
    _warn_if_unsaved(lib)


@app.command("return")
def cli_return(ctx: typer.Context, book_id: str):
    """Register the return of a lent book."""
    lib: Library = ctx.obj
    try:
        reader = lib.return_book(book_id)
    except BookNotFoundError:
        print(f"Book with ID {book_id} not found.")
        raise typer.Exit(code=1)
    except BookNotLentError as e:
        print(f"Error: {e}")
        raise typer.Exit(code=1)
    print(f"Book returned by {reader.name}.")
    _warn_if_unsaved(lib)


@app.command("borrowed")
def cli_borrowed(ctx: typer.Context, reader_number: int):
    """List the books lent to a reader."""
    lib: Library = ctx.obj
    reader = _pick_reader(lib, reader_number)
    if reader is None:
        print("Invalid reader selection.")
        raise typer.Exit(code=1)
    print_list_result(lib.books_borrowed_by(reader), title=f"Books lent to {reader.name}")


@app.command("readers")
def cli_readers(ctx: typer.Context):
    """List the readers that can borrow books."""
    for i, reader in enumerate(known_readers(ctx.obj), 1):
        print(f"{i}. {reader}")


@app.command("stats")
def cli_stats(ctx: typer.Context):
    """Show catalog statistics."""
    print_stats_result(ctx.obj.get_statistics())


@app.command("menu")
def cli_menu(ctx: typer.Context):
    """Start the interactive menu."""
    run_menu(ctx.obj)


# --- Interactive menu ---
def _ask_text(prompt: str, field_name: str) -> str:
    while True:
        try:
            return TextValidator.require_text(Prompt.ask(prompt), field_name)
        except ValueError as e:
            console.print(f"[red]{e}[/]")


def _ask_int(prompt: str, minimum: Optional[int] = None) -> int:
    while True:
        try:
            return NumberValidator.parse_int(Prompt.ask(prompt), minimum=minimum)
        except ValueError as e:
            console.print(f"[red]{e}[/]")


def _ask_price(prompt: str):
    while True:
        try:
            return NumberValidator.parse_price(Prompt.ask(prompt))
        except ValueError as e:
            console.print(f"[red]{e}[/]")


def _ask_reader(lib: Library) -> Optional[Reader]:
    readers = known_readers(lib)
    for i, reader in enumerate(readers, 1):
        console.print(f"{i}. {reader}")
    reader = _pick_reader(lib, _ask_int(f"Reader number (1 to {len(readers)})"))
    if reader is None:
        console.print("[yellow]Invalid reader selection.[/]")
    return reader


def add_interactive(lib: Library) -> None:
    title = _ask_text("Title", "Title")
    name = _ask_text("Author name", "Author name")
    nationality = Prompt.ask("Author nationality", default="")
    pages = _ask_int("Number of pages", minimum=1)
    year = _ask_int("Publication year")
    price = _ask_price(f"Price ({settings.currency_symbol})")

    book = lib.add_book(title, _author_for(lib, name, nationality), pages, year, price)
    if book is None:
        console.print("[bold red]Book already exists in the collection (check title and author).[/]")
        return
    console.print(Panel.fit(f"[green]Added:[/] [bold]{book.title}[/]\nID: {book.id}", title="✅", border_style="green"))


def list_interactive(lib: Library) -> None:
    if not lib.list_books():
        console.print("[yellow]The library is empty. Add books first.[/]")
        return
    choice = Prompt.ask("Sort by (1) title, (2) author, (3) books of one author", choices=["1", "2", "3"], default="1")
    if choice == "3":
        author = lib.find_author_by_name(Prompt.ask("Author name (exact)"))
        if author is None:
            console.print("[yellow]Author not found in the collection.[/]")
            return
        print_list_result(lib.books_by_author(author), title=f"Books by {author.name}")
        return
    criterion = SortCriterion.TITLE if choice == "1" else SortCriterion.AUTHOR
    print_list_result(lib.sort_books(criterion), title=f"All books (by {criterion.value})")


def find_interactive(lib: Library) -> None:
    kind = Prompt.ask("Search by ID or title?", choices=["id", "t"], default="t")
    if kind == "id":
        book = lib.find_book(Prompt.ask("Book ID").strip())
    else:
        book = lib.find_by_title(Prompt.ask("Exact title"))
    if book is None:
        console.print("[yellow]Book not found.[/]")
        return
    print_book_detail(book, settings.currency_symbol)


def remove_interactive(lib: Library) -> None:
    book_id = Prompt.ask("ID of the book to remove").strip()
    book = lib.find_book(book_id)
    if book is None:
        console.print("[yellow]Book not found.[/]")
        return
    print_book_detail(book, settings.currency_symbol)
    if Confirm.ask("Remove this book?", default=False):
        lib.remove_book(book_id)
        console.print(f"[green]'{book.title}' removed.[/]")


def loan_interactive(lib: Library) -> None:
    operation = Prompt.ask("(1) Lend or (2) return", choices=["1", "2"], default="1")
    book_id = Prompt.ask("Book ID").strip()
    try:
        if operation == "1":
            book = lib.find_book(book_id)
            if book is None:
                raise BookNotFoundError(book_id)
            if not book.is_available:
                raise BookAlreadyLentError(f"Book is already lent to {book.borrower.name}.")
            reader = _ask_reader(lib)
            if reader is None:
                return
            lib.lend_book(book_id, reader)
            console.print(f"[green]'{book.title}' lent to {reader.name}.[/]")
        else:
            reader = lib.return_book(book_id)
            console.print(f"[green]Book returned by {reader.name}.[/]")
    except BookNotFoundError:
        console.print(f"[yellow]Book with ID {book_id} not found.[/]")
    except (BookAlreadyLentError, BookNotLentError) as e:
        console.print(f"[yellow]{e}[/]")


def borrowed_interactive(lib: Library) -> None:
    reader = _ask_reader(lib)
    if reader is not None:
        print_list_result(lib.books_borrowed_by(reader), title=f"Books lent to {reader.name}")


def stats_interactive(lib: Library) -> None:
    print_stats_result(lib.get_statistics())


def run_menu(lib: Library) -> None:
    """Simple interactive menu for the catalog."""
    menu_items = [
        ("1", "Add a new book", add_interactive),
        ("2", "List books", list_interactive),
        ("3", "Find a book by ID or title", find_interactive),
        ("4", "Remove a book", remove_interactive),
        ("5", "Lend / return a book", loan_interactive),
        ("6", "Books lent to a reader", borrowed_interactive),
        ("7", "Statistics", stats_interactive),
    ]

    table = Table.grid(padding=(0, 2))
    table.add_column(justify="right", style="bold cyan", width=4)
    table.add_column(justify="left", style="white")
    for key, label, _ in menu_items:
        table.add_row(f"[reverse]{key}[/]", label)
    table.add_row("[reverse]0[/]", "Exit")
    actions = {key: action for key, _, action in menu_items}

    while True:
        console.print(Panel(table, title=settings.app_name, border_style="cyan", box=box.HEAVY, padding=(1, 2)))
        choice = Prompt.ask("Choose an option", choices=[*actions, "0"], default="0")
        if choice == "0":
            console.print("[green]Goodbye![/]")
            break
        actions[choice](lib)
        _warn_if_unsaved(lib)
        print()


if __name__ == "__main__":
    app()
