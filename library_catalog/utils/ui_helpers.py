import os
import json
from typing import List, Any, Dict, Optional
from rich.console import Console
from rich.table import Table
from rich.panel import Panel
from rich.markup import escape

# Environment variable to control CLI output mode
# Allowed values: 'plain' (default), 'json', 'rich'
OUTPUT_MODE_ENV = "LIB_CLI_OUTPUT"

_console = Console()


def set_output_mode(mode: str) -> None:
    mode = (mode or "").lower().strip()
    if mode in {"plain", "json", "rich"}:
        os.environ[OUTPUT_MODE_ENV] = mode


def get_output_mode() -> str:
    return os.environ.get(OUTPUT_MODE_ENV, "plain").lower()


def _status(book: Any) -> str:
    borrower = getattr(book, "borrower", None)
    return f"lent to {borrower.name}" if borrower else "available"


def print_list_result(books: List[Any], title: Optional[str] = None) -> None:
    """Print books according to the current output mode.
    - plain: 'ID - Title by Author [status]' lines, or 'No books found.'
    - json: JSON array of the stored book records
    - rich: Rich table
    """
    mode = get_output_mode()

    if not books:
        print("No books found.")
        return

    if mode == "json":
        print(json.dumps([b.to_dict() for b in books], ensure_ascii=False))
    elif mode == "rich":
        table = Table(title=f"📚 {title or 'Books'}", show_lines=True, header_style="bold cyan")
        table.add_column("ID", style="magenta", no_wrap=True)
        table.add_column("Title", style="white")
        table.add_column("Author", style="white")
        table.add_column("Year", justify="right")
        table.add_column("Status", style="green")
        for b in books:
            table.add_row(b.id, escape(b.title), escape(str(b.author)), str(b.year), escape(_status(b)))
        _console.print(table)
    else:
        if title:
            print(title)
        for b in books:
            print(f"{b.id} - {b.title} by {b.author.name} [{_status(b)}]")


def print_book_detail(book: Any, currency: str = "R$") -> None:
    mode = get_output_mode()
    if mode == "json":
        print(json.dumps(book.to_dict(), ensure_ascii=False))
    elif mode == "rich":
        _console.print(Panel.fit(escape(book.describe(currency)), title=f"🔍 {book.id}", border_style="green"))
    else:
        print(f"[ID: {book.id}]")
        print(book.describe(currency))


def print_stats_result(stats: Dict[str, Any]) -> None:
    """Print statistics according to the current output mode."""
    mode = get_output_mode()

    if not stats:
        print("No statistics available.")
        return

    labels = {
        "total_books": "Total Books",
        "unique_authors": "Unique Authors",
        "borrowed_books": "Borrowed Books",
        "available_books": "Available Books",
    }

    if mode == "json":
        print(json.dumps(stats, ensure_ascii=False))
    elif mode == "rich":
        content = "\n".join(f"[bold]{label}:[/] {stats.get(key, 0)}" for key, label in labels.items())
        _console.print(Panel.fit(content, title="📊 Stats", border_style="blue"))
    else:
        for key, label in labels.items():
            print(f"{label}: {stats.get(key, 0)}")
