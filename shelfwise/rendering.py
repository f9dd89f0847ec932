import json
import os
from typing import List, Optional

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from shelfwise.book import Book
from shelfwise.bookcase import Bookcase
from shelfwise.catalog import BookDetails
from shelfwise.config import settings
from shelfwise.shelf import ShelfSummary
from shelfwise.stacks import CreateBookcaseResult

# Allowed values: 'plain' (default), 'json', 'rich'
OUTPUT_MODE_ENV = "LIB_CLI_OUTPUT"
OUTPUT_MODES = ("plain", "json", "rich")

_console = Console()


def set_output_mode(mode: str) -> None:
    mode = (mode or "").lower().strip()
    if mode in OUTPUT_MODES:
        os.environ[OUTPUT_MODE_ENV] = mode


def get_output_mode() -> str:
    mode = os.environ.get(OUTPUT_MODE_ENV, settings.output_mode).lower()
    return mode if mode in OUTPUT_MODES else "plain"


def _print_json(payload) -> None:
    print(json.dumps(payload, ensure_ascii=False))


# ------------------------- Pure renderers ------------------------- #

def render_book_card(details: BookDetails) -> str:
    """Multi-line text card for one book; unplaced books show no location."""
    lines = [
        f"Title: {details.title}",
        f"Author: {details.authors}",
        f"ISBN: {details.isbn}",
    ]
    if details.publisher:
        lines.append(f"Publisher: {details.publisher}")
    if details.bookcase is not None:
        location = details.bookcase
        if details.zone:
            location = f"{location} ({details.zone})"
        lines.append(f"Bookcase: {location}")
        lines.append(f"Shelf: {details.shelf}")
    else:
        lines.append("Location: not placed")
    lines.append(f"Status: {details.status.value}")
    return "\n".join(lines)


def render_not_found(query: str) -> str:
    return f"No book found for: {query}"


def _book_line(book: Book) -> str:
    shelf = f"shelf {book.shelf_id}" if book.shelf_id else "unplaced"
    return f"{book.id} - {book.title} by {book.author_names} ({book.isbn}) [{book.availability_status.value}, {shelf}]"


# ------------------------- Printers ------------------------- #

def print_book_list(books: List[Book], empty_message: str = "No books in library.", title: str = "📚 Books") -> None:
    """Print books in the current output mode.
    - plain: 'ID - Title by Author (ISBN) [STATUS, shelf]' lines
    - json: array of book dicts
    - rich: Rich table
    """
    mode = get_output_mode()

    if not books:
        print(empty_message)
        return

    if mode == "json":
        _print_json([b.to_dict() for b in books])
    elif mode == "rich":
        table = Table(title=title, show_lines=True, header_style="bold cyan")
        table.add_column("ID", style="bold", justify="right")
        table.add_column("ISBN", style="magenta", no_wrap=True)
        table.add_column("Title", style="white")
        table.add_column("Author", style="white")
        table.add_column("Shelf", justify="right")
        table.add_column("Status")
        for b in books:
            table.add_row(
                str(b.id), b.isbn.value, escape(b.title.value), escape(b.author_names),
                str(b.shelf_id) if b.shelf_id else "-", b.availability_status.value,
            )
        _console.print(table)
    else:
        for b in books:
            print(_book_line(b))


def print_bookcase_list(bookcases: List[Bookcase]) -> None:
    mode = get_output_mode()

    if not bookcases:
        print("No bookcases yet.")
        return

    if mode == "json":
        _print_json([b.to_dict() for b in bookcases])
    elif mode == "rich":
        table = Table(title="🗄️ Bookcases", show_lines=True, header_style="bold cyan")
        table.add_column("ID", style="bold", justify="right")
        table.add_column("Location", style="white")
        table.add_column("Zone", style="white")
        table.add_column("Index", style="white")
        table.add_column("Shelves", justify="right")
        table.add_column("Capacity", justify="right")
        for b in bookcases:
            table.add_row(str(b.id), escape(b.location), escape(b.zone), escape(b.zone_index),
                          str(b.shelf_count), str(b.total_capacity))
        _console.print(table)
    else:
        for b in bookcases:
            zone = f" [{b.zone}{'/' + b.zone_index if b.zone_index else ''}]" if b.zone else ""
            print(f"{b.id} - {b.location}{zone}: {b.shelf_count} shelves x {b.book_capacity_per_shelf} books")


def print_bookcase_created(result: CreateBookcaseResult) -> None:
    mode = get_output_mode()
    if mode == "json":
        _print_json({
            "bookcase_id": result.bookcase_id.value,
            "location": result.location,
            "shelf_count": result.shelf_count,
            "book_capacity_per_shelf": result.book_capacity_per_shelf,
            "total_capacity": result.total_capacity,
        })
    elif mode == "rich":
        _console.print(Panel.fit(
            f"[bold]Location:[/] {escape(result.location)}\n"
            f"[bold]Shelves:[/] {result.shelf_count} x {result.book_capacity_per_shelf} books\n"
            f"[bold]Total capacity:[/] {result.total_capacity}",
            title=f"✅ Bookcase {result.bookcase_id}",
            border_style="green",
        ))
    else:
        print(f"Created bookcase {result.bookcase_id} at {result.location} "
              f"with {result.shelf_count} shelves ({result.total_capacity} books)")


def print_shelf_summaries(summaries: List[ShelfSummary], heading: Optional[str] = None) -> None:
    mode = get_output_mode()

    if mode == "json":
        _print_json([
            {
                "shelf_id": s.shelf_id.value,
                "label": s.label,
                "position": s.position,
                "book_count": s.book_count,
                "book_capacity": s.book_capacity,
            }
            for s in summaries
        ])
    elif mode == "rich":
        table = Table(title=heading or "📚 Shelves", header_style="bold cyan")
        table.add_column("ID", style="bold", justify="right")
        table.add_column("Shelf", style="white")
        table.add_column("Books", justify="right")
        for s in summaries:
            style = "red" if s.is_full else "green"
            table.add_row(str(s.shelf_id), escape(s.label), f"[{style}]{s.book_count}/{s.book_capacity}[/]")
        _console.print(table)
    else:
        if heading:
            print(heading)
        for s in summaries:
            full = " FULL" if s.is_full else ""
            print(f"{s.shelf_id} - {s.label}: {s.book_count}/{s.book_capacity}{full}")


def print_book_card(details: BookDetails) -> None:
    mode = get_output_mode()
    if mode == "json":
        _print_json({
            "book_id": details.book_id.value,
            "title": details.title,
            "authors": details.authors,
            "isbn": details.isbn,
            "publisher": details.publisher,
            "bookcase": details.bookcase,
            "zone": details.zone,
            "shelf": details.shelf,
            "status": details.status.value,
        })
    elif mode == "rich":
        _console.print(Panel.fit(escape(render_book_card(details)), title="🔍 Book", border_style="green"))
    else:
        print("Book Found")
        print(render_book_card(details))
