"""
Interactive input for the CLI.

Commands fall back to these prompts when an option was not given on the
command line.
"""

from typing import Any, Dict, Optional, Sequence

from rich.console import Console
from rich.markup import escape
from rich.prompt import Confirm, IntPrompt, Prompt
from rich.table import Table

from shelfwise.bookcase import Bookcase
from shelfwise.shelf import ShelfSummary


class CliPrompts:
    def __init__(self, console: Optional[Console] = None) -> None:
        self.console = console or Console()

    def _ask_text(self, question: str, blank_message: str) -> str:
        while True:
            answer = Prompt.ask(question, console=self.console).strip()
            if answer:
                return answer
            self.console.print(f"[yellow]{blank_message}[/]")

    def prompt_for_book_title(self) -> str:
        return self._ask_text("📖 Book title", "Title cannot be blank.")

    def prompt_for_bookcase_location(self) -> str:
        return self._ask_text("📍 Bookcase location", "Location cannot be blank.")

    def prompt_for_positive_int(self, question: str, default: Optional[int] = None) -> int:
        kwargs: Dict[str, Any] = {"console": self.console}
        if default is not None:
            kwargs["default"] = default
        while True:
            value = IntPrompt.ask(question, **kwargs)
            if value >= 1:
                return value
            self.console.print("[yellow]Please enter a number greater than 0.[/]")

    def prompt_for_bookcase_selection(self, bookcases: Sequence[Bookcase]) -> Optional[Bookcase]:
        """Show the bookcases as a numbered table and return the chosen one."""
        if not bookcases:
            self.console.print("[yellow]No bookcases yet.[/]")
            return None

        table = Table(title="🗄️ Bookcases", header_style="bold cyan")
        table.add_column("#", style="bold", justify="right")
        table.add_column("Location", style="white")
        table.add_column("Zone", style="white")
        table.add_column("Shelves", justify="right")
        for index, bookcase in enumerate(bookcases, 1):
            table.add_row(str(index), escape(bookcase.location), escape(bookcase.zone), str(bookcase.shelf_count))
        self.console.print(table)

        choices = [str(i) for i in range(1, len(bookcases) + 1)]
        choice = IntPrompt.ask("Select a bookcase", choices=choices, console=self.console)
        return bookcases[choice - 1]

    def prompt_for_shelf_selection(self, shelves: Sequence[ShelfSummary]) -> Optional[ShelfSummary]:
        """Like the bookcase selection, but full shelves cannot be chosen."""
        open_shelves = [s for s in shelves if not s.is_full]
        if not open_shelves:
            self.console.print("[yellow]Every shelf in this bookcase is full.[/]")
            return None

        table = Table(title="📚 Shelves", header_style="bold cyan")
        table.add_column("#", style="bold", justify="right")
        table.add_column("Shelf", style="white")
        table.add_column("Books", justify="right")
        for shelf in shelves:
            marker = "-" if shelf.is_full else str(shelf.position)
            table.add_row(marker, escape(shelf.label), f"{shelf.book_count}/{shelf.book_capacity}")
        self.console.print(table)

        by_position = {str(s.position): s for s in open_shelves}
        choice = Prompt.ask("Select a shelf", choices=list(by_position), console=self.console)
        return by_position[choice]

    def confirm(self, question: str, default: bool = False) -> bool:
        return Confirm.ask(question, default=default, console=self.console)
