"""Command-line interface for circulation.

Built with Typer for commands and Rich for output.
"""

from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from .config import get_config
from .db import Database
from .db.schemas import BookCreate, UserCreate
from .ledger.manager import LendingLedger
from .lending import ErrorCategory, LendingResult, TransactionCoordinator
from .log import configure_logging

# Create the main app
app = typer.Typer(
    name="circulation",
    help="Lend books to users and keep a scored history of every loan.",
    no_args_is_help=True,
)

# Create sub-apps for command groups
users_app = typer.Typer(help="Manage users.", no_args_is_help=True)
app.add_typer(users_app, name="users")
books_app = typer.Typer(help="Manage books.", no_args_is_help=True)
app.add_typer(books_app, name="books")

# Rich console for pretty output
console = Console()

EXIT_CODES = {
    None: 0,
    ErrorCategory.NOT_FOUND: 1,
    ErrorCategory.VALIDATION: 2,
    ErrorCategory.CONFLICT: 3,
}


# ============================================================================
# Helper Functions
# ============================================================================


def print_error(message: str) -> None:
    """Print an error message."""
    console.print(f"[bold red]Error:[/bold red] {message}")


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[bold green]Success:[/bold green] {message}")


def get_database() -> Database:
    """Open the configured database, creating tables on first use."""
    config = get_config()
    db = Database(config.db_path, busy_timeout=config.busy_timeout)
    db.create_tables()
    return db


def get_coordinator() -> TransactionCoordinator:
    """Build a coordinator over the configured database."""
    config = get_config()
    return TransactionCoordinator(
        get_database(),
        ledger=LendingLedger(backfill_missing=config.return_backfill),
    )


def finish(result: LendingResult, success_message: str) -> None:
    """Report a lending result and exit with its code."""
    if result.ok:
        print_success(success_message)
        return
    print_error(result.message)
    raise typer.Exit(EXIT_CODES[result.outcome.category])


@app.callback()
def main_callback() -> None:
    """Set up logging before any command runs."""
    configure_logging(get_config().log_level)


# ============================================================================
# User Commands
# ============================================================================


@users_app.command("add")
def users_add(name: str = typer.Argument(..., help="User name")) -> None:
    """Create a user."""
    try:
        data = UserCreate(name=name)
    except ValueError as e:
        print_error(str(e))
        raise typer.Exit(2)

    user = get_database().create_user(data)
    print_success(f"Added user {user.name}")
    console.print(f"[dim]ID: {user.id}[/dim]")


@users_app.command("list")
def users_list() -> None:
    """List all users."""
    users = get_database().list_users()
    if not users:
        console.print("[dim]No users found[/dim]")
        return

    table = Table(title="Users", show_header=True, header_style="bold magenta")
    table.add_column("ID", style="dim")
    table.add_column("Name", style="cyan")
    for user in users:
        table.add_row(user.id, user.name)
    console.print(table)


@users_app.command("show")
def users_show(user_id: str = typer.Argument(..., help="User ID")) -> None:
    """Show a user's past and present books."""
    profile = get_coordinator().describe_user(user_id)
    if profile is None:
        print_error("User not found")
        raise typer.Exit(1)

    console.print(f"[bold]{profile.name}[/bold] [dim]({profile.id})[/dim]")

    present = Table(title="Currently borrowed", show_header=True, header_style="bold magenta")
    present.add_column("Book", style="cyan")
    present.add_column("Since")
    for held in profile.present:
        present.add_row(held.name, held.borrowed_at.strftime("%Y-%m-%d %H:%M"))
    console.print(present)

    past = Table(title="Returned", show_header=True, header_style="bold magenta")
    past.add_column("Book", style="cyan")
    past.add_column("Score", justify="center")
    past.add_column("Returned")
    for loan in profile.past:
        past.add_row(
            loan.name,
            str(loan.score) if loan.score is not None else "-",
            loan.returned_at.strftime("%Y-%m-%d %H:%M"),
        )
    console.print(past)


# ============================================================================
# Book Commands
# ============================================================================


@books_app.command("add")
def books_add(name: str = typer.Argument(..., help="Book name")) -> None:
    """Create a book."""
    try:
        data = BookCreate(name=name)
    except ValueError as e:
        print_error(str(e))
        raise typer.Exit(2)

    book = get_database().create_book(data)
    print_success(f"Added book {book.name}")
    console.print(f"[dim]ID: {book.id}[/dim]")


@books_app.command("list")
def books_list() -> None:
    """List all books."""
    books = get_database().list_books()
    if not books:
        console.print("[dim]No books found[/dim]")
        return

    table = Table(title="Books", show_header=True, header_style="bold magenta")
    table.add_column("ID", style="dim")
    table.add_column("Name", style="cyan")
    for book in books:
        table.add_row(book.id, book.name)
    console.print(table)


@books_app.command("show")
def books_show(book_id: str = typer.Argument(..., help="Book ID")) -> None:
    """Show who holds a book and how it has been scored."""
    report = get_coordinator().describe_book(book_id)
    if report is None:
        print_error("Book not found")
        raise typer.Exit(1)

    console.print(f"[bold]{report.name}[/bold] [dim]({report.id})[/dim]")
    if report.is_available:
        console.print("Status: [green]available[/green]")
    else:
        console.print(f"Status: [yellow]borrowed by {report.holder_name}[/yellow]")
    console.print(f"Loans: {report.loan_count}")
    average = f"{report.average_score:.2f}" if report.average_score is not None else "-"
    console.print(f"Average score: {average}")


# ============================================================================
# Lending Commands
# ============================================================================


@app.command("borrow")
def borrow(
    user_id: str = typer.Argument(..., help="Borrowing user ID"),
    book_id: str = typer.Argument(..., help="Book ID"),
) -> None:
    """Lend a book to a user."""
    result = get_coordinator().borrow(user_id, book_id)
    finish(result, "Book borrowed")


@app.command("return")
def return_(
    user_id: str = typer.Argument(..., help="Returning user ID"),
    book_id: str = typer.Argument(..., help="Book ID"),
    score: str = typer.Argument(..., help="Score from 1 to 10"),
) -> None:
    """Take a book back and record the user's score."""
    result = get_coordinator().return_book(user_id, book_id, score)
    finish(result, "Book returned")


@app.command("history")
def history(
    user_id: Optional[str] = typer.Option(None, "--user", "-u", help="Filter by user ID"),
    book_id: Optional[str] = typer.Option(None, "--book", "-b", help="Filter by book ID"),
) -> None:
    """List loan records."""
    records = get_coordinator().history(user_id=user_id, book_id=book_id)
    if not records:
        console.print("[dim]No loans found[/dim]")
        return

    table = Table(title="Loans", show_header=True, header_style="bold magenta")
    table.add_column("#", justify="right", style="dim")
    table.add_column("User", style="dim", max_width=8)
    table.add_column("Book", style="cyan", max_width=8)
    table.add_column("Borrowed")
    table.add_column("Returned")
    table.add_column("Score", justify="center")

    for record in records:
        table.add_row(
            str(record.id),
            str(record.user_id),
            str(record.book_id),
            record.borrowed_at.strftime("%Y-%m-%d %H:%M"),
            record.returned_at.strftime("%Y-%m-%d %H:%M") if record.returned_at else "[yellow]out[/yellow]",
            str(record.score) if record.score is not None else "-",
        )
    console.print(table)


@app.command()
def version() -> None:
    """Show version information."""
    from . import __version__

    console.print(f"circulation version {__version__}")


# ============================================================================
# Main Entry Point
# ============================================================================


def main() -> None:
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
