"""passvault — interactive password vault for the terminal.

Menu
----
  1  Add entry     name, username and a twice-confirmed password
  2  List entries  index, name and username of every entry
  3  Search        case-insensitive match on name or username, shows passwords
  4  Quit
"""

from __future__ import annotations

import logging
from typing import Annotated, Callable, Optional

import typer
from rich import box
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel
from rich.prompt import Prompt
from rich.table import Table
from rich.theme import Theme

from . import __version__
from .crypto import derive_key
from .models import Listing, Record
from .store import BadVaultError, VaultRepository

# ---------------------------------------------------------------------------
# App & consoles
# ---------------------------------------------------------------------------

_THEME = Theme(
    {
        "success": "bold green",
        "warning": "bold yellow",
        "danger": "bold red",
        "muted": "dim",
        "label": "cyan",
    }
)

console = Console(theme=_THEME)
err = Console(stderr=True, theme=_THEME)

app = typer.Typer(
    name="passvault",
    help="[bold cyan]passvault[/bold cyan] — a local, encrypted password vault.",
    pretty_exceptions_show_locals=False,
    rich_markup_mode="rich",
    add_completion=False,
)

# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------


def _repository() -> VaultRepository:
    return VaultRepository()


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=err, show_path=False)],
        force=True,
    )


def _ask(prompt: str) -> str:
    return Prompt.ask(prompt, console=console)


def _ask_password(prompt: str = "Master password") -> str:
    return Prompt.ask(prompt, password=True, console=console)


def _ask_new_password(prompt: str, confirm_prompt: str) -> str:
    """Ask for a password twice until both answers match."""
    while True:
        first = _ask_password(prompt)
        second = _ask_password(confirm_prompt)
        if first == second:
            return first
        err.print("[warning]Passwords did not match, try again.[/warning]")


def _open_vault(repo: VaultRepository) -> bytes:
    """Create or unlock the vault and return the derived key."""
    if not repo.exists():
        console.print(
            Panel(
                "[bold]No vault found.[/bold] Creating a new one.\n"
                "[muted]Choose a master password — it cannot be recovered if lost.[/muted]",
                title="[bold cyan]Vault Initialisation[/bold cyan]",
                border_style="cyan",
                expand=False,
            )
        )
        pw = _ask_password("  Create a master password")
        confirm = _ask_password("  Confirm master password")
        if pw != confirm:
            err.print("[danger]Passwords do not match.[/danger] Exiting.")
            raise typer.Exit()

        key = derive_key(pw)
        repo.init(key)
        console.print(f"[success]Vault created →[/success] [bold]{escape(str(repo.path))}[/bold]")
        return key

    key = derive_key(_ask_password())
    try:
        repo.load(key, strict=True)
    except BadVaultError as exc:
        err.print(f"[danger]{exc}[/danger]")
        raise typer.Exit(1) from exc
    return key


def _render_listing(listing: Listing) -> None:
    table = Table(title=f"Entries ({len(listing)} total)", box=box.ROUNDED, header_style="bold cyan")
    table.add_column("#", style="muted", justify="right", no_wrap=True)
    table.add_column("Name", style="bold white")
    table.add_column("Username", style="dim")
    for entry in listing:
        table.add_row(str(entry.index), escape(entry.name), escape(entry.username))
    console.print(table)


def _render_matches(records: list[Record], query: str) -> None:
    n = len(records)
    table = Table(
        title=f"Search: {escape(query)}  ({n} match{'es' if n != 1 else ''})",
        box=box.ROUNDED,
        header_style="bold cyan",
    )
    table.add_column("Name", style="bold white")
    table.add_column("Username", style="dim")
    table.add_column("Password", style="bold green")
    for r in records:
        table.add_row(escape(r.name), escape(r.username), escape(r.password))
    console.print(table)


# ---------------------------------------------------------------------------
# Menu actions
# ---------------------------------------------------------------------------


def _add_entry(repo: VaultRepository, key: bytes) -> None:
    name = _ask("  Entry name").strip()
    username = _ask("  Username").strip()
    password = _ask_new_password("  Password", "  Confirm password")

    with repo.transaction(key) as store:
        store.add(Record(name=name, username=username, password=password))

    console.print(f"[success]Entry '[bold]{escape(name)}[/bold]' added.[/success]")


def _list_entries(repo: VaultRepository, key: bytes) -> None:
    store = repo.load(key)
    if store.is_empty():
        console.print("[muted]There is nothing![/muted]")
        return
    _render_listing(store.listing())


def _search_entries(repo: VaultRepository, key: bytes) -> None:
    query = _ask("  Search by name or username").strip()
    matches = repo.load(key).search(query)
    if not matches:
        console.print("[muted]No match![/muted]")
        return
    _render_matches(matches, query)


_ACTIONS: dict[str, Callable[[VaultRepository, bytes], None]] = {
    "1": _add_entry,
    "2": _list_entries,
    "3": _search_entries,
}


def _menu(repo: VaultRepository, key: bytes) -> None:
    console.print("[success]Password manager ready.[/success]")
    while True:
        console.print(
            "\n[bold cyan]Password Manager Menu[/bold cyan]\n"
            "  [label]1[/label]  Add entry\n"
            "  [label]2[/label]  List entries\n"
            "  [label]3[/label]  Search\n"
            "  [label]4[/label]  Quit"
        )
        choice = _ask("  Choice").strip()
        if choice == "4":
            console.print("Goodbye! Have a fantastic day!")
            return

        action = _ACTIONS.get(choice)
        if action is None:
            err.print(f"[warning]Invalid choice '{escape(choice)}'.[/warning]")
            continue
        action(repo, key)


# ---------------------------------------------------------------------------
# Command
# ---------------------------------------------------------------------------


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"passvault {__version__}")
        raise typer.Exit()


@app.command()
def run(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Show debug logging.")] = False,
    version: Annotated[
        Optional[bool],
        typer.Option("--version", callback=_version_callback, is_eager=True, help="Show the version and exit."),
    ] = None,
) -> None:
    """Unlock (or create) the vault and start the interactive menu."""
    _configure_logging(verbose)
    repo = _repository()

    try:
        key = _open_vault(repo)
        _menu(repo, key)
    except EOFError:
        console.print("\nGoodbye!")
    except OSError as exc:
        # Vault file access and the OS random source both end up here.
        err.print(f"[danger]I/O error:[/danger] {escape(str(exc))}")
        raise typer.Exit(1) from exc


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def main() -> None:
    app()


if __name__ == "__main__":
    main()
