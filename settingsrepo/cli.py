"""CLI commands for the settings repository.

Example:
    settingsrepo put options/editor.xml ./editor.xml
    settingsrepo ls options
    settingsrepo resolve options/editor.xml --incoming-dir ./remote
"""

import logging
import sys
from pathlib import Path
from typing import Annotated, Literal, Optional

import cyclopts
from dotenv import load_dotenv
from rich.console import Console
from rich.prompt import Confirm
from rich.table import Table

from settingsrepo.repository import (
    ConflictResolver,
    ConsolePresenter,
    JsonFileIndex,
    PreferCurrentStrategy,
    PreferIncomingStrategy,
    RepositoryConfig,
    RepositoryError,
    RepositoryManager,
    RepositoryRevisionSource,
    SentinelStrategy,
)

app = cyclopts.App(name="settingsrepo", help="Manage the local settings repository")

STRATEGIES = {
    "sentinel": SentinelStrategy,
    "current": PreferCurrentStrategy,
    "incoming": PreferIncomingStrategy,
}


def _get_console() -> Console:
    """Get a Rich console for output."""
    return Console()


def _get_manager(root: Optional[str] = None) -> RepositoryManager:
    """Build a manager backed by the JSON index from the configuration."""
    config = RepositoryConfig.from_env()
    if root:
        config = RepositoryConfig(
            root=Path(root), index_file=config.index_file, headless=config.headless
        )
    return RepositoryManager(JsonFileIndex(config.index_file), config=config)


RootOption = Annotated[
    Optional[str], cyclopts.Parameter(help="Repository root (overrides config)")
]


@app.command(name="ls")
def list_children(
    path: Annotated[str, cyclopts.Parameter(help="Directory to list")] = "",
    *,
    root: RootOption = None,
):
    """List the immediate children of a repository directory."""
    console = _get_console()
    manager = _get_manager(root)

    names = manager.list_children(path)
    if not names:
        console.print("[dim]No entries[/dim]")
        return

    for name in names:
        console.print(name, highlight=False)


@app.command
def cat(
    path: Annotated[str, cyclopts.Parameter(help="File to print")],
    *,
    root: RootOption = None,
):
    """Print stored content to stdout."""
    console = _get_console()
    manager = _get_manager(root)

    try:
        content = manager.read(path)
    except RepositoryError as e:
        console.print(f"[red]Error reading {path}: {e}[/red]")
        sys.exit(1)

    if content is None:
        console.print(f"[yellow]Not found: {path}[/yellow]")
        sys.exit(1)

    sys.stdout.buffer.write(content)
    sys.stdout.buffer.flush()


@app.command
def put(
    path: Annotated[str, cyclopts.Parameter(help="Repository path to write")],
    source: Annotated[Path, cyclopts.Parameter(help="Local file to store")],
    *,
    root: RootOption = None,
):
    """Store a local file in the repository."""
    console = _get_console()
    manager = _get_manager(root)

    if manager.write(path, source.read_bytes()):
        console.print(f"[green]✓ Stored {path}[/green]")
    else:
        console.print(f"[red]Failed to store {path} (see log)[/red]")
        sys.exit(1)


@app.command(name="rm")
def remove(
    path: Annotated[str, cyclopts.Parameter(help="Repository path to delete")],
    *,
    root: RootOption = None,
):
    """Delete a file or directory from the repository."""
    console = _get_console()
    manager = _get_manager(root)

    manager.delete(path)
    if manager.exists(path):
        console.print(f"[red]Failed to delete {path} (see log)[/red]")
        sys.exit(1)
    console.print(f"[green]✓ Deleted {path}[/green]")


@app.command
def exists(
    path: Annotated[str, cyclopts.Parameter(help="Repository path to check")],
    *,
    root: RootOption = None,
):
    """Exit with status 0 if the path exists, 1 otherwise."""
    console = _get_console()
    found = _get_manager(root).exists(path)
    console.print("yes" if found else "no")
    sys.exit(0 if found else 1)


@app.command
def reset(
    *,
    yes: Annotated[bool, cyclopts.Parameter(help="Skip confirmation")] = False,
    root: RootOption = None,
):
    """Delete the whole repository directory."""
    console = _get_console()
    manager = _get_manager(root)

    if not yes and not Confirm.ask(
        f"Delete repository at [cyan]{manager.root}[/cyan]?", default=False
    ):
        console.print("[yellow]Cancelled[/yellow]")
        return

    manager.delete_all()
    console.print(f"[green]✓ Deleted {manager.root}[/green]")


@app.command
def index(*, root: RootOption = None):
    """Show the entries recorded in the index."""
    console = _get_console()
    manager = _get_manager(root)

    entries = manager.index.entries()
    if not entries:
        console.print("[dim]Index is empty[/dim]")
        return

    table = Table(title="Repository Index")
    table.add_column("Path", style="cyan", no_wrap=True)
    table.add_column("Size", justify="right")
    table.add_column("MD5", style="dim")
    table.add_column("Last Modified")
    for path, entry in sorted(entries.items()):
        table.add_row(
            path,
            str(entry["size"]),
            entry["md5"][:12],
            entry["last_modified"][:19],
        )
    console.print(table)


@app.command
def resolve(
    *paths: Annotated[str, cyclopts.Parameter(help="Conflicted paths")],
    incoming_dir: Annotated[
        Path, cyclopts.Parameter(help="Directory holding the incoming revisions")
    ],
    strategy: Annotated[
        Literal["sentinel", "current", "incoming", "interactive"],
        cyclopts.Parameter(help="How to pick the final revision"),
    ] = "interactive",
    root: RootOption = None,
):
    """Resolve conflicts between the repository and incoming revisions.

    A path missing from the incoming directory is treated as deleted on the
    incoming side.
    """
    console = _get_console()
    manager = _get_manager(root)

    incoming = {}
    for path in paths:
        incoming_file = incoming_dir / path
        incoming[path] = incoming_file.read_bytes() if incoming_file.is_file() else None

    revisions = RepositoryRevisionSource(manager, incoming)
    if strategy == "interactive":
        resolver = ConflictResolver(
            presenter=ConsolePresenter(console), headless=manager.config.headless
        )
    else:
        resolver = ConflictResolver(strategy=STRATEGIES[strategy](), headless=True)

    resolved = resolver.resolve(paths, revisions)

    for path in paths:
        if path in resolved:
            console.print(f"[green]✓ {path}[/green]")
        else:
            console.print(f"[yellow]✗ {path} (unresolved)[/yellow]")

    if revisions.pending:
        sys.exit(1)


@app.meta.default
def launcher(
    *tokens: Annotated[str, cyclopts.Parameter(show=False, allow_leading_hyphen=True)],
    verbose: Annotated[bool, cyclopts.Parameter(help="Enable debug logging")] = False,
):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    app(tokens)


def main():
    load_dotenv()
    app.meta()


if __name__ == "__main__":
    main()
