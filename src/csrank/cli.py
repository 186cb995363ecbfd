"""
CSRank CLI - Command Line Interface for the match store

Provides commands for:
- Ingesting a saved webhook payload
- Replaying a stored match from its raw payload
- Recomputing career aggregates, for one player or all of them
- Showing a player's aggregate
"""

import json
import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from csrank import __version__
from csrank.core.config import configure_logging, get_config
from csrank.core.constants import COLLECTION_USERS
from csrank.exceptions import MalformedEventError
from csrank.infra.database import DocumentStore, get_store
from csrank.pipeline.aggregation import AGGREGATE_FIELD, update_player_aggregate
from csrank.pipeline.ingestion import MatchIngestor, parse_event

app = typer.Typer(
    name="csrank",
    help="CSRank Bridge - MatchZy match store maintenance",
    add_completion=False,
)
console = Console()
logger = logging.getLogger(__name__)


def version_callback(value: bool) -> None:
    """Show version and exit."""
    if value:
        console.print(f"[bold blue]CSRank Bridge[/bold blue] v{__version__}")
        raise typer.Exit()


def _open_store(db_path: Optional[Path]) -> DocumentStore:
    return DocumentStore(db_path) if db_path else get_store()


@app.callback()
def main_callback(
    version: bool = typer.Option(
        None,
        "--version",
        "-v",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-V", help="Enable verbose output"),
) -> None:
    """CSRank Bridge - MatchZy match store maintenance"""
    configure_logging(get_config().logging)
    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)


@app.command()
def ingest(
    payload_path: Path = typer.Argument(
        ...,
        help="JSON file holding one MatchZy webhook body",
        exists=True,
        dir_okay=False,
        resolve_path=True,
    ),
    db_path: Optional[Path] = typer.Option(None, "--db", help="SQLite file of the document store"),
) -> None:
    """Feed a saved webhook payload through the ingestion pipeline."""
    try:
        data = parse_event(payload_path.read_bytes())
    except MalformedEventError as e:
        console.print(f"[red]Invalid payload:[/red] {e}")
        raise typer.Exit(1)

    outcome = MatchIngestor(_open_store(db_path)).handle_event(data)
    console.print(f"Event [cyan]{data['event']}[/cyan] handled: [green]{outcome}[/green]")


@app.command()
def replay(
    match_id: str = typer.Argument(..., help="Id of a stored match"),
    db_path: Optional[Path] = typer.Option(None, "--db", help="SQLite file of the document store"),
) -> None:
    """Re-run ingestion of a stored match from its raw payload."""
    match = MatchIngestor(_open_store(db_path)).replay_match(match_id)
    if match is None:
        console.print(f"[red]No match {match_id}[/red]")
        raise typer.Exit(1)
    console.print(
        f"Replayed [cyan]{match.match_id}[/cyan] on {match.map_name}: "
        f"{match.team1_name} {match.score_team1} - {match.score_team2} {match.team2_name} "
        f"({len(match.players)} players)"
    )


@app.command()
def recompute(
    steam_id: Optional[str] = typer.Argument(None, help="Steam64 ID of a registered player"),
    all_players: bool = typer.Option(False, "--all", help="Recompute every registered player"),
    db_path: Optional[Path] = typer.Option(None, "--db", help="SQLite file of the document store"),
) -> None:
    """Recompute career aggregates from all stored matches."""
    store = _open_store(db_path)

    if all_players:
        steam_ids = store.list_ids(COLLECTION_USERS)
        updated = sum(1 for sid in steam_ids if update_player_aggregate(store, sid) is not None)
        console.print(f"[green]Aggregates updated[/green] for {updated}/{len(steam_ids)} players")
        return

    if steam_id is None:
        console.print("[red]Give a Steam64 ID or --all[/red]")
        raise typer.Exit(2)

    if not store.exists(COLLECTION_USERS, steam_id):
        console.print(f"[red]{steam_id} has no profile; aggregates are only kept for registered players[/red]")
        raise typer.Exit(1)

    aggregate = update_player_aggregate(store, steam_id)
    if aggregate is None:
        console.print(f"[yellow]No stored matches for {steam_id}[/yellow]")
        return
    console.print(f"[green]Aggregate updated[/green] from {aggregate['totalMatches']} matches")


@app.command()
def player(
    steam_id: str = typer.Argument(..., help="Steam64 ID of a registered player"),
    db_path: Optional[Path] = typer.Option(None, "--db", help="SQLite file of the document store"),
    as_json: bool = typer.Option(False, "--json", help="Print raw JSON instead of a table"),
) -> None:
    """Show a registered player's career aggregate."""
    profile = _open_store(db_path).get(COLLECTION_USERS, steam_id)
    if profile is None:
        console.print(f"[red]No profile for {steam_id}[/red]")
        raise typer.Exit(1)

    aggregate = profile.get(AGGREGATE_FIELD) or {}
    if as_json:
        console.print_json(json.dumps(aggregate))
        return

    table = Table(title=f"{profile.get('personaName', steam_id)} ({steam_id})", show_header=False)
    table.add_column("Stat", style="cyan")
    table.add_column("Value", style="green")
    for key, value in aggregate.items():
        table.add_row(key, str(value))
    console.print(table)


if __name__ == "__main__":
    app()
