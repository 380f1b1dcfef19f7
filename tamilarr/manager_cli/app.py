"""Command line interface for the Tamilarr Manager API."""
from __future__ import annotations

from typing import Optional

import typer

from .client import create_client, echo_response


DEFAULT_API_BASE = "http://localhost:8000"
CRAWL_MODES = {"full", "incremental"}

app = typer.Typer(help="Interact with the Tamilarr manager service.")
titles_app = typer.Typer(help="Browse and curate catalog titles.")
app.add_typer(titles_app, name="titles")
sync_app = typer.Typer(help="Trigger and inspect catalog sync runs.")
app.add_typer(sync_app, name="sync")


def _api_base_option() -> typer.Option:
    return typer.Option(
        DEFAULT_API_BASE,
        "--api-base",
        help="Base URL for the Manager API service.",
        show_default=True,
        envvar="TAMILARR_API_BASE",
    )


@titles_app.command("list")
def list_titles(
    query: Optional[str] = typer.Option(None, "--query", "-q", help="Case-insensitive title substring."),
    linked_only: bool = typer.Option(
        False,
        "--linked-only/--all",
        help="Only show titles linked to an IMDb id.",
        show_default=True,
    ),
    limit: int = typer.Option(25, min=1, max=500, help="Number of titles to display."),
    offset: int = typer.Option(0, min=0, help="Number of titles to skip."),
    api_base: str = _api_base_option(),
) -> None:
    """Display catalog titles, newest release year first."""

    params: dict[str, object] = {"limit": limit, "offset": offset, "linked_only": linked_only}
    if query:
        params["query"] = query

    with create_client(api_base) as client:
        echo_response(client.get("/titles", params=params))


@titles_app.command("show")
def show_title(
    title_id: int = typer.Argument(..., help="Internal title identifier."),
    api_base: str = _api_base_option(),
) -> None:
    """Display a single title."""

    with create_client(api_base) as client:
        echo_response(client.get(f"/titles/{title_id}"))


@titles_app.command("streams")
def title_streams(
    title_id: int = typer.Argument(..., help="Internal title identifier."),
    api_base: str = _api_base_option(),
) -> None:
    """Display the streams recorded for a title."""

    with create_client(api_base) as client:
        echo_response(client.get(f"/titles/{title_id}/streams"))


@titles_app.command("metrics")
def title_metrics(api_base: str = _api_base_option()) -> None:
    """Display linked/unlinked catalog counts."""

    with create_client(api_base) as client:
        echo_response(client.get("/titles/metrics"))


@titles_app.command("link")
def link_title(
    title_id: int = typer.Argument(..., help="Internal title identifier."),
    imdb_id: str = typer.Argument(..., help="IMDb id to link, e.g. tt1234567."),
    api_base: str = _api_base_option(),
) -> None:
    """Link a title to an IMDb id resolved through TMDB."""

    with create_client(api_base, timeout=60.0) as client:
        echo_response(client.post(f"/titles/{title_id}/link", json={"imdb_id": imdb_id}))


@sync_app.command("run")
def run_sync(
    mode: Optional[str] = typer.Option(
        None,
        "--mode",
        help="Crawl mode (full or incremental); the server default is used when omitted.",
    ),
    api_base: str = _api_base_option(),
) -> None:
    """Start a sync run on the server."""

    payload: dict[str, object] = {}
    if mode is not None:
        if mode not in CRAWL_MODES:
            typer.echo("Invalid mode. Allowed values: " + ", ".join(sorted(CRAWL_MODES)), err=True)
            raise typer.Exit(code=1)
        payload["mode"] = mode

    with create_client(api_base) as client:
        response = client.post("/sync/run", json=payload)
        if response.status_code == 409:
            typer.echo("A sync run is already in progress", err=True)
            raise typer.Exit(code=1)
        echo_response(response)


@sync_app.command("status")
def sync_status(api_base: str = _api_base_option()) -> None:
    """Display run state and the last run's report."""

    with create_client(api_base) as client:
        echo_response(client.get("/sync/status"))
