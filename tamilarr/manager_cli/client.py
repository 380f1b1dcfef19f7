"""HTTP client helpers for the Tamilarr CLI."""
from __future__ import annotations

import json

import httpx
import typer

from .. import __version__


def create_client(base_url: str, *, timeout: float = 10.0, transport: httpx.BaseTransport | None = None) -> httpx.Client:
    """Instantiate an HTTPX client pointed at the Manager API."""

    return httpx.Client(
        base_url=base_url,
        timeout=timeout,
        transport=transport,
        headers={"User-Agent": f"tamilarr-cli/{__version__}"},
    )


def echo_response(response: httpx.Response) -> None:
    """Pretty-print a JSON body, or exit non-zero with the API's error detail."""

    if response.status_code >= 400:
        try:
            detail = response.json().get("detail")
        except ValueError:
            detail = response.text
        typer.echo(f"Error {response.status_code}: {detail}", err=True)
        raise typer.Exit(code=1)
    typer.echo(json.dumps(response.json(), indent=2, ensure_ascii=False))
