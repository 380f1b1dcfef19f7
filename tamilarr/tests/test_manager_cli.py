"""Tests for the Typer-based manager CLI."""
from __future__ import annotations

import json
from typing import Any, Iterator

import pytest
from fastapi.testclient import TestClient
from typer.testing import CliRunner

from fakes import FakeTmdbSession, SourceSite, detail_html, listing_html, tmdb_details, tmdb_hit
from tamilarr.manager_api import create_app
from tamilarr.manager_api.settings import ManagerSettings
from tamilarr.manager_cli import app as cli_app_module
from tamilarr.manager_cli import client as client_module
from tamilarr.resolver.models import CatalogEntry

cli_app = cli_app_module.app


@pytest.fixture()
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture()
def cli_client(
    settings: ManagerSettings, source_site: SourceSite, monkeypatch: pytest.MonkeyPatch
) -> Iterator[TestClient]:
    """Provide a TestClient and patch the CLI HTTP client factory."""

    tmdb = FakeTmdbSession(
        search={"Kaadhal": [tmdb_hit(202, "Kaadhal", 2004, "ta")]},
        details={202: tmdb_details(202, "Kaadhal", 2004, "tt0420332")},
        find={"tt0420332": 202},
    )
    app = create_app(settings=settings, transport=source_site.transport(), tmdb_session=tmdb)
    test_client = TestClient(app)

    def _factory(base_url: str, *, timeout: float = 10.0, transport: Any = None):  # type: ignore[override]
        return test_client

    monkeypatch.setattr(client_module, "create_client", _factory)
    monkeypatch.setattr(cli_app_module, "create_client", _factory)

    yield test_client

    app.state.app_state.close()


def _seed(cli_client: TestClient) -> int:
    store = cli_client.app.state.app_state.catalog_store
    title = store.upsert_title_and_stream(
        CatalogEntry(
            title="Kaadhal",
            year=2004,
            stream_url="https://cdn.test/kaadhal.mp4",
            stream_label="Tamilan24 - HD",
            quality="HD",
        )
    )
    return title.id


def test_cli_titles_list_outputs_json(runner: CliRunner, cli_client: TestClient) -> None:
    _seed(cli_client)

    result = runner.invoke(cli_app, ["titles", "list", "--limit", "5"])

    assert result.exit_code == 0
    payload = json.loads(result.output)
    assert [item["title"] for item in payload["items"]] == ["Kaadhal"]
    assert payload["limit"] == 5


def test_cli_titles_list_linked_only(runner: CliRunner, cli_client: TestClient) -> None:
    _seed(cli_client)

    result = runner.invoke(cli_app, ["titles", "list", "--linked-only"])

    assert result.exit_code == 0
    assert json.loads(result.output)["items"] == []


def test_cli_titles_show_and_streams(runner: CliRunner, cli_client: TestClient) -> None:
    title_id = _seed(cli_client)

    show = runner.invoke(cli_app, ["titles", "show", str(title_id)])
    streams = runner.invoke(cli_app, ["titles", "streams", str(title_id)])

    assert show.exit_code == 0
    assert json.loads(show.output)["year"] == 2004
    assert json.loads(streams.output)[0]["url"] == "https://cdn.test/kaadhal.mp4"


def test_cli_titles_show_handles_missing_title(runner: CliRunner, cli_client: TestClient) -> None:
    result = runner.invoke(cli_app, ["titles", "show", "404"])

    assert result.exit_code == 1
    assert "Title not found" in result.output


def test_cli_titles_link_and_metrics(runner: CliRunner, cli_client: TestClient) -> None:
    title_id = _seed(cli_client)

    link = runner.invoke(cli_app, ["titles", "link", str(title_id), "tt0420332"])
    metrics = runner.invoke(cli_app, ["titles", "metrics"])

    assert link.exit_code == 0
    assert json.loads(link.output)["imdb_id"] == "tt0420332"
    assert json.loads(metrics.output) == {"total": 1, "linked": 1, "unlinked": 0, "streams": 1}


def test_cli_sync_run_and_status(runner: CliRunner, cli_client: TestClient, source_site: SourceSite) -> None:
    source_site.pages[1] = listing_html("Kaadhal (2004)")
    source_site.details["/watch/movie-1"] = [detail_html("https://cdn.test/kaadhal.mp4")]

    run = runner.invoke(cli_app, ["sync", "run", "--mode", "incremental"])
    status = runner.invoke(cli_app, ["sync", "status"])

    assert run.exit_code == 0
    assert status.exit_code == 0
    report = json.loads(status.output)["last_report"]
    assert report["status"] == "completed"
    assert report["linked"] == 1


def test_cli_sync_run_rejects_invalid_mode(runner: CliRunner, cli_client: TestClient) -> None:
    result = runner.invoke(cli_app, ["sync", "run", "--mode", "everything"])

    assert result.exit_code == 1
    assert "Invalid mode" in result.output


def test_cli_sync_run_reports_overlap(runner: CliRunner, cli_client: TestClient) -> None:
    orchestrator = cli_client.app.state.app_state.pipeline.orchestrator
    orchestrator._running = True
    try:
        result = runner.invoke(cli_app, ["sync", "run"])
    finally:
        orchestrator._running = False

    assert result.exit_code == 1
    assert "already in progress" in result.output
