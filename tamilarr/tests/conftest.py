"""Shared fixtures for the Tamilarr test-suite."""
from __future__ import annotations

import sys
from pathlib import Path
from typing import Iterator

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[2]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from tamilarr.manager_api.db import create_engine_from_settings, init_database  # noqa: E402
from tamilarr.manager_api.settings import ManagerSettings  # noqa: E402
from tamilarr.manager_api.stores.catalog_store import CatalogStore  # noqa: E402
from tamilarr.resolver.retry import RetryPolicy  # noqa: E402

from fakes import BASE_URL, SourceSite  # noqa: E402


@pytest.fixture()
def settings(tmp_path: Path) -> ManagerSettings:
    """Settings pointing at an isolated SQLite file with every delay disabled."""

    return ManagerSettings(
        database_url=f"sqlite:///{tmp_path / 'tamilarr.db'}",
        source_base_url=BASE_URL,
        source_username="reader",
        source_password="secret",
        tmdb_api_key="tmdb-key",
        retry_attempts=3,
        retry_delay=0,
        page_delay=0,
        candidate_delay_min=0,
        candidate_delay_max=0,
        _env_file=None,
    )


@pytest.fixture()
def store(settings: ManagerSettings) -> Iterator[CatalogStore]:
    engine = create_engine_from_settings(settings)
    init_database(engine)
    yield CatalogStore(engine)
    engine.dispose()


@pytest.fixture()
def no_wait_retry() -> RetryPolicy:
    return RetryPolicy(attempts=3, delay=0, sleep=lambda _: None)


@pytest.fixture()
def source_site() -> SourceSite:
    return SourceSite()

