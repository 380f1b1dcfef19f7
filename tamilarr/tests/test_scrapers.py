from __future__ import annotations

import httpx
import pytest

from fakes import BASE_URL, SourceSite, detail_html, listing_html
from tamilarr.resolver.errors import ListingError
from tamilarr.resolver.retry import RetryPolicy
from tamilarr.resolver.scrapers import ContentLister, DetailResolver, parse_listing_label
from tamilarr.resolver.session import SessionManager


def _wire(site: SourceSite, retry: RetryPolicy, *, username: str | None = "reader"):
    client = httpx.Client(transport=site.transport())
    session = SessionManager(
        client,
        login_url=f"{BASE_URL}/login",
        username=username,
        password="secret" if username else None,
    )
    lister = ContentLister(client, session, base_url=BASE_URL, retry=retry)
    resolver = DetailResolver(client, session, base_url=BASE_URL, retry=retry)
    return session, lister, resolver


@pytest.mark.parametrize(
    ("label", "expected"),
    [
        ("Vaa Vaathiyaar (2024)", ("Vaa Vaathiyaar", 2024)),
        ("  Kaadhal   (2004) ", ("Kaadhal", 2004)),
        ("Ponniyin Selvan (Part 1) (2022)", ("Ponniyin Selvan (Part 1)", 2022)),
        ("Untitled Short", ("Untitled Short", None)),
        ("(2020)", ("(2020)", None)),
    ],
)
def test_parse_listing_label(label: str, expected: tuple) -> None:
    assert parse_listing_label(label) == expected


def test_listing_page_yields_absolute_candidates(source_site: SourceSite, no_wait_retry: RetryPolicy) -> None:
    source_site.pages[1] = listing_html("Vaa Vaathiyaar (2024)", "Kaadhal (2004)", "Mystery Clip")
    _, lister, _ = _wire(source_site, no_wait_retry)

    candidates = lister.list(1)

    assert [(c.title, c.year) for c in candidates] == [
        ("Vaa Vaathiyaar", 2024),
        ("Kaadhal", 2004),
        ("Mystery Clip", None),
    ]
    assert candidates[0].detail_url == f"{BASE_URL}/watch/movie-1"
    assert candidates[1].poster == f"{BASE_URL}/posters/2.jpg"
    assert [c.label for c in candidates] == ["Vaa Vaathiyaar (2024)", "Kaadhal (2004)", "Mystery Clip"]
    assert lister.page_url(3) == f"{BASE_URL}/videos/latest?page_id=3"


def test_listing_ignores_cells_without_link_or_heading(no_wait_retry: RetryPolicy, source_site: SourceSite) -> None:
    _, lister, _ = _wire(source_site, no_wait_retry)
    html = """
    <div class="col-md-3"><h4><a href="/watch/x">No thumb (2020)</a></h4></div>
    <div class="col-md-3"><a class="thumb" href="/watch/y"></a></div>
    """

    assert lister.parse(html) == []


def test_listing_404_ends_listing(no_wait_retry: RetryPolicy) -> None:
    client = httpx.Client(transport=httpx.MockTransport(lambda request: httpx.Response(404)))
    session = SessionManager(client, login_url=f"{BASE_URL}/login", username=None, password=None)
    lister = ContentLister(client, session, base_url=BASE_URL, retry=no_wait_retry)

    assert lister.list(9) == []


def test_listing_retries_transient_failures(source_site: SourceSite, no_wait_retry: RetryPolicy) -> None:
    source_site.pages[1] = listing_html("Kaadhal (2004)")
    source_site.listing_failures[1] = 2
    _, lister, _ = _wire(source_site, no_wait_retry)

    assert len(lister.list(1)) == 1
    assert source_site.count("/videos/latest") == 3


def test_listing_raises_after_exhausting_retries(source_site: SourceSite, no_wait_retry: RetryPolicy) -> None:
    source_site.listing_failures[2] = 10
    _, lister, _ = _wire(source_site, no_wait_retry)

    with pytest.raises(ListingError) as excinfo:
        lister.list(2)

    assert excinfo.value.page == 2
    assert excinfo.value.status == 503
    assert source_site.count("/videos/latest") == 3


def test_detail_page_yields_stream_and_metadata(source_site: SourceSite, no_wait_retry: RetryPolicy) -> None:
    source_site.details["/watch/movie-1"] = [detail_html("/media/kaadhal.mp4", description="Love story")]
    _, _, resolver = _wire(source_site, no_wait_retry)

    details = resolver.resolve(f"{BASE_URL}/watch/movie-1")

    assert details.stream_url == f"{BASE_URL}/media/kaadhal.mp4"
    assert details.quality == "720p"
    assert details.description == "Love story"
    assert details.genres == ("Drama", "Romance")
    assert details.poster == f"{BASE_URL}/images/poster.jpg"
    request = source_site.requests[-1]
    assert request.headers["referer"] == f"{BASE_URL}/"


def test_detail_quality_defaults_to_hd(source_site: SourceSite, no_wait_retry: RetryPolicy) -> None:
    source_site.details["/watch/movie-1"] = [detail_html("https://cdn.test/a.mp4", quality=None)]
    _, _, resolver = _wire(source_site, no_wait_retry)

    assert resolver.resolve(f"{BASE_URL}/watch/movie-1").quality == "HD"


def test_missing_stream_marker_triggers_one_relogin(source_site: SourceSite, no_wait_retry: RetryPolicy) -> None:
    source_site.details["/watch/movie-1"] = [detail_html(None), detail_html("https://cdn.test/a.mp4")]
    session, _, resolver = _wire(source_site, no_wait_retry)

    details = resolver.resolve(f"{BASE_URL}/watch/movie-1")

    assert details.stream_url == "https://cdn.test/a.mp4"
    assert source_site.count("/login", "POST") == 1
    assert source_site.count("/watch/movie-1") == 2
    assert session.credential() == "user_id=42"
    assert source_site.requests[-1].headers["cookie"] == "user_id=42"


def test_stream_still_missing_after_relogin_is_skipped(source_site: SourceSite, no_wait_retry: RetryPolicy) -> None:
    source_site.details["/watch/movie-1"] = [detail_html(None)]
    _, _, resolver = _wire(source_site, no_wait_retry)

    assert resolver.resolve(f"{BASE_URL}/watch/movie-1") is None
    assert source_site.count("/login", "POST") == 1
    assert source_site.count("/watch/movie-1") == 2


def test_failed_relogin_skips_refetch(source_site: SourceSite, no_wait_retry: RetryPolicy) -> None:
    source_site.details["/watch/movie-1"] = [detail_html(None)]
    source_site.login_ok = False
    _, _, resolver = _wire(source_site, no_wait_retry)

    assert resolver.resolve(f"{BASE_URL}/watch/movie-1") is None
    assert source_site.count("/watch/movie-1") == 1


def test_detail_not_found_does_not_relogin(source_site: SourceSite, no_wait_retry: RetryPolicy) -> None:
    _, _, resolver = _wire(source_site, no_wait_retry)

    assert resolver.resolve(f"{BASE_URL}/watch/unknown") is None
    assert source_site.count("/login", "POST") == 0


def test_detail_transient_exhaustion_is_skipped(no_wait_retry: RetryPolicy) -> None:
    attempts = {"count": 0}

    def handler(request: httpx.Request) -> httpx.Response:
        attempts["count"] += 1
        raise httpx.ReadTimeout("timed out", request=request)

    client = httpx.Client(transport=httpx.MockTransport(handler))
    session = SessionManager(client, login_url=f"{BASE_URL}/login", username="reader", password="secret")
    resolver = DetailResolver(client, session, base_url=BASE_URL, retry=no_wait_retry)

    assert resolver.resolve(f"{BASE_URL}/watch/movie-1") is None
    assert attempts["count"] == 3


def test_detail_resolution_requires_credentials(source_site: SourceSite, no_wait_retry: RetryPolicy) -> None:
    source_site.details["/watch/movie-1"] = [detail_html("https://cdn.test/a.mp4")]
    _, _, resolver = _wire(source_site, no_wait_retry, username=None)

    assert resolver.resolve(f"{BASE_URL}/watch/movie-1") is None
    assert source_site.requests == []
