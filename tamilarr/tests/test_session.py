from __future__ import annotations

import logging

import httpx

from fakes import BASE_URL
from tamilarr.resolver.session import SessionManager


def _manager(handler, *, username: str | None = "reader", password: str | None = "secret") -> SessionManager:
    client = httpx.Client(transport=httpx.MockTransport(handler))
    return SessionManager(client, login_url=f"{BASE_URL}/login", username=username, password=password)


def test_login_follows_both_redirect_hops() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        if request.url.path == "/login":
            return httpx.Response(
                302,
                headers=[
                    ("location", "/auth/complete"),
                    ("set-cookie", "PHPSESSID=abc; Path=/"),
                    ("set-cookie", "remember=1; Path=/"),
                ],
            )
        return httpx.Response(
            302,
            headers=[("location", "/"), ("set-cookie", "user_id=42; Path=/; HttpOnly")],
        )

    manager = _manager(handler)

    assert manager.login() is True
    assert manager.credential() == "user_id=42"

    post, follow = seen
    assert post.method == "POST"
    assert b"username=reader" in post.content
    assert follow.url == httpx.URL(f"{BASE_URL}/auth/complete")
    assert follow.headers["cookie"] == "PHPSESSID=abc; remember=1"


def test_login_fails_without_first_redirect() -> None:
    manager = _manager(lambda request: httpx.Response(200, text="<form>bad credentials</form>"))

    assert manager.login() is False
    assert manager.credential() is None


def test_login_fails_when_session_cookie_missing() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/login":
            return httpx.Response(302, headers={"location": "/auth/complete"})
        return httpx.Response(302, headers=[("location", "/"), ("set-cookie", "other=1")])

    manager = _manager(handler)

    assert manager.login() is False
    assert manager.credential() is None


def test_failed_relogin_clears_previous_credential() -> None:
    calls = {"count": 0}

    def handler(request: httpx.Request) -> httpx.Response:
        calls["count"] += 1
        if calls["count"] > 2:
            raise httpx.ConnectError("connection refused", request=request)
        if request.url.path == "/login":
            return httpx.Response(302, headers={"location": "/auth/complete"})
        return httpx.Response(302, headers=[("location", "/"), ("set-cookie", "user_id=7")])

    manager = _manager(handler)

    assert manager.login() is True
    assert manager.login() is False
    assert manager.credential() is None


def test_unconfigured_session_never_contacts_source(caplog) -> None:
    requests_made: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests_made.append(request)
        return httpx.Response(500)

    with caplog.at_level(logging.WARNING, logger="tamilarr.resolver.session"):
        manager = _manager(handler, username=None, password=None)

    assert not manager.configured
    assert manager.login() is False
    assert requests_made == []
    assert "detail pages will be skipped" in caplog.text
