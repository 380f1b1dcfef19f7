"""
Tamilan24 login session handling.
"""
from __future__ import annotations

import logging
from typing import List, Optional
from urllib.parse import urljoin

import httpx

logger = logging.getLogger(__name__)


def _cookie_pairs(response: httpx.Response) -> List[str]:
    """Return the ``name=value`` part of every Set-Cookie header."""

    return [value.split(";", 1)[0].strip() for value in response.headers.get_list("set-cookie")]


class SessionManager:
    """Holds the single authenticated cookie used for detail page fetches.

    The login is a two-hop redirect dance: the form POST answers with a
    redirect plus intermediate cookies, and following that redirect (with the
    intermediate cookies) answers with a second redirect that sets the session
    cookie. Redirects are never followed automatically so both hops can be
    inspected.
    """

    DEFAULT_USER_AGENT = (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/124.0 Safari/537.36"
    )

    def __init__(
        self,
        client: httpx.Client,
        *,
        login_url: str,
        username: Optional[str],
        password: Optional[str],
        cookie_name: str = "user_id",
        user_agent: Optional[str] = None,
    ) -> None:
        self._client = client
        self.login_url = login_url
        self._username = username
        self._password = password
        self.cookie_name = cookie_name
        self.user_agent = user_agent or self.DEFAULT_USER_AGENT
        self._cookie: Optional[str] = None

        if not self.configured:
            logger.warning(
                "Source username/password not set; detail pages will be skipped."
            )

    @property
    def configured(self) -> bool:
        return bool(self._username and self._password)

    def credential(self) -> Optional[str]:
        """Return the current ``name=value`` session cookie, if any."""

        return self._cookie

    def login(self) -> bool:
        """Run the handshake and replace the stored credential on success."""

        if not self.configured:
            logger.debug("Login skipped: credentials are not configured")
            return False

        logger.info("Logging in to %s as %s", self.login_url, self._username)
        headers = {"User-Agent": self.user_agent, "Referer": self.login_url}

        try:
            post_response = self._client.post(
                self.login_url,
                data={"username": self._username, "password": self._password},
                headers=headers,
                follow_redirects=False,
            )
            location = post_response.headers.get("location")
            if not post_response.is_redirect or not location:
                logger.error(
                    "Login step 1 failed: expected a redirect, got status=%s",
                    post_response.status_code,
                )
                self._cookie = None
                return False
            intermediate = _cookie_pairs(post_response)
            logger.debug("Login step 1 redirected to %s", location)

            follow_headers = dict(headers)
            if intermediate:
                follow_headers["Cookie"] = "; ".join(intermediate)
            get_response = self._client.get(
                urljoin(self.login_url, location),
                headers=follow_headers,
                follow_redirects=False,
            )
        except httpx.HTTPError as exc:
            logger.error("Login request failed: %s", exc)
            self._cookie = None
            return False

        if not get_response.is_redirect:
            logger.error(
                "Login step 2 failed: expected a redirect, got status=%s",
                get_response.status_code,
            )
            self._cookie = None
            return False

        prefix = f"{self.cookie_name}="
        session_cookie = next(
            (pair for pair in _cookie_pairs(get_response) if pair.startswith(prefix)),
            None,
        )
        if not session_cookie:
            logger.error("Login failed: '%s' cookie missing from final redirect", self.cookie_name)
            self._cookie = None
            return False

        self._cookie = session_cookie
        logger.info("Login succeeded; session cookie captured")
        return True
