"""MediaWiki action API client.

Provides authenticated access to a MediaWiki ``api.php`` endpoint using a
persistent ``requests`` session. Login uses the bot-password flow:

1. ``action=query&meta=tokens&type=login`` → login token
2. ``action=login`` with username, password and token
3. Session cookies are kept on the session for subsequent requests

Example:
    from badgebot.mediawiki import MediawikiApi
    from badgebot.resolver import ApiUser

    api = MediawikiApi("https://en.wikipedia.org/w/api.php")
    api.login(ApiUser("ExampleBot", "secret"))
    api.purge(["Douglas_Adams", "Berlin"])
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import TYPE_CHECKING, Any

import requests

from badgebot import __version__

if TYPE_CHECKING:
    from badgebot.resolver import ApiUser

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 60

USER_AGENT = f"badgebot/{__version__} (Wikibase badge maintenance)"


class MediawikiApiError(Exception):
    """The API answered with an ``error`` object."""

    def __init__(self, code: str, info: str):
        self.code = code
        self.info = info
        super().__init__(f"{code}: {info}")


class MediawikiLoginError(Exception):
    """Logging in to the API failed."""


def _encode_params(params: dict[str, Any]) -> dict[str, str]:
    """Encode request parameters the way the action API expects.

    Booleans are flags: present when true, omitted when false. Lists are
    pipe-joined.
    """
    encoded: dict[str, str] = {}
    for key, value in params.items():
        if value is None or value is False:
            continue
        if value is True:
            encoded[key] = "1"
        elif isinstance(value, list | tuple):
            encoded[key] = "|".join(str(v) for v in value)
        else:
            encoded[key] = str(value)
    return encoded


class MediawikiApi:
    """Session-backed client for one MediaWiki API endpoint.

    Attributes:
        url: Full ``api.php`` URL
        timeout: Request timeout in seconds
    """

    def __init__(
        self,
        url: str,
        timeout: int = DEFAULT_TIMEOUT,
        session: requests.Session | None = None,
    ) -> None:
        self.url = url
        self.timeout = timeout
        self._session = session
        self._tokens: dict[str, str] = {}
        self.logged_in_as: str | None = None

    def _get_session(self) -> requests.Session:
        if self._session is None:
            self._session = requests.Session()
            self._session.headers.update(
                {
                    "User-Agent": USER_AGENT,
                    "Accept-Encoding": "gzip, deflate",
                }
            )
        return self._session

    def _request(self, method: str, action: str, params: dict[str, Any]) -> dict[str, Any]:
        payload = {"action": action, "format": "json", "formatversion": "2"}
        payload.update(_encode_params(params))

        session = self._get_session()
        if method == "GET":
            response = session.get(self.url, params=payload, timeout=self.timeout)
        else:
            response = session.post(self.url, data=payload, timeout=self.timeout)
        response.raise_for_status()

        data = response.json()
        if "error" in data:
            error = data["error"]
            raise MediawikiApiError(error.get("code", "unknown"), error.get("info", ""))
        for warning in (data.get("warnings") or {}).values():
            logger.debug("API warning from %s (%s): %s", self.url, action, warning)
        return data

    def get(self, action: str, **params: Any) -> dict[str, Any]:
        """Issue a GET request for an action."""
        return self._request("GET", action, params)

    def post(self, action: str, **params: Any) -> dict[str, Any]:
        """Issue a POST request for an action."""
        return self._request("POST", action, params)

    def get_token(self, token_type: str = "csrf") -> str:
        """Fetch (and cache) a token of the given type."""
        if token_type not in self._tokens:
            data = self.get("query", meta="tokens", type=token_type)
            self._tokens[token_type] = data["query"]["tokens"][f"{token_type}token"]
        return self._tokens[token_type]

    def login(self, user: ApiUser) -> None:
        """Log in with a bot password.

        Raises:
            MediawikiLoginError: If the API does not report success
        """
        token = self.get_token("login")
        data = self.post(
            "login",
            lgname=user.username,
            lgpassword=user.password,
            lgtoken=token,
        )
        result = data.get("login", {})
        if result.get("result") != "Success":
            reason = result.get("reason") or result.get("result") or "unknown reason"
            raise MediawikiLoginError(f"Failed to login to {self.url} as {user.username}: {reason}")

        # Tokens are bound to the session user
        self._tokens.clear()
        self.logged_in_as = result.get("lgusername", user.username)
        logger.info("Logged in to %s as %s", self.url, self.logged_in_as)

    def purge(self, titles: Iterable[str], force_link_update: bool = True) -> dict[str, Any]:
        """Purge the cache of the given pages.

        ``forcelinkupdate`` makes the wiki recompute links tables and page
        props, not just the parser cache.
        """
        return self.post(
            "purge",
            titles=list(titles),
            forcelinkupdate=force_link_update,
        )

    def close(self) -> None:
        """Close the session."""
        if self._session is not None:
            self._session.close()
            self._session = None
            self._tokens.clear()
            self.logged_in_as = None
