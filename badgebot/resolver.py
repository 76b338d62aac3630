"""Resolve configured user, wiki and database names to connection details.

Every lookup is a plain keyed read of the :class:`~badgebot.config.AppConfig`
registry. A missing key is fatal: callers resolve everything up front so that
the run aborts before any connection is attempted.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from badgebot.config import AppConfig

DEFAULT_DB_HOST = "{wiki}.labsdb"
DEFAULT_DB_NAME = "{wiki}_p"
DEFAULT_DB_PORT = 3306


class ConfigurationMissing(KeyError):
    """A required configuration key is absent."""

    def __init__(self, key: str, what: str | None = None):
        self.key = key
        self.what = what or key
        super().__init__(key)

    def __str__(self) -> str:
        return f"{self.what} not found in config (missing '{self.key}')"


@dataclass(frozen=True)
class ApiUser:
    """Credentials for logging in to a MediaWiki API."""

    username: str
    password: str = field(repr=False)


@dataclass(frozen=True)
class WikiDetails:
    """A configured wiki and its API endpoint."""

    name: str
    url: str


@dataclass(frozen=True)
class DatabaseCredentials:
    """Replica database login plus host/name templates.

    ``host`` and ``database`` are templates with a ``{wiki}`` placeholder,
    filled in per wiki by :meth:`for_wiki`.
    """

    username: str
    password: str = field(repr=False)
    host: str = DEFAULT_DB_HOST
    database: str = DEFAULT_DB_NAME
    port: int = DEFAULT_DB_PORT

    def for_wiki(self, wiki: str) -> tuple[str, str]:
        """Return ``(host, database)`` for a wiki id."""
        return self.host.format(wiki=wiki), self.database.format(wiki=wiki)


def _require(config: AppConfig, key: str, what: str) -> dict:
    value = config.get(key)
    if not isinstance(value, dict):
        raise ConfigurationMissing(key, what)
    return value


def _require_field(details: dict, key: str, name: str, what: str) -> str:
    value = details.get(name)
    if value in (None, ""):
        raise ConfigurationMissing(f"{key}.{name}", what)
    return str(value)


def resolve_user(config: AppConfig, name: str) -> ApiUser:
    key = f"users.{name}"
    details = _require(config, key, f"User {name}")
    return ApiUser(
        username=_require_field(details, key, "username", f"User {name}"),
        password=_require_field(details, key, "password", f"User {name}"),
    )


def resolve_wiki(config: AppConfig, name: str) -> WikiDetails:
    key = f"wikis.{name}"
    details = _require(config, key, f"Wiki {name}")
    return WikiDetails(name=name, url=_require_field(details, key, "url", f"Wiki {name}"))


def resolve_database_credentials(config: AppConfig, name: str) -> DatabaseCredentials:
    """Resolve database credentials for a configured user.

    Database logins live under ``users.<name>`` like API users; the optional
    ``database`` section overrides the replica host, database name and port.
    """
    key = f"users.{name}"
    details = _require(config, key, f"Database user {name}")
    templates = config.get("database", {}) or {}
    return DatabaseCredentials(
        username=_require_field(details, key, "username", f"Database user {name}"),
        password=_require_field(details, key, "password", f"Database user {name}"),
        host=templates.get("host", DEFAULT_DB_HOST),
        database=templates.get("name", DEFAULT_DB_NAME),
        port=int(templates.get("port", DEFAULT_DB_PORT)),
    )
