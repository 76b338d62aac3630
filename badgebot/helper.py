"""Command helper handed to every task.

The helper bundles what a task needs from the outside world: option values,
resolved credentials, factories for database and API handles, and leveled
console output. Tasks never read configuration or the console directly.
"""

from __future__ import annotations

import logging
from enum import IntEnum
from typing import Any

from rich.console import Console
from rich.text import Text

from badgebot.config import AppConfig
from badgebot.mediawiki import MediawikiApi
from badgebot.resolver import (
    ApiUser,
    DatabaseCredentials,
    WikiDetails,
    resolve_database_credentials,
    resolve_user,
    resolve_wiki,
)
from badgebot.signals import SignalQueries, connect_database
from badgebot.wikibase import WikibaseClient

logger = logging.getLogger(__name__)


class Verbosity(IntEnum):
    """Output levels; a line is shown when its level <= the current level."""

    QUIET = 0
    NORMAL = 1
    VERBOSE = 2
    VERY_VERBOSE = 3
    DEBUG = 4


class ProgressReporter:
    """Progress bar that never interferes with the work it reports on.

    Renders a rich progress bar when enabled; otherwise it only counts.
    Rendering errors are logged and the bar is dropped.
    """

    def __init__(self, console: Console, total: int, description: str, enabled: bool = True):
        self.console = console
        self.total = total
        self.description = description
        self.enabled = enabled and total > 0
        self.current = 0
        self._progress = None
        self._task = None

    def __enter__(self) -> ProgressReporter:
        if self.enabled:
            try:
                from rich.progress import BarColumn, MofNCompleteColumn, Progress, TextColumn

                self._progress = Progress(
                    TextColumn("[progress.description]{task.description}"),
                    BarColumn(),
                    MofNCompleteColumn(),
                    console=self.console,
                    transient=False,
                )
                self._progress.__enter__()
                self._task = self._progress.add_task(self.description, total=self.total)
            except Exception:
                logger.debug("Progress bar failed to start", exc_info=True)
                self._progress = None
        return self

    def __exit__(self, *args: Any) -> None:
        if self._progress is not None:
            try:
                self._progress.__exit__(*args)
            except Exception:
                logger.debug("Progress bar failed to stop", exc_info=True)
            self._progress = None

    def advance(self, amount: int = 1) -> None:
        self.current += amount
        if self._progress is None:
            return
        try:
            self._progress.update(self._task, advance=amount)
        except Exception:
            logger.debug("Progress bar update failed, disabling", exc_info=True)
            self._progress = None


class CommandHelper:
    """Access to options, credentials, connections and output for a task.

    Attributes:
        config: The loaded configuration registry
        console: Rich console used for all task output
        verbosity: Current output level
    """

    def __init__(
        self,
        options: dict[str, Any],
        config: AppConfig,
        console: Console | None = None,
        verbosity: Verbosity = Verbosity.NORMAL,
        use_rich: bool = True,
    ) -> None:
        self._options = options
        self.config = config
        self.console = console or Console()
        self.verbosity = verbosity
        self.use_rich = use_rich
        self._closeables: list[Any] = []
        self._users: dict[str, ApiUser] = {}
        self._databases: dict[str, DatabaseCredentials] = {}
        self._wikis: dict[str, WikiDetails] = {}

    def get_option(self, name: str) -> Any:
        return self._options.get(name)

    def resolve_all(
        self,
        wiki_options: tuple[str, ...] = ("repo",),
        user_option: str = "user",
        database_option: str = "database",
    ) -> None:
        """Resolve every credential and configured wiki a task will use.

        Raises :class:`~badgebot.resolver.ConfigurationMissing` before any
        connection is opened. Later factory calls reuse the resolved values.
        """
        self.get_api_user(user_option)
        self.get_database_credentials(database_option)
        for option in wiki_options:
            self.get_wiki(option)

    def get_api_user(self, user_option: str = "user") -> ApiUser:
        if user_option not in self._users:
            self._users[user_option] = resolve_user(self.config, self.get_option(user_option))
        return self._users[user_option]

    def get_database_credentials(self, database_option: str = "database") -> DatabaseCredentials:
        if database_option not in self._databases:
            self._databases[database_option] = resolve_database_credentials(
                self.config, self.get_option(database_option)
            )
        return self._databases[database_option]

    def get_wiki(self, wiki_option: str) -> WikiDetails:
        if wiki_option not in self._wikis:
            self._wikis[wiki_option] = resolve_wiki(self.config, self.get_option(wiki_option))
        return self._wikis[wiki_option]

    def get_signal_queries(self, wiki_option: str = "wiki") -> SignalQueries:
        """Open the replica database of the wiki named by ``wiki_option``."""
        credentials = self.get_database_credentials()
        queries = SignalQueries(connect_database(credentials, self.get_option(wiki_option)))
        self._closeables.append(queries)
        return queries

    def get_mediawiki_api(self, wiki_option: str = "wiki", user_option: str = "user") -> MediawikiApi:
        """Logged-in API for the configured wiki named by ``wiki_option``."""
        return self.login(self.get_wiki(wiki_option).url, user_option)

    def login(self, url: str, user_option: str = "user") -> MediawikiApi:
        """Logged-in API for an arbitrary ``api.php`` URL."""
        user = self.get_api_user(user_option)
        api = MediawikiApi(url)
        self._closeables.append(api)
        api.login(user)
        return api

    def get_wikibase(self, wiki_option: str = "repo", user_option: str = "user") -> WikibaseClient:
        return WikibaseClient(self.get_mediawiki_api(wiki_option, user_option))

    def writeln(self, line: str, verbosity: Verbosity = Verbosity.NORMAL, style: str | None = None) -> None:
        if verbosity <= self.verbosity:
            self.console.print(Text(line, style=style or ""), highlight=False, soft_wrap=True)

    def write(self, segment: str, verbosity: Verbosity = Verbosity.NORMAL, style: str | None = None) -> None:
        if verbosity <= self.verbosity:
            self.console.print(Text(segment, style=style or ""), end="", highlight=False, soft_wrap=True)

    def progress(self, total: int, description: str = "Processing...") -> ProgressReporter:
        enabled = self.use_rich and self.verbosity > Verbosity.QUIET
        return ProgressReporter(self.console, total, description, enabled=enabled)

    def close(self) -> None:
        """Close every connection and session opened through the helper."""
        while self._closeables:
            resource = self._closeables.pop()
            try:
                resource.close()
            except Exception as e:
                logger.warning("Failed to close %r: %s", resource, e)
