"""Shared fixtures for badgebot tests.

Provides in-memory stand-ins for the external collaborators so that task
tests run entirely offline: no replica database, no HTTP.

Fixtures:
- FakeWikibase: entity store keyed by id and by (site, title)
- FakeSignals: canned signal query results
- FakeApi: records purge calls
- make_helper: CommandHelper wired to the fakes, output captured
"""

from __future__ import annotations

import io
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

import pytest
from rich.console import Console

from badgebot.config import AppConfig
from badgebot.helper import CommandHelper, Verbosity
from badgebot.wikibase import EditInfo, Entity, SiteLink

TASK_CONFIG = {
    "users": {"bot": {"username": "ExampleBot", "password": "hunter2"}},
    "wikis": {"wikidata": {"url": "https://www.wikidata.org/w/api.php"}},
}


# =============================================================================
# Entity helpers
# =============================================================================


def make_entity(entity_id: str, *links: SiteLink, revision_id: int = 1) -> Entity:
    return Entity(id=entity_id, revision_id=revision_id, site_links={link.site: link for link in links})


# =============================================================================
# Fakes
# =============================================================================


@dataclass
class FakeWikibase:
    """In-memory Wikibase repository."""

    entities: dict[str, Entity] = field(default_factory=dict)
    badges: list[str] = field(default_factory=list)
    failing_titles: set[str] = field(default_factory=set)
    failing_writes: set[str] = field(default_factory=set)
    failing_batches: set[str] = field(default_factory=set)
    batch_calls: list[list[str]] = field(default_factory=list)
    writes: list[tuple[SiteLink, SiteLink, EditInfo, int | None]] = field(default_factory=list)
    title_lookups: list[tuple[str, str]] = field(default_factory=list)

    def add(self, entity: Entity) -> Entity:
        self.entities[entity.id] = entity
        return entity

    def get_entity_by_id(self, entity_id: str) -> Entity | None:
        return self.entities.get(entity_id)

    def get_entity_by_site_and_title(self, site: str, title: str) -> Entity | None:
        self.title_lookups.append((site, title))
        if title in self.failing_titles:
            raise RuntimeError(f"lookup exploded for {title}")
        for entity in self.entities.values():
            link = entity.get_site_link(site)
            if link is not None and link.title == title:
                return entity
        return None

    def get_entities_by_ids(self, entity_ids: Sequence[str]) -> list[Entity]:
        self.batch_calls.append(list(entity_ids))
        if self.failing_batches & set(entity_ids):
            raise RuntimeError("batch fetch failed")
        return [self.entities[i] for i in entity_ids if i in self.entities]

    def get_tracked_badge_ids(self) -> list[str]:
        return list(self.badges)

    def write_site_link(self, new_link, previous_link, edit_info=None, base_revision=None):
        if previous_link.title in self.failing_writes:
            raise RuntimeError("edit conflict")
        self.writes.append((new_link, previous_link, edit_info, base_revision))
        for entity in self.entities.values():
            if entity.get_site_link(previous_link.site) == previous_link:
                entity.site_links[new_link.site] = new_link
                entity.revision_id = (entity.revision_id or 0) + 1
        return {"success": 1}


@dataclass
class FakeSignals:
    """Canned signal query results."""

    categories: dict[str, list[str]] = field(default_factory=dict)
    usages: list[str] = field(default_factory=list)
    endpoints: dict[str, str] = field(default_factory=dict)
    usage_queries: list[list[str]] = field(default_factory=list)
    closed: bool = False

    def pages_in_category(self, category: str) -> list[str]:
        return list(self.categories.get(category, []))

    def badge_usages(self, badge_ids: Sequence[str]) -> list[str]:
        self.usage_queries.append(list(badge_ids))
        return list(self.usages)

    def site_purge_endpoints(self) -> dict[str, str]:
        return dict(self.endpoints)

    def close(self) -> None:
        self.closed = True


@dataclass
class FakeApi:
    """Records purge requests for one site."""

    url: str
    purges: list[list[str]] = field(default_factory=list)
    failing_titles: set[str] = field(default_factory=set)

    def purge(self, titles, force_link_update: bool = True) -> dict[str, Any]:
        titles = list(titles)
        if self.failing_titles & set(titles):
            raise RuntimeError("purge rejected")
        assert force_link_update is True
        self.purges.append(titles)
        return {"purge": [{"title": t, "purged": True} for t in titles]}

    def close(self) -> None:
        pass


class FakeHelper(CommandHelper):
    """CommandHelper whose factories return the fakes."""

    def __init__(self, options, wikibase, signals, failing_logins=(), verbosity=Verbosity.NORMAL):
        self.output = io.StringIO()
        super().__init__(
            options,
            AppConfig(TASK_CONFIG),
            console=Console(file=self.output, width=200, color_system=None),
            verbosity=verbosity,
            use_rich=False,
        )
        self.wikibase = wikibase
        self.signals = signals
        self.apis: dict[str, FakeApi] = {}
        self.failing_logins = set(failing_logins)
        self.signal_wiki_options: list[str] = []

    def get_wikibase(self, wiki_option="repo", user_option="user"):
        return self.wikibase

    def get_signal_queries(self, wiki_option="wiki"):
        self.signal_wiki_options.append(wiki_option)
        return self.signals

    def login(self, url, user_option="user"):
        if url in self.failing_logins:
            raise RuntimeError("wrong password")
        api = self.apis.setdefault(url, FakeApi(url))
        return api

    @property
    def text(self) -> str:
        return self.output.getvalue()


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def wikibase() -> FakeWikibase:
    return FakeWikibase()


@pytest.fixture
def signals() -> FakeSignals:
    return FakeSignals()


@pytest.fixture
def make_helper(wikibase, signals):
    def factory(verbosity=Verbosity.NORMAL, failing_logins=(), **options):
        return FakeHelper(options, wikibase, signals, failing_logins=failing_logins, verbosity=verbosity)

    return factory


@pytest.fixture(autouse=True)
def isolated_logs(tmp_path, monkeypatch):
    """Keep CLI log files out of the home directory."""
    monkeypatch.setattr("badgebot.cli.logging.LOG_DIR", tmp_path / "logs")
    monkeypatch.delenv("BADGEBOT_CONFIG", raising=False)
