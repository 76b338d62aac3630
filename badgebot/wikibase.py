"""Wikibase repository access: entities, site links and badges.

Thin facade over the Wikibase action API modules ``wbgetentities``,
``wbavailablebadges`` and ``wbsetsitelink``. Only site links are read;
labels, claims and other entity parts are never requested.

"Not found" is reported as ``None`` (or omitted from batch results) while
transport and API failures raise, so callers can tell the two apart.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

from badgebot.mediawiki import MediawikiApi

logger = logging.getLogger(__name__)

ITEM_ID_PATTERN = re.compile(r"^Q[1-9]\d*$")


class InvalidEntityId(ValueError):
    """A string is not a valid item id."""


def parse_item_id(value: str) -> str:
    """Normalise and validate an item id such as ``q42`` → ``Q42``."""
    normalised = (value or "").strip().upper()
    if not ITEM_ID_PATTERN.match(normalised):
        raise InvalidEntityId(f"Invalid item id: {value!r}")
    return normalised


@dataclass(frozen=True)
class SiteLink:
    """A link from an entity to a page on one site, with its badges."""

    site: str
    title: str
    badges: tuple[str, ...] = ()

    def has_badge(self, badge_id: str) -> bool:
        return badge_id in self.badges

    def with_badge(self, badge_id: str) -> SiteLink:
        """Return a copy with ``badge_id`` appended (no-op if present)."""
        if self.has_badge(badge_id):
            return self
        return SiteLink(self.site, self.title, (*self.badges, badge_id))


@dataclass
class Entity:
    """An entity and its site links, keyed by site id."""

    id: str
    revision_id: int | None = None
    site_links: dict[str, SiteLink] = field(default_factory=dict)

    def get_site_link(self, site: str) -> SiteLink | None:
        return self.site_links.get(site)

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> Entity:
        links = {}
        for site, link in (data.get("sitelinks") or {}).items():
            links[site] = SiteLink(
                site=link.get("site", site),
                title=link["title"],
                badges=tuple(link.get("badges") or ()),
            )
        return cls(id=data["id"], revision_id=data.get("lastrevid"), site_links=links)


@dataclass(frozen=True)
class EditInfo:
    """Metadata attached to an edit."""

    summary: str = ""
    minor: bool = False
    bot: bool = False


def _entities_from_response(data: dict[str, Any]) -> list[Entity]:
    """Parse a ``wbgetentities`` response, dropping missing entities.

    Response entities are a mapping in formatversion 1 and may be a list in
    newer API versions; both are accepted.
    """
    raw = data.get("entities") or {}
    values = raw.values() if isinstance(raw, dict) else raw
    entities = []
    for entity in values:
        if "missing" in entity or "id" not in entity:
            continue
        entities.append(Entity.from_api(entity))
    return entities


class WikibaseClient:
    """Read entities and write site links on a Wikibase repository.

    The underlying :class:`MediawikiApi` must already be logged in for
    writes; its session is reused for the lifetime of the client.
    """

    def __init__(self, api: MediawikiApi) -> None:
        self.api = api

    def get_entity_by_id(self, entity_id: str) -> Entity | None:
        entities = self.get_entities_by_ids([entity_id])
        return entities[0] if entities else None

    def get_entity_by_site_and_title(self, site: str, title: str) -> Entity | None:
        """Return the entity linked to ``site:title``, or None if there is none."""
        data = self.api.get(
            "wbgetentities",
            sites=site,
            titles=title,
            props="sitelinks|info",
            normalize=True,
        )
        entities = _entities_from_response(data)
        return entities[0] if entities else None

    def get_entities_by_ids(self, entity_ids: Sequence[str]) -> list[Entity]:
        """Fetch a batch of entities in one request.

        Ids that do not exist are omitted from the result. Any API or
        transport error fails the whole batch.
        """
        if not entity_ids:
            return []
        data = self.api.get("wbgetentities", ids=list(entity_ids), props="sitelinks|info")
        entities = _entities_from_response(data)
        logger.debug("Fetched %d of %d entities", len(entities), len(entity_ids))
        return entities

    def get_tracked_badge_ids(self) -> list[str]:
        """Return the badge item ids configured on the repository."""
        data = self.api.get("wbavailablebadges")
        return list(data.get("badges") or [])

    def write_site_link(
        self,
        new_link: SiteLink,
        previous_link: SiteLink,
        edit_info: EditInfo | None = None,
        base_revision: int | None = None,
    ) -> dict[str, Any]:
        """Replace a site link (and its badges) on the entity it identifies.

        The target entity is addressed by ``previous_link``; when
        ``base_revision`` is given the write fails on an edit conflict instead
        of overwriting a newer revision.
        """
        edit_info = edit_info or EditInfo()
        return self.api.post(
            "wbsetsitelink",
            site=previous_link.site,
            title=previous_link.title,
            linksite=new_link.site,
            linktitle=new_link.title,
            badges=list(new_link.badges),
            baserevid=base_revision,
            summary=edit_info.summary or None,
            minor=edit_info.minor,
            bot=edit_info.bot,
            token=self.api.get_token("csrf"),
        )
