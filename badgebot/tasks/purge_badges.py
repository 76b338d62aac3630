"""Purge client wiki pages that carry badges so their page props update.

Client wikis store badges as page props, which are only refreshed when the
page's links are updated. This task finds every item linking to a badge item,
collects the client pages whose site links have badges, and purges them with
``forcelinkupdate`` on each client wiki.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Sequence

import click

from badgebot.helper import CommandHelper, Verbosity
from badgebot.tasks.base import Task, TaskOption
from badgebot.utils import chunked
from badgebot.wikibase import Entity, WikibaseClient

logger = logging.getLogger(__name__)

DEFAULT_ENTITY_CHUNK = 100

# Titles per purge request
PURGE_CHUNK = 10


def collect_pages_to_purge(entities: Sequence[Entity], pending: dict[str, list[str]]) -> None:
    """Append the title of every badged site link to ``pending[site]``."""
    for entity in entities:
        for link in entity.site_links.values():
            if link.badges:
                pending.setdefault(link.site, []).append(link.title)


def fetch_pending_purges(
    wikibase: WikibaseClient,
    entity_ids: Sequence[str],
    chunk_size: int,
    helper: CommandHelper,
) -> dict[str, list[str]]:
    """Resolve entities in chunks and build the site → titles purge map.

    A chunk that fails is skipped as a whole and reported.
    """
    pending: dict[str, list[str]] = {}
    with helper.progress(len(entity_ids), "Fetching entities") as progress:
        for batch in chunked(entity_ids, chunk_size):
            try:
                entities = wikibase.get_entities_by_ids(batch)
            except Exception as e:
                message = f"Failed to fetch data for ids {', '.join(batch)} ({e})"
                logger.warning(message)
                helper.writeln(message, Verbosity.NORMAL, style="red")
            else:
                collect_pages_to_purge(entities, pending)
            progress.advance(len(batch))
    return pending


class PurgeBadgesPageProps(Task):
    name = "purge-badge-page-props"
    description = "Purge page props of pages to update badges"

    def options(self, config):
        return [
            TaskOption(
                "chunk",
                "The chunk size to fetch entities",
                default=DEFAULT_ENTITY_CHUNK,
                type=click.IntRange(min=1),
            ),
            TaskOption(
                "delay",
                "Seconds to wait between purging sites",
                default=0.0,
                type=click.FloatRange(min=0),
            ),
        ]

    def execute(self, helper: CommandHelper) -> int:
        helper.resolve_all()
        signals = helper.get_signal_queries("repo")

        helper.writeln("Fetching sites data...", Verbosity.VERBOSE)
        endpoints = signals.site_purge_endpoints()

        wikibase = helper.get_wikibase("repo")

        helper.writeln("Fetching badge ids...")
        badge_ids = wikibase.get_tracked_badge_ids()
        helper.writeln(f"Got {', '.join(badge_ids)}")

        helper.writeln("Fetching badge usages...")
        entity_ids = signals.badge_usages(badge_ids)

        helper.writeln("Fetching entities...")
        pending = fetch_pending_purges(wikibase, entity_ids, int(helper.get_option("chunk")), helper)

        helper.writeln("Starting to purge pages")
        purged, failed = self.purge_sites(helper, endpoints, pending)

        helper.writeln(f"Finished purging {purged} pages", Verbosity.QUIET)
        if failed:
            helper.writeln(f"Failed to purge {failed} pages", Verbosity.QUIET, style="red")
        logger.info("purge-badge-page-props: purged=%d failed=%d", purged, failed)
        return purged

    def purge_sites(
        self,
        helper: CommandHelper,
        endpoints: dict[str, str],
        pending: dict[str, list[str]],
    ) -> tuple[int, int]:
        """Purge pending pages site by site. Returns ``(purged, failed)``."""
        delay = float(helper.get_option("delay") or 0)
        purged = failed = 0

        for site_id, url in endpoints.items():
            titles = pending.get(site_id)
            if not titles:
                helper.writeln(f"No pages found to purge for site {site_id} ({url})")
                continue

            helper.writeln(f"Purging {len(titles)} pages for site {site_id} ({url})")
            site_purged, site_failed = self.purge_site(helper, site_id, url, titles)
            purged += site_purged
            failed += site_failed

            if delay:
                time.sleep(delay)

        unknown = sorted(set(pending) - set(endpoints))
        if unknown:
            logger.warning("Badged pages on sites missing from the sites table: %s", ", ".join(unknown))
            helper.writeln(f"Sites missing from the sites table: {', '.join(unknown)}", Verbosity.VERBOSE)

        return purged, failed

    def purge_site(
        self,
        helper: CommandHelper,
        site_id: str,
        url: str,
        titles: list[str],
    ) -> tuple[int, int]:
        try:
            api = helper.login(url)
        except Exception as e:
            message = f"Failed to log in to {site_id} ({url}): {e}"
            logger.warning(message)
            helper.writeln(message, Verbosity.NORMAL, style="red")
            return 0, len(titles)

        purged = failed = 0
        with helper.progress(len(titles), f"Purging {site_id}") as progress:
            for batch in chunked(titles, PURGE_CHUNK):
                try:
                    api.purge(batch, force_link_update=True)
                    purged += len(batch)
                except Exception as e:
                    failed += len(batch)
                    message = f"Failed to purge {site_id}: {'|'.join(batch)} ({e})"
                    logger.warning(message)
                    helper.writeln(message, Verbosity.NORMAL, style="red")
                progress.advance(len(batch))
        return purged, failed
