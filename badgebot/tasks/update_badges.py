"""Add a badge to site links based on client wiki category membership.

For every main-namespace page in ``--category`` on ``--wiki``, the item
linked to that page gets ``--badge`` on its ``--wiki`` site link. Pages whose
site link already carries the badge are skipped, so re-running is safe.
"""

from __future__ import annotations

import logging
import re

from badgebot.helper import CommandHelper, Verbosity
from badgebot.tasks.base import ItemResult, Outcome, RunCounters, Task, TaskOption
from badgebot.wikibase import EditInfo, WikibaseClient, parse_item_id

logger = logging.getLogger(__name__)

DEFAULT_SUMMARY = "Bot: Adding badge [[$badgeId]] for site $wiki based on Category:$category"

_SUMMARY_VARIABLE = re.compile(r"\$(badgeId|category|wiki)")


def format_summary(template: str, category: str, wiki: str, badge_id: str) -> str:
    """Substitute ``$category``, ``$wiki`` and ``$badgeId`` in a summary."""
    values = {"category": category, "wiki": wiki, "badgeId": badge_id}
    return _SUMMARY_VARIABLE.sub(lambda m: values[m.group(1)], template)


def add_badge(
    wikibase: WikibaseClient,
    site: str,
    title: str,
    badge_id: str,
    edit_info: EditInfo,
) -> ItemResult:
    """Ensure the site link ``site:title`` carries ``badge_id``.

    Returns an :class:`ItemResult`; never raises for per-row problems.
    """
    key = f"{site}:{title}"
    try:
        entity = wikibase.get_entity_by_site_and_title(site, title)
        if entity is None:
            return ItemResult.failed(key, f"No item found for {key}")

        link = entity.get_site_link(site)
        if link is None:
            return ItemResult.failed(key, f"Item {entity.id} has no site link for {site}")

        if link.has_badge(badge_id):
            return ItemResult.skipped(key)

        wikibase.write_site_link(
            link.with_badge(badge_id),
            link,
            edit_info,
            base_revision=entity.revision_id,
        )
        return ItemResult.added(key, entity.id)
    except Exception as e:
        return ItemResult.failed(key, f"Failed to add badge for {key} ({e})")


class UpdateBadges(Task):
    name = "update-badges"
    description = "Update badges based on Wikipedia categories on Wikidata"

    def options(self, config):
        return [
            TaskOption("badge", "The badge to set", required=True),
            TaskOption("category", "The category to query", required=True),
            TaskOption("bot", "Mark edits as bot", default=True, is_flag=True),
            TaskOption("summary", "Override the default edit summary", default=DEFAULT_SUMMARY),
        ]

    def execute(self, helper: CommandHelper) -> RunCounters:
        wiki = helper.get_option("wiki")
        category = helper.get_option("category")
        badge_id = parse_item_id(helper.get_option("badge"))

        edit_info = EditInfo(
            summary=format_summary(helper.get_option("summary"), category, wiki, badge_id),
            minor=False,
            bot=bool(helper.get_option("bot")),
        )

        helper.resolve_all()
        wikibase = helper.get_wikibase("repo")
        signals = helper.get_signal_queries("wiki")

        titles = signals.pages_in_category(category)
        helper.writeln(f"Found {len(titles)} pages in Category:{category} on {wiki}")

        counters = RunCounters()
        for title in titles:
            result = add_badge(wikibase, wiki, title, badge_id, edit_info)
            counters.record(result)
            self._report(helper, result)

        helper.writeln("")
        helper.writeln(f"Finished iterating through {len(titles)} site links.", Verbosity.QUIET)
        helper.writeln(f"Added: {counters.added}", Verbosity.QUIET)
        helper.writeln(f"Skipped: {counters.skipped}", Verbosity.QUIET)
        helper.writeln(f"Failed: {counters.failed}", Verbosity.QUIET)
        logger.info(
            "update-badges %s/%s/%s: added=%d skipped=%d failed=%d",
            wiki,
            category,
            badge_id,
            counters.added,
            counters.skipped,
            counters.failed,
        )
        return counters

    @staticmethod
    def _report(helper: CommandHelper, result: ItemResult) -> None:
        if result.outcome is Outcome.SKIPPED:
            helper.write(".", Verbosity.NORMAL)
            helper.writeln(f"Already has badge: {result.key}", Verbosity.VERY_VERBOSE)
        elif result.outcome is Outcome.ADDED:
            helper.writeln("")
            helper.writeln(f"Added badge for {result.key}", Verbosity.NORMAL, style="green")
        else:
            logger.warning(result.message)
            helper.writeln("")
            helper.writeln(result.message, Verbosity.NORMAL, style="red")
