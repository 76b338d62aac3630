"""Read-only signal queries against wiki replica databases.

Three fixed queries feed the tasks:

- ``pages_in_category``: main-namespace pages in a category (client wiki)
- ``badge_usages``: item pages linking to any badge item (repository)
- ``site_purge_endpoints``: the repository's ``sites`` table, decoded to
  ``api.php`` URLs for each client site

Replica text columns are ``VARBINARY`` and come back as bytes; they are
decoded as UTF-8 here so callers only ever see ``str``.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

import phpserialize
import pymysql

from badgebot.resolver import DatabaseCredentials

logger = logging.getLogger(__name__)

MAIN_NAMESPACE = 0

API_ENTRY_POINT = "api.php"


class SignalQueryError(RuntimeError):
    """A bulk signal query failed; the run cannot continue."""


def connect_database(credentials: DatabaseCredentials, wiki: str) -> pymysql.connections.Connection:
    """Open a read-only connection to the replica of ``wiki``."""
    host, database = credentials.for_wiki(wiki)
    logger.info("Connecting to %s/%s as %s", host, database, credentials.username)
    return pymysql.connect(
        host=host,
        port=credentials.port,
        user=credentials.username,
        password=credentials.password,
        database=database,
        charset="utf8mb4",
    )


def _text(value: Any) -> str:
    if isinstance(value, bytes | bytearray):
        return bytes(value).decode("utf-8")
    return str(value)


def decode_purge_endpoint(site_data: bytes | str) -> str | None:
    """Decode a serialized ``site_data`` blob to the site's ``api.php`` URL.

    Returns None when the blob carries no file path.
    """
    if isinstance(site_data, str):
        site_data = site_data.encode("utf-8")
    data = phpserialize.loads(site_data, decode_strings=True)
    paths = data.get("paths") if isinstance(data, dict) else None
    file_path = paths.get("file_path") if isinstance(paths, dict) else None
    if not file_path:
        return None
    return file_path.replace("$1", API_ENTRY_POINT)


class SignalQueries:
    """Signal queries over an open DB-API connection."""

    def __init__(self, connection: Any) -> None:
        self.connection = connection

    def _fetch(self, sql: str, params: Sequence[Any] = ()) -> list[tuple]:
        try:
            with self.connection.cursor() as cursor:
                cursor.execute(sql, params)
                return list(cursor.fetchall())
        except pymysql.MySQLError as e:
            raise SignalQueryError(f"Query failed: {e}") from e

    def pages_in_category(self, category: str) -> list[str]:
        """Titles of main-namespace pages in ``category`` (without prefix)."""
        rows = self._fetch(
            "SELECT page_title FROM categorylinks "
            "JOIN page ON page_id = cl_from "
            "WHERE cl_to = %s AND page_namespace = %s",
            (category.replace(" ", "_"), MAIN_NAMESPACE),
        )
        titles = [_text(row[0]) for row in rows]
        logger.info("Found %d pages in category %s", len(titles), category)
        return titles

    def badge_usages(self, badge_ids: Sequence[str]) -> list[str]:
        """Titles (entity ids) of item pages that link to any badge item."""
        if not badge_ids:
            return []
        placeholders = ", ".join(["%s"] * len(badge_ids))
        rows = self._fetch(
            "SELECT page_title FROM pagelinks "
            "JOIN page ON pl_from = page_id "
            f"WHERE pl_title IN ({placeholders}) "
            "AND pl_namespace = %s AND pl_from_namespace = %s",
            (*badge_ids, MAIN_NAMESPACE, MAIN_NAMESPACE),
        )
        ids = [_text(row[0]) for row in rows]
        logger.info("Found %d entities using badges", len(ids))
        return ids

    def site_purge_endpoints(self) -> dict[str, str]:
        """Map site id → ``api.php`` URL from the ``sites`` table."""
        rows = self._fetch("SELECT site_global_key, site_data FROM sites")
        endpoints: dict[str, str] = {}
        for site_key, site_data in rows:
            site_id = _text(site_key)
            try:
                url = decode_purge_endpoint(site_data)
            except ValueError as e:
                logger.warning("Could not decode site data for %s: %s", site_id, e)
                continue
            if url is None:
                logger.warning("Site %s has no file path, skipping", site_id)
                continue
            endpoints[site_id] = url
        logger.info("Loaded %d site endpoints", len(endpoints))
        return endpoints

    def close(self) -> None:
        self.connection.close()
