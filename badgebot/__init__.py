"""badgebot - keep Wikibase site link badges in sync with client wikis.

Two batch tasks are provided:

- ``update-badges``: add a badge to every site link whose page is a member
  of a given category on the client wiki.
- ``purge-badge-page-props``: purge every client page that carries a badge
  so the wiki recomputes its page props.
"""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("badgebot")
except PackageNotFoundError:  # pragma: no cover - running from a source tree
    __version__ = "0.0.0"
