"""Automatic rich output detection for CLI commands.

Decides whether tasks render Rich progress bars or plain lines.

Detection priority:
1. ``BADGEBOT_RICH`` env var: explicit override (``0``/``false``/``no``
   to disable, ``1``/``true``/``yes`` to force enable)
2. ``NO_COLOR`` env var: standard convention, disables rich
3. ``CI`` env var: disables rich
4. ``stdout.isatty()``: false in pipes, redirects and cron, disables rich
"""

from __future__ import annotations

import os
import sys


def should_use_rich() -> bool:
    """Return True when the terminal supports interactive Rich displays."""
    override = os.environ.get("BADGEBOT_RICH", "").strip().lower()
    if override in ("0", "false", "no"):
        return False
    if override in ("1", "true", "yes"):
        return True

    if os.environ.get("NO_COLOR") is not None:
        return False

    if os.environ.get("CI"):
        return False

    try:
        if not sys.stdout.isatty():
            return False
    except (AttributeError, ValueError):
        return False

    return True
