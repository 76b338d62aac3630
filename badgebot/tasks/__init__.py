"""Batch tasks and their registry.

Example:
    from badgebot.tasks import build_registry

    registry = build_registry()
    task = registry["update-badges"]
"""

from badgebot.tasks.base import ItemResult, Outcome, RunCounters, Task, TaskOption
from badgebot.tasks.purge_badges import PurgeBadgesPageProps
from badgebot.tasks.update_badges import UpdateBadges

TASK_CLASSES: tuple[type[Task], ...] = (
    UpdateBadges,
    PurgeBadgesPageProps,
)


def build_registry() -> dict[str, Task]:
    """Instantiate every task, keyed by its command name."""
    return {cls.name: cls() for cls in TASK_CLASSES}


__all__ = [
    "ItemResult",
    "Outcome",
    "PurgeBadgesPageProps",
    "RunCounters",
    "Task",
    "TaskOption",
    "UpdateBadges",
    "build_registry",
]
