"""Task contract shared by all batch workflows.

A task declares its option schema and an ``execute(helper)`` method. The CLI
turns the schema into click options and runs ``execute`` inside a uniform
shell that handles errors and exit codes, so tasks only report results.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from badgebot.config import AppConfig
from badgebot.helper import CommandHelper


@dataclass(frozen=True)
class TaskOption:
    """One ``--name`` option of a task.

    ``required`` options without a default must be given on the command line.
    ``is_flag`` options become ``--name/--no-name`` switches.
    """

    name: str
    help: str
    default: Any = None
    required: bool = False
    type: Any = None
    is_flag: bool = False


def configured_option(config: AppConfig, name: str, help: str) -> TaskOption:
    """Option defaulting to ``defaults.<name>``; required when unset."""
    default = config.get(f"defaults.{name}")
    return TaskOption(name=name, help=help, default=default, required=default is None)


class Outcome(str, Enum):
    """What happened to one processed row."""

    ADDED = "added"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(frozen=True)
class ItemResult:
    """Outcome of processing one signal row."""

    key: str
    outcome: Outcome
    message: str = ""

    @classmethod
    def added(cls, key: str, message: str = "") -> ItemResult:
        return cls(key, Outcome.ADDED, message)

    @classmethod
    def skipped(cls, key: str, message: str = "") -> ItemResult:
        return cls(key, Outcome.SKIPPED, message)

    @classmethod
    def failed(cls, key: str, message: str) -> ItemResult:
        return cls(key, Outcome.FAILED, message)


@dataclass
class RunCounters:
    """Added / skipped / failed tallies for one run."""

    added: int = 0
    skipped: int = 0
    failed: int = 0
    failures: list[ItemResult] = field(default_factory=list)

    def record(self, result: ItemResult) -> None:
        if result.outcome is Outcome.ADDED:
            self.added += 1
        elif result.outcome is Outcome.SKIPPED:
            self.skipped += 1
        else:
            self.failed += 1
            self.failures.append(result)

    @property
    def total(self) -> int:
        return self.added + self.skipped + self.failed


class Task(ABC):
    """Base class for a batch workflow."""

    name: str = ""
    description: str = ""

    def shared_options(self, config: AppConfig) -> list[TaskOption]:
        return [
            configured_option(config, "user", "The configured user to use"),
            configured_option(config, "database", "The configured database user to use"),
            configured_option(config, "wiki", "The client wiki to use"),
            configured_option(config, "repo", "The Wikibase repository to use"),
        ]

    def options(self, config: AppConfig) -> list[TaskOption]:
        """Task-specific options (in addition to the shared ones)."""
        return []

    def option_schema(self, config: AppConfig) -> list[TaskOption]:
        return self.shared_options(config) + self.options(config)

    @abstractmethod
    def execute(self, helper: CommandHelper) -> Any:
        """Run the task. Raise to signal a fatal error."""
