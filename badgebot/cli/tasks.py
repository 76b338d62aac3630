"""Task commands: one click command per registered task.

The ``task`` group is built from a task registry. Commands are created on
demand so that option defaults reflect the configuration file selected with
``badgebot --config``.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from pathlib import Path

import click
from rich.console import Console

from badgebot.cli.logging import configure_cli_logging
from badgebot.cli.rich_output import should_use_rich
from badgebot.config import AppConfig
from badgebot.helper import CommandHelper, Verbosity
from badgebot.tasks import Task, TaskOption

logger = logging.getLogger(__name__)


def _click_option(option: TaskOption) -> click.Option:
    if option.is_flag:
        return click.Option(
            [f"--{option.name}/--no-{option.name}"],
            default=option.default,
            show_default=True,
            help=option.help,
        )
    return click.Option(
        [f"--{option.name}"],
        default=option.default,
        required=option.required and option.default is None,
        type=option.type,
        show_default=option.default is not None,
        help=option.help,
    )


def _verbosity(quiet: bool, verbose: int) -> Verbosity:
    if quiet:
        return Verbosity.QUIET
    return Verbosity(min(Verbosity.NORMAL + verbose, Verbosity.DEBUG))


def run_task(task: Task, helper: CommandHelper) -> bool:
    """Execute a task, reporting any error as one line. Returns success."""
    try:
        task.execute(helper)
    except Exception as e:
        logger.error("Task %s failed: %s", task.name, e, exc_info=True)
        helper.writeln(f"An error has occurred: {e}", Verbosity.QUIET, style="red")
        return False
    finally:
        helper.close()
    return True


def make_task_command(task: Task, config: AppConfig, console: Console | None = None) -> click.Command:
    """Build the click command for a task against a loaded configuration."""

    def callback(quiet: bool, verbose: int, **options) -> None:
        log_file = configure_cli_logging(task.name, wiki=options.get("wiki"))
        logger.info("Starting %s with %s", task.name, {k: v for k, v in options.items() if k != "summary"})

        helper = CommandHelper(
            options,
            config,
            console=console or Console(),
            verbosity=_verbosity(quiet, verbose),
            use_rich=should_use_rich(),
        )
        helper.writeln(f"Logging to {log_file}", Verbosity.VERBOSE)

        if not run_task(task, helper):
            raise SystemExit(1)

    params: list[click.Parameter] = [_click_option(o) for o in task.option_schema(config)]
    params += [
        click.Option(["--quiet", "-q"], is_flag=True, help="Only print errors and the final report"),
        click.Option(["--verbose", "-v"], count=True, help="Increase output verbosity"),
    ]
    return click.Command(task.name, callback=callback, params=params, help=task.description)


class TaskGroup(click.Group):
    """Click group whose subcommands come from a task registry."""

    def __init__(
        self,
        registry: dict[str, Task],
        config_loader: Callable[[Path | None], AppConfig] = AppConfig.load,
        console: Console | None = None,
        **kwargs,
    ) -> None:
        kwargs.setdefault("name", "task")
        kwargs.setdefault("help", "Run a badge maintenance task.")
        super().__init__(**kwargs)
        self.registry = registry
        self._config_loader = config_loader
        self._console = console

    def _load_config(self, ctx: click.Context) -> AppConfig:
        root = ctx.find_root()
        if isinstance(root.obj, AppConfig):
            return root.obj
        path = root.params.get("config_path")
        config = self._config_loader(Path(path) if path else None)
        root.obj = config
        return config

    def list_commands(self, ctx: click.Context) -> list[str]:
        return sorted(self.registry)

    def get_command(self, ctx: click.Context, cmd_name: str) -> click.Command | None:
        task = self.registry.get(cmd_name)
        if task is None:
            return None
        return make_task_command(task, self._load_config(ctx), self._console)
