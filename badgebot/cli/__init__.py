"""Command line interface for badgebot.

  badgebot task update-badges           Add badges from category membership
  badgebot task purge-badge-page-props  Purge pages carrying badges
  badgebot config ...                   Inspect configuration and defaults
"""

import click
from dotenv import load_dotenv

from badgebot import __version__
from badgebot.cli.config_cli import config
from badgebot.cli.tasks import TaskGroup
from badgebot.tasks import Task, build_registry

# Load environment variables from .env file
load_dotenv(override=True)


def create_cli(registry: dict[str, Task] | None = None) -> click.Group:
    """Build the top-level command group around a task registry."""

    @click.group(invoke_without_command=True)
    @click.option("--version", is_flag=True, help="Show the badgebot version and exit.")
    @click.option(
        "--config",
        "config_path",
        type=click.Path(dir_okay=False),
        default=None,
        help="Configuration file (default: $BADGEBOT_CONFIG or ~/.config/badgebot/config.yaml)",
    )
    @click.pass_context
    def main(ctx: click.Context, version: bool, config_path: str | None) -> None:
        """badgebot - keep Wikibase badges and client wikis in sync."""
        if version:
            click.echo(__version__)
            ctx.exit()

        if ctx.invoked_subcommand is None:
            click.echo(ctx.get_help())

    main.add_command(TaskGroup(registry if registry is not None else build_registry()))
    main.add_command(config)
    return main


main = create_cli()

__all__ = ["create_cli", "main"]
