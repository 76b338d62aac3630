"""Configuration management CLI.

Provides the ``badgebot config`` command group for inspecting the
configuration registry and changing the defaults used by task options.
"""

from __future__ import annotations

from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from badgebot.config import AppConfig

console = Console()

DEFAULT_KEYS = ("user", "database", "wiki", "repo")


def _load(ctx: click.Context) -> AppConfig:
    path = ctx.find_root().params.get("config_path")
    return AppConfig.load(Path(path) if path else None)


def _set_default(config: AppConfig, key: str, value: str) -> None:
    config.set(f"defaults.{key}", value)
    config.save()
    console.print(f"[green]Default {key} set to: {value}[/green]")


@click.group("config")
def config() -> None:
    """Inspect the configuration and manage defaults.

    \b
      badgebot config show                  Show wikis, users and defaults
      badgebot config set-default-repo CODE Set the default repository
      badgebot config set-default KEY VALUE Set any default
    """


@config.command("show")
@click.pass_context
def config_show(ctx: click.Context) -> None:
    """Show configured wikis, users and defaults (passwords hidden)."""
    app_config = _load(ctx)
    console.print(f"[bold]Configuration:[/bold] {app_config.path}")

    wikis = app_config.get("wikis", {}) or {}
    table = Table(title="Wikis")
    table.add_column("Code", style="cyan")
    table.add_column("API URL")
    for code, details in sorted(wikis.items()):
        table.add_row(code, str((details or {}).get("url", "")))
    console.print(table)

    users = app_config.get("users", {}) or {}
    table = Table(title="Users")
    table.add_column("Name", style="cyan")
    table.add_column("Username")
    table.add_column("Password")
    for name, details in sorted(users.items()):
        details = details or {}
        has_password = "[green]✓ set[/green]" if details.get("password") else "[yellow]✗ missing[/yellow]"
        table.add_row(name, str(details.get("username", "")), has_password)
    console.print(table)

    table = Table(title="Defaults")
    table.add_column("Key", style="cyan")
    table.add_column("Value")
    for key in DEFAULT_KEYS:
        value = app_config.get(f"defaults.{key}")
        table.add_row(key, value if value is not None else "[dim]unset[/dim]")
    console.print(table)


@config.command("set-default-repo")
@click.argument("code")
@click.pass_context
def config_set_default_repo(ctx: click.Context, code: str) -> None:
    """Set the default Wikibase repository used by tasks.

    CODE must be a wiki configured under ``wikis``.

    \b
    Examples:
      badgebot config set-default-repo wikidata
    """
    app_config = _load(ctx)
    if not app_config.has(f"wikis.{code}"):
        console.print(f"[red]No wiki with the code {code} found[/red]")
        raise SystemExit(1)
    _set_default(app_config, "repo", code)


@config.command("set-default")
@click.argument("key", type=click.Choice(DEFAULT_KEYS))
@click.argument("value")
@click.pass_context
def config_set_default(ctx: click.Context, key: str, value: str) -> None:
    """Set the default user, database, wiki or repo.

    \b
    Examples:
      badgebot config set-default wiki enwiki
      badgebot config set-default user bot
    """
    app_config = _load(ctx)
    section = "wikis" if key in ("wiki", "repo") else "users"
    if not app_config.has(f"{section}.{value}"):
        console.print(f"[red]No {section[:-1]} named {value} found[/red]")
        raise SystemExit(1)
    _set_default(app_config, key, value)
