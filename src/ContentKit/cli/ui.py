"""Click CLI interface definitions.

Defines the command-line interface structure and routes commands
to their respective runners.
"""

from __future__ import annotations

from pathlib import Path
from typing import Callable

import click
from dotenv import load_dotenv

from ContentKit.cli.commands import QueryOptions, build_query
from ContentKit.cli.runner import CommandRunner
from ContentKit.config import DEFAULT_CONFIG_PATH, load_config_with_defaults
from ContentKit.errors import ContentKitError


def query_options(func: Callable) -> Callable:
    """Attach the shared query options to a command."""
    options = [
        click.option("--content-type", help="Restrict to one content type id."),
        click.option(
            "--where",
            multiple=True,
            metavar="KEY=VALUE",
            help="Filter in wire syntax, e.g. 'fields.color[ne]=gray'. Repeatable.",
        ),
        click.option("--search", help="Full-text search across all fields."),
        click.option("--order", help="Comma-joined sort fields, '-' prefix for descending."),
        click.option("--limit", type=int, help="Page size (1-1000)."),
        click.option("--skip", type=int, help="Page offset."),
        click.option("--include", type=int, help="Link include depth (0-10)."),
        click.option("--locale", help="Locale code, or '*' for all locales."),
        click.option("--mime-type", help="Asset MIME type group, e.g. 'image'."),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def _options(kwargs: dict) -> QueryOptions:
    return QueryOptions(
        content_type=kwargs.get("content_type"),
        where=tuple(kwargs.get("where") or ()),
        search=kwargs.get("search"),
        order=kwargs.get("order"),
        limit=kwargs.get("limit"),
        skip=kwargs.get("skip"),
        include=kwargs.get("include"),
        locale=kwargs.get("locale"),
        mime_type=kwargs.get("mime_type"),
    )


@click.group(help="ContentKit: query a headless CMS delivery API.")
@click.option(
    "--config",
    "config_path",
    type=click.Path(path_type=Path, dir_okay=False),
    default=DEFAULT_CONFIG_PATH,
    show_default=True,
    help="Path to YAML config file.",
)
@click.pass_context
def cli(ctx: click.Context, config_path: Path) -> None:
    """CLI entry group.

    Loads environment variables from a .env file. The config file is read
    lazily by commands that contact the API.

    Args:
        ctx: Click context.
        config_path: Path to YAML config file.
    """
    load_dotenv()
    ctx.obj = config_path


def _runner(ctx: click.Context) -> CommandRunner:
    try:
        config = load_config_with_defaults(ctx.obj)
    except (OSError, TypeError, ValueError) as e:
        raise click.ClickException(f"Invalid config {ctx.obj}: {e}") from e
    return CommandRunner(config)


@cli.command("entries")
@query_options
@click.pass_context
def entries_cmd(ctx: click.Context, **kwargs) -> None:
    """Fetch one page of entries and print it as JSON."""
    _runner(ctx).run_fetch(ctx.command.name, _options(kwargs))


@cli.command("assets")
@query_options
@click.pass_context
def assets_cmd(ctx: click.Context, **kwargs) -> None:
    """Fetch one page of assets and print it as JSON."""
    _runner(ctx).run_fetch(ctx.command.name, _options(kwargs))


@cli.command("query-string")
@query_options
def query_string_cmd(**kwargs) -> None:
    """Print the encoded query string for the given options (no network)."""
    try:
        query = build_query(_options(kwargs))
    except ContentKitError as e:
        raise click.BadParameter(str(e)) from e
    click.echo(query.to_query_string())
