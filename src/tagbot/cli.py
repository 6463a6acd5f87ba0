"""Command-line interface for tagbot."""

import asyncio
from pathlib import Path
from typing import TYPE_CHECKING

import click

from tagbot import __version__
from tagbot.config import Config
from tagbot.logging import get_logger, setup_logging

if TYPE_CHECKING:
    from tagbot.tags import TagStore

log = get_logger("cli")


@click.group()
@click.option(
    "-c",
    "--config-file",
    type=click.Path(exists=False, path_type=Path),
    default=None,
    help="Path to configuration file.",
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default=None,
    help="Set logging level (overrides config).",
)
@click.option(
    "--log-json/--no-log-json",
    default=None,
    help="Output logs as JSON or human-readable format (overrides config).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    config_file: Path | None,
    log_level: str | None,
    log_json: bool | None,
) -> None:
    """Tagbot - display stored tags in Discord.

    Serves the /tag slash command and manages the tag database.
    """
    ctx.ensure_object(dict)

    config = Config.load_or_default(config_file)
    ctx.obj["config"] = config
    ctx.obj["config_file"] = config_file

    # CLI overrides config
    effective_log_level = log_level or config.log_level
    effective_log_json = log_json if log_json is not None else config.log_json

    setup_logging(json_output=effective_log_json, level=effective_log_level)


def _open_store(cfg: Config) -> "TagStore":
    """Open the tag store, creating tables on first use."""
    from tagbot.database import create_tables, get_engine
    from tagbot.tags import TagStore

    engine = get_engine(cfg)
    create_tables(engine)
    return TagStore(engine)


@cli.command()
def version() -> None:
    """Print version information."""
    click.echo(f"tagbot {__version__}")


@cli.command()
@click.pass_context
def serve(ctx: click.Context) -> None:
    """Connect to Discord and serve the /tag command.

    Requires DISCORD_TOKEN environment variable to be set.
    """
    from tagbot.bot import run_bot
    from tagbot.database import create_tables, get_engine

    config = ctx.obj["config"]

    if not config.discord_token:
        click.echo("Error: DISCORD_TOKEN environment variable not set", err=True)
        raise SystemExit(1)

    engine = get_engine(config)
    create_tables(engine)

    log.info("serve_starting", database=str(config.database_path))
    try:
        asyncio.run(run_bot(config, engine))
    except KeyboardInterrupt:
        log.info("serve_interrupted")


@cli.group()
def config() -> None:
    """Configuration management commands."""
    pass


@config.command(name="check")
@click.option(
    "-c",
    "--config-file",
    type=click.Path(exists=True, path_type=Path),
    default="config.yaml",
    help="Path to configuration file.",
)
def config_check(config_file: Path) -> None:
    """Validate configuration file."""
    try:
        cfg = Config.load(config_file)
        click.echo(f"Configuration valid: {config_file}")
        click.echo(f"  Data directory: {cfg.data_dir}")
        click.echo(f"  Database path: {cfg.database_path}")
        click.echo(f"  Log level: {cfg.log_level}")
        click.echo(f"  Bots channel pattern: {cfg.discord.bots_channel_pattern}")
        click.echo(f"  Help forum pattern: {cfg.discord.help_forum_pattern}")
        click.echo(f"  Tag manage role pattern: {cfg.discord.tag_manage_role_pattern}")
        click.echo(f"  Link previews: {'enabled' if cfg.previews.enabled else 'disabled'}")
    except FileNotFoundError as e:
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(1)
    except Exception as e:
        click.echo(f"Configuration error: {e}", err=True)
        raise SystemExit(1)


@cli.group()
def tags() -> None:
    """Tag database commands."""
    pass


@tags.command(name="list")
@click.pass_context
def tags_list(ctx: click.Context) -> None:
    """List all tag ids."""
    store = _open_store(ctx.obj["config"])
    ids = sorted(store.get_all_ids())
    if not ids:
        click.echo("No tags stored.")
        return
    for tag_id in ids:
        click.echo(tag_id)


@tags.command(name="show")
@click.argument("tag_id")
@click.pass_context
def tags_show(ctx: click.Context, tag_id: str) -> None:
    """Print the content of a tag."""
    store = _open_store(ctx.obj["config"])
    content = store.get_tag(tag_id)
    if content is None:
        click.echo(f"Error: unknown tag: {tag_id}", err=True)
        raise SystemExit(1)
    click.echo(content)


@tags.command(name="set")
@click.argument("tag_id")
@click.argument("content", required=False)
@click.option(
    "-f",
    "--file",
    "content_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Read the content from a file instead.",
)
@click.pass_context
def tags_set(
    ctx: click.Context, tag_id: str, content: str | None, content_file: Path | None
) -> None:
    """Create or replace a tag."""
    if content_file is not None:
        content = content_file.read_text()
    if not content:
        click.echo("Error: provide CONTENT or --file", err=True)
        raise SystemExit(1)

    store = _open_store(ctx.obj["config"])
    store.put_tag(tag_id, content)
    click.echo(f"Stored tag: {tag_id}")


@tags.command(name="delete")
@click.argument("tag_id")
@click.pass_context
def tags_delete(ctx: click.Context, tag_id: str) -> None:
    """Delete a tag."""
    store = _open_store(ctx.obj["config"])
    if not store.delete_tag(tag_id):
        click.echo(f"Error: unknown tag: {tag_id}", err=True)
        raise SystemExit(1)
    click.echo(f"Deleted tag: {tag_id}")
