"""Discord bot runtime for tagbot.

Connects to the gateway, registers the ``/tag`` command and shuts down
cleanly on SIGINT/SIGTERM.
"""

from __future__ import annotations

import asyncio
import signal
from typing import TYPE_CHECKING

import discord
from discord.ext import commands

from tagbot.logging import get_logger
from tagbot.previews import LinkPreviewService
from tagbot.tags import TagStore

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

    from tagbot.config import Config

log = get_logger("bot")


class TagBot(commands.Bot):
    """Discord bot serving stored tags.

    Uses commands.Bot instead of discord.Client to support slash commands
    via cogs.

    Attributes:
        config: Application configuration.
        tag_store: Storage the tags are read from.
        preview_service: Creates link previews for tag content.
    """

    def __init__(
        self,
        config: Config,
        engine: Engine,
        preview_service: LinkPreviewService | None = None,
    ) -> None:
        """Initialize the bot with required intents.

        Args:
            config: Application configuration.
            engine: SQLAlchemy database engine holding the tags.
            preview_service: Optional link preview service, created from
                config when not given.
        """
        intents = discord.Intents.default()
        intents.members = True  # Role names for access control

        # commands.Bot requires a command_prefix even though we use slash commands
        super().__init__(command_prefix="!", intents=intents)
        self.config = config
        self.tag_store = TagStore(engine)
        self.preview_service = preview_service or LinkPreviewService(config.previews)

    async def setup_hook(self) -> None:
        """Load the tag commands cog and sync slash commands."""
        from tagbot.commands import TagCommands

        await self.add_cog(TagCommands(self))
        log.info("cog_loaded", cog="TagCommands")

        guild_id = self.config.discord.guild_id
        if guild_id is not None:
            guild = discord.Object(id=guild_id)
            self.tree.copy_global_to(guild=guild)
            await self.tree.sync(guild=guild)
        else:
            await self.tree.sync()
        log.info("commands_synced", guild_id=guild_id)

    async def on_ready(self) -> None:
        """Called when connected to Discord."""
        log.info(
            "discord_ready",
            user=str(self.user),
            guilds=len(self.guilds),
        )

    async def on_disconnect(self) -> None:
        """Called when disconnected from Discord.

        discord.py handles reconnection automatically - this is just for logging.
        """
        log.warning("discord_disconnected")

    async def on_resumed(self) -> None:
        log.info("discord_resumed")

    async def graceful_shutdown(self) -> None:
        """Close the preview HTTP client and the Discord connection."""
        log.info("shutdown_initiated")
        await self.preview_service.close()
        await self.close()
        await asyncio.sleep(0)  # Allow pending aiohttp callbacks to finalize
        log.info("shutdown_complete")


def setup_signal_handlers(bot: TagBot, loop: asyncio.AbstractEventLoop) -> None:
    """Setup graceful shutdown handlers for SIGINT and SIGTERM.

    Args:
        bot: The TagBot instance to shut down.
        loop: The event loop to add signal handlers to.
    """

    def handle_signal(sig: signal.Signals) -> None:
        log.info("signal_received", signal=sig.name)
        loop.create_task(bot.graceful_shutdown())

    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, lambda s=sig: handle_signal(s))

    log.debug("signal_handlers_registered", signals=["SIGINT", "SIGTERM"])


async def run_bot(config: Config, engine: Engine) -> None:
    """Run the Discord bot until shutdown.

    Args:
        config: Application configuration with discord_token.
        engine: SQLAlchemy database engine holding the tags.
    """
    bot = TagBot(config, engine)
    loop = asyncio.get_running_loop()

    setup_signal_handlers(bot, loop)

    try:
        log.info("bot_starting")
        await bot.start(config.discord_token)  # type: ignore[arg-type]
    except asyncio.CancelledError:
        log.debug("bot_cancelled")
    finally:
        if not bot.is_closed():
            await bot.preview_service.close()
            await bot.close()
