"""The ``/tag`` slash command.

Displays the content of a previously stored tag, optionally pinging a user
it is meant for. The command is limited to the bots channel and help forum
threads (see :mod:`tagbot.access`); tag content is rendered by
:mod:`tagbot.composer`.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import discord
from discord import app_commands
from discord.ext import commands

from tagbot.access import AccessPolicy, ConfigurationError
from tagbot.composer import ResponseComposer
from tagbot.logging import get_logger
from tagbot.models import ChannelKind, InvocationContext, TagNotFound
from tagbot.suggestions import suggest, suggestion_choices
from tagbot.tags import TagResolver

if TYPE_CHECKING:
    from tagbot.bot import TagBot

log = get_logger("commands")


class TagCommands(commands.Cog):
    """Slash command rendering stored tags into the conversation."""

    def __init__(self, bot: TagBot) -> None:
        """Initialize the commands cog.

        Args:
            bot: The TagBot instance.
        """
        self.bot = bot
        self.config = bot.config
        self.policy = AccessPolicy.from_config(self.config.discord)
        self.resolver = TagResolver(bot.tag_store)
        self.composer = ResponseComposer(
            bot.preview_service,
            preview_timeout=self.config.previews.timeout_seconds,
            previews_enabled=self.config.previews.enabled,
        )

    def build_context(
        self,
        interaction: discord.Interaction,
        tag_id: str,
        reply_to: discord.User | discord.Member | None = None,
    ) -> InvocationContext:
        """Capture what access control and rendering need from an interaction.

        Args:
            interaction: The Discord interaction.
            tag_id: The requested tag id.
            reply_to: Optional user the tag is meant for.

        Returns:
            The invocation context.
        """
        channel = interaction.channel
        if isinstance(channel, discord.Thread):
            # Threads are judged by the channel they were created in
            kind = ChannelKind.THREAD
            parent_name = channel.parent.name if channel.parent else None
        else:
            kind = ChannelKind.STANDALONE
            parent_name = None

        member = interaction.user
        role_names: frozenset[str] = frozenset()
        if isinstance(member, discord.Member):
            role_names = frozenset(role.name for role in member.roles)

        return InvocationContext(
            channel_id=interaction.channel_id or 0,
            channel_name=getattr(channel, "name", None) or "",
            channel_kind=kind,
            parent_channel_name=parent_name,
            invoker_role_names=role_names,
            requested_id=tag_id,
            reply_to_user=reply_to,
        )

    async def reject(self, interaction: discord.Interaction) -> None:
        """Tell the user where ``/tag`` may be used.

        Raises:
            ConfigurationError: If the guild has no bots channel.
        """
        guild = interaction.guild
        try:
            bots_channel = self.policy.find_bots_channel(
                guild.text_channels if guild else []
            )
        except ConfigurationError as e:
            log.error(
                "bots_channel_missing",
                guild_id=str(guild.id) if guild else None,
                error=str(e),
            )
            raise

        await interaction.response.send_message(
            f"Command can only be used in {bots_channel.mention} channel or help forum, "
            "avoid spamming helper forum with usage.",
            ephemeral=True,
        )

    async def notify_unknown_tag(
        self, interaction: discord.Interaction, missing: TagNotFound
    ) -> None:
        """Tell the user the tag does not exist, suggesting the closest id."""
        message = f"Could not find any tag with id `{missing.id}`."
        closest = suggest(missing.id, self.resolver.known_ids(), limit=1)
        if closest:
            message += f" Did you perhaps mean `{closest[0]}`?"

        await interaction.response.send_message(message, ephemeral=True)

    @app_commands.command(name="tag", description="Display a tags content")
    @app_commands.rename(tag_id="id", reply_to="reply-to")
    @app_commands.describe(
        tag_id="The id of the tag to display",
        reply_to="Optionally, the user who you want to reply to",
    )
    @app_commands.guild_only()
    async def tag(
        self,
        interaction: discord.Interaction,
        tag_id: str,
        reply_to: discord.User | None = None,
    ) -> None:
        """Display a tag.

        Args:
            tag_id: Id of the tag to display.
            reply_to: Optional user to ping with the tag.
        """
        context = self.build_context(interaction, tag_id, reply_to)

        if not self.policy.is_allowed(context):
            log.info(
                "tag_access_denied",
                tag_id=tag_id,
                channel=context.channel_name,
                user=str(interaction.user),
            )
            await self.reject(interaction)
            return

        lookup = self.resolver.resolve(context.requested_id)
        if isinstance(lookup, TagNotFound):
            log.info("tag_unknown", tag_id=tag_id, user=str(interaction.user))
            await self.notify_unknown_tag(interaction, lookup)
            return

        await self.composer.respond(interaction, lookup.tag, context.reply_to_user)

    @tag.autocomplete("tag_id")
    async def tag_id_autocomplete(
        self, interaction: discord.Interaction, current: str
    ) -> list[app_commands.Choice[str]]:
        """Suggest tag ids close to what has been typed so far."""
        return suggestion_choices(current, self.resolver.known_ids())
