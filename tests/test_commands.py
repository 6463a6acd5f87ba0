"""Tests for the /tag command cog.

Covers:
- Building the invocation context from an interaction
- Access control and the rejection notice
- Configuration errors when the bots channel is missing
- Unknown tags
- Handing found tags to the composer
- Autocomplete
"""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import discord
import pytest

from tagbot.access import BotsChannelNotFoundError
from tagbot.commands import TagCommands
from tagbot.config import Config, DiscordConfig
from tagbot.models import ChannelKind
from tagbot.tags import TagStore


def make_channel(name: str, mention: str | None = None) -> MagicMock:
    channel = MagicMock(spec=discord.TextChannel)
    channel.name = name
    channel.mention = mention or f"#{name}"
    return channel


def make_role(name: str) -> MagicMock:
    role = MagicMock()
    role.name = name
    return role


class MockInteraction:
    """Mock Discord interaction for testing."""

    def __init__(
        self,
        channel_name: str = "bots",
        parent_name: str | None = None,
        role_names: list[str] | None = None,
        guild_channels: list[str] | None = None,
    ) -> None:
        """Initialize mock interaction.

        Args:
            channel_name: Name of the channel (or thread) the command ran in.
            parent_name: When set, the channel is a thread below this channel.
            role_names: Names of the invoker's roles.
            guild_channels: Names of the guild's text channels.
        """
        if parent_name is not None:
            self.channel = MagicMock(spec=discord.Thread)
            self.channel.name = channel_name
            self.channel.parent = make_channel(parent_name)
        else:
            self.channel = make_channel(channel_name)
        self.channel_id = 555

        self.user = MagicMock(spec=discord.Member)
        self.user.id = 123456
        self.user.roles = [make_role(name) for name in role_names or []]

        self.guild = MagicMock()
        self.guild.id = 999
        self.guild.text_channels = [
            make_channel(name, mention=f"<#{index}>")
            for index, name in enumerate(guild_channels or ["general", "bots"])
        ]

        self.response = MagicMock()
        self.response.send_message = AsyncMock()
        self.response.defer = AsyncMock()
        self.edit_original_response = AsyncMock()


class MockTagBot:
    """Mock TagBot for testing commands."""

    def __init__(self, tag_store: TagStore) -> None:
        self.config = Config(
            discord=DiscordConfig(
                bots_channel_pattern="bots",
                help_forum_pattern="questions",
                tag_manage_role_pattern="Moderator",
            )
        )
        self.tag_store = tag_store
        self.preview_service = MagicMock()
        self.preview_service.create_link_previews = AsyncMock(return_value=[])


@pytest.fixture
def cog(tag_store: TagStore) -> TagCommands:
    return TagCommands(MockTagBot(tag_store))  # type: ignore[arg-type]


class TestBuildContext:
    """Tests for turning interactions into invocation contexts."""

    def test_standalone_channel(self, cog: TagCommands) -> None:
        interaction = MockInteraction(channel_name="bots", role_names=["Member"])

        context = cog.build_context(interaction, "java")  # type: ignore[arg-type]

        assert context.channel_kind is ChannelKind.STANDALONE
        assert context.channel_name == "bots"
        assert context.parent_channel_name is None
        assert context.invoker_role_names == frozenset({"Member"})
        assert context.requested_id == "java"
        assert context.channel_id == 555

    def test_thread_uses_parent(self, cog: TagCommands) -> None:
        interaction = MockInteraction(channel_name="my question", parent_name="questions")

        context = cog.build_context(interaction, "java")  # type: ignore[arg-type]

        assert context.channel_kind is ChannelKind.THREAD
        assert context.channel_name == "my question"
        assert context.parent_channel_name == "questions"

    def test_non_member_has_no_roles(self, cog: TagCommands) -> None:
        interaction = MockInteraction()
        interaction.user = MagicMock(spec=discord.User)

        context = cog.build_context(interaction, "java")  # type: ignore[arg-type]

        assert context.invoker_role_names == frozenset()

    def test_reply_to_kept(self, cog: TagCommands) -> None:
        target = MagicMock()
        context = cog.build_context(MockInteraction(), "java", target)  # type: ignore[arg-type]
        assert context.reply_to_user is target


class TestTagCommand:
    """Tests for /tag."""

    @pytest.mark.asyncio
    async def test_sends_tag_in_bots_channel(self, cog: TagCommands) -> None:
        interaction = MockInteraction(channel_name="bots")

        with patch("tagbot.commands.log"):
            await cog.tag.callback(cog, interaction, "java")  # type: ignore[arg-type]

        interaction.response.send_message.assert_awaited_once()
        embed = interaction.response.send_message.call_args.kwargs["embed"]
        assert embed.description == "Java is a programming language."

    @pytest.mark.asyncio
    async def test_sends_tag_in_help_thread(self, cog: TagCommands) -> None:
        interaction = MockInteraction(channel_name="anything", parent_name="questions")

        await cog.tag.callback(cog, interaction, "ask")  # type: ignore[arg-type]

        embed = interaction.response.send_message.call_args.kwargs["embed"]
        assert embed.description == "Don't ask to ask, just ask."

    @pytest.mark.asyncio
    async def test_reply_to_mentions_user(self, cog: TagCommands) -> None:
        interaction = MockInteraction(channel_name="bots")
        target = MagicMock()
        target.mention = "<@77>"

        await cog.tag.callback(cog, interaction, "ask", target)  # type: ignore[arg-type]

        assert interaction.response.send_message.call_args.kwargs["content"] == "<@77>"

    @pytest.mark.asyncio
    async def test_tag_with_link_defers_then_edits(self, cog: TagCommands) -> None:
        interaction = MockInteraction(channel_name="bots")

        await cog.tag.callback(cog, interaction, "javadoc")  # type: ignore[arg-type]

        interaction.response.defer.assert_awaited_once()
        interaction.edit_original_response.assert_awaited_once()
        interaction.response.send_message.assert_not_called()
        cog.bot.preview_service.create_link_previews.assert_awaited_once_with(
            ["https://docs.oracle.com/en/java/"]
        )

    @pytest.mark.asyncio
    async def test_rejected_in_other_channel(self, cog: TagCommands) -> None:
        interaction = MockInteraction(channel_name="general")

        with patch("tagbot.commands.log"):
            await cog.tag.callback(cog, interaction, "java")  # type: ignore[arg-type]

        interaction.response.send_message.assert_awaited_once()
        args, kwargs = interaction.response.send_message.call_args
        assert kwargs["ephemeral"] is True
        assert "<#1>" in args[0]
        assert "Java is a programming language" not in args[0]
        assert "embed" not in kwargs

    @pytest.mark.asyncio
    async def test_manage_role_overrides_channel(self, cog: TagCommands) -> None:
        interaction = MockInteraction(channel_name="general", role_names=["Moderator"])

        await cog.tag.callback(cog, interaction, "java")  # type: ignore[arg-type]

        assert "embed" in interaction.response.send_message.call_args.kwargs

    @pytest.mark.asyncio
    async def test_missing_bots_channel_raises(self, cog: TagCommands) -> None:
        """A guild without a bots channel is a config problem, not a denial."""
        interaction = MockInteraction(channel_name="general", guild_channels=["general"])

        with patch("tagbot.commands.log"):
            with pytest.raises(BotsChannelNotFoundError):
                await cog.tag.callback(cog, interaction, "java")  # type: ignore[arg-type]

        interaction.response.send_message.assert_not_called()

    @pytest.mark.asyncio
    async def test_unknown_tag(self, cog: TagCommands) -> None:
        interaction = MockInteraction(channel_name="bots")

        with patch.object(cog.composer, "render_primary") as render_primary:
            await cog.tag.callback(cog, interaction, "jaav")  # type: ignore[arg-type]

        render_primary.assert_not_called()
        args, kwargs = interaction.response.send_message.call_args
        assert kwargs["ephemeral"] is True
        assert "`jaav`" in args[0]
        assert "Did you perhaps mean `java`?" in args[0]
        interaction.response.defer.assert_not_called()

    @pytest.mark.asyncio
    async def test_unknown_tag_with_empty_store(self, engine) -> None:
        cog = TagCommands(MockTagBot(TagStore(engine)))  # type: ignore[arg-type]
        interaction = MockInteraction(channel_name="bots")

        await cog.tag.callback(cog, interaction, "java")  # type: ignore[arg-type]

        message = interaction.response.send_message.call_args.args[0]
        assert "Could not find any tag" in message
        assert "Did you perhaps mean" not in message

    @pytest.mark.asyncio
    async def test_disabled_previews_reply_once(self, tag_store: TagStore) -> None:
        bot = MockTagBot(tag_store)
        bot.config.previews.enabled = False
        cog = TagCommands(bot)  # type: ignore[arg-type]
        interaction = MockInteraction(channel_name="bots")

        await cog.tag.callback(cog, interaction, "javadoc")  # type: ignore[arg-type]

        interaction.response.send_message.assert_awaited_once()
        interaction.response.defer.assert_not_called()
        bot.preview_service.create_link_previews.assert_not_called()


class TestAutocomplete:
    """Tests for tag id autocompletion."""

    @pytest.mark.asyncio
    async def test_suggests_close_ids(self, cog: TagCommands) -> None:
        interaction = MockInteraction()

        choices = await cog.tag_id_autocomplete(interaction, "jav")  # type: ignore[arg-type]

        assert [choice.value for choice in choices][:2] == ["java", "javadoc"]
        assert all(choice.name == choice.value for choice in choices)

    @pytest.mark.asyncio
    async def test_at_most_five(self, engine) -> None:
        store = TagStore(engine)
        for i in range(12):
            store.put_tag(f"tag-{i}", "content")
        cog = TagCommands(MockTagBot(store))  # type: ignore[arg-type]

        choices = await cog.tag_id_autocomplete(MockInteraction(), "tag")  # type: ignore[arg-type]

        assert len(choices) == 5
