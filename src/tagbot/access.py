"""Access control for the ``/tag`` command.

Tags are noisy, so ``/tag`` is limited to the bots channel and to threads of
the help forum. Members holding a tag-management role may use it anywhere.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Protocol, TypeVar

from tagbot.config import DiscordConfig
from tagbot.models import InvocationContext


class _Named(Protocol):
    name: str


ChannelT = TypeVar("ChannelT", bound=_Named)


class ConfigurationError(Exception):
    """The configuration does not fit the guild the bot is running in."""


class BotsChannelNotFoundError(ConfigurationError):
    """No channel in the guild matches the configured bots channel pattern."""

    def __init__(self, pattern: str) -> None:
        super().__init__(
            f"Unable to find a channel matching bots channel pattern {pattern!r}, "
            "try fixing the config"
        )
        self.pattern = pattern


@dataclass(frozen=True)
class AccessPolicy:
    """Compiled matchers deciding who may use ``/tag`` and where.

    All patterns must match the full name.
    """

    bots_channel: re.Pattern[str]
    help_forum: re.Pattern[str]
    tag_manage_role: re.Pattern[str]

    @classmethod
    def from_config(cls, config: DiscordConfig) -> "AccessPolicy":
        """Compile the policy from the Discord configuration section."""
        return cls(
            bots_channel=re.compile(config.bots_channel_pattern),
            help_forum=re.compile(config.help_forum_pattern),
            tag_manage_role=re.compile(config.tag_manage_role_pattern),
        )

    def is_bots_channel(self, channel_name: str) -> bool:
        return self.bots_channel.fullmatch(channel_name) is not None

    def is_help_forum(self, channel_name: str) -> bool:
        return self.help_forum.fullmatch(channel_name) is not None

    def is_triggered_in_allowed_channel(self, context: InvocationContext) -> bool:
        """Check the channel part of the policy.

        Standalone channels must be the bots channel. Threads are judged by
        their parent channel, which must be the help forum.
        """
        if not context.is_thread:
            return self.is_bots_channel(context.channel_name)
        if context.parent_channel_name is None:
            return False
        return self.is_help_forum(context.parent_channel_name)

    def has_override_role(self, context: InvocationContext) -> bool:
        """Check whether the invoker holds a tag-management role."""
        return any(
            self.tag_manage_role.fullmatch(role_name) is not None
            for role_name in context.invoker_role_names
        )

    def is_allowed(self, context: InvocationContext) -> bool:
        """Check whether the request may be served."""
        return self.is_triggered_in_allowed_channel(context) or self.has_override_role(
            context
        )

    def find_bots_channel(self, channels: Iterable[ChannelT]) -> ChannelT:
        """Find the canonical bots channel among the guild's channels.

        Args:
            channels: The guild's text channels, in guild order. Anything with
                a ``name`` attribute works.

        Returns:
            The first matching channel.

        Raises:
            BotsChannelNotFoundError: If no channel matches.
        """
        for channel in channels:
            if self.is_bots_channel(channel.name):
                return channel
        raise BotsChannelNotFoundError(self.bots_channel.pattern)
