"""Data models for tagbot.

Pydantic models cover the plain-data entities (tags, invocation contexts).
Values that carry discord.py objects (embeds, files) are dataclasses.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

import discord
from pydantic import BaseModel, ConfigDict, Field, model_validator


# =============================================================================
# Enums
# =============================================================================


class ChannelKind(str, Enum):
    """Where a command was invoked."""

    STANDALONE = "standalone"
    THREAD = "thread"


# =============================================================================
# Entities
# =============================================================================


class Tag(BaseModel):
    """A named, reusable block of text."""

    model_config = ConfigDict(frozen=True)

    id: str
    content: str


class InvocationContext(BaseModel):
    """Everything access control and rendering need to know about a request.

    Built fresh for each ``/tag`` invocation and never persisted.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    channel_id: int
    channel_name: str
    channel_kind: ChannelKind = ChannelKind.STANDALONE
    parent_channel_name: str | None = None
    invoker_role_names: frozenset[str] = Field(default_factory=frozenset)
    requested_id: str
    reply_to_user: Any | None = None  # discord.abc.User

    @model_validator(mode="after")
    def validate_parent(self) -> "InvocationContext":
        """Only threads carry a parent channel name."""
        if self.channel_kind is ChannelKind.STANDALONE and self.parent_channel_name:
            raise ValueError("standalone channels have no parent channel")
        return self

    @property
    def is_thread(self) -> bool:
        """Check whether the invocation happened inside a thread."""
        return self.channel_kind is ChannelKind.THREAD


# =============================================================================
# Lookup results
# =============================================================================


@dataclass(frozen=True)
class TagFound:
    """Successful tag lookup."""

    tag: Tag


@dataclass(frozen=True)
class TagNotFound:
    """Lookup for an id the store does not know."""

    id: str


TagLookup = TagFound | TagNotFound


# =============================================================================
# Rendering
# =============================================================================


@dataclass(frozen=True)
class LinkPreview:
    """A rendered preview of one link, with an optional file to upload."""

    url: str
    embed: discord.Embed
    attachment: discord.File | None = None


@dataclass
class RenderedResponse:
    """The outbound rendering of a single tag.

    The primary embed always comes first in ``embeds``; supplementary embeds
    can only be appended after it.
    """

    primary_embed: discord.Embed
    leading_mention_text: str | None = None
    supplementary_embeds: list[discord.Embed] = field(default_factory=list)
    attachments: list[discord.File] = field(default_factory=list)

    @property
    def embeds(self) -> list[discord.Embed]:
        """All embeds in display order."""
        return [self.primary_embed, *self.supplementary_embeds]

    def with_previews(self, previews: list[LinkPreview]) -> "RenderedResponse":
        """Return a copy enriched with the given previews.

        Args:
            previews: Successful previews, in link order.

        Returns:
            New response with one supplementary embed per preview and the
            non-empty attachments.
        """
        return RenderedResponse(
            primary_embed=self.primary_embed,
            leading_mention_text=self.leading_mention_text,
            supplementary_embeds=[
                *self.supplementary_embeds,
                *(preview.embed for preview in previews),
            ],
            attachments=[
                *self.attachments,
                *(
                    preview.attachment
                    for preview in previews
                    if preview.attachment is not None
                ),
            ],
        )
