"""Response composition for ``/tag``.

Turns tag content into the outbound message. Tags without links are sent in
one go. Tags with links are answered with a deferred placeholder right away
(interactions must be acknowledged within three seconds) and the placeholder
is then edited exactly once, when the link previews are ready.

The primary embed holding the tag content is always the first embed. Link
previews are only ever appended after it.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Protocol

import discord

from tagbot.logging import get_logger
from tagbot.models import LinkPreview, RenderedResponse, Tag
from tagbot.previews import extract_links

if TYPE_CHECKING:
    from discord.abc import User

log = get_logger("composer")

# Discord allows at most 10 embeds per message
MAX_EMBED_COUNT = 10

# The primary embed always takes one slot
MAX_LINK_PREVIEWS = MAX_EMBED_COUNT - 1

AMBIENT_COLOR = discord.Colour(0xFA8072)

TAGS_COMMAND_NOTE = "You can use /tags in any channel now"


class PreviewProvider(Protocol):
    """Anything that can turn links into previews."""

    async def create_link_previews(self, urls: list[str]) -> list[LinkPreview]: ...


class ResponseComposer:
    """Renders tags and delivers them over an interaction.

    Attributes:
        previews: Service creating link previews.
        link_extractor: Function finding links in tag content.
        preview_timeout: Seconds to wait for previews before finalizing with
            the tag content only. None waits indefinitely.
        previews_enabled: When False, links are ignored and every tag is
            answered with a single reply.
    """

    def __init__(
        self,
        previews: PreviewProvider,
        link_extractor: Callable[[str], list[str]] = extract_links,
        preview_timeout: float | None = None,
        previews_enabled: bool = True,
    ) -> None:
        self.previews = previews
        self.link_extractor = link_extractor
        self.preview_timeout = preview_timeout
        self.previews_enabled = previews_enabled

    def render_primary(self, tag: Tag, now: datetime | None = None) -> discord.Embed:
        """Build the embed showing the tag content.

        Args:
            tag: The tag to show.
            now: Request time, defaults to the current time.

        Returns:
            The primary embed.
        """
        embed = discord.Embed(
            description=tag.content,
            colour=AMBIENT_COLOR,
            timestamp=now or datetime.now(timezone.utc),
        )
        embed.set_footer(text=TAGS_COMMAND_NOTE)
        return embed

    def render(
        self,
        tag: Tag,
        reply_to_user: User | None = None,
        now: datetime | None = None,
    ) -> RenderedResponse:
        """Render a tag without any link previews."""
        return RenderedResponse(
            primary_embed=self.render_primary(tag, now),
            leading_mention_text=reply_to_user.mention if reply_to_user else None,
        )

    def links_for(self, tag: Tag) -> list[str]:
        """Links to preview for a tag, capped to the free embed slots.

        Extraction failures, or disabled previews, yield no links.
        """
        if not self.previews_enabled:
            return []
        try:
            links = self.link_extractor(tag.content)
        except Exception as e:
            log.warning("link_extraction_failed", tag_id=tag.id, error=str(e))
            return []
        return links[:MAX_LINK_PREVIEWS]

    async def fetch_previews(self, links: list[str]) -> list[LinkPreview]:
        """Fetch previews, degrading to none on failure or timeout."""
        try:
            return await asyncio.wait_for(
                self.previews.create_link_previews(links),
                timeout=self.preview_timeout,
            )
        except asyncio.TimeoutError:
            log.warning(
                "link_previews_timed_out",
                links=len(links),
                timeout_seconds=self.preview_timeout,
            )
        except Exception as e:
            log.warning("link_previews_failed", links=len(links), error=str(e))
        return []

    async def respond(
        self,
        interaction: discord.Interaction,
        tag: Tag,
        reply_to_user: User | None = None,
    ) -> RenderedResponse:
        """Send a tag as the response to an interaction.

        Produces either a single reply, or a deferred placeholder followed by
        exactly one edit.

        Args:
            interaction: The interaction to answer.
            tag: The tag to show.
            reply_to_user: Optional user to ping along with the tag.

        Returns:
            What was finally shown.
        """
        response = self.render(tag, reply_to_user)
        links = self.links_for(tag)

        if not links:
            await interaction.response.send_message(
                content=response.leading_mention_text,
                embed=response.primary_embed,
            )
            log.info("tag_sent", tag_id=tag.id, links=0)
            return response

        await interaction.response.defer()

        previews = await self.fetch_previews(links)
        if previews:
            response = response.with_previews(previews)

        try:
            await interaction.edit_original_response(
                content=response.leading_mention_text,
                embeds=response.embeds,
                attachments=response.attachments,
            )
        except discord.HTTPException as e:
            if not previews:
                raise
            # The placeholder is unchanged after a rejected edit
            log.warning(
                "link_preview_edit_failed",
                tag_id=tag.id,
                status=e.status,
                error=str(e),
            )
            response = RenderedResponse(
                primary_embed=response.primary_embed,
                leading_mention_text=response.leading_mention_text,
            )
            previews = []
            await interaction.edit_original_response(
                content=response.leading_mention_text,
                embeds=response.embeds,
                attachments=[],
            )
        log.info(
            "tag_sent",
            tag_id=tag.id,
            links=len(links),
            previews=len(previews),
            attachments=len(response.attachments),
        )
        return response
