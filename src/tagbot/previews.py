"""Link previews for tag content.

Tags often point at documentation or articles. When a tag is displayed, each
link gets a small preview card built from the page's OpenGraph metadata (or
its ``<title>`` and meta description as a fallback). Preview images are
downloaded and uploaded alongside the message so Discord does not have to
hotlink them.

Key features:
- URL extraction from tag content, in order of appearance
- Concurrent fetching of all links
- OpenGraph / HTML metadata parsing
- Image links and ``og:image`` attached as files
- Failures degrade to "no preview" for that link, never to an error
"""

from __future__ import annotations

import asyncio
import io
import re
from pathlib import PurePosixPath
from typing import TYPE_CHECKING
from urllib.parse import urljoin, urlparse

import discord
import httpx
from bs4 import BeautifulSoup

from tagbot.logging import get_logger
from tagbot.models import LinkPreview

if TYPE_CHECKING:
    from tagbot.config import PreviewsConfig

log = get_logger("previews")

# URL extraction pattern - matches http/https URLs
URL_PATTERN = re.compile(r"https?://[^\s<>\"{}|\\^`\[\]]+")

# Punctuation that ends a sentence rather than a URL
TRAILING_PUNCTUATION = ".,;:!?)'"

# Discord limits for embed fields
MAX_TITLE_LENGTH = 256
MAX_DESCRIPTION_LENGTH = 350

IMAGE_EXTENSIONS = {"image/png": ".png", "image/jpeg": ".jpg", "image/gif": ".gif", "image/webp": ".webp"}


def extract_links(content: str) -> list[str]:
    """Extract links from tag content.

    Args:
        content: Raw tag text (markdown).

    Returns:
        Unique URLs in order of first appearance.
    """
    links: list[str] = []
    for match in URL_PATTERN.findall(content):
        url = _strip_trailing_punctuation(match)
        if url and url not in links:
            links.append(url)
    return links


def _strip_trailing_punctuation(url: str) -> str:
    """Drop sentence punctuation and unbalanced closing parentheses."""
    while url and url[-1] in TRAILING_PUNCTUATION:
        # Keep a closing paren that belongs to the URL, e.g. wiki links
        if url[-1] == ")" and url.count("(") >= url.count(")"):
            break
        url = url[:-1]
    return url


def _truncate(text: str, limit: int) -> str:
    if len(text) <= limit:
        return text
    return text[: limit - 3].rstrip() + "..."


def _meta_content(soup: BeautifulSoup, *keys: str) -> str | None:
    """First non-empty ``<meta>`` content among property/name keys."""
    for key in keys:
        tag = soup.find("meta", attrs={"property": key}) or soup.find(
            "meta", attrs={"name": key}
        )
        if tag is not None:
            content = tag.get("content")
            if isinstance(content, str) and content.strip():
                return content.strip()
    return None


class LinkPreviewService:
    """Builds preview cards for links.

    A single ``httpx.AsyncClient`` is shared across requests; call
    :meth:`close` on shutdown.
    """

    def __init__(
        self,
        config: PreviewsConfig,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the preview service.

        Args:
            config: Link preview configuration.
            client: Optional HTTP client, mostly for tests.
        """
        self.config = config
        self._client = client

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self.config.fetch_timeout_seconds,
                follow_redirects=True,
                headers={"User-Agent": self.config.user_agent},
            )
        return self._client

    async def close(self) -> None:
        """Close the underlying HTTP client, if one was created."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def create_link_previews(self, urls: list[str]) -> list[LinkPreview]:
        """Create previews for all links concurrently.

        Args:
            urls: Links to preview.

        Returns:
            One preview per link that could be previewed, in input order.
            Links that fail are left out.
        """
        if not self.config.enabled or not urls:
            return []

        results = await asyncio.gather(
            *(self._create_preview(index, url) for index, url in enumerate(urls)),
            return_exceptions=True,
        )

        previews: list[LinkPreview] = []
        for url, result in zip(urls, results):
            if isinstance(result, BaseException):
                log.warning("link_preview_failed", url=url, error=str(result))
            elif result is not None:
                previews.append(result)

        log.debug("link_previews_created", requested=len(urls), created=len(previews))
        return previews

    async def _create_preview(self, index: int, url: str) -> LinkPreview | None:
        """Fetch one link and turn it into a preview.

        Args:
            index: Position of the link, used to keep file names unique.
            url: The link.

        Returns:
            The preview, or None if the link has nothing to show.
        """
        client = self._get_client()
        try:
            response = await client.get(url)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            log.debug("link_fetch_http_error", url=url, status=e.response.status_code)
            return None
        except httpx.HTTPError as e:
            log.debug("link_fetch_failed", url=url, error=str(e))
            return None

        content_type = response.headers.get("content-type", "").split(";")[0].strip().lower()

        if content_type in IMAGE_EXTENSIONS:
            # Direct image link: the image is the preview
            attachment = self._image_file(index, url, content_type, response.content)
            if attachment is None:
                return None
            embed = discord.Embed(url=url)
            embed.set_image(url=f"attachment://{attachment.filename}")
            return LinkPreview(url=url, embed=embed, attachment=attachment)

        if content_type != "text/html":
            log.debug("link_preview_unsupported", url=url, content_type=content_type)
            return None

        soup = BeautifulSoup(response.text, "html.parser")

        title = _meta_content(soup, "og:title", "twitter:title")
        if title is None and soup.title is not None:
            title = soup.title.get_text(strip=True) or None
        description = _meta_content(
            soup, "og:description", "twitter:description", "description"
        )
        image_url = _meta_content(soup, "og:image", "twitter:image")

        if title is None and description is None and image_url is None:
            return None

        embed = discord.Embed(
            title=_truncate(title, MAX_TITLE_LENGTH) if title else None,
            url=url,
            description=_truncate(description, MAX_DESCRIPTION_LENGTH) if description else None,
        )

        attachment = None
        if image_url is not None:
            attachment = await self._download_image(index, urljoin(url, image_url))
            if attachment is not None:
                embed.set_thumbnail(url=f"attachment://{attachment.filename}")

        return LinkPreview(url=url, embed=embed, attachment=attachment)

    async def _download_image(self, index: int, url: str) -> discord.File | None:
        """Download a preview image.

        Returns:
            The image as a file, or None if it is missing, too large or not
            an image.
        """
        try:
            response = await self._get_client().get(url)
            response.raise_for_status()
        except httpx.HTTPError as e:
            log.debug("preview_image_failed", url=url, error=str(e))
            return None

        content_type = response.headers.get("content-type", "").split(";")[0].strip().lower()
        if content_type not in IMAGE_EXTENSIONS:
            return None
        return self._image_file(index, url, content_type, response.content)

    def _image_file(
        self, index: int, url: str, content_type: str, data: bytes
    ) -> discord.File | None:
        if not data or len(data) > self.config.max_image_bytes:
            log.debug("preview_image_skipped", url=url, size=len(data))
            return None

        stem = PurePosixPath(urlparse(url).path).stem or "preview"
        stem = re.sub(r"[^A-Za-z0-9_-]", "_", stem)[:40]
        filename = f"{index}_{stem}{IMAGE_EXTENSIONS[content_type]}"
        return discord.File(io.BytesIO(data), filename=filename)
