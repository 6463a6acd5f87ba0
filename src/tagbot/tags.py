"""Tag storage and lookup.

``TagStore`` is the persistence side: a thin SQLAlchemy Core wrapper over the
``tags`` table. ``TagResolver`` is what the ``/tag`` command talks to: a pure
lookup that reports unknown ids as a ``TagNotFound`` value and leaves any
user-facing notice to the caller.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import delete, select
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.engine import Engine

from tagbot.database import tags
from tagbot.logging import get_logger
from tagbot.models import Tag, TagFound, TagLookup, TagNotFound

log = get_logger("tags")


class TagStore:
    """Read and write access to stored tags."""

    def __init__(self, engine: Engine) -> None:
        self.engine = engine

    def get_tag(self, tag_id: str) -> str | None:
        """Get the content of a tag.

        Args:
            tag_id: The tag id.

        Returns:
            The tag content, or None if no such tag exists.
        """
        with self.engine.connect() as conn:
            result = conn.execute(select(tags.c.content).where(tags.c.id == tag_id))
            return result.scalar_one_or_none()

    def get_all_ids(self) -> set[str]:
        """Get the ids of all stored tags."""
        with self.engine.connect() as conn:
            result = conn.execute(select(tags.c.id))
            return {row.id for row in result}

    def put_tag(self, tag_id: str, content: str) -> None:
        """Create or replace a tag.

        Args:
            tag_id: The tag id.
            content: The new content.
        """
        now = datetime.now(timezone.utc)
        stmt = sqlite_insert(tags).values(id=tag_id, content=content, updated_at=now)
        stmt = stmt.on_conflict_do_update(
            index_elements=["id"],
            set_={"content": stmt.excluded.content, "updated_at": now},
        )
        with self.engine.begin() as conn:
            conn.execute(stmt)
        log.info("tag_stored", tag_id=tag_id, length=len(content))

    def delete_tag(self, tag_id: str) -> bool:
        """Delete a tag.

        Args:
            tag_id: The tag id.

        Returns:
            True if a tag was deleted, False if it did not exist.
        """
        with self.engine.begin() as conn:
            result = conn.execute(delete(tags).where(tags.c.id == tag_id))
        deleted = result.rowcount > 0
        if deleted:
            log.info("tag_deleted", tag_id=tag_id)
        return deleted


class TagResolver:
    """Resolves requested ids to tags without side effects."""

    def __init__(self, store: TagStore) -> None:
        self.store = store

    def resolve(self, tag_id: str) -> TagLookup:
        """Look up a tag by id.

        Args:
            tag_id: The requested id.

        Returns:
            TagFound with the tag, or TagNotFound for unknown ids.
        """
        content = self.store.get_tag(tag_id)
        if content is None:
            return TagNotFound(id=tag_id)
        return TagFound(tag=Tag(id=tag_id, content=content))

    def known_ids(self) -> set[str]:
        """Get all ids the resolver can resolve."""
        return self.store.get_all_ids()
