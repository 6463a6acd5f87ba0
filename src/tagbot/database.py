"""Database schema and connection management for tagbot.

Uses SQLAlchemy Core (not ORM) for explicit SQL control.
"""

from datetime import datetime, timezone

from sqlalchemy import (
    Column,
    DateTime,
    MetaData,
    String,
    Table,
    Text,
    create_engine,
    text,
)
from sqlalchemy.engine import Engine

from tagbot.config import Config

# Shared metadata for all tables
metadata = MetaData()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


tags = Table(
    "tags",
    metadata,
    Column("id", String, primary_key=True),  # Human-readable tag name
    Column("content", Text, nullable=False),
    Column("updated_at", DateTime, nullable=False, default=_utcnow),
)


# =============================================================================
# Helper Functions
# =============================================================================


def get_engine(config: Config) -> Engine:
    """Create SQLAlchemy engine from config.

    Args:
        config: Application configuration.

    Returns:
        SQLAlchemy Engine instance.
    """
    db_path = config.database_path

    # Ensure data directory exists
    db_path.parent.mkdir(parents=True, exist_ok=True)

    engine = create_engine(
        f"sqlite:///{db_path}",
        echo=config.log_level == "DEBUG",
    )

    with engine.connect() as conn:
        conn.execute(text("PRAGMA journal_mode=WAL"))
        conn.commit()

    return engine


def create_tables(engine: Engine) -> None:
    """Create all tables in the database.

    Args:
        engine: SQLAlchemy Engine instance.
    """
    metadata.create_all(engine)
