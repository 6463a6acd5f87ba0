"""Pytest configuration and shared fixtures."""

import pytest
from click.testing import CliRunner

from tagbot.config import Config
from tagbot.database import create_tables, get_engine
from tagbot.tags import TagStore


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def temp_data_dir(tmp_path):
    """Provide a temporary data directory for tests."""
    data_dir = tmp_path / "data"
    data_dir.mkdir()
    return data_dir


@pytest.fixture
def test_config(temp_data_dir) -> Config:
    """Provide a config pointing at the temporary data directory."""
    return Config(data_dir=temp_data_dir)


@pytest.fixture
def engine(test_config):
    """Provide an engine on a fresh SQLite database with tables created."""
    engine = get_engine(test_config)
    create_tables(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def tag_store(engine) -> TagStore:
    """Provide a tag store seeded with a few tags."""
    store = TagStore(engine)
    store.put_tag("java", "Java is a programming language.")
    store.put_tag("javadoc", "Read the docs: https://docs.oracle.com/en/java/")
    store.put_tag("ask", "Don't ask to ask, just ask.")
    return store
