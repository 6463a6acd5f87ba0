"""CLI entrypoint for running tagbot as a module."""

from tagbot.cli import cli
from tagbot.logging import setup_logging

if __name__ == "__main__":
    setup_logging()
    cli()
