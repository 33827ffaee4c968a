"""Command runner for coordinating CLI execution.

Manages logging configuration, service lifecycle and error handling for
commands that talk to the delivery API.
"""

from __future__ import annotations

from typing import Callable

import click

from ContentKit.cli.commands import FetchCommand, QueryOptions, build_query
from ContentKit.config import AppConfig
from ContentKit.delivery import create_delivery_service
from ContentKit.utils.log import configure_logging, log


class CommandRunner:
    """Orchestrates command execution with proper resource management."""

    def __init__(self, config: AppConfig, *, echo: Callable[[str], None] = click.echo) -> None:
        """Initialize command runner.

        Args:
            config: Application configuration.
            echo: Output sink for command results.
        """
        self.config = config
        self.echo = echo

    def run_fetch(self, action: str, options: QueryOptions) -> None:
        """Run the ``entries`` or ``assets`` command.

        Args:
            action: CLI command name, also the `FetchCommand` method to call.
            options: Raw query options.

        Raises:
            click.Abort: When the query is invalid or the request fails.
        """
        configure_logging(
            level=self.config.runtime.level,
            action=action,
            log_to_file=self.config.runtime.to_file,
            log_dir=self.config.runtime.dir,
        )
        try:
            query = build_query(options, default_locale=self.config.delivery.default_locale)
            service = create_delivery_service(self.config)
            try:
                command = FetchCommand(service=service, query=query, echo=self.echo)
                getattr(command, action)()
            finally:
                service.close()
        except Exception as e:  # noqa: BLE001 - cli boundary
            log.error("%s failed: %s", action, e)
            raise click.Abort from e
