"""CLI package for ContentKit.

Click definitions live in `ui`, option-to-query translation in `commands`,
and lifecycle/error handling in `runner`.
"""

from __future__ import annotations

__all__ = ["CommandRunner", "cli", "main"]

from ContentKit.cli.runner import CommandRunner
from ContentKit.cli.ui import cli


def main() -> None:
    """Run ContentKit CLI.

    Entry point referenced by console script in pyproject.toml.
    """
    cli()
