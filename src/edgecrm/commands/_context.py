"""AppContext — shared Click context for all commands.

Created once by the root CLI group and passed to subcommands via
``@click.pass_obj``. Provides lazy DataStore initialization and
centralized result emission (stdout/stderr routing + exit codes).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from edgecrm.config.logging import configure_logging
from edgecrm.output.formatters import OutputSettings, format_result

if TYPE_CHECKING:
    from edgecrm.config.settings import EdgeSettings
    from edgecrm.infrastructure.store import DataStore
    from edgecrm.services.result import ServiceResult


class AppContext:
    """Shared context flowing through Click's command hierarchy.

    The store is opened on first use so ``--help`` and ``--version`` never
    touch the database.
    """

    def __init__(self, settings: EdgeSettings) -> None:
        self.settings = settings
        self._store: DataStore | None = None
        configure_logging(
            verbose=settings.verbose,
            log_json=settings.log_json,
            log_statements=settings.storage.log_statements,
        )

    @property
    def store(self) -> DataStore:
        """The data store (created lazily on first access)."""
        if self._store is None:
            from edgecrm.infrastructure.store import DataStore

            self._store = DataStore(self.settings)
        return self._store

    def close(self) -> None:
        if self._store is not None:
            self._store.close()
            self._store = None

    def emit(self, result: ServiceResult) -> None:
        """Format and output a ServiceResult with correct exit semantics.

        * Success: writes to stdout. Warnings go to stderr so they don't
          pollute piped output.
        * Failure: writes to stderr, exits with code 1.
        """
        settings = OutputSettings(
            json_output=self.settings.json_output,
            quiet=self.settings.quiet,
            verbose=self.settings.verbose,
        )
        output = format_result(result, settings=settings)
        if result.ok:
            click.echo(output)
            # In JSON mode, warnings are already in the serialized payload.
            if not settings.json_output:
                for warning in result.warnings:
                    click.echo(f"WARNING: {warning}", err=True)
        else:
            click.echo(output, err=True)
            raise SystemExit(1)
