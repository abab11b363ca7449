"""Command: database initialization (named init_cmd to avoid shadowing builtins)."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from edgecrm.commands._base import CrmCommand
from edgecrm.config.discovery import CONFIG_FILENAME, write_config
from edgecrm.services.schema import SchemaService

if TYPE_CHECKING:
    from edgecrm.commands._context import AppContext

_INIT_EXAMPLES = """\
  edgecrm init
  edgecrm init --database data/crm.db
  edgecrm -c /etc/edgecrm.toml init"""


@click.command("init", cls=CrmCommand, examples=_INIT_EXAMPLES)
@click.option(
    "--database",
    default=None,
    help=f"Database path to record in a new {CONFIG_FILENAME}.",
)
@click.pass_context
def init_cmd(ctx: click.Context, database: str | None) -> None:
    """Create the entity tables (and an edgecrm.toml when none exists)."""
    app: AppContext = ctx.obj
    settings = app.settings
    if settings.config_path is None:
        config = write_config(
            settings.project_root,
            database_path=database or settings.storage.database_path,
        )
        from edgecrm.config.settings import EdgeSettings

        app.close()
        app.settings = EdgeSettings.from_cli(
            config_path=str(config),
            json_output=settings.json_output or None,
            quiet=settings.quiet or None,
            verbose=settings.verbose or None,
            log_json=settings.log_json or None,
        )
    elif database is not None:
        raise click.UsageError(
            f"{settings.config_path} already exists; set [storage] database_path there."
        )
    app.emit(SchemaService(app.store).init_database())
