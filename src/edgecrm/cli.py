"""Root CLI group for edgecrm with global flags and command registration."""

from __future__ import annotations

import click

from edgecrm import __version__
from edgecrm.commands import register_commands
from edgecrm.commands._context import AppContext
from edgecrm.config.settings import EdgeSettings


@click.group(invoke_without_command=True)
@click.version_option(version=__version__, prog_name="edgecrm")
@click.option("--json", "json_output", is_flag=True, help="Structured JSON output.")
@click.option("-q", "--quiet", is_flag=True, help="Minimal output (ids only).")
@click.option("-v", "--verbose", is_flag=True, help="Detailed output with debug logging.")
@click.option("--log-json", is_flag=True, help="Structured JSON log output to stderr.")
@click.option("-c", "--config", "config_path", default=None, help="Override config file path.")
@click.pass_context
def cli(
    ctx: click.Context,
    json_output: bool,
    quiet: bool,
    verbose: bool,
    log_json: bool,
    config_path: str | None,
) -> None:
    """edgecrm — multi-tenant CRM data layer on an edge SQL engine."""
    # Unset flags are left out so env vars and edgecrm.toml still apply.
    flags = {
        "json_output": json_output,
        "quiet": quiet,
        "verbose": verbose,
        "log_json": log_json,
    }
    settings = EdgeSettings.from_cli(
        config_path=config_path, **{k: True for k, v in flags.items() if v}
    )
    app = AppContext(settings)
    ctx.obj = app
    ctx.call_on_close(app.close)
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


register_commands(cli)
