"""Command: keyword search across entities."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from edgecrm.commands._base import CrmCommand, tenant_option
from edgecrm.services.records import RecordService

if TYPE_CHECKING:
    from edgecrm.commands._context import AppContext

_SEARCH_EXAMPLES = """\
  edgecrm search acme --tenant ws_1
  edgecrm search "jane" --tenant ws_1 --entity person --limit 5
  edgecrm --json search "50%" --tenant ws_1"""


@click.command("search", cls=CrmCommand, examples=_SEARCH_EXAMPLES)
@click.argument("query_text")
@tenant_option
@click.option(
    "--entity",
    "entities",
    multiple=True,
    help="Restrict to this entity. Repeatable; default is every searchable entity.",
)
@click.option("--limit", type=int, default=None, help="Max results.")
@click.pass_obj
def search(
    app: AppContext,
    query_text: str,
    tenant_id: str,
    entities: tuple[str, ...],
    limit: int | None,
) -> None:
    """Case-insensitive keyword search over searchable fields."""
    result = RecordService(app.store).search(
        tenant_id, query_text, entities=list(entities) or None, limit=limit
    )
    app.emit(result)
