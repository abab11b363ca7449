"""Command group: tenant-scoped record reads and writes."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import click

from edgecrm.commands._base import JSON_DOCUMENT, JSON_OBJECT, CrmGroup, tenant_option
from edgecrm.services.records import RecordService

if TYPE_CHECKING:
    from edgecrm.commands._context import AppContext

_RECORDS_EXAMPLES = """\
  edgecrm records find-many company --tenant ws_1
  edgecrm records find-many company --tenant ws_1 --filter '{"name": {"like": "acme"}}'
  edgecrm records find-many task --tenant ws_1 --order dueAt:asc:last --first 10
  edgecrm records find-one person --tenant ws_1 --id 5b1f...
  edgecrm records create company --tenant ws_1 --data '{"name": "Acme"}'
  edgecrm records update company 5b1f... --tenant ws_1 --data '{"employees": 12}'
  edgecrm records delete company 5b1f... --tenant ws_1"""


@click.group(cls=CrmGroup, examples=_RECORDS_EXAMPLES)
@click.pass_obj
def records(app: AppContext) -> None:
    """Read and write entity records of one tenant."""


@records.command(
    "find-many",
    examples="""\
  edgecrm records find-many company --tenant ws_1 --first 20
  edgecrm records find-many company --tenant ws_1 --after <end_cursor>
  edgecrm records find-many company --tenant ws_1 --last 20 --before <start_cursor>
  edgecrm records find-many opportunity --tenant ws_1 --filter '{"stage": {"in": ["NEW"]}}'
  edgecrm --json records find-many person --tenant ws_1 --order name.lastName --total""",
)
@click.argument("entity")
@tenant_option
@click.option("--filter", "filter_", type=JSON_OBJECT, default=None, help="Filter as JSON.")
@click.option(
    "--order",
    "order_by",
    multiple=True,
    help="Order term field[:asc|desc[:first|last]]. Repeatable.",
)
@click.option("--first", type=int, default=None, help="Page size walking forward.")
@click.option("--last", type=int, default=None, help="Page size walking backward.")
@click.option("--after", default=None, help="Cursor to continue after.")
@click.option("--before", default=None, help="Cursor to continue before.")
@click.option("--total", is_flag=True, help="Also count every matching row.")
@click.option("--with-deleted", is_flag=True, help="Include soft-deleted rows.")
@click.pass_obj
def find_many(
    app: AppContext,
    entity: str,
    tenant_id: str,
    filter_: dict[str, Any] | None,
    order_by: tuple[str, ...],
    first: int | None,
    last: int | None,
    after: str | None,
    before: str | None,
    total: bool,
    with_deleted: bool,
) -> None:
    """List one page of ENTITY rows."""
    result = RecordService(app.store).find_many(
        tenant_id,
        entity,
        filter=filter_,
        order_by=list(order_by),
        first=first,
        last=last,
        after=after,
        before=before,
        with_total_count=total,
        include_deleted=with_deleted,
    )
    app.emit(result)


@records.command("find-one")
@click.argument("entity")
@tenant_option
@click.option("--id", "record_id", default=None, help="Record id.")
@click.option("--filter", "filter_", type=JSON_OBJECT, default=None, help="Filter as JSON.")
@click.option("--with-deleted", is_flag=True, help="Also match soft-deleted rows.")
@click.pass_obj
def find_one(
    app: AppContext,
    entity: str,
    tenant_id: str,
    record_id: str | None,
    filter_: dict[str, Any] | None,
    with_deleted: bool,
) -> None:
    """Show one ENTITY row by id or filter."""
    if record_id is None and not filter_:
        raise click.UsageError("Pass --id or --filter.")
    result = RecordService(app.store).find_one(
        tenant_id, entity, record_id=record_id, filter=filter_, include_deleted=with_deleted
    )
    app.emit(result)


@records.command()
@click.argument("entity")
@tenant_option
@click.option("--filter", "filter_", type=JSON_OBJECT, default=None, help="Filter as JSON.")
@click.pass_obj
def count(app: AppContext, entity: str, tenant_id: str, filter_: dict[str, Any] | None) -> None:
    """Count active ENTITY rows."""
    app.emit(RecordService(app.store).count(tenant_id, entity, filter=filter_))


@records.command(
    examples="""\
  edgecrm records create company --tenant ws_1 --data '{"name": "Acme"}'
  edgecrm records create task --tenant ws_1 --data '[{"title": "a"}, {"title": "b"}]'""",
)
@click.argument("entity")
@tenant_option
@click.option(
    "--data",
    type=JSON_DOCUMENT,
    required=True,
    help="JSON object for one row, or an array of objects created atomically.",
)
@click.pass_obj
def create(app: AppContext, entity: str, tenant_id: str, data: Any) -> None:
    """Create one or many ENTITY rows."""
    svc = RecordService(app.store)
    if isinstance(data, list):
        if not all(isinstance(row, dict) for row in data):
            raise click.BadParameter("every array element must be an object", param_hint="--data")
        app.emit(svc.create_many(tenant_id, entity, data))
    else:
        app.emit(svc.create_one(tenant_id, entity, data))


@records.command()
@click.argument("entity")
@click.argument("record_id")
@tenant_option
@click.option("--data", type=JSON_OBJECT, required=True, help="Columns to change, as JSON.")
@click.pass_obj
def update(
    app: AppContext, entity: str, record_id: str, tenant_id: str, data: dict[str, Any]
) -> None:
    """Change columns of one ENTITY row."""
    app.emit(RecordService(app.store).update_one(tenant_id, entity, record_id, data))


@records.command()
@click.argument("entity")
@click.argument("record_id")
@tenant_option
@click.pass_obj
def delete(app: AppContext, entity: str, record_id: str, tenant_id: str) -> None:
    """Soft-delete one ENTITY row."""
    app.emit(RecordService(app.store).delete_one(tenant_id, entity, record_id))


@records.command()
@click.argument("entity")
@click.argument("record_id")
@tenant_option
@click.pass_obj
def restore(app: AppContext, entity: str, record_id: str, tenant_id: str) -> None:
    """Undo a soft delete."""
    app.emit(RecordService(app.store).restore_one(tenant_id, entity, record_id))


@records.command()
@click.argument("entity")
@click.argument("record_id")
@tenant_option
@click.option("--yes", is_flag=True, help="Skip the confirmation prompt.")
@click.pass_obj
def destroy(app: AppContext, entity: str, record_id: str, tenant_id: str, yes: bool) -> None:
    """Permanently remove one ENTITY row, soft-deleted or not."""
    if not yes:
        click.confirm(f"Permanently remove {entity} {record_id}?", abort=True)
    app.emit(RecordService(app.store).destroy_one(tenant_id, entity, record_id))
