"""Operation-specific Rich renderers for ServiceResult.

Each renderer writes to a Rich Console (backed by StringIO); the caller
extracts the text via ``get_output(console)``. Renderers are dispatched by
``result.op`` in :func:`render_result`. Unknown ops fall through to a
generic key-value renderer.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from edgecrm.output.console import create_console, get_output

if TYPE_CHECKING:
    from rich.console import Console

    from edgecrm.services.result import ServiceResult


# ── Public API ────────────────────────────────────────────────────────


def render_result(result: ServiceResult, *, verbose: bool = False) -> str:
    """Render a ServiceResult to a styled string via Rich."""
    console = create_console()

    if result.ok:
        renderer = _OP_RENDERERS.get(result.op, _render_generic)
        renderer(result, console, verbose=verbose)
    else:
        _render_error(result, console, verbose=verbose)

    return get_output(console).rstrip("\n")


def render_quiet(result: ServiceResult) -> str:
    """Minimal output: record ids, one per line."""
    if not result.ok:
        msg = result.error.message if result.error else "Unknown error"
        return f"ERROR: {result.op} — {msg}"

    data = result.data
    if "edges" in data:
        return "\n".join(str(edge["node"].get("id", "")) for edge in data["edges"])
    if "items" in data:
        return "\n".join(str(item.get("record_id", "")) for item in data["items"])
    if "record_ids" in data:
        return "\n".join(str(rid) for rid in data["record_ids"])
    if "record" in data:
        return str(data["record"].get("id", ""))
    return f"OK: {result.op}"


# ── Helpers ───────────────────────────────────────────────────────────


def record_label(record: dict[str, Any]) -> str:
    """Best human label for a record: name, title, or a person's full name."""
    name = record.get("name")
    if isinstance(name, dict):
        parts = [name.get("firstName"), name.get("lastName")]
        return " ".join(str(p) for p in parts if p)
    if name:
        return str(name)
    for key in ("title", "fullPath", "targetObjectName"):
        if record.get(key):
            return str(record[key])
    return ""


def _status_line(console: Console, result: ServiceResult) -> None:
    console.print(Text("OK", style="crm.ok"), Text(f"  {result.op}", style="crm.op"), end="")
    console.print()


def _field(console: Console, key: str, value: Any) -> None:
    k = Text(f"  {key}: ", style="crm.key")
    if key == "id" or key.endswith("_id") or key.endswith("Id"):
        v = Text(str(value), style="crm.id")
    elif key == "entity":
        v = Text(str(value), style="crm.entity")
    elif isinstance(value, (dict, list)):
        v = Text(json.dumps(value, separators=(",", ":"), ensure_ascii=False))
    else:
        v = Text(str(value))
    console.print(k, v, end="")
    console.print()


def _render_meta(console: Console, result: ServiceResult) -> None:
    if not result.meta:
        return
    console.print()
    console.print(Text("  meta:", style="dim"))
    for k, v in result.meta.items():
        console.print(f"    {k}: {v}")


def _record_table(records: list[dict[str, Any]], *, verbose: bool = False) -> Table:
    table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
    table.add_column("ID", style="crm.id", no_wrap=True)
    table.add_column("Label", style="crm.label")
    table.add_column("Created", style="dim")
    if verbose:
        table.add_column("Updated", style="dim")
        table.add_column("Deleted", style="dim")

    for record in records:
        style = "crm.deleted" if record.get("deletedAt") else None
        row = [
            str(record.get("id", "")),
            record_label(record),
            str(record.get("createdAt", "")),
        ]
        if verbose:
            row += [str(record.get("updatedAt", "")), str(record.get("deletedAt") or "")]
        table.add_row(*row, style=style)
    return table


# ── Error renderer ────────────────────────────────────────────────────


def _render_error(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    err = result.error
    msg = err.message if err else "Unknown error"
    code = f" [{err.code}]" if err else ""
    console.print(
        Text("ERROR", style="crm.error"),
        Text(f"  {result.op}{code}", style="crm.op"),
        Text(" — "),
        msg,
    )
    if err and err.retryable:
        console.print(Text("  retryable", style="crm.warning"))
    if verbose and err and err.detail:
        console.print(Text("  detail:", style="dim"))
        for k, v in err.detail.items():
            console.print(f"    {k}: {v}")


# ── Read renderers ────────────────────────────────────────────────────


def _render_page(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render find_many as a record table followed by page info."""
    d = result.data
    records = [edge["node"] for edge in d.get("edges", [])]
    console.print(_record_table(records, verbose=verbose))

    info = d.get("page_info", {})
    summary = f"\n{len(records)} {d.get('entity', 'record')} rows"
    if d.get("total_count") is not None:
        summary += f" of {d['total_count']}"
    console.print(summary)
    if info.get("has_next_page"):
        _field(console, "next", info.get("end_cursor"))
    if info.get("has_previous_page"):
        _field(console, "previous", info.get("start_cursor"))
    if verbose:
        _render_meta(console, result)


def _render_record(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render find_one as a panel of non-empty fields."""
    d = result.data
    record = d.get("record", {})
    lines = []
    for key, value in record.items():
        if value in (None, "", [], {}) and not verbose:
            continue
        if isinstance(value, (dict, list)):
            value = json.dumps(value, separators=(",", ":"), ensure_ascii=False)
        lines.append(f"{key}: {value}")
    label = record_label(record) or "Untitled"
    title = f"{d.get('entity', '?')} {record.get('id', '?')} — {label}"
    border = "dim" if record.get("deletedAt") else "cyan"
    console.print(Panel("\n".join(lines), title=title, border_style=border, expand=False))


def _render_search(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    items = result.data.get("items", [])
    table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
    table.add_column("Entity", style="crm.entity")
    table.add_column("ID", style="crm.id", no_wrap=True)
    table.add_column("Label", style="crm.label")
    table.add_column("Snippet")
    if verbose:
        table.add_column("Score", style="crm.score", justify="right")
    for item in items:
        row = [
            str(item.get("entity", "")),
            str(item.get("record_id", "")),
            str(item.get("label", "")),
            str(item.get("snippet", "")),
        ]
        if verbose:
            row.append(f"{float(item.get('score', 0.0)):.2f}")
        table.add_row(*row)
    console.print(table)
    console.print(f"\n{len(items)} results for {result.data.get('query', '')!r}")


# ── Mutation renderers ────────────────────────────────────────────────


def _render_mutation(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render create/update/delete/restore/destroy results."""
    _status_line(console, result)
    d = result.data
    for key in ("entity", "operation"):
        if key in d:
            _field(console, key, d[key])
    ids = d.get("record_ids", [])
    if len(ids) == 1:
        _field(console, "id", ids[0])
    else:
        _field(console, "count", len(ids))
    record = d.get("record")
    if record:
        label = record_label(record)
        if label:
            _field(console, "label", label)
    if verbose and len(d.get("records", [])) > 1:
        console.print()
        console.print(_record_table(d["records"]))
    if verbose:
        _render_meta(console, result)


def _render_init(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    _status_line(console, result)
    d = result.data
    _field(console, "database_path", d.get("database_path", ""))
    tables = d.get("tables", [])
    _field(console, "tables", len(tables))
    if verbose:
        for name in tables:
            console.print(f"    {name}")


# ── Generic fallback ──────────────────────────────────────────────────


def _render_generic(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Fallback renderer: status line + all data as key-value pairs."""
    _status_line(console, result)
    for key, value in result.data.items():
        _field(console, key, value)
    if verbose:
        _render_meta(console, result)


# ── Dispatch table ────────────────────────────────────────────────────

_OP_RENDERERS: dict[str, Any] = {
    "find_many": _render_page,
    "find_one": _render_record,
    "search": _render_search,
    "create_one": _render_mutation,
    "create_many": _render_mutation,
    "update_one": _render_mutation,
    "update_many": _render_mutation,
    "delete_one": _render_mutation,
    "restore_one": _render_mutation,
    "destroy_one": _render_mutation,
    "init_database": _render_init,
}
