"""Custom Click base classes and parameter types.

CrmCommand and CrmGroup accept an ``examples`` parameter. When
``--examples`` is passed, the command prints usage examples and exits,
keeping ``--help`` concise.
"""

from __future__ import annotations

import json
from typing import Any

import click


def _add_examples_option(cmd: click.Command | click.Group, examples: str) -> None:
    """Attach an eager ``--examples`` flag to a Click command or group."""

    def show_examples(ctx: click.Context, _param: click.Parameter, value: bool) -> None:
        if not value:
            return
        click.echo(f"Examples for '{ctx.command_path}':\n")
        click.echo(examples)
        ctx.exit(0)

    cmd.params.append(
        click.Option(
            ["--examples"],
            is_flag=True,
            expose_value=False,
            is_eager=True,
            callback=show_examples,
            help="Show usage examples.",
        )
    )


class CrmCommand(click.Command):
    """Click Command subclass that supports an ``--examples`` flag."""

    def __init__(self, *args: Any, examples: str | None = None, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.examples = examples
        if examples:
            _add_examples_option(self, examples)


class CrmGroup(click.Group):
    """Click Group whose subcommands are CrmCommands."""

    command_class = CrmCommand

    def __init__(self, *args: Any, examples: str | None = None, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.examples = examples
        if examples:
            _add_examples_option(self, examples)


class JsonParamType(click.ParamType):
    """A JSON document given on the command line, optionally restricted to one shape."""

    name = "json"

    def __init__(self, *shapes: type) -> None:
        self.shapes = shapes or (dict, list)

    def convert(self, value: Any, param: click.Parameter | None, ctx: click.Context | None) -> Any:
        if not isinstance(value, str):
            return value
        try:
            parsed = json.loads(value)
        except json.JSONDecodeError as exc:
            self.fail(f"invalid JSON: {exc.msg}", param, ctx)
        if not isinstance(parsed, self.shapes):
            expected = " or ".join("object" if s is dict else "array" for s in self.shapes)
            self.fail(f"expected a JSON {expected}", param, ctx)
        return parsed


JSON_OBJECT = JsonParamType(dict)
JSON_DOCUMENT = JsonParamType(dict, list)

tenant_option = click.option(
    "--tenant",
    "tenant_id",
    required=True,
    envvar="EDGECRM_TENANT",
    help="Tenant (workspace) id every statement is scoped to.",
)
