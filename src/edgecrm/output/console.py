"""Rich Console factory and theme for edgecrm output.

Consoles render to a StringIO buffer so renderers keep a plain
``-> str`` contract. In non-TTY environments (tests, pipes) Rich drops
color codes on its own.
"""

from __future__ import annotations

from io import StringIO

from rich.console import Console
from rich.theme import Theme

EDGECRM_THEME = Theme(
    {
        "crm.ok": "bold green",
        "crm.error": "bold red",
        "crm.warning": "bold yellow",
        "crm.op": "bold cyan",
        "crm.key": "dim",
        "crm.id": "bold blue",
        "crm.label": "bold",
        "crm.entity": "magenta",
        "crm.deleted": "dim strike",
        "crm.score": "magenta",
    }
)


def create_console(*, no_color: bool = False, width: int | None = None) -> Console:
    """Create a Console that renders to a StringIO buffer.

    Args:
        no_color: Disable ANSI escape codes.
        width: Override terminal width (for stable test output).
    """
    return Console(
        file=StringIO(),
        theme=EDGECRM_THEME,
        no_color=no_color,
        highlight=False,
        width=width or 120,
    )


def get_output(console: Console) -> str:
    """Extract rendered text from a StringIO-backed Console."""
    assert isinstance(console.file, StringIO)
    return console.file.getvalue()
