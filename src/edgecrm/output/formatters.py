"""Output mode selection for ServiceResult.

The CLI renders a ServiceResult for humans (Rich tables and panels) or
machines (``--json``). This module picks the mode; the per-operation
rendering lives in :mod:`edgecrm.output.renderers`.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import BaseModel

from edgecrm.output.renderers import render_quiet, render_result

if TYPE_CHECKING:
    from edgecrm.services.result import ServiceResult


class OutputSettings(BaseModel):
    """Output flags taken from the resolved settings."""

    model_config = {"frozen": True}

    json_output: bool = False
    quiet: bool = False
    verbose: bool = False


def format_result(result: ServiceResult, *, settings: OutputSettings | None = None) -> str:
    """Format a ServiceResult for display."""
    settings = settings or OutputSettings()
    if settings.json_output:
        return result.model_dump_json(indent=2)
    if settings.quiet:
        return render_quiet(result)
    return render_result(result, verbose=settings.verbose)
