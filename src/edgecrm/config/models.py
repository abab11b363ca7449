"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults baked here, edgecrm.toml only contains
overrides. An empty file is a valid configuration.
"""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, Field


class Environment(StrEnum):
    DEVELOPMENT = "development"
    PRODUCTION = "production"


# --- edgecrm.toml sections ---


class StorageConfig(BaseModel):
    """[storage] section."""

    model_config = {"frozen": True}

    # Relative paths resolve against the directory holding edgecrm.toml.
    database_path: str = ".edgecrm/edgecrm.db"
    max_rows: int = Field(default=1000, ge=2)
    statement_timeout_ms: int = Field(default=30_000, ge=0)
    log_statements: bool = False


class PaginationConfig(BaseModel):
    """[pagination] section."""

    model_config = {"frozen": True}

    default_page_size: int = Field(default=50, ge=1)
    max_page_size: int = Field(default=500, ge=1)


class SearchConfig(BaseModel):
    """[search] section."""

    model_config = {"frozen": True}

    default_limit: int = Field(default=20, ge=1)
    max_limit: int = Field(default=100, ge=1)
