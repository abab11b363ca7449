"""Repositories: tenant-scoped reads, writes and search over the entity tables."""

from edgecrm.infrastructure.repositories.records import RecordRepository
from edgecrm.infrastructure.repositories.search import KeywordSearch

__all__ = ["KeywordSearch", "RecordRepository"]
