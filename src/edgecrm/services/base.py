"""BaseService — shared foundation for edgecrm services.

Every service receives a :class:`DataStore` at construction time and runs
each operation through :meth:`BaseService._run`, which binds the tenant to
the log context and converts typed errors into a failed
:class:`ServiceResult`.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from edgecrm.config.logging import request_context
from edgecrm.domain.errors import EdgeCrmError
from edgecrm.infrastructure.database.errors import StatementSyntaxError, StorageError
from edgecrm.services.result import ServiceError, ServiceResult

if TYPE_CHECKING:
    from edgecrm.domain.types import MutationResult
    from edgecrm.infrastructure.store import DataStore

logger = logging.getLogger(__name__)


class BaseService:
    """Base for service-layer classes.

    Usage::

        class RecordService(BaseService):
            def count(self, tenant_id: str, entity: str) -> ServiceResult:
                def _do() -> ServiceResult:
                    total = self._store.records.count(tenant_id, entity)
                    return ServiceResult(ok=True, op="count", data={"count": total})

                return self._run("count", _do, tenant_id=tenant_id)
    """

    def __init__(self, store: DataStore) -> None:
        self._store = store

    def _run(
        self,
        op: str,
        fn: Callable[[], ServiceResult],
        *,
        tenant_id: str | None = None,
        entity: str | None = None,
    ) -> ServiceResult:
        with request_context(op=op, tenant_id=tenant_id, entity=entity):
            try:
                return fn()
            except StatementSyntaxError as exc:
                if not self._store.settings.is_production:
                    raise
                logger.error("Statement rejected in %s: %s", op, exc)
                return self._failure(op, exc)
            except StorageError as exc:
                logger.warning("Storage failure in %s: %s", op, exc)
                return self._failure(op, exc)
            except EdgeCrmError as exc:
                logger.debug("Rejected %s: %s", op, exc)
                return self._failure(op, exc)

    @staticmethod
    def _failure(op: str, exc: EdgeCrmError, **detail: Any) -> ServiceResult:
        return ServiceResult.failure(op, ServiceError.from_exception(exc, **detail))

    @staticmethod
    def _not_found(op: str, entity: str, record_id: str) -> ServiceResult:
        error = ServiceError(
            code="NOT_FOUND",
            message=f"No {entity} with id {record_id}",
            detail={"entity": entity, "id": record_id},
        )
        return ServiceResult.failure(op, error)

    def _notify(self, mutation: MutationResult, warnings: list[str]) -> None:
        """Hand *mutation* to every store listener.

        INVARIANT: Listener failures are warnings, never errors. The write
        has already been applied.
        """
        for listener in self._store.listeners:
            try:
                listener(mutation)
            except Exception:
                logger.debug("Mutation listener failed for %s", mutation.entity, exc_info=True)
                warnings.append(f"Mutation listener failed for {mutation.entity}")
