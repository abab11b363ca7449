"""Tests for tenant scoping of generated statements."""

from __future__ import annotations

import logging

import pytest

from edgecrm.domain.entities import STANDARD_REGISTRY
from edgecrm.domain.errors import TenantRequiredError
from edgecrm.domain.types import OrderSpec
from edgecrm.infrastructure.tenancy import ScopedQuery, TenantScope, insert_statement

COMPANY = STANDARD_REGISTRY.get("company")


class TestTenantScope:
    @pytest.mark.parametrize("tenant_id", ["", "   ", None])
    def test_blank_tenant_rejected(self, tenant_id: str | None) -> None:
        with pytest.raises(TenantRequiredError):
            TenantScope(tenant_id)  # type: ignore[arg-type]

    def test_scope_filter_adds_tenant(self) -> None:
        scope = TenantScope("ws_1")
        assert scope.scope_filter({"name": "Acme"}) == {"tenantId": "ws_1", "name": "Acme"}
        assert scope.scope_filter(None) == {"tenantId": "ws_1"}

    def test_scope_write_overrides_caller_tenant(self) -> None:
        scoped = TenantScope("ws_1").scope_write({"tenantId": "ws_2", "name": "x"})
        assert scoped == {"tenantId": "ws_1", "name": "x"}

    def test_scope_write_warns_on_override(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.WARNING, logger="edgecrm.infrastructure.tenancy"):
            TenantScope("ws_1").scope_write({"tenantId": "ws_2"})
        assert "Overriding tenantId" in caplog.text

    def test_scope_write_same_tenant_is_quiet(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.WARNING, logger="edgecrm.infrastructure.tenancy"):
            assert TenantScope("ws_1").scope_write({"tenantId": "ws_1"}) == {"tenantId": "ws_1"}
        assert caplog.text == ""


class TestScopedQuery:
    def test_tenant_predicate_first(self) -> None:
        q = ScopedQuery(TenantScope("ws_1"), COMPANY).filter({"name": "Acme"})
        assert q.conditions[0] == '"tenantId" = :p0'
        assert q.conditions[1] == '"deletedAt" IS NULL'
        assert q.conditions[2] == '("name" = :p1)'
        assert q.binder.params == {"p0": "ws_1", "p1": "Acme"}

    def test_include_deleted_drops_deleted_predicate(self) -> None:
        q = ScopedQuery(TenantScope("ws_1"), COMPANY, include_deleted=True)
        assert q.conditions == ('"tenantId" = :p0',)

    def test_caller_clause_cannot_widen(self) -> None:
        stmt = ScopedQuery(TenantScope("ws_1"), COMPANY).where("1 OR 1").select()
        assert stmt.sql == (
            'SELECT * FROM "company" WHERE "tenantId" = :p0 AND "deletedAt" IS NULL AND (1 OR 1)'
        )

    def test_select_with_order_and_limit(self) -> None:
        stmt = ScopedQuery(TenantScope("ws_1"), COMPANY).select(
            order_by=[OrderSpec(field="name")], limit=11
        )
        assert stmt.sql.endswith('ORDER BY "name" ASC NULLS FIRST LIMIT :p1')
        assert stmt.params == {"p0": "ws_1", "p1": 11}

    def test_extra_columns(self) -> None:
        stmt = (
            ScopedQuery(TenantScope("ws_1"), COMPANY)
            .add_column("LOWER(\"name\")", "__k")
            .select(columns='"id"')
        )
        assert stmt.sql.startswith('SELECT "id", LOWER("name") AS "__k" FROM "company"')

    def test_where_ids(self) -> None:
        q = ScopedQuery(TenantScope("ws_1"), COMPANY).where_ids(["a", "b"])
        assert q.conditions[-1] == '("id" IN (:p1, :p2))'
        empty = ScopedQuery(TenantScope("ws_1"), COMPANY).where_ids([])
        assert empty.conditions[-1] == "(0)"

    def test_where_active_on_include_deleted(self) -> None:
        q = ScopedQuery(TenantScope("ws_1"), COMPANY, include_deleted=True).where_active()
        assert q.conditions[-1] == '"deletedAt" IS NULL'

    def test_count(self) -> None:
        stmt = ScopedQuery(TenantScope("ws_1"), COMPANY).count()
        assert stmt.sql.startswith('SELECT COUNT(*) AS total FROM "company" WHERE "tenantId"')

    def test_update_scoped(self) -> None:
        stmt = ScopedQuery(TenantScope("ws_1"), COMPANY).where_id("r1").update({"name": "B"})
        assert stmt.sql == (
            'UPDATE "company" SET "name" = :p2 WHERE "tenantId" = :p0 '
            'AND "deletedAt" IS NULL AND ("id" = :p1)'
        )
        assert stmt.params == {"p0": "ws_1", "p1": "r1", "p2": "B"}

    def test_update_cannot_move_tenant(self) -> None:
        with pytest.raises(ValueError, match="tenantId"):
            ScopedQuery(TenantScope("ws_1"), COMPANY).update({"tenantId": "ws_2"})

    def test_update_needs_values(self) -> None:
        with pytest.raises(ValueError):
            ScopedQuery(TenantScope("ws_1"), COMPANY).update({})

    def test_delete_scoped(self) -> None:
        stmt = ScopedQuery(TenantScope("ws_1"), COMPANY, include_deleted=True).delete()
        assert stmt.sql == 'DELETE FROM "company" WHERE "tenantId" = :p0'


class TestInsertStatement:
    def test_tenant_from_scope(self) -> None:
        stmt = insert_statement(TenantScope("ws_1"), COMPANY, {"id": "r1", "tenantId": "ws_9"})
        assert stmt.sql == 'INSERT INTO "company" ("id", "tenantId") VALUES (:p0, :p1)'
        assert stmt.params == {"p0": "r1", "p1": "ws_1"}
