"""Tests for the registry — bootstrap and catalog operations."""

from __future__ import annotations

import logging

from sor.db.models import CatalogStatus
from sor.db.registry import REGISTRY_DB, Registry, is_reserved
from sor.db.system_migrations import SYSTEM_MIGRATIONS


class TestBootstrap:
    def test_applies_system_migrations(self, registry, directory):
        registry.ensure()
        applied = [m.name for m in directory.get(REGISTRY_DB).list_migrations()]
        assert applied == [name for name, _ in SYSTEM_MIGRATIONS]

    def test_idempotent(self, registry, directory, caplog):
        registry.ensure()
        schema_once = directory.get(REGISTRY_DB).describe_schema()
        with caplog.at_level(logging.ERROR):
            for _ in range(5):
                registry.ensure()

        assert directory.get(REGISTRY_DB).describe_schema() == schema_once
        assert len(directory.get(REGISTRY_DB).list_migrations()) == len(SYSTEM_MIGRATIONS)
        assert not [r for r in caplog.records if r.levelno >= logging.ERROR]

    def test_appended_migration_applied_on_next_bootstrap(self, directory):
        Registry(directory).ensure()
        extended = SYSTEM_MIGRATIONS + [("002_add_owner", "ALTER TABLE dbs ADD COLUMN owner TEXT")]
        Registry(directory, migrations=extended).ensure()

        [dbs] = directory.get(REGISTRY_DB).describe_schema()
        assert "owner" in [c.name for c in dbs.columns]

    def test_failed_system_migration_is_logged_not_raised(self, directory, caplog):
        broken = SYSTEM_MIGRATIONS + [("002_broken", "CREATE TABLE (")]
        with caplog.at_level(logging.ERROR):
            Registry(directory, migrations=broken).ensure()

        assert "System migration failed: 002_broken" in caplog.text
        names = [m.name for m in directory.get(REGISTRY_DB).list_migrations()]
        assert "002_broken" not in names


class TestCatalog:
    def test_create_and_list(self, registry):
        assert registry.create("orders", "Order book").ok
        assert registry.create("users").ok

        entries = registry.list()
        assert [e.name for e in entries] == ["orders", "users"]
        assert entries[0].description == "Order book"
        assert entries[1].description is None
        assert entries[0].created_at

    def test_duplicate(self, registry):
        registry.create("orders")
        assert registry.create("orders").status == CatalogStatus.EXISTS

    def test_names_are_case_sensitive(self, registry):
        registry.create("orders")
        assert registry.create("Orders").ok

    def test_invalid_names(self, registry):
        assert registry.create("").status == CatalogStatus.INVALID_NAME
        assert registry.create(42).status == CatalogStatus.INVALID_NAME
        assert registry.create(None).status == CatalogStatus.INVALID_NAME

    def test_whitespace_name_is_accepted(self, registry):
        assert registry.create("   ").ok

    def test_reserved_prefix(self, registry):
        assert registry.create("_sor_x").status == CatalogStatus.RESERVED
        assert registry.remove("_sor_x").status == CatalogStatus.RESERVED
        assert registry.list() == []

    def test_remove(self, registry):
        registry.create("orders")
        assert registry.remove("orders").ok
        assert registry.list() == []

    def test_remove_missing(self, registry):
        assert registry.remove("nope").status == CatalogStatus.NOT_FOUND

    def test_exists(self, registry):
        registry.create("orders")
        assert registry.exists("orders")
        assert not registry.exists("missing")
        assert not registry.exists("_sor_registry")

    def test_describe(self, registry):
        registry.create("orders", "Order book")
        assert registry.describe("orders") == "Order book"
        assert registry.describe("missing") is None

    def test_empty_description_stored_as_null(self, registry):
        registry.create("orders", "")
        assert registry.list()[0].description is None

    def test_remove_keeps_storage(self, registry, directory):
        registry.create("orders")
        directory.get("orders").execute("CREATE TABLE t (v TEXT); INSERT INTO t VALUES ('old')")

        registry.remove("orders")
        assert registry.create("orders").ok
        assert directory.get("orders").execute("SELECT v FROM t").rows == [{"v": "old"}]

    def test_remove_does_not_touch_other_databases(self, registry, directory):
        registry.create("a")
        registry.create("b")
        directory.get("b").execute("CREATE TABLE t (v TEXT); INSERT INTO t VALUES ('b')")

        registry.remove("a")
        assert [e.name for e in registry.list()] == ["b"]
        assert directory.get("b").execute("SELECT v FROM t").rows == [{"v": "b"}]

    def test_injection_in_name_is_literal(self, registry):
        name = "test'; DROP TABLE dbs;--"
        assert registry.create(name).ok
        assert [e.name for e in registry.list()] == [name]


def test_is_reserved():
    assert is_reserved("_sor_registry")
    assert not is_reserved("sor_x")
    assert not is_reserved("x_sor_")
