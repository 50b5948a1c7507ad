"""Tests for the studio HTML pages."""

from __future__ import annotations

from fastapi.testclient import TestClient

from sor.db.handle import storage_path
from sor.main import create_app


class TestStudio:
    def test_landing_lists_databases(self, client, anon_client):
        client.post("/dbs", json={"name": "orders", "description": "Order book"})
        response = anon_client.get("/__studio")
        assert response.status_code == 200
        assert "text/html" in response.headers["content-type"]
        assert "orders" in response.text
        assert "Order book" in response.text
        assert "/__studio?db=orders" in response.text

    def test_landing_empty(self, anon_client):
        assert "No databases found" in anon_client.get("/__studio").text

    def test_database_page_shows_tables(self, client, anon_client):
        client.post("/dbs", json={"name": "orders"})
        client.post("/db/orders/migrate", json={"name": "001", "sql": "CREATE TABLE line_items (id INTEGER PRIMARY KEY, sku TEXT NOT NULL)"})
        page = anon_client.get("/__studio", params={"db": "orders"}).text
        assert "line_items" in page
        assert "sku" in page
        assert "_sor_migrations" not in page

    def test_database_page_without_tables(self, client, anon_client):
        client.post("/dbs", json={"name": "empty"})
        assert "No tables yet" in anon_client.get("/__studio", params={"db": "empty"}).text

    def test_unknown_database_not_found(self, anon_client, app_config):
        data_dir = app_config.storage.data_dir
        for i in range(5):
            response = anon_client.get("/__studio", params={"db": f"junk{i}"})
            assert response.status_code == 404
            assert response.json() == {"error": "Not found"}
            assert not storage_path(data_dir, f"junk{i}").exists()

    def test_uncatalogued_database_not_shown(self, client, anon_client):
        client.post("/db/scratch/sql", json={"sql": "CREATE TABLE t (v TEXT)"})
        assert anon_client.get("/__studio", params={"db": "scratch"}).status_code == 404

    def test_names_are_escaped(self, client, anon_client):
        client.post("/dbs", json={"name": "<script>alert(1)</script>"})
        page = anon_client.get("/__studio").text
        assert "<script>alert(1)</script>" not in page
        assert "&lt;script&gt;" in page

    def test_api_key_not_embedded(self, anon_client, app_config):
        assert app_config.server.api_key not in anon_client.get("/__studio").text

    def test_reserved_database_hidden(self, anon_client):
        response = anon_client.get("/__studio", params={"db": "_sor_registry"})
        assert response.status_code == 404

    def test_external_link(self, app_config):
        app_config.studio.url = "https://studio.example.com"
        with TestClient(create_app(app_config)) as c:
            c.post("/dbs", json={"name": "my db"}, headers={"X-API-Key": app_config.server.api_key})
            page = c.get("/__studio", params={"db": "my db"}).text
        assert "https://studio.example.com?db=my%20db" in page

    def test_disabled(self, app_config):
        app_config.studio.enabled = False
        with TestClient(create_app(app_config)) as c:
            response = c.get("/__studio")
        assert response.status_code == 404
        assert response.json() == {"error": "Not found"}
