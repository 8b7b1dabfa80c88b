"""Tests for the JSON HTTP API, wired to the in-memory ledger and sheet."""

from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from budget_dashboard.api import create_app
from budget_dashboard.api.deps import Components
from budget_dashboard.orchestrator import LedgerFlow
from budget_dashboard.queries import DashboardQuery
from budget_dashboard.services.sheets.interface import SheetReadError, SheetWriteError


@pytest.fixture
def flow(storage, sink, sheets_settings, app_settings, audit_logger):
    return LedgerFlow(storage, sink, sheets_settings, app_settings, audit_logger)


@pytest.fixture
def client(flow, storage, sink, app_settings):
    components = Components(
        ledger_flow=flow,
        dashboard_query=DashboardQuery(storage, app_settings),
        sheet_sink=sink,
    )
    with TestClient(create_app(components)) as test_client:
        yield test_client


@pytest.fixture
def bare_client():
    """An API with neither database nor sheet."""
    components = Components(
        ledger_flow=LedgerFlow(storage=None, sheet_sink=None),
        dashboard_query=None,
        sheet_sink=None,
    )
    with TestClient(create_app(components)) as test_client:
        yield test_client


def post_expense(client, **overrides):
    body = {
        "date": "2026-03-02",
        "amount": 100,
        "category": "Maison",
        "subcategory": "Eau",
    }
    body.update(overrides)
    return client.post("/api/expenses", json=body)


class TestExpensesEndpoint:
    """Tests for /api/expenses."""

    def test_create_syncs_sheet(self, client, sink):
        """Test that a created expense is mirrored into its cell."""
        response = post_expense(client, amount=42.5)

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["sheetSynced"] is True
        assert body["data"]["amount"] == 42.5
        assert body["sync"]["cell"] == "Budget!D28"
        assert sink.cells == {"Budget!D28": 42.5}

    def test_create_with_sheet_down(self, client, sink):
        """Test that a sheet failure still returns the saved expense."""
        sink.fail_with = SheetWriteError("403 Forbidden")

        response = post_expense(client)

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["sheetSynced"] is False
        assert len(client.get("/api/expenses").json()["data"]) == 1

    def test_invalid_amount(self, client):
        """Test that a non-positive amount is a 400."""
        response = post_expense(client, amount=-5)

        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert "amount" in body["error"]

    def test_missing_category(self, client):
        """Test that a missing field is a 400."""
        response = client.post("/api/expenses", json={"date": "2026-03-02", "amount": 5})
        assert response.status_code == 400

    def test_list_filters(self, client):
        """Test date range and category filters, with an inclusive end date."""
        post_expense(client, date="2026-03-31")
        post_expense(client, date="2026-04-01")
        post_expense(client, date="2026-03-15", category="Loisirs", subcategory="Jeux")

        march = client.get(
            "/api/expenses", params={"startDate": "2026-03-01", "endDate": "2026-03-31"}
        ).json()
        loisirs = client.get("/api/expenses", params={"category": "Loisirs"}).json()

        assert march["count"] == 2
        assert loisirs["count"] == 1
        assert loisirs["data"][0]["subcategory"] == "Jeux"

    def test_delete(self, client, sink):
        """Test deleting an expense resets its cell."""
        created = post_expense(client).json()

        response = client.delete("/api/expenses", params={"id": created["data"]["id"]})

        assert response.status_code == 200
        assert response.json()["sheetSynced"] is True
        assert sink.cells == {"Budget!D28": 0}

    def test_delete_unknown(self, client):
        """Test that deleting an unknown id is a 404."""
        response = client.delete("/api/expenses", params={"id": str(uuid4())})
        assert response.status_code == 404
        assert response.json()["success"] is False

    def test_delete_requires_id(self, client):
        """Test that a malformed id is a 400."""
        response = client.delete("/api/expenses", params={"id": "not-a-uuid"})
        assert response.status_code == 400


class TestIncomeEndpoint:
    """Tests for /api/income."""

    def test_create_and_list(self, client):
        """Test income creation and source filter."""
        client.post("/api/income", json={"date": "2026-03-01", "amount": 1500, "source": "Salaire"})
        client.post("/api/income", json={"date": "2026-03-02", "amount": 80, "source": "T-WAKE"})

        everything = client.get("/api/income").json()
        twake = client.get("/api/income", params={"source": "T-WAKE"}).json()

        assert everything["count"] == 2
        assert twake["count"] == 1

    def test_delete_unknown(self, client):
        """Test that deleting unknown income is a 404."""
        response = client.delete("/api/income", params={"id": str(uuid4())})
        assert response.status_code == 404


class TestDashboardEndpoint:
    """Tests for /api/dashboard."""

    def test_month_summary(self, client):
        """Test the March example: 350 spent, 500 earned."""
        post_expense(client, amount=100)
        post_expense(client, amount=250, category="Loisirs", subcategory="Jeux")
        client.post("/api/income", json={"date": "2026-03-01", "amount": 500, "source": "Salaire"})
        client.post("/api/income", json={"date": "2026-03-01", "amount": 80, "source": "T-WAKE"})

        body = client.get("/api/dashboard", params={"month": "2026-03"}).json()

        assert body["success"] is True
        assert body["totalExpenses"] == 350
        assert body["totalIncome"] == 500
        assert body["monthBalance"] == 150
        assert body["carryover"] == 0
        assert [c["name"] for c in body["categoryBreakdown"]] == ["Loisirs", "Maison"]
        assert len(body["timeSeries"]) == 12

    def test_bad_month(self, client):
        """Test that a malformed month is a 400."""
        response = client.get("/api/dashboard", params={"month": "2026-13"})
        assert response.status_code == 400

    def test_without_database(self, bare_client):
        """Test that a missing database is reported as a 500."""
        response = bare_client.get("/api/dashboard", params={"month": "2026-03"})

        assert response.status_code == 500
        assert response.json() == {"success": False, "error": "Supabase not configured"}


class TestSheetsSyncEndpoint:
    """Tests for /api/sync-to-sheets."""

    def test_info(self, client, bare_client):
        """Test the configuration report."""
        assert client.get("/api/sync-to-sheets").json()["sheetsConfigured"] is True
        bare = bare_client.get("/api/sync-to-sheets").json()
        assert bare["sheetsConfigured"] is False
        assert bare["storageConfigured"] is False

    def test_sync_month(self, client, sink):
        """Test rewriting every cell of a month."""
        post_expense(client, amount=70)
        sink.cells.clear()

        body = client.post("/api/sync-to-sheets", params={"month": "2026-03"}).json()

        assert body["success"] is True
        assert body["synced"] == 1
        assert body["total"] == 70
        assert sink.cells == {"Budget!D28": 70}

    def test_sync_category(self, client, sink):
        """Test reconciling one cell with camelCase fields."""
        post_expense(client, amount=70)

        body = client.post(
            "/api/sync-to-sheets/category",
            json={"category": "Maison", "subcategory": "Eau", "monthIndex": 2, "year": 2026},
        ).json()

        assert body["success"] is True
        assert body["cell"] == "Budget!D28"


class TestTWakeEndpoint:
    """Tests for /api/t-wake."""

    def test_products_sales_and_stats(self, client):
        """Test the catalogue, a sale and the stats for its day."""
        product = client.post(
            "/api/t-wake/products",
            json={"name": "Cake", "selling_price": 10, "unit_cost": 4},
        ).json()["product"]

        sale = client.post(
            "/api/t-wake/transactions",
            json={"product_id": product["id"], "date": "2026-03-11", "quantity": 3},
        ).json()["transaction"]
        stats = client.get("/api/t-wake/stats", params={"date": "2026-03-11"}).json()["stats"]

        assert sale["revenue"] == 30
        assert sale["margin"] == 18
        assert stats["today"] == {"revenue": 30, "profit": 18, "count": 3}
        assert stats["referenceDate"] == "2026-03-11"

    def test_duplicate_product(self, client):
        """Test that a duplicate name is a 409."""
        client.post("/api/t-wake/products", json={"name": "Cake"})
        response = client.post("/api/t-wake/products", json={"name": "Cake"})
        assert response.status_code == 409

    def test_sale_for_unknown_product(self, client):
        """Test that a sale of an unknown product is a 404."""
        response = client.post(
            "/api/t-wake/transactions",
            json={"product_id": str(uuid4()), "date": "2026-03-11", "quantity": 1},
        )
        assert response.status_code == 404

    def test_monthly_data(self, client):
        """Test units per product per month."""
        product = client.post("/api/t-wake/products", json={"name": "Cake"}).json()["product"]
        for day in ("2026-03-02", "2026-03-20"):
            client.post(
                "/api/t-wake/transactions",
                json={"product_id": product["id"], "date": day, "quantity": 2},
            )

        body = client.get("/api/t-wake/data", params={"year": 2026}).json()

        assert body["sales"] == [{"productId": product["id"], "month": "2026-03-01", "quantity": 4}]

    def test_suggestions(self, client, sink):
        """Test products read back from the worksheet."""
        sink.rows["'Cakes/Biscuits'!A3:C100"] = [["Cookies", "1,50", "0,40"]]

        body = client.get("/api/t-wake/products/suggestions").json()

        assert body["suggestions"][0]["name"] == "Cookies"
        assert body["suggestions"][0]["sellingPrice"] == 1.5
        assert body["suggestions"][0]["sheetRow"] == 3

    def test_suggestions_sheet_down(self, client, sink):
        """Test that an unreadable worksheet is a 502."""
        sink.fail_with = SheetReadError("500 Internal Error")
        response = client.get("/api/t-wake/products/suggestions")
        assert response.status_code == 502


class TestHealthEndpoint:
    """Tests for /api/health."""

    def test_health(self, client):
        """Test that every service reports its status."""
        body = client.get("/api/health").json()
        assert body["success"] is True
        assert set(body["services"]) >= {"database", "google_sheets", "app"}


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
