"""Tests for the SQL ledger store, run against in-memory SQLite."""

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

from budget_dashboard.config import DatabaseSettings
from budget_dashboard.models.ledger import ProductCreate, ProductSaleCreate
from budget_dashboard.services.storage import (
    DuplicateError,
    NotFoundError,
    SqlLedgerStorage,
    StorageNotConfiguredError,
)

from conftest import expense, income, insert_raw_expense


class TestExpenses:
    """Tests for expense rows."""

    @pytest.mark.asyncio
    async def test_insert_assigns_id_and_created_at(self, storage):
        """Test that inserted expenses come back complete."""
        record = await storage.insert_expense(expense(date(2026, 3, 5), "42.50"))
        assert record.id is not None
        assert record.created_at is not None
        assert record.amount == Decimal("42.50")

        fetched = await storage.get_expense(record.id)
        assert fetched is not None
        assert fetched.category == "Maison"
        assert fetched.subcategory == "Eau"

    @pytest.mark.asyncio
    async def test_date_range_is_half_open(self, storage):
        """Test that date_before is exclusive and date_from inclusive."""
        await storage.insert_expense(expense(date(2026, 2, 28), "1"))
        await storage.insert_expense(expense(date(2026, 3, 1), "2"))
        await storage.insert_expense(expense(date(2026, 3, 31), "3"))
        await storage.insert_expense(expense(date(2026, 4, 1), "4"))

        rows = await storage.list_expenses(
            date_from=date(2026, 3, 1), date_before=date(2026, 4, 1)
        )
        assert sorted(r.amount for r in rows) == [Decimal("2"), Decimal("3")]

    @pytest.mark.asyncio
    async def test_newest_first(self, storage):
        """Test that listings are ordered by date descending."""
        await storage.insert_expense(expense(date(2026, 3, 1), "1"))
        await storage.insert_expense(expense(date(2026, 3, 20), "2"))
        await storage.insert_expense(expense(date(2026, 3, 10), "3"))

        rows = await storage.list_expenses()
        assert [r.date.day for r in rows] == [20, 10, 1]

    @pytest.mark.asyncio
    async def test_category_filters(self, storage):
        """Test category and subcategory filtering."""
        await storage.insert_expense(expense(date(2026, 3, 1), "1", "Maison", "Eau"))
        await storage.insert_expense(expense(date(2026, 3, 1), "2", "Maison", "Internet"))
        await storage.insert_expense(expense(date(2026, 3, 1), "3", "Loisirs", "Jeux"))

        maison = await storage.list_expenses(category="Maison")
        eau = await storage.list_expenses(category="Maison", subcategory="Eau")
        assert len(maison) == 2
        assert [r.amount for r in eau] == [Decimal("1")]

    @pytest.mark.asyncio
    async def test_empty_subcategory_matches_missing(self, storage):
        """Test that subcategory "" selects rows without a subcategory."""
        await storage.insert_expense(expense(date(2026, 3, 1), "5", "Divers", None))
        await storage.insert_expense(expense(date(2026, 3, 1), "7", "Divers", "Pressing"))

        rows = await storage.list_expenses(category="Divers", subcategory="")
        assert [r.amount for r in rows] == [Decimal("5")]

    @pytest.mark.asyncio
    async def test_limit(self, storage):
        """Test that limit truncates the listing."""
        for day in range(1, 6):
            await storage.insert_expense(expense(date(2026, 3, day), "1"))
        assert len(await storage.list_expenses(limit=3)) == 3

    @pytest.mark.asyncio
    async def test_delete_returns_deleted_row(self, storage):
        """Test deleting an expense, then deleting it again."""
        record = await storage.insert_expense(expense(date(2026, 3, 5), "10"))

        deleted = await storage.delete_expense(record.id)
        assert deleted is not None
        assert deleted.id == record.id
        assert await storage.get_expense(record.id) is None
        assert await storage.delete_expense(record.id) is None

    @pytest.mark.asyncio
    async def test_rows_outside_form_limits_load(self, engine, storage):
        """Test that rows written by other tools are read back as they are."""
        insert_raw_expense(engine, date(2026, 3, 5), "12", description="x" * 600)
        insert_raw_expense(engine, date(2026, 3, 6), "0", subcategory="   ")

        rows = await storage.list_expenses()

        assert [r.amount for r in rows] == [Decimal("0"), Decimal("12")]
        assert len(rows[1].description) == 600
        assert rows[0].subcategory is None


class TestIncome:
    """Tests for income rows."""

    @pytest.mark.asyncio
    async def test_exclude_sources(self, storage):
        """Test that excluded sources are left out."""
        await storage.insert_income(income(date(2026, 3, 1), "1500", "Salaire"))
        await storage.insert_income(income(date(2026, 3, 2), "80", "T-WAKE"))

        everything = await storage.list_income()
        household = await storage.list_income(exclude_sources=["T-WAKE"])
        assert len(everything) == 2
        assert [r.source for r in household] == ["Salaire"]

    @pytest.mark.asyncio
    async def test_source_filter(self, storage):
        """Test exact source filtering."""
        await storage.insert_income(income(date(2026, 3, 1), "1500", "Salaire"))
        await storage.insert_income(income(date(2026, 3, 2), "200", "CAF"))

        rows = await storage.list_income(source="CAF")
        assert [r.amount for r in rows] == [Decimal("200")]

    @pytest.mark.asyncio
    async def test_delete_missing_income(self, storage):
        """Test that deleting an unknown id returns None."""
        assert await storage.delete_income(uuid4()) is None


class TestProducts:
    """Tests for the T-WAKE product sub-ledger."""

    @pytest.mark.asyncio
    async def test_duplicate_name_rejected(self, storage):
        """Test that product names are unique."""
        await storage.insert_product(ProductCreate(name="Cake"))
        with pytest.raises(DuplicateError):
            await storage.insert_product(ProductCreate(name="Cake"))

    @pytest.mark.asyncio
    async def test_find_by_name_ignores_case(self, storage):
        """Test case-insensitive product lookup."""
        product = await storage.insert_product(ProductCreate(name="Brownie"))
        found = await storage.find_product_by_name("  brownie ")
        assert found is not None
        assert found.id == product.id

    @pytest.mark.asyncio
    async def test_list_products_by_name(self, storage):
        """Test that products are listed alphabetically."""
        await storage.insert_product(ProductCreate(name="Muffin"))
        await storage.insert_product(ProductCreate(name="Brownie"))
        names = [p.name for p in await storage.list_products()]
        assert names == ["Brownie", "Muffin"]

    @pytest.mark.asyncio
    async def test_sale_joins_product(self, storage):
        """Test that sales come back with their product."""
        product = await storage.insert_product(
            ProductCreate(name="Cake", selling_price=Decimal("10"), unit_cost=Decimal("4"))
        )
        sale = await storage.insert_product_sale(
            ProductSaleCreate(product_id=product.id, date=date(2026, 3, 5), quantity=3)
        )
        assert sale.product is not None
        assert sale.product.name == "Cake"
        assert sale.revenue == Decimal("30")
        assert sale.margin == Decimal("18")

        listed = await storage.list_product_sales(product_id=product.id)
        assert [s.id for s in listed] == [sale.id]

    @pytest.mark.asyncio
    async def test_sale_for_missing_product(self, storage):
        """Test that a sale must reference an existing product."""
        with pytest.raises(NotFoundError):
            await storage.insert_product_sale(
                ProductSaleCreate(product_id=uuid4(), date=date(2026, 3, 5), quantity=1)
            )

    @pytest.mark.asyncio
    async def test_delete_sale(self, storage):
        """Test deleting a sale returns it once."""
        product = await storage.insert_product(ProductCreate(name="Cake"))
        sale = await storage.insert_product_sale(
            ProductSaleCreate(product_id=product.id, date=date(2026, 3, 5), quantity=1)
        )
        deleted = await storage.delete_product_sale(sale.id)
        assert deleted is not None
        assert deleted.id == sale.id
        assert await storage.delete_product_sale(sale.id) is None


class TestStorageConfiguration:
    """Tests for building the store from settings."""

    def test_not_configured(self):
        """Test that a missing database URL is reported."""
        settings = DatabaseSettings(_env_file=None, db_url=None)
        with pytest.raises(StorageNotConfiguredError, match="Supabase not configured"):
            SqlLedgerStorage.from_settings(settings)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
