"""
Tests for Budget Dashboard models

Test strategy:
1. Unit tests for individual components (models, builders)
2. Integration tests for flows against an in-memory ledger and sheet
3. No real Supabase or Google calls in tests
"""

import pytest
from datetime import date, datetime, timezone
from decimal import Decimal
from uuid import uuid4

from budget_dashboard.models.ledger import (
    ExpenseCreate,
    ExpenseRecord,
    IncomeRecord,
    Product,
    ProductCreate,
    ProductSaleCreate,
    ProductSaleRecord,
    RecentTransaction,
    TransactionKind,
)
from budget_dashboard.models.dashboard import (
    DashboardSummary,
    PeriodStats,
)
from budget_dashboard.models.sync import (
    MonthReconcileResult,
    ReconcileResult,
)
from budget_dashboard.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

NOW = datetime(2026, 3, 10, 12, 0, tzinfo=timezone.utc)


def make_product(**overrides) -> Product:
    fields = dict(
        id=uuid4(),
        created_at=NOW,
        name="Cake",
        selling_price=Decimal("10"),
        unit_cost=Decimal("4"),
    )
    fields.update(overrides)
    return Product(**fields)


class TestLedgerModels:
    """Tests for ledger Pydantic models."""

    def test_expense_creation(self):
        """Test ExpenseCreate model creation."""
        expense = ExpenseCreate(
            date=date(2026, 3, 5),
            amount=Decimal("42.50"),
            category="Maison",
            subcategory="Eau",
        )
        assert expense.category == "Maison"
        assert expense.amount == Decimal("42.50")
        assert expense.subcategory_key == "Eau"

    def test_expense_strips_whitespace(self):
        """Test that whitespace is stripped from category names."""
        expense = ExpenseCreate(
            date=date(2026, 3, 5),
            amount=Decimal("10"),
            category="  Maison  ",
            subcategory=" Eau ",
        )
        assert expense.category == "Maison"
        assert expense.subcategory == "Eau"

    def test_blank_subcategory_becomes_none(self):
        """Test that a blank subcategory is stored as missing."""
        expense = ExpenseCreate(
            date=date(2026, 3, 5),
            amount=Decimal("10"),
            category="Divers",
            subcategory="   ",
            description="",
        )
        assert expense.subcategory is None
        assert expense.description is None
        assert expense.subcategory_key == ""

    def test_expense_rejects_non_positive_amount(self):
        """Test that zero and negative amounts are rejected."""
        with pytest.raises(ValueError):
            ExpenseCreate(date=date(2026, 3, 5), amount=Decimal("0"), category="Maison")
        with pytest.raises(ValueError):
            ExpenseCreate(date=date(2026, 3, 5), amount=Decimal("-5"), category="Maison")

    def test_expense_requires_category(self):
        """Test that an empty category is rejected."""
        with pytest.raises(ValueError):
            ExpenseCreate(date=date(2026, 3, 5), amount=Decimal("5"), category="")

    def test_money_serializes_as_number(self):
        """Test that amounts become JSON numbers, not strings."""
        expense = ExpenseCreate(
            date=date(2026, 3, 5),
            amount=Decimal("42.50"),
            category="Maison",
        )
        data = expense.model_dump(mode="json")
        assert data["amount"] == 42.5
        assert data["date"] == "2026-03-05"

    def test_product_rejects_negative_price(self):
        """Test that prices and costs cannot be negative."""
        with pytest.raises(ValueError):
            ProductCreate(name="Cake", selling_price=Decimal("-1"))

    def test_sale_requires_positive_quantity(self):
        """Test that a sale of zero units is rejected."""
        with pytest.raises(ValueError):
            ProductSaleCreate(product_id=uuid4(), date=date(2026, 3, 5), quantity=0)

    def test_sale_revenue_and_margin(self):
        """Test derived revenue and margin of a sale."""
        product = make_product()
        sale = ProductSaleRecord(
            id=uuid4(),
            created_at=NOW,
            product_id=product.id,
            date=date(2026, 3, 5),
            quantity=3,
            product=product,
        )
        assert product.unit_margin == Decimal("6")
        assert sale.revenue == Decimal("30")
        assert sale.margin == Decimal("18")

    def test_sale_without_product_has_zero_revenue(self):
        """Test that a sale with no joined product counts for nothing."""
        sale = ProductSaleRecord(
            id=uuid4(),
            created_at=NOW,
            product_id=uuid4(),
            date=date(2026, 3, 5),
            quantity=3,
        )
        assert sale.revenue == Decimal("0")
        assert sale.margin == Decimal("0")


class TestRecentTransaction:
    """Tests for merging ledger rows into dashboard rows."""

    def test_from_expense_labels_with_subcategory(self):
        """Test that expense labels include the subcategory."""
        expense = ExpenseRecord(
            id=uuid4(),
            created_at=NOW,
            date=date(2026, 3, 5),
            amount=Decimal("20"),
            category="Maison",
            subcategory="Eau",
        )
        row = RecentTransaction.from_expense(expense)
        assert row.kind == TransactionKind.EXPENSE
        assert row.label == "Maison/Eau"
        assert row.amount == Decimal("20")

    def test_from_income_uses_source(self):
        """Test that income rows are labelled by source."""
        income = IncomeRecord(
            id=uuid4(),
            created_at=NOW,
            date=date(2026, 3, 1),
            amount=Decimal("1500"),
            source="Salaire",
        )
        row = RecentTransaction.from_income(income)
        assert row.kind == TransactionKind.INCOME
        assert row.label == "Salaire"

    def test_from_sale_uses_revenue(self):
        """Test that sale rows carry revenue and the product name."""
        product = make_product(name="Brownie", selling_price=Decimal("2.50"))
        sale = ProductSaleRecord(
            id=uuid4(),
            created_at=NOW,
            product_id=product.id,
            date=date(2026, 3, 5),
            quantity=4,
            product=product,
        )
        row = RecentTransaction.from_sale(sale)
        assert row.kind == TransactionKind.PRODUCT_SALE
        assert row.label == "Brownie"
        assert row.amount == Decimal("10.00")


class TestDashboardModels:
    """Tests for dashboard and sync result models."""

    def test_summary_serializes_camel_case(self):
        """Test that the summary uses the keys the charts expect."""
        summary = DashboardSummary(
            year=2026,
            month=3,
            month_start=date(2026, 3, 1),
            month_end=date(2026, 4, 1),
            total_expenses=Decimal("350"),
            total_income=Decimal("500"),
            month_balance=Decimal("150"),
            carryover=Decimal("0"),
            closing_balance=Decimal("150"),
            expense_count=2,
            income_count=1,
        )
        data = summary.model_dump(mode="json", by_alias=True)
        assert data["totalExpenses"] == 350
        assert data["monthBalance"] == 150
        assert "categoryBreakdown" in data
        assert "recentTransactions" in data

    def test_period_stats_add(self):
        """Test accumulating sales into a period."""
        stats = PeriodStats()
        stats.add(Decimal("30"), Decimal("18"), 3)
        stats.add(Decimal("10"), Decimal("6"), 1)
        assert stats.revenue == Decimal("40")
        assert stats.profit == Decimal("24")
        assert stats.count == 4

    def test_month_reconcile_counts(self):
        """Test synced/skipped/failed counters of a month reconcile."""
        base = dict(year=2026, month_index=2)
        result = MonthReconcileResult(
            **base,
            results=[
                ReconcileResult(category="Maison", subcategory="Eau", success=True,
                                total=Decimal("100"), **base),
                ReconcileResult(category="Perso", subcategory="", success=True,
                                skipped=True, total=Decimal("5"), **base),
                ReconcileResult(category="Maison", subcategory="Internet", success=False,
                                error="403", total=Decimal("30"), **base),
            ],
        )
        assert result.synced == 1
        assert result.skipped == 1
        assert result.failed == 1
        assert result.errors == ["Maison/Internet: 403"]
        assert result.total == Decimal("135")

    def test_reconcile_result_month_index_bounds(self):
        """Test that month_index outside 0-11 is rejected."""
        with pytest.raises(ValueError):
            ReconcileResult(
                category="Maison", subcategory="Eau", year=2026,
                month_index=12, success=True,
            )


class TestAuditModels:
    """Tests for audit models."""

    def test_audit_event_creation(self):
        """Test AuditEvent creation."""
        event = AuditEvent(
            event_type=AuditEventType.EXPENSE_SAVED,
            description="Test event",
        )
        assert event.event_type == AuditEventType.EXPENSE_SAVED
        assert event.severity == AuditSeverity.INFO
        assert event.event_id is not None
        assert event.timestamp is not None

    def test_audit_event_to_log_dict(self):
        """Test conversion to log dictionary."""
        entity_id = uuid4()
        event = AuditEvent(
            event_type=AuditEventType.EXPENSE_DELETED,
            entity_type="expense",
            entity_id=entity_id,
            description="Expense deleted",
        )
        log_dict = event.to_log_dict()
        assert log_dict["event_type"] == "expense_deleted"
        assert log_dict["entity_id"] == str(entity_id)
        assert log_dict["correlation_id"] is None

    def test_audit_event_builder_expense_saved(self):
        """Test AuditEventBuilder.expense_saved."""
        expense_id = uuid4()
        correlation_id = uuid4()
        event = AuditEventBuilder.expense_saved(
            expense_id=expense_id,
            category="Maison/Eau",
            amount="42.50",
            correlation_id=correlation_id,
        )
        assert event.event_type == AuditEventType.EXPENSE_SAVED
        assert event.entity_id == expense_id
        assert event.correlation_id == correlation_id
        assert event.details["amount"] == "42.50"

    def test_audit_event_builder_sheet_sync_failed(self):
        """Test that sync failures are warnings with the error kept."""
        event = AuditEventBuilder.sheet_sync_failed(
            target="Budget!D28",
            error_message="403 Forbidden",
        )
        assert event.severity == AuditSeverity.WARNING
        assert event.error_message == "403 Forbidden"
        assert event.details["target"] == "Budget!D28"

    def test_audit_event_builder_product_sync_completed(self):
        """Test AuditEventBuilder.product_sync_completed."""
        event = AuditEventBuilder.product_sync_completed(
            sheet_name="Cakes/Biscuits",
            year=2026,
            updated_rows=4,
        )
        assert event.event_type == AuditEventType.PRODUCT_SYNC_COMPLETED
        assert event.details["updated_rows"] == 4


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
