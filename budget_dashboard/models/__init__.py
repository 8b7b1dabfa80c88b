"""
Data Models Package

This package contains all Pydantic models used in the Budget Dashboard.
All data flowing between the store, the sheet and the UI conforms to these schemas.
"""

from budget_dashboard.models.ledger import (
    ExpenseCreate,
    ExpenseRecord,
    IncomeCreate,
    IncomeRecord,
    Money,
    Product,
    ProductCreate,
    ProductSaleCreate,
    ProductSaleRecord,
    RecentTransaction,
    TransactionKind,
)
from budget_dashboard.models.dashboard import (
    CategoryTotal,
    DashboardSummary,
    MonthlyProductSales,
    MonthPoint,
    PeriodStats,
    ProductStats,
    ProductSuggestion,
)
from budget_dashboard.models.sync import (
    ExpenseWriteResult,
    MonthReconcileResult,
    ProductSyncResult,
    ReconcileResult,
)
from budget_dashboard.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Ledger models
    "ExpenseCreate",
    "ExpenseRecord",
    "IncomeCreate",
    "IncomeRecord",
    "Money",
    "Product",
    "ProductCreate",
    "ProductSaleCreate",
    "ProductSaleRecord",
    "RecentTransaction",
    "TransactionKind",
    # Dashboard models
    "CategoryTotal",
    "DashboardSummary",
    "MonthlyProductSales",
    "MonthPoint",
    "PeriodStats",
    "ProductStats",
    "ProductSuggestion",
    # Sync results
    "ExpenseWriteResult",
    "MonthReconcileResult",
    "ProductSyncResult",
    "ReconcileResult",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
