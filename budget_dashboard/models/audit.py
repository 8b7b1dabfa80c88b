"""
Audit Models for Budget Dashboard

Every ledger write and every spreadsheet sync attempt is logged.
This provides:
1. Traceability of who changed the budget and when
2. Debugging information when the sheet drifts from the database
3. A record of sync failures that are otherwise swallowed

DESIGN DECISION: Audit events are append-only. We never delete or modify them.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Ledger writes
    EXPENSE_SAVED = "expense_saved"
    EXPENSE_DELETED = "expense_deleted"
    INCOME_SAVED = "income_saved"
    INCOME_DELETED = "income_deleted"
    PRODUCT_CREATED = "product_created"
    PRODUCT_SALE_SAVED = "product_sale_saved"
    PRODUCT_SALE_DELETED = "product_sale_deleted"

    # Spreadsheet mirror
    SHEET_SYNC_COMPLETED = "sheet_sync_completed"
    SHEET_SYNC_SKIPPED = "sheet_sync_skipped"
    SHEET_SYNC_FAILED = "sheet_sync_failed"
    PRODUCT_SYNC_COMPLETED = "product_sync_completed"

    # Ledger store
    STORE_QUERY_FAILED = "store_query_failed"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    One entry of the budget's audit trail.

    entity_type/entity_id name the ledger row or sheet target the event
    is about; correlation_id ties a ledger write to the sync it triggered.
    """

    event_id: UUID = Field(default_factory=uuid4)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    event_type: AuditEventType
    severity: AuditSeverity = AuditSeverity.INFO

    entity_type: Optional[str] = Field(
        default=None,
        description="'expense', 'income', 'product', 'product_sale', 'sheet_cell' or 'sheet_range'"
    )
    entity_id: Optional[UUID] = None
    correlation_id: Optional[UUID] = None

    description: str = Field(..., max_length=500)
    details: dict[str, Any] = Field(default_factory=dict)
    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """Flat, JSON-safe view of the event for structlog."""
        return self.model_dump(mode="json")


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.expense_saved(expense_id, "Maison/Eau", "42.50", correlation_id)
        event = AuditEventBuilder.sheet_sync_failed("Budget!C28", "403 Forbidden", correlation_id)
    """

    @staticmethod
    def expense_saved(
        expense_id: UUID,
        category: str,
        amount: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENSE_SAVED,
            entity_type="expense",
            entity_id=expense_id,
            correlation_id=correlation_id,
            description=f"Expense saved: {category} - {amount}",
            details={
                "category": category,
                "amount": amount,
            },
        )

    @staticmethod
    def expense_deleted(
        expense_id: UUID,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENSE_DELETED,
            entity_type="expense",
            entity_id=expense_id,
            correlation_id=correlation_id,
            description="Expense deleted",
        )

    @staticmethod
    def income_saved(
        income_id: UUID,
        source: str,
        amount: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.INCOME_SAVED,
            entity_type="income",
            entity_id=income_id,
            correlation_id=correlation_id,
            description=f"Income saved: {source} - {amount}",
            details={
                "source": source,
                "amount": amount,
            },
        )

    @staticmethod
    def income_deleted(
        income_id: UUID,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.INCOME_DELETED,
            entity_type="income",
            entity_id=income_id,
            correlation_id=correlation_id,
            description="Income deleted",
        )

    @staticmethod
    def product_created(
        product_id: UUID,
        name: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PRODUCT_CREATED,
            entity_type="product",
            entity_id=product_id,
            correlation_id=correlation_id,
            description=f"Product created: {name}",
            details={"name": name},
        )

    @staticmethod
    def product_sale_saved(
        sale_id: UUID,
        product_id: UUID,
        quantity: int,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PRODUCT_SALE_SAVED,
            entity_type="product_sale",
            entity_id=sale_id,
            correlation_id=correlation_id,
            description=f"Product sale saved: {quantity} unit(s)",
            details={
                "product_id": str(product_id),
                "quantity": quantity,
            },
        )

    @staticmethod
    def product_sale_deleted(
        sale_id: UUID,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PRODUCT_SALE_DELETED,
            entity_type="product_sale",
            entity_id=sale_id,
            correlation_id=correlation_id,
            description="Product sale deleted",
        )

    @staticmethod
    def sheet_sync_completed(
        cell: str,
        total: str,
        expense_count: int,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SHEET_SYNC_COMPLETED,
            entity_type="sheet_cell",
            correlation_id=correlation_id,
            description=f"Synced {cell} = {total} (from {expense_count} expenses)",
            details={
                "cell": cell,
                "total": total,
                "expense_count": expense_count,
            },
        )

    @staticmethod
    def product_sync_completed(
        sheet_name: str,
        year: int,
        updated_rows: int,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PRODUCT_SYNC_COMPLETED,
            entity_type="sheet_range",
            correlation_id=correlation_id,
            description=f"Synced {updated_rows} product row(s) of {sheet_name} for {year}",
            details={
                "sheet_name": sheet_name,
                "year": year,
                "updated_rows": updated_rows,
            },
        )

    @staticmethod
    def sheet_sync_skipped(
        key: str,
        reason: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SHEET_SYNC_SKIPPED,
            severity=AuditSeverity.DEBUG,
            entity_type="sheet_cell",
            correlation_id=correlation_id,
            description=f"Sheet sync skipped for {key}: {reason}",
            details={"key": key, "reason": reason},
        )

    @staticmethod
    def sheet_sync_failed(
        target: str,
        error_message: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SHEET_SYNC_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="sheet_cell",
            correlation_id=correlation_id,
            description=f"Sheet sync failed for {target}",
            error_message=error_message,
            details={"target": target},
        )

    @staticmethod
    def store_query_failed(
        operation: str,
        error_message: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STORE_QUERY_FAILED,
            severity=AuditSeverity.ERROR,
            description=f"Ledger store query failed: {operation}",
            error_message=error_message,
            details={"operation": operation},
            correlation_id=correlation_id,
        )
