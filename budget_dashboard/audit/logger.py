"""
Audit Logger

DESIGN DECISION: Every ledger write and every sheet sync is logged.
This provides:
1. Traceability of budget changes
2. A visible trail for sheet sync failures, which are never raised
3. Debugging capability when the sheet and the database disagree

The audit logger:
- Is async so flows can await it uniformly
- Never raises (logging must not break a ledger write)
- Supports correlation IDs to tie a write to its sheet sync
"""

import logging
import sys
from typing import Optional
from uuid import UUID, uuid4

import structlog

from budget_dashboard.models.audit import AuditEvent, AuditEventBuilder


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


def configure_logging(level: str = "INFO") -> None:
    """Route structlog's JSON lines to stdout at the given level."""
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, level.upper(), logging.INFO),
    )


class AuditLogger:
    """
    Central audit logging service.

    Events go to the structured local log; severity picks the log level.
    """

    def __init__(self, logger_name: str = "budget_dashboard.audit"):
        self._logger = structlog.get_logger(logger_name)

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Returns True once the event has been handed to the logger.
        """
        log_dict = event.to_log_dict()

        try:
            if event.severity.value in ("error", "critical"):
                self._logger.error("audit_event", **log_dict)
            elif event.severity.value == "warning":
                self._logger.warning("audit_event", **log_dict)
            elif event.severity.value == "debug":
                self._logger.debug("audit_event", **log_dict)
            else:
                self._logger.info("audit_event", **log_dict)
        except Exception:
            # Audit logging never raises
            return False

        return True

    async def log_expense_saved(
        self,
        expense_id: UUID,
        category: str,
        amount: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log expense insert."""
        await self.log(AuditEventBuilder.expense_saved(
            expense_id=expense_id,
            category=category,
            amount=amount,
            correlation_id=correlation_id,
        ))

    async def log_expense_deleted(
        self,
        expense_id: UUID,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.expense_deleted(
            expense_id=expense_id,
            correlation_id=correlation_id,
        ))

    async def log_income_saved(
        self,
        income_id: UUID,
        source: str,
        amount: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log income insert."""
        await self.log(AuditEventBuilder.income_saved(
            income_id=income_id,
            source=source,
            amount=amount,
            correlation_id=correlation_id,
        ))

    async def log_income_deleted(
        self,
        income_id: UUID,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.income_deleted(
            income_id=income_id,
            correlation_id=correlation_id,
        ))

    async def log_product_created(
        self,
        product_id: UUID,
        name: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.product_created(
            product_id=product_id,
            name=name,
            correlation_id=correlation_id,
        ))

    async def log_product_sale_saved(
        self,
        sale_id: UUID,
        product_id: UUID,
        quantity: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.product_sale_saved(
            sale_id=sale_id,
            product_id=product_id,
            quantity=quantity,
            correlation_id=correlation_id,
        ))

    async def log_product_sale_deleted(
        self,
        sale_id: UUID,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.product_sale_deleted(
            sale_id=sale_id,
            correlation_id=correlation_id,
        ))

    async def log_sheet_sync_completed(
        self,
        cell: str,
        total: str,
        expense_count: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a successful cell rewrite."""
        await self.log(AuditEventBuilder.sheet_sync_completed(
            cell=cell,
            total=total,
            expense_count=expense_count,
            correlation_id=correlation_id,
        ))

    async def log_product_sync_completed(
        self,
        sheet_name: str,
        year: int,
        updated_rows: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.product_sync_completed(
            sheet_name=sheet_name,
            year=year,
            updated_rows=updated_rows,
            correlation_id=correlation_id,
        ))

    async def log_sheet_sync_skipped(
        self,
        key: str,
        reason: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.sheet_sync_skipped(
            key=key,
            reason=reason,
            correlation_id=correlation_id,
        ))

    async def log_sheet_sync_failed(
        self,
        target: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a swallowed sheet failure."""
        await self.log(AuditEventBuilder.sheet_sync_failed(
            target=target,
            error_message=error_message,
            correlation_id=correlation_id,
        ))

    async def log_store_query_failed(
        self,
        operation: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.store_query_failed(
            operation=operation,
            error_message=error_message,
            correlation_id=correlation_id,
        ))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a user action (e.g., adding an expense)
    and pass it to the sheet sync that follows.
    """
    return uuid4()
