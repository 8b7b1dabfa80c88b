"""JSON HTTP API over the ledger flow and dashboard queries."""

from budget_dashboard.api.app import create_app, run

__all__ = ["create_app", "run"]
