"""Request dependencies: the components built once per application."""

from dataclasses import dataclass
from typing import Optional

from fastapi import Request

from budget_dashboard.orchestrator import LedgerFlow
from budget_dashboard.queries import DashboardQuery
from budget_dashboard.services.sheets import SpreadsheetSinkInterface
from budget_dashboard.services.storage import StorageNotConfiguredError


@dataclass
class Components:
    ledger_flow: LedgerFlow
    dashboard_query: Optional[DashboardQuery]
    sheet_sink: Optional[SpreadsheetSinkInterface]


def get_components(request: Request) -> Components:
    return request.app.state.components


def get_ledger_flow(request: Request) -> LedgerFlow:
    return get_components(request).ledger_flow


def get_dashboard_query(request: Request) -> DashboardQuery:
    query = get_components(request).dashboard_query
    if query is None:
        raise StorageNotConfiguredError()
    return query
