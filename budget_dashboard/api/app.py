"""
JSON HTTP API

DESIGN DECISION: The API is a thin shell over the orchestrator.
Every response is a JSON envelope with a "success" flag, and every
error class maps to one status code:

- invalid request            → 400
- unknown id                 → 404
- duplicate product name     → 409
- database missing or failed → 500
- sheet missing or failed    → 503 / 502 (only where the sheet is read)

Sheet failures while mirroring a write are NOT errors here; they come
back inside the normal response with sheetSynced=false.
"""

from typing import Optional

import structlog
import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from budget_dashboard import __version__
from budget_dashboard.api.deps import Components
from budget_dashboard.api.routes import (
    dashboard,
    expenses,
    health,
    income,
    sheets_sync,
    t_wake,
)
from budget_dashboard.audit import configure_logging
from budget_dashboard.config import get_settings
from budget_dashboard.orchestrator import create_app_components
from budget_dashboard.services.sheets import SheetNotConfiguredError, SheetSyncError
from budget_dashboard.services.storage import (
    DuplicateError,
    NotFoundError,
    StorageError,
    StorageNotConfiguredError,
)


logger = structlog.get_logger(__name__)


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": message})


def _describe_validation_errors(errors: list[dict]) -> str:
    parts = []
    for err in errors:
        location = ".".join(str(part) for part in err.get("loc", ()) if part != "body")
        parts.append(f"{location}: {err.get('msg')}" if location else str(err.get("msg")))
    return "Invalid request - " + "; ".join(parts)


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        return _error(400, _describe_validation_errors(exc.errors()))

    @app.exception_handler(ValidationError)
    async def model_validation_handler(request: Request, exc: ValidationError):
        return _error(400, _describe_validation_errors(exc.errors()))

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return _error(exc.status_code, str(exc.detail))

    @app.exception_handler(NotFoundError)
    async def not_found_handler(request: Request, exc: NotFoundError):
        return _error(404, str(exc))

    @app.exception_handler(DuplicateError)
    async def duplicate_handler(request: Request, exc: DuplicateError):
        return _error(409, str(exc))

    @app.exception_handler(StorageNotConfiguredError)
    async def storage_not_configured_handler(request: Request, exc: StorageNotConfiguredError):
        return _error(500, str(exc))

    @app.exception_handler(StorageError)
    async def storage_error_handler(request: Request, exc: StorageError):
        logger.error("storage_error", path=request.url.path, error=str(exc))
        return _error(500, str(exc))

    @app.exception_handler(SheetNotConfiguredError)
    async def sheet_not_configured_handler(request: Request, exc: SheetNotConfiguredError):
        return _error(503, str(exc))

    @app.exception_handler(SheetSyncError)
    async def sheet_error_handler(request: Request, exc: SheetSyncError):
        logger.warning("sheet_error", path=request.url.path, error=str(exc))
        return _error(502, str(exc))


def create_app(components: Optional[Components] = None) -> FastAPI:
    """
    Build the API application.

    Args:
        components: Pre-built components (tests pass their own);
                    built from settings when omitted
    """
    settings = get_settings()
    configure_logging(settings.app.log_level)

    if components is None:
        ledger_flow, dashboard_query, sheet_sink = create_app_components()
        components = Components(
            ledger_flow=ledger_flow,
            dashboard_query=dashboard_query,
            sheet_sink=sheet_sink,
        )

    app = FastAPI(
        title="Family Budget Dashboard",
        version=__version__,
        debug=settings.app.debug_mode,
    )
    app.state.components = components

    register_exception_handlers(app)
    for module in (expenses, income, dashboard, sheets_sync, t_wake, health):
        app.include_router(module.router)

    return app


def run() -> None:
    """Serve the API with uvicorn on the configured host and port."""
    app_settings = get_settings().app
    uvicorn.run(
        create_app(),
        host=app_settings.api_host,
        port=app_settings.api_port,
        log_level=app_settings.log_level.lower(),
    )


if __name__ == "__main__":
    run()
