from fastapi import APIRouter

from budget_dashboard import __version__
from budget_dashboard.config import validate_all_settings


router = APIRouter(prefix="/api/health", tags=["health"])


@router.get("")
async def health():
    """Configuration status of each external service."""
    return {
        "success": True,
        "version": __version__,
        "services": validate_all_settings(),
    }
