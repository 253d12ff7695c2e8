"""Admin API endpoints with simple token auth."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends, Header, HTTPException, Request, status

if TYPE_CHECKING:
    from donation_matching.containers import AppContainer

router = APIRouter(prefix="/admin", tags=["admin"])


def _get_admin_token(request: Request) -> str:
    container: AppContainer = request.app.state.container
    return container.settings.admin_token


async def require_admin(
    x_admin_token: str | None = Header(default=None),
    admin_token: str = Depends(_get_admin_token),
) -> None:
    """Ensure requests include a valid admin token."""
    if not x_admin_token or x_admin_token != admin_token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)


@router.get("/health", dependencies=[Depends(require_admin)])
async def admin_health() -> dict[str, str]:
    """Admin health check endpoint."""
    return {"status": "ok"}


@router.get("/feedback", dependencies=[Depends(require_admin)])
async def list_feedback(request: Request, limit: int = 50) -> dict[str, object]:
    """Return recent feedback events and their totals by action."""
    container: AppContainer = request.app.state.container
    return container.admin_service.feedback_report(limit)


@router.get("/listings/count", dependencies=[Depends(require_admin)])
async def count_listings(request: Request) -> dict[str, int]:
    """Return the number of currently available listings."""
    container: AppContainer = request.app.state.container
    return {"available": container.admin_service.count_available_listings()}
