"""Admin API endpoints with simple token auth."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends, Header, HTTPException, Request, status

if TYPE_CHECKING:
    from attendance_ledger.containers import AppContainer

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
async def admin_health(request: Request) -> dict[str, object]:
    """Admin health check with the number of armed expiry timers."""
    container: AppContainer = request.app.state.container
    return {
        "status": "ok",
        "pending_expiries": container.expiry_scheduler.pending_count,
    }


@router.post("/sweep", dependencies=[Depends(require_admin)])
def run_sweep(request: Request) -> dict[str, object]:
    """Purge sessions older than the retention window now."""
    container: AppContainer = request.app.state.container
    return {"purged": container.history_store.sweep()}


@router.post("/clear-all", dependencies=[Depends(require_admin)])
def clear_all(request: Request) -> dict[str, str]:
    """Delete every session and submission."""
    container: AppContainer = request.app.state.container
    container.attendance_service.clear_all()
    return {"status": "ok"}
