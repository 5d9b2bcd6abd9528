from typing import Optional

from fastapi import APIRouter, HTTPException, Request

from app.core.config import settings
from app.core.logger import logger
from app.models.dashboard import DashboardSnapshot
from app.services.projector import build_dashboard, get_profile
from app.services.sync_controller import BookingSyncController

router = APIRouter()

def get_controller(request: Request) -> BookingSyncController:
    controller = getattr(request.app.state, "controller", None)
    if controller is None:
        raise HTTPException(status_code=503, detail="Bookings are not being synced yet")
    return controller

def _snapshot(controller: BookingSyncController, variant: Optional[str]) -> DashboardSnapshot:
    try:
        profile = get_profile(variant or settings.DASHBOARD_VARIANT)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return build_dashboard(
        controller.bookings,
        profile,
        loading=controller.loading,
        notices=controller.notices,
    )

@router.get("/bookings", response_model=DashboardSnapshot)
async def get_bookings(request: Request, variant: Optional[str] = None):
    """
    Upcoming and past bookings, formatted for display.
    Re-partitioned on every call against the current time.
    """
    controller = get_controller(request)
    return _snapshot(controller, variant)

@router.post("/bookings/refresh", response_model=DashboardSnapshot)
async def refresh_bookings(request: Request, variant: Optional[str] = None):
    controller = get_controller(request)
    logger.info("🔁 Manual bookings refresh requested")
    await controller.initialize()
    return _snapshot(controller, variant)
