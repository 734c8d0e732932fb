"""User preference and activity API endpoints."""
import logging

from fastapi import APIRouter, Depends, HTTPException, Request

from ..schemas.users import ActivityReport, ApiResponse, PreferenceUpdate, UserCountResponse
from ..services.registry import UserRegistry

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["users"])


def get_registry(request: Request) -> UserRegistry:
    """Dependency to get the process-wide user registry."""
    return request.app.state.registry


@router.post("/preferences", response_model=ApiResponse)
async def update_preferences(
    update: PreferenceUpdate,
    registry: UserRegistry = Depends(get_registry),
):
    """Create or update a user's notification preferences.
    
    The app sends its full preference set on every change. Switching a
    feature on restarts its tracking; switching it off clears it.
    """
    _, created = await registry.upsert(update)
    return ApiResponse(
        success=True,
        message="User registered successfully" if created else "Preferences updated successfully",
    )


@router.post("/activity", response_model=ApiResponse)
async def report_activity(
    report: ActivityReport,
    registry: UserRegistry = Depends(get_registry),
):
    """Record when the app was last in the foreground."""
    state = await registry.report_activity(report)
    if state is None:
        raise HTTPException(status_code=404, detail="User not found")
    
    return ApiResponse(success=True, message="Activity recorded")


@router.get("/users/count", response_model=UserCountResponse)
async def get_user_count(registry: UserRegistry = Depends(get_registry)):
    """Get count of registered users (for admin dashboard)."""
    return UserCountResponse(**registry.counts())
