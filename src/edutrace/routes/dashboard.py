"""Dashboard endpoint."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException

from edutrace.auth import get_current_user
from edutrace.clients.data_service import DataServiceClient
from edutrace.db.base import get_db
from edutrace.schemas.dashboard import UserDashboard
from edutrace.services.dashboard import DashboardService

router = APIRouter()


@router.get("", response_model=UserDashboard)
async def get_dashboard(
    db: DataServiceClient = Depends(get_db),
    user_id: UUID = Depends(get_current_user),
) -> UserDashboard:
    service = DashboardService(db)
    dashboard = await service.get_user_dashboard(str(user_id))
    if not dashboard:
        raise HTTPException(status_code=404, detail="Profile not found")
    return dashboard
