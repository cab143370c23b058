# lendtrust/api/v1/endpoints/activities.py
from fastapi import APIRouter, Depends, status

from lendtrust.api.v1.views import http_error
from lendtrust.core.security import get_current_active_user, get_services
from lendtrust.models.user import User
from lendtrust.services import Services

router = APIRouter(tags=["Activities"])


@router.get("")
async def list_activities(current_user: User = Depends(get_current_active_user), services: Services = Depends(get_services)):
    activities = await services.activities.get_activities_for_user(current_user.username)
    return {"activities": [a.model_dump(mode="json") for a in activities]}


@router.get("/unread-count")
async def unread_count(current_user: User = Depends(get_current_active_user), services: Services = Depends(get_services)):
    return {"count": await services.activities.get_unread_count(current_user.username)}


@router.post("/read-all")
async def mark_all_read(current_user: User = Depends(get_current_active_user), services: Services = Depends(get_services)):
    return {"marked": await services.activities.mark_all_as_read(current_user.username)}


@router.post("/{activity_id}/read")
async def mark_read(
    activity_id: str, current_user: User = Depends(get_current_active_user), services: Services = Depends(get_services),
):
    if not await services.activities.mark_as_read(current_user.username, activity_id):
        raise http_error(status.HTTP_404_NOT_FOUND, "not-found", "Activity not found")
    return {"success": True}
