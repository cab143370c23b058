# lendtrust/api/v1/endpoints/users.py
from fastapi import APIRouter, Body, Depends, Query, Request, status
from loguru import logger

from lendtrust.api.v1.views import http_error
from lendtrust.core.rate_limiter import limiter
from lendtrust.core.security import get_current_active_user, get_services
from lendtrust.models.user import User
from lendtrust.services import Services

router = APIRouter(tags=["Users"])


@router.get("/search")
@limiter.limit("60/minute")
async def search_users(
    request: Request,
    q: str = Query("", max_length=50),
    current_user: User = Depends(get_current_active_user),
    services: Services = Depends(get_services),
):
    """Public profiles whose username or display name contains `q`, excluding the caller."""
    profiles = await services.users.search_users(q)
    return {"users": [p.model_dump() for p in profiles if p.username != current_user.username]}


@router.patch("/me")
@limiter.limit("20/minute")
async def update_me(
    request: Request,
    user_in: User.Update = Body(...),
    current_user: User = Depends(get_current_active_user),
    services: Services = Depends(get_services),
):
    updated = await services.users.update_user(current_user.username, user_in.model_dump(exclude_unset=True))
    if not updated:
        raise http_error(status.HTTP_404_NOT_FOUND, "not-found", "User not found")
    logger.info(f"User '{current_user.username}' updated their profile.")
    return {"user": services.users.to_public_profile(updated).model_dump()}


@router.get("/{username}")
async def get_public_profile(
    username: str, current_user: User = Depends(get_current_active_user), services: Services = Depends(get_services),
):
    profile = await services.users.get_public_profile(username)
    if not profile:
        raise http_error(status.HTTP_404_NOT_FOUND, "not-found", "User not found")
    return {"user": profile.model_dump()}
