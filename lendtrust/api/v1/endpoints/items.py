# lendtrust/api/v1/endpoints/items.py
from typing import Optional

from fastapi import APIRouter, Body, Depends, Request, status

from lendtrust.api.v1.views import http_error, lending_view, raise_for_result
from lendtrust.core.rate_limiter import limiter
from lendtrust.core.security import get_current_active_user, get_services
from lendtrust.core.utils import sanitize_input, today_ms
from lendtrust.models.enum import ItemStatus
from lendtrust.models.item import Item
from lendtrust.models.lending import BorrowerIn, Lending, TermsIn
from lendtrust.models.user import User
from lendtrust.services import Services

router = APIRouter(tags=["Items"])


async def get_item_or_404(item_id: str, services: Services) -> Item:
    item = await services.items.get_item(item_id)
    if not item:
        raise http_error(status.HTTP_404_NOT_FOUND, "not-found", "Item not found")
    return item


# --- POST /items ---
@router.post("", status_code=status.HTTP_201_CREATED)
@limiter.limit("30/minute")
async def create_item(
    request: Request,
    item_in: Item.Create = Body(...),
    current_user: User = Depends(get_current_active_user),
    services: Services = Depends(get_services),
):
    item, reason = await services.items.create_item(current_user.username, item_in)
    if not item:
        raise http_error(status.HTTP_400_BAD_REQUEST, "validation-error", reason)
    return {"item": item.model_dump(mode="json")}


# --- GET /items ---
@router.get("")
async def list_my_items(current_user: User = Depends(get_current_active_user), services: Services = Depends(get_services)):
    items = await services.items.get_user_items(current_user.username)
    return {"items": [item.model_dump(mode="json") for item in items]}


@router.get("/public")
async def list_public_items(
    current_user: User = Depends(get_current_active_user), services: Services = Depends(get_services),
):
    """Available public items of other users, with the owner's public profile."""
    items = await services.items.get_public_items(exclude_owner=current_user.username)
    result = []
    for item in items:
        owner = await services.users.get_public_profile(item.owner_username)
        result.append({**item.model_dump(mode="json"), "owner": owner.model_dump() if owner else None})
    return {"items": result}


@router.get("/{item_id}")
async def get_item(
    item_id: str, current_user: User = Depends(get_current_active_user), services: Services = Depends(get_services),
):
    item = await get_item_or_404(item_id, services)
    if item.owner_username != current_user.username and not item.is_public:
        raise http_error(status.HTTP_403_FORBIDDEN, "forbidden", "Not authorized")
    return {"item": item.model_dump(mode="json")}


# --- POST /items/{item_id}/borrow-request ---
@router.post("/{item_id}/borrow-request", status_code=status.HTTP_201_CREATED)
@limiter.limit("20/minute")
async def request_to_borrow(
    request: Request,
    item_id: str,
    request_in: Optional[Lending.BorrowRequest] = Body(None),
    current_user: User = Depends(get_current_active_user),
    services: Services = Depends(get_services),
):
    """Ask the owner of a public item to lend it; the owner accepts or declines."""
    request_in = request_in or Lending.BorrowRequest()
    item = await get_item_or_404(item_id, services)
    if not item.is_public:
        raise http_error(status.HTTP_403_FORBIDDEN, "not-public", "This item is not available for public borrowing")
    if item.owner_username == current_user.username:
        raise http_error(status.HTTP_400_BAD_REQUEST, "own-item", "You cannot borrow your own item")
    if item.status != ItemStatus.AVAILABLE:
        raise http_error(status.HTTP_400_BAD_REQUEST, "not-available", "This item is currently not available")
    if not request_in.proposed_return_date:
        raise http_error(status.HTTP_400_BAD_REQUEST, "required-date", "Proposed return date is required")

    terms = TermsIn(
        date_lent=today_ms(services.lendings.clock()),
        expected_return_date=request_in.proposed_return_date,
        notes=sanitize_input(request_in.message),
        condition_at_lending=item.condition,
        require_deposit=False,
        allow_extensions=True,
        is_borrow_request=True,
    )
    result = await services.lendings.create_lending(
        item.owner_username, BorrowerIn(
            username=current_user.username, name=current_user.display_name,
            email=current_user.email, phone=current_user.phone,
        ), item.id, terms,
    )
    lending = raise_for_result(result)
    return {
        "lending": await lending_view(services, lending, username=current_user.username),
        "message": "Borrow request sent successfully",
    }
