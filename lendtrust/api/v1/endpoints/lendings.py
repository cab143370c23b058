# lendtrust/api/v1/endpoints/lendings.py
from typing import Optional

from fastapi import APIRouter, Body, Depends, Query, Request, status
from loguru import logger

from lendtrust.api.v1.views import http_error, lending_view, lending_views, raise_for_result
from lendtrust.core.rate_limiter import limiter
from lendtrust.core.security import get_current_active_user, get_services
from lendtrust.core.config import DUE_SOON_DEFAULT_DAYS
from lendtrust.core.utils import sanitize_input
from lendtrust.models.enum import ItemStatus, NegotiationOutcome
from lendtrust.models.lending import Lending
from lendtrust.models.user import User
from lendtrust.services import Services

router = APIRouter(tags=["Lendings"])


# --- Queries ---
@router.get("")
async def list_lendings(current_user: User = Depends(get_current_active_user), services: Services = Depends(get_services)):
    lendings = await services.lendings.get_user_lendings(current_user.username)
    return {"lendings": await lending_views(services, lendings)}


@router.get("/active")
async def list_active_lendings(
    current_user: User = Depends(get_current_active_user), services: Services = Depends(get_services),
):
    lendings = await services.lendings.get_active_lendings(current_user.username)
    return {"lendings": await lending_views(services, lendings)}


@router.get("/borrowings")
async def list_borrowings(current_user: User = Depends(get_current_active_user), services: Services = Depends(get_services)):
    borrowings = await services.lendings.get_user_borrowings(current_user.username)
    return {"borrowings": await lending_views(services, borrowings, with_lender=True)}


@router.get("/borrowings/active")
async def list_active_borrowings(
    current_user: User = Depends(get_current_active_user), services: Services = Depends(get_services),
):
    borrowings = await services.lendings.get_active_borrowings(current_user.username)
    return {"borrowings": await lending_views(services, borrowings, with_lender=True)}


@router.get("/pending")
async def list_pending_requests(
    current_user: User = Depends(get_current_active_user), services: Services = Depends(get_services),
):
    requests = await services.lendings.get_pending_requests(current_user.username)
    return {"requests": await lending_views(services, requests)}


@router.get("/outgoing")
async def list_outgoing_requests(
    current_user: User = Depends(get_current_active_user), services: Services = Depends(get_services),
):
    requests = await services.lendings.get_outgoing_requests(current_user.username)
    return {"requests": await lending_views(services, requests)}


@router.get("/overdue")
async def list_overdue(current_user: User = Depends(get_current_active_user), services: Services = Depends(get_services)):
    lendings = await services.lendings.get_overdue_lendings(current_user.username)
    borrowings = await services.lendings.get_overdue_borrowings(current_user.username)
    return {
        "lendings": await lending_views(services, lendings, overdue=True),
        "borrowings": await lending_views(services, borrowings, overdue=True, with_lender=True),
    }


@router.get("/due-soon")
async def list_due_soon(
    days: int = Query(DUE_SOON_DEFAULT_DAYS, ge=1, le=365),
    current_user: User = Depends(get_current_active_user),
    services: Services = Depends(get_services),
):
    lendings = await services.lendings.get_due_soon_lendings(current_user.username, days)
    return {"lendings": await lending_views(services, lendings)}


@router.get("/item/{item_id}/history")
async def item_lending_history(
    item_id: str, current_user: User = Depends(get_current_active_user), services: Services = Depends(get_services),
):
    item = await services.items.get_item(item_id)
    if not item:
        raise http_error(status.HTTP_404_NOT_FOUND, "not-found", "Item not found")
    if item.owner_username != current_user.username:
        raise http_error(status.HTTP_403_FORBIDDEN, "forbidden", "Not authorized")
    history = await services.lendings.get_lending_history(item_id)
    return {"history": await lending_views(services, history)}


@router.get("/{lending_id}")
async def get_lending(
    lending_id: str, current_user: User = Depends(get_current_active_user), services: Services = Depends(get_services),
):
    lending = await services.lendings.get_lending(lending_id)
    if not lending:
        raise http_error(status.HTTP_404_NOT_FOUND, "not-found", "Lending not found")
    if not (lending.is_lender(current_user.username) or lending.is_borrower(current_user.username)):
        raise http_error(status.HTTP_403_FORBIDDEN, "forbidden", "Not authorized")
    return {"lending": await lending_view(services, lending, username=current_user.username)}


# --- Creation ---
@router.post("", status_code=status.HTTP_201_CREATED)
@limiter.limit("30/minute")
async def create_lending(
    request: Request,
    lending_in: Lending.Create = Body(...),
    current_user: User = Depends(get_current_active_user),
    services: Services = Depends(get_services),
):
    """Offer an owned, available item to a platform user or to an external borrower."""
    if not lending_in.item_id:
        raise http_error(status.HTTP_400_BAD_REQUEST, "required-item", "Item is required")
    item = await services.items.get_item(lending_in.item_id)
    if not item:
        raise http_error(status.HTTP_404_NOT_FOUND, "not-found", "Item not found")
    if item.owner_username != current_user.username:
        raise http_error(status.HTTP_403_FORBIDDEN, "forbidden", "You can only lend items you own")
    if item.status != ItemStatus.AVAILABLE:
        raise http_error(status.HTTP_400_BAD_REQUEST, "item-unavailable", "Item is currently not available for lending")

    borrower = lending_in.borrower
    if not borrower or not (sanitize_input(borrower.username) or sanitize_input(borrower.name)):
        raise http_error(status.HTTP_400_BAD_REQUEST, "required-borrower", "Borrower information is required")
    if sanitize_input(borrower.username):
        borrower_username = sanitize_input(borrower.username).lower()
        if borrower_username == current_user.username:
            raise http_error(status.HTTP_400_BAD_REQUEST, "self-lending", "Cannot lend items to yourself")
        if not await services.users.user_exists(borrower_username):
            raise http_error(status.HTTP_400_BAD_REQUEST, "borrower-not-found", "Borrower not found on platform")
        borrower = borrower.model_copy(update={"username": borrower_username})
    elif not (sanitize_input(borrower.email) or sanitize_input(borrower.phone)):
        raise http_error(
            status.HTTP_400_BAD_REQUEST, "required-contact", "Contact information is required for non-platform borrowers",
        )

    terms = lending_in.terms.model_copy(update={"is_borrow_request": False})
    if terms.condition_at_lending is None:
        terms = terms.model_copy(update={"condition_at_lending": item.condition})
    result = await services.lendings.create_lending(current_user.username, borrower, item.id, terms)
    lending = raise_for_result(result)
    return {"lending": await lending_view(services, lending, username=current_user.username)}


# --- Transitions ---
@router.post("/{lending_id}/accept")
@limiter.limit("30/minute")
async def accept_lending(
    request: Request,
    lending_id: str,
    current_user: User = Depends(get_current_active_user),
    services: Services = Depends(get_services),
):
    lending = raise_for_result(await services.lendings.accept_lending(lending_id, current_user.username))
    return {"lending": await lending_view(services, lending, username=current_user.username)}


@router.post("/{lending_id}/decline")
@limiter.limit("30/minute")
async def decline_lending(
    request: Request,
    lending_id: str,
    decline_in: Optional[Lending.Decline] = Body(None),
    current_user: User = Depends(get_current_active_user),
    services: Services = Depends(get_services),
):
    decline_in = decline_in or Lending.Decline()
    result = await services.lendings.decline_lending(lending_id, current_user.username, decline_in.reason)
    lending = raise_for_result(result)
    return {"lending": await lending_view(services, lending, username=current_user.username)}


@router.post("/{lending_id}/negotiate")
@limiter.limit("30/minute")
async def negotiate_lending(
    request: Request,
    lending_id: str,
    negotiate_in: Lending.Negotiate = Body(...),
    current_user: User = Depends(get_current_active_user),
    services: Services = Depends(get_services),
):
    if not negotiate_in.new_terms:
        raise http_error(status.HTTP_400_BAD_REQUEST, "required-terms", "New terms are required")
    result = await services.lendings.propose_different_terms(
        lending_id, current_user.username, negotiate_in.new_terms, negotiate_in.message,
    )
    if result.outcome == NegotiationOutcome.DECLINED:
        logger.info(f"Negotiation on lending {lending_id} hit the round limit; lending declined.")
        raise http_error(
            status.HTTP_400_BAD_REQUEST, result.outcome.value, result.reason,
            lending=result.lending.model_dump(mode="json"),
        )
    lending = raise_for_result(result)
    return {"lending": await lending_view(services, lending, username=current_user.username)}


@router.post("/{lending_id}/extension")
@limiter.limit("30/minute")
async def request_extension(
    request: Request,
    lending_id: str,
    extension_in: Lending.ExtensionIn = Body(...),
    current_user: User = Depends(get_current_active_user),
    services: Services = Depends(get_services),
):
    if not extension_in.new_return_date:
        raise http_error(status.HTTP_400_BAD_REQUEST, "required-date", "New return date is required")
    result = await services.lendings.request_extension(
        lending_id, current_user.username, extension_in.new_return_date, extension_in.reason,
    )
    lending = raise_for_result(result)
    return {"lending": await lending_view(services, lending, username=current_user.username)}


@router.post("/{lending_id}/extension/respond")
@limiter.limit("30/minute")
async def respond_to_extension(
    request: Request,
    lending_id: str,
    response_in: Lending.ExtensionResponse = Body(...),
    current_user: User = Depends(get_current_active_user),
    services: Services = Depends(get_services),
):
    if response_in.approved is None:
        raise http_error(status.HTTP_400_BAD_REQUEST, "required-response", "Approval response is required")
    result = await services.lendings.respond_to_extension(lending_id, current_user.username, response_in.approved)
    lending = raise_for_result(result)
    return {"lending": await lending_view(services, lending, username=current_user.username)}


@router.post("/{lending_id}/return/initiate")
@limiter.limit("30/minute")
async def initiate_return(
    request: Request,
    lending_id: str,
    current_user: User = Depends(get_current_active_user),
    services: Services = Depends(get_services),
):
    lending = raise_for_result(await services.lendings.initiate_return(lending_id, current_user.username))
    return {"lending": await lending_view(services, lending, username=current_user.username)}


@router.post("/{lending_id}/return/confirm")
@limiter.limit("30/minute")
async def confirm_return(
    request: Request,
    lending_id: str,
    confirm_in: Optional[Lending.ConfirmReturn] = Body(None),
    current_user: User = Depends(get_current_active_user),
    services: Services = Depends(get_services),
):
    confirm_in = confirm_in or Lending.ConfirmReturn()
    result = await services.lendings.confirm_return(
        lending_id, current_user.username, confirm_in.condition, confirm_in.notes,
    )
    lending = raise_for_result(result)
    return {"lending": await lending_view(services, lending, username=current_user.username)}


@router.post("/{lending_id}/rate")
@limiter.limit("30/minute")
async def rate_lending(
    request: Request,
    lending_id: str,
    rate_in: Lending.Rate = Body(...),
    current_user: User = Depends(get_current_active_user),
    services: Services = Depends(get_services),
):
    result = await services.lendings.add_rating(
        lending_id, current_user.username, rate_in.rating, rate_in.is_lender_rating,
    )
    lending = raise_for_result(result)
    return {"lending": await lending_view(services, lending, username=current_user.username)}


@router.post("/{lending_id}/dispute")
@limiter.limit("10/minute")
async def file_dispute(
    request: Request,
    lending_id: str,
    dispute_in: Lending.Dispute = Body(...),
    current_user: User = Depends(get_current_active_user),
    services: Services = Depends(get_services),
):
    result = await services.lendings.file_dispute(lending_id, current_user.username, dispute_in.reason)
    lending = raise_for_result(result)
    return {"lending": await lending_view(services, lending, username=current_user.username)}
