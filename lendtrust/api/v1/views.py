# lendtrust/api/v1/views.py
"""Response shaping shared by the lending and item routers."""
import math
from typing import Any, Dict, List, Optional

from fastapi import HTTPException, status

from lendtrust.core.utils import DAY_MS, days_until
from lendtrust.models.enum import ACTIVE_STATUSES, FailureKind
from lendtrust.models.lending import Lending
from lendtrust.models.result import LendingResult
from lendtrust.services import Services

KIND_STATUS = {
    FailureKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    FailureKind.UNAUTHORIZED: status.HTTP_403_FORBIDDEN,
    FailureKind.INVALID_STATE: status.HTTP_400_BAD_REQUEST,
    FailureKind.VALIDATION_ERROR: status.HTTP_400_BAD_REQUEST,
    FailureKind.CONFLICT: status.HTTP_409_CONFLICT,
    FailureKind.DATABASE_ERROR: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def http_error(status_code: int, error: str, message: str, **extra: Any) -> HTTPException:
    return HTTPException(status_code=status_code, detail={"error": error, "message": message, **extra})


def raise_for_result(result: LendingResult) -> Lending:
    """Returns the lending of a successful result, raises the mapped HTTP error otherwise."""
    if result.success:
        return result.lending
    kind = result.kind or FailureKind.VALIDATION_ERROR
    raise http_error(KIND_STATUS[kind], kind.value, result.reason or "Request failed")


async def lending_view(
    services: Services,
    lending: Lending,
    username: Optional[str] = None,
    overdue: bool = False,
    with_lender: bool = False,
) -> Dict[str, Any]:
    """
    Serializes a lending with its item, the borrower's public profile and the
    due-date fields. `with_lender` adds the lender's profile; passing `username`
    adds it too, along with the caller's role.
    """
    now = services.lendings.clock()
    data = lending.model_dump(mode="json")

    item = await services.items.get_item(lending.item_id)
    data["item"] = item.model_dump(mode="json") if item else None
    borrower = await services.users.get_public_profile(lending.borrower_username)
    data["borrower"] = borrower.model_dump() if borrower else None

    days_until_due = days_until(lending.terms.expected_return_date, now)
    data["days_until_due"] = days_until_due
    data["is_overdue"] = days_until_due < 0 and lending.status in ACTIVE_STATUSES
    if overdue:
        data["days_overdue"] = math.ceil((now - lending.terms.expected_return_date) / DAY_MS)
    if username or with_lender:
        lender = await services.users.get_public_profile(lending.lender_username)
        data["lender"] = lender.model_dump() if lender else None
    if username:
        data["is_lender"] = lending.is_lender(username)
        data["is_borrower"] = lending.is_borrower(username)
    return data


async def lending_views(
    services: Services, lendings: List[Lending], overdue: bool = False, with_lender: bool = False,
) -> List[Dict[str, Any]]:
    return [await lending_view(services, lending, overdue=overdue, with_lender=with_lender) for lending in lendings]
