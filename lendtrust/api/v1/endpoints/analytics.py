# lendtrust/api/v1/endpoints/analytics.py
from fastapi import APIRouter, Depends, status

from lendtrust.api.v1.views import http_error
from lendtrust.core.security import get_current_active_user, get_services
from lendtrust.models.report import DashboardReport
from lendtrust.models.user import User
from lendtrust.services import Services

router = APIRouter(tags=["Analytics"])


@router.get("/dashboard", response_model=DashboardReport, summary="Get the caller's lending dashboard")
async def get_dashboard(current_user: User = Depends(get_current_active_user), services: Services = Depends(get_services)):
    """Totals for the caller as lender and borrower, plus their trust statistics."""
    report = await services.lendings.get_dashboard(current_user.username)
    if report is None:
        raise http_error(status.HTTP_404_NOT_FOUND, "not-found", "User not found")
    return report
