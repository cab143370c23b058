# lendtrust/models/report.py
from typing import Dict

from pydantic import BaseModel


class LendingSummary(BaseModel):
    """The caller's side as an item owner."""
    total_items: int
    available_items: int
    lent_items: int
    total_lendings: int
    active_lendings: int
    overdue_lendings: int
    total_value_on_loan: float


class BorrowingSummary(BaseModel):
    total_borrowings: int
    active_borrowings: int
    overdue_borrowings: int
    completed_borrowings: int
    on_time_rate: int


class TrustSummary(BaseModel):
    score: int
    badge: Dict[str, str]
    total_ratings: int
    on_time_returns: int
    late_returns: int


class DashboardReport(BaseModel):
    """Response for the personal dashboard."""
    lending: LendingSummary
    borrowing: BorrowingSummary
    trust: TrustSummary
