# lendtrust/models/lending.py
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from lendtrust.core.utils import new_id, now_ms
from .enum import ExtensionStatus, LendingStatus, ItemCondition, ReminderType


class BorrowerInfo(BaseModel):
    """Snapshot of who the borrower was at creation time."""
    name: str = ""
    email: str = ""
    phone: str = ""
    is_platform_user: bool = False


class LendingTerms(BaseModel):
    date_lent: int
    expected_return_date: int
    condition_expectation: str = ""
    notes: str = ""
    require_deposit: bool = False
    deposit_amount: float = Field(default=0.0, ge=0)
    allow_extensions: bool = False


class NegotiationEntry(BaseModel):
    round: int
    proposed_by: str
    terms: Dict[str, Any] = Field(default_factory=dict)
    message: str = ""
    timestamp: int


class ExtensionRequest(BaseModel):
    new_return_date: int
    reason: str = ""
    requested_at: int
    status: ExtensionStatus = ExtensionStatus.PENDING


class Reminder(BaseModel):
    type: ReminderType
    sent_at: int


# --- Request payload parts ---
class BorrowerIn(BaseModel):
    username: Optional[str] = None
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None


class TermsIn(BaseModel):
    """Raw terms as submitted; dates are ISO strings or epoch milliseconds."""
    date_lent: Optional[Any] = None
    expected_return_date: Optional[Any] = None
    condition_expectation: Optional[str] = None
    notes: Optional[str] = None
    condition_at_lending: Optional[ItemCondition] = None
    require_deposit: bool = False
    deposit_amount: Optional[Any] = None
    allow_extensions: bool = False
    is_borrow_request: bool = False


class Lending(BaseModel):
    id: str = Field(default_factory=new_id)
    item_id: str
    lender_username: str
    borrower_username: Optional[str] = None
    borrower_info: BorrowerInfo
    terms: LendingTerms
    status: LendingStatus
    is_borrow_request: bool = False

    negotiation_rounds: int = Field(default=0, ge=0)
    negotiation_history: List[NegotiationEntry] = Field(default_factory=list)

    condition_at_lending: ItemCondition = ItemCondition.GOOD
    condition_at_return: Optional[ItemCondition] = None
    actual_return_date: Optional[int] = None
    return_initiated_at: Optional[int] = None
    return_notes: Optional[str] = None

    decline_reason: Optional[str] = None
    declined_by: Optional[str] = None

    extension_request: Optional[ExtensionRequest] = None

    lender_rating: Optional[int] = Field(default=None, ge=1, le=5)
    borrower_rating: Optional[int] = Field(default=None, ge=1, le=5)

    dispute_reason: Optional[str] = None
    disputed_by: Optional[str] = None

    reminders: List[Reminder] = Field(default_factory=list)
    created_at: int = Field(default_factory=now_ms)
    updated_at: int = Field(default_factory=now_ms)

    def is_lender(self, username: str) -> bool:
        return self.lender_username == username.lower()

    def is_borrower(self, username: str) -> bool:
        return self.borrower_username is not None and self.borrower_username == username.lower()

    def other_party(self, username: str) -> Optional[str]:
        """The counterpart of `username` in this lending (None for external borrowers)."""
        return self.borrower_username if self.is_lender(username) else self.lender_username

    # --- Request schemas ---
    class Create(BaseModel):
        item_id: Optional[str] = None
        borrower: Optional[BorrowerIn] = None
        terms: TermsIn = Field(default_factory=TermsIn)

    class BorrowRequest(BaseModel):
        message: Optional[str] = None
        proposed_return_date: Optional[Any] = None

    class Decline(BaseModel):
        reason: Optional[str] = None

    class Negotiate(BaseModel):
        new_terms: Dict[str, Any] = Field(default_factory=dict)
        message: Optional[str] = None

    class ExtensionIn(BaseModel):
        new_return_date: Optional[Any] = None
        reason: Optional[str] = None

    class ExtensionResponse(BaseModel):
        approved: Optional[bool] = None

    class ConfirmReturn(BaseModel):
        condition: Optional[ItemCondition] = None
        notes: Optional[str] = None

    class Rate(BaseModel):
        rating: Any = None
        is_lender_rating: bool = False

    class Dispute(BaseModel):
        reason: Optional[str] = None

