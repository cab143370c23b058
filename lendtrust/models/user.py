# lendtrust/models/user.py
from typing import Dict, Optional

from pydantic import BaseModel, Field

from lendtrust.core.trust import DEFAULT_TRUST_SCORE
from lendtrust.core.utils import now_ms


class User(BaseModel):
    """A platform user together with the trust statistics the lending flow feeds."""
    username: str
    display_name: str
    email: str = ""
    phone: str = ""
    hashed_password: str = ""
    disabled: bool = False

    # --- Trust statistics ---
    trust_score: int = Field(default=DEFAULT_TRUST_SCORE, ge=0, le=100)
    total_lendings: int = 0
    total_borrowings: int = 0
    on_time_returns: int = 0
    late_returns: int = 0
    disputes_against: int = 0
    total_ratings: int = 0
    rating_sum: int = 0

    created_at: int = Field(default_factory=now_ms)
    last_active: int = Field(default_factory=now_ms)

    # --- Pydantic Schemas ---
    class Create(BaseModel):
        username: str
        password: str = Field(..., min_length=6)
        display_name: Optional[str] = None
        email: Optional[str] = None
        phone: Optional[str] = None

    class Update(BaseModel):
        display_name: Optional[str] = None
        email: Optional[str] = None
        phone: Optional[str] = None

    class PublicProfile(BaseModel):
        username: str
        display_name: str
        trust_score: int
        badge: Dict[str, str]
        total_lendings: int
        total_borrowings: int
        on_time_rate: int
        member_since: int

    class Me(BaseModel):
        username: str
        display_name: str
        email: str
        phone: str
        trust_score: int
        badge: Dict[str, str]
        total_lendings: int
        total_borrowings: int
        on_time_returns: int
        late_returns: int
        disputes_against: int
        total_ratings: int
