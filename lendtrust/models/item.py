# lendtrust/models/item.py
from typing import List, Optional

from pydantic import BaseModel, Field

from lendtrust.core.utils import new_id, now_ms
from .enum import ItemCategory, ItemCondition, ItemStatus


class LendingHistoryEntry(BaseModel):
    lending_id: str
    borrower: str
    date_lent: int
    date_returned: Optional[int] = None
    condition_at_lending: Optional[ItemCondition] = None
    condition_at_return: Optional[ItemCondition] = None


class Item(BaseModel):
    """A lendable item owned by a platform user."""
    id: str = Field(default_factory=new_id)
    owner_username: str
    name: str = Field(..., max_length=200)
    description: str = ""
    category: ItemCategory
    condition: ItemCondition
    estimated_value: float = Field(default=0.0, ge=0)
    notes: str = ""
    is_public: bool = False

    status: ItemStatus = ItemStatus.AVAILABLE
    current_lending_id: Optional[str] = None
    lending_history: List[LendingHistoryEntry] = Field(default_factory=list)

    created_at: int = Field(default_factory=now_ms)
    updated_at: int = Field(default_factory=now_ms)

    # --- Pydantic Schemas ---
    class Create(BaseModel):
        name: str = Field(..., max_length=200)
        description: Optional[str] = None
        category: str
        condition: str
        estimated_value: Optional[float] = None
        notes: Optional[str] = None
        is_public: bool = False
