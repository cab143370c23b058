# lendtrust/models/activity.py
from typing import Optional

from pydantic import BaseModel, Field

from lendtrust.core.utils import new_id, now_ms
from .enum import ActivityType


def activity_id() -> str:
    # Sortable prefix keeps ids unique without a shared counter
    return f"act_{now_ms()}_{new_id()[:8]}"


class Activity(BaseModel):
    id: str = Field(default_factory=activity_id)
    username: str
    type: ActivityType
    message: str
    related_lending_id: Optional[str] = None
    timestamp: int = Field(default_factory=now_ms)
    read: bool = False
