# lendtrust/models/enum.py
from enum import Enum


class LendingStatus(str, Enum):
    PENDING = "pending"
    NEGOTIATING = "negotiating"
    ACCEPTED = "accepted"
    ACTIVE = "active"
    RETURN_INITIATED = "return-initiated"
    COMPLETED = "completed"
    DECLINED = "declined"
    CANCELLED = "cancelled"
    DISPUTED = "disputed"


OPEN_STATUSES = (LendingStatus.PENDING, LendingStatus.NEGOTIATING)
ACTIVE_STATUSES = (LendingStatus.ACTIVE, LendingStatus.RETURN_INITIATED)


class ExtensionStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    DENIED = "denied"


class ItemStatus(str, Enum):
    AVAILABLE = "available"
    LENT = "lent"


class ItemCondition(str, Enum):
    EXCELLENT = "excellent"
    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"


class ItemCategory(str, Enum):
    BOOKS = "books"
    ELECTRONICS = "electronics"
    TOOLS = "tools"
    SPORTS = "sports"
    KITCHEN = "kitchen"
    CLOTHING = "clothing"
    GAMES = "games"
    MUSIC = "music"
    OUTDOOR = "outdoor"
    OTHER = "other"


class ActivityType(str, Enum):
    LENDING_REQUEST = "lending_request"
    BORROW_REQUEST = "borrow_request"
    LENDING_ACCEPTED = "lending_accepted"
    LENDING_DECLINED = "lending_declined"
    RETURN_INITIATED = "return_initiated"
    ITEM_RETURNED = "item_returned"
    EXTENSION_REQUESTED = "extension_requested"
    EXTENSION_APPROVED = "extension_approved"
    EXTENSION_DENIED = "extension_denied"
    DUE_REMINDER = "due_reminder"
    OVERDUE = "overdue"
    DISPUTE_FILED = "dispute_filed"
    RATING_RECEIVED = "rating_received"


class ReminderType(str, Enum):
    DUE_SOON = "due_soon"
    OVERDUE = "overdue"


class FailureKind(str, Enum):
    NOT_FOUND = "not-found"
    UNAUTHORIZED = "unauthorized"
    INVALID_STATE = "invalid-state"
    VALIDATION_ERROR = "validation-error"
    CONFLICT = "conflict"
    DATABASE_ERROR = "database-error"


class NegotiationOutcome(str, Enum):
    NEGOTIATED = "negotiated"
    DECLINED = "declined"
    REJECTED = "rejected"
