# lendtrust/services/activities.py
from typing import List, Optional

from loguru import logger

from lendtrust.core.config import ACTIVITY_LIMIT_PER_USER
from lendtrust.db.repositories import ActivityRepository
from lendtrust.models.activity import Activity
from lendtrust.models.enum import ActivityType


def _plural(count: int, word: str) -> str:
    return f"{count} {word}" + ("s" if count != 1 else "")


class ActivityNotifier:
    """
    Per-user notification feed.

    Delivery is best-effort: `add_activity` logs and swallows any failure so a
    broken feed never undoes the lending transition that triggered it.
    """

    def __init__(self, repository: ActivityRepository, limit_per_user: int = ACTIVITY_LIMIT_PER_USER):
        self.repository = repository
        self.limit_per_user = limit_per_user

    async def add_activity(
        self, username: Optional[str], type: ActivityType, message: str, related_lending_id: Optional[str] = None,
    ) -> Optional[Activity]:
        if not username:
            return None
        try:
            activity = Activity(
                username=username.lower(), type=type, message=message, related_lending_id=related_lending_id,
            )
            await self.repository.add(activity)
            removed = await self.repository.trim(activity.username, self.limit_per_user)
            if removed: logger.debug(f"Trimmed {removed} old activities for '{activity.username}'.")
            return activity
        except Exception as e:
            logger.error(f"Error adding activity for '{username}': {e}")
            return None

    async def get_activities_for_user(self, username: str) -> List[Activity]:
        return await self.repository.list_for_user(username.lower())

    async def get_unread_count(self, username: str) -> int:
        return await self.repository.count_unread(username.lower())

    async def mark_as_read(self, username: str, activity_id: str) -> bool:
        return await self.repository.mark_read(username.lower(), activity_id)

    async def mark_all_as_read(self, username: str) -> int:
        return await self.repository.mark_all_read(username.lower())

    # --- Notification helpers ---
    async def notify_lending_request(self, borrower, lender_name, item_name, lending_id):
        return await self.add_activity(
            borrower, ActivityType.LENDING_REQUEST, f'{lender_name} wants to lend you "{item_name}"', lending_id)

    async def notify_borrow_request(self, owner, requester_name, item_name, lending_id):
        return await self.add_activity(
            owner, ActivityType.BORROW_REQUEST, f'{requester_name} wants to borrow "{item_name}"', lending_id)

    async def notify_lending_accepted(self, lender, borrower_name, item_name, lending_id):
        return await self.add_activity(
            lender, ActivityType.LENDING_ACCEPTED,
            f'{borrower_name} accepted your lending request for "{item_name}"', lending_id)

    async def notify_borrow_approved(self, borrower, owner_name, item_name, lending_id):
        return await self.add_activity(
            borrower, ActivityType.LENDING_ACCEPTED,
            f'{owner_name} approved your request to borrow "{item_name}"', lending_id)

    async def notify_lending_declined(self, lender, borrower_name, item_name, lending_id):
        return await self.add_activity(
            lender, ActivityType.LENDING_DECLINED,
            f'{borrower_name} declined your lending request for "{item_name}"', lending_id)

    async def notify_borrow_declined(self, borrower, owner_name, item_name, lending_id):
        return await self.add_activity(
            borrower, ActivityType.LENDING_DECLINED,
            f'{owner_name} declined your request to borrow "{item_name}"', lending_id)

    async def notify_return_initiated(self, lender, borrower_name, item_name, lending_id):
        return await self.add_activity(
            lender, ActivityType.RETURN_INITIATED, f'{borrower_name} is returning "{item_name}"', lending_id)

    async def notify_item_returned(self, borrower, lender_name, item_name, lending_id):
        return await self.add_activity(
            borrower, ActivityType.ITEM_RETURNED, f'You have returned "{item_name}" to {lender_name}', lending_id)

    async def notify_extension_requested(self, lender, borrower_name, item_name, lending_id):
        return await self.add_activity(
            lender, ActivityType.EXTENSION_REQUESTED,
            f'{borrower_name} requested an extension for "{item_name}"', lending_id)

    async def notify_extension_approved(self, borrower, lender_name, item_name, lending_id):
        return await self.add_activity(
            borrower, ActivityType.EXTENSION_APPROVED,
            f'{lender_name} approved your extension request for "{item_name}"', lending_id)

    async def notify_extension_denied(self, borrower, lender_name, item_name, lending_id):
        return await self.add_activity(
            borrower, ActivityType.EXTENSION_DENIED,
            f'{lender_name} denied your extension request for "{item_name}"', lending_id)

    async def notify_due_reminder(self, borrower, item_name, days_left, lending_id):
        if days_left > 0:
            message = f'Reminder: "{item_name}" is due in {_plural(days_left, "day")}'
        else:
            message = f'Reminder: "{item_name}" is due today'
        return await self.add_activity(borrower, ActivityType.DUE_REMINDER, message, lending_id)

    async def notify_overdue(self, borrower, item_name, days_overdue, lending_id):
        return await self.add_activity(
            borrower, ActivityType.OVERDUE, f'"{item_name}" is {_plural(days_overdue, "day")} overdue', lending_id)

    async def notify_dispute_filed(self, target, filed_by_name, item_name, lending_id):
        return await self.add_activity(
            target, ActivityType.DISPUTE_FILED, f'{filed_by_name} filed a dispute regarding "{item_name}"', lending_id)

    async def notify_rating_received(self, username, rater_name, rating, lending_id):
        return await self.add_activity(
            username, ActivityType.RATING_RECEIVED, f"{rater_name} gave you a {rating}-star rating", lending_id)
