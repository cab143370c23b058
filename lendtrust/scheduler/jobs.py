# lendtrust/scheduler/jobs.py
"""Periodic jobs run by the APScheduler instance in main.py."""
import math

from loguru import logger

from lendtrust.core.config import REMINDER_WINDOW_DAYS
from lendtrust.core.utils import DAY_MS, days_until, today_ms
from lendtrust.models.enum import ReminderType
from lendtrust.models.lending import Lending
from lendtrust.services import Services


def _sent_today(lending: Lending, reminder_type: ReminderType, now: int) -> bool:
    day_start = today_ms(now)
    return any(r.type == reminder_type and r.sent_at >= day_start for r in lending.reminders)


async def send_due_reminders(services: Services, window_days: int = REMINDER_WINDOW_DAYS) -> dict:
    """
    Notifies borrowers of active lendings that are due within `window_days` or
    already overdue. Each reminder type goes out at most once per lending per day.
    """
    now = services.lendings.clock()
    sent = {ReminderType.DUE_SOON: 0, ReminderType.OVERDUE: 0}
    errors = 0
    lendings = await services.lendings.get_all_active_lendings()
    logger.info(f"Running send_due_reminders over {len(lendings)} active lendings.")

    for lending in lendings:
        if not lending.borrower_username:
            continue
        expected = lending.terms.expected_return_date
        if expected < now:
            reminder_type = ReminderType.OVERDUE
        elif expected - now <= window_days * DAY_MS:
            reminder_type = ReminderType.DUE_SOON
        else:
            continue
        if _sent_today(lending, reminder_type, now):
            continue

        result = await services.lendings.add_reminder(lending.id, reminder_type)
        if not result.success:
            logger.error(f"Could not record {reminder_type.value} reminder for lending {lending.id}: {result.reason}")
            errors += 1
            continue

        item = await services.items.get_item(lending.item_id)
        item_name = item.name if item else "an item"
        if reminder_type == ReminderType.OVERDUE:
            days_overdue = math.ceil((now - expected) / DAY_MS)
            await services.activities.notify_overdue(lending.borrower_username, item_name, days_overdue, lending.id)
        else:
            await services.activities.notify_due_reminder(
                lending.borrower_username, item_name, max(0, days_until(expected, now)), lending.id,
            )
        sent[reminder_type] += 1

    logger.info(
        f"send_due_reminders finished. Due soon: {sent[ReminderType.DUE_SOON]}, "
        f"Overdue: {sent[ReminderType.OVERDUE]}, Errors: {errors}"
    )
    return {"due_soon": sent[ReminderType.DUE_SOON], "overdue": sent[ReminderType.OVERDUE], "errors": errors}
