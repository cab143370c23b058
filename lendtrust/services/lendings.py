# lendtrust/services/lendings.py
"""
Lending lifecycle state machine.

    pending/negotiating --accept--> active --initiate_return--> return-initiated --confirm_return--> completed
    pending/negotiating --decline / 4th negotiation--> declined
    active/return-initiated --file_dispute--> disputed

Every mutating operation loads the record under a per-lending lock, validates,
mutates, saves, and only then runs the cross-entity effects (item lock, user
counters and trust score, notifications). Effects are sequential and not
transactional; a failing effect is logged and does not roll back the transition.
"""
import functools
from typing import Any, Callable, Dict, List, Optional, Union

from loguru import logger

from lendtrust.core.config import DUE_SOON_DEFAULT_DAYS, MAX_NEGOTIATION_ROUNDS
from lendtrust.core.trust import get_trust_badge, round_half_up
from lendtrust.core.utils import DAY_MS, now_ms, parse_float, sanitize_input, to_millis
from lendtrust.db.repositories import LendingRepository, PersistenceError
from lendtrust.models.enum import (
    ACTIVE_STATUSES, OPEN_STATUSES, ExtensionStatus, FailureKind, ItemCondition, ItemStatus, LendingStatus, ReminderType,
)
from lendtrust.models.item import LendingHistoryEntry
from lendtrust.models.lending import (
    BorrowerIn, BorrowerInfo, ExtensionRequest, Lending, LendingTerms, NegotiationEntry, Reminder, TermsIn,
)
from lendtrust.models.report import BorrowingSummary, DashboardReport, LendingSummary, TrustSummary
from lendtrust.models.result import LendingResult, NegotiationResult
from .activities import ActivityNotifier
from .items import ItemRegistry
from .users import UserDirectory

AUTO_DECLINE_REASON = "Maximum negotiation rounds exceeded"


def _guarded(result_cls=LendingResult):
    """Turns a store failure inside an operation into a `database-error` result."""
    def decorator(func):
        @functools.wraps(func)
        async def wrapper(self, *args, **kwargs):
            try:
                return await func(self, *args, **kwargs)
            except PersistenceError:
                logger.exception(f"Database error during {func.__name__}")
                failure = LendingResult.fail(FailureKind.DATABASE_ERROR, "Database error")
                return NegotiationResult.rejected(failure) if result_cls is NegotiationResult else failure
        return wrapper
    return decorator


def _parse_rating(rating: Any) -> Optional[int]:
    if isinstance(rating, bool):
        return None
    if isinstance(rating, int):
        return rating
    if isinstance(rating, float) and rating.is_integer():
        return int(rating)
    if isinstance(rating, str) and rating.strip().isdecimal():
        return int(rating.strip())
    return None


class LendingService:
    def __init__(
        self,
        repository: LendingRepository,
        users: UserDirectory,
        items: ItemRegistry,
        activities: ActivityNotifier,
        clock: Callable[[], int] = now_ms,
        max_negotiation_rounds: int = MAX_NEGOTIATION_ROUNDS,
    ):
        self.repository = repository
        self.users = users
        self.items = items
        self.activities = activities
        self.clock = clock
        self.max_negotiation_rounds = max_negotiation_rounds

    # --- Helpers ---
    async def _item_name(self, item_id: str) -> str:
        item = await self.items.get_item(item_id)
        return item.name if item else "an item"

    async def _commit(self, lending: Lending) -> Lending:
        lending.updated_at = self.clock()
        return await self.repository.save(lending)

    async def _run_effects(self, action: str, lending: Lending, effects) -> None:
        try:
            await effects()
        except PersistenceError:
            logger.exception(f"Side effects after '{action}' failed for lending {lending.id}; transition kept.")

    # --- Creation ---
    @_guarded()
    async def create_lending(
        self,
        lender_username: str,
        borrower_info: Union[BorrowerIn, Dict[str, Any]],
        item_id: str,
        terms: Union[TermsIn, Dict[str, Any]],
    ) -> LendingResult:
        if isinstance(borrower_info, dict): borrower_info = BorrowerIn.model_validate(borrower_info)
        if isinstance(terms, dict): terms = TermsIn.model_validate(terms)

        if not terms.date_lent:
            return LendingResult.invalid("Date lent is required")
        if not terms.expected_return_date:
            return LendingResult.invalid("Expected return date is required")
        date_lent = to_millis(terms.date_lent)
        expected_return = to_millis(terms.expected_return_date)
        if date_lent is None or expected_return is None:
            return LendingResult.invalid("Invalid date format")
        if expected_return <= date_lent:
            return LendingResult.invalid("Return date must be after lending date")

        deposit_amount = 0.0
        if terms.require_deposit:
            deposit_amount = parse_float(terms.deposit_amount)
            if deposit_amount <= 0:
                return LendingResult.invalid("Deposit amount must be greater than zero")

        borrower_username = borrower_info.username.strip().lower() if borrower_info.username else None
        now = self.clock()
        lending = Lending(
            item_id=item_id,
            lender_username=lender_username.lower(),
            borrower_username=borrower_username,
            borrower_info=BorrowerInfo(
                name=sanitize_input(borrower_info.name or borrower_info.username),
                email=sanitize_input(borrower_info.email),
                phone=sanitize_input(borrower_info.phone),
                is_platform_user=bool(borrower_username),
            ),
            terms=LendingTerms(
                date_lent=date_lent,
                expected_return_date=expected_return,
                condition_expectation=sanitize_input(terms.condition_expectation),
                notes=sanitize_input(terms.notes),
                require_deposit=bool(terms.require_deposit),
                deposit_amount=deposit_amount,
                allow_extensions=bool(terms.allow_extensions),
            ),
            # A non-platform borrower cannot accept, so the lending is in effect immediately
            status=LendingStatus.PENDING if borrower_username else LendingStatus.ACTIVE,
            is_borrow_request=bool(terms.is_borrow_request),
            condition_at_lending=terms.condition_at_lending or ItemCondition.GOOD,
            created_at=now,
            updated_at=now,
        )
        await self.repository.add(lending)
        logger.info(
            f"Lending {lending.id} created: item={item_id} lender={lending.lender_username} "
            f"borrower={borrower_username or '(external)'} status={lending.status.value}"
        )

        async def effects():
            item_name = await self._item_name(item_id)
            if not borrower_username:
                await self.items.set_item_lent(item_id, lending.id)
                await self.users.increment_lendings(lending.lender_username)
            elif lending.is_borrow_request:
                requester = await self.users.display_name(borrower_username)
                await self.activities.notify_borrow_request(lending.lender_username, requester, item_name, lending.id)
            else:
                lender = await self.users.display_name(lending.lender_username)
                await self.activities.notify_lending_request(borrower_username, lender, item_name, lending.id)

        await self._run_effects("create", lending, effects)
        return LendingResult.ok(lending)

    # --- Acceptance / decline / negotiation ---
    @_guarded()
    async def accept_lending(self, lending_id: str, username: str) -> LendingResult:
        async with self.repository.lock(lending_id):
            lending = await self.repository.get(lending_id)
            if not lending:
                return LendingResult.not_found()
            if lending.is_borrow_request:
                if not lending.is_lender(username):
                    return LendingResult.unauthorized("Only the item owner can accept borrow requests")
            elif not lending.is_borrower(username):
                return LendingResult.unauthorized("Only the borrower can accept lending offers")
            if lending.status not in OPEN_STATUSES:
                return LendingResult.invalid_state("Cannot accept lending in current state")

            lending.status = LendingStatus.ACTIVE
            await self._commit(lending)
        logger.info(f"Lending {lending_id} accepted by '{username.lower()}'.")

        async def effects():
            await self.items.set_item_lent(lending.item_id, lending.id)
            await self.users.increment_lendings(lending.lender_username)
            if lending.borrower_username:
                await self.users.increment_borrowings(lending.borrower_username)
            item_name = await self._item_name(lending.item_id)
            accepter = await self.users.display_name(username)
            if lending.is_borrow_request:
                await self.activities.notify_borrow_approved(lending.borrower_username, accepter, item_name, lending.id)
            else:
                await self.activities.notify_lending_accepted(lending.lender_username, accepter, item_name, lending.id)

        await self._run_effects("accept", lending, effects)
        return LendingResult.ok(lending)

    @_guarded()
    async def decline_lending(self, lending_id: str, username: str, reason: Optional[str] = None) -> LendingResult:
        async with self.repository.lock(lending_id):
            lending = await self.repository.get(lending_id)
            if not lending:
                return LendingResult.not_found()
            if not (lending.is_lender(username) or lending.is_borrower(username)):
                return LendingResult.unauthorized()
            if lending.status not in OPEN_STATUSES:
                return LendingResult.invalid_state("Cannot decline lending in current state")

            lending.status = LendingStatus.DECLINED
            lending.decline_reason = sanitize_input(reason)
            lending.declined_by = username.lower()
            await self._commit(lending)
        logger.info(f"Lending {lending_id} declined by '{lending.declined_by}'.")

        async def effects():
            # Only the party a request was addressed to produces a notice; withdrawals are silent
            if lending.is_borrow_request:
                recipient, notify = lending.borrower_username, self.activities.notify_borrow_declined
            else:
                recipient, notify = lending.lender_username, self.activities.notify_lending_declined
            if not recipient or recipient == username.lower():
                return
            item_name = await self._item_name(lending.item_id)
            decliner = await self.users.display_name(username)
            await notify(recipient, decliner, item_name, lending.id)

        await self._run_effects("decline", lending, effects)
        return LendingResult.ok(lending)

    @_guarded(NegotiationResult)
    async def propose_different_terms(
        self, lending_id: str, username: str, new_terms: Dict[str, Any], message: Optional[str] = None,
    ) -> NegotiationResult:
        new_terms = dict(new_terms or {})
        async with self.repository.lock(lending_id):
            lending = await self.repository.get(lending_id)
            if not lending:
                return NegotiationResult.rejected(LendingResult.not_found())
            if not (lending.is_lender(username) or lending.is_borrower(username)):
                return NegotiationResult.rejected(LendingResult.unauthorized())
            if lending.status not in OPEN_STATUSES:
                return NegotiationResult.rejected(LendingResult.invalid_state("Cannot negotiate in current state"))

            if lending.negotiation_rounds >= self.max_negotiation_rounds:
                lending.status = LendingStatus.DECLINED
                lending.decline_reason = AUTO_DECLINE_REASON
                await self._commit(lending)
                logger.info(f"Lending {lending_id} auto-declined after {lending.negotiation_rounds} negotiation rounds.")
                return NegotiationResult.declined(lending, f"{AUTO_DECLINE_REASON}. Lending declined.")

            # Validate everything before touching the record
            expected_return = None
            if new_terms.get("expected_return_date"):
                expected_return = to_millis(new_terms["expected_return_date"])
                if expected_return is None:
                    return NegotiationResult.rejected(LendingResult.invalid("Invalid date format"))
                if expected_return <= lending.terms.date_lent:
                    return NegotiationResult.rejected(LendingResult.invalid("Return date must be after lending date"))
            deposit_amount = None
            if new_terms.get("deposit_amount") is not None:
                deposit_amount = parse_float(new_terms["deposit_amount"])
                if deposit_amount < 0:
                    return NegotiationResult.rejected(LendingResult.invalid("Deposit amount cannot be negative"))

            now = self.clock()
            lending.negotiation_rounds += 1
            lending.negotiation_history.append(NegotiationEntry(
                round=lending.negotiation_rounds,
                proposed_by=username.lower(),
                terms=new_terms,
                message=sanitize_input(message),
                timestamp=now,
            ))
            if expected_return is not None:
                lending.terms.expected_return_date = expected_return
            if deposit_amount is not None:
                lending.terms.deposit_amount = deposit_amount
            if new_terms.get("condition_expectation"):
                lending.terms.condition_expectation = sanitize_input(new_terms["condition_expectation"])
            lending.status = LendingStatus.NEGOTIATING
            await self._commit(lending)
        logger.info(f"Lending {lending_id}: round {lending.negotiation_rounds} proposed by '{username.lower()}'.")
        return NegotiationResult.negotiated(lending)

    # --- Extensions ---
    @_guarded()
    async def request_extension(
        self, lending_id: str, borrower_username: str, new_return_date: Any, reason: Optional[str] = None,
    ) -> LendingResult:
        async with self.repository.lock(lending_id):
            lending = await self.repository.get(lending_id)
            if not lending:
                return LendingResult.not_found()
            if not lending.is_borrower(borrower_username):
                return LendingResult.unauthorized()
            if lending.status != LendingStatus.ACTIVE:
                return LendingResult.invalid_state("Can only request extension for active lendings")
            if not lending.terms.allow_extensions:
                return LendingResult.invalid_state("Extensions are not allowed for this lending")
            new_date = to_millis(new_return_date)
            if new_date is None:
                return LendingResult.invalid("New return date is required")
            if new_date <= lending.terms.expected_return_date:
                return LendingResult.invalid("New date must be after current return date")

            lending.extension_request = ExtensionRequest(
                new_return_date=new_date,
                reason=sanitize_input(reason),
                requested_at=self.clock(),
                status=ExtensionStatus.PENDING,
            )
            await self._commit(lending)
        logger.info(f"Extension requested on lending {lending_id} until {new_date}.")

        async def effects():
            item_name = await self._item_name(lending.item_id)
            borrower = await self.users.display_name(borrower_username)
            await self.activities.notify_extension_requested(lending.lender_username, borrower, item_name, lending.id)

        await self._run_effects("request_extension", lending, effects)
        return LendingResult.ok(lending)

    @_guarded()
    async def respond_to_extension(self, lending_id: str, lender_username: str, approved: bool) -> LendingResult:
        async with self.repository.lock(lending_id):
            lending = await self.repository.get(lending_id)
            if not lending:
                return LendingResult.not_found()
            if not lending.is_lender(lender_username):
                return LendingResult.unauthorized()
            request = lending.extension_request
            if not request or request.status != ExtensionStatus.PENDING:
                return LendingResult.invalid_state("No pending extension request")

            if approved:
                lending.terms.expected_return_date = request.new_return_date
                request.status = ExtensionStatus.APPROVED
            else:
                request.status = ExtensionStatus.DENIED
            await self._commit(lending)
        logger.info(f"Extension on lending {lending_id} {request.status.value}.")

        async def effects():
            item_name = await self._item_name(lending.item_id)
            lender = await self.users.display_name(lender_username)
            notify = self.activities.notify_extension_approved if approved else self.activities.notify_extension_denied
            await notify(lending.borrower_username, lender, item_name, lending.id)

        await self._run_effects("respond_to_extension", lending, effects)
        return LendingResult.ok(lending)

    # --- Return flow ---
    @_guarded()
    async def initiate_return(self, lending_id: str, borrower_username: str) -> LendingResult:
        async with self.repository.lock(lending_id):
            lending = await self.repository.get(lending_id)
            if not lending:
                return LendingResult.not_found()
            if not lending.is_borrower(borrower_username):
                return LendingResult.unauthorized()
            if lending.status != LendingStatus.ACTIVE:
                return LendingResult.invalid_state("Can only initiate return for active lendings")

            lending.status = LendingStatus.RETURN_INITIATED
            lending.return_initiated_at = self.clock()
            await self._commit(lending)
        logger.info(f"Return initiated on lending {lending_id}.")

        async def effects():
            item_name = await self._item_name(lending.item_id)
            borrower = await self.users.display_name(borrower_username)
            await self.activities.notify_return_initiated(lending.lender_username, borrower, item_name, lending.id)

        await self._run_effects("initiate_return", lending, effects)
        return LendingResult.ok(lending)

    @_guarded()
    async def confirm_return(
        self, lending_id: str, lender_username: str,
        condition: Optional[Union[ItemCondition, str]] = None, notes: Optional[str] = None,
    ) -> LendingResult:
        async with self.repository.lock(lending_id):
            lending = await self.repository.get(lending_id)
            if not lending:
                return LendingResult.not_found()
            if not lending.is_lender(lender_username):
                return LendingResult.unauthorized()
            if lending.status not in ACTIVE_STATUSES:
                return LendingResult.invalid_state("Cannot confirm return in current state")
            if condition:
                try:
                    condition = ItemCondition(condition)
                except ValueError:
                    return LendingResult.invalid("Invalid condition")
                if condition != lending.condition_at_lending and not sanitize_input(notes):
                    return LendingResult.invalid("Please explain the condition change")

            lending.condition_at_return = condition or lending.condition_at_lending
            lending.actual_return_date = self.clock()
            lending.return_notes = sanitize_input(notes)
            lending.status = LendingStatus.COMPLETED
            await self._commit(lending)

        on_time = lending.actual_return_date <= lending.terms.expected_return_date
        logger.info(f"Return confirmed on lending {lending_id} ({'on time' if on_time else 'late'}).")

        async def effects():
            await self.items.set_item_available(lending.item_id)
            if lending.borrower_username:
                await self.users.record_return(lending.borrower_username, on_time)
            await self.items.add_to_lending_history(lending.item_id, LendingHistoryEntry(
                lending_id=lending.id,
                borrower=lending.borrower_info.name,
                date_lent=lending.terms.date_lent,
                date_returned=lending.actual_return_date,
                condition_at_lending=lending.condition_at_lending,
                condition_at_return=lending.condition_at_return,
            ))
            if lending.borrower_username:
                item_name = await self._item_name(lending.item_id)
                lender = await self.users.display_name(lender_username)
                await self.activities.notify_item_returned(lending.borrower_username, lender, item_name, lending.id)

        await self._run_effects("confirm_return", lending, effects)
        return LendingResult.ok(lending)

    # --- Rating ---
    @_guarded()
    async def add_rating(self, lending_id: str, username: str, rating: Any, is_lender_rating: bool) -> LendingResult:
        """
        Rates the counterpart of a completed lending. `is_lender_rating` means the
        lender is being rated, so the caller must be the borrower (and vice versa).
        Each side can rate once.
        """
        async with self.repository.lock(lending_id):
            lending = await self.repository.get(lending_id)
            if not lending:
                return LendingResult.not_found()
            if lending.status != LendingStatus.COMPLETED:
                return LendingResult.invalid_state("Can only rate completed lendings")
            value = _parse_rating(rating)
            if value is None or value < 1 or value > 5:
                return LendingResult.invalid("Rating must be between 1 and 5")

            if is_lender_rating:
                if not lending.is_borrower(username):
                    return LendingResult.unauthorized()
                if lending.lender_rating is not None:
                    return LendingResult.fail(FailureKind.CONFLICT, "Rating already submitted")
                lending.lender_rating = value
                rated_username = lending.lender_username
            else:
                if not lending.is_lender(username):
                    return LendingResult.unauthorized()
                if lending.borrower_rating is not None:
                    return LendingResult.fail(FailureKind.CONFLICT, "Rating already submitted")
                lending.borrower_rating = value
                rated_username = lending.borrower_username
            await self._commit(lending)
        logger.info(f"Lending {lending_id}: '{username.lower()}' rated '{rated_username}' {value}/5.")

        async def effects():
            if not rated_username:
                return
            await self.users.add_rating(rated_username, value)
            rater = await self.users.display_name(username)
            await self.activities.notify_rating_received(rated_username, rater, value, lending.id)

        await self._run_effects("add_rating", lending, effects)
        return LendingResult.ok(lending)

    # --- Disputes ---
    @_guarded()
    async def file_dispute(self, lending_id: str, username: str, reason: Optional[str]) -> LendingResult:
        async with self.repository.lock(lending_id):
            lending = await self.repository.get(lending_id)
            if not lending:
                return LendingResult.not_found()
            if not (lending.is_lender(username) or lending.is_borrower(username)):
                return LendingResult.unauthorized()
            if lending.status not in ACTIVE_STATUSES:
                return LendingResult.invalid_state("Can only dispute active lendings")
            reason = sanitize_input(reason)
            if not reason:
                return LendingResult.invalid("Dispute reason is required")

            lending.status = LendingStatus.DISPUTED
            lending.dispute_reason = reason
            lending.disputed_by = username.lower()
            await self._commit(lending)
        target = lending.other_party(username)
        logger.warning(f"Dispute filed on lending {lending_id} by '{lending.disputed_by}' against '{target}'.")

        async def effects():
            if not target:
                return
            await self.users.record_dispute(target)
            item_name = await self._item_name(lending.item_id)
            filer = await self.users.display_name(username)
            await self.activities.notify_dispute_filed(target, filer, item_name, lending.id)

        await self._run_effects("file_dispute", lending, effects)
        return LendingResult.ok(lending)

    # --- Reminders ---
    @_guarded()
    async def add_reminder(self, lending_id: str, reminder_type: ReminderType) -> LendingResult:
        async with self.repository.lock(lending_id):
            lending = await self.repository.get(lending_id)
            if not lending:
                return LendingResult.not_found()
            lending.reminders.append(Reminder(type=reminder_type, sent_at=self.clock()))
            await self._commit(lending)
        return LendingResult.ok(lending)

    # --- Queries ---
    async def get_lending(self, lending_id: str) -> Optional[Lending]:
        return await self.repository.get(lending_id)

    async def get_user_lendings(self, username: str) -> List[Lending]:
        return await self.repository.find_by_lender(username.lower())

    async def get_user_borrowings(self, username: str) -> List[Lending]:
        return await self.repository.find_by_borrower(username.lower())

    async def get_active_lendings(self, username: str) -> List[Lending]:
        return await self.repository.find_by_lender(username.lower(), ACTIVE_STATUSES)

    async def get_active_borrowings(self, username: str) -> List[Lending]:
        return await self.repository.find_by_borrower(username.lower(), ACTIVE_STATUSES)

    async def get_pending_requests(self, username: str) -> List[Lending]:
        """Open lendings where `username` is the party who must act next."""
        username = username.lower()
        as_owner = await self.repository.find_by_lender(username, OPEN_STATUSES)
        as_borrower = await self.repository.find_by_borrower(username, OPEN_STATUSES)
        return [l for l in as_owner if l.is_borrow_request] + [l for l in as_borrower if not l.is_borrow_request]

    async def get_outgoing_requests(self, username: str) -> List[Lending]:
        """Open lendings `username` started and is waiting on."""
        username = username.lower()
        as_owner = await self.repository.find_by_lender(username, OPEN_STATUSES)
        as_borrower = await self.repository.find_by_borrower(username, OPEN_STATUSES)
        return [l for l in as_owner if not l.is_borrow_request] + [l for l in as_borrower if l.is_borrow_request]

    async def get_overdue_lendings(self, username: str) -> List[Lending]:
        now = self.clock()
        return [l for l in await self.get_active_lendings(username) if l.terms.expected_return_date < now]

    async def get_overdue_borrowings(self, username: str) -> List[Lending]:
        now = self.clock()
        return [l for l in await self.get_active_borrowings(username) if l.terms.expected_return_date < now]

    async def get_due_soon_lendings(self, username: str, days_ahead: int = DUE_SOON_DEFAULT_DAYS) -> List[Lending]:
        now = self.clock()
        threshold = now + days_ahead * DAY_MS
        return [
            l for l in await self.get_active_lendings(username)
            if now < l.terms.expected_return_date <= threshold
        ]

    async def get_lending_history(self, item_id: str) -> List[Lending]:
        return await self.repository.find_by_item(item_id)

    async def get_all_active_lendings(self) -> List[Lending]:
        return await self.repository.find_by_status([LendingStatus.ACTIVE])

    # --- Dashboard ---
    async def get_dashboard(self, username: str) -> Optional[DashboardReport]:
        """Per-user totals over items, lendings, borrowings and trust statistics."""
        user = await self.users.get_user(username)
        if not user:
            return None
        items = await self.items.get_user_items(username)
        lendings = await self.get_user_lendings(username)
        active_lendings = await self.get_active_lendings(username)
        borrowings = await self.get_user_borrowings(username)
        active_borrowings = await self.get_active_borrowings(username)
        now = self.clock()

        value_on_loan = 0.0
        for lending in active_lendings:
            item = await self.items.get_item(lending.item_id)
            value_on_loan += item.estimated_value if item else 0.0

        completed = [b for b in borrowings if b.status == LendingStatus.COMPLETED]
        on_time = [
            b for b in completed
            if b.actual_return_date is not None and b.actual_return_date <= b.terms.expected_return_date
        ]

        return DashboardReport(
            lending=LendingSummary(
                total_items=len(items),
                available_items=sum(1 for i in items if i.status == ItemStatus.AVAILABLE),
                lent_items=sum(1 for i in items if i.status == ItemStatus.LENT),
                total_lendings=len(lendings),
                active_lendings=len(active_lendings),
                overdue_lendings=sum(1 for l in active_lendings if l.terms.expected_return_date < now),
                total_value_on_loan=value_on_loan,
            ),
            borrowing=BorrowingSummary(
                total_borrowings=len(borrowings),
                active_borrowings=len(active_borrowings),
                overdue_borrowings=sum(1 for b in active_borrowings if b.terms.expected_return_date < now),
                completed_borrowings=len(completed),
                on_time_rate=round_half_up(len(on_time) / len(completed) * 100) if completed else 100,
            ),
            trust=TrustSummary(
                score=user.trust_score,
                badge=get_trust_badge(user.trust_score),
                total_ratings=user.total_ratings,
                on_time_returns=user.on_time_returns,
                late_returns=user.late_returns,
            ),
        )
