# lendtrust/services/users.py
import re
from typing import List, Optional, Tuple

from loguru import logger

from lendtrust.core.trust import calculate_trust_score, get_trust_badge, round_half_up
from lendtrust.core.utils import now_ms, sanitize_input
from lendtrust.db.repositories import KeyedLocks, UserRepository
from lendtrust.models.user import User

USERNAME_PATTERN = re.compile(r"^[a-zA-Z0-9_]+$")


def validate_username(username: str) -> Tuple[bool, Optional[str]]:
    sanitized = sanitize_input(username)
    if not sanitized or len(sanitized) < 2 or len(sanitized) > 30:
        return False, "Username must be between 2 and 30 characters"
    if not USERNAME_PATTERN.match(sanitized):
        return False, "Username can only contain letters, numbers, and underscores"
    return True, None


class UserDirectory:
    """User records and the trust statistics the lending flow accumulates on them."""

    def __init__(self, repository: UserRepository):
        self.repository = repository
        self.lock = KeyedLocks()

    async def create_user(
        self, username: str, display_name: Optional[str] = None, email: Optional[str] = None,
        phone: Optional[str] = None, hashed_password: str = "",
    ) -> Tuple[Optional[User], Optional[str]]:
        valid, reason = validate_username(username)
        if not valid:
            return None, reason
        key = sanitize_input(username).lower()
        if await self.repository.get(key):
            return None, "Username already exists"
        user = User(
            username=key,
            display_name=sanitize_input(display_name) or key,
            email=sanitize_input(email),
            phone=sanitize_input(phone),
            hashed_password=hashed_password,
        )
        await self.repository.add(user)
        logger.info(f"User '{key}' created.")
        return user, None

    async def get_user(self, username: str) -> Optional[User]:
        return await self.repository.get(username.lower())

    async def user_exists(self, username: str) -> bool:
        return await self.get_user(username) is not None

    async def update_user(self, username: str, updates: dict) -> Optional[User]:
        user = await self.get_user(username)
        if not user:
            return None
        for key in ("display_name", "email", "phone"):
            if updates.get(key) is not None:
                setattr(user, key, sanitize_input(updates[key]))
        user.last_active = now_ms()
        return await self.repository.save(user)

    # --- Trust statistics ---
    async def _mutate(self, username: Optional[str], change, recompute: bool) -> Optional[User]:
        if not username:
            return None
        async with self.lock(username.lower()):
            user = await self.get_user(username)
            if not user:
                logger.debug(f"Trust update skipped: user '{username}' not found.")
                return None
            change(user)
            if recompute:
                user.trust_score = calculate_trust_score(
                    on_time_returns=user.on_time_returns,
                    late_returns=user.late_returns,
                    total_ratings=user.total_ratings,
                    rating_sum=user.rating_sum,
                    disputes_against=user.disputes_against,
                )
            return await self.repository.save(user)

    async def update_trust_score(self, username: str) -> Optional[int]:
        user = await self._mutate(username, lambda u: None, recompute=True)
        return user.trust_score if user else None

    async def increment_lendings(self, username: str) -> Optional[User]:
        def change(user): user.total_lendings += 1
        return await self._mutate(username, change, recompute=False)

    async def increment_borrowings(self, username: str) -> Optional[User]:
        def change(user): user.total_borrowings += 1
        return await self._mutate(username, change, recompute=False)

    async def record_return(self, username: str, on_time: bool) -> Optional[User]:
        def change(user):
            if on_time: user.on_time_returns += 1
            else: user.late_returns += 1
        return await self._mutate(username, change, recompute=True)

    async def record_dispute(self, username: str) -> Optional[User]:
        def change(user): user.disputes_against += 1
        return await self._mutate(username, change, recompute=True)

    async def add_rating(self, username: str, rating: int) -> Optional[User]:
        def change(user):
            user.total_ratings += 1
            user.rating_sum += rating
        return await self._mutate(username, change, recompute=True)

    # --- Views ---
    @staticmethod
    def to_public_profile(user: User) -> User.PublicProfile:
        returns = user.on_time_returns + user.late_returns
        on_time_rate = round_half_up(user.on_time_returns / returns * 100) if returns > 0 else 100
        return User.PublicProfile(
            username=user.username,
            display_name=user.display_name,
            trust_score=user.trust_score,
            badge=get_trust_badge(user.trust_score),
            total_lendings=user.total_lendings,
            total_borrowings=user.total_borrowings,
            on_time_rate=on_time_rate,
            member_since=user.created_at,
        )

    async def get_public_profile(self, username: Optional[str]) -> Optional[User.PublicProfile]:
        if not username:
            return None
        user = await self.get_user(username)
        return self.to_public_profile(user) if user else None

    async def display_name(self, username: Optional[str]) -> str:
        user = await self.get_user(username) if username else None
        return user.display_name if user else (username or "Someone")

    async def search_users(self, query: str) -> List[User.PublicProfile]:
        term = sanitize_input(query).lower()
        if not term:
            return []
        return [self.to_public_profile(u) for u in await self.repository.search(term)]
