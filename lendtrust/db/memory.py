# lendtrust/db/memory.py
"""In-process repositories. Records are copied on the way in and out so callers never share state with the store."""
from typing import Dict, Iterable, List, Optional

from lendtrust.models.activity import Activity
from lendtrust.models.enum import LendingStatus
from lendtrust.models.item import Item
from lendtrust.models.lending import Lending
from lendtrust.models.user import User
from .repositories import ActivityRepository, ItemRepository, LendingRepository, UserRepository


def _copy(model):
    return model.model_copy(deep=True) if model is not None else None


class InMemoryLendingRepository(LendingRepository):
    def __init__(self):
        super().__init__()
        self._lendings: Dict[str, Lending] = {}

    async def get(self, lending_id: str) -> Optional[Lending]:
        return _copy(self._lendings.get(lending_id))

    async def add(self, lending: Lending) -> Lending:
        self._lendings[lending.id] = _copy(lending)
        return lending

    async def save(self, lending: Lending) -> Lending:
        self._lendings[lending.id] = _copy(lending)
        return lending

    def _filter(self, predicate) -> List[Lending]:
        return [_copy(lending) for lending in self._lendings.values() if predicate(lending)]

    async def find_by_lender(self, username: str, statuses: Optional[Iterable[LendingStatus]] = None) -> List[Lending]:
        wanted = set(statuses) if statuses is not None else None
        return self._filter(
            lambda l: l.lender_username == username and (wanted is None or l.status in wanted)
        )

    async def find_by_borrower(self, username: str, statuses: Optional[Iterable[LendingStatus]] = None) -> List[Lending]:
        wanted = set(statuses) if statuses is not None else None
        return self._filter(
            lambda l: l.borrower_username == username and (wanted is None or l.status in wanted)
        )

    async def find_by_item(self, item_id: str) -> List[Lending]:
        history = self._filter(lambda l: l.item_id == item_id)
        return sorted(history, key=lambda l: l.created_at, reverse=True)

    async def find_by_status(self, statuses: Iterable[LendingStatus]) -> List[Lending]:
        wanted = set(statuses)
        return self._filter(lambda l: l.status in wanted)


class InMemoryUserRepository(UserRepository):
    def __init__(self):
        self._users: Dict[str, User] = {}

    async def get(self, username: str) -> Optional[User]:
        return _copy(self._users.get(username))

    async def add(self, user: User) -> User:
        self._users[user.username] = _copy(user)
        return user

    async def save(self, user: User) -> User:
        self._users[user.username] = _copy(user)
        return user

    async def search(self, term: str) -> List[User]:
        return [
            _copy(user) for user in self._users.values()
            if term in user.username or term in user.display_name.lower()
        ]


class InMemoryItemRepository(ItemRepository):
    def __init__(self):
        self._items: Dict[str, Item] = {}

    async def get(self, item_id: str) -> Optional[Item]:
        return _copy(self._items.get(item_id))

    async def add(self, item: Item) -> Item:
        self._items[item.id] = _copy(item)
        return item

    async def save(self, item: Item) -> Item:
        self._items[item.id] = _copy(item)
        return item

    async def find_by_owner(self, username: str) -> List[Item]:
        return [_copy(item) for item in self._items.values() if item.owner_username == username]

    async def find_public(self, exclude_owner: Optional[str] = None) -> List[Item]:
        return [
            _copy(item) for item in self._items.values()
            if item.is_public and item.owner_username != exclude_owner
        ]


class InMemoryActivityRepository(ActivityRepository):
    def __init__(self):
        self._activities: List[Activity] = []

    async def add(self, activity: Activity) -> Activity:
        self._activities.append(_copy(activity))
        return activity

    async def list_for_user(self, username: str) -> List[Activity]:
        mine = [_copy(a) for a in self._activities if a.username == username]
        # Stable sort keeps insertion order for equal timestamps; reversed gives newest first
        return list(reversed(sorted(mine, key=lambda a: a.timestamp)))

    async def count_unread(self, username: str) -> int:
        return sum(1 for a in self._activities if a.username == username and not a.read)

    async def mark_read(self, username: str, activity_id: str) -> bool:
        for activity in self._activities:
            if activity.id == activity_id and activity.username == username:
                activity.read = True
                return True
        return False

    async def mark_all_read(self, username: str) -> int:
        count = 0
        for activity in self._activities:
            if activity.username == username and not activity.read:
                activity.read = True
                count += 1
        return count

    async def trim(self, username: str, keep: int) -> int:
        mine = [a for a in self._activities if a.username == username]
        excess = len(mine) - keep
        if excess <= 0:
            return 0
        oldest = {id(a) for a in sorted(mine, key=lambda a: a.timestamp)[:excess]}
        self._activities = [a for a in self._activities if id(a) not in oldest]
        return excess
