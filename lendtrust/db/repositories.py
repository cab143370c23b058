# lendtrust/db/repositories.py
"""
Persistence port.

Services only talk to these interfaces; `memory.py` and `mongo.py` provide
the two implementations. Every implementation reports driver failures as
`PersistenceError` so the services can turn them into a `database-error` result.
"""
import asyncio
from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, Iterable, List, Optional

from lendtrust.models.activity import Activity
from lendtrust.models.enum import LendingStatus
from lendtrust.models.item import Item
from lendtrust.models.lending import Lending
from lendtrust.models.user import User


class PersistenceError(Exception):
    """Raised by a repository when the underlying store fails."""


class KeyedLocks:
    """
    Hands out one asyncio.Lock per key so read-modify-write on a record serializes.
    An entry lives only while some task holds or waits on it.
    """
    def __init__(self):
        self._locks: Dict[str, asyncio.Lock] = {}
        self._users: Dict[str, int] = {}

    @asynccontextmanager
    async def __call__(self, key: str) -> AsyncIterator[None]:
        lock = self._locks.get(key)
        if lock is None:
            lock = self._locks[key] = asyncio.Lock()
        self._users[key] = self._users.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._users[key] -= 1
            if not self._users[key]:
                del self._users[key]
                del self._locks[key]


class LendingRepository(ABC):
    def __init__(self):
        self.lock = KeyedLocks()

    @abstractmethod
    async def get(self, lending_id: str) -> Optional[Lending]: ...

    @abstractmethod
    async def add(self, lending: Lending) -> Lending: ...

    @abstractmethod
    async def save(self, lending: Lending) -> Lending: ...

    @abstractmethod
    async def find_by_lender(self, username: str, statuses: Optional[Iterable[LendingStatus]] = None) -> List[Lending]: ...

    @abstractmethod
    async def find_by_borrower(self, username: str, statuses: Optional[Iterable[LendingStatus]] = None) -> List[Lending]: ...

    @abstractmethod
    async def find_by_item(self, item_id: str) -> List[Lending]:
        """Lendings for an item, newest first."""

    @abstractmethod
    async def find_by_status(self, statuses: Iterable[LendingStatus]) -> List[Lending]: ...


class UserRepository(ABC):
    @abstractmethod
    async def get(self, username: str) -> Optional[User]: ...

    @abstractmethod
    async def add(self, user: User) -> User: ...

    @abstractmethod
    async def save(self, user: User) -> User: ...

    @abstractmethod
    async def search(self, term: str) -> List[User]: ...


class ItemRepository(ABC):
    @abstractmethod
    async def get(self, item_id: str) -> Optional[Item]: ...

    @abstractmethod
    async def add(self, item: Item) -> Item: ...

    @abstractmethod
    async def save(self, item: Item) -> Item: ...

    @abstractmethod
    async def find_by_owner(self, username: str) -> List[Item]: ...

    @abstractmethod
    async def find_public(self, exclude_owner: Optional[str] = None) -> List[Item]: ...


class ActivityRepository(ABC):
    @abstractmethod
    async def add(self, activity: Activity) -> Activity: ...

    @abstractmethod
    async def list_for_user(self, username: str) -> List[Activity]:
        """Activities for a user, newest first."""

    @abstractmethod
    async def count_unread(self, username: str) -> int: ...

    @abstractmethod
    async def mark_read(self, username: str, activity_id: str) -> bool: ...

    @abstractmethod
    async def mark_all_read(self, username: str) -> int: ...

    @abstractmethod
    async def trim(self, username: str, keep: int) -> int:
        """Deletes the oldest activities beyond `keep`; returns how many were removed."""
