# lendtrust/db/mongo.py
"""MongoDB repositories on top of Beanie documents."""
import functools
import re
from typing import Iterable, List, Optional

from beanie import Document
from loguru import logger
from pydantic import Field
from pymongo import ASCENDING, DESCENDING, IndexModel
from pymongo.errors import PyMongoError

from lendtrust.core.utils import new_id
from lendtrust.models.activity import Activity, activity_id
from lendtrust.models.enum import LendingStatus
from lendtrust.models.item import Item
from lendtrust.models.lending import Lending
from lendtrust.models.user import User
from .repositories import (
    ActivityRepository, ItemRepository, LendingRepository, PersistenceError, UserRepository,
)


# --- Documents ---
class LendingDocument(Lending, Document):
    id: str = Field(default_factory=new_id)

    class Settings:
        name = "lendings"
        indexes = [
            IndexModel([("lender_username", ASCENDING), ("status", ASCENDING)], name="lending_lender_status_index"),
            IndexModel([("borrower_username", ASCENDING), ("status", ASCENDING)], name="lending_borrower_status_index"),
            IndexModel([("item_id", ASCENDING), ("created_at", DESCENDING)], name="lending_item_history_index"),
            IndexModel([("status", ASCENDING), ("terms.expected_return_date", ASCENDING)], name="lending_due_index"),
        ]


class UserDocument(User, Document):
    # The username doubles as the primary key
    id: Optional[str] = None

    class Settings:
        name = "users"
        indexes = [
            IndexModel([("display_name", ASCENDING)], name="user_display_name_index"),
        ]


class ItemDocument(Item, Document):
    id: str = Field(default_factory=new_id)

    class Settings:
        name = "items"
        indexes = [
            IndexModel([("owner_username", ASCENDING)], name="item_owner_index"),
            IndexModel([("is_public", ASCENDING), ("status", ASCENDING)], name="item_public_status_index"),
        ]


class ActivityDocument(Activity, Document):
    id: str = Field(default_factory=activity_id)

    class Settings:
        name = "activities"
        indexes = [
            IndexModel([("username", ASCENDING), ("timestamp", DESCENDING)], name="activity_user_time_index"),
            IndexModel([("username", ASCENDING), ("read", ASCENDING)], name="activity_user_read_index"),
        ]


DOCUMENT_MODELS = [LendingDocument, UserDocument, ItemDocument, ActivityDocument]


def _translate_errors(func):
    @functools.wraps(func)
    async def wrapper(*args, **kwargs):
        try:
            return await func(*args, **kwargs)
        except PyMongoError as e:
            logger.error(f"MongoDB error in {func.__qualname__}: {e}")
            raise PersistenceError(str(e)) from e
    return wrapper


def _to_domain(model_cls, doc):
    if doc is None:
        return None
    return model_cls.model_validate(doc.model_dump(exclude={"revision_id"}))


def _status_values(statuses: Optional[Iterable[LendingStatus]]):
    return [LendingStatus(s).value for s in statuses] if statuses is not None else None


# --- Repositories ---
class MongoLendingRepository(LendingRepository):
    @_translate_errors
    async def get(self, lending_id: str) -> Optional[Lending]:
        return _to_domain(Lending, await LendingDocument.get(lending_id))

    @_translate_errors
    async def add(self, lending: Lending) -> Lending:
        await LendingDocument(**lending.model_dump()).insert()
        return lending

    @_translate_errors
    async def save(self, lending: Lending) -> Lending:
        await LendingDocument(**lending.model_dump()).save()
        return lending

    async def _find(self, query: dict, sort=None) -> List[Lending]:
        docs = await LendingDocument.find(query, sort=sort).to_list()
        return [_to_domain(Lending, d) for d in docs]

    @_translate_errors
    async def find_by_lender(self, username: str, statuses: Optional[Iterable[LendingStatus]] = None) -> List[Lending]:
        query = {"lender_username": username}
        if statuses is not None: query["status"] = {"$in": _status_values(statuses)}
        return await self._find(query)

    @_translate_errors
    async def find_by_borrower(self, username: str, statuses: Optional[Iterable[LendingStatus]] = None) -> List[Lending]:
        query = {"borrower_username": username}
        if statuses is not None: query["status"] = {"$in": _status_values(statuses)}
        return await self._find(query)

    @_translate_errors
    async def find_by_item(self, item_id: str) -> List[Lending]:
        return await self._find({"item_id": item_id}, sort=[("created_at", DESCENDING)])

    @_translate_errors
    async def find_by_status(self, statuses: Iterable[LendingStatus]) -> List[Lending]:
        return await self._find({"status": {"$in": _status_values(statuses)}})


class MongoUserRepository(UserRepository):
    @_translate_errors
    async def get(self, username: str) -> Optional[User]:
        return _to_domain(User, await UserDocument.get(username))

    @_translate_errors
    async def add(self, user: User) -> User:
        await UserDocument(id=user.username, **user.model_dump()).insert()
        return user

    @_translate_errors
    async def save(self, user: User) -> User:
        await UserDocument(id=user.username, **user.model_dump()).save()
        return user

    @_translate_errors
    async def search(self, term: str) -> List[User]:
        pattern = re.escape(term)
        docs = await UserDocument.find({"$or": [
            {"username": {"$regex": pattern}},
            {"display_name": {"$regex": pattern, "$options": "i"}},
        ]}).to_list()
        return [_to_domain(User, d) for d in docs]


class MongoItemRepository(ItemRepository):
    @_translate_errors
    async def get(self, item_id: str) -> Optional[Item]:
        return _to_domain(Item, await ItemDocument.get(item_id))

    @_translate_errors
    async def add(self, item: Item) -> Item:
        await ItemDocument(**item.model_dump()).insert()
        return item

    @_translate_errors
    async def save(self, item: Item) -> Item:
        await ItemDocument(**item.model_dump()).save()
        return item

    @_translate_errors
    async def find_by_owner(self, username: str) -> List[Item]:
        docs = await ItemDocument.find({"owner_username": username}).to_list()
        return [_to_domain(Item, d) for d in docs]

    @_translate_errors
    async def find_public(self, exclude_owner: Optional[str] = None) -> List[Item]:
        query = {"is_public": True}
        if exclude_owner: query["owner_username"] = {"$ne": exclude_owner}
        docs = await ItemDocument.find(query).to_list()
        return [_to_domain(Item, d) for d in docs]


class MongoActivityRepository(ActivityRepository):
    @_translate_errors
    async def add(self, activity: Activity) -> Activity:
        await ActivityDocument(**activity.model_dump()).insert()
        return activity

    @_translate_errors
    async def list_for_user(self, username: str) -> List[Activity]:
        docs = await ActivityDocument.find({"username": username}, sort=[("timestamp", DESCENDING)]).to_list()
        return [_to_domain(Activity, d) for d in docs]

    @_translate_errors
    async def count_unread(self, username: str) -> int:
        return await ActivityDocument.find({"username": username, "read": False}).count()

    @_translate_errors
    async def mark_read(self, username: str, activity_id: str) -> bool:
        result = await ActivityDocument.find({"_id": activity_id, "username": username}).update({"$set": {"read": True}})
        return bool(result and result.matched_count > 0)

    @_translate_errors
    async def mark_all_read(self, username: str) -> int:
        result = await ActivityDocument.find({"username": username, "read": False}).update({"$set": {"read": True}})
        return result.modified_count if result else 0

    @_translate_errors
    async def trim(self, username: str, keep: int) -> int:
        total = await ActivityDocument.find({"username": username}).count()
        excess = total - keep
        if excess <= 0:
            return 0
        oldest = await ActivityDocument.find(
            {"username": username}, sort=[("timestamp", ASCENDING)], limit=excess
        ).to_list()
        await ActivityDocument.find({"_id": {"$in": [a.id for a in oldest]}}).delete()
        return len(oldest)
