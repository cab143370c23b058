# lendtrust/services/items.py
from typing import List, Optional, Tuple

from loguru import logger

from lendtrust.core.utils import now_ms, parse_float, sanitize_input
from lendtrust.db.repositories import ItemRepository, KeyedLocks
from lendtrust.models.enum import ItemCategory, ItemCondition, ItemStatus
from lendtrust.models.item import Item, LendingHistoryEntry

CATEGORIES = [c.value for c in ItemCategory]
CONDITIONS = [c.value for c in ItemCondition]


class ItemRegistry:
    """Lendable items and their availability flag."""

    def __init__(self, repository: ItemRepository):
        self.repository = repository
        self.lock = KeyedLocks()

    async def create_item(self, owner_username: str, data: Item.Create) -> Tuple[Optional[Item], Optional[str]]:
        name = sanitize_input(data.name)
        if not name or len(name) < 2:
            return None, "Item name must be at least 2 characters"
        if data.category not in CATEGORIES:
            return None, "Invalid category"
        if data.condition not in CONDITIONS:
            return None, "Invalid condition"
        estimated_value = parse_float(data.estimated_value)
        if estimated_value < 0:
            return None, "Value cannot be negative"

        item = Item(
            owner_username=owner_username.lower(),
            name=name,
            description=sanitize_input(data.description),
            category=ItemCategory(data.category),
            condition=ItemCondition(data.condition),
            estimated_value=estimated_value,
            notes=sanitize_input(data.notes),
            is_public=bool(data.is_public),
        )
        await self.repository.add(item)
        logger.info(f"Item '{item.id}' ({item.name}) created by '{item.owner_username}'.")
        return item, None

    async def get_item(self, item_id: str) -> Optional[Item]:
        return await self.repository.get(item_id)

    async def get_user_items(self, username: str) -> List[Item]:
        return await self.repository.find_by_owner(username.lower())

    async def get_public_items(self, exclude_owner: Optional[str] = None) -> List[Item]:
        items = await self.repository.find_public(exclude_owner.lower() if exclude_owner else None)
        return [item for item in items if item.status == ItemStatus.AVAILABLE]

    async def _update(self, item_id: str, change) -> Optional[Item]:
        async with self.lock(item_id):
            item = await self.repository.get(item_id)
            if not item:
                logger.warning(f"Item '{item_id}' not found for update.")
                return None
            change(item)
            item.updated_at = now_ms()
            return await self.repository.save(item)

    async def set_item_lent(self, item_id: str, lending_id: str) -> Optional[Item]:
        def change(item):
            item.status = ItemStatus.LENT
            item.current_lending_id = lending_id
        return await self._update(item_id, change)

    async def set_item_available(self, item_id: str) -> Optional[Item]:
        def change(item):
            item.status = ItemStatus.AVAILABLE
            item.current_lending_id = None
        return await self._update(item_id, change)

    async def add_to_lending_history(self, item_id: str, entry: LendingHistoryEntry) -> Optional[Item]:
        return await self._update(item_id, lambda item: item.lending_history.append(entry))
