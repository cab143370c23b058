# lendtrust/db/database.py
from dataclasses import dataclass
from typing import Optional

from loguru import logger

from lendtrust.core.config import DATABASE_NAME, MONGODB_URL, STORAGE_BACKEND
from .memory import (
    InMemoryActivityRepository, InMemoryItemRepository, InMemoryLendingRepository, InMemoryUserRepository,
)
from .repositories import ActivityRepository, ItemRepository, LendingRepository, UserRepository


@dataclass
class Repositories:
    lendings: LendingRepository
    users: UserRepository
    items: ItemRepository
    activities: ActivityRepository


def memory_repositories() -> Repositories:
    return Repositories(
        lendings=InMemoryLendingRepository(),
        users=InMemoryUserRepository(),
        items=InMemoryItemRepository(),
        activities=InMemoryActivityRepository(),
    )


async def init_db(backend: Optional[str] = None) -> Repositories:
    """Connect the configured store and return the repositories bound to it."""
    backend = backend or STORAGE_BACKEND
    if backend == "memory":
        logger.warning("Using in-memory storage. Data will not survive a restart.")
        return memory_repositories()

    import motor.motor_asyncio
    from beanie import init_beanie
    from .mongo import (
        DOCUMENT_MODELS, MongoActivityRepository, MongoItemRepository, MongoLendingRepository, MongoUserRepository,
    )

    logger.info("Connecting to MongoDB...")
    client = motor.motor_asyncio.AsyncIOMotorClient(MONGODB_URL)
    database = client[DATABASE_NAME]
    logger.info(f"Using database: {DATABASE_NAME}")

    await init_beanie(database=database, document_models=DOCUMENT_MODELS)
    logger.info("Beanie initialization complete for all models.")
    return Repositories(
        lendings=MongoLendingRepository(),
        users=MongoUserRepository(),
        items=MongoItemRepository(),
        activities=MongoActivityRepository(),
    )
