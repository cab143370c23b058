# lendtrust/services/__init__.py
from dataclasses import dataclass
from typing import Callable

from lendtrust.core.config import ACTIVITY_LIMIT_PER_USER, MAX_NEGOTIATION_ROUNDS
from lendtrust.core.utils import now_ms
from lendtrust.db.database import Repositories
from .activities import ActivityNotifier
from .items import ItemRegistry
from .lendings import LendingService
from .users import UserDirectory


@dataclass
class Services:
    users: UserDirectory
    items: ItemRegistry
    activities: ActivityNotifier
    lendings: LendingService


def build_services(repos: Repositories, clock: Callable[[], int] = now_ms) -> Services:
    users = UserDirectory(repos.users)
    items = ItemRegistry(repos.items)
    activities = ActivityNotifier(repos.activities, limit_per_user=ACTIVITY_LIMIT_PER_USER)
    lendings = LendingService(
        repos.lendings, users, items, activities, clock=clock, max_negotiation_rounds=MAX_NEGOTIATION_ROUNDS,
    )
    return Services(users=users, items=items, activities=activities, lendings=lendings)
