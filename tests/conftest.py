# tests/conftest.py
import os

# Config is read at import time, so the environment has to be ready first
os.environ.setdefault("SECRET_KEY", "test-secret-key-not-for-production")
os.environ["STORAGE_BACKEND"] = "memory"
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest

from lendtrust.core.utils import DAY_MS
from lendtrust.db.database import memory_repositories
from lendtrust.models.item import Item
from lendtrust.services import build_services

NOW = 1_735_732_800_000  # 2025-01-01T12:00:00Z


class FakeClock:
    def __init__(self, now: int = NOW):
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, days: float = 0, ms: int = 0) -> int:
        self.now += int(days * DAY_MS) + ms
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def repos():
    return memory_repositories()


@pytest.fixture
def services(repos, clock):
    return build_services(repos, clock=clock)


async def _make_user(services, username, display_name):
    user, reason = await services.users.create_user(username, display_name=display_name, email=f"{username}@example.com")
    assert user is not None, reason
    return user


@pytest.fixture
async def alice(services):
    return await _make_user(services, "alice", "Alice")


@pytest.fixture
async def bob(services):
    return await _make_user(services, "bob", "Bob")


@pytest.fixture
async def carol(services):
    return await _make_user(services, "carol", "Carol")


@pytest.fixture
async def drill(services, alice):
    item, reason = await services.items.create_item(
        "alice", Item.Create(name="Power Drill", category="tools", condition="good", estimated_value=80, is_public=True),
    )
    assert item is not None, reason
    return item


@pytest.fixture
def make_terms(clock):
    def _make(days: float = 7, **overrides):
        terms = {"date_lent": clock.now, "expected_return_date": clock.now + int(days * DAY_MS)}
        terms.update(overrides)
        return terms
    return _make


@pytest.fixture
def offer(services, alice, bob, drill, make_terms):
    """Creates a lender-initiated offer of alice's drill to bob."""
    async def _offer(**overrides):
        result = await services.lendings.create_lending("alice", {"username": "bob"}, drill.id, make_terms(**overrides))
        assert result.success, result.reason
        return result.lending
    return _offer


@pytest.fixture
def borrow_request(services, alice, bob, drill, make_terms):
    """Creates a borrower-initiated request by bob for alice's drill."""
    async def _request(**overrides):
        terms = make_terms(is_borrow_request=True, allow_extensions=True, **overrides)
        result = await services.lendings.create_lending("alice", {"username": "bob"}, drill.id, terms)
        assert result.success, result.reason
        return result.lending
    return _request
