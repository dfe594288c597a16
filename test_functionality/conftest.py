"""
Shared fixtures: a factory on a throwaway SQLite file, an in-memory
reference data gateway and a fixed clock.
"""

import sys
from datetime import date
from pathlib import Path

import pytest
import pytest_asyncio

# Ensure src/ is importable when tests run from the repo root
SRC_ROOT = Path(__file__).resolve().parents[1] / "src"
if str(SRC_ROOT) not in sys.path:
    sys.path.insert(0, str(SRC_ROOT))

from application.context import AuthContext
from domain.entities import Restaurant, User
from domain.exceptions import UpstreamUnavailableError
from domain.models import ReferenceRecord, Role
from factory import ServiceFactory
from infrastructure.config import Settings

TODAY = date(2024, 6, 1)


class FakeGateway:
    """In-memory ReferenceDataGateway. Set ``fail`` to simulate an outage."""

    def __init__(self, restaurants=None, recipients=None, foodbanks=None):
        self.restaurants = list(restaurants or [])
        self.recipients = list(recipients or [])
        self.foodbanks = list(foodbanks or [])
        self.fail = False
        self.calls = []

    async def _pool(self, name):
        self.calls.append(name)
        if self.fail:
            raise UpstreamUnavailableError(f"{name} unavailable")
        return list(getattr(self, name))

    async def list_restaurants(self):
        return await self._pool("restaurants")

    async def list_recipients(self):
        return await self._pool("recipients")

    async def list_foodbanks(self):
        return await self._pool("foodbanks")

    async def search_restaurants(self, term):
        return [r for r in await self.list_restaurants() if r.matches(term)]

    async def search_recipients(self, term):
        return [r for r in await self.list_recipients() if r.matches(term)]

    async def search_foodbanks(self, term):
        return [r for r in await self.list_foodbanks() if r.matches(term)]


FOOD_BANK_A = ReferenceRecord(id="fb-a", name="Gangnam Food Bank", address="Seoul", latitude=37.51, longitude=127.01)
FOOD_BANK_B = ReferenceRecord(id="fb-b", name="Gangwon Food Bank", address="Chuncheon", latitude=38.0, longitude=128.0)
RECIPIENT_R1 = ReferenceRecord(
    id="r-1", name="Sunshine Shelter", address="12 Hope St", phone_number="02-123-4567",
    latitude=37.49, longitude=126.99,
)


@pytest.fixture
def gateway():
    return FakeGateway(
        restaurants=[
            ReferenceRecord(id="rest-1", name="Kimbap House", latitude=37.50, longitude=127.00),
        ],
        recipients=[RECIPIENT_R1],
        foodbanks=[FOOD_BANK_A, FOOD_BANK_B],
    )


@pytest.fixture
def settings(tmp_path):
    return Settings(project_root=tmp_path, db_path=str(tmp_path / "test.db"))


@pytest_asyncio.fixture
async def factory(settings, gateway):
    f = ServiceFactory(settings, gateway=gateway, clock=lambda: TODAY)
    await f.initialize()
    return f


@pytest.fixture
def donor():
    return AuthContext(user_id="donor-1", role=Role.DONOR)


@pytest.fixture
def recipient():
    return AuthContext(user_id="r-1", role=Role.RECIPIENT)


@pytest.fixture
def food_bank_a():
    return AuthContext(user_id="fb-a", role=Role.FOOD_BANK)


@pytest.fixture
def food_bank_b():
    return AuthContext(user_id="fb-b", role=Role.FOOD_BANK)


async def seed_restaurant(
    factory,
    manager_id="donor-1",
    name="Kimbap House",
    latitude=37.50,
    longitude=127.00,
):
    """Insert a donor user and their restaurant; return the restaurant id."""
    await factory.create_user_repository().save(
        User(id=manager_id, name=f"{name} owner", role=Role.DONOR)
    )
    return await factory.create_restaurant_repository().save(Restaurant(
        manager_id=manager_id,
        name=name,
        address="1 Main St",
        latitude=latitude,
        longitude=longitude,
    ))


async def seed_donation(factory, restaurant_id, item="Bread", quantity=5, expires="2024-06-10"):
    ledger = factory.create_donation_ledger()
    return await ledger.create(restaurant_id, item, "bakery", quantity, expires)
