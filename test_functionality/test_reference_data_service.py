import pytest

from domain.exceptions import InvalidArgumentError, InvalidCoordinatesError, InvalidLimitError
from domain.models import ReferencePool


async def test_search_single_pool(factory):
    service = factory.create_reference_data_service()
    assert [r.id for r in await service.search(ReferencePool.FOODBANKS, "gangnam")] == ["fb-a"]
    assert len(await service.search("foodbanks")) == 2


async def test_search_all_counts(factory):
    result = await factory.create_reference_data_service().search_all("  food bank ")
    assert result.term == "food bank"
    assert result.counts == {"restaurants": 0, "recipients": 0, "foodbanks": 2, "total": 2}


async def test_search_all_requires_term(factory):
    with pytest.raises(InvalidArgumentError):
        await factory.create_reference_data_service().search_all("   ")


async def test_nearby_orders_and_limits(factory):
    service = factory.create_reference_data_service()
    records = await service.nearby(ReferencePool.FOODBANKS, 37.9, 127.9, limit=1)
    assert [r.id for r in records] == ["fb-b"]

    records = await service.nearby(ReferencePool.FOODBANKS, 37.5, 127.0)
    assert [r.id for r in records] == ["fb-a", "fb-b"]


@pytest.mark.parametrize("limit", [0, 101, -3])
async def test_nearby_limit_bounds(factory, limit):
    with pytest.raises(InvalidLimitError):
        await factory.create_reference_data_service().nearby(
            ReferencePool.FOODBANKS, 37.5, 127.0, limit=limit,
        )


async def test_nearby_rejects_bad_coordinates(factory):
    with pytest.raises(InvalidCoordinatesError):
        await factory.create_reference_data_service().nearby(ReferencePool.RECIPIENTS, 95, 0)
