from datetime import date, datetime

import pytest

from conftest import TODAY, seed_donation, seed_restaurant
from domain.exceptions import (
    InvalidArgumentError,
    InvalidDateError,
    InvalidQuantityError,
    InvalidTransitionError,
    NotFoundError,
)
from domain.models import DonationStatus, GeoPoint


async def test_create_returns_available_donation(factory):
    restaurant_id = await seed_restaurant(factory)
    donation = await seed_donation(factory, restaurant_id, item=" Bread ", quantity=3)

    assert donation.id is not None
    assert donation.item_name == "Bread"
    assert donation.quantity == 3
    assert donation.status is DonationStatus.AVAILABLE
    assert donation.expiration_date == date(2024, 6, 10)


@pytest.mark.parametrize("quantity", [0, -4, True, 2.5, "3"])
async def test_create_rejects_bad_quantity(factory, quantity):
    restaurant_id = await seed_restaurant(factory)
    with pytest.raises(InvalidQuantityError):
        await seed_donation(factory, restaurant_id, quantity=quantity)


@pytest.mark.parametrize("expires", ["2024-02-30", "tomorrow", None, 20240610])
async def test_create_rejects_bad_date(factory, expires):
    restaurant_id = await seed_restaurant(factory)
    with pytest.raises(InvalidDateError):
        await seed_donation(factory, restaurant_id, expires=expires)


async def test_create_accepts_date_and_datetime(factory):
    restaurant_id = await seed_restaurant(factory)
    d1 = await seed_donation(factory, restaurant_id, expires=date(2024, 7, 1))
    d2 = await seed_donation(factory, restaurant_id, expires=datetime(2024, 7, 2, 18, 30))
    assert d1.expiration_date == date(2024, 7, 1)
    assert d2.expiration_date == date(2024, 7, 2)


async def test_create_rejects_blank_item(factory):
    restaurant_id = await seed_restaurant(factory)
    with pytest.raises(InvalidArgumentError):
        await seed_donation(factory, restaurant_id, item="   ")


async def test_create_unknown_restaurant(factory):
    with pytest.raises(NotFoundError):
        await seed_donation(factory, 999)


async def test_create_for_manager_uses_donor_restaurant(factory):
    restaurant_id = await seed_restaurant(factory, manager_id="donor-9")
    ledger = factory.create_donation_ledger()
    donation = await ledger.create_for_manager("donor-9", "Soup", "meal", 2, "2024-06-05")
    assert donation.restaurant_id == restaurant_id

    with pytest.raises(NotFoundError):
        await ledger.create_for_manager("nobody", "Soup", "meal", 2, "2024-06-05")


async def test_find_by_id_unknown(factory):
    with pytest.raises(NotFoundError):
        await factory.create_donation_ledger().find_by_id(42)


async def test_update_status_follows_state_machine(factory):
    restaurant_id = await seed_restaurant(factory)
    donation = await seed_donation(factory, restaurant_id)
    ledger = factory.create_donation_ledger()

    with pytest.raises(InvalidTransitionError):
        await ledger.update_status(donation.id, DonationStatus.CONFIRMED)

    requested = await ledger.update_status(donation.id, DonationStatus.REQUESTED)
    assert requested.status is DonationStatus.REQUESTED

    with pytest.raises(InvalidTransitionError):
        await ledger.update_status(donation.id, DonationStatus.AVAILABLE)

    confirmed = await ledger.update_status(donation.id, DonationStatus.CONFIRMED)
    assert confirmed.status is DonationStatus.CONFIRMED


async def test_list_available_hides_expired_and_claimed(factory):
    restaurant_id = await seed_restaurant(factory)
    fresh = await seed_donation(factory, restaurant_id, item="Fresh", expires="2024-06-02")
    await seed_donation(factory, restaurant_id, item="Today", expires=TODAY.isoformat())
    await seed_donation(factory, restaurant_id, item="Stale", expires="2024-05-31")
    claimed = await seed_donation(factory, restaurant_id, item="Claimed")
    await factory.create_donation_ledger().update_status(claimed.id, DonationStatus.REQUESTED)

    rows = await factory.create_donation_ledger().list_available()
    assert [r.donation_id for r in rows] == [fresh.id]
    assert rows[0].restaurant_name == "Kimbap House"


async def test_list_available_newest_first(factory):
    restaurant_id = await seed_restaurant(factory)
    first = await seed_donation(factory, restaurant_id, item="First")
    second = await seed_donation(factory, restaurant_id, item="Second")

    rows = await factory.create_donation_ledger().list_available()
    assert [r.donation_id for r in rows] == [second.id, first.id]


async def test_list_available_ranked_by_distance(factory):
    far_id = await seed_restaurant(factory, "donor-far", "Far Diner", 38.0, 128.0)
    near_id = await seed_restaurant(factory, "donor-near", "Near Cafe", 37.50, 127.00)
    nowhere_id = await seed_restaurant(factory, "donor-x", "Ghost Kitchen", None, None)
    far = await seed_donation(factory, far_id)
    near = await seed_donation(factory, near_id)
    ghost = await seed_donation(factory, nowhere_id)

    rows = await factory.create_donation_ledger().list_available(GeoPoint(37.5, 127.0))
    assert [r.donation_id for r in rows] == [near.id, far.id, ghost.id]
    assert rows[0].distance_km == pytest.approx(0.0)
    assert rows[1].distance_km > 100
    assert rows[2].distance_km is None


async def test_list_available_locates_restaurants_by_name(factory):
    # "Kimbap House" sits at (37.50, 127.00) in the restaurant pool
    far_id = await seed_restaurant(factory, "donor-far", "Far Diner", 38.0, 128.0)
    named_id = await seed_restaurant(factory, "donor-1", "Kimbap House", None, None)
    far = await seed_donation(factory, far_id)
    named = await seed_donation(factory, named_id)

    rows = await factory.create_donation_ledger().list_available(GeoPoint(37.5, 127.0))
    assert [r.donation_id for r in rows] == [named.id, far.id]
    assert rows[0].distance_km == pytest.approx(0.0)
    assert rows[0].latitude == pytest.approx(37.50)
