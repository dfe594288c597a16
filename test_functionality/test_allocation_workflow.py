import pytest

from application.context import AuthContext
from conftest import seed_donation, seed_restaurant
from domain.exceptions import ForbiddenError, NotFoundError
from domain.models import DonationStatus, GeoPoint, MatchStatus, ReviewDecision, Role


async def test_end_to_end_claim_review_complete(factory, donor, recipient, food_bank_a):
    await seed_restaurant(factory, manager_id=donor.user_id)
    workflow = factory.create_allocation_workflow()

    donation = await workflow.register_donation(donor, "Kimchi", "side", 4, "2024-06-08")
    summary = await workflow.accept_donation(recipient, donation.id)
    assert summary.status is MatchStatus.PENDING
    assert summary.food_bank_id == "fb-a"
    assert summary.to_dict()["status"] == "PENDING"

    pending = await workflow.list_pending_matches(food_bank_a)
    assert [p.match_id for p in pending] == [summary.match_id]

    reviewed = await workflow.review_match(food_bank_a, summary.match_id, ReviewDecision.ACCEPT)
    assert reviewed.status is MatchStatus.ACCEPTED

    accepted = await workflow.list_accepted_matches(food_bank_a)
    assert [a.match_id for a in accepted] == [summary.match_id]

    done = await workflow.complete_match(food_bank_a, summary.match_id)
    assert done.status is MatchStatus.COMPLETED
    refreshed = await factory.create_donation_ledger().find_by_id(donation.id)
    assert refreshed.status is DonationStatus.CONFIRMED

    history = await workflow.match_history(food_bank_a, summary.match_id)
    assert len(history) == 3


async def test_only_recipients_claim(factory, donor, food_bank_a):
    restaurant_id = await seed_restaurant(factory)
    donation = await seed_donation(factory, restaurant_id)
    workflow = factory.create_allocation_workflow()

    for ctx in (donor, food_bank_a):
        with pytest.raises(ForbiddenError):
            await workflow.accept_donation(ctx, donation.id)


async def test_only_donors_register(factory, recipient):
    await seed_restaurant(factory, manager_id=recipient.user_id)
    with pytest.raises(ForbiddenError):
        await factory.create_allocation_workflow().register_donation(
            recipient, "Rice", "grain", 1, "2024-06-08",
        )


async def test_review_requires_food_bank_role(factory, recipient):
    restaurant_id = await seed_restaurant(factory)
    donation = await seed_donation(factory, restaurant_id)
    workflow = factory.create_allocation_workflow()
    summary = await workflow.accept_donation(recipient, donation.id)

    with pytest.raises(ForbiddenError):
        await workflow.review_match(recipient, summary.match_id, ReviewDecision.ACCEPT)


async def test_only_assigned_food_bank_accepts(factory, recipient, food_bank_b):
    restaurant_id = await seed_restaurant(factory)
    donation = await seed_donation(factory, restaurant_id)
    workflow = factory.create_allocation_workflow()
    summary = await workflow.accept_donation(recipient, donation.id)

    with pytest.raises(ForbiddenError):
        await workflow.review_match(food_bank_b, summary.match_id, ReviewDecision.ACCEPT)
    with pytest.raises(ForbiddenError):
        await workflow.complete_match(food_bank_b, summary.match_id)


async def test_any_food_bank_may_reject(factory, recipient, food_bank_b):
    restaurant_id = await seed_restaurant(factory)
    donation = await seed_donation(factory, restaurant_id)
    workflow = factory.create_allocation_workflow()
    summary = await workflow.accept_donation(recipient, donation.id)

    rejected = await workflow.review_match(
        food_bank_b, summary.match_id, ReviewDecision.REJECT, notes="too far",
    )
    assert rejected.status is MatchStatus.REJECTED
    history = await workflow.match_history(food_bank_b, summary.match_id)
    assert history[-1].actor_id == "fb-b"


async def test_review_unknown_match(factory, food_bank_a):
    with pytest.raises(NotFoundError):
        await factory.create_allocation_workflow().review_match(
            food_bank_a, 999, ReviewDecision.ACCEPT,
        )


async def test_list_available_locates_restaurants_by_name(factory, gateway, recipient):
    # No stored coordinates; the restaurant pool knows "Kimbap House"
    restaurant_id = await seed_restaurant(factory, latitude=None, longitude=None)
    far_id = await seed_restaurant(factory, "donor-far", "Far Diner", 35.1, 129.0)
    near = await seed_donation(factory, restaurant_id)
    far = await seed_donation(factory, far_id)

    rows = await factory.create_allocation_workflow().list_available_donations(
        recipient, GeoPoint(37.5, 127.0),
    )
    assert [r.donation_id for r in rows] == [near.id, far.id]
    assert rows[0].distance_km == pytest.approx(0.0)
    assert "restaurants" in gateway.calls


async def test_list_available_without_origin_skips_gateway(factory, gateway, recipient):
    restaurant_id = await seed_restaurant(factory)
    await seed_donation(factory, restaurant_id)

    rows = await factory.create_allocation_workflow().list_available_donations(recipient)
    assert len(rows) == 1
    assert rows[0].distance_km is None
    assert gateway.calls == []


async def test_accepted_listing_defaults_to_caller(factory, recipient):
    restaurant_id = await seed_restaurant(factory)
    donation = await seed_donation(factory, restaurant_id)
    workflow = factory.create_allocation_workflow()
    summary = await workflow.accept_donation(recipient, donation.id)
    fb = AuthContext(user_id="fb-a", role=Role.FOOD_BANK)
    await workflow.review_match(fb, summary.match_id, ReviewDecision.ACCEPT)

    assert len(await workflow.list_accepted_matches(fb)) == 1
    assert await workflow.list_accepted_matches(fb, food_bank_id="fb-b") == []
