"""Tests for reviews and rating aggregation."""

from __future__ import annotations

import pytest
from sqlalchemy import func, insert, select

from blousecraft.errors import Conflict, Forbidden, InvalidState, NotFound
from blousecraft.marketplace import orders
from blousecraft.marketplace.reviews import create_review, list_tailor_reviews, recompute_tailor_rating
from blousecraft.models import Order, Review, Tailor


@pytest.fixture
def parties(make_user, make_tailor):
    return make_user("cust"), make_tailor("tailor")


def test_delivered_order_review_scenario(db, parties) -> None:
    customer, tailor = parties
    o = orders.create_order(
        db, customer, {"tailor_id": tailor.id, "blouse_type": "halter", "pickup_address": "Jubilee Hills"}
    )
    assert (o.status, o.progress) == ("pending", 0)

    orders.update_status(db, o.id, tailor.user_id, "delivered", 100)
    r = create_review(db, customer.id, o.id, {"rating": 5, "comment": "Perfect fit"})

    assert r.tailor_id == tailor.id
    t = db.get(Tailor, tailor.id)
    assert t.average_rating == 5
    assert t.total_reviews == 1

    with pytest.raises(Conflict):
        create_review(db, customer.id, o.id, {"rating": 4})
    assert db.execute(select(func.count(Review.id))).scalar_one() == 1


def test_racing_duplicate_review_hits_unique_constraint(db, parties, make_order) -> None:
    customer, tailor = parties
    o = make_order(customer, tailor, status="delivered")
    loaded = db.get(Order, o.id)
    assert loaded.review is None

    # a competing request lands its review after this session loaded the order
    db.execute(insert(Review).values(order_id=o.id, customer_id=customer.id, tailor_id=tailor.id, rating=1))

    with pytest.raises(Conflict):
        create_review(db, customer.id, o.id, {"rating": 5})

    t = db.get(Tailor, tailor.id)
    assert (t.average_rating, t.total_reviews) == (0, 0)
    assert db.execute(select(func.count(Review.id))).scalar_one() == 0


def test_review_before_delivery_rejected(db, parties, make_order) -> None:
    customer, tailor = parties
    o = make_order(customer, tailor, status="ready")
    with pytest.raises(InvalidState):
        create_review(db, customer.id, o.id, {"rating": 4})


def test_only_customer_may_review(db, parties, make_order) -> None:
    customer, tailor = parties
    o = make_order(customer, tailor, status="delivered")
    with pytest.raises(Forbidden):
        create_review(db, tailor.user_id, o.id, {"rating": 5})


def test_missing_order(db, parties) -> None:
    customer, _ = parties
    with pytest.raises(NotFound):
        create_review(db, customer.id, 12345, {"rating": 5})


def test_average_over_all_reviews(db, parties, make_order, make_user) -> None:
    _, tailor = parties
    for i, rating in enumerate([5, 4, 4]):
        buyer = make_user(f"buyer{i}")
        o = make_order(buyer, tailor, status="delivered")
        create_review(db, buyer.id, o.id, {"rating": rating})

    t = db.get(Tailor, tailor.id)
    assert t.average_rating == pytest.approx(4.33)
    assert t.total_reviews == 3
    assert [r.rating for r in list_tailor_reviews(db, tailor.id)] == [4, 4, 5]


def test_recompute_is_idempotent(db, parties, make_order) -> None:
    customer, tailor = parties
    o = make_order(customer, tailor, status="delivered")
    create_review(db, customer.id, o.id, {"rating": 3})

    t = db.get(Tailor, tailor.id)
    first = (t.average_rating, t.total_reviews)

    recompute_tailor_rating(db, tailor.id)
    db.commit()
    recompute_tailor_rating(db, tailor.id)
    db.commit()

    t = db.get(Tailor, tailor.id)
    assert (t.average_rating, t.total_reviews) == first == (3, 1)


def test_recompute_overrides_drifted_values(db, parties) -> None:
    _, tailor = parties
    t = db.get(Tailor, tailor.id)
    t.average_rating = 4.9
    t.total_reviews = 42
    db.commit()

    recompute_tailor_rating(db, tailor.id)
    db.commit()

    t = db.get(Tailor, tailor.id)
    assert (t.average_rating, t.total_reviews) == (0, 0)
