# blousecraft/marketplace/reviews.py
from __future__ import annotations

from typing import Any, Dict, List

import structlog
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..errors import Conflict, Forbidden, InvalidState
from ..models import Review, Tailor, utcnow
from .lifecycle import OrderStatus
from .orders import get_order

logger = structlog.get_logger(__name__)


def recompute_tailor_rating(db: Session, tailor_id: int) -> None:
    """Rebuild average_rating/total_reviews from the tailor's reviews.

    A single UPDATE with correlated aggregates, so there is no read-then-write
    window. Does not commit.
    """
    avg_rating = (
        db.query(func.coalesce(func.round(func.avg(Review.rating), 2), 0))
        .filter(Review.tailor_id == tailor_id)
        .scalar_subquery()
    )
    total = db.query(func.count(Review.id)).filter(Review.tailor_id == tailor_id).scalar_subquery()

    db.query(Tailor).filter(Tailor.id == tailor_id).update(
        {
            Tailor.average_rating: avg_rating,
            Tailor.total_reviews: total,
            Tailor.updated_at: utcnow(),
        },
        synchronize_session=False,
    )


def create_review(db: Session, customer_id: str, order_id: int, fields: Dict[str, Any]) -> Review:
    order = get_order(db, order_id)
    if order.customer_id != customer_id:
        raise Forbidden("Only the order's customer can review it")
    if order.status != OrderStatus.DELIVERED.value:
        raise InvalidState("Order must be delivered to leave a review")
    if order.review is not None:
        raise Conflict("Review already exists for this order")

    r = Review(
        order_id=order.id,
        customer_id=customer_id,
        tailor_id=order.tailor_id,
        **fields,
    )
    db.add(r)
    try:
        db.flush()
        recompute_tailor_rating(db, order.tailor_id)
        db.commit()
    except IntegrityError:
        db.rollback()
        raise Conflict("Review already exists for this order") from None

    db.refresh(r)
    logger.info("review_created", review_id=r.id, order_id=order.id, tailor_id=order.tailor_id, rating=r.rating)
    return r


def list_tailor_reviews(db: Session, tailor_id: int) -> List[Review]:
    return (
        db.query(Review)
        .filter(Review.tailor_id == tailor_id)
        .order_by(Review.created_at.desc(), Review.id.desc())
        .all()
    )
