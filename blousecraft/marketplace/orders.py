# blousecraft/marketplace/orders.py
from __future__ import annotations

import time
from typing import Any, Dict, List, Optional
from uuid import uuid4

import structlog
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from ..errors import Conflict, Forbidden, InvalidState, NotFound
from ..models import Order, Tailor, User, utcnow
from .lifecycle import OrderStatus, check_transition, is_terminal, validate_progress
from .notifications import ORDER_UPDATE, notify
from .profiles import get_tailor_by_user

logger = structlog.get_logger(__name__)

ORDER_NUMBER_PREFIX = "BC"


def new_order_number() -> str:
    # millisecond clock plus a random suffix so two orders in the same ms differ
    return f"{ORDER_NUMBER_PREFIX}{int(time.time() * 1000)}{uuid4().hex[:8].upper()}"


def get_order(db: Session, order_id: int) -> Order:
    o = db.get(Order, order_id)
    if not o:
        raise NotFound("Order not found")
    return o


def _owning_tailor_user_id(order: Order) -> str:
    return order.tailor.user_id


def create_order(db: Session, customer: User, fields: Dict[str, Any]) -> Order:
    tailor = db.get(Tailor, fields["tailor_id"])
    if not tailor:
        raise NotFound("Tailor not found")

    o = Order(
        **fields,
        order_number=new_order_number(),
        customer_id=customer.id,
        status=OrderStatus.PENDING.value,
        progress=0,
        payment_status="pending",
    )
    db.add(o)
    db.commit()
    db.refresh(o)
    logger.info("order_created", order_id=o.id, order_number=o.order_number, tailor_id=tailor.id)

    notify(
        db,
        user_id=tailor.user_id,
        title="New Order Received",
        message=f"You have received a new order for {o.blouse_type}",
        type=ORDER_UPDATE,
        related_id=str(o.id),
    )
    return o


def list_customer_orders(db: Session, customer_id: str) -> List[Order]:
    return (
        db.query(Order)
        .filter(Order.customer_id == customer_id)
        .order_by(Order.created_at.desc(), Order.id.desc())
        .all()
    )


def list_tailor_orders(db: Session, user_id: str) -> List[Order]:
    tailor = get_tailor_by_user(db, user_id)
    if not tailor:
        raise NotFound("Tailor profile not found")
    return (
        db.query(Order)
        .filter(Order.tailor_id == tailor.id)
        .order_by(Order.created_at.desc(), Order.id.desc())
        .all()
    )


def get_order_for(db: Session, order_id: int, user_id: str) -> Order:
    """Full order detail, visible to its customer and its tailor only."""
    o = get_order(db, order_id)
    if user_id not in (o.customer_id, _owning_tailor_user_id(o)):
        raise Forbidden("You do not have access to this order")
    return o


def _require_tailor_owner(order: Order, user_id: str) -> None:
    if _owning_tailor_user_id(order) != user_id:
        raise Forbidden("Only the order's tailor can update it")


def _commit_versioned(db: Session, order: Order) -> None:
    order_id = order.id
    try:
        db.commit()
    except StaleDataError:
        db.rollback()
        raise Conflict(
            "Order was modified concurrently, reload and retry",
            internal_details=f"stale version on order {order_id}",
        ) from None


def update_status(
    db: Session,
    order_id: int,
    user_id: str,
    status: str,
    progress: Optional[int] = None,
) -> Order:
    o = get_order(db, order_id)
    _require_tailor_owner(o, user_id)

    nxt = check_transition(o.status, status)
    progress = validate_progress(progress)

    o.status = nxt.value
    if progress is not None:
        o.progress = progress
    if nxt is OrderStatus.DELIVERED:
        o.actual_delivery = utcnow()
    o.updated_at = utcnow()
    _commit_versioned(db, o)
    db.refresh(o)

    logger.info("order_status_updated", order_id=o.id, status=o.status, progress=o.progress)

    notify(
        db,
        user_id=o.customer_id,
        title="Order Status Updated",
        message=f"Your order status has been updated to: {o.status}",
        type=ORDER_UPDATE,
        related_id=str(o.id),
    )
    return o


def update_final_price(db: Session, order_id: int, user_id: str, price: float) -> Order:
    o = get_order(db, order_id)
    _require_tailor_owner(o, user_id)
    if is_terminal(o.status):
        raise InvalidState(f"Order is already {o.status}")

    o.final_price = price
    o.updated_at = utcnow()
    _commit_versioned(db, o)
    db.refresh(o)
    return o
