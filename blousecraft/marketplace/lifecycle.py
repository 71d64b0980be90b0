# blousecraft/marketplace/lifecycle.py
from __future__ import annotations

from enum import Enum

from ..errors import InvalidArgument, InvalidState


class OrderStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PICKED_UP = "picked_up"
    IN_PROGRESS = "in_progress"
    QUALITY_CHECK = "quality_check"
    READY = "ready"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


# Forward order of the happy path; cancelled sits outside it.
LIFECYCLE = (
    OrderStatus.PENDING,
    OrderStatus.CONFIRMED,
    OrderStatus.PICKED_UP,
    OrderStatus.IN_PROGRESS,
    OrderStatus.QUALITY_CHECK,
    OrderStatus.READY,
    OrderStatus.DELIVERED,
)

TERMINAL = frozenset({OrderStatus.DELIVERED, OrderStatus.CANCELLED})


def parse_status(raw: str) -> OrderStatus:
    try:
        return OrderStatus((raw or "").strip().lower())
    except ValueError:
        raise InvalidArgument(f"Unknown order status: {raw!r}") from None


def is_terminal(status: str) -> bool:
    return parse_status(status) in TERMINAL


def check_transition(current: str, target: str) -> OrderStatus:
    """Validate moving an order from ``current`` to ``target``.

    Forward jumps are allowed, staying put is allowed (progress-only update),
    moving back is not. Any non-terminal order may be cancelled. Terminal
    orders never move.
    """
    cur = parse_status(current)
    nxt = parse_status(target)

    if cur in TERMINAL:
        raise InvalidState(f"Order is already {cur.value}")
    if nxt is OrderStatus.CANCELLED:
        return nxt
    if LIFECYCLE.index(nxt) < LIFECYCLE.index(cur):
        raise InvalidState(f"Cannot move order from {cur.value} back to {nxt.value}")
    return nxt


def validate_progress(progress: int | None) -> int | None:
    if progress is None:
        return None
    if not 0 <= int(progress) <= 100:
        raise InvalidArgument("Progress must be between 0 and 100")
    return int(progress)
