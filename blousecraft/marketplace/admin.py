# blousecraft/marketplace/admin.py
from __future__ import annotations

from typing import Any, Dict

from sqlalchemy import func
from sqlalchemy.orm import Session

from ..models import Order, Tailor, User
from .lifecycle import OrderStatus


def marketplace_stats(db: Session) -> Dict[str, Any]:
    revenue = (
        db.query(func.coalesce(func.sum(Order.final_price), 0))
        .filter(Order.status == OrderStatus.DELIVERED.value)
        .scalar()
    )
    return {
        "total_users": db.query(func.count(User.id)).scalar(),
        "total_tailors": db.query(func.count(Tailor.id)).scalar(),
        "total_orders": db.query(func.count(Order.id)).scalar(),
        "total_revenue": float(revenue or 0),
    }
