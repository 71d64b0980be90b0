# blousecraft/marketplace/notifications.py
from __future__ import annotations

from typing import List, Optional

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..errors import Forbidden, NotFound
from ..models import Notification

logger = structlog.get_logger(__name__)

ORDER_UPDATE = "order_update"
COURSE_REMINDER = "course_reminder"
GENERAL = "general"


def notify(
    db: Session,
    user_id: str,
    title: str,
    message: str,
    type: str = GENERAL,
    related_id: Optional[str] = None,
) -> Optional[Notification]:
    """Write a notification row in its own commit.

    Callers invoke this after their primary write is committed. A failure here
    is logged and swallowed so it never undoes that write.
    """
    n = Notification(
        user_id=user_id,
        title=title,
        message=message,
        type=type,
        related_id=related_id,
    )
    try:
        db.add(n)
        db.commit()
        db.refresh(n)
    except SQLAlchemyError as exc:
        db.rollback()
        logger.warning(
            "notification_write_failed",
            user_id=user_id,
            type=type,
            related_id=related_id,
            error=str(exc),
        )
        return None
    return n


def list_notifications(db: Session, user_id: str) -> List[Notification]:
    return (
        db.query(Notification)
        .filter(Notification.user_id == user_id)
        .order_by(Notification.created_at.desc(), Notification.id.desc())
        .all()
    )


def mark_read(db: Session, notification_id: int, user_id: str) -> Notification:
    n = db.get(Notification, notification_id)
    if not n:
        raise NotFound("Notification not found")
    if n.user_id != user_id:
        raise Forbidden("Not your notification")
    if not n.is_read:
        n.is_read = True
        db.commit()
        db.refresh(n)
    return n
