# blousecraft/marketplace/profiles.py
from __future__ import annotations

from typing import Any, Dict, Optional

import structlog
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..errors import Conflict, Forbidden, NotFound
from ..models import Tailor, User, utcnow

logger = structlog.get_logger(__name__)

# Columns a user may set on their own profile. Role and activity are not here.
USER_PROFILE_FIELDS = frozenset(
    {
        "email",
        "first_name",
        "last_name",
        "profile_image_url",
        "phone",
        "address",
        "city",
        "state",
        "pincode",
        "latitude",
        "longitude",
    }
)

# Columns a tailor may edit on their own provider profile.
TAILOR_EDITABLE_FIELDS = frozenset(
    {
        "business_name",
        "bio",
        "experience",
        "specializations",
        "price_range",
        "portfolio_images",
        "working_hours",
        "delivery_radius",
    }
)


_DIALECT_INSERTS = {"postgresql": pg_insert, "sqlite": sqlite_insert}


def _dialect_insert(db: Session):
    # make_engine refuses any other backend
    return _DIALECT_INSERTS[db.get_bind().dialect.name]


def upsert_user(db: Session, user_id: str, fields: Dict[str, Any]) -> User:
    """Insert the user, or overwrite only the supplied fields if it exists.

    One statement (INSERT ... ON CONFLICT (id) DO UPDATE), so repeated calls
    never produce a second row for the same id.
    """
    now = utcnow()
    values = dict(fields)
    insert = _dialect_insert(db)

    stmt = insert(User).values(id=user_id, created_at=now, updated_at=now, **values)
    stmt = stmt.on_conflict_do_update(
        index_elements=[User.id],
        set_={**values, "updated_at": now},
    )
    try:
        db.execute(stmt)
        db.commit()
    except IntegrityError:
        db.rollback()
        raise Conflict("Profile conflicts with an existing account (email already in use?)") from None

    logger.info("user_upserted", user_id=user_id, fields=sorted(values))
    return db.get(User, user_id, populate_existing=True)


def get_user(db: Session, user_id: str) -> Optional[User]:
    return db.get(User, user_id)


def get_tailor(db: Session, tailor_id: int) -> Tailor:
    t = db.get(Tailor, tailor_id)
    if not t:
        raise NotFound("Tailor not found")
    return t


def get_tailor_by_user(db: Session, user_id: str) -> Optional[Tailor]:
    return db.query(Tailor).filter(Tailor.user_id == user_id).first()


def create_tailor(db: Session, user: User, fields: Dict[str, Any]) -> Tailor:
    """Attach a provider profile to ``user`` and flip their role to tailor."""
    if get_tailor_by_user(db, user.id) is not None:
        raise Conflict("Tailor profile already exists")

    values = {k: v for k, v in fields.items() if k in TAILOR_EDITABLE_FIELDS}
    t = Tailor(user_id=user.id, **values)
    user.role = "tailor"
    user.updated_at = utcnow()

    db.add(t)
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise Conflict("Tailor profile already exists") from None
    db.refresh(t)

    logger.info("tailor_created", tailor_id=t.id, user_id=user.id)
    return t


def update_tailor(db: Session, tailor_id: int, actor_id: str, fields: Dict[str, Any]) -> Tailor:
    t = get_tailor(db, tailor_id)
    if t.user_id != actor_id:
        raise Forbidden("Only the owner can edit this tailor profile")

    for k, v in fields.items():
        if k in TAILOR_EDITABLE_FIELDS:
            setattr(t, k, v)
    t.updated_at = utcnow()

    db.commit()
    db.refresh(t)
    return t


def set_verified(db: Session, tailor_id: int, verified: bool) -> Tailor:
    t = get_tailor(db, tailor_id)
    t.is_verified = verified
    t.updated_at = utcnow()
    db.commit()
    db.refresh(t)
    logger.info("tailor_verification_changed", tailor_id=tailor_id, verified=verified)
    return t


def require_admin(user: User) -> None:
    if user.role != "admin":
        raise Forbidden("Admin access required")
