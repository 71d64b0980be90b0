# blousecraft/marketplace/search.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

import structlog
from sqlalchemy import or_
from sqlalchemy.orm import Session

from ..models import Tailor, User
from .geo import great_circle_sql, validate_point, validate_radius

logger = structlog.get_logger(__name__)

# Assumed for tailors that never filled in a price range.
DEFAULT_PRICE_RANGE = {"min": 800, "max": 5000}


@dataclass
class TailorFilters:
    specialization: Optional[str] = None
    min_price: Optional[float] = None
    max_price: Optional[float] = None
    min_rating: Optional[float] = None
    min_experience: Optional[int] = None


def _price_range(tailor: Tailor) -> Dict[str, float]:
    pr = tailor.price_range if isinstance(tailor.price_range, dict) else {}
    return {
        "min": float(pr.get("min", DEFAULT_PRICE_RANGE["min"])),
        "max": float(pr.get("max", DEFAULT_PRICE_RANGE["max"])),
    }


def matches_filters(tailor: Tailor, filters: TailorFilters) -> bool:
    if filters.specialization and filters.specialization not in (tailor.specializations or []):
        return False

    pr = _price_range(tailor)
    if filters.min_price is not None and pr["min"] < filters.min_price:
        return False
    if filters.max_price is not None and pr["max"] > filters.max_price:
        return False

    if filters.min_rating is not None and float(tailor.average_rating or 0) < filters.min_rating:
        return False
    if filters.min_experience is not None and (tailor.experience or 0) < filters.min_experience:
        return False
    return True


def nearby_tailors(
    db: Session,
    lat: Optional[float],
    lng: Optional[float],
    radius_km: Optional[float],
    limit: Optional[int] = None,
    offset: int = 0,
) -> List[Tuple[Tailor, float]]:
    """Verified tailors within ``radius_km`` of (lat, lng), best rated first.

    Returns (tailor, distance_km) pairs. Ties on rating fall back to tailor id.
    """
    lat, lng = validate_point(lat, lng)
    radius_km = validate_radius(radius_km)

    distance = great_circle_sql(lat, lng, User.latitude, User.longitude).label("distance_km")
    q = (
        db.query(Tailor, distance)
        .join(User, Tailor.user_id == User.id)
        .filter(
            Tailor.is_verified.is_(True),
            User.latitude.is_not(None),
            User.longitude.is_not(None),
            distance <= radius_km,
        )
        .order_by(Tailor.average_rating.desc(), Tailor.id.asc())
    )
    if offset:
        q = q.offset(offset)
    if limit is not None:
        q = q.limit(limit)

    rows = q.all()
    logger.debug("nearby_search", lat=lat, lng=lng, radius_km=radius_km, results=len(rows))
    return [(tailor, float(dist)) for tailor, dist in rows]


def search_tailors(db: Session, query: str = "", filters: Optional[TailorFilters] = None) -> List[Tailor]:
    """Free-text search over verified tailors, then in-process filters."""
    q = db.query(Tailor).join(User, Tailor.user_id == User.id).filter(Tailor.is_verified.is_(True))

    text = (query or "").strip()
    if text:
        pattern = f"%{text}%"
        q = q.filter(
            or_(
                Tailor.business_name.ilike(pattern),
                Tailor.bio.ilike(pattern),
                User.first_name.ilike(pattern),
                User.last_name.ilike(pattern),
            )
        )

    tailors = q.order_by(Tailor.average_rating.desc(), Tailor.id.asc()).all()

    if filters is not None:
        tailors = [t for t in tailors if matches_filters(t, filters)]

    logger.debug("text_search", query=text, results=len(tailors))
    return tailors

