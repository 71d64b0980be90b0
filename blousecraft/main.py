# blousecraft/main.py
from __future__ import annotations

import os
from typing import Any, Dict, List

import structlog
from fastapi import Depends, FastAPI, Header, HTTPException, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from starlette.exceptions import HTTPException as StarletteHTTPException

# Load .env locally (safe in prod too)
from dotenv import load_dotenv

load_dotenv()

from .auth import decode_token, profile_claims
from .db import Base, engine, get_db
from .errors import MarketplaceError
from .marketplace import courses, notifications, orders, profiles, reviews, search
from .marketplace.admin import marketplace_stats
from .models import User
from .observability import configure_logging
from .schemas import (
    CourseIn,
    CourseOut,
    CourseUpdateIn,
    EnrollmentIn,
    EnrollmentOut,
    NotificationOut,
    OrderDetailOut,
    OrderIn,
    OrderOut,
    PriceIn,
    ProfileIn,
    ProgressIn,
    ReviewIn,
    ReviewOut,
    StatusIn,
    TailorIn,
    TailorOut,
    TailorUpdateIn,
    UserOut,
    VerifyIn,
)


# -------------------
# Config (env-driven)
# -------------------
class Settings(BaseModel):
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    log_json: bool = os.getenv("LOG_JSON", "1").strip().lower() not in {"0", "false"}
    default_radius_km: float = float(os.getenv("DEFAULT_RADIUS_KM", "10"))


settings = Settings()

configure_logging(log_level=settings.log_level, json_format=settings.log_json)
logger = structlog.get_logger(__name__)

app = FastAPI(title="BlouseCraft Marketplace API")

Base.metadata.create_all(bind=engine)


# -------------------
# Error mapping
# -------------------
_HTTP_KINDS = {401: "unauthorized", 403: "forbidden", 404: "not_found", 405: "method_not_allowed"}


@app.exception_handler(MarketplaceError)
async def marketplace_error_handler(request: Request, exc: MarketplaceError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    first = exc.errors()[0] if exc.errors() else {}
    where = ".".join(str(p) for p in first.get("loc", ()) if p not in ("body", "query", "path"))
    message = f"{where}: {first.get('msg')}" if where else str(first.get("msg", "Invalid input"))
    return JSONResponse(status_code=400, content={"kind": "invalid_argument", "message": message})


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"kind": _HTTP_KINDS.get(exc.status_code, "http_error"), "message": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.exception("database_error", path=request.url.path)
    return JSONResponse(status_code=500, content={"kind": "internal", "message": "Internal server error"})


# -------------------
# Identity
# -------------------
def require_claims(authorization: str | None = Header(default=None)) -> Dict[str, Any]:
    if not authorization or not authorization.lower().startswith("bearer "):
        raise HTTPException(status_code=401, detail="Missing Bearer token")

    token = authorization.split(" ", 1)[1].strip()
    claims = decode_token(token)
    if not claims:
        raise HTTPException(status_code=401, detail="Invalid token")
    return claims


def current_user(claims: Dict[str, Any] = Depends(require_claims), db: Session = Depends(get_db)) -> User:
    """The caller's User row, created from token claims the first time we see them."""
    user_id = str(claims["sub"])
    u = profiles.get_user(db, user_id)
    if not u:
        u = profiles.upsert_user(db, user_id, profile_claims(claims))
    if not u.is_active:
        raise HTTPException(status_code=403, detail="Account is deactivated")
    return u


def _tailor_out(tailor, distance_km: float | None = None) -> TailorOut:
    out = TailorOut.model_validate(tailor)
    if distance_km is not None:
        out = out.model_copy(update={"distance_km": round(distance_km, 3)})
    return out


# -------------------
# Health
# -------------------
@app.get("/")
def root():
    return {"ok": True, "service": "blousecraft-api"}


# -------------------
# Auth / profile
# -------------------
@app.get("/api/auth/user", response_model=UserOut)
def auth_user(user: User = Depends(current_user)):
    return user


@app.put("/api/user/profile", response_model=UserOut)
def update_profile(payload: ProfileIn, user: User = Depends(current_user), db: Session = Depends(get_db)):
    return profiles.upsert_user(db, user.id, payload.model_dump(exclude_unset=True))


# -------------------
# Tailors
# -------------------
@app.get("/api/tailors/nearby", response_model=List[TailorOut])
def tailors_nearby(
    lat: float | None = None,
    lng: float | None = None,
    radius: float | None = None,
    limit: int | None = Query(default=None, ge=1),
    offset: int = Query(default=0, ge=0),
    db: Session = Depends(get_db),
):
    radius_km = settings.default_radius_km if radius is None else radius
    rows = search.nearby_tailors(db, lat, lng, radius_km, limit=limit, offset=offset)
    return [_tailor_out(t, d) for t, d in rows]


@app.get("/api/tailors/search", response_model=List[TailorOut])
def tailors_search(
    q: str = "",
    specialization: str | None = None,
    min_price: float | None = Query(default=None, ge=0),
    max_price: float | None = Query(default=None, ge=0),
    min_rating: float | None = Query(default=None, ge=0, le=5),
    min_experience: int | None = Query(default=None, ge=0),
    db: Session = Depends(get_db),
):
    filters = search.TailorFilters(
        specialization=specialization or None,
        min_price=min_price,
        max_price=max_price,
        min_rating=min_rating,
        min_experience=min_experience,
    )
    return [_tailor_out(t) for t in search.search_tailors(db, q, filters)]


@app.get("/api/tailors/{tailor_id}", response_model=TailorOut)
def tailor_detail(tailor_id: int, db: Session = Depends(get_db)):
    return _tailor_out(profiles.get_tailor(db, tailor_id))


@app.get("/api/tailors/{tailor_id}/reviews", response_model=List[ReviewOut])
def tailor_reviews(tailor_id: int, db: Session = Depends(get_db)):
    profiles.get_tailor(db, tailor_id)
    return reviews.list_tailor_reviews(db, tailor_id)


@app.post("/api/tailors", response_model=TailorOut)
def create_tailor(payload: TailorIn, user: User = Depends(current_user), db: Session = Depends(get_db)):
    return _tailor_out(profiles.create_tailor(db, user, payload.model_dump()))


@app.put("/api/tailors/{tailor_id}", response_model=TailorOut)
def update_tailor(
    tailor_id: int,
    payload: TailorUpdateIn,
    user: User = Depends(current_user),
    db: Session = Depends(get_db),
):
    t = profiles.update_tailor(db, tailor_id, user.id, payload.model_dump(exclude_unset=True))
    return _tailor_out(t)


# -------------------
# Orders
# -------------------
@app.post("/api/orders", response_model=OrderOut)
def create_order(payload: OrderIn, user: User = Depends(current_user), db: Session = Depends(get_db)):
    return orders.create_order(db, user, payload.model_dump())


@app.get("/api/orders", response_model=List[OrderOut])
def list_orders(
    type: str = Query(default="customer", pattern="^(tailor|customer)$"),
    user: User = Depends(current_user),
    db: Session = Depends(get_db),
):
    if type == "tailor":
        return orders.list_tailor_orders(db, user.id)
    return orders.list_customer_orders(db, user.id)


@app.get("/api/orders/{order_id}", response_model=OrderDetailOut)
def order_detail(order_id: int, user: User = Depends(current_user), db: Session = Depends(get_db)):
    return orders.get_order_for(db, order_id, user.id)


@app.put("/api/orders/{order_id}/status", response_model=OrderOut)
def update_order_status(
    order_id: int,
    payload: StatusIn,
    user: User = Depends(current_user),
    db: Session = Depends(get_db),
):
    return orders.update_status(db, order_id, user.id, payload.status, payload.progress)


@app.put("/api/orders/{order_id}/price", response_model=OrderOut)
def update_order_price(
    order_id: int,
    payload: PriceIn,
    user: User = Depends(current_user),
    db: Session = Depends(get_db),
):
    return orders.update_final_price(db, order_id, user.id, payload.price)


# -------------------
# Reviews
# -------------------
@app.post("/api/reviews", response_model=ReviewOut)
def create_review(payload: ReviewIn, user: User = Depends(current_user), db: Session = Depends(get_db)):
    fields = payload.model_dump(exclude={"order_id"})
    return reviews.create_review(db, user.id, payload.order_id, fields)


# -------------------
# Courses / enrollments
# -------------------
@app.get("/api/courses", response_model=List[CourseOut])
def list_courses(db: Session = Depends(get_db)):
    return courses.list_courses(db)


@app.get("/api/courses/{course_id}", response_model=CourseOut)
def course_detail(course_id: int, db: Session = Depends(get_db)):
    return courses.get_course(db, course_id)


@app.post("/api/courses", response_model=CourseOut)
def create_course(payload: CourseIn, user: User = Depends(current_user), db: Session = Depends(get_db)):
    return courses.create_course(db, user.id, payload.model_dump())


@app.put("/api/courses/{course_id}", response_model=CourseOut)
def update_course(
    course_id: int,
    payload: CourseUpdateIn,
    user: User = Depends(current_user),
    db: Session = Depends(get_db),
):
    return courses.update_course(db, course_id, user.id, payload.model_dump(exclude_unset=True))


@app.post("/api/enrollments", response_model=EnrollmentOut)
def create_enrollment(payload: EnrollmentIn, user: User = Depends(current_user), db: Session = Depends(get_db)):
    return courses.enroll(db, user.id, payload.course_id)


@app.get("/api/enrollments", response_model=List[EnrollmentOut])
def list_enrollments(user: User = Depends(current_user), db: Session = Depends(get_db)):
    return courses.list_enrollments(db, user.id)


@app.put("/api/enrollments/{enrollment_id}/progress", response_model=EnrollmentOut)
def update_enrollment_progress(
    enrollment_id: int,
    payload: ProgressIn,
    user: User = Depends(current_user),
    db: Session = Depends(get_db),
):
    return courses.update_enrollment_progress(db, enrollment_id, user.id, payload.progress)


# -------------------
# Notifications
# -------------------
@app.get("/api/notifications", response_model=List[NotificationOut])
def list_notifications(user: User = Depends(current_user), db: Session = Depends(get_db)):
    return notifications.list_notifications(db, user.id)


@app.put("/api/notifications/{notification_id}/read")
def mark_notification_read(
    notification_id: int,
    user: User = Depends(current_user),
    db: Session = Depends(get_db),
):
    notifications.mark_read(db, notification_id, user.id)
    return {"success": True}


# -------------------
# Admin
# -------------------
@app.get("/api/admin/stats")
def admin_stats(user: User = Depends(current_user), db: Session = Depends(get_db)):
    profiles.require_admin(user)
    return marketplace_stats(db)


@app.put("/api/admin/tailors/{tailor_id}/verify", response_model=TailorOut)
def admin_verify_tailor(
    tailor_id: int,
    payload: VerifyIn,
    user: User = Depends(current_user),
    db: Session = Depends(get_db),
):
    profiles.require_admin(user)
    return _tailor_out(profiles.set_verified(db, tailor_id, payload.verified))
