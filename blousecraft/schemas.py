# blousecraft/schemas.py
"""Request and response bodies for the HTTP API."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Literal

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator


class ORMModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)


def _not_null(value: Any) -> Any:
    # Partial updates may omit a required column but never clear it.
    if value is None:
        raise ValueError("may be omitted but not null")
    return value


# -------------------
# Inputs
# -------------------
class ProfileIn(BaseModel):
    email: EmailStr | None = None
    first_name: str | None = None
    last_name: str | None = None
    profile_image_url: str | None = None
    phone: str | None = None
    address: str | None = None
    city: str | None = None
    state: str | None = None
    pincode: str | None = None
    latitude: float | None = Field(None, ge=-90, le=90)
    longitude: float | None = Field(None, ge=-180, le=180)


class PriceRange(BaseModel):
    min: float = Field(..., ge=0)
    max: float = Field(..., ge=0)

    @model_validator(mode="after")
    def _ordered(self) -> "PriceRange":
        if self.min > self.max:
            raise ValueError("min must not exceed max")
        return self


class TailorIn(BaseModel):
    business_name: str = Field(..., min_length=1)
    bio: str | None = None
    experience: int | None = Field(None, ge=0)
    specializations: List[str] = []
    price_range: PriceRange | None = None
    portfolio_images: List[str] = []
    working_hours: Dict[str, Any] | None = None
    delivery_radius: int | None = Field(None, ge=0)


class TailorUpdateIn(BaseModel):
    business_name: str | None = Field(None, min_length=1)
    bio: str | None = None
    experience: int | None = Field(None, ge=0)
    specializations: List[str] | None = None
    price_range: PriceRange | None = None
    portfolio_images: List[str] | None = None
    working_hours: Dict[str, Any] | None = None
    delivery_radius: int | None = Field(None, ge=0)

    @field_validator("business_name")
    @classmethod
    def _business_name_not_null(cls, v: Any) -> Any:
        return _not_null(v)


class Measurements(BaseModel):
    bust: float | None = Field(None, ge=0)
    waist: float | None = Field(None, ge=0)
    shoulder: float | None = Field(None, ge=0)
    length: float | None = Field(None, ge=0)


class OrderIn(BaseModel):
    tailor_id: int
    blouse_type: str = Field(..., min_length=1)
    fabric_type: str | None = None
    sleeve_style: str | None = None
    neckline: str | None = None
    measurements: Measurements | None = None
    special_instructions: str | None = None
    reference_images: List[str] = []
    pickup_address: str = Field(..., min_length=1)
    pickup_date: datetime | None = None
    delivery_address: str | None = None
    estimated_price: float | None = Field(None, ge=0)
    estimated_delivery: datetime | None = None


class StatusIn(BaseModel):
    status: str
    progress: int | None = Field(None, ge=0, le=100)


class PriceIn(BaseModel):
    price: float = Field(..., ge=0)


class ReviewIn(BaseModel):
    order_id: int
    rating: int = Field(..., ge=1, le=5)
    comment: str | None = None
    images: List[str] = []


class CourseIn(BaseModel):
    title: str = Field(..., min_length=1)
    description: str | None = None
    price: float = Field(..., ge=0)
    original_price: float | None = Field(None, ge=0)
    duration: int | None = Field(None, ge=0)
    level: Literal["beginner", "intermediate", "advanced"] | None = None
    thumbnail_url: str | None = None
    video_url: str | None = None
    materials: List[str] = []


class CourseUpdateIn(BaseModel):
    title: str | None = Field(None, min_length=1)
    description: str | None = None
    price: float | None = Field(None, ge=0)
    original_price: float | None = Field(None, ge=0)
    duration: int | None = Field(None, ge=0)
    level: Literal["beginner", "intermediate", "advanced"] | None = None
    thumbnail_url: str | None = None
    video_url: str | None = None
    materials: List[str] | None = None
    is_active: bool | None = None

    @field_validator("title", "price", "is_active")
    @classmethod
    def _required_not_null(cls, v: Any) -> Any:
        return _not_null(v)


class EnrollmentIn(BaseModel):
    course_id: int


class ProgressIn(BaseModel):
    progress: int = Field(..., ge=0, le=100)


class VerifyIn(BaseModel):
    verified: bool = True


# -------------------
# Outputs
# -------------------
class UserOut(ORMModel):
    id: str
    email: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    profile_image_url: str | None = None
    phone: str | None = None
    address: str | None = None
    city: str | None = None
    state: str | None = None
    pincode: str | None = None
    latitude: float | None = None
    longitude: float | None = None
    role: str
    is_active: bool
    created_at: datetime | None = None
    updated_at: datetime | None = None


class TailorOut(ORMModel):
    id: int
    user_id: str
    business_name: str
    bio: str | None = None
    experience: int | None = None
    specializations: List[str] | None = None
    price_range: Dict[str, float] | None = None
    portfolio_images: List[str] | None = None
    working_hours: Dict[str, Any] | None = None
    average_rating: float
    total_reviews: int
    is_verified: bool
    delivery_radius: int | None = None
    user: UserOut | None = None
    distance_km: float | None = None


class ReviewOut(ORMModel):
    id: int
    order_id: int
    customer_id: str
    tailor_id: int
    rating: int
    comment: str | None = None
    images: List[str] | None = None
    created_at: datetime | None = None


class OrderOut(ORMModel):
    id: int
    order_number: str
    customer_id: str
    tailor_id: int
    blouse_type: str
    fabric_type: str | None = None
    sleeve_style: str | None = None
    neckline: str | None = None
    measurements: Dict[str, Any] | None = None
    special_instructions: str | None = None
    reference_images: List[str] | None = None
    pickup_address: str
    pickup_date: datetime | None = None
    delivery_address: str | None = None
    estimated_price: float | None = None
    final_price: float | None = None
    status: str
    progress: int
    payment_status: str
    estimated_delivery: datetime | None = None
    actual_delivery: datetime | None = None
    version: int
    created_at: datetime | None = None
    updated_at: datetime | None = None
    review: ReviewOut | None = None


class OrderDetailOut(OrderOut):
    customer: UserOut | None = None
    tailor: TailorOut | None = None


class CourseOut(ORMModel):
    id: int
    title: str
    description: str | None = None
    instructor_id: str
    price: float
    original_price: float | None = None
    duration: int | None = None
    level: str | None = None
    thumbnail_url: str | None = None
    video_url: str | None = None
    materials: List[str] | None = None
    rating: float
    total_enrollments: int
    is_active: bool


class EnrollmentOut(ORMModel):
    id: int
    user_id: str
    course_id: int
    progress: int
    completed_at: datetime | None = None
    created_at: datetime | None = None


class NotificationOut(ORMModel):
    id: int
    user_id: str
    title: str
    message: str
    type: str
    is_read: bool
    related_id: str | None = None
    created_at: datetime | None = None
