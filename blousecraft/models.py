# blousecraft/models.py
from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from .db import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(Base):
    __tablename__ = "users"
    # subject id issued by the identity provider
    id = Column(String, primary_key=True)
    email = Column(String, unique=True, index=True, nullable=True)
    first_name = Column(String, nullable=True)
    last_name = Column(String, nullable=True)
    profile_image_url = Column(String, nullable=True)
    phone = Column(String, nullable=True)
    address = Column(Text, nullable=True)
    city = Column(String, nullable=True)
    state = Column(String, nullable=True)
    pincode = Column(String, nullable=True)
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)
    role = Column(String, nullable=False, default="customer")  # customer | tailor | admin
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow)

    tailor_profile = relationship("Tailor", back_populates="user", uselist=False)


class Tailor(Base):
    __tablename__ = "tailors"
    id = Column(Integer, primary_key=True)
    user_id = Column(String, ForeignKey("users.id"), unique=True, nullable=False)
    business_name = Column(String, nullable=False)
    bio = Column(Text, nullable=True)
    experience = Column(Integer, nullable=True)  # years
    specializations = Column(JSON, default=list)
    price_range = Column(JSON, nullable=True)  # {"min": n, "max": n}
    portfolio_images = Column(JSON, default=list)
    working_hours = Column(JSON, nullable=True)
    average_rating = Column(Float, nullable=False, default=0.0)
    total_reviews = Column(Integer, nullable=False, default=0)
    is_verified = Column(Boolean, nullable=False, default=False)
    delivery_radius = Column(Integer, default=10)  # km
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow)

    user = relationship("User", back_populates="tailor_profile", lazy="joined")


class Order(Base):
    __tablename__ = "orders"
    id = Column(Integer, primary_key=True)
    order_number = Column(String, unique=True, nullable=False)
    customer_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    tailor_id = Column(Integer, ForeignKey("tailors.id"), nullable=False, index=True)
    blouse_type = Column(String, nullable=False)
    fabric_type = Column(String, nullable=True)
    sleeve_style = Column(String, nullable=True)
    neckline = Column(String, nullable=True)
    measurements = Column(JSON, nullable=True)  # bust, waist, shoulder, length
    special_instructions = Column(Text, nullable=True)
    reference_images = Column(JSON, default=list)
    pickup_address = Column(Text, nullable=False)
    pickup_date = Column(DateTime(timezone=True), nullable=True)
    delivery_address = Column(Text, nullable=True)
    estimated_price = Column(Float, nullable=True)
    final_price = Column(Float, nullable=True)
    status = Column(String, nullable=False, default="pending")
    progress = Column(Integer, nullable=False, default=0)  # percentage
    payment_status = Column(String, nullable=False, default="pending")  # pending | paid | refunded
    estimated_delivery = Column(DateTime(timezone=True), nullable=True)
    actual_delivery = Column(DateTime(timezone=True), nullable=True)
    version = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow)

    customer = relationship("User", lazy="joined")
    tailor = relationship("Tailor", lazy="joined")
    review = relationship("Review", back_populates="order", uselist=False, lazy="joined")

    __mapper_args__ = {"version_id_col": version}


class Review(Base):
    __tablename__ = "reviews"
    __table_args__ = (CheckConstraint("rating BETWEEN 1 AND 5", name="ck_reviews_rating"),)
    id = Column(Integer, primary_key=True)
    order_id = Column(Integer, ForeignKey("orders.id"), unique=True, nullable=False)
    customer_id = Column(String, ForeignKey("users.id"), nullable=False)
    tailor_id = Column(Integer, ForeignKey("tailors.id"), nullable=False, index=True)
    rating = Column(Integer, nullable=False)
    comment = Column(Text, nullable=True)
    images = Column(JSON, default=list)
    created_at = Column(DateTime(timezone=True), default=utcnow)

    order = relationship("Order", back_populates="review")


class Course(Base):
    __tablename__ = "courses"
    id = Column(Integer, primary_key=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    instructor_id = Column(String, ForeignKey("users.id"), nullable=False)
    price = Column(Float, nullable=False)
    original_price = Column(Float, nullable=True)
    duration = Column(Integer, nullable=True)  # hours
    level = Column(String, nullable=True)  # beginner | intermediate | advanced
    thumbnail_url = Column(String, nullable=True)
    video_url = Column(String, nullable=True)
    materials = Column(JSON, default=list)
    rating = Column(Float, nullable=False, default=0.0)
    total_enrollments = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow)


class Enrollment(Base):
    __tablename__ = "enrollments"
    __table_args__ = (UniqueConstraint("user_id", "course_id", name="uq_enrollments_user_course"),)
    id = Column(Integer, primary_key=True)
    user_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    course_id = Column(Integer, ForeignKey("courses.id"), nullable=False)
    progress = Column(Integer, nullable=False, default=0)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)


class Notification(Base):
    __tablename__ = "notifications"
    id = Column(Integer, primary_key=True)
    user_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    title = Column(String, nullable=False)
    message = Column(Text, nullable=False)
    type = Column(String, nullable=False)  # order_update | course_reminder | general
    is_read = Column(Boolean, nullable=False, default=False)
    related_id = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)
