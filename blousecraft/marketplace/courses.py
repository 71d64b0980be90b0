# blousecraft/marketplace/courses.py
from __future__ import annotations

from typing import Any, Dict, List

import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..errors import Conflict, Forbidden, NotFound
from ..models import Course, Enrollment, utcnow
from .lifecycle import validate_progress

logger = structlog.get_logger(__name__)


def list_courses(db: Session) -> List[Course]:
    return (
        db.query(Course)
        .filter(Course.is_active.is_(True))
        .order_by(Course.rating.desc(), Course.created_at.desc(), Course.id.desc())
        .all()
    )


def get_course(db: Session, course_id: int) -> Course:
    c = db.get(Course, course_id)
    if not c:
        raise NotFound("Course not found")
    return c


def create_course(db: Session, instructor_id: str, fields: Dict[str, Any]) -> Course:
    c = Course(instructor_id=instructor_id, **fields)
    db.add(c)
    db.commit()
    db.refresh(c)
    logger.info("course_created", course_id=c.id, instructor_id=instructor_id)
    return c


def update_course(db: Session, course_id: int, user_id: str, fields: Dict[str, Any]) -> Course:
    c = get_course(db, course_id)
    if c.instructor_id != user_id:
        raise Forbidden("Only the instructor can edit this course")
    for k, v in fields.items():
        setattr(c, k, v)
    c.updated_at = utcnow()
    db.commit()
    db.refresh(c)
    return c


def enroll(db: Session, user_id: str, course_id: int) -> Enrollment:
    c = get_course(db, course_id)
    if not c.is_active:
        raise NotFound("Course not found")

    e = Enrollment(user_id=user_id, course_id=course_id)
    db.add(e)
    try:
        db.flush()
        db.query(Course).filter(Course.id == course_id).update(
            {Course.total_enrollments: Course.total_enrollments + 1},
            synchronize_session=False,
        )
        db.commit()
    except IntegrityError:
        db.rollback()
        raise Conflict("Already enrolled in this course") from None

    db.refresh(e)
    logger.info("enrolled", user_id=user_id, course_id=course_id)
    return e


def list_enrollments(db: Session, user_id: str) -> List[Enrollment]:
    return (
        db.query(Enrollment)
        .filter(Enrollment.user_id == user_id)
        .order_by(Enrollment.created_at.desc(), Enrollment.id.desc())
        .all()
    )


def update_enrollment_progress(db: Session, enrollment_id: int, user_id: str, progress: int) -> Enrollment:
    e = db.get(Enrollment, enrollment_id)
    if not e:
        raise NotFound("Enrollment not found")
    if e.user_id != user_id:
        raise Forbidden("Not your enrollment")

    e.progress = validate_progress(progress)
    if e.progress == 100 and e.completed_at is None:
        e.completed_at = utcnow()
    db.commit()
    db.refresh(e)
    return e
