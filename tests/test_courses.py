"""Tests for courses, enrollments and notifications."""

from __future__ import annotations

import pytest

from blousecraft.errors import Conflict, Forbidden, NotFound
from blousecraft.marketplace import courses
from blousecraft.marketplace.notifications import list_notifications, mark_read, notify
from blousecraft.models import Course


@pytest.fixture
def course(db, make_user) -> Course:
    make_user("instructor")
    return courses.create_course(db, "instructor", {"title": "Blouse Drafting 101", "price": 999.0, "level": "beginner"})


class TestCourses:
    def test_list_only_active_best_rated_first(self, db, course) -> None:
        better = courses.create_course(db, "instructor", {"title": "Advanced Cuts", "price": 1999.0})
        better.rating = 4.9
        hidden = courses.create_course(db, "instructor", {"title": "Retired", "price": 10.0})
        hidden.is_active = False
        db.commit()

        assert [c.id for c in courses.list_courses(db)] == [better.id, course.id]

    def test_get_missing(self, db) -> None:
        with pytest.raises(NotFound):
            courses.get_course(db, 77)

    def test_update_instructor_only(self, db, course, make_user) -> None:
        make_user("someone")
        assert courses.update_course(db, course.id, "instructor", {"price": 799.0}).price == 799.0
        with pytest.raises(Forbidden):
            courses.update_course(db, course.id, "someone", {"price": 1.0})


class TestEnrollments:
    def test_enroll_counts_and_rejects_duplicates(self, db, course, make_user) -> None:
        make_user("student")
        e = courses.enroll(db, "student", course.id)
        assert e.progress == 0
        assert db.get(Course, course.id).total_enrollments == 1

        with pytest.raises(Conflict):
            courses.enroll(db, "student", course.id)
        assert db.get(Course, course.id).total_enrollments == 1
        assert [x.id for x in courses.list_enrollments(db, "student")] == [e.id]

    def test_inactive_course_not_enrollable(self, db, course, make_user) -> None:
        make_user("student")
        course.is_active = False
        db.commit()
        with pytest.raises(NotFound):
            courses.enroll(db, "student", course.id)

    def test_progress_completion(self, db, course, make_user) -> None:
        make_user("student")
        make_user("other")
        e = courses.enroll(db, "student", course.id)

        e = courses.update_enrollment_progress(db, e.id, "student", 50)
        assert e.completed_at is None
        e = courses.update_enrollment_progress(db, e.id, "student", 100)
        assert e.completed_at is not None

        with pytest.raises(Forbidden):
            courses.update_enrollment_progress(db, e.id, "other", 10)


class TestNotifications:
    def test_mark_read_owner_only(self, db, make_user) -> None:
        make_user("a")
        make_user("b")
        n = notify(db, "a", "Hello", "Welcome aboard")
        assert n is not None and n.is_read is False

        with pytest.raises(Forbidden):
            mark_read(db, n.id, "b")
        assert mark_read(db, n.id, "a").is_read is True
        with pytest.raises(NotFound):
            mark_read(db, 999, "a")

    def test_list_is_per_user(self, db, make_user) -> None:
        make_user("a")
        make_user("b")
        notify(db, "a", "one", "1")
        notify(db, "a", "two", "2")
        notify(db, "b", "three", "3")
        assert [n.title for n in list_notifications(db, "a")] == ["two", "one"]
