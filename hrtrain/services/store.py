"""
SQLAlchemy implementations of the persistence collaborators.

The core only relies on the method names; any object with the same methods
can stand in (the tests use in-memory fakes).
"""
import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from hrtrain.models.domain import Course, User

logger = logging.getLogger(__name__)


class SqlCourseStore:
    """Course persistence backed by a SQLAlchemy session. Upserts are idempotent on id."""

    def __init__(self, db: Session):
        self.db = db

    def list_all(self) -> List[Course]:
        return self.db.query(Course).order_by(Course.start_date, Course.created_at).all()

    def get(self, course_id: str) -> Optional[Course]:
        return self.db.get(Course, course_id)

    def upsert(self, course: Course) -> Course:
        try:
            merged = self.db.merge(course)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        return merged

    def delete(self, course_id: str) -> None:
        try:
            for course in self.db.query(Course).filter(Course.id == course_id).all():
                self.db.delete(course)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

    def batch_upsert(self, courses: List[Course]) -> None:
        """All-or-nothing from the caller's perspective: one commit, rollback on failure."""
        try:
            for course in courses:
                self.db.merge(course)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        logger.debug("Upserted %d courses", len(courses))

    def batch_delete(self, course_ids: List[str]) -> None:
        if not course_ids:
            return
        try:
            for course in self.db.query(Course).filter(Course.id.in_(course_ids)).all():
                self.db.delete(course)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        logger.debug("Deleted %d courses", len(course_ids))


class SqlUserStore:
    """Principal persistence, independent of the course store."""

    def __init__(self, db: Session):
        self.db = db

    def list_users(self) -> List[User]:
        return self.db.query(User).order_by(User.id).all()

    def get(self, user_id: str) -> Optional[User]:
        return self.db.get(User, user_id)

    def find_by_username(self, username: str) -> Optional[User]:
        return self.db.query(User).filter(User.username == username).first()

    def save_users(self, users: List[User]) -> None:
        try:
            for user in users:
                self.db.merge(user)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

    def delete_user(self, user_id: str) -> None:
        user = self.get(user_id)
        if user is None:
            return
        try:
            self.db.delete(user)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
