"""
Workspace: the per-principal controller that owns the in-memory course
collection, the active view, the selection and the persistence collaborator.

Every read path goes through filter_visible. Record-level work is
synchronous; only the final collaborator call can fail.
"""
import logging
from typing import Callable, Dict, List, Optional

from hrtrain.models.audit import AuditEventType
from hrtrain.models.domain import Course, User, new_course_id
from hrtrain.models.enums import TrainingType, ViewName
from hrtrain.services import dashboard
from hrtrain.services.batch_import import BatchOutcome, ImportSession
from hrtrain.services.errors import PersistenceError, RefusalError
from hrtrain.services.export import export_csv, filter_courses
from hrtrain.services.permissions import (
    can_delete,
    can_view,
    created_by_for,
    filter_visible,
    view_refusal_reason
)
from hrtrain.services.selection import SelectionCoordinator

logger = logging.getLogger(__name__)

SYNC_FAILED = "Saved locally, but syncing to the remote store failed"


class Workspace:
    """Explicit session state for one principal. Nothing here is global."""

    def __init__(self, principal: User, store, audit=None):
        self.principal = principal
        self.store = store
        self.audit = audit
        self.courses: List[Course] = list(store.list_all())
        self.view = ViewName.DASHBOARD
        self.selection = SelectionCoordinator(principal)

    # Reads

    def visible(self) -> List[Course]:
        return filter_visible(self.courses, self.principal)

    def filtered(
        self,
        start_from: Optional[str] = None,
        start_to: Optional[str] = None,
        training_type: Optional[TrainingType] = None
    ) -> List[Course]:
        return filter_courses(self.visible(), start_from, start_to, training_type)

    def grouped_by_month(self):
        return dashboard.group_by_month(self.visible())

    def get_visible(self, course_id: str) -> Optional[Course]:
        for course in self.visible():
            if course.id == course_id:
                return course
        return None

    def dashboard(self) -> Dict:
        visible = self.visible()
        return {
            "stats": dashboard.compute_stats(visible),
            "monthly": dashboard.monthly_series(visible),
            "status": dashboard.status_breakdown(visible)
        }

    def export(
        self,
        start_from: Optional[str] = None,
        start_to: Optional[str] = None,
        training_type: Optional[TrainingType] = None
    ) -> str:
        return export_csv(self.courses, self.principal, start_from, start_to, training_type)

    # View and snapshot handling

    def set_view(self, view: ViewName) -> None:
        if view != self.view:
            self.selection.clear()
        self.view = view

    def apply_snapshot(self, courses: List[Course]) -> None:
        """Replace the whole collection (last writer wins) and drop stale selections."""
        self.courses = list(courses)
        self.selection.prune(self.courses)

    # Mutations

    def save_course(self, course: Course) -> Course:
        """
        Create or edit a course (optimistic).

        - Edits keep the stored id and created_by
        - New courses get a fresh id and created_by from the principal's role
        - The target company/department must be visible to the principal

        On collaborator failure the local change is kept and PersistenceError is raised.
        """
        existing = self._find(course.id) if course.id else None
        if existing is not None:
            if not can_view(self.principal, existing.company, existing.department):
                raise LookupError(course.id)
            course.created_by = existing.created_by
            event_type = AuditEventType.COURSE_UPDATED
        else:
            course.id = course.id or new_course_id()
            course.created_by = created_by_for(self.principal)
            event_type = AuditEventType.COURSE_CREATED

        reason = view_refusal_reason(self.principal, course.company, course.department)
        if reason is not None:
            raise RefusalError(reason, forbidden=True)

        if existing is not None:
            self.courses = [course if c.id == course.id else c for c in self.courses]
        else:
            self.courses.append(course)

        try:
            saved = self.store.upsert(course)
        except Exception as e:
            logger.warning("Sync of course %s failed: %s", course.id, e)
            raise PersistenceError(SYNC_FAILED, [course.id]) from e

        if saved is not None:
            self.courses = [saved if c.id == course.id else c for c in self.courses]
        self._audit(event_type, "Course", course.id, {"name": course.name, "company": course.company})
        return saved if saved is not None else course

    def delete_course(self, course_id: str) -> None:
        """Delete one visible, deletable course (optimistic)."""
        course = self.get_visible(course_id)
        if course is None:
            raise LookupError(course_id)
        if not can_delete(self.principal, course):
            raise RefusalError("You may not delete courses created by HR.", forbidden=True)

        self.courses = [c for c in self.courses if c.id != course_id]
        self.selection.selected.discard(course_id)

        try:
            self.store.delete(course_id)
        except Exception as e:
            logger.warning("Sync of deletion %s failed: %s", course_id, e)
            raise PersistenceError(SYNC_FAILED, [course_id]) from e

        self._audit(AuditEventType.COURSE_DELETED, "Course", course_id, None)

    def batch_delete(self, confirm: Callable[[int], bool]) -> BatchOutcome:
        """
        Delete every selected id in one collaborator call, after confirmation.

        The local collection changes only once the collaborator succeeds; on
        failure the selection is kept so the user can retry.
        """
        in_scope = self.selection.deletable_ids(self.courses)
        ids = sorted(self.selection.selected & in_scope)
        if not ids:
            return BatchOutcome(succeeded=0, failed=0)

        if not confirm(len(ids)):
            logger.info("Batch delete of %d courses declined", len(ids))
            return BatchOutcome(succeeded=0, failed=0)

        doomed = set(ids)
        remaining = [c for c in self.courses if c.id not in doomed]

        try:
            self.store.batch_delete(ids)
        except Exception as e:
            logger.exception("Batch delete of %d courses failed", len(ids))
            return BatchOutcome(succeeded=0, failed=len(ids), error=f"Delete failed: {e}")

        self.courses = remaining
        self.selection.clear()
        self._audit(AuditEventType.COURSES_BATCH_DELETED, "Course", ",".join(ids), {"count": len(ids)})
        return BatchOutcome(succeeded=len(ids), failed=0)

    def start_import(self, registry=None) -> ImportSession:
        """Switch to the import view and open a fresh session (registered if a registry is given)."""
        self.set_view(ViewName.IMPORT)
        if registry is not None:
            return registry.open(self.principal)
        return ImportSession(self.principal)

    def commit_import(self, session: ImportSession) -> BatchOutcome:
        """Commit an import session's accepted records and merge them into the collection."""
        outcome = session.commit(self.store)
        self.courses.extend(session.result.accepted)
        self.set_view(ViewName.LIST)
        self._audit(
            AuditEventType.IMPORT_COMMITTED,
            "ImportSession",
            session.id,
            {
                "accepted": outcome.succeeded,
                "rejected": [
                    {"row": r.row_number, "reason": r.reason, "raw": r.raw_row_text}
                    for r in session.result.rejected
                ]
            }
        )
        return outcome

    def _find(self, course_id: str) -> Optional[Course]:
        for course in self.courses:
            if course.id == course_id:
                return course
        return None

    def _audit(self, event_type: str, entity_type: str, entity_id: str, payload: Optional[dict]) -> None:
        if self.audit is not None:
            self.audit.record(event_type, entity_type, entity_id, user_id=self.principal.id, payload=payload)
