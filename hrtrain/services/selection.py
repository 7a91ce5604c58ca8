"""
Selection coordinator for batch delete.

The selection only ever holds ids of records that are visible to the
principal and deletable by them.
"""
from typing import Iterable, List, Set

from hrtrain.models.domain import Course, User
from hrtrain.services.permissions import deletable_visible


class SelectionCoordinator:
    """Tracks a multi-select subset of the visible, deletable records."""

    def __init__(self, principal: User):
        self.principal = principal
        self.selected: Set[str] = set()

    def deletable_ids(self, courses: Iterable[Course]) -> Set[str]:
        return {c.id for c in deletable_visible(courses, self.principal)}

    def toggle(self, course_id: str, courses: Iterable[Course]) -> bool:
        """
        Flip selection of one record. Out-of-scope ids are ignored.

        Returns whether the id is selected afterwards.
        """
        if course_id in self.selected:
            self.selected.discard(course_id)
            return False
        if course_id not in self.deletable_ids(courses):
            return False
        self.selected.add(course_id)
        return True

    def select_only(self, course_ids: Iterable[str], courses: Iterable[Course]) -> Set[str]:
        """
        Replace the selection with the in-scope subset of course_ids.

        Duplicates collapse. Returns the requested ids that were out of scope.
        """
        requested = set(course_ids)
        in_scope = self.deletable_ids(courses)
        self.selected = requested & in_scope
        return requested - in_scope

    def select_all(self, courses: Iterable[Course]) -> None:
        self.selected = self.deletable_ids(courses)

    def clear(self) -> None:
        self.selected = set()

    def prune(self, courses: Iterable[Course]) -> None:
        """Drop ids that are no longer in scope, e.g. after a snapshot replace."""
        self.selected &= self.deletable_ids(courses)

    def is_all_selected(self, courses: Iterable[Course]) -> bool:
        total = len(self.deletable_ids(courses))
        return total > 0 and len(self.selected) == total

    def is_indeterminate(self, courses: Iterable[Course]) -> bool:
        total = len(self.deletable_ids(courses))
        return 0 < len(self.selected) < total

    def selected_ids(self) -> List[str]:
        return sorted(self.selected)
