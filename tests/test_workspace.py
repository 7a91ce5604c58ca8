"""
Tests for the workspace controller: optimistic saves, batch delete and import merge.
"""
import pytest

from hrtrain.models.enums import CreatedBy, ViewName
from hrtrain.services.errors import PersistenceError, RefusalError
from hrtrain.services.workspace import Workspace

GOOD_ROW = "Excel進階實戰,神資,600-數位科技事業群,提升效率,2024-01-15,2024-01-15,09:00-17:00,7,30,陳大文,數據中心,12000,內訓,"


class TestBatchDelete:
    """Batch delete needs confirmation and reports counts."""

    def test_successful_batch_delete(self, hr_user, fake_store, make_course):
        courses = [make_course() for _ in range(3)]
        workspace = Workspace(hr_user, fake_store.add(*courses))
        workspace.selection.select_all(workspace.courses)

        outcome = workspace.batch_delete(lambda count: True)

        assert outcome.succeeded == 3
        assert outcome.failed == 0
        assert workspace.courses == []
        assert workspace.selection.selected == set()
        assert fake_store.calls == [("batch_delete", sorted(c.id for c in courses))]

    def test_collaborator_failure_keeps_collection_and_selection(self, hr_user, fake_store, make_course):
        """Batch-delete of 3 ids where the store throws: nothing changes locally."""
        courses = [make_course() for _ in range(3)]
        workspace = Workspace(hr_user, fake_store.add(*courses))
        workspace.selection.select_all(workspace.courses)
        before = list(workspace.courses)

        fake_store.fail = True
        outcome = workspace.batch_delete(lambda count: True)

        assert outcome.succeeded == 0
        assert outcome.failed == 3
        assert outcome.error
        assert workspace.courses == before
        assert workspace.selection.selected == {c.id for c in courses}

    def test_declined_confirmation_does_nothing(self, hr_user, fake_store, make_course):
        course = make_course()
        workspace = Workspace(hr_user, fake_store.add(course))
        workspace.selection.select_all(workspace.courses)
        asked = []

        outcome = workspace.batch_delete(lambda count: asked.append(count) or False)

        assert asked == [1]
        assert outcome.succeeded == 0
        assert workspace.courses == [course]
        assert fake_store.calls == []

    def test_only_in_scope_ids_are_deleted(self, general_user, fake_store, make_course):
        user_course = make_course(created_by=CreatedBy.USER)
        hr_course = make_course(created_by=CreatedBy.HR)
        workspace = Workspace(general_user, fake_store.add(user_course, hr_course))
        # Force an out-of-scope id into the set
        workspace.selection.selected = {user_course.id, hr_course.id}

        outcome = workspace.batch_delete(lambda count: True)

        assert outcome.succeeded == 1
        assert workspace.courses == [hr_course]

    def test_view_change_clears_selection(self, hr_user, fake_store, make_course):
        workspace = Workspace(hr_user, fake_store.add(make_course()))
        workspace.selection.select_all(workspace.courses)

        workspace.set_view(ViewName.LIST)

        assert workspace.selection.selected == set()


class TestSaveAndDelete:
    """Single-record operations are optimistic."""

    def test_new_course_gets_id_and_attribution(self, general_user, fake_store, make_course):
        workspace = Workspace(general_user, fake_store)
        course = make_course(id=None, created_by=CreatedBy.HR)

        saved = workspace.save_course(course)

        assert saved.id
        assert saved.created_by == CreatedBy.USER
        assert workspace.courses == [saved]

    def test_edit_keeps_created_by(self, admin, fake_store, make_course):
        original = make_course(created_by=CreatedBy.USER)
        workspace = Workspace(admin, fake_store.add(original))

        edited = make_course(id=original.id, name="新名稱", created_by=CreatedBy.HR)
        workspace.save_course(edited)

        assert workspace.courses[0].name == "新名稱"
        assert workspace.courses[0].created_by == CreatedBy.USER

    def test_create_outside_scope_refused(self, hr_user, fake_store, make_course):
        workspace = Workspace(hr_user, fake_store)
        with pytest.raises(RefusalError) as exc_info:
            workspace.save_course(make_course(company="新達", department="Z10-統合通訊處"))
        assert exc_info.value.forbidden
        assert workspace.courses == []
        assert fake_store.calls == []

    def test_save_failure_keeps_local_copy(self, hr_user, fake_store, make_course):
        workspace = Workspace(hr_user, fake_store)
        fake_store.fail = True
        course = make_course()

        with pytest.raises(PersistenceError):
            workspace.save_course(course)

        assert workspace.courses == [course]

    def test_general_user_cannot_delete_hr_course(self, general_user, fake_store, make_course):
        course = make_course(created_by=CreatedBy.HR)
        workspace = Workspace(general_user, fake_store.add(course))
        with pytest.raises(RefusalError):
            workspace.delete_course(course.id)
        assert workspace.courses == [course]

    def test_delete_invisible_course_is_not_found(self, hr_user, fake_store, make_course):
        foreign = make_course(company="新達", department="Z10-統合通訊處")
        workspace = Workspace(hr_user, fake_store.add(foreign))
        with pytest.raises(LookupError):
            workspace.delete_course(foreign.id)

    def test_delete_failure_keeps_local_removal(self, hr_user, fake_store, make_course):
        course = make_course()
        workspace = Workspace(hr_user, fake_store.add(course))
        fake_store.fail = True

        with pytest.raises(PersistenceError):
            workspace.delete_course(course.id)

        assert workspace.courses == []


class TestImportAndSnapshots:
    """Committed imports merge into the collection; snapshots replace it."""

    def test_commit_import_appends_and_switches_to_list(self, hr_user, fake_store, make_course):
        existing = make_course()
        workspace = Workspace(hr_user, fake_store.add(existing))
        session = workspace.start_import()
        assert workspace.view == ViewName.IMPORT

        session.load_text(GOOD_ROW)
        session.parse()
        outcome = workspace.commit_import(session)

        assert outcome.succeeded == 1
        assert len(workspace.courses) == 2
        assert workspace.view == ViewName.LIST

    def test_snapshot_replaces_and_prunes_selection(self, hr_user, fake_store, make_course):
        a, b = make_course(), make_course()
        workspace = Workspace(hr_user, fake_store.add(a, b))
        workspace.selection.select_all(workspace.courses)

        workspace.apply_snapshot([b])

        assert workspace.courses == [b]
        assert workspace.selection.selected == {b.id}

    def test_every_read_path_is_filtered(self, hr_user, fake_store, make_course):
        mine = make_course(start_date="2024-02-01")
        foreign = make_course(company="新達", department="Z10-統合通訊處", start_date="2024-02-02")
        workspace = Workspace(hr_user, fake_store.add(mine, foreign))

        assert workspace.visible() == [mine]
        assert workspace.filtered() == [mine]
        assert workspace.get_visible(foreign.id) is None
        assert list(workspace.grouped_by_month().values()) == [[mine]]
        assert workspace.dashboard()["stats"].total_courses == 1
        assert "新達" not in workspace.export()
