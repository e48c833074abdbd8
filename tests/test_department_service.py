"""
Department registry tests.
"""
import pytest

from clearflow.models import DepartmentOfficer
from clearflow.services import DepartmentService
from clearflow.utils import ValidationError, NotFoundError, ConflictError


class TestCreateDepartment:
    def test_defaults(self, library):
        assert library.code == "LIB"
        assert library.is_active is True
        assert library.auto_approval is False
        assert library.require_remarks is False
        assert library.max_processing_days == 7
        assert library.statistics["total_processed"] == 0
        assert [r.name for r in library.requirements] == ["Returned all library books"]

    def test_settings_on_create(self, make_department):
        department = make_department("Sports", auto_approval=True, max_processing_days=3)

        assert department.auto_approval is True
        assert department.max_processing_days == 3

    def test_duplicate_name(self, library, make_department):
        with pytest.raises(ConflictError):
            make_department("University Library", code="LIB2")

    def test_duplicate_code_is_case_insensitive(self, library, make_department):
        with pytest.raises(ConflictError):
            make_department("Another Library", code="Lib")

    @pytest.mark.parametrize("kwargs", [
        {"code": "X"},
        {"faculty": "  "},
        {"contact_email": "not-an-email"},
        {"contact_phone": "12"},
        {"max_processing_days": 0},
        {"auto_approval": "yes"},
        {"colour": "blue"},
    ])
    def test_invalid_input(self, make_department, kwargs):
        with pytest.raises(ValidationError):
            make_department("Broken", **kwargs)

    def test_requirement_needs_name(self, make_department):
        with pytest.raises(ValidationError):
            make_department("Broken", requirements=[{"description": "no name"}])

    def test_list_active_departments(self, session, library, bursary):
        bursary.is_active = False
        session.commit()

        assert [d.code for d in DepartmentService.list_active_departments()] == ["LIB"]

    def test_unknown_department(self):
        with pytest.raises(NotFoundError):
            DepartmentService.get_department(404)


class TestSettings:
    def test_update_settings(self, library):
        department = DepartmentService.update_settings(
            library.id, require_remarks=True, notification_enabled=False)

        assert department.require_remarks is True
        assert department.notification_enabled is False
        assert department.settings["require_remarks"] is True

    def test_update_does_not_touch_statistics(self, library):
        before = dict(library.statistics)

        department = DepartmentService.update_settings(library.id, max_processing_days=10)

        assert department.max_processing_days == 10
        assert department.statistics == before

    def test_unknown_setting(self, library):
        with pytest.raises(ValidationError):
            DepartmentService.update_settings(library.id, total_processed=0)


class TestOfficers:
    def test_add_officer(self, library):
        officer = DepartmentService.add_officer(library.id, 42, "head", ["view", "approve", "edit"])

        assert officer.is_active is True
        assert officer.role == "head"
        assert DepartmentService.has_permission(library.id, 42, "edit")
        assert not DepartmentService.has_permission(library.id, 42, "reject")

    def test_default_permissions(self, library):
        DepartmentService.add_officer(library.id, 42)

        assert DepartmentService.has_permission(library.id, 42, "approve")
        assert DepartmentService.has_permission(library.id, 42, "reject")
        assert not DepartmentService.has_permission(library.id, 42, "edit")

    def test_duplicate_active_officer(self, library):
        DepartmentService.add_officer(library.id, 42)

        with pytest.raises(ConflictError):
            DepartmentService.add_officer(library.id, 42, "assistant")

    def test_same_user_in_two_departments(self, library, bursary):
        DepartmentService.add_officer(library.id, 42)
        DepartmentService.add_officer(bursary.id, 42)

        assert DepartmentService.has_permission(bursary.id, 42, "view")

    @pytest.mark.parametrize("role, permissions", [
        ("dean", None),
        ("officer", ["approve", "delete"]),
        ("officer", "approve"),
    ])
    def test_invalid_role_or_permissions(self, library, role, permissions):
        with pytest.raises(ValidationError):
            DepartmentService.add_officer(library.id, 42, role, permissions)

    def test_remove_is_soft(self, library):
        DepartmentService.add_officer(library.id, 42)

        officer = DepartmentService.remove_officer(library.id, 42)

        assert officer.is_active is False
        assert officer.removed_at is not None
        assert DepartmentOfficer.query.filter_by(user_id=42).count() == 1
        assert not DepartmentService.has_permission(library.id, 42, "view")

    def test_re_add_after_removal_creates_new_entry(self, library):
        DepartmentService.add_officer(library.id, 42)
        DepartmentService.remove_officer(library.id, 42)

        DepartmentService.add_officer(library.id, 42, "assistant", ["view"])

        entries = DepartmentOfficer.query.filter_by(user_id=42).order_by(DepartmentOfficer.id).all()
        assert [e.is_active for e in entries] == [False, True]
        assert DepartmentService.has_permission(library.id, 42, "view")

    def test_remove_unknown_officer(self, library):
        with pytest.raises(NotFoundError):
            DepartmentService.remove_officer(library.id, 42)

    def test_removing_an_inactive_officer_again(self, library):
        DepartmentService.add_officer(library.id, 42)
        first = DepartmentService.remove_officer(library.id, 42)
        removed_at = first.removed_at

        officer = DepartmentService.remove_officer(library.id, 42)

        assert officer.id == first.id
        assert officer.is_active is False
        assert officer.removed_at == removed_at

    def test_remove_after_re_add_revokes_access(self, library):
        DepartmentService.add_officer(library.id, 42)
        DepartmentService.remove_officer(library.id, 42)
        DepartmentService.add_officer(library.id, 42)

        officer = DepartmentService.remove_officer(library.id, 42)

        entries = DepartmentOfficer.query.filter_by(user_id=42).order_by(DepartmentOfficer.id).all()
        assert officer.id == entries[1].id
        assert [e.is_active for e in entries] == [False, False]
        assert not DepartmentService.has_permission(library.id, 42, "approve")
