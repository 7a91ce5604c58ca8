"""
Permission model: who may see, create and delete which course records.

All functions are pure. Missing permission data yields False (or an empty
list), never an exception.
"""
from typing import Iterable, List, Optional

from hrtrain.models.domain import Course, CompanyPermission, User
from hrtrain.models.enums import UserRole, CreatedBy
from hrtrain.models import taxonomy


def is_system_admin(principal: User) -> bool:
    return principal.role == UserRole.SYSTEM_ADMIN


def find_permission(principal: User, company: str) -> Optional[CompanyPermission]:
    """Return the principal's CompanyPermission entry for a company, if any."""
    for permission in principal.permissions or []:
        if permission.company == company:
            return permission
    return None


def can_view(principal: User, company: str, department: str) -> bool:
    """
    Decide read-visibility of a (company, department) pair.

    - SystemAdmin sees everything
    - Otherwise a CompanyPermission for the company is required, and either
      it covers all departments or the department is on its allow-list
    """
    if is_system_admin(principal):
        return True

    permission = find_permission(principal, company)
    if permission is None:
        return False

    if permission.view_all_departments:
        return True

    return department in (permission.allowed_departments or [])


def can_delete(principal: User, course: Course) -> bool:
    """
    A GeneralUser may never delete HR-attributed courses; everyone else may.

    This does not check visibility. Callers combine it with can_view.
    """
    return not (
        principal.role == UserRole.GENERAL_USER
        and course.created_by == CreatedBy.HR
    )


def view_refusal_reason(principal: User, company: str, department: str) -> Optional[str]:
    """
    Explain why a (company, department) pair is not visible, or None if it is.

    Distinguishes a missing company grant from a missing department grant.
    """
    if can_view(principal, company, department):
        return None
    if find_permission(principal, company) is None:
        return f"No permission for company: {company}"
    return f"No permission for department {department} in company {company}"


def created_by_for(principal: User) -> CreatedBy:
    """Attribution for records a principal creates: GeneralUser -> User, others -> HR."""
    if principal.role == UserRole.GENERAL_USER:
        return CreatedBy.USER
    return CreatedBy.HR


def filter_visible(courses: Iterable[Course], principal: User) -> List[Course]:
    """Return the records the principal may see. SystemAdmin short-circuits to all records."""
    if is_system_admin(principal):
        return list(courses)
    return [c for c in courses if can_view(principal, c.company, c.department)]


def deletable_visible(courses: Iterable[Course], principal: User) -> List[Course]:
    """Visible records the principal may also delete."""
    return [c for c in filter_visible(courses, principal) if can_delete(principal, c)]


def allowed_companies(principal: User) -> List[str]:
    """Companies the principal may create records for, in taxonomy order."""
    if is_system_admin(principal):
        return list(taxonomy.COMPANY_OPTIONS)
    granted = {p.company for p in principal.permissions or []}
    return [company for company in taxonomy.COMPANY_OPTIONS if company in granted]


def allowed_departments(principal: User, company: str) -> List[str]:
    """Departments of a company the principal may pick."""
    all_departments = taxonomy.departments_of(company)
    if is_system_admin(principal):
        return all_departments

    permission = find_permission(principal, company)
    if permission is None:
        return []

    if permission.view_all_departments:
        return all_departments

    return list(permission.allowed_departments or [])
